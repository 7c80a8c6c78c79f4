import asyncio
import os

import pytest

# must be set before barrelvid.server / barrelvid.model.* are imported
os.environ["STORE_BACKEND"] = "memory"
os.environ["PAYSESSION_BACKEND"] = "memory"
os.environ["SEED_SAMPLE_DATA"] = "0"
os.environ["ADMIN_USERNAME"] = "admin"
os.environ["ADMIN_PASSWORD"] = "letmein"
os.environ.setdefault("LOG_LEVEL", "WARNING")

from barrelvid.infra.sql import make_async_engine  # noqa: E402
from barrelvid.model.orm import Base  # noqa: E402
from barrelvid.model.memdb import MemoryDB  # noqa: E402
from barrelvid.model.catalog import _memory as mem_catalog, _sql as sql_catalog  # noqa: E402
from barrelvid.model.ledger import _memory as mem_ledger, _sql as sql_ledger  # noqa: E402
from barrelvid.model.accounts import _memory as mem_accounts, _sql as sql_accounts  # noqa: E402


class Stores:
    def __init__(self, catalog, ledger, accounts):
        self.catalog = catalog
        self.ledger = ledger
        self.accounts = accounts


def run_with_stores(kind, fn):
    """Run ``await fn(stores)`` against a fresh backend of the given kind."""
    async def main():
        if kind == "memory":
            mem = MemoryDB()
            await fn(Stores(
                mem_catalog.CatalogStore(mem=mem),
                mem_ledger.Ledger(mem=mem),
                mem_accounts.AccountStore(mem=mem),
            ))
            return
        engine, SessionAsync, gated = make_async_engine(
            "sqlite+aiosqlite:///:memory:"
        )
        try:
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
            async with SessionAsync() as session:
                await fn(Stores(
                    sql_catalog.CatalogStore(db=session, gated=gated),
                    sql_ledger.Ledger(db=session, gated=gated),
                    sql_accounts.AccountStore(db=session, gated=gated),
                ))
        finally:
            await engine.dispose()

    asyncio.run(main())


@pytest.fixture(params=["memory", "sql"])
def with_stores(request):
    def runner(fn):
        run_with_stores(request.param, fn)
    return runner


@pytest.fixture
def client():
    from fastapi.testclient import TestClient
    from barrelvid.server import app

    # entering the client runs the startup hooks: fresh MemoryDB each time
    with TestClient(app) as c:
        yield c


@pytest.fixture
def admin_client(client):
    r = client.post("/api/login",
                    json={"username": "admin", "password": "letmein"})
    assert r.status_code == 200
    return client
