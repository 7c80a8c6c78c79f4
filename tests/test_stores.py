import pytest

from barrelvid.errors import NotFoundError
from barrelvid.model.ledger import sales_summary, SALE_PRICE
from barrelvid.seed import ensure_admin, seed_sample_data, SAMPLE_EVENTS, RIDERS_PER_EVENT


async def _event(catalog, name="Spring Classic"):
    return await catalog.create_event(name=name, date="May 1",
                                      thumbnail_url="https://t/e.jpg")


async def _rider(catalog, event_id, name="Jane Doe"):
    return await catalog.create_rider(event_id=event_id, name=name, price=80,
                                      video_url="https://v/1.mp4")


def test_catalog_lists_in_creation_order(with_stores):
    async def body(s):
        a = await _event(s.catalog, "A")
        b = await _event(s.catalog, "B")
        r1 = await _rider(s.catalog, b.id, "one")
        r2 = await _rider(s.catalog, a.id, "two")

        assert [e.name for e in await s.catalog.list_events()] == ["A", "B"]
        assert [r.id for r in await s.catalog.list_riders()] == [r1.id, r2.id]
        assert [r.name for r in await s.catalog.get_riders_by_event_id(a.id)] == ["two"]
        assert (await s.catalog.get_rider(r1.id)).event_id == b.id
        assert await s.catalog.get_event(999) is None
        assert await s.catalog.get_rider(999) is None

    with_stores(body)


def test_create_rider_for_unknown_event(with_stores):
    async def body(s):
        with pytest.raises(NotFoundError):
            await _rider(s.catalog, 42)
        assert await s.catalog.list_riders() == []

    with_stores(body)


def test_delete_event_cascades_to_riders(with_stores):
    async def body(s):
        keep = await _event(s.catalog, "Keep")
        gone = await _event(s.catalog, "Gone")
        kept_rider = await _rider(s.catalog, keep.id)
        for i in range(3):
            await _rider(s.catalog, gone.id, f"r{i}")

        assert await s.catalog.delete_event(gone.id) is True
        assert await s.catalog.get_event(gone.id) is None
        assert await s.catalog.get_riders_by_event_id(gone.id) == []
        assert [r.id for r in await s.catalog.list_riders()] == [kept_rider.id]
        assert await s.catalog.delete_event(gone.id) is False

    with_stores(body)


def test_delete_rider(with_stores):
    async def body(s):
        ev = await _event(s.catalog)
        r = await _rider(s.catalog, ev.id)
        assert await s.catalog.delete_rider(r.id) is True
        assert await s.catalog.delete_rider(r.id) is False

    with_stores(body)


def test_entitlement_ignores_email_case_and_padding(with_stores):
    async def body(s):
        ev = await _event(s.catalog)
        r5 = await _rider(s.catalog, ev.id, "five")
        r6 = await _rider(s.catalog, ev.id, "six")

        p = await s.ledger.record_purchase("A@x.com", r5.id, "stripe", 80)
        assert p.id is not None
        assert p.event_id == ev.id

        assert await s.ledger.is_entitled("a@x.com", r5.id)
        assert await s.ledger.is_entitled("  A@X.COM ", r5.id)
        assert not await s.ledger.is_entitled("a@x.com", r6.id)
        assert not await s.ledger.is_entitled("b@x.com", r5.id)

    with_stores(body)


def test_duplicate_purchases_are_kept(with_stores):
    async def body(s):
        ev = await _event(s.catalog)
        r = await _rider(s.catalog, ev.id)
        await s.ledger.record_purchase("a@x.com", r.id, "stripe", 80)
        await s.ledger.record_purchase("A@x.com", r.id, "paypal", 40)

        mine = await s.ledger.purchases_by_email("a@X.com")
        assert [p.payment_method for p in mine] == ["stripe", "paypal"]
        assert await s.ledger.sales_count_for_event(ev.id) == 2

    with_stores(body)


def test_sales_count_survives_rider_deletion(with_stores):
    async def body(s):
        ev = await _event(s.catalog)
        other = await _event(s.catalog, "Other")
        r1 = await _rider(s.catalog, ev.id, "one")
        r2 = await _rider(s.catalog, ev.id, "two")
        r3 = await _rider(s.catalog, other.id, "three")
        await s.ledger.record_purchase("a@x.com", r1.id, "stripe", 80)
        await s.ledger.record_purchase("b@x.com", r1.id, "stripe", 80)
        await s.ledger.record_purchase("c@x.com", r2.id, "paypal", 80)
        await s.ledger.record_purchase("d@x.com", r3.id, "paypal", 80)

        assert await s.ledger.sales_count_for_event(ev.id) == 3
        await s.catalog.delete_rider(r1.id)
        assert await s.ledger.sales_count_for_event(ev.id) == 3
        assert await s.ledger.sales_count_for_event(other.id) == 1

    with_stores(body)


def test_sales_summary_uses_flat_rate(with_stores):
    async def body(s):
        ev = await _event(s.catalog)
        quiet = await _event(s.catalog, "Quiet")
        r = await _rider(s.catalog, ev.id)
        await s.ledger.record_purchase("a@x.com", r.id, "stripe", 20)
        await s.ledger.record_purchase("b@x.com", r.id, "stripe", 60)

        stats = await sales_summary(s.ledger, await s.catalog.list_events())
        assert stats == [
            {"eventId": ev.id, "eventName": "Spring Classic",
             "salesCount": 2, "revenue": 2 * SALE_PRICE},
            {"eventId": quiet.id, "eventName": "Quiet",
             "salesCount": 0, "revenue": 0},
        ]

    with_stores(body)


def test_accounts_store_hashed_passwords(with_stores):
    async def body(s):
        user = await s.accounts.create_admin("admin", "hunter2")
        assert user.password_hash != "hunter2"
        assert (await s.accounts.authenticate("admin", "hunter2")).id == user.id
        assert await s.accounts.authenticate("admin", "wrong") is None
        assert await s.accounts.authenticate("nobody", "hunter2") is None

    with_stores(body)


def test_seeding_is_idempotent(with_stores):
    async def body(s):
        assert await ensure_admin(s.accounts, "admin", "pw") is not None
        assert await ensure_admin(s.accounts, "admin", "other") is None
        assert await s.accounts.authenticate("admin", "pw") is not None

        created = await seed_sample_data(s.catalog)
        assert created == len(SAMPLE_EVENTS) * RIDERS_PER_EVENT
        assert await seed_sample_data(s.catalog) == 0
        assert len(await s.catalog.list_events()) == len(SAMPLE_EVENTS)

    with_stores(body)


def test_deleted_ids_are_never_reused(with_stores):
    async def body(s):
        ev = await _event(s.catalog)
        r1 = await _rider(s.catalog, ev.id, "first")
        await s.ledger.record_purchase("a@x.com", r1.id, "stripe", 80)
        await s.catalog.delete_rider(r1.id)
        r2 = await _rider(s.catalog, ev.id, "second")

        assert r2.id != r1.id
        assert not await s.ledger.is_entitled("a@x.com", r2.id)

        await s.catalog.delete_event(ev.id)
        again = await _event(s.catalog, "Reborn")
        assert again.id != ev.id
        assert await s.ledger.sales_count_for_event(again.id) == 0

    with_stores(body)


def test_memory_delete_event_reports_partial_failure(caplog):
    import asyncio
    from barrelvid.errors import StorageError
    from barrelvid.model.catalog._memory import CatalogStore
    from barrelvid.model.memdb import MemoryDB
    from barrelvid.model.orm import Event

    class StuckEvents(MemoryDB):
        def delete(self, model, id_):
            if model is Event:
                return False
            return super().delete(model, id_)

    async def body():
        mem = StuckEvents()
        catalog = CatalogStore(mem=mem)
        ev = await _event(catalog)
        await _rider(catalog, ev.id)

        with pytest.raises(StorageError) as exc:
            await catalog.delete_event(ev.id)
        assert exc.value.status_code == 500
        assert exc.value.message == "Error deleting event"
        # riders went first
        assert await catalog.get_riders_by_event_id(ev.id) == []
        assert await catalog.get_event(ev.id) is not None

    asyncio.run(body())
    assert "vanished while deleting its riders" in caplog.text


def test_storage_errors_wraps_driver_failures(caplog):
    import asyncio
    from sqlalchemy.exc import OperationalError
    from barrelvid.errors import StorageError
    from barrelvid.infra.sql import storage_errors

    async def body():
        async with storage_errors("creating rider"):
            raise OperationalError("INSERT INTO riders", {},
                                   Exception("database is locked"))

    with pytest.raises(StorageError) as exc:
        asyncio.run(body())
    assert exc.value.message == "Error creating rider"
    assert "database is locked" not in exc.value.message
    assert "storage failure during creating rider" in caplog.text
