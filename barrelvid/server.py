from __future__ import annotations
import sys

import logging
import os
from datetime import date
from typing import Optional
from urllib.parse import urlencode

from .infra.sql import make_async_engine

from .errors import (
        AppError, AuthError, FormatError, NotFoundError, PaymentError,
        StorageError, ValidationError,
)
from .model.orm import Base
from .model.memdb import MemoryDB
from .model import catalog, ledger, accounts
from .model.catalog import CatalogStore, BACKEND as STORE_BACKEND
from .model.ledger import Ledger, sales_summary, SALE_PRICE
from .model.accounts import AccountStore
from .model.paymentsession import (
        PaymentSessionStore, MemorySessions, new_store as new_paysession_store,
        BACKEND as PAYSESSION_BACKEND,
)
from .payments import (
        CardProvider, WalletProvider, ConfirmationAdapter, provider_for,
        PAYMENT_METHODS, HORSE_PRICE, MAX_HORSES,
)
from .csvio import (
        parse_riders_csv, commit_rows, export_riders_csv, filter_riders,
        sort_riders, youtube_thumbnail, SORT_FIELDS,
)
from .schemas import (
        EventCreate, EventOut, RiderCreate, RiderOut, PurchaseCreate,
        PurchaseOut, CheckoutRequest, CsvImportRequest, ImportResultOut,
        ImportRowOut, SalesStat, LoginRequest, UserOut,
)
from .seed import ensure_admin, seed_sample_data
from .helpers import is_valid_email, now_ts

from fastapi import Depends, FastAPI, HTTPException, Request, Query
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import (
        HTMLResponse, RedirectResponse, ORJSONResponse, Response
)
from fastapi import Form
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates

from sqlalchemy.ext.asyncio import AsyncSession
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.sessions import SessionMiddleware
from starlette.status import HTTP_303_SEE_OTHER

import redis.asyncio as redis

HERE = os.path.dirname(os.path.abspath(__file__))
templates = Jinja2Templates(directory=os.path.join(HERE, "templates"))

# ----------------------------
# Config & Constants
# ----------------------------
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

DATABASE_URL = os.environ.get("DATABASE_URL", None)

if STORE_BACKEND == "sql" and DATABASE_URL is None:
    logger.error("STORE_BACKEND=sql needs DATABASE_URL")
    sys.exit(1)

PAYSESSION_TTL_SECONDS = 30 * 60

SESSION_SECRET = os.environ.get("SESSION_SECRET", "dev-secret-change-me")
ADMIN_USERNAME = os.environ.get("ADMIN_USERNAME", "admin")
ADMIN_PASSWORD = os.environ.get("ADMIN_PASSWORD", "supasecret")
SEED_SAMPLE_DATA = os.environ.get("SEED_SAMPLE_DATA", "1") in (
    "1", "true", "TRUE", "yes", "on"
)

if STORE_BACKEND == "sql":
    engine, SessionAsync, gated = make_async_engine(DATABASE_URL)
else:
    engine, SessionAsync, gated = None, None, None


app = FastAPI(
    title="Barrel Racing Videos",
    default_response_class=ORJSONResponse,
)
app.mount("/static", StaticFiles(directory=os.path.join(HERE, "static")),
          name="static")
app.add_middleware(SessionMiddleware, secret_key=SESSION_SECRET)


# ----------------------------
# Store dependencies
# ----------------------------
async def get_db() -> Optional[AsyncSession]:
    if STORE_BACKEND == "sql":
        async with SessionAsync() as session:
            yield session
    else:
        yield None


def catalog_store(request: Request,
                  db: Optional[AsyncSession] = Depends(get_db)) -> CatalogStore:
    return catalog.new_store(db=db, gated=gated,
                             mem=getattr(request.app.state, "memdb", None))


def ledger_store(request: Request,
                 db: Optional[AsyncSession] = Depends(get_db)) -> Ledger:
    return ledger.new_ledger(db=db, gated=gated,
                             mem=getattr(request.app.state, "memdb", None))


def account_store(request: Request,
                  db: Optional[AsyncSession] = Depends(get_db)) -> AccountStore:
    return accounts.new_store(db=db, gated=gated,
                              mem=getattr(request.app.state, "memdb", None))


def paymentsessions(request: Request) -> PaymentSessionStore:
    return new_paysession_store(
        r=getattr(request.app.state, "redis", None),
        sessions=getattr(request.app.state, "paysessions", None),
        ttl_seconds=PAYSESSION_TTL_SECONDS,
    )


def confirmation_adapter(
    lg: Ledger = Depends(ledger_store),
) -> ConfirmationAdapter:
    return ConfirmationAdapter(lg)


# ---
# startup / shutdown
# ---
@app.on_event("startup")
async def _say_hello():
    S = 'SQL (' + DATABASE_URL.split(":")[0] + ')' if STORE_BACKEND == 'sql' else 'in-memory'
    P = 'Redis' if PAYSESSION_BACKEND == 'redis' else 'in-memory'
    logger.info("=" * 50)
    logger.info("Barrel Racing Videos is starting up...")
    logger.info("   - Catalog/Ledger Backend: %s", S)
    logger.info("   - Payment Sessions Backend: %s", P)
    logger.info("=" * 50)


@app.on_event("startup")
async def _db_init():
    if STORE_BACKEND == "sql":
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    else:
        # the one and only in-process store, shared by all requests
        app.state.memdb = MemoryDB()


@app.on_event("startup")
async def _paysessions_start():
    if PAYSESSION_BACKEND == "redis":
        REDIS_URL = os.getenv("REDIS_URL", "redis://127.0.0.1:6379")
        app.state.redis = redis.from_url(
            REDIS_URL,
            decode_responses=True,
            max_connections=int(os.getenv("REDIS_MAX_CONN", "64")),
            socket_timeout=2.0,
            socket_connect_timeout=2.0,
            retry_on_timeout=True,
        )
    else:
        app.state.paysessions = MemorySessions()


@app.on_event("startup")
async def _seed():
    mem = getattr(app.state, "memdb", None)
    if STORE_BACKEND == "sql":
        async with SessionAsync() as session:
            await _seed_with(
                accounts.new_store(db=session, gated=gated),
                catalog.new_store(db=session, gated=gated),
            )
    else:
        await _seed_with(
            accounts.new_store(mem=mem),
            catalog.new_store(mem=mem),
        )


async def _seed_with(acc: AccountStore, cat: CatalogStore) -> None:
    await ensure_admin(acc, ADMIN_USERNAME, ADMIN_PASSWORD)
    if SEED_SAMPLE_DATA:
        await seed_sample_data(cat)


@app.on_event("shutdown")
async def _redis_stop():
    r = getattr(app.state, "redis", None)
    if r is not None:
        await r.close()
        app.state.redis = None


@app.on_event("shutdown")
async def _db_stop():
    if engine is not None:
        await engine.dispose()


# ----------------------------
# Error mapping
# ----------------------------
@app.exception_handler(AppError)
async def _app_error(request: Request, exc: AppError):
    if isinstance(exc, StorageError):
        # details were logged where it happened
        return ORJSONResponse({"message": exc.message}, status_code=500)
    return ORJSONResponse(exc.to_dict(), status_code=exc.status_code)


@app.exception_handler(StarletteHTTPException)
async def _http_error(request: Request, exc: StarletteHTTPException):
    return ORJSONResponse({"message": exc.detail}, status_code=exc.status_code,
                          headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def _bad_request(request: Request, exc: RequestValidationError):
    return ORJSONResponse(
        {"message": "Invalid request data",
         "errors": jsonable_encoder(exc.errors())},
        status_code=400,
    )


# ----------------------------
# Helpers
# ----------------------------
def is_admin(request: Request) -> bool:
    return bool(request.session.get("admin_user"))


def require_admin(request: Request) -> None:
    if not is_admin(request):
        raise AuthError()


# ----------------------------
# Health
# ----------------------------
@app.get("/health")
async def health():
    return {"ok": True}


# ----------------------------
# API: auth
# ----------------------------
@app.post("/api/login", response_model=UserOut)
async def api_login(
    req: LoginRequest,
    request: Request,
    acc: AccountStore = Depends(account_store),
):
    user = await acc.authenticate(req.username.strip(), req.password)
    if user is None:
        logger.warning("failed admin login for %r", req.username)
        raise AuthError("Invalid credentials")
    request.session["admin_user"] = user.username
    request.session["admin_user_id"] = user.id
    return user


@app.post("/api/logout")
async def api_logout(request: Request):
    request.session.clear()
    return {"message": "Logged out"}


@app.get("/api/user", response_model=UserOut)
async def api_user(request: Request):
    require_admin(request)
    return {
        "id": request.session.get("admin_user_id", 0),
        "username": request.session["admin_user"],
    }


# ----------------------------
# API: events
# ----------------------------
@app.get("/api/events", response_model=list[EventOut])
async def list_events(cat: CatalogStore = Depends(catalog_store)):
    return await cat.list_events()


@app.get("/api/events/{event_id}", response_model=EventOut)
async def get_event(event_id: int,
                    cat: CatalogStore = Depends(catalog_store)):
    ev = await cat.get_event(event_id)
    if ev is None:
        raise NotFoundError("Event not found")
    return ev


@app.post("/api/events", response_model=EventOut, status_code=201,
          dependencies=[Depends(require_admin)])
async def create_event(req: EventCreate,
                       cat: CatalogStore = Depends(catalog_store)):
    return await cat.create_event(name=req.name, date=req.date,
                                  thumbnail_url=req.thumbnail_url)


@app.delete("/api/events/{event_id}", dependencies=[Depends(require_admin)])
async def delete_event(event_id: int,
                       cat: CatalogStore = Depends(catalog_store)):
    if not await cat.delete_event(event_id):
        raise NotFoundError("Event not found")
    return {"message": "Event deleted successfully"}


# ----------------------------
# API: riders
# ----------------------------
@app.get("/api/riders", response_model=list[RiderOut])
async def list_riders(eventId: Optional[int] = Query(default=None),
                      cat: CatalogStore = Depends(catalog_store)):
    return await cat.list_riders(event_id=eventId)


@app.get("/api/riders/export.csv", dependencies=[Depends(require_admin)])
async def export_riders(eventId: Optional[int] = Query(default=None),
                        q: str = "",
                        cat: CatalogStore = Depends(catalog_store)):
    riders = filter_riders(await cat.list_riders(), event_id=eventId,
                           search=q)
    body = export_riders_csv(riders, await cat.list_events())
    filename = f"barrel_racing_riders_{date.today().isoformat()}.csv"
    return Response(
        content=body,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@app.post("/api/riders/import/preview", response_model=list[ImportRowOut],
          dependencies=[Depends(require_admin)])
async def preview_import(req: CsvImportRequest,
                         cat: CatalogStore = Depends(catalog_store)):
    return parse_riders_csv(req.csv, await cat.list_events())


@app.post("/api/riders/import", response_model=ImportResultOut,
          dependencies=[Depends(require_admin)])
async def import_riders(req: CsvImportRequest,
                        cat: CatalogStore = Depends(catalog_store)):
    rows = parse_riders_csv(req.csv, await cat.list_events())
    result = await commit_rows(cat, rows)
    return {"success": result.success, "failed": result.failed, "rows": rows}


@app.get("/api/riders/{rider_id}", response_model=RiderOut)
async def get_rider(rider_id: int,
                    cat: CatalogStore = Depends(catalog_store)):
    rider = await cat.get_rider(rider_id)
    if rider is None:
        raise NotFoundError("Rider not found")
    return rider


@app.post("/api/riders", response_model=RiderOut, status_code=201,
          dependencies=[Depends(require_admin)])
async def create_rider(req: RiderCreate,
                       cat: CatalogStore = Depends(catalog_store)):
    return await cat.create_rider(
        event_id=req.event_id, name=req.name, price=req.price,
        video_url=req.video_url, thumbnail_url=req.thumbnail_url,
    )


@app.delete("/api/riders/{rider_id}", dependencies=[Depends(require_admin)])
async def delete_rider(rider_id: int,
                       cat: CatalogStore = Depends(catalog_store)):
    if not await cat.delete_rider(rider_id):
        raise NotFoundError("Rider not found")
    return {"message": "Rider deleted successfully"}


@app.get("/api/riders/{rider_id}/video")
async def rider_video(rider_id: int, email: str = "",
                      cat: CatalogStore = Depends(catalog_store),
                      lg: Ledger = Depends(ledger_store)):
    rider = await cat.get_rider(rider_id)
    if rider is None:
        raise NotFoundError("Rider not found")
    if not email or not await lg.is_entitled(email, rider_id):
        raise HTTPException(403, detail="Video not purchased")
    return RedirectResponse(url=rider.video_url, status_code=HTTP_303_SEE_OTHER)


# ----------------------------
# API: purchases
# ----------------------------
@app.post("/api/purchases", response_model=PurchaseOut, status_code=201)
async def create_purchase(
    req: PurchaseCreate,
    adapter: ConfirmationAdapter = Depends(confirmation_adapter),
):
    return await adapter.on_payment_success(
        req.email, req.rider_id, req.payment_method, req.amount
    )


@app.get("/api/purchases/check")
async def check_purchase(
    email: Optional[str] = None,
    riderId: Optional[int] = Query(default=None),
    lg: Ledger = Depends(ledger_store),
):
    if not email or riderId is None:
        raise HTTPException(400, detail="Email and riderId are required")
    return {"purchased": await lg.is_entitled(email, riderId)}


@app.post("/api/checkout", status_code=201)
async def api_checkout(
    req: CheckoutRequest,
    cat: CatalogStore = Depends(catalog_store),
    adapter: ConfirmationAdapter = Depends(confirmation_adapter),
):
    provider = provider_for(req.payment_method)
    if await cat.get_rider(req.rider_id) is None:
        raise NotFoundError("Rider not found")
    purchase, confirmation = await adapter.checkout(
        provider, req.email, req.rider_id, req.quantity
    )
    return {
        "purchase": PurchaseOut.model_validate(purchase).model_dump(
            by_alias=True),
        "confirmation": confirmation,
    }


# ----------------------------
# API: stats
# ----------------------------
@app.get("/api/stats/sales", response_model=list[SalesStat],
         dependencies=[Depends(require_admin)])
async def sales_stats(cat: CatalogStore = Depends(catalog_store),
                      lg: Ledger = Depends(ledger_store)):
    return await sales_summary(lg, await cat.list_events())


# ----------------------------
# Payment providers (simulated)
# ----------------------------
@app.get("/paypal/setup")
async def paypal_setup():
    return WalletProvider().client_token()


@app.post("/paypal/order")
async def paypal_order(
    payload: dict,
    rs: PaymentSessionStore = Depends(paymentsessions),
):
    order = WalletProvider().create_order(
        payload.get("amount"), payload.get("currency"), payload.get("intent")
    )
    email = (payload.get("email") or "").strip()
    rider_id = payload.get("riderId")
    if email and rider_id is not None:
        if not is_valid_email(email):
            raise HTTPException(400, detail="email must be a valid address")
        try:
            rider_id = int(rider_id)
        except (TypeError, ValueError):
            raise HTTPException(400, detail="riderId must be an integer")
        # remembered so the capture can unlock the video
        await rs.save_payment_session(order["id"], {
            "order_id": order["id"],
            "email": email,
            "rider_id": rider_id,
            "amount": int(float(payload["amount"])),
            "method": WalletProvider.method,
            "created_at": now_ts(),
        })
    return order


@app.post("/paypal/order/{orderID}/capture")
async def paypal_capture(
    orderID: str,
    rs: PaymentSessionStore = Depends(paymentsessions),
    adapter: ConfirmationAdapter = Depends(confirmation_adapter),
):
    capture = WalletProvider().capture_order(orderID)
    ps = await rs.get_payment_session(orderID)
    if ps and capture["status"] == "COMPLETED":
        if await rs.fulfill_gate(orderID):
            try:
                purchase = await adapter.on_payment_success(
                    ps["email"], int(ps["rider_id"]), ps["method"],
                    int(ps["amount"]),
                )
            except AppError:
                # the order stays pending so the capture can be retried
                await rs.release_gate(orderID)
                raise
            await rs.remove_pending(orderID)
            capture["purchase"] = PurchaseOut.model_validate(
                purchase).model_dump(by_alias=True)
    return capture


@app.post("/api/create-payment-intent")
async def create_payment_intent(payload: dict):
    return CardProvider().create_payment_intent(payload.get("amount"))


# ----------------------------
# Storefront pages
# ----------------------------
@app.get("/", response_class=HTMLResponse)
async def landing_page(request: Request,
                       cat: CatalogStore = Depends(catalog_store)):
    return templates.TemplateResponse(request, "landing.html", {
        "site_name": "Barrel Racing Videos",
        "events": await cat.list_events(),
    })


@app.get("/events/{event_id}", response_class=HTMLResponse)
async def riders_page(
    request: Request, event_id: int,
    email: str = "", status: Optional[str] = None,
    unlocked: Optional[int] = None,
    cat: CatalogStore = Depends(catalog_store),
    lg: Ledger = Depends(ledger_store),
):
    ev = await cat.get_event(event_id)
    if ev is None:
        raise HTTPException(404, detail="Event not found")
    riders = await cat.get_riders_by_event_id(event_id)
    owned = set()
    if email:
        for r in riders:
            if await lg.is_entitled(email, r.id):
                owned.add(r.id)
    return templates.TemplateResponse(request, "riders.html", {
        "site_name": "Barrel Racing Videos",
        "event": ev,
        "riders": riders,
        "owned": owned,
        "email": email,
        "status": status,
        "unlocked": unlocked,
        "methods": PAYMENT_METHODS,
        "horse_price": HORSE_PRICE,
        "max_horses": MAX_HORSES,
    })


@app.post("/events/{event_id}/unlock")
async def unlock_rider(
    event_id: int,
    email: str = Form(...),
    rider_id: int = Form(...),
    method: str = Form(...),
    quantity: int = Form(1),
    cat: CatalogStore = Depends(catalog_store),
    adapter: ConfirmationAdapter = Depends(confirmation_adapter),
):
    rider = await cat.get_rider(rider_id)
    if rider is None or rider.event_id != event_id:
        raise HTTPException(404, detail="Rider not found")
    query = {"email": email.strip()}
    try:
        await adapter.checkout(provider_for(method), email.strip(),
                               rider_id, quantity)
    except PaymentError:
        query["status"] = "failed"
    except ValidationError:
        query["status"] = "invalid"
    except AppError as e:
        logger.error("unlock of rider %s failed: %s", rider_id, e)
        query["status"] = "failed"
    else:
        query["status"] = "paid"
        query["unlocked"] = rider_id
    return RedirectResponse(
        url=f"/events/{event_id}?{urlencode(query)}",
        status_code=HTTP_303_SEE_OTHER,
    )


# ----------------------------
# Admin pages
# ----------------------------
def safe_next(next: str | None) -> str:
    # only same-site paths; "//host" and "/\host" are absolute to browsers
    if not next or not next.startswith("/") or next[1:2] in ("/", "\\"):
        return "/admin"
    return next


def admin_redirect(msg: str | None = None) -> RedirectResponse:
    url = "/admin" + (f"?{urlencode({'msg': msg})}" if msg else "")
    return RedirectResponse(url=url, status_code=HTTP_303_SEE_OTHER)


def login_redirect(request: Request) -> RedirectResponse:
    return RedirectResponse(
        url=f"/admin/login?{urlencode({'next': request.url.path})}",
        status_code=HTTP_303_SEE_OTHER,
    )


@app.get("/admin/login", response_class=HTMLResponse)
async def admin_login_get(request: Request, next: str | None = "/admin"):
    return templates.TemplateResponse(
        request, "login.html", {"next": safe_next(next), "error": None}
    )


@app.post("/admin/login", response_class=HTMLResponse)
async def admin_login_post(
    request: Request,
    username: str = Form(...),
    password: str = Form(...),
    next: str = Form("/admin"),
    acc: AccountStore = Depends(account_store),
):
    user = await acc.authenticate(username.strip(), password)
    if user is not None:
        request.session["admin_user"] = user.username
        request.session["admin_user_id"] = user.id
        return RedirectResponse(
            url=safe_next(next),
            status_code=HTTP_303_SEE_OTHER
        )
    logger.warning("failed admin login for %r", username)
    return templates.TemplateResponse(
        request, "login.html",
        {"next": safe_next(next), "error": "Invalid credentials."},
        status_code=401,
    )


@app.get("/admin/logout")
async def admin_logout(request: Request):
    request.session.clear()
    return RedirectResponse(url="/", status_code=HTTP_303_SEE_OTHER)


async def render_admin(
    request: Request, cat: CatalogStore, lg: Ledger, *,
    event_id: Optional[int] = None, q: str = "",
    sort: str = "name", direction: str = "asc",
    notice: Optional[str] = None, error: Optional[str] = None,
    csv_text: str = "", preview=None, status_code: int = 200,
):
    events = await cat.list_events()
    sales = await sales_summary(lg, events)
    total_sales = sum(s["salesCount"] for s in sales)
    total_revenue = sum(s["revenue"] for s in sales)
    if sort not in SORT_FIELDS:
        sort = "name"
    if direction not in ("asc", "desc"):
        direction = "asc"
    riders = filter_riders(await cat.list_riders(), event_id=event_id,
                           search=q)
    base_query = {k: v for k, v in (("eventId", event_id), ("q", q)) if v}
    sort_links = {
        field: urlencode({**base_query, "sort": field,
                          "dir": ("desc" if field == sort
                                  and direction == "asc" else "asc")})
        for field in SORT_FIELDS
    }
    return templates.TemplateResponse(request, "admin.html", {
        "site_name": "Barrel Racing Videos",
        "events": events,
        "event_names": {ev.id: ev.name for ev in events},
        "riders": sort_riders(riders, sort, direction),
        "sales": sorted(sales, key=lambda s: s["revenue"], reverse=True),
        "total_sales": total_sales,
        "total_revenue": total_revenue,
        "average_price": (total_revenue / total_sales if total_sales
                          else SALE_PRICE),
        "selected_event": event_id,
        "q": q,
        "sort": sort,
        "direction": direction,
        "sort_links": sort_links,
        "export_query": urlencode(base_query),
        "notice": notice,
        "error": error,
        "csv_text": csv_text,
        "preview": preview,
    }, status_code=status_code)


@app.get("/admin", response_class=HTMLResponse)
async def admin_page(
    request: Request,
    eventId: Optional[int] = Query(default=None),
    q: str = "",
    sort: str = "name",
    dir: str = "asc",
    msg: Optional[str] = None,
    cat: CatalogStore = Depends(catalog_store),
    lg: Ledger = Depends(ledger_store),
):
    if not is_admin(request):
        dest = request.url.path
        return RedirectResponse(
            url=f"/admin/login?next={dest}",
            status_code=307
        )
    return await render_admin(request, cat, lg, event_id=eventId, q=q,
                              sort=sort, direction=dir, notice=msg)


@app.post("/admin/events")
async def admin_create_event(
    request: Request,
    name: str = Form(...),
    date: str = Form(...),
    thumbnail_url: str = Form(...),
    cat: CatalogStore = Depends(catalog_store),
):
    if not is_admin(request):
        return login_redirect(request)
    if not (name.strip() and date.strip() and thumbnail_url.strip()):
        return admin_redirect("Event name, date and thumbnail are required")
    ev = await cat.create_event(name=name.strip(), date=date.strip(),
                                thumbnail_url=thumbnail_url.strip())
    logger.info("admin created event %s", ev.id)
    return admin_redirect(f"Event '{ev.name}' created")


@app.post("/admin/events/{event_id}/delete")
async def admin_delete_event(
    request: Request, event_id: int,
    cat: CatalogStore = Depends(catalog_store),
):
    if not is_admin(request):
        return login_redirect(request)
    if not await cat.delete_event(event_id):
        return admin_redirect("Event not found")
    logger.info("admin deleted event %s", event_id)
    return admin_redirect("Event deleted")


@app.post("/admin/riders")
async def admin_create_rider(
    request: Request,
    event_id: int = Form(...),
    name: str = Form(...),
    video_url: str = Form(...),
    price: int = Form(80),
    thumbnail_url: str = Form(""),
    cat: CatalogStore = Depends(catalog_store),
):
    if not is_admin(request):
        return login_redirect(request)
    if not (name.strip() and video_url.strip()) or price < 0:
        return admin_redirect("Rider name, video URL and a price are required")
    video_url = video_url.strip()
    thumbnail_url = (thumbnail_url.strip()
                     or youtube_thumbnail(video_url) or "")
    try:
        rider = await cat.create_rider(
            event_id=event_id, name=name.strip(), price=price,
            video_url=video_url, thumbnail_url=thumbnail_url,
        )
    except NotFoundError as e:
        return admin_redirect(e.message)
    logger.info("admin created rider %s", rider.id)
    return admin_redirect(f"Rider '{rider.name}' created")


@app.post("/admin/riders/{rider_id}/delete")
async def admin_delete_rider(
    request: Request, rider_id: int,
    cat: CatalogStore = Depends(catalog_store),
):
    if not is_admin(request):
        return login_redirect(request)
    if not await cat.delete_rider(rider_id):
        return admin_redirect("Rider not found")
    logger.info("admin deleted rider %s", rider_id)
    return admin_redirect("Rider deleted")


@app.post("/admin/import", response_class=HTMLResponse)
async def admin_import(
    request: Request,
    csv: str = Form(...),
    action: str = Form("preview"),
    cat: CatalogStore = Depends(catalog_store),
    lg: Ledger = Depends(ledger_store),
):
    if not is_admin(request):
        return login_redirect(request)
    try:
        rows = parse_riders_csv(csv, await cat.list_events())
    except FormatError as e:
        return await render_admin(request, cat, lg, error=e.message,
                                  csv_text=csv, status_code=400)
    if action != "import":
        return await render_admin(request, cat, lg, csv_text=csv,
                                  preview=rows)
    result = await commit_rows(cat, rows)
    return admin_redirect(
        f"Successfully imported {result.success} riders"
        + (f", {result.failed} failed" if result.failed else "")
    )
