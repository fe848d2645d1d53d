import logging
from contextlib import asynccontextmanager

from apscheduler.schedulers.background import BackgroundScheduler
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from storefront.api.deps import get_payment_adapter
from storefront.api.health import router as health_router
from storefront.api.routes_auth import router as auth_router
from storefront.api.routes_cart import router as cart_router
from storefront.api.routes_items import router as items_router
from storefront.api.routes_order import router as order_router
from storefront.api.routes_users import router as users_router
from storefront.config import settings
from storefront.db import SessionLocal, init_db
from storefront.errors import StorefrontError
from storefront.services.reconciliation_service import ReconciliationService

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
log = logging.getLogger("storefront")


def reconcile_job():
    db = SessionLocal()
    try:
        summary = ReconciliationService(db, get_payment_adapter()).run()
        if summary["refunded"] or summary["errors"]:
            log.info("reconciliation: %s", summary)
    except Exception:
        log.exception("reconciliation job failed")
    finally:
        db.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # startup
    init_db()

    scheduler = None
    if settings.SCHEDULER_ENABLED:
        scheduler = BackgroundScheduler()
        scheduler.add_job(
            reconcile_job,
            "interval",
            seconds=settings.RECONCILE_INTERVAL_SECONDS,
            id="reconcile_checkouts",
        )
        scheduler.start()

    try:
        yield
    finally:
        if scheduler:
            scheduler.shutdown(wait=False)


app = FastAPI(title="Storefront - Backend", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.FRONTEND_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(StorefrontError)
async def storefront_error_handler(request: Request, exc: StorefrontError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


app.include_router(health_router, prefix="/api", tags=["health"])

app.include_router(auth_router, tags=["auth"])

app.include_router(users_router, tags=["users"])

app.include_router(items_router, tags=["items"])

app.include_router(cart_router, tags=["cart"])

app.include_router(order_router, tags=["orders"])
