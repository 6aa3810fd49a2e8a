"""
DigitalHub - Application Entry Point
=====================================
FastAPI app initialization, middleware, and router registration.
"""

import logging
import time as _time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from apscheduler.schedulers.background import BackgroundScheduler

from config import settings
from config.database import SessionLocal, Base, engine
from common.exceptions import DigitalHubError, UpstreamError
from common.helpers import get_real_ip

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger("digitalhub")
scheduler_logger = logging.getLogger("digitalhub.scheduler")
request_logger = logging.getLogger("digitalhub.request")


# ==========================================
# Import ALL models so Alembic/Base can see them
# ==========================================
from modules.user.models import User, Profile, UserRole  # noqa: F401,E402
from modules.catalog.models import Product  # noqa: F401,E402
from modules.cart.models import Cart, CartItem  # noqa: F401,E402
from modules.order.models import Order, OrderItem  # noqa: F401,E402
from modules.payment.models import WebhookEvent  # noqa: F401,E402
from modules.like.models import ProductLike  # noqa: F401,E402
from modules.coupon.models import Coupon  # noqa: F401,E402
from modules.newsletter.models import NewsletterSubscriber  # noqa: F401,E402

# ==========================================
# Import routers
# ==========================================
from modules.auth.routes import router as auth_router  # noqa: E402
from modules.user.routes import router as profile_router  # noqa: E402
from modules.catalog.routes import router as storefront_router  # noqa: E402
from modules.catalog.seller_routes import router as seller_router  # noqa: E402
from modules.catalog.admin_routes import router as catalog_admin_router  # noqa: E402
from modules.like.routes import router as like_router  # noqa: E402
from modules.cart.routes import router as cart_router  # noqa: E402
from modules.payment.routes import router as payment_router  # noqa: E402
from modules.order.routes import router as order_router  # noqa: E402
from modules.order.admin_routes import router as order_admin_router  # noqa: E402
from modules.coupon.routes import router as coupon_router  # noqa: E402
from modules.newsletter.routes import router as newsletter_router  # noqa: E402
from modules.admin.routes import router as admin_router  # noqa: E402
from modules.files.routes import router as files_router  # noqa: E402


# ==========================================
# Background Scheduler: Webhook Event Cleanup
# ==========================================
def _cleanup_webhook_events():
    """Background job: delete processed webhook ids past the retention window."""
    db = SessionLocal()
    try:
        from modules.payment.service import payment_service
        payment_service.prune_webhook_events(db)
    except Exception as e:
        db.rollback()
        scheduler_logger.error(f"Webhook event cleanup error: {e}")
    finally:
        db.close()


scheduler = BackgroundScheduler()


@asynccontextmanager
async def lifespan(app):
    # Auto-create any missing tables (safe for existing tables)
    Base.metadata.create_all(bind=engine)

    if settings.SCHEDULER_ENABLED:
        scheduler.add_job(_cleanup_webhook_events, 'interval', hours=6, id='webhook_event_cleanup')
        scheduler.start()
        scheduler_logger.info("Background scheduler started (webhook events: 6h)")
    yield
    if scheduler.running:
        scheduler.shutdown()
        scheduler_logger.info("Background scheduler stopped")


# ==========================================
# Create App
# ==========================================
app = FastAPI(
    title="DigitalHub",
    description="Digital goods marketplace API",
    version="1.0.0",
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url=None,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ==========================================
# Exception handlers: every error renders as {"error": message}
# ==========================================
@app.exception_handler(DigitalHubError)
async def digitalhub_error_handler(request: Request, exc: DigitalHubError):
    if isinstance(exc, UpstreamError):
        logger.error(f"Upstream failure on {request.url.path}: {exc.vendor_status} {exc.vendor_body[:500]}")
    elif exc.status_code >= 500:
        logger.error(f"{type(exc).__name__} on {request.url.path}: {exc.message}")
    return JSONResponse({"error": exc.message}, status_code=exc.status_code)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(p) for p in first.get("loc", ()) if p not in ("body", "query", "path"))
        message = f"{field}: {first.get('msg')}" if field else first.get("msg", "Invalid request")
    else:
        message = "Invalid request"
    return JSONResponse({"error": message}, status_code=400)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse({"error": exc.detail}, status_code=exc.status_code)


# ==========================================
# Middleware: Request Log
# ==========================================
_SKIP_PATHS = ("/health", "/favicon.ico")


@app.middleware("http")
async def log_requests(request: Request, call_next):
    path = request.url.path
    if path.startswith(_SKIP_PATHS):
        return await call_next(request)

    start = _time.time()
    response = await call_next(request)
    elapsed_ms = int((_time.time() - start) * 1000)
    request_logger.info(f"{get_real_ip(request)} {request.method} {path} -> {response.status_code} ({elapsed_ms}ms)")
    return response


# ==========================================
# Register Routers
# ==========================================
app.include_router(auth_router)
app.include_router(profile_router)
app.include_router(storefront_router)
app.include_router(like_router)
app.include_router(cart_router)
app.include_router(payment_router)
app.include_router(order_router)
app.include_router(seller_router)
app.include_router(coupon_router)
app.include_router(catalog_admin_router)
app.include_router(order_admin_router)
app.include_router(admin_router)
app.include_router(newsletter_router)
app.include_router(files_router)


# ==========================================
# Health check
# ==========================================
@app.get("/health")
async def health():
    return {"status": "ok", "version": "1.0.0"}
