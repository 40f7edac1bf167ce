"""Application entry point for the order form API service."""

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from orderform.api.routes.access_codes import router as access_codes_router
from orderform.api.routes.admin_access_codes import router as admin_access_codes_router
from orderform.api.routes.auth import router as auth_router
from orderform.api.routes.catalog import router as catalog_router
from orderform.api.routes.orders import router as orders_router
from orderform.core.config import settings
from orderform.core.db import create_all, get_session
from orderform.core.errors import init_error_handlers
from orderform.core.logging import setup_logging
from orderform.core.middleware import BodySizeLimitMiddleware, RequestContextLogMiddleware
from orderform.core.rate_limit import OrderRateLimiter, init_rate_limiter
from orderform.services.notifier import OrderNotifier
from orderform.utils.email import SmtpMailer

setup_logging()

app = FastAPI(title=settings.APP_NAME, debug=settings.DEBUG)

init_rate_limiter(app)
init_error_handlers(app)

# Process-local state, replaced wholesale in tests.
app.state.order_rate_limiter = OrderRateLimiter.from_settings()
app.state.order_notifier = OrderNotifier(SmtpMailer.from_settings(settings), settings)

app.add_middleware(RequestContextLogMiddleware)


def _cors_origins() -> list[str]:
    if settings.ENV == "prod":
        if not settings.CORS_ALLOWED_ORIGINS:
            raise RuntimeError("CORS_ALLOWED_ORIGINS must be configured for prod")
        return settings.CORS_ALLOWED_ORIGINS
    return settings.CORS_ALLOWED_ORIGINS or ["http://localhost:5173"]


app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins(),
    allow_credentials=True,
    allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
    allow_headers=[
        "Authorization",
        "Content-Type",
        "X-Request-ID",
    ],
)

app.add_middleware(BodySizeLimitMiddleware)


def _check_mail_settings() -> None:
    # Orders need a company recipient.
    if settings.ENV == "prod" and not settings.COMPANY_EMAIL:
        raise RuntimeError("COMPANY_EMAIL must be configured for prod")


_check_mail_settings()


@app.on_event("startup")
async def startup_event():
    if settings.DB_CREATE_ALL:
        await create_all()


@app.get("/api/healthz", tags=["system"], summary="Liveness probe")
def healthz() -> dict[str, str]:
    """Simple liveness probe that load balancers and monitors can call."""

    return {"status": "ok"}


@app.get("/api/readyz", tags=["system"], summary="Readiness probe")
async def readyz(session: AsyncSession = Depends(get_session)):
    try:
        await session.execute(text("SELECT 1"))
        return {"ready": True}
    except Exception:
        raise HTTPException(status_code=503, detail="Database not reachable")


app.include_router(access_codes_router, prefix="/api")
app.include_router(orders_router, prefix="/api")
app.include_router(catalog_router, prefix="/api")
app.include_router(auth_router, prefix="/api")
app.include_router(admin_access_codes_router, prefix="/api")
