"""FastAPI application entry point."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text

from app.core.background import BackgroundDispatcher
from app.core.config import settings
from app.core.exceptions import (
    AuthenticationError,
    ConflictError,
    ExternalServiceError,
    ForbiddenError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from app.core.structured_logging import configure_logging
from app.db.session import engine
from app.services.email_sender import select_sender
from app.services.identity_platform import GoogleIdentityPlatform

logger = logging.getLogger(__name__)

# ============================================================================
# Sentry Integration (optional, for production error tracking)
# ============================================================================

if settings.SENTRY_DSN and settings.ENV != "dev":
    import sentry_sdk
    from sentry_sdk.integrations.fastapi import FastApiIntegration
    from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        environment=settings.ENV,
        integrations=[
            FastApiIntegration(transaction_style="endpoint"),
            SqlalchemyIntegration(),
        ],
        traces_sample_rate=0.1,
        send_default_pii=False,  # Don't send PII to Sentry
    )
    logging.info("Sentry initialized for error tracking")


# ============================================================================
# Lifespan (process-wide clients)
# ============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    identity_platform = GoogleIdentityPlatform.from_settings()
    identity_platform.open()
    dispatcher = BackgroundDispatcher(
        settings.BACKGROUND_MAX_WORKERS,
        task_timeout=settings.BACKGROUND_TASK_TIMEOUT,
    )
    app.state.identity_platform = identity_platform
    app.state.email_sender = select_sender()
    app.state.dispatcher = dispatcher
    try:
        yield
    finally:
        dispatcher.shutdown(wait=True)
        identity_platform.close()


# ============================================================================
# FastAPI App
# ============================================================================

app = FastAPI(
    title="Autobody Admin API",
    description="Multi-tenant admin API for autobody shops",
    version=settings.VERSION,
    docs_url="/docs" if settings.ENV == "dev" else None,
    redoc_url="/redoc" if settings.ENV == "dev" else None,
    lifespan=lifespan,
)

# CORS middleware - must be added before routers
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Requested-With", "X-Request-ID"],
    expose_headers=["X-Request-ID"],
)


# ============================================================================
# Error mapping
# ============================================================================

def _authentication_error_handler(request: Request, exc: AuthenticationError):
    # Reason is logged by the auth dependency; response stays generic
    return JSONResponse(
        status_code=401,
        content={"detail": "Not authenticated"},
        headers={"WWW-Authenticate": "Bearer"},
    )


def _forbidden_handler(request: Request, exc: ForbiddenError):
    return JSONResponse(status_code=403, content={"detail": str(exc) or "Forbidden"})


def _permission_denied_handler(request: Request, exc: PermissionDeniedError):
    return JSONResponse(
        status_code=403, content={"detail": exc.message, "field": exc.field}
    )


def _validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse(
        status_code=400, content={"detail": exc.message, "field": exc.field}
    )


def _not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc) or "Not found"})


def _conflict_handler(request: Request, exc: ConflictError):
    return JSONResponse(status_code=409, content={"detail": str(exc)})


def _external_service_handler(request: Request, exc: ExternalServiceError):
    logger.exception("External service failure on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


app.add_exception_handler(AuthenticationError, _authentication_error_handler)
app.add_exception_handler(ForbiddenError, _forbidden_handler)
app.add_exception_handler(PermissionDeniedError, _permission_denied_handler)
app.add_exception_handler(ValidationError, _validation_error_handler)
app.add_exception_handler(NotFoundError, _not_found_handler)
app.add_exception_handler(ConflictError, _conflict_handler)
app.add_exception_handler(ExternalServiceError, _external_service_handler)


# ============================================================================
# Routers
# ============================================================================

from app.routers import me, shops, users, work_orders  # noqa: E402

app.include_router(me.router, prefix="/me", tags=["me"])
app.include_router(users.router, prefix="/users", tags=["users"])
app.include_router(shops.router, prefix="/shops", tags=["shops"])
app.include_router(work_orders.router, prefix="/workorders", tags=["work-orders"])


# ============================================================================
# Health Check
# ============================================================================

@app.get("/health")
def health():
    """
    Health check endpoint.

    Verifies database connectivity and returns environment info.
    """
    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))
    return {"status": "ok", "env": settings.ENV, "version": settings.VERSION}
