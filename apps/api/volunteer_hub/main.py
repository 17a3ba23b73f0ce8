"""FastAPI application entry point."""
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from sqlalchemy import text
from starlette.exceptions import HTTPException as StarletteHTTPException

from volunteer_hub.core.config import settings
from volunteer_hub.db.session import engine

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
        traces_sample_rate=0.1,  # 10% of requests for performance monitoring
        send_default_pii=False,
    )
    logging.info("Sentry initialized for error tracking")

# ============================================================================
# Rate Limiting
# ============================================================================

from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from volunteer_hub.core.rate_limit import limiter
from volunteer_hub.core.structured_logging import request_log_context


# ============================================================================
# FastAPI App
# ============================================================================

app = FastAPI(
    title="Volunteer Hub API",
    description="Multi-tenant volunteer management API for nonprofits",
    version=settings.VERSION,
    docs_url="/docs" if settings.ENV == "dev" else None,
    redoc_url="/redoc" if settings.ENV == "dev" else None,
)

# Add rate limiter
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# CORS middleware - must be added before routers
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=False,  # Bearer tokens, no cookies
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Organization-Id"],
    expose_headers=["Content-Disposition"],
)


# ============================================================================
# Error Envelopes
# ============================================================================

@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Render every HTTP error as {success: false, error, message[, code]}."""
    detail = exc.detail
    if exc.status_code == 404 and detail == "Not Found":
        detail = "Route not found"

    if isinstance(detail, dict):
        message = str(detail.get("message", ""))
        body = {"success": False, "error": message, "message": message}
        body.update({k: v for k, v in detail.items() if k != "message"})
    else:
        body = {"success": False, "error": detail, "message": detail}

    if exc.status_code >= 500:
        logger.error(
            "HTTP %s on %s",
            exc.status_code,
            request.url.path,
            extra=request_log_context(request, exc.status_code),
        )
    return JSONResponse(status_code=exc.status_code, content=body, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=422,
        content={
            "success": False,
            "error": "Validation failed",
            "message": "Validation failed",
            "details": jsonable_encoder(exc.errors()),
        },
    )


# ============================================================================
# Routers
# ============================================================================

from volunteer_hub.routers import (
    admin, auth, calendar, dashboard, documents, super_admin, tasks, users,
)

app.include_router(auth.router, prefix="/auth", tags=["auth"])
app.include_router(users.router, prefix="/users", tags=["users"])
app.include_router(tasks.router, prefix="/tasks", tags=["tasks"])
app.include_router(admin.router)  # Already has /admin prefix
app.include_router(calendar.router, prefix="/calendar", tags=["calendar"])
app.include_router(documents.router)  # Already has /documents prefix
app.include_router(dashboard.router)  # Already has /dashboard prefix
app.include_router(super_admin.router)  # Already has /super-admin prefix


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
