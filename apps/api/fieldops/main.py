"""FastAPI application entry point."""
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text

from fieldops.core.config import settings
from fieldops.core.exceptions import InspectionServiceError
from fieldops.core.structured_logging import build_log_context
from fieldops.db.session import engine


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
        send_default_pii=False,  # Don't send PII to Sentry
    )
    logging.info("Sentry initialized for error tracking")


# ============================================================================
# FastAPI App
# ============================================================================

app = FastAPI(
    title="Field Ops API",
    description="Multi-tenant field inspection checklists",
    version=settings.VERSION,
    docs_url="/docs" if settings.ENV == "dev" else None,
    redoc_url="/redoc" if settings.ENV == "dev" else None,
)

# CORS middleware - must be added before routers
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,  # Required for cookies
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Requested-With"],
    expose_headers=["X-Request-ID", "Content-Disposition"],
)


@app.exception_handler(InspectionServiceError)
async def inspection_service_error_handler(request: Request, exc: InspectionServiceError):
    """Render domain errors as {"detail": message} with their mapped status."""
    context = build_log_context(
        request_id=request.headers.get("X-Request-ID"),
        route=request.url.path,
        method=request.method,
    )
    if exc.status_code >= 500:
        logger.error("inspection_service_error", exc_info=exc, extra=context)
    else:
        logger.info(
            "inspection_request_rejected status=%s error=%s",
            exc.status_code,
            type(exc).__name__,
            extra=context,
        )
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


# ============================================================================
# Routers
# ============================================================================

from fieldops.routers import checklist, inspections  # noqa: E402

app.include_router(checklist.router)
app.include_router(inspections.router)


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
