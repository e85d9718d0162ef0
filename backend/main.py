"""
FastAPI application entry point for the church administration API.

Authentication is handled by PrincipalMiddleware; authorization (roles,
permissions and plan features) runs as route dependencies.
"""

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from church_admin.api.routes import admin_plans
from church_admin.api.routes import entitlements
from church_admin.api.routes import health
from church_admin.auth.middleware import PrincipalMiddleware
from church_admin.config.settings import get_settings

settings = get_settings()

# Configure structured logging
logging.basicConfig(
    level=getattr(logging, settings.log_level, logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    logger.info("Starting church admin API", extra={"env": settings.env})

    if not settings.jwt_secret:
        logger.warning(
            "JWT_SECRET is not set. Bearer tokens cannot be verified and "
            "every protected endpoint will return 401."
        )

    if not settings.database_url:
        logger.error("DATABASE_URL is not set. Database-backed endpoints will return 503.")
        app.state.database_configured = False
    else:
        # Mask credentials for safe logging
        masked = settings.database_url.split("@")[-1]
        logger.info("DATABASE_URL configured", extra={"host_db": masked})
        app.state.database_configured = True

    yield

    logger.info("Shutting down church admin API")


app = FastAPI(
    title="Church Admin API",
    description="Multi-tenant church administration backend",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(PrincipalMiddleware)

# Include health route (no authentication)
app.include_router(health.router)

# Include entitlements route (requires authentication)
app.include_router(entitlements.router)

# Include admin plans routes (requires SUPERADMIN)
app.include_router(admin_plans.router)


# Global exception handler for unexpected errors
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle unhandled exceptions with proper logging."""
    principal = getattr(request.state, "principal", None)

    logger.error(
        "Unhandled exception",
        extra={
            "principal_id": principal.principal_id if principal else None,
            "error": str(exc),
            "error_type": type(exc).__name__,
            "path": request.url.path
        },
        exc_info=True
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "Internal server error",
            "detail": "An unexpected error occurred"
        }
    )


if __name__ == "__main__":
    import uvicorn

    port = int(os.getenv("PORT", 8000))
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=port,
        reload=settings.env == "development"
    )
