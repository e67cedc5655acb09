"""
Main FastAPI Application

Entry point for the TravelFlow API: middleware, error handlers, routers and
startup/shutdown.
"""
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
import time
from contextlib import asynccontextmanager

from travelflow import __version__
from travelflow.config import get_settings
from travelflow.database import engine, init_db
from travelflow.utils.logging import setup_logging, get_logger
from travelflow.core.exceptions import TravelFlowError, PermissionDenied, AuthenticationError

from travelflow.api.endpoints import audit, auth, invitations, roles, users

settings = get_settings()

setup_logging(
    log_level=settings.LOG_LEVEL,
    json_format=(settings.ENVIRONMENT == "production")
)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables in development; release pooled connections on shutdown."""
    logger.info(f"Starting application in {settings.ENVIRONMENT} mode")

    if settings.ENVIRONMENT == "development":
        init_db()

    yield

    logger.info("Shutting down application")
    engine.dispose()


app = FastAPI(
    title="TravelFlow API",
    description="Multitenant travel agency backend: tenant access control, roles and invitations",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)


# ============================================================================
# MIDDLEWARE CONFIGURATION
# ============================================================================

allowed_origins = [settings.APP_BASE_URL]

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.ENVIRONMENT == "development" else allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    """Add X-Process-Time header to track request duration."""
    start_time = time.time()
    response = await call_next(request)
    response.headers["X-Process-Time"] = str(time.time() - start_time)
    return response


# ============================================================================
# EXCEPTION HANDLERS
# ============================================================================

@app.exception_handler(TravelFlowError)
async def travelflow_error_handler(request: Request, exc: TravelFlowError):
    """
    Render access-core errors as {"detail", "type"}.

    Denials are already logged as security events where they are raised.
    """
    if not isinstance(exc, (PermissionDenied, AuthenticationError)):
        logger.info(
            f"{exc.error_type}: {exc.detail}",
            extra={"path": request.url.path, "method": request.method}
        )
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "type": exc.error_type},
        headers=exc.headers or {}
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Log the failure; only DEBUG deployments echo it back."""
    logger.error(
        f"Unhandled exception: {type(exc).__name__}: {str(exc)}",
        exc_info=True,
        extra={"path": request.url.path, "method": request.method}
    )

    if settings.DEBUG:
        return JSONResponse(
            status_code=500,
            content={"detail": str(exc), "type": type(exc).__name__}
        )
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error", "type": "internal_error"}
    )


# ============================================================================
# ROUTES
# ============================================================================

@app.get("/health", tags=["health"])
async def health_check():
    """Health check endpoint for load balancers."""
    return {
        "status": "healthy",
        "environment": settings.ENVIRONMENT,
        "version": __version__
    }


@app.get("/", tags=["root"])
async def root():
    return {
        "message": "TravelFlow API",
        "version": __version__,
        "docs": "/docs",
        "health": "/health"
    }


app.include_router(auth.router, prefix="/api/v1")
app.include_router(users.router, prefix="/api/v1")
app.include_router(roles.router, prefix="/api/v1")
app.include_router(invitations.router, prefix="/api/v1")
app.include_router(audit.router, prefix="/api/v1")


if __name__ == "__main__":
    import uvicorn

    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"Debug: {settings.DEBUG}")

    uvicorn.run(
        "travelflow.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower()
    )
