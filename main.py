import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import time

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from shortlink_app.config import settings
from shortlink_app.api.v1 import links, redirect
from shortlink_app.dependencies import get_clock, get_link_store, click_tracker_for
from shortlink_app.exceptions import (
    InvalidInputError,
    LinkExpiredError,
    LinkNotFoundError,
    ShortlinkError,
    StoreUnavailableError,
)
from shortlink_app.logging_config import setup_logging
from shortlink_app.services.cleanup import CleanupScheduler

logger = logging.getLogger("shortlink_app.main")


def _resolve_dependency(app: FastAPI, dependency):
    """Honour dependency_overrides for objects used outside of requests"""
    return app.dependency_overrides.get(dependency, dependency)()


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(level=settings.log_level, json_format=settings.log_json)
    store = _resolve_dependency(app, get_link_store)

    scheduler = None
    scheduler_task = None
    if settings.cleanup_enabled:
        scheduler = CleanupScheduler(
            store=store,
            run_at=time(hour=settings.cleanup_hour, minute=settings.cleanup_minute),
            clock=_resolve_dependency(app, get_clock),
        )
        scheduler_task = asyncio.create_task(scheduler.start(), name="link-cleanup")
    app.state.cleanup_scheduler = scheduler

    logger.info("%s %s started (%s)", settings.app_name, settings.app_version, settings.environment)
    yield

    if scheduler is not None:
        scheduler.stop()
        await scheduler_task
    # Best effort: flush click increments still in flight
    await click_tracker_for(store).drain()
    logger.info("%s stopped", settings.app_name)


# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="A short-link service with expiring links, built with FastAPI",
    debug=settings.debug,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)


######## Error handlers
def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@app.exception_handler(InvalidInputError)
async def invalid_input_handler(request: Request, exc: InvalidInputError):
    return _error(status.HTTP_400_BAD_REQUEST, str(exc))


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return _error(status.HTTP_400_BAD_REQUEST, "Invalid request body.")


@app.exception_handler(LinkNotFoundError)
async def not_found_handler(request: Request, exc: LinkNotFoundError):
    return _error(status.HTTP_404_NOT_FOUND, "No URL found.")


@app.exception_handler(LinkExpiredError)
async def expired_handler(request: Request, exc: LinkExpiredError):
    return _error(status.HTTP_410_GONE, "This link has expired.")


@app.exception_handler(StoreUnavailableError)
async def store_unavailable_handler(request: Request, exc: StoreUnavailableError):
    logger.error("Store unavailable on %s %s: %s", request.method, request.url.path, exc)
    return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Server error. Please try again.")


@app.exception_handler(ShortlinkError)
async def service_error_handler(request: Request, exc: ShortlinkError):
    logger.error("Unhandled service error on %s %s: %s", request.method, request.url.path, exc)
    return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Server error. Please try again.")


@app.get("/")
def read_root():
    """Root endpoint with API information"""
    return {
        "message": f"Welcome to {settings.app_name}",
        "version": settings.app_version,
        "docs": "/docs",
        "redoc": "/redoc"
    }


@app.get("/health")
def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "environment": settings.environment}


######## Include routers
# The catch-all redirect route goes last so it never shadows /api, /docs or /health
app.include_router(links.router, prefix="/api")
app.include_router(redirect.router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host=settings.host, port=settings.port)
