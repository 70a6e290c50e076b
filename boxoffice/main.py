"""
FastAPI application entry point.
Configures routes, error handlers, and lifecycle events.
"""

import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse
from fastapi.staticfiles import StaticFiles

from boxoffice import __version__
from boxoffice.config import settings
from boxoffice.database import init_db, close_db
from boxoffice.errors import AuthError, BoxOfficeError, PersistenceError, ProviderError
from boxoffice.logging_config import configure_logging
from boxoffice.services.page_shell import page_shell_provider

from boxoffice.api.checkout import router as checkout_router
from boxoffice.api.webhooks.stripe import router as stripe_webhook_router
from boxoffice.api.admin.dashboard import router as dashboard_router

STATIC_DIR = Path(__file__).resolve().parent / "static"

GENERIC_ERROR_MESSAGE = "Something went wrong. Please try again."


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifecycle manager."""
    # Startup
    configure_logging()
    logging.info(f"Starting up {settings.app_name}...")

    try:
        await init_db()
    except Exception as e:
        logging.warning(f"Failed to initialize database: {e}")

    shell_task = asyncio.create_task(page_shell_provider.run_forever())

    yield

    # Shutdown
    shell_task.cancel()
    try:
        with contextlib.suppress(asyncio.CancelledError):
            await shell_task
    finally:
        await close_db()
    logging.info("Shutting down...")


app = FastAPI(
    title="Box Office",
    description="Event ticket sales with Stripe Checkout",
    version=__version__,
    lifespan=lifespan,
    debug=settings.debug,
)


@app.exception_handler(AuthError)
async def auth_error_handler(request: Request, exc: AuthError):
    return PlainTextResponse(
        exc.message,
        status_code=exc.status_code,
        headers={"WWW-Authenticate": f'Basic realm="{settings.admin_realm}"'},
    )


@app.exception_handler(BoxOfficeError)
async def boxoffice_error_handler(request: Request, exc: BoxOfficeError):
    if isinstance(exc, (ProviderError, PersistenceError)):
        logging.error(f"{request.method} {request.url.path} failed: {exc}", exc_info=exc)
        return PlainTextResponse(GENERIC_ERROR_MESSAGE, status_code=exc.status_code)
    return PlainTextResponse(exc.message, status_code=exc.status_code)


# Global Exception Handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logging.error(f"Global exception: {exc}", exc_info=True)
    return PlainTextResponse(GENERIC_ERROR_MESSAGE, status_code=500)


# Health check endpoint
@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "app": settings.app_name,
        "env": settings.app_env,
        "database": settings.database_configured,
    }


app.include_router(checkout_router, tags=["checkout"])
app.include_router(stripe_webhook_router, tags=["webhooks"])
app.include_router(dashboard_router, tags=["admin"])

app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")
