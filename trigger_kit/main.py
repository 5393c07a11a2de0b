"""FastAPI application entry point."""

import logging
import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from trigger_kit.api import dictionaries, oauth, triggers, webhooks
from trigger_kit.config import Settings
from trigger_kit.errors import ConfigurationError, ConnectorError, RemoteError, ValidationError
from trigger_kit.services.dispatcher import InvocationDispatcher

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stdout,
    )
    # httpx logs full request URLs, and Telegram URLs carry the bot token
    logging.getLogger("httpx").setLevel(logging.WARNING)


def error_status_code(error: ConnectorError) -> int:
    """HTTP status handed back to the host for a connector error."""
    if isinstance(error, RemoteError):
        # No status means the remote was never reached or answered garbage
        return error.http_status_code or 502
    if isinstance(error, (ConfigurationError, ValidationError)):
        return 422
    return 500


async def connector_error_handler(request: Request, exc: ConnectorError) -> JSONResponse:
    return JSONResponse(status_code=error_status_code(exc), content=exc.to_dict())


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup and shutdown."""
    settings: Settings = app.state.settings

    # Startup
    app.state.http_client = httpx.AsyncClient(timeout=settings.http_timeout_seconds)
    app.state.dispatcher = InvocationDispatcher.from_registry()
    logger.info(f"Started with connectors: {', '.join(app.state.dispatcher.systems())}")

    yield

    # Shutdown
    await app.state.http_client.aclose()


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or Settings()

    app = FastAPI(
        title="Trigger Kit",
        description="Polling triggers, OAuth connections and selector dictionaries for external systems",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.add_exception_handler(ConnectorError, connector_error_handler)

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "healthy"}

    app.include_router(triggers.router, prefix="/api/v1")
    app.include_router(dictionaries.router, prefix="/api/v1")
    app.include_router(oauth.router, prefix="/api/v1")
    app.include_router(webhooks.router, prefix="/api/v1")

    return app


_settings = Settings()
configure_logging(_settings)

app = create_app(_settings)
