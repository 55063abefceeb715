"""FastAPI application factory and lifespan management."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path

import structlog
from fastapi import FastAPI

from neriah import __version__
from neriah.api.config import APIConfig, get_api_config
from neriah.api.database import Database, set_session_factory
from neriah.api.middleware import setup_cors, setup_error_handlers, setup_logging
from neriah.api.routes import (
    attachments_router,
    chat_router,
    extract_router,
    health_router,
    items_router,
    sync_router,
    webhooks_router,
)
from neriah.core.config import Config

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application lifespan - startup and shutdown.

    Args:
        app: FastAPI application instance.

    Yields:
        Control to the application after startup is complete.
    """
    config: APIConfig = app.state.config

    # Startup
    await logger.ainfo(
        "application_starting",
        environment=config.environment,
        host=config.host,
        port=config.port,
    )

    if getattr(app.state, "pipeline_config", None) is None:
        pipeline = Config.from_env(Path(".env"))
        problems = pipeline.validate()
        if problems:
            raise ValueError(f"Invalid configuration: {', '.join(problems)}")
        if not pipeline.has_llm():
            await logger.awarning("llm_not_configured")
        if not pipeline.has_push():
            await logger.awarning("push_not_configured")
        app.state.pipeline_config = pipeline

    db = Database(config)
    await db.connect()
    set_session_factory(db.session)
    app.state.db = db
    await logger.ainfo("database_connected")

    yield

    # Shutdown
    await logger.ainfo("application_shutting_down")
    if getattr(app.state, "db", None) is not None:
        await app.state.db.disconnect()
        set_session_factory(None)
    await logger.ainfo("application_shutdown_complete")


def create_app(config: APIConfig | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        config: Optional API configuration. If not provided,
                configuration is loaded from environment variables.

    Returns:
        Configured FastAPI application instance.
    """
    if config is None:
        config = get_api_config()

    app = FastAPI(
        title="Neriah API",
        description="Extracts tasks, receipts and meetings from Gmail",
        version=__version__,
        docs_url="/docs" if config.is_development else None,
        redoc_url="/redoc" if config.is_development else None,
        openapi_url="/openapi.json" if config.is_development else None,
        lifespan=lifespan,
    )

    app.state.config = config

    # Order: CORS -> Correlation ID -> Error Handler
    setup_error_handlers(app)
    setup_logging(app, config)
    setup_cors(app, config)

    app.include_router(health_router)
    app.include_router(extract_router)
    app.include_router(webhooks_router)
    app.include_router(items_router)
    app.include_router(attachments_router)
    app.include_router(sync_router)
    app.include_router(chat_router)

    return app


def run_server(config: APIConfig | None = None) -> None:
    """Run the API server using uvicorn.

    Args:
        config: Optional API configuration. If not provided,
                configuration is loaded from environment variables.
    """
    import uvicorn

    if config is None:
        config = get_api_config()

    uvicorn.run(
        "neriah.api.main:create_app",
        factory=True,
        host=config.host,
        port=config.port,
        reload=config.is_development,
        log_level=config.log_level.lower(),
    )
