"""
Web Bootstrap Service - Main FastAPI Application.

Builds the HTTP entry point: request logging, CORS policy, JSON and
URL-encoded body parsing, static file serving from the configured root and
the ``GET /`` liveness route.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI

from .body_parsing import BodyParserMiddleware
from .config import Settings, settings
from .cors import configure_cors
from .logging_config import get_logger, log_event, setup_logging
from .middleware import RequestLoggingMiddleware
from .routers import root_router
from .static import StaticFilesMiddleware

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan context manager.

    Logs the effective configuration on startup and marks shutdown.
    """
    config: Settings = app.state.settings

    log_event(
        logger,
        logging.INFO,
        f"Starting {config.SERVICE_NAME}",
        service_name=config.SERVICE_NAME,
        debug_mode=config.DEBUG,
        log_level=config.LOG_LEVEL,
        host=config.HOST,
        port=config.PORT,
        body_limit=config.BODY_LIMIT,
        static_root=str(config.static_root_path),
        cors_origins=config.cors_origins_list,
    )

    yield

    log_event(logger, logging.INFO, f"Shutting down {config.SERVICE_NAME}")


def create_app(app_settings: Optional[Settings] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Middleware runs in this order for each request: request logging, CORS,
    body parsing, static files, then routing.

    Args:
        app_settings: Settings to use, defaults to the global settings

    Returns:
        Configured FastAPI application
    """
    config = app_settings or settings

    app = FastAPI(
        title="Web Bootstrap Service",
        description="Minimal HTTP entry point with body parsing, static files and CORS",
        version="1.0.0",
        docs_url="/api/docs" if config.DEBUG else None,
        redoc_url="/api/redoc" if config.DEBUG else None,
        openapi_url="/api/openapi.json" if config.DEBUG else None,
        lifespan=lifespan,
    )
    app.state.settings = config

    # Middleware order matters - last added is outermost
    app.add_middleware(
        StaticFilesMiddleware,
        directory=config.static_root_path,
        max_age=config.STATIC_MAX_AGE,
    )
    app.add_middleware(
        BodyParserMiddleware,
        limit=config.body_limit_bytes,
        extended=config.URLENCODED_EXTENDED,
        parameter_limit=config.PARAMETER_LIMIT,
    )
    configure_cors(app, config.cors_origins_list)
    app.add_middleware(RequestLoggingMiddleware)

    app.include_router(root_router.router)

    return app


setup_logging(
    log_level=settings.LOG_LEVEL,
    service_name=settings.SERVICE_NAME,
    use_json=not settings.DEBUG,
)

app = create_app()


def run() -> None:
    """Start the service with uvicorn."""
    import uvicorn

    uvicorn.run(
        app,
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    run()
