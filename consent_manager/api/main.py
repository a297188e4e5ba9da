"""
FastAPI application main entry point.
"""

import json
import logging
from contextlib import asynccontextmanager

import asyncpg
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from consent_manager.core.config import get_config
from consent_manager.core.logging_config import APP_NAME, APP_VERSION, configure_structlog
from consent_manager.core.sentry_config import init_sentry
from consent_manager.api.middleware.request_context import RequestContextMiddleware
from consent_manager.api.errors.handlers import register_exception_handlers
from consent_manager.api.routers import config as config_router
from consent_manager.api.routers import consent, health, scans, sites

logger = logging.getLogger(__name__)


async def init_connection(conn: asyncpg.Connection):
    """Decode and encode JSONB columns as Python objects."""
    await conn.set_type_codec(
        'jsonb',
        encoder=json.dumps,
        decoder=json.loads,
        schema='pg_catalog'
    )


async def create_db_pool(database_config) -> asyncpg.Pool:
    return await asyncpg.create_pool(
        dsn=database_config.url,
        min_size=database_config.pool_min_size,
        max_size=database_config.pool_max_size,
        command_timeout=database_config.command_timeout,
        init=init_connection
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager: opens the database pool on startup and
    closes it on shutdown.
    """
    config = get_config()
    logger.info(f"Starting {APP_NAME} API ({config.environment})")

    try:
        app.state.db_pool = await create_db_pool(config.database)
        logger.info("Database pool initialized successfully")
    except (OSError, asyncpg.PostgresError) as e:
        logger.error(f"Failed to initialize database pool: {e}")
        raise

    yield

    logger.info(f"Shutting down {APP_NAME} API")
    await app.state.db_pool.close()
    app.state.db_pool = None
    logger.info("Database pool closed")


def create_app(config=None) -> FastAPI:
    """
    Create and configure FastAPI application.

    Args:
        config: Configuration (defaults to the global configuration)

    Returns:
        Configured FastAPI application instance
    """
    config = config or get_config()

    configure_structlog(
        log_level=config.monitoring.log_level,
        json_logs=(config.monitoring.log_format == 'json'),
        development_mode=(config.environment == 'development')
    )

    if config.monitoring.sentry_dsn:
        init_sentry(
            dsn=config.monitoring.sentry_dsn,
            environment=config.environment,
            release=APP_VERSION,
            traces_sample_rate=0.1 if config.environment == 'production' else 1.0
        )

    app = FastAPI(
        title="Consent Manager API",
        description="Tenants, sites, consent records and cookie scans for the consent banner.",
        version=APP_VERSION,
        lifespan=lifespan,
        openapi_tags=[
            {"name": "Health", "description": "Service health"},
            {"name": "Sites", "description": "Tenant and site management"},
            {"name": "Config", "description": "Consent banner configuration"},
            {"name": "Consent", "description": "Consent records"},
            {"name": "Scans", "description": "Cookie scans and category suggestions"},
        ]
    )
    app.state.db_pool = None

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.api.cors_origins,
        allow_credentials='*' not in config.api.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"]
    )
    app.add_middleware(RequestContextMiddleware)

    app.include_router(health.router, tags=["Health"])
    app.include_router(sites.router, tags=["Sites"])
    app.include_router(config_router.router, tags=["Config"])
    app.include_router(consent.router, tags=["Consent"])
    app.include_router(scans.router, tags=["Scans"])

    register_exception_handlers(app)

    logger.info("FastAPI application created successfully")
    return app
