"""
FastAPI dependencies shared by the routers.
"""

from functools import partial

import asyncpg
from fastapi import Depends, Request

from consent_manager.core.config import ScanConfig, get_config
from consent_manager.services.consent_repository import ConsentRepository
from consent_manager.services.scan_repository import ScanRepository
from consent_manager.services.scan_service import scan_website
from consent_manager.services.site_repository import SiteRepository


def get_db_pool(request: Request) -> asyncpg.Pool:
    """Get the database pool created by the application lifespan."""
    pool = getattr(request.app.state, 'db_pool', None)
    if pool is None:
        raise RuntimeError("Database pool not initialized")
    return pool


def get_site_repository(pool: asyncpg.Pool = Depends(get_db_pool)) -> SiteRepository:
    return SiteRepository(pool)


def get_consent_repository(pool: asyncpg.Pool = Depends(get_db_pool)) -> ConsentRepository:
    return ConsentRepository(pool)


def get_scan_repository(pool: asyncpg.Pool = Depends(get_db_pool)) -> ScanRepository:
    return ScanRepository(pool)


def get_scan_config() -> ScanConfig:
    return get_config().scan


def get_scanner(scan_config: ScanConfig = Depends(get_scan_config)):
    """Return the scan coroutine function bound to the configured scan options."""
    return partial(
        scan_website,
        timeout_ms=scan_config.timeout_ms,
        wait_until=scan_config.wait_until,
        settle_seconds=scan_config.settle_seconds,
        user_agent=scan_config.user_agent,
        headless=scan_config.headless,
    )
