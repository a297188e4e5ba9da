"""
Tenant and site repository for database operations.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from uuid import UUID, uuid4

import asyncpg

from consent_manager.models.site import Site, Tenant

logger = logging.getLogger(__name__)


class SiteRepository:
    """Repository for tenants, sites and site configurations."""

    def __init__(self, db_pool: asyncpg.Pool):
        """Initialize repository with database pool."""
        self.db_pool = db_pool

    async def create_tenant(self, name: str) -> Tenant:
        """
        Create a tenant.

        Args:
            name: Tenant name

        Returns:
            Created Tenant
        """
        now = datetime.now(timezone.utc)
        async with self.db_pool.acquire() as conn:
            row = await conn.fetchrow(
                """
                INSERT INTO tenants (id, name, created_at, updated_at)
                VALUES ($1, $2, $3, $4)
                RETURNING *
                """,
                uuid4(), name, now, now
            )
        logger.info(f"Created tenant {row['id']} ({name})")
        return Tenant(**dict(row))

    async def get_tenant(self, tenant_id: UUID) -> Optional[Tenant]:
        async with self.db_pool.acquire() as conn:
            row = await conn.fetchrow("SELECT * FROM tenants WHERE id = $1", tenant_id)
        return Tenant(**dict(row)) if row else None

    async def create_site(self, tenant_id: UUID, domain: str, config: Dict[str, Any]) -> Site:
        """
        Create a site for a tenant.

        Args:
            tenant_id: Owning tenant
            domain: Site domain
            config: Initial site configuration

        Returns:
            Created Site
        """
        now = datetime.now(timezone.utc)
        async with self.db_pool.acquire() as conn:
            row = await conn.fetchrow(
                """
                INSERT INTO sites (id, tenant_id, domain, config, created_at, updated_at)
                VALUES ($1, $2, $3, $4, $5, $6)
                RETURNING *
                """,
                uuid4(), tenant_id, domain, config or {}, now, now
            )
        logger.info(f"Created site {row['id']} for domain {domain}")
        return self._row_to_site(row)

    async def get_site(self, site_id: UUID) -> Optional[Site]:
        async with self.db_pool.acquire() as conn:
            row = await conn.fetchrow("SELECT * FROM sites WHERE id = $1", site_id)
        return self._row_to_site(row) if row else None

    async def update_site_config(self, site_id: UUID, config: Dict[str, Any]) -> Optional[Site]:
        """
        Replace the configuration of a site.

        Returns:
            Updated Site, or None when the site does not exist
        """
        async with self.db_pool.acquire() as conn:
            row = await conn.fetchrow(
                """
                UPDATE sites
                SET config = $2, updated_at = $3
                WHERE id = $1
                RETURNING *
                """,
                site_id, config, datetime.now(timezone.utc)
            )
        if row:
            logger.info(f"Updated configuration of site {site_id}")
        return self._row_to_site(row) if row else None

    @staticmethod
    def _row_to_site(row) -> Site:
        data = dict(row)
        data['config'] = data.get('config') or {}
        return Site(**data)
