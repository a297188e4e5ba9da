"""
Consent record repository for database operations.
"""

import logging
from datetime import date, datetime, time, timezone
from typing import Dict, List, Optional
from uuid import UUID, uuid4

import asyncpg

from consent_manager.models.consent import ConsentRecord, SiteSummary, UserConsentRecord

logger = logging.getLogger(__name__)

DEFAULT_RECORD_LIMIT = 1000


class ConsentRepository:
    """Repository for consent records."""

    def __init__(self, db_pool: asyncpg.Pool):
        """Initialize repository with database pool."""
        self.db_pool = db_pool

    async def create_record(
        self,
        site_id: UUID,
        user_id: Optional[str],
        choices: Dict[str, bool]
    ) -> ConsentRecord:
        """
        Persist a consent record.

        Args:
            site_id: Site UUID
            user_id: User identifier, None for anonymous visitors
            choices: Category key to accepted flag

        Returns:
            Created ConsentRecord
        """
        async with self.db_pool.acquire() as conn:
            row = await conn.fetchrow(
                """
                INSERT INTO consent_records (id, site_id, user_id, choices, timestamp)
                VALUES ($1, $2, $3, $4, $5)
                RETURNING *
                """,
                uuid4(), site_id, user_id or None, choices, datetime.now(timezone.utc)
            )
        logger.info(f"Recorded consent {row['id']} for site {site_id}")
        return ConsentRecord(**dict(row))

    async def list_for_site(
        self,
        site_id: UUID,
        user_id: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        limit: int = DEFAULT_RECORD_LIMIT
    ) -> List[ConsentRecord]:
        """
        List consent records of a site, newest first.

        Args:
            site_id: Site UUID
            user_id: Only records of this user
            start_date: Only records from the start of this day (UTC)
            end_date: Only records up to the end of this day (UTC)
            limit: Maximum number of records

        Returns:
            List of ConsentRecord
        """
        query = "SELECT * FROM consent_records WHERE site_id = $1"
        params: list = [site_id]

        if user_id:
            params.append(user_id)
            query += f" AND user_id = ${len(params)}"

        if start_date:
            params.append(datetime.combine(start_date, time.min, tzinfo=timezone.utc))
            query += f" AND timestamp >= ${len(params)}"

        if end_date:
            params.append(datetime.combine(end_date, time.max, tzinfo=timezone.utc))
            query += f" AND timestamp <= ${len(params)}"

        params.append(limit)
        query += f" ORDER BY timestamp DESC LIMIT ${len(params)}"

        async with self.db_pool.acquire() as conn:
            rows = await conn.fetch(query, *params)
        return [ConsentRecord(**dict(row)) for row in rows]

    async def list_for_user(self, user_id: str, site_id: Optional[UUID] = None) -> List[UserConsentRecord]:
        """List consent records of a user across sites, newest first, with their site."""
        query = """
            SELECT c.*, s.domain AS site_domain
            FROM consent_records c
            LEFT JOIN sites s ON s.id = c.site_id
            WHERE c.user_id = $1
        """
        params: list = [user_id]
        if site_id:
            params.append(site_id)
            query += " AND c.site_id = $2"
        query += " ORDER BY c.timestamp DESC"

        async with self.db_pool.acquire() as conn:
            rows = await conn.fetch(query, *params)

        records = []
        for row in rows:
            data = dict(row)
            domain = data.pop('site_domain', None)
            site = SiteSummary(id=data['site_id'], domain=domain) if domain is not None else None
            records.append(UserConsentRecord(**data, site=site))
        return records
