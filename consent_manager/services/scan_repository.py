"""
Scan result repository for database operations.
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional
from uuid import UUID, uuid4

import asyncpg

from consent_manager.models.scan import ScanHistoryItem, ScanResult, ScanStats, StoredScan

logger = logging.getLogger(__name__)


class ScanRepository:
    """Repository for stored cookie scan results."""

    def __init__(self, db_pool: asyncpg.Pool):
        """Initialize repository with database pool."""
        self.db_pool = db_pool

    async def save_scan(self, site_id: UUID, result: ScanResult) -> StoredScan:
        """
        Store a scan result for a site.

        Args:
            site_id: Site UUID
            result: Completed scan result

        Returns:
            StoredScan
        """
        now = datetime.now(timezone.utc)
        async with self.db_pool.acquire() as conn:
            row = await conn.fetchrow(
                """
                INSERT INTO scan_results (id, site_id, site_url, results, scanned_at, created_at, updated_at)
                VALUES ($1, $2, $3, $4, $5, $6, $7)
                RETURNING id, site_id, site_url, results, scanned_at
                """,
                uuid4(),
                site_id,
                result.site_url,
                result.model_dump(mode='json', by_alias=True),
                result.scanned_at,
                now,
                now
            )
        logger.info(f"Saved scan result with ID: {row['id']}")
        return self._row_to_scan(row)

    async def get_scan(self, scan_id: UUID) -> Optional[StoredScan]:
        async with self.db_pool.acquire() as conn:
            row = await conn.fetchrow(
                "SELECT id, site_id, site_url, results, scanned_at FROM scan_results WHERE id = $1",
                scan_id
            )
        return self._row_to_scan(row) if row else None

    async def list_for_site(self, site_id: UUID, limit: int = 10) -> List[ScanHistoryItem]:
        """List scan summaries of a site, newest first."""
        async with self.db_pool.acquire() as conn:
            rows = await conn.fetch(
                """
                SELECT id, site_url, scanned_at, results
                FROM scan_results
                WHERE site_id = $1
                ORDER BY scanned_at DESC
                LIMIT $2
                """,
                site_id, limit
            )

        history = []
        for row in rows:
            results = row['results'] or {}
            history.append(ScanHistoryItem(
                id=row['id'],
                site_url=row['site_url'],
                scanned_at=row['scanned_at'],
                stats=ScanStats.model_validate(results.get('stats') or {}),
                cookie_count=len(results.get('cookies') or []),
            ))
        return history

    async def delete_scan(self, scan_id: UUID) -> bool:
        """
        Delete a stored scan.

        Returns:
            True if a row was deleted
        """
        async with self.db_pool.acquire() as conn:
            status = await conn.execute("DELETE FROM scan_results WHERE id = $1", scan_id)
        deleted = status.endswith(" 1")
        if deleted:
            logger.info(f"Deleted scan result {scan_id}")
        return deleted

    @staticmethod
    def _row_to_scan(row) -> StoredScan:
        return StoredScan(
            id=row['id'],
            site_id=row['site_id'],
            site_url=row['site_url'],
            scanned_at=row['scanned_at'],
            results=ScanResult.model_validate(row['results']),
        )
