"""
Database migration runner for the consent manager.
Executes SQL migration files in order.
"""

import logging
import os
from pathlib import Path
from typing import List, Optional, Set

import psycopg2

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(__file__).parent / "migrations"


class MigrationError(Exception):
    """A migration file failed to apply."""


def get_database_url() -> str:
    """Get database URL from environment variable."""
    db_url = os.environ.get('DATABASE_URL')
    if not db_url:
        raise ValueError("DATABASE_URL environment variable is not set")
    return db_url


def create_migrations_table(conn):
    """Create migrations tracking table if it doesn't exist."""
    with conn.cursor() as cur:
        cur.execute("""
            CREATE TABLE IF NOT EXISTS schema_migrations (
                migration_id SERIAL PRIMARY KEY,
                filename VARCHAR(255) UNIQUE NOT NULL,
                applied_at TIMESTAMPTZ DEFAULT NOW()
            )
        """)
    conn.commit()
    logger.info("Migrations tracking table ready")


def get_applied_migrations(conn) -> Set[str]:
    """Get the set of already applied migration filenames."""
    with conn.cursor() as cur:
        cur.execute("SELECT filename FROM schema_migrations ORDER BY migration_id")
        return {row[0] for row in cur.fetchall()}


def get_pending_migrations(migrations_dir: Path, applied: Set[str]) -> List[Path]:
    """Get migration files not applied yet, sorted by filename."""
    migrations_path = Path(migrations_dir)
    if not migrations_path.exists():
        logger.warning(f"Migrations directory not found: {migrations_dir}")
        return []

    all_migrations = sorted(f for f in migrations_path.glob("*.sql") if f.is_file())
    return [m for m in all_migrations if m.name not in applied]


def apply_migration(conn, migration_file: Path):
    """Apply a single migration file inside one transaction."""
    logger.info(f"Applying migration: {migration_file.name}")

    sql = migration_file.read_text(encoding='utf-8')
    try:
        with conn.cursor() as cur:
            cur.execute(sql)
            cur.execute(
                "INSERT INTO schema_migrations (filename) VALUES (%s)",
                (migration_file.name,)
            )
        conn.commit()
    except psycopg2.Error as e:
        conn.rollback()
        logger.error(f"Failed to apply {migration_file.name}: {e}")
        raise MigrationError(f"{migration_file.name}: {e}") from e

    logger.info(f"Successfully applied: {migration_file.name}")


def run_migrations(database_url: Optional[str] = None, migrations_dir: Optional[Path] = None) -> List[str]:
    """
    Run all pending migrations.

    Args:
        database_url: PostgreSQL URL (defaults to DATABASE_URL)
        migrations_dir: Directory of ``*.sql`` files (defaults to the bundled migrations)

    Returns:
        Filenames of the migrations applied by this run
    """
    database_url = database_url or get_database_url()
    migrations_dir = Path(migrations_dir) if migrations_dir else MIGRATIONS_DIR

    logger.info("Connecting to database...")
    conn = psycopg2.connect(database_url)

    try:
        create_migrations_table(conn)

        applied = get_applied_migrations(conn)
        pending = get_pending_migrations(migrations_dir, applied)

        if not pending:
            logger.info("No pending migrations")
            return []

        logger.info(f"Found {len(pending)} pending migration(s)")
        for migration_file in pending:
            apply_migration(conn, migration_file)

        logger.info("All migrations applied successfully")
        return [m.name for m in pending]
    finally:
        conn.close()
