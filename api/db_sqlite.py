"""
SQLite connection lifecycle for the catalog API.

The catalog is opened once, read-only, and the connection is shared by every
request for the lifetime of the process.
"""

import aiosqlite
from pathlib import Path
from typing import Optional
from config.settings import CATALOG_DB
from logging_config.logger import get_logger

logger = get_logger(__name__)

# Module-level shared connection
_db_connection: Optional[aiosqlite.Connection] = None


async def init_db(db_path: Optional[Path] = None) -> aiosqlite.Connection:
    """
    Open the catalog database read-only.

    Args:
        db_path: Catalog file (defaults to CATALOG_DB)

    Returns:
        aiosqlite.Connection: Shared connection with row access by column name

    Raises:
        FileNotFoundError: If the catalog has not been built yet
        aiosqlite.Error: If the database cannot be opened
    """
    global _db_connection

    path = Path(db_path or CATALOG_DB)
    if not path.exists():
        logger.error(f"Catalog database not found: {path}")
        raise FileNotFoundError(f"Catalog database not found: {path}")

    try:
        _db_connection = await aiosqlite.connect(f"file:{path}?mode=ro", uri=True)
        _db_connection.row_factory = aiosqlite.Row
        await _db_connection.execute("PRAGMA query_only = ON")

        logger.info(f"Catalog database opened read-only: {path}")
        return _db_connection

    except aiosqlite.Error as e:
        logger.error(f"Failed to open catalog database: {e}")
        raise


async def close_db() -> None:
    """
    Close the shared connection.

    Should be called during application shutdown.
    """
    global _db_connection
    if _db_connection:
        try:
            await _db_connection.close()
            logger.info("Database connection closed")
        except aiosqlite.Error as e:
            logger.error(f"Error closing database connection: {e}")
        finally:
            _db_connection = None

