"""
SQLite builder for the Sakila movie catalog.
"""
import sqlite3
from pathlib import Path
from typing import List, Dict, Any
from logging_config.logger import get_logger

logger = get_logger(__name__)

VALID_RATINGS = ("G", "PG", "PG-13", "R", "NC-17")

# Insert order respects foreign keys
TABLE_COLUMNS = {
    "language": ["language_id", "name", "last_update"],
    "category": ["category_id", "name", "last_update"],
    "actor": ["actor_id", "first_name", "last_name", "last_update"],
    "film": [
        "film_id", "title", "description", "release_year", "language_id",
        "original_language_id", "rental_duration", "rental_rate", "length",
        "replacement_cost", "rating", "special_features", "last_update",
    ],
    "film_category": ["film_id", "category_id", "last_update"],
    "film_actor": ["actor_id", "film_id", "last_update"],
}

_rating_list = ", ".join(f"'{r}'" for r in VALID_RATINGS)

SCHEMA_SQL = [
    """
    CREATE TABLE IF NOT EXISTS language (
        language_id INTEGER PRIMARY KEY,
        name TEXT NOT NULL,
        last_update TEXT DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS category (
        category_id INTEGER PRIMARY KEY,
        name TEXT NOT NULL,
        last_update TEXT DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS actor (
        actor_id INTEGER PRIMARY KEY,
        first_name TEXT NOT NULL,
        last_name TEXT NOT NULL,
        last_update TEXT DEFAULT CURRENT_TIMESTAMP
    )
    """,
    f"""
    CREATE TABLE IF NOT EXISTS film (
        film_id INTEGER PRIMARY KEY,
        title TEXT NOT NULL,
        description TEXT,
        release_year INTEGER,
        language_id INTEGER NOT NULL REFERENCES language(language_id),
        original_language_id INTEGER REFERENCES language(language_id),
        rental_duration INTEGER NOT NULL DEFAULT 3,
        rental_rate REAL NOT NULL DEFAULT 4.99,
        length INTEGER,
        replacement_cost REAL NOT NULL DEFAULT 19.99,
        rating TEXT DEFAULT 'G' CHECK (rating IN ({_rating_list})),
        special_features TEXT,    -- comma separated: "Trailers,Deleted Scenes"
        last_update TEXT DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS film_category (
        film_id INTEGER NOT NULL REFERENCES film(film_id),
        category_id INTEGER NOT NULL REFERENCES category(category_id),
        last_update TEXT DEFAULT CURRENT_TIMESTAMP,
        PRIMARY KEY (film_id, category_id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS film_actor (
        actor_id INTEGER NOT NULL REFERENCES actor(actor_id),
        film_id INTEGER NOT NULL REFERENCES film(film_id),
        last_update TEXT DEFAULT CURRENT_TIMESTAMP,
        PRIMARY KEY (actor_id, film_id)
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_film_actor_film_id ON film_actor(film_id)",
    "CREATE INDEX IF NOT EXISTS idx_film_category_category_id ON film_category(category_id)",
    """
    CREATE VIEW IF NOT EXISTS film_list AS
    SELECT film.film_id AS FID,
           film.title AS title,
           film.description AS description,
           category.name AS category,
           film.rental_rate AS price,
           film.length AS length,
           film.rating AS rating,
           GROUP_CONCAT(actor.first_name || ' ' || actor.last_name, ', ') AS actors
    FROM film
    LEFT JOIN film_category ON film_category.film_id = film.film_id
    LEFT JOIN category ON category.category_id = film_category.category_id
    LEFT JOIN film_actor ON film_actor.film_id = film.film_id
    LEFT JOIN actor ON actor.actor_id = film_actor.actor_id
    GROUP BY film.film_id, category.category_id
    """,
]


class SakilaCatalogDB:
    """Build and populate the SQLite catalog database."""

    def __init__(self, db_path: Path):
        """
        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = Path(db_path)
        self.conn = None
        logger.info(f"Initialized catalog DB handler: {db_path}")

    def connect(self):
        """Establish database connection."""
        self.conn = sqlite3.connect(str(self.db_path))
        self.conn.execute("PRAGMA foreign_keys = ON")
        logger.debug("Database connection established")

    def close(self):
        """Close database connection."""
        if self.conn:
            self.conn.close()
            self.conn = None
            logger.debug("Database connection closed")

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type:
            logger.error(f"Error during database operation: {exc_val}")
            if self.conn:
                self.conn.rollback()
        else:
            if self.conn:
                self.conn.commit()
        self.close()

    def create_schema(self):
        """Create catalog tables, indices and the film_list view."""
        logger.info("Creating catalog schema...")
        cursor = self.conn.cursor()
        for statement in SCHEMA_SQL:
            cursor.execute(statement)
        self.conn.commit()
        logger.info("Schema created successfully")

    def bulk_insert(self, table: str, records: List[Dict[str, Any]]):
        """
        Insert (or replace) records into a catalog table.

        Args:
            table: One of TABLE_COLUMNS
            records: Dicts keyed by column name; missing keys become NULL,
                except last_update which takes the column default
        """
        if table not in TABLE_COLUMNS:
            raise ValueError(f"Unknown catalog table: {table}")

        all_columns = TABLE_COLUMNS[table]
        # Records without last_update take the column default, so they are
        # inserted without that column
        stamped = [r for r in records if r.get("last_update") is not None]
        unstamped = [r for r in records if r.get("last_update") is None]

        logger.info(f"Bulk inserting {len(records)} rows into {table}...")
        for batch, columns in (
            (stamped, all_columns),
            (unstamped, [c for c in all_columns if c != "last_update"]),
        ):
            if not batch:
                continue
            placeholders = ", ".join("?" for _ in columns)
            insert_sql = (
                f"INSERT OR REPLACE INTO {table} ({', '.join(columns)}) "
                f"VALUES ({placeholders})"
            )
            values = [tuple(record.get(c) for c in columns) for record in batch]
            self.conn.executemany(insert_sql, values)
        self.conn.commit()

    def get_row_count(self, table: str) -> int:
        if table not in TABLE_COLUMNS and table != "film_list":
            raise ValueError(f"Unknown catalog table: {table}")
        cursor = self.conn.execute(f"SELECT COUNT(*) FROM {table}")
        return cursor.fetchone()[0]

    def verify_data(self) -> Dict[str, int]:
        """Log and return row counts per table."""
        counts = {table: self.get_row_count(table) for table in TABLE_COLUMNS}
        for table, count in counts.items():
            logger.info(f"  {table}: {count} rows")

        sample = self.conn.execute(
            "SELECT FID, title, category, rating FROM film_list LIMIT 5"
        ).fetchall()
        logger.debug("Sample film_list records:")
        for record in sample:
            logger.debug(f"  {record}")

        return counts
