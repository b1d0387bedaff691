"""
Read-only query layer over the Sakila catalog.

All statements run on one shared aiosqlite connection. Every user supplied value
reaches SQLite as a bound parameter; category and rating values are additionally
restricted to the whitelist held by the FilterFactory.
"""
import re
from typing import Any, Dict, List, Optional, Sequence, Tuple
import aiosqlite
from catalog.exceptions import BackendUnavailableError
from catalog.filter_factory import FilterFactory
from logging_config.logger import get_logger

logger = get_logger(__name__)

MOVIES_SQL = "SELECT FID, title, category, rating FROM film_list"

DETAILS_SQL = """
    SELECT film.film_id, film.title, film.release_year,
           language.name AS language,
           original_language.name AS original_language,
           film.rental_duration, film.rental_rate, film.length,
           film.replacement_cost, film.rating, film.special_features,
           film.last_update, film.description
    FROM film
    LEFT JOIN language AS language
        ON film.language_id = language.language_id
    LEFT JOIN language AS original_language
        ON film.original_language_id = original_language.language_id
    WHERE film.film_id = ?
"""

ACTORS_SQL = """
    SELECT film_actor.film_id, actor.actor_id, actor.first_name, actor.last_name
    FROM film_actor
    LEFT JOIN actor ON film_actor.actor_id = actor.actor_id
    WHERE film_actor.film_id = ?
"""

CATEGORY_VALUES_SQL = "SELECT category_id, name FROM category"

RATING_VALUES_SQL = "SELECT DISTINCT rating FROM film_list"

SQLITE_INT_MIN = -2 ** 63
SQLITE_INT_MAX = 2 ** 63 - 1

_FILM_ID = re.compile(r"^[+-]?[0-9]+$")


def assemble_statement(base: str, clauses: Optional[Sequence[str]] = None) -> str:
    """
    Append clauses to a base statement as a WHERE ... AND ... chain.

    Args:
        base: The base statement (ex. "SELECT ... FROM film_list")
        clauses: Predicates, in the order they should appear

    Returns:
        ``base`` unchanged when there are no clauses
    """
    if not clauses:
        return base
    return f"{base} WHERE {' AND '.join(clauses)}"


def escape_like(s: str) -> str:
    """Escape special LIKE characters."""
    return s.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def parse_film_id(film_id: Any) -> Optional[int]:
    """
    Film id as int, or None when missing, not plain decimal digits, or
    outside SQLite's 64-bit INTEGER range.
    """
    if film_id is None or isinstance(film_id, bool):
        return None
    if isinstance(film_id, int):
        parsed = film_id
    else:
        text = str(film_id).strip()
        # int() alone would also accept "1_1" and non-ASCII digits
        if not _FILM_ID.match(text):
            return None
        parsed = int(text)

    if not SQLITE_INT_MIN <= parsed <= SQLITE_INT_MAX:
        return None
    return parsed


class QueryEngine:
    """Movie catalog queries (list/search, details, actors)."""

    def __init__(self, db: aiosqlite.Connection, snapshot_ttl: Optional[float] = None):
        """
        Args:
            db: Open connection with ``row_factory = aiosqlite.Row``
            snapshot_ttl: Max age of the category/rating snapshot in seconds
        """
        self._db = db
        self.filter_factory = FilterFactory(self, max_age=snapshot_ttl)

    @classmethod
    async def create(cls, db: aiosqlite.Connection, snapshot_ttl: Optional[float] = None) -> "QueryEngine":
        """Build an engine and load its filter snapshot."""
        engine = cls(db, snapshot_ttl=snapshot_ttl)
        await engine.filter_factory.load()
        logger.info("QueryEngine initialized")
        return engine

    def build_movies_statement(
        self,
        title: Optional[str] = None,
        category: Optional[str] = None,
        rating: Optional[str] = None,
    ) -> Tuple[str, List[Any]]:
        """
        Build the movie list statement and its parameters.

        Title search goes first, then the category/rating fragment as one clause.
        """
        clauses: List[str] = []
        params: List[Any] = []

        if title:
            clauses.append("title LIKE ? ESCAPE '\\'")
            params.append(f"%{escape_like(title)}%")

        if category or rating:
            fragment = self.filter_factory.build(category=category, rating=rating)
            if fragment:
                clauses.append(fragment.get_result())
                params.extend(fragment.params)
                logger.debug(f"Applying filters: {fragment.inline()}")

        return assemble_statement(MOVIES_SQL, clauses), params

    async def query_movies(
        self,
        title: Optional[str] = None,
        category: Optional[str] = None,
        rating: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """
        Search and filter the movie list.

        Args:
            title: Substring to search in titles
            category: Category to include; ignored if unknown
            rating: Rating to include; ignored if unknown

        Returns:
            Rows with FID, title, category, rating
        """
        if category or rating:
            await self.filter_factory.ensure_fresh()

        sql, params = self.build_movies_statement(title, category, rating)
        return await self._query(sql, params)

    async def query_details_by_film_id(self, film_id: Any) -> List[Dict[str, Any]]:
        """Details for one film (empty list if the id is missing or unknown)."""
        parsed = parse_film_id(film_id)
        if parsed is None:
            logger.debug(f"Skipping details lookup for film id {film_id!r}")
            return []
        return await self._query(DETAILS_SQL, (parsed,))

    async def query_actors_by_film_id(self, film_id: Any) -> List[Dict[str, Any]]:
        """Actors credited in one film (empty list if the id is missing or unknown)."""
        parsed = parse_film_id(film_id)
        if parsed is None:
            logger.debug(f"Skipping actors lookup for film id {film_id!r}")
            return []
        return await self._query(ACTORS_SQL, (parsed,))

    async def query_all_category_values(self) -> List[Dict[str, Any]]:
        return await self._query(CATEGORY_VALUES_SQL)

    async def query_all_rating_values(self) -> List[Dict[str, Any]]:
        return await self._query(RATING_VALUES_SQL)

    async def ping(self) -> bool:
        """Round-trip a trivial statement; raises BackendUnavailableError on failure."""
        await self._query("SELECT 1 AS ok")
        return True

    async def _query(self, sql: str, params: Sequence[Any] = ()) -> List[Dict[str, Any]]:
        """
        Execute a statement and collect all rows as dicts keyed by column name.

        Raises:
            BackendUnavailableError: If the database fails to run the statement
        """
        try:
            async with self._db.execute(sql, tuple(params)) as cursor:
                rows = await cursor.fetchall()
        # aiosqlite raises ValueError once the connection has been closed
        except (aiosqlite.Error, ValueError) as e:
            logger.error(f"Catalog query failed: {e}")
            raise BackendUnavailableError(f"Catalog database unavailable: {e}", query=sql) from e

        logger.debug(f"Query returned {len(rows)} rows")
        return [dict(row) for row in rows]
