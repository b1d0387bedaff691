"""
Category and rating filter construction.

FilterFactory holds a snapshot of the legal category and rating values and hands
out FilterFragment objects, each of which accumulates validated clauses for one
query. Fragments are never shared between queries.
"""
import asyncio
import time
from typing import Dict, List, Optional, Tuple, Any
from catalog.option_filter import FilterClause, FilterOption, OptionFilter
from logging_config.logger import get_logger

logger = get_logger(__name__)

CATEGORY = "category"
RATING = "rating"


class FilterFragment:
    """AND-joined set of validated clauses for a single query."""

    def __init__(self, filters: Dict[str, OptionFilter]):
        self._filters = filters
        self._clauses: List[FilterClause] = []

    def clear_result(self):
        """Drop every clause added so far."""
        self._clauses = []

    def include_category_value(self, value: Optional[str]) -> bool:
        return self._add(self._filters[CATEGORY].include_value(value))

    def include_rating_value(self, value: Optional[str]) -> bool:
        return self._add(self._filters[RATING].include_value(value))

    def exclude_category_value(self, value: Optional[str]) -> bool:
        return self._add(self._filters[CATEGORY].exclude_value(value))

    def exclude_rating_value(self, value: Optional[str]) -> bool:
        return self._add(self._filters[RATING].exclude_value(value))

    def get_result(self) -> Optional[str]:
        """
        Bind-ready predicate, e.g. ``"category = ? AND rating = ?"``.

        Returns:
            None when no clause was added
        """
        if not self._clauses:
            return None
        return " AND ".join(clause.sql for clause in self._clauses)

    @property
    def params(self) -> Tuple[Any, ...]:
        """Bound values, in clause order."""
        return tuple(p for clause in self._clauses for p in clause.params)

    @property
    def clauses(self) -> Tuple[FilterClause, ...]:
        return tuple(self._clauses)

    def inline(self) -> str:
        """Predicate with literals inlined; for logging only."""
        return " AND ".join(str(clause) for clause in self._clauses)

    def __bool__(self) -> bool:
        return bool(self._clauses)

    def _add(self, clause: Optional[FilterClause]) -> bool:
        if clause is None:
            return False
        self._clauses.append(clause)
        return True


class FilterFactory:
    """Builds filters for film categories and ratings from the catalog."""

    def __init__(self, engine, max_age: Optional[float] = None):
        """
        Args:
            engine: QueryEngine used to pull the legal values
            max_age: Seconds before the snapshot is reloaded on next use.
                None keeps it until refresh() is called.
        """
        self._engine = engine
        self._max_age = max_age
        self._filters: Dict[str, OptionFilter] = {}
        self._loaded_at: Optional[float] = None
        self._lock = asyncio.Lock()

    @property
    def loaded(self) -> bool:
        return self._loaded_at is not None

    @property
    def loaded_at(self) -> Optional[float]:
        """Unix time of the last successful load."""
        return self._loaded_at

    def is_stale(self) -> bool:
        if not self.loaded:
            return True
        if self._max_age is None:
            return False
        return time.time() - self._loaded_at >= self._max_age

    async def load(self):
        """Load category and rating options from the database."""
        async with self._lock:
            await self._load_locked()

    async def refresh(self):
        """Reload the snapshot regardless of its age."""
        logger.info("Refreshing filter snapshot")
        await self.load()

    async def ensure_fresh(self) -> bool:
        """
        Load the snapshot if it was never loaded or has outlived max_age.

        Callers arriving while another reload is in flight wait for it and
        then reuse its result.

        Returns:
            True if this call reloaded the snapshot
        """
        if not self.is_stale():
            return False

        async with self._lock:
            if not self.is_stale():
                return False
            await self._load_locked()
        return True

    async def _load_locked(self):
        category_filter = await self._build_category_filter()
        rating_filter = await self._build_rating_filter()

        self._filters = {CATEGORY: category_filter, RATING: rating_filter}
        self._loaded_at = time.time()

        logger.info(
            f"Filter snapshot loaded: {len(category_filter)} categories, "
            f"{len(rating_filter)} ratings"
        )

    def options(self, dimension: str) -> Tuple[FilterOption, ...]:
        """Current legal values for ``dimension`` ("category" or "rating")."""
        self._require_loaded()
        return self._filters[dimension].options

    def new_fragment(self) -> FilterFragment:
        """Start an empty fragment bound to the current snapshot."""
        self._require_loaded()
        return FilterFragment(self._filters)

    def build(self, category: Optional[str] = None, rating: Optional[str] = None) -> FilterFragment:
        """Fragment including ``category`` and ``rating``; unknown values are skipped."""
        fragment = self.new_fragment()
        fragment.include_category_value(category)
        fragment.include_rating_value(rating)
        return fragment

    def _require_loaded(self):
        if not self.loaded:
            raise RuntimeError("Filter snapshot not loaded. Call load() first.")

    async def _build_category_filter(self) -> OptionFilter:
        rows = await self._engine.query_all_category_values()
        options = [FilterOption(id=row["category_id"], value=row["name"]) for row in rows]
        return OptionFilter(CATEGORY, options)

    async def _build_rating_filter(self) -> OptionFilter:
        rows = await self._engine.query_all_rating_values()
        # ratings have no id column; number them in load order
        values = [row["rating"] for row in rows if row["rating"] is not None]
        options = [FilterOption(id=i, value=value) for i, value in enumerate(values, start=1)]
        return OptionFilter(RATING, options)
