"""
Whitelist-backed filter for a single catalog column.

An OptionFilter knows every legal value of one column (loaded from the database)
and turns free-text user input into a clause that only ever carries the stored,
canonical value. Input that matches nothing produces no clause at all.
"""
import re
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple
from logging_config.logger import get_logger

logger = get_logger(__name__)

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


@dataclass(frozen=True)
class FilterOption:
    """One legal value of a filterable column."""
    id: int
    value: str


@dataclass(frozen=True)
class FilterClause:
    """
    A validated single-column predicate.

    ``sql``/``params`` are what gets executed; ``str(clause)`` renders the value
    inline (``category='Documentary'``) and is only used for log output.
    """
    label: str
    operator: str
    value: str

    @property
    def sql(self) -> str:
        return f"{self.label} {self.operator} ?"

    @property
    def params(self) -> Tuple[str]:
        return (self.value,)

    def __str__(self) -> str:
        escaped = self.value.replace("'", "''")
        return f"{self.label}{self.operator}'{escaped}'"


class OptionFilter:
    """Option based filter validating input against a fixed list of known values."""

    def __init__(self, label: str, options: Sequence[FilterOption]):
        """
        Args:
            label: Column (or view alias) the clause filters. Must match the SQL name.
            options: Known values, in source order
        """
        if not _IDENTIFIER.match(label or ""):
            raise ValueError(f"Filter label must be a plain SQL identifier: {label!r}")

        self.label = label
        self.options: Tuple[FilterOption, ...] = tuple(options)

        if not self.options:
            logger.warning(f"Filter '{label}' has no options; every value will be ignored")

    def __len__(self) -> int:
        return len(self.options)

    def include_value(self, value: Optional[str]) -> Optional[FilterClause]:
        """Build an equality clause for ``value``, or None if it is not a known option."""
        return self._clause(value, "=")

    def exclude_value(self, value: Optional[str]) -> Optional[FilterClause]:
        """Build an inequality clause for ``value``, or None if it is not a known option."""
        return self._clause(value, "<>")

    def find_option(self, value: Optional[str]) -> Optional[FilterOption]:
        """
        Case-insensitive exact match on option value.

        Linear scan; the first option in source order wins when several
        values fold to the same text.
        """
        if not value:
            return None

        folded = value.lower()
        for option in self.options:
            if option.value.lower() == folded:
                return option
        return None

    def find_option_by_id(self, option_id: int) -> Optional[FilterOption]:
        """Look up an option by its id."""
        for option in self.options:
            if option.id == option_id:
                return option
        return None

    def _clause(self, value: Optional[str], operator: str) -> Optional[FilterClause]:
        option = self.find_option(value)
        if option is None:
            if value:
                logger.debug(f"Ignoring unknown {self.label} value: {value!r}")
            return None
        return FilterClause(self.label, operator, option.value)
