"""
Clean Sakila CSV values before they are written to SQLite.
"""
import pandas as pd
from typing import List, Dict, Any, Optional
from logging_config.logger import get_logger
from sql_db.sql_builder import VALID_RATINGS

logger = get_logger(__name__)

INTEGER_COLUMNS = {
    "language_id", "category_id", "actor_id", "film_id", "release_year",
    "original_language_id", "rental_duration", "length",
}


class DataProcessor:
    """Normalize values read from CSV exports."""

    @staticmethod
    def clean_value(value: Any) -> Any:
        """
        Convert pandas/numpy scalars to plain Python values.

        NaN, NaT and empty strings become None.
        """
        if value is None:
            return None
        if isinstance(value, str):
            value = value.strip()
            return value or None
        try:
            if pd.isna(value):
                return None
        except (TypeError, ValueError):
            return value
        # numpy scalars
        if hasattr(value, "item"):
            return value.item()
        return value

    @staticmethod
    def parse_int(value: Any) -> Optional[int]:
        """Integer value, or None if missing or not numeric."""
        value = DataProcessor.clean_value(value)
        if value is None:
            return None
        try:
            return int(float(value))
        except (TypeError, ValueError):
            logger.warning(f"Not an integer: {value!r}")
            return None

    @staticmethod
    def normalize_rating(value: Any) -> Optional[str]:
        """
        Canonical MPAA rating ("pg-13 " -> "PG-13").

        Returns:
            None for missing or unrecognized ratings
        """
        value = DataProcessor.clean_value(value)
        if value is None:
            return None
        rating = str(value).upper()
        if rating not in VALID_RATINGS:
            logger.warning(f"Unknown rating dropped: {value!r}")
            return None
        return rating

    @staticmethod
    def normalize_special_features(value: Any) -> Optional[str]:
        """
        Special features as a comma separated string.

        Accepts MySQL SET exports ("Trailers,Deleted Scenes") and
        Postgres array exports ("{Trailers,\"Deleted Scenes\"}").
        """
        value = DataProcessor.clean_value(value)
        if value is None:
            return None
        text = str(value).strip("{}")
        features = [f.strip().strip('"') for f in text.split(",")]
        features = [f for f in features if f]
        return ",".join(features) or None

    def to_records(self, df: pd.DataFrame, columns: List[str]) -> List[Dict[str, Any]]:
        """
        Convert a DataFrame into insert-ready dicts.

        Args:
            df: Table as read from CSV
            columns: Target columns; those missing from df become None

        Returns:
            One dict per row
        """
        records = []
        for row in df.to_dict(orient="records"):
            record = {}
            for column in columns:
                raw = row.get(column)
                if column in INTEGER_COLUMNS:
                    record[column] = self.parse_int(raw)
                elif column == "rating":
                    record[column] = self.normalize_rating(raw)
                elif column == "special_features":
                    record[column] = self.normalize_special_features(raw)
                else:
                    record[column] = self.clean_value(raw)
            records.append(record)
        return records
