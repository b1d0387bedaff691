"""
CSV reader for Sakila table exports.
"""
import pandas as pd
from pathlib import Path
from typing import Dict
from logging_config.logger import get_logger

logger = get_logger(__name__)

# Columns each export must provide; anything else is optional
REQUIRED_COLUMNS = {
    "language": ["language_id", "name"],
    "category": ["category_id", "name"],
    "actor": ["actor_id", "first_name", "last_name"],
    "film": ["film_id", "title", "language_id", "rating"],
    "film_category": ["film_id", "category_id"],
    "film_actor": ["actor_id", "film_id"],
}


class SakilaReader:
    """Read and validate Sakila CSV exports (one file per table)."""

    def __init__(self, csv_dir: Path):
        """
        Args:
            csv_dir: Directory holding language.csv, category.csv, actor.csv,
                film.csv, film_category.csv and film_actor.csv
        """
        self.csv_dir = Path(csv_dir)

        missing = [t for t in REQUIRED_COLUMNS if not self.table_path(t).exists()]
        if missing:
            raise FileNotFoundError(
                f"Missing Sakila CSV files in {self.csv_dir}: "
                + ", ".join(f"{t}.csv" for t in missing)
            )

        logger.info(f"Initialized Sakila reader: {self.csv_dir}")

    def table_path(self, table: str) -> Path:
        return self.csv_dir / f"{table}.csv"

    def read_table(self, table: str) -> pd.DataFrame:
        """
        Read one table export.

        Raises:
            ValueError: If required columns are missing
        """
        path = self.table_path(table)
        logger.info(f"Reading {table} from: {path}")

        try:
            df = pd.read_csv(path, keep_default_na=False, na_values=[""])
        except Exception as e:
            logger.error(f"Failed to read {table} CSV: {str(e)}")
            raise

        missing = [c for c in REQUIRED_COLUMNS[table] if c not in df.columns]
        if missing:
            raise ValueError(f"{table}.csv missing columns: {missing}")

        logger.info(f"Loaded {len(df)} {table} rows")
        logger.debug(f"Columns: {list(df.columns)}")
        return df

    def read_all(self) -> Dict[str, pd.DataFrame]:
        """Read every table export, keyed by table name."""
        tables = {table: self.read_table(table) for table in REQUIRED_COLUMNS}
        logger.info("Successfully loaded all Sakila tables")
        return tables

    def validate_datasets(self, tables: Dict[str, pd.DataFrame]) -> bool:
        """
        Check that the exports reference each other consistently.

        Dangling references are logged; a film table with no rows or film ids
        that reference an unknown language raise ValueError.
        """
        film_ids = set(tables["film"]["film_id"].dropna())
        if not film_ids:
            raise ValueError("film.csv has no rows")

        language_ids = set(tables["language"]["language_id"].dropna())
        unknown_languages = set(tables["film"]["language_id"].dropna()) - language_ids
        if unknown_languages:
            raise ValueError(f"Films reference unknown language ids: {sorted(unknown_languages)}")

        checks = [
            ("film_category", "film_id", film_ids),
            ("film_category", "category_id", set(tables["category"]["category_id"].dropna())),
            ("film_actor", "film_id", film_ids),
            ("film_actor", "actor_id", set(tables["actor"]["actor_id"].dropna())),
        ]
        for table, column, known in checks:
            dangling = set(tables[table][column].dropna()) - known
            if dangling:
                logger.warning(f"{table}.{column}: {len(dangling)} ids with no parent row")

        logger.info(f"Films: {len(film_ids)}")
        logger.info("Dataset validation passed")
        return True
