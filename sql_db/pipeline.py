"""
Catalog ingestion pipeline.

Reads Sakila CSV exports and builds the SQLite catalog served by the API.
"""
import pandas as pd
from pathlib import Path
from typing import Dict, Optional

from logging_config.logger import get_logger
from sql_db.csv_reader import SakilaReader
from sql_db.sql_builder import SakilaCatalogDB, TABLE_COLUMNS
from sql_db.data_processor import DataProcessor
from config.settings import SAKILA_CSV_DIR, CATALOG_DB

logger = get_logger(__name__)


class IngestionPipeline:
    """Main catalog ingestion pipeline."""

    def __init__(self, csv_dir: Optional[Path] = None, db_path: Optional[Path] = None):
        self.reader = SakilaReader(csv_dir or SAKILA_CSV_DIR)
        self.processor = DataProcessor()
        self.db_path = Path(db_path or CATALOG_DB)
        logger.info("Ingestion pipeline initialized")

    def run(self) -> Dict[str, int]:
        """
        Execute complete ingestion pipeline.

        Steps:
            1. Read CSV files
            2. Validate cross-table references
            3. Clean records
            4. Create schema and populate database

        Returns:
            Row count per table
        """
        logger.info("=" * 70)
        logger.info("STARTING CATALOG INGESTION PIPELINE")
        logger.info("=" * 70)

        logger.info("Step 1: Reading CSV files...")
        tables = self.reader.read_all()

        logger.info("Step 2: Validating datasets...")
        self.reader.validate_datasets(tables)

        logger.info("Step 3: Cleaning records...")
        tables = self.drop_dangling_links(tables)
        records = {
            table: self.processor.to_records(tables[table], columns)
            for table, columns in TABLE_COLUMNS.items()
        }

        logger.info("Step 4: Creating catalog database...")
        with SakilaCatalogDB(self.db_path) as db:
            db.create_schema()
            for table in TABLE_COLUMNS:
                db.bulk_insert(table, records[table])
            counts = db.verify_data()

        logger.info("=" * 70)
        logger.info("CATALOG INGESTION COMPLETE")
        logger.info(f"Database created at: {self.db_path}")
        logger.info("=" * 70)
        return counts

    @staticmethod
    def drop_dangling_links(tables: Dict[str, pd.DataFrame]) -> Dict[str, pd.DataFrame]:
        """
        Remove link rows whose film, category or actor does not exist.

        Foreign keys are enforced on insert, so these rows would abort the load.
        """
        film_ids = tables["film"]["film_id"]
        category_ids = tables["category"]["category_id"]
        actor_ids = tables["actor"]["actor_id"]

        cleaned = dict(tables)

        film_category = tables["film_category"]
        keep = film_category["film_id"].isin(film_ids) & film_category["category_id"].isin(category_ids)
        cleaned["film_category"] = film_category[keep]

        film_actor = tables["film_actor"]
        keep = film_actor["film_id"].isin(film_ids) & film_actor["actor_id"].isin(actor_ids)
        cleaned["film_actor"] = film_actor[keep]

        film = tables["film"]
        if "original_language_id" in film.columns:
            film = film.copy()
            unknown = ~film["original_language_id"].isin(tables["language"]["language_id"])
            film["original_language_id"] = film["original_language_id"].where(~unknown)
            cleaned["film"] = film

        dropped = (len(tables["film_category"]) - len(cleaned["film_category"])
                   + len(tables["film_actor"]) - len(cleaned["film_actor"]))
        if dropped:
            logger.warning(f"Dropped {dropped} link rows with no parent row")

        return cleaned


def main():
    """Main entry point for ingestion."""
    pipeline = IngestionPipeline()
    pipeline.run()


if __name__ == "__main__":
    main()
