"""
Script to build the catalog database from Sakila CSV exports.

Usage:
    python data_ingestion_scripts/run_sql_ingestion.py

    # Custom locations:
    SAKILA_CSV_DIR=/path/to/csv CATALOG_DB=/tmp/sakila.db python data_ingestion_scripts/run_sql_ingestion.py

    # With verbose logging:
    VERBOSE=true python data_ingestion_scripts/run_sql_ingestion.py
"""
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from sql_db.pipeline import main

if __name__ == "__main__":
    main()
