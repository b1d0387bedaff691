"""
Application configuration settings.
"""
import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Base paths
PROJECT_ROOT = Path(__file__).parent.parent
DATA_DIR = PROJECT_ROOT / "data"
RAW_DATA_DIR = DATA_DIR / "raw"
PROCESSED_DATA_DIR = DATA_DIR / "processed"

# Ensure directories exist
RAW_DATA_DIR.mkdir(parents=True, exist_ok=True)
PROCESSED_DATA_DIR.mkdir(parents=True, exist_ok=True)

# Sakila CSV exports, one file per table
SAKILA_CSV_DIR = Path(os.getenv("SAKILA_CSV_DIR", RAW_DATA_DIR / "sakila"))

# Catalog database (read-only at runtime)
CATALOG_DB = Path(os.getenv("CATALOG_DB", PROCESSED_DATA_DIR / "sakila.db"))

# Logging configuration
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")  # INFO, DEBUG, WARNING, ERROR
VERBOSE = os.getenv("VERBOSE", "false").lower() == "true"
LOG_FORMAT = os.getenv("LOG_FORMAT", "%(asctime)s - %(name)s - %(levelname)s - %(message)s")
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

API_CONFIG = {
    "title": "Movie Catalog API",
    "version": "1.0.0",
    "host": os.getenv("API_HOST", "0.0.0.0"),
    "port": int(os.getenv("API_PORT", "8000")),
}

# Redis cache for query results (off unless CACHE_ENABLED=true)
CACHE_CONFIG = {
    "enabled": os.getenv("CACHE_ENABLED", "false").lower() == "true",
    "host": os.getenv("REDIS_HOST", "localhost"),
    "port": int(os.getenv("REDIS_PORT", "6379")),
    "max_connections": 10,
    "socket_connect_timeout": 5,
    "movies_ttl": 300,
    "details_ttl": 3600,
    "actors_ttl": 3600,
}

# Category/rating whitelist snapshot. snapshot_ttl in seconds; None keeps
# the snapshot until an explicit refresh.
_snapshot_ttl = os.getenv("FILTER_SNAPSHOT_TTL")
FILTER_CONFIG = {
    "snapshot_ttl": float(_snapshot_ttl) if _snapshot_ttl else None,
}
