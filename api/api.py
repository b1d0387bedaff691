"""
FastAPI REST API for the Sakila movie catalog.

Read-only endpoints for listing/searching movies, fetching a movie's details
and its actors, plus inspection and refresh of the category/rating filters.
"""

import uvicorn
from fastapi import FastAPI, HTTPException, Query, status
from pydantic import BaseModel, Field
from typing import Any, Awaitable, Callable, Dict, List, Optional
from contextlib import asynccontextmanager
import redis.asyncio as redis

from api.db_sqlite import init_db, close_db
from api.cache_redis import (
    init_redis,
    close_redis,
    cache_get_rows,
    cache_set_rows,
    cache_invalidate_prefix,
    CacheKeyPrefix,
)
from api.metrics import setup_metrics, update_service_health, update_filter_options
from catalog.exceptions import BackendUnavailableError
from catalog.filter_factory import CATEGORY, RATING
from catalog.query_engine import QueryEngine
from config.settings import API_CONFIG, CACHE_CONFIG, FILTER_CONFIG
from logging_config.logger import get_logger

logger = get_logger(__name__)

# Global state managed via lifespan
query_engine: Optional[QueryEngine] = None
redis_client: Optional[redis.Redis] = None


# Pydantic models for responses

class MovieSummary(BaseModel):
    """One row of the movie list."""
    FID: int = Field(..., description="Film identifier")
    title: str = Field(..., description="Film title")
    category: Optional[str] = Field(None, description="Film category")
    rating: Optional[str] = Field(None, description="MPAA rating")


class MovieDetails(BaseModel):
    """Full record for a single film."""
    film_id: int
    title: str
    release_year: Optional[int] = None
    language: Optional[str] = None
    original_language: Optional[str] = None
    rental_duration: Optional[int] = None
    rental_rate: Optional[float] = None
    length: Optional[int] = None
    replacement_cost: Optional[float] = None
    rating: Optional[str] = None
    special_features: Optional[str] = None
    last_update: Optional[str] = None
    description: Optional[str] = None


class ActorCredit(BaseModel):
    """An actor credited in a film."""
    film_id: int = Field(..., description="Film identifier")
    actor_id: Optional[int] = Field(None, description="Actor identifier")
    first_name: Optional[str] = Field(None, description="Actor first name")
    last_name: Optional[str] = Field(None, description="Actor last name")


class FilterOptionModel(BaseModel):
    id: int
    value: str


class FilterSnapshotResponse(BaseModel):
    """Legal values for the category and rating filters."""
    category: List[FilterOptionModel] = Field(..., description="Known categories")
    rating: List[FilterOptionModel] = Field(..., description="Known ratings")
    loaded_at: Optional[float] = Field(None, description="Unix time the snapshot was loaded")


class HealthResponse(BaseModel):
    """Response model for health check endpoint."""
    status: str = Field(..., description="Service health status")
    database: str = Field(..., description="Database connection status")
    cache: str = Field(..., description="Redis cache status")
    filters: str = Field(..., description="Filter snapshot status")


# Application lifespan management

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Open the catalog, load the filter snapshot and connect the optional cache.
    """
    global query_engine, redis_client

    # Startup
    try:
        logger.info("Starting Movie Catalog API")

        connection = await init_db()
        query_engine = await QueryEngine.create(
            connection, snapshot_ttl=FILTER_CONFIG["snapshot_ttl"]
        )
        update_filter_options(_filter_counts(query_engine))
        logger.info("Query engine initialized")

    except Exception as e:
        logger.error(f"Failed to initialize application: {e}")
        raise

    if CACHE_CONFIG["enabled"]:
        try:
            redis_client = await init_redis()
            logger.info("Redis cache initialized")
        except redis.RedisError as e:
            logger.warning(f"Redis unavailable, serving without cache: {e}")
            redis_client = None

    logger.info("Application startup complete")

    yield

    # Shutdown
    try:
        logger.info("Shutting down Movie Catalog API")

        if redis_client:
            await close_redis(redis_client)
            redis_client = None

        await close_db()
        query_engine = None

        logger.info("Application shutdown complete")

    except Exception as e:
        logger.error(f"Error during shutdown: {e}")


# FastAPI app initialization

app = FastAPI(
    title=API_CONFIG["title"],
    description="Read-only REST API over the Sakila movie catalog.",
    version=API_CONFIG["version"],
    lifespan=lifespan,
)

setup_metrics(app)


# Helper functions

def _require_engine() -> QueryEngine:
    if query_engine is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Catalog not initialized"
        )
    return query_engine


def _backend_unavailable(error: BackendUnavailableError) -> HTTPException:
    logger.error(f"Catalog backend unavailable: {error}")
    update_service_health("database", False)
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail="Catalog database unavailable"
    )


def _filter_counts(engine: QueryEngine) -> Dict[str, int]:
    factory = engine.filter_factory
    return {dimension: len(factory.options(dimension)) for dimension in (CATEGORY, RATING)}


async def _filters_reloaded(engine: QueryEngine):
    """Publish the new snapshot size and drop movie lists built with the old one."""
    update_filter_options(_filter_counts(engine))
    if redis_client:
        await cache_invalidate_prefix(redis_client, CacheKeyPrefix.MOVIES)


def _snapshot(engine: QueryEngine) -> FilterSnapshotResponse:
    factory = engine.filter_factory
    return FilterSnapshotResponse(
        category=[FilterOptionModel(id=o.id, value=o.value) for o in factory.options(CATEGORY)],
        rating=[FilterOptionModel(id=o.id, value=o.value) for o in factory.options(RATING)],
        loaded_at=factory.loaded_at,
    )


async def cached_rows(
    prefix: CacheKeyPrefix,
    loader: Callable[[], Awaitable[List[Dict[str, Any]]]],
    **params
) -> List[Dict[str, Any]]:
    """
    Cache-aside read: return cached rows if present, otherwise load and cache.

    Runs the loader directly when the cache is disabled or unavailable.
    """
    if redis_client:
        rows = await cache_get_rows(redis_client, prefix, **params)
        if rows is not None:
            return rows

    rows = await loader()

    if redis_client:
        await cache_set_rows(redis_client, prefix, rows, **params)
    return rows


# API Endpoints

@app.get("/", response_model=dict)
async def root():
    """Root endpoint with API information."""
    return {
        "service": API_CONFIG["title"],
        "version": API_CONFIG["version"],
        "endpoints": {
            "health": "/health",
            "metrics": "/metrics",
            "movies": "/movies",
            "details": "/movies/details",
            "actors": "/actors",
            "filters": "/filters",
        }
    }


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """
    Health check with metrics tracking.

    Verifies the catalog answers queries and, when enabled, that Redis responds.
    """
    health_status = {
        "status": "healthy",
        "database": "unknown",
        "cache": "disabled",
        "filters": "not_loaded",
    }

    if query_engine is None:
        health_status["database"] = "not_initialized"
        health_status["status"] = "degraded"
        update_service_health("database", False)
    else:
        try:
            await query_engine.ping()
            health_status["database"] = "connected"
            update_service_health("database", True)
        except BackendUnavailableError as e:
            logger.error(f"Database health check failed: {e}")
            health_status["database"] = "error"
            health_status["status"] = "degraded"
            update_service_health("database", False)

        factory = query_engine.filter_factory
        if factory.loaded:
            health_status["filters"] = "stale" if factory.is_stale() else "loaded"

    if CACHE_CONFIG["enabled"]:
        try:
            if redis_client:
                await redis_client.ping()  # type: ignore
                health_status["cache"] = "connected"
                update_service_health("cache", True)
            else:
                health_status["cache"] = "not_initialized"
                health_status["status"] = "degraded"
                update_service_health("cache", False)
        except redis.RedisError as e:
            logger.error(f"Redis health check failed: {e}")
            health_status["cache"] = "error"
            health_status["status"] = "degraded"
            update_service_health("cache", False)

    return health_status


@app.get("/movies", response_model=List[MovieSummary])
async def list_movies(
    title: Optional[str] = Query(None, description="Substring to search for in titles"),
    category: Optional[str] = Query(None, description="Category to include (case-insensitive)"),
    rating: Optional[str] = Query(None, description="Rating to include (case-insensitive)"),
):
    """
    List movies, optionally searched by title and filtered by category and rating.

    Unknown category or rating values are ignored rather than rejected.
    """
    engine = _require_engine()
    logger.info(f"Movie list request: title={title!r}, category={category!r}, rating={rating!r}")

    try:
        # An expired snapshot is reloaded, and cached lists dropped, before any lookup
        if (category or rating) and await engine.filter_factory.ensure_fresh():
            await _filters_reloaded(engine)

        return await cached_rows(
            CacheKeyPrefix.MOVIES,
            lambda: engine.query_movies(title, category, rating),
            title=title, category=category, rating=rating,
        )
    except BackendUnavailableError as e:
        raise _backend_unavailable(e)


@app.get("/movies/details", response_model=List[MovieDetails])
async def movie_details(
    film_id: Optional[str] = Query(None, description="Film identifier"),
):
    """
    Details for a single movie.

    Returns an empty list when film_id is missing, not a number, or unknown.
    """
    engine = _require_engine()
    if not film_id:
        return []

    try:
        return await cached_rows(
            CacheKeyPrefix.DETAILS,
            lambda: engine.query_details_by_film_id(film_id),
            film_id=film_id,
        )
    except BackendUnavailableError as e:
        raise _backend_unavailable(e)


@app.get("/actors", response_model=List[ActorCredit])
async def movie_actors(
    film_id: Optional[str] = Query(None, description="Film identifier"),
):
    """
    Actors credited in a single movie.

    Returns an empty list when film_id is missing, not a number, or unknown.
    """
    engine = _require_engine()
    if not film_id:
        return []

    try:
        return await cached_rows(
            CacheKeyPrefix.ACTORS,
            lambda: engine.query_actors_by_film_id(film_id),
            film_id=film_id,
        )
    except BackendUnavailableError as e:
        raise _backend_unavailable(e)


@app.get("/filters", response_model=FilterSnapshotResponse)
async def get_filters():
    """Legal category and rating values currently used to validate filters."""
    return _snapshot(_require_engine())


@app.post("/filters/refresh", response_model=FilterSnapshotResponse)
async def refresh_filters():
    """
    Reload category and rating values from the catalog.

    Cached movie lists are dropped since they were built with the old snapshot.
    """
    engine = _require_engine()

    try:
        await engine.filter_factory.refresh()
    except BackendUnavailableError as e:
        raise _backend_unavailable(e)

    await _filters_reloaded(engine)
    return _snapshot(engine)


if __name__ == "__main__":
    uvicorn.run("api.api:app", host=API_CONFIG["host"], port=API_CONFIG["port"], reload=True)
