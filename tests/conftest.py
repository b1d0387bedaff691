"""
Shared fixtures: a small seeded Sakila catalog in a temporary SQLite file.
"""

import copy
import pytest
import aiosqlite

from sql_db.sql_builder import SakilaCatalogDB
from catalog.query_engine import QueryEngine


SEED = {
    "language": [
        {"language_id": 1, "name": "English"},
        {"language_id": 2, "name": "Italian"},
        {"language_id": 3, "name": "Japanese"},
    ],
    "category": [
        {"category_id": 1, "name": "Action"},
        {"category_id": 5, "name": "Comedy"},
        {"category_id": 6, "name": "Documentary"},
        {"category_id": 7, "name": "Drama"},
    ],
    "actor": [
        {"actor_id": 1, "first_name": "PENELOPE", "last_name": "GUINESS"},
        {"actor_id": 10, "first_name": "CHRISTIAN", "last_name": "GABLE"},
        {"actor_id": 20, "first_name": "LUCILLE", "last_name": "TRACY"},
        {"actor_id": 30, "first_name": "SANDRA", "last_name": "PECK"},
        {"actor_id": 40, "first_name": "JOHNNY", "last_name": "CAGE"},
    ],
    "film": [
        {"film_id": 1, "title": "ACADEMY DINOSAUR", "description": "An Epic Drama of a Feminist",
         "release_year": 2006, "language_id": 1, "rental_duration": 6, "rental_rate": 0.99,
         "length": 86, "replacement_cost": 20.99, "rating": "PG",
         "special_features": "Deleted Scenes,Behind the Scenes"},
        {"film_id": 2, "title": "ACE GOLDFINGER", "description": "An Astounding Epistle",
         "release_year": 2006, "language_id": 2, "original_language_id": 3,
         "rental_duration": 3, "rental_rate": 4.99, "length": 48, "replacement_cost": 12.99,
         "rating": "G", "special_features": "Trailers,Deleted Scenes"},
        {"film_id": 3, "title": "ADAPTATION HOLES", "release_year": 2006, "language_id": 1,
         "rental_duration": 7, "rental_rate": 2.99, "length": 50, "replacement_cost": 18.99,
         "rating": "NC-17"},
        {"film_id": 4, "title": "BROTHER RIVALS", "release_year": 2006, "language_id": 1,
         "rental_duration": 4, "rental_rate": 2.99, "length": 120, "replacement_cost": 22.99,
         "rating": "PG-13"},
        {"film_id": 5, "title": "100% LOVE", "release_year": 2006, "language_id": 1,
         "rental_duration": 3, "rental_rate": 0.99, "length": 95, "replacement_cost": 9.99,
         "rating": "PG"},
        {"film_id": 11, "title": "ALAMO VIDEOTAPE", "release_year": 2006, "language_id": 1,
         "rental_duration": 6, "rental_rate": 0.99, "length": 126, "replacement_cost": 16.99,
         "rating": "G"},
        {"film_id": 101, "title": "BROTHERHOOD BLANKET", "release_year": 2006, "language_id": 1,
         "rental_duration": 3, "rental_rate": 0.99, "length": 73, "replacement_cost": 26.99,
         "rating": "R"},
        {"film_id": 160, "title": "CHILL LUCK", "release_year": 2006, "language_id": 1,
         "rental_duration": 6, "rental_rate": 0.99, "length": 142, "replacement_cost": 17.99,
         "rating": "R"},
    ],
    "film_category": [
        {"film_id": 1, "category_id": 6},
        {"film_id": 2, "category_id": 5},
        {"film_id": 3, "category_id": 6},
        {"film_id": 4, "category_id": 1},
        {"film_id": 5, "category_id": 5},
        {"film_id": 11, "category_id": 1},
        {"film_id": 101, "category_id": 6},
        {"film_id": 160, "category_id": 6},
    ],
    "film_actor": [
        {"actor_id": 1, "film_id": 1},
        {"actor_id": 10, "film_id": 1},
        {"actor_id": 20, "film_id": 1},
        {"actor_id": 30, "film_id": 11},
        {"actor_id": 40, "film_id": 11},
        {"actor_id": 1, "film_id": 101},
    ],
}


def build_catalog(db_path, seed=SEED):
    """Create the catalog schema at db_path and insert the seed rows."""
    with SakilaCatalogDB(db_path) as db:
        db.create_schema()
        for table, records in seed.items():
            db.bulk_insert(table, records)
    return db_path


@pytest.fixture
def catalog_path(tmp_path):
    """Seeded catalog database file."""
    return build_catalog(tmp_path / "sakila.db")


@pytest.fixture
async def db(catalog_path):
    """Open aiosqlite connection to the seeded catalog."""
    connection = await aiosqlite.connect(str(catalog_path))
    connection.row_factory = aiosqlite.Row
    yield connection
    await connection.close()


@pytest.fixture
async def engine(db):
    """QueryEngine with its filter snapshot loaded."""
    return await QueryEngine.create(db)


@pytest.fixture
def seed():
    """Private copy of the seed tables, safe to mutate."""
    return copy.deepcopy(SEED)
