"""
QueryEngine tests against a seeded SQLite catalog.

Result sets are compared as unordered collections: the list query has no ORDER BY.

Run:
    pytest tests/test_query_engine.py -v
"""

import pytest
import aiosqlite
from unittest.mock import AsyncMock, MagicMock, patch

from catalog.exceptions import BackendUnavailableError
from catalog.query_engine import (
    MOVIES_SQL,
    QueryEngine,
    assemble_statement,
    escape_like,
    parse_film_id,
)


def as_set(rows, key="FID"):
    """Rows as an order-free set of ids."""
    return {row[key] for row in rows}


# ============================================================================
# STATEMENT ASSEMBLY
# ============================================================================

class TestAssembleStatement:
    """Test WHERE clause assembly."""

    def test_no_clauses_returns_base(self):
        assert assemble_statement("SELECT 1") == "SELECT 1"
        assert assemble_statement("SELECT 1", []) == "SELECT 1"

    def test_single_clause(self):
        assert assemble_statement("SELECT 1", ["a = ?"]) == "SELECT 1 WHERE a = ?"

    def test_clause_order_preserved(self):
        sql = assemble_statement("SELECT 1", ["b = ?", "a = ?", "c = ?"])
        assert sql == "SELECT 1 WHERE b = ? AND a = ? AND c = ?"


class TestHelpers:
    """Test id parsing and LIKE escaping."""

    @pytest.mark.parametrize("value, expected", [
        (1, 1), ("11", 11), (" 7 ", 7), (None, None), ("", None),
        ("notanid", None), ("1.5", None), (True, None), ("1_1", None), ("+12", 12),
        ("99999999999999999999", None), (10 ** 20, None), (-2 ** 63 - 1, None),
        (2 ** 63 - 1, 2 ** 63 - 1), ("-9223372036854775808", -2 ** 63),
    ])
    def test_parse_film_id(self, value, expected):
        assert parse_film_id(value) == expected

    def test_escape_like(self):
        assert escape_like("100%_x\\") == "100\\%\\_x\\\\"


class TestBuildMoviesStatement:
    """Test the rendered movie list statement."""

    async def test_no_filters(self, engine):
        sql, params = engine.build_movies_statement()
        assert sql == MOVIES_SQL
        assert params == []

    async def test_title_clause_before_filter_clause(self, engine):
        sql, params = engine.build_movies_statement("BROTHER", "documentary", "r")
        assert sql == (
            MOVIES_SQL
            + " WHERE title LIKE ? ESCAPE '\\' AND category = ? AND rating = ?"
        )
        assert params == ["%BROTHER%", "Documentary", "R"]

    async def test_unknown_filters_add_no_clause(self, engine):
        sql, params = engine.build_movies_statement(None, "bad", "worse")
        assert sql == MOVIES_SQL
        assert params == []

    async def test_raw_input_never_reaches_sql(self, engine):
        sql, params = engine.build_movies_statement("x' OR 1=1 --", "Action' OR '1'='1", None)
        assert sql == MOVIES_SQL + " WHERE title LIKE ? ESCAPE '\\'"
        assert params == ["%x' OR 1=1 --%"]


# ============================================================================
# MOVIE LIST / SEARCH
# ============================================================================

class TestQueryMovies:
    """Test queryMovies behaviour over the seed data."""

    async def test_all_parameters(self, engine):
        rows = await engine.query_movies("BROTHER", "Documentary", "r")
        assert rows == [{"FID": 101, "title": "BROTHERHOOD BLANKET",
                         "category": "Documentary", "rating": "R"}]

    async def test_no_parameters_lists_everything(self, engine):
        rows = await engine.query_movies(None, None, None)
        assert as_set(rows) == {1, 2, 3, 4, 5, 11, 101, 160}

    async def test_changing_title_changes_results(self, engine):
        brother = await engine.query_movies("BROTHER", "Documentary", "r")
        hi = await engine.query_movies("HI", "Documentary", "r")
        assert as_set(brother) != as_set(hi)
        assert as_set(hi) == {160}

    async def test_changing_category_changes_results(self, engine):
        documentary = await engine.query_movies("BROTHER", "Documentary", "r")
        action = await engine.query_movies("BROTHER", "Action", "r")
        assert as_set(documentary) != as_set(action)

    async def test_changing_rating_changes_results(self, engine):
        rated_r = await engine.query_movies("BROTHER", "Documentary", "r")
        rated_pg = await engine.query_movies("BROTHER", "Documentary", "pg")
        assert as_set(rated_r) != as_set(rated_pg)

    async def test_bad_category_same_as_none(self, engine):
        expected = await engine.query_movies("BROTHER", None, "r")
        received = await engine.query_movies("BROTHER", "bad", "r")
        assert as_set(expected) == as_set(received) == {101}

    async def test_bad_rating_same_as_none(self, engine):
        expected = await engine.query_movies("BROTHER", "Documentary", None)
        received = await engine.query_movies("BROTHER", "Documentary", "bad")
        assert as_set(expected) == as_set(received) == {101}

    async def test_category_matching_is_case_insensitive(self, engine):
        lower = await engine.query_movies(None, "documentary", None)
        upper = await engine.query_movies(None, "DOCUMENTARY", None)
        assert as_set(lower) == as_set(upper) == {1, 3, 101, 160}

    async def test_worthless_title_search_returns_nothing(self, engine):
        assert await engine.query_movies("lj;lkjasdfkaefiheuin", None, None) == []

    async def test_title_only(self, engine):
        rows = await engine.query_movies("brother", None, None)
        assert as_set(rows) == {4, 101}

    async def test_filters_only(self, engine):
        rows = await engine.query_movies(None, "Action", "G")
        assert as_set(rows) == {11}

    async def test_like_wildcards_are_literal(self, engine):
        rows = await engine.query_movies("%", None, None)
        assert as_set(rows) == {5}


# ============================================================================
# DETAILS AND ACTORS
# ============================================================================

class TestQueryDetails:
    """Test queryDetailsByFilmID."""

    async def test_details_for_film(self, engine):
        rows = await engine.query_details_by_film_id(2)
        assert len(rows) == 1
        details = rows[0]
        assert details["title"] == "ACE GOLDFINGER"
        assert details["language"] == "Italian"
        assert details["original_language"] == "Japanese"
        assert details["special_features"] == "Trailers,Deleted Scenes"

    async def test_missing_original_language(self, engine):
        rows = await engine.query_details_by_film_id("1")
        assert rows[0]["language"] == "English"
        assert rows[0]["original_language"] is None

    async def test_details_change_with_film_id(self, engine):
        first = await engine.query_details_by_film_id(1)
        other = await engine.query_details_by_film_id(11)
        assert first != other

    async def test_unknown_film_id(self, engine):
        assert await engine.query_details_by_film_id(9999) == []

    async def test_invalid_film_id(self, engine):
        assert await engine.query_details_by_film_id("notanid") == []

    @pytest.mark.parametrize("film_id", ["99999999999999999999", 10 ** 20, -2 ** 64])
    async def test_out_of_range_film_id(self, engine, film_id):
        assert await engine.query_details_by_film_id(film_id) == []

    async def test_digit_group_underscore_is_not_an_id(self, engine):
        assert await engine.query_details_by_film_id("1_1") == []

    async def test_null_film_id_issues_no_query(self, engine):
        with patch.object(engine, "_query", new_callable=AsyncMock) as mock_query:
            assert await engine.query_details_by_film_id(None) == []
            mock_query.assert_not_awaited()


class TestQueryActors:
    """Test queryActorsByFilmID."""

    async def test_actors_for_film(self, engine):
        rows = await engine.query_actors_by_film_id(1)
        assert as_set(rows, "actor_id") == {1, 10, 20}
        assert all(row["film_id"] == 1 for row in rows)
        assert set(rows[0]) == {"film_id", "actor_id", "first_name", "last_name"}

    async def test_actors_change_with_film_id(self, engine):
        first = await engine.query_actors_by_film_id(1)
        other = await engine.query_actors_by_film_id(11)
        assert as_set(first, "actor_id").isdisjoint(as_set(other, "actor_id"))

    async def test_film_without_actors(self, engine):
        assert await engine.query_actors_by_film_id(3) == []

    async def test_invalid_film_id(self, engine):
        assert await engine.query_actors_by_film_id("notanid") == []

    @pytest.mark.parametrize("film_id", ["99999999999999999999", 10 ** 20, -2 ** 64])
    async def test_out_of_range_film_id(self, engine, film_id):
        assert await engine.query_actors_by_film_id(film_id) == []

    async def test_digit_group_underscore_is_not_an_id(self, engine):
        assert await engine.query_actors_by_film_id("1_1") == []

    async def test_null_film_id_issues_no_query(self, engine):
        with patch.object(engine, "_query", new_callable=AsyncMock) as mock_query:
            assert await engine.query_actors_by_film_id(None) == []
            mock_query.assert_not_awaited()


# ============================================================================
# WHITELISTS AND FAILURES
# ============================================================================

class TestWhitelistQueries:
    """Test the whitelist loaders."""

    async def test_category_values(self, engine):
        rows = await engine.query_all_category_values()
        assert {row["name"] for row in rows} == {"Action", "Comedy", "Documentary", "Drama"}

    async def test_rating_values_distinct(self, engine):
        rows = await engine.query_all_rating_values()
        ratings = [row["rating"] for row in rows]
        assert sorted(ratings) == ["G", "NC-17", "PG", "PG-13", "R"]


class TestBackendFailure:
    """Database failures surface as BackendUnavailableError."""

    async def test_operational_error_is_wrapped(self, engine):
        broken = MagicMock()
        broken.execute.side_effect = aiosqlite.OperationalError("unable to open database file")
        engine._db = broken

        with pytest.raises(BackendUnavailableError) as exc_info:
            await engine.query_movies("BROTHER", None, None)
        assert "unable to open database file" in str(exc_info.value)

    async def test_closed_connection(self, engine, db):
        await db.close()
        with pytest.raises(BackendUnavailableError):
            await engine.query_actors_by_film_id(1)

    async def test_ping(self, engine):
        assert await engine.ping() is True

    async def test_create_fails_when_schema_missing(self, tmp_path):
        connection = await aiosqlite.connect(str(tmp_path / "empty.db"))
        connection.row_factory = aiosqlite.Row
        try:
            with pytest.raises(BackendUnavailableError):
                await QueryEngine.create(connection)
        finally:
            await connection.close()
