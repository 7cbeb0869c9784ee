"""
Unit tests for query string translation.

Tests limit clamping, filter suffixes, custom field filters, and includes.
"""

import pytest

from gateway.services.query import (
    DEFAULT_LIMIT,
    MAX_LIMIT,
    Filter,
    parse_filter,
    parse_includes,
    parse_limit,
    parse_query,
)


class TestParseLimit:
    """Test parse_limit."""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            (None, DEFAULT_LIMIT),
            ("20", 20),
            ("1", 1),
            ("100", 100),
            ("500", MAX_LIMIT),
            ("0", DEFAULT_LIMIT),
            ("-5", DEFAULT_LIMIT),
            ("abc", DEFAULT_LIMIT),
            ("", DEFAULT_LIMIT),
        ],
    )
    def test_limit(self, raw, expected):
        """limit is clamped to [1, 100] with 50 as fallback."""
        assert parse_limit(raw) == expected


class TestParseFilter:
    """Test parse_filter."""

    def test_equality(self):
        """Plain keys are equality filters."""
        assert parse_filter("email", "a@b.com") == Filter("email", "eq", "a@b.com")

    def test_gte(self):
        assert parse_filter("created_at_gte", "2026-01-01") == Filter("created_at", "gte", "2026-01-01")

    def test_lte(self):
        assert parse_filter("stock_quantity_lte", "10") == Filter("stock_quantity", "lte", "10")

    def test_like(self):
        assert parse_filter("name_like", "ana") == Filter("name", "like", "ana")

    def test_custom_field(self):
        """custom_fields.<name> targets a JSON key."""
        assert parse_filter("custom_fields.cargo", "Gerente") == Filter(
            "custom_fields", "eq", "Gerente", json_key="cargo"
        )

    def test_custom_field_keeps_suffix_in_key(self):
        """Operator suffixes do not apply inside custom_fields."""
        assert parse_filter("custom_fields.score_gte", "5").json_key == "score_gte"

    def test_bare_suffix_is_a_column_name(self):
        """A key that is only a suffix is passed through as a column."""
        assert parse_filter("_like", "x") == Filter("_like", "eq", "x")


class TestParseIncludes:
    """Test parse_includes."""

    def test_empty(self):
        assert parse_includes(None) == ()
        assert parse_includes("") == ()

    def test_trims_and_dedupes(self):
        """Whitespace is trimmed, blanks and repeats dropped."""
        assert parse_includes(" cards, tasks ,,cards") == ("cards", "tasks")


class TestParseQuery:
    """Test parse_query."""

    def test_defaults(self):
        """No parameters means default pagination and no filters."""
        query = parse_query([])

        assert query.pagination.limit == DEFAULT_LIMIT
        assert query.pagination.cursor is None
        assert query.filters == ()
        assert query.includes == ()

    def test_reserved_parameters_are_not_filters(self):
        """limit, cursor and include never become filters."""
        query = parse_query(
            [
                ("limit", "20"),
                ("cursor", "2026-01-05T10:00:00"),
                ("include", "cards"),
                ("company", "Acme"),
            ]
        )

        assert query.pagination.limit == 20
        assert query.pagination.cursor == "2026-01-05T10:00:00"
        assert query.includes == ("cards",)
        assert query.filters == (Filter("company", "eq", "Acme"),)

    def test_repeated_key_keeps_last(self):
        """The last value of a repeated filter wins."""
        query = parse_query([("status", "pending"), ("status", "completed")])

        assert query.filters == (Filter("status", "eq", "completed"),)

    def test_range_on_same_column(self):
        """_gte and _lte on one column are separate filters."""
        query = parse_query([("price_gte", "10"), ("price_lte", "20")])

        assert query.filters == (
            Filter("price", "gte", "10"),
            Filter("price", "lte", "20"),
        )

    def test_empty_cursor_is_ignored(self):
        assert parse_query([("cursor", "")]).pagination.cursor is None
