### Description ###
# CRM Gateway - Multi-tenant External API
# - Query Translator -
# Date: 10/17/2026
# Python: 3.11
####################

"""
Query Translator

Turns a /v1 query string into a normalized query description:

    ?limit=20&cursor=2026-01-05T10:00:00&name_like=ana&include=cards

- limit: clamped to [1, 100]; missing, zero or non-numeric -> 50
- cursor: created_at of the last row of the previous page
- <column>_gte / _lte / _like: range and case-insensitive substring filters
- custom_fields.<name>: equality on a key of the custom_fields JSON column
- anything else: equality on the literal column name
- include: comma-separated relations to expand

Column names are not checked here; the resource handler validates them
against the table.
"""

from dataclasses import dataclass, field
from typing import Iterable, Optional

RESERVED_PARAMS = frozenset({"limit", "cursor", "include"})
DEFAULT_LIMIT = 50
MAX_LIMIT = 100
CUSTOM_FIELDS_PREFIX = "custom_fields."

# Suffix -> operator, checked in this order
OPERATOR_SUFFIXES = (
    ("_gte", "gte"),
    ("_lte", "lte"),
    ("_like", "like"),
)


@dataclass(frozen=True)
class Filter:
    """A single caller filter"""

    column: str
    operator: str  # eq | gte | lte | like
    value: str
    json_key: Optional[str] = None  # set for custom_fields.<name>


@dataclass(frozen=True)
class Pagination:
    limit: int = DEFAULT_LIMIT
    cursor: Optional[str] = None


@dataclass(frozen=True)
class TranslatedQuery:
    pagination: Pagination = field(default_factory=Pagination)
    filters: tuple[Filter, ...] = ()
    includes: tuple[str, ...] = ()


def parse_limit(raw: Optional[str]) -> int:
    """Clamp limit to [1, MAX_LIMIT], falling back to the default"""
    try:
        limit = int(raw) if raw is not None else DEFAULT_LIMIT
    except ValueError:
        return DEFAULT_LIMIT
    if limit < 1:
        return DEFAULT_LIMIT
    return min(limit, MAX_LIMIT)


def parse_includes(raw: Optional[str]) -> tuple[str, ...]:
    """Split include=a,b into ("a", "b"), dropping blanks and duplicates"""
    if not raw:
        return ()
    names = []
    for part in raw.split(","):
        name = part.strip()
        if name and name not in names:
            names.append(name)
    return tuple(names)


def parse_filter(key: str, value: str) -> Filter:
    """Translate one non-reserved query parameter into a Filter"""
    if key.startswith(CUSTOM_FIELDS_PREFIX):
        return Filter(
            column="custom_fields",
            operator="eq",
            value=value,
            json_key=key[len(CUSTOM_FIELDS_PREFIX):],
        )

    for suffix, operator in OPERATOR_SUFFIXES:
        if key.endswith(suffix) and len(key) > len(suffix):
            return Filter(column=key[: -len(suffix)], operator=operator, value=value)

    return Filter(column=key, operator="eq", value=value)


def parse_query(params: Iterable[tuple[str, str]]) -> TranslatedQuery:
    """
    Parse query parameters into a TranslatedQuery.

    Args:
        params: (key, value) pairs, e.g. request.query_params.multi_items()

    Repeated filter keys keep the last value.
    """
    reserved: dict[str, str] = {}
    filters: dict[str, Filter] = {}

    for key, value in params:
        if key in RESERVED_PARAMS:
            reserved[key] = value
        else:
            filters[key] = parse_filter(key, value)

    return TranslatedQuery(
        pagination=Pagination(
            limit=parse_limit(reserved.get("limit")),
            cursor=reserved.get("cursor") or None,
        ),
        filters=tuple(filters.values()),
        includes=parse_includes(reserved.get("include")),
    )
