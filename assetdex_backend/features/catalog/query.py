"""
Pagination and free-text/tag search over the catalog.

Search grammar: the query is split on whitespace. A token `tag:<text>` matches
assets whose tags contain `<text>`; every other token (including a bare `tag:`)
matches name, path, or tags. All tokens must match. Matching is literal,
case-insensitive (ASCII) substring matching.
"""
from __future__ import annotations

from dataclasses import dataclass, field

from ...config import SEARCH_MAX_QUERY_LENGTH, SEARCH_MAX_TOKENS
from ...path_utils import escape_like
from ...shared import ErrorCode, Result, get_logger
from .models import Page, total_pages
from .store import CatalogStore

logger = get_logger(__name__)

TAG_PREFIX = "tag:"
_GENERAL_CONDITION = "(name LIKE ? ESCAPE '\\' OR path LIKE ? ESCAPE '\\' OR tags LIKE ? ESCAPE '\\')"
_TAG_CONDITION = "tags LIKE ? ESCAPE '\\'"


@dataclass
class SearchTerms:
    general: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not self.general and not self.tags


def parse_search_query(query: str) -> SearchTerms:
    terms = SearchTerms()
    for token in str(query or "").split():
        if token.startswith(TAG_PREFIX) and len(token) > len(TAG_PREFIX):
            terms.tags.append(token[len(TAG_PREFIX):])
        else:
            terms.general.append(token)
    return terms


def build_search_predicate(terms: SearchTerms) -> tuple[str, list[str]]:
    """
    WHERE clause and bound parameters for `terms`.

    The SQL text is made of fixed fragments only; user text travels as parameters.
    """
    conditions: list[str] = []
    params: list[str] = []
    for term in terms.general:
        pattern = f"%{escape_like(term)}%"
        conditions.append(_GENERAL_CONDITION)
        params.extend([pattern, pattern, pattern])
    for tag in terms.tags:
        conditions.append(_TAG_CONDITION)
        params.append(f"%{escape_like(tag)}%")
    return " AND ".join(conditions), params


def page_window(page: int, page_size: int) -> tuple[int, int, int]:
    """(page_number, page_size, offset) with page clamped to >= 1."""
    number = max(1, int(page))
    size = max(1, int(page_size))
    return number, size, (number - 1) * size


class QueryEngine:
    """Read-side queries: plain pagination and search."""

    def __init__(self, store: CatalogStore):
        self._store = store

    def paginate(self, page: int, page_size: int) -> Result[Page]:
        """
        One page of the whole catalog.

        A store failure yields an empty page marked `degraded` instead of an error.
        """
        number, size, offset = page_window(page, page_size)
        count = self._store.count()
        items = self._store.list(offset, size)
        if not items.ok:
            logger.warning("Failed to load page %s: %s", number, items.error)
            return Result.Ok(Page.empty(number, size, total_pages(count, size)), degraded=True, error=items.error)
        return Result.Ok(Page(items.data or [], number, size, total_pages(count, size)))

    def search(self, query: str, page: int, page_size: int) -> Result[Page]:
        number, size, offset = page_window(page, page_size)
        text = str(query or "")
        if len(text) > SEARCH_MAX_QUERY_LENGTH:
            return Result.Err(ErrorCode.INVALID_INPUT, f"Query too long (max {SEARCH_MAX_QUERY_LENGTH} characters)")

        terms = parse_search_query(text)
        if terms.is_empty():
            return Result.Ok(Page.empty(number, size, 0))
        if len(terms.general) + len(terms.tags) > SEARCH_MAX_TOKENS:
            return Result.Err(ErrorCode.INVALID_INPUT, f"Too many search terms (max {SEARCH_MAX_TOKENS})")

        where_sql, params = build_search_predicate(terms)
        counted = self._store.count_where(where_sql, params)
        if not counted.ok:
            return Result.Err(ErrorCode.READ_FAILED, counted.error or "Search failed")
        rows = self._store.select_where(where_sql, params, offset, size)
        if not rows.ok:
            return Result.Err(ErrorCode.READ_FAILED, rows.error or "Search failed")
        return Result.Ok(Page(rows.data or [], number, size, total_pages(counted.data or 0, size)))
