from __future__ import annotations

import logging
import math
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from archive_search.core.config import settings
from archive_search.schemas.search import SearchResponse
from archive_search.services.search_compiler import CompiledQuery, CompiledSearch

_LOG = logging.getLogger("archive_search.search")


class SearchError(Exception):
    pass


class InvalidCompiledQueryError(SearchError, ValueError):
    pass


class SearchExecutionError(SearchError):
    def __init__(self, sql: str, parameters, cause: BaseException):
        self.sql = sql
        self.parameters = list(parameters)
        super().__init__(f"search query failed: {cause}; sql={sql!r} parameters={self.parameters!r}")


def _validate(query: Any, name: str) -> None:
    if not isinstance(query, CompiledQuery):
        raise InvalidCompiledQueryError(f"{name} is not a compiled query: {query!r}")
    if not isinstance(query.text, str) or not query.text.strip():
        raise InvalidCompiledQueryError(f"{name} has no SQL text")
    if not isinstance(query.parameters, (list, tuple)):
        raise InvalidCompiledQueryError(f"{name} has no parameter list")
    if query.text.count("?") != len(query.parameters):
        raise InvalidCompiledQueryError(
            f"{name} has {query.text.count('?')} placeholders but {len(query.parameters)} parameters"
        )


def _page_window(data_query: CompiledQuery) -> tuple[int, int]:
    params = data_query.parameters
    if len(params) < 2:
        raise InvalidCompiledQueryError("data query is missing its LIMIT/OFFSET parameters")
    page_size, offset = params[-2], params[-1]
    if not isinstance(page_size, int) or not isinstance(offset, int):
        raise InvalidCompiledQueryError(f"data query LIMIT/OFFSET must be integers, got {page_size!r}/{offset!r}")
    return page_size, max(0, offset)


def run_query(db: Session, query: CompiledQuery):
    try:
        return db.connection().exec_driver_sql(query.text, tuple(query.parameters))
    except (SQLAlchemyError, OverflowError, TypeError, ValueError) as exc:
        # Binding errors (an int too wide for the driver) surface as builtins.
        _LOG.error("search query failed sql=%r parameters=%r", query.text, list(query.parameters))
        raise SearchExecutionError(query.text, query.parameters, exc) from exc


def execute_search(
    db: Session,
    data_query: CompiledQuery | CompiledSearch,
    count_query: CompiledQuery | None = None,
) -> SearchResponse[dict]:
    """Run the count query, then the data query when the page can hold rows.

    Accepts either a :class:`CompiledSearch` or an explicit pair of compiled
    queries. A page size <= 0 is replaced by ``SEARCH_DEFAULT_PAGE_SIZE`` both
    for execution and in the response.
    """
    if isinstance(data_query, CompiledSearch):
        data_query, count_query = data_query.data_query, data_query.count_query
    _validate(data_query, "data query")
    _validate(count_query, "count query")
    page_size, offset = _page_window(data_query)

    if page_size <= 0:
        _LOG.info("correcting page size %s to %s", page_size, settings.SEARCH_DEFAULT_PAGE_SIZE)
        page_size = settings.SEARCH_DEFAULT_PAGE_SIZE
        data_query = CompiledQuery(
            text=data_query.text,
            parameters=tuple(data_query.parameters[:-2]) + (page_size, offset),
        )

    total_size = int(run_query(db, count_query).scalar() or 0)

    rows: list[dict] = []
    if total_size > offset:
        rows = [dict(row) for row in run_query(db, data_query).mappings().all()]

    return SearchResponse[dict](
        data=rows,
        page=offset // page_size + 1,
        page_size=page_size,
        total_size=total_size,
        total_pages=math.ceil(total_size / page_size),
    )
