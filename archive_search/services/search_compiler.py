"""Compiles a :class:`SearchRequest` into a paged data query and a count query.

Everything here is pure: no I/O, no shared state. The result keeps its
clauses as lists so callers can compose further mandatory predicates with
:meth:`CompiledSearch.restrict` instead of editing SQL text.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Iterable, Sequence

from archive_search.core.config import settings
from archive_search.schemas.search import SearchRequest
from archive_search.services.search_filters import bind_value, is_identifier, normalize_criteria
from archive_search.services.search_handlers import HandlerRegistry, HandlerResult, compile_criterion

_LOG = logging.getLogger("archive_search.search")

RequiredPredicate = Callable[[str], HandlerResult]


@dataclass(frozen=True)
class CompiledQuery:
    text: str
    parameters: Sequence[Any] = field(default_factory=tuple)


@dataclass(frozen=True)
class _Predicate:
    sql: str
    parameters: tuple = ()


@dataclass(frozen=True)
class CompiledSearch:
    table: str
    alias: str
    primary_key: str
    page_size: int
    offset: int
    joins: tuple[str, ...] = ()
    predicates: tuple[_Predicate, ...] = ()
    extra_columns: tuple[str, ...] = ()

    @property
    def resolved_alias(self) -> str:
        return self.alias

    def restrict(self, where_condition: str, parameters: Iterable[Any] = (), join_clause: str | None = None) -> "CompiledSearch":
        """Return a copy with one more AND-ed predicate (and optional join)."""
        joins = self.joins
        if join_clause and join_clause not in joins:
            joins = joins + (join_clause,)
        predicate = _Predicate(where_condition, tuple(bind_value(p) for p in parameters))
        return replace(self, joins=joins, predicates=self.predicates + (predicate,))

    def _from_where(self) -> tuple[str, list[Any]]:
        parts = [f"FROM {self.table} AS {self.alias}"]
        parts.extend(self.joins)
        params: list[Any] = []
        if self.predicates:
            parts.append("WHERE " + " AND ".join(f"({p.sql})" for p in self.predicates))
            for p in self.predicates:
                params.extend(p.parameters)
        return " ".join(parts), params

    @property
    def data_query(self) -> CompiledQuery:
        body, params = self._from_where()
        columns = ", ".join((f"{self.alias}.*",) + self.extra_columns)
        text = (
            f"SELECT DISTINCT {columns} {body} "
            f"ORDER BY {self.alias}.{self.primary_key} DESC LIMIT ? OFFSET ?"
        )
        return CompiledQuery(text=text, parameters=tuple(params) + (self.page_size, self.offset))

    @property
    def count_query(self) -> CompiledQuery:
        body, params = self._from_where()
        text = f"SELECT COUNT(DISTINCT {self.alias}.{self.primary_key}) AS total {body}"
        return CompiledQuery(text=text, parameters=tuple(params))


def main_alias(table: str) -> str:
    return f"{table}_main"


def guess_primary_key(table: str) -> str:
    """``notes`` -> ``note_id``, ``archive_documents`` -> ``archive_document_id``."""
    stem = table[:-1] if table.endswith("s") else table
    return f"{stem}_id"


def _as_predicate(result: HandlerResult) -> _Predicate:
    return _Predicate(result.where_condition.strip(), tuple(bind_value(p) for p in result.parameters))


def _page_window(request: SearchRequest) -> tuple[int, int]:
    page = max(1, int(request.page or 1))
    page_size = int(request.page_size or 0)
    if page_size > settings.SEARCH_MAX_PAGE_SIZE:
        page_size = settings.SEARCH_MAX_PAGE_SIZE
    # A page size <= 0 is left for the executor to correct.
    offset = (page - 1) * page_size if page_size > 0 else 0
    return page_size, offset


def compile_search(
    table: str,
    request: SearchRequest,
    allowed_fields: Sequence[str],
    handlers: HandlerRegistry | None = None,
    primary_key: str | None = None,
    *,
    required: Sequence[RequiredPredicate] = (),
    extra_columns: Sequence[str] = (),
    extra_joins: Sequence[str] = (),
) -> CompiledSearch:
    """Compile ``request`` against ``table``.

    Criteria are AND-combined in request order. A field in ``handlers`` is
    offered to its handler first, with the value exactly as sent: the handler
    decides which shapes it accepts. A handler returning ``None`` falls back
    to generic compilation, which applies the usual value checks. Fields
    outside ``allowed_fields`` are compiled unqualified, so columns that only
    exist on a joined table still resolve.

    ``required`` holds predicates every row must satisfy regardless of the
    request (visibility, soft-delete). Each receives the primary alias.
    ``extra_joins`` and ``extra_columns`` may reference that alias as
    ``{alias}``.
    """
    if not is_identifier(table):
        raise ValueError(f"invalid table name {table!r}")
    handlers = handlers or {}
    allowed = set(allowed_fields)
    alias = main_alias(table)
    pk = primary_key or guess_primary_key(table)

    joins: list[str] = []
    predicates: list[_Predicate] = []

    def _add_join(clause: str | None) -> None:
        if clause and clause not in joins:
            joins.append(clause)

    for clause in extra_joins:
        _add_join(clause.format(alias=alias))

    for criterion in normalize_criteria(request.criteria, handled_fields=handlers):
        handler = handlers.get(criterion.field)
        if handler is not None:
            result = handler(criterion, alias)
            if result is not None:
                _add_join(result.join_clause)
                predicates.append(_as_predicate(result))
                continue
            if criterion.field not in allowed:
                _LOG.warning(
                    "skipping criterion on %r: handler declined %s and the field is not a plain column",
                    criterion.field,
                    criterion.operator.value,
                )
                continue

        if criterion.field in allowed:
            column = f"{alias}.{criterion.field}"
        else:
            _LOG.warning("field %r on %s is neither whitelisted nor handled; compiling as-is", criterion.field, table)
            column = criterion.field

        result = compile_criterion(criterion, column)
        if result is not None:
            predicates.append(_as_predicate(result))

    for build in required:
        result = build(alias)
        _add_join(result.join_clause)
        predicates.append(_as_predicate(result))

    page_size, offset = _page_window(request)
    return CompiledSearch(
        table=table,
        alias=alias,
        primary_key=pk,
        page_size=page_size,
        offset=offset,
        joins=tuple(joins),
        predicates=tuple(predicates),
        extra_columns=tuple(c.format(alias=alias) for c in extra_columns),
    )
