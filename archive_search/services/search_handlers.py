from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field, replace
from typing import Any, Mapping, Protocol, Sequence

from archive_search.services.search_filters import (
    COMPARISON_OPERATORS,
    Criterion,
    Operator,
    bind_value,
    is_scalar,
    value_fits,
)

_LOG = logging.getLogger("archive_search.search")

MATCH_NOTHING = "1=0"
MATCH_EVERYTHING = "1=1"


@dataclass(frozen=True)
class HandlerResult:
    where_condition: str
    parameters: Sequence[Any] = field(default_factory=tuple)
    join_clause: str | None = None


class FieldHandler(Protocol):
    def __call__(self, criterion: Criterion, table_alias: str) -> HandlerResult | None: ...


HandlerRegistry = Mapping[str, FieldHandler]


def placeholders(count: int) -> str:
    return ", ".join("?" for _ in range(count))


def empty_set_condition(negate: bool) -> HandlerResult:
    # "any of nothing" matches no row; its negation restricts nothing.
    return HandlerResult(where_condition=MATCH_EVERYTHING if negate else MATCH_NOTHING)


def positive_ids(values) -> list[int]:
    return [v for v in values if isinstance(v, int) and not isinstance(v, bool) and v > 0]


def compile_criterion(criterion: Criterion, column: str) -> HandlerResult | None:
    """Generic compilation of one criterion against ``column``; ``None`` skips it."""
    op = criterion.operator
    if not value_fits(op, criterion.value):
        _LOG.warning("skipping criterion on %r: value %r does not fit %s", criterion.field, criterion.value, op.value)
        return None
    if op is Operator.ANY_OF:
        values = list(criterion.value)
        if not values:
            return empty_set_condition(criterion.negate)
        if not all(is_scalar(v) for v in values):
            _LOG.warning("skipping ANY_OF on %r: non-scalar members", criterion.field)
            return None
        keyword = "NOT IN" if criterion.negate else "IN"
        return HandlerResult(
            f"{column} {keyword} ({placeholders(len(values))})",
            tuple(bind_value(v) for v in values),
        )

    if op is Operator.CONTAINS:
        sql, params = f"{column} LIKE ?", (f"%{criterion.value}%",)
    elif op is Operator.IS_EMPTY:
        sql, params = f"{column} IS NULL OR {column} = ''", ()
    elif op is Operator.EQUAL and criterion.value is None:
        sql, params = f"{column} IS NULL", ()
    elif op in COMPARISON_OPERATORS:
        sql, params = f"{column} {COMPARISON_OPERATORS[op]} ?", (bind_value(criterion.value),)
    else:
        _LOG.warning("skipping criterion on %r: unsupported operator %s", criterion.field, op)
        return None

    if criterion.negate:
        sql = f"NOT ({sql})"
    return HandlerResult(sql, params)


def many_to_many_any_of(
    link_table: str,
    owner_column: str,
    target_column: str,
    key_column: str,
    *,
    strategy: str = "exists",
) -> FieldHandler:
    """Handler for "has any of these related ids" over a link table.

    ``owner_column`` is the link-table column pointing back at the searched
    row, ``key_column`` the primary key of the searched table. With
    ``strategy="join"`` the membership test is an INNER JOIN on the link
    table; the compiler's DISTINCT keeps rows from multiplying. Negated
    membership uses NOT EXISTS with either strategy.
    """
    if strategy not in {"exists", "join"}:
        raise ValueError(f"unknown many-to-many strategy {strategy!r}")

    def _handler(criterion: Criterion, table_alias: str) -> HandlerResult | None:
        if criterion.operator is not Operator.ANY_OF or not isinstance(criterion.value, (list, tuple)):
            return None
        ids = positive_ids(criterion.value)
        if not ids:
            return empty_set_condition(criterion.negate)
        marks = placeholders(len(ids))
        if strategy == "join" and not criterion.negate:
            link_alias = f"{link_table}_any"
            return HandlerResult(
                join_clause=(
                    f"INNER JOIN {link_table} AS {link_alias} "
                    f"ON {link_alias}.{owner_column} = {table_alias}.{key_column}"
                ),
                where_condition=f"{link_alias}.{target_column} IN ({marks})",
                parameters=tuple(ids),
            )
        subquery = (
            f"EXISTS (SELECT 1 FROM {link_table} lt "
            f"WHERE lt.{owner_column} = {table_alias}.{key_column} "
            f"AND lt.{target_column} IN ({marks}))"
        )
        return HandlerResult(
            where_condition=f"NOT {subquery}" if criterion.negate else subquery,
            parameters=tuple(ids),
        )

    return _handler


def exists_flag(link_table: str, owner_column: str, key_column: str) -> FieldHandler:
    """Boolean "has at least one related row" field, answered with EXISTS."""

    def _handler(criterion: Criterion, table_alias: str) -> HandlerResult | None:
        if criterion.operator is not Operator.EQUAL or not isinstance(criterion.value, bool):
            return None
        subquery = (
            f"EXISTS (SELECT 1 FROM {link_table} lt "
            f"WHERE lt.{owner_column} = {table_alias}.{key_column})"
        )
        wanted = criterion.value != criterion.negate
        return HandlerResult(where_condition=subquery if wanted else f"NOT {subquery}")

    return _handler


def joined_column(join_clause: str, column: str) -> FieldHandler:
    """Compile a criterion against ``column`` of a joined table.

    ``join_clause`` may reference the primary alias as ``{alias}``.
    """

    def _handler(criterion: Criterion, table_alias: str) -> HandlerResult | None:
        result = compile_criterion(criterion, column)
        if result is None:
            return None
        return replace(result, join_clause=join_clause.format(alias=table_alias))

    return _handler


def encode_path(path: Sequence[int]) -> str:
    """Compact JSON for an id path, the form SQLite's ``json_each`` yields."""
    return json.dumps(list(path), separators=(",", ":"))


def _id_path(value) -> list[int] | None:
    if isinstance(value, (list, tuple)) and value and len(positive_ids(value)) == len(value):
        return list(value)
    return None


def json_path_prefix(column: str) -> FieldHandler:
    """Search a text column holding a JSON array of id paths, e.g. ``[[4,5],[6]]``.

    ``ANY_OF`` takes a list of paths and matches rows holding a path that
    equals one of them or extends it (``[4]`` matches ``[4,5]``). ``EQ`` takes
    a single path and matches it exactly. Paths are lists of positive ids.
    """

    def _handler(criterion: Criterion, table_alias: str) -> HandlerResult | None:
        source = f"json_each({table_alias}.{column}) je"
        if criterion.operator is Operator.EQUAL:
            path = _id_path(criterion.value)
            if path is None:
                return None
            condition = f"EXISTS (SELECT 1 FROM {source} WHERE je.value = ?)"
            params: tuple = (encode_path(path),)
        elif criterion.operator is Operator.ANY_OF:
            if not isinstance(criterion.value, (list, tuple)):
                return None
            paths = [_id_path(v) for v in criterion.value]
            if not paths:
                return empty_set_condition(criterion.negate)
            if any(p is None for p in paths):
                return None
            matches = " OR ".join("je.value LIKE ? OR je.value = ?" for _ in paths)
            condition = f"EXISTS (SELECT 1 FROM {source} WHERE {matches})"
            params = tuple(part for p in paths for part in (encode_path(p)[:-1] + ",%", encode_path(p)))
        else:
            return None
        if criterion.negate:
            condition = f"NOT {condition}"
        return HandlerResult(where_condition=condition, parameters=params)

    return _handler
