from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any

from archive_search.schemas.search import FilterClause

_LOG = logging.getLogger("archive_search.search")

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_SCALAR_TYPES = (str, int, float, bool)


class Operator(str, Enum):
    EQUAL = "EQ"
    GREATER_THAN = "GT"
    GREATER_OR_EQUAL = "GTE"
    LESS_THAN = "LT"
    LESS_OR_EQUAL = "LTE"
    ANY_OF = "ANY_OF"
    CONTAINS = "FRAGMENT"
    IS_EMPTY = "IS_EMPTY"


COMPARISON_OPERATORS = {
    Operator.EQUAL: "=",
    Operator.GREATER_THAN: ">",
    Operator.GREATER_OR_EQUAL: ">=",
    Operator.LESS_THAN: "<",
    Operator.LESS_OR_EQUAL: "<=",
}


@dataclass(frozen=True)
class Criterion:
    field: str
    operator: Operator
    value: Any = None
    negate: bool = False


def is_scalar(value: Any) -> bool:
    return value is None or isinstance(value, _SCALAR_TYPES)


def is_identifier(name: str) -> bool:
    return bool(_IDENTIFIER_RE.fullmatch(name or ""))


def bind_value(value: Any) -> Any:
    """Booleans go to the store as 0/1."""
    if isinstance(value, bool):
        return int(value)
    return value


def value_fits(operator: Operator, value: Any) -> bool:
    if operator is Operator.ANY_OF:
        return isinstance(value, (list, tuple))
    if operator is Operator.CONTAINS:
        return isinstance(value, str)
    if operator is Operator.IS_EMPTY:
        return True
    return is_scalar(value)


def normalize_criterion(clause: FilterClause, *, raw_value: bool = False) -> Criterion | None:
    """Turn a wire clause into a :class:`Criterion`, or ``None`` when it must be skipped.

    With ``raw_value`` the value's shape is not checked: fields backed by a
    handler decide for themselves which shapes they accept, and the generic
    fallback checks again if the handler declines. Lists become tuples.
    """
    try:
        operator = Operator(str(clause.condition or "").strip().upper())
    except ValueError:
        _LOG.warning("skipping criterion on %r: unknown condition %r", clause.field, clause.condition)
        return None
    if not is_identifier(clause.field):
        _LOG.warning("skipping criterion: field %r is not a plain identifier", clause.field)
        return None
    if not raw_value and not value_fits(operator, clause.value):
        _LOG.warning(
            "skipping criterion on %r: value %r does not fit condition %s",
            clause.field,
            clause.value,
            operator.value,
        )
        return None
    value = clause.value
    if isinstance(value, list):
        value = tuple(value)
    return Criterion(field=clause.field, operator=operator, value=value, negate=bool(clause.negate))


def normalize_criteria(clauses, handled_fields=()) -> list[Criterion]:
    handled = set(handled_fields)
    out: list[Criterion] = []
    for clause in clauses:
        criterion = normalize_criterion(clause, raw_value=clause.field in handled)
        if criterion is not None:
            out.append(criterion)
    return out
