from __future__ import annotations

from collections import defaultdict
from typing import Any, Iterable

from sqlalchemy.orm import Session

from archive_search.services.search_compiler import CompiledQuery
from archive_search.services.search_executor import run_query
from archive_search.services.search_handlers import placeholders


def load_related(db: Session, select_sql: str, owner_column: str, owner_ids: Iterable[Any]) -> dict[Any, list[dict]]:
    """Fetch related rows for many owners in one query.

    ``select_sql`` is a SELECT without WHERE that yields ``owner_column``
    among its columns, e.g. ``SELECT nt.note_id, t.* FROM note_tags nt JOIN
    tags t ON t.tag_id = nt.tag_id``. Rows are grouped by that column.
    """
    ids = list(dict.fromkeys(owner_ids))
    if not ids:
        return {}
    query = CompiledQuery(
        text=f"{select_sql} WHERE {owner_column} IN ({placeholders(len(ids))})",
        parameters=tuple(ids),
    )
    grouped: dict[Any, list[dict]] = defaultdict(list)
    key = owner_column.rsplit(".", 1)[-1]
    for row in run_query(db, query).mappings().all():
        item = dict(row)
        grouped[item.pop(key)].append(item)
    return dict(grouped)


def attach_related(rows: list[dict], related: dict[Any, list[dict]], key: str, attr: str) -> list[dict]:
    for row in rows:
        row[attr] = related.get(row.get(key), [])
    return rows
