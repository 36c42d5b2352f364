from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Callable, Sequence

from sqlalchemy.orm import Session

from archive_search.schemas.search import SearchRequest, SearchResponse
from archive_search.services.related_loader import attach_related, load_related
from archive_search.services.search_compiler import CompiledSearch, RequiredPredicate, compile_search
from archive_search.services.search_executor import execute_search
from archive_search.services.search_handlers import (
    HandlerRegistry,
    HandlerResult,
    exists_flag,
    joined_column,
    json_path_prefix,
    many_to_many_any_of,
)

_LOG = logging.getLogger("archive_search.search")

ROLE_ADMIN = "admin"
ROLE_REGULAR = "regular_user"


def _is_admin(principal: dict) -> bool:
    return principal.get("role") == ROLE_ADMIN


def _principal_user_id(principal: dict) -> int | None:
    try:
        return int(principal.get("sub"))
    except (TypeError, ValueError):
        return None


@dataclass(frozen=True)
class EntitySearch:
    table: str
    primary_key: str
    allowed_fields: Sequence[str]
    handlers: HandlerRegistry = field(default_factory=dict)
    extra_joins: Sequence[str] = ()
    extra_columns: Sequence[str] = ()

    def compile(self, request: SearchRequest, required: Sequence[RequiredPredicate] = ()) -> CompiledSearch:
        return compile_search(
            self.table,
            request,
            self.allowed_fields,
            self.handlers,
            self.primary_key,
            required=required,
            extra_columns=self.extra_columns,
            extra_joins=self.extra_joins,
        )


TAGS_FOR_NOTES_SQL = "SELECT nt.note_id, t.tag_id, t.name, t.description FROM note_tags nt JOIN tags t ON t.tag_id = nt.tag_id"
TAGS_FOR_DOCUMENTS_SQL = (
    "SELECT adt.archive_document_id, t.tag_id, t.name, t.description "
    "FROM archive_document_tags adt JOIN tags t ON t.tag_id = adt.tag_id"
)
PARENTS_FOR_ELEMENTS_SQL = "SELECT sep.child_element_id, sep.parent_element_id FROM signature_element_parents sep"

NOTE_OWNER_JOIN = "LEFT JOIN users AS note_owner ON note_owner.user_id = {alias}.owner_user_id"
ELEMENT_COMPONENT_JOIN = (
    "LEFT JOIN signature_components AS element_component "
    "ON element_component.signature_component_id = {alias}.signature_component_id"
)

DOCUMENTS = EntitySearch(
    table="archive_documents",
    primary_key="archive_document_id",
    allowed_fields=(
        "archive_document_id",
        "parent_unit_archive_document_id",
        "owner_user_id",
        "type",
        "title",
        "creator",
        "creation_date",
        "number_of_pages",
        "document_type",
        "content_description",
        "remarks",
        "access_level",
        "is_digitized",
        "active",
        "created_on",
        "modified_on",
    ),
    handlers={
        "tags": many_to_many_any_of("archive_document_tags", "archive_document_id", "tag_id", "archive_document_id"),
        "descriptive_signature_prefix": json_path_prefix("descriptive_signature_element_ids"),
    },
)

NOTES = EntitySearch(
    table="notes",
    primary_key="note_id",
    allowed_fields=("note_id", "title", "content", "shared", "owner_user_id", "created_on", "modified_on"),
    handlers={
        "tags": many_to_many_any_of("note_tags", "note_id", "tag_id", "note_id"),
        "owner_login": joined_column(NOTE_OWNER_JOIN, "note_owner.login"),
    },
    extra_joins=(NOTE_OWNER_JOIN,),
    extra_columns=("note_owner.login AS owner_login",),
)

ELEMENTS = EntitySearch(
    table="signature_elements",
    primary_key="signature_element_id",
    allowed_fields=(
        "signature_element_id",
        "signature_component_id",
        "name",
        "description",
        "element_index",
        "created_on",
        "modified_on",
    ),
    handlers={
        "parent_ids": many_to_many_any_of(
            "signature_element_parents", "child_element_id", "parent_element_id", "signature_element_id"
        ),
        "component_name": joined_column(ELEMENT_COMPONENT_JOIN, "element_component.name"),
        "has_parents": exists_flag("signature_element_parents", "child_element_id", "signature_element_id"),
    },
    extra_joins=(ELEMENT_COMPONENT_JOIN,),
    extra_columns=("element_component.name AS component_name",),
)

LOGS = EntitySearch(
    table="logs",
    primary_key="id",
    allowed_fields=("id", "level", "created_on", "user_id", "category", "message"),
)


def _active_only(alias: str) -> HandlerResult:
    return HandlerResult(where_condition=f"{alias}.active = ?", parameters=(True,))


def _owned_or_shared(user_id: int | None) -> Callable[[str], HandlerResult]:
    def _build(alias: str) -> HandlerResult:
        return HandlerResult(
            where_condition=f"{alias}.owner_user_id = ? OR {alias}.shared = ?",
            parameters=(user_id if user_id is not None else -1, True),
        )

    return _build


def _decode_paths(row: dict) -> list:
    raw = row.get("descriptive_signature_element_ids") or "[]"
    try:
        return json.loads(raw)
    except ValueError:
        _LOG.warning("document %s has malformed descriptive signatures %r", row.get("archive_document_id"), raw)
        return []


def search_documents(db: Session, request: SearchRequest, principal: dict) -> SearchResponse[dict]:
    required: list[RequiredPredicate] = []
    if any(c.field == "active" for c in request.criteria):
        if not _is_admin(principal):
            _LOG.warning("non-admin %s filtered documents by 'active'; filter ignored", principal.get("sub"))
            request = request.model_copy(update={"criteria": [c for c in request.criteria if c.field != "active"]})
            required.append(_active_only)
    else:
        required.append(_active_only)

    response = execute_search(db, DOCUMENTS.compile(request, required))
    ids = [row["archive_document_id"] for row in response.data]
    tags = load_related(db, TAGS_FOR_DOCUMENTS_SQL, "adt.archive_document_id", ids)
    attach_related(response.data, tags, "archive_document_id", "tags")
    for row in response.data:
        row["descriptive_signature_element_ids"] = _decode_paths(row)
    return response


def search_notes(db: Session, request: SearchRequest, principal: dict) -> SearchResponse[dict]:
    required: list[RequiredPredicate] = []
    if not _is_admin(principal):
        required.append(_owned_or_shared(_principal_user_id(principal)))

    response = execute_search(db, NOTES.compile(request, required))
    ids = [row["note_id"] for row in response.data]
    tags = load_related(db, TAGS_FOR_NOTES_SQL, "nt.note_id", ids)
    attach_related(response.data, tags, "note_id", "tags")
    return response


def search_elements(db: Session, request: SearchRequest, principal: dict) -> SearchResponse[dict]:
    response = execute_search(db, ELEMENTS.compile(request))
    ids = [row["signature_element_id"] for row in response.data]
    parents = load_related(db, PARENTS_FOR_ELEMENTS_SQL, "sep.child_element_id", ids)
    for row in response.data:
        row["parent_ids"] = sorted(p["parent_element_id"] for p in parents.get(row["signature_element_id"], []))
    return response


def search_logs(db: Session, request: SearchRequest, principal: dict) -> SearchResponse[dict]:
    return execute_search(db, LOGS.compile(request))
