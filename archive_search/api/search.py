import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from archive_search.core.deps import require_role
from archive_search.db.session import get_db
from archive_search.schemas.search import SearchRequest, SearchResponse
from archive_search.services.entity_search import (
    ROLE_ADMIN,
    ROLE_REGULAR,
    search_documents,
    search_elements,
    search_logs,
    search_notes,
)
from archive_search.services.search_executor import SearchExecutionError

_LOG = logging.getLogger("archive_search.api")

router = APIRouter()


def _run_search(search, area: str, db: Session, request: SearchRequest, user: dict) -> SearchResponse[dict]:
    try:
        return search(db, request, user)
    except SearchExecutionError:
        _LOG.exception("%s search failed for user %s", area, user.get("sub"))
        raise HTTPException(status_code=500, detail="Search failed")


@router.post("/documents/search", response_model=SearchResponse[dict])
def documents_search(
    request: SearchRequest,
    db: Session = Depends(get_db),
    user=Depends(require_role(ROLE_ADMIN, ROLE_REGULAR)),
):
    return _run_search(search_documents, "document", db, request, user)


@router.post("/notes/search", response_model=SearchResponse[dict])
def notes_search(
    request: SearchRequest,
    db: Session = Depends(get_db),
    user=Depends(require_role(ROLE_ADMIN, ROLE_REGULAR)),
):
    return _run_search(search_notes, "note", db, request, user)


@router.post("/elements/search", response_model=SearchResponse[dict])
def elements_search(
    request: SearchRequest,
    db: Session = Depends(get_db),
    user=Depends(require_role(ROLE_ADMIN, ROLE_REGULAR)),
):
    return _run_search(search_elements, "element", db, request, user)


@router.post("/logs/search", response_model=SearchResponse[dict])
def logs_search(
    request: SearchRequest,
    db: Session = Depends(get_db),
    user=Depends(require_role(ROLE_ADMIN)),
):
    return _run_search(search_logs, "log", db, request, user)
