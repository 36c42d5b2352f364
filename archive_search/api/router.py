from fastapi import APIRouter
from archive_search.api import search

router = APIRouter()
router.include_router(search.router, tags=["Search"])
