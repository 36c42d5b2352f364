from typing import Any, Generic, List, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")


class FilterClause(BaseModel):
    """One criterion as it arrives on the wire.

    ``condition`` and ``value`` are not validated here: a clause whose value
    does not fit its condition is skipped during normalization instead of
    failing the whole request.
    """

    model_config = ConfigDict(populate_by_name=True)

    field: str
    condition: str
    value: Any = None
    negate: bool = Field(default=False, alias="not")


class SearchRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    criteria: List[FilterClause] = Field(default_factory=list, alias="query")
    page: int = 1
    page_size: int = Field(default=10, alias="pageSize")


class SearchResponse(BaseModel, Generic[T]):
    model_config = ConfigDict(populate_by_name=True)

    data: List[T] = Field(default_factory=list)
    page: int
    page_size: int = Field(alias="pageSize")
    total_size: int = Field(alias="totalSize")
    total_pages: int = Field(alias="totalPages")
