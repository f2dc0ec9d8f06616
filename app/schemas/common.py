"""
Common Schemas

Pagination helpers shared by list endpoints.
"""

import math
from dataclasses import dataclass

from fastapi import Query
from pydantic import BaseModel

DEFAULT_LIMIT = 10
MAX_LIMIT = 100


@dataclass
class PaginationParams:
    page: int
    limit: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def get_pagination(
    page: int = Query(1, ge=1, description="1-based page number"),
    limit: int = Query(DEFAULT_LIMIT, ge=1, le=MAX_LIMIT, description="Page size"),
) -> PaginationParams:
    return PaginationParams(page=page, limit=limit)


class PageMeta(BaseModel):
    total: int
    page: int
    limit: int
    total_pages: int

    @classmethod
    def build(cls, total: int, pagination: PaginationParams) -> "PageMeta":
        return cls(
            total=total,
            page=pagination.page,
            limit=pagination.limit,
            total_pages=math.ceil(total / pagination.limit) if pagination.limit else 0,
        )
