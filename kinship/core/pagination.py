import math

from pydantic import BaseModel

class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int
    has_next: bool
    has_prev: bool

def build_pagination(page: int, limit: int, total: int) -> Pagination:
    """Pagination block shared by every paged listing"""
    total_pages = math.ceil(total / limit) if limit else 0
    return Pagination(
        page=page,
        limit=limit,
        total=total,
        total_pages=total_pages,
        has_next=page < total_pages,
        has_prev=page > 1,
    )

def page_offset(page: int, limit: int) -> int:
    return (page - 1) * limit
