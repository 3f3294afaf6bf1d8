"""Offset pagination over SQLAlchemy queries."""

import math
from dataclasses import dataclass
from typing import Generic, TypeVar

from sqlalchemy.orm import Query

from storefront.services.validation import Pagination

T = TypeVar("T")


def total_pages(count: int, limit: int) -> int:
    """ceil(count / limit); 0 when there is nothing to page through."""
    if count <= 0:
        return 0
    return math.ceil(count / limit)


@dataclass
class Page(Generic[T]):
    items: list[T]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        return total_pages(self.total, self.limit)


def paginate(query: Query, pagination: Pagination) -> Page:
    """Count the filtered query, then fetch one page of it."""
    count = query.order_by(None).count()
    items = query.offset(pagination.offset).limit(pagination.limit).all()
    return Page(items=items, total=count, page=pagination.page, limit=pagination.limit)
