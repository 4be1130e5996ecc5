import math
from dataclasses import dataclass, field
from typing import Any


@dataclass
class Page:
    """One page of a listing"""
    items: list[Any] = field(default_factory=list)
    total: int = 0
    page: int = 1
    limit: int = 10

    @property
    def count(self) -> int:
        return len(self.items)

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0


def paginate(query, page: int, limit: int) -> Page:
    """Apply offset/limit to an ORM query and count the unpaged total."""
    total = query.order_by(None).count()
    items = query.offset((page - 1) * limit).limit(limit).all()
    return Page(items=items, total=total, page=page, limit=limit)
