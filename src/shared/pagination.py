from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Generic, List, TypeVar

T = TypeVar("T")
U = TypeVar("U")


@dataclass(slots=True)
class Page(Generic[T]):
    items: List[T] = field(default_factory=list)
    total: int = 0
    page: int = 1
    per_page: int = 15

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.per_page

    @property
    def last_page(self) -> int:
        return max(1, -(-self.total // self.per_page)) if self.per_page else 1

    def map(self, fn: Callable[[T], U]) -> "Page[U]":
        return Page(items=[fn(i) for i in self.items], total=self.total, page=self.page, per_page=self.per_page)

    def meta(self) -> Dict[str, Any]:
        return {
            "current_page": self.page,
            "last_page": self.last_page,
            "per_page": self.per_page,
            "total": self.total,
        }


def page_offset(page: int, per_page: int) -> int:
    return (max(page, 1) - 1) * per_page
