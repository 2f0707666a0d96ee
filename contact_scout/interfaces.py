"""contact_scout.interfaces: Контракты внешних зависимостей движка опроса."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence, runtime_checkable

__all__: Sequence[str] = ("ListingFilter", "ListingPage", "ListingSource", "StateStore", "Notifier")


@dataclass(frozen=True, slots=True)
class ListingFilter:
    """Окно выборки: сколько дней назад и размер страницы."""
    days_back: int = 1
    page_size: int = 50


@dataclass(slots=True)
class ListingPage:
    """Одна страница листинга."""
    items: List[Dict[str, Any]] = field(default_factory=list)
    next_cursor: Optional[str] = None
    has_more: bool = False


@runtime_checkable
class ListingSource(Protocol):
    async def fetch_page(self, filter: ListingFilter, cursor: Optional[str] = None) -> ListingPage: ...


@runtime_checkable
class StateStore(Protocol):
    def get(self) -> Dict[str, Any]: ...

    def set(self, partial: Mapping[str, Any]) -> bool: ...


@runtime_checkable
class Notifier(Protocol):
    async def notify(self, item: Mapping[str, Any]) -> bool: ...
