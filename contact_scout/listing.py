"""contact_scout.listing: Источник листинга через GraphQL API с ротацией токенов."""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Sequence

from aiohttp import ClientError, ClientSession, ClientTimeout

from contact_scout.config import ListingConfig
from contact_scout.interfaces import ListingFilter, ListingPage
from contact_scout.logger import logger

__all__: Sequence[str] = ("ListingError", "GraphQLListingSource", "POSTS_QUERY", "node_to_item")

POSTS_QUERY = """
query GetPosts($postedAfter: DateTime!, $postedBefore: DateTime!, $first: Int!, $after: String) {
  posts(postedAfter: $postedAfter, postedBefore: $postedBefore, first: $first, after: $after) {
    edges {
      node {
        id
        name
        tagline
        description
        url
        votesCount
        website
        thumbnail { url }
        createdAt
        makers { id name username headline twitterUsername }
      }
    }
    pageInfo { endCursor hasNextPage }
  }
}
"""

_DEFAULT_RATE_LIMIT_RESET = 60.0


class ListingError(RuntimeError):
    """Листинг недоступен: нет рабочих токенов или неожиданный ответ API."""


@dataclass(slots=True)
class _TokenState:
    token: str
    unauthorized: bool = False
    limited_until: float = 0.0

    def available(self, now: float) -> bool:
        return not self.unauthorized and now >= self.limited_until


def node_to_item(node: Dict[str, Any]) -> Dict[str, Any]:
    """Плоский элемент листинга из узла GraphQL."""
    item = dict(node)
    thumbnail = item.pop("thumbnail", None) or {}
    if thumbnail.get("url"):
        item["imageUrl"] = thumbnail["url"]
    item["id"] = str(item.get("id", ""))
    return item


class GraphQLListingSource:
    """
    Постраничная выборка через GraphQL.

    Токены перебираются по кругу: 401 выключает токен, 429 откладывает его
    до сброса лимита. Если рабочих токенов нет, бросается ListingError.
    """

    def __init__(self, session: ClientSession, config: Optional[ListingConfig] = None, timeout: float = 15.0) -> None:
        self.session = session
        self.config = config or ListingConfig()
        self.timeout = timeout
        self._tokens = [_TokenState(t) for t in self.config.tokens if t]
        self._index = 0

    def _next_token(self) -> Optional[_TokenState]:
        now = time.monotonic()
        for offset in range(len(self._tokens)):
            idx = (self._index + offset) % len(self._tokens)
            if self._tokens[idx].available(now):
                self._index = idx
                return self._tokens[idx]
        return None

    @staticmethod
    def build_variables(filter: ListingFilter, cursor: Optional[str], now: Optional[datetime] = None) -> Dict[str, Any]:
        end = now or datetime.now(timezone.utc)
        start = end - timedelta(days=filter.days_back)
        variables: Dict[str, Any] = {
            "postedAfter": start.isoformat(),
            "postedBefore": end.isoformat(),
            "first": filter.page_size,
        }
        if cursor:
            variables["after"] = cursor
        return variables

    async def fetch_page(self, filter: ListingFilter, cursor: Optional[str] = None) -> ListingPage:
        payload = {"query": POSTS_QUERY, "variables": self.build_variables(filter, cursor)}
        for _ in range(max(1, len(self._tokens))):
            token = self._next_token()
            if token is None:
                break
            try:
                async with self.session.post(
                    self.config.endpoint,
                    json=payload,
                    headers={
                        "Authorization": f"Bearer {token.token}",
                        "Content-Type": "application/json",
                        "Accept": "application/json",
                    },
                    timeout=ClientTimeout(total=self.timeout),
                ) as resp:
                    if resp.status == 401:
                        logger.warning("Токен %d отклонён (401), переключение", self._index + 1)
                        token.unauthorized = True
                        self._index += 1
                        continue
                    if resp.status == 429:
                        reset = _reset_seconds(resp.headers.get("X-Rate-Limit-Reset") or resp.headers.get("Retry-After"))
                        logger.warning("Токен %d упёрся в лимит (429), ожидание %.0f с", self._index + 1, reset)
                        token.limited_until = time.monotonic() + reset
                        self._index += 1
                        continue
                    if resp.status >= 400:
                        raise ListingError(f"Listing API returned HTTP {resp.status}")
                    data = await resp.json(content_type=None)
            except (ClientError, asyncio.TimeoutError) as exc:
                raise ListingError(f"Listing API request failed: {exc}") from exc
            return _parse_posts(data)
        raise ListingError("No usable API token")


def _reset_seconds(value: Optional[str]) -> float:
    try:
        return max(0.0, float(value)) if value else _DEFAULT_RATE_LIMIT_RESET
    except ValueError:
        return _DEFAULT_RATE_LIMIT_RESET


def _parse_posts(data: Any) -> ListingPage:
    body = data.get("data") if isinstance(data, dict) else None
    posts = body.get("posts") if isinstance(body, dict) else None
    if not isinstance(posts, dict):
        raise ListingError("Unexpected listing API response structure")
    edges: List[Dict[str, Any]] = posts.get("edges") or []
    info = posts.get("pageInfo") or {}
    items = [node_to_item(edge["node"]) for edge in edges if isinstance(edge, dict) and edge.get("node")]
    logger.info("Получено элементов листинга: %d", len(items))
    return ListingPage(items=items, next_cursor=info.get("endCursor") or None, has_more=bool(info.get("hasNextPage")))
