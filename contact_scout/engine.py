# File: contact_scout/engine.py
"""contact_scout.engine: Движок опроса листинга: поиск новых элементов, обогащение, уведомления, сохранение."""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional

from contact_scout.config import ScoutConfig, load_config
from contact_scout.interfaces import ListingFilter, ListingSource, Notifier, StateStore
from contact_scout.logger import logger
from contact_scout.scheduler import CrawlFn, extract_contact_info
from contact_scout.state import SeenIdSet
from contact_scout.utils import remove_duplicates

__all__ = ["Engine", "CheckResult"]


@dataclass(slots=True)
class CheckResult:
    """Итог одной проверки или инициализации."""
    success: bool
    new_items: List[Dict[str, Any]] = field(default_factory=list)
    message: str = ""
    seen_ids: List[str] = field(default_factory=list)


def _optimize(item: Dict[str, Any]) -> Dict[str, Any]:
    exact = item.get("exactWebsiteUrl")
    return {**item, "website": exact} if exact else item


class Engine:
    """Фасад для CLI и тестов: опрос листинга, обогащение новых элементов, уведомления и состояние."""

    @staticmethod
    def load_config(path: Optional[str]) -> ScoutConfig:
        """Загружает конфиг из YAML/JSON или использует значения по умолчанию."""
        return load_config(path)

    def __init__(
        self,
        config: ScoutConfig,
        source: ListingSource,
        store: StateStore,
        notifier: Notifier,
        seen: Optional[SeenIdSet] = None,
        *,
        crawl: Optional[CrawlFn] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Инициализирует Engine; без явного ``seen`` множество ID читается из хранилища."""
        self.config = config
        self.source = source
        self.store = store
        self.notifier = notifier
        self.crawl = crawl
        self.clock = clock
        self.seen = seen if seen is not None else self._load_seen()
        self.running = False
        self._last_run: Optional[float] = None

    def _new_seen(self, ids: Any = ()) -> SeenIdSet:
        return SeenIdSet(ids, max_size=self.config.seen_ids_max, trim_to=self.config.seen_ids_trim_to)

    def _load_seen(self) -> SeenIdSet:
        return self._new_seen(self.store.get().get("seenProductIds") or [])

    def _filter(self, days_back: Optional[int] = None) -> ListingFilter:
        listing = self.config.listing
        return ListingFilter(days_back=days_back or listing.days_back, page_size=listing.page_size)

    async def initialize(self, days_back: Optional[int] = None) -> CheckResult:
        """Помечает все элементы за последние ``days_back`` дней как просмотренные."""
        listing = self.config.listing
        flt = self._filter(days_back)
        self.seen = self._new_seen()
        cursor: Optional[str] = None
        total = 0
        logger.info("Инициализация: элементы за последние %d дн.", flt.days_back)
        try:
            for page_no in range(listing.max_pages):
                page = await self.source.fetch_page(flt, cursor)
                if not page.items:
                    break
                self.seen.update(str(item.get("id")) for item in page.items)
                total += len(page.items)
                cursor = page.next_cursor
                if not page.has_more:
                    break
                if listing.page_delay and page_no + 1 < listing.max_pages:
                    await asyncio.sleep(listing.page_delay)
        except Exception as exc:  # noqa: BLE001 - surfaced as a failed CheckResult
            logger.error("Ошибка инициализации: %s", exc)
            return CheckResult(False, message=f"Failed to initialize: {exc}")

        ids = self.seen.to_list()
        self.store.set({"seenProductIds": ids, "isEnabled": True, "webhookUrl": self.config.webhook_url})
        logger.info("Инициализировано: отслеживается %d ID (%d элементов)", len(ids), total)
        return CheckResult(
            True,
            message=f"Initialized. Tracking {len(ids)} items from the last {flt.days_back} days.",
            seen_ids=ids,
        )

    async def _fetch_new_items(self) -> List[Dict[str, Any]]:
        listing = self.config.listing
        flt = self._filter()
        new_items: List[Dict[str, Any]] = []
        cursor: Optional[str] = None
        failures = 0
        pages = 0
        while pages < listing.max_pages:
            try:
                page = await self.source.fetch_page(flt, cursor)
            except Exception as exc:  # noqa: BLE001 - retried, then the partial result is used
                failures += 1
                logger.warning("Попытка %d загрузки листинга не удалась: %s", failures, exc)
                if failures >= listing.max_retries:
                    logger.error("Листинг недоступен после %d попыток", failures)
                    break
                await asyncio.sleep(listing.retry_backoff * failures)
                continue
            pages += 1
            if not page.items:
                break
            for item in page.items:
                item_id = str(item.get("id"))
                if item_id not in self.seen:
                    logger.info("Новый элемент: %s (%s)", item.get("name"), item_id)
                    new_items.append(item)
                    self.seen.add(item_id)
            cursor = page.next_cursor
            if not page.has_more:
                break
            if listing.page_delay:
                await asyncio.sleep(listing.page_delay)
        return new_items

    async def _notify_all(self, items: List[Dict[str, Any]]) -> int:
        stagger = self.config.notify_stagger

        async def _one(index: int, item: Dict[str, Any]) -> bool:
            if index and stagger:
                await asyncio.sleep(stagger * index)
            try:
                return bool(await self.notifier.notify(item))
            except Exception as exc:  # noqa: BLE001 - notifications never abort the check
                logger.error("Ошибка уведомления для %s: %s", item.get("id"), exc)
                return False

        sent = await asyncio.gather(*(_one(i, item) for i, item in enumerate(items)))
        return sum(sent)

    def _persist(self, items: List[Dict[str, Any]], duration: float) -> None:
        state = self.store.get()
        stats: Mapping[str, Any] = state.get("stats") or {}
        extracted: Mapping[str, Any] = state.get("extractedData") or {}
        emails = [e for item in items for e in item.get("emails") or []]
        handles = [h for item in items for h in item.get("twitterHandles") or []]
        links = [link for item in items for link in (item.get("contactLinks") or []) + (item.get("externalLinks") or [])]
        now = datetime.now(timezone.utc).isoformat()
        self.store.set(
            {
                "seenProductIds": self.seen.to_list(),
                "scrapedProducts": (items + list(state.get("scrapedProducts") or []))[: self.config.max_stored_items],
                "newProductsCount": len(items),
                "lastChecked": now,
                "stats": {
                    "totalProductsFound": int(stats.get("totalProductsFound", 0)) + len(items),
                    "totalProductsScraped": int(stats.get("totalProductsScraped", 0)) + len(items),
                    "totalEmailsFound": int(stats.get("totalEmailsFound", 0)) + len(emails),
                    "totalTwitterHandlesFound": int(stats.get("totalTwitterHandlesFound", 0)) + len(handles),
                    "lastRunDuration": round(duration, 3),
                    "lastActiveTime": now,
                },
                "extractedData": {
                    "emails": remove_duplicates([*(extracted.get("emails") or []), *emails]),
                    "twitterHandles": remove_duplicates([*(extracted.get("twitterHandles") or []), *handles]),
                    "links": remove_duplicates([*(extracted.get("links") or []), *links]),
                    "lastUpdated": now,
                },
            }
        )

    async def check_for_new_items(self) -> CheckResult:
        """Одна проверка: новые элементы обогащаются, рассылаются и сохраняются."""
        if self.running:
            logger.info("Проверка пропущена: предыдущая ещё выполняется")
            return CheckResult(False, message="Another check is already in progress")
        now = self.clock()
        if self._last_run is not None and now - self._last_run < self.config.min_interval:
            wait = self.config.min_interval - (now - self._last_run)
            logger.info("Слишком частый запуск, осталось %.1f с", wait)
            return CheckResult(False, message=f"Please wait {wait:.0f} seconds before checking again")

        self.running = True
        self._last_run = now
        started = time.monotonic()
        try:
            new_items = await self._fetch_new_items()
            logger.info("Найдено новых элементов: %d", len(new_items))
            enriched: List[Dict[str, Any]] = []
            if new_items:
                try:
                    enriched = await extract_contact_info(
                        new_items, len(new_items), crawl=self.crawl, config=self.config
                    )
                    enriched = [_optimize(item) for item in enriched]
                except Exception as exc:  # noqa: BLE001 - fall back to plain items for notifications
                    logger.error("Ошибка обогащения: %s", exc)
                    enriched = list(new_items)
                sent = await self._notify_all(enriched)
                logger.info("Отправлено уведомлений: %d из %d", sent, len(enriched))
            self._persist(enriched, time.monotonic() - started)
            message = (
                f"Found {len(enriched)} new items with contact information" if enriched else "No new items found"
            )
            return CheckResult(True, enriched, message, self.seen.to_list())
        except Exception as exc:  # noqa: BLE001 - a check reports failure instead of raising
            logger.error("Ошибка проверки новых элементов: %s", exc)
            return CheckResult(False, message=f"Error checking for new items: {exc}")
        finally:
            self.running = False
