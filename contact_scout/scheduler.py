"""contact_scout.scheduler: Пакетная и последовательная обработка элементов листинга.

Обе функции возвращают по одному элементу на каждый обработанный вход и
никогда не пробрасывают ошибки отдельных элементов.
"""
from __future__ import annotations

import asyncio
from contextlib import AsyncExitStack
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Sequence

from contact_scout.config import ScoutConfig
from contact_scout.crawler.crawler import ContactCrawler
from contact_scout.crawler.models import ContactRecord
from contact_scout.logger import logger

__all__: Sequence[str] = (
    "CrawlFn",
    "fallback_item",
    "enrich_item",
    "process_batches",
    "extract_contact_info",
)

CrawlFn = Callable[[str], Awaitable[ContactRecord]]


def fallback_item(item: Any) -> Dict[str, Any]:
    """Элемент без контактов: исходные поля плюс пустой contactInfo."""
    fields = item if isinstance(item, Mapping) else {}
    return {**fields, "contactInfo": {"emails": [], "socialMedia": {}}}


def enrich_item(item: Mapping[str, Any], record: ContactRecord) -> Dict[str, Any]:
    """Дополняет элемент результатом обхода и плоскими полями для уведомлений и отчётов."""
    social = record.social_media
    return {
        **item,
        "contactInfo": record.to_dict(),
        "emails": list(record.emails),
        "twitterHandles": list(social.twitter),
        "facebookLinks": list(social.facebook),
        "instagramLinks": list(social.instagram),
        "linkedinLinks": list(social.linkedin),
        "contactLinks": [record.contact_url] if record.contact_url else [],
        "aboutLinks": [record.about_url] if record.about_url else [],
        "externalLinks": list(record.external_links),
        "exactWebsiteUrl": record.exact_website_url,
    }


async def _process_item(item: Any, crawl: CrawlFn) -> Dict[str, Any]:
    item_id = item.get("id") if isinstance(item, Mapping) else None
    try:
        website = item.get("website")
        if not website:
            logger.warning("Пропуск элемента %s: нет адреса сайта", item_id)
            return fallback_item(item)
        record = await crawl(website)
    except asyncio.CancelledError:
        raise
    except Exception as exc:  # noqa: BLE001 - one item never aborts the batch
        logger.error("Ошибка обработки элемента %s: %s", item_id, exc)
        return fallback_item(item)
    return enrich_item(item, record)


async def _with_crawl(
    crawl: Optional[CrawlFn],
    config: Optional[ScoutConfig],
    run: Callable[[CrawlFn], Awaitable[List[Dict[str, Any]]]],
) -> List[Dict[str, Any]]:
    async with AsyncExitStack() as stack:
        if crawl is None:
            crawler = await stack.enter_async_context(ContactCrawler(config))
            crawl = crawler.scrape_website
        return await run(crawl)


async def process_batches(
    items: Sequence[Mapping[str, Any]],
    concurrency_limit: int = 5,
    delay: float = 0.0,
    *,
    crawl: Optional[CrawlFn] = None,
    config: Optional[ScoutConfig] = None,
) -> List[Dict[str, Any]]:
    """
    Обрабатывает элементы пачками по ``concurrency_limit``.

    Элементы пачки обходятся параллельно, пачки идут строго по порядку,
    между пачками пауза ``delay`` секунд. Порядок внутри пачки не гарантирован,
    сверяйте результаты по ``id``.
    """
    if not isinstance(items, (list, tuple)):
        logger.error("process_batches: ожидался список, получено %s", type(items).__name__)
        return []
    size = max(1, int(concurrency_limit))

    async def run(fn: CrawlFn) -> List[Dict[str, Any]]:
        results: List[Dict[str, Any]] = []
        for start in range(0, len(items), size):
            if start and delay > 0:
                await asyncio.sleep(delay)
            chunk = items[start : start + size]
            logger.debug("Пачка %d: %d элементов", start // size + 1, len(chunk))
            results.extend(await asyncio.gather(*(_process_item(item, fn) for item in chunk)))
        return results

    return await _with_crawl(crawl, config, run)


async def extract_contact_info(
    items: Sequence[Mapping[str, Any]],
    max_count: int = 10,
    *,
    crawl: Optional[CrawlFn] = None,
    config: Optional[ScoutConfig] = None,
) -> List[Dict[str, Any]]:
    """
    Обрабатывает элементы по одному в порядке списка, не более ``max_count``.

    Элементы без сайта тоже учитываются в лимите; остальные после лимита
    не обрабатываются и в результат не попадают.
    """
    if not isinstance(items, (list, tuple)):
        logger.error("extract_contact_info: ожидался список, получено %s", type(items).__name__)
        return []

    async def run(fn: CrawlFn) -> List[Dict[str, Any]]:
        results: List[Dict[str, Any]] = []
        for item in items:
            if len(results) >= max_count:
                logger.info("Достигнут лимит обработки (%d), остановка", max_count)
                break
            results.append(await _process_item(item, fn))
        return results

    return await _with_crawl(crawl, config, run)
