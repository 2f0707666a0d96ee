# === FILE: contact_scout/crawler/crawler.py ===
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from functools import partial
from typing import Any, Callable, List, Optional

from aiohttp import ClientSession

from contact_scout.config import ScoutConfig
from contact_scout.crawler.fetcher import Fetcher
from contact_scout.crawler.link_extractor import PageLinks, classify_links
from contact_scout.crawler.models import ContactRecord, SocialHandles
from contact_scout.crawler.redirects import find_canonical_url, resolve_redirect
from contact_scout.logger import LOGGER_NAME
from contact_scout.parser.email_sources import (
    about_page_emails,
    contact_page_emails,
    emails_from_accessibility,
    emails_from_contact_elements,
    emails_from_contact_forms,
    emails_from_data_attributes,
    emails_from_hidden_content,
    emails_from_meta_tags,
    emails_from_structured_data,
    emails_from_styles,
    emails_from_text,
    emails_from_url,
    footer_signals,
    obfuscated_emails,
)
from contact_scout.parser.emails import extract_emails
from contact_scout.parser.html_parser import ParsedPage, parse_html
from contact_scout.parser.results import Extracted, ExtractResult, merge_successful, run_extractor
from contact_scout.parser.social import extract_social_media
from contact_scout.utils import ensure_scheme, is_bypass_domain, is_redirect_wrapper_url, is_valid_url

__all__ = ("PageSignals", "ContactCrawler", "analyze_main_page", "analyze_secondary_page", "scrape_website")

logger = logging.getLogger(LOGGER_NAME)

PageScanner = Callable[..., List[str]]


@dataclass(slots=True)
class PageSignals:
    """Сигналы, извлечённые из одной страницы."""
    emails: List[str] = field(default_factory=list)
    social: SocialHandles = field(default_factory=SocialHandles)
    links: PageLinks = field(default_factory=PageLinks)


def _social_of(result: ExtractResult) -> SocialHandles:
    return result.value if isinstance(result, Extracted) else SocialHandles()


def analyze_main_page(page: ParsedPage, config: ScoutConfig) -> PageSignals:
    """Запускает все экстракторы по главной странице; сбой одного не влияет на остальные."""
    extract = partial(extract_emails, tlds=config.likely_real_tlds)
    results: List[ExtractResult] = [
        run_extractor("text", emails_from_text, page, extract),
        run_extractor("obfuscated", obfuscated_emails, page, extract),
        run_extractor("accessibility", emails_from_accessibility, page, extract),
        run_extractor("contact_forms", emails_from_contact_forms, page, extract),
        run_extractor("hidden", emails_from_hidden_content, page, extract),
        run_extractor("meta", emails_from_meta_tags, page, extract),
        run_extractor(
            "structured_data", emails_from_structured_data, page, extract, config.structured_data_max_depth
        ),
        run_extractor("url", emails_from_url, page.url, extract),
        run_extractor("styles", emails_from_styles, page, extract),
        run_extractor("data_attributes", emails_from_data_attributes, page, extract),
        run_extractor("contact_elements", emails_from_contact_elements, page, extract),
    ]
    socials = [_social_of(run_extractor("social", extract_social_media, page.soup))]

    footer = run_extractor("footer", footer_signals, page, extract)
    if isinstance(footer, Extracted):
        footer_emails, footer_social = footer.value
        results.append(Extracted("footer", footer_emails))
        socials.append(footer_social)

    links = run_extractor("links", classify_links, page, config.max_external_links)
    return PageSignals(
        emails=merge_successful(results),
        social=SocialHandles().merge(*socials),
        links=links.value if isinstance(links, Extracted) else PageLinks(),
    )


def analyze_secondary_page(page: ParsedPage, scanner: PageScanner, config: ScoutConfig) -> PageSignals:
    """Письма и соцсети со страницы contact/about."""
    extract = partial(extract_emails, tlds=config.likely_real_tlds)
    emails = run_extractor(scanner.__name__, scanner, page, extract)
    social = run_extractor("social", extract_social_media, page.soup)
    return PageSignals(emails=merge_successful([emails]), social=_social_of(social))


class ContactCrawler:
    """Асинхронный сборщик контактов сайта: одна главная страница плюс contact/about."""

    def __init__(self, config: Optional[ScoutConfig] = None, session: Optional[ClientSession] = None) -> None:
        self.config = config or ScoutConfig()
        self.session = session
        self._owns_session = session is None
        self.fetcher: Optional[Fetcher] = Fetcher(session, self.config) if session else None
        self.logger = logging.getLogger(LOGGER_NAME)

    async def __aenter__(self) -> ContactCrawler:
        if self.session is None:
            self.session = ClientSession(raise_for_status=False)
            self.fetcher = Fetcher(self.session, self.config)
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._owns_session and self.session and not self.session.closed:
            await self.session.close()

    async def scrape_website(self, url: Any) -> ContactRecord:
        """
        Обходит сайт и возвращает ContactRecord; никогда не бросает исключений.

        Пустой или некорректный URL, домен из списка обхода и любые сбои
        дают пустую запись с лучшим известным exact_website_url.
        """
        if not isinstance(url, str) or not url.strip():
            self.logger.error("Некорректный URL: %r", url)
            return ContactRecord.empty(url)
        original = url
        url = ensure_scheme(url.strip())
        if not is_valid_url(url):
            self.logger.error("Некорректный формат URL: %s", url)
            return ContactRecord.empty(original)
        if self.fetcher is None:
            raise RuntimeError("Session not initialized")

        if is_redirect_wrapper_url(url, self.config.redirect_patterns):
            resolved = await resolve_redirect(self.fetcher, url)
            if resolved:
                self.logger.info("Редирект %s -> %s", url, resolved)
                url = resolved
            else:
                self.logger.info("Не удалось разрешить редирект: %s", url)

        if is_bypass_domain(url, self.config.bypass_domains):
            self.logger.info("Пропуск домена крупной платформы: %s", url)
            return ContactRecord.empty(url)

        exact = url
        try:
            exact = await find_canonical_url(self.fetcher, url)
            return await self._crawl(url, exact)
        except asyncio.CancelledError:
            raise
        except Exception as e:  # noqa: BLE001 - a crawl never fails its caller
            self.logger.error("Ошибка обхода %s: %s", url, e)
            return ContactRecord.empty(exact)

    def _clip(self, html: str, url: str) -> str:
        limit = self.config.max_body_chars
        if len(html) > limit:
            self.logger.debug("HTML %s обрезан до %d символов (было %d)", url, limit, len(html))
            return html[:limit]
        return html

    async def _crawl(self, url: str, exact: str) -> ContactRecord:
        assert self.fetcher is not None
        timeouts = self.config.timeouts
        main = await self.fetcher.fetch_with_timeout(url, timeouts.main_page, read_timeout=timeouts.body_read)
        if main is None or not main.ok:
            self.logger.info("Не удалось загрузить %s: %s", url, f"HTTP {main.status}" if main else "сбой запроса")
            return ContactRecord.empty(exact)
        if not main.body:
            return ContactRecord.empty(exact)
        # относительные ссылки и "свой" хост считаются от адреса после редиректов
        page_url = main.final_url or url
        self.logger.debug("Загружено %s, %d символов", page_url, len(main.body))

        try:
            return await asyncio.wait_for(
                self._extract(page_url, self._clip(main.body, page_url), exact), timeouts.parse_phase
            )
        except asyncio.TimeoutError:
            self.logger.warning("Разбор %s превысил %.1f с", page_url, timeouts.parse_phase)
            return ContactRecord.empty(exact)

    async def _extract(self, url: str, html: str, exact: str) -> ContactRecord:
        page = await asyncio.to_thread(parse_html, html, url)
        main = await asyncio.to_thread(analyze_main_page, page, self.config)
        contact_url = main.links.contact_url
        about_url = main.links.about_url
        contact = await self._scan_secondary(contact_url, contact_page_emails)
        about = await self._scan_secondary(about_url, about_page_emails)
        return ContactRecord.build(
            exact_website_url=exact,
            emails=[*main.emails, *contact.emails, *about.emails],
            socials=(main.social, contact.social, about.social),
            contact_url=contact_url,
            about_url=about_url,
            external_links=main.links.external,
        )

    async def _scan_secondary(self, url: Optional[str], scanner: PageScanner) -> PageSignals:
        if url is None:
            return PageSignals()
        assert self.fetcher is not None
        result = await self.fetcher.fetch_with_timeout(url, self.config.timeouts.secondary_page)
        if result is None or not result.ok or not result.body:
            self.logger.info("Не удалось загрузить страницу %s", url)
            return PageSignals()
        page_url = result.final_url or url
        page = await asyncio.to_thread(parse_html, self._clip(result.body, page_url), page_url)
        return await asyncio.to_thread(analyze_secondary_page, page, scanner, self.config)


async def scrape_website(url: Any, config: Optional[ScoutConfig] = None) -> ContactRecord:
    """Один обход сайта с собственной HTTP-сессией."""
    async with ContactCrawler(config) as crawler:
        return await crawler.scrape_website(url)
