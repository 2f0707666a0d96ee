# contact_scout/crawler/redirects.py
"""
Redirect-wrapper resolution and canonical URL discovery.

Both coroutines degrade instead of raising: ``resolve_redirect`` returns
None when no tier produces a target, ``find_canonical_url`` falls back to
the URL it was given.
"""
from __future__ import annotations

import logging
from typing import Optional
from urllib.parse import parse_qs, urljoin, urlsplit

from contact_scout.crawler.fetcher import Fetcher
from contact_scout.logger import LOGGER_NAME
from contact_scout.parser.html_parser import ParsedPage, attr, parse_html, text_of
from contact_scout.utils import is_valid_url, normalize_url

__all__ = ("resolve_redirect", "find_canonical_url", "target_from_query", "target_from_wrapper_page")

logger = logging.getLogger(LOGGER_NAME)

_VISIT_WORDS = ("visit", "website", "home")


def target_from_query(url: str) -> Optional[str]:
    """First ``url`` query parameter of *url*, if it is a valid URL itself."""
    try:
        values = parse_qs(urlsplit(url).query).get("url") or []
    except ValueError:
        return None
    if values and is_valid_url(values[0]):
        return values[0]
    return None


def _off_platform(href: str, platform_host: str) -> bool:
    return bool(href) and platform_host not in href


def target_from_wrapper_page(page: ParsedPage, platform_host: str) -> Optional[str]:
    """Search a wrapper page for the product's own website link."""
    for el in page.select('link[rel="canonical"]'):
        href = attr(el, "href").strip()
        if _off_platform(href, platform_host):
            return href
        break

    for el in page.select("meta"):
        prop = attr(el, "property") or attr(el, "name")
        if prop in ("og:url", "twitter:url"):
            content = attr(el, "content").strip()
            if _off_platform(content, platform_host):
                return content

    for el in page.select('a[rel="nofollow"]'):
        href = attr(el, "href").strip()
        if _off_platform(href, platform_host) and href.startswith("http"):
            return href

    for el in page.select("a"):
        href = attr(el, "href").strip()
        text = text_of(el).lower()
        if _off_platform(href, platform_host) and href.startswith("http") and any(w in text for w in _VISIT_WORDS):
            return href
    return None


async def resolve_redirect(fetcher: Fetcher, url: str) -> Optional[str]:
    """
    Resolve a listing-platform wrapper link to the product's website.

    Tiers, first hit wins: ``url`` query parameter, manual redirect probe,
    wrapper page scan. Returns the normalized target or None.
    """
    if not is_valid_url(url):
        logger.warning("Cannot resolve redirect for invalid URL: %s", url)
        return None
    timeouts = fetcher.config.timeouts

    target = target_from_query(url)
    if target:
        logger.debug("Redirect target from query parameter: %s", target)
        return normalize_url(target)

    probe = await fetcher.fetch_with_timeout(url, timeouts.redirect_probe, allow_redirects=False)
    if probe is not None and 300 <= probe.status < 400:
        location = probe.headers.get("Location")
        if location:
            logger.debug("Redirect %s -> %s", url, location)
            return normalize_url(urljoin(url, location))

    wrapper = await fetcher.fetch_with_timeout(url, timeouts.wrapper_page)
    if wrapper is None or not wrapper.ok:
        logger.info("Could not fetch wrapper page: %s", url)
        return None
    found = target_from_wrapper_page(parse_html(wrapper.body, wrapper.final_url), fetcher.config.platform_host)
    if found:
        logger.debug("Website link on wrapper page %s: %s", url, found)
        return normalize_url(found)
    logger.info("No website link on wrapper page: %s", url)
    return None


async def find_canonical_url(fetcher: Fetcher, url: str) -> str:
    """
    Fetch *url* following redirects and return the site's canonical URL.

    A valid ``<link rel="canonical">`` wins over the post-redirect URL;
    any failure yields *url* unchanged.
    """
    result = await fetcher.fetch_with_timeout(url, fetcher.config.timeouts.canonical)
    if result is None or not result.ok:
        logger.info("Canonical check failed for %s", url)
        return url
    final_url = result.final_url or url
    if result.body:
        page = parse_html(result.body, final_url)
        for el in page.select('link[rel="canonical"]'):
            href = attr(el, "href").strip()
            if is_valid_url(href):
                logger.debug("Canonical URL for %s: %s", url, href)
                return normalize_url(href)
            break
    return normalize_url(final_url)
