"""HTML parsing utilities for ContactScout.

Every extractor works on the same parsed tree, so a page is parsed exactly
once per crawl and handed around as a :class:`ParsedPage`.  The tree is a
:class:`bs4.BeautifulSoup` document; CSS selection goes through its
``soupsieve`` backend.  The helpers below smooth over the few places where
BeautifulSoup's API is awkward for scraping:

* attribute values may be lists (``class``), :func:`attr` always returns a string;
* :func:`inner_html` renders the children of a tag without the tag itself;
* :func:`select` swallows selector errors so one bad selector never aborts a scan.
"""
from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, List

from bs4 import BeautifulSoup
from bs4.element import NavigableString, Tag

from contact_scout.logger import LOGGER_NAME

__all__: Sequence[str] = ("ParsedPage", "parse_html", "attr", "inner_html", "text_of", "raw_text", "select")

logger = logging.getLogger(LOGGER_NAME)


@dataclass(slots=True)
class ParsedPage:
    """Lightweight representation of a fetched HTML page."""

    url: str
    html: str
    soup: BeautifulSoup

    def select(self, selector: str) -> List[Tag]:
        """Shortcut for :func:`select` on this page."""
        return select(self.soup, selector)


def parse_html(html: str, url: str = "") -> ParsedPage:
    """Parse raw *html* once and wrap it with its *url*."""
    soup = BeautifulSoup(html or "", "html.parser")
    return ParsedPage(url=url, html=html or "", soup=soup)


def select(root: Any, selector: str) -> List[Tag]:
    """Ordered list of elements under *root* matching a CSS *selector*."""
    try:
        return [el for el in root.select(selector) if isinstance(el, Tag)]
    except Exception as exc:  # noqa: BLE001 - soupsieve raises its own error types
        logger.debug("Selector %r failed: %s", selector, exc)
        return []


def attr(tag: Tag, name: str) -> str:
    """Attribute value as a string; empty when absent."""
    value = tag.get(name)
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return " ".join(str(v) for v in value)
    return str(value)


def text_of(tag: Any) -> str:
    """Text content of *tag* and its descendants, one space between nodes."""
    try:
        return tag.get_text(" ")
    except AttributeError:
        return str(tag or "")


def inner_html(tag: Tag) -> str:
    """Markup of the children of *tag*."""
    return tag.decode_contents()


def raw_text(tag: Tag) -> str:
    """Unescaped source text of a ``<script>``/``<style>`` body."""
    return "".join(str(child) for child in tag.contents if isinstance(child, NavigableString))
