# contact_scout/crawler/link_extractor.py
"""
Link classification for ContactScout: contact/about page candidates and external links.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional
from urllib.parse import urljoin

from contact_scout.parser.html_parser import ParsedPage, attr, text_of
from contact_scout.utils import extract_domain, is_valid_url

__all__ = ("PageLinks", "classify_links", "resolve_href", "is_contact_link", "is_about_link", "external_links")

CONTACT_TEXT_KEYWORDS = ("contact", "get in touch", "reach out", "email us", "support")
CONTACT_HREF_KEYWORDS = ("contact", "support")
ABOUT_KEYWORDS = ("about", "team", "company")

_SKIPPED_SCHEMES = ("mailto:", "javascript:", "tel:", "data:")


@dataclass(slots=True)
class PageLinks:
    """Candidates found on one page, in document order."""

    contact: List[str] = field(default_factory=list)
    about: List[str] = field(default_factory=list)
    external: List[str] = field(default_factory=list)

    @property
    def contact_url(self) -> Optional[str]:
        return self.contact[0] if self.contact else None

    @property
    def about_url(self) -> Optional[str]:
        return self.about[0] if self.about else None


def resolve_href(base_url: str, href: str) -> Optional[str]:
    """
    Absolute http(s) URL for *href* found on *base_url*.

    Root-relative paths resolve against the origin, other relative paths
    against *base_url* treated as a directory. Non-navigational hrefs give None.
    """
    href = href.strip()
    if not href or href.startswith("#") or href.lower().startswith(_SKIPPED_SCHEMES):
        return None
    if href.startswith("http"):
        absolute = href
    else:
        base = base_url if base_url.endswith("/") else base_url + "/"
        try:
            absolute = urljoin(base, href)
        except ValueError:
            return None
    return absolute if is_valid_url(absolute) else None


def is_contact_link(href: str, text: str) -> bool:
    text = text.lower()
    return any(k in text for k in CONTACT_TEXT_KEYWORDS) or any(k in href for k in CONTACT_HREF_KEYWORDS)


def is_about_link(href: str, text: str) -> bool:
    text = text.lower()
    return any(k in text or k in href for k in ABOUT_KEYWORDS)


def external_links(page: ParsedPage, limit: int = 10) -> List[str]:
    """Absolute http(s) links pointing to another host, de-duplicated and capped at *limit*."""
    own_host = extract_domain(page.url)
    found: List[str] = []
    for tag in page.select("a[href]"):
        if len(found) >= limit:
            break
        href = attr(tag, "href").strip()
        if not href.startswith("http") or not is_valid_url(href):
            continue
        host = extract_domain(href)
        if host and host != own_host and href not in found:
            found.append(href)
    return found


def classify_links(page: ParsedPage, external_limit: int = 10) -> PageLinks:
    """Walk the anchors of *page* once and sort them into contact/about/external buckets."""
    links = PageLinks(external=external_links(page, external_limit))
    for tag in page.select("a"):
        href = attr(tag, "href")
        text = text_of(tag)
        contact = is_contact_link(href, text)
        about = is_about_link(href, text)
        if not (contact or about):
            continue
        absolute = resolve_href(page.url, href)
        if absolute is None:
            continue
        if contact and absolute not in links.contact:
            links.contact.append(absolute)
        if about and absolute not in links.about:
            links.about.append(absolute)
    return links

