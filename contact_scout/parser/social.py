"""
Social-media signal extraction.

Twitter handles come from free text, from profile links and from icon
elements sitting outside any link.  Facebook, Instagram and LinkedIn are
collected as cleaned profile/page URLs; share dialogs and post links are
dropped.
"""
from __future__ import annotations

import logging
import re
from typing import Any, Callable, List, Optional, Sequence
from urllib.parse import SplitResult, urlsplit

from bs4.element import Tag

from contact_scout.crawler.models import SocialHandles
from contact_scout.logger import LOGGER_NAME
from contact_scout.parser.html_parser import attr, select, text_of

__all__: Sequence[str] = (
    "TWITTER_RESERVED_PATHS",
    "extract_social_media",
    "twitter_handles_in_text",
    "twitter_handle_from_href",
    "facebook_url_from_href",
    "instagram_url_from_href",
    "linkedin_url_from_href",
)

logger = logging.getLogger(LOGGER_NAME)

# First path segments that are site features, not accounts.
TWITTER_RESERVED_PATHS: frozenset[str] = frozenset(
    {
        "share",
        "intent",
        "home",
        "hashtag",
        "compose",
        "search",
        "explore",
        "notifications",
        "messages",
        "settings",
        "i",
        "status",
        "statuses",
        "tweet",
        "retweet",
        "like",
        "reply",
        "follow",
        "unfollow",
        "block",
        "mute",
        "report",
        "lists",
        "moments",
        "topics",
        "bookmarks",
    }
)
INSTAGRAM_RESERVED_PATHS: frozenset[str] = frozenset({"p", "explore", "direct", "stories"})

_TWITTER_HOSTS = ("twitter.com", "x.com", "t.co")
_HANDLE_IN_TEXT_RE = re.compile(r"(?:^|\s)(@[A-Za-z0-9_]{1,15})(?=\s|$)")
_HANDLE_RE = re.compile(r"^@[A-Za-z0-9_]{1,15}$")
_TWITTER_FALLBACK_RE = re.compile(r"twitter\.com/([A-Za-z0-9_]+)", re.IGNORECASE)
_MIN_PROFILE_URL_LEN = 25

_LINK_SELECTOR = (
    "a[href*='twitter.com'], a[href*='x.com'], a[href*='t.co'], a[href*='facebook.com'], "
    "a[href*='fb.com'], a[href*='instagram.com'], a[href*='linkedin.com'], "
    "[class*='social'], [id*='social'], footer a, .footer a"
)
_ICON_SELECTOR = (
    "i[class*='twitter'], i[class*='facebook'], i[class*='instagram'], i[class*='linkedin'], "
    "svg[class*='twitter'], svg[class*='facebook'], svg[class*='instagram'], svg[class*='linkedin']"
)
_TWITTER_ICON_HINTS = ("twitter", "tweet", "x-", "x ")
_SKIPPED_TEXT_PARENTS = frozenset({"script", "style", "noscript", "template"})


def _absolute(href: str) -> str:
    if href.startswith("//"):
        return "https:" + href
    if not href.lower().startswith("http"):
        return "https://" + href
    return href


def _split(href: str) -> SplitResult:
    parts = urlsplit(_absolute(href))
    if not parts.hostname:
        raise ValueError(f"no host in {href!r}")
    return parts


def _origin(parts: SplitResult) -> str:
    host = parts.netloc.rsplit("@", 1)[-1].lower()
    return f"{parts.scheme.lower()}://{host}"


def _host_matches(parts: SplitResult, domains: Sequence[str]) -> bool:
    host = (parts.hostname or "").lower()
    return any(host == d or host.endswith(f".{d}") for d in domains)


def twitter_handles_in_text(text: str) -> List[str]:
    """``@handle`` tokens bounded by whitespace or string edges."""
    return [m.group(1) for m in _HANDLE_IN_TEXT_RE.finditer(text or "") if len(m.group(1)) > 1]


def twitter_handle_from_href(href: str) -> Optional[str]:
    """``@handle`` from a twitter.com / x.com / t.co profile link."""
    try:
        parts = _split(href)
    except ValueError:
        match = _TWITTER_FALLBACK_RE.search(href)
        if match and len(match.group(1)) <= 15:
            return "@" + match.group(1)
        return None
    if not _host_matches(parts, _TWITTER_HOSTS):
        return None
    segments = [s for s in parts.path.split("/") if s]
    if not segments or segments[0].lower() in TWITTER_RESERVED_PATHS:
        return None
    handle = segments[0].strip()
    if not handle.startswith("@"):
        handle = "@" + handle
    return handle if _HANDLE_RE.match(handle) else None


def facebook_url_from_href(href: str) -> Optional[str]:
    """Cleaned page/profile URL; share and dialog links are rejected."""
    try:
        parts = _split(href)
    except ValueError:
        if "facebook.com/" in href and len(href) > _MIN_PROFILE_URL_LEN:
            return href
        return None
    if "/sharer" in parts.path or "/dialog" in parts.path:
        return None
    clean = _origin(parts) + parts.path
    if len(clean) <= _MIN_PROFILE_URL_LEN or clean.endswith(("facebook.com/", "fb.com/")):
        return None
    return clean


def instagram_url_from_href(href: str) -> Optional[str]:
    """``{origin}/{account}``; post, explore, direct and story links are rejected."""
    try:
        parts = _split(href)
    except ValueError:
        if len(href) > _MIN_PROFILE_URL_LEN and "instagram.com/p/" not in href:
            return href
        return None
    segments = [s for s in parts.path.split("/") if s]
    if not segments or segments[0] in INSTAGRAM_RESERVED_PATHS:
        return None
    clean = f"{_origin(parts)}/{segments[0]}"
    if len(clean) <= _MIN_PROFILE_URL_LEN:
        return None
    return clean


def _is_linkedin_profile(url: str) -> bool:
    return len(url) > _MIN_PROFILE_URL_LEN and any(p in url for p in ("/in/", "/company/", "/school/"))


def linkedin_url_from_href(href: str) -> Optional[str]:
    """Cleaned ``/in/``, ``/company/`` or ``/school/`` URL."""
    try:
        parts = _split(href)
    except ValueError:
        return href if _is_linkedin_profile(href) else None
    if "/share" in parts.path:
        return None
    clean = _origin(parts) + parts.path
    return clean if _is_linkedin_profile(clean) else None


_NETWORKS: tuple[tuple[str, tuple[str, ...], Callable[[str], Optional[str]]], ...] = (
    ("twitter", ("twitter.com/", "x.com/", "t.co/"), twitter_handle_from_href),
    ("facebook", ("facebook.com/", "fb.com/"), facebook_url_from_href),
    ("instagram", ("instagram.com/",), instagram_url_from_href),
    ("linkedin", ("linkedin.com/",), linkedin_url_from_href),
)


def _text_nodes(root: Any) -> List[str]:
    nodes = []
    for node in root.find_all(string=True):
        parent = node.parent
        if parent is not None and parent.name in _SKIPPED_TEXT_PARENTS:
            continue
        nodes.append(str(node))
    return nodes


def extract_social_media(root: Any) -> SocialHandles:
    """Collect social signals from a parsed document or any subtree of it."""
    found = SocialHandles()

    for text in _text_nodes(root):
        found.twitter.extend(twitter_handles_in_text(text))

    for el in select(root, _LINK_SELECTOR):
        href = attr(el, "href").strip()
        if not href or href in ("#", "/") or href.lower().startswith("javascript:"):
            continue
        for network, markers, parse in _NETWORKS:
            if any(m in href for m in markers):
                value = parse(href)
                if value:
                    getattr(found, network).append(value)

    for el in select(root, _ICON_SELECTOR):
        parent = el.parent
        if isinstance(parent, Tag) and attr(parent, "href"):
            continue
        classes = attr(el, "class")
        if any(hint in classes for hint in _TWITTER_ICON_HINTS):
            found.twitter.extend(twitter_handles_in_text(text_of(parent)))

    return SocialHandles().merge(found)
