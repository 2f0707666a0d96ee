"""contact_scout.utils: Утилиты для нормализации URL, проверки доменов и дедупликации."""

from __future__ import annotations

import re
from typing import Iterable, List, Sequence
from urllib.parse import urlsplit

from contact_scout.logger import logger

__all__: Sequence[str] = (
    "BYPASS_DOMAINS",
    "REDIRECT_PATTERNS",
    "QUERY_KEEP_MARKERS",
    "ensure_scheme",
    "normalize_url",
    "is_valid_url",
    "is_bypass_domain",
    "is_redirect_wrapper_url",
    "extract_domain",
    "remove_duplicates",
    "dedupe_casefold",
)

# Major platforms that are never crawled for contact data.
BYPASS_DOMAINS: tuple[str, ...] = (
    "facebook.com",
    "fb.com",
    "apple.com",
    "google.com",
    "microsoft.com",
    "amazon.com",
    "twitter.com",
    "x.com",
    "instagram.com",
    "linkedin.com",
    "youtube.com",
    "github.com",
    "netflix.com",
    "spotify.com",
    "adobe.com",
    "salesforce.com",
    "oracle.com",
    "ibm.com",
    "intel.com",
    "cisco.com",
    "samsung.com",
    "meta.com",
    "alphabet.com",
    "openai.com",
    "anthropic.com",
    "gemini.com",
    "bard.google.com",
)

# Tracking/proxy URLs issued by the listing platform.
REDIRECT_PATTERNS: tuple[str, ...] = ("producthunt.com/r/", "ph.co/")

# Query strings survive normalization only on URLs that mention these.
QUERY_KEEP_MARKERS: tuple[str, ...] = ("product", "item", "page")

_SCHEME_RE = re.compile(r"^https?://", re.IGNORECASE)
_DEFAULT_PORTS = {"http": 80, "https": 443}


def ensure_scheme(url: str) -> str:
    """Добавляет https://, если у URL нет схемы http(s)."""
    if _SCHEME_RE.match(url):
        return url
    return "https://" + url


def _origin(scheme: str, hostname: str, port: int | None) -> str:
    if ":" in hostname:
        hostname = f"[{hostname}]"
    if port is None or _DEFAULT_PORTS.get(scheme) == port:
        return f"{scheme}://{hostname}"
    return f"{scheme}://{hostname}:{port}"


def normalize_url(url: str) -> str:
    """Нормализует URL: схема, origin + путь без завершающего слеша.

    Query сохраняется только если URL упоминает product/item/page.
    При ошибке разбора возвращает вход без изменений.
    """
    if not url or not isinstance(url, str):
        return url
    try:
        parts = urlsplit(ensure_scheme(url.strip()))
        hostname = parts.hostname
        if not hostname:
            return url
        base = _origin(parts.scheme.lower(), hostname, parts.port) + parts.path.rstrip("/")
        if parts.query:
            candidate = f"{base}?{parts.query}"
            if any(marker in candidate for marker in QUERY_KEEP_MARKERS):
                return candidate
        return base
    except ValueError as exc:
        logger.debug("Could not normalize %r: %s", url, exc)
        return url


def is_valid_url(url: object) -> bool:
    """Проверяет, что строка непустая, разбирается и использует http(s)."""
    if not isinstance(url, str) or not url.strip():
        return False
    try:
        parts = urlsplit(url.strip())
        host = parts.hostname or ""
        return parts.scheme in ("http", "https") and bool(host) and not any(c.isspace() for c in host)
    except ValueError:
        return False


def is_bypass_domain(url: str, domains: Iterable[str] = BYPASS_DOMAINS) -> bool:
    """True, если хост совпадает с доменом из списка или является его поддоменом."""
    try:
        host = (urlsplit(url).hostname or "").lower()
    except ValueError as exc:
        logger.error("Error parsing URL %s: %s", url, exc)
        return False
    if not host:
        return False
    return any(host == d or host.endswith(f".{d}") for d in domains)


def is_redirect_wrapper_url(url: str, patterns: Iterable[str] = REDIRECT_PATTERNS) -> bool:
    """True для прокси-ссылок площадки листинга (``/r/`` сегмент, короткий хост)."""
    if not isinstance(url, str):
        return False
    return any(p in url for p in patterns)


def extract_domain(url: str) -> str:
    """Возвращает хост из URL в нижнем регистре (пусто при ошибке)."""
    try:
        return (urlsplit(url).hostname or "").lower()
    except ValueError:
        return ""


def remove_duplicates(urls: Iterable[str]) -> List[str]:
    """Удаляет дубликаты из списка, сохраняя порядок."""
    items = list(urls)
    unique = list(dict.fromkeys(items))
    removed = len(items) - len(unique)
    if removed:
        logger.debug("Removed %d duplicates", removed)
    return unique


def dedupe_casefold(values: Iterable[str]) -> List[str]:
    """Дедупликация без учёта регистра; побеждает первое написание."""
    seen: set[str] = set()
    out: List[str] = []
    for v in values:
        key = v.lower()
        if key not in seen:
            seen.add(key)
            out.append(v)
    return out
