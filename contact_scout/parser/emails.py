"""
Email extraction core.

``extract_emails`` runs two regex passes over arbitrary text and then applies
a precision-oriented filter: placeholder domains and usernames are dropped,
common TLDs are accepted leniently and anything else has to pass a stricter
single pattern.
"""
from __future__ import annotations

import re
from typing import Iterable, List, Optional

__all__ = (
    "LIKELY_REAL_TLDS",
    "PLACEHOLDER_DOMAINS",
    "PLACEHOLDER_USERNAMES",
    "extract_emails",
    "is_acceptable_email",
)

_STRICT_RE = re.compile(
    r"(?:[a-z0-9!#$%&'*+/=?^_`{|}~-]+(?:\.[a-z0-9!#$%&'*+/=?^_`{|}~-]+)*"
    r"|\"(?:[\x01-\x08\x0b\x0c\x0e-\x1f\x21\x23-\x5b\x5d-\x7f]|\\[\x01-\x09\x0b\x0c\x0e-\x7f])*\")"
    r"@(?:(?:[a-z0-9](?:[a-z0-9-]*[a-z0-9])?\.)+[a-z0-9](?:[a-z0-9-]*[a-z0-9])?"
    r"|\[(?:(?:25[0-5]|2[0-4][0-9]|[01]?[0-9][0-9]?)\.){3}"
    r"(?:25[0-5]|2[0-4][0-9]|[01]?[0-9][0-9]?|[a-z0-9-]*[a-z0-9]:"
    r"(?:[\x01-\x08\x0b\x0c\x0e-\x1f\x21-\x5a\x53-\x7f]|\\[\x01-\x09\x0b\x0c\x0e-\x7f])+)\])",
    re.IGNORECASE,
)
_SIMPLE_RE = re.compile(r"[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}")
_COMMON_PATTERN_RE = re.compile(r"^[a-z0-9._%+-]+@[a-z0-9.-]+\.[a-z]{2,}$", re.IGNORECASE)
_SUSPICIOUS_RE = re.compile(r"[<>{}()\[\]\\/]")

# Asset file names such as logo@2x.png look like addresses.
_ASSET_SUFFIXES = (".png", ".jpg", ".jpeg", ".gif", ".webp", ".svg", ".css", ".js")

# Substring match against the domain part.
PLACEHOLDER_DOMAINS: tuple[str, ...] = (
    "example.com",
    "domain.com",
    "yourdomain.com",
    "email.com",
    "yourcompany.com",
    "acme.com",
    "test.com",
    "sample.com",
    "website.com",
    "gmail.example",
    "example.org",
    "example.net",
    "localhost",
    "test.local",
    "demo.com",
    "placeholder.com",
    "yoursite.com",
    "site.com",
    "user.com",
    "username.com",
    "mydomain.com",
    "mysite.com",
    "mycompany.com",
    "myemail.com",
    "emailaddress.com",
    "mailaddress.com",
    "mailbox.com",
    "mailme.com",
    "emailme.com",
    "contactme.com",
    "contactus.com",
    "sentry.io",
    "wixpress.com",
    ".example",
)

# Exact match against the local part.
PLACEHOLDER_USERNAMES: frozenset[str] = frozenset(
    {
        "user",
        "username",
        "email",
        "your",
        "yourname",
        "john.doe",
        "jane.doe",
        "johndoe",
        "admin",
        "test",
        "example",
        "hello",
        "noreply",
        "no-reply",
        "donotreply",
        "do-not-reply",
        "webmaster",
        "postmaster",
        "hostmaster",
        "marketing",
        "billing",
        "help",
        "service",
        "feedback",
        "enquiry",
        "inquiry",
        "info",
        "support",
        "contact",
        "mailer-daemon",
    }
)

LIKELY_REAL_TLDS: tuple[str, ...] = (
    ".com",
    ".org",
    ".net",
    ".io",
    ".co",
    ".us",
    ".uk",
    ".ca",
    ".au",
    ".de",
    ".fr",
    ".es",
    ".it",
    ".nl",
    ".ru",
    ".jp",
    ".cn",
    ".in",
    ".br",
    ".mx",
    ".se",
    ".no",
    ".dk",
    ".fi",
    ".pl",
    ".ch",
    ".at",
    ".be",
    ".ie",
    ".nz",
)


def is_acceptable_email(email: str, tlds: Optional[Iterable[str]] = None) -> bool:
    """Apply the placeholder blacklists and the two-tier accept policy."""
    lower = email.lower()
    local, sep, domain = lower.rpartition("@")
    if not sep or not local:
        return False
    if len(domain) < 4 or "." not in domain:
        return False
    if domain.endswith(_ASSET_SUFFIXES):
        return False
    if any(bad in domain for bad in PLACEHOLDER_DOMAINS):
        return False
    if local in PLACEHOLDER_USERNAMES:
        return False

    suspicious = bool(_SUSPICIOUS_RE.search(email))
    allowed = LIKELY_REAL_TLDS if tlds is None else tuple(tlds)
    if any(domain.endswith(tld) for tld in allowed):
        return not suspicious
    return bool(_COMMON_PATTERN_RE.match(email)) and not suspicious


def extract_emails(text: str, tlds: Optional[Iterable[str]] = None) -> List[str]:
    """Return the plausible email addresses found in *text*.

    Matches are unioned across both patterns and deduplicated as matched
    (case-sensitive); filtering is case-insensitive. ``tlds`` overrides the
    lenient TLD allow-list.
    """
    if not text or "@" not in text:
        return []
    allowed = None if tlds is None else tuple(tlds)
    candidates = dict.fromkeys(_STRICT_RE.findall(text) + _SIMPLE_RE.findall(text))
    return [c for c in candidates if is_acceptable_email(c, allowed)]
