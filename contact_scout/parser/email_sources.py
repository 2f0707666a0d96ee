"""
Extraction surfaces feeding :func:`contact_scout.parser.emails.extract_emails`.

Each function scans one location of a parsed page (or of the page URL),
hands the text it finds to the shared ``extract`` callable and returns the
de-duplicated addresses.  None of them knows about the others; the crawler
runs them in isolation through :mod:`contact_scout.parser.results`.
"""
from __future__ import annotations

import base64
import binascii
import html
import json
import re
from typing import Callable, Iterable, List, Sequence, Tuple
from urllib.parse import parse_qsl, unquote, urlsplit

from bs4 import Comment

from contact_scout.crawler.models import SocialHandles
from contact_scout.parser.emails import extract_emails
from contact_scout.parser.html_parser import ParsedPage, attr, inner_html, raw_text, text_of
from contact_scout.parser.social import extract_social_media
from contact_scout.parser.structured_data import find_email_values

__all__: Sequence[str] = (
    "Extract",
    "CONTACT_SELECTORS",
    "FOOTER_SELECTORS",
    "decode_base64",
    "deobfuscate",
    "emails_from_text",
    "emails_from_url",
    "emails_from_styles",
    "emails_from_data_attributes",
    "emails_from_hidden_content",
    "emails_from_meta_tags",
    "emails_from_structured_data",
    "obfuscated_emails",
    "emails_from_accessibility",
    "emails_from_contact_forms",
    "emails_from_contact_elements",
    "contact_page_emails",
    "about_page_emails",
    "footer_signals",
)

Extract = Callable[[str], List[str]]

CONTACT_SELECTORS: tuple[str, ...] = (
    'a[href^="mailto:"]',
    ".contact",
    ".contact-info",
    ".email",
    ".email-address",
    "#contact",
    "#email",
    '[class*="contact"]',
    '[class*="email"]',
    '[id*="contact"]',
    '[id*="email"]',
    ".vcard",
    ".hcard",
    ".author",
    ".byline",
    ".signature",
    ".bio",
    ".profile",
    ".about-author",
    ".team-member",
    ".staff",
    ".employee",
)

FOOTER_SELECTORS: tuple[str, ...] = (
    "footer",
    ".footer",
    "#footer",
    '[class*="footer"]',
    ".bottom",
    ".bottom-bar",
    ".copyright",
    ".site-info",
)

_HIDDEN_SELECTOR = (
    '[style*="display:none"], [style*="display: none"], '
    '[style*="visibility:hidden"], [style*="visibility: hidden"], [hidden], .hidden'
)
_CONTACT_FORM_SELECTOR = (
    'form[action*="contact"], form[action*="email"], form[id*="contact"], '
    'form[class*="contact"], form[id*="email"], form[class*="email"]'
)
_ENCODED_ATTR_HINTS = ("email", "contact", "mail")

_CSS_ESCAPES = (
    (re.compile(r"\\0040\s?", re.IGNORECASE), "@"),
    (re.compile(r"\\002e\s?", re.IGNORECASE), "."),
    (re.compile(r"\\002f\s?", re.IGNORECASE), "/"),
)

_OBFUSCATIONS = (
    (re.compile(r"\s*\[\s*at\s*\]\s*", re.IGNORECASE), "@"),
    (re.compile(r"\s*\(\s*at\s*\)\s*", re.IGNORECASE), "@"),
    (re.compile(r"\s*\{\s*at\s*\}\s*", re.IGNORECASE), "@"),
    (re.compile(r"\s+at\s+", re.IGNORECASE), "@"),
    (re.compile(r"\s*\[\s*dot\s*\]\s*", re.IGNORECASE), "."),
    (re.compile(r"\s*\(\s*dot\s*\)\s*", re.IGNORECASE), "."),
    (re.compile(r"\s*\{\s*dot\s*\}\s*", re.IGNORECASE), "."),
    (re.compile(r"\s+dot\s+", re.IGNORECASE), "."),
)
_AT_MARKERS = ("[at]", "(at)", "{at}", " at ")
_DOT_MARKERS = ("[dot]", "(dot)", "{dot}", " dot ")

_JS_LITERAL_RE = re.compile(r"[\"']([^\"'@\s]+@[^\"'\s]+\.[^\"'\s]+)[\"']")
_JS_CONCAT_RE = re.compile(r"['\"]([^'\"]+@[^'\"]+|[^'\"]+\.[^'\"]{2,})['\"]\s*\+\s*['\"]")
_JS_JOIN_RE = re.compile(r"['\"]\s*\+\s*['\"]")


def _looks_like_email(value: str) -> bool:
    return "@" in value and "." in value


def _collect(chunks: Iterable[List[str]]) -> List[str]:
    return list(dict.fromkeys(email for chunk in chunks for email in chunk))


def decode_base64(value: str) -> str | None:
    """Strict base64 decode to UTF-8 text, ``None`` if *value* is not base64."""
    data = value.strip()
    if not data:
        return None
    try:
        return base64.b64decode(data + "=" * (-len(data) % 4), validate=True).decode("utf-8")
    except (binascii.Error, ValueError):
        return None


def deobfuscate(text: str) -> str:
    """Replace ``[at]``/``(at)``/`` at `` and ``[dot]``/``(dot)``/`` dot ``."""
    out = text
    for rx, repl in _OBFUSCATIONS:
        out = rx.sub(repl, out)
    return out


def _decode_css(text: str) -> str:
    for rx, repl in _CSS_ESCAPES:
        text = rx.sub(repl, text)
    return text


def emails_from_text(page: ParsedPage, extract: Extract = extract_emails) -> List[str]:
    """Regex scan of the raw page markup."""
    return extract(page.html)


def emails_from_url(url: str, extract: Extract = extract_emails) -> List[str]:
    """Addresses carried in query parameters or the decoded path of *url*."""
    found: List[List[str]] = []
    parts = urlsplit(url)
    for _key, value in parse_qsl(parts.query, keep_blank_values=True):
        if _looks_like_email(value):
            found.append(extract(value))
    if _looks_like_email(parts.path):
        found.append(extract(unquote(parts.path)))
    return _collect(found)


def emails_from_styles(page: ParsedPage, extract: Extract = extract_emails) -> List[str]:
    """CSS ``content`` values, inline and in ``<style>`` blocks, with escapes decoded."""
    found: List[List[str]] = []
    blocks = [attr(el, "style") for el in page.select("[style]")]
    blocks += [raw_text(el) for el in page.select("style")]
    for css in blocks:
        if "content" in css and ("@" in css or "\\0040" in css.lower()):
            found.append(extract(_decode_css(css)))
    return _collect(found)


def emails_from_data_attributes(page: ParsedPage, extract: Extract = extract_emails) -> List[str]:
    """``data-*`` attribute values, plain, base64 and URL-encoded."""
    found: List[List[str]] = []
    for el in page.soup.find_all(True):
        for name, value in el.attrs.items():
            if not name.startswith("data-") or not isinstance(value, str):
                continue
            if _looks_like_email(value):
                found.append(extract(value))
            if any(hint in name for hint in _ENCODED_ATTR_HINTS):
                decoded = decode_base64(value)
                if decoded and _looks_like_email(decoded):
                    found.append(extract(decoded))
                unquoted = unquote(value)
                if unquoted != value and _looks_like_email(unquoted):
                    found.append(extract(unquoted))
    return _collect(found)


def emails_from_hidden_content(page: ParsedPage, extract: Extract = extract_emails) -> List[str]:
    """HTML comments, hidden elements and ``<noscript>`` bodies."""
    found: List[List[str]] = []
    for comment in page.soup.find_all(string=lambda s: isinstance(s, Comment)):
        text = str(comment)
        if "@" in text or " at " in text:
            found.append(extract(deobfuscate(text)))
    for el in page.select(_HIDDEN_SELECTOR):
        text = text_of(el)
        if "@" in text or " at " in text:
            found.append(extract(text))
    for el in page.select("noscript"):
        content = inner_html(el)
        if "@" in content or " at " in content:
            found.append(extract(content))
    return _collect(found)


def emails_from_meta_tags(page: ParsedPage, extract: Extract = extract_emails) -> List[str]:
    """``<meta content>`` values, OpenGraph/Twitter-card/itemprop included."""
    found: List[List[str]] = []
    for el in page.select("meta[content]"):
        content = attr(el, "content")
        if _looks_like_email(content):
            found.append(extract(content))
    for el in page.select('[itemprop="email"]'):
        value = attr(el, "content") or text_of(el)
        if _looks_like_email(value):
            found.append(extract(value))
    return _collect(found)


def emails_from_structured_data(
    page: ParsedPage, extract: Extract = extract_emails, max_depth: int = 32
) -> List[str]:
    """JSON-LD blocks: parsed tree first, raw regex scan if the JSON is broken."""
    found: List[List[str]] = []
    for el in page.select('script[type="application/ld+json"]'):
        content = raw_text(el)
        try:
            data = json.loads(content)
        except ValueError:
            if _looks_like_email(content):
                found.append(extract(content))
            continue
        serialized = json.dumps(data, ensure_ascii=False)
        if _looks_like_email(serialized):
            found.append(extract(serialized))
        for value in find_email_values(data, max_depth):
            found.append(extract(value))
    return _collect(found)


def obfuscated_emails(page: ParsedPage, extract: Extract = extract_emails) -> List[str]:
    """``data-email`` payloads, script literals, numeric entities and [at]/[dot] text."""
    found: List[List[str]] = []

    for el in page.select("[data-email]"):
        encoded = attr(el, "data-email")
        decoded = decode_base64(encoded)
        if decoded and _looks_like_email(decoded):
            found.append(extract(decoded))
        elif _looks_like_email(encoded):
            found.append(extract(encoded))

    for el in page.select("script"):
        script = raw_text(el)
        if not script:
            continue
        for match in _JS_LITERAL_RE.finditer(script):
            found.append(extract(match.group(1)))
        for match in _JS_CONCAT_RE.finditer(script):
            start = max(0, match.start() - 50)
            context = script[start : match.end() + 50]
            found.append(extract(_JS_JOIN_RE.sub("", context)))

    if "&#" in page.html:
        found.append(extract(html.unescape(page.html)))

    root = page.soup.body or page.soup
    for el in root.find_all(True):
        text = text_of(el)
        lowered = text.lower()
        if any(m in lowered for m in _AT_MARKERS) and any(m in lowered for m in _DOT_MARKERS):
            found.append(extract(deobfuscate(text)))

    return _collect(found)


def emails_from_accessibility(page: ParsedPage, extract: Extract = extract_emails) -> List[str]:
    """``alt``, ``aria-label`` and ``title`` attribute values."""
    found: List[List[str]] = []
    for selector, name in (("img[alt]", "alt"), ("[aria-label]", "aria-label"), ("[title]", "title")):
        for el in page.select(selector):
            value = attr(el, name)
            if _looks_like_email(value):
                found.append(extract(value))
    return _collect(found)


def emails_from_contact_forms(page: ParsedPage, extract: Extract = extract_emails) -> List[str]:
    """Hidden fields, default values and placeholders of contact/email forms."""
    found: List[List[str]] = []
    for form in page.select(_CONTACT_FORM_SELECTOR):
        for field in form.select('input[type="hidden"]'):
            value = attr(field, "value")
            if _looks_like_email(value):
                found.append(extract(value))
        for field in form.select('input[type="text"], input[type="email"]'):
            for value in (attr(field, "value"), attr(field, "placeholder")):
                if _looks_like_email(value):
                    found.append(extract(value))
    return _collect(found)


def _mailto_address(href: str) -> str:
    return unquote(href[len("mailto:") :].split("?", 1)[0]).strip()


def emails_from_contact_elements(page: ParsedPage, extract: Extract = extract_emails) -> List[str]:
    """Text and ``mailto:`` targets of typical contact containers."""
    found: List[List[str]] = []
    for selector in CONTACT_SELECTORS:
        for el in page.select(selector):
            found.append(extract(text_of(el)))
            href = attr(el, "href")
            if href.lower().startswith("mailto:"):
                address = _mailto_address(href)
                if "@" in address and " " not in address:
                    found.append(extract(address))
    return _collect(found)


def contact_page_emails(page: ParsedPage, extract: Extract = extract_emails) -> List[str]:
    """Extra scan for a contact page: email inputs and block-level text."""
    found: List[List[str]] = [extract(page.html)]
    for field in page.select('input[type="email"], input[name*="email"], input[placeholder*="email"]'):
        for value in (attr(field, "placeholder"), attr(field, "value")):
            if _looks_like_email(value):
                found.append(extract(value))
    for el in page.select("p, div, span, address"):
        text = text_of(el)
        if _looks_like_email(text):
            found.append(extract(text))
    return _collect(found)


def about_page_emails(page: ParsedPage, extract: Extract = extract_emails) -> List[str]:
    """Extra scan for an about page: team-member blocks."""
    found: List[List[str]] = [extract(page.html)]
    selector = '.team, .team-member, .member, .employee, [class*="team"], [class*="member"]'
    for el in page.select(selector):
        text = text_of(el)
        if _looks_like_email(text):
            found.append(extract(text))
    return _collect(found)


def footer_signals(page: ParsedPage, extract: Extract = extract_emails) -> Tuple[List[str], SocialHandles]:
    """Emails and social handles found inside footer-like containers only."""
    emails: List[List[str]] = []
    socials: List[SocialHandles] = []
    for selector in FOOTER_SELECTORS:
        for el in page.select(selector):
            emails.append(extract(inner_html(el)))
            socials.append(extract_social_media(el))
    return _collect(emails), SocialHandles().merge(*socials)
