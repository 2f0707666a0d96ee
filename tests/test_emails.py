# tests/test_emails.py
import pytest

from contact_scout.parser.emails import extract_emails, is_acceptable_email


def test_placeholder_address_is_dropped():
    text = "Contact us at hello@example.com or sales@realcompany.io"
    assert extract_emails(text) == ["sales@realcompany.io"]


def test_text_without_at_sign_short_circuits():
    assert extract_emails("") == []
    assert extract_emails("no addresses here") == []


@pytest.mark.parametrize(
    "candidate",
    [
        "logo@2x.png",
        "icon@3x.webp",
        "abc123@sentry.io",
        "8f2a@sentry-next.wixpress.com",
        "admin@startup.io",
        "noreply@startup.io",
        "jane@yourdomain.com",
        "x@a.b",
    ],
)
def test_rejected_candidates(candidate):
    assert extract_emails(f"see {candidate} now") == []


def test_multiple_real_addresses_keep_order():
    text = "<p>founder@startup.io</p><p>press@startup.io</p><p>founder@startup.io</p>"
    assert extract_emails(text) == ["founder@startup.io", "press@startup.io"]


def test_uncommon_tld_needs_plain_pattern():
    # apostrophes only pass when the TLD is on the lenient list
    text = "Write to o'brien@startup.dev today"
    assert extract_emails(text) == ["brien@startup.dev"]
    assert "o'brien@startup.dev" in extract_emails(text, tlds=(".dev",))


def test_is_acceptable_email():
    assert is_acceptable_email("ceo@startup.io")
    assert is_acceptable_email("team@studio.design")
    assert not is_acceptable_email("team@studio/design.io")
    assert not is_acceptable_email("@startup.io")
    assert not is_acceptable_email("support@startup.io")
