# File: tests/conftest.py
from __future__ import annotations

from typing import Any, Dict, List

import pytest

from contact_scout.config import ScoutConfig, Timeouts
from contact_scout.crawler.models import ContactRecord, SocialHandles
from contact_scout.parser.html_parser import ParsedPage, parse_html


@pytest.fixture()
def fast_config() -> ScoutConfig:
    """
    Return a ScoutConfig with short budgets for local test servers.
    """
    return ScoutConfig(
        timeouts=Timeouts(
            redirect_probe=1.0,
            wrapper_page=1.0,
            canonical=1.0,
            main_page=1.0,
            secondary_page=1.0,
            body_read=1.0,
            parse_phase=5.0,
        ),
        batch_delay=0.0,
        notify_stagger=0.0,
        min_interval=0.0,
    )


@pytest.fixture()
def make_page():
    """
    Build a ParsedPage from an HTML snippet.
    """

    def _make(html: str, url: str = "https://acme-widgets.io/") -> ParsedPage:
        return parse_html(html, url)

    return _make


@pytest.fixture()
def sample_record() -> ContactRecord:
    """
    Provide a populated ContactRecord.
    """
    return ContactRecord(
        exact_website_url="https://acme-widgets.io",
        emails=["sales@acme-widgets.io"],
        social_media=SocialHandles(twitter=["@acmewidgets"], linkedin=["https://www.linkedin.com/company/acme-widgets"]),
        contact_url="https://acme-widgets.io/contact",
        about_url=None,
        external_links=["https://github.com/acme-widgets"],
    )


@pytest.fixture()
def items() -> List[Dict[str, Any]]:
    """
    Five listing items with websites.
    """
    return [{"id": str(i), "name": f"Product {i}", "website": f"https://product{i}.io"} for i in range(1, 6)]
