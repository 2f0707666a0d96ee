# File: tests/test_fetcher.py
from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator

import pytest
import pytest_asyncio
from aiohttp import ClientConnectionError, ClientSession, web

from contact_scout.config import ScoutConfig
from contact_scout.crawler.fetcher import Fetcher
from contact_scout.crawler.models import FetchResult
from contact_scout.crawler.redirects import (
    find_canonical_url,
    resolve_redirect,
    target_from_query,
    target_from_wrapper_page,
)
from contact_scout.parser.html_parser import parse_html


# --------------------------------------------------------------------------- #
#                               Helper utilities                              #
# --------------------------------------------------------------------------- #


async def _serve_app(app: web.Application, port: int) -> AsyncIterator[str]:
    """Start *app* on *port*, yield base URL, ensure cleanup."""
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, "localhost", port)
    await site.start()
    try:
        yield f"http://localhost:{port}"
    finally:
        await runner.cleanup()


# --------------------------------------------------------------------------- #
#                            Test-server fixtures                             #
# --------------------------------------------------------------------------- #


@pytest_asyncio.fixture
async def site(unused_tcp_port: int) -> AsyncIterator[str]:
    app = web.Application()

    async def handle_root(_):
        return web.Response(
            text='<html><head><link rel="canonical" href="https://acme-widgets.io/home/"></head></html>',
            content_type="text/html",
        )

    async def handle_headers(request):
        return web.json_response(
            {
                "ua": request.headers.get("User-Agent"),
                "cache": request.headers.get("Cache-Control"),
                "lang": request.headers.get("Accept-Language"),
            }
        )

    async def handle_missing(_):
        return web.Response(status=404, text="gone")

    async def handle_error(_):
        return web.Response(status=500, text="boom")

    async def handle_slow(_):
        await asyncio.sleep(2)
        return web.Response(text="late", content_type="text/html")

    async def handle_old(_):
        return web.Response(status=301, headers={"Location": "/new/"})

    async def handle_new(_):
        return web.Response(text="<html><body>new home</body></html>", content_type="text/html")

    async def handle_wrapper_redirect(_):
        return web.Response(status=302, headers={"Location": "/landing/"})

    async def handle_wrapper_page(_):
        return web.Response(
            text=(
                '<html><body><a href="https://www.producthunt.com/posts/acme">Discuss</a>'
                '<a rel="nofollow" href="https://acme-widgets.io/?ref=ph">Visit website</a>'
                "</body></html>"
            ),
            content_type="text/html",
        )

    app.router.add_get("/", handle_root)
    app.router.add_get("/headers", handle_headers)
    app.router.add_get("/missing", handle_missing)
    app.router.add_get("/error", handle_error)
    app.router.add_get("/slow", handle_slow)
    app.router.add_get("/old", handle_old)
    app.router.add_get("/new/", handle_new)
    app.router.add_get("/r/redirect", handle_wrapper_redirect)
    app.router.add_get("/r/page", handle_wrapper_page)

    async for url in _serve_app(app, unused_tcp_port):
        yield url


# --------------------------------------------------------------------------- #
#                                  Fetcher                                    #
# --------------------------------------------------------------------------- #


@pytest.mark.asyncio()
async def test_fetch_ok_and_headers(site: str):
    config = ScoutConfig(user_agents=("TestAgent/1.0",))
    async with ClientSession() as session:
        result = await Fetcher(session, config).fetch_with_timeout(f"{site}/headers", 2.0)

    assert result is not None and result.ok and result.status == 200
    assert '"ua": "TestAgent/1.0"' in result.body
    assert '"cache": "no-cache"' in result.body
    assert result.headers["content-type"].startswith("application/json")


@pytest.mark.asyncio()
async def test_fetch_non_2xx_is_not_ok(site: str):
    async with ClientSession() as session:
        fetcher = Fetcher(session)
        missing = await fetcher.fetch_with_timeout(f"{site}/missing", 2.0)
        error = await fetcher.fetch_with_timeout(f"{site}/error", 2.0)

    assert missing is not None and not missing.ok and missing.status == 404
    assert missing.body == "gone"
    assert error is not None and error.status == 500


@pytest.mark.asyncio()
async def test_fetch_timeout_returns_none(site: str):
    async with ClientSession() as session:
        result = await Fetcher(session).fetch_with_timeout(f"{site}/slow", 0.3)
    assert result is None


@pytest.mark.asyncio()
async def test_fetch_connection_refused_returns_none(unused_tcp_port: int):
    async with ClientSession() as session:
        result = await Fetcher(session).fetch_with_timeout(f"http://localhost:{unused_tcp_port}/", 2.0)
    assert result is None


@pytest.mark.asyncio()
async def test_fetch_follows_redirects_by_default(site: str):
    async with ClientSession() as session:
        result = await Fetcher(session).fetch_with_timeout(f"{site}/old", 2.0)
        probe = await Fetcher(session).fetch_with_timeout(f"{site}/old", 2.0, allow_redirects=False)

    assert result is not None and result.final_url == f"{site}/new/"
    assert probe is not None and probe.status == 301
    assert probe.headers["Location"] == "/new/"


@pytest.mark.asyncio()
async def test_fetch_retries_transport_errors(monkeypatch):
    calls = {"n": 0}
    sleeps: list[float] = []

    async def flaky(self, url, *args):
        calls["n"] += 1
        if calls["n"] <= 2:
            raise ClientConnectionError("reset")
        return FetchResult(ok=True, status=200, final_url=url, body="ok")

    async def no_sleep(delay):
        sleeps.append(delay)

    monkeypatch.setattr(Fetcher, "_request", flaky)
    monkeypatch.setattr(asyncio, "sleep", no_sleep)

    fetcher = Fetcher(session=None, config=ScoutConfig(retry_times=3))
    result = await fetcher.fetch_with_timeout("https://acme-widgets.io", 1.0)

    assert result is not None and result.body == "ok"
    assert calls["n"] == 3
    assert len(sleeps) == 2 and all(2 <= s <= 60 for s in sleeps)


@pytest.mark.asyncio()
async def test_fetch_gives_up_after_retry_budget(monkeypatch):
    async def broken(self, url, *args):
        raise ClientConnectionError("reset")

    async def no_sleep(delay):
        return None

    monkeypatch.setattr(Fetcher, "_request", broken)
    monkeypatch.setattr(asyncio, "sleep", no_sleep)

    fetcher = Fetcher(session=None, config=ScoutConfig(retry_times=1))
    assert await fetcher.fetch_with_timeout("https://acme-widgets.io", 1.0) is None


# --------------------------------------------------------------------------- #
#                               Redirects                                     #
# --------------------------------------------------------------------------- #


def test_target_from_query():
    assert target_from_query("https://www.producthunt.com/r/abc?url=https://acme-widgets.io/") == (
        "https://acme-widgets.io/"
    )
    assert target_from_query("https://www.producthunt.com/r/abc?url=nonsense") is None
    assert target_from_query("https://www.producthunt.com/r/abc") is None


def test_target_from_wrapper_page_prefers_canonical():
    page = parse_html(
        '<link rel="canonical" href="https://acme-widgets.io/">'
        '<meta property="og:url" content="https://other.io/">'
        '<a rel="nofollow" href="https://third.io/">x</a>'
    )
    assert target_from_wrapper_page(page, "producthunt.com") == "https://acme-widgets.io/"


def test_target_from_wrapper_page_skips_platform_links():
    page = parse_html(
        '<link rel="canonical" href="https://www.producthunt.com/posts/acme">'
        '<meta property="og:url" content="https://www.producthunt.com/posts/acme">'
        '<a href="https://www.producthunt.com/">Home</a>'
        '<a href="https://acme-widgets.io/">Visit Acme</a>'
    )
    assert target_from_wrapper_page(page, "producthunt.com") == "https://acme-widgets.io/"
    assert target_from_wrapper_page(parse_html("<p>nothing</p>"), "producthunt.com") is None


@pytest.mark.asyncio()
async def test_resolve_redirect_from_query_makes_no_request():
    fetcher = Fetcher(session=None)
    url = "https://www.producthunt.com/r/abc?url=https://acme-widgets.io/pricing/"
    assert await resolve_redirect(fetcher, url) == "https://acme-widgets.io/pricing"


@pytest.mark.asyncio()
async def test_resolve_redirect_from_location(site: str, fast_config: ScoutConfig):
    async with ClientSession() as session:
        resolved = await resolve_redirect(Fetcher(session, fast_config), f"{site}/r/redirect")
    assert resolved == f"{site}/landing"


@pytest.mark.asyncio()
async def test_resolve_redirect_from_wrapper_page(site: str, fast_config: ScoutConfig):
    async with ClientSession() as session:
        resolved = await resolve_redirect(Fetcher(session, fast_config), f"{site}/r/page")
    assert resolved == "https://acme-widgets.io"


@pytest.mark.asyncio()
async def test_resolve_redirect_gives_up(site: str, fast_config: ScoutConfig):
    async with ClientSession() as session:
        fetcher = Fetcher(session, fast_config)
        assert await resolve_redirect(fetcher, f"{site}/missing") is None
        assert await resolve_redirect(fetcher, "not a url") is None


# --------------------------------------------------------------------------- #
#                             Canonical URL                                   #
# --------------------------------------------------------------------------- #


@pytest.mark.asyncio()
async def test_find_canonical_url(site: str, fast_config: ScoutConfig):
    async with ClientSession() as session:
        fetcher = Fetcher(session, fast_config)
        from_link = await find_canonical_url(fetcher, f"{site}/")
        from_redirect = await find_canonical_url(fetcher, f"{site}/old")
        unchanged = await find_canonical_url(fetcher, f"{site}/error")

    assert from_link == "https://acme-widgets.io/home"
    assert from_redirect == f"{site}/new"
    assert unchanged == f"{site}/error"
