# File: tests/test_listing.py
from __future__ import annotations

from collections.abc import AsyncIterator
from datetime import datetime, timezone

import pytest
import pytest_asyncio
from aiohttp import ClientSession, web

from contact_scout.config import ListingConfig
from contact_scout.interfaces import ListingFilter
from contact_scout.listing import GraphQLListingSource, ListingError, node_to_item


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


POSTS_RESPONSE = {
    "data": {
        "posts": {
            "edges": [
                {
                    "node": {
                        "id": 101,
                        "name": "Acme Widgets",
                        "tagline": "Widgets for everyone",
                        "website": "https://www.producthunt.com/r/ACME",
                        "thumbnail": {"url": "https://cdn.example/acme.png"},
                    }
                },
                {"node": {"id": "102", "name": "Bolt", "website": "https://bolt.dev"}},
            ],
            "pageInfo": {"endCursor": "Mg==", "hasNextPage": True},
        }
    }
}


@pytest_asyncio.fixture
async def graphql_api(unused_tcp_port: int) -> AsyncIterator[dict]:
    app = web.Application()
    state = {"calls": [], "base": None}

    async def handle_graphql(request):
        token = request.headers.get("Authorization", "")
        body = await request.json()
        state["calls"].append((token, body["variables"]))
        if token == "Bearer revoked":
            return web.Response(status=401)
        if token == "Bearer limited":
            return web.Response(status=429, headers={"X-Rate-Limit-Reset": "120"})
        if token == "Bearer broken":
            return web.json_response({"errors": [{"message": "bad query"}]})
        if token == "Bearer crash":
            return web.Response(status=500)
        return web.json_response(POSTS_RESPONSE)

    app.router.add_post("/graphql", handle_graphql)

    async for url in _serve_app(app, unused_tcp_port):
        state["base"] = url
        yield state


def _source(session, api, tokens):
    return GraphQLListingSource(session, ListingConfig(endpoint=f"{api['base']}/graphql", tokens=tokens), timeout=2.0)


def test_node_to_item_flattens_thumbnail():
    item = node_to_item({"id": 5, "name": "X", "thumbnail": {"url": "https://cdn.example/x.png"}})
    assert item == {"id": "5", "name": "X", "imageUrl": "https://cdn.example/x.png"}


def test_build_variables():
    now = datetime(2024, 5, 10, 12, 0, tzinfo=timezone.utc)
    variables = GraphQLListingSource.build_variables(ListingFilter(days_back=2, page_size=20), "abc", now)
    assert variables == {
        "postedAfter": "2024-05-08T12:00:00+00:00",
        "postedBefore": "2024-05-10T12:00:00+00:00",
        "first": 20,
        "after": "abc",
    }
    assert "after" not in GraphQLListingSource.build_variables(ListingFilter(), None, now)


@pytest.mark.asyncio()
async def test_fetch_page(graphql_api):
    async with ClientSession() as session:
        page = await _source(session, graphql_api, ["good"]).fetch_page(ListingFilter(page_size=10), "cursor-1")

    assert [item["id"] for item in page.items] == ["101", "102"]
    assert page.items[0]["imageUrl"] == "https://cdn.example/acme.png"
    assert page.next_cursor == "Mg==" and page.has_more
    token, variables = graphql_api["calls"][0]
    assert token == "Bearer good"
    assert variables["first"] == 10 and variables["after"] == "cursor-1"


@pytest.mark.asyncio()
async def test_unauthorized_token_is_skipped(graphql_api):
    async with ClientSession() as session:
        source = _source(session, graphql_api, ["revoked", "good"])
        await source.fetch_page(ListingFilter())
        await source.fetch_page(ListingFilter())

    tokens = [call[0] for call in graphql_api["calls"]]
    assert tokens == ["Bearer revoked", "Bearer good", "Bearer good"]


@pytest.mark.asyncio()
async def test_rate_limited_token_waits_for_reset(graphql_api):
    async with ClientSession() as session:
        source = _source(session, graphql_api, ["limited"])
        with pytest.raises(ListingError):
            await source.fetch_page(ListingFilter())
        with pytest.raises(ListingError, match="No usable API token"):
            await source.fetch_page(ListingFilter())

    assert len(graphql_api["calls"]) == 1


@pytest.mark.asyncio()
@pytest.mark.parametrize("token", ["broken", "crash"])
async def test_unexpected_responses_raise(graphql_api, token):
    async with ClientSession() as session:
        with pytest.raises(ListingError):
            await _source(session, graphql_api, [token]).fetch_page(ListingFilter())


@pytest.mark.asyncio()
async def test_no_tokens():
    async with ClientSession() as session:
        source = GraphQLListingSource(session, ListingConfig(tokens=[]))
        with pytest.raises(ListingError, match="No usable API token"):
            await source.fetch_page(ListingFilter())
