"""Tests for the Wikipedia anchor source."""

import httpx
import pytest
from aethereal_drift import Position
from aethereal_drift.geo import tile_key
from aethereal_drift.store import DriftStore
from aethereal_drift.wikipedia import WikipediaAnchorSource, parse_geosearch

from conftest import make_anchors

GEOSEARCH = {
    "batchcomplete": "",
    "query": {
        "geosearch": [
            {"pageid": 20, "title": "Nelson's Column", "lat": 51.50772,
             "lon": -0.12797, "dist": 38.1, "primary": ""},
            {"pageid": 10, "title": "Trafalgar Square", "lat": 51.508,
             "lon": -0.128, "dist": 12.5, "primary": ""},
        ]
    },
}

OBSERVER = Position(latitude=51.5074, longitude=-0.1278)


def mock_client(handler):
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def test_parse_geosearch_sorts_by_distance():
    anchors = parse_geosearch(GEOSEARCH)

    assert [a.title for a in anchors] == ["Trafalgar Square", "Nelson's Column"]
    assert anchors[0].id == 10


def test_parse_geosearch_empty():
    assert parse_geosearch({}) == []
    assert parse_geosearch({"query": {}}) == []


@pytest.mark.asyncio
async def test_fetches_and_caches(store):
    requests = []

    def handler(request):
        requests.append(request)
        return httpx.Response(200, json=GEOSEARCH)

    async with mock_client(handler) as client:
        source = WikipediaAnchorSource(store, client=client)
        first = await source.nearby(OBSERVER, radius=25_000)
        second = await source.nearby(OBSERVER)

    assert len(requests) == 1
    params = requests[0].url.params
    assert params["list"] == "geosearch"
    assert params["gscoord"] == "51.5074|-0.1278"
    assert params["gsradius"] == "10000"
    assert params["gslimit"] == "50"

    assert first == second
    assert store.get_cached_anchors(tile_key(OBSERVER)) == first


@pytest.mark.asyncio
async def test_http_error_falls_back_to_stale_cache(config):
    now = [1_000_000.0]
    store = DriftStore(config, clock=lambda: now[0])
    stale = make_anchors([1, 2])
    store.cache_anchors(tile_key(OBSERVER), stale)
    now[0] += 2 * 24 * 60 * 60

    def handler(request):
        return httpx.Response(503)

    async with mock_client(handler) as client:
        source = WikipediaAnchorSource(store, client=client)
        anchors = await source.nearby(OBSERVER)

    assert anchors == stale
    store.close()


@pytest.mark.asyncio
async def test_fresh_cache_skips_network(store):
    store.cache_anchors(tile_key(OBSERVER), make_anchors([1, 2]))

    def handler(request):
        raise AssertionError("should not hit the network")

    async with mock_client(handler) as client:
        source = WikipediaAnchorSource(store, client=client)
        anchors = await source.nearby(OBSERVER)

    assert [a.id for a in anchors] == [1, 2]


@pytest.mark.asyncio
async def test_http_error_without_cache_returns_empty(store, caplog):
    def handler(request):
        raise httpx.ConnectError("offline", request=request)

    async with mock_client(handler) as client:
        source = WikipediaAnchorSource(store, client=client)
        anchors = await source.nearby(OBSERVER)

    assert anchors == []
    assert "geosearch failed" in caplog.text


@pytest.mark.asyncio
async def test_html_body_without_cache_returns_empty(store, caplog):
    def handler(request):
        return httpx.Response(
            200, text="<html>portal</html>", headers={"content-type": "text/html"}
        )

    async with mock_client(handler) as client:
        source = WikipediaAnchorSource(store, client=client)
        anchors = await source.nearby(OBSERVER)

    assert anchors == []
    assert "geosearch failed" in caplog.text
    assert store.get_cached_anchors(tile_key(OBSERVER)) is None


@pytest.mark.asyncio
async def test_malformed_result_falls_back_to_stale_cache(config):
    now = [1_000_000.0]
    store = DriftStore(config, clock=lambda: now[0])
    stale = make_anchors([1, 2])
    store.cache_anchors(tile_key(OBSERVER), stale)
    now[0] += 2 * 24 * 60 * 60

    def handler(request):
        return httpx.Response(
            200, json={"query": {"geosearch": [{"pageid": 5, "title": "No coords"}]}}
        )

    async with mock_client(handler) as client:
        source = WikipediaAnchorSource(store, client=client)
        anchors = await source.nearby(OBSERVER)

    assert anchors == stale
    store.close()


def test_parse_geosearch_rejects_non_object():
    with pytest.raises(ValueError):
        parse_geosearch(["not", "an", "object"])
