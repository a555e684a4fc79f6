"""Nearby anchors from the Wikipedia geosearch API.

Results are cached per tile key. When the API is unreachable a stale
cache entry is used if one exists; otherwise the observer is treated as
being in undocumented space (no anchors).
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from aethereal_drift.geo import tile_key
from aethereal_drift.models import Anchor, Position
from aethereal_drift.store import DriftStore

logger = logging.getLogger(__name__)

WIKIPEDIA_API_BASE = "https://en.wikipedia.org/w/api.php"

MAX_RADIUS = 10_000  # meters, API limit
RESULT_LIMIT = 50
DEFAULT_MAX_AGE = 24 * 60 * 60  # seconds


def parse_geosearch(data: dict[str, Any]) -> list[Anchor]:
    """Convert a geosearch response body into anchors, nearest first.

    Raises:
        ValueError: If the body is not a JSON object
        KeyError: If a result lacks a required field
    """
    if not isinstance(data, dict):
        raise ValueError(f"Unexpected geosearch body: {type(data).__name__}")
    items = (data.get("query") or {}).get("geosearch") or []
    anchors = [
        Anchor(
            id=int(item["pageid"]),
            title=item["title"],
            latitude=float(item["lat"]),
            longitude=float(item["lon"]),
            distance=float(item["dist"]),
        )
        for item in items
    ]
    return sorted(anchors, key=lambda a: a.distance)


class WikipediaAnchorSource:
    """Anchor source backed by Wikipedia with a local tile cache."""

    def __init__(
        self,
        store: DriftStore,
        client: httpx.AsyncClient | None = None,
        max_age: float = DEFAULT_MAX_AGE,
        base_url: str = WIKIPEDIA_API_BASE,
    ):
        self.store = store
        self.client = client
        self.max_age = max_age
        self.base_url = base_url

    async def nearby(self, position: Position, radius: int = 1000) -> list[Anchor]:
        """Return documented places around position, nearest first.

        Args:
            position: Observer position
            radius: Search radius in meters (capped at 10km)
        """
        tile = tile_key(position)
        # Expired entries are kept as a fallback for when the API is down
        cached = self.store.get_cached_anchors(tile, self.max_age, evict=False)
        if cached is not None:
            return cached

        params = {
            "action": "query",
            "list": "geosearch",
            "gscoord": f"{position.latitude}|{position.longitude}",
            "gsradius": str(min(radius, MAX_RADIUS)),
            "gslimit": str(RESULT_LIMIT),
            "format": "json",
        }

        try:
            anchors = parse_geosearch(await self._get(params))
        except (httpx.HTTPError, ValueError, KeyError, TypeError) as exc:
            logger.warning("Wikipedia geosearch failed for tile %s: %s", tile, exc)
            stale = self.store.get_cached_anchors(tile)
            return stale if stale is not None else []

        self.store.cache_anchors(tile, anchors)
        logger.info("Fetched %d anchors for tile %s", len(anchors), tile)
        return anchors

    async def _get(self, params: dict[str, str]) -> dict[str, Any]:
        if self.client is not None:
            response = await self.client.get(self.base_url, params=params)
            response.raise_for_status()
            return response.json()

        async with httpx.AsyncClient(timeout=10.0) as client:
            response = await client.get(self.base_url, params=params)
            response.raise_for_status()
            return response.json()
