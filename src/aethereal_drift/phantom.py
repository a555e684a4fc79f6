"""Phantom location synthesis.

A phantom sits 30% of the way from the observer toward the centroid of
the nearby anchors, pushed sideways off that line and jittered by a small
"dimensional drift". With no anchors it is the observer plus jitter.
"""

from __future__ import annotations

import random
from typing import Sequence

from aethereal_drift.geo import centroid
from aethereal_drift.models import Anchor, PhantomLocation, Position

MAX_ANCHOR_TITLES = 5

# Interpolation factor toward the anchor centroid
APPROACH = 0.3

# Perpendicular offset base scale, multiplied by U[0.5, 1.0)
PERPENDICULAR_SCALE = 0.0003

# Jitter spans, in degrees
EMPTY_JITTER = 0.001
DRIFT_JITTER = 0.0001

# Drift display multipliers
EMPTY_DRIFT_SCALE = 1000
DRIFT_SCALE = 10000


def _drift(
    rng: random.Random,
    observer: Position,
    lat: float,
    lon: float,
    span: float,
) -> tuple[float, float, float]:
    """Apply one uniform jitter in (-span/2, span/2) to both axes.

    Redraws until the jittered point differs from the observer.
    """
    while True:
        jitter = (rng.random() - 0.5) * span
        out_lat, out_lon = lat + jitter, lon + jitter
        if (out_lat, out_lon) != (observer.latitude, observer.longitude):
            return out_lat, out_lon, abs(jitter)


def synthesize(
    observer: Position,
    anchors: Sequence[Anchor],
    rng: random.Random | None = None,
) -> PhantomLocation:
    """Derive a phantom location from the observer and nearby anchors.

    Args:
        observer: Current observer position
        anchors: Nearby anchors, expected nearest first (not re-sorted here)
        rng: Random source; pass a seeded one for reproducible output

    Returns:
        A PhantomLocation that never coincides with the observer
    """
    rng = rng or random.Random()

    if not anchors:
        lat, lon, jitter = _drift(
            rng, observer, observer.latitude, observer.longitude, EMPTY_JITTER
        )
        return PhantomLocation(
            latitude=lat,
            longitude=lon,
            drift=jitter * EMPTY_DRIFT_SCALE,
            anchor_titles=(),
        )

    c_lat, c_lon = centroid(anchors)
    d_lat = c_lat - observer.latitude
    d_lon = c_lon - observer.longitude

    mid_lat = observer.latitude + d_lat * APPROACH
    mid_lon = observer.longitude + d_lon * APPROACH

    # Rotate the displacement by 90 degrees
    scale = PERPENDICULAR_SCALE * (0.5 + 0.5 * rng.random())
    lat, lon, jitter = _drift(
        rng, observer, mid_lat + d_lon * scale, mid_lon - d_lat * scale, DRIFT_JITTER
    )

    return PhantomLocation(
        latitude=lat,
        longitude=lon,
        drift=jitter * DRIFT_SCALE,
        anchor_titles=tuple(a.title for a in anchors[:MAX_ANCHOR_TITLES]),
    )
