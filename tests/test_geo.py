"""Tests for geographic helpers."""

import pytest
from aethereal_drift import Anchor, Position
from aethereal_drift.geo import (
    bearing,
    bearing_info,
    centroid,
    distance,
    format_coordinates,
    format_distance,
    has_moved_significantly,
    tile_key,
)

LONDON = Position(latitude=51.5074, longitude=-0.1278)
PARIS = Position(latitude=48.8566, longitude=2.3522)


def test_distance_to_self_is_zero():
    assert distance(LONDON, LONDON) == 0


def test_distance_is_symmetric():
    assert distance(LONDON, PARIS) == pytest.approx(distance(PARIS, LONDON))


def test_distance_london_paris():
    """London to Paris is roughly 344 km."""
    assert distance(LONDON, PARIS) == pytest.approx(343_500, rel=0.01)


def test_bearing_cardinal_directions():
    origin = Position(latitude=0.0, longitude=0.0)

    assert bearing(origin, Position(latitude=1.0, longitude=0.0)) == pytest.approx(0.0)
    assert bearing(origin, Position(latitude=0.0, longitude=1.0)) == pytest.approx(90.0)
    assert bearing(origin, Position(latitude=-1.0, longitude=0.0)) == pytest.approx(180.0)
    assert bearing(origin, Position(latitude=0.0, longitude=-1.0)) == pytest.approx(270.0)


def test_bearing_in_range():
    b = bearing(PARIS, LONDON)
    assert 0 <= b < 360
    # London is north-west of Paris
    assert 270 < b < 360


def test_tile_key_groups_nearby_positions():
    a = Position(latitude=51.50741, longitude=-0.12781)
    b = Position(latitude=51.50738, longitude=-0.12779)

    assert tile_key(a) == tile_key(b) == "51507_-128"


def test_tile_key_precision():
    assert tile_key(LONDON, precision=1) == "515_-1"
    assert tile_key(LONDON, precision=2) != tile_key(Position(51.52, -0.1278), precision=2)


def test_has_moved_without_previous():
    assert has_moved_significantly(None, LONDON, 1_000_000)


def test_has_not_moved_when_same_position():
    assert not has_moved_significantly(LONDON, LONDON, 1)
    assert not has_moved_significantly(LONDON, LONDON, 0.001)


def test_has_moved_threshold():
    # ~111 m north
    nearby = Position(latitude=LONDON.latitude + 0.001, longitude=LONDON.longitude)

    assert has_moved_significantly(LONDON, nearby, 100)
    assert not has_moved_significantly(LONDON, nearby, 200)


def test_centroid():
    points = [Position(0.0, 0.0), Position(2.0, 4.0)]
    assert centroid(points) == (1.0, 2.0)


def test_centroid_empty():
    with pytest.raises(ValueError):
        centroid([])


def test_bearing_info_direction():
    anchor = Anchor(id=1, title="North", latitude=51.6, longitude=-0.1278, distance=10_300)
    info = bearing_info(LONDON, anchor)

    assert info.direction == "N"
    assert info.distance == 10_300


def test_format_coordinates():
    assert format_coordinates(51.5074, -0.1278) == "51.5074° N, 0.1278° W"
    assert format_coordinates(-33.8688, 151.2093) == "33.8688° S, 151.2093° E"


def test_format_distance():
    assert format_distance(349.6) == "350m"
    assert format_distance(1234) == "1.2km"
