"""Tests for position tracking."""

from aethereal_drift import LocationUnavailable, PermissionDenied, Position
from aethereal_drift.location import PermissionState, PositionTracker


def north_of(base, step):
    # ~111 m per 0.001 degree of latitude
    return Position(latitude=base + step * 0.001, longitude=-0.1278, timestamp=step)


def test_first_position_accepted():
    tracker = PositionTracker()
    position = north_of(51.5, 0)

    assert tracker.push(position)
    assert tracker.position == position
    assert tracker.permission is PermissionState.GRANTED


def test_small_moves_ignored():
    tracker = PositionTracker(movement_threshold=200)
    tracker.push(north_of(51.5, 0))

    assert not tracker.push(north_of(51.5, 1))
    assert tracker.push(north_of(51.5, 2))
    assert len(tracker.history) == 2


def test_history_is_bounded():
    tracker = PositionTracker(movement_threshold=10, history_size=3)
    for step in range(6):
        tracker.push(north_of(51.5, step))

    assert [p.timestamp for p in tracker.history] == [3, 4, 5]


def test_permission_denied():
    tracker = PositionTracker()
    tracker.fail(PermissionDenied("user said no"))

    assert tracker.permission is PermissionState.DENIED
    assert isinstance(tracker.error, PermissionDenied)


def test_error_cleared_by_next_position():
    tracker = PositionTracker()
    tracker.set_permission("prompt")
    tracker.fail(LocationUnavailable("timeout"))

    assert tracker.permission is PermissionState.PROMPT

    tracker.push(north_of(51.5, 0))
    assert tracker.error is None
