"""Position tracking fed by an external location source."""

from __future__ import annotations

import logging
from collections import deque
from enum import Enum

from aethereal_drift.errors import LocationUnavailable, PermissionDenied
from aethereal_drift.geo import has_moved_significantly
from aethereal_drift.models import Position

logger = logging.getLogger(__name__)


class PermissionState(str, Enum):
    PROMPT = "prompt"
    GRANTED = "granted"
    DENIED = "denied"
    UNKNOWN = "unknown"


class PositionTracker:
    """Keeps the latest significant position and a short history.

    Positions closer than movement_threshold meters to the last accepted
    one are dropped.
    """

    def __init__(self, movement_threshold: float = 20, history_size: int = 20):
        self.movement_threshold = movement_threshold
        self.position: Position | None = None
        self.history: deque[Position] = deque(maxlen=history_size)
        self.permission = PermissionState.UNKNOWN
        self.error: LocationUnavailable | None = None

    def push(self, position: Position) -> bool:
        """Offer a new position.

        Returns:
            True if the position was accepted as the current one
        """
        if not has_moved_significantly(self.position, position, self.movement_threshold):
            return False

        self.position = position
        self.history.append(position)
        self.error = None
        self.permission = PermissionState.GRANTED
        return True

    def fail(self, error: LocationUnavailable) -> None:
        """Record an error reported by the location source."""
        logger.warning("Location unavailable: %s", error)
        self.error = error
        if isinstance(error, PermissionDenied):
            self.permission = PermissionState.DENIED

    def set_permission(self, state: PermissionState | str) -> None:
        self.permission = PermissionState(state)
