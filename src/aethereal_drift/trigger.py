"""Trigger policy: decides when a new transmission may be generated."""

from __future__ import annotations

import logging
import time
from typing import Callable, Sequence

from aethereal_drift.errors import GenerationInFlight
from aethereal_drift.models import Anchor, TriggerState

logger = logging.getLogger(__name__)

# Minimum gap after a generation before an anchor change may re-trigger
COOLDOWN_MS = 10_000

# How many of the nearest anchors are compared for churn
TOP_ANCHORS = 3


def system_clock() -> int:
    """Current time in epoch milliseconds."""
    return int(time.time() * 1000)


def should_trigger(
    last_generated_at: int | None,
    interval_ms: int,
    anchors_changed: bool,
    now: int,
) -> bool:
    """Return whether a generation is permitted at ``now``.

    Args:
        last_generated_at: Epoch millis of the last generation, or None
        interval_ms: Minimum time between timed generations
        anchors_changed: Whether the anchor set changed significantly
        now: Current epoch millis
    """
    if anchors_changed:
        if last_generated_at is not None and now - last_generated_at < COOLDOWN_MS:
            return False
        return True

    if last_generated_at is None:
        return True
    return now - last_generated_at >= interval_ms


def anchors_changed_significantly(
    previous: Sequence[Anchor],
    current: Sequence[Anchor],
) -> bool:
    """Compare two anchor sets (nearest first) for meaningful churn.

    A single anchor swapping in and out at the edge of the search radius
    does not count; two or more new ids among the nearest three do.
    """
    return _ids_changed([a.id for a in previous], [a.id for a in current])


def _ids_changed(previous: Sequence[int], current: Sequence[int]) -> bool:
    if not previous and not current:
        return False
    if abs(len(previous) - len(current)) >= 2:
        return True

    old_ids = set(previous[:TOP_ANCHORS])
    new_ids = set(current[:TOP_ANCHORS])
    return len(new_ids - old_ids) >= 2


class TriggerPolicy:
    """Idle/Generating state machine guarding a single in-flight generation.

    One instance is owned by one orchestrator; it is not thread safe.
    """

    def __init__(
        self,
        clock: Callable[[], int] | None = None,
        max_in_flight_ms: int | None = None,
    ):
        self.clock = clock or system_clock
        self.max_in_flight_ms = max_in_flight_ms
        self.state = TriggerState()
        self._cycles = 0

    @property
    def last_generated_at(self) -> int | None:
        return self.state.last_generated_at

    @property
    def generating(self) -> bool:
        """Whether a generation is currently in flight."""
        self._expire_in_flight()
        return self.state.in_flight_since is not None

    def observe_anchors(self, anchors: Sequence[Anchor]) -> bool:
        """Record a new anchor set and report whether it changed significantly."""
        current = [a.id for a in anchors]
        changed = _ids_changed(self.state.previous_anchor_ids, current)
        self.state.previous_anchor_ids = current
        return changed

    def evaluate(self, interval_ms: int, anchors_changed: bool) -> bool:
        """Return whether a generation may start now.

        Always False while another generation is in flight.
        """
        if self.generating:
            return False
        return should_trigger(
            self.state.last_generated_at,
            interval_ms,
            anchors_changed,
            self.clock(),
        )

    def begin(self) -> int:
        """Move from Idle to Generating.

        Returns:
            Token identifying this cycle, to be handed back to complete()
        """
        if self.generating:
            raise GenerationInFlight("A transmission is already being generated")
        self._cycles += 1
        self.state.in_flight_since = self.clock()
        self.state.in_flight_token = self._cycles
        return self._cycles

    def complete(self, token: int, generated: bool = True) -> None:
        """Move from Generating back to Idle.

        A token from a cycle that already expired is ignored, so a late
        completion cannot release or time-stamp a newer cycle.

        Args:
            token: Value returned by the matching begin()
            generated: Whether the cycle produced a transmission; if so the
                completion time becomes the new last generation time
        """
        if token != self.state.in_flight_token:
            logger.warning(
                "Ignoring completion of generation %d; it is no longer in flight",
                token,
            )
            return
        self.state.in_flight_since = None
        self.state.in_flight_token = None
        if generated:
            self.state.last_generated_at = self.clock()

    def _expire_in_flight(self) -> None:
        started = self.state.in_flight_since
        if started is None or self.max_in_flight_ms is None:
            return
        elapsed = self.clock() - started
        if elapsed >= self.max_in_flight_ms:
            logger.warning(
                "Generation in flight for %d ms without completion, reverting to idle",
                elapsed,
            )
            self.state.in_flight_since = None
            self.state.in_flight_token = None
