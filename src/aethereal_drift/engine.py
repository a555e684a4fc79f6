"""Drift Engine - wires positions and anchors to transmission generation."""

from __future__ import annotations

import logging
import random
from typing import Callable, Protocol, Sequence

from aethereal_drift.assembler import TransmissionAssembler
from aethereal_drift.embedding import EmbeddingBackend
from aethereal_drift.errors import LocationUnavailable
from aethereal_drift.generation import TextGenerator, create_generator
from aethereal_drift.location import PositionTracker
from aethereal_drift.models import (
    Anchor,
    DriftConfig,
    PhantomLocation,
    Position,
    Settings,
    Transmission,
    TransmissionStyle,
)
from aethereal_drift.store import DriftStore
from aethereal_drift.trigger import TriggerPolicy
from aethereal_drift.voice import Speaker, pick_voice

logger = logging.getLogger(__name__)


class AnchorSource(Protocol):
    """Protocol for nearby anchor lookups."""

    async def nearby(self, position: Position, radius: int = 1000) -> list[Anchor]:
        """Anchors around position, nearest first."""
        ...


class DriftEngine:
    """Orchestrates one observer's drift session.

    Owns the trigger state, so each engine is an independent session.
    """

    def __init__(
        self,
        config: DriftConfig,
        generator: TextGenerator | None = None,
        anchor_source: AnchorSource | None = None,
        speaker: Speaker | None = None,
        voices: Sequence[str] = (),
        clock: Callable[[], int] | None = None,
        embedding: EmbeddingBackend | None = None,
    ):
        self.config = config
        self.rng = random.Random(config.seed)
        self.store = DriftStore(config, embedding=embedding)
        self.settings = self.store.get_settings()

        self.tracker = PositionTracker(
            movement_threshold=self.settings.movement_threshold,
            history_size=config.history_size,
        )
        max_in_flight_ms = (
            int(config.max_in_flight * 1000) if config.max_in_flight is not None else None
        )
        self.policy = TriggerPolicy(clock=clock, max_in_flight_ms=max_in_flight_ms)
        self.assembler = TransmissionAssembler(
            generator or create_generator(config), rng=self.rng
        )
        self.anchor_source = anchor_source
        self.speaker = speaker
        self.voices = list(voices)

        self.anchors: list[Anchor] = []
        self.anchors_changed = False
        self.current_phantom: PhantomLocation | None = None
        self.current_transmission: Transmission | None = None

    def close(self) -> None:
        """Close the underlying store."""
        self.store.close()

    def __enter__(self) -> DriftEngine:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    @property
    def position(self) -> Position | None:
        return self.tracker.position

    # -------------------------------------------------------------------------
    # Inputs
    # -------------------------------------------------------------------------

    def update_position(self, position: Position) -> bool:
        """Offer a new observer position.

        Returns:
            True if it moved far enough to replace the current position
        """
        return self.tracker.push(position)

    def update_anchors(self, anchors: Sequence[Anchor]) -> bool:
        """Replace the nearby anchor set.

        Returns:
            True if the set changed significantly since the last update
        """
        self.anchors = sorted(anchors, key=lambda a: a.distance)
        self.anchors_changed = self.policy.observe_anchors(self.anchors)
        if self.anchors_changed:
            logger.info("Anchor set changed (%d anchors)", len(self.anchors))
        return self.anchors_changed

    async def refresh_anchors(self) -> bool:
        """Fetch anchors around the current position from the anchor source."""
        if self.anchor_source is None or self.position is None:
            return False
        anchors = await self.anchor_source.nearby(
            self.position, radius=self.settings.radar_range
        )
        return self.update_anchors(anchors)

    # -------------------------------------------------------------------------
    # Generation
    # -------------------------------------------------------------------------

    def should_generate(self) -> bool:
        """Whether the trigger policy permits a generation now."""
        if self.position is None:
            return False
        return self.policy.evaluate(
            self.settings.transmission_interval * 1000, self.anchors_changed
        )

    async def generate(
        self,
        style: TransmissionStyle | None = None,
    ) -> Transmission:
        """Run one generation cycle and persist the result.

        Raises:
            LocationUnavailable: If no position has been received
            GenerationInFlight: If another generation is running
            GenerationError: If the text generator fails
            sqlite3.Error: If the transmission could not be saved; it still
                counts as generated for trigger timing
        """
        position = self.position
        if position is None:
            raise LocationUnavailable("No position available yet")

        token = self.policy.begin()
        voice = pick_voice(self.voices, self.rng)
        try:
            transmission, phantom = await self.assembler.assemble(
                position, self.anchors, style=style, voice_label=voice.name
            )
        except BaseException:
            self.policy.complete(token, generated=False)
            raise

        try:
            transmission = transmission.with_id(
                self.store.save_transmission(transmission)
            )
        finally:
            self.policy.complete(token, generated=True)
            self.anchors_changed = False

        self.current_phantom = phantom
        self.current_transmission = transmission
        logger.info(
            "Transmission %d generated (%s, %d anchors)",
            transmission.id,
            transmission.style.value,
            len(transmission.anchor_titles),
        )

        if self.speaker is not None and self.settings.auto_play:
            try:
                await self.speaker.speak(transmission.text, voice)
            except Exception:
                logger.exception("Playback of transmission %d failed", transmission.id)

        return transmission

    async def tick(self) -> Transmission | None:
        """Refresh anchors and generate if the trigger policy allows it."""
        if self.position is None:
            return None
        await self.refresh_anchors()
        if not self.settings.auto_play or not self.should_generate():
            return None
        return await self.generate()

    # -------------------------------------------------------------------------
    # Log and settings
    # -------------------------------------------------------------------------

    def recent_transmissions(self, limit: int = 50) -> list[Transmission]:
        return self.store.recent_transmissions(limit)

    def search_transmissions(self, query: str, limit: int = 5) -> list[Transmission]:
        return self.store.search_transmissions(query, limit)

    def clear_transmissions(self) -> None:
        self.store.clear_transmissions()
        self.current_transmission = None

    def update_settings(self, **updates) -> Settings:
        """Update stored settings and apply them to this session."""
        self.settings = self.store.update_settings(**updates)
        self.tracker.movement_threshold = self.settings.movement_threshold
        return self.settings
