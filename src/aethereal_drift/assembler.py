"""Transmission assembly: one generation cycle from position to record."""

from __future__ import annotations

import logging
import random
from datetime import datetime, timezone
from typing import Callable, Sequence

from aethereal_drift.generation import TextGenerator, run_generator
from aethereal_drift.models import (
    Anchor,
    GenerationParams,
    PhantomLocation,
    Position,
    Transmission,
    TransmissionStyle,
)
from aethereal_drift.phantom import synthesize
from aethereal_drift.prompts import build_prompt, clean_transmission, select_style

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TransmissionAssembler:
    """Builds transmissions from a position and its nearby anchors.

    Persistence is left to the caller; a failed generation produces no record.
    """

    def __init__(
        self,
        generator: TextGenerator,
        rng: random.Random | None = None,
        clock: Callable[[], datetime] | None = None,
        params: GenerationParams | None = None,
    ):
        self.generator = generator
        self.rng = rng or random.Random()
        self.clock = clock or utc_now
        self.params = params or GenerationParams()

    async def assemble(
        self,
        position: Position,
        anchors: Sequence[Anchor],
        style: TransmissionStyle | None = None,
        voice_label: str = "default",
    ) -> tuple[Transmission, PhantomLocation]:
        """Run one generation cycle.

        Args:
            position: Observer position
            anchors: Nearby anchors, in any order
            style: Narrative style; picked at random when omitted
            voice_label: Name of the voice the transmission will be read in

        Returns:
            The unsaved Transmission and the PhantomLocation behind it

        Raises:
            GenerationError: If the text generator fails
        """
        anchors = sorted(anchors, key=lambda a: a.distance)
        selected = TransmissionStyle(style) if style else select_style(self.rng)
        phantom = synthesize(position, anchors, self.rng)

        prompt = build_prompt(position, anchors, phantom, selected)
        logger.debug(
            "Requesting %s transmission with %d anchors", selected.value, len(anchors)
        )
        raw = await run_generator(self.generator, prompt, self.params)

        transmission = Transmission(
            timestamp=self.clock().isoformat(),
            observer=(position.latitude, position.longitude),
            phantom=(phantom.latitude, phantom.longitude),
            anchor_titles=phantom.anchor_titles,
            text=clean_transmission(raw),
            voice_label=voice_label,
            style=selected,
        )
        return transmission, phantom
