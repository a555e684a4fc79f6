"""Voice profiles for the speech playback collaborator."""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Protocol, Sequence


@dataclass(frozen=True)
class VoiceProfile:
    """How a transmission should be spoken."""

    name: str
    pitch: float
    rate: float


DEFAULT_VOICE = VoiceProfile(name="default", pitch=1.0, rate=0.85)


class Speaker(Protocol):
    """Protocol for speech playback."""

    async def speak(self, text: str, profile: VoiceProfile) -> None:
        """Render text as audio, returning when playback finishes."""
        ...


def pick_voice(
    voices: Sequence[str],
    rng: random.Random | None = None,
) -> VoiceProfile:
    """Choose a named voice with slightly unsteady pitch and rate.

    Returns DEFAULT_VOICE when no voices are available.
    """
    if not voices:
        return DEFAULT_VOICE
    rng = rng or random.Random()
    return VoiceProfile(
        name=rng.choice(list(voices)),
        pitch=0.8 + rng.random() * 0.4,
        rate=0.7 + rng.random() * 0.3,
    )
