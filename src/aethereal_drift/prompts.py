"""Prompt construction and cleanup of generated transmissions."""

from __future__ import annotations

import random
import re
from typing import Sequence

from aethereal_drift.geo import bearing_info, format_coordinates
from aethereal_drift.models import (
    Anchor,
    PhantomLocation,
    Position,
    TransmissionStyle,
)

MAX_PROMPT_ANCHORS = 5

SYSTEM_PROMPT = """You are a receiver tuned to frequencies from adjacent dimensions. You intercept transmissions from places that almost exist, the spaces between documented reality. Your reports are brief, evocative, and slightly wrong in unsettling ways.

Guidelines:
- Generate 2-4 sentences only
- Describe what exists at the phantom location, not at the documented places
- Be specific but impossible: concrete details about unreal things
- Maintain a tone of clinical observation mixed with subtle wrongness
- Never explain or meta-comment, just report
- Avoid clichés about ghosts, portals, or standard supernatural tropes
- Reference the nearby anchors obliquely, as if seen from another angle of reality"""

_STYLE_INSTRUCTIONS = {
    TransmissionStyle.FRAGMENT: (
        "Style: Fragmentary field note. Incomplete sentences. "
        "Data corruption evident. Mid-observation interruption."
    ),
    TransmissionStyle.CATALOG: (
        "Style: Catalog entry from an impossible museum. Clinical documentation "
        "of an artifact or phenomenon. Include classification numbers that "
        "shouldn't exist."
    ),
    TransmissionStyle.FIELD_NOTE: (
        "Style: Surveyor's field note. Technical observations of geography that "
        "contradicts itself. Measurements that don't add up."
    ),
    TransmissionStyle.SIGNAL: (
        "Style: Intercepted radio transmission. Partial. Static-damaged. "
        "Someone reporting coordinates they shouldn't be at."
    ),
    TransmissionStyle.WHISPER: (
        "Style: Whispered memory. First-person observation. The speaker isn't "
        "sure they're real. Past and present tense blur."
    ),
}

_missing = set(TransmissionStyle) - set(_STYLE_INSTRUCTIONS)
if _missing:
    raise RuntimeError(f"No instructions for styles: {sorted(s.value for s in _missing)}")

_META_PREFIXES = (
    re.compile(r"^(here'?s?|this is|my) (a |the )?transmission:?\s*", re.IGNORECASE),
    re.compile(r"^transmission:?\s*", re.IGNORECASE),
)

_TERMINAL = (".", "!", "?", '"')


def style_instructions(style: TransmissionStyle) -> str:
    """Instruction block for a style."""
    return _STYLE_INSTRUCTIONS[TransmissionStyle(style)]


def select_style(rng: random.Random | None = None) -> TransmissionStyle:
    """Pick a style uniformly at random."""
    return (rng or random).choice(list(TransmissionStyle))


def describe_anchor(observer: Position, anchor: Anchor) -> str:
    info = bearing_info(observer, anchor)
    return f'- "{anchor.title}" ({round(info.distance)}m {info.direction})'


def build_prompt(
    observer: Position,
    anchors: Sequence[Anchor],
    phantom: PhantomLocation,
    style: TransmissionStyle,
) -> str:
    """Build the full instruction for one transmission.

    Falls back to the undocumented-space prompt when there are no anchors.
    """
    if not anchors:
        return build_empty_space_prompt(phantom, style)

    anchor_lines = "\n".join(
        describe_anchor(observer, a) for a in anchors[:MAX_PROMPT_ANCHORS]
    )
    phantom_coords = format_coordinates(phantom.latitude, phantom.longitude)
    observer_coords = format_coordinates(observer.latitude, observer.longitude)

    return f"""{SYSTEM_PROMPT}

Nearby anchors in consensus reality:
{anchor_lines}

Observer position: {observer_coords}
Phantom coordinates: {phantom_coords}
Dimensional drift: {phantom.drift:.4f}°

You are located in the space BETWEEN these documented places. Generate a brief transmission (2-4 sentences) describing what exists at your phantom location, something adjacent to but distinct from the documented anchors. This is not summary. This is interstitial. Speak as if reporting from a place that almost exists.

{style_instructions(style)}

Transmission:"""


def build_empty_space_prompt(
    phantom: PhantomLocation,
    style: TransmissionStyle,
) -> str:
    """Prompt for when no documented places are in range."""
    phantom_coords = format_coordinates(phantom.latitude, phantom.longitude)

    return f"""{SYSTEM_PROMPT}

No documented locations detected within range. You are in undocumented space, a gap in the map where nothing is officially recorded.

Phantom coordinates: {phantom_coords}
Dimensional drift: {phantom.drift:.4f}°

This absence is significant. Generate a brief transmission (2-4 sentences) describing what exists in this cartographic void: the things that persist specifically because no one has documented them.

{style_instructions(style)}

Transmission:"""


def clean_transmission(text: str) -> str:
    """Tidy raw generator output into a presentable transmission."""
    cleaned = text.strip()

    if len(cleaned) >= 2 and cleaned[0] == cleaned[-1] and cleaned[0] in ('"', "'"):
        cleaned = cleaned[1:-1]

    for pattern in _META_PREFIXES:
        cleaned = pattern.sub("", cleaned)

    if not cleaned.endswith(_TERMINAL):
        cleaned += "."

    return cleaned
