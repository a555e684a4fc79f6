"""Export of the transmission log as text, JSON or JSON lines."""

from __future__ import annotations

import json
from datetime import datetime
from typing import Sequence

from aethereal_drift import __version__
from aethereal_drift.geo import format_coordinates
from aethereal_drift.models import Transmission

RULE = "═" * 63
SEPARATOR = "\n" + "─" * 63 + "\n"


def format_transmission(t: Transmission, index: int) -> str:
    """Render one log entry."""
    stamp = datetime.fromisoformat(t.timestamp)
    lat_drift = t.phantom[0] - t.observer[0]
    lon_drift = t.phantom[1] - t.observer[1]
    anchors = ", ".join(t.anchor_titles) if t.anchor_titles else "[No documented locations]"

    return (
        f"[{index + 1}] {stamp:%m/%d/%Y %H:%M:%S}\n"
        f"    Position: {format_coordinates(*t.observer)}\n"
        f"    Phantom:  {format_coordinates(*t.phantom)}\n"
        f"    Drift:    {lat_drift:.6f}°, {lon_drift:.6f}°\n"
        f"    Anchors:  {anchors}\n"
        f"    Style:    {t.style.value}\n"
        f"    Voice:    {t.voice_label}\n"
        f"\n"
        f'    "{t.text}"\n'
    )


def export_text(transmissions: Sequence[Transmission], now: datetime) -> str:
    """Human-readable log, oldest transmission first."""
    if not transmissions:
        return "No transmissions recorded."

    header = (
        f"{RULE}\n"
        f"TRANSMISSION LOG: AETHEREAL DRIFT\n"
        f"Generated: {now.isoformat()}\n"
        f"Total Transmissions: {len(transmissions)}\n"
        f"{RULE}\n\n"
    )
    body = SEPARATOR.join(format_transmission(t, i) for i, t in enumerate(transmissions))
    footer = (
        f"\n{RULE}\n"
        f"END OF LOG\n"
        f'"The map is not the territory, but between the maps lie\n'
        f'territories unmapped."\n'
        f"{RULE}\n"
    )
    return header + body + footer


def export_jsonl(transmissions: Sequence[Transmission]) -> str:
    """One JSON object per line."""
    return "\n".join(json.dumps(t.to_dict(), ensure_ascii=False) for t in transmissions)


def export_json(transmissions: Sequence[Transmission], now: datetime) -> str:
    return json.dumps(
        {
            "exported_at": now.isoformat(),
            "version": __version__,
            "transmissions": [t.to_dict() for t in transmissions],
        },
        indent=2,
        ensure_ascii=False,
    )
