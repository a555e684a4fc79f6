"""A short simulated walk through central London.

This example demonstrates:
- Feeding positions and anchors into the engine by hand
- The trigger policy holding back generations between updates
- Reading back and exporting the transmission log

Uses the offline "echo" generator and "hash" embeddings so it runs
without model downloads or network access.
"""

import asyncio
from datetime import datetime, timezone

from aethereal_drift import Anchor, DriftConfig, DriftEngine, Position
from aethereal_drift.logwriter import export_text

ROUTE = [
    Position(latitude=51.5074, longitude=-0.1278),
    Position(latitude=51.5080, longitude=-0.1260),
    Position(latitude=51.5101, longitude=-0.1340),
]

ANCHORS = [
    [
        Anchor(1, "Trafalgar Square", 51.5080, -0.1281, 70.0),
        Anchor(2, "Nelson's Column", 51.5077, -0.1280, 38.0),
        Anchor(3, "Charing Cross", 51.5073, -0.1247, 215.0),
    ],
    [
        Anchor(3, "Charing Cross", 51.5073, -0.1247, 110.0),
        Anchor(1, "Trafalgar Square", 51.5080, -0.1281, 145.0),
        Anchor(2, "Nelson's Column", 51.5077, -0.1280, 140.0),
    ],
    [
        Anchor(4, "Piccadilly Circus", 51.5100, -0.1347, 50.0),
        Anchor(5, "Shaftesbury Memorial Fountain", 51.5099, -0.1348, 60.0),
        Anchor(6, "London Pavilion", 51.5103, -0.1344, 35.0),
    ],
]


def main():
    config = DriftConfig(
        db_path=":memory:",
        text_backend="echo",
        embedding_backend="hash",
        seed=2026,
    )

    # Simulated clock: thirty seconds between stops
    now = [1_700_000_000_000]

    with DriftEngine(config, clock=lambda: now[0]) as engine:
        for position, anchors in zip(ROUTE, ANCHORS):
            engine.update_position(position)
            changed = engine.update_anchors(anchors)

            if engine.should_generate():
                transmission = asyncio.run(engine.generate())
                print(f"[{transmission.style.value}] {transmission.text}")
            else:
                print(f"(holding, anchors changed: {changed})")

            now[0] += 30_000

        print()
        print(export_text(engine.store.all_transmissions(), datetime.now(timezone.utc)))


if __name__ == "__main__":
    main()
