"""SQLite persistence for transmissions, settings and the anchor cache."""

from __future__ import annotations

import json
import logging
import sqlite3
import time
from dataclasses import asdict, fields
from pathlib import Path
from typing import Callable

from aethereal_drift.embedding import (
    EmbeddingBackend,
    create_embedding,
    serialize_vector,
    transmission_document,
)
from aethereal_drift.models import (
    Anchor,
    DriftConfig,
    Settings,
    Transmission,
    TransmissionStyle,
)
from aethereal_drift.queries import (
    build_all_transmissions_query,
    build_insert_transmission,
    build_recent_transmissions_query,
    build_similarity_query,
    build_vec_table_ddl,
)

logger = logging.getLogger(__name__)

_SETTINGS_FIELDS = tuple(f.name for f in fields(Settings) if f.name != "id")


class DriftStore:
    """Local store backing the drift engine."""

    def __init__(
        self,
        config: DriftConfig,
        embedding: EmbeddingBackend | None = None,
        clock: Callable[[], float] | None = None,
    ):
        self.config = config
        self.clock = clock or time.time
        self.db = sqlite3.connect(config.db_path)
        self.db.row_factory = sqlite3.Row
        self._load_sqlite_vec()
        self._init_schema()
        self._embedding = embedding
        self._index_ready = False

    def _load_sqlite_vec(self) -> None:
        """Load the sqlite-vec extension."""
        import sqlite_vec

        # Enable extension loading (disabled by default for security)
        self.db.enable_load_extension(True)
        sqlite_vec.load(self.db)
        self.db.enable_load_extension(False)

    def _init_schema(self) -> None:
        """Initialize database schema."""
        schema_path = Path(__file__).parent / "schema.sql"
        with open(schema_path) as f:
            schema = f.read()
        self.db.executescript(schema)
        self.db.commit()

    def close(self) -> None:
        """Close database connection."""
        self.db.close()

    def _index(self) -> EmbeddingBackend:
        """Embedding backend, with its vector table, created on first use."""
        if self._embedding is None:
            logger.info("Loading %s embedding backend", self.config.embedding_backend)
            self._embedding = create_embedding(self.config)
        if not self._index_ready:
            self.db.execute(build_vec_table_ddl(self._embedding.dimensions))
            self.db.commit()
            self._index_ready = True
        return self._embedding

    def _has_index_table(self) -> bool:
        row = self.db.execute(
            "SELECT 1 FROM sqlite_master WHERE name = 'transmission_vec'"
        ).fetchone()
        return row is not None

    # -------------------------------------------------------------------------
    # Transmissions
    # -------------------------------------------------------------------------

    def save_transmission(self, transmission: Transmission) -> int:
        """Persist a transmission and index it for search.

        The row and its vector are written together or not at all.

        Returns:
            The id assigned to the transmission
        """
        embedding = self._index().embed(transmission_document(transmission))

        with self.db:
            cursor = self.db.execute(
                build_insert_transmission(),
                {
                    "timestamp": transmission.timestamp,
                    "observer_lat": transmission.observer[0],
                    "observer_lon": transmission.observer[1],
                    "phantom_lat": transmission.phantom[0],
                    "phantom_lon": transmission.phantom[1],
                    "anchors": json.dumps(list(transmission.anchor_titles)),
                    "text": transmission.text,
                    "voice": transmission.voice_label,
                    "style": TransmissionStyle(transmission.style).value,
                },
            )
            transmission_id = cursor.lastrowid
            self.db.execute(
                "INSERT INTO transmission_vec (rowid, embedding) VALUES (?, ?)",
                (transmission_id, serialize_vector(embedding)),
            )

        logger.debug("Saved transmission %d", transmission_id)
        return transmission_id

    def recent_transmissions(self, limit: int = 50) -> list[Transmission]:
        """Newest transmissions first."""
        rows = self.db.execute(
            build_recent_transmissions_query(), {"limit": limit}
        ).fetchall()
        return [_row_to_transmission(row) for row in rows]

    def all_transmissions(self) -> list[Transmission]:
        """Every transmission, oldest first."""
        rows = self.db.execute(build_all_transmissions_query()).fetchall()
        return [_row_to_transmission(row) for row in rows]

    def search_transmissions(self, query: str, limit: int = 5) -> list[Transmission]:
        """Transmissions whose text, style or nearby places best match query."""
        query_embedding = self._index().embed(query)
        rows = self.db.execute(
            build_similarity_query(),
            {"query_vector": serialize_vector(query_embedding), "limit": limit},
        ).fetchall()
        return [_row_to_transmission(row) for row in rows]

    def clear_transmissions(self) -> None:
        if self._has_index_table():
            self.db.execute("DELETE FROM transmission_vec")
        self.db.execute("DELETE FROM transmissions")
        self.db.commit()

    # -------------------------------------------------------------------------
    # Settings
    # -------------------------------------------------------------------------

    def get_settings(self) -> Settings:
        """Return stored settings, creating the default record on first access."""
        row = self.db.execute("SELECT * FROM settings ORDER BY id LIMIT 1").fetchone()
        if row is not None:
            return Settings(
                id=row["id"],
                radar_range=row["radar_range"],
                transmission_interval=row["transmission_interval"],
                static_intensity=row["static_intensity"],
                voice_volume=row["voice_volume"],
                auto_play=bool(row["auto_play"]),
                movement_threshold=row["movement_threshold"],
            )

        defaults = Settings()
        values = {k: v for k, v in asdict(defaults).items() if k != "id"}
        cursor = self.db.execute(
            f"INSERT INTO settings ({', '.join(values)}) "
            f"VALUES ({', '.join(':' + k for k in values)})",
            values,
        )
        self.db.commit()
        defaults.id = cursor.lastrowid
        return defaults

    def update_settings(self, **updates) -> Settings:
        """Update selected settings fields.

        Raises:
            ValueError: If an unknown setting is named
        """
        unknown = set(updates) - set(_SETTINGS_FIELDS)
        if unknown:
            raise ValueError(f"Unknown settings: {', '.join(sorted(unknown))}")

        current = self.get_settings()
        if updates:
            assignments = ", ".join(f"{k} = :{k}" for k in updates)
            self.db.execute(
                f"UPDATE settings SET {assignments} WHERE id = :id",
                {**updates, "id": current.id},
            )
            self.db.commit()
        return self.get_settings()

    # -------------------------------------------------------------------------
    # Anchor cache
    # -------------------------------------------------------------------------

    def get_cached_anchors(
        self,
        tile: str,
        max_age: float | None = None,
        evict: bool = True,
    ) -> list[Anchor] | None:
        """Cached anchors for a tile.

        Args:
            tile: Tile key
            max_age: Maximum age in seconds; None accepts any age
            evict: Delete the entry when it is older than max_age

        Returns:
            The anchors, or None if missing or expired
        """
        row = self.db.execute(
            "SELECT anchors, fetched_at FROM anchor_cache WHERE tile = ?", (tile,)
        ).fetchone()
        if row is None:
            return None

        if max_age is not None and self.clock() - row["fetched_at"] > max_age:
            if not evict:
                return None
            self.db.execute("DELETE FROM anchor_cache WHERE tile = ?", (tile,))
            self.db.commit()
            return None

        return [Anchor(**a) for a in json.loads(row["anchors"])]

    def cache_anchors(self, tile: str, anchors: list[Anchor]) -> None:
        self.db.execute(
            """
            INSERT OR REPLACE INTO anchor_cache (tile, anchors, fetched_at)
            VALUES (?, ?, ?)
            """,
            (tile, json.dumps([asdict(a) for a in anchors]), self.clock()),
        )
        self.db.commit()

    def clear_anchor_cache(self) -> None:
        self.db.execute("DELETE FROM anchor_cache")
        self.db.commit()

    def clear_all(self) -> None:
        """Drop every transmission, cached anchor set and the settings record."""
        if self._has_index_table():
            self.db.execute("DELETE FROM transmission_vec")
        self.db.execute("DELETE FROM transmissions")
        self.db.execute("DELETE FROM anchor_cache")
        self.db.execute("DELETE FROM settings")
        self.db.commit()


def _row_to_transmission(row: sqlite3.Row) -> Transmission:
    return Transmission(
        id=row["id"],
        timestamp=row["timestamp"],
        observer=(row["observer_lat"], row["observer_lon"]),
        phantom=(row["phantom_lat"], row["phantom_lon"]),
        anchor_titles=tuple(json.loads(row["anchors"])),
        text=row["text"],
        voice_label=row["voice"],
        style=TransmissionStyle(row["style"]),
    )
