"""Data models for Aethereal Drift."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum


@dataclass
class DriftConfig:
    """Configuration for DriftEngine."""

    db_path: str
    text_backend: str = "local"  # "local" | "openai" | "echo"
    openai_model: str = "gpt-4o-mini"
    local_model: str = "HuggingFaceTB/SmolLM-360M-Instruct"
    embedding_backend: str = "local"  # "local" | "openai" | "hash"
    embedding_model: str = "all-MiniLM-L6-v2"  # for local
    openai_embedding_model: str = "text-embedding-3-small"  # if backend="openai"
    vector_dimensions: int = 384  # matches model
    anchor_cache_max_age: float = 24 * 60 * 60  # seconds
    max_in_flight: float | None = None  # seconds, None = wait forever
    history_size: int = 20
    seed: int | None = None


@dataclass(frozen=True)
class Position:
    """An observed real-world position."""

    latitude: float
    longitude: float
    accuracy: float = 0.0  # meters
    heading: float | None = None  # compass degrees
    timestamp: int = 0  # epoch millis


@dataclass(frozen=True)
class Anchor:
    """A documented point of interest near the observer."""

    id: int
    title: str
    latitude: float
    longitude: float
    distance: float  # meters from the observer


@dataclass(frozen=True)
class PhantomLocation:
    """A synthetic coordinate in the space between anchors."""

    latitude: float
    longitude: float
    drift: float
    anchor_titles: tuple[str, ...] = ()


class TransmissionStyle(str, Enum):
    """Narrative register of a transmission."""

    FRAGMENT = "fragment"
    CATALOG = "catalog"
    FIELD_NOTE = "field_note"
    SIGNAL = "signal"
    WHISPER = "whisper"


@dataclass(frozen=True)
class Transmission:
    """One generation cycle's output."""

    timestamp: str  # ISO-8601
    observer: tuple[float, float]
    phantom: tuple[float, float]
    anchor_titles: tuple[str, ...]
    text: str
    voice_label: str
    style: TransmissionStyle
    id: int | None = None

    def with_id(self, id: int) -> Transmission:
        """Return a copy carrying the store-assigned id."""
        return replace(self, id=id)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "timestamp": self.timestamp,
            "observer": {"lat": self.observer[0], "lon": self.observer[1]},
            "phantom": {"lat": self.phantom[0], "lon": self.phantom[1]},
            "anchors": list(self.anchor_titles),
            "text": self.text,
            "voice": self.voice_label,
            "style": self.style.value,
        }


@dataclass(frozen=True)
class BearingInfo:
    """Bearing, distance and compass direction from observer to anchor."""

    bearing: float
    distance: float
    direction: str


@dataclass
class Settings:
    """User-configurable settings, stored as a single record."""

    radar_range: int = 1000  # meters (250 - 10000)
    transmission_interval: int = 60  # seconds (30 - 300)
    static_intensity: float = 0.3
    voice_volume: float = 0.7
    auto_play: bool = True
    movement_threshold: float = 20  # meters
    id: int | None = None


@dataclass
class GenerationParams:
    """Sampling parameters passed to the text generator."""

    temperature: float = 0.9
    max_tokens: int = 150
    top_p: float = 0.95
    repetition_penalty: float = 1.1


@dataclass
class TriggerState:
    """Mutable trigger bookkeeping owned by one TriggerPolicy."""

    last_generated_at: int | None = None  # epoch millis
    previous_anchor_ids: list[int] = field(default_factory=list)
    in_flight_since: int | None = None
    in_flight_token: int | None = None  # cycle number returned by begin()
