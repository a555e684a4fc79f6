"""Aethereal Drift - phantom transmissions from the spaces between documented places."""

__version__ = "0.1.0"

from aethereal_drift.models import (
    Anchor,
    DriftConfig,
    GenerationParams,
    PhantomLocation,
    Position,
    Settings,
    Transmission,
    TransmissionStyle,
)
from aethereal_drift.errors import (
    DriftError,
    GenerationError,
    GenerationInFlight,
    LocationUnavailable,
    PermissionDenied,
)
from aethereal_drift.engine import DriftEngine

__all__ = [
    "DriftEngine",
    "DriftConfig",
    "Anchor",
    "GenerationParams",
    "PhantomLocation",
    "Position",
    "Settings",
    "Transmission",
    "TransmissionStyle",
    "DriftError",
    "GenerationError",
    "GenerationInFlight",
    "LocationUnavailable",
    "PermissionDenied",
]
