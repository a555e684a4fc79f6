"""Exceptions raised by Aethereal Drift."""


class DriftError(Exception):
    """Base class for all Aethereal Drift errors."""


class GenerationError(DriftError):
    """The text generator failed to produce a transmission."""


class GenerationInFlight(DriftError):
    """A generation was started while another one is still running."""


class LocationUnavailable(DriftError):
    """The location source could not supply a position."""


class PermissionDenied(LocationUnavailable):
    """The user refused access to their location."""
