"""Recoverable error types raised inside the map engine.

None of these are fatal. Strict helpers raise them; the ingestion and
controller boundaries catch them and log, so the dashboard degrades to
fewer features/markers rather than aborting.
"""

from __future__ import annotations


class MapEngineError(Exception):
    """Base class for all map engine errors."""


class FetchFailure(MapEngineError):
    """A dataset or climate request failed (transport, HTTP status, or body)."""

    def __init__(self, source: str, reason: str) -> None:
        super().__init__(f"{source}: {reason}")
        self.source = source
        self.reason = reason


class MalformedGeometry(MapEngineError):
    """A geometry string could not be decoded into a geometry mapping."""


class CentroidUnresolvable(MapEngineError):
    """No valid (lat, lon) could be derived from a geometry."""


class ChartUpdateFailure(MapEngineError):
    """The chart collaborator rejected an update; its previous state persists."""
