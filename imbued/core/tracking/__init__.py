"""Append-only audit tracking of authentication and secret access."""

from .tracker import AccessRecord, AccessType, FileTracker, Tracker, TrackingError

__all__ = [
    "AccessRecord",
    "AccessType",
    "FileTracker",
    "Tracker",
    "TrackingError",
]
