"""Failure types raised while reading, clustering and writing observations."""

from __future__ import annotations

from typing import Optional


class ClusteringError(Exception):
    """Base class for every failure that aborts a clustering run."""


class SourceReadError(ClusteringError):
    """The observation source is missing, unreadable or malformed."""

    def __init__(self, message: str, row_number: Optional[int] = None) -> None:
        super().__init__(message)
        self.row_number = row_number


class TimestampParseError(ClusteringError, ValueError):
    """A timestamp could not be interpreted as a point in time."""

    def __init__(self, message: str, value: str) -> None:
        super().__init__(message)
        self.value = value


class SinkWriteError(ClusteringError):
    """Cluster summaries could not be written to the destination."""
