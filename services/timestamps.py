"""ISO-8601 timestamp helpers used to reconcile cluster timestamps."""

from __future__ import annotations

import math
import re
from datetime import datetime, timedelta, timezone
from typing import Sequence

from services.errors import TimestampParseError

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_MILLISECOND = timedelta(milliseconds=1)
# Fractional seconds of any length, normalized to microseconds.
_FRACTION = re.compile(r"(?<=:\d{2})\.(\d+)")


def _pad_fraction(match: re.Match) -> str:
    return "." + match.group(1).ljust(6, "0")[:6]


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 string into an aware UTC datetime.

    A trailing ``Z`` is accepted and naive values are taken to be UTC.
    """
    candidate = value.strip()
    if not candidate:
        raise TimestampParseError("Timestamp is empty.", value)

    if candidate.endswith(("Z", "z")):
        candidate = candidate[:-1] + "+00:00"

    candidate = _FRACTION.sub(_pad_fraction, candidate, count=1)

    try:
        parsed = datetime.fromisoformat(candidate)
    except ValueError as exc:
        raise TimestampParseError(f"Invalid timestamp format: {value!r}", value) from exc

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)

    return parsed.astimezone(timezone.utc)


def to_epoch_ms(value: str) -> int:
    return (parse_timestamp(value) - _EPOCH) // _MILLISECOND


def format_epoch_ms(epoch_ms: float) -> str:
    """Render epoch milliseconds as ``YYYY-MM-DDTHH:MM:SS.sssZ``."""
    moment = _EPOCH + timedelta(milliseconds=math.trunc(epoch_ms))
    return (
        f"{moment.year:04d}-{moment:%m-%dT%H:%M:%S}.{moment.microsecond // 1000:03d}Z"
    )


def reconcile_timestamps(values: Sequence[str]) -> str:
    """Derive one representative timestamp for a group of members.

    Identical values are returned verbatim; anything else is averaged in
    epoch milliseconds and re-rendered in UTC.
    """
    if not values:
        raise ValueError("Cannot reconcile an empty set of timestamps.")

    first = values[0]
    if all(value == first for value in values):
        return first

    total = sum(to_epoch_ms(value) for value in values)
    return format_epoch_ms(total / len(values))
