"""Small helpers shared across the outliner."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime

NEVER = "1970-01-01T00:00:00.000+00:00"


def timestamp() -> str:
    """Current time as an ISO 8601 string."""
    return datetime.now(UTC).isoformat(timespec="milliseconds")


def never() -> str:
    """Timestamp of a thought that has never been updated, e.g. a pending placeholder."""
    return NEVER


def create_id() -> str:
    """Create a new thought id."""
    return str(uuid.uuid4())


def head(path: tuple[str, ...] | list[str]) -> str:
    """Last id of a path."""
    return path[-1]
