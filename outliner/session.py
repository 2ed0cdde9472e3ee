"""Originating session id, stamped into updated_by on every write from this process."""

from __future__ import annotations

import uuid

_session_id: str | None = None


def get_session_id() -> str:
    """Get the session id of this process, creating it on first use."""
    global _session_id
    if _session_id is None:
        _session_id = uuid.uuid4().hex[:12]
    return _session_id
