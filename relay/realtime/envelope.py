"""
Event envelope utilities for relay real-time messages.

Provides a single, consistent schema for events emitted over the WebSocket:
- event_type: str
- timestamp: ISO 8601 UTC with 'Z'
- sequence_number: int (monotonic per-process)
- room_id: optional
- data: dict payload
"""

from __future__ import annotations

import threading
from datetime import UTC, datetime
from typing import Any

_global_sequence_counter = 0
_sequence_lock = threading.Lock()


def _get_next_global_sequence() -> int:
    global _global_sequence_counter
    with _sequence_lock:
        _global_sequence_counter += 1
        return _global_sequence_counter


def utc_now_z() -> str:
    """Return current UTC time in ISO 8601 format with 'Z' suffix."""
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def build_event(
    event_type: str,
    data: dict[str, Any] | None = None,
    *,
    room_id: str | None = None,
    sequence_number: int | None = None,
) -> dict[str, Any]:
    """
    Create a normalized event envelope.

    Args:
        event_type: Type of event (loadMessages, message, userPresence)
        data: Event data payload
        room_id: Optional room for room-scoped events
        sequence_number: Optional explicit sequence number
    """
    seq = sequence_number if sequence_number is not None else _get_next_global_sequence()
    event: dict[str, Any] = {
        "event_type": event_type,
        "timestamp": utc_now_z(),
        "sequence_number": seq,
        "data": data or {},
    }
    if room_id is not None:
        event["room_id"] = room_id
    return event
