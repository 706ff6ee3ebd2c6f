"""
ID generation and timestamp utilities.

Identifiers are ULIDs rendered in UUID form: they sort by creation time and
still parse as UUIDs at the HTTP boundary. now_iso() gives deterministic
UTC ISO 8601 formatting.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from ulid import ULID


def _new_id() -> str:
    return str(ULID().to_uuid())


def new_order_id() -> str:
    """
    Generate a new order ID.

    >>> id_ = new_order_id()
    >>> isinstance(id_, str) and len(id_) == 36
    True
    """
    return _new_id()


def new_product_id() -> str:
    """Generate a new product ID. Same strategy as new_order_id()."""
    return _new_id()


def new_event_id() -> str:
    """
    Generate a new event ID. Same strategy as new_order_id().

    >>> new_event_id() != new_event_id()
    True
    """
    return _new_id()


def parse_id(raw: object) -> str:
    """
    Canonicalise an incoming identifier. Raises ValueError if it is not a UUID.

    >>> parse_id("019ABBA0-FFFB-780C-9B4F-9C4934250A44")
    '019abba0-fffb-780c-9b4f-9c4934250a44'
    """
    if not isinstance(raw, str):
        raise ValueError(f"Invalid identifier: {raw!r}")
    return str(uuid.UUID(raw))


def now_iso() -> str:
    """
    Return current UTC time as ISO 8601 string with Z suffix.
    Deterministic format: YYYY-MM-DDTHH:MM:SS.ffffffZ

    >>> s = now_iso()
    >>> s.endswith('Z') and 'T' in s
    True
    """
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")
