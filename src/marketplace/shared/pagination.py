"""Opaque cursors for newest-first listings.

A cursor encodes the ``created_at`` and id of the last record on a page.
The next page holds records created strictly before it.
"""

import base64
import json
from datetime import datetime

from protean.exceptions import ValidationError


def encode_cursor(record) -> str:
    raw = json.dumps({"created_at": record.created_at.isoformat(), "id": str(record.id)})
    return base64.urlsafe_b64encode(raw.encode()).decode()


def decode_cursor(cursor: str) -> tuple[datetime, str]:
    try:
        data = json.loads(base64.urlsafe_b64decode(cursor.encode()).decode())
        return datetime.fromisoformat(data["created_at"]), data["id"]
    except (ValueError, KeyError, TypeError) as exc:
        raise ValidationError({"cursor": ["Invalid pagination cursor"]}) from exc


def next_cursor(items: list, limit: int) -> str | None:
    """Cursor for the page after ``items``, or None on the last page."""
    if len(items) < limit or not items:
        return None
    return encode_cursor(items[-1])
