"""Tests for newest-first pagination cursors."""

from dataclasses import dataclass
from datetime import UTC, datetime

import pytest
from marketplace.shared.pagination import decode_cursor, encode_cursor, next_cursor
from protean.exceptions import ValidationError


@dataclass
class _Record:
    id: str
    created_at: datetime


def test_cursor_carries_created_at_and_id():
    record = _Record(id="n-1", created_at=datetime(2024, 5, 1, 12, 30, tzinfo=UTC))

    created_at, record_id = decode_cursor(encode_cursor(record))

    assert created_at == record.created_at
    assert record_id == "n-1"


def test_garbage_cursor_is_a_validation_error():
    with pytest.raises(ValidationError) as exc:
        decode_cursor("not-a-cursor")

    assert "cursor" in exc.value.messages


def test_no_next_cursor_on_short_page():
    items = [_Record(id="n-1", created_at=datetime.now(UTC))]

    assert next_cursor(items, limit=20) is None
    assert next_cursor([], limit=0) is None


def test_full_page_points_at_last_item():
    items = [_Record(id=f"n-{i}", created_at=datetime(2024, 5, 1, 12, i, tzinfo=UTC)) for i in range(3)]

    cursor = next_cursor(items, limit=3)

    assert decode_cursor(cursor)[1] == "n-2"
