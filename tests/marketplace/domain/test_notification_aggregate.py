"""Tests for the Notification aggregate: read state and delivery state machine."""

from datetime import UTC, datetime, timedelta

import pytest
from marketplace.notification.events import (
    NotificationCreated,
    NotificationDeadLettered,
    NotificationDeliveryFailed,
    NotificationPushed,
    NotificationRead,
)
from marketplace.notification.notification import DeliveryStatus, Notification
from protean.exceptions import ValidationError


def _notification(**overrides):
    defaults = {
        "user_id": "user-1",
        "kind": "project_status_changed",
        "event_key": "PROJECT_STATUS_CHANGED",
        "title": "Project Status Updated",
        "message": 'Your project "Site" moved from draft to active.',
        "channel": "notification:client:project_status_changed",
        "priority": "high",
        "max_attempts": 3,
    }
    defaults.update(overrides)
    return Notification.create(**defaults)


class TestCreate:
    def test_starts_pending_and_unread(self):
        n = _notification()

        assert n.delivery_status == DeliveryStatus.PENDING.value
        assert n.delivery_attempts == 0
        assert n.is_read is False
        assert n.created_at is not None

    def test_raises_created_event(self):
        n = _notification(related_project_id="proj-1", send_email=True)

        event = n._events[0]
        assert isinstance(event, NotificationCreated)
        assert event.notification_id == str(n.id)
        assert event.related_project_id == "proj-1"
        assert event.send_email is True

    def test_unknown_priority_rejected(self):
        with pytest.raises(ValidationError):
            _notification(priority="urgent")


class TestMarkRead:
    def test_recipient_marks_read(self):
        n = _notification()
        n._events.clear()

        n.mark_read("user-1")

        assert n.is_read is True
        assert n.read_at is not None
        assert isinstance(n._events[-1], NotificationRead)

    def test_other_user_cannot_mark_read(self):
        n = _notification()

        with pytest.raises(ValidationError) as exc:
            n.mark_read("user-2")

        assert "reader_id" in exc.value.messages
        assert n.is_read is False

    def test_mark_read_is_idempotent(self):
        n = _notification()
        n.mark_read("user-1")
        first_read_at = n.read_at
        n._events.clear()

        n.mark_read("user-1")

        assert n.read_at == first_read_at
        assert n._events == []


class TestDelivery:
    def test_push_success(self):
        n = _notification()
        n.record_push_success()

        assert n.delivery_status == DeliveryStatus.PUSHED.value
        assert n.delivery_attempts == 1
        assert n.pushed_at is not None
        assert isinstance(n._events[-1], NotificationPushed)

    def test_failure_schedules_retry_with_backoff(self):
        n = _notification()
        before = datetime.now(UTC)

        n.record_push_failure("socket closed", backoff_seconds=2.0)

        assert n.delivery_status == DeliveryStatus.FAILED.value
        assert n.delivery_attempts == 1
        assert n.last_error == "socket closed"
        assert n.is_retryable
        assert before + timedelta(seconds=2) <= n.next_attempt_at <= datetime.now(UTC) + timedelta(seconds=2)
        assert isinstance(n._events[-1], NotificationDeliveryFailed)

    def test_backoff_doubles_each_attempt(self):
        n = _notification(max_attempts=5)
        n.record_push_failure("down", backoff_seconds=1.0)
        n.record_push_failure("down", backoff_seconds=1.0)
        before = datetime.now(UTC)

        n.record_push_failure("down", backoff_seconds=1.0)

        assert n.delivery_attempts == 3
        assert n.next_attempt_at >= before + timedelta(seconds=4)

    def test_dead_letters_at_max_attempts(self):
        n = _notification(max_attempts=2)
        n.record_push_failure("down")
        n.record_push_failure("still down")

        assert n.delivery_status == DeliveryStatus.DEAD_LETTERED.value
        assert n.delivery_attempts == 2
        assert n.next_attempt_at is None
        assert not n.is_retryable
        event = n._events[-1]
        assert isinstance(event, NotificationDeadLettered)
        assert event.reason == "still down"

    def test_retry_after_failure_can_succeed(self):
        n = _notification()
        n.record_push_failure("down")
        n.record_push_success()

        assert n.delivery_status == DeliveryStatus.PUSHED.value
        assert n.delivery_attempts == 2
        assert n.last_error is None

    def test_pushed_is_terminal(self):
        n = _notification()
        n.record_push_success()

        with pytest.raises(ValidationError):
            n.record_push_failure("late failure")

    def test_long_error_is_truncated(self):
        n = _notification()
        n.record_push_failure("x" * 800)

        assert len(n.last_error) == 500
        assert isinstance(n._events[-1], NotificationDeliveryFailed)
        assert len(n._events[-1].reason) == 500

    def test_long_error_is_kept_when_dead_lettered(self):
        n = _notification(max_attempts=1)
        n.record_push_failure("y" * 800)

        assert n.delivery_status == DeliveryStatus.DEAD_LETTERED.value
        assert isinstance(n._events[-1], NotificationDeadLettered)
        assert len(n._events[-1].reason) == 500
