"""Notification aggregate — one inbox entry for one user from one routing rule.

The content (title, message, link, priority) is fixed when the dispatcher
creates the record. Afterwards only two things change it: the recipient
marking it read, and the delivery handler recording push attempts.

Delivery State Machine:
    PENDING → PUSHED
    PENDING → FAILED → (retry) → PUSHED
    PENDING | FAILED → DEAD_LETTERED   (attempts exhausted)
"""

from datetime import UTC, datetime, timedelta
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Identifier, Integer, String, Text

from marketplace.domain import marketplace
from marketplace.notification.events import (
    NotificationCreated,
    NotificationDeadLettered,
    NotificationDeliveryFailed,
    NotificationPushed,
    NotificationRead,
)
from marketplace.notification.routing import NotificationPriority, NotificationType


class DeliveryStatus(Enum):
    PENDING = "pending"
    PUSHED = "pushed"
    FAILED = "failed"
    DEAD_LETTERED = "dead_lettered"


_VALID_TRANSITIONS = {
    DeliveryStatus.PENDING: {
        DeliveryStatus.PUSHED,
        DeliveryStatus.FAILED,
        DeliveryStatus.DEAD_LETTERED,
    },
    DeliveryStatus.FAILED: {
        DeliveryStatus.PUSHED,
        DeliveryStatus.FAILED,  # Another failed retry
        DeliveryStatus.DEAD_LETTERED,
    },
    DeliveryStatus.PUSHED: set(),  # Terminal
    DeliveryStatus.DEAD_LETTERED: set(),  # Terminal
}


@marketplace.aggregate
class Notification:
    """A persisted notification addressed to a single user."""

    user_id: Identifier(required=True)

    # Classification
    notification_type: String(choices=NotificationType, default=NotificationType.PROJECT.value)
    kind: String(required=True, max_length=100)  # Routing rule key
    event_key: String(required=True, max_length=50)
    priority: String(choices=NotificationPriority, default=NotificationPriority.MEDIUM.value)
    channel: String(required=True, max_length=150)
    send_email: Boolean(default=False)

    # Content
    title: String(required=True, max_length=255)
    message: Text(required=True)
    related_project_id: Identifier()
    link: String(max_length=255)
    context_data: Text()  # JSON: priority, event key, rule key, channel

    # Idempotency
    dedup_key: String(max_length=400, unique=True)

    # Read state
    is_read: Boolean(default=False)
    read_at: DateTime()

    # Delivery
    delivery_status: String(choices=DeliveryStatus, default=DeliveryStatus.PENDING.value)
    delivery_attempts: Integer(default=0)
    max_attempts: Integer(default=3)
    last_error: String(max_length=500)
    next_attempt_at: DateTime()
    pushed_at: DateTime()

    created_at: DateTime()

    @classmethod
    def create(
        cls,
        user_id,
        kind,
        event_key,
        title,
        message,
        channel,
        notification_type=NotificationType.PROJECT.value,
        priority=NotificationPriority.MEDIUM.value,
        send_email=False,
        related_project_id=None,
        link=None,
        context_data=None,
        dedup_key=None,
        max_attempts=3,
    ):
        """Create a notification waiting for its first push."""
        now = datetime.now(UTC)

        notification = cls(
            user_id=user_id,
            notification_type=notification_type,
            kind=kind,
            event_key=event_key,
            priority=priority,
            channel=channel,
            send_email=send_email,
            title=title,
            message=message,
            related_project_id=related_project_id,
            link=link,
            context_data=context_data,
            dedup_key=dedup_key,
            is_read=False,
            delivery_status=DeliveryStatus.PENDING.value,
            delivery_attempts=0,
            max_attempts=max_attempts,
            created_at=now,
        )

        notification.raise_(
            NotificationCreated(
                notification_id=str(notification.id),
                user_id=str(user_id),
                kind=kind,
                event_key=event_key,
                channel=channel,
                related_project_id=str(related_project_id) if related_project_id else None,
                send_email=send_email,
                created_at=now,
            )
        )

        return notification

    # -------------------------------------------------------------------
    # Read state
    # -------------------------------------------------------------------
    def mark_read(self, reader_id):
        """Mark as read on behalf of ``reader_id``. Repeated calls are no-ops."""
        if str(reader_id) != str(self.user_id):
            raise ValidationError({"reader_id": ["Only the recipient can mark a notification as read"]})
        if self.is_read:
            return

        now = datetime.now(UTC)
        self.is_read = True
        self.read_at = now

        self.raise_(
            NotificationRead(
                notification_id=str(self.id),
                user_id=str(self.user_id),
                read_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Delivery
    # -------------------------------------------------------------------
    @property
    def is_retryable(self) -> bool:
        return DeliveryStatus(self.delivery_status) == DeliveryStatus.FAILED

    def _assert_can_transition(self, target_status):
        current = DeliveryStatus(self.delivery_status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise ValidationError(
                {"delivery_status": [f"Cannot transition from {current.value} to {target_status.value}"]}
            )

    def record_push_success(self):
        self._assert_can_transition(DeliveryStatus.PUSHED)

        now = datetime.now(UTC)
        self.delivery_status = DeliveryStatus.PUSHED.value
        self.delivery_attempts = self.delivery_attempts + 1
        self.last_error = None
        self.next_attempt_at = None
        self.pushed_at = now

        self.raise_(
            NotificationPushed(
                notification_id=str(self.id),
                user_id=str(self.user_id),
                channel=self.channel,
                attempts=self.delivery_attempts,
                pushed_at=now,
            )
        )

    def record_push_failure(self, reason: str, backoff_seconds: float = 2.0):
        """Record a failed attempt; dead-letter once attempts are exhausted.

        The next retry is scheduled with exponential backoff:
        ``backoff_seconds * 2 ** (attempts - 1)``.
        """
        attempts = self.delivery_attempts + 1
        reason = (reason or "Unknown delivery error")[:500]
        now = datetime.now(UTC)

        if attempts >= self.max_attempts:
            self._assert_can_transition(DeliveryStatus.DEAD_LETTERED)
            self.delivery_status = DeliveryStatus.DEAD_LETTERED.value
            self.delivery_attempts = attempts
            self.last_error = reason
            self.next_attempt_at = None

            self.raise_(
                NotificationDeadLettered(
                    notification_id=str(self.id),
                    user_id=str(self.user_id),
                    channel=self.channel,
                    reason=reason,
                    attempts=attempts,
                    dead_lettered_at=now,
                )
            )
            return

        self._assert_can_transition(DeliveryStatus.FAILED)
        self.delivery_status = DeliveryStatus.FAILED.value
        self.delivery_attempts = attempts
        self.last_error = reason
        self.next_attempt_at = now + timedelta(seconds=backoff_seconds * 2 ** (attempts - 1))

        self.raise_(
            NotificationDeliveryFailed(
                notification_id=str(self.id),
                user_id=str(self.user_id),
                channel=self.channel,
                reason=reason,
                attempts=attempts,
                max_attempts=self.max_attempts,
                next_attempt_at=self.next_attempt_at,
                failed_at=now,
            )
        )


@marketplace.repository(part_of=Notification)
class NotificationRepository:
    def exists_with_dedup_key(self, dedup_key: str) -> bool:
        return bool(self._dao.query.filter(dedup_key=dedup_key).all().items)

    def for_user(self, user_id, unread_only: bool = False, before=None, limit: int = 20) -> list[Notification]:
        """Newest-first page of a user's notifications created before ``before``."""
        query = self._dao.query.filter(user_id=user_id)
        if unread_only:
            query = query.filter(is_read=False)
        if before is not None:
            query = query.filter(created_at__lt=before)
        return query.order_by("-created_at").limit(limit).all().items

    def unread_for_user(self, user_id) -> list[Notification]:
        return self._dao.query.filter(user_id=user_id, is_read=False).all().items

    def due_for_retry(self, now, limit: int = 100) -> list[Notification]:
        failed = (
            self._dao.query.filter(delivery_status=DeliveryStatus.FAILED.value)
            .order_by("created_at")
            .all()
            .items
        )
        due = [n for n in failed if n.next_attempt_at is None or _as_utc(n.next_attempt_at) <= now]
        return due[:limit]


def _as_utc(value: datetime) -> datetime:
    # Some stores hand back naive timestamps
    return value if value.tzinfo else value.replace(tzinfo=UTC)
