"""Domain events for the Notification aggregate."""

from protean.fields import Boolean, DateTime, Identifier, Integer, String

from marketplace.domain import marketplace


@marketplace.event(part_of="Notification")
class NotificationCreated:
    """A notification was persisted and is waiting for its realtime push."""

    __version__ = 1

    notification_id: Identifier(required=True)
    user_id: Identifier(required=True)
    kind: String(required=True)
    event_key: String(required=True)
    channel: String(required=True)
    related_project_id: Identifier()
    send_email: Boolean(default=False)
    created_at: DateTime(required=True)


@marketplace.event(part_of="Notification")
class NotificationPushed:
    __version__ = 1

    notification_id: Identifier(required=True)
    user_id: Identifier(required=True)
    channel: String(required=True)
    attempts: Integer(required=True)
    pushed_at: DateTime(required=True)


@marketplace.event(part_of="Notification")
class NotificationDeliveryFailed:
    """A push attempt failed; the notification stays eligible for retry."""

    __version__ = 1

    notification_id: Identifier(required=True)
    user_id: Identifier(required=True)
    channel: String(required=True)
    reason: String(required=True, max_length=500)
    attempts: Integer(required=True)
    max_attempts: Integer(required=True)
    next_attempt_at: DateTime()
    failed_at: DateTime(required=True)


@marketplace.event(part_of="Notification")
class NotificationDeadLettered:
    """Push attempts are exhausted. The record stays readable in the inbox."""

    __version__ = 1

    notification_id: Identifier(required=True)
    user_id: Identifier(required=True)
    channel: String(required=True)
    reason: String(required=True, max_length=500)
    attempts: Integer(required=True)
    dead_lettered_at: DateTime(required=True)


@marketplace.event(part_of="Notification")
class NotificationRead:
    __version__ = 1

    notification_id: Identifier(required=True)
    user_id: Identifier(required=True)
    read_at: DateTime(required=True)
