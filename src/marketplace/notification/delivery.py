"""Realtime and email delivery for persisted notifications.

Reacts to ``NotificationCreated`` (raised when the dispatcher's unit of
work commits) and pushes the notification on two realtime channels, the
generic ``notification:created`` and the rule's own channel, each attempted
independently. Rules flagged ``send_email`` also go out by email on the
first attempt. Transport errors are logged and recorded on the
notification; they never propagate to the caller.
"""

import structlog
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from marketplace.channel import Transports, get_transports
from marketplace.domain import marketplace
from marketplace.notification.events import NotificationCreated
from marketplace.notification.notification import DeliveryStatus, Notification
from marketplace.notification.settings import delivery_settings
from marketplace.notification.templates import render_email_html
from marketplace.user.lookup import find_user

logger = structlog.get_logger(__name__)

GENERIC_CHANNEL = "notification:created"


def notification_payload(notification: Notification) -> dict:
    """Shape pushed to the client for a single notification."""
    return {
        "id": str(notification.id),
        "type": notification.notification_type,
        "kind": notification.kind,
        "title": notification.title,
        "message": notification.message,
        "priority": notification.priority,
        "related_project_id": str(notification.related_project_id) if notification.related_project_id else None,
        "link": notification.link,
        "is_read": notification.is_read,
        "created_at": notification.created_at.isoformat() if notification.created_at else None,
    }


def deliver(notification: Notification, transports: Transports | None = None, include_email: bool = True) -> bool:
    """Push ``notification`` and record the outcome on it.

    The caller persists the notification afterwards. Returns True when both
    realtime channels accepted the push.
    """
    settings = delivery_settings()
    transports = transports or get_transports(settings.timeout_seconds)
    payload = notification_payload(notification)
    user_id = str(notification.user_id)

    errors = []
    for channel in (GENERIC_CHANNEL, notification.channel):
        try:
            transports.realtime.emit_to_user(user_id, channel, payload)
        except Exception as exc:
            errors.append(f"{channel}: {exc}")
            logger.warning(
                "Realtime push failed",
                notification_id=str(notification.id),
                user_id=user_id,
                channel=channel,
                error=str(exc),
            )

    if errors:
        notification.record_push_failure("; ".join(errors), backoff_seconds=settings.backoff_seconds)
        if DeliveryStatus(notification.delivery_status) == DeliveryStatus.DEAD_LETTERED:
            logger.error(
                "Notification dead-lettered",
                notification_id=str(notification.id),
                user_id=user_id,
                attempts=notification.delivery_attempts,
                error=notification.last_error,
            )
    else:
        notification.record_push_success()
        logger.info(
            "Notification pushed",
            notification_id=str(notification.id),
            user_id=user_id,
            channel=notification.channel,
        )

    if include_email and notification.send_email and settings.email_enabled:
        _send_email(notification, transports)

    return not errors


def _send_email(notification: Notification, transports: Transports) -> None:
    recipient = find_user(notification.user_id)
    if recipient is None or not recipient.email:
        logger.warning("No email address for notification recipient", user_id=str(notification.user_id))
        return

    try:
        result = transports.email.send_templated_email(
            to=recipient.email,
            subject=notification.title,
            html_body=render_email_html(notification.title, notification.message, notification.link),
        )
    except Exception as exc:
        logger.warning(
            "Notification email failed",
            notification_id=str(notification.id),
            error=str(exc),
        )
        return

    if result.get("status") != "sent":
        logger.warning(
            "Notification email failed",
            notification_id=str(notification.id),
            error=result.get("error", "Unknown email error"),
        )


def broadcast_to_role(role: str, channel: str, payload: dict) -> bool:
    """Best-effort realtime broadcast to a role group."""
    transports = get_transports(delivery_settings().timeout_seconds)
    try:
        transports.realtime.emit_to_role(role, channel, payload)
    except Exception as exc:
        logger.warning("Role broadcast failed", role=role, channel=channel, error=str(exc))
        return False
    return True


@marketplace.event_handler(part_of=Notification)
class NotificationDeliveryHandler:
    """Pushes notifications when they are created."""

    @handle(NotificationCreated)
    def on_notification_created(self, event: NotificationCreated) -> None:
        repo = current_domain.repository_for(Notification)

        try:
            notification = repo.get(event.notification_id)
        except ObjectNotFoundError:
            logger.error(
                "Failed to load notification for delivery",
                notification_id=str(event.notification_id),
            )
            return

        # Redelivered events find the notification already handled
        if DeliveryStatus(notification.delivery_status) != DeliveryStatus.PENDING:
            logger.info(
                "Notification not pending, skipping delivery",
                notification_id=str(event.notification_id),
                delivery_status=notification.delivery_status,
            )
            return

        try:
            deliver(notification)
        except Exception as exc:
            logger.exception("Notification delivery raised", notification_id=str(event.notification_id))
            if DeliveryStatus(notification.delivery_status) == DeliveryStatus.PENDING:
                notification.record_push_failure(
                    f"Delivery error: {exc}", backoff_seconds=delivery_settings().backoff_seconds
                )
        repo.add(notification)
