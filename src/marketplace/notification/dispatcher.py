"""Notification fan-out — routing rules → recipients → persisted notifications.

``dispatch`` is called by the inbound event handlers once the state change
that produced the event has committed. It only persists; the realtime push
happens in ``delivery.py`` when each ``NotificationCreated`` is handled, so
a record always exists before anything is pushed and one recipient's
transport failure cannot touch another recipient's record.
"""

import json

import structlog
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from marketplace.notification.notification import Notification
from marketplace.notification.resolver import NotificationContext, resolve_recipients
from marketplace.notification.routing import EventKey, rules_for
from marketplace.notification.settings import delivery_settings
from marketplace.notification.templates import render

logger = structlog.get_logger(__name__)


def event_identity(*parts) -> str:
    """Stable identity for an inbound event, used to derive dedup keys."""
    return ":".join(p.isoformat() if hasattr(p, "isoformat") else str(p) for p in parts)


def dedup_key_for(source_id: str, rule_key: str, user_id: str) -> str:
    return f"{source_id}:{rule_key}:{user_id}"


def dispatch(event_key, payload: dict, source_event_id: str | None = None) -> int:
    """Create one notification per (rule, recipient) for ``event_key``.

    When ``source_event_id`` is given, a recipient that already holds a
    notification for the same source event and rule is skipped, so
    redelivering an event does not duplicate inbox entries.

    Returns the number of notifications persisted.
    """
    rules = rules_for(event_key)
    key = event_key.value if isinstance(event_key, EventKey) else str(event_key)
    if not rules:
        return 0

    settings = delivery_settings()
    context = NotificationContext(payload)
    repo = current_domain.repository_for(Notification)

    project_id = context.get("project_id")
    link = f"{settings.link_prefix}/{project_id}" if project_id else None

    created = 0
    for rule in rules:
        recipients = resolve_recipients(rule, context)
        if not recipients:
            logger.debug("No recipients for rule", event_key=key, rule=rule.key)
            continue

        title = render(rule.title, context)
        message = render(rule.message, context)
        context_data = json.dumps(
            {
                "priority": rule.priority.value,
                "event_key": key,
                "rule": rule.key,
                "channel": rule.channel,
            }
        )

        for user_id in recipients:
            dedup_key = dedup_key_for(source_event_id, rule.key, user_id) if source_event_id else None
            if dedup_key and repo.exists_with_dedup_key(dedup_key):
                logger.info(
                    "Notification already dispatched, skipping",
                    event_key=key,
                    rule=rule.key,
                    user_id=user_id,
                )
                continue

            try:
                notification = Notification.create(
                    user_id=user_id,
                    kind=rule.key,
                    event_key=key,
                    title=title,
                    message=message,
                    channel=rule.channel,
                    notification_type=rule.ui_type.value,
                    priority=rule.priority.value,
                    send_email=rule.send_email,
                    related_project_id=project_id,
                    link=link,
                    context_data=context_data,
                    dedup_key=dedup_key,
                    max_attempts=settings.max_attempts,
                )
                repo.add(notification)
            except ValidationError as exc:
                logger.error(
                    "Failed to persist notification",
                    event_key=key,
                    rule=rule.key,
                    user_id=user_id,
                    errors=exc.messages,
                )
                continue
            created += 1

    logger.info("Notifications dispatched", event_key=key, count=created)
    return created
