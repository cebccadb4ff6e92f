"""RetryFailedDeliveries command + handler — re-push notifications whose push failed.

Invoked by ``manage.py retry-deliveries`` or a scheduler. A notification
becomes due once its backoff window (``next_attempt_at``) has passed.
Each retry counts as one attempt; the attempt that reaches
``max_attempts`` dead-letters the notification. Email is not resent.
"""

from datetime import UTC, datetime

import structlog
from protean.fields import DateTime, Integer
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from marketplace.domain import marketplace
from marketplace.notification.delivery import deliver
from marketplace.notification.notification import DeliveryStatus, Notification

logger = structlog.get_logger(__name__)


@marketplace.command(part_of="Notification")
class RetryFailedDeliveries:
    """Request to retry every failed notification that is due."""

    as_of: DateTime()  # Defaults to now
    limit: Integer(default=100, min_value=1)


@marketplace.command_handler(part_of=Notification)
class RetryFailedDeliveriesHandler:
    @handle(RetryFailedDeliveries)
    def retry_failed(self, command: RetryFailedDeliveries) -> dict:
        as_of = command.as_of or datetime.now(UTC)
        if as_of.tzinfo is None:
            as_of = as_of.replace(tzinfo=UTC)

        repo = current_domain.repository_for(Notification)
        due = repo.due_for_retry(as_of, limit=command.limit or 100)

        summary = {"retried": 0, "pushed": 0, "failed": 0, "dead_lettered": 0}
        for notification in due:
            deliver(notification, include_email=False)
            repo.add(notification)

            summary["retried"] += 1
            status = DeliveryStatus(notification.delivery_status)
            if status == DeliveryStatus.PUSHED:
                summary["pushed"] += 1
            elif status == DeliveryStatus.DEAD_LETTERED:
                summary["dead_lettered"] += 1
            else:
                summary["failed"] += 1

        logger.info("Failed deliveries retried", as_of=str(as_of), **summary)
        return summary
