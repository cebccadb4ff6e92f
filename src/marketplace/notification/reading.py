"""Read-state commands. Only the recipient may mark a notification read."""

import structlog
from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.notification.notification import Notification

logger = structlog.get_logger(__name__)


@marketplace.command(part_of="Notification")
class MarkNotificationRead:
    notification_id: Identifier(required=True)
    reader_id: Identifier(required=True)


@marketplace.command(part_of="Notification")
class MarkAllNotificationsRead:
    user_id: Identifier(required=True)


@marketplace.command_handler(part_of=Notification)
class NotificationReadingHandler:
    @handle(MarkNotificationRead)
    def mark_read(self, command: MarkNotificationRead):
        repo = current_domain.repository_for(Notification)
        notification = repo.get(command.notification_id)
        notification.mark_read(command.reader_id)
        repo.add(notification)

    @handle(MarkAllNotificationsRead)
    def mark_all_read(self, command: MarkAllNotificationsRead) -> int:
        repo = current_domain.repository_for(Notification)
        unread = repo.unread_for_user(command.user_id)
        for notification in unread:
            notification.mark_read(command.user_id)
            repo.add(notification)

        logger.info("Notifications marked read", user_id=str(command.user_id), count=len(unread))
        return len(unread)
