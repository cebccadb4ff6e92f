"""Notifications react to User events."""

from protean.utils.mixins import handle

from marketplace.domain import marketplace
from marketplace.notification.dispatcher import dispatch, event_identity
from marketplace.notification.notification import Notification
from marketplace.notification.routing import EventKey
from marketplace.user.events import UserRegistered, UserSuspended


@marketplace.event_handler(part_of=Notification, stream_category="marketplace::user")
class UserEventsHandler:
    @handle(UserRegistered)
    def on_user_registered(self, event: UserRegistered) -> None:
        dispatch(
            EventKey.USER_CREATED,
            {
                "user_id": str(event.user_id),
                "user_name": event.name,
                "email": event.email,
                "role": event.role,
                "created_by": str(event.registered_by or event.user_id),
            },
            source_event_id=event_identity("user_registered", event.user_id),
        )

    @handle(UserSuspended)
    def on_user_suspended(self, event: UserSuspended) -> None:
        dispatch(
            EventKey.USER_SUSPENDED,
            {
                "user_id": str(event.user_id),
                "user_name": event.name,
                "email": event.email,
                "role": event.role,
                "suspended_by": str(event.suspended_by) if event.suspended_by else None,
            },
            source_event_id=event_identity("user_suspended", event.user_id, event.suspended_at),
        )
