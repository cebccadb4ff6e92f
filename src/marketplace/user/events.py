"""Domain events for the User aggregate."""

from protean.fields import DateTime, Identifier, String

from marketplace.domain import marketplace


@marketplace.event(part_of="User")
class UserRegistered:
    __version__ = 1

    user_id: Identifier(required=True)
    name: String(required=True)
    email: String(required=True)
    role: String(required=True)
    registered_by: Identifier()
    registered_at: DateTime(required=True)


@marketplace.event(part_of="User")
class UserSuspended:
    __version__ = 1

    user_id: Identifier(required=True)
    name: String(required=True)
    email: String(required=True)
    role: String(required=True)
    suspended_by: Identifier()
    suspended_at: DateTime(required=True)


@marketplace.event(part_of="User")
class UserReactivated:
    __version__ = 1

    user_id: Identifier(required=True)
    reactivated_at: DateTime(required=True)
