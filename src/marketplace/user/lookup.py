"""User lookups shared by command handlers and the recipient resolver."""

from dataclasses import dataclass

from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain

from marketplace.user.user import User, UserRole, UserStatus

UNKNOWN_USER_NAME = "Unknown User"


def load_actor(actor_id) -> User:
    """Load the user performing an action; suspended users cannot act."""
    user = current_domain.repository_for(User).get(actor_id)
    if not user.is_active:
        raise ValidationError({"actor_id": ["Suspended users cannot perform actions"]})
    return user


def find_user(user_id) -> User | None:
    if not user_id:
        return None
    try:
        return current_domain.repository_for(User).get(user_id)
    except ObjectNotFoundError:
        return None


def display_name(user_id) -> str:
    user = find_user(user_id)
    return user.name if user else UNKNOWN_USER_NAME


def active_users_with_role(role: UserRole) -> list[User]:
    repo = current_domain.repository_for(User)
    return repo._dao.query.filter(role=role.value, status=UserStatus.ACTIVE.value).all().items


@dataclass(frozen=True)
class UserSummary:
    """Read-only snapshot of the user fields other aggregates need."""

    user_id: str
    name: str
    email: str
    role: str
    is_active: bool


def summarize(user_id) -> UserSummary | None:
    user = find_user(user_id)
    if user is None:
        return None
    return UserSummary(
        user_id=str(user.id),
        name=user.name,
        email=user.email,
        role=user.role,
        is_active=user.is_active,
    )
