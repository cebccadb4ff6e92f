"""Who may act on a project outside of status transitions."""

from protean.exceptions import ValidationError

from marketplace.user.user import UserRole


def is_owner(project, actor) -> bool:
    return UserRole(actor.role) == UserRole.CLIENT and str(project.client_id) == str(actor.id)


def is_manager(project, actor) -> bool:
    """Admins manage every project; agents only the ones assigned to them."""
    if actor.is_admin:
        return True
    return UserRole(actor.role) == UserRole.AGENT and str(project.assigned_agent_id or "") == str(actor.id)


def is_assigned_freelancer(project, actor) -> bool:
    return UserRole(actor.role) == UserRole.FREELANCER and str(project.assigned_freelancer_id or "") == str(actor.id)


def ensure(allowed: bool, message: str) -> None:
    if not allowed:
        raise ValidationError({"actor_id": [message]})
