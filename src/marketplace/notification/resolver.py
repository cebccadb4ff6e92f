"""Recipient resolution and template context hydration.

``resolve_recipients`` turns a routing rule plus an event payload into the
user ids that should receive it. Each role has its own scope:

* client      - the project's owning client
* agent       - the project's assigned agent, if any
* admin,
  superadmin  - every active user holding the role
* freelancer  - the ``freelancer_id`` / ``bidder_id`` in the payload, or the
                project's current shortlist for shortlist-scoped rules

Users that are unknown or suspended are dropped. The result keeps the
first-seen order and holds each user at most once.
"""

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from marketplace.bidding.bidding import Bidding
from marketplace.notification.routing import RoutingRule
from marketplace.project.project import Project
from marketplace.user.lookup import active_users_with_role, display_name, find_user
from marketplace.user.user import UserRole

_UNSET = object()


class NotificationContext(dict):
    """Event payload that resolves display names on first access.

    Known derived keys (``project_title``, ``client_name``,
    ``freelancer_name``, ``agent_name``, and ``<x>_name`` for any ``<x>``
    actor id in the payload such as ``changed_by``) are looked up the first
    time a template asks for them and cached.
    """

    def __init__(self, payload: dict):
        super().__init__({key: value for key, value in payload.items() if value is not None})
        self._project = _UNSET

    @property
    def project(self) -> Project | None:
        if self._project is _UNSET:
            self._project = None
            project_id = dict.get(self, "project_id")
            if project_id:
                try:
                    self._project = current_domain.repository_for(Project).get(project_id)
                except ObjectNotFoundError:
                    self._project = None
        return self._project

    def __missing__(self, key):
        value = self._derive(key)
        if value is None:
            raise KeyError(key)
        self[key] = value
        return value

    def get(self, key, default=None):
        try:
            return self[key]
        except KeyError:
            return default

    def _derive(self, key):
        project = self.project
        if key == "project_title":
            return project.title if project else None
        if key == "client_id":
            return str(project.client_id) if project else None
        if key == "client_name":
            client_id = self.get("client_id")
            return display_name(client_id) if client_id else None
        if key == "freelancer_name":
            freelancer_id = dict.get(self, "freelancer_id") or dict.get(self, "bidder_id")
            if not freelancer_id and project is not None:
                freelancer_id = project.assigned_freelancer_id
            return display_name(freelancer_id) if freelancer_id else None
        if key == "agent_name":
            agent_id = dict.get(self, "agent_id") or (project.assigned_agent_id if project else None)
            return display_name(agent_id) if agent_id else None
        if key.endswith("_name") and dict.get(self, key[: -len("_name")]):
            return display_name(dict.get(self, key[: -len("_name")]))
        return None


def _client_scope(context: NotificationContext) -> list[str]:
    client_id = context.get("client_id")
    return [str(client_id)] if client_id else []


def _agent_scope(context: NotificationContext) -> list[str]:
    project = context.project
    if project is None or not project.assigned_agent_id:
        return []
    return [str(project.assigned_agent_id)]


def _freelancer_scope(context: NotificationContext, rule: RoutingRule) -> list[str]:
    if rule.shortlist_scoped:
        project_id = context.get("project_id")
        if not project_id:
            return []
        return current_domain.repository_for(Bidding).shortlisted_freelancer_ids(project_id)

    freelancer_id = context.get("freelancer_id") or context.get("bidder_id")
    return [str(freelancer_id)] if freelancer_id else []


def _role_scope(role: UserRole, context: NotificationContext, rule: RoutingRule) -> list[str]:
    if role == UserRole.CLIENT:
        return _client_scope(context)
    if role == UserRole.AGENT:
        return _agent_scope(context)
    if role == UserRole.FREELANCER:
        return _freelancer_scope(context, rule)
    return [str(user.id) for user in active_users_with_role(role)]


def _is_active(user_id: str) -> bool:
    user = find_user(user_id)
    return user is not None and user.is_active


def resolve_recipients(rule: RoutingRule, context) -> list[str]:
    """User ids that should receive ``rule`` for this event, deduplicated."""
    if not isinstance(context, NotificationContext):
        context = NotificationContext(context)

    recipients: list[str] = []
    for role in sorted(rule.roles, key=lambda r: r.value):
        for user_id in _role_scope(role, context, rule):
            if user_id in recipients:
                continue
            # Role-wide scopes already filter on status
            if role in (UserRole.ADMIN, UserRole.SUPERADMIN) or _is_active(user_id):
                recipients.append(user_id)
    return recipients
