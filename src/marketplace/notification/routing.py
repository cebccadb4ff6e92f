"""Notification routing table — which roles hear about which events, and how.

Every routing event key maps to one or more ``RoutingRule`` records. Rules
are independent: ``PROJECT_STATUS_CHANGED`` has a client-facing rule, an
admin-facing rule and an agent-facing rule, each with its own template and
realtime channel. The table is compiled into a dict once at import so a
lookup never scans it.

Templates use ``{placeholder}`` tokens. The dispatcher fills them from the
event payload plus names hydrated from ids (``project_title``,
``client_name``, ``freelancer_name``, ``agent_name`` and ``<x>_by_name``
for any ``<x>_by`` actor id).
"""

from dataclasses import dataclass
from enum import Enum

from marketplace.shared.errors import RoutingError
from marketplace.user.user import UserRole


class EventKey(Enum):
    PROJECT_CREATED = "PROJECT_CREATED"
    PROJECT_UPDATED = "PROJECT_UPDATED"
    PROJECT_STATUS_CHANGED = "PROJECT_STATUS_CHANGED"
    PROJECT_REVIEW_PENDING = "PROJECT_REVIEW_PENDING"
    PROJECT_ASSIGNED = "PROJECT_ASSIGNED"
    FREELANCER_ASSIGNED = "FREELANCER_ASSIGNED"
    AGENT_ASSIGNED = "AGENT_ASSIGNED"
    AGENT_UNASSIGNED = "AGENT_UNASSIGNED"
    MILESTONE_CREATED = "MILESTONE_CREATED"
    MILESTONE_UPDATED = "MILESTONE_UPDATED"
    MILESTONE_COMPLETED = "MILESTONE_COMPLETED"
    PAYMENT_STATUS_CHANGED = "PAYMENT_STATUS_CHANGED"
    BID_RECEIVED = "BID_RECEIVED"
    BID_CREATED = "BID_CREATED"
    BID_WITHDRAWN = "BID_WITHDRAWN"
    BID_SHORTLISTED = "BID_SHORTLISTED"
    BID_ACCEPTED = "BID_ACCEPTED"
    BID_REJECTED = "BID_REJECTED"
    USER_CREATED = "USER_CREATED"
    USER_SUSPENDED = "USER_SUSPENDED"


class NotificationPriority(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class NotificationType(Enum):
    """UI category the frontend groups notifications by."""

    PROJECT = "project"
    BID = "bid"
    MILESTONE = "milestone"
    PAYMENT = "payment"
    MESSAGE = "message"
    DISPUTE = "dispute"


def to_ui_type(kind: str) -> NotificationType:
    """Collapse a rule key into the UI category shown in the inbox."""
    if "milestone" in kind:
        return NotificationType.MILESTONE
    if "payment" in kind:
        return NotificationType.PAYMENT
    if "message" in kind:
        return NotificationType.MESSAGE
    if "bid" in kind:
        return NotificationType.BID
    if "dispute" in kind:
        return NotificationType.DISPUTE
    return NotificationType.PROJECT


@dataclass(frozen=True)
class RoutingRule:
    key: str
    event: EventKey
    roles: frozenset
    priority: NotificationPriority
    title: str
    message: str
    channel: str
    shortlist_scoped: bool = False
    send_email: bool = False

    @property
    def kind(self) -> str:
        return self.key

    @property
    def ui_type(self) -> NotificationType:
        return to_ui_type(self.key)


_ADMINS = frozenset({UserRole.ADMIN, UserRole.SUPERADMIN})
_CLIENT = frozenset({UserRole.CLIENT})
_AGENT = frozenset({UserRole.AGENT})
_FREELANCER = frozenset({UserRole.FREELANCER})

_LOW = NotificationPriority.LOW
_MEDIUM = NotificationPriority.MEDIUM
_HIGH = NotificationPriority.HIGH


ROUTING_TABLE: tuple[RoutingRule, ...] = (
    # Projects
    RoutingRule(
        key="project_created",
        event=EventKey.PROJECT_CREATED,
        roles=_CLIENT,
        priority=_MEDIUM,
        title="Project Created Successfully",
        message='Your project "{project_title}" has been created and is now {status}.',
        channel="notification:client:project_created",
    ),
    RoutingRule(
        key="project_created_admin",
        event=EventKey.PROJECT_CREATED,
        roles=_ADMINS,
        priority=_MEDIUM,
        title="New Project Created",
        message='New project "{project_title}" was created by {client_name}.',
        channel="notification:admin:project_created",
    ),
    RoutingRule(
        key="project_updated",
        event=EventKey.PROJECT_UPDATED,
        roles=_CLIENT,
        priority=_LOW,
        title="Project Updated",
        message='Your project "{project_title}" has been updated.',
        channel="notification:client:project_updated",
    ),
    RoutingRule(
        key="project_updated_admin",
        event=EventKey.PROJECT_UPDATED,
        roles=_ADMINS,
        priority=_LOW,
        title="Project Updated",
        message='Project "{project_title}" was updated by {updated_by_name}.',
        channel="notification:admin:project_updated",
    ),
    RoutingRule(
        key="project_status_changed",
        event=EventKey.PROJECT_STATUS_CHANGED,
        roles=_CLIENT,
        priority=_HIGH,
        title="Project Status Updated",
        message='Your project "{project_title}" moved from {old_status} to {new_status}.',
        channel="notification:client:project_status_changed",
        send_email=True,
    ),
    RoutingRule(
        key="project_status_changed_admin",
        event=EventKey.PROJECT_STATUS_CHANGED,
        roles=_ADMINS,
        priority=_MEDIUM,
        title="Project Status Changed",
        message='{changed_by_name} moved project "{project_title}" from {old_status} to {new_status}.',
        channel="notification:admin:project_status_changed",
    ),
    RoutingRule(
        key="project_status_changed_agent",
        event=EventKey.PROJECT_STATUS_CHANGED,
        roles=_AGENT,
        priority=_MEDIUM,
        title="Assigned Project Status Changed",
        message='Project "{project_title}" you manage moved from {old_status} to {new_status}.',
        channel="notification:agent:project_status_changed",
    ),
    RoutingRule(
        key="project_review_pending",
        event=EventKey.PROJECT_REVIEW_PENDING,
        roles=_ADMINS,
        priority=_HIGH,
        title="Project Awaiting Review",
        message='Project "{project_title}" by {client_name} is waiting for review.',
        channel="notification:admin:project_review_pending",
    ),
    RoutingRule(
        key="project_assigned",
        event=EventKey.PROJECT_ASSIGNED,
        roles=_FREELANCER,
        priority=_HIGH,
        title="You've Been Assigned a Project",
        message='You have been assigned to project "{project_title}".',
        channel="notification:freelancer:project_assigned",
        send_email=True,
    ),
    RoutingRule(
        key="freelancer_assigned",
        event=EventKey.FREELANCER_ASSIGNED,
        roles=_ADMINS,
        priority=_MEDIUM,
        title="Freelancer Assigned",
        message='{freelancer_name} has been assigned to project "{project_title}".',
        channel="notification:admin:freelancer_assigned",
    ),
    RoutingRule(
        key="freelancer_assigned_client",
        event=EventKey.FREELANCER_ASSIGNED,
        roles=_CLIENT,
        priority=_HIGH,
        title="Freelancer Assigned",
        message='{freelancer_name} will be working on your project "{project_title}".',
        channel="notification:client:freelancer_assigned",
    ),
    RoutingRule(
        key="agent_assigned",
        event=EventKey.AGENT_ASSIGNED,
        roles=_ADMINS,
        priority=_LOW,
        title="Agent Assigned",
        message='{agent_name} is now managing project "{project_title}".',
        channel="notification:admin:agent_assigned",
    ),
    RoutingRule(
        key="project_assigned_agent",
        event=EventKey.AGENT_ASSIGNED,
        roles=_AGENT,
        priority=_HIGH,
        title="New Project to Manage",
        message='You have been assigned to manage project "{project_title}".',
        channel="notification:agent:project_assigned",
        send_email=True,
    ),
    RoutingRule(
        key="agent_unassigned",
        event=EventKey.AGENT_UNASSIGNED,
        roles=_ADMINS,
        priority=_LOW,
        title="Agent Unassigned",
        message='{agent_name} no longer manages project "{project_title}".',
        channel="notification:admin:agent_unassigned",
    ),
    # Milestones and payments
    RoutingRule(
        key="milestone_created",
        event=EventKey.MILESTONE_CREATED,
        roles=_CLIENT,
        priority=_MEDIUM,
        title="New Milestone Added",
        message='Milestone "{milestone_title}" was added to your project "{project_title}".',
        channel="notification:client:milestone_created",
    ),
    RoutingRule(
        key="milestone_created_shortlisted",
        event=EventKey.MILESTONE_CREATED,
        roles=_FREELANCER,
        priority=_LOW,
        title="Project Milestone Added",
        message='Milestone "{milestone_title}" was added to project "{project_title}" you are shortlisted for.',
        channel="notification:freelancer:milestone_created",
        shortlist_scoped=True,
    ),
    RoutingRule(
        key="milestone_updated",
        event=EventKey.MILESTONE_UPDATED,
        roles=_CLIENT,
        priority=_LOW,
        title="Milestone Updated",
        message='Milestone "{milestone_title}" in your project "{project_title}" was updated.',
        channel="notification:client:milestone_updated",
    ),
    RoutingRule(
        key="milestone_updated_admin",
        event=EventKey.MILESTONE_UPDATED,
        roles=_ADMINS,
        priority=_LOW,
        title="Milestone Updated",
        message='{updated_by_name} updated milestone "{milestone_title}" in project "{project_title}".',
        channel="notification:admin:milestone_updated",
    ),
    RoutingRule(
        key="milestone_updated_shortlisted",
        event=EventKey.MILESTONE_UPDATED,
        roles=_FREELANCER,
        priority=_LOW,
        title="Project Milestone Updated",
        message='Milestone "{milestone_title}" in project "{project_title}" you are shortlisted for was updated.',
        channel="notification:freelancer:milestone_updated",
        shortlist_scoped=True,
    ),
    RoutingRule(
        key="milestone_completed",
        event=EventKey.MILESTONE_COMPLETED,
        roles=_CLIENT,
        priority=_MEDIUM,
        title="Milestone Completed",
        message='Milestone "{milestone_title}" in your project "{project_title}" is complete.',
        channel="notification:client:milestone_completed",
    ),
    RoutingRule(
        key="payment_status_changed",
        event=EventKey.PAYMENT_STATUS_CHANGED,
        roles=_CLIENT,
        priority=_HIGH,
        title="Payment Status Updated",
        message='Payment for milestone "{milestone_title}" in "{project_title}" is now {payment_status}.',
        channel="notification:client:payment_status_changed",
    ),
    RoutingRule(
        key="payment_status_changed_freelancer",
        event=EventKey.PAYMENT_STATUS_CHANGED,
        roles=_FREELANCER,
        priority=_HIGH,
        title="Payment Status Updated",
        message='Payment for your milestone "{milestone_title}" in "{project_title}" is now {payment_status}.',
        channel="notification:freelancer:payment_status_changed",
        send_email=True,
    ),
    RoutingRule(
        key="payment_status_changed_admin",
        event=EventKey.PAYMENT_STATUS_CHANGED,
        roles=_ADMINS,
        priority=_MEDIUM,
        title="Milestone Payment Status Changed",
        message='Payment for milestone "{milestone_title}" in "{project_title}" moved to {payment_status}.',
        channel="notification:admin:payment_status_changed",
    ),
    # Bids
    RoutingRule(
        key="bid_received",
        event=EventKey.BID_RECEIVED,
        roles=_CLIENT,
        priority=_MEDIUM,
        title="New Bid Received",
        message='{freelancer_name} placed a bid of ${bid_amount} on your project "{project_title}".',
        channel="notification:client:bid_received",
    ),
    RoutingRule(
        key="bid_received_admin",
        event=EventKey.BID_RECEIVED,
        roles=_ADMINS,
        priority=_LOW,
        title="New Bid Received",
        message='{freelancer_name} placed a bid of ${bid_amount} on project "{project_title}".',
        channel="notification:admin:bid_received",
    ),
    RoutingRule(
        key="bid_received_agent",
        event=EventKey.BID_RECEIVED,
        roles=_AGENT,
        priority=_MEDIUM,
        title="New Bid Received",
        message='{freelancer_name} placed a bid of ${bid_amount} on project "{project_title}" you manage.',
        channel="notification:agent:bid_received",
    ),
    RoutingRule(
        key="bid_created",
        event=EventKey.BID_CREATED,
        roles=_FREELANCER,
        priority=_LOW,
        title="Bid Submitted",
        message='Your bid of ${bid_amount} on project "{project_title}" was submitted.',
        channel="notification:freelancer:bid_created",
    ),
    RoutingRule(
        key="bid_withdrawn",
        event=EventKey.BID_WITHDRAWN,
        roles=_FREELANCER,
        priority=_LOW,
        title="Bid Withdrawn",
        message='Your bid on project "{project_title}" was withdrawn.',
        channel="notification:freelancer:bid_withdrawn",
    ),
    RoutingRule(
        key="bid_shortlisted",
        event=EventKey.BID_SHORTLISTED,
        roles=_FREELANCER,
        priority=_HIGH,
        title="You've Been Shortlisted",
        message='Your bid on project "{project_title}" has been shortlisted.',
        channel="notification:freelancer:bid_shortlisted",
    ),
    RoutingRule(
        key="bid_accepted",
        event=EventKey.BID_ACCEPTED,
        roles=_FREELANCER,
        priority=_HIGH,
        title="Bid Accepted",
        message='Congratulations! Your bid on project "{project_title}" has been accepted.',
        channel="notification:freelancer:bid_accepted",
        send_email=True,
    ),
    RoutingRule(
        key="bid_rejected",
        event=EventKey.BID_REJECTED,
        roles=_FREELANCER,
        priority=_MEDIUM,
        title="Bid Not Selected",
        message='Your bid on project "{project_title}" was not selected.',
        channel="notification:freelancer:bid_rejected",
    ),
    # Users
    RoutingRule(
        key="user_created",
        event=EventKey.USER_CREATED,
        roles=_ADMINS,
        priority=_LOW,
        title="New User Registered",
        message="{user_name} ({email}) joined as {role}, registered by {created_by_name}.",
        channel="notification:admin:user_created",
    ),
    RoutingRule(
        key="user_suspended",
        event=EventKey.USER_SUSPENDED,
        roles=_ADMINS,
        priority=_MEDIUM,
        title="User Suspended",
        message="{user_name} ({email}) was suspended by {suspended_by_name}.",
        channel="notification:admin:user_suspended",
    ),
)


def _compile(rules) -> dict[EventKey, tuple[RoutingRule, ...]]:
    index: dict[EventKey, list[RoutingRule]] = {key: [] for key in EventKey}
    seen = set()
    for rule in rules:
        if rule.key in seen:
            raise RoutingError(f"Duplicate routing rule key: {rule.key}")
        seen.add(rule.key)
        index[rule.event].append(rule)
    return {key: tuple(found) for key, found in index.items()}


_RULES_BY_EVENT = _compile(ROUTING_TABLE)


def rules_for(event_key) -> tuple[RoutingRule, ...]:
    """Rules that fire for ``event_key`` (an ``EventKey`` or its string value)."""
    if not isinstance(event_key, EventKey):
        try:
            event_key = EventKey(event_key)
        except ValueError:
            raise RoutingError(f"Unknown notification event key: {event_key}") from None
    return _RULES_BY_EVENT[event_key]
