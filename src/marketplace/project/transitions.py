"""Role-gated transition table for project status.

The table is compiled once at import into a ``(source, target) -> rule``
index, so validating a request is a single dictionary lookup followed by
role and ownership checks.

    draft ──post──▶ active ──create_bidding──▶ in_bidding ──award──▶ in_progress ──▶ completed
      │                                          └──assign──▶ assigned ──start──▶ in_progress
      └──submit_for_review──▶ pending_review ──approve──▶ in_progress
                                              └──reject──▶ rejected
    {active, in_bidding, assigned, in_progress} ──hold|cancel──▶ hold|cancelled ──resume──▶ in_progress
"""

from dataclasses import dataclass

from marketplace.project.project import ProjectStatus
from marketplace.shared.errors import InvalidTransition
from marketplace.user.user import UserRole

_ADMINS = frozenset({UserRole.ADMIN, UserRole.SUPERADMIN})
_MANAGERS = _ADMINS | {UserRole.AGENT}
_CLIENT_AND_ADMINS = _ADMINS | {UserRole.CLIENT}

_SUSPENDABLE = frozenset(
    {
        ProjectStatus.ACTIVE,
        ProjectStatus.IN_BIDDING,
        ProjectStatus.ASSIGNED,
        ProjectStatus.IN_PROGRESS,
    }
)


@dataclass(frozen=True)
class TransitionRule:
    action: str
    title: str
    sources: frozenset
    target: ProjectStatus
    roles: frozenset
    requires_remark: bool = False
    requires_freelancer: bool = False
    requires_retained_freelancer: bool = False


TRANSITION_RULES: tuple[TransitionRule, ...] = (
    TransitionRule(
        action="post_project",
        title="Project Posted",
        sources=frozenset({ProjectStatus.DRAFT}),
        target=ProjectStatus.ACTIVE,
        roles=frozenset({UserRole.CLIENT}),
    ),
    TransitionRule(
        action="submit_for_review",
        title="Project Submitted for Review",
        sources=frozenset({ProjectStatus.DRAFT}),
        target=ProjectStatus.PENDING_REVIEW,
        roles=frozenset({UserRole.CLIENT}),
    ),
    TransitionRule(
        action="create_bidding",
        title="Bidding Opened",
        sources=frozenset({ProjectStatus.ACTIVE}),
        target=ProjectStatus.IN_BIDDING,
        roles=_MANAGERS,
    ),
    TransitionRule(
        action="award_bidding",
        title="Bidding Awarded",
        sources=frozenset({ProjectStatus.IN_BIDDING}),
        target=ProjectStatus.IN_PROGRESS,
        roles=_MANAGERS,
        requires_freelancer=True,
    ),
    TransitionRule(
        action="assign_freelancer",
        title="Freelancer Assigned",
        sources=frozenset({ProjectStatus.IN_BIDDING}),
        target=ProjectStatus.ASSIGNED,
        roles=_MANAGERS,
        requires_freelancer=True,
    ),
    TransitionRule(
        action="start_project",
        title="Work Started",
        sources=frozenset({ProjectStatus.ASSIGNED}),
        target=ProjectStatus.IN_PROGRESS,
        roles=_MANAGERS | {UserRole.FREELANCER},
    ),
    TransitionRule(
        action="approve_project",
        title="Project Approved",
        sources=frozenset({ProjectStatus.PENDING_REVIEW}),
        target=ProjectStatus.IN_PROGRESS,
        roles=_MANAGERS,
    ),
    TransitionRule(
        action="reject_project",
        title="Project Rejected",
        sources=frozenset({ProjectStatus.PENDING_REVIEW}),
        target=ProjectStatus.REJECTED,
        roles=_MANAGERS,
    ),
    TransitionRule(
        action="complete_project",
        title="Project Completed",
        sources=frozenset({ProjectStatus.IN_PROGRESS}),
        target=ProjectStatus.COMPLETED,
        roles=_MANAGERS | {UserRole.FREELANCER},
    ),
    TransitionRule(
        action="hold_project",
        title="Project On Hold",
        sources=_SUSPENDABLE,
        target=ProjectStatus.HOLD,
        roles=_CLIENT_AND_ADMINS,
        requires_remark=True,
    ),
    TransitionRule(
        action="cancel_project",
        title="Project Cancelled",
        sources=_SUSPENDABLE,
        target=ProjectStatus.CANCELLED,
        roles=_CLIENT_AND_ADMINS,
        requires_remark=True,
    ),
    TransitionRule(
        action="resume_project",
        title="Project Resumed",
        sources=frozenset({ProjectStatus.HOLD, ProjectStatus.CANCELLED}),
        target=ProjectStatus.IN_PROGRESS,
        roles=_CLIENT_AND_ADMINS,
        requires_retained_freelancer=True,
    ),
)


def _compile(rules):
    index = {}
    for rule in rules:
        for source in rule.sources:
            key = (source, rule.target)
            if key in index:
                raise ValueError(f"Duplicate transition rule for {source.value} -> {rule.target.value}")
            index[key] = rule
    return index


_RULES_BY_EDGE: dict[tuple[ProjectStatus, ProjectStatus], TransitionRule] = _compile(TRANSITION_RULES)


def find_rule(current: ProjectStatus, target: ProjectStatus) -> TransitionRule | None:
    return _RULES_BY_EDGE.get((current, target))


def allowed_targets(current: ProjectStatus, role: UserRole) -> list[str]:
    """Statuses the given role may move a project to from ``current``."""
    return sorted(
        target.value for (source, target), rule in _RULES_BY_EDGE.items() if source == current and role in rule.roles
    )


def _scope_violation(project, actor, role: UserRole) -> str | None:
    actor_id = str(actor.id)
    if role == UserRole.CLIENT and str(project.client_id) != actor_id:
        return "Only the client who owns the project can change its status"
    if role == UserRole.AGENT and str(project.assigned_agent_id or "") != actor_id:
        return "Only the agent assigned to the project can change its status"
    if role == UserRole.FREELANCER and str(project.assigned_freelancer_id or "") != actor_id:
        return "Only the freelancer assigned to the project can change its status"
    return None


def authorize_transition(project, actor, target: ProjectStatus) -> TransitionRule:
    """Return the rule permitting ``actor`` to move ``project`` to ``target``.

    Raises:
        InvalidTransition: when no rule covers the (current, target) pair for
            the actor's role, or the actor is outside the rule's scope.
    """
    current = ProjectStatus(project.status)
    role = UserRole(actor.role)
    allowed = allowed_targets(current, role)

    rule = find_rule(current, target)
    if rule is None or role not in rule.roles:
        raise InvalidTransition(current.value, target.value, role.value, allowed)

    reason = _scope_violation(project, actor, role)
    if reason:
        raise InvalidTransition(current.value, target.value, role.value, allowed, reason=reason)

    return rule
