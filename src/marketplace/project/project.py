"""Project aggregate (CQRS) with its embedded Milestones.

A project is created in ``draft`` by its client (or an admin acting for
them) and only ever changes status through ``apply_transition``, which is
driven by the role-gated rules in ``marketplace.project.transitions``.

Freelancer assignment follows the status:

    assigned / in_progress / completed  → assigned_freelancer_id set
    hold / cancelled                    → freelancer parked in suspended_freelancer_id
    everything else                     → no freelancer

Milestone payment state machine:

    not_requested → payment_requested → processing → paid
                          │                  │
                          └──▶ failed / cancelled ◀──┘   (resets back to not_requested or payment_requested)
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, HasMany, Identifier, String, Text

from marketplace.domain import marketplace
from marketplace.project.events import (
    AgentAssigned,
    AgentUnassigned,
    MilestoneCompleted,
    MilestoneCreated,
    MilestonePaymentStatusChanged,
    MilestoneUpdated,
    ProjectCreated,
    ProjectDetailsUpdated,
    ProjectStatusChanged,
)
from marketplace.shared.errors import MissingAssignment, MissingRemark


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class ProjectStatus(Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    PENDING_REVIEW = "pending_review"
    IN_BIDDING = "in_bidding"
    ASSIGNED = "assigned"
    IN_PROGRESS = "in_progress"
    HOLD = "hold"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    REJECTED = "rejected"


class MilestoneStatus(Enum):
    ACTIVE = "active"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    HOLD = "hold"
    CLOSED = "closed"


class PaymentStatus(Enum):
    NOT_REQUESTED = "not_requested"
    PAYMENT_REQUESTED = "payment_requested"
    PROCESSING = "processing"
    PAID = "paid"
    FAILED = "failed"
    CANCELLED = "cancelled"


FREELANCER_STATUSES = frozenset({ProjectStatus.ASSIGNED, ProjectStatus.IN_PROGRESS, ProjectStatus.COMPLETED})
SUSPENDED_STATUSES = frozenset({ProjectStatus.HOLD, ProjectStatus.CANCELLED})


# ---------------------------------------------------------------------------
# Payment state machine
# ---------------------------------------------------------------------------
_PAYMENT_TRANSITIONS = {
    PaymentStatus.NOT_REQUESTED: {
        PaymentStatus.PAYMENT_REQUESTED,
        PaymentStatus.CANCELLED,
    },
    PaymentStatus.PAYMENT_REQUESTED: {
        PaymentStatus.PROCESSING,
        PaymentStatus.FAILED,
        PaymentStatus.CANCELLED,
    },
    PaymentStatus.PROCESSING: {
        PaymentStatus.PAID,
        PaymentStatus.FAILED,
        PaymentStatus.CANCELLED,
    },
    PaymentStatus.FAILED: {
        PaymentStatus.PAYMENT_REQUESTED,  # Reset
        PaymentStatus.NOT_REQUESTED,  # Reset
    },
    PaymentStatus.CANCELLED: {
        PaymentStatus.PAYMENT_REQUESTED,  # Reset
        PaymentStatus.NOT_REQUESTED,  # Reset
    },
    PaymentStatus.PAID: set(),  # Terminal
}


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@marketplace.entity(part_of="Project")
class Milestone:
    """A payable unit of work inside a project."""

    title: String(required=True, max_length=200)
    description: Text()
    amount: Float(required=True, min_value=0.0)
    due_date: DateTime()
    status: String(choices=MilestoneStatus, default=MilestoneStatus.ACTIVE.value)
    payment_status: String(choices=PaymentStatus, default=PaymentStatus.NOT_REQUESTED.value)
    is_paid: Boolean(default=False)
    paid_at: DateTime()
    completed_at: DateTime()
    created_at: DateTime()


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@marketplace.aggregate
class Project:
    """A client's project, moved through its lifecycle by role-gated transitions."""

    title: String(required=True, max_length=200)
    description: Text()
    budget: Float(min_value=0.0)

    client_id: Identifier(required=True)
    created_by: Identifier(required=True)
    assigned_freelancer_id: Identifier()
    suspended_freelancer_id: Identifier()
    assigned_agent_id: Identifier()

    status: String(choices=ProjectStatus, default=ProjectStatus.DRAFT.value)
    is_open_for_bidding: Boolean(default=False)
    status_remark: Text()

    milestones = HasMany(Milestone)

    created_at: DateTime()
    updated_at: DateTime()

    @invariant.post
    def freelancer_only_assigned_while_work_is_underway(self):
        if self.assigned_freelancer_id and ProjectStatus(self.status) not in FREELANCER_STATUSES:
            raise ValidationError(
                {
                    "assigned_freelancer_id": [
                        "A freelancer can only be assigned while the project is assigned, in progress or completed"
                    ]
                }
            )

    @invariant.post
    def suspended_freelancer_only_while_suspended(self):
        if self.suspended_freelancer_id and ProjectStatus(self.status) not in SUSPENDED_STATUSES:
            raise ValidationError(
                {"suspended_freelancer_id": ["A freelancer can only be parked while the project is on hold or cancelled"]}
            )

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, title, client_id, created_by, description=None, budget=None):
        now = datetime.now(UTC)
        project = cls(
            title=title,
            description=description,
            budget=budget,
            client_id=client_id,
            created_by=created_by,
            status=ProjectStatus.DRAFT.value,
            is_open_for_bidding=False,
            created_at=now,
            updated_at=now,
        )
        project.raise_(
            ProjectCreated(
                project_id=str(project.id),
                title=title,
                client_id=str(client_id),
                created_by=str(created_by),
                status=project.status,
                budget=budget,
                created_at=now,
            )
        )
        return project

    def update_details(self, updated_by, title=None, description=None, budget=None):
        """Edit descriptive fields. Status is never touched here."""
        now = datetime.now(UTC)
        if title is not None:
            self.title = title
        if description is not None:
            self.description = description
        if budget is not None:
            self.budget = budget
        self.updated_at = now

        self.raise_(
            ProjectDetailsUpdated(
                project_id=str(self.id),
                title=self.title,
                client_id=str(self.client_id),
                updated_by=str(updated_by),
                updated_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Status transitions
    # -------------------------------------------------------------------
    def apply_transition(self, rule, actor, timeline_entry_id, remark=None, freelancer_id=None):
        """Apply an already-authorized transition rule.

        ``rule`` comes from ``authorize_transition``; this method enforces the
        rule's data requirements (remark, freelancer) and the assignment
        invariants, then raises ``ProjectStatusChanged``.
        """
        target = rule.target
        remark = (remark or "").strip() or None

        if rule.requires_remark and not remark:
            raise MissingRemark(target.value)
        if rule.requires_freelancer and not freelancer_id:
            raise MissingAssignment(f"A freelancer must be selected to {rule.action.replace('_', ' ')}")
        if rule.requires_retained_freelancer and not self.suspended_freelancer_id:
            raise MissingAssignment("Cannot resume a project that has no assigned freelancer")

        previous = self.status
        now = datetime.now(UTC)

        with atomic_change(self):
            self.status = target.value
            self.status_remark = remark
            self.is_open_for_bidding = target == ProjectStatus.IN_BIDDING
            self.updated_at = now

            if rule.requires_freelancer:
                self.assigned_freelancer_id = freelancer_id
            elif rule.requires_retained_freelancer:
                self.assigned_freelancer_id = self.suspended_freelancer_id
                self.suspended_freelancer_id = None
            elif target in SUSPENDED_STATUSES and self.assigned_freelancer_id:
                self.suspended_freelancer_id = self.assigned_freelancer_id
                self.assigned_freelancer_id = None

        self.raise_(
            ProjectStatusChanged(
                project_id=str(self.id),
                title=self.title,
                client_id=str(self.client_id),
                action=rule.action,
                previous_status=previous,
                new_status=self.status,
                actor_id=str(actor.id),
                actor_role=actor.role,
                remark=remark,
                assigned_freelancer_id=self.assigned_freelancer_id,
                assigned_agent_id=self.assigned_agent_id,
                timeline_entry_id=str(timeline_entry_id),
                changed_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Agent assignment
    # -------------------------------------------------------------------
    def assign_agent(self, agent_id, assigned_by):
        if self.assigned_agent_id and str(self.assigned_agent_id) == str(agent_id):
            raise ValidationError({"assigned_agent_id": ["Agent is already assigned to this project"]})

        previous = self.assigned_agent_id
        now = datetime.now(UTC)
        self.assigned_agent_id = agent_id
        self.updated_at = now

        self.raise_(
            AgentAssigned(
                project_id=str(self.id),
                title=self.title,
                client_id=str(self.client_id),
                agent_id=str(agent_id),
                previous_agent_id=str(previous) if previous else None,
                assigned_by=str(assigned_by),
                assigned_at=now,
            )
        )

    def unassign_agent(self, unassigned_by):
        if not self.assigned_agent_id:
            raise ValidationError({"assigned_agent_id": ["No agent is assigned to this project"]})

        agent_id = self.assigned_agent_id
        now = datetime.now(UTC)
        self.assigned_agent_id = None
        self.updated_at = now

        self.raise_(
            AgentUnassigned(
                project_id=str(self.id),
                title=self.title,
                client_id=str(self.client_id),
                agent_id=str(agent_id),
                unassigned_by=str(unassigned_by),
                unassigned_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Milestones
    # -------------------------------------------------------------------
    def get_milestone(self, milestone_id) -> Milestone:
        milestone = next((m for m in self.milestones if str(m.id) == str(milestone_id)), None)
        if milestone is None:
            raise ValidationError({"milestone_id": ["Milestone not found in project"]})
        return milestone

    def add_milestone(self, title, amount, created_by, description=None, due_date=None):
        if ProjectStatus(self.status) in (ProjectStatus.COMPLETED, ProjectStatus.CANCELLED, ProjectStatus.REJECTED):
            raise ValidationError({"status": [f"Cannot add milestones to a {self.status} project"]})

        now = datetime.now(UTC)
        milestone = Milestone(
            title=title.strip(),
            description=description,
            amount=amount,
            due_date=due_date,
            created_at=now,
        )
        self.add_milestones(milestone)
        self.updated_at = now

        self.raise_(
            MilestoneCreated(
                project_id=str(self.id),
                milestone_id=str(milestone.id),
                title=milestone.title,
                amount=milestone.amount,
                created_by=str(created_by),
                created_at=now,
            )
        )
        return milestone

    def update_milestone(self, milestone_id, updated_by, title=None, description=None, amount=None, due_date=None):
        milestone = self.get_milestone(milestone_id)

        if amount is not None and milestone.is_paid and amount != milestone.amount:
            raise ValidationError({"amount": ["Amount cannot change once the milestone is paid"]})

        changes = {}
        for field_name, value in (
            ("title", title),
            ("description", description),
            ("amount", amount),
            ("due_date", due_date),
        ):
            if value is not None and getattr(milestone, field_name) != value:
                changes[field_name] = [_jsonable(getattr(milestone, field_name)), _jsonable(value)]
                setattr(milestone, field_name, value)

        if not changes:
            return changes

        now = datetime.now(UTC)
        self.updated_at = now
        self.raise_(
            MilestoneUpdated(
                project_id=str(self.id),
                milestone_id=str(milestone.id),
                title=milestone.title,
                changes=json.dumps(changes),
                updated_by=str(updated_by),
                updated_at=now,
            )
        )
        return changes

    def complete_milestone(self, milestone_id, completed_by):
        milestone = self.get_milestone(milestone_id)
        if MilestoneStatus(milestone.status) in (MilestoneStatus.COMPLETED, MilestoneStatus.CLOSED):
            raise ValidationError({"status": [f"Milestone is already {milestone.status}"]})

        now = datetime.now(UTC)
        milestone.status = MilestoneStatus.COMPLETED.value
        milestone.completed_at = now
        self.updated_at = now

        self.raise_(
            MilestoneCompleted(
                project_id=str(self.id),
                milestone_id=str(milestone.id),
                title=milestone.title,
                completed_by=str(completed_by),
                completed_at=now,
            )
        )

    def change_milestone_payment_status(self, milestone_id, new_status: PaymentStatus, changed_by):
        milestone = self.get_milestone(milestone_id)
        current = PaymentStatus(milestone.payment_status)
        if new_status not in _PAYMENT_TRANSITIONS.get(current, set()):
            raise ValidationError(
                {"payment_status": [f"Cannot transition from {current.value} to {new_status.value}"]}
            )

        now = datetime.now(UTC)
        milestone.payment_status = new_status.value
        if new_status == PaymentStatus.PAID:
            milestone.is_paid = True
            milestone.paid_at = now
        self.updated_at = now

        self.raise_(
            MilestonePaymentStatusChanged(
                project_id=str(self.id),
                milestone_id=str(milestone.id),
                title=milestone.title,
                amount=milestone.amount,
                previous_payment_status=current.value,
                new_payment_status=new_status.value,
                assigned_freelancer_id=self.assigned_freelancer_id,
                changed_by=str(changed_by),
                changed_at=now,
            )
        )


def _jsonable(value):
    if isinstance(value, datetime):
        return value.isoformat()
    return value
