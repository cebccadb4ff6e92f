"""AuditLog aggregate — write-once record of who did what to whom.

Audit records are added in the same unit of work as the change they
describe, so they commit (or roll back) with it and never depend on
notification delivery.
"""

from enum import Enum

from protean.fields import DateTime, Identifier, String, Text

from marketplace.domain import marketplace


class AuditAction(Enum):
    USER_CREATED = "USER_CREATED"
    USER_SUSPENDED = "USER_SUSPENDED"
    USER_REACTIVATED = "USER_REACTIVATED"

    PROJECT_CREATED = "PROJECT_CREATED"
    PROJECT_UPDATED = "PROJECT_UPDATED"
    PROJECT_STATUS_CHANGED = "PROJECT_STATUS_CHANGED"
    PROJECT_APPROVED = "PROJECT_APPROVED"
    PROJECT_REJECTED = "PROJECT_REJECTED"
    AGENT_ASSIGNED = "AGENT_ASSIGNED"
    AGENT_UNASSIGNED = "AGENT_UNASSIGNED"

    MILESTONE_CREATED = "MILESTONE_CREATED"
    MILESTONE_UPDATED = "MILESTONE_UPDATED"
    MILESTONE_COMPLETED = "MILESTONE_COMPLETED"
    MILESTONE_PAID = "MILESTONE_PAID"
    PAYMENT_STATUS_CHANGED = "PAYMENT_STATUS_CHANGED"

    BID_POSTED = "BID_POSTED"
    BID_CLOSED = "BID_CLOSED"
    BID_PLACED = "BID_PLACED"
    BID_WITHDRAWN = "BID_WITHDRAWN"
    BID_SHORTLISTED = "BID_SHORTLISTED"
    BID_UNSHORTLISTED = "BID_UNSHORTLISTED"
    BID_ACCEPTED = "BID_ACCEPTED"
    BID_REJECTED = "BID_REJECTED"


class AuditSeverity(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


AUDIT_SEVERITY = {
    AuditAction.USER_CREATED: AuditSeverity.MEDIUM,
    AuditAction.USER_SUSPENDED: AuditSeverity.HIGH,
    AuditAction.USER_REACTIVATED: AuditSeverity.MEDIUM,
    AuditAction.PROJECT_CREATED: AuditSeverity.MEDIUM,
    AuditAction.PROJECT_UPDATED: AuditSeverity.LOW,
    AuditAction.PROJECT_STATUS_CHANGED: AuditSeverity.MEDIUM,
    AuditAction.PROJECT_APPROVED: AuditSeverity.HIGH,
    AuditAction.PROJECT_REJECTED: AuditSeverity.HIGH,
    AuditAction.AGENT_ASSIGNED: AuditSeverity.MEDIUM,
    AuditAction.AGENT_UNASSIGNED: AuditSeverity.MEDIUM,
    AuditAction.MILESTONE_CREATED: AuditSeverity.MEDIUM,
    AuditAction.MILESTONE_UPDATED: AuditSeverity.LOW,
    AuditAction.MILESTONE_COMPLETED: AuditSeverity.MEDIUM,
    AuditAction.MILESTONE_PAID: AuditSeverity.HIGH,
    AuditAction.PAYMENT_STATUS_CHANGED: AuditSeverity.MEDIUM,
    AuditAction.BID_PLACED: AuditSeverity.LOW,
    AuditAction.BID_ACCEPTED: AuditSeverity.MEDIUM,
    AuditAction.BID_REJECTED: AuditSeverity.LOW,
}

AUDIT_MESSAGES = {
    AuditAction.USER_CREATED: 'User "{target_name}" was created by {actor_name}',
    AuditAction.USER_SUSPENDED: 'User "{target_name}" was suspended by {actor_name}',
    AuditAction.USER_REACTIVATED: 'User "{target_name}" was reactivated by {actor_name}',
    AuditAction.PROJECT_CREATED: 'Project "{target_name}" was created by {actor_name}',
    AuditAction.PROJECT_UPDATED: 'Project "{target_name}" was updated by {actor_name}',
    AuditAction.PROJECT_STATUS_CHANGED: (
        'Project "{target_name}" status changed from {old_status} to {new_status} by {actor_name}'
    ),
    AuditAction.PROJECT_APPROVED: 'Project "{target_name}" was approved by {actor_name}',
    AuditAction.PROJECT_REJECTED: 'Project "{target_name}" was rejected by {actor_name}',
    AuditAction.AGENT_ASSIGNED: 'An agent was assigned to project "{target_name}" by {actor_name}',
    AuditAction.AGENT_UNASSIGNED: 'The agent was removed from project "{target_name}" by {actor_name}',
    AuditAction.MILESTONE_CREATED: 'A milestone was added to project "{target_name}" by {actor_name}',
    AuditAction.MILESTONE_UPDATED: 'A milestone in project "{target_name}" was updated by {actor_name}',
    AuditAction.MILESTONE_COMPLETED: 'A milestone in project "{target_name}" was completed by {actor_name}',
    AuditAction.MILESTONE_PAID: 'A milestone in project "{target_name}" was paid, recorded by {actor_name}',
    AuditAction.PAYMENT_STATUS_CHANGED: (
        'Milestone payment in project "{target_name}" moved from {old_payment_status} '
        "to {new_payment_status} by {actor_name}"
    ),
    AuditAction.BID_POSTED: 'A bid was posted on project "{target_name}" by {actor_name}',
    AuditAction.BID_CLOSED: 'A bid on project "{target_name}" was closed by {actor_name}',
    AuditAction.BID_PLACED: 'A bidding was placed on project "{target_name}" by {actor_name}',
    AuditAction.BID_WITHDRAWN: "Bidding {target_name} was withdrawn by {actor_name}",
    AuditAction.BID_SHORTLISTED: "Bidding {target_name} was shortlisted by {actor_name}",
    AuditAction.BID_UNSHORTLISTED: "Bidding {target_name} was removed from the shortlist by {actor_name}",
    AuditAction.BID_ACCEPTED: "Bidding {target_name} was accepted by {actor_name}",
    AuditAction.BID_REJECTED: "Bidding {target_name} was declined by {actor_name}",
}


@marketplace.aggregate
class AuditLog:
    actor_id: Identifier(required=True)
    actor_name: String(max_length=150)
    actor_role: String(max_length=20)

    action: String(choices=AuditAction, required=True)
    target_type: String(required=True, max_length=50)
    target_id: Identifier(required=True)
    target_name: String(max_length=200)
    description: Text()

    # JSON documents
    previous_values: Text()
    new_values: Text()
    changes: Text()
    details: Text()  # JSON request metadata

    severity: String(choices=AuditSeverity, default=AuditSeverity.LOW.value)
    created_at: DateTime(required=True)


@marketplace.repository(part_of=AuditLog)
class AuditLogRepository:
    def for_target(self, target_id) -> list[AuditLog]:
        return self._dao.query.filter(target_id=target_id).order_by("-created_at").all().items

    def by_actor(self, actor_id) -> list[AuditLog]:
        return self._dao.query.filter(actor_id=actor_id).order_by("-created_at").all().items
