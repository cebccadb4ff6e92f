"""Domain events for the Project aggregate."""

from protean.fields import DateTime, Float, Identifier, String

from marketplace.domain import marketplace


@marketplace.event(part_of="Project")
class ProjectCreated:
    """A client (or an admin on their behalf) created a project in draft."""

    __version__ = 1

    project_id: Identifier(required=True)
    title: String(required=True)
    client_id: Identifier(required=True)
    created_by: Identifier(required=True)
    status: String(required=True)
    budget: Float()
    created_at: DateTime(required=True)


@marketplace.event(part_of="Project")
class ProjectDetailsUpdated:
    __version__ = 1

    project_id: Identifier(required=True)
    title: String(required=True)
    client_id: Identifier(required=True)
    updated_by: Identifier(required=True)
    updated_at: DateTime(required=True)


@marketplace.event(part_of="Project")
class ProjectStatusChanged:
    """A transition was committed together with its timeline entry."""

    __version__ = 1

    project_id: Identifier(required=True)
    title: String(required=True)
    client_id: Identifier(required=True)
    action: String(required=True)
    previous_status: String(required=True)
    new_status: String(required=True)
    actor_id: Identifier(required=True)
    actor_role: String(required=True)
    remark: String()
    assigned_freelancer_id: Identifier()
    assigned_agent_id: Identifier()
    timeline_entry_id: Identifier(required=True)
    changed_at: DateTime(required=True)


@marketplace.event(part_of="Project")
class AgentAssigned:
    __version__ = 1

    project_id: Identifier(required=True)
    title: String(required=True)
    client_id: Identifier(required=True)
    agent_id: Identifier(required=True)
    previous_agent_id: Identifier()
    assigned_by: Identifier(required=True)
    assigned_at: DateTime(required=True)


@marketplace.event(part_of="Project")
class AgentUnassigned:
    __version__ = 1

    project_id: Identifier(required=True)
    title: String(required=True)
    client_id: Identifier(required=True)
    agent_id: Identifier(required=True)
    unassigned_by: Identifier(required=True)
    unassigned_at: DateTime(required=True)


@marketplace.event(part_of="Project")
class MilestoneCreated:
    __version__ = 1

    project_id: Identifier(required=True)
    milestone_id: Identifier(required=True)
    title: String(required=True)
    amount: Float(required=True)
    created_by: Identifier(required=True)
    created_at: DateTime(required=True)


@marketplace.event(part_of="Project")
class MilestoneUpdated:
    __version__ = 1

    project_id: Identifier(required=True)
    milestone_id: Identifier(required=True)
    title: String(required=True)
    changes: String()  # JSON {field: [old, new]}
    updated_by: Identifier(required=True)
    updated_at: DateTime(required=True)


@marketplace.event(part_of="Project")
class MilestoneCompleted:
    __version__ = 1

    project_id: Identifier(required=True)
    milestone_id: Identifier(required=True)
    title: String(required=True)
    completed_by: Identifier(required=True)
    completed_at: DateTime(required=True)


@marketplace.event(part_of="Project")
class MilestonePaymentStatusChanged:
    __version__ = 1

    project_id: Identifier(required=True)
    milestone_id: Identifier(required=True)
    title: String(required=True)
    amount: Float(required=True)
    previous_payment_status: String(required=True)
    new_payment_status: String(required=True)
    assigned_freelancer_id: Identifier()
    changed_by: Identifier(required=True)
    changed_at: DateTime(required=True)
