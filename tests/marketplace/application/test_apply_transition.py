"""Application tests for ApplyTransition via domain.process()."""

import json

import pytest
from marketplace.audit.audit_log import AuditAction, AuditLog
from marketplace.project.project import Project, ProjectStatus
from marketplace.project.timeline import ProjectTimeline
from marketplace.shared.errors import InvalidTransition, MissingRemark
from marketplace.user.account import SuspendUser
from protean import current_domain
from protean.exceptions import ObjectNotFoundError, ValidationError


def _project(project_id) -> Project:
    return current_domain.repository_for(Project).get(project_id)


def _timeline(project_id) -> list[ProjectTimeline]:
    return current_domain.repository_for(ProjectTimeline).for_project(project_id)


def _audits(project_id, action=None) -> list[AuditLog]:
    records = current_domain.repository_for(AuditLog).for_target(project_id)
    if action:
        records = [r for r in records if r.action == action.value]
    return records


class TestSuccessfulTransitions:
    def test_client_posts_draft(self, new_project, transition, client):
        project_id = new_project("draft")

        entry_id = transition(project_id, client, "active")

        assert _project(project_id).status == ProjectStatus.ACTIVE.value
        entries = _timeline(project_id)
        assert len(entries) == 1
        assert str(entries[0].id) == entry_id
        assert entries[0].old_status == "draft"
        assert entries[0].new_status == "active"
        assert entries[0].action == "post_project"
        assert entries[0].actor_role == "client"

    def test_full_bidding_path_builds_timeline(self, new_project, client, admin, freelancer):
        project_id = new_project("completed")

        project = _project(project_id)
        assert project.status == ProjectStatus.COMPLETED.value
        assert project.assigned_freelancer_id == freelancer

        actions = [entry.action for entry in _timeline(project_id)]
        assert actions == ["post_project", "create_bidding", "award_bidding", "complete_project"]

    def test_award_records_freelancer_in_remark(self, new_project, transition, admin, freelancer):
        project_id = new_project("in_bidding")

        transition(project_id, admin, "in_progress", remark="Strong portfolio", freelancer_id=freelancer)

        entry = _timeline(project_id)[-1]
        assert entry.remark == "Awarded to Fran Freelancer. Strong portfolio"

    def test_assigned_freelancer_starts_work(self, new_project, transition, freelancer):
        project_id = new_project("assigned")

        transition(project_id, freelancer, "in_progress")

        assert _project(project_id).status == ProjectStatus.IN_PROGRESS.value

    def test_hold_and_resume_keep_the_freelancer(self, new_project, transition, client, freelancer):
        project_id = new_project("hold")

        held = _project(project_id)
        assert held.assigned_freelancer_id is None
        assert held.suspended_freelancer_id == freelancer

        transition(project_id, client, "in_progress")

        resumed = _project(project_id)
        assert resumed.assigned_freelancer_id == freelancer
        assert resumed.suspended_freelancer_id is None
        assert _timeline(project_id)[-1].action == "resume_project"

    def test_assigned_agent_can_manage(self, new_project, transition, assign_agent, agent):
        project_id = new_project("active")
        assign_agent(project_id, agent)

        transition(project_id, agent, "in_bidding")

        assert _project(project_id).is_open_for_bidding is True

    def test_admin_can_cancel(self, new_project, transition, admin):
        project_id = new_project("in_bidding")

        transition(project_id, admin, "cancelled", remark="Duplicate posting")

        project = _project(project_id)
        assert project.status == ProjectStatus.CANCELLED.value
        assert project.is_open_for_bidding is False


class TestAuditTrail:
    def test_transition_is_audited_with_changes(self, new_project, transition, client):
        project_id = new_project("draft")

        entry_id = transition(project_id, client, "active")

        records = _audits(project_id, AuditAction.PROJECT_STATUS_CHANGED)
        assert len(records) == 1
        record = records[0]
        assert record.actor_id == client
        assert record.actor_role == "client"
        assert json.loads(record.changes)["status"] == {"from": "draft", "to": "active"}
        assert json.loads(record.details)["timeline_entry_id"] == entry_id
        assert "from draft to active" in record.description

    def test_approval_uses_specific_action(self, new_project, transition, admin):
        project_id = new_project("pending_review")

        transition(project_id, admin, "in_progress")

        records = _audits(project_id, AuditAction.PROJECT_APPROVED)
        assert len(records) == 1
        assert records[0].severity == "high"


class TestRejectedTransitions:
    def test_invalid_edge_changes_nothing(self, new_project, transition, client):
        project_id = new_project("draft")
        audits_before = len(_audits(project_id))

        with pytest.raises(InvalidTransition):
            transition(project_id, client, "completed")

        assert _project(project_id).status == ProjectStatus.DRAFT.value
        assert _timeline(project_id) == []
        assert len(_audits(project_id)) == audits_before

    def test_client_cannot_award_from_bidding(self, new_project, transition, client, freelancer):
        project_id = new_project("in_bidding")
        timeline_before = len(_timeline(project_id))
        audits_before = len(_audits(project_id))

        with pytest.raises(InvalidTransition) as exc:
            transition(project_id, client, "in_progress", freelancer_id=freelancer)

        assert exc.value.role == "client"
        assert exc.value.target_status == "in_progress"
        assert "in_progress" not in exc.value.allowed
        assert _project(project_id).status == ProjectStatus.IN_BIDDING.value
        assert len(_timeline(project_id)) == timeline_before
        assert len(_audits(project_id)) == audits_before

    def test_non_owner_client_rejected(self, new_project, transition, other_client):
        project_id = new_project("draft")

        with pytest.raises(InvalidTransition):
            transition(project_id, other_client, "active")

    def test_unassigned_agent_rejected(self, new_project, transition, agent):
        project_id = new_project("active")

        with pytest.raises(InvalidTransition):
            transition(project_id, agent, "in_bidding")

    def test_missing_remark_on_hold(self, new_project, transition, client):
        project_id = new_project("in_progress")
        entries_before = len(_timeline(project_id))

        with pytest.raises(MissingRemark):
            transition(project_id, client, "hold")

        assert _project(project_id).status == ProjectStatus.IN_PROGRESS.value
        assert len(_timeline(project_id)) == entries_before

    def test_award_requires_a_freelancer(self, new_project, transition, admin):
        project_id = new_project("in_bidding")

        with pytest.raises(ValidationError) as exc:
            transition(project_id, admin, "in_progress")

        assert "assigned_freelancer_id" in exc.value.messages

    def test_award_to_non_freelancer_rejected(self, new_project, transition, admin, other_client):
        project_id = new_project("in_bidding")

        with pytest.raises(ValidationError) as exc:
            transition(project_id, admin, "in_progress", freelancer_id=other_client)

        assert "freelancer_id" in exc.value.messages

    def test_unknown_status(self, new_project, transition, client):
        project_id = new_project("draft")

        with pytest.raises(ValidationError) as exc:
            transition(project_id, client, "archived")

        assert "target_status" in exc.value.messages

    def test_unknown_project(self, transition, client):
        with pytest.raises(ObjectNotFoundError):
            transition("does-not-exist", client, "active")

    def test_suspended_actor_cannot_act(self, new_project, transition, client, admin):
        project_id = new_project("draft")
        current_domain.process(SuspendUser(user_id=client, actor_id=admin), asynchronous=False)

        with pytest.raises(ValidationError) as exc:
            transition(project_id, client, "active")

        assert "actor_id" in exc.value.messages

    def test_terminal_status_has_no_exit(self, new_project, transition, admin):
        project_id = new_project("rejected")

        with pytest.raises(InvalidTransition) as exc:
            transition(project_id, admin, "in_progress")

        assert exc.value.allowed == []
