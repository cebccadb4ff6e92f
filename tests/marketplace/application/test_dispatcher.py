"""Application tests for calling the dispatcher directly."""

import json

import pytest
from marketplace.notification.dispatcher import dedup_key_for, dispatch, event_identity
from marketplace.notification.resolver import NotificationContext, resolve_recipients
from marketplace.notification.routing import EventKey, rules_for
from marketplace.project.project import Project
from marketplace.shared.errors import RoutingError
from protean import current_domain


class TestDispatch:
    def test_creates_one_notification_per_rule_and_recipient(self, new_project, admin, superadmin, notifications_for):
        project_id = new_project("draft")

        created = dispatch(EventKey.PROJECT_REVIEW_PENDING, {"project_id": project_id})

        assert created == 2
        assert len(notifications_for(admin, kind="project_review_pending")) == 1
        assert len(notifications_for(superadmin, kind="project_review_pending")) == 1

    def test_context_data_records_routing(self, new_project, admin, notifications_for):
        project_id = new_project("draft")

        dispatch(EventKey.PROJECT_REVIEW_PENDING, {"project_id": project_id})

        [notification] = notifications_for(admin, kind="project_review_pending")
        data = json.loads(notification.context_data)
        assert data == {
            "priority": "high",
            "event_key": "PROJECT_REVIEW_PENDING",
            "rule": "project_review_pending",
            "channel": "notification:admin:project_review_pending",
        }

    def test_same_source_event_is_dispatched_once(self, new_project, admin):
        project_id = new_project("draft")
        source = event_identity("review_requested", project_id)

        first = dispatch(EventKey.PROJECT_REVIEW_PENDING, {"project_id": project_id}, source_event_id=source)
        second = dispatch(EventKey.PROJECT_REVIEW_PENDING, {"project_id": project_id}, source_event_id=source)

        assert first == 1
        assert second == 0

    def test_no_recipients_creates_nothing(self, new_project):
        project_id = new_project("draft")

        # No freelancer in the payload and none assigned
        assert dispatch(EventKey.PROJECT_ASSIGNED, {"project_id": project_id}) == 0

    def test_unknown_event_key_raises(self):
        with pytest.raises(RoutingError):
            dispatch("NOT_A_KEY", {})

    def test_unresolved_placeholder_is_left_in_message(self, admin, notifications_for):
        dispatch(
            EventKey.USER_SUSPENDED,
            {"user_id": "ghost", "user_name": "Ghost", "email": "ghost@example.com", "role": "client"},
        )

        [notification] = notifications_for(admin, kind="user_suspended")
        assert notification.message == "Ghost (ghost@example.com) was suspended by {suspended_by_name}."


class TestDedupKeys:
    def test_event_identity_formats_datetimes(self, new_project):
        project = current_domain.repository_for(Project).get(new_project("draft"))

        identity = event_identity("project_updated", project.id, project.created_at)

        assert identity == f"project_updated:{project.id}:{project.created_at.isoformat()}"

    def test_dedup_key_is_per_rule_and_user(self):
        assert dedup_key_for("src", "rule_a", "u1") != dedup_key_for("src", "rule_b", "u1")
        assert dedup_key_for("src", "rule_a", "u1") != dedup_key_for("src", "rule_a", "u2")


class TestResolver:
    def test_client_scope_comes_from_project(self, new_project, client):
        project_id = new_project("draft")
        rule = rules_for(EventKey.PROJECT_STATUS_CHANGED)[0]

        assert resolve_recipients(rule, {"project_id": project_id}) == [client]

    def test_explicit_freelancer_is_used(self, freelancer):
        rule = rules_for(EventKey.BID_SHORTLISTED)[0]

        assert resolve_recipients(rule, {"freelancer_id": freelancer}) == [freelancer]

    def test_unknown_freelancer_is_dropped(self):
        rule = rules_for(EventKey.BID_SHORTLISTED)[0]

        assert resolve_recipients(rule, {"freelancer_id": "nobody"}) == []

    def test_context_hydrates_names(self, new_project, freelancer):
        project_id = new_project("draft")
        context = NotificationContext({"project_id": project_id, "freelancer_id": freelancer, "changed_by": freelancer})

        assert context["project_title"] == "Landing page redesign"
        assert context["client_name"] == "Casey Client"
        assert context["freelancer_name"] == "Fran Freelancer"
        assert context["changed_by_name"] == "Fran Freelancer"
        assert context.get("agent_name") is None

    def test_context_drops_none_values(self):
        context = NotificationContext({"remark": None, "status": "draft"})

        assert "remark" not in context
        assert context["status"] == "draft"
