"""Application tests for the ActivityLog projection."""

from marketplace.audit.activity import ActivityLog
from marketplace.bidding.acceptance import accept_bid
from protean import current_domain


def _activities(project_id, activity_type=None):
    filters = {"project_id": project_id}
    if activity_type:
        filters["activity_type"] = activity_type
    return current_domain.repository_for(ActivityLog)._dao.query.filter(**filters).all().items


def test_project_creation_is_logged(new_project, client):
    project_id = new_project("draft")

    [activity] = _activities(project_id, "project_created")
    assert activity.user_id == client
    assert activity.description == 'Project "Landing page redesign" was created by Casey Client'


def test_each_transition_is_logged(new_project):
    project_id = new_project("in_progress")

    assert len(_activities(project_id, "project_status_changed")) == 3


def test_hold_is_high_severity_with_reason(new_project):
    project_id = new_project("hold")

    entries = _activities(project_id, "project_status_changed")
    [hold] = [a for a in entries if "hold" in a.tags]
    assert hold.severity == "high"
    assert hold.description.endswith("Reason: Waiting on budget approval")


def test_agent_assignment_is_hidden_from_client(new_project, assign_agent, agent):
    project_id = new_project("active")
    assign_agent(project_id, agent)

    [activity] = _activities(project_id, "agent_assigned")
    assert activity.visible_to_client is False


def test_bid_activity(new_project, post_bid, submit_bidding, admin, freelancer):
    project_id = new_project("in_bidding")
    bidding_id = submit_bidding(post_bid(project_id), freelancer, amount=1000.0)

    accept_bid(bidding_id, admin)

    [submitted] = _activities(project_id, "bid_submitted")
    assert "$1,000.00" in submitted.description
    [accepted] = _activities(project_id, "bid_accepted")
    assert accepted.user_id == admin
