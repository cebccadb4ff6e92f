"""Shared BDD fixtures and step definitions for the marketplace domain."""

import pytest
from marketplace.project.project import Project
from marketplace.project.timeline import ProjectTimeline
from marketplace.shared.errors import ConflictError
from protean import current_domain
from protean.exceptions import ValidationError
from pytest_bdd import given, parsers, then, when


@pytest.fixture()
def error():
    """Container for captured errors."""
    return {"exc": None}


@pytest.fixture()
def other_admin(register):
    return register("Olive Admin", "admin")


def _actor(request, name):
    """Resolve a phrase like "the other freelancer" to that user's id."""
    return request.getfixturevalue(name.replace(" ", "_"))


def _attempt(error, fn, *args, **kwargs):
    try:
        return fn(*args, **kwargs)
    except (ValidationError, ConflictError) as exc:
        error["exc"] = exc
        return None


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('a project in status "{status}"'), target_fixture="project_id")
def project_in_status(new_project, status):
    return new_project(status)


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when(parsers.re(r'the (?P<role>[a-z ]+?) moves the project to "(?P<target>\w+)"$'))
def move_project(request, transition, project_id, error, role, target):
    _attempt(error, transition, project_id, _actor(request, role), target)


@when(parsers.re(r'the (?P<role>[a-z ]+?) moves the project to "(?P<target>\w+)" saying "(?P<remark>[^"]+)"$'))
def move_project_with_remark(request, transition, project_id, error, role, target, remark):
    _attempt(error, transition, project_id, _actor(request, role), target, remark=remark)


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the project status is "{status}"'))
def project_status_is(project_id, status):
    assert current_domain.repository_for(Project).get(project_id).status == status


@then("the project is open for bidding")
def project_is_open(project_id):
    assert current_domain.repository_for(Project).get(project_id).is_open_for_bidding is True


@then(parsers.cfparse("the project timeline has {count:d} entries"))
def timeline_has_entries(project_id, count):
    assert len(current_domain.repository_for(ProjectTimeline).for_project(project_id)) == count


@then(parsers.cfparse('the request is rejected on "{field}"'))
def rejected_on(error, field):
    assert isinstance(error["exc"], ValidationError), "Expected a validation error but none was raised"
    assert field in error["exc"].messages
    error["exc"] = None
