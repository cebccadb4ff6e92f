"""Application tests for AcceptBid: at most one accepted bidding per project."""

from datetime import UTC, datetime

import pytest
from marketplace.bidding import acceptance
from marketplace.bidding.acceptance import BidAcceptance, accept_bid, find_acceptance
from marketplace.bidding.bidding import Bidding, BiddingStatus
from marketplace.bidding.repository import BiddingRepository
from marketplace.domain import marketplace
from marketplace.project.project import Project, ProjectStatus
from marketplace.shared.errors import AlreadyAccepted, ConflictError
from protean import current_domain
from protean.exceptions import ValidationError
from sqlalchemy.exc import IntegrityError


@pytest.fixture()
def open_project(new_project, post_bid):
    project_id = new_project("in_bidding")
    bid_id = post_bid(project_id)
    return project_id, bid_id


@pytest.fixture()
def two_biddings(open_project, submit_bidding, freelancer, other_freelancer):
    project_id, bid_id = open_project
    first = submit_bidding(bid_id, freelancer, amount=900.0)
    second = submit_bidding(bid_id, other_freelancer, amount=1100.0)
    return project_id, first, second


def _bidding(bidding_id) -> Bidding:
    return current_domain.repository_for(Bidding).get(bidding_id)


class TestAcceptBid:
    def test_accepts_bidding(self, two_biddings, admin):
        project_id, first, _ = two_biddings

        assert accept_bid(first, admin) == first

        bidding = _bidding(first)
        assert bidding.status == BiddingStatus.ACCEPTED.value
        assert bidding.is_accepted is True
        assert bidding.reviewed_by == admin

        lock = find_acceptance(project_id)
        assert lock is not None
        assert lock.bidding_id == first

    def test_acceptance_does_not_change_project_status(self, two_biddings, admin):
        project_id, first, _ = two_biddings

        accept_bid(first, admin)

        project = current_domain.repository_for(Project).get(project_id)
        assert project.status == ProjectStatus.IN_BIDDING.value

    def test_second_acceptance_conflicts(self, two_biddings, admin):
        project_id, first, second = two_biddings
        accept_bid(first, admin)

        with pytest.raises(AlreadyAccepted) as exc:
            accept_bid(second, admin)

        assert exc.value.project_id == project_id
        assert "already been accepted" in exc.value.messages["project_id"][0]
        assert _bidding(second).status == BiddingStatus.PENDING.value

    def test_accepting_same_bidding_twice_is_a_validation_error(self, two_biddings, admin):
        _, first, _ = two_biddings
        accept_bid(first, admin)

        with pytest.raises(ValidationError):
            accept_bid(first, admin)

    def test_declining_accepted_bidding_frees_the_project(self, two_biddings, admin, review_bidding):
        project_id, first, second = two_biddings
        accept_bid(first, admin)

        review_bidding("decline", first)

        assert find_acceptance(project_id) is None
        accept_bid(second, admin)
        assert _bidding(second).is_accepted is True

    def test_existing_lock_blocks_acceptance(self, two_biddings, admin):
        project_id, first, second = two_biddings
        current_domain.repository_for(BidAcceptance).add(
            BidAcceptance(
                project_id=project_id,
                bidding_id=first,
                accepted_by=admin,
                accepted_at=datetime.now(UTC),
            )
        )

        with pytest.raises(AlreadyAccepted):
            accept_bid(second, admin)

    def test_commit_time_integrity_error_becomes_conflict(self, two_biddings, admin, monkeypatch):
        _, first, _ = two_biddings

        def _lost_race(*args, **kwargs):
            raise IntegrityError("INSERT INTO bid_acceptance", {}, Exception("duplicate key"))

        monkeypatch.setattr(marketplace, "process", _lost_race)

        with pytest.raises(ConflictError) as exc:
            accept_bid(first, admin)

        assert "project_id" in exc.value.messages

    def test_stale_read_loses_to_the_acceptance_lock(self, two_biddings, admin, monkeypatch):
        project_id, first, second = two_biddings
        # Both requests read before either commits: neither sees an acceptance
        monkeypatch.setattr(acceptance, "find_acceptance", lambda project_id: None)
        monkeypatch.setattr(BiddingRepository, "accepted_for_project", lambda self, project_id: [])

        accept_bid(first, admin)
        with pytest.raises(ConflictError) as exc:
            accept_bid(second, admin)

        assert exc.value.messages == {"project_id": ["A concurrent acceptance for this project was committed first."]}
        biddings = current_domain.repository_for(Bidding).for_project(project_id)
        assert [str(b.id) for b in biddings if b.is_accepted] == [first]
        assert _bidding(second).status == BiddingStatus.PENDING.value


class TestAcceptBidPermissions:
    def test_client_cannot_accept(self, two_biddings, client):
        _, first, _ = two_biddings

        with pytest.raises(ValidationError) as exc:
            accept_bid(first, client)

        assert "actor_id" in exc.value.messages

    def test_unassigned_agent_cannot_accept(self, two_biddings, agent):
        _, first, _ = two_biddings

        with pytest.raises(ValidationError):
            accept_bid(first, agent)

    def test_assigned_agent_can_accept(self, two_biddings, agent, assign_agent):
        project_id, first, _ = two_biddings
        assign_agent(project_id, agent)

        accept_bid(first, agent)

        assert _bidding(first).is_accepted is True
