"""Application tests for posting bids, submitting biddings and reviewing them."""

import pytest
from marketplace.bidding.bid import Bid, BidStatus
from marketplace.bidding.bidding import Bidding, BiddingStatus
from marketplace.bidding.submission import CloseBid, WithdrawBidding
from protean import current_domain
from protean.exceptions import ValidationError


@pytest.fixture()
def open_bid(new_project, post_bid):
    project_id = new_project("in_bidding")
    return project_id, post_bid(project_id)


def _close_bid(bid_id, actor_id):
    current_domain.process(CloseBid(bid_id=bid_id, actor_id=actor_id), asynchronous=False)


def _withdraw(bidding_id, actor_id):
    current_domain.process(WithdrawBidding(bidding_id=bidding_id, actor_id=actor_id), asynchronous=False)


class TestPostBid:
    def test_admin_posts_bid_on_active_project(self, new_project, post_bid):
        project_id = new_project("active")

        bid_id = post_bid(project_id)

        bid = current_domain.repository_for(Bid).get(bid_id)
        assert bid.project_id == project_id
        assert bid.status == BidStatus.OPEN.value

    def test_client_cannot_post_bid(self, new_project, post_bid, client):
        project_id = new_project("active")

        with pytest.raises(ValidationError) as exc:
            post_bid(project_id, actor_id=client)

        assert "actor_id" in exc.value.messages

    def test_draft_project_cannot_take_bids(self, new_project, post_bid):
        project_id = new_project("draft")

        with pytest.raises(ValidationError) as exc:
            post_bid(project_id)

        assert "project_id" in exc.value.messages

    def test_close_bid(self, open_bid, admin):
        _, bid_id = open_bid

        _close_bid(bid_id, admin)

        assert current_domain.repository_for(Bid).get(bid_id).status == BidStatus.CLOSED.value


class TestSubmitBidding:
    def test_freelancer_submits(self, open_bid, submit_bidding, freelancer):
        project_id, bid_id = open_bid

        bidding_id = submit_bidding(bid_id, freelancer, amount=875.5)

        bidding = current_domain.repository_for(Bidding).get(bidding_id)
        assert bidding.project_id == project_id
        assert bidding.freelancer_id == freelancer
        assert bidding.amount == 875.5
        assert bidding.status == BiddingStatus.PENDING.value

    def test_only_freelancers_submit(self, open_bid, submit_bidding, client):
        _, bid_id = open_bid

        with pytest.raises(ValidationError) as exc:
            submit_bidding(bid_id, client)

        assert "actor_id" in exc.value.messages

    def test_closed_bid_rejects_biddings(self, open_bid, submit_bidding, freelancer, admin):
        _, bid_id = open_bid
        _close_bid(bid_id, admin)

        with pytest.raises(ValidationError) as exc:
            submit_bidding(bid_id, freelancer)

        assert "bid_id" in exc.value.messages

    def test_project_must_be_open_for_bidding(self, new_project, post_bid, submit_bidding, freelancer):
        project_id = new_project("active")
        bid_id = post_bid(project_id)

        with pytest.raises(ValidationError) as exc:
            submit_bidding(bid_id, freelancer)

        assert "project_id" in exc.value.messages

    def test_duplicate_submission_rejected(self, open_bid, submit_bidding, freelancer):
        _, bid_id = open_bid
        submit_bidding(bid_id, freelancer)

        with pytest.raises(ValidationError):
            submit_bidding(bid_id, freelancer)

    def test_resubmit_after_withdrawal(self, open_bid, submit_bidding, freelancer):
        _, bid_id = open_bid
        first = submit_bidding(bid_id, freelancer)
        _withdraw(first, freelancer)

        second = submit_bidding(bid_id, freelancer)

        assert second != first

    def test_only_owner_can_withdraw(self, open_bid, submit_bidding, freelancer, other_freelancer):
        _, bid_id = open_bid
        bidding_id = submit_bidding(bid_id, freelancer)

        with pytest.raises(ValidationError):
            _withdraw(bidding_id, other_freelancer)


class TestReview:
    def test_shortlist_in_submission_order(
        self, open_bid, submit_bidding, review_bidding, freelancer, other_freelancer
    ):
        project_id, bid_id = open_bid
        first = submit_bidding(bid_id, freelancer)
        second = submit_bidding(bid_id, other_freelancer)

        review_bidding("shortlist", second)
        review_bidding("shortlist", first)

        repo = current_domain.repository_for(Bidding)
        assert repo.shortlisted_freelancer_ids(project_id) == [freelancer, other_freelancer]

    def test_unshortlist_removes_from_shortlist(self, open_bid, submit_bidding, review_bidding, freelancer):
        project_id, bid_id = open_bid
        bidding_id = submit_bidding(bid_id, freelancer)
        review_bidding("shortlist", bidding_id)

        review_bidding("unshortlist", bidding_id)

        assert current_domain.repository_for(Bidding).shortlisted_freelancer_ids(project_id) == []

    def test_client_cannot_review(self, open_bid, submit_bidding, review_bidding, freelancer, client):
        _, bid_id = open_bid
        bidding_id = submit_bidding(bid_id, freelancer)

        with pytest.raises(ValidationError):
            review_bidding("shortlist", bidding_id, actor_id=client)

    def test_decline(self, open_bid, submit_bidding, review_bidding, freelancer):
        _, bid_id = open_bid
        bidding_id = submit_bidding(bid_id, freelancer)

        review_bidding("decline", bidding_id)

        bidding = current_domain.repository_for(Bidding).get(bidding_id)
        assert bidding.status == BiddingStatus.REJECTED.value
        assert bidding.is_declined is True

    def test_hydrated_read(self, open_bid, submit_bidding, freelancer, client):
        project_id, bid_id = open_bid
        bidding_id = submit_bidding(bid_id, freelancer, amount=990.0)

        view = current_domain.repository_for(Bidding).get_with_freelancer_and_project(bidding_id)

        assert view.amount == 990.0
        assert view.freelancer.name == "Fran Freelancer"
        assert view.project.project_id == project_id
