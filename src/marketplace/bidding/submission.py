"""Bid postings and freelancer submissions."""

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Float, Identifier, String, Text
from protean.utils.globals import current_domain

from marketplace.audit.audit_log import AuditAction
from marketplace.audit.recorder import record_audit
from marketplace.bidding.bid import Bid
from marketplace.bidding.bidding import Bidding
from marketplace.domain import marketplace
from marketplace.project.access import ensure, is_manager
from marketplace.project.project import Project, ProjectStatus
from marketplace.user.lookup import load_actor
from marketplace.user.user import UserRole


@marketplace.command(part_of="Bid")
class PostBid:
    project_id: Identifier(required=True)
    actor_id: Identifier(required=True)
    title: String(required=True, max_length=200)
    description: Text()
    budget: Float(min_value=0.0)


@marketplace.command(part_of="Bid")
class CloseBid:
    bid_id: Identifier(required=True)
    actor_id: Identifier(required=True)


@marketplace.command(part_of="Bidding")
class SubmitBidding:
    bid_id: Identifier(required=True)
    actor_id: Identifier(required=True)
    amount: Float(required=True, min_value=0.0)
    timeline: String(max_length=100)
    proposal: Text()


@marketplace.command(part_of="Bidding")
class WithdrawBidding:
    bidding_id: Identifier(required=True)
    actor_id: Identifier(required=True)


@marketplace.command_handler(part_of=Bid)
class BidPostingHandler:
    @handle(PostBid)
    def post_bid(self, command):
        actor = load_actor(command.actor_id)
        project = current_domain.repository_for(Project).get(command.project_id)
        ensure(is_manager(project, actor), "Only admins or the project's agent can post bids")

        if ProjectStatus(project.status) not in (ProjectStatus.ACTIVE, ProjectStatus.IN_BIDDING):
            raise ValidationError({"project_id": [f"Cannot post bids on a {project.status} project"]})

        bid = Bid.post(
            project_id=str(project.id),
            title=command.title,
            created_by=str(actor.id),
            description=command.description,
            budget=command.budget,
        )
        current_domain.repository_for(Bid).add(bid)

        record_audit(
            actor=actor,
            action=AuditAction.BID_POSTED,
            target=project,
            new_values={"bid_id": str(bid.id), "title": bid.title, "budget": bid.budget},
        )
        return str(bid.id)

    @handle(CloseBid)
    def close_bid(self, command):
        actor = load_actor(command.actor_id)
        repo = current_domain.repository_for(Bid)
        bid = repo.get(command.bid_id)
        project = current_domain.repository_for(Project).get(bid.project_id)
        ensure(is_manager(project, actor), "Only admins or the project's agent can close bids")

        bid.close(closed_by=str(actor.id))
        repo.add(bid)

        record_audit(
            actor=actor,
            action=AuditAction.BID_CLOSED,
            target=project,
            previous_values={"status": "open"},
            new_values={"status": bid.status},
            metadata={"bid_id": str(bid.id)},
        )


@marketplace.command_handler(part_of=Bidding)
class BiddingSubmissionHandler:
    @handle(SubmitBidding)
    def submit_bidding(self, command):
        actor = load_actor(command.actor_id)
        if UserRole(actor.role) != UserRole.FREELANCER:
            raise ValidationError({"actor_id": ["Only freelancers can submit biddings"]})

        bid = current_domain.repository_for(Bid).get(command.bid_id)
        if not bid.is_open:
            raise ValidationError({"bid_id": ["This bid is no longer accepting biddings"]})

        project = current_domain.repository_for(Project).get(bid.project_id)
        if not project.is_open_for_bidding:
            raise ValidationError({"project_id": ["Project is not open for bidding"]})

        repo = current_domain.repository_for(Bidding)
        if repo.active_for_freelancer(str(bid.id), str(actor.id)):
            raise ValidationError({"bid_id": ["You have already submitted a bidding for this bid"]})

        bidding = Bidding.submit(
            bid_id=str(bid.id),
            project_id=str(project.id),
            freelancer_id=str(actor.id),
            amount=command.amount,
            timeline=command.timeline,
            proposal=command.proposal,
        )
        repo.add(bidding)

        record_audit(
            actor=actor,
            action=AuditAction.BID_PLACED,
            target=project,
            new_values={"bidding_id": str(bidding.id), "amount": bidding.amount, "timeline": bidding.timeline},
        )
        return str(bidding.id)

    @handle(WithdrawBidding)
    def withdraw_bidding(self, command):
        actor = load_actor(command.actor_id)
        repo = current_domain.repository_for(Bidding)
        bidding = repo.get(command.bidding_id)
        if str(bidding.freelancer_id) != str(actor.id):
            raise ValidationError({"actor_id": ["Only the freelancer who submitted a bidding can withdraw it"]})

        previous = bidding.status
        bidding.withdraw()
        repo.add(bidding)

        record_audit(
            actor=actor,
            action=AuditAction.BID_WITHDRAWN,
            target=bidding,
            previous_values={"status": previous},
            new_values={"status": bidding.status},
            metadata={"project_id": str(bidding.project_id)},
        )
