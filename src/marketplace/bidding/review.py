"""Bidding review — shortlist, un-shortlist and decline.

Only admins, superadmins and the project's assigned agent review biddings.
"""

from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from marketplace.audit.audit_log import AuditAction
from marketplace.audit.recorder import record_audit
from marketplace.bidding.acceptance import release_acceptance
from marketplace.bidding.bidding import Bidding, BiddingStatus
from marketplace.domain import marketplace
from marketplace.project.access import ensure, is_manager
from marketplace.project.project import Project
from marketplace.user.lookup import load_actor


@marketplace.command(part_of="Bidding")
class ShortlistBidding:
    bidding_id: Identifier(required=True)
    actor_id: Identifier(required=True)


@marketplace.command(part_of="Bidding")
class UnshortlistBidding:
    bidding_id: Identifier(required=True)
    actor_id: Identifier(required=True)


@marketplace.command(part_of="Bidding")
class DeclineBidding:
    bidding_id: Identifier(required=True)
    actor_id: Identifier(required=True)


@marketplace.command_handler(part_of=Bidding)
class BiddingReviewHandler:
    def _load(self, command):
        actor = load_actor(command.actor_id)
        bidding = current_domain.repository_for(Bidding).get(command.bidding_id)
        project = current_domain.repository_for(Project).get(bidding.project_id)
        ensure(is_manager(project, actor), "Only admins or the project's assigned agent can review biddings")
        return actor, bidding

    def _save_and_audit(self, actor, bidding, action, previous_status):
        current_domain.repository_for(Bidding).add(bidding)
        record_audit(
            actor=actor,
            action=action,
            target=bidding,
            previous_values={"status": previous_status},
            new_values={"status": bidding.status},
            metadata={"project_id": str(bidding.project_id), "freelancer_id": str(bidding.freelancer_id)},
        )

    @handle(ShortlistBidding)
    def shortlist(self, command):
        actor, bidding = self._load(command)
        previous = bidding.status
        bidding.shortlist(reviewer_id=str(actor.id))
        self._save_and_audit(actor, bidding, AuditAction.BID_SHORTLISTED, previous)

    @handle(UnshortlistBidding)
    def unshortlist(self, command):
        actor, bidding = self._load(command)
        previous = bidding.status
        bidding.unshortlist(reviewer_id=str(actor.id))
        self._save_and_audit(actor, bidding, AuditAction.BID_UNSHORTLISTED, previous)

    @handle(DeclineBidding)
    def decline(self, command):
        actor, bidding = self._load(command)
        previous = bidding.status
        bidding.decline(reviewer_id=str(actor.id))
        if previous == BiddingStatus.ACCEPTED.value:
            release_acceptance(bidding.project_id, bidding.id)
        self._save_and_audit(actor, bidding, AuditAction.BID_REJECTED, previous)
