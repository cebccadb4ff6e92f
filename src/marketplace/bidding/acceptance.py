"""AcceptBid: at most one accepted Bidding per project.

The check-then-act on accepted biddings alone is racy: two requests can
both observe "no accepted bidding" and both save. The handler therefore
also writes a ``BidAcceptance`` row whose identifier *is* the project id.
The store's primary-key uniqueness makes the second insert fail, and that
failure is reported as a ``ConflictError`` instead of a second acceptance.

Declining an accepted bidding deletes the row and frees the project.
"""

from datetime import UTC, datetime

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import DateTime, Identifier
from protean.utils.globals import current_domain
from sqlalchemy.exc import IntegrityError

from marketplace.audit.audit_log import AuditAction
from marketplace.audit.recorder import record_audit
from marketplace.bidding.bidding import Bidding
from marketplace.domain import marketplace
from marketplace.project.access import ensure, is_manager
from marketplace.project.project import Project
from marketplace.shared.errors import AlreadyAccepted, ConflictError
from marketplace.user.lookup import load_actor

logger = structlog.get_logger(__name__)

_CONCURRENT_ACCEPTANCE = {"project_id": ["A concurrent acceptance for this project was committed first."]}


@marketplace.aggregate
class BidAcceptance:
    """Per-project acceptance lock, keyed by the project id."""

    project_id: Identifier(identifier=True)
    bidding_id: Identifier(required=True)
    accepted_by: Identifier(required=True)
    accepted_at: DateTime(required=True)


def find_acceptance(project_id) -> BidAcceptance | None:
    try:
        return current_domain.repository_for(BidAcceptance).get(project_id)
    except ObjectNotFoundError:
        return None


def release_acceptance(project_id, bidding_id) -> None:
    """Drop the project's acceptance lock if ``bidding_id`` holds it."""
    lock = find_acceptance(project_id)
    if lock is not None and str(lock.bidding_id) == str(bidding_id):
        current_domain.repository_for(BidAcceptance)._dao.delete(lock)


@marketplace.command(part_of="Bidding")
class AcceptBid:
    bidding_id: Identifier(required=True)
    actor_id: Identifier(required=True)


@marketplace.command_handler(part_of=Bidding)
class AcceptBidHandler:
    @handle(AcceptBid)
    def accept_bid(self, command):
        actor = load_actor(command.actor_id)
        repo = current_domain.repository_for(Bidding)
        bidding = repo.get(command.bidding_id)
        project = current_domain.repository_for(Project).get(bidding.project_id)
        ensure(is_manager(project, actor), "Only admins or the project's assigned agent can accept biddings")

        if bidding.is_accepted:
            raise ValidationError({"status": ["Bidding is already accepted"]})

        project_id = str(bidding.project_id)
        others = [b for b in repo.accepted_for_project(project_id) if str(b.id) != str(bidding.id)]
        if others or find_acceptance(project_id) is not None:
            raise AlreadyAccepted(project_id)

        previous = bidding.status
        bidding.accept(reviewer_id=str(actor.id))

        lock = BidAcceptance(
            project_id=project_id,
            bidding_id=str(bidding.id),
            accepted_by=str(actor.id),
            accepted_at=datetime.now(UTC),
        )
        try:
            current_domain.repository_for(BidAcceptance).add(lock)
        except ValidationError as exc:
            if "project_id" not in exc.messages:
                raise
            logger.warning("Concurrent bid acceptance rejected", project_id=project_id, bidding_id=str(bidding.id))
            raise ConflictError(_CONCURRENT_ACCEPTANCE) from exc

        repo.add(bidding)

        record_audit(
            actor=actor,
            action=AuditAction.BID_ACCEPTED,
            target=bidding,
            previous_values={"status": previous, "is_accepted": False},
            new_values={"status": bidding.status, "is_accepted": True},
            metadata={"project_id": project_id, "freelancer_id": str(bidding.freelancer_id)},
        )
        return str(bidding.id)


def accept_bid(bidding_id, actor_id) -> str:
    """Process ``AcceptBid``, reporting a lost commit-time race as a conflict.

    SQL providers enforce the lock row's primary key when the unit of work
    commits, after the handler has returned.
    """
    try:
        return current_domain.process(AcceptBid(bidding_id=bidding_id, actor_id=actor_id), asynchronous=False)
    except IntegrityError as exc:
        logger.warning("Concurrent bid acceptance rejected at commit", bidding_id=str(bidding_id))
        raise ConflictError(_CONCURRENT_ACCEPTANCE) from exc
