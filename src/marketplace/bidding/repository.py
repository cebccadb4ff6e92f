"""Bidding repository with explicit, hydrated read methods."""

from dataclasses import dataclass

from protean.utils.globals import current_domain

from marketplace.bidding.bidding import Bidding, BiddingStatus
from marketplace.domain import marketplace
from marketplace.project.project import Project
from marketplace.project.repository import ProjectWithClient
from marketplace.user.lookup import UserSummary, summarize


@dataclass(frozen=True)
class BiddingWithFreelancerAndProject:
    bidding_id: str
    amount: float
    status: str
    freelancer: UserSummary | None
    project: ProjectWithClient


@marketplace.repository(part_of=Bidding)
class BiddingRepository:
    def get_with_freelancer_and_project(self, bidding_id) -> BiddingWithFreelancerAndProject:
        bidding = self.get(bidding_id)
        project = current_domain.repository_for(Project).get_with_client(bidding.project_id)
        return BiddingWithFreelancerAndProject(
            bidding_id=str(bidding.id),
            amount=bidding.amount,
            status=bidding.status,
            freelancer=summarize(bidding.freelancer_id),
            project=project,
        )

    def for_project(self, project_id) -> list[Bidding]:
        return self._dao.query.filter(project_id=project_id).all().items

    def accepted_for_project(self, project_id) -> list[Bidding]:
        return self._dao.query.filter(project_id=project_id, is_accepted=True).all().items

    def shortlisted_freelancer_ids(self, project_id) -> list[str]:
        """Freelancers currently on the project's shortlist, in submission order."""
        biddings = self._dao.query.filter(project_id=project_id, is_shortlisted=True).all().items
        ordered = sorted(biddings, key=lambda b: b.submitted_at)
        return list(dict.fromkeys(str(b.freelancer_id) for b in ordered))

    def active_for_freelancer(self, bid_id, freelancer_id) -> list[Bidding]:
        """Biddings the freelancer still has in play on ``bid_id``."""
        biddings = self._dao.query.filter(bid_id=bid_id, freelancer_id=freelancer_id).all().items
        return [b for b in biddings if BiddingStatus(b.status) != BiddingStatus.WITHDRAWN]
