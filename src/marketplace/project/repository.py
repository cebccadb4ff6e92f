"""Project repository with explicit, hydrated read methods."""

from dataclasses import dataclass

from marketplace.domain import marketplace
from marketplace.project.project import Project
from marketplace.user.lookup import UserSummary, summarize


@dataclass(frozen=True)
class ProjectWithClient:
    project_id: str
    title: str
    status: str
    is_open_for_bidding: bool
    client: UserSummary | None
    assigned_freelancer: UserSummary | None
    assigned_agent: UserSummary | None


@marketplace.repository(part_of=Project)
class ProjectRepository:
    def get_with_client(self, project_id) -> ProjectWithClient:
        """Load a project together with its client, freelancer and agent.

        Raises ``ObjectNotFoundError`` when the project does not exist. Users
        that no longer exist come back as ``None``.
        """
        project = self.get(project_id)
        return ProjectWithClient(
            project_id=str(project.id),
            title=project.title,
            status=project.status,
            is_open_for_bidding=project.is_open_for_bidding,
            client=summarize(project.client_id),
            assigned_freelancer=summarize(project.assigned_freelancer_id),
            assigned_agent=summarize(project.assigned_agent_id),
        )

    def find_by_client(self, client_id) -> list[Project]:
        return self._dao.query.filter(client_id=client_id).order_by("-created_at").all().items
