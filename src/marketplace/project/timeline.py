"""ProjectTimeline — one immutable entry per committed status transition."""

from datetime import UTC, datetime

from protean.fields import DateTime, Identifier, String, Text

from marketplace.domain import marketplace


@marketplace.aggregate
class ProjectTimeline:
    project_id: Identifier(required=True)
    actor_id: Identifier(required=True)
    actor_role: String(required=True, max_length=20)
    old_status: String(required=True, max_length=30)
    new_status: String(required=True, max_length=30)
    action: String(required=True, max_length=50)
    title: String(required=True, max_length=200)
    remark: Text()
    created_at: DateTime(required=True)

    @classmethod
    def record(cls, project, actor, rule, remark=None):
        """Build the entry for ``rule`` being applied to ``project`` by ``actor``.

        Must be called before the transition is applied so ``old_status``
        still holds the pre-transition value.
        """
        return cls(
            project_id=str(project.id),
            actor_id=str(actor.id),
            actor_role=actor.role,
            old_status=project.status,
            new_status=rule.target.value,
            action=rule.action,
            title=rule.title,
            remark=remark,
            created_at=datetime.now(UTC),
        )


@marketplace.repository(part_of=ProjectTimeline)
class ProjectTimelineRepository:
    def for_project(self, project_id) -> list[ProjectTimeline]:
        """Entries for a project, oldest first."""
        return self._dao.query.filter(project_id=project_id).order_by("created_at").all().items
