import pytest
from protean import current_domain
from protean.integrations.pytest import DomainFixture


@pytest.fixture(scope="session")
def marketplace_bed():
    from marketplace.domain import marketplace

    bed = DomainFixture(marketplace)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(marketplace_bed):
    from marketplace.channel import reset_transports

    reset_transports()
    with marketplace_bed.domain_context():
        yield
    reset_transports()


@pytest.fixture()
def transports():
    """The fake realtime and email adapters used for this test."""
    from marketplace.channel import get_transports

    return get_transports()


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------
@pytest.fixture()
def register():
    """Register a user through the command pipeline and return their id."""
    from marketplace.user.registration import RegisterUser

    def _register(name, role, email=None, registered_by=None):
        email = email or f"{name.lower().replace(' ', '.')}@example.com"
        return current_domain.process(
            RegisterUser(name=name, email=email, role=role, registered_by=registered_by),
            asynchronous=False,
        )

    return _register


@pytest.fixture()
def superadmin(register):
    return register("Sam Super", "superadmin")


@pytest.fixture()
def admin(register):
    return register("Ada Admin", "admin")


@pytest.fixture()
def agent(register):
    return register("Alex Agent", "agent")


@pytest.fixture()
def other_agent(register):
    return register("Avery Agent", "agent")


@pytest.fixture()
def client(register):
    return register("Casey Client", "client")


@pytest.fixture()
def other_client(register):
    return register("Corey Client", "client")


@pytest.fixture()
def freelancer(register):
    return register("Fran Freelancer", "freelancer")


@pytest.fixture()
def other_freelancer(register):
    return register("Finn Freelancer", "freelancer")


# ---------------------------------------------------------------------------
# Projects
# ---------------------------------------------------------------------------
@pytest.fixture()
def transition():
    """Apply a status transition and return the timeline entry id."""
    from marketplace.project.lifecycle import ApplyTransition

    def _transition(project_id, actor_id, target_status, remark=None, freelancer_id=None):
        return current_domain.process(
            ApplyTransition(
                project_id=project_id,
                actor_id=actor_id,
                target_status=target_status,
                remark=remark,
                freelancer_id=freelancer_id,
            ),
            asynchronous=False,
        )

    return _transition


@pytest.fixture()
def create_project(client):
    from marketplace.project.lifecycle import CreateProject

    def _create(title="Landing page redesign", actor_id=None, budget=1500.0, client_id=None):
        return current_domain.process(
            CreateProject(
                actor_id=actor_id or client,
                title=title,
                description="Refresh the marketing site",
                budget=budget,
                client_id=client_id,
            ),
            asynchronous=False,
        )

    return _create


@pytest.fixture()
def new_project(create_project, transition, client, admin, freelancer):
    """Create a project and drive it to ``status`` along the usual path."""

    def _new_project(status="draft", title="Landing page redesign"):
        project_id = create_project(title=title)
        if status == "draft":
            return project_id

        if status in ("pending_review", "rejected"):
            transition(project_id, client, "pending_review")
            if status == "rejected":
                transition(project_id, admin, "rejected")
            return project_id

        transition(project_id, client, "active")
        if status == "active":
            return project_id

        transition(project_id, admin, "in_bidding")
        if status == "in_bidding":
            return project_id

        if status == "assigned":
            transition(project_id, admin, "assigned", freelancer_id=freelancer)
            return project_id

        transition(project_id, admin, "in_progress", freelancer_id=freelancer)
        if status == "in_progress":
            return project_id

        if status == "completed":
            transition(project_id, admin, "completed")
        elif status == "hold":
            transition(project_id, client, "hold", remark="Waiting on budget approval")
        elif status == "cancelled":
            transition(project_id, client, "cancelled", remark="Client changed direction")
        else:
            raise ValueError(f"No path to {status}")
        return project_id

    return _new_project


@pytest.fixture()
def assign_agent(admin):
    from marketplace.project.lifecycle import AssignAgent

    def _assign(project_id, agent_id):
        current_domain.process(
            AssignAgent(project_id=project_id, actor_id=admin, agent_id=agent_id),
            asynchronous=False,
        )

    return _assign


@pytest.fixture()
def notifications_for():
    """Persisted notifications for a user, optionally filtered by rule key."""
    from marketplace.notification.notification import Notification

    def _notifications_for(user_id, kind=None):
        filters = {"user_id": user_id}
        if kind:
            filters["kind"] = kind
        return current_domain.repository_for(Notification)._dao.query.filter(**filters).all().items

    return _notifications_for


# ---------------------------------------------------------------------------
# Bids
# ---------------------------------------------------------------------------
@pytest.fixture()
def post_bid(admin):
    from marketplace.bidding.submission import PostBid

    def _post_bid(project_id, actor_id=None, title="Build the landing page", budget=1200.0):
        return current_domain.process(
            PostBid(project_id=project_id, actor_id=actor_id or admin, title=title, budget=budget),
            asynchronous=False,
        )

    return _post_bid


@pytest.fixture()
def submit_bidding():
    from marketplace.bidding.submission import SubmitBidding

    def _submit(bid_id, freelancer_id, amount=950.0, timeline="3 weeks"):
        return current_domain.process(
            SubmitBidding(
                bid_id=bid_id,
                actor_id=freelancer_id,
                amount=amount,
                timeline=timeline,
                proposal="I have shipped several similar sites.",
            ),
            asynchronous=False,
        )

    return _submit


@pytest.fixture()
def review_bidding(admin):
    """Run a review command (shortlist, unshortlist, decline) on a bidding."""
    from marketplace.bidding.review import DeclineBidding, ShortlistBidding, UnshortlistBidding

    commands = {"shortlist": ShortlistBidding, "unshortlist": UnshortlistBidding, "decline": DeclineBidding}

    def _review(action, bidding_id, actor_id=None):
        current_domain.process(
            commands[action](bidding_id=bidding_id, actor_id=actor_id or admin),
            asynchronous=False,
        )

    return _review
