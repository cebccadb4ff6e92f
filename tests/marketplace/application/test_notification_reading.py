"""Application tests for marking notifications read and listing a user's inbox."""

from datetime import UTC, datetime, timedelta

import pytest
from marketplace.notification.notification import Notification
from marketplace.notification.reading import MarkAllNotificationsRead, MarkNotificationRead
from protean import current_domain
from protean.exceptions import ValidationError


def _persist(user_id, title="Update", created_at=None):
    n = Notification.create(
        user_id=user_id,
        kind="project_updated",
        event_key="PROJECT_UPDATED",
        title=title,
        message="Something changed.",
        channel="notification:client:project_updated",
    )
    if created_at is not None:
        n.created_at = created_at
    current_domain.repository_for(Notification).add(n)
    return str(n.id)


class TestMarkRead:
    def test_recipient_marks_read(self):
        nid = _persist("reader-1")

        current_domain.process(MarkNotificationRead(notification_id=nid, reader_id="reader-1"), asynchronous=False)

        n = current_domain.repository_for(Notification).get(nid)
        assert n.is_read is True
        assert n.read_at is not None

    def test_other_user_is_rejected(self):
        nid = _persist("reader-1")

        with pytest.raises(ValidationError):
            current_domain.process(
                MarkNotificationRead(notification_id=nid, reader_id="someone-else"),
                asynchronous=False,
            )

        assert current_domain.repository_for(Notification).get(nid).is_read is False

    def test_mark_all_read_counts_only_unread(self):
        first = _persist("reader-2")
        _persist("reader-2")
        _persist("reader-3")
        current_domain.process(MarkNotificationRead(notification_id=first, reader_id="reader-2"), asynchronous=False)

        marked = current_domain.process(MarkAllNotificationsRead(user_id="reader-2"), asynchronous=False)

        assert marked == 1
        repo = current_domain.repository_for(Notification)
        assert repo.unread_for_user("reader-2") == []
        assert len(repo.unread_for_user("reader-3")) == 1


class TestInbox:
    def test_newest_first_with_cursor(self):
        now = datetime.now(UTC)
        for minutes in range(5):
            _persist("inbox-1", title=f"Update {minutes}", created_at=now - timedelta(minutes=minutes))

        repo = current_domain.repository_for(Notification)
        page = repo.for_user("inbox-1", limit=2)
        assert [n.title for n in page] == ["Update 0", "Update 1"]

        next_page = repo.for_user("inbox-1", before=page[-1].created_at, limit=2)
        assert [n.title for n in next_page] == ["Update 2", "Update 3"]

    def test_unread_only(self):
        read_id = _persist("inbox-2", title="Old")
        _persist("inbox-2", title="New")
        current_domain.process(MarkNotificationRead(notification_id=read_id, reader_id="inbox-2"), asynchronous=False)

        titles = [n.title for n in current_domain.repository_for(Notification).for_user("inbox-2", unread_only=True)]

        assert titles == ["New"]
