from datetime import datetime, timedelta

import pytest
import pytz

from conftest import (
    PARENT_ID,
    STUDENT2_ID,
    STUDENT_ID,
    TEACHER_ID,
    VALID_CONTENT,
    VALID_TITLE,
    make_article,
)
from core.exceptions import (
    ForbiddenTransitionError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from schemas.article import ArticleStatus
from schemas.notification import NotificationType


def create(portal, actor, status=ArticleStatus.PENDING, title=VALID_TITLE):
    return portal.engine.create_article(
        actor, title, "artistic", "portfolios", VALID_CONTENT, status=status
    )


def notifications_for(portal, user_id):
    return [n for n in portal.state.notifications if n.user_id == user_id]


class TestOnlineWorkflow:
    def test_create_goes_to_the_server(self, online_portal, student):
        result = create(online_portal, student)
        assert not result.applied_locally
        assert result.value.id == 4
        assert online_portal.state.find("articles", 4).status == ArticleStatus.PENDING
        assert online_portal.cache.get("articles")[0]["id"] == 4

    def test_title_boundary(self, online_portal, student):
        with pytest.raises(ValidationError):
            create(online_portal, student, title="abcd")
        assert create(online_portal, student, title="abcde").value.title == "abcde"

    def test_approve_notifies_author(self, online_portal, student, teacher):
        article_id = create(online_portal, student).value.id
        result = online_portal.engine.approve(teacher, article_id)
        assert result.value.status == ArticleStatus.PUBLISHED
        assert result.value.published_at is not None
        [notification] = notifications_for(online_portal, STUDENT_ID)
        assert notification.type == NotificationType.SUCCESS
        assert notification.link == "articles-page"
        assert VALID_TITLE in notification.content

    def test_reject_requires_reason(self, online_portal, student, teacher):
        article_id = create(online_portal, student).value.id
        with pytest.raises(ValidationError):
            online_portal.engine.reject(teacher, article_id, "  ")
        assert online_portal.state.find("articles", article_id).status == ArticleStatus.PENDING
        assert notifications_for(online_portal, STUDENT_ID) == []

    def test_reject_stores_reason_and_notifies(self, online_portal, student, teacher):
        article_id = create(online_portal, student).value.id
        result = online_portal.engine.reject(teacher, article_id, "needs sources")
        assert result.value.rejection_reason == "needs sources"
        assert result.value.published_at is None
        [notification] = notifications_for(online_portal, STUDENT_ID)
        assert notification.type == NotificationType.DANGER
        assert "needs sources" in notification.content

    def test_resubmission_after_rejection(self, online_portal, student, other_student, teacher):
        engine = online_portal.engine
        article_id = create(online_portal, student).value.id
        engine.reject(teacher, article_id, "needs sources")
        with pytest.raises(ForbiddenTransitionError):
            engine.submit_for_review(other_student, article_id)
        result = engine.edit_article(
            student,
            article_id,
            "Revised title",
            "artistic",
            "portfolios",
            VALID_CONTENT,
            status="pending",
        )
        assert result.value.status == ArticleStatus.PENDING
        assert result.value.rejection_reason is None

    def test_draft_cannot_be_published_directly(self, online_portal, student, teacher, admin):
        article_id = create(online_portal, student, status=ArticleStatus.DRAFT).value.id
        for actor in (student, teacher, admin):
            with pytest.raises(ForbiddenTransitionError):
                online_portal.engine.approve(actor, article_id)
        assert online_portal.state.find("articles", article_id).status == ArticleStatus.DRAFT

    def test_submit_draft(self, online_portal, student):
        article_id = create(online_portal, student, status=ArticleStatus.DRAFT).value.id
        result = online_portal.engine.submit_for_review(student, article_id)
        assert result.value.status == ArticleStatus.PENDING

    def test_unknown_article(self, online_portal, teacher):
        with pytest.raises(NotFoundError):
            online_portal.engine.approve(teacher, 999)

    def test_list_articles_by_role(self, online_portal, student, parent, teacher):
        create(online_portal, student, status=ArticleStatus.DRAFT)
        engine = online_portal.engine
        student_view = engine.list_articles(student).value
        assert {a.author_id for a in student_view} == {STUDENT_ID}
        assert len(student_view) == 2
        parent_view = engine.list_articles(parent).value
        assert all(a.status == ArticleStatus.PUBLISHED for a in parent_view)
        assert len(parent_view) == 3
        assert len(engine.list_articles(teacher).value) == 4

    def test_delete_is_admin_only(self, online_portal, teacher, admin):
        with pytest.raises(ForbiddenTransitionError):
            online_portal.engine.delete_article(teacher, 1)
        result = online_portal.engine.delete_article(admin, 1)
        assert result.value.id == 1
        assert online_portal.state.find("articles", 1) is None

    def test_comment_on_published_article_notifies_author(self, online_portal, parent, student):
        result = online_portal.engine.add_comment(parent, 1, "Well done!")
        assert result.value.author_id == PARENT_ID
        assert len(online_portal.state.find("articles", 1).comments) == 1
        [notification] = notifications_for(online_portal, STUDENT_ID)
        assert notification.type == NotificationType.INFO
        assert notification.link == "article-detail-page"

        online_portal.engine.add_comment(student, 1, "Thanks!")
        assert len(notifications_for(online_portal, STUDENT_ID)) == 1

    def test_list_comments_newest_first(self, online_portal, parent, teacher):
        online_portal.engine.add_comment(parent, 2, "First")
        online_portal.engine.add_comment(teacher, 2, "Second")
        comments = online_portal.engine.list_comments(2).value
        assert [c.content for c in comments] == ["Second", "First"]


class TestOfflineWorkflow:
    def test_create_after_failed_health_check(self, offline_portal, student):
        offline_portal.state.articles.extend(
            [make_article(3, STUDENT_ID), make_article(8, STUDENT2_ID)]
        )
        assert offline_portal.start() is False
        result = create(offline_portal, student)
        assert result.applied_locally
        assert result.value.id == 9
        listed = offline_portal.engine.list_articles(student).value
        assert 9 in [a.id for a in listed]

    def test_first_offline_article_gets_id_one(self, offline_portal, student):
        offline_portal.start()
        assert create(offline_portal, student).value.id == 1

    def test_two_offline_comments_get_increasing_ids(self, offline_portal, parent):
        article = make_article(1, STUDENT_ID, ArticleStatus.PUBLISHED)
        offline_portal.state.articles.append(article)
        offline_portal.start()
        first = offline_portal.engine.add_comment(parent, 1, "One")
        second = offline_portal.engine.add_comment(parent, 1, "Two")
        assert first.applied_locally and second.applied_locally
        assert second.value.id > first.value.id
        assert len(article.comments) == 2

    def test_offline_review_keeps_invariants(self, offline_portal, student, teacher):
        offline_portal.start()
        article_id = create(offline_portal, student).value.id
        published = offline_portal.engine.approve(teacher, article_id)
        assert published.applied_locally
        assert published.value.published_at is not None
        # The approval notification is synthesized locally too
        [notification] = notifications_for(offline_portal, STUDENT_ID)
        assert notification.id == 1

    def test_offline_delete_cascades_comments(self, offline_portal, admin, parent):
        offline_portal.state.articles.append(make_article(1, STUDENT_ID, ArticleStatus.PUBLISHED))
        offline_portal.start()
        offline_portal.engine.add_comment(parent, 1, "Nice")
        result = offline_portal.engine.delete_article(admin, 1)
        assert result.applied_locally
        assert offline_portal.state.articles == []
        assert offline_portal.cache.get("articles") == []

    def test_comment_on_hidden_draft_is_refused(self, offline_portal, parent, student):
        article = make_article(1, STUDENT_ID, ArticleStatus.DRAFT)
        offline_portal.state.articles.append(article)
        offline_portal.start()
        with pytest.raises(NotFoundError):
            offline_portal.engine.add_comment(parent, 1, "I can see your draft")
        with pytest.raises(ForbiddenTransitionError):
            offline_portal.engine.add_comment(student, 1, "Note to self")
        assert article.comments == []

    def test_get_article_hidden_by_role(self, offline_portal, parent, teacher):
        offline_portal.state.articles.append(make_article(1, STUDENT_ID, ArticleStatus.DRAFT))
        with pytest.raises(NotFoundError):
            offline_portal.engine.get_article(parent, 1)
        assert offline_portal.engine.get_article(teacher, 1).id == 1


class TestPublicViewAndReviewQueue:
    def test_list_and_search_published(self, offline_portal):
        offline_portal.state.articles.extend(
            [
                make_article(1, STUDENT_ID, ArticleStatus.PUBLISHED, title="Football final"),
                make_article(2, STUDENT_ID, ArticleStatus.PUBLISHED, title="Choir concert",
                             chapter="experiences"),
                make_article(3, STUDENT_ID, ArticleStatus.PENDING, title="Football draft"),
            ]
        )
        engine = offline_portal.engine
        assert [a.id for a in engine.list_published()] == [2, 1]
        assert [a.id for a in engine.list_published("experiences")] == [2]
        assert [a.id for a in engine.search_published("FOOTBALL")] == [1]
        assert [a.id for a in engine.search_published("")] == [2, 1]

    def test_pending_review_summary(self, offline_portal):
        now = datetime(2024, 3, 20, tzinfo=pytz.utc)

        def days_ago(days):
            return (now - timedelta(days=days)).isoformat()

        offline_portal.state.articles.extend(
            [
                make_article(1, STUDENT_ID, ArticleStatus.PENDING, created_at=days_ago(1)),
                make_article(2, STUDENT_ID, ArticleStatus.PENDING, created_at=days_ago(10)),
                make_article(3, STUDENT_ID, ArticleStatus.PENDING, created_at=days_ago(8)),
                make_article(4, TEACHER_ID, ArticleStatus.PUBLISHED, created_at=days_ago(30)),
            ]
        )
        summary = offline_portal.engine.pending_review_summary(now=now)
        assert summary.total == 3
        assert summary.this_week == 1
        assert summary.urgent == 2
        assert [a.id for a in summary.articles] == [2, 3, 1]

    def test_pending_review_summary_accepts_naive_now(self, offline_portal):
        offline_portal.state.articles.append(
            make_article(1, STUDENT_ID, ArticleStatus.PENDING, created_at="2024-03-01T00:00:00+00:00")
        )
        summary = offline_portal.engine.pending_review_summary(now=datetime(2024, 3, 20))
        assert (summary.total, summary.this_week, summary.urgent) == (1, 0, 1)


class TestFailedNotificationDelivery:
    @pytest.fixture
    def portal(self, online_portal, monkeypatch):
        execute = online_portal.sync.execute

        def failing_notifications(operation):
            if operation.target == "notifications":
                raise PersistenceError("disk full")
            return execute(operation)

        monkeypatch.setattr(online_portal.sync, "execute", failing_notifications)
        return online_portal

    def test_approve_is_kept(self, portal, student, teacher):
        article_id = create(portal, student).value.id
        result = portal.engine.approve(teacher, article_id)
        assert result.value.status == ArticleStatus.PUBLISHED
        assert portal.state.find("articles", article_id).status == ArticleStatus.PUBLISHED
        assert notifications_for(portal, STUDENT_ID) == []

    def test_reject_is_kept(self, portal, student, teacher):
        article_id = create(portal, student).value.id
        result = portal.engine.reject(teacher, article_id, "needs sources")
        assert result.value.status == ArticleStatus.REJECTED
        assert portal.state.find("articles", article_id).rejection_reason == "needs sources"
        assert notifications_for(portal, STUDENT_ID) == []

    def test_comment_is_kept(self, portal, parent):
        result = portal.engine.add_comment(parent, 1, "Well done!")
        assert result.value.author_id == PARENT_ID
        assert len(portal.state.find("articles", 1).comments) == 1
        assert notifications_for(portal, STUDENT_ID) == []
