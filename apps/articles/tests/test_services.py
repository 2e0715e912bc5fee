"""
Tests for ArticleService and the full approval flow on the database.

Tests cover:
- Draft creation and validation
- Send-to-review, edit and delete gating by state and authorship
- Resubmission after rejection (new review cycle, percentage reset)
- Two end-to-end review scenarios
- Published listing cache invalidation
- Author e-mails queued on state changes
"""

from decimal import Decimal

import pytest
from django.core import mail

from apps.articles.exceptions import (
    ArticleNotFoundError,
    DuplicateVoteError,
    InvalidTransitionError,
)
from apps.articles.models import Article, ArticleVote
from apps.articles.notifier import StateChangeNotifier
from apps.articles.services import ArticleService
from apps.articles.states import ArticleStatus, VoteDecision
from apps.articles.wiring import build_engine, get_approval_engine
from apps.core.exceptions import PermissionDeniedError, ValidationError


# ============================================================================
# Fixtures
# ============================================================================

class Recorder:
    name = 'recorder'

    def __init__(self):
        self.events = []

    def on_state_change(self, article, old_state, new_state, message):
        self.events.append((old_state, new_state, message))


@pytest.fixture
def recorder():
    return Recorder()


@pytest.fixture
def notifier(recorder):
    return StateChangeNotifier([recorder])


@pytest.fixture
def service(notifier):
    return ArticleService(notifier=notifier)


@pytest.fixture
def engine(notifier):
    return build_engine(notifier)


def cast(engine, user, article, decision=VoteDecision.APPROVED):
    role = user.staff_profile.role
    return engine.submit_vote(
        article.id,
        voter_id=str(user.pk),
        voter_username=user.username,
        role_id=str(role.pk),
        role_name=role.name,
        role_weight=role.approval_weight,
        decision=decision,
    )


# ============================================================================
# Authoring
# ============================================================================

@pytest.mark.django_db
class TestCreateDraft:

    def test_new_article_is_a_draft_at_zero(self, service, author):
        article = service.create_draft(author, '  Economy 2025  ', 'Body text')

        article.refresh_from_db()
        assert article.title == 'Economy 2025'
        assert article.status == ArticleStatus.DRAFT.value
        assert article.approval_percentage == Decimal('0.00')
        assert article.review_cycle == 0
        assert article.author == author

    @pytest.mark.parametrize('title, body, field', [
        ('', 'Body', 'title'),
        ('   ', 'Body', 'title'),
        ('Title', '', 'body'),
        ('x' * 256, 'Body', 'title'),
    ])
    def test_invalid_text_is_rejected(self, service, author, title, body, field):
        with pytest.raises(ValidationError) as excinfo:
            service.create_draft(author, title, body)

        assert excinfo.value.field == field
        assert not Article.objects.exists()


@pytest.mark.django_db
class TestSendToReview:

    def test_draft_goes_to_review(self, service, draft, author, recorder):
        article = service.send_to_review(draft.id, author)

        assert article.status == ArticleStatus.IN_REVIEW.value
        assert article.review_cycle == 1
        assert recorder.events == [('draft', 'in_review', 'Article sent to review (cycle 1).')]

    def test_only_the_author_can_send(self, service, draft, editor):
        with pytest.raises(PermissionDeniedError):
            service.send_to_review(draft.id, editor)

        draft.refresh_from_db()
        assert draft.status == ArticleStatus.DRAFT.value

    @pytest.mark.parametrize('status', [ArticleStatus.IN_REVIEW, ArticleStatus.PUBLISHED])
    def test_not_resubmittable_states(self, service, draft, author, status, recorder):
        draft.status = status.value
        draft.save()

        with pytest.raises(InvalidTransitionError) as excinfo:
            service.send_to_review(draft.id, author)

        assert excinfo.value.action == 'send_to_review'
        assert recorder.events == []

    def test_unknown_article(self, service, author):
        with pytest.raises(ArticleNotFoundError):
            service.send_to_review('00000000-0000-0000-0000-000000000000', author)

    def test_malformed_id_is_not_found(self, service, author):
        with pytest.raises(ArticleNotFoundError):
            service.send_to_review('not-a-uuid', author)


@pytest.mark.django_db
class TestUpdateAndDelete:

    def test_edit_draft(self, service, draft, author, recorder):
        article = service.update_article(draft.id, author, title='Economy 2026')

        assert article.title == 'Economy 2026'
        assert article.body == 'Inflation is slowing down.'
        assert article.status == ArticleStatus.DRAFT.value
        assert recorder.events == []

    def test_editing_observed_article_returns_it_to_draft(self, service, draft, author, recorder):
        draft.status = ArticleStatus.OBSERVED.value
        draft.approval_percentage = Decimal('40.00')
        draft.save()

        article = service.update_article(draft.id, author, body='Corrected figures.')

        assert article.status == ArticleStatus.DRAFT.value
        assert article.approval_percentage == Decimal('0.00')
        assert recorder.events[0][:2] == ('observed', 'draft')

    @pytest.mark.parametrize('status', [ArticleStatus.IN_REVIEW, ArticleStatus.PUBLISHED])
    def test_locked_states_cannot_be_edited(self, service, draft, author, status):
        draft.status = status.value
        draft.save()

        with pytest.raises(InvalidTransitionError):
            service.update_article(draft.id, author, title='Changed')

        draft.refresh_from_db()
        assert draft.title == 'Economy 2025'

    def test_only_the_author_can_edit(self, service, draft, editor):
        with pytest.raises(PermissionDeniedError):
            service.update_article(draft.id, editor, title='Hijacked')

    def test_delete_draft(self, service, draft, author):
        service.delete_article(draft.id, author)
        assert not Article.objects.filter(id=draft.id).exists()

    def test_cannot_delete_in_review(self, service, in_review, author):
        with pytest.raises(InvalidTransitionError):
            service.delete_article(in_review.id, author)
        assert Article.objects.filter(id=in_review.id).exists()


# ============================================================================
# End-to-end review
# ============================================================================

@pytest.mark.django_db
class TestReviewScenarios:

    def test_editor_then_chief_editor_publish(self, service, engine, author, make_role, make_user, recorder):
        editor = make_user('editor', role=make_role('EDITOR', '30.00'))
        second_editor = make_user('editor2', role=editor.staff_profile.role)
        chief = make_user('chief', role=make_role('CHIEF_EDITOR', '70.00'))

        article = service.create_draft(author, 'Economy 2025', 'Inflation is slowing down.')
        article = service.send_to_review(article.id, author)
        assert (article.status, article.approval_percentage) == ('in_review', Decimal('0.00'))

        outcome = cast(engine, editor, article)
        assert outcome.state == ArticleStatus.IN_REVIEW
        assert outcome.approval_percentage == Decimal('30.00')

        with pytest.raises(DuplicateVoteError, match='EDITOR has already reviewed this article'):
            cast(engine, second_editor, article)

        outcome = cast(engine, chief, article)
        assert outcome.state == ArticleStatus.PUBLISHED

        article.refresh_from_db()
        assert article.status == ArticleStatus.PUBLISHED.value
        assert article.approval_percentage == Decimal('100.00')
        assert ArticleVote.objects.filter(article=article).count() == 2
        assert [event[:2] for event in recorder.events] == [
            ('draft', 'in_review'),
            ('in_review', 'in_review'),
            ('in_review', 'published'),
        ]

    def test_rejection_edit_and_resubmission(self, service, engine, in_review, author, editor, legal):
        cast(engine, editor, in_review)

        outcome = cast(engine, legal, in_review, decision=VoteDecision.REJECTED)
        assert outcome.state == ArticleStatus.OBSERVED
        assert outcome.approval_percentage == Decimal('40.00')

        article = service.update_article(in_review.id, author, body='Corrected figures.')
        assert article.status == ArticleStatus.DRAFT.value

        article = service.send_to_review(in_review.id, author)
        assert article.status == ArticleStatus.IN_REVIEW.value
        assert article.approval_percentage == Decimal('0.00')
        assert article.review_cycle == 2

        # Roles that voted in the previous cycle may vote again
        outcome = cast(engine, editor, article)
        assert outcome.approval_percentage == Decimal('40.00')

        history = engine.approval_history(article.id)
        assert len(history.votes) == 3
        assert history.approvals_in_cycle == 1
        assert [vote.review_cycle for vote in history.votes] == [2, 1, 1]

    def test_vote_on_draft_is_refused(self, engine, draft, editor):
        with pytest.raises(InvalidTransitionError):
            cast(engine, editor, draft)

        assert not ArticleVote.objects.exists()
        draft.refresh_from_db()
        assert draft.status == ArticleStatus.DRAFT.value


# ============================================================================
# Reads
# ============================================================================

@pytest.mark.django_db
class TestQueries:

    def test_published_listing_is_cached_and_invalidated(self, in_review, editor, make_user, make_role):
        service = ArticleService()
        assert service.list_published() == []

        chief = make_user('chief', role=make_role('CHIEF_EDITOR', '70.00'))
        engine = get_approval_engine()
        cast(engine, editor, in_review)
        cast(engine, chief, in_review)

        assert [a.id for a in service.list_published()] == [in_review.id]

    def test_pending_and_by_author(self, service, draft, in_review, author, make_user):
        other = make_user('other')
        service.create_draft(other, 'Sports', 'Final score')

        assert [a.id for a in service.list_pending()] == [in_review.id]
        assert [a.id for a in service.list_by_author(author.pk)] == [in_review.id]
        assert len(service.list_by_author(other.pk)) == 1

    def test_get_article_not_found(self, service):
        with pytest.raises(ArticleNotFoundError):
            service.get_article('00000000-0000-0000-0000-000000000000')


@pytest.mark.django_db
class TestAuthorEmails:

    def test_state_changes_are_emailed_but_progress_is_not(self, in_review, editor, make_user, make_role):
        chief = make_user('chief', role=make_role('CHIEF_EDITOR', '70.00'))
        engine = get_approval_engine()

        cast(engine, editor, in_review)
        assert mail.outbox == []

        cast(engine, chief, in_review)
        [message] = mail.outbox
        assert message.to == ['author@example.com']
        assert 'published' in message.subject
        assert 'has been PUBLISHED' in message.body
