"""
Tests for the article and approval HTTP API.

Tests cover:
- Public listing and detail of published articles
- Author endpoints: create, edit, delete, send-to-review
- POST /api/approvals/ with role resolution from the staff profile
- Error envelope codes for every workflow error
- Approval history, pending queue, per-author listing
- Request ID propagation
"""

import uuid
from decimal import Decimal

import pytest
from rest_framework import status

from apps.articles.models import Article, ArticleVote
from apps.articles.states import ArticleStatus

ARTICLES_URL = '/api/articles/'
APPROVALS_URL = '/api/approvals/'


def detail_url(article):
    return f'{ARTICLES_URL}{article.id}/'


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def author_client(api_client, author):
    api_client.force_authenticate(user=author)
    return api_client


@pytest.fixture
def client_for(db):
    from rest_framework.test import APIClient

    def _client_for(user):
        client = APIClient()
        client.force_authenticate(user=user)
        return client
    return _client_for


@pytest.fixture
def published(draft):
    draft.status = ArticleStatus.PUBLISHED.value
    draft.approval_percentage = Decimal('100.00')
    draft.review_cycle = 1
    draft.save()
    return draft


# ============================================================================
# Public reads
# ============================================================================

@pytest.mark.django_db
class TestPublicReads:

    def test_list_shows_published_only(self, api_client, published, author):
        Article.objects.create(title='Unfinished', body='...', author=author)

        response = api_client.get(ARTICLES_URL)

        assert response.status_code == status.HTTP_200_OK
        assert response.data['count'] == 1
        [item] = response.data['results']
        assert item['title'] == 'Economy 2025'
        assert item['author_username'] == 'author'
        assert item['approval_percentage'] == '100.00'

    def test_published_detail_is_public(self, api_client, published):
        response = api_client.get(detail_url(published))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['is_published'] is True
        assert response.data['body'] == 'Inflation is slowing down.'

    def test_unpublished_detail_is_hidden_from_anonymous(self, api_client, draft):
        response = api_client.get(detail_url(draft))

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.data['error']['code'] == 'ARTICLE_NOT_FOUND'

    def test_unpublished_detail_visible_when_logged_in(self, client_for, draft, editor):
        response = client_for(editor).get(detail_url(draft))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['status'] == 'draft'

    def test_unknown_article(self, author_client):
        response = author_client.get(f'{ARTICLES_URL}{uuid.uuid4()}/')

        assert response.status_code == status.HTTP_404_NOT_FOUND


# ============================================================================
# Author commands
# ============================================================================

@pytest.mark.django_db
class TestAuthorCommands:

    def test_create_requires_login(self, api_client):
        response = api_client.post(ARTICLES_URL, {'title': 'T', 'body': 'B'}, format='json')

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.data['error']['code'] == 'AUTHENTICATION_REQUIRED'

    def test_create_draft(self, author_client, author):
        response = author_client.post(
            ARTICLES_URL, {'title': 'Economy 2025', 'body': 'Inflation.'}, format='json',
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['status'] == 'draft'
        assert response.data['approval_percentage'] == '0.00'
        assert response.data['author_id'] == author.pk

    def test_create_missing_body(self, author_client):
        response = author_client.post(ARTICLES_URL, {'title': 'Economy 2025'}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['error']['code'] == 'VALIDATION_ERROR'
        assert 'body' in response.data['error']['details']

    def test_patch_title(self, author_client, draft):
        response = author_client.patch(detail_url(draft), {'title': 'Economy 2026'}, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['title'] == 'Economy 2026'

    def test_patch_requires_a_field(self, author_client, draft):
        response = author_client.patch(detail_url(draft), {}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_put_replaces_both_fields(self, author_client, draft):
        response = author_client.put(
            detail_url(draft), {'title': 'New title', 'body': 'New body'}, format='json',
        )

        assert response.status_code == status.HTTP_200_OK
        draft.refresh_from_db()
        assert (draft.title, draft.body) == ('New title', 'New body')

    def test_other_users_cannot_edit(self, client_for, draft, editor):
        response = client_for(editor).patch(detail_url(draft), {'title': 'Mine now'}, format='json')

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.data['error']['code'] == 'PERMISSION_DENIED'

    def test_edit_in_review_is_a_conflict(self, author_client, in_review):
        response = author_client.patch(detail_url(in_review), {'title': 'Sneaky'}, format='json')

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.data['error']['code'] == 'INVALID_TRANSITION'
        assert response.data['error']['details'] == {'state': 'in_review', 'action': 'edit'}

    def test_delete_draft(self, author_client, draft):
        response = author_client.delete(detail_url(draft))

        assert response.status_code == status.HTTP_204_NO_CONTENT
        assert not Article.objects.filter(id=draft.id).exists()

    def test_send_to_review(self, author_client, draft):
        response = author_client.post(f'{detail_url(draft)}send-to-review/')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['status'] == 'in_review'
        assert response.data['review_cycle'] == 1

    def test_send_to_review_twice(self, author_client, in_review):
        response = author_client.post(f'{detail_url(in_review)}send-to-review/')

        assert response.status_code == status.HTTP_409_CONFLICT


# ============================================================================
# Votes
# ============================================================================

@pytest.mark.django_db
class TestApprovals:

    def vote(self, client, article, decision='APPROVED', **extra):
        payload = {'article_id': str(article.id), 'decision': decision, **extra}
        return client.post(APPROVALS_URL, payload, format='json')

    def test_weighted_approvals_publish(self, client_for, in_review, editor, legal, director):
        first = self.vote(client_for(editor), in_review)
        assert first.status_code == status.HTTP_201_CREATED
        assert first.data['state'] == 'in_review'
        assert first.data['approval_percentage'] == '40.00'
        assert first.data['role_name'] == 'EDITOR'
        assert first.data['message'] == "Current progress: 40.00%. The article remains in review."

        self.vote(client_for(legal), in_review)
        last = self.vote(client_for(director), in_review)

        assert last.data['state'] == 'published'
        assert last.data['published'] is True
        assert last.data['approval_percentage'] == '100.00'
        assert last.data['observer_failures'] == []
        in_review.refresh_from_db()
        assert in_review.status == 'published'

    def test_rejection(self, client_for, in_review, editor):
        response = self.vote(client_for(editor), in_review, decision='rejected', comment='Sources?')

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['state'] == 'observed'
        assert ArticleVote.objects.get().comment == 'Sources?'

    def test_duplicate_vote(self, client_for, in_review, editor):
        client = client_for(editor)
        self.vote(client, in_review)

        response = self.vote(client, in_review, decision='REJECTED')

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.data['error']['code'] == 'DUPLICATE_VOTE'
        assert response.data['error']['message'] == 'EDITOR has already reviewed this article'
        assert response.data['error']['details']['state'] == 'in_review'
        assert response.data['error']['details']['review_cycle'] == 1

    def test_vote_requires_editorial_role(self, author_client, in_review):
        response = self.vote(author_client, in_review)

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.data['error']['code'] == 'ROLE_REQUIRED'
        assert not ArticleVote.objects.exists()

    def test_vote_requires_login(self, api_client, in_review):
        response = self.vote(api_client, in_review)

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_vote_on_draft(self, client_for, draft, editor):
        response = self.vote(client_for(editor), draft)

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.data['error']['code'] == 'INVALID_TRANSITION'

    def test_vote_on_missing_article(self, client_for, editor):
        response = client_for(editor).post(
            APPROVALS_URL, {'article_id': str(uuid.uuid4()), 'decision': 'APPROVED'}, format='json',
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.data['error']['code'] == 'ARTICLE_NOT_FOUND'

    @pytest.mark.parametrize('payload', [
        {'decision': 'APPROVED'},
        {'article_id': 'nope', 'decision': 'APPROVED'},
        {'article_id': str(uuid.uuid4()), 'decision': 'MAYBE'},
    ])
    def test_invalid_payload(self, client_for, editor, payload):
        response = client_for(editor).post(APPROVALS_URL, payload, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['error']['code'] == 'VALIDATION_ERROR'

    def test_history(self, client_for, author_client, in_review, editor, legal):
        self.vote(client_for(editor), in_review)
        self.vote(client_for(legal), in_review, decision='REJECTED')

        response = author_client.get(f'{detail_url(in_review)}approvals/')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['status'] == 'observed'
        assert response.data['approval_percentage'] == '40.00'
        assert response.data['approvals_in_cycle'] == 1
        assert [v['role_name'] for v in response.data['votes']] == ['LEGAL', 'EDITOR']
        assert response.data['votes'][0]['decision'] == 'REJECTED'


# ============================================================================
# Queues
# ============================================================================

@pytest.mark.django_db
class TestQueues:

    def test_pending_for_reviewers(self, client_for, in_review, editor):
        response = client_for(editor).get(f'{ARTICLES_URL}pending/')

        assert response.status_code == status.HTTP_200_OK
        assert [item['id'] for item in response.data['results']] == [str(in_review.id)]

    def test_pending_needs_a_role(self, author_client, in_review):
        response = author_client.get(f'{ARTICLES_URL}pending/')

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_by_author(self, author_client, draft, author):
        response = author_client.get(f'{ARTICLES_URL}author/{author.pk}/')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['count'] == 1
        assert response.data['results'][0]['status'] == 'draft'

    def test_by_author_rejects_bad_id(self, author_client):
        response = author_client.get(f'{ARTICLES_URL}author/abc/')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['error']['field'] == 'author_id'


# ============================================================================
# Request IDs
# ============================================================================

@pytest.mark.django_db
class TestRequestId:

    def test_error_envelope_carries_request_id(self, api_client, draft):
        request_id = str(uuid.uuid4())

        response = api_client.get(detail_url(draft), HTTP_X_REQUEST_ID=request_id)

        assert response['X-Request-ID'] == request_id
        assert response.data['request_id'] == request_id
