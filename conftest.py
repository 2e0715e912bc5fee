"""
Shared pytest fixtures for the Newsdesk test suite.
"""

from decimal import Decimal

import pytest
from django.core.cache import cache
from rest_framework.test import APIClient


# ============================================================================
# Isolation
# ============================================================================

@pytest.fixture(autouse=True)
def _isolate_process_state():
    """Cached listings, throttle counters, metrics and wiring are process-wide."""
    from apps.articles import wiring
    from apps.core.observability import metrics

    cache.clear()
    metrics.clear()
    wiring.reset()
    yield
    cache.clear()
    wiring.reset()


# ============================================================================
# Users and roles
# ============================================================================

@pytest.fixture
def api_client():
    """Create an API client."""
    return APIClient()


@pytest.fixture
def make_user(db):
    """Create a user, optionally holding an editorial role."""
    def _make_user(username, role=None, email=None):
        from django.contrib.auth import get_user_model
        user = get_user_model().objects.create_user(
            username=username,
            email=email if email is not None else f'{username}@example.com',
            password='testpass123',
        )
        if role is not None:
            user.staff_profile.role = role
            user.staff_profile.save()
        return user
    return _make_user


@pytest.fixture
def make_role(db):
    def _make_role(name, weight):
        from apps.core.models import EditorialRole
        return EditorialRole.objects.create(name=name, approval_weight=Decimal(weight))
    return _make_role


@pytest.fixture
def editor_role(make_role):
    return make_role('EDITOR', '40.00')


@pytest.fixture
def legal_role(make_role):
    return make_role('LEGAL', '30.00')


@pytest.fixture
def director_role(make_role):
    return make_role('DIRECTOR', '30.00')


@pytest.fixture
def author(make_user):
    return make_user('author')


@pytest.fixture
def editor(make_user, editor_role):
    return make_user('editor', role=editor_role)


@pytest.fixture
def legal(make_user, legal_role):
    return make_user('legal', role=legal_role)


@pytest.fixture
def director(make_user, director_role):
    return make_user('director', role=director_role)


# ============================================================================
# Articles
# ============================================================================

@pytest.fixture
def draft(db, author):
    from apps.articles.models import Article
    return Article.objects.create(
        title='Economy 2025',
        body='Inflation is slowing down.',
        author=author,
    )


@pytest.fixture
def in_review(draft):
    """A draft that has been sent to review once (cycle 1)."""
    from apps.articles.states import ArticleStatus
    draft.status = ArticleStatus.IN_REVIEW.value
    draft.review_cycle = 1
    draft.save()
    return draft
