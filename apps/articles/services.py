"""
Article authoring operations.

Create, edit, delete, and send-to-review are gated by the same state
policies the approval engine uses: ``editable`` for edit and delete,
``resubmittable`` for send-to-review. Reviewer votes go through
``apps.articles.engine.ApprovalEngine`` instead.

Usage:
    service = ArticleService()
    article = service.create_draft(request.user, "Economy 2025", body)
    service.send_to_review(article.id, request.user)
"""

import logging
from contextlib import contextmanager
from typing import List, Optional

from django.core.cache import cache
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction

from apps.articles.caching import PUBLISHED_ARTICLES_KEY, article_key, cache_ttl
from apps.articles.exceptions import ArticleNotFoundError, InvalidTransitionError
from apps.articles.models import Article
from apps.articles.notifier import StateChangeNotifier
from apps.articles.registry import StateRegistry, state_registry
from apps.articles.states import ZERO_PERCENT, ArticleStatus
from apps.core.exceptions import PermissionDeniedError, ValidationError
from apps.core.observability import record_transition_metrics

logger = logging.getLogger(__name__)

TITLE_MAX_LENGTH = 255


def _clean_text(value: Optional[str], field: str, max_length: Optional[int] = None) -> str:
    text = (value or '').strip()
    if not text:
        raise ValidationError(message=f"{field.capitalize()} must not be empty", field=field)
    if max_length and len(text) > max_length:
        raise ValidationError(
            message=f"{field.capitalize()} must be at most {max_length} characters",
            field=field,
        )
    return text


class ArticleService:
    """Author-facing article operations and read queries."""

    def __init__(
        self,
        registry: StateRegistry = state_registry,
        notifier: Optional[StateChangeNotifier] = None,
    ):
        self.registry = registry
        self._notifier = notifier

    @property
    def notifier(self) -> StateChangeNotifier:
        if self._notifier is not None:
            return self._notifier
        from apps.articles.wiring import get_notifier
        return get_notifier()

    # =========================================================================
    # Commands
    # =========================================================================

    def create_draft(self, author, title: str, body: str) -> Article:
        """New article in draft at 0% approval."""
        article = Article.objects.create(
            title=_clean_text(title, 'title', TITLE_MAX_LENGTH),
            body=_clean_text(body, 'body'),
            author=author,
            status=ArticleStatus.DRAFT.value,
            approval_percentage=ZERO_PERCENT,
            review_cycle=0,
        )
        logger.info("Article %s created as draft by %s", article.id, author.get_username())
        return article

    def update_article(self, article_id, user, title: Optional[str] = None, body: Optional[str] = None) -> Article:
        """
        Edit title and/or body.

        Only the author may edit, and only while the state is editable.
        Editing an observed article returns it to draft at 0%.
        """
        with self._locked(article_id) as article:
            self._check_author(article, user, 'edit')
            policy = self.registry.resolve(article.status)
            if not policy.editable:
                raise InvalidTransitionError(article.status, 'edit')

            before = article.to_snapshot()
            if title is not None:
                article.title = _clean_text(title, 'title', TITLE_MAX_LENGTH)
            if body is not None:
                article.body = _clean_text(body, 'body')
            if article.status == ArticleStatus.OBSERVED.value:
                article.status = ArticleStatus.DRAFT.value
                article.approval_percentage = ZERO_PERCENT
            article.save()

        if before.status.value != article.status:
            self._announce(
                article, before.status.value,
                "Article was edited after review feedback and returned to draft.",
            )
        return article

    def delete_article(self, article_id, user) -> None:
        """Delete an editable article. Author only."""
        with self._locked(article_id) as article:
            self._check_author(article, user, 'delete')
            policy = self.registry.resolve(article.status)
            if not policy.editable:
                raise InvalidTransitionError(article.status, 'delete')
            article.delete()
        logger.info("Article %s deleted by %s", article_id, user.get_username())

    def send_to_review(self, article_id, user) -> Article:
        """
        Start a new review cycle.

        Allowed from any resubmittable state. Resets the approval percentage
        to 0 and increments the review cycle so every role may vote again.
        """
        with self._locked(article_id) as article:
            self._check_author(article, user, 'send_to_review')
            policy = self.registry.resolve(article.status)
            if not policy.resubmittable:
                raise InvalidTransitionError(article.status, 'send_to_review')

            old_state = article.status
            article.status = ArticleStatus.IN_REVIEW.value
            article.approval_percentage = ZERO_PERCENT
            article.review_cycle += 1
            article.save()

        self._announce(article, old_state, f"Article sent to review (cycle {article.review_cycle}).")
        return article

    # =========================================================================
    # Queries
    # =========================================================================

    def get_article(self, article_id) -> Article:
        """Published articles are served from cache; they no longer change."""
        key = article_key(article_id)
        article = cache.get(key)
        if article is not None:
            return article
        try:
            article = Article.objects.select_related('author').get(pk=article_id)
        except (Article.DoesNotExist, DjangoValidationError, ValueError):
            raise ArticleNotFoundError(article_id) from None
        if article.is_published:
            cache.set(key, article, cache_ttl())
        return article

    def list_published(self) -> List[Article]:
        articles = cache.get(PUBLISHED_ARTICLES_KEY)
        if articles is None:
            articles = list(
                Article.objects
                .select_related('author')
                .filter(status=ArticleStatus.PUBLISHED.value)
                .order_by('-updated_at')
            )
            cache.set(PUBLISHED_ARTICLES_KEY, articles, cache_ttl())
        return articles

    def list_by_author(self, author_id) -> List[Article]:
        return list(
            Article.objects
            .select_related('author')
            .filter(author_id=author_id)
            .order_by('-created_at')
        )

    def list_pending(self) -> List[Article]:
        """Articles currently awaiting reviewer votes."""
        return list(
            Article.objects
            .select_related('author')
            .filter(status=ArticleStatus.IN_REVIEW.value)
            .order_by('updated_at')
        )

    # =========================================================================
    # Helpers
    # =========================================================================

    @contextmanager
    def _locked(self, article_id):
        with transaction.atomic():
            try:
                article = Article.objects.select_for_update().get(pk=article_id)
            except (Article.DoesNotExist, DjangoValidationError, ValueError):
                raise ArticleNotFoundError(article_id) from None
            yield article

    def _check_author(self, article: Article, user, action: str):
        if article.author_id != getattr(user, 'pk', None):
            raise PermissionDeniedError(
                message=f"Only the author can {action.replace('_', ' ')} this article",
                details={"article_id": str(article.pk), "action": action},
            )

    def _announce(self, article: Article, old_state: str, message: str):
        record_transition_metrics(old_state, article.status)
        self.notifier.notify(article.to_snapshot(), old_state, article.status, message)
