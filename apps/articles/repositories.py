"""
Django ORM adapters for the approval workflow ports.

Per-article linearizability comes from three things working together:
``select_for_update`` on the article row, the
``unique_vote_per_role_per_cycle`` constraint, and one ``transaction.atomic``
block around the whole vote. Lock waits or serialization failures surface as
``OperationalError`` and are reported as PersistenceConflictError so the
engine can retry.
"""

import logging
from contextlib import contextmanager
from typing import List, Optional

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError, OperationalError, transaction
from django.utils import timezone

from apps.articles.exceptions import (
    ArticleNotFoundError,
    DuplicateVoteError,
    PersistenceConflictError,
)
from apps.articles.ledger import ArticleSnapshot, VoteRecord
from apps.articles.models import Article, ArticleVote
from apps.articles.states import VoteDecision

logger = logging.getLogger(__name__)


class DjangoArticleStore:
    """ArticleStore backed by the ``articles`` table."""

    def load(self, article_id, for_update: bool = False) -> ArticleSnapshot:
        queryset = Article.objects.all()
        if for_update:
            queryset = queryset.select_for_update()
        try:
            return queryset.get(pk=article_id).to_snapshot()
        except (Article.DoesNotExist, DjangoValidationError, ValueError):
            raise ArticleNotFoundError(article_id) from None

    def save(self, article: ArticleSnapshot) -> None:
        updated = Article.objects.filter(pk=article.id).update(
            status=article.status.value,
            approval_percentage=article.approval_percentage,
            review_cycle=article.review_cycle,
            updated_at=timezone.now(),
        )
        if not updated:
            raise ArticleNotFoundError(article.id)


class DjangoVoteLedger:
    """VoteLedger backed by the ``article_votes`` table."""

    def find_vote(self, article_id, role_id, review_cycle: int) -> Optional[VoteRecord]:
        vote = (
            ArticleVote.objects
            .filter(article_id=article_id, role_id=str(role_id), review_cycle=review_cycle)
            .first()
        )
        return vote.to_record() if vote else None

    def save(self, vote: VoteRecord) -> VoteRecord:
        try:
            # Savepoint so a constraint violation leaves the outer transaction usable
            with transaction.atomic():
                row = ArticleVote.objects.create(
                    article_id=vote.article_id,
                    voter_id=vote.voter_id,
                    voter_username=vote.voter_username,
                    role_id=vote.role_id,
                    role_name=vote.role_name,
                    role_weight=vote.role_weight,
                    decision=vote.decision.value,
                    comment=vote.comment or '',
                    review_cycle=vote.review_cycle,
                    created_at=vote.created_at,
                )
        except IntegrityError:
            logger.info(
                "Vote rejected by unique constraint: article=%s role=%s cycle=%s",
                vote.article_id, vote.role_name, vote.review_cycle,
            )
            raise DuplicateVoteError(vote.article_id, vote.role_name, vote.review_cycle) from None
        return row.to_record()

    def list_by_article(self, article_id, newest_first: bool = True) -> List[VoteRecord]:
        ordering = '-created_at' if newest_first else 'created_at'
        queryset = ArticleVote.objects.filter(article_id=article_id).order_by(ordering)
        return [vote.to_record() for vote in queryset]

    def count_approvals(self, article_id, review_cycle: int) -> int:
        return ArticleVote.objects.filter(
            article_id=article_id,
            review_cycle=review_cycle,
            decision=VoteDecision.APPROVED.value,
        ).count()


class DjangoUnitOfWork:
    """One database transaction per article operation."""

    @contextmanager
    def atomic(self, article_id):
        try:
            with transaction.atomic():
                yield
        except OperationalError as exc:
            logger.warning("Concurrent write on article %s: %s", article_id, exc)
            raise PersistenceConflictError(article_id, reason=str(exc)) from exc
