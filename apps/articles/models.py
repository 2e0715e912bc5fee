"""
Article models for the Newsdesk project.
Articles under editorial review and the votes cast on them.
"""

from decimal import Decimal

from django.conf import settings
from django.db import models

from apps.articles.exceptions import UnknownStateError
from apps.articles.ledger import ArticleSnapshot, VoteRecord
from apps.articles.states import ArticleStatus, VoteDecision, quantize_percentage
from apps.core.models import BaseModel


class Article(BaseModel):
    """
    An article written by a staff member and reviewed before publication.

    ``status``, ``approval_percentage`` and ``review_cycle`` are workflow
    fields; they are only changed by the approval engine and the article
    service.
    """

    title = models.CharField(
        max_length=255,
        verbose_name='Title',
        help_text='Article headline'
    )

    body = models.TextField(
        verbose_name='Body',
        help_text='Article content'
    )

    author = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='articles',
        verbose_name='Author',
        help_text='Staff member who wrote the article'
    )

    status = models.CharField(
        max_length=20,
        choices=ArticleStatus.choices(),
        default=ArticleStatus.DRAFT.value,
        db_index=True,
        verbose_name='Status',
        help_text='Current workflow state'
    )

    approval_percentage = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=Decimal('0.00'),
        verbose_name='Approval Percentage',
        help_text='Sum of approving role weights in the current review cycle'
    )

    review_cycle = models.PositiveIntegerField(
        default=0,
        verbose_name='Review Cycle',
        help_text='Incremented each time the article is sent to review'
    )

    class Meta:
        db_table = 'articles'
        ordering = ['-updated_at']
        indexes = [
            models.Index(fields=['status', 'updated_at'], name='articles_status_updated_idx'),
            models.Index(fields=['author', 'created_at'], name='articles_author_created_idx'),
        ]
        verbose_name = 'Article'
        verbose_name_plural = 'Articles'

    def __str__(self):
        return f"{self.title[:50]} ({self.status})"

    @property
    def is_published(self):
        return self.status == ArticleStatus.PUBLISHED.value

    def _workflow_status(self) -> ArticleStatus:
        try:
            return ArticleStatus(self.status)
        except ValueError:
            raise UnknownStateError(self.status) from None

    def to_snapshot(self) -> ArticleSnapshot:
        return ArticleSnapshot(
            id=str(self.pk),
            title=self.title,
            author_id=str(self.author_id) if self.author_id is not None else None,
            status=self._workflow_status(),
            approval_percentage=quantize_percentage(self.approval_percentage),
            review_cycle=self.review_cycle,
        )


class ArticleVote(BaseModel):
    """
    A reviewer's vote on an article.

    Role name and weight are copied from the voter's editorial role when
    the vote is cast, so later role changes do not rewrite history.
    """

    article = models.ForeignKey(
        Article,
        on_delete=models.CASCADE,
        related_name='votes',
        verbose_name='Article'
    )

    voter_id = models.CharField(
        max_length=64,
        db_index=True,
        verbose_name='Voter ID'
    )

    voter_username = models.CharField(
        max_length=150,
        verbose_name='Voter Username'
    )

    role_id = models.CharField(
        max_length=64,
        verbose_name='Role ID'
    )

    role_name = models.CharField(
        max_length=50,
        verbose_name='Role Name'
    )

    role_weight = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        verbose_name='Role Weight',
        help_text='Approval weight of the role at the time of the vote'
    )

    decision = models.CharField(
        max_length=10,
        choices=VoteDecision.choices(),
        verbose_name='Decision'
    )

    comment = models.TextField(
        blank=True,
        default='',
        verbose_name='Comment'
    )

    review_cycle = models.PositiveIntegerField(
        default=0,
        verbose_name='Review Cycle'
    )

    class Meta:
        db_table = 'article_votes'
        ordering = ['-created_at']
        constraints = [
            models.UniqueConstraint(
                fields=['article', 'role_id', 'review_cycle'],
                name='unique_vote_per_role_per_cycle',
            ),
        ]
        indexes = [
            models.Index(fields=['article', 'created_at'], name='votes_article_created_idx'),
        ]
        verbose_name = 'Article Vote'
        verbose_name_plural = 'Article Votes'

    def __str__(self):
        return f"{self.role_name} {self.decision} {self.article_id}"

    def to_record(self) -> VoteRecord:
        return VoteRecord(
            id=str(self.pk),
            article_id=str(self.article_id),
            voter_id=self.voter_id,
            voter_username=self.voter_username,
            role_id=self.role_id,
            role_name=self.role_name,
            role_weight=quantize_percentage(self.role_weight),
            decision=VoteDecision(self.decision),
            review_cycle=self.review_cycle,
            created_at=self.created_at,
            comment=self.comment or None,
        )
