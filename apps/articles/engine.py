"""
Approval engine: applies one reviewer vote to an article.

Flow for ``submit_vote``:

    load article (locked) → duplicate-vote guard → resolve state policy →
    approve/reject → save vote → save article → commit → notify observers

Everything up to the commit runs inside ``UnitOfWork.atomic(article_id)``,
so a vote and the article change it causes are visible together or not at
all. Only PersistenceConflictError is retried; every other error is a
business-rule violation and goes straight back to the caller.

Usage:
    engine = get_approval_engine()
    outcome = engine.submit_vote(
        article_id, voter_id=str(user.pk), voter_username=user.username,
        role_id=str(role.pk), role_name=role.name, role_weight=role.approval_weight,
        decision=VoteDecision.APPROVED,
    )
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from django.utils import timezone

from apps.articles.exceptions import DuplicateVoteError, PersistenceConflictError
from apps.articles.ledger import ArticleSnapshot, ArticleStore, UnitOfWork, VoteLedger, VoteRecord
from apps.articles.notifier import ObserverFailure, StateChangeNotifier
from apps.articles.registry import StateRegistry, state_registry
from apps.articles.states import (
    PUBLICATION_THRESHOLD,
    ZERO_PERCENT,
    ArticleStatus,
    TransitionResult,
    VoteDecision,
    quantize_percentage,
)
from apps.core.exceptions import ValidationError
from apps.core.observability import (
    LogContext,
    get_logger,
    record_transition_metrics,
    record_vote_metrics,
    timed,
)

logger = get_logger(__name__, component='approval_engine')

DEFAULT_MAX_ATTEMPTS = 3


@dataclass(frozen=True)
class VoteOutcome:
    """What a successful vote did to the article."""
    article_id: str
    article_title: str
    voter_username: str
    role_name: str
    role_weight: Decimal
    decision: VoteDecision
    approval_percentage: Decimal
    previous_state: ArticleStatus
    state: ArticleStatus
    message: str
    observer_failures: Tuple[ObserverFailure, ...] = field(default=())

    @property
    def published(self) -> bool:
        return self.state == ArticleStatus.PUBLISHED

    def to_dict(self) -> Dict[str, Any]:
        return {
            'article_id': self.article_id,
            'article_title': self.article_title,
            'voter_username': self.voter_username,
            'role_name': self.role_name,
            'role_weight': str(self.role_weight),
            'decision': self.decision.value,
            'approval_percentage': str(self.approval_percentage),
            'previous_state': self.previous_state.value,
            'state': self.state.value,
            'message': self.message,
        }


@dataclass(frozen=True)
class ApprovalHistory:
    """An article with every vote ever cast on it."""
    article: ArticleSnapshot
    votes: List[VoteRecord]
    approvals_in_cycle: int


def parse_decision(value: Union[VoteDecision, str]) -> VoteDecision:
    if isinstance(value, VoteDecision):
        return value
    try:
        return VoteDecision(str(value).strip().upper())
    except ValueError:
        raise ValidationError(
            message=f"Invalid decision: {value!r}. Expected APPROVED or REJECTED",
            field='decision',
        ) from None


def parse_weight(value: Union[Decimal, int, str]) -> Decimal:
    try:
        weight = quantize_percentage(value)
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(message=f"Invalid role weight: {value!r}", field='role_weight') from None
    if not weight.is_finite() or weight < ZERO_PERCENT or weight > PUBLICATION_THRESHOLD:
        raise ValidationError(
            message=f"Role weight must be between 0 and 100, got {weight}",
            field='role_weight',
        )
    return weight


class ApprovalEngine:
    """
    Orchestrates vote submission against the workflow ports.

    Holds no per-article state of its own; serialisation of concurrent
    votes on one article is delegated to the unit of work.
    """

    def __init__(
        self,
        articles: ArticleStore,
        ledger: VoteLedger,
        unit_of_work: UnitOfWork,
        notifier: StateChangeNotifier,
        registry: StateRegistry = state_registry,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.articles = articles
        self.ledger = ledger
        self.unit_of_work = unit_of_work
        self.notifier = notifier
        self.registry = registry
        self.max_attempts = max_attempts
        self._clock = clock or timezone.now

    @timed('workflow.submit_vote')
    def submit_vote(
        self,
        article_id,
        voter_id,
        voter_username: str,
        role_id,
        role_name: str,
        role_weight: Union[Decimal, int, str],
        decision: Union[VoteDecision, str],
        comment: Optional[str] = None,
    ) -> VoteOutcome:
        """
        Record a reviewer's vote and advance the article's state.

        Raises:
            ArticleNotFoundError: no such article.
            DuplicateVoteError: the role already voted in this review cycle.
            InvalidTransitionError: the article is not in review.
            UnknownStateError: the stored state is not recognised.
            PersistenceConflictError: still conflicting after ``max_attempts``.
        """
        decision = parse_decision(decision)
        weight = parse_weight(role_weight)
        ctx = LogContext(
            component='approval_engine',
            operation='submit_vote',
            user_id=str(voter_id),
            article_id=str(article_id),
            extra={'role': role_name, 'decision': decision.value},
        )

        for attempt in range(1, self.max_attempts + 1):
            try:
                before, after, result = self._apply_vote(
                    article_id, str(voter_id), voter_username, str(role_id),
                    role_name, weight, decision, comment,
                )
                break
            except PersistenceConflictError:
                if attempt >= self.max_attempts:
                    logger.error("Vote abandoned after repeated conflicts", ctx, attempts=attempt)
                    raise
                logger.warning("Vote conflicted, retrying", ctx, attempt=attempt)

        logger.info(
            result.message, ctx,
            old_state=before.status.value,
            new_state=after.status.value,
            approval_percentage=str(after.approval_percentage),
        )
        record_vote_metrics(role_name, decision.value, published=after.status == ArticleStatus.PUBLISHED)
        record_transition_metrics(before.status.value, after.status.value)

        # Outside the transaction: observers only ever see committed state
        failures = self.notifier.notify(after, before.status.value, after.status.value, result.message)

        return VoteOutcome(
            article_id=after.id,
            article_title=after.title,
            voter_username=voter_username,
            role_name=role_name,
            role_weight=weight,
            decision=decision,
            approval_percentage=after.approval_percentage,
            previous_state=before.status,
            state=after.status,
            message=result.message,
            observer_failures=tuple(failures),
        )

    def _apply_vote(
        self,
        article_id,
        voter_id: str,
        voter_username: str,
        role_id: str,
        role_name: str,
        weight: Decimal,
        decision: VoteDecision,
        comment: Optional[str],
    ) -> Tuple[ArticleSnapshot, ArticleSnapshot, TransitionResult]:
        with self.unit_of_work.atomic(article_id):
            article = self.articles.load(article_id, for_update=True)

            if self.ledger.find_vote(article.id, role_id, article.review_cycle) is not None:
                raise DuplicateVoteError(
                    article.id, role_name, article.review_cycle, state=article.status.value,
                )

            policy = self.registry.resolve(article.status)
            if decision == VoteDecision.APPROVED:
                result = policy.on_approve(article, weight)
            else:
                result = policy.on_reject(article)

            record = VoteRecord(
                article_id=article.id,
                voter_id=voter_id,
                voter_username=voter_username,
                role_id=role_id,
                role_name=role_name,
                role_weight=weight,
                decision=decision,
                review_cycle=article.review_cycle,
                created_at=self._clock(),
                comment=comment or None,
            )
            try:
                self.ledger.save(record)
            except DuplicateVoteError as exc:
                # Lost the race to the ledger's uniqueness check
                raise DuplicateVoteError(
                    article.id, role_name, article.review_cycle, state=article.status.value,
                ) from exc

            updated = article.apply(result)
            self.articles.save(updated)

        return article, updated, result

    def approval_history(self, article_id, newest_first: bool = True) -> ApprovalHistory:
        """Every vote on the article across all review cycles."""
        article = self.articles.load(article_id)
        return ApprovalHistory(
            article=article,
            votes=self.ledger.list_by_article(article.id, newest_first=newest_first),
            approvals_in_cycle=self.ledger.count_approvals(article.id, article.review_cycle),
        )
