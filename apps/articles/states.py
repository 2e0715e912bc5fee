"""
Article workflow states and their policies.

Each of the four states has exactly one policy object describing what the
state allows:

    State       editable  resubmittable  approve                    reject
    draft       yes       yes            not allowed                not allowed
    in_review   no        no             add weight, publish at 100 -> observed
    published   no        no             not allowed                not allowed
    observed    yes       yes            not allowed                not allowed

States:
    draft → in_review → published
                ↓   ↑
              observed → draft (on edit)

Policies are pure. They receive an immutable article snapshot and return a
TransitionResult; the caller persists it.

Usage:
    policy = state_registry.resolve(article.status)
    result = policy.on_approve(article, Decimal('30.00'))
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import TYPE_CHECKING, Union

from apps.articles.exceptions import InvalidTransitionError

if TYPE_CHECKING:
    from apps.articles.ledger import ArticleSnapshot


PUBLICATION_THRESHOLD = Decimal('100.00')
ZERO_PERCENT = Decimal('0.00')
_CENTS = Decimal('0.01')


def quantize_percentage(value: Union[Decimal, int, str]) -> Decimal:
    """Fixed-point percentage with two decimal places."""
    return Decimal(value).quantize(_CENTS, rounding=ROUND_HALF_UP)


class ArticleStatus(str, Enum):
    """Valid states for an article in the editorial workflow."""
    DRAFT = 'draft'
    IN_REVIEW = 'in_review'
    PUBLISHED = 'published'
    OBSERVED = 'observed'

    @classmethod
    def choices(cls):
        return [(state.value, state.label) for state in cls]

    @property
    def label(self) -> str:
        return self.value.replace('_', ' ').title()

    def __str__(self):
        return self.value


class VoteDecision(str, Enum):
    """A reviewer's decision on an article in review."""
    APPROVED = 'APPROVED'
    REJECTED = 'REJECTED'

    @classmethod
    def choices(cls):
        return [(decision.value, decision.value.title()) for decision in cls]

    @classmethod
    def values(cls):
        return [decision.value for decision in cls]

    def __str__(self):
        return self.value


@dataclass(frozen=True)
class TransitionResult:
    """Outcome of a policy decision: target state, percentage, and message."""
    state: ArticleStatus
    percentage: Decimal
    message: str


class ArticleStatePolicy:
    """
    Behaviour of one article state.

    Subclasses set the flags and override the vote handlers they accept;
    the defaults refuse the action.
    """

    status: ArticleStatus
    editable = False
    resubmittable = False

    @property
    def name(self) -> str:
        return self.status.value

    def on_approve(self, article: 'ArticleSnapshot', weight: Decimal) -> TransitionResult:
        raise InvalidTransitionError(
            self.name, 'approve',
            message=f"Cannot approve an article in state {self.name}",
        )

    def on_reject(self, article: 'ArticleSnapshot') -> TransitionResult:
        raise InvalidTransitionError(
            self.name, 'reject',
            message=f"Cannot reject an article in state {self.name}",
        )

    def __repr__(self):
        return f"<{self.__class__.__name__} {self.name}>"


class DraftPolicy(ArticleStatePolicy):
    """Being written by its author. Editable and may be sent to review."""
    status = ArticleStatus.DRAFT
    editable = True
    resubmittable = True


class InReviewPolicy(ArticleStatePolicy):
    """
    Awaiting reviewer votes.

    Approvals accumulate role weights; reaching the threshold publishes.
    Overshoot (e.g. 130.00) is kept as-is. A single rejection bounces the
    article to observed without touching the percentage.
    """
    status = ArticleStatus.IN_REVIEW

    def on_approve(self, article: 'ArticleSnapshot', weight: Decimal) -> TransitionResult:
        percentage = quantize_percentage(article.approval_percentage + quantize_percentage(weight))

        if percentage >= PUBLICATION_THRESHOLD:
            return TransitionResult(
                state=ArticleStatus.PUBLISHED,
                percentage=percentage,
                message=f"Article reached {percentage}% approval and has been PUBLISHED.",
            )

        return TransitionResult(
            state=ArticleStatus.IN_REVIEW,
            percentage=percentage,
            message=f"Current progress: {percentage}%. The article remains in review.",
        )

    def on_reject(self, article: 'ArticleSnapshot') -> TransitionResult:
        return TransitionResult(
            state=ArticleStatus.OBSERVED,
            percentage=article.approval_percentage,
            message=(
                "Article was rejected and marked as observed. "
                "The author must make the requested corrections."
            ),
        )


class PublishedPolicy(ArticleStatePolicy):
    """Final. Visible to readers and no longer modifiable."""
    status = ArticleStatus.PUBLISHED

    def on_approve(self, article, weight):
        raise InvalidTransitionError(
            self.name, 'approve',
            message="Cannot approve an article that is already published",
        )

    def on_reject(self, article):
        raise InvalidTransitionError(
            self.name, 'reject',
            message="Cannot reject an article that is already published",
        )


class ObservedPolicy(ArticleStatePolicy):
    """Rejected by a reviewer. The author edits it and resubmits."""
    status = ArticleStatus.OBSERVED
    editable = True
    resubmittable = True

    def on_reject(self, article):
        raise InvalidTransitionError(
            self.name, 'reject',
            message="Article is already observed; the author must edit and resubmit it",
        )
