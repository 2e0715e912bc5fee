"""
Errors raised by the article approval workflow.

Every error is a NewsdeskException so the API exception handler renders it
with a stable error code, the HTTP status below, and a ``details`` dict
naming the article's current state and the attempted action.

    ArticleNotFoundError      404  never retried
    DuplicateVoteError        409  never retried
    InvalidTransitionError    409  never retried
    UnknownStateError         500  never retried
    PersistenceConflictError  409  retried by the approval engine

Observer failures are not exceptions; see ``ObserverFailure`` in
``apps.articles.notifier``.
"""

from typing import Optional

from rest_framework import status

from apps.core.exceptions import ErrorCode, NewsdeskException


class WorkflowError(NewsdeskException):
    """Base class for approval workflow errors."""
    status_code = status.HTTP_409_CONFLICT
    error_code = ErrorCode.CONFLICT
    default_detail = "Article workflow error"

    #: Whether the approval engine may retry the whole vote submission.
    retryable = False


class ArticleNotFoundError(WorkflowError):
    status_code = status.HTTP_404_NOT_FOUND
    error_code = ErrorCode.ARTICLE_NOT_FOUND
    default_detail = "Article not found"

    def __init__(self, article_id):
        self.article_id = str(article_id)
        super().__init__(
            message=f"Article {self.article_id} not found",
            details={"article_id": self.article_id},
        )


class DuplicateVoteError(WorkflowError):
    """A role has already voted on the article in the current review cycle."""
    status_code = status.HTTP_409_CONFLICT
    error_code = ErrorCode.DUPLICATE_VOTE
    default_detail = "This role has already reviewed the article"

    def __init__(
        self,
        article_id,
        role_name: str,
        review_cycle: Optional[int] = None,
        state: Optional[str] = None,
    ):
        self.article_id = str(article_id)
        self.role_name = role_name
        self.review_cycle = review_cycle
        self.state = str(state) if state is not None else None
        details = {"article_id": self.article_id, "role": role_name}
        if review_cycle is not None:
            details["review_cycle"] = review_cycle
        if self.state is not None:
            details["state"] = self.state
        super().__init__(
            message=f"{role_name} has already reviewed this article",
            details=details,
        )


class InvalidTransitionError(WorkflowError):
    """
    The article's current state does not accept the attempted action.

    Raised by the state policies for votes and by the article service for
    edit, delete, and send-to-review.
    """
    status_code = status.HTTP_409_CONFLICT
    error_code = ErrorCode.INVALID_TRANSITION
    default_detail = "Action not allowed in the article's current state"

    def __init__(self, state: str, action: str, message: Optional[str] = None):
        self.state = str(state)
        self.action = action
        super().__init__(
            message=message or f"Cannot {action.replace('_', ' ')} an article in state {self.state}",
            details={"state": self.state, "action": action},
        )


class UnknownStateError(WorkflowError):
    """A stored state name is not one of the known article states."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code = ErrorCode.UNKNOWN_STATE
    default_detail = "Unknown article state"

    def __init__(self, state_name):
        self.state_name = str(state_name)
        super().__init__(
            message=f"Unknown article state: {self.state_name}",
            details={"state": self.state_name},
        )


class PersistenceConflictError(WorkflowError):
    """A concurrent write won the race for the same article."""
    status_code = status.HTTP_409_CONFLICT
    error_code = ErrorCode.PERSISTENCE_CONFLICT
    default_detail = "The article was modified concurrently, please retry"
    retryable = True

    def __init__(self, article_id, reason: str = ""):
        self.article_id = str(article_id)
        details = {"article_id": self.article_id}
        if reason:
            details["reason"] = reason
        super().__init__(message=self.default_detail, details=details)
