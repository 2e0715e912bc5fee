"""
Persistence ports for the approval workflow, plus in-memory adapters.

The approval engine talks to three collaborators:

    ArticleStore   load/save article snapshots
    VoteLedger     one vote per (article, role, review cycle); history
    UnitOfWork     per-article critical section and transaction

``apps.articles.repositories`` implements them on the Django ORM. The
in-memory versions here back unit tests and scripts that run without a
database; they honour the same contract, including rollback of both the
article and its votes when the critical section raises.
"""

import itertools
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from datetime import datetime
from decimal import Decimal
from typing import Dict, Iterator, List, Optional, Protocol, Tuple

from apps.articles.exceptions import ArticleNotFoundError, DuplicateVoteError
from apps.articles.states import ArticleStatus, TransitionResult, VoteDecision, ZERO_PERCENT


# =============================================================================
# Value objects
# =============================================================================

@dataclass(frozen=True)
class ArticleSnapshot:
    """Immutable view of an article's workflow fields."""
    id: str
    title: str
    author_id: Optional[str]
    status: ArticleStatus
    approval_percentage: Decimal = ZERO_PERCENT
    review_cycle: int = 0

    def apply(self, result: TransitionResult) -> 'ArticleSnapshot':
        """Return a copy carrying the state and percentage from ``result``."""
        return replace(self, status=result.state, approval_percentage=result.percentage)


@dataclass(frozen=True)
class VoteRecord:
    """A single reviewer vote. Never modified once saved."""
    article_id: str
    voter_id: str
    voter_username: str
    role_id: str
    role_name: str
    role_weight: Decimal
    decision: VoteDecision
    review_cycle: int
    created_at: datetime
    comment: Optional[str] = None
    id: Optional[str] = field(default=None, compare=False)

    @property
    def approved(self) -> bool:
        return self.decision == VoteDecision.APPROVED


# =============================================================================
# Ports
# =============================================================================

class ArticleStore(Protocol):
    def load(self, article_id, for_update: bool = False) -> ArticleSnapshot:
        """Raises ArticleNotFoundError."""
        ...

    def save(self, article: ArticleSnapshot) -> None:
        ...


class VoteLedger(Protocol):
    def find_vote(self, article_id, role_id, review_cycle: int) -> Optional[VoteRecord]:
        ...

    def save(self, vote: VoteRecord) -> VoteRecord:
        """Raises DuplicateVoteError if the role already voted in this cycle."""
        ...

    def list_by_article(self, article_id, newest_first: bool = True) -> List[VoteRecord]:
        ...

    def count_approvals(self, article_id, review_cycle: int) -> int:
        ...


class UnitOfWork(Protocol):
    def atomic(self, article_id):
        """
        Context manager serialising work on one article.

        Everything saved inside the block is committed together or not at
        all. Raises PersistenceConflictError when a concurrent writer wins.
        """
        ...


# =============================================================================
# In-memory adapters
# =============================================================================

def _key(article_id) -> str:
    return str(article_id)


class InMemoryArticleStore:
    """Dict-backed ArticleStore."""

    def __init__(self):
        self._articles: Dict[str, ArticleSnapshot] = {}
        self._lock = threading.Lock()

    def add(self, article: ArticleSnapshot) -> ArticleSnapshot:
        with self._lock:
            self._articles[_key(article.id)] = article
        return article

    def load(self, article_id, for_update: bool = False) -> ArticleSnapshot:
        with self._lock:
            try:
                return self._articles[_key(article_id)]
            except KeyError:
                raise ArticleNotFoundError(article_id) from None

    def save(self, article: ArticleSnapshot) -> None:
        with self._lock:
            self._articles[_key(article.id)] = article

    def checkpoint(self, article_id) -> Optional[ArticleSnapshot]:
        with self._lock:
            return self._articles.get(_key(article_id))

    def restore(self, article_id, article: Optional[ArticleSnapshot]) -> None:
        with self._lock:
            if article is None:
                self._articles.pop(_key(article_id), None)
            else:
                self._articles[_key(article_id)] = article


class InMemoryVoteLedger:
    """
    List-backed VoteLedger.

    Votes saved in the same instant keep their insertion order, so history
    ordering is deterministic.
    """

    def __init__(self):
        self._votes: List[Tuple[int, VoteRecord]] = []
        self._sequence = itertools.count(1)
        self._lock = threading.Lock()

    def find_vote(self, article_id, role_id, review_cycle: int) -> Optional[VoteRecord]:
        key, role = _key(article_id), str(role_id)
        with self._lock:
            for _, vote in self._votes:
                if vote.article_id == key and vote.role_id == role and vote.review_cycle == review_cycle:
                    return vote
        return None

    def save(self, vote: VoteRecord) -> VoteRecord:
        with self._lock:
            for _, existing in self._votes:
                if (
                    existing.article_id == vote.article_id
                    and existing.role_id == vote.role_id
                    and existing.review_cycle == vote.review_cycle
                ):
                    raise DuplicateVoteError(vote.article_id, vote.role_name, vote.review_cycle)
            seq = next(self._sequence)
            saved = replace(vote, id=vote.id or str(seq))
            self._votes.append((seq, saved))
        return saved

    def list_by_article(self, article_id, newest_first: bool = True) -> List[VoteRecord]:
        key = _key(article_id)
        with self._lock:
            rows = [(vote.created_at, seq, vote) for seq, vote in self._votes if vote.article_id == key]
        rows.sort(key=lambda row: (row[0], row[1]), reverse=newest_first)
        return [vote for _, _, vote in rows]

    def count_approvals(self, article_id, review_cycle: int) -> int:
        return sum(
            1 for vote in self.list_by_article(article_id)
            if vote.review_cycle == review_cycle and vote.approved
        )

    def checkpoint(self, article_id) -> List[Tuple[int, VoteRecord]]:
        key = _key(article_id)
        with self._lock:
            return [row for row in self._votes if row[1].article_id == key]

    def restore(self, article_id, rows: List[Tuple[int, VoteRecord]]) -> None:
        key = _key(article_id)
        with self._lock:
            others = [row for row in self._votes if row[1].article_id != key]
            self._votes = sorted(others + list(rows), key=lambda row: row[0])


class InMemoryUnitOfWork:
    """
    Per-article lock around the whole read-modify-write.

    Different articles never contend. A lock is kept only while some caller
    holds or waits on it. If the block raises, the article and its votes are
    put back exactly as they were on entry.
    """

    def __init__(self, articles: InMemoryArticleStore, ledger: InMemoryVoteLedger):
        self._articles = articles
        self._ledger = ledger
        # article id -> [lock, number of callers holding or waiting on it]
        self._locks: Dict[str, list] = {}
        self._locks_guard = threading.Lock()

    @property
    def active_locks(self) -> int:
        with self._locks_guard:
            return len(self._locks)

    def _acquire_entry(self, key: str) -> list:
        with self._locks_guard:
            entry = self._locks.setdefault(key, [threading.Lock(), 0])
            entry[1] += 1
            return entry

    def _release_entry(self, key: str, entry: list) -> None:
        with self._locks_guard:
            entry[1] -= 1
            if entry[1] == 0:
                del self._locks[key]

    @contextmanager
    def atomic(self, article_id) -> Iterator[None]:
        key = _key(article_id)
        entry = self._acquire_entry(key)
        try:
            with entry[0]:
                article_before = self._articles.checkpoint(article_id)
                votes_before = self._ledger.checkpoint(article_id)
                try:
                    yield
                except BaseException:
                    self._articles.restore(article_id, article_before)
                    self._ledger.restore(article_id, votes_before)
                    raise
        finally:
            self._release_entry(key, entry)
