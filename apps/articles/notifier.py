"""
Fan-out of article state changes to subscribers.

Observers are registered once at startup, in order, and called
synchronously after the change has been committed. An observer that raises
is logged and reported back to the caller as an ObserverFailure; the other
observers still run and the committed change is never undone.

Usage:
    notifier = StateChangeNotifier([AuditLogObserver(), EmailNotificationObserver()])
    failures = notifier.notify(article, 'in_review', 'published', message)
"""

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Protocol

from apps.articles.ledger import ArticleSnapshot

logger = logging.getLogger(__name__)


class StateChangeObserver(Protocol):
    def on_state_change(
        self,
        article: ArticleSnapshot,
        old_state: str,
        new_state: str,
        message: str,
    ) -> None:
        ...


@dataclass(frozen=True)
class ObserverFailure:
    """An observer raised while handling a state change."""
    observer: str
    article_id: str
    old_state: str
    new_state: str
    error: str


def observer_name(observer) -> str:
    return getattr(observer, 'name', None) or type(observer).__name__


class StateChangeNotifier:
    """Calls every registered observer once per state change, in order."""

    def __init__(self, observers: Optional[Iterable[StateChangeObserver]] = None):
        self._observers: List[StateChangeObserver] = []
        for observer in observers or ():
            self.subscribe(observer)

    def subscribe(self, observer: StateChangeObserver) -> None:
        if not callable(getattr(observer, 'on_state_change', None)):
            raise TypeError(f"{observer!r} has no on_state_change method")
        self._observers.append(observer)
        logger.debug("Subscribed state change observer %s", observer_name(observer))

    @property
    def observer_count(self) -> int:
        return len(self._observers)

    @property
    def observers(self) -> List[StateChangeObserver]:
        return list(self._observers)

    def notify(
        self,
        article: ArticleSnapshot,
        old_state: str,
        new_state: str,
        message: str,
    ) -> List[ObserverFailure]:
        """
        Deliver one state change to every observer.

        Returns:
            The failures, in observer order. Empty when every observer succeeded.
        """
        failures: List[ObserverFailure] = []
        for observer in self._observers:
            try:
                observer.on_state_change(article, old_state, new_state, message)
            except Exception as exc:
                name = observer_name(observer)
                logger.exception(
                    "State change observer %s failed for article %s (%s -> %s)",
                    name, article.id, old_state, new_state,
                )
                failures.append(ObserverFailure(
                    observer=name,
                    article_id=str(article.id),
                    old_state=old_state,
                    new_state=new_state,
                    error=f"{type(exc).__name__}: {exc}",
                ))
        return failures
