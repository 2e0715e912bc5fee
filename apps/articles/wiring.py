"""
Startup construction of the notifier and the approval engine.

``ArticlesConfig.ready()`` builds the notifier once from
``settings.ARTICLE_STATE_OBSERVERS``. The engine is built on first use from
the Django adapters and the shared notifier.
"""

import logging
import threading
from typing import Iterable, Optional

from django.conf import settings
from django.utils.module_loading import import_string

from apps.articles.engine import DEFAULT_MAX_ATTEMPTS, ApprovalEngine
from apps.articles.notifier import StateChangeNotifier
from apps.articles.registry import state_registry

logger = logging.getLogger(__name__)

DEFAULT_OBSERVERS = [
    'apps.articles.observers.AuditLogObserver',
    'apps.articles.observers.CacheInvalidationObserver',
    'apps.articles.observers.EmailNotificationObserver',
    'apps.articles.observers.WebhookObserver',
]

_lock = threading.Lock()
_notifier: Optional[StateChangeNotifier] = None
_engine: Optional[ApprovalEngine] = None


def build_notifier(paths: Optional[Iterable[str]] = None) -> StateChangeNotifier:
    """Instantiate each observer class by dotted path, keeping the given order."""
    if paths is None:
        paths = getattr(settings, 'ARTICLE_STATE_OBSERVERS', DEFAULT_OBSERVERS)

    notifier = StateChangeNotifier()
    for path in paths:
        observer_class = import_string(path)
        notifier.subscribe(observer_class())
    logger.info("State change notifier ready with %d observer(s)", notifier.observer_count)
    return notifier


def get_notifier() -> StateChangeNotifier:
    global _notifier
    with _lock:
        if _notifier is None:
            _notifier = build_notifier()
        return _notifier


def build_engine(notifier: Optional[StateChangeNotifier] = None) -> ApprovalEngine:
    from apps.articles.repositories import DjangoArticleStore, DjangoUnitOfWork, DjangoVoteLedger

    return ApprovalEngine(
        articles=DjangoArticleStore(),
        ledger=DjangoVoteLedger(),
        unit_of_work=DjangoUnitOfWork(),
        notifier=notifier or get_notifier(),
        registry=state_registry,
        max_attempts=getattr(settings, 'APPROVAL_MAX_ATTEMPTS', DEFAULT_MAX_ATTEMPTS),
    )


def get_approval_engine() -> ApprovalEngine:
    global _engine
    notifier = get_notifier()
    with _lock:
        if _engine is None:
            _engine = build_engine(notifier)
        return _engine


def reset():
    """Forget the built notifier and engine so they are rebuilt from settings."""
    global _notifier, _engine
    with _lock:
        _notifier = None
        _engine = None
