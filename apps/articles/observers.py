"""
State change observers wired into the notifier at startup.

The active list and its order come from ``settings.ARTICLE_STATE_OBSERVERS``:

    ARTICLE_STATE_OBSERVERS = [
        'apps.articles.observers.AuditLogObserver',
        'apps.articles.observers.CacheInvalidationObserver',
        'apps.articles.observers.EmailNotificationObserver',
        'apps.articles.observers.WebhookObserver',
    ]
"""

import logging
from typing import Optional

import requests
from django.conf import settings

from apps.articles.caching import invalidate_article
from apps.articles.ledger import ArticleSnapshot
from apps.core.middleware import celery_request_id_headers, get_request_id
from apps.core.observability import LogContext, get_logger

logger = logging.getLogger(__name__)


class AuditLogObserver:
    """Writes one structured audit line per state change."""

    name = 'audit_log'

    def __init__(self):
        self._audit = get_logger('newsdesk.audit', component='audit')

    def on_state_change(self, article: ArticleSnapshot, old_state: str, new_state: str, message: str):
        self._audit.info(
            "Article state changed",
            LogContext(component='audit', operation='state_change', article_id=str(article.id)),
            title=article.title,
            old_state=old_state,
            new_state=new_state,
            approval_percentage=str(article.approval_percentage),
            review_cycle=article.review_cycle,
            detail=message,
        )


class CacheInvalidationObserver:
    """Drops cached listings that may include the article."""

    name = 'cache_invalidation'

    def on_state_change(self, article: ArticleSnapshot, old_state: str, new_state: str, message: str):
        invalidate_article(article.id)


class EmailNotificationObserver:
    """
    Queues an e-mail to the author.

    Progress updates that keep the article in the same state are not
    e-mailed unless ``notify_on_progress`` is set.
    """

    name = 'email_notification'

    def __init__(self, notify_on_progress: bool = False):
        self.notify_on_progress = notify_on_progress

    def on_state_change(self, article: ArticleSnapshot, old_state: str, new_state: str, message: str):
        if old_state == new_state and not self.notify_on_progress:
            return

        from apps.articles.tasks import send_state_change_email

        send_state_change_email.apply_async(
            args=[str(article.id), old_state, new_state, message],
            headers=celery_request_id_headers(),
        )
        logger.debug("Queued state change e-mail for article %s", article.id)


class WebhookObserver:
    """
    POSTs each state change to an external event endpoint.

    Does nothing when no URL is configured. Non-2xx responses raise, which
    the notifier reports as an observer failure.
    """

    name = 'webhook'

    def __init__(self, url: Optional[str] = None, timeout: Optional[float] = None):
        self.url = url if url is not None else getattr(settings, 'ARTICLE_WEBHOOK_URL', '')
        self.timeout = timeout if timeout is not None else getattr(settings, 'ARTICLE_WEBHOOK_TIMEOUT', 5)

    def on_state_change(self, article: ArticleSnapshot, old_state: str, new_state: str, message: str):
        if not self.url:
            return

        payload = {
            'event': 'article.state_changed',
            'article_id': str(article.id),
            'title': article.title,
            'old_state': old_state,
            'new_state': new_state,
            'approval_percentage': str(article.approval_percentage),
            'review_cycle': article.review_cycle,
            'message': message,
        }
        headers = {}
        request_id = get_request_id()
        if request_id:
            headers['X-Request-ID'] = request_id

        response = requests.post(self.url, json=payload, headers=headers, timeout=self.timeout)
        response.raise_for_status()
