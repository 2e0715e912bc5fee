"""
Celery tasks for article workflow notifications.
"""

import logging

from celery import shared_task
from django.conf import settings
from django.core.mail import send_mail

from .models import Article

logger = logging.getLogger(__name__)


def _state_label(state: str) -> str:
    return state.replace('_', ' ')


@shared_task(bind=True, max_retries=2)
def send_state_change_email(self, article_id: str, old_state: str, new_state: str, message: str):
    """
    E-mail the author that their article changed state.

    Delivery is best-effort: SMTP failures are retried twice, then dropped.
    """
    try:
        article = Article.objects.select_related('author').get(id=article_id)
    except Article.DoesNotExist:
        logger.error("Article %s not found for state change e-mail", article_id)
        return {"error": "not_found", "article_id": article_id}

    recipient = article.author.email
    if not recipient:
        logger.info("Author of article %s has no e-mail address, skipping", article_id)
        return {"article_id": article_id, "status": "skipped"}

    subject = f"[Newsdesk] \"{article.title[:80]}\" is now {_state_label(new_state)}"
    body = (
        f"Hello {article.author.get_username()},\n\n"
        f"Your article \"{article.title}\" moved from {_state_label(old_state)} "
        f"to {_state_label(new_state)}.\n\n"
        f"{message}\n"
    )

    try:
        send_mail(subject, body, settings.DEFAULT_FROM_EMAIL, [recipient], fail_silently=False)
    except Exception as exc:
        logger.error("State change e-mail for %s failed: %s", article_id, exc)
        raise self.retry(exc=exc, countdown=60 * (self.request.retries + 1))

    return {"article_id": article_id, "status": "sent", "recipient": recipient}
