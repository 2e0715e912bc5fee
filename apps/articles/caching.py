"""
Cache keys for article reads.

The published listing is cached; CacheInvalidationObserver drops it on
every state change.
"""

from django.conf import settings
from django.core.cache import cache

PUBLISHED_ARTICLES_KEY = 'articles:published'


def article_key(article_id) -> str:
    return f'articles:detail:{article_id}'


def cache_ttl() -> int:
    return getattr(settings, 'ARTICLE_CACHE_TTL', 300)


def invalidate_article(article_id) -> None:
    cache.delete_many([PUBLISHED_ARTICLES_KEY, article_key(article_id)])
