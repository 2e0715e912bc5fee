"""
Request ID middleware for Newsdesk.

Every API request gets a correlation ID that is echoed back in the
``X-Request-ID`` response header, attached to error envelopes, written into
structured log lines, and forwarded to Celery tasks enqueued while the
request is being served (for example author e-mails sent after a vote).

Usage:
    MIDDLEWARE = [
        ...
        'apps.core.middleware.RequestIDMiddleware',
        ...
    ]

    from apps.core.middleware import get_request_id
    request_id = get_request_id()
"""

import logging
import threading
import uuid
from typing import Dict, Optional

from django.utils.deprecation import MiddlewareMixin

logger = logging.getLogger(__name__)

_request_context = threading.local()


def get_request_id() -> Optional[str]:
    """Return the current request ID, or None outside a request or task."""
    return getattr(_request_context, 'request_id', None)


def get_request_context() -> Dict[str, Optional[str]]:
    return {
        'request_id': getattr(_request_context, 'request_id', None),
        'user_id': getattr(_request_context, 'user_id', None),
        'path': getattr(_request_context, 'path', None),
    }


def set_request_context(request_id: str, user_id: Optional[str] = None, path: Optional[str] = None):
    _request_context.request_id = request_id
    _request_context.user_id = user_id
    _request_context.path = path


def clear_request_context():
    _request_context.request_id = None
    _request_context.user_id = None
    _request_context.path = None


def _coerce_request_id(value: Optional[str]) -> str:
    """Accept a client-supplied UUID, otherwise mint a new one."""
    if value:
        try:
            return str(uuid.UUID(value))
        except (ValueError, TypeError, AttributeError):
            logger.debug("Ignoring malformed X-Request-ID header: %r", value)
    return str(uuid.uuid4())


class RequestIDMiddleware(MiddlewareMixin):
    """
    Attach a request ID to each request and response.

    The ID is stored on ``request.request_id`` and in thread-local storage
    so that the exception handler, structured loggers, and Celery header
    helpers can read it without the request object.
    """

    REQUEST_ID_HEADER = 'HTTP_X_REQUEST_ID'
    RESPONSE_HEADER = 'X-Request-ID'

    def process_request(self, request):
        request_id = _coerce_request_id(request.META.get(self.REQUEST_ID_HEADER))

        user = getattr(request, 'user', None)
        user_id = str(user.pk) if user is not None and user.is_authenticated else None

        set_request_context(request_id, user_id=user_id, path=request.path)
        request.request_id = request_id
        return None

    def process_response(self, request, response):
        request_id = getattr(request, 'request_id', None)
        if request_id:
            response[self.RESPONSE_HEADER] = request_id

        clear_request_context()
        return response


class RequestIDFilter(logging.Filter):
    """
    Logging filter that adds ``request_id`` to every log record.

    Referenced from the ``LOGGING`` setting as
    ``{'()': 'apps.core.middleware.RequestIDFilter'}``.
    """

    def filter(self, record):
        record.request_id = get_request_id() or '-'
        return True


def celery_request_id_headers() -> Dict[str, str]:
    """
    Headers carrying the current request ID into a Celery task.

    Usage:
        task.apply_async(args=[...], headers=celery_request_id_headers())
    """
    request_id = get_request_id()
    if request_id:
        return {'request_id': request_id}
    return {}


def setup_celery_request_context(headers: Optional[Dict[str, str]]):
    """Restore the request ID inside a Celery worker, minting one if absent."""
    request_id = (headers or {}).get('request_id')
    set_request_context(request_id or str(uuid.uuid4()))
