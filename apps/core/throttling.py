"""
Rate Limiting / Throttling for Newsdesk.

Custom DRF throttle classes for the editorial endpoints.

Usage in views:
    from apps.core.throttling import VoteThrottle

    class ApprovalView(APIView):
        throttle_classes = [VoteThrottle]

Usage in settings:
    REST_FRAMEWORK = {
        'DEFAULT_THROTTLE_RATES': {
            'vote': '30/minute',          # Approval / rejection votes
            'state_change': '30/minute',  # Send-to-review, edits, deletes
            'burst': '100/minute',
        }
    }
"""

import logging

from django.core.exceptions import ImproperlyConfigured
from rest_framework.throttling import UserRateThrottle

logger = logging.getLogger(__name__)


class _DefaultRateThrottle(UserRateThrottle):
    """Falls back to ``default_rate`` when the scope is missing from settings."""

    default_rate = '60/minute'

    def get_rate(self):
        try:
            return super().get_rate()
        except ImproperlyConfigured:
            return self.default_rate


class VoteThrottle(_DefaultRateThrottle):
    """
    Throttle for reviewer votes.

    Applies to:
    - POST /api/approvals/

    Default: 30 requests/minute
    """
    scope = 'vote'
    default_rate = '30/minute'


class StateChangeThrottle(_DefaultRateThrottle):
    """
    Throttle for author operations that change an article's workflow state.

    Applies to:
    - POST /api/articles/{id}/send-to-review/
    - PUT/PATCH/DELETE /api/articles/{id}/

    Default: 30 requests/minute
    """
    scope = 'state_change'
    default_rate = '30/minute'


class BurstThrottle(_DefaultRateThrottle):
    """
    Burst throttle to prevent rapid-fire requests.

    Default: 100 requests/minute
    """
    scope = 'burst'
    default_rate = '100/minute'


# Default throttle rates to add to settings
DEFAULT_THROTTLE_RATES = {
    'vote': '30/minute',
    'state_change': '30/minute',
    'burst': '100/minute',
}
