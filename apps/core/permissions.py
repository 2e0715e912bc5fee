"""
Editorial role permissions for Newsdesk.

Maps StaffProfile.role to DRF permission classes.

Any authenticated user may write and submit articles. Voting on articles
in review requires an editorial role (EDITOR, LEGAL, ...) whose weight is
looked up here, once per request.

Usage:
    from apps.core.permissions import HasEditorialRole, get_editorial_role

    class ApprovalView(APIView):
        permission_classes = [IsAuthenticated, HasEditorialRole]
"""

import logging

from rest_framework.permissions import BasePermission

from apps.core.exceptions import ErrorCode, PermissionDeniedError

logger = logging.getLogger(__name__)


def get_editorial_role(user):
    """
    Return the user's EditorialRole, or None.

    Anonymous users and users without a profile or role get None.
    """
    if not user or not user.is_authenticated:
        return None

    from apps.core.models import StaffProfile

    profile = (
        StaffProfile.objects
        .select_related('role')
        .filter(user=user)
        .first()
    )
    if profile is None or not profile.can_review:
        return None
    return profile.role


def require_editorial_role(user):
    """
    Return the user's EditorialRole or raise PermissionDeniedError.

    Used by the approval endpoint to resolve the role name and weight the
    vote is cast with.
    """
    role = get_editorial_role(user)
    if role is None:
        username = user.get_username() if user is not None else None
        logger.info("User %s has no editorial role", username)
        raise PermissionDeniedError(
            message="An editorial role is required to review articles",
            code=ErrorCode.ROLE_REQUIRED,
        )
    return role


class HasEditorialRole(BasePermission):
    """Allow access only to users who hold an editorial role."""

    message = "An editorial role is required to review articles."

    def has_permission(self, request, view):
        if not request.user or not request.user.is_authenticated:
            return False
        return get_editorial_role(request.user) is not None

