"""
Article workflow API views.

Authors create and edit drafts and send them to review; reviewers holding an
editorial role vote through POST /api/approvals/. State changes go through
ArticleService and ApprovalEngine, never through serializer ``save()``.
"""

import logging

from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.core.exceptions import ValidationError, created_response, success_response
from apps.core.permissions import HasEditorialRole, require_editorial_role
from apps.core.throttling import BurstThrottle, StateChangeThrottle, VoteThrottle

from .exceptions import ArticleNotFoundError
from .serializers import (
    ApprovalHistorySerializer,
    ArticleListSerializer,
    ArticleSerializer,
    ArticleWriteSerializer,
    VoteOutcomeSerializer,
    VoteSubmitSerializer,
)
from .services import ArticleService
from .wiring import get_approval_engine

logger = logging.getLogger(__name__)

PUBLIC_ACTIONS = ('list', 'retrieve')
STATE_CHANGE_ACTIONS = ('create', 'update', 'partial_update', 'destroy', 'send_to_review')


class ArticleViewSet(viewsets.GenericViewSet):
    """
    Article API.

    GET    /api/articles/                       - Published articles (public)
    POST   /api/articles/                       - Create a draft
    GET    /api/articles/{id}/                  - Article detail
    PUT    /api/articles/{id}/                  - Replace title and body (author)
    PATCH  /api/articles/{id}/                  - Edit title or body (author)
    DELETE /api/articles/{id}/                  - Delete a draft (author)
    POST   /api/articles/{id}/send-to-review/   - Start a review cycle (author)
    GET    /api/articles/{id}/approvals/        - Vote history
    GET    /api/articles/pending/               - Articles awaiting review (reviewers)
    GET    /api/articles/author/{author_id}/    - Articles by author
    """

    serializer_class = ArticleSerializer
    service = ArticleService()

    def get_permissions(self):
        if self.action in PUBLIC_ACTIONS:
            return [AllowAny()]
        if self.action == 'pending':
            return [IsAuthenticated(), HasEditorialRole()]
        return [IsAuthenticated()]

    def get_throttles(self):
        if self.action in STATE_CHANGE_ACTIONS:
            return [StateChangeThrottle()]
        return [BurstThrottle()]

    def _paginated(self, articles, serializer_class=ArticleListSerializer):
        page = self.paginate_queryset(articles)
        if page is not None:
            return self.get_paginated_response(serializer_class(page, many=True).data)
        return Response(serializer_class(articles, many=True).data)

    # ========================================================================
    # Reads
    # ========================================================================

    def list(self, request):
        """Published articles, most recently updated first."""
        return self._paginated(self.service.list_published())

    def retrieve(self, request, pk=None):
        """Published articles are public; anything else needs a login."""
        article = self.service.get_article(pk)
        if not article.is_published and not request.user.is_authenticated:
            raise ArticleNotFoundError(pk)
        return Response(ArticleSerializer(article).data)

    @action(detail=False, methods=['get'], url_path='pending')
    def pending(self, request):
        """Articles currently in review, oldest first."""
        return self._paginated(self.service.list_pending())

    @action(detail=False, methods=['get'], url_path=r'author/(?P<author_id>[^/.]+)')
    def by_author(self, request, author_id=None):
        """Every article by one author, in any state."""
        try:
            author_id = int(author_id)
        except (TypeError, ValueError):
            raise ValidationError(message=f"Invalid author id: {author_id!r}", field='author_id') from None
        return self._paginated(self.service.list_by_author(author_id))

    @action(detail=True, methods=['get'], url_path='approvals')
    def approvals(self, request, pk=None):
        """Every vote cast on the article, newest first."""
        history = get_approval_engine().approval_history(pk)
        return Response(ApprovalHistorySerializer(history).data)

    # ========================================================================
    # Author commands
    # ========================================================================

    def create(self, request):
        serializer = ArticleWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        article = self.service.create_draft(
            request.user,
            serializer.validated_data['title'],
            serializer.validated_data['body'],
        )
        return created_response(ArticleSerializer(article).data, message="Article created as draft")

    def update(self, request, pk=None, partial=False):
        serializer = ArticleWriteSerializer(data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)
        if not serializer.validated_data:
            raise ValidationError(message="Provide a title or a body to update")
        article = self.service.update_article(
            pk,
            request.user,
            title=serializer.validated_data.get('title'),
            body=serializer.validated_data.get('body'),
        )
        return Response(ArticleSerializer(article).data)

    def partial_update(self, request, pk=None):
        return self.update(request, pk=pk, partial=True)

    def destroy(self, request, pk=None):
        self.service.delete_article(pk, request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=['post'], url_path='send-to-review')
    def send_to_review(self, request, pk=None):
        """Move a draft or observed article into a new review cycle."""
        article = self.service.send_to_review(pk, request.user)
        return success_response(
            {
                'id': str(article.id),
                'status': article.status,
                'approval_percentage': str(article.approval_percentage),
                'review_cycle': article.review_cycle,
            },
            message=f"Article sent to review (cycle {article.review_cycle})",
        )


class ApprovalView(APIView):
    """
    Submit a reviewer vote.

    POST /api/approvals/
    {
        "article_id": "<uuid>",
        "decision": "APPROVED" | "REJECTED",
        "comment": "optional"
    }

    The role name and weight come from the caller's staff profile, never
    from the request body.
    """

    permission_classes = [IsAuthenticated]
    throttle_classes = [VoteThrottle]

    def post(self, request):
        serializer = VoteSubmitSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        role = require_editorial_role(request.user)
        outcome = get_approval_engine().submit_vote(
            article_id=str(data['article_id']),
            voter_id=str(request.user.pk),
            voter_username=request.user.get_username(),
            role_id=str(role.pk),
            role_name=role.name,
            role_weight=role.approval_weight,
            decision=data['decision'],
            comment=data.get('comment') or None,
        )
        if outcome.observer_failures:
            logger.warning(
                "Vote on article %s committed with %d observer failure(s)",
                outcome.article_id, len(outcome.observer_failures),
            )
        return Response(VoteOutcomeSerializer(outcome).data, status=status.HTTP_201_CREATED)
