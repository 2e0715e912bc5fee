"""
Article workflow serializers.

Model serializers for article reads, plain serializers for request bodies
and for the workflow dataclasses (vote records, vote outcomes).
"""

from rest_framework import serializers

from .models import Article
from .services import TITLE_MAX_LENGTH
from .states import VoteDecision

COMMENT_MAX_LENGTH = 2000


# ============================================================================
# Articles
# ============================================================================

class ArticleListSerializer(serializers.ModelSerializer):
    """Compact serializer for article lists."""

    author_id = serializers.IntegerField(read_only=True)
    author_username = serializers.CharField(source='author.username', read_only=True)

    class Meta:
        model = Article
        fields = [
            'id',
            'title',
            'author_id',
            'author_username',
            'status',
            'approval_percentage',
            'updated_at',
        ]


class ArticleSerializer(serializers.ModelSerializer):
    """Full article, body included."""

    author_id = serializers.IntegerField(read_only=True)
    author_username = serializers.CharField(source='author.username', read_only=True)
    is_published = serializers.BooleanField(read_only=True)

    class Meta:
        model = Article
        fields = [
            # Identity
            'id',
            'title',
            'body',
            'author_id',
            'author_username',

            # Workflow
            'status',
            'approval_percentage',
            'review_cycle',
            'is_published',

            # Timing
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields


class ArticleWriteSerializer(serializers.Serializer):
    """Request body for create (both fields) and update (either field)."""

    title = serializers.CharField(max_length=TITLE_MAX_LENGTH, trim_whitespace=True)
    body = serializers.CharField(trim_whitespace=True)


# ============================================================================
# Votes
# ============================================================================

class VoteSubmitSerializer(serializers.Serializer):
    """Request body for POST /api/approvals/."""

    article_id = serializers.UUIDField()
    decision = serializers.CharField(max_length=10)
    comment = serializers.CharField(
        max_length=COMMENT_MAX_LENGTH,
        required=False,
        allow_blank=True,
        default='',
    )

    def validate_decision(self, value):
        normalized = value.strip().upper()
        if normalized not in VoteDecision.values():
            raise serializers.ValidationError(
                f"Expected one of {', '.join(VoteDecision.values())}"
            )
        return normalized


class VoteRecordSerializer(serializers.Serializer):
    """Serializes an ``apps.articles.ledger.VoteRecord``."""

    id = serializers.CharField()
    voter_id = serializers.CharField()
    voter_username = serializers.CharField()
    role_name = serializers.CharField()
    role_weight = serializers.DecimalField(max_digits=5, decimal_places=2)
    decision = serializers.SerializerMethodField()
    comment = serializers.CharField(allow_null=True)
    review_cycle = serializers.IntegerField()
    created_at = serializers.DateTimeField()

    def get_decision(self, obj):
        return obj.decision.value


class ApprovalHistorySerializer(serializers.Serializer):
    """Serializes an ``apps.articles.engine.ApprovalHistory``."""

    article_id = serializers.CharField(source='article.id')
    title = serializers.CharField(source='article.title')
    status = serializers.SerializerMethodField()
    approval_percentage = serializers.DecimalField(
        source='article.approval_percentage', max_digits=5, decimal_places=2,
    )
    review_cycle = serializers.IntegerField(source='article.review_cycle')
    approvals_in_cycle = serializers.IntegerField()
    votes = VoteRecordSerializer(many=True)

    def get_status(self, obj):
        return obj.article.status.value


class VoteOutcomeSerializer(serializers.Serializer):
    """Serializes an ``apps.articles.engine.VoteOutcome``."""

    article_id = serializers.CharField()
    article_title = serializers.CharField()
    voter_username = serializers.CharField()
    role_name = serializers.CharField()
    role_weight = serializers.DecimalField(max_digits=5, decimal_places=2)
    decision = serializers.SerializerMethodField()
    approval_percentage = serializers.DecimalField(max_digits=5, decimal_places=2)
    previous_state = serializers.SerializerMethodField()
    state = serializers.SerializerMethodField()
    published = serializers.BooleanField()
    message = serializers.CharField()
    observer_failures = serializers.SerializerMethodField()

    def get_decision(self, obj):
        return obj.decision.value

    def get_previous_state(self, obj):
        return obj.previous_state.value

    def get_state(self, obj):
        return obj.state.value

    def get_observer_failures(self, obj):
        return [failure.observer for failure in obj.observer_failures]
