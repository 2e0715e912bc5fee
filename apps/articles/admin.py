"""
Admin interface for articles and their review votes.

Workflow fields are read-only here: state only changes through the
article service and the approval engine.
"""

from django.contrib import admin
from django.utils.html import format_html

from .models import Article, ArticleVote
from .states import ArticleStatus


class ArticleVoteInline(admin.TabularInline):
    model = ArticleVote
    extra = 0
    can_delete = False
    fields = ['review_cycle', 'role_name', 'role_weight', 'decision', 'voter_username', 'comment', 'created_at']
    readonly_fields = fields
    ordering = ['-review_cycle', 'created_at']

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Article)
class ArticleAdmin(admin.ModelAdmin):
    """
    Admin interface for Article model.
    """

    list_display = [
        'title_short',
        'author',
        'status_badge',
        'approval_percentage',
        'review_cycle',
        'updated_at',
    ]

    list_filter = [
        'status',
        ('updated_at', admin.DateFieldListFilter),
    ]

    search_fields = [
        'title',
        'body',
        'author__username',
    ]

    readonly_fields = [
        'id',
        'status',
        'approval_percentage',
        'review_cycle',
        'created_at',
        'updated_at',
    ]

    raw_id_fields = ['author']

    fieldsets = (
        ('Content', {
            'fields': (
                'title',
                'author',
                'body',
            )
        }),
        ('Workflow', {
            'fields': (
                'status',
                'approval_percentage',
                'review_cycle',
            )
        }),
        ('System Fields', {
            'fields': (
                'id',
                'created_at',
                'updated_at',
            ),
            'classes': ('collapse',),
        }),
    )

    inlines = [ArticleVoteInline]

    ordering = ['-updated_at']

    def title_short(self, obj):
        """Display shortened title."""
        max_length = 60
        if len(obj.title) > max_length:
            return obj.title[:max_length] + '...'
        return obj.title
    title_short.short_description = 'Title'
    title_short.admin_order_field = 'title'

    def status_badge(self, obj):
        """Display workflow status with color coding."""
        colors = {
            ArticleStatus.DRAFT.value: 'gray',
            ArticleStatus.IN_REVIEW.value: 'orange',
            ArticleStatus.PUBLISHED.value: 'green',
            ArticleStatus.OBSERVED.value: 'red',
        }
        return format_html(
            '<span style="color: {}; font-weight: bold;">{}</span>',
            colors.get(obj.status, 'gray'),
            obj.get_status_display(),
        )
    status_badge.short_description = 'Status'
    status_badge.admin_order_field = 'status'


@admin.register(ArticleVote)
class ArticleVoteAdmin(admin.ModelAdmin):
    list_display = ['article', 'role_name', 'decision', 'role_weight', 'review_cycle', 'voter_username', 'created_at']
    list_filter = ['decision', 'role_name']
    search_fields = ['article__title', 'voter_username', 'role_name']
    raw_id_fields = ['article']
    readonly_fields = [
        'id', 'article', 'voter_id', 'voter_username', 'role_id', 'role_name',
        'role_weight', 'decision', 'comment', 'review_cycle', 'created_at', 'updated_at',
    ]

    def has_add_permission(self, request):
        return False
