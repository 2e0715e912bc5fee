"""
Admin interface for editorial roles and staff profiles.
"""

from django.contrib import admin

from .models import EditorialRole, StaffProfile


@admin.register(EditorialRole)
class EditorialRoleAdmin(admin.ModelAdmin):
    """
    Admin interface for EditorialRole model.
    """

    list_display = ['name', 'approval_weight', 'member_count', 'updated_at']
    search_fields = ['name', 'description']
    readonly_fields = ['id', 'created_at', 'updated_at']
    ordering = ['name']

    def member_count(self, obj):
        return obj.members.count()
    member_count.short_description = 'Members'


@admin.register(StaffProfile)
class StaffProfileAdmin(admin.ModelAdmin):
    list_display = ['user', 'role', 'created_at']
    list_filter = ['role']
    search_fields = ['user__username', 'user__email']
    raw_id_fields = ['user']
    readonly_fields = ['id', 'created_at', 'updated_at']
