"""
Serializers for staff users and editorial roles.
"""

from django.contrib.auth import get_user_model
from rest_framework import serializers

from .models import EditorialRole, StaffProfile

User = get_user_model()


class EditorialRoleSerializer(serializers.ModelSerializer):
    """Serializer for EditorialRole model."""

    class Meta:
        model = EditorialRole
        fields = ['id', 'name', 'description', 'approval_weight']
        read_only_fields = fields


class StaffProfileSerializer(serializers.ModelSerializer):
    """Serializer for StaffProfile with its nested role."""

    role = EditorialRoleSerializer(read_only=True)

    class Meta:
        model = StaffProfile
        fields = ['id', 'role', 'created_at', 'updated_at']
        read_only_fields = fields


class UserSerializer(serializers.ModelSerializer):
    """Serializer for User with nested profile."""

    profile = StaffProfileSerializer(source='staff_profile', read_only=True)

    class Meta:
        model = User
        fields = [
            'id',
            'username',
            'email',
            'first_name',
            'last_name',
            'profile',
        ]
        read_only_fields = fields
