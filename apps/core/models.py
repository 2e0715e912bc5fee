"""
Core models for the Newsdesk project.
Base classes, editorial roles, and staff profiles.
"""

import uuid
from decimal import Decimal

from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.db.models.signals import post_save
from django.dispatch import receiver
from django.utils import timezone


class BaseModel(models.Model):
    """
    Abstract base model with common fields for all Newsdesk models.
    Provides UUID primary key and timestamp tracking.
    """
    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
        verbose_name='ID',
        help_text='Unique identifier (UUID)'
    )

    created_at = models.DateTimeField(
        default=timezone.now,
        editable=False,
        verbose_name='Created At',
        help_text='Timestamp when record was created'
    )

    updated_at = models.DateTimeField(
        auto_now=True,
        verbose_name='Updated At',
        help_text='Timestamp when record was last updated'
    )

    class Meta:
        abstract = True
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.__class__.__name__} ({self.id})"


class EditorialRole(BaseModel):
    """
    A reviewer role whose votes count toward publication.

    Provisioned by administrators; the approval workflow only reads it.
    The weight is copied onto each vote at the moment the vote is cast.
    """

    name = models.CharField(
        max_length=50,
        unique=True,
        verbose_name='Name',
        help_text='Role name shown in approval messages (e.g. EDITOR)'
    )

    description = models.CharField(
        max_length=255,
        blank=True,
        verbose_name='Description'
    )

    approval_weight = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=Decimal('0.00'),
        validators=[
            MinValueValidator(Decimal('0.00')),
            MaxValueValidator(Decimal('100.00')),
        ],
        verbose_name='Approval Weight',
        help_text='Percentage points an approval from this role contributes (0-100)'
    )

    class Meta:
        db_table = 'editorial_roles'
        verbose_name = 'Editorial Role'
        verbose_name_plural = 'Editorial Roles'
        ordering = ['name']

    def __str__(self):
        return f"{self.name} ({self.approval_weight}%)"


class StaffProfile(BaseModel):
    """
    Newsroom profile linked 1:1 with the Django user model.
    Holds the user's editorial role, if any.
    """

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='staff_profile',
        verbose_name='User',
        help_text='The associated Django user account'
    )

    role = models.ForeignKey(
        EditorialRole,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='members',
        verbose_name='Editorial Role',
        help_text='Role used when this user votes on articles'
    )

    class Meta:
        db_table = 'staff_profiles'
        verbose_name = 'Staff Profile'
        verbose_name_plural = 'Staff Profiles'

    def __str__(self):
        role_name = self.role.name if self.role_id else 'no role'
        return f"{self.user.get_username()} ({role_name})"

    @property
    def can_review(self) -> bool:
        return self.role_id is not None


@receiver(post_save, sender=settings.AUTH_USER_MODEL)
def create_staff_profile(sender, instance, created, **kwargs):
    """Auto-create StaffProfile when a new User is created."""
    if created:
        StaffProfile.objects.get_or_create(user=instance)
