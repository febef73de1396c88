"""
Authentication models.

This module defines the identity models the push pipeline relies on:
- User: Custom user model with email-based authentication
- Profile: Extended user profile data, including the device's current
  push delivery token (OneToOne with User)

Related files:
    - managers.py: Custom user manager for email-based creation
    - signals.py: Provision a profile for every new user
    - notifications.tokens: Writes Profile.fcm_token
"""

import re

from django.conf import settings
from django.contrib.auth.models import AbstractBaseUser, PermissionsMixin
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models.functions import Lower

from authentication.managers import UserManager
from core.models import BaseModel


RESERVED_USERNAMES = frozenset([
    "admin", "administrator", "root", "system", "api", "support",
    "help", "notification", "notifications", "unknown", "null",
])


def validate_username_not_reserved(value):
    """Reject usernames that collide with system identities used in audit logs."""
    if value.lower() in RESERVED_USERNAMES:
        raise ValidationError(
            f"The username '{value}' is reserved and cannot be used."
        )


def validate_username_format(value):
    """Validate username format: 3-30 chars, alphanumeric + _ + -."""
    if not re.match(r"^[a-zA-Z0-9_-]{3,30}$", value):
        raise ValidationError(
            "Username must be 3-30 characters and contain only "
            "letters, numbers, underscores, and hyphens."
        )


class User(AbstractBaseUser, PermissionsMixin):
    """
    Custom User model using email as the primary identifier.

    The string form of the primary key is the ``target_user_id`` written
    to audit records and notification payloads.
    """

    email = models.EmailField(
        unique=True,
        db_index=True,
        max_length=254,
        help_text="User's email address (primary identifier)",
    )
    is_active = models.BooleanField(
        default=True,
        help_text="Whether this user account is active. Deselect instead of deleting.",
    )
    is_staff = models.BooleanField(
        default=False,
        help_text="Whether the user can access the admin site.",
    )
    date_joined = models.DateTimeField(
        auto_now_add=True,
        help_text="When the user account was created",
    )
    updated_at = models.DateTimeField(
        auto_now=True,
        help_text="When the user record was last modified",
    )

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = []

    objects = UserManager()

    class Meta:
        verbose_name = "user"
        verbose_name_plural = "users"
        ordering = ["-date_joined"]

    def __str__(self):
        return self.email

    @property
    def identity(self) -> str:
        """Identity string used as target_user_id across the pipeline."""
        return str(self.pk)


class Profile(BaseModel):
    """
    Extended user profile data.

    Fields:
        user: OneToOne link to User (also serves as primary key)
        username: Public handle shown in notification texts
        fcm_token: Current push delivery token of the user's device

    Note:
        Profile is created via signals when a User is created. The token
        registry only ever writes fcm_token, leaving other fields untouched.
    """

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="profile",
        primary_key=True,
        help_text="User this profile belongs to",
    )
    username = models.CharField(
        max_length=30,
        blank=True,
        db_index=True,
        validators=[validate_username_format, validate_username_not_reserved],
        help_text="Unique username (3-30 chars, alphanumeric + _ + -)",
    )
    display_name = models.CharField(
        max_length=150,
        blank=True,
        help_text="Name shown to other users",
    )
    fcm_token = models.CharField(
        max_length=512,
        blank=True,
        default="",
        help_text="Current push delivery token for the user's device",
    )

    class Meta:
        db_table = "authentication_profile"
        verbose_name = "profile"
        verbose_name_plural = "profiles"
        constraints = [
            models.UniqueConstraint(
                Lower("username"),
                name="unique_username_case_insensitive",
                condition=models.Q(username__gt=""),
            ),
        ]

    def __str__(self):
        return self.username or str(self.user)

    def save(self, *args, **kwargs):
        if self.username:
            self.username = self.username.lower()
        super().save(*args, **kwargs)
