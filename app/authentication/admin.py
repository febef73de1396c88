"""
Django admin configuration for authentication models.
"""

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from authentication.models import Profile, User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """Admin for the email-keyed User model."""

    list_display = ("email", "is_active", "is_staff", "date_joined")
    list_filter = ("is_active", "is_staff", "is_superuser")
    search_fields = ("email",)
    ordering = ("-date_joined",)
    readonly_fields = ("date_joined", "updated_at", "last_login")

    fieldsets = (
        (None, {"fields": ("email", "password")}),
        (
            "Permissions",
            {"fields": ("is_active", "is_staff", "is_superuser", "groups", "user_permissions")},
        ),
        ("Dates", {"fields": ("last_login", "date_joined", "updated_at")}),
    )
    add_fieldsets = (
        (None, {"classes": ("wide",), "fields": ("email", "password1", "password2")}),
    )


@admin.register(Profile)
class ProfileAdmin(admin.ModelAdmin):
    """Admin for profiles; the push token is shown but not editable."""

    list_display = ("user", "username", "display_name", "has_push_token")
    search_fields = ("user__email", "username")
    readonly_fields = ("fcm_token", "created_at", "updated_at")

    @admin.display(boolean=True, description="Push token")
    def has_push_token(self, obj):
        return bool(obj.fcm_token)
