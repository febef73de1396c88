from django.apps import AppConfig


class AuthenticationConfig(AppConfig):
    """Users, and the profile that holds each user's current push token."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "authentication"
    verbose_name = "Users and profiles"

    def ready(self):
        from authentication import signals  # noqa: F401
