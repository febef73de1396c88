"""
Manager for the email-keyed User model.
"""

from django.contrib.auth.models import BaseUserManager


class UserManager(BaseUserManager):
    use_in_migrations = True

    def _create_user(self, email, password, **extra_fields):
        if not email:
            raise ValueError("The Email field must be set")

        user = self.model(email=self.normalize_email(email), **extra_fields)
        if password:
            user.set_password(password)
        else:
            # Accounts created for token association only cannot log in
            user.set_unusable_password()
        user.save(using=self._db)
        return user

    def create_user(self, email, password=None, **extra_fields):
        extra_fields.setdefault("is_staff", False)
        extra_fields.setdefault("is_superuser", False)
        return self._create_user(email, password, **extra_fields)

    def create_superuser(self, email, password=None, **extra_fields):
        """
        Create a staff superuser (can trigger notifications and read the audit log).

        Raises:
            ValueError: If is_staff or is_superuser is explicitly not True
        """
        extra_fields.setdefault("is_staff", True)
        extra_fields.setdefault("is_superuser", True)

        for flag in ("is_staff", "is_superuser"):
            if extra_fields.get(flag) is not True:
                raise ValueError(f"Superuser must have {flag}=True.")

        return self._create_user(email, password, **extra_fields)
