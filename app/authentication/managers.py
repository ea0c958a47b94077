"""
Manager for email-identified accounts.

Store staff sign in with their email address. Addresses are stored
lowercased and looked up case-insensitively, so "Ama@Shop.ml" and
"ama@shop.ml" are the same account.
"""

from django.contrib.auth.models import BaseUserManager


class UserManager(BaseUserManager):
    use_in_migrations = True

    @classmethod
    def normalize_email(cls, email):
        return super().normalize_email(email).strip().lower()

    def get_by_natural_key(self, username):
        return self.get(**{f"{self.model.USERNAME_FIELD}__iexact": username})

    def _create_user(self, email, password, **extra_fields):
        if not email:
            raise ValueError("An email address is required")

        user = self.model(email=self.normalize_email(email), **extra_fields)
        # Accounts created without a password can only sign in after a reset
        if password:
            user.set_password(password)
        else:
            user.set_unusable_password()
        user.save(using=self._db)
        return user

    def create_user(self, email, password=None, **extra_fields):
        extra_fields.setdefault("is_staff", False)
        extra_fields.setdefault("is_superuser", False)
        return self._create_user(email, password, **extra_fields)

    def create_superuser(self, email, password=None, **extra_fields):
        """Create an admin-site account; both staff flags are mandatory."""
        extra_fields.setdefault("is_staff", True)
        extra_fields.setdefault("is_superuser", True)

        for flag in ("is_staff", "is_superuser"):
            if extra_fields[flag] is not True:
                raise ValueError(f"Superuser must have {flag}=True.")

        return self._create_user(email, password, **extra_fields)
