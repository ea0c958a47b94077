"""
Tests for the email-based UserManager.
"""

import pytest

from authentication.models import User


@pytest.mark.django_db
class TestUserManager:
    def test_create_user_lowercases_email_and_hashes_password(self):
        user = User.objects.create_user(email=" Vendor@EXAMPLE.com", password="s3cret!")

        assert user.email == "vendor@example.com"
        assert user.check_password("s3cret!")
        assert user.is_staff is False

    def test_create_user_without_password_is_unusable(self):
        user = User.objects.create_user(email="nopass@example.com")

        assert user.has_usable_password() is False

    def test_create_user_requires_email(self):
        with pytest.raises(ValueError):
            User.objects.create_user(email="")

    def test_create_superuser_sets_flags(self):
        admin = User.objects.create_superuser(email="admin@example.com", password="x")

        assert admin.is_staff is True
        assert admin.is_superuser is True

    def test_create_superuser_rejects_non_staff(self):
        with pytest.raises(ValueError):
            User.objects.create_superuser(
                email="admin2@example.com", password="x", is_staff=False
            )

    def test_short_name_falls_back_to_email_local_part(self):
        user = User.objects.create_user(email="ama@example.com", full_name="")

        assert user.get_short_name() == "ama"
        assert str(user) == "ama@example.com"

    def test_natural_key_lookup_ignores_case(self):
        user = User.objects.create_user(email="staff@shop.ml", password="x")

        assert User.objects.get_by_natural_key("Staff@Shop.ML") == user
