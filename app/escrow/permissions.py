"""
Permission classes for the escrow API.

- HasServiceSecret: caller presents the shared sweep secret
- IsStoreMember: authenticated user owns or works for the store in the URL
"""

from __future__ import annotations

import hmac
from typing import TYPE_CHECKING

from django.conf import settings
from rest_framework import permissions

from stores.services import StoreService

if TYPE_CHECKING:
    from rest_framework.request import Request
    from rest_framework.views import APIView

SERVICE_SECRET_HEADER = "HTTP_X_SERVICE_SECRET"


class HasServiceSecret(permissions.BasePermission):
    """
    Allows access to internal callers holding ESCROW_SWEEP_SECRET.

    The secret is read from the X-Service-Secret header, or from an
    "Authorization: Bearer <secret>" header. An unset secret denies
    everyone.
    """

    message = "Invalid service credentials."

    def has_permission(self, request: Request, view: APIView) -> bool:
        expected = settings.ESCROW_SWEEP_SECRET
        if not expected:
            return False

        presented = request.META.get(SERVICE_SECRET_HEADER, "")
        if not presented:
            scheme, _, value = request.META.get("HTTP_AUTHORIZATION", "").partition(" ")
            if scheme.lower() == "bearer":
                presented = value.strip()

        return bool(presented) and hmac.compare_digest(
            presented.encode("utf-8"), expected.encode("utf-8")
        )


class IsStoreMember(permissions.BasePermission):
    """Allows access only to members of the store named by the store_id URL kwarg."""

    message = "You do not have access to this store."

    def has_permission(self, request: Request, view: APIView) -> bool:
        store_id = view.kwargs.get("store_id")
        return StoreService.is_store_member(store_id, request.user)
