"""
ConfirmationIssuer: mint delivery credentials for store members.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import TYPE_CHECKING

from django.conf import settings
from django.utils import timezone

from core.services import BaseService, ServiceResult
from escrow.audit.services import AuditRecorder
from escrow.exceptions import OrderNotFoundError, StoreAccessDeniedError
from escrow.models import DeliveryConfirmation
from escrow.services.credential_hasher import CredentialHasher
from escrow.state_machines import AuditAction, ConfirmationMethod
from stores.services import StoreService

if TYPE_CHECKING:
    from uuid import UUID


@dataclass(frozen=True)
class IssuedCredential:
    """
    Raw secrets of a new credential.

    This is the only place the raw token and OTP ever exist; only their
    hashes are persisted.
    """

    token: str
    otp: str
    expires_at: datetime
    confirmation: DeliveryConfirmation


class ConfirmationIssuer(BaseService):
    """Issue single-use delivery credentials."""

    @classmethod
    def issue(
        cls,
        order_id: UUID | str,
        store_id: UUID | str,
        user,
        regenerate: bool = False,
    ) -> ServiceResult[IssuedCredential]:
        """
        Issue a token and OTP for an order.

        A new credential is always minted. With regenerate, every unused,
        unexpired credential of the order is expired first; without it,
        older credentials stay valid alongside the new one.

        Failure codes:
            STORE_ACCESS_DENIED: user is not a member of the store
            ORDER_NOT_FOUND: the order does not belong to the store
        """
        logger = cls.get_logger()

        if not StoreService.is_store_member(store_id, user):
            logger.warning(
                "Delivery token refused, not a store member",
                extra={"store_id": str(store_id), "user_id": getattr(user, "pk", None)},
            )
            return ServiceResult.failure(
                "You do not have access to this store",
                error_code=StoreAccessDeniedError.default_error_code,
            )

        order = StoreService.get_store_order(store_id, order_id)
        if order is None:
            return ServiceResult.failure(
                "Order not found",
                error_code=OrderNotFoundError.default_error_code,
            )

        token = CredentialHasher.generate_token()
        otp = CredentialHasher.generate_otp()
        now = timezone.now()
        expires_at = now + timedelta(hours=settings.DELIVERY_CONFIRMATION_TTL_HOURS)

        with cls.atomic():
            active = DeliveryConfirmation.objects.for_order(order.id).active(now)
            invalidated_count = 0
            if regenerate:
                invalidated_count = active.update(expires_at=now, updated_at=now)
                active_before = invalidated_count
            else:
                active_before = active.count()

            confirmation = DeliveryConfirmation.objects.create(
                order=order,
                store_id=order.store_id,
                issued_by=user,
                token_hash=CredentialHasher.hash(token),
                otp_hash=CredentialHasher.hash(otp),
                method=ConfirmationMethod.QR,
                expires_at=expires_at,
            )

            AuditRecorder.record(
                AuditAction.DELIVERY_TOKEN_ISSUED,
                store_id=order.store_id,
                target_type="order",
                target_id=order.id,
                user=user,
                metadata={
                    "regenerate": regenerate,
                    "invalidated_count": invalidated_count,
                    "active_before": active_before,
                    "confirmation_id": str(confirmation.id),
                },
            )

        if active_before and not regenerate:
            logger.info(
                "Several delivery credentials are valid for one order",
                extra={"order_id": str(order.id), "valid_count": active_before + 1},
            )

        logger.info(
            "Delivery credential issued",
            extra={
                "order_id": str(order.id),
                "confirmation_id": str(confirmation.id),
                "regenerate": regenerate,
                "invalidated_count": invalidated_count,
            },
        )

        return ServiceResult.success(
            IssuedCredential(
                token=token,
                otp=otp,
                expires_at=expires_at,
                confirmation=confirmation,
            )
        )
