"""
Serializers for the escrow API.

Request serializers validate every payload before any storage is touched;
response serializers shape the output.

Serializer Hierarchy:
    DeliveryTokenRequestSerializer: Issue a credential (store member)
    DeliveryTokenResponseSerializer: Raw token, OTP and expiry
    ConfirmDeliverySerializer: Token, or OTP + order number
    ConfirmReceiptSerializer: Order id, or order number + phone (legacy)
    SweepReportSerializer: Counters of one auto-release pass
    AuditLogEntrySerializer: Read-only audit entries
"""

from __future__ import annotations

import re

from rest_framework import serializers

from escrow.models import AuditLogEntry
from escrow.state_machines import ConfirmationMethod

OTP_REGEX = r"^[0-9]{4,8}$"
PHONE_REGEX = r"^\+?[0-9]{8,15}$"


# =============================================================================
# Issuance
# =============================================================================


class DeliveryTokenRequestSerializer(serializers.Serializer):
    order_id = serializers.UUIDField(help_text="Order to issue a credential for")
    store_id = serializers.UUIDField(help_text="Store the order belongs to")
    regenerate = serializers.BooleanField(
        default=False,
        help_text="Expire every unused credential of the order first",
    )


class DeliveryTokenResponseSerializer(serializers.Serializer):
    token = serializers.CharField(help_text="Raw token for the QR code, shown once")
    otp = serializers.CharField(help_text="Raw 6-digit code, shown once")
    expires_at = serializers.DateTimeField()


# =============================================================================
# Confirmation
# =============================================================================


class ConfirmDeliverySerializer(serializers.Serializer):
    """
    Buyer confirmation with a credential.

    Either a token (QR), or an OTP together with the order number.
    """

    token = serializers.CharField(
        required=False,
        min_length=10,
        max_length=500,
        trim_whitespace=True,
    )
    otp = serializers.RegexField(OTP_REGEX, required=False)
    method = serializers.ChoiceField(choices=ConfirmationMethod.choices, required=False)
    order_number = serializers.CharField(required=False, min_length=3, max_length=50)

    def validate(self, attrs):
        token = attrs.get("token")
        otp = attrs.get("otp")

        if not token and not otp:
            raise serializers.ValidationError("Provide a token or an OTP.")

        uses_otp = attrs.get("method") == ConfirmationMethod.OTP or (not token and otp)
        if uses_otp:
            if not otp:
                raise serializers.ValidationError({"otp": "This field is required."})
            if not attrs.get("order_number"):
                raise serializers.ValidationError(
                    {"order_number": "Required when confirming with an OTP."}
                )
        return attrs


class ConfirmDeliveryResponseSerializer(serializers.Serializer):
    success = serializers.BooleanField()
    order_number = serializers.CharField()
    escrow_released = serializers.BooleanField()


class ConfirmReceiptSerializer(serializers.Serializer):
    """Legacy buyer confirmation by order identity."""

    order_id = serializers.UUIDField(required=False)
    order_number = serializers.CharField(required=False, min_length=3, max_length=50)
    phone = serializers.CharField(required=False, max_length=32)

    def validate_phone(self, value: str) -> str:
        phone = "".join(value.split())
        if not re.match(PHONE_REGEX, phone):
            raise serializers.ValidationError("Enter a valid phone number.")
        return phone

    def validate(self, attrs):
        if attrs.get("order_id"):
            return attrs
        if not attrs.get("order_number") or not attrs.get("phone"):
            raise serializers.ValidationError(
                "Provide order_id, or order_number together with phone."
            )
        return attrs


class ConfirmReceiptResponseSerializer(serializers.Serializer):
    success = serializers.BooleanField()
    released = serializers.BooleanField()


# =============================================================================
# Sweep & Audit
# =============================================================================


class SweepReportSerializer(serializers.Serializer):
    released_count = serializers.IntegerField()
    scanned_count = serializers.IntegerField()
    skipped_count = serializers.IntegerField()
    failed_count = serializers.IntegerField()


class AuditLogEntrySerializer(serializers.ModelSerializer):
    user_email = serializers.SerializerMethodField()

    class Meta:
        model = AuditLogEntry
        fields = [
            "id",
            "action",
            "target_type",
            "target_id",
            "user_email",
            "metadata",
            "created_at",
        ]
        read_only_fields = fields

    def get_user_email(self, obj) -> str | None:
        return obj.user.email if obj.user_id else None
