"""
State and choice enums for escrow models.

These are Django TextChoices for database storage and admin integration.
EscrowStatus drives the django-fsm field on EscrowRecord.

State Machines Overview:

EscrowRecord States:
    held → released (buyer confirmation or auto-release)
    held → refunded (order refunded before release)
    released and refunded are terminal; nothing leaves them.
"""

from django.db import models


class EscrowStatus(models.TextChoices):
    """
    States for the EscrowRecord lifecycle.

    Terminal states: RELEASED, REFUNDED

    State Flow:
        HELD → RELEASED
        HELD → REFUNDED
    """

    HELD = "held", "Held"
    RELEASED = "released", "Released"
    REFUNDED = "refunded", "Refunded"


class ConfirmationMethod(models.TextChoices):
    """
    How a delivery confirmation credential was presented.

    QR: the long token, usually scanned from a QR code
    OTP: the 6-digit code, typed by the buyer
    """

    QR = "qr", "QR code"
    OTP = "otp", "One-time code"


class ReleaseTrigger(models.TextChoices):
    """What caused an escrow release attempt."""

    DELIVERY_CONFIRMED = "delivery_confirmed", "Delivery confirmed"
    RECEIPT_CONFIRMED = "receipt_confirmed", "Receipt confirmed (legacy)"
    AUTO_RELEASE = "auto_release", "Auto-release"
    MANUAL = "manual", "Manual"


class Assurance(models.TextChoices):
    """
    Strength of the proof behind a delivery confirmation.

    FULL: a single-use credential was consumed
    REDUCED: only order identity (order id, or order number and phone)
    """

    FULL = "full", "Full"
    REDUCED = "reduced", "Reduced"


class AuditAction(models.TextChoices):
    """Actions recorded in the append-only audit trail."""

    DELIVERY_TOKEN_ISSUED = "delivery_token_issued", "Delivery token issued"
    DELIVERY_CONFIRMED = "delivery_confirmed", "Delivery confirmed"
    ESCROW_OPENED = "escrow_opened", "Escrow opened"
    ESCROW_RELEASED = "escrow_released", "Escrow released"
    ESCROW_RELEASE_SKIPPED = "escrow_release_skipped", "Escrow release skipped"
    ESCROW_REFUNDED = "escrow_refunded", "Escrow refunded"
