import uuid
from decimal import Decimal

import django.db.models.deletion
import django.utils.timezone
import django_fsm
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("stores", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="LedgerAccount",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        help_text="Unique identifier for this record",
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "type",
                    models.CharField(
                        choices=[
                            ("store_balance", "Store Balance"),
                            ("platform_escrow", "Platform Escrow"),
                            ("platform_revenue", "Platform Revenue"),
                            ("external_provider", "External Provider"),
                        ],
                        help_text="Category of this account",
                        max_length=50,
                    ),
                ),
                (
                    "owner_id",
                    models.UUIDField(
                        blank=True,
                        db_index=True,
                        help_text="UUID of the entity that owns this account (e.g., store ID)",
                        null=True,
                    ),
                ),
                (
                    "currency",
                    models.CharField(
                        default="xof", help_text="ISO 4217 currency code", max_length=3
                    ),
                ),
                (
                    "allow_negative",
                    models.BooleanField(
                        default=False,
                        help_text="Whether this account can have a negative balance",
                    ),
                ),
                (
                    "is_active",
                    models.BooleanField(
                        db_index=True, default=True, help_text="Whether this account is active"
                    ),
                ),
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="Timestamp when this account was created",
                    ),
                ),
            ],
            options={
                "indexes": [
                    models.Index(fields=["type", "currency"], name="escrow_acct_type_cur_idx")
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("type", "owner_id", "currency"),
                        name="escrow_unique_account_per_owner",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="LedgerEntry",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        help_text="Unique identifier for this record",
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="Timestamp when this entry was recorded",
                    ),
                ),
                (
                    "amount",
                    models.PositiveBigIntegerField(
                        help_text="Amount in smallest currency unit (always positive)"
                    ),
                ),
                (
                    "currency",
                    models.CharField(
                        default="xof", help_text="ISO 4217 currency code", max_length=3
                    ),
                ),
                (
                    "entry_type",
                    models.CharField(
                        choices=[
                            ("payment_captured", "Payment Captured"),
                            ("escrow_released", "Escrow Released"),
                            ("commission_collected", "Commission Collected"),
                            ("refund", "Refund"),
                        ],
                        help_text="Category of this entry",
                        max_length=50,
                    ),
                ),
                (
                    "reference_id",
                    models.UUIDField(
                        blank=True,
                        help_text="UUID of related business entity (e.g., escrow record ID)",
                        null=True,
                    ),
                ),
                (
                    "reference_type",
                    models.CharField(
                        blank=True,
                        help_text="Type of related entity (e.g., 'escrow_record')",
                        max_length=50,
                        null=True,
                    ),
                ),
                (
                    "description",
                    models.TextField(
                        blank=True,
                        help_text="Human-readable description of this entry",
                        null=True,
                    ),
                ),
                (
                    "metadata",
                    models.JSONField(
                        blank=True,
                        default=dict,
                        help_text="Arbitrary JSON data for extensibility",
                    ),
                ),
                (
                    "created_by",
                    models.CharField(
                        blank=True,
                        help_text="Identifier of service/user that created this entry",
                        max_length=255,
                        null=True,
                    ),
                ),
                (
                    "idempotency_key",
                    models.CharField(
                        help_text="Unique key to prevent duplicate entries",
                        max_length=255,
                        unique=True,
                    ),
                ),
                (
                    "credit_account",
                    models.ForeignKey(
                        help_text="Account money is added to",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="credit_entries",
                        to="escrow.ledgeraccount",
                    ),
                ),
                (
                    "debit_account",
                    models.ForeignKey(
                        help_text="Account money is taken from",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="debit_entries",
                        to="escrow.ledgeraccount",
                    ),
                ),
            ],
            options={
                "verbose_name_plural": "ledger entries",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(
                        fields=["reference_type", "reference_id"], name="escrow_entry_ref_idx"
                    ),
                    models.Index(fields=["entry_type"], name="escrow_entry_type_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("amount__gt", 0)),
                        name="escrow_ledger_entry_amount_positive",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="EscrowRecord",
            fields=[
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="Timestamp when this record was created",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True,
                        help_text="Timestamp when this record was last modified",
                    ),
                ),
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        help_text="Unique identifier for this record",
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "amount",
                    models.PositiveBigIntegerField(
                        help_text="Held amount in smallest currency unit"
                    ),
                ),
                (
                    "currency",
                    models.CharField(
                        default="xof",
                        help_text="ISO 4217 currency code (lowercase)",
                        max_length=3,
                    ),
                ),
                (
                    "commission_rate",
                    models.DecimalField(
                        decimal_places=4,
                        default=Decimal("0"),
                        help_text="Platform commission rate between 0 and 1",
                        max_digits=5,
                    ),
                ),
                (
                    "commission_amount",
                    models.PositiveBigIntegerField(
                        default=0,
                        help_text="Platform commission in smallest currency unit",
                    ),
                ),
                (
                    "status",
                    django_fsm.FSMField(
                        choices=[
                            ("held", "Held"),
                            ("released", "Released"),
                            ("refunded", "Refunded"),
                        ],
                        db_index=True,
                        default="held",
                        help_text="Current escrow state (managed by FSM)",
                        max_length=50,
                        protected=True,
                    ),
                ),
                (
                    "held_at",
                    models.DateTimeField(
                        default=django.utils.timezone.now,
                        help_text="When the funds were placed in escrow",
                    ),
                ),
                (
                    "release_at",
                    models.DateTimeField(
                        db_index=True,
                        help_text="Deadline after which the sweep releases the funds",
                    ),
                ),
                (
                    "released_at",
                    models.DateTimeField(
                        blank=True,
                        help_text="When the funds were released to the store",
                        null=True,
                    ),
                ),
                (
                    "refunded_at",
                    models.DateTimeField(
                        blank=True,
                        help_text="When the funds were refunded to the buyer",
                        null=True,
                    ),
                ),
                (
                    "metadata",
                    models.JSONField(
                        blank=True,
                        default=dict,
                        help_text="Release trigger and other context",
                    ),
                ),
                (
                    "order",
                    models.OneToOneField(
                        help_text="Order whose payment is held",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="escrow",
                        to="stores.order",
                    ),
                ),
                (
                    "store",
                    models.ForeignKey(
                        help_text="Store credited when the escrow is released",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="escrow_records",
                        to="stores.store",
                    ),
                ),
            ],
            options={
                "verbose_name": "Escrow Record",
                "verbose_name_plural": "Escrow Records",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["status", "release_at"], name="escrow_due_idx"),
                    models.Index(fields=["store", "status"], name="escrow_store_status_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("amount__gt", 0)),
                        name="escrow_record_amount_positive",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("commission_amount__lte", models.F("amount"))),
                        name="escrow_record_commission_within_amount",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="DeliveryConfirmation",
            fields=[
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="Timestamp when this record was created",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True,
                        help_text="Timestamp when this record was last modified",
                    ),
                ),
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        help_text="Unique identifier for this record",
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "token_hash",
                    models.CharField(
                        db_index=True,
                        help_text="SHA-256 hex digest of the token",
                        max_length=64,
                    ),
                ),
                (
                    "otp_hash",
                    models.CharField(
                        db_index=True,
                        help_text="SHA-256 hex digest of the one-time code",
                        max_length=64,
                    ),
                ),
                (
                    "method",
                    models.CharField(
                        choices=[("qr", "QR code"), ("otp", "One-time code")],
                        default="qr",
                        help_text="Presentation method",
                        max_length=10,
                    ),
                ),
                (
                    "expires_at",
                    models.DateTimeField(help_text="When the credential stops being accepted"),
                ),
                (
                    "used_at",
                    models.DateTimeField(
                        blank=True,
                        help_text="When the credential was consumed (null until then)",
                        null=True,
                    ),
                ),
                (
                    "confirmed_ip",
                    models.GenericIPAddressField(
                        blank=True,
                        help_text="Client IP of the consuming request",
                        null=True,
                    ),
                ),
                (
                    "issued_by",
                    models.ForeignKey(
                        blank=True,
                        help_text="Store member who issued the credential",
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="issued_delivery_confirmations",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "order",
                    models.ForeignKey(
                        help_text="Order this credential confirms",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="delivery_confirmations",
                        to="stores.order",
                    ),
                ),
                (
                    "store",
                    models.ForeignKey(
                        help_text="Store that issued the credential",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="delivery_confirmations",
                        to="stores.store",
                    ),
                ),
            ],
            options={
                "verbose_name": "Delivery Confirmation",
                "verbose_name_plural": "Delivery Confirmations",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(
                        fields=["order", "used_at"], name="delivery_conf_order_used_idx"
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="AuditLogEntry",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        help_text="Unique identifier for this record",
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "action",
                    models.CharField(
                        choices=[
                            ("delivery_token_issued", "Delivery token issued"),
                            ("delivery_confirmed", "Delivery confirmed"),
                            ("escrow_opened", "Escrow opened"),
                            ("escrow_released", "Escrow released"),
                            ("escrow_release_skipped", "Escrow release skipped"),
                            ("escrow_refunded", "Escrow refunded"),
                        ],
                        db_index=True,
                        help_text="Recorded action",
                        max_length=50,
                    ),
                ),
                (
                    "target_type",
                    models.CharField(
                        help_text="Type of the entity acted on (e.g., 'escrow_record')",
                        max_length=50,
                    ),
                ),
                ("target_id", models.UUIDField(help_text="ID of the entity acted on")),
                (
                    "metadata",
                    models.JSONField(
                        blank=True,
                        default=dict,
                        help_text="Action-specific context",
                    ),
                ),
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="When the action was recorded",
                    ),
                ),
                (
                    "store",
                    models.ForeignKey(
                        help_text="Store this entry belongs to",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="audit_log_entries",
                        to="stores.store",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        blank=True,
                        help_text="Acting user (null for buyers and system actions)",
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="escrow_audit_entries",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "Audit Log Entry",
                "verbose_name_plural": "Audit Log Entries",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["store", "created_at"], name="escrow_audit_store_idx"),
                    models.Index(
                        fields=["target_type", "target_id"], name="escrow_audit_target_idx"
                    ),
                ],
            },
        ),
    ]
