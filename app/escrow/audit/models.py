"""
Append-only audit trail of escrow state changes.

Every credential issuance, delivery confirmation, release, skipped release
and refund produces one AuditLogEntry. Rows are never updated or deleted:
AppendOnlyMixin refuses instance writes after insert and AppendOnlyManager
refuses bulk update()/delete().
"""

from __future__ import annotations

from django.conf import settings
from django.db import models

from core.managers import AppendOnlyManager
from core.model_mixins import AppendOnlyMixin, UUIDPrimaryKeyMixin
from escrow.state_machines import AuditAction


class AuditLogEntry(UUIDPrimaryKeyMixin, AppendOnlyMixin, models.Model):
    """
    One immutable audit record.

    Fields:
        store: Store the action belongs to (used to scope retrieval)
        user: Acting user, null for buyers and system actions
        action: What happened (AuditAction)
        target_type / target_id: The entity acted on
        metadata: Action-specific context (method, trigger, assurance, ...)
    """

    store = models.ForeignKey(
        "stores.Store",
        on_delete=models.PROTECT,
        related_name="audit_log_entries",
        help_text="Store this entry belongs to",
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="escrow_audit_entries",
        help_text="Acting user (null for buyers and system actions)",
    )
    action = models.CharField(
        max_length=50,
        choices=AuditAction.choices,
        db_index=True,
        help_text="Recorded action",
    )
    target_type = models.CharField(
        max_length=50,
        help_text="Type of the entity acted on (e.g., 'escrow_record')",
    )
    target_id = models.UUIDField(
        help_text="ID of the entity acted on",
    )
    metadata = models.JSONField(
        default=dict,
        blank=True,
        help_text="Action-specific context",
    )
    created_at = models.DateTimeField(
        auto_now_add=True,
        db_index=True,
        help_text="When the action was recorded",
    )

    objects = AppendOnlyManager()

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Audit Log Entry"
        verbose_name_plural = "Audit Log Entries"
        indexes = [
            models.Index(fields=["store", "created_at"], name="escrow_audit_store_idx"),
            models.Index(fields=["target_type", "target_id"], name="escrow_audit_target_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.action} {self.target_type}:{self.target_id}"
