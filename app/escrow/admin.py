"""
Escrow admin configuration.

Escrow records, confirmations, ledger entries and audit entries are
read-only here: every state change must go through the escrow services so
the ledger and the audit trail stay consistent.
"""

from django.contrib import admin

from escrow.models import (
    AuditLogEntry,
    DeliveryConfirmation,
    EscrowRecord,
    LedgerAccount,
    LedgerEntry,
)


class ReadOnlyAdmin(admin.ModelAdmin):
    """Admin that lists and shows records but never writes them."""

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(EscrowRecord)
class EscrowRecordAdmin(ReadOnlyAdmin):
    list_display = [
        "id",
        "order",
        "store",
        "status",
        "amount",
        "commission_amount",
        "release_at",
        "is_due",
        "released_at",
    ]
    list_filter = ["status", "currency"]
    search_fields = ["id", "order__order_number"]
    ordering = ["-created_at"]

    fieldsets = (
        (None, {"fields": ("id", "order", "store", "status")}),
        ("Amounts", {"fields": ("amount", "currency", "commission_rate", "commission_amount")}),
        ("Timestamps", {"fields": ("held_at", "release_at", "released_at", "refunded_at")}),
        ("Metadata", {"fields": ("metadata",), "classes": ("collapse",)}),
    )


@admin.register(DeliveryConfirmation)
class DeliveryConfirmationAdmin(ReadOnlyAdmin):
    """Hashes are never displayed."""

    list_display = ["id", "order", "store", "method", "expires_at", "used_at", "confirmed_ip"]
    list_filter = ["method"]
    search_fields = ["id", "order__order_number"]
    exclude = ["token_hash", "otp_hash"]


@admin.register(LedgerAccount)
class LedgerAccountAdmin(ReadOnlyAdmin):
    list_display = ["id", "type", "owner_id", "currency", "balance_display", "is_active"]
    list_filter = ["type", "currency", "is_active"]
    search_fields = ["id", "owner_id"]

    @admin.display(description="Balance")
    def balance_display(self, obj):
        return obj.get_balance()


@admin.register(LedgerEntry)
class LedgerEntryAdmin(ReadOnlyAdmin):
    list_display = [
        "id",
        "entry_type",
        "debit_account",
        "credit_account",
        "amount",
        "currency",
        "created_at",
    ]
    list_filter = ["entry_type", "currency"]
    search_fields = ["id", "idempotency_key", "reference_id"]
    ordering = ["-created_at"]


@admin.register(AuditLogEntry)
class AuditLogEntryAdmin(ReadOnlyAdmin):
    list_display = ["id", "store", "action", "target_type", "target_id", "user", "created_at"]
    list_filter = ["action", "target_type"]
    search_fields = ["target_id", "store__name"]
    ordering = ["-created_at"]
