"""
Escrow domain models.

- EscrowRecord: Buyer funds held for one order
- DeliveryConfirmation: Single-use delivery credential (hashes only)
- AuditLogEntry: Append-only audit trail (escrow.audit)
- LedgerAccount / LedgerEntry: Double-entry ledger (escrow.ledger)

Models living in subpackages are re-exported here so Django's migration
system discovers them under the escrow app.
"""

from escrow.audit.models import AuditLogEntry
from escrow.ledger.models import LedgerAccount, LedgerEntry
from escrow.models.delivery_confirmation import DeliveryConfirmation
from escrow.models.escrow_record import EscrowRecord

__all__ = [
    "AuditLogEntry",
    "DeliveryConfirmation",
    "EscrowRecord",
    "LedgerAccount",
    "LedgerEntry",
]
