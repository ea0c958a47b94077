"""
State machine enums and choices for escrow models.
"""

from escrow.state_machines.states import (
    Assurance,
    AuditAction,
    ConfirmationMethod,
    EscrowStatus,
    ReleaseTrigger,
)

__all__ = [
    "Assurance",
    "AuditAction",
    "ConfirmationMethod",
    "EscrowStatus",
    "ReleaseTrigger",
]
