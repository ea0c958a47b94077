"""
Escrow services.

- CredentialHasher: secret generation and hashing
- ConfirmationIssuer: mint delivery credentials
- ConfirmationVerifier: shared confirmation pipeline
- EscrowLedgerService: open, release, refund
- DisputeGate: open return request check
- AutoReleaseSweeper: deadline-driven release
"""

from escrow.services.auto_release import AutoReleaseSweeper, SweepReport
from escrow.services.confirmation_issuer import ConfirmationIssuer, IssuedCredential
from escrow.services.confirmation_verifier import (
    ConfirmationOutcome,
    ConfirmationVerifier,
)
from escrow.services.credential_hasher import CredentialHasher
from escrow.services.dispute_gate import DisputeGate
from escrow.services.escrow_ledger import EscrowLedgerService

__all__ = [
    "AutoReleaseSweeper",
    "ConfirmationIssuer",
    "ConfirmationOutcome",
    "ConfirmationVerifier",
    "CredentialHasher",
    "DisputeGate",
    "EscrowLedgerService",
    "IssuedCredential",
    "SweepReport",
]
