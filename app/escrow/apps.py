"""
Escrow app configuration.

This app provides:
- Delivery credentials (issue, confirm)
- Escrow records with held -> released / refunded transitions
- Double-entry ledger for escrowed funds
- Append-only audit trail
- Periodic auto-release sweep
"""

from django.apps import AppConfig


class EscrowConfig(AppConfig):
    """Configuration for the escrow application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "escrow"
    verbose_name = "Escrow"
