"""
Append-only audit trail for escrow actions.
"""
