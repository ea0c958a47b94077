"""
Escrow release engine.

Holds buyer payments per order and releases them to the store once delivery
is confirmed with a single-use credential, or when the hold period ends,
unless the order is under dispute.
"""
