"""
Generation and one-way hashing of delivery credentials.

A credential is a pair of secrets:
- token: two 128-bit random hex values joined by '-' (65 characters), for QR codes
- otp: a uniformly random 6-digit code for typing

Only SHA-256 hex digests are stored. The digest is unsalted so that a
presented secret can be found by an indexed equality lookup; the token's
256 bits of entropy make that safe, and OTP lookups are always scoped to a
single order and rate limited.
"""

from __future__ import annotations

import secrets

from core.helpers import generate_token, hash_string

# Bytes of randomness in each half of the token
TOKEN_HALF_BYTES = 16

OTP_MIN = 100000
OTP_SPAN = 900000


class CredentialHasher:
    """Create and hash delivery confirmation secrets."""

    @staticmethod
    def hash(secret: str) -> str:
        """SHA-256 hex digest of a secret. Deterministic and irreversible."""
        return hash_string(secret, "sha256")

    @staticmethod
    def generate_token() -> str:
        return f"{generate_token(TOKEN_HALF_BYTES)}-{generate_token(TOKEN_HALF_BYTES)}"

    @staticmethod
    def generate_otp() -> str:
        return str(OTP_MIN + secrets.randbelow(OTP_SPAN))
