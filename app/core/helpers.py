"""
Helper functions for common infrastructure operations.

This module provides domain-agnostic utility functions for:
- Token generation (cryptographic)
- String hashing
- UUID validation
- HTTP request helpers (client IP extraction)

These utilities know nothing about orders, escrow or credentials; the
escrow app builds its credential hashing on top of them.

Usage:
    from core.helpers import generate_token, hash_string, get_client_ip

    token = generate_token(16)
    digest = hash_string(token)
    ip = get_client_ip(request)
"""

from __future__ import annotations

import hashlib
import secrets
import uuid
from typing import TYPE_CHECKING

from django.conf import settings

if TYPE_CHECKING:
    from django.http import HttpRequest


def generate_token(length: int = 32) -> str:
    """
    Generate a cryptographically secure random token.

    Args:
        length: Number of bytes (resulting string is 2x length in hex)

    Returns:
        Hexadecimal token string

    Example:
        token = generate_token(16)  # Returns 32-character hex string
    """
    return secrets.token_hex(length)


def hash_string(value: str, algorithm: str = "sha256") -> str:
    """
    Hash a string using the specified algorithm.

    Args:
        value: String to hash
        algorithm: Hash algorithm name accepted by hashlib.new

    Returns:
        Hexadecimal hash string
    """
    hasher = hashlib.new(algorithm)
    hasher.update(value.encode("utf-8"))
    return hasher.hexdigest()


def validate_uuid(value: str) -> bool:
    """
    Check if string is a valid UUID.

    Example:
        validate_uuid("550e8400-e29b-41d4-a716-446655440000")  # True
        validate_uuid("ORD-1001")  # False
    """
    try:
        uuid.UUID(str(value))
        return True
    except (ValueError, TypeError, AttributeError):
        return False


def get_client_ip(request: HttpRequest) -> str:
    """
    Extract client IP from request, trusting only our own proxies.

    X-Forwarded-For is client-controlled up to the first trusted hop, so
    with settings.NUM_PROXIES proxies in front of the app the client is the
    NUM_PROXIES-th address from the right. With no trusted proxy (the
    default) the header is ignored. This matches how DRF throttles
    identify clients.

    Args:
        request: Django HTTP request

    Returns:
        Client IP address string
    """
    num_proxies = getattr(settings, "NUM_PROXIES", 0) or 0
    x_forwarded_for = request.META.get("HTTP_X_FORWARDED_FOR")
    if num_proxies > 0 and x_forwarded_for:
        addrs = [addr.strip() for addr in x_forwarded_for.split(",")]
        return addrs[-min(num_proxies, len(addrs))]
    return request.META.get("REMOTE_ADDR", "")
