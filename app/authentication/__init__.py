"""
Authentication application.

Email-based user accounts for store staff and platform administrators.
API clients authenticate with JWT access tokens (djangorestframework-simplejwt).

Usage:
    from authentication.models import User
"""
