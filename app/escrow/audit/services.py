"""
AuditRecorder: the single write path into the audit trail.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from escrow.audit.models import AuditLogEntry

if TYPE_CHECKING:
    from datetime import datetime
    from uuid import UUID

logger = logging.getLogger(__name__)

# Upper bound for a single audit page
MAX_AUDIT_PAGE = 200


class AuditRecorder:
    """Append and read audit entries."""

    @staticmethod
    def record(
        action: str,
        store_id: UUID,
        target_type: str,
        target_id: UUID,
        user=None,
        metadata: dict[str, Any] | None = None,
    ) -> AuditLogEntry:
        """
        Append one audit entry.

        Anonymous users are recorded as null; the buyer side of the
        protocol has no account.
        """
        if user is not None and not getattr(user, "is_authenticated", False):
            user = None

        entry = AuditLogEntry.objects.create(
            store_id=store_id,
            user=user,
            action=action,
            target_type=target_type,
            target_id=target_id,
            metadata=metadata or {},
        )

        logger.debug(
            "Audit entry recorded",
            extra={
                "audit_action": action,
                "store_id": str(store_id),
                "target_type": target_type,
                "target_id": str(target_id),
            },
        )
        return entry

    @staticmethod
    def for_store(store_id: UUID, limit: int = 50):
        """Most recent entries of a store, newest first."""
        limit = max(1, min(limit, MAX_AUDIT_PAGE))
        return (
            AuditLogEntry.objects.filter(store_id=store_id)
            .select_related("user")
            .newest_first()[:limit]
        )

    @staticmethod
    def for_target(target_type: str, target_id: UUID):
        return AuditLogEntry.objects.filter(
            target_type=target_type, target_id=target_id
        ).order_by("created_at")

    @staticmethod
    def has_entry(
        action: str,
        target_type: str,
        target_id: UUID,
        since: datetime | None = None,
        **metadata: Any,
    ) -> bool:
        """Whether a matching entry exists, optionally recorded at or after `since`."""
        entries = AuditLogEntry.objects.filter(
            action=action, target_type=target_type, target_id=target_id
        )
        if since is not None:
            entries = entries.filter(created_at__gte=since)
        for key, value in metadata.items():
            entries = entries.filter(**{f"metadata__{key}": value})
        return entries.exists()
