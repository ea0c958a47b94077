"""
Model mixins providing reusable functionality for Django models.

Available Mixins:
    UUIDPrimaryKeyMixin: Use UUID as primary key
    AppendOnlyMixin: Rows may be inserted but never updated or deleted

Usage:
    from core.models import BaseModel
    from core.model_mixins import AppendOnlyMixin, UUIDPrimaryKeyMixin
    from core.managers import AppendOnlyManager

    class EscrowRecord(UUIDPrimaryKeyMixin, BaseModel):
        ...

    class AuditLogEntry(UUIDPrimaryKeyMixin, AppendOnlyMixin, models.Model):
        objects = AppendOnlyManager()
        ...

Note:
    - Always list mixins before BaseModel in inheritance
    - Mixins are abstract and don't create database tables
    - AppendOnlyMixin pairs with AppendOnlyManager (see core.managers) so that
      bulk queryset updates and deletes are refused as well
"""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

from django.db import models

if TYPE_CHECKING:
    from typing import Any


class UUIDPrimaryKeyMixin(models.Model):
    """
    Use UUID as primary key instead of auto-increment integer.

    Escrow and confirmation identifiers appear in URLs and request payloads,
    so they must not be guessable or reveal record counts.

    Fields:
        id: UUIDField as primary key (auto-generated)
    """

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
        help_text="Unique identifier for this record",
    )

    class Meta:
        abstract = True


class ImmutableRecordError(Exception):
    """Raised when code attempts to modify or delete an append-only row."""


class AppendOnlyMixin(models.Model):
    """
    Make a model insert-only.

    The first save() inserts the row. Any later save() of the same instance
    raises ImmutableRecordError, as does delete(). Corrections are made by
    appending a new row, never by editing history.

    Usage:
        entry = AuditLogEntry.objects.create(action="escrow_released", ...)
        entry.action = "other"
        entry.save()  # ImmutableRecordError
    """

    class Meta:
        abstract = True

    def save(self, *args: Any, **kwargs: Any) -> None:
        if not self._state.adding:
            raise ImmutableRecordError(
                f"{self.__class__.__name__} rows are append-only and cannot be updated"
            )
        # Django switches to UPDATE when a pk is preset, so force the INSERT
        kwargs["force_insert"] = True
        super().save(*args, **kwargs)

    def delete(self, *args: Any, **kwargs: Any):
        raise ImmutableRecordError(
            f"{self.__class__.__name__} rows are append-only and cannot be deleted"
        )
