"""
Custom QuerySet and Manager classes for common patterns.

This module provides:
- AppendOnlyQuerySet/AppendOnlyManager: refuse bulk update() and delete()

Manager vs QuerySet:
    - QuerySet: Defines chainable methods (filter, exclude, etc.)
    - Manager: Attaches QuerySet to model, defines table-level operations

Usage:
    from core.managers import AppendOnlyManager

    class LedgerEntry(AppendOnlyMixin, models.Model):
        objects = AppendOnlyManager()

    LedgerEntry.objects.filter(...).update(amount=0)  # ImmutableRecordError

Related:
    - core.model_mixins.AppendOnlyMixin: instance-level counterpart
"""

from __future__ import annotations

from django.db import models

from core.model_mixins import ImmutableRecordError


class AppendOnlyQuerySet(models.QuerySet):
    """
    QuerySet for insert-only tables.

    Reads, filtering and creation behave normally. Bulk mutations raise
    ImmutableRecordError instead of touching the database.
    """

    def update(self, **kwargs):
        raise ImmutableRecordError(
            f"{self.model.__name__} rows are append-only and cannot be updated"
        )

    def delete(self):
        raise ImmutableRecordError(
            f"{self.model.__name__} rows are append-only and cannot be deleted"
        )

    def newest_first(self) -> AppendOnlyQuerySet:
        return self.order_by("-created_at")


class AppendOnlyManager(models.Manager.from_queryset(AppendOnlyQuerySet)):
    """Default manager for append-only models."""
