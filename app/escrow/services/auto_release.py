"""
AutoReleaseSweeper: release escrows whose deadline has passed.

The sweep holds no state of its own. Due records are read in keyset
batches ordered by (release_at, id) and each one goes through the same
gated, conditional release as a buyer confirmation, so overlapping sweeps
and concurrent buyer releases settle every record exactly once.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING

from django.conf import settings
from django.db.models import Q
from django.utils import timezone

from core.services import BaseService
from escrow.exceptions import DisputeBlockedError
from escrow.models import EscrowRecord
from escrow.services.escrow_ledger import EscrowLedgerService
from escrow.state_machines import EscrowStatus, ReleaseTrigger

if TYPE_CHECKING:
    from collections.abc import Iterator
    from datetime import datetime
    from uuid import UUID

logger = logging.getLogger(__name__)


@dataclass
class SweepReport:
    released_count: int = 0
    scanned_count: int = 0
    skipped_count: int = 0
    failed_count: int = 0

    def to_dict(self) -> dict[str, int]:
        return asdict(self)


class AutoReleaseSweeper(BaseService):
    """Release every held escrow that is due, unless disputed."""

    @staticmethod
    def due(now: datetime):
        return EscrowRecord.objects.filter(
            status=EscrowStatus.HELD,
            release_at__lte=now,
        )

    @classmethod
    def run(cls, now: datetime | None = None, batch_size: int | None = None) -> SweepReport:
        """
        Sweep due escrows once.

        A disputed record is counted as skipped and stays held. A record
        that fails is logged, counted, and the sweep moves on.
        """
        now = now or timezone.now()
        batch_size = batch_size or settings.ESCROW_SWEEP_BATCH_SIZE
        report = SweepReport()

        for escrow_id in cls._iter_due_ids(now, batch_size):
            report.scanned_count += 1
            try:
                if EscrowLedgerService.release_unless_disputed(
                    escrow_id,
                    trigger=ReleaseTrigger.AUTO_RELEASE,
                ):
                    report.released_count += 1
            except DisputeBlockedError:
                report.skipped_count += 1
            except Exception:
                report.failed_count += 1
                logger.exception(
                    "Auto-release failed for escrow",
                    extra={"escrow_id": str(escrow_id)},
                )

        logger.info(
            "Auto-release sweep finished",
            extra={"as_of": now.isoformat(), **report.to_dict()},
        )
        return report

    @classmethod
    def _iter_due_ids(cls, now: datetime, batch_size: int) -> Iterator[UUID]:
        # Keyset pagination: released rows leave the result set and skipped
        # rows stay in it, so offsets would drift.
        last = None
        while True:
            queryset = cls.due(now).order_by("release_at", "id")
            if last is not None:
                queryset = queryset.filter(
                    Q(release_at__gt=last[0]) | Q(release_at=last[0], id__gt=last[1])
                )

            batch = list(queryset.values_list("release_at", "id")[:batch_size])
            for _, escrow_id in batch:
                yield escrow_id

            if len(batch) < batch_size:
                return
            last = batch[-1]
