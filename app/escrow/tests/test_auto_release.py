"""
Tests for AutoReleaseSweeper and the auto-release worker.

This module tests:
- Scenario A/B: due records released, disputed records skipped
- Records not yet due, or already settled, are left alone
- Batching, per-record failures, overlapping sweeps
- The Celery task returns the sweep report
"""

from datetime import timedelta

import pytest
from django.utils import timezone

from escrow.models import AuditLogEntry, EscrowRecord
from escrow.services import AutoReleaseSweeper, EscrowLedgerService
from escrow.state_machines import AuditAction, EscrowStatus
from escrow.tests.factories import EscrowRecordFactory
from escrow.workers import auto_release_due_escrows
from stores.models import ReturnStatus
from stores.tests.factories import ReturnRequestFactory


def yesterday():
    return timezone.now() - timedelta(days=1)


def status_of(record):
    return EscrowRecord.objects.get(id=record.id).status


@pytest.mark.django_db
class TestSweep:
    def test_scenario_a_releases_due_record(self):
        record = EscrowRecordFactory(release_at=yesterday())
        assert record.is_due is True

        report = AutoReleaseSweeper.run()

        assert status_of(record) == EscrowStatus.RELEASED
        assert report.released_count == 1
        assert report.scanned_count == 1
        assert EscrowRecord.objects.get(id=record.id).metadata["release_trigger"] == "auto_release"

    def test_scenario_b_skips_disputed_record(self):
        record = EscrowRecordFactory(release_at=yesterday())
        ReturnRequestFactory(order=record.order)

        report = AutoReleaseSweeper.run()

        assert status_of(record) == EscrowStatus.HELD
        assert report.released_count == 0
        assert report.skipped_count == 1
        assert AuditLogEntry.objects.filter(
            action=AuditAction.ESCROW_RELEASE_SKIPPED, target_id=record.id
        ).exists()

    def test_repeated_sweeps_audit_one_skip(self):
        record = EscrowRecordFactory(release_at=yesterday())
        ReturnRequestFactory(order=record.order)

        reports = [AutoReleaseSweeper.run() for _ in range(3)]

        assert [report.skipped_count for report in reports] == [1, 1, 1]
        assert AuditLogEntry.objects.filter(
            action=AuditAction.ESCROW_RELEASE_SKIPPED, target_id=record.id
        ).count() == 1

    def test_next_sweep_releases_after_dispute_resolved(self):
        record = EscrowRecordFactory(release_at=yesterday())
        dispute = ReturnRequestFactory(order=record.order)
        AutoReleaseSweeper.run()

        dispute.status = ReturnStatus.REFUNDED
        dispute.save()
        report = AutoReleaseSweeper.run()

        assert report.released_count == 1
        assert status_of(record) == EscrowStatus.RELEASED

    def test_not_yet_due_is_ignored(self):
        record = EscrowRecordFactory()
        assert record.is_due is False

        report = AutoReleaseSweeper.run()

        assert report.scanned_count == 0
        assert status_of(record) == EscrowStatus.HELD

    def test_explicit_now_moves_the_deadline(self):
        record = EscrowRecordFactory()

        report = AutoReleaseSweeper.run(now=timezone.now() + timedelta(days=8))

        assert report.released_count == 1
        assert status_of(record) == EscrowStatus.RELEASED

    def test_settled_records_are_not_scanned(self):
        record = EscrowRecordFactory(release_at=yesterday())
        EscrowLedgerService.refund(record.id)

        report = AutoReleaseSweeper.run()

        assert report.scanned_count == 0
        assert status_of(record) == EscrowStatus.REFUNDED

    def test_walks_every_batch(self):
        records = [EscrowRecordFactory(release_at=yesterday()) for _ in range(5)]
        ReturnRequestFactory(order=records[0].order)

        report = AutoReleaseSweeper.run(batch_size=2)

        assert report.scanned_count == 5
        assert report.released_count == 4
        assert report.skipped_count == 1

    def test_failure_is_counted_and_sweep_continues(self, mocker):
        failing = EscrowRecordFactory(release_at=timezone.now() - timedelta(days=2))
        healthy = EscrowRecordFactory(release_at=yesterday())
        original = EscrowLedgerService.release_unless_disputed

        def flaky(escrow_id, trigger, actor=None):
            if escrow_id == failing.id:
                raise RuntimeError("boom")
            return original(escrow_id, trigger=trigger, actor=actor)

        mocker.patch.object(EscrowLedgerService, "release_unless_disputed", side_effect=flaky)

        report = AutoReleaseSweeper.run()

        assert report.failed_count == 1
        assert report.released_count == 1
        assert status_of(failing) == EscrowStatus.HELD
        assert status_of(healthy) == EscrowStatus.RELEASED

    def test_overlapping_sweep_releases_nothing_twice(self):
        EscrowRecordFactory(release_at=yesterday())

        first = AutoReleaseSweeper.run()
        second = AutoReleaseSweeper.run()

        assert first.released_count == 1
        assert second.released_count == 0
        assert AuditLogEntry.objects.filter(action=AuditAction.ESCROW_RELEASED).count() == 1

    def test_report_to_dict(self):
        report = AutoReleaseSweeper.run()

        assert report.to_dict() == {
            "released_count": 0,
            "scanned_count": 0,
            "skipped_count": 0,
            "failed_count": 0,
        }


@pytest.mark.django_db
class TestAutoReleaseTask:
    def test_returns_report(self):
        EscrowRecordFactory(release_at=yesterday())

        result = auto_release_due_escrows.apply().get()

        assert result["released_count"] == 1
        assert result["scanned_count"] == 1

    def test_is_scheduled_every_15_minutes(self):
        from django_celery_beat.models import PeriodicTask

        task = PeriodicTask.objects.get(name="Auto-release Due Escrows")

        assert task.task == "escrow.workers.auto_release.auto_release_due_escrows"
        assert task.interval.every == 15
        assert task.interval.period == "minutes"
        assert task.enabled
