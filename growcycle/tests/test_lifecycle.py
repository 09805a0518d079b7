"""
Tests for the tray lifecycle: due events, complete/skip, harvest and loss.
"""

from datetime import datetime, timedelta, timezone as dt_timezone
from decimal import Decimal

import pytest
from django.core.exceptions import ValidationError

from growcycle import GrowError, grow
from growcycle.exceptions import (
    ALREADY_RESOLVED,
    INVALID_LOSS_REASON,
    INVALID_QUANTITY,
    INVALID_TRANSITION,
    UNKNOWN_EVENT,
    YIELD_REQUIRED,
)
from growcycle.models import Farm, Resolution, Tray, TrayEventMark, TrayStatus
from growcycle.signals import tray_harvested, tray_lost

from .conftest import SOW


def due_keys(events):
    return [(event.day_offset, str(event.kind)) for event in events]


@pytest.fixture
def captured():
    """Collect signal sends for the duration of a test."""
    sent = []

    def receiver(sender, **kwargs):
        sent.append(kwargs)

    tray_harvested.connect(receiver, weak=False)
    tray_lost.connect(receiver, weak=False)
    yield sent
    tray_harvested.disconnect(receiver)
    tray_lost.disconnect(receiver)


# ═══════════════════════════════════════════════════════════════════
# Due events
# ═══════════════════════════════════════════════════════════════════


class TestDueEvents:
    """Tray.due_events() partitions the timeline into today and overdue."""

    def test_sow_day(self, tray):
        due = tray.due_events(SOW)

        assert due_keys(due.today) == [(0, "seed"), (0, "wet_seeds"), (0, "blackout")]
        assert due.overdue == []

    def test_before_sowing_nothing_due(self, tray):
        assert tray.due_events(SOW - timedelta(days=1)).is_empty

    def test_harvest_due_eight_days_after_sowing(self, tray):
        due = tray.due_events(SOW + timedelta(days=8))

        assert due_keys(due.today) == [(8, "harvest")]
        assert len(due.overdue) == 9

    def test_resolved_events_never_come_back(self, tray):
        tray.complete(0, "seed")
        tray.skip(0, "wet_seeds")

        due = tray.due_events(SOW + timedelta(days=1))

        assert due_keys(due.overdue) == [(0, "blackout")]

    def test_overdue_accumulates(self, tray):
        """What was due on d1 and stays unresolved is overdue on any d2 > d1."""
        d1 = SOW + timedelta(days=3)
        d2 = SOW + timedelta(days=5)
        today_d1 = set(due_keys(tray.due_events(d1).today))

        assert today_d1 == {(3, "uncover"), (3, "water")}
        assert today_d1 <= set(due_keys(tray.due_events(d2).overdue))

    def test_overdue_accumulates_minus_resolved(self, tray):
        d1 = SOW + timedelta(days=3)
        d2 = SOW + timedelta(days=5)
        today_d1 = set(due_keys(tray.due_events(d1).today))

        tray.complete(3, "uncover")

        overdue_d2 = set(due_keys(tray.due_events(d2).overdue))
        assert today_d1 - {(3, "uncover")} <= overdue_d2
        assert (3, "uncover") not in overdue_d2

    def test_terminal_tray_has_nothing_due(self, tray):
        tray.mark_lost("mold")

        assert tray.due_events(SOW + timedelta(days=4)).is_empty

    def test_grow_due_events_defaults_to_farm_today(self, tray, monkeypatch):
        monkeypatch.setattr(Farm, "today", lambda self: SOW + timedelta(days=3))

        due = grow.due_events(tray)

        assert (3, "uncover") in due_keys(due.today)

    def test_ready_date_and_phase(self, tray):
        assert tray.ready_date == SOW + timedelta(days=8)
        assert tray.current_phase(SOW + timedelta(days=1)).action_kind == "blackout"
        assert tray.elapsed_days(SOW + timedelta(days=4)) == 4


# ═══════════════════════════════════════════════════════════════════
# Complete / skip
# ═══════════════════════════════════════════════════════════════════


class TestResolve:
    """Guarded, idempotent complete() and skip()."""

    def test_complete_records_mark(self, tray, user):
        mark = tray.complete(3, "uncover", user=user)

        assert mark.resolution == Resolution.COMPLETED
        assert mark.resolved_by == "grower"
        assert tray.resolved_keys() == {(3, "uncover")}

    def test_complete_twice_already_resolved(self, tray):
        tray.complete(3, "uncover")

        with pytest.raises(GrowError) as exc:
            tray.complete(3, "uncover")
        assert exc.value.code == ALREADY_RESOLVED
        assert TrayEventMark.objects.filter(tray=tray).count() == 1

    def test_skip_after_complete_already_resolved(self, tray):
        tray.complete(4, "water")

        with pytest.raises(GrowError) as exc:
            tray.skip(4, "water")
        assert exc.value.code == ALREADY_RESOLVED

    def test_unknown_event(self, tray):
        with pytest.raises(GrowError) as exc:
            tray.complete(4, "uncover")
        assert exc.value.code == UNKNOWN_EVENT

    def test_unknown_day(self, tray):
        with pytest.raises(GrowError) as exc:
            tray.skip(42, "water")
        assert exc.value.code == UNKNOWN_EVENT

    def test_existing_mark_wins(self, tray):
        """A mark written by someone else first makes the next resolve fail cleanly."""
        TrayEventMark.objects.create(
            tray=tray, day_offset=5, action_kind="water", resolution=Resolution.SKIPPED
        )

        with pytest.raises(GrowError) as exc:
            grow.complete(tray, 5, "water")
        assert exc.value.code == ALREADY_RESOLVED

    def test_stale_prefetch_dropped_after_resolve(self, tray):
        stale = Tray.objects.prefetch_related("marks").get(pk=tray.pk)
        assert stale.resolved_keys() == set()

        stale.complete(0, "seed")

        assert (0, "seed") in stale.resolved_keys()


# ═══════════════════════════════════════════════════════════════════
# Harvest
# ═══════════════════════════════════════════════════════════════════


class TestHarvest:
    """active → harvested on completing the harvest event."""

    def test_harvest_requires_yield(self, tray):
        with pytest.raises(GrowError) as exc:
            tray.complete(8, "harvest")
        assert exc.value.code == YIELD_REQUIRED
        assert not tray.marks.exists()

    @pytest.mark.parametrize("value", ["-1", "lots"])
    def test_harvest_rejects_bad_yield(self, tray, value):
        with pytest.raises(GrowError) as exc:
            tray.complete(8, "harvest", yield_quantity=value)
        assert exc.value.code == INVALID_QUANTITY

    def test_harvest_moves_to_harvested(self, tray, captured):
        tray.complete(8, "harvest", yield_quantity="1.25")

        tray.refresh_from_db()
        assert tray.status == TrayStatus.HARVESTED
        assert tray.yield_quantity == Decimal("1.250")
        assert tray.harvested_at is not None
        assert tray.harvested_on == tray.farm.today()
        assert captured[0]["tray"].pk == tray.pk
        assert captured[0]["yield_quantity"] == Decimal("1.25")

    def test_harvest_twice_transitions_once(self, tray):
        tray.complete(8, "harvest", yield_quantity="1.0")

        with pytest.raises(GrowError) as exc:
            tray.complete(8, "harvest", yield_quantity="2.0")
        assert exc.value.code == ALREADY_RESOLVED

        tray.refresh_from_db()
        assert tray.yield_quantity == Decimal("1.000")
        assert tray.history.filter(status=TrayStatus.HARVESTED).count() == 1

    def test_no_events_after_harvest(self, tray):
        tray.complete(8, "harvest", yield_quantity="1.0")

        with pytest.raises(GrowError) as exc:
            tray.complete(4, "water")
        assert exc.value.code == INVALID_TRANSITION

    def test_harvest_cannot_be_skipped(self, tray):
        with pytest.raises(GrowError) as exc:
            tray.skip(8, "harvest")
        assert exc.value.code == INVALID_TRANSITION
        assert exc.value.details["reason"] == "harvest_cannot_be_skipped"


# ═══════════════════════════════════════════════════════════════════
# Loss
# ═══════════════════════════════════════════════════════════════════


class TestLoss:
    """active → lost with a reason from the fixed enum."""

    def test_mark_lost(self, tray, user, captured):
        grow.mark_lost(tray, "mold", notes="rack 3", user=user)

        tray.refresh_from_db()
        assert tray.status == TrayStatus.LOST
        assert tray.loss_reason == "mold"
        assert tray.loss_notes == "rack 3"
        assert tray.lost_at is not None
        assert captured[0]["reason"] == "mold"

    @pytest.mark.parametrize("reason", ["", "hail", None])
    def test_invalid_reason(self, tray, reason):
        with pytest.raises(GrowError) as exc:
            tray.mark_lost(reason)
        assert exc.value.code == INVALID_LOSS_REASON
        tray.refresh_from_db()
        assert tray.status == TrayStatus.ACTIVE

    def test_lost_is_terminal(self, tray):
        tray.mark_lost("pest")

        with pytest.raises(GrowError) as exc:
            tray.mark_lost("other")
        assert exc.value.code == INVALID_TRANSITION

        with pytest.raises(GrowError) as exc:
            tray.complete(8, "harvest", yield_quantity="1")
        assert exc.value.code == INVALID_TRANSITION

    def test_harvested_cannot_be_lost(self, tray):
        tray.complete(8, "harvest", yield_quantity="1")

        with pytest.raises(GrowError) as exc:
            tray.mark_lost("fungal")
        assert exc.value.code == INVALID_TRANSITION

    def test_mark_trays_lost_reports_per_tray(self, make_tray):
        first = make_tray()
        second = make_tray()
        second.mark_lost("mold")

        result = grow.mark_trays_lost([first, second], "contamination")

        assert len(result.succeeded) == 1
        assert result.failed[0].tray_id == second.pk
        assert result.failed[0].status == INVALID_TRANSITION


# ═══════════════════════════════════════════════════════════════════
# Skip all overdue
# ═══════════════════════════════════════════════════════════════════


class TestSkipAllOverdue:
    """Batch of independent skips."""

    def test_skips_every_overdue_event(self, tray):
        result = tray.skip_all_overdue(SOW + timedelta(days=8))

        assert result.all_ok
        assert len(result.succeeded) == 9
        due = tray.due_events(SOW + timedelta(days=8))
        assert due.overdue == []
        assert due_keys(due.today) == [(8, "harvest")]

    def test_missed_harvest_reported_not_raised(self, tray):
        result = tray.skip_all_overdue(SOW + timedelta(days=9))

        assert len(result.succeeded) == 9
        assert len(result.failed) == 1
        assert result.failed[0].kind == "harvest"
        assert result.failed[0].status == INVALID_TRANSITION

    def test_concurrent_resolution_does_not_abort_batch(self, tray):
        """An event resolved behind our back fails alone; the rest still skip."""
        stale = Tray.objects.prefetch_related("marks").get(pk=tray.pk)
        stale.resolved_keys()
        tray.complete(0, "seed")

        result = stale.skip_all_overdue(SOW + timedelta(days=4))

        assert [o.status for o in result.failed] == [ALREADY_RESOLVED]
        assert len(result.succeeded) == 4
        assert TrayEventMark.objects.filter(tray=tray, resolution=Resolution.SKIPPED).count() == 4

    def test_grow_skip_all_overdue_many_trays(self, make_tray):
        trays = [make_tray(), make_tray(sow_date=SOW + timedelta(days=1))]

        result = grow.skip_all_overdue(trays, SOW + timedelta(days=2))

        # 3 overdue on the first tray (day 0 events), 3 on the second
        assert len(result.outcomes) == 6
        assert result.all_ok

    def test_nothing_overdue(self, tray):
        result = grow.skip_all_overdue(tray, SOW)

        assert result.outcomes == []
        assert result.all_ok


# ═══════════════════════════════════════════════════════════════════
# Codes and farm calendar
# ═══════════════════════════════════════════════════════════════════


class TestTrayCodes:
    def test_code_generated_per_year(self, make_tray):
        first = make_tray()
        second = make_tray()

        assert first.code == "TR-2026-00001"
        assert second.code == "TR-2026-00002"


class TestFarmCalendar:
    """Farm-local dates."""

    def test_today_uses_farm_timezone(self, farm, monkeypatch):
        from django.utils import timezone

        farm.timezone = "America/Sao_Paulo"
        farm.save()
        # 02:00 UTC is still the previous evening in Sao Paulo
        monkeypatch.setattr(
            timezone, "now", lambda: datetime(2026, 3, 2, 2, 0, tzinfo=dt_timezone.utc)
        )

        assert farm.today() == SOW - timedelta(days=1)

    def test_unknown_timezone_rejected(self, farm):
        farm.timezone = "Mars/Olympus"

        with pytest.raises(ValidationError):
            farm.save()

    def test_seeding_weekdays(self, farm):
        farm.seeding_weekdays = [0, 2, 4]
        farm.save()

        assert farm.allows_seeding_on(SOW)
        assert not farm.allows_seeding_on(SOW + timedelta(days=1))
        assert farm.seeding_weekday_names == ["Mon", "Wed", "Fri"]

    def test_invalid_weekday_rejected(self, farm):
        farm.seeding_weekdays = [7]

        with pytest.raises(ValidationError):
            farm.save()
