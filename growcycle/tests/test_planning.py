"""
Tests for the backward planner (grow.plan) and its management command.
"""

from datetime import date, timedelta
from io import StringIO

import pytest
from django.core.management import CommandError, call_command
from django.core.exceptions import ValidationError

from growcycle import GrowError, grow
from growcycle.exceptions import INVALID_RECIPE, NO_ALLOWED_SEEDING_DAY, RECIPE_NOT_LINKED
from growcycle.models import (
    Frequency,
    Recipe,
    RecipeStep,
    RequestStatus,
    SeedingRequest,
    SourceType,
    StandingOrder,
)
from growcycle.services import backward_sow_date
from growcycle.signals import seeding_requests_planned

MONDAY = date(2026, 3, 2)
FRIDAY = date(2026, 3, 13)


@pytest.fixture
def mwf_farm(farm):
    """Farm that sows Monday, Wednesday and Friday only."""
    farm.seeding_weekdays = [0, 2, 4]
    farm.save()
    return farm


@pytest.fixture
def ten_day_recipe(farm):
    r = Recipe.objects.create(farm=farm, code="broccoli-v1", name="Broccoli")
    r.set_steps(
        [
            {"sequence_order": 1, "action_kind": "seed"},
            {"sequence_order": 2, "action_kind": "blackout", "duration": 3},
            {"sequence_order": 3, "action_kind": "growing", "duration": 7},
            {"sequence_order": 4, "action_kind": "harvest"},
        ]
    )
    return r


@pytest.fixture
def make_order(farm, customer):
    """Factory: standing order delivering on the given weekdays."""

    def _make(recipe, weekdays=(4,), quantity=2, customer=customer, **kwargs):
        kwargs.setdefault("start_date", MONDAY)
        return StandingOrder.objects.create(
            farm=farm,
            customer=customer,
            recipe=recipe,
            quantity=quantity,
            delivery_weekdays=list(weekdays),
            **kwargs,
        )

    return _make


# ═══════════════════════════════════════════════════════════════════
# Backward search
# ═══════════════════════════════════════════════════════════════════


class TestBackwardSowDate:
    """Sow dates only ever move earlier."""

    def test_allowed_day_kept(self, mwf_farm):
        assert backward_sow_date(mwf_farm, MONDAY) == MONDAY

    def test_tuesday_moves_back_to_monday(self, mwf_farm):
        assert backward_sow_date(mwf_farm, MONDAY + timedelta(days=1)) == MONDAY

    def test_sunday_moves_back_to_friday(self, mwf_farm):
        sunday = MONDAY + timedelta(days=6)

        assert backward_sow_date(mwf_farm, sunday) == sunday - timedelta(days=2)

    def test_every_day_allowed_when_empty(self, farm):
        sunday = MONDAY + timedelta(days=6)

        assert backward_sow_date(farm, sunday) == sunday

    def test_lookback_exceeded(self, mwf_farm):
        with pytest.raises(GrowError) as exc:
            backward_sow_date(mwf_farm, MONDAY + timedelta(days=1), lookback_days=0)
        assert exc.value.code == NO_ALLOWED_SEEDING_DAY
        assert exc.value.details["lookback_days"] == 0


# ═══════════════════════════════════════════════════════════════════
# Planning
# ═══════════════════════════════════════════════════════════════════


class TestPlan:
    """grow.plan() creates seeding requests for deliveries in the window."""

    def test_friday_delivery_seeded_on_monday(self, mwf_farm, ten_day_recipe, make_order, customer):
        """Friday - 10 days = Tuesday, not a seeding day → previous Monday."""
        order = make_order(ten_day_recipe, quantity=3)

        result = grow.plan(mwf_farm, FRIDAY - timedelta(days=4), FRIDAY)

        assert len(result.created) == 1
        request = result.created[0]
        assert request.seed_date == MONDAY
        assert request.delivery_date == FRIDAY
        assert request.quantity == 3
        assert request.standing_order == order
        assert request.customer == customer
        assert request.source_type == SourceType.STANDING_ORDER
        assert request.status == RequestStatus.PENDING

    def test_plan_twice_creates_nothing_new(self, mwf_farm, ten_day_recipe, make_order):
        make_order(ten_day_recipe)
        start, end = MONDAY + timedelta(days=7), MONDAY + timedelta(days=27)

        first = grow.plan(mwf_farm, start, end)
        count = SeedingRequest.objects.count()
        second = grow.plan(mwf_farm, start, end)

        assert len(first.created) == 3
        assert second.created == []
        assert len(second.skipped) == 3
        assert SeedingRequest.objects.count() == count

    def test_overlapping_windows_no_duplicates(self, mwf_farm, ten_day_recipe, make_order):
        make_order(ten_day_recipe)

        grow.plan(mwf_farm, MONDAY + timedelta(days=7), MONDAY + timedelta(days=20))
        grow.plan(mwf_farm, MONDAY + timedelta(days=14), MONDAY + timedelta(days=27))

        seed_dates = list(SeedingRequest.objects.values_list("seed_date", flat=True))
        assert len(seed_dates) == len(set(seed_dates)) == 3

    def test_cancelled_request_frees_the_slot(self, mwf_farm, ten_day_recipe, make_order):
        make_order(ten_day_recipe)
        first = grow.plan(mwf_farm, FRIDAY, FRIDAY).created[0]
        first.cancel("customer paused")

        again = grow.plan(mwf_farm, FRIDAY, FRIDAY)

        assert len(again.created) == 1
        assert again.created[0].pk != first.pk
        first.refresh_from_db()
        assert first.status == RequestStatus.CANCELLED
        assert "[CANCELLED] customer paused" in first.notes

    def test_deliveries_sharing_a_sow_date_merge(self, farm, ten_day_recipe, make_order):
        """Thursday and Friday deliveries both map to Monday: one request, summed."""
        farm.seeding_weekdays = [0]
        farm.save()
        make_order(ten_day_recipe, weekdays=(3, 4), quantity=2)

        result = grow.plan(farm, FRIDAY - timedelta(days=1), FRIDAY)

        assert len(result.created) == 1
        assert result.created[0].seed_date == MONDAY
        assert result.created[0].quantity == 4
        assert result.created[0].delivery_date == FRIDAY - timedelta(days=1)

    def test_recipe_not_linked_does_not_abort(self, mwf_farm, ten_day_recipe, make_order):
        unlinked = make_order(None, product_name="Mystery Mix")
        linked = make_order(ten_day_recipe)

        result = grow.plan(mwf_farm, FRIDAY, FRIDAY)

        assert [r.standing_order_id for r in result.created] == [linked.pk]
        assert result.has_failures
        failure = result.failures[0]
        assert failure.standing_order_id == unlinked.pk
        assert failure.code == RECIPE_NOT_LINKED
        assert failure.details["product"] == "Mystery Mix"

    def test_broken_recipe_reported(self, mwf_farm, make_order, farm):
        broken = Recipe.objects.create(farm=farm, code="broken", name="Broken")
        RecipeStep.objects.create(recipe=broken, sequence_order=2, action_kind="seed")
        make_order(broken)

        result = grow.plan(mwf_farm, FRIDAY, FRIDAY)

        assert result.created == []
        assert result.failures[0].code == INVALID_RECIPE

    def test_no_allowed_seeding_day_per_slot(self, mwf_farm, ten_day_recipe, make_order, settings):
        settings.GROWCYCLE = {"SEEDING_LOOKBACK_DAYS": 0}
        # Friday: raw Tuesday (fails). Monday delivery: raw Friday (allowed).
        make_order(ten_day_recipe, weekdays=(0, 4))

        result = grow.plan(mwf_farm, FRIDAY, FRIDAY + timedelta(days=3))

        assert [r.delivery_date for r in result.created] == [FRIDAY + timedelta(days=3)]
        assert len(result.failures) == 1
        assert result.failures[0].code == NO_ALLOWED_SEEDING_DAY
        assert result.failures[0].delivery_date == FRIDAY

    def test_inactive_and_ended_orders_ignored(self, mwf_farm, ten_day_recipe, make_order):
        make_order(ten_day_recipe, is_active=False)
        make_order(ten_day_recipe, end_date=FRIDAY - timedelta(days=1))

        assert grow.plan(mwf_farm, FRIDAY, FRIDAY).created == []

    def test_explicit_order_subset(self, mwf_farm, ten_day_recipe, make_order, other_customer):
        make_order(ten_day_recipe)
        chosen = make_order(ten_day_recipe, customer=other_customer)

        result = grow.plan(mwf_farm, FRIDAY, FRIDAY, standing_orders=[chosen])

        assert [r.standing_order_id for r in result.created] == [chosen.pk]

    def test_signal_sent_once_with_created(self, mwf_farm, ten_day_recipe, make_order):
        make_order(ten_day_recipe)
        calls = []

        def receiver(sender, **kwargs):
            calls.append(kwargs)

        seeding_requests_planned.connect(receiver, weak=False)
        try:
            grow.plan(mwf_farm, FRIDAY, FRIDAY + timedelta(days=7))
            grow.plan(mwf_farm, FRIDAY, FRIDAY + timedelta(days=7))
        finally:
            seeding_requests_planned.disconnect(receiver)

        assert len(calls) == 1
        assert len(calls[0]["requests"]) == 2
        assert calls[0]["farm"] == mwf_farm


# ═══════════════════════════════════════════════════════════════════
# Rolling windows
# ═══════════════════════════════════════════════════════════════════


@pytest.fixture
def monday_farm(farm):
    farm.seeding_weekdays = [0]
    farm.save()
    return farm


@pytest.fixture
def five_day_recipe(farm):
    r = Recipe.objects.create(farm=farm, code="radish-v1", name="Radish")
    r.set_steps(
        [
            {"sequence_order": 1, "action_kind": "seed"},
            {"sequence_order": 2, "action_kind": "growing", "duration": 5},
            {"sequence_order": 3, "action_kind": "harvest"},
        ]
    )
    return r


def planned():
    return list(
        SeedingRequest.objects.exclude(status=RequestStatus.CANCELLED)
        .order_by("seed_date")
        .values_list("seed_date", "quantity")
    )


class TestRollingWindow:
    """A window planned in pieces ends like the same window planned at once."""

    TUESDAY = date(2026, 3, 17)
    SUNDAY = date(2026, 3, 22)

    def test_split_window_matches_whole(self, monday_farm, five_day_recipe, make_order):
        # Tue and Fri deliveries both sow on Monday 2026-03-09
        make_order(five_day_recipe, weekdays=(1, 4), quantity=1)

        grow.plan(monday_farm, self.TUESDAY - timedelta(days=1), self.TUESDAY)
        grow.plan(monday_farm, self.TUESDAY - timedelta(days=1), self.SUNDAY)
        chunked = planned()
        SeedingRequest.objects.all().delete()
        grow.plan(monday_farm, self.TUESDAY - timedelta(days=1), self.SUNDAY)

        assert chunked == planned() == [(date(2026, 3, 9), 2)]

    def test_late_delivery_extends_existing_request(
        self, monday_farm, five_day_recipe, make_order
    ):
        make_order(five_day_recipe, weekdays=(1, 4), quantity=3)
        first = grow.plan(monday_farm, self.TUESDAY, self.TUESDAY).created[0]

        result = grow.plan(monday_farm, self.TUESDAY, self.SUNDAY)

        assert result.created == []
        assert [r.pk for r in result.extended] == [first.pk]
        first.refresh_from_db()
        assert first.quantity == 6
        assert first.delivery_dates == ["2026-03-17", "2026-03-20"]
        assert first.delivery_date == self.TUESDAY

    def test_repeat_changes_nothing(self, monday_farm, five_day_recipe, make_order):
        make_order(five_day_recipe, weekdays=(1, 4), quantity=1)
        grow.plan(monday_farm, self.TUESDAY, self.TUESDAY)
        grow.plan(monday_farm, self.TUESDAY, self.SUNDAY)
        before = planned()

        again = grow.plan(monday_farm, self.TUESDAY, self.SUNDAY)

        assert again.created == again.extended == []
        assert len(again.skipped) == 1
        assert planned() == before

    def test_completed_request_reopens_for_new_delivery(
        self, monday_farm, five_day_recipe, make_order
    ):
        make_order(five_day_recipe, weekdays=(1, 4), quantity=1)
        request = grow.plan(monday_farm, self.TUESDAY, self.TUESDAY).created[0]
        request.complete(sow_date=date(2026, 3, 9))
        assert request.status == RequestStatus.COMPLETED

        grow.plan(monday_farm, self.TUESDAY, self.SUNDAY)

        request.refresh_from_db()
        assert request.status == RequestStatus.PENDING
        assert request.remaining == 1


# ═══════════════════════════════════════════════════════════════════
# Standing orders
# ═══════════════════════════════════════════════════════════════════


class TestStandingOrder:
    """Delivery calendar of a standing order."""

    def test_weekly_delivery_dates(self, ten_day_recipe, make_order):
        order = make_order(ten_day_recipe, weekdays=(1, 4))

        assert order.delivery_dates(MONDAY, MONDAY + timedelta(days=6)) == [
            MONDAY + timedelta(days=1),
            MONDAY + timedelta(days=4),
        ]

    def test_biweekly_skips_odd_weeks(self, ten_day_recipe, make_order):
        # Started on a Wednesday: its week (from Monday) is week 0
        order = make_order(
            ten_day_recipe,
            weekdays=(4,),
            frequency=Frequency.BIWEEKLY,
            start_date=MONDAY + timedelta(days=2),
        )

        assert order.delivery_dates(MONDAY, MONDAY + timedelta(days=27)) == [
            MONDAY + timedelta(days=4),
            MONDAY + timedelta(days=18),
        ]

    def test_not_before_start(self, ten_day_recipe, make_order):
        order = make_order(ten_day_recipe, start_date=FRIDAY)

        assert order.delivery_dates(MONDAY, FRIDAY) == [FRIDAY]

    def test_validation(self, ten_day_recipe, make_order):
        with pytest.raises(ValidationError):
            make_order(ten_day_recipe, weekdays=())
        with pytest.raises(ValidationError):
            make_order(ten_day_recipe, end_date=MONDAY - timedelta(days=1))

    def test_history_recorded(self, ten_day_recipe, make_order):
        order = make_order(ten_day_recipe)
        order.quantity = 5
        order.save()

        assert order.history.count() == 2


# ═══════════════════════════════════════════════════════════════════
# Management command
# ═══════════════════════════════════════════════════════════════════


class TestPlanCommand:
    """manage.py plan_seeding_requests"""

    def test_plans_window(self, mwf_farm, ten_day_recipe, make_order):
        make_order(ten_day_recipe)
        out = StringIO()

        call_command(
            "plan_seeding_requests",
            "--farm", mwf_farm.code,
            "--start", FRIDAY.isoformat(),
            "--days", "7",
            stdout=out,
        )

        output = out.getvalue()
        assert "north-farm: 1 created, 0 extended, 0 already planned" in output
        assert MONDAY.isoformat() in output
        assert SeedingRequest.objects.count() == 1

    def test_reports_failures(self, mwf_farm, make_order):
        make_order(None, product_name="Mystery Mix")
        out = StringIO()

        call_command("plan_seeding_requests", "--start", FRIDAY.isoformat(), stdout=out)

        assert RECIPE_NOT_LINKED in out.getvalue()

    def test_unknown_farm(self, db):
        with pytest.raises(CommandError):
            call_command("plan_seeding_requests", "--farm", "nowhere")

    def test_days_must_be_positive(self, farm):
        with pytest.raises(CommandError):
            call_command("plan_seeding_requests", "--days", "0")
