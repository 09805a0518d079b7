"""
Tests for fulfillment gaps (grow.gaps) and unassigned supply.

The pea recipe takes 8 days, so trays sown on Monday 2026-03-02 are ready
on Tuesday 2026-03-10, in time for a Friday 2026-03-13 delivery.
"""

from datetime import date, timedelta

import pytest

from growcycle import grow
from growcycle.models import Recipe, StandingOrder, Tray, TrayStatus
from growcycle.results import FULFILLED, NO_TRAYS, PARTIAL

from .conftest import SOW

FRIDAY = date(2026, 3, 13)


@pytest.fixture
def make_order(farm, recipe, customer):
    def _make(quantity=2, customer=customer, recipe=recipe, **kwargs):
        kwargs.setdefault("delivery_weekdays", [4])
        return StandingOrder.objects.create(
            farm=farm,
            customer=customer,
            recipe=recipe,
            quantity=quantity,
            start_date=SOW,
            **kwargs,
        )

    return _make


def report_for(reports, customer):
    return next(r for r in reports if r.customer_id == customer.pk)


# ═══════════════════════════════════════════════════════════════════
# Allocation priority
# ═══════════════════════════════════════════════════════════════════


class TestAllocation:
    """Earlier commitments are served first."""

    def test_earlier_order_served_first(self, farm, make_tray, make_order, customer, other_customer):
        """3 ready trays, orders of 2 and 2: first gets 2, second gets 1."""
        for _ in range(3):
            make_tray()
        first = make_order(2, customer=customer)
        second = make_order(2, customer=other_customer)

        reports = grow.gaps(farm, FRIDAY, FRIDAY)

        assert len(reports) == 2
        early = report_for(reports, customer)
        late = report_for(reports, other_customer)
        assert early.standing_order_ids == [first.pk]
        assert (early.trays_ready, early.shortfall, early.status) == (2, 0, FULFILLED)
        assert late.standing_order_ids == [second.pk]
        assert (late.trays_ready, late.shortfall, late.status) == (1, 1, PARTIAL)

    def test_creation_order_beats_name(self, farm, make_tray, make_order, customer, other_customer):
        for _ in range(3):
            make_tray()
        make_order(2, customer=other_customer)
        make_order(2, customer=customer)

        reports = grow.gaps(farm, FRIDAY, FRIDAY)

        assert report_for(reports, other_customer).trays_ready == 2
        assert report_for(reports, customer).trays_ready == 1

    def test_earlier_delivery_served_first(self, farm, make_tray, make_order):
        make_tray()
        make_order(1)

        reports = grow.gaps(farm, FRIDAY, FRIDAY + timedelta(days=7))

        assert [r.delivery_date for r in reports] == [FRIDAY, FRIDAY + timedelta(days=7)]
        assert [r.trays_ready for r in reports] == [1, 0]
        assert reports[1].status == NO_TRAYS

    def test_tray_serves_one_slot(self, farm, make_tray, make_order, customer, other_customer):
        make_tray()
        make_order(1, customer=customer)
        make_order(1, customer=other_customer)

        reports = grow.gaps(farm, FRIDAY, FRIDAY)

        assert sum(r.trays_ready for r in reports) == 1
        all_ids = [tray_id for r in reports for tray_id in r.tray_ids]
        assert len(all_ids) == len(set(all_ids))

    def test_reserved_trays_stay_with_their_customer(
        self, farm, make_tray, make_order, customer, other_customer
    ):
        reserved = make_tray(customer=other_customer)
        pooled = make_tray()
        make_order(1, customer=customer)
        make_order(1, customer=other_customer)

        reports = grow.gaps(farm, FRIDAY, FRIDAY)

        assert report_for(reports, customer).tray_ids == [pooled.pk]
        assert report_for(reports, other_customer).tray_ids == [reserved.pk]

    def test_orders_of_same_customer_aggregate(self, farm, make_tray, make_order):
        make_tray()
        first = make_order(1)
        second = make_order(2)

        reports = grow.gaps(farm, FRIDAY, FRIDAY)

        assert len(reports) == 1
        assert reports[0].trays_needed == 3
        assert reports[0].trays_ready == 1
        assert reports[0].standing_order_ids == [first.pk, second.pk]

    def test_stable_across_calls(self, farm, make_tray, make_order, customer, other_customer):
        for _ in range(3):
            make_tray()
        make_order(2, customer=customer)
        make_order(2, customer=other_customer)

        first = [r.as_dict() for r in grow.gaps(farm, FRIDAY, FRIDAY)]
        second = [r.as_dict() for r in grow.gaps(farm, FRIDAY, FRIDAY)]

        assert first == second


# ═══════════════════════════════════════════════════════════════════
# Supply
# ═══════════════════════════════════════════════════════════════════


class TestSupply:
    """Which trays count as ready for a delivery date."""

    def test_not_ready_in_time(self, farm, make_tray, make_order):
        make_tray(sow_date=FRIDAY - timedelta(days=4))
        make_order(1)

        report = grow.gaps(farm, FRIDAY, FRIDAY)[0]

        assert report.trays_ready == 0
        assert report.soonest_ready_date == FRIDAY + timedelta(days=4)

    def test_ready_on_delivery_day_counts(self, farm, make_tray, make_order):
        make_tray(sow_date=FRIDAY - timedelta(days=8))
        make_order(1)

        assert grow.gaps(farm, FRIDAY, FRIDAY)[0].trays_ready == 1

    def test_harvested_within_shelf_life(self, farm, make_tray, make_order):
        fresh = make_tray(sow_date=SOW - timedelta(days=7))
        stale = make_tray(sow_date=SOW - timedelta(days=9))
        Tray.objects.filter(pk=fresh.pk).update(
            status=TrayStatus.HARVESTED, harvested_on=FRIDAY - timedelta(days=2)
        )
        Tray.objects.filter(pk=stale.pk).update(
            status=TrayStatus.HARVESTED, harvested_on=FRIDAY - timedelta(days=4)
        )
        make_order(2)

        report = grow.gaps(farm, FRIDAY, FRIDAY)[0]

        assert report.tray_ids == [fresh.pk]

    def test_shelf_life_setting(self, farm, make_tray, make_order, settings):
        settings.GROWCYCLE = {"SHELF_LIFE_DAYS": 5}
        tray = make_tray(sow_date=SOW - timedelta(days=9))
        Tray.objects.filter(pk=tray.pk).update(
            status=TrayStatus.HARVESTED, harvested_on=FRIDAY - timedelta(days=4)
        )
        make_order(1)

        assert grow.gaps(farm, FRIDAY, FRIDAY)[0].trays_ready == 1

    def test_lost_trays_never_count(self, farm, make_tray, make_order):
        make_tray().mark_lost("mold")
        make_order(1)

        assert grow.gaps(farm, FRIDAY, FRIDAY)[0].status == NO_TRAYS

    def test_other_recipe_not_matched(self, farm, make_tray, make_order):
        other = Recipe.objects.create(farm=farm, code="radish-v1", name="Radish")
        other.set_steps([{"sequence_order": 1, "action_kind": "growing", "duration": 6}])
        make_tray(recipe=other)
        make_order(1)

        assert grow.gaps(farm, FRIDAY, FRIDAY)[0].trays_ready == 0

    def test_surplus_from_reserved_trays(self, farm, make_tray, make_order, customer):
        for _ in range(3):
            make_tray(customer=customer)
        make_order(1)

        report = grow.gaps(farm, FRIDAY, FRIDAY)[0]

        assert report.trays_needed == 1
        assert report.trays_ready == 3
        assert report.surplus == 2
        assert report.shortfall == 0

    def test_orders_without_recipe_left_out(self, farm, make_order):
        make_order(1, recipe=None, product_name="Mystery Mix")

        assert grow.gaps(farm, FRIDAY, FRIDAY) == []

    def test_no_orders(self, farm, make_tray):
        make_tray()

        assert grow.gaps(farm, FRIDAY, FRIDAY) == []


class TestUnassignedReady:
    def test_counts_per_recipe(self, farm, make_tray, recipe, customer):
        make_tray()
        make_tray()
        make_tray(customer=customer)
        make_tray(sow_date=FRIDAY)

        assert grow.unassigned_ready(farm, FRIDAY) == {recipe.pk: 2}
