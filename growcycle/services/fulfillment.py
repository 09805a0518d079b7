"""
Fulfillment gaps -- ready tray supply vs standing-order demand.

Demand slots are (standing order, delivery date) pairs, served in
priority order: delivery date, then order creation, then id. Each slot
takes trays of its recipe, first those reserved for its customer, then
unassigned ones, earliest ready first. A tray serves one slot at most.
Reserved trays left over after every slot is served are reported as
surplus of their customer's earliest slot; unassigned leftovers are
counted by unassigned_ready().

Supply for a delivery date d:
    - active trays whose ready date is on or before d
    - harvested trays harvested within SHELF_LIFE_DAYS before d

Usage:
    from growcycle import grow

    for gap in grow.gaps(farm, date(2026, 3, 2), date(2026, 3, 8)):
        if gap.shortfall:
            print(f"{gap.customer_name}: {gap.shortfall} {gap.recipe_name} short on {gap.delivery_date}")
"""

from __future__ import annotations

import logging
from collections import OrderedDict, defaultdict
from dataclasses import dataclass
from datetime import date, timedelta

from django.db.models import Q

from growcycle.conf import get_setting
from growcycle.exceptions import GrowError
from growcycle.models import StandingOrder, Tray, TrayStatus
from growcycle.results import GapReport

logger = logging.getLogger(__name__)


@dataclass
class _Supply:
    tray: Tray
    ready: date
    expires: date | None = None

    def available_on(self, day: date) -> bool:
        if self.ready > day:
            return False
        return self.expires is None or day <= self.expires


def _load_supply(farm, recipe_ids, earliest_harvest: date) -> list[_Supply]:
    trays = (
        Tray.objects.filter(farm=farm, recipe_id__in=recipe_ids)
        .filter(
            Q(status=TrayStatus.ACTIVE)
            | Q(status=TrayStatus.HARVESTED, harvested_on__gte=earliest_harvest)
        )
        .select_related("recipe")
        .prefetch_related("recipe__steps")
    )
    shelf_life = int(get_setting("SHELF_LIFE_DAYS"))

    recipes = {}
    supply = []
    for tray in trays:
        tray.recipe = recipes.setdefault(tray.recipe_id, tray.recipe)
        if tray.status == TrayStatus.HARVESTED:
            harvested = tray.harvested_on
            supply.append(_Supply(tray, harvested, harvested + timedelta(days=shelf_life)))
            continue
        try:
            supply.append(_Supply(tray, tray.ready_date))
        except GrowError as e:
            logger.warning(
                f"Tray {tray.code}: no ready date, excluded from supply",
                extra={"tray": tray.code, "error": e.as_dict()},
            )

    supply.sort(key=lambda s: (s.ready, s.tray.pk))
    return supply


class GrowFulfillment:
    """Supply/demand reconciliation."""

    @classmethod
    def gaps(cls, farm, window_start: date, window_end: date) -> list[GapReport]:
        """
        One GapReport per (customer, recipe, delivery date) in the window.

        Orders without a recipe cannot be matched and are left out (the
        planner reports them as RECIPE_NOT_LINKED).
        """
        orders = (
            StandingOrder.objects.filter(farm=farm, is_active=True, recipe__isnull=False)
            .select_related("customer", "recipe")
            .order_by("created_at", "id")
        )

        slots = []
        for order in orders:
            for delivery in order.delivery_dates(window_start, window_end):
                slots.append((delivery, order.created_at, order.pk, order))
        slots.sort(key=lambda slot: slot[:3])

        if not slots:
            return []

        shelf_life = int(get_setting("SHELF_LIFE_DAYS"))
        recipe_ids = {slot[3].recipe_id for slot in slots}
        supply = _load_supply(farm, recipe_ids, window_start - timedelta(days=shelf_life))

        used: set[int] = set()
        reports: OrderedDict = OrderedDict()

        for delivery, _created, _pk, order in slots:
            key = (order.customer_id, order.recipe_id, delivery)
            report = reports.get(key)
            if report is None:
                report = reports[key] = GapReport(
                    customer_id=order.customer_id,
                    customer_name=order.customer.name,
                    recipe_id=order.recipe_id,
                    recipe_name=order.recipe.name,
                    delivery_date=delivery,
                )
            report.trays_needed += order.quantity
            report.standing_order_ids.append(order.pk)

            need = order.quantity
            # Reserved trays first, then the unassigned pool
            for reserved in (True, False):
                for item in supply:
                    if need == 0:
                        break
                    tray = item.tray
                    if tray.pk in used or tray.recipe_id != order.recipe_id:
                        continue
                    if reserved and tray.customer_id != order.customer_id:
                        continue
                    if not reserved and tray.customer_id is not None:
                        continue
                    if not item.available_on(delivery):
                        continue
                    used.add(tray.pk)
                    report.tray_ids.append(tray.pk)
                    report.trays_ready += 1
                    need -= 1

        # Reserved trays nobody needed count as surplus on their customer's first slot
        for report in reports.values():
            for item in supply:
                tray = item.tray
                if tray.pk in used or tray.recipe_id != report.recipe_id:
                    continue
                if tray.customer_id != report.customer_id or not item.available_on(report.delivery_date):
                    continue
                used.add(tray.pk)
                report.tray_ids.append(tray.pk)
                report.trays_ready += 1

        for report in reports.values():
            if report.shortfall:
                report.soonest_ready_date = cls._soonest_ready(
                    supply, used, report.recipe_id, report.customer_id, report.delivery_date
                )

        result = sorted(
            reports.values(),
            key=lambda r: (r.delivery_date, r.customer_name, r.recipe_name, r.customer_id, r.recipe_id),
        )

        logger.debug(
            f"Farm {farm.code}: {len(result)} fulfillment slots, "
            f"{sum(1 for r in result if r.shortfall)} short",
            extra={"farm": farm.code, "window": [window_start.isoformat(), window_end.isoformat()]},
        )
        return result

    @classmethod
    def _soonest_ready(cls, supply, used, recipe_id, customer_id, after: date) -> date | None:
        """Ready date of the first unallocated tray that could still serve this slot late."""
        for item in supply:
            tray = item.tray
            if tray.pk in used or tray.recipe_id != recipe_id:
                continue
            if tray.customer_id not in (None, customer_id):
                continue
            if tray.status == TrayStatus.ACTIVE and item.ready > after:
                return item.ready
        return None

    @classmethod
    def unassigned_ready(cls, farm, day: date | None = None) -> dict[int, int]:
        """Count of unassigned trays available on `day`, per recipe id."""
        day = day or farm.today()
        shelf_life = int(get_setting("SHELF_LIFE_DAYS"))
        recipe_ids = (
            Tray.objects.filter(farm=farm, customer__isnull=True)
            .values_list("recipe_id", flat=True)
            .order_by()
            .distinct()
        )
        counts: dict[int, int] = defaultdict(int)
        for item in _load_supply(farm, list(recipe_ids), day - timedelta(days=shelf_life)):
            if item.tray.customer_id is None and item.available_on(day):
                counts[item.tray.recipe_id] += 1
        return dict(counts)
