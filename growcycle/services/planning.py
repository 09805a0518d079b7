"""
Backward planning -- seeding requests from standing-order deliveries.

For each delivery date, sow date = delivery - recipe.total_days, moved
backward (never forward) to the nearest allowed seeding weekday.

Idempotent: a non-cancelled request for (standing_order, seed_date)
records the deliveries it covers in delivery_dates. Re-planning a slot
adds trays only for deliveries missing from that list, so a rolling
window converges to the same quantities as one wide run, and repeating a
run changes nothing. A concurrent insert of the same slot is caught by
the database constraint and folded into the winner's request.

Usage:
    from growcycle import grow

    result = grow.plan(farm, date(2026, 3, 2), date(2026, 3, 29))
    for request in result.created:
        print(request.seed_date, request.quantity, request.recipe.code)
    for failure in result.failures:
        print(failure.standing_order_id, failure.code)
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from datetime import date, timedelta

from django.db import IntegrityError, transaction

from growcycle.conf import get_setting
from growcycle.exceptions import NO_ALLOWED_SEEDING_DAY, RECIPE_NOT_LINKED, GrowError
from growcycle.models import RequestStatus, SeedingRequest, SourceType, StandingOrder
from growcycle.results import PlanningFailure, PlanResult

logger = logging.getLogger(__name__)

_CREATED = "created"
_EXTENDED = "extended"
_SKIPPED = "skipped"


def backward_sow_date(farm, raw_sow_date: date, lookback_days: int | None = None) -> date:
    """
    Latest allowed seeding day on or before raw_sow_date.

    Raises:
        GrowError(NO_ALLOWED_SEEDING_DAY) if none within lookback_days
    """
    if lookback_days is None:
        lookback_days = int(get_setting("SEEDING_LOOKBACK_DAYS"))

    for back in range(lookback_days + 1):
        candidate = raw_sow_date - timedelta(days=back)
        if farm.allows_seeding_on(candidate):
            return candidate

    raise GrowError(
        NO_ALLOWED_SEEDING_DAY,
        raw_sow_date=raw_sow_date.isoformat(),
        lookback_days=lookback_days,
        seeding_weekdays=list(farm.seeding_weekdays),
    )


class GrowPlanning:
    """Standing order → seeding request planning."""

    @classmethod
    def plan(
        cls,
        farm,
        window_start: date,
        window_end: date,
        standing_orders=None,
    ) -> PlanResult:
        """
        Create the seeding requests needed for deliveries in [window_start, window_end].

        Per-order problems (no recipe, broken recipe, no seeding day) are
        collected in result.failures; they never abort the other orders.
        """
        if standing_orders is None:
            standing_orders = StandingOrder.objects.filter(farm=farm, is_active=True)
        if hasattr(standing_orders, "select_related"):
            standing_orders = standing_orders.select_related("recipe", "customer").order_by(
                "created_at", "id"
            )

        lookback = int(get_setting("SEEDING_LOOKBACK_DAYS"))
        result = PlanResult()

        for order in standing_orders:
            if order.recipe_id is None:
                result.failures.append(
                    PlanningFailure(
                        standing_order_id=order.pk,
                        code=RECIPE_NOT_LINKED,
                        details={"product": order.product_label},
                    )
                )
                continue

            try:
                total_days = order.recipe.timeline().total_days
            except GrowError as e:
                result.failures.append(
                    PlanningFailure(standing_order_id=order.pk, code=e.code, details=e.details)
                )
                continue

            # sow date → deliveries it serves, earliest first
            slots: OrderedDict = OrderedDict()
            for delivery in order.delivery_dates(window_start, window_end):
                try:
                    sow = backward_sow_date(farm, delivery - timedelta(days=total_days), lookback)
                except GrowError as e:
                    result.failures.append(
                        PlanningFailure(
                            standing_order_id=order.pk,
                            code=e.code,
                            details=e.details,
                            delivery_date=delivery,
                        )
                    )
                    continue
                slots.setdefault(sow, []).append(delivery)

            for sow, deliveries in slots.items():
                request, outcome = cls._plan_slot(farm, order, sow, deliveries)
                if outcome == _CREATED:
                    result.created.append(request)
                elif outcome == _EXTENDED:
                    result.extended.append(request)
                else:
                    result.skipped.append((order.pk, sow))

        logger.info(
            f"Farm {farm.code}: planned {window_start}..{window_end}: "
            f"{len(result.created)} created, {len(result.extended)} extended, "
            f"{len(result.skipped)} skipped, {len(result.failures)} failures",
            extra={
                "farm": farm.code,
                "created": len(result.created),
                "extended": len(result.extended),
                "skipped": len(result.skipped),
                "failures": [f.code for f in result.failures],
            },
        )

        if result.created or result.extended:
            from growcycle.signals import seeding_requests_planned

            seeding_requests_planned.send(
                sender=cls,
                farm=farm,
                requests=list(result.created),
                extended=list(result.extended),
            )

        return result

    @classmethod
    def _plan_slot(cls, farm, order, sow: date, deliveries: list[date]):
        """
        Insert-or-extend on (standing_order, seed_date).

        Returns (request, outcome). An existing request only grows by the
        deliveries it does not list yet, so planning a window in pieces
        ends with the same quantities as planning it at once.
        """
        existing = cls._extend_request(order, sow, deliveries)
        if existing is not None:
            return existing

        try:
            with transaction.atomic():
                request = SeedingRequest.objects.create(
                    farm=farm,
                    recipe=order.recipe,
                    quantity=order.quantity * len(deliveries),
                    seed_date=sow,
                    source_type=SourceType.STANDING_ORDER,
                    standing_order=order,
                    customer=order.customer,
                    delivery_date=deliveries[0],
                    delivery_dates=[d.isoformat() for d in deliveries],
                )
            return request, _CREATED
        except IntegrityError:
            # Concurrent planner run inserted the same slot first
            logger.info(
                f"StandingOrder {order.pk}: slot {sow} taken concurrently",
                extra={"standing_order": order.pk, "seed_date": sow.isoformat()},
            )
            existing = cls._extend_request(order, sow, deliveries)
            if existing is not None:
                return existing
            raise

    @classmethod
    def _extend_request(cls, order, sow: date, deliveries: list[date]):
        """None when no live request holds the slot."""
        with transaction.atomic():
            request = (
                SeedingRequest.objects.select_for_update()
                .filter(standing_order=order, seed_date=sow)
                .exclude(status=RequestStatus.CANCELLED)
                .first()
            )
            if request is None:
                return None

            covered = set(request.delivery_dates)
            if not covered and request.delivery_date is not None:
                covered.add(request.delivery_date.isoformat())
            new = [d for d in deliveries if d.isoformat() not in covered]
            if not new:
                return request, _SKIPPED

            request.quantity += order.quantity * len(new)
            request.delivery_dates = sorted(covered | {d.isoformat() for d in new})
            request.delivery_date = min(
                [d for d in (request.delivery_date, *new) if d is not None]
            )
            if request.status == RequestStatus.COMPLETED:
                # more trays to sow than were sown
                request.status = RequestStatus.PENDING
            request.save(
                update_fields=[
                    "quantity",
                    "delivery_dates",
                    "delivery_date",
                    "status",
                    "updated_at",
                ]
            )

        logger.info(
            f"SeedingRequest {request.pk}: +{order.quantity * len(new)} trays for "
            f"{', '.join(d.isoformat() for d in new)}",
            extra={
                "request": request.pk,
                "standing_order": order.pk,
                "seed_date": sow.isoformat(),
                "quantity": request.quantity,
            },
        )
        return request, _EXTENDED
