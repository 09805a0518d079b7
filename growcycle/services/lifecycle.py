"""
Lifecycle service -- due events, complete, skip, loss, sowing.

Thin wrappers over Tray/SeedingRequest model methods plus the multi-tray
batches. All methods are @classmethod so the mixin can be composed into
Grow without instantiation.
"""

import logging
from datetime import date

from growcycle.exceptions import INVALID_QUANTITY, GrowError
from growcycle.models import SeedingRequest, SourceType, Tray, TrayStatus
from growcycle.results import BatchResult, DueEvents, ResolveOutcome

logger = logging.getLogger(__name__)


class GrowLifecycle:
    """Tray and seeding request operations."""

    # ══════════════════════════════════════════════════════════════
    # TRAYS
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def due_events(cls, tray: Tray, as_of: date | None = None) -> DueEvents:
        """Events due today and overdue for a tray (as_of defaults to farm today)."""
        return tray.due_events(as_of or tray.farm.today())

    @classmethod
    def complete(cls, tray: Tray, day_offset: int, kind: str, user=None, yield_quantity=None):
        """Complete an event. Harvest requires yield_quantity."""
        return tray.complete(day_offset, kind, user=user, yield_quantity=yield_quantity)

    @classmethod
    def skip(cls, tray: Tray, day_offset: int, kind: str, user=None):
        """Skip an event (never the harvest)."""
        return tray.skip(day_offset, kind, user=user)

    @classmethod
    def skip_all_overdue(cls, trays, as_of: date | None = None, user=None) -> BatchResult:
        """
        Skip every overdue event of one or many trays.

        Each skip is independent: a failure on one event never rolls back
        the others.
        """
        if isinstance(trays, Tray):
            trays = [trays]

        result = BatchResult()
        for tray in trays:
            result.extend(tray.skip_all_overdue(as_of or tray.farm.today(), user=user))
        return result

    @classmethod
    def mark_lost(cls, tray: Tray, reason: str, notes: str = "", user=None) -> Tray:
        tray.mark_lost(reason, notes=notes, user=user)
        return tray

    @classmethod
    def mark_trays_lost(cls, trays, reason: str, notes: str = "", user=None) -> BatchResult:
        """Mark several trays lost; already-terminal trays are reported, not raised."""
        result = BatchResult()
        for tray in trays:
            outcome = ResolveOutcome(tray_id=tray.pk, day_offset=0, kind="lost")
            try:
                tray.mark_lost(reason, notes=notes, user=user)
            except GrowError as e:
                outcome.status = e.code
                outcome.details = e.details
            result.outcomes.append(outcome)

        logger.info(
            f"Marked {len(result.succeeded)} of {len(result.outcomes)} trays lost ({reason})",
            extra={"reason": reason, "failed": len(result.failed)},
        )
        return result

    @classmethod
    def active_trays(cls, farm, recipe=None) -> list[Tray]:
        qs = Tray.objects.filter(farm=farm, status=TrayStatus.ACTIVE).select_related("recipe")
        if recipe is not None:
            qs = qs.filter(recipe=recipe)
        return list(qs.order_by("sow_date", "id"))

    # ══════════════════════════════════════════════════════════════
    # SEEDING REQUESTS
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def request_seeding(
        cls,
        farm,
        recipe,
        quantity: int,
        seed_date: date,
        customer=None,
        delivery_date: date | None = None,
        notes: str = "",
    ) -> SeedingRequest:
        """Create a manual seeding request."""
        if not quantity or int(quantity) <= 0:
            raise GrowError(INVALID_QUANTITY, quantity=quantity)

        request = SeedingRequest.objects.create(
            farm=farm,
            recipe=recipe,
            quantity=int(quantity),
            seed_date=seed_date,
            source_type=SourceType.MANUAL,
            customer=customer,
            delivery_date=delivery_date,
            notes=notes,
        )
        logger.info(
            f"SeedingRequest {request.pk}: {quantity}x {recipe.code} on {seed_date}",
            extra={"request": request.pk, "recipe": recipe.code, "source": "manual"},
        )
        return request

    @classmethod
    def complete_seeding(
        cls, request: SeedingRequest, quantity: int | None = None, user=None, location: str = ""
    ) -> list[Tray]:
        """Sow trays for a request (default: everything remaining)."""
        return request.complete(quantity, user=user, location=location)

    @classmethod
    def mark_soaked(cls, request: SeedingRequest, user=None) -> SeedingRequest:
        request.mark_soaked(user=user)
        return request

    @classmethod
    def cancel_request(cls, request: SeedingRequest, reason: str = "", user=None) -> SeedingRequest:
        request.cancel(reason, user=user)
        return request
