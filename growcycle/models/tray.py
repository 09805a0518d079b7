"""
Tray and TrayEventMark models.

Tray = one physical growing tray following a recipe from its sow date.
TrayEventMark = durable resolution (completed/skipped) of one timeline event.

A tray's schedule is never stored: it is the recipe timeline shifted to the
sow date. Only resolutions are persisted, one row per (tray, day_offset, kind),
which makes complete/skip idempotent under concurrency.

Status: ACTIVE → HARVESTED (harvest event completed)
        ACTIVE → LOST (mark_lost)
Both are terminal.
"""

import logging
import uuid
from datetime import date, timedelta
from decimal import Decimal, InvalidOperation

from django.db import IntegrityError, models, transaction
from django.utils import timezone
from django.utils.translation import gettext_lazy as _
from simple_history.models import HistoricalRecords

from growcycle.choices import PRE_TRAY_EVENTS, EventKind
from growcycle.exceptions import (
    ALREADY_RESOLVED,
    INVALID_LOSS_REASON,
    INVALID_QUANTITY,
    INVALID_TRANSITION,
    UNKNOWN_EVENT,
    YIELD_REQUIRED,
    GrowError,
)
from growcycle.models.sequence import CodeSequence
from growcycle.results import BatchResult, DueEvents, ResolveOutcome

logger = logging.getLogger(__name__)


class TrayStatus(models.TextChoices):
    """Tray lifecycle status."""

    ACTIVE = "active", _("Active")
    HARVESTED = "harvested", _("Harvested")
    LOST = "lost", _("Lost")


class LossReason(models.TextChoices):
    FUNGAL = "fungal", _("Fungal")
    MOLD = "mold", _("Mold")
    CONTAMINATION = "contamination", _("Contamination")
    PEST = "pest", _("Pest")
    OPERATOR_ERROR = "operator_error", _("Operator error")
    OTHER = "other", _("Other")


class Resolution(models.TextChoices):
    COMPLETED = "completed", _("Completed")
    SKIPPED = "skipped", _("Skipped")


def _username(user) -> str:
    if user is None:
        return ""
    return getattr(user, "username", None) or str(user)


class Tray(models.Model):
    """
    A growing tray.

    Business logic lives on the model: due_events(), complete(), skip(),
    skip_all_overdue(), mark_lost(). Callable from admin, API, or jobs.

    Example:
        tray.due_events(date(2026, 3, 5))
        tray.complete(3, "uncover", user=operator)
        tray.complete(8, "harvest", yield_quantity=Decimal("1.25"))
    """

    uuid = models.UUIDField(
        default=uuid.uuid4,
        editable=False,
        unique=True,
        verbose_name=_("UUID"),
    )

    code = models.CharField(
        max_length=30,
        unique=True,
        editable=False,
        verbose_name=_("Code"),
        help_text=_("Auto-generated: TR-YYYY-NNNNN"),
    )

    farm = models.ForeignKey(
        "growcycle.Farm",
        on_delete=models.CASCADE,
        related_name="trays",
        verbose_name=_("Farm"),
    )
    recipe = models.ForeignKey(
        "growcycle.Recipe",
        on_delete=models.PROTECT,
        related_name="trays",
        verbose_name=_("Recipe"),
    )
    seeding_request = models.ForeignKey(
        "growcycle.SeedingRequest",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="trays",
        verbose_name=_("Seeding request"),
    )
    customer = models.ForeignKey(
        "growcycle.Customer",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="trays",
        verbose_name=_("Customer"),
        help_text=_("Reserved for this customer (optional)"),
    )

    sow_date = models.DateField(
        verbose_name=_("Sow date"),
        help_text=_("Day 0 of the recipe timeline"),
    )
    location = models.CharField(
        max_length=100,
        blank=True,
        verbose_name=_("Location"),
        help_text=_("Rack/shelf"),
    )

    status = models.CharField(
        max_length=20,
        choices=TrayStatus.choices,
        default=TrayStatus.ACTIVE,
        verbose_name=_("Status"),
    )

    # Harvest
    harvested_at = models.DateTimeField(
        null=True,
        blank=True,
        verbose_name=_("Harvested at"),
    )
    harvested_on = models.DateField(
        null=True,
        blank=True,
        verbose_name=_("Harvest date"),
        help_text=_("Farm-local day of harvest (shelf life counts from it)"),
    )
    yield_quantity = models.DecimalField(
        max_digits=10,
        decimal_places=3,
        null=True,
        blank=True,
        verbose_name=_("Yield"),
    )

    # Loss
    lost_at = models.DateTimeField(
        null=True,
        blank=True,
        verbose_name=_("Lost at"),
    )
    loss_reason = models.CharField(
        max_length=20,
        choices=LossReason.choices,
        blank=True,
        verbose_name=_("Loss reason"),
    )
    loss_notes = models.TextField(
        blank=True,
        verbose_name=_("Loss notes"),
    )

    notes = models.TextField(
        blank=True,
        verbose_name=_("Notes"),
    )
    created_by = models.CharField(
        max_length=150,
        blank=True,
        verbose_name=_("Created by"),
    )

    created_at = models.DateTimeField(auto_now_add=True, verbose_name=_("created at"))
    updated_at = models.DateTimeField(auto_now=True, verbose_name=_("updated at"))

    history = HistoricalRecords()

    class Meta:
        db_table = "growcycle_tray"
        verbose_name = _("Tray")
        verbose_name_plural = _("Trays")
        ordering = ["sow_date", "id"]
        indexes = [
            models.Index(fields=["farm", "status"], name="growcycle_tray_farm_idx"),
            models.Index(fields=["recipe", "status"], name="growcycle_tray_recipe_idx"),
            models.Index(fields=["sow_date"], name="growcycle_tray_sow_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.code} - {self.recipe.name}"

    def save(self, *args, **kwargs):
        """Label new trays from the sow-year counter."""
        if not self.code:
            self.code = CodeSequence.next_tray_code(self.sow_date)
        super().save(*args, **kwargs)

    # ══════════════════════════════════════════════════════════════
    # SCHEDULE (derived from recipe timeline + sow date)
    # ══════════════════════════════════════════════════════════════

    @property
    def timeline(self):
        return self.recipe.timeline()

    def date_of(self, day_offset: int) -> date:
        return self.sow_date + timedelta(days=day_offset)

    def elapsed_days(self, as_of: date) -> int:
        """Days since sowing (day 0 is the sow date)."""
        return (as_of - self.sow_date).days

    @property
    def ready_date(self) -> date:
        """Scheduled harvest date."""
        return self.date_of(self.timeline.total_days)

    @property
    def is_active(self) -> bool:
        return self.status == TrayStatus.ACTIVE

    def current_phase(self, as_of: date):
        return self.timeline.phase_at(self.elapsed_days(as_of))

    def resolved_keys(self) -> set[tuple[int, str]]:
        """(day_offset, kind) pairs already completed or skipped."""
        # .all() so a prefetch_related("marks") is honoured
        return {(mark.day_offset, mark.action_kind) for mark in self.marks.all()}

    def due_events(self, as_of: date) -> DueEvents:
        """
        Unresolved events due on as_of (today) or before it (overdue).

        Terminal trays have nothing due. Overdue events stay overdue until
        resolved, so a later query never returns fewer of them.
        """
        due = DueEvents()
        if not self.is_active:
            return due

        elapsed = self.elapsed_days(as_of)
        resolved = self.resolved_keys()
        for event in self.timeline:
            if event.day_offset > elapsed:
                break
            if event.key in resolved:
                continue
            if event.day_offset == elapsed:
                due.today.append(event)
            else:
                due.overdue.append(event)
        return due

    # ══════════════════════════════════════════════════════════════
    # BUSINESS LOGIC
    # ══════════════════════════════════════════════════════════════

    def complete(self, day_offset: int, kind: str, user=None, yield_quantity=None):
        """
        Mark an event completed.

        Completing the harvest event requires a yield and moves the tray to
        HARVESTED.

        Raises:
            GrowError(UNKNOWN_EVENT): event is not in the timeline
            GrowError(ALREADY_RESOLVED): already completed/skipped
            GrowError(INVALID_TRANSITION): tray is harvested or lost
            GrowError(YIELD_REQUIRED): harvest without yield_quantity
        """
        is_harvest = str(kind) == EventKind.HARVEST
        if is_harvest:
            yield_quantity = self._clean_yield(yield_quantity)
        return self._resolve(
            day_offset, kind, Resolution.COMPLETED, user, yield_quantity=yield_quantity
        )

    def skip(self, day_offset: int, kind: str, user=None):
        """
        Mark an event skipped. Skipped events never come back as due.

        The harvest event cannot be skipped (use mark_lost instead).
        """
        if str(kind) == EventKind.HARVEST:
            raise GrowError(
                INVALID_TRANSITION,
                tray=self.code,
                reason="harvest_cannot_be_skipped",
            )
        return self._resolve(day_offset, kind, Resolution.SKIPPED, user)

    def skip_all_overdue(self, as_of: date, user=None) -> BatchResult:
        """
        Skip every overdue event, one independent skip per event.

        A missed harvest is left in place (it cannot be skipped) and is
        reported as a failed outcome. A concurrent resolution shows up as
        ALREADY_RESOLVED in the outcome, not as an error.
        """
        result = BatchResult()
        for event in self.due_events(as_of).overdue:
            outcome = ResolveOutcome(
                tray_id=self.pk, day_offset=event.day_offset, kind=str(event.kind)
            )
            try:
                self.skip(event.day_offset, event.kind, user=user)
            except GrowError as e:
                outcome.status = e.code
                outcome.details = e.details
            result.outcomes.append(outcome)

        if result.outcomes:
            logger.info(
                f"Tray {self.code}: skipped {len(result.succeeded)} of "
                f"{len(result.outcomes)} overdue events",
                extra={
                    "tray": self.code,
                    "skipped": len(result.succeeded),
                    "failed": len(result.failed),
                },
            )
        return result

    def mark_lost(self, reason: str, notes: str = "", user=None):
        """
        Mark the tray lost. Terminal; its events are no longer due.

        Raises:
            GrowError(INVALID_LOSS_REASON): reason outside LossReason
            GrowError(INVALID_TRANSITION): tray already harvested or lost
        """
        if reason not in LossReason.values:
            raise GrowError(INVALID_LOSS_REASON, tray=self.code, reason=reason)

        with transaction.atomic():
            locked = Tray.objects.select_for_update().get(pk=self.pk)
            if locked.status != TrayStatus.ACTIVE:
                raise GrowError(INVALID_TRANSITION, tray=self.code, status=locked.status)

            locked.status = TrayStatus.LOST
            locked.loss_reason = reason
            locked.loss_notes = notes or ""
            locked.lost_at = timezone.now()
            locked.save(
                update_fields=["status", "loss_reason", "loss_notes", "lost_at", "updated_at"]
            )

        self.status = locked.status
        self.loss_reason = locked.loss_reason
        self.loss_notes = locked.loss_notes
        self.lost_at = locked.lost_at

        logger.warning(
            f"Tray {self.code} lost: {reason}",
            extra={"tray": self.code, "reason": reason, "user": _username(user)},
        )

        from growcycle.signals import tray_lost

        tray_lost.send(sender=self.__class__, tray=self, reason=reason, notes=notes, user=user)

    def record_sowing(self, user=None) -> None:
        """Mark the pre-tray events (soak/seed at or before day 0) completed."""
        now = timezone.now()
        TrayEventMark.objects.bulk_create(
            [
                TrayEventMark(
                    tray=self,
                    day_offset=event.day_offset,
                    action_kind=str(event.kind),
                    resolution=Resolution.COMPLETED,
                    resolved_at=now,
                    resolved_by=_username(user),
                )
                for event in self.timeline
                if str(event.kind) in PRE_TRAY_EVENTS and event.day_offset <= 0
            ],
            ignore_conflicts=True,
        )

    # ── internals ──

    def _clean_yield(self, yield_quantity) -> Decimal:
        if yield_quantity is None or yield_quantity == "":
            raise GrowError(YIELD_REQUIRED, tray=self.code)
        try:
            value = Decimal(str(yield_quantity))
        except InvalidOperation:
            raise GrowError(INVALID_QUANTITY, tray=self.code, yield_quantity=yield_quantity)
        if value < 0:
            raise GrowError(INVALID_QUANTITY, tray=self.code, yield_quantity=str(value))
        return value

    def _resolve(self, day_offset, kind, resolution, user, yield_quantity=None):
        kind = str(kind)
        day_offset = int(day_offset)
        if (day_offset, kind) not in self.timeline:
            raise GrowError(UNKNOWN_EVENT, tray=self.code, day_offset=day_offset, kind=kind)

        is_harvest = kind == EventKind.HARVEST

        with transaction.atomic():
            locked = Tray.objects.select_for_update().get(pk=self.pk)

            if locked.marks.filter(day_offset=day_offset, action_kind=kind).exists():
                raise GrowError(
                    ALREADY_RESOLVED, tray=self.code, day_offset=day_offset, kind=kind
                )
            if locked.status != TrayStatus.ACTIVE:
                raise GrowError(INVALID_TRANSITION, tray=self.code, status=locked.status)

            try:
                with transaction.atomic():
                    mark = TrayEventMark.objects.create(
                        tray=locked,
                        day_offset=day_offset,
                        action_kind=kind,
                        resolution=resolution,
                        resolved_by=_username(user),
                    )
            except IntegrityError:
                # Lost the race against a concurrent resolution
                raise GrowError(
                    ALREADY_RESOLVED, tray=self.code, day_offset=day_offset, kind=kind
                )

            if is_harvest:
                locked.status = TrayStatus.HARVESTED
                locked.harvested_at = mark.resolved_at
                locked.harvested_on = locked.farm.today()
                locked.yield_quantity = yield_quantity
                locked.save(
                    update_fields=[
                        "status",
                        "harvested_at",
                        "harvested_on",
                        "yield_quantity",
                        "updated_at",
                    ]
                )

        # Drop a stale prefetch so due_events() sees the new mark
        prefetched = getattr(self, "_prefetched_objects_cache", {})
        prefetched.pop("marks", None)

        logger.info(
            f"Tray {self.code}: {kind} day {day_offset} {resolution}",
            extra={
                "tray": self.code,
                "day_offset": day_offset,
                "kind": kind,
                "resolution": resolution,
                "user": _username(user),
            },
        )

        if is_harvest:
            self.status = locked.status
            self.harvested_at = locked.harvested_at
            self.harvested_on = locked.harvested_on
            self.yield_quantity = locked.yield_quantity

            from growcycle.signals import tray_harvested

            tray_harvested.send(
                sender=self.__class__,
                tray=self,
                yield_quantity=yield_quantity,
                user=user,
            )

        return mark


class TrayEventMark(models.Model):
    """
    Resolution of one timeline event of a tray.

    Unique per (tray, day_offset, action_kind): the first writer wins, any
    later complete/skip of the same event gets ALREADY_RESOLVED.
    """

    tray = models.ForeignKey(
        Tray,
        on_delete=models.CASCADE,
        related_name="marks",
        verbose_name=_("Tray"),
    )
    day_offset = models.IntegerField(
        verbose_name=_("Day"),
        help_text=_("Days from sowing (negative for pre-sowing soak)"),
    )
    action_kind = models.CharField(
        max_length=20,
        choices=EventKind.choices,
        verbose_name=_("Action"),
    )
    resolution = models.CharField(
        max_length=20,
        choices=Resolution.choices,
        verbose_name=_("Resolution"),
    )
    resolved_at = models.DateTimeField(
        default=timezone.now,
        verbose_name=_("Resolved at"),
    )
    resolved_by = models.CharField(
        max_length=150,
        blank=True,
        verbose_name=_("Resolved by"),
    )

    class Meta:
        db_table = "growcycle_tray_event_mark"
        verbose_name = _("Tray event")
        verbose_name_plural = _("Tray events")
        ordering = ["tray", "day_offset", "action_kind"]
        constraints = [
            models.UniqueConstraint(
                fields=["tray", "day_offset", "action_kind"],
                name="growcycle_mark_tray_event_uniq",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.tray.code} day {self.day_offset} {self.action_kind}: {self.resolution}"
