"""
StandingOrder and SeedingRequest models.

StandingOrder = recurring customer demand (N trays of a product on given
weekdays). SeedingRequest = "sow N trays of recipe R on date D", created by
hand or by the backward planner from a standing order.

SeedingRequest status: PENDING → COMPLETED (all trays sown)
                       PENDING → CANCELLED
"""

import logging
import uuid
from datetime import date, timedelta

from django.core.exceptions import ValidationError
from django.db import models, transaction
from django.db.models import Q
from django.utils import timezone
from django.utils.translation import gettext_lazy as _
from simple_history.models import HistoricalRecords

from growcycle.conf import get_quota_backend
from growcycle.exceptions import (
    ALREADY_RESOLVED,
    INVALID_QUANTITY,
    INVALID_STATUS,
    QUOTA_EXCEEDED,
    GrowError,
)
from growcycle.models.farm import validate_weekdays

logger = logging.getLogger(__name__)


class Frequency(models.TextChoices):
    WEEKLY = "weekly", _("Weekly")
    BIWEEKLY = "biweekly", _("Every two weeks")


class StandingOrder(models.Model):
    """
    Recurring delivery of `quantity` trays to a customer.

    recipe may be empty when the product is not linked to a recipe yet;
    the planner then reports RECIPE_NOT_LINKED for the order.
    """

    farm = models.ForeignKey(
        "growcycle.Farm",
        on_delete=models.CASCADE,
        related_name="standing_orders",
        verbose_name=_("Farm"),
    )
    customer = models.ForeignKey(
        "growcycle.Customer",
        on_delete=models.CASCADE,
        related_name="standing_orders",
        verbose_name=_("Customer"),
    )
    recipe = models.ForeignKey(
        "growcycle.Recipe",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="standing_orders",
        verbose_name=_("Recipe"),
    )
    product_name = models.CharField(
        max_length=200,
        blank=True,
        verbose_name=_("Product"),
    )
    quantity = models.PositiveIntegerField(
        verbose_name=_("Trays per delivery"),
    )
    delivery_weekdays = models.JSONField(
        default=list,
        validators=[validate_weekdays],
        verbose_name=_("Delivery weekdays"),
        help_text=_("0=Mon .. 6=Sun"),
    )
    frequency = models.CharField(
        max_length=20,
        choices=Frequency.choices,
        default=Frequency.WEEKLY,
        verbose_name=_("Frequency"),
    )
    start_date = models.DateField(
        verbose_name=_("Start date"),
    )
    end_date = models.DateField(
        null=True,
        blank=True,
        verbose_name=_("End date"),
    )
    is_active = models.BooleanField(
        default=True,
        verbose_name=_("Active"),
    )

    created_at = models.DateTimeField(
        default=timezone.now, editable=False, verbose_name=_("created at")
    )
    updated_at = models.DateTimeField(auto_now=True, verbose_name=_("updated at"))

    history = HistoricalRecords()

    class Meta:
        db_table = "growcycle_standing_order"
        verbose_name = _("Standing order")
        verbose_name_plural = _("Standing orders")
        ordering = ["created_at", "id"]
        indexes = [
            models.Index(fields=["farm", "is_active"], name="growcycle_order_active_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.customer} - {self.quantity}x {self.product_label}"

    def clean(self):
        super().clean()
        if not self.quantity or self.quantity <= 0:
            raise ValidationError({"quantity": _("Must be greater than zero.")})
        if not self.delivery_weekdays:
            raise ValidationError({"delivery_weekdays": _("At least one weekday is required.")})
        if self.end_date and self.end_date < self.start_date:
            raise ValidationError({"end_date": _("Must not be before the start date.")})

    def save(self, *args, **kwargs):
        self.full_clean()
        super().save(*args, **kwargs)

    @property
    def product_label(self) -> str:
        if self.product_name:
            return self.product_name
        return self.recipe.name if self.recipe_id else "?"

    def is_running_on(self, day: date) -> bool:
        if day < self.start_date:
            return False
        return self.end_date is None or day <= self.end_date

    def delivers_on(self, day: date) -> bool:
        """Whether a delivery falls on `day` (weekday, date range and frequency)."""
        if not self.is_running_on(day) or day.weekday() not in self.delivery_weekdays:
            return False
        if self.frequency == Frequency.BIWEEKLY:
            anchor = self.start_date - timedelta(days=self.start_date.weekday())
            weeks = (day - anchor).days // 7
            return weeks % 2 == 0
        return True

    def delivery_dates(self, start: date, end: date) -> list[date]:
        """Delivery dates in [start, end], ascending."""
        days = (end - start).days
        return [
            start + timedelta(days=i)
            for i in range(days + 1)
            if self.delivers_on(start + timedelta(days=i))
        ]


class RequestStatus(models.TextChoices):
    PENDING = "pending", _("Pending")
    COMPLETED = "completed", _("Completed")
    CANCELLED = "cancelled", _("Cancelled")


class SourceType(models.TextChoices):
    MANUAL = "manual", _("Manual")
    STANDING_ORDER = "standing_order", _("Standing order")


class SeedingRequest(models.Model):
    """
    Intent to sow `quantity` trays of a recipe on `seed_date`.

    At most one non-cancelled request exists per (standing_order, seed_date),
    enforced by a partial unique constraint so concurrent planner runs
    cannot duplicate work.
    """

    uuid = models.UUIDField(
        default=uuid.uuid4,
        editable=False,
        unique=True,
        verbose_name=_("UUID"),
    )
    farm = models.ForeignKey(
        "growcycle.Farm",
        on_delete=models.CASCADE,
        related_name="seeding_requests",
        verbose_name=_("Farm"),
    )
    recipe = models.ForeignKey(
        "growcycle.Recipe",
        on_delete=models.PROTECT,
        related_name="seeding_requests",
        verbose_name=_("Recipe"),
    )
    quantity = models.PositiveIntegerField(
        verbose_name=_("Trays"),
    )
    quantity_completed = models.PositiveIntegerField(
        default=0,
        verbose_name=_("Trays sown"),
    )
    seed_date = models.DateField(
        verbose_name=_("Seed date"),
    )
    soaked_at = models.DateTimeField(
        null=True,
        blank=True,
        verbose_name=_("Soaked at"),
    )
    status = models.CharField(
        max_length=20,
        choices=RequestStatus.choices,
        default=RequestStatus.PENDING,
        verbose_name=_("Status"),
    )

    # Origin
    source_type = models.CharField(
        max_length=20,
        choices=SourceType.choices,
        default=SourceType.MANUAL,
        verbose_name=_("Source"),
    )
    standing_order = models.ForeignKey(
        StandingOrder,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="seeding_requests",
        verbose_name=_("Standing order"),
    )
    customer = models.ForeignKey(
        "growcycle.Customer",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="seeding_requests",
        verbose_name=_("Customer"),
    )
    delivery_date = models.DateField(
        null=True,
        blank=True,
        verbose_name=_("Delivery date"),
    )
    delivery_dates = models.JSONField(
        default=list,
        blank=True,
        verbose_name=_("Delivery dates"),
        help_text=_("ISO dates of the standing-order deliveries this request covers"),
    )

    notes = models.TextField(
        blank=True,
        verbose_name=_("Notes"),
    )

    created_at = models.DateTimeField(auto_now_add=True, verbose_name=_("created at"))
    updated_at = models.DateTimeField(auto_now=True, verbose_name=_("updated at"))

    history = HistoricalRecords()

    class Meta:
        db_table = "growcycle_seeding_request"
        verbose_name = _("Seeding request")
        verbose_name_plural = _("Seeding requests")
        ordering = ["seed_date", "id"]
        constraints = [
            models.UniqueConstraint(
                fields=["standing_order", "seed_date"],
                condition=~Q(status="cancelled"),
                name="growcycle_request_order_date_uniq",
            ),
        ]
        indexes = [
            models.Index(fields=["farm", "status", "seed_date"], name="growcycle_request_due_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.quantity}x {self.recipe.name} on {self.seed_date}"

    # ══════════════════════════════════════════════════════════════
    # PROPERTIES
    # ══════════════════════════════════════════════════════════════

    @property
    def remaining(self) -> int:
        return max(0, self.quantity - self.quantity_completed)

    @property
    def soak_lead_days(self) -> int:
        return self.recipe.timeline().soak_lead_days

    @property
    def needs_soak(self) -> bool:
        from growcycle.choices import EventKind

        return any(event.kind == EventKind.SOAK for event in self.recipe.timeline())

    @property
    def soak_date(self) -> date | None:
        """Day the seeds go into soak (None when the recipe has no soak)."""
        if not self.needs_soak:
            return None
        return self.seed_date - timedelta(days=self.soak_lead_days)

    # ══════════════════════════════════════════════════════════════
    # BUSINESS LOGIC
    # ══════════════════════════════════════════════════════════════

    def complete(self, quantity: int | None = None, user=None, location: str = "", sow_date=None):
        """
        Sow trays for this request.

        Creates `quantity` trays (default: all remaining), pre-resolving their
        soak/seed events. The request completes once every tray is sown.

        Returns:
            List of created Tray instances

        Raises:
            GrowError(INVALID_STATUS): request not pending
            GrowError(INVALID_QUANTITY): quantity <= 0 or above remaining
            GrowError(INVALID_RECIPE): recipe steps do not compile
            GrowError(QUOTA_EXCEEDED): quota backend refused the trays
        """
        from growcycle.models.tray import Tray, _username

        if quantity is None:
            quantity = self.remaining
        quantity = int(quantity)
        if quantity <= 0 or quantity > self.remaining:
            raise GrowError(
                INVALID_QUANTITY,
                request=self.pk,
                quantity=quantity,
                remaining=self.remaining,
            )

        # Refuse trays whose schedule cannot be computed
        self.recipe.timeline()

        backend = get_quota_backend()
        if backend is not None:
            decision = backend.check(self.farm, quantity)
            if not decision.allowed:
                raise GrowError(
                    QUOTA_EXCEEDED,
                    farm=self.farm.code,
                    requested=quantity,
                    limit=decision.limit,
                    message=decision.message,
                )

        sow_date = sow_date or self.farm.today()

        with transaction.atomic():
            locked = SeedingRequest.objects.select_for_update().get(pk=self.pk)
            if locked.status != RequestStatus.PENDING:
                raise GrowError(INVALID_STATUS, request=self.pk, status=locked.status)
            if quantity > locked.remaining:
                raise GrowError(
                    INVALID_QUANTITY,
                    request=self.pk,
                    quantity=quantity,
                    remaining=locked.remaining,
                )

            trays = []
            for _i in range(quantity):
                tray = Tray(
                    farm=self.farm,
                    recipe=self.recipe,
                    seeding_request=locked,
                    customer=self.customer,
                    sow_date=sow_date,
                    location=location,
                    created_by=_username(user),
                )
                tray.save()
                tray.record_sowing(user)
                trays.append(tray)

            locked.quantity_completed += quantity
            if locked.quantity_completed >= locked.quantity:
                locked.status = RequestStatus.COMPLETED
            locked.save(update_fields=["quantity_completed", "status", "updated_at"])

        self.quantity_completed = locked.quantity_completed
        self.status = locked.status

        logger.info(
            f"SeedingRequest {self.pk}: {quantity} trays sown "
            f"({self.quantity_completed}/{self.quantity})",
            extra={
                "request": self.pk,
                "recipe": self.recipe.code,
                "trays": [t.code for t in trays],
                "user": _username(user),
            },
        )

        from growcycle.signals import tray_created

        for tray in trays:
            tray_created.send(
                sender=Tray, tray=tray, seeding_request=self, user=user
            )

        return trays

    def mark_soaked(self, user=None):
        """Record that the seeds went into soak."""
        with transaction.atomic():
            locked = SeedingRequest.objects.select_for_update().get(pk=self.pk)
            if locked.status != RequestStatus.PENDING:
                raise GrowError(INVALID_STATUS, request=self.pk, status=locked.status)
            if locked.soaked_at is not None:
                raise GrowError(ALREADY_RESOLVED, request=self.pk, kind="soak")
            locked.soaked_at = timezone.now()
            locked.save(update_fields=["soaked_at", "updated_at"])

        self.soaked_at = locked.soaked_at
        logger.info(f"SeedingRequest {self.pk}: soaked")

    def cancel(self, reason: str = "", user=None):
        """Cancel a pending request. Its (standing_order, seed_date) slot becomes free."""
        with transaction.atomic():
            locked = SeedingRequest.objects.select_for_update().get(pk=self.pk)
            if locked.status != RequestStatus.PENDING:
                raise GrowError(INVALID_STATUS, request=self.pk, status=locked.status)
            locked.status = RequestStatus.CANCELLED
            if reason:
                locked.notes = f"{locked.notes}\n[CANCELLED] {reason}".strip()
            locked.save(update_fields=["status", "notes", "updated_at"])

        self.status = locked.status
        self.notes = locked.notes
        logger.info(f"SeedingRequest {self.pk} cancelled: {reason}")
