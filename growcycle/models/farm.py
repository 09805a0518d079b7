"""
Farm and Customer models.

Farm carries the scheduling settings the engine reads (allowed seeding
weekdays). Every engine call receives the farm explicitly.
"""

import uuid
import zoneinfo

from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from growcycle.choices import WEEKDAY_NAMES


def validate_weekdays(value):
    """Weekday lists hold unique ints 0 (Mon) .. 6 (Sun)."""
    if not isinstance(value, list):
        raise ValidationError(_("Must be a list of weekday numbers (0=Mon .. 6=Sun)."))
    for day in value:
        if not isinstance(day, int) or isinstance(day, bool) or not 0 <= day <= 6:
            raise ValidationError(
                _("Invalid weekday %(day)r (expected 0=Mon .. 6=Sun)."),
                params={"day": day},
            )
    if len(set(value)) != len(value):
        raise ValidationError(_("Weekdays must not repeat."))


class Farm(models.Model):
    """
    A farm: the scope of every scheduling query.

    seeding_weekdays: Python weekdays (0=Mon .. 6=Sun) on which the farm
    sows. Empty means every day is allowed.
    """

    uuid = models.UUIDField(
        default=uuid.uuid4,
        editable=False,
        unique=True,
        verbose_name=_("UUID"),
    )
    code = models.SlugField(
        unique=True,
        max_length=50,
        verbose_name=_("Code"),
    )
    name = models.CharField(
        max_length=200,
        verbose_name=_("Name"),
    )
    seeding_weekdays = models.JSONField(
        default=list,
        blank=True,
        validators=[validate_weekdays],
        verbose_name=_("Seeding weekdays"),
        help_text=_("0=Mon .. 6=Sun; empty allows every day"),
    )
    low_stock_threshold = models.PositiveIntegerField(
        default=0,
        verbose_name=_("Low stock threshold"),
        help_text=_("Used by inventory, not by scheduling"),
    )
    timezone = models.CharField(
        max_length=64,
        default="UTC",
        verbose_name=_("Time zone"),
        help_text=_("Farm-local calendar used for all schedule dates"),
    )

    created_at = models.DateTimeField(auto_now_add=True, verbose_name=_("created at"))
    updated_at = models.DateTimeField(auto_now=True, verbose_name=_("updated at"))

    class Meta:
        db_table = "growcycle_farm"
        verbose_name = _("Farm")
        verbose_name_plural = _("Farms")
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name

    def save(self, *args, **kwargs):
        self.full_clean()
        super().save(*args, **kwargs)

    def clean(self):
        super().clean()
        try:
            zoneinfo.ZoneInfo(self.timezone)
        except (zoneinfo.ZoneInfoNotFoundError, ValueError):
            raise ValidationError({"timezone": _("Unknown time zone.")})

    def today(self):
        """Current date on the farm-local calendar."""
        return timezone.localtime(timezone.now(), zoneinfo.ZoneInfo(self.timezone)).date()

    def allows_seeding_on(self, day) -> bool:
        """Whether sowing is allowed on the given date."""
        if not self.seeding_weekdays:
            return True
        return day.weekday() in self.seeding_weekdays

    @property
    def seeding_weekday_names(self) -> list[str]:
        return [WEEKDAY_NAMES[d] for d in sorted(self.seeding_weekdays or [])]


class Customer(models.Model):
    """Buyer of standing orders; trays may be assigned to one."""

    farm = models.ForeignKey(
        Farm,
        on_delete=models.CASCADE,
        related_name="customers",
        verbose_name=_("Farm"),
    )
    name = models.CharField(
        max_length=200,
        verbose_name=_("Name"),
    )
    is_active = models.BooleanField(
        default=True,
        verbose_name=_("Active"),
    )
    created_at = models.DateTimeField(auto_now_add=True, verbose_name=_("created at"))

    class Meta:
        db_table = "growcycle_customer"
        verbose_name = _("Customer")
        verbose_name_plural = _("Customers")
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name
