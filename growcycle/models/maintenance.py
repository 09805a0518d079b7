"""
MaintenanceTask and MaintenanceCompletion models.

Recurring weekly chores (clean racks, refill nutrients) that show up in the
daily task list next to tray work.
"""

from django.db import IntegrityError, models, transaction
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from growcycle.choices import Weekday
from growcycle.exceptions import ALREADY_RESOLVED, GrowError
from growcycle.models.tray import Resolution, _username


class MaintenanceTask(models.Model):
    """A chore due every week on one weekday."""

    farm = models.ForeignKey(
        "growcycle.Farm",
        on_delete=models.CASCADE,
        related_name="maintenance_tasks",
        verbose_name=_("Farm"),
    )
    name = models.CharField(
        max_length=200,
        verbose_name=_("Name"),
    )
    weekday = models.PositiveSmallIntegerField(
        choices=Weekday.choices,
        verbose_name=_("Weekday"),
    )
    quantity = models.PositiveIntegerField(
        default=1,
        verbose_name=_("Quantity"),
    )
    is_active = models.BooleanField(
        default=True,
        verbose_name=_("Active"),
    )

    class Meta:
        db_table = "growcycle_maintenance_task"
        verbose_name = _("Maintenance task")
        verbose_name_plural = _("Maintenance tasks")
        ordering = ["weekday", "name"]

    def __str__(self) -> str:
        return f"{self.name} ({self.get_weekday_display()})"

    def resolve(self, day, resolution=Resolution.COMPLETED, user=None):
        """Complete or skip the occurrence due on `day`."""
        try:
            with transaction.atomic():
                return MaintenanceCompletion.objects.create(
                    task=self,
                    date=day,
                    resolution=resolution,
                    resolved_by=_username(user),
                )
        except IntegrityError:
            raise GrowError(ALREADY_RESOLVED, maintenance_task=self.pk, date=str(day))


class MaintenanceCompletion(models.Model):
    """Resolution of one weekly occurrence of a maintenance task."""

    task = models.ForeignKey(
        MaintenanceTask,
        on_delete=models.CASCADE,
        related_name="completions",
        verbose_name=_("Task"),
    )
    date = models.DateField(
        verbose_name=_("Date"),
    )
    resolution = models.CharField(
        max_length=20,
        choices=Resolution.choices,
        default=Resolution.COMPLETED,
        verbose_name=_("Resolution"),
    )
    resolved_at = models.DateTimeField(default=timezone.now, verbose_name=_("Resolved at"))
    resolved_by = models.CharField(max_length=150, blank=True, verbose_name=_("Resolved by"))

    class Meta:
        db_table = "growcycle_maintenance_completion"
        verbose_name = _("Maintenance completion")
        verbose_name_plural = _("Maintenance completions")
        constraints = [
            models.UniqueConstraint(
                fields=["task", "date"], name="growcycle_maintenance_task_date_uniq"
            ),
        ]

    def __str__(self) -> str:
        return f"{self.task.name} {self.date}: {self.resolution}"
