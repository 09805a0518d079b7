"""
Growcycle choice enums.

Kept outside the models package so the pure timeline compiler can use them
without touching the app registry.
"""

from django.db import models
from django.utils.translation import gettext_lazy as _


class ActionKind(models.TextChoices):
    """Kind of a recipe step, set when the recipe is authored."""

    SOAK = "soak", _("Soak")
    SEED = "seed", _("Seed")
    BLACKOUT = "blackout", _("Blackout")
    GERMINATION = "germination", _("Germination")
    GROWING = "growing", _("Growing")
    HARVEST = "harvest", _("Harvest")
    OTHER = "other", _("Other")


class DurationUnit(models.TextChoices):
    DAYS = "days", _("Days")
    HOURS = "hours", _("Hours")


class WaterType(models.TextChoices):
    NONE = "none", _("None")
    WATER = "water", _("Water")
    NUTRIENTS = "nutrients", _("Nutrients")


class WaterMethod(models.TextChoices):
    TOP = "top", _("Top water")
    BOTTOM = "bottom", _("Bottom water")
    MIST = "mist", _("Mist")


class EventKind(models.TextChoices):
    """Kind of a compiled timeline event (what a farm hand actually does)."""

    SOAK = "soak", _("Soak seeds")
    SEED = "seed", _("Seed tray")
    WET_SEEDS = "wet_seeds", _("Wet seeds")
    BLACKOUT = "blackout", _("Start blackout")
    GERMINATION = "germination", _("Start germination")
    UNCOVER = "uncover", _("Uncover")
    GROW = "grow", _("Move to light")
    WATER = "water", _("Water")
    OTHER = "other", _("Other")
    HARVEST = "harvest", _("Harvest")


class TaskBucketKind(models.TextChoices):
    """Daily flow groups."""

    WATER = "water", _("Water")
    UNCOVER = "uncover", _("Uncover")
    BLACKOUT = "blackout", _("Blackout")
    SEED = "seed", _("Seed")
    SOAK = "soak", _("Soak")
    HARVEST = "harvest", _("Harvest")
    MAINTENANCE = "maintenance", _("Maintenance")


BUCKET_FOR_EVENT = {
    EventKind.SOAK.value: TaskBucketKind.SOAK.value,
    EventKind.SEED.value: TaskBucketKind.SEED.value,
    EventKind.WET_SEEDS.value: TaskBucketKind.WATER.value,
    EventKind.WATER.value: TaskBucketKind.WATER.value,
    EventKind.BLACKOUT.value: TaskBucketKind.BLACKOUT.value,
    EventKind.GERMINATION.value: TaskBucketKind.BLACKOUT.value,
    EventKind.UNCOVER.value: TaskBucketKind.UNCOVER.value,
    EventKind.GROW.value: TaskBucketKind.UNCOVER.value,
    EventKind.OTHER.value: TaskBucketKind.MAINTENANCE.value,
    EventKind.HARVEST.value: TaskBucketKind.HARVEST.value,
}

# Events resolved by the seeding request that created the tray.
PRE_TRAY_EVENTS = frozenset({EventKind.SOAK.value, EventKind.SEED.value})

WEEKDAY_NAMES = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]


class Weekday(models.IntegerChoices):
    MONDAY = 0, _("Monday")
    TUESDAY = 1, _("Tuesday")
    WEDNESDAY = 2, _("Wednesday")
    THURSDAY = 3, _("Thursday")
    FRIDAY = 4, _("Friday")
    SATURDAY = 5, _("Saturday")
    SUNDAY = 6, _("Sunday")
