"""
Recipe and RecipeStep models.

Recipe = grow template for one variety (ordered phases).
RecipeStep = one phase: Soak, Seed, Blackout, Germination, Growing, Harvest...

Recipes are versioned by copy: steps of a recipe with active trays are
frozen, use Recipe.copy() to evolve it.
"""

import logging
import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models, transaction
from django.utils.translation import gettext_lazy as _
from simple_history.models import HistoricalRecords

from growcycle.choices import ActionKind, DurationUnit, WaterMethod, WaterType
from growcycle.conf import get_hour_step_policy
from growcycle.exceptions import RECIPE_IN_USE, GrowError
from growcycle.timeline import StepSpec, Timeline, compile_timeline

logger = logging.getLogger(__name__)

STEP_FIELDS = (
    "sequence_order",
    "action_kind",
    "duration",
    "duration_unit",
    "water_type",
    "water_method",
    "water_frequency",
    "wet_seeds",
    "requires_weight",
    "weight_lbs",
    "instructions",
)


class SeedUnit(models.TextChoices):
    GRAMS = "grams", _("Grams")
    OUNCES = "oz", _("Ounces")


class Recipe(models.Model):
    """
    Grow recipe.

    Defines:
    - Variety grown
    - Seed quantity per tray
    - Ordered steps (RecipeStep), compiled into a Timeline on read
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
        related_name="recipes",
        verbose_name=_("Farm"),
    )

    code = models.SlugField(
        max_length=50,
        verbose_name=_("Code"),
        help_text=_("Identifier unique per farm (e.g. pea-shoots-v2)"),
    )
    name = models.CharField(
        max_length=200,
        verbose_name=_("Name"),
    )
    variety_name = models.CharField(
        max_length=200,
        blank=True,
        verbose_name=_("Variety"),
        help_text=_("Name on the seed bag"),
    )

    seed_quantity = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal("0"),
        verbose_name=_("Seed per tray"),
    )
    seed_quantity_unit = models.CharField(
        max_length=10,
        choices=SeedUnit.choices,
        default=SeedUnit.GRAMS,
        verbose_name=_("Seed unit"),
    )

    is_active = models.BooleanField(
        default=True,
        verbose_name=_("Active"),
        help_text=_("Recipe can be used for new trays"),
    )

    notes = models.TextField(
        blank=True,
        verbose_name=_("Notes"),
    )

    created_at = models.DateTimeField(auto_now_add=True, verbose_name=_("created at"))
    updated_at = models.DateTimeField(auto_now=True, verbose_name=_("updated at"))

    history = HistoricalRecords()

    class Meta:
        db_table = "growcycle_recipe"
        verbose_name = _("Recipe")
        verbose_name_plural = _("Recipes")
        ordering = ["name"]
        constraints = [
            models.UniqueConstraint(
                fields=["farm", "code"], name="growcycle_recipe_farm_code_uniq"
            ),
        ]
        indexes = [
            models.Index(fields=["farm", "is_active"], name="growcycle_recipe_active_idx"),
        ]

    def __str__(self) -> str:
        return self.name

    def clean(self):
        super().clean()
        if self.seed_quantity is not None and self.seed_quantity < 0:
            raise ValidationError({"seed_quantity": _("Must not be negative.")})

    def save(self, *args, **kwargs):
        self.full_clean()
        super().save(*args, **kwargs)

    # ══════════════════════════════════════════════════════════════
    # TIMELINE
    # ══════════════════════════════════════════════════════════════

    def timeline(self, hour_policy: str | None = None) -> Timeline:
        """
        Compiled timeline of this recipe's steps.

        Cached per instance and policy; set_steps() clears the cache.

        Raises:
            GrowError(INVALID_RECIPE) if the stored steps are malformed
        """
        policy = hour_policy or get_hour_step_policy()
        cache = self.__dict__.setdefault("_timeline_cache", {})
        if policy not in cache:
            cache[policy] = compile_timeline(list(self.steps.all()), policy)
        return cache[policy]

    @property
    def total_days(self) -> int:
        """Days from sowing to harvest."""
        return self.timeline().total_days

    @property
    def has_active_trays(self) -> bool:
        from growcycle.models.tray import TrayStatus

        return self.trays.filter(status=TrayStatus.ACTIVE).exists()

    def set_steps(self, steps) -> Timeline:
        """
        Replace all steps and validate them in one transaction.

        Args:
            steps: list of dicts (RecipeStep field names) or StepSpec objects

        Returns:
            The compiled Timeline

        Raises:
            GrowError(INVALID_RECIPE) if the steps do not compile (nothing saved)
            GrowError(RECIPE_IN_USE) if active trays grow from this recipe
        """
        specs = [
            step if isinstance(step, StepSpec) else StepSpec(**step) for step in steps
        ]
        # Validate before touching the database.
        timeline = compile_timeline(specs)

        with transaction.atomic():
            if self.has_active_trays:
                raise GrowError(RECIPE_IN_USE, recipe=self.code)

            self.steps.all().delete()
            RecipeStep.objects.bulk_create(
                [
                    RecipeStep(
                        recipe=self,
                        **{field_name: getattr(spec, field_name) for field_name in STEP_FIELDS},
                    )
                    for spec in specs
                ]
            )

        self.__dict__.pop("_timeline_cache", None)

        logger.info(
            f"Recipe {self.code}: {len(specs)} steps saved ({timeline.total_days} days)",
            extra={
                "recipe": self.code,
                "steps": len(specs),
                "total_days": timeline.total_days,
            },
        )

        return timeline

    def copy(self, code: str, name: str | None = None) -> "Recipe":
        """
        New recipe version with the same steps.

        The original stays untouched (trays keep pointing at it).
        """
        with transaction.atomic():
            clone = Recipe.objects.create(
                farm=self.farm,
                code=code,
                name=name or self.name,
                variety_name=self.variety_name,
                seed_quantity=self.seed_quantity,
                seed_quantity_unit=self.seed_quantity_unit,
                notes=self.notes,
            )
            RecipeStep.objects.bulk_create(
                [
                    RecipeStep(
                        recipe=clone,
                        **{field_name: getattr(step, field_name) for field_name in STEP_FIELDS},
                    )
                    for step in self.steps.all()
                ]
            )

        logger.info(f"Recipe {self.code} copied to {clone.code}")
        return clone


class RecipeStep(models.Model):
    """
    One phase of a recipe.

    duration is in duration_unit (days or hours). Water fields describe the
    recurring watering inside the phase; wet_seeds is the one-time wetting
    right after sowing (Seed step only).
    """

    recipe = models.ForeignKey(
        Recipe,
        on_delete=models.CASCADE,
        related_name="steps",
        verbose_name=_("Recipe"),
    )
    sequence_order = models.PositiveSmallIntegerField(
        verbose_name=_("Order"),
    )
    action_kind = models.CharField(
        max_length=20,
        choices=ActionKind.choices,
        verbose_name=_("Action"),
    )
    duration = models.IntegerField(
        default=0,
        verbose_name=_("Duration"),
    )
    duration_unit = models.CharField(
        max_length=10,
        choices=DurationUnit.choices,
        default=DurationUnit.DAYS,
        verbose_name=_("Unit"),
    )

    # Blackout weight
    requires_weight = models.BooleanField(
        default=False,
        verbose_name=_("Requires weight"),
    )
    weight_lbs = models.DecimalField(
        max_digits=6,
        decimal_places=2,
        null=True,
        blank=True,
        verbose_name=_("Weight (lbs)"),
    )

    # Watering
    water_type = models.CharField(
        max_length=20,
        choices=WaterType.choices,
        default=WaterType.NONE,
        verbose_name=_("Water type"),
    )
    water_method = models.CharField(
        max_length=20,
        choices=WaterMethod.choices,
        blank=True,
        verbose_name=_("Water method"),
    )
    water_frequency = models.PositiveSmallIntegerField(
        default=0,
        verbose_name=_("Times per day"),
    )
    wet_seeds = models.BooleanField(
        default=False,
        verbose_name=_("Wet seeds after sowing"),
    )

    instructions = models.TextField(
        blank=True,
        verbose_name=_("Instructions"),
    )

    class Meta:
        db_table = "growcycle_recipe_step"
        verbose_name = _("Recipe step")
        verbose_name_plural = _("Recipe steps")
        ordering = ["recipe", "sequence_order"]
        constraints = [
            models.UniqueConstraint(
                fields=["recipe", "sequence_order"],
                name="growcycle_step_recipe_order_uniq",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.sequence_order}. {self.get_action_kind_display()} ({self.duration} {self.duration_unit})"

    def save(self, *args, **kwargs):
        # Rows saved by the admin formset were checked once for the whole set
        if not getattr(self, "_in_use_checked", False):
            self._check_editable()
        super().save(*args, **kwargs)
        self.recipe.__dict__.pop("_timeline_cache", None)

    def delete(self, *args, **kwargs):
        if not getattr(self, "_in_use_checked", False):
            self._check_editable()
        result = super().delete(*args, **kwargs)
        self.recipe.__dict__.pop("_timeline_cache", None)
        return result

    def _check_editable(self):
        if self.recipe_id and self.recipe.has_active_trays:
            raise GrowError(RECIPE_IN_USE, recipe=self.recipe.code)
