"""
Growcycle Admin - Django admin for farms, recipes, trays and orders.

Recipe steps are edited inline; the steps of a recipe with active trays
are frozen (the step formset and RecipeStep.save raise RECIPE_IN_USE),
use Recipe.copy(). The submitted steps must compile as a whole.
"""

from django.contrib import admin, messages
from django.core.exceptions import ValidationError
from django.forms.models import BaseInlineFormSet
from django.utils.translation import gettext_lazy as _

from growcycle.exceptions import RECIPE_IN_USE, GrowError
from growcycle.models import (
    Customer,
    Farm,
    LossReason,
    MaintenanceTask,
    Recipe,
    RecipeStep,
    SeedingRequest,
    StandingOrder,
    Tray,
    TrayEventMark,
)
from growcycle.models.recipe import STEP_FIELDS
from growcycle.timeline import StepSpec, compile_timeline


# ── Farm ──


@admin.register(Farm)
class FarmAdmin(admin.ModelAdmin):
    list_display = ("code", "name", "seeding_weekdays", "timezone")
    search_fields = ("code", "name")
    readonly_fields = ("uuid", "created_at", "updated_at")


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = ("name", "farm", "is_active")
    list_filter = ("farm", "is_active")
    search_fields = ("name",)


# ── Recipe ──


class RecipeStepFormSet(BaseInlineFormSet):
    """
    Validates the submitted steps as one recipe before any row is written.

    Steps of a recipe with active trays are refused here once for the
    whole set; the rows are then flagged so RecipeStep.save skips its own
    per-row lookup.
    """

    def clean(self):
        super().clean()
        if any(self.errors):
            return

        recipe = self.instance
        if recipe.pk and self.has_changed() and recipe.has_active_trays:
            raise ValidationError(
                _("Steps of a recipe with active trays are frozen. Copy the recipe to change them."),
                code=RECIPE_IN_USE,
            )

        kept = [
            form
            for form in self.forms
            if form.cleaned_data and not form.cleaned_data.get("DELETE")
        ]
        specs = [
            StepSpec(
                **{
                    name: form.cleaned_data.get(name, getattr(form.instance, name))
                    for name in STEP_FIELDS
                }
            )
            for form in kept
        ]
        try:
            compile_timeline(specs)
        except GrowError as e:
            raise ValidationError(
                _("Invalid recipe steps (%(reason)s)."),
                code=e.code,
                params={"reason": e.details.get("reason", e.code)},
            )

        for form in self.forms:
            form.instance._in_use_checked = True


class RecipeStepInline(admin.TabularInline):
    """Inline for recipe steps."""

    model = RecipeStep
    formset = RecipeStepFormSet
    extra = 1
    fields = (
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
    )


@admin.register(Recipe)
class RecipeAdmin(admin.ModelAdmin):
    """Admin for grow recipes."""

    list_display = ("code", "name", "variety_name", "farm", "is_active")
    list_filter = ("farm", "is_active")
    search_fields = ("code", "name", "variety_name")
    inlines = [RecipeStepInline]
    readonly_fields = ("uuid", "created_at", "updated_at")


# ── Tray ──


class TrayEventMarkInline(admin.TabularInline):
    model = TrayEventMark
    extra = 0
    fields = ("day_offset", "action_kind", "resolution", "resolved_at", "resolved_by")
    readonly_fields = fields
    can_delete = False


@admin.register(Tray)
class TrayAdmin(admin.ModelAdmin):
    """Admin for trays."""

    list_display = ("code", "recipe", "sow_date", "status", "customer", "location")
    list_filter = ("status", "farm", "recipe")
    search_fields = ("code",)
    date_hierarchy = "sow_date"
    raw_id_fields = ("recipe", "seeding_request", "customer")
    readonly_fields = (
        "uuid",
        "code",
        "status",
        "harvested_at",
        "harvested_on",
        "lost_at",
        "created_at",
        "updated_at",
    )
    inlines = [TrayEventMarkInline]
    actions = ["mark_lost_other"]

    @admin.action(description=_("Mark selected trays lost (other)"))
    def mark_lost_other(self, request, queryset):
        lost = 0
        for tray in queryset:
            try:
                tray.mark_lost(LossReason.OTHER, notes="admin", user=request.user)
                lost += 1
            except GrowError as e:
                self.message_user(request, f"{tray.code}: {e}", messages.WARNING)
        self.message_user(request, _("%(count)d trays marked lost.") % {"count": lost})


# ── Orders ──


@admin.register(StandingOrder)
class StandingOrderAdmin(admin.ModelAdmin):
    list_display = ("customer", "recipe", "quantity", "delivery_weekdays", "frequency", "is_active")
    list_filter = ("farm", "frequency", "is_active")
    raw_id_fields = ("customer", "recipe")


@admin.register(SeedingRequest)
class SeedingRequestAdmin(admin.ModelAdmin):
    list_display = ("recipe", "quantity", "quantity_completed", "seed_date", "status", "source_type")
    list_filter = ("status", "source_type", "farm")
    date_hierarchy = "seed_date"
    raw_id_fields = ("recipe", "standing_order", "customer")
    readonly_fields = ("uuid", "quantity_completed", "soaked_at", "created_at", "updated_at")


@admin.register(MaintenanceTask)
class MaintenanceTaskAdmin(admin.ModelAdmin):
    list_display = ("name", "farm", "weekday", "quantity", "is_active")
    list_filter = ("farm", "weekday", "is_active")
