"""
Growcycle Service - Thin wrapper over models and services.

Business logic lives in the models (Tray, SeedingRequest) and in the
service mixins; this class composes them into one entry point.

Usage:
    from growcycle import grow, GrowError

    # Recipes
    timeline = grow.save_recipe(recipe, [
        {"sequence_order": 1, "action_kind": "seed"},
        {"sequence_order": 2, "action_kind": "blackout", "duration": 3},
        {"sequence_order": 3, "action_kind": "growing", "duration": 5,
         "water_type": "water", "water_method": "top", "water_frequency": 1},
        {"sequence_order": 4, "action_kind": "harvest"},
    ])

    # Planning and seeding
    result = grow.plan(farm, date(2026, 3, 2), date(2026, 3, 29))
    trays = grow.complete_seeding(result.created[0], user=operator)

    # Daily work
    bucket = grow.today(farm)
    grow.complete(tray, 3, "uncover", user=operator)
    grow.complete(tray, 8, "harvest", yield_quantity="1.2")

    # Supply vs demand
    gaps = grow.gaps(farm, date(2026, 3, 2), date(2026, 3, 8))
"""

import logging

from growcycle.models import Recipe
from growcycle.services import GrowFulfillment, GrowLifecycle, GrowPlanning, GrowTasks
from growcycle.timeline import StepSpec, Timeline, compile_timeline

logger = logging.getLogger(__name__)


class Grow(GrowLifecycle, GrowTasks, GrowPlanning, GrowFulfillment):
    """
    Main API for Growcycle (thin wrapper).

    Every call takes its context (farm, date) explicitly.
    """

    # ══════════════════════════════════════════════════════════════
    # RECIPES
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def compile(cls, steps, hour_policy: str | None = None) -> Timeline:
        """Compile steps (dicts, StepSpec or RecipeStep) without saving anything."""
        specs = [StepSpec(**step) if isinstance(step, dict) else step for step in steps]
        return compile_timeline(specs, hour_policy)

    @classmethod
    def timeline(cls, recipe: Recipe) -> Timeline:
        return recipe.timeline()

    @classmethod
    def save_recipe(cls, recipe: Recipe, steps) -> Timeline:
        """
        Replace a recipe's steps.

        Raises:
            GrowError(INVALID_RECIPE): steps do not compile (nothing saved)
            GrowError(RECIPE_IN_USE): active trays grow from this recipe
        """
        if recipe.pk is None:
            recipe.save()
        return recipe.set_steps(steps)


grow = Grow
