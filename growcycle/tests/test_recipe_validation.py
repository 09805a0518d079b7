"""
Tests for Recipe validation: step replacement, frozen steps, versioning.

Compilation failures surface when a recipe is saved, never later when a
tray is scheduled.
"""

import pytest
from django.core.exceptions import ValidationError

from growcycle import GrowError, grow
from growcycle.exceptions import INVALID_RECIPE, RECIPE_IN_USE
from growcycle.models import Recipe, RecipeStep

from .conftest import PEA_STEPS, SOW


# ═══════════════════════════════════════════════════════════════════
# Saving steps
# ═══════════════════════════════════════════════════════════════════


class TestSaveSteps:
    """grow.save_recipe() / Recipe.set_steps()."""

    def test_save_new_recipe(self, farm):
        recipe = Recipe(farm=farm, code="kale-v1", name="Kale")

        timeline = grow.save_recipe(recipe, PEA_STEPS)

        assert recipe.pk is not None
        assert timeline.total_days == 8
        assert recipe.steps.count() == 4

    def test_invalid_steps_save_nothing(self, recipe):
        bad = [
            {"sequence_order": 1, "action_kind": "seed"},
            {"sequence_order": 2, "action_kind": "blackout", "duration": -3},
        ]

        with pytest.raises(GrowError) as exc:
            grow.save_recipe(recipe, bad)
        assert exc.value.code == INVALID_RECIPE
        assert recipe.steps.count() == 4
        assert recipe.total_days == 8

    def test_replacing_steps_clears_cached_timeline(self, recipe):
        assert recipe.total_days == 8

        recipe.set_steps(
            [
                {"sequence_order": 1, "action_kind": "seed"},
                {"sequence_order": 2, "action_kind": "growing", "duration": 10},
            ]
        )

        assert recipe.total_days == 10

    def test_step_str(self, recipe):
        step = recipe.steps.get(sequence_order=2)

        assert str(step) == "2. Blackout (3 days)"

    def test_negative_seed_quantity(self, farm):
        with pytest.raises(ValidationError):
            Recipe.objects.create(farm=farm, code="bad", name="Bad", seed_quantity=-1)

    def test_code_unique_per_farm(self, recipe, farm):
        with pytest.raises(ValidationError):
            Recipe.objects.create(farm=farm, code=recipe.code, name="Duplicate")


# ═══════════════════════════════════════════════════════════════════
# Frozen steps
# ═══════════════════════════════════════════════════════════════════


class TestRecipeInUse:
    """Steps of a recipe with active trays cannot change."""

    def test_set_steps_refused(self, recipe, tray):
        with pytest.raises(GrowError) as exc:
            recipe.set_steps(PEA_STEPS)
        assert exc.value.code == RECIPE_IN_USE

    def test_step_save_refused(self, recipe, tray):
        step = recipe.steps.get(sequence_order=2)
        step.duration = 4

        with pytest.raises(GrowError) as exc:
            step.save()
        assert exc.value.code == RECIPE_IN_USE
        assert RecipeStep.objects.get(pk=step.pk).duration == 3

    def test_step_delete_refused(self, recipe, tray):
        step = recipe.steps.get(sequence_order=3)

        with pytest.raises(GrowError) as exc:
            step.delete()
        assert exc.value.code == RECIPE_IN_USE
        assert recipe.steps.count() == 4

    def test_editable_again_when_trays_done(self, recipe, tray):
        tray.mark_lost("other")

        recipe.set_steps(PEA_STEPS)

        assert recipe.steps.count() == 4


# ═══════════════════════════════════════════════════════════════════
# Versioning
# ═══════════════════════════════════════════════════════════════════


class TestCopy:
    """Recipe.copy() evolves a recipe without touching running trays."""

    def test_copy_keeps_steps(self, recipe, tray):
        clone = recipe.copy("pea-v2")

        assert clone.pk != recipe.pk
        assert clone.name == recipe.name
        assert clone.variety_name == "Dun Pea"
        assert [e.key for e in clone.timeline()] == [e.key for e in recipe.timeline()]

    def test_copy_is_editable(self, recipe, tray):
        clone = recipe.copy("pea-v2", name="Pea Shoots (short)")

        clone.set_steps(
            [
                {"sequence_order": 1, "action_kind": "seed"},
                {"sequence_order": 2, "action_kind": "growing", "duration": 6},
            ]
        )

        assert clone.total_days == 6
        assert tray.ready_date == SOW.replace(day=SOW.day + 8)

    def test_history_tracks_changes(self, recipe):
        recipe.notes = "Soak-free variety"
        recipe.save()

        assert recipe.history.count() == 2
