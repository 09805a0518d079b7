"""
Shared fixtures for Growcycle tests.

Reference recipe ("pea"), compiled with the default ceil policy:

    day 0   seed, wet_seeds, blackout
    day 3   uncover, water
    day 4-7 water
    day 8   harvest (total_days = 8)

Soaked recipe ("sunflower"): soak 12h (1 day lead), seed, blackout 2 days,
growing 4 days with daily watering, harvest on day 6.
"""

from datetime import date

import pytest
from django.contrib.auth import get_user_model

from growcycle.conf import reset_quota_backend
from growcycle.models import Customer, Farm, Recipe, Tray

User = get_user_model()

# Monday
SOW = date(2026, 3, 2)

PEA_STEPS = [
    {"sequence_order": 1, "action_kind": "seed", "wet_seeds": True},
    {
        "sequence_order": 2,
        "action_kind": "blackout",
        "duration": 3,
        "requires_weight": True,
        "weight_lbs": 10,
    },
    {
        "sequence_order": 3,
        "action_kind": "growing",
        "duration": 5,
        "water_type": "water",
        "water_method": "top",
        "water_frequency": 1,
    },
    {"sequence_order": 4, "action_kind": "harvest"},
]

SUNFLOWER_STEPS = [
    {"sequence_order": 1, "action_kind": "soak", "duration": 12, "duration_unit": "hours"},
    {"sequence_order": 2, "action_kind": "seed"},
    {"sequence_order": 3, "action_kind": "blackout", "duration": 2},
    {
        "sequence_order": 4,
        "action_kind": "growing",
        "duration": 4,
        "water_type": "water",
        "water_method": "bottom",
        "water_frequency": 2,
    },
    {"sequence_order": 5, "action_kind": "harvest"},
]


@pytest.fixture(autouse=True)
def _fresh_quota_backend():
    reset_quota_backend()
    yield
    reset_quota_backend()


@pytest.fixture
def user(db):
    return User.objects.create_user(username="grower", password="test123")


@pytest.fixture
def farm(db):
    return Farm.objects.create(code="north-farm", name="North Farm", timezone="UTC")


@pytest.fixture
def customer(db, farm):
    return Customer.objects.create(farm=farm, name="Bistro Verde")


@pytest.fixture
def other_customer(db, farm):
    return Customer.objects.create(farm=farm, name="Cafe Azul")


@pytest.fixture
def recipe(db, farm):
    r = Recipe.objects.create(farm=farm, code="pea-v1", name="Pea Shoots", variety_name="Dun Pea")
    r.set_steps(PEA_STEPS)
    return r


@pytest.fixture
def soak_recipe(db, farm):
    r = Recipe.objects.create(farm=farm, code="sunflower-v1", name="Sunflower")
    r.set_steps(SUNFLOWER_STEPS)
    return r


@pytest.fixture
def make_tray(db, farm, recipe):
    """Factory: make_tray(sow_date=SOW, recipe=None, customer=None)."""

    def _make(sow_date=SOW, recipe=recipe, customer=None, **kwargs):
        return Tray.objects.create(
            farm=farm,
            recipe=recipe,
            customer=customer,
            sow_date=sow_date,
            **kwargs,
        )

    return _make


@pytest.fixture
def tray(make_tray):
    return make_tray()
