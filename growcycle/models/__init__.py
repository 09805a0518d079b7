"""
Growcycle Models.

Core models for grow-cycle scheduling:
- Farm / Customer: scheduling scope and buyers
- Recipe / RecipeStep: ordered grow phases, compiled into a Timeline
- Tray / TrayEventMark: physical trays and their resolved events
- StandingOrder / SeedingRequest: recurring demand and sowing intents
- MaintenanceTask / MaintenanceCompletion: weekly chores
- CodeSequence: atomic tray code counter
"""

from growcycle.models.farm import Customer, Farm
from growcycle.models.maintenance import MaintenanceCompletion, MaintenanceTask
from growcycle.models.orders import (
    Frequency,
    RequestStatus,
    SeedingRequest,
    SourceType,
    StandingOrder,
)
from growcycle.models.recipe import Recipe, RecipeStep, SeedUnit
from growcycle.models.sequence import CodeSequence
from growcycle.models.tray import LossReason, Resolution, Tray, TrayEventMark, TrayStatus

__all__ = [
    "Farm",
    "Customer",
    "Recipe",
    "RecipeStep",
    "SeedUnit",
    "Tray",
    "TrayStatus",
    "TrayEventMark",
    "LossReason",
    "Resolution",
    "StandingOrder",
    "Frequency",
    "SeedingRequest",
    "RequestStatus",
    "SourceType",
    "MaintenanceTask",
    "MaintenanceCompletion",
    "CodeSequence",
]
