"""
Growcycle Services.

Business logic that doesn't belong in models:
- lifecycle: due events, complete/skip, loss, seeding completion
- tasks: daily task aggregation (today, week)
- planning: backward planning of seeding requests
- fulfillment: ready supply vs standing-order demand
"""

from growcycle.services.fulfillment import GrowFulfillment
from growcycle.services.lifecycle import GrowLifecycle
from growcycle.services.planning import GrowPlanning, backward_sow_date
from growcycle.services.tasks import GrowTasks, build_task_bucket

__all__ = [
    "GrowLifecycle",
    "GrowTasks",
    "GrowPlanning",
    "GrowFulfillment",
    "backward_sow_date",
    "build_task_bucket",
]
