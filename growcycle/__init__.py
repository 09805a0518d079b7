"""
Django Growcycle - grow-cycle scheduling for microgreens farms.

Recipes compile into dated tray timelines, trays report what they need
each day, standing orders are planned backward into seeding requests,
and ready supply is matched against demand.

Usage:
    from growcycle import grow, GrowError

    bucket = grow.today(farm, date(2026, 3, 5))
    for task in bucket["harvest"]:
        print(task.tray_code, task.urgency)

    try:
        grow.complete(tray, 8, "harvest", yield_quantity="1.25")
    except GrowError as e:
        if e.code == "ALREADY_RESOLVED":
            ...

    result = grow.plan(farm, date(2026, 3, 2), date(2026, 3, 29))
    gaps = grow.gaps(farm, date(2026, 3, 2), date(2026, 3, 8))
"""

from growcycle.exceptions import GrowError


def __getattr__(name):
    """Lazy import to avoid AppRegistryNotReady errors."""
    if name in ("grow", "Grow"):
        from growcycle.service import Grow

        return Grow
    if name == "TaskBucket":
        from growcycle.results import TaskBucket

        return TaskBucket
    if name == "GapReport":
        from growcycle.results import GapReport

        return GapReport
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = ["grow", "Grow", "GrowError", "TaskBucket", "GapReport"]
__version__ = "0.1.0"
