"""
Daily task aggregation -- what the farm has to do on a day.

Read-only projection over active trays, pending seeding requests and
weekly maintenance. Nothing here writes to the database.

Usage:
    from growcycle import grow

    bucket = grow.today(farm, date(2026, 3, 5))
    for task in bucket["water"]:
        print(task.tray_code, task.details["times_per_day"])
    for task in bucket.overdue:
        print("LATE", task.action_kind, task.days_overdue)

    for group in bucket.grouped("water"):
        print(f"Water {group.quantity} trays of {group.variety}")
"""

from __future__ import annotations

import logging
from datetime import date, timedelta

from growcycle.choices import BUCKET_FOR_EVENT, EventKind, TaskBucketKind
from growcycle.exceptions import GrowError
from growcycle.models import (
    MaintenanceTask,
    RequestStatus,
    SeedingRequest,
    Tray,
    TrayStatus,
)
from growcycle.results import URGENCY_NORMAL, URGENCY_URGENT, Task, TaskBucket

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════
# COLLECTORS
# ══════════════════════════════════════════════════════════════


def _load_trays(farm) -> list[Tray]:
    trays = list(
        Tray.objects.filter(farm=farm, status=TrayStatus.ACTIVE)
        .select_related("recipe", "customer")
        .prefetch_related("marks", "recipe__steps")
        .order_by("sow_date", "id")
    )
    # One Recipe instance per id so each timeline compiles once
    recipes = {}
    for tray in trays:
        tray.recipe = recipes.setdefault(tray.recipe_id, tray.recipe)
    return trays


def _tray_tasks(trays: list[Tray], day: date, include_overdue: bool) -> list[Task]:
    tasks = []
    for tray in trays:
        try:
            timeline = tray.timeline
            due = tray.due_events(day)
        except GrowError as e:
            logger.warning(
                f"Tray {tray.code}: recipe {tray.recipe.code} does not compile, skipped",
                extra={"tray": tray.code, "recipe": tray.recipe.code, "error": e.as_dict()},
            )
            continue

        events = list(due.today)
        if include_overdue:
            events += due.overdue

        elapsed = tray.elapsed_days(day)
        for event in events:
            kind = str(event.kind)
            due_date = tray.date_of(event.day_offset)
            days_overdue = (day - due_date).days

            urgency = URGENCY_NORMAL
            if days_overdue > 0:
                urgency = URGENCY_URGENT
            elif kind == EventKind.HARVEST and timeline.harvest_window_days == 0:
                # Harvest day is also the last day of growing
                urgency = URGENCY_URGENT

            tasks.append(
                Task(
                    source="tray",
                    action_kind=kind,
                    bucket=BUCKET_FOR_EVENT[kind],
                    due_date=due_date,
                    urgency=urgency,
                    days_overdue=max(0, days_overdue),
                    tray_id=tray.pk,
                    tray_code=tray.code,
                    day_offset=event.day_offset,
                    recipe_id=tray.recipe_id,
                    quantity=1,
                    location=tray.location,
                    variety=tray.recipe.variety_name or tray.recipe.name,
                    customer=tray.customer.name if tray.customer_id else "",
                    day_current=elapsed,
                    day_total=timeline.total_days,
                    details=event.as_dict(),
                )
            )
    return tasks


def _request_task(request: SeedingRequest, kind: str, due_date: date, day: date) -> Task:
    days_overdue = max(0, (day - due_date).days)
    return Task(
        source="seeding_request",
        action_kind=kind,
        bucket=BUCKET_FOR_EVENT[kind],
        due_date=due_date,
        urgency=URGENCY_URGENT if days_overdue else URGENCY_NORMAL,
        days_overdue=days_overdue,
        request_id=request.pk,
        recipe_id=request.recipe_id,
        quantity=request.remaining,
        variety=request.recipe.variety_name or request.recipe.name,
        customer=request.customer.name if request.customer_id else "",
        details={
            "seed_date": request.seed_date.isoformat(),
            "delivery_date": (
                request.delivery_date.isoformat() if request.delivery_date else None
            ),
            "seed_quantity": str(request.recipe.seed_quantity),
            "seed_quantity_unit": request.recipe.seed_quantity_unit,
        },
    )


def _request_tasks(farm, day: date, include_overdue: bool) -> list[Task]:
    requests = (
        SeedingRequest.objects.filter(farm=farm, status=RequestStatus.PENDING)
        .select_related("recipe", "customer")
        .prefetch_related("recipe__steps")
        .order_by("seed_date", "id")
    )

    tasks = []
    for request in requests:
        try:
            soak_date = request.soak_date
        except GrowError as e:
            logger.warning(
                f"SeedingRequest {request.pk}: recipe {request.recipe.code} does not compile, skipped",
                extra={"request": request.pk, "error": e.as_dict()},
            )
            continue

        if soak_date is not None and request.soaked_at is None:
            if soak_date == day or (include_overdue and soak_date < day):
                tasks.append(_request_task(request, EventKind.SOAK.value, soak_date, day))

        if request.seed_date == day or (include_overdue and request.seed_date < day):
            tasks.append(_request_task(request, EventKind.SEED.value, request.seed_date, day))
    return tasks


def _maintenance_tasks(farm, day: date) -> list[Task]:
    chores = (
        MaintenanceTask.objects.filter(farm=farm, is_active=True, weekday=day.weekday())
        .exclude(completions__date=day)
        .order_by("name", "id")
    )
    return [
        Task(
            source="maintenance",
            action_kind=EventKind.OTHER.value,
            bucket=TaskBucketKind.MAINTENANCE.value,
            due_date=day,
            maintenance_task_id=chore.pk,
            quantity=chore.quantity,
            details={"name": chore.name},
        )
        for chore in chores
    ]


def build_task_bucket(farm, day: date, *, include_overdue: bool = True, trays=None) -> TaskBucket:
    """Assemble the TaskBucket of one day."""
    if trays is None:
        trays = _load_trays(farm)

    bucket = TaskBucket(date=day)
    for task in _tray_tasks(trays, day, include_overdue):
        bucket.add(task)
    for task in _request_tasks(farm, day, include_overdue):
        bucket.add(task)
    for task in _maintenance_tasks(farm, day):
        bucket.add(task)
    bucket.sort()
    return bucket


# ══════════════════════════════════════════════════════════════
# SERVICE
# ══════════════════════════════════════════════════════════════


class GrowTasks:
    """Daily and weekly task queries."""

    @classmethod
    def today(cls, farm, day: date | None = None) -> TaskBucket:
        """
        Tasks due on `day` (default: farm-local today) plus everything overdue.

        Overdue items appear only in the `overdue` bucket, tagged urgent.
        """
        day = day or farm.today()
        bucket = build_task_bucket(farm, day)

        logger.debug(
            f"Farm {farm.code}: {bucket.total} tasks on {day} ({len(bucket.overdue)} overdue)",
            extra={"farm": farm.code, "date": day.isoformat(), "total": bucket.total},
        )
        return bucket

    @classmethod
    def week(cls, farm, week_start: date | None = None) -> list[TaskBucket]:
        """
        Seven daily projections starting at week_start (default: Monday of this week).

        Each day lists only what falls due that day; overdue carry-over is
        left to today().
        """
        if week_start is None:
            today = farm.today()
            week_start = today - timedelta(days=today.weekday())

        trays = _load_trays(farm)
        return [
            build_task_bucket(
                farm, week_start + timedelta(days=i), include_overdue=False, trays=trays
            )
            for i in range(7)
        ]
