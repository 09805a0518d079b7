"""
Growcycle Result Types.

Structured, ephemeral results of engine queries and batch operations.
Never persisted: every query builds them fresh from Tray/SeedingRequest state.
"""

from __future__ import annotations

from collections import OrderedDict
from dataclasses import asdict, dataclass, field
from datetime import date
from typing import TYPE_CHECKING, Any

from growcycle.choices import TaskBucketKind

if TYPE_CHECKING:
    from growcycle.models import SeedingRequest
    from growcycle.timeline import TimelineEvent


URGENCY_NORMAL = "normal"
URGENCY_URGENT = "urgent"

OUTCOME_OK = "ok"


# ══════════════════════════════════════════════════════════════
# TRAY LIFECYCLE
# ══════════════════════════════════════════════════════════════


@dataclass
class DueEvents:
    """Events a tray needs on a day: due today, and past-due unresolved."""

    today: list[TimelineEvent] = field(default_factory=list)
    overdue: list[TimelineEvent] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.today and not self.overdue


@dataclass
class ResolveOutcome:
    """Result of one complete/skip inside a batch."""

    tray_id: int
    day_offset: int
    kind: str
    status: str = OUTCOME_OK
    details: dict = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status == OUTCOME_OK


@dataclass
class BatchResult:
    """Per-item outcomes of a batch; partial success is a normal result."""

    outcomes: list[ResolveOutcome] = field(default_factory=list)

    @property
    def succeeded(self) -> list[ResolveOutcome]:
        return [o for o in self.outcomes if o.ok]

    @property
    def failed(self) -> list[ResolveOutcome]:
        return [o for o in self.outcomes if not o.ok]

    @property
    def all_ok(self) -> bool:
        return not self.failed

    def extend(self, other: BatchResult) -> None:
        self.outcomes.extend(other.outcomes)


# ══════════════════════════════════════════════════════════════
# DAILY TASKS
# ══════════════════════════════════════════════════════════════


@dataclass
class Task:
    """One thing to do on a day (computed, never stored)."""

    source: str  # "tray" | "seeding_request" | "maintenance"
    action_kind: str
    bucket: str
    due_date: date
    urgency: str = URGENCY_NORMAL
    days_overdue: int = 0
    tray_id: int | None = None
    tray_code: str = ""
    request_id: int | None = None
    maintenance_task_id: int | None = None
    day_offset: int | None = None
    recipe_id: int | None = None
    quantity: int = 1
    location: str = ""
    variety: str = ""
    customer: str = ""
    day_current: int | None = None
    day_total: int | None = None
    details: dict = field(default_factory=dict)

    @property
    def is_overdue(self) -> bool:
        return self.days_overdue > 0

    @property
    def is_urgent(self) -> bool:
        return self.urgency == URGENCY_URGENT

    def as_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["due_date"] = self.due_date.isoformat()
        return data


@dataclass
class TaskGroup:
    """Same action on several trays of one recipe ("Water 5 trays of Pea")."""

    action_kind: str
    recipe_id: int | None
    due_date: date
    variety: str
    urgency: str
    tray_ids: list[int] = field(default_factory=list)
    quantity: int = 0


@dataclass
class TaskBucket:
    """
    A day's work grouped by action, with overdue items surfaced separately.

    An overdue item lives only in `overdue`, never in its action bucket.
    """

    date: date
    buckets: OrderedDict = field(
        default_factory=lambda: OrderedDict((kind.value, []) for kind in TaskBucketKind)
    )
    overdue: list[Task] = field(default_factory=list)

    def add(self, task: Task) -> None:
        if task.is_overdue:
            self.overdue.append(task)
        else:
            self.buckets[task.bucket].append(task)

    def __getitem__(self, bucket: str) -> list[Task]:
        if bucket == "overdue":
            return self.overdue
        return self.buckets[str(bucket)]

    @property
    def all_tasks(self) -> list[Task]:
        tasks = [task for bucket in self.buckets.values() for task in bucket]
        return tasks + self.overdue

    @property
    def total(self) -> int:
        return len(self.all_tasks)

    @property
    def urgent_count(self) -> int:
        return sum(1 for task in self.all_tasks if task.is_urgent)

    def sort(self) -> None:
        """Deterministic order: urgency first, then due date, then identity."""

        def key(task: Task):
            return (
                0 if task.is_urgent else 1,
                task.due_date,
                task.variety,
                task.tray_id or 0,
                task.request_id or 0,
                task.maintenance_task_id or 0,
                task.day_offset or 0,
                task.action_kind,
            )

        for tasks in self.buckets.values():
            tasks.sort(key=key)
        self.overdue.sort(key=key)

    def grouped(self, bucket: str) -> list[TaskGroup]:
        """Collapse tray tasks of a bucket into (recipe, action, due date) groups."""
        groups: OrderedDict = OrderedDict()
        for task in self[bucket]:
            group_key = (task.action_kind, task.recipe_id, task.due_date)
            group = groups.get(group_key)
            if group is None:
                group = groups[group_key] = TaskGroup(
                    action_kind=task.action_kind,
                    recipe_id=task.recipe_id,
                    due_date=task.due_date,
                    variety=task.variety,
                    urgency=task.urgency,
                )
            if task.tray_id is not None:
                group.tray_ids.append(task.tray_id)
            group.quantity += task.quantity
            if task.is_urgent:
                group.urgency = URGENCY_URGENT
        return list(groups.values())

    def as_dict(self) -> dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "buckets": {
                name: [task.as_dict() for task in tasks]
                for name, tasks in self.buckets.items()
            },
            "overdue": [task.as_dict() for task in self.overdue],
            "total": self.total,
            "urgent": self.urgent_count,
        }


# ══════════════════════════════════════════════════════════════
# PLANNING
# ══════════════════════════════════════════════════════════════


@dataclass
class PlanningFailure:
    """A standing order (or one of its delivery slots) that could not be planned."""

    standing_order_id: int
    code: str
    details: dict = field(default_factory=dict)
    delivery_date: date | None = None


@dataclass
class PlanResult:
    """
    Outcome of a backward planning run.

    created: SeedingRequests inserted by this run
    extended: existing requests that took on deliveries new to this run
    skipped: (standing_order_id, seed_date) slots that already covered every delivery
    failures: per-order/per-slot problems (never abort the batch)
    """

    created: list[SeedingRequest] = field(default_factory=list)
    extended: list[SeedingRequest] = field(default_factory=list)
    skipped: list[tuple[int, date]] = field(default_factory=list)
    failures: list[PlanningFailure] = field(default_factory=list)

    @property
    def has_failures(self) -> bool:
        return len(self.failures) > 0


# ══════════════════════════════════════════════════════════════
# FULFILLMENT
# ══════════════════════════════════════════════════════════════


FULFILLED = "fulfilled"
PARTIAL = "partial"
NO_TRAYS = "no_trays"


@dataclass
class GapReport:
    """Supply vs demand for one (customer, recipe, delivery date)."""

    customer_id: int
    customer_name: str
    recipe_id: int
    recipe_name: str
    delivery_date: date
    trays_needed: int = 0
    trays_ready: int = 0
    standing_order_ids: list[int] = field(default_factory=list)
    tray_ids: list[int] = field(default_factory=list)
    soonest_ready_date: date | None = None

    @property
    def shortfall(self) -> int:
        return max(0, self.trays_needed - self.trays_ready)

    @property
    def surplus(self) -> int:
        return max(0, self.trays_ready - self.trays_needed)

    @property
    def status(self) -> str:
        if self.trays_ready >= self.trays_needed:
            return FULFILLED
        if self.trays_ready > 0:
            return PARTIAL
        return NO_TRAYS

    def as_dict(self) -> dict[str, Any]:
        return {
            "customer_id": self.customer_id,
            "customer_name": self.customer_name,
            "recipe_id": self.recipe_id,
            "recipe_name": self.recipe_name,
            "delivery_date": self.delivery_date.isoformat(),
            "trays_needed": self.trays_needed,
            "trays_ready": self.trays_ready,
            "shortfall": self.shortfall,
            "surplus": self.surplus,
            "status": self.status,
            "standing_order_ids": list(self.standing_order_ids),
            "tray_ids": list(self.tray_ids),
            "soonest_ready_date": (
                self.soonest_ready_date.isoformat() if self.soonest_ready_date else None
            ),
        }
