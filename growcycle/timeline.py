"""
Recipe timeline compiler.

Turns a recipe's ordered grow steps into dated events relative to the sow
date (day_offset 0). Pure and deterministic: no database access, so it can
run at recipe-save time, inside the daily aggregator, or in a batch job.

Usage:
    from growcycle.timeline import StepSpec, compile_timeline

    timeline = compile_timeline([
        StepSpec(1, "seed", 0),
        StepSpec(2, "blackout", 3),
        StepSpec(3, "growing", 5, water_type="water", water_method="top", water_frequency=1),
        StepSpec(4, "harvest", 0),
    ])
    timeline.total_days           # 8
    timeline.get(8, "harvest")    # TimelineEvent(day_offset=8, kind='harvest', ...)

Day accounting:
    - Day-unit steps advance the cursor by their duration.
    - Hour-unit steps advance it by ceil(hours / 24) under the "ceil" policy
      (default) or not at all under "same_day" (see HOUR_STEP_POLICY).
    - Leading Soak steps happen before sowing and get negative offsets.
    - Harvest is always the terminal event; an implicit one is added when
      the recipe has no Harvest step.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable

from growcycle.choices import ActionKind, DurationUnit, EventKind, WaterMethod, WaterType
from growcycle.conf import HOUR_POLICY_CEIL, get_hour_step_policy
from growcycle.exceptions import INVALID_RECIPE, GrowError


# Start-of-phase event for each step kind (Growing is resolved at compile time).
_START_EVENT = {
    ActionKind.SOAK.value: EventKind.SOAK,
    ActionKind.SEED.value: EventKind.SEED,
    ActionKind.BLACKOUT.value: EventKind.BLACKOUT,
    ActionKind.GERMINATION.value: EventKind.GERMINATION,
    ActionKind.OTHER.value: EventKind.OTHER,
}

_COVERED = (ActionKind.BLACKOUT, ActionKind.GERMINATION)

# Sub-event order within a step on the same day.
_SUB_START = 0
_SUB_WET = 1
_SUB_WATER = 2


@dataclass(frozen=True)
class StepSpec:
    """Plain step description, field-compatible with RecipeStep."""

    sequence_order: int
    action_kind: str
    duration: int = 0
    duration_unit: str = DurationUnit.DAYS
    water_type: str = WaterType.NONE
    water_method: str = ""
    water_frequency: int = 0
    wet_seeds: bool = False
    requires_weight: bool = False
    weight_lbs: Decimal | None = None
    instructions: str = ""


@dataclass(frozen=True)
class TimelineEvent:
    """One scheduled action, keyed by (day_offset, kind)."""

    day_offset: int
    kind: str
    step_order: int
    sub_index: int = _SUB_START
    times_per_day: int = 0
    water_type: str = ""
    water_method: str = ""
    requires_weight: bool = False
    weight_lbs: Decimal | None = None
    instructions: str = ""

    @property
    def key(self) -> tuple[int, str]:
        return (self.day_offset, str(self.kind))

    @property
    def label(self) -> str:
        return EventKind(self.kind).label

    def as_dict(self) -> dict:
        data = {
            "day_offset": self.day_offset,
            "kind": str(self.kind),
            "label": str(self.label),
            "step_order": self.step_order,
        }
        if self.times_per_day:
            data["times_per_day"] = self.times_per_day
            data["water_type"] = self.water_type
            data["water_method"] = self.water_method
        if self.requires_weight:
            data["requires_weight"] = True
            data["weight_lbs"] = float(self.weight_lbs) if self.weight_lbs is not None else None
        return data


@dataclass(frozen=True)
class PhaseSpan:
    """Days [start, end) occupied by one step."""

    step_order: int
    action_kind: str
    start: int
    end: int

    def contains(self, day_offset: int) -> bool:
        if self.start == self.end:
            return day_offset == self.start
        return self.start <= day_offset < self.end


@dataclass(frozen=True)
class Timeline:
    """Compiled recipe timeline."""

    events: tuple[TimelineEvent, ...]
    phases: tuple[PhaseSpan, ...]
    total_days: int
    soak_lead_days: int = 0
    harvest_window_days: int = 0
    _index: dict = field(default_factory=dict, repr=False, compare=False)

    def __post_init__(self):
        self._index.update({event.key: event for event in self.events})

    def get(self, day_offset: int, kind: str) -> TimelineEvent | None:
        return self._index.get((day_offset, str(kind)))

    def __contains__(self, key) -> bool:
        day_offset, kind = key
        return (day_offset, str(kind)) in self._index

    def __iter__(self):
        return iter(self.events)

    def __len__(self) -> int:
        return len(self.events)

    def events_on(self, day_offset: int) -> list[TimelineEvent]:
        return [event for event in self.events if event.day_offset == day_offset]

    def phase_at(self, day_offset: int) -> PhaseSpan | None:
        """Step whose span covers day_offset (the last one wins on zero-length overlaps)."""
        found = None
        for phase in self.phases:
            if phase.contains(day_offset):
                found = phase
        return found

    @property
    def harvest(self) -> TimelineEvent:
        return self.get(self.total_days, EventKind.HARVEST)


def _span_days(step, policy: str) -> int:
    duration = int(step.duration or 0)
    if step.duration_unit == DurationUnit.HOURS:
        if policy == HOUR_POLICY_CEIL:
            return math.ceil(duration / 24)
        return 0
    return duration


def _waters(step) -> bool:
    frequency = int(step.water_frequency or 0)
    if frequency <= 0:
        return False
    if step.water_method == WaterMethod.MIST:
        return True
    return (step.water_type or WaterType.NONE) != WaterType.NONE


def validate_steps(steps: Iterable) -> list:
    """
    Check step ordering and durations.

    Returns the steps sorted by sequence_order.

    Raises:
        GrowError(INVALID_RECIPE) on gaps/duplicates, negative durations,
        unknown kinds/units, or a Harvest step that is not last.
    """
    ordered = sorted(steps, key=lambda s: s.sequence_order)

    if not ordered:
        raise GrowError(INVALID_RECIPE, reason="no_steps")

    orders = [s.sequence_order for s in ordered]
    expected = list(range(1, len(ordered) + 1))
    if orders != expected:
        raise GrowError(
            INVALID_RECIPE, reason="sequence_not_dense", sequence=orders
        )

    for step in ordered:
        if step.action_kind not in ActionKind.values:
            raise GrowError(
                INVALID_RECIPE,
                reason="unknown_action_kind",
                step=step.sequence_order,
                action_kind=step.action_kind,
            )
        if step.duration_unit not in DurationUnit.values:
            raise GrowError(
                INVALID_RECIPE,
                reason="unknown_duration_unit",
                step=step.sequence_order,
                duration_unit=step.duration_unit,
            )
        if step.duration is None or int(step.duration) < 0:
            raise GrowError(
                INVALID_RECIPE,
                reason="negative_duration",
                step=step.sequence_order,
                duration=step.duration,
            )

    for step in ordered[:-1]:
        if step.action_kind == ActionKind.HARVEST:
            raise GrowError(
                INVALID_RECIPE, reason="harvest_not_last", step=step.sequence_order
            )

    return ordered


def compile_timeline(steps: Iterable, hour_policy: str | None = None) -> Timeline:
    """
    Compile steps into a Timeline.

    Args:
        steps: RecipeStep instances or StepSpec objects
        hour_policy: "ceil" or "same_day"; defaults to HOUR_STEP_POLICY

    Returns:
        Timeline with events sorted by (day_offset, step order, sub-event)

    Raises:
        GrowError(INVALID_RECIPE) if the steps are malformed
    """
    policy = hour_policy or get_hour_step_policy()
    ordered = validate_steps(steps)

    events: list[TimelineEvent] = []
    phases: list[PhaseSpan] = []

    # Leading soaks happen before the sow date, back to back.
    first_sown = 0
    while first_sown < len(ordered) and ordered[first_sown].action_kind == ActionKind.SOAK:
        first_sown += 1

    pre_sow = ordered[:first_sown]
    soak_lead_days = sum(_span_days(step, policy) for step in pre_sow)
    cursor = -soak_lead_days
    for step in pre_sow:
        span = _span_days(step, policy)
        events.append(_start_event(step, EventKind.SOAK, cursor))
        phases.append(PhaseSpan(step.sequence_order, step.action_kind, cursor, cursor + span))
        cursor += span

    cursor = 0
    covered = False
    seeded = False
    harvest_step = None

    for step in ordered[first_sown:]:
        kind = step.action_kind
        span = _span_days(step, policy)

        if kind == ActionKind.HARVEST:
            harvest_step = step
            break

        if kind == ActionKind.GROWING:
            start_kind = EventKind.UNCOVER if covered else EventKind.GROW
        else:
            start_kind = _START_EVENT[str(kind)]
        events.append(_start_event(step, start_kind, cursor))

        if kind == ActionKind.SEED and not seeded:
            seeded = True
            if step.wet_seeds:
                events.append(
                    TimelineEvent(
                        day_offset=cursor,
                        kind=EventKind.WET_SEEDS,
                        step_order=step.sequence_order,
                        sub_index=_SUB_WET,
                        instructions=step.instructions or "",
                    )
                )

        if _waters(step):
            for day in range(cursor, cursor + span):
                events.append(
                    TimelineEvent(
                        day_offset=day,
                        kind=EventKind.WATER,
                        step_order=step.sequence_order,
                        sub_index=_SUB_WATER,
                        times_per_day=int(step.water_frequency),
                        water_type=step.water_type or WaterType.WATER,
                        water_method=step.water_method or "",
                    )
                )

        if kind != ActionKind.OTHER:
            covered = kind in _COVERED

        phases.append(PhaseSpan(step.sequence_order, kind, cursor, cursor + span))
        cursor += span

    harvest_order = (
        harvest_step.sequence_order if harvest_step else ordered[-1].sequence_order + 1
    )
    events.append(
        TimelineEvent(
            day_offset=cursor,
            kind=EventKind.HARVEST,
            step_order=harvest_order,
            instructions=(harvest_step.instructions or "") if harvest_step else "",
        )
    )
    harvest_window = _span_days(harvest_step, policy) if harvest_step else 0
    phases.append(
        PhaseSpan(harvest_order, ActionKind.HARVEST, cursor, cursor + harvest_window)
    )

    return Timeline(
        events=tuple(_dedupe(events)),
        phases=tuple(phases),
        total_days=cursor,
        soak_lead_days=soak_lead_days,
        harvest_window_days=harvest_window,
    )


def _start_event(step, kind: str, day_offset: int) -> TimelineEvent:
    return TimelineEvent(
        day_offset=day_offset,
        kind=kind,
        step_order=step.sequence_order,
        requires_weight=bool(step.requires_weight),
        weight_lbs=step.weight_lbs if step.requires_weight else None,
        instructions=step.instructions or "",
    )


def _dedupe(events: list[TimelineEvent]) -> list[TimelineEvent]:
    """Sort and keep the first event per (day_offset, kind)."""
    ordered = sorted(events, key=lambda e: (e.day_offset, e.step_order, e.sub_index))
    seen = set()
    result = []
    for event in ordered:
        if event.key in seen:
            continue
        seen.add(event.key)
        result.append(event)
    return result
