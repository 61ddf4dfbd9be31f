"""Workout plans and their calendar schedule.

Every operation here is pure: it returns a new ``CalendarData`` (or the
input object itself when nothing changed) and never mutates its arguments.
Callers replace their reference with the returned value.
"""

from __future__ import annotations

import datetime
import uuid
from typing import Iterable

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, model_validator

DAY_TARGET_PREFIX = "day-"
PLAN_FIELDS = {"name", "color", "exercises", "duration"}


class WorkoutPlan(BaseModel):
    id: str
    name: str
    color: str
    exercises: list[str] = Field(default_factory=list)
    duration: int | None = Field(default=None, gt=0)


class CalendarData(BaseModel):
    """Plans plus the mapping of ISO date keys to scheduled plan ids."""

    model_config = ConfigDict(populate_by_name=True)

    plans: list[WorkoutPlan] = Field(default_factory=list)
    scheduled_workouts: dict[str, list[str]] = Field(
        default_factory=dict, alias="scheduledWorkouts"
    )

    @model_validator(mode="after")
    def check_unique_plan_ids(self) -> "CalendarData":
        seen = set()
        for plan in self.plans:
            if plan.id in seen:
                raise ValueError(f"duplicate plan id: {plan.id}")
            seen.add(plan.id)
        return self

    def to_dict(self) -> dict:
        data = self.model_dump(by_alias=True)
        for plan in data["plans"]:
            if plan["duration"] is None:
                del plan["duration"]
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "CalendarData":
        calendar = cls.model_validate(data)
        schedule = {k: list(v) for k, v in calendar.scheduled_workouts.items() if v}
        for date_key in schedule:
            normalize_date_key(date_key)
        return calendar.model_copy(update={"scheduled_workouts": schedule})


def normalize_date_key(date_key: str) -> str:
    """Return ``date_key`` if it is an ISO ``YYYY-MM-DD`` date, else raise ValueError."""
    try:
        parsed = datetime.date.fromisoformat(date_key)
    except (TypeError, ValueError):
        raise ValueError(f"invalid date key: {date_key!r}")
    if parsed.isoformat() != date_key:
        raise ValueError(f"invalid date key: {date_key!r}")
    return date_key


def parse_drop_target(target_id: str | None) -> str | None:
    """Map a drop target id such as ``day-2024-06-01`` to its date key."""
    if not target_id or not target_id.startswith(DAY_TARGET_PREFIX):
        return None
    date_key = target_id[len(DAY_TARGET_PREFIX):]
    try:
        return normalize_date_key(date_key)
    except ValueError:
        return None


def day_target(date_key: str) -> str:
    return DAY_TARGET_PREFIX + normalize_date_key(date_key)


def find_plan(calendar: CalendarData, plan_id: str | None) -> WorkoutPlan | None:
    for plan in calendar.plans:
        if plan.id == plan_id:
            return plan
    return None


def add_plan_to_date(
    calendar: CalendarData, plan_id: str, date_key: str
) -> CalendarData:
    normalize_date_key(date_key)
    if find_plan(calendar, plan_id) is None:
        logger.debug(f"Ignoring unknown plan {plan_id} for {date_key}")
        return calendar
    current = calendar.scheduled_workouts.get(date_key, [])
    if plan_id in current:
        return calendar
    schedule = dict(calendar.scheduled_workouts)
    schedule[date_key] = [*current, plan_id]
    return calendar.model_copy(update={"scheduled_workouts": schedule})


def remove_plan_from_date(
    calendar: CalendarData, plan_id: str, date_key: str
) -> CalendarData:
    current = calendar.scheduled_workouts.get(date_key)
    if not current or plan_id not in current:
        return calendar
    remaining = list(current)
    remaining.remove(plan_id)
    schedule = dict(calendar.scheduled_workouts)
    if remaining:
        schedule[date_key] = remaining
    else:
        del schedule[date_key]
    return calendar.model_copy(update={"scheduled_workouts": schedule})


def add_plan(
    calendar: CalendarData,
    name: str,
    color: str,
    exercises: Iterable[str] = (),
    duration: int | None = None,
    plan_id: str | None = None,
) -> tuple[CalendarData, WorkoutPlan]:
    """Append a new plan and return the new calendar along with it."""
    plan = WorkoutPlan(
        id=plan_id or uuid.uuid4().hex,
        name=name,
        color=color,
        exercises=list(exercises),
        duration=duration,
    )
    if find_plan(calendar, plan.id) is not None:
        raise ValueError(f"duplicate plan id: {plan.id}")
    return calendar.model_copy(update={"plans": [*calendar.plans, plan]}), plan


def update_plan(calendar: CalendarData, plan_id: str, **updates) -> CalendarData:
    unknown = set(updates) - PLAN_FIELDS
    if unknown:
        raise ValueError(f"cannot update fields: {', '.join(sorted(unknown))}")
    plans = []
    changed = False
    for plan in calendar.plans:
        if plan.id == plan_id:
            edited = WorkoutPlan(**{**plan.model_dump(), **updates})
            changed = edited != plan
            plans.append(edited)
        else:
            plans.append(plan)
    if not changed:
        return calendar
    return calendar.model_copy(update={"plans": plans})


def delete_plan(calendar: CalendarData, plan_id: str) -> CalendarData:
    """Remove a plan and every schedule entry that references it."""
    if find_plan(calendar, plan_id) is None:
        return calendar
    plans = [p for p in calendar.plans if p.id != plan_id]
    schedule = {}
    for date_key, ids in calendar.scheduled_workouts.items():
        kept = [i for i in ids if i != plan_id]
        if kept:
            schedule[date_key] = kept
    return calendar.model_copy(update={"plans": plans, "scheduled_workouts": schedule})


def plans_for_date(calendar: CalendarData, date_key: str) -> list[WorkoutPlan]:
    by_id = {p.id: p for p in calendar.plans}
    result = []
    for plan_id in calendar.scheduled_workouts.get(date_key, []):
        plan = by_id.get(plan_id)
        if plan is None:
            logger.debug(f"Skipping dangling plan {plan_id} on {date_key}")
            continue
        result.append(plan)
    return result


def dangling_references(calendar: CalendarData) -> dict[str, list[str]]:
    known = {p.id for p in calendar.plans}
    report = {}
    for date_key, ids in calendar.scheduled_workouts.items():
        missing = [i for i in ids if i not in known]
        if missing:
            report[date_key] = missing
    return report
