"""Drag-and-drop scheduling of workout plans onto calendar days."""

from __future__ import annotations

from enum import Enum
from typing import Callable

from loguru import logger

from calendar_model import CalendarData, WorkoutPlan, find_plan, parse_drop_target


class DragPhase(str, Enum):
    IDLE = "idle"
    PENDING = "pending"
    DRAGGING = "dragging"


class DropOutcome(str, Enum):
    ADDED = "added"
    UNCHANGED = "unchanged"
    DISCARDED = "discarded"
    CANCELLED = "cancelled"
    IGNORED = "ignored"


class ActivationConstraint:
    """Movement or press-duration threshold a gesture must meet to become a drag.

    Only consulted for gestures started with ``activated=False``.
    Distance constraints activate once the pointer has travelled ``distance``
    pixels. Delay constraints activate once the press has lasted ``delay_ms``
    while staying within ``tolerance`` pixels; moving further while still
    pending is treated as a scroll and aborts the gesture.
    """

    def __init__(
        self,
        distance: float | None = None,
        delay_ms: float | None = None,
        tolerance: float = 0.0,
    ) -> None:
        if distance is None and delay_ms is None:
            raise ValueError("constraint needs a distance or a delay")
        self.distance = distance
        self.delay_ms = delay_ms
        self.tolerance = tolerance

    def check(self, distance: float, elapsed_ms: float) -> bool | None:
        """Return True to activate, False to abort and None to keep waiting."""
        if self.delay_ms is not None:
            if distance > self.tolerance:
                return False
            return True if elapsed_ms >= self.delay_ms else None
        return True if distance >= self.distance else None

    def __repr__(self) -> str:
        return (
            f"ActivationConstraint(distance={self.distance}, "
            f"delay_ms={self.delay_ms}, tolerance={self.tolerance})"
        )


DEFAULT_CONSTRAINTS = {
    "mouse": ActivationConstraint(distance=3),
    "pointer": ActivationConstraint(distance=3),
    "touch": ActivationConstraint(delay_ms=150, tolerance=5),
}


def constraints_from_settings(settings: dict) -> dict[str, ActivationConstraint]:
    distance = float(settings.get("drag_mouse_distance", 3))
    return {
        "mouse": ActivationConstraint(distance=distance),
        "pointer": ActivationConstraint(distance=distance),
        "touch": ActivationConstraint(
            delay_ms=float(settings.get("drag_touch_delay_ms", 150)),
            tolerance=float(settings.get("drag_touch_tolerance", 5)),
        ),
    }


class DragController:
    """Turns one gesture into at most one add-to-date mutation.

    ``get_calendar`` returns the current calendar and ``apply`` performs the
    mutation, returning the resulting calendar. The controller itself holds
    nothing but the transient drag state.
    """

    def __init__(
        self,
        get_calendar: Callable[[], CalendarData],
        apply: Callable[[str, str], CalendarData],
        constraints: dict[str, ActivationConstraint] | None = None,
    ) -> None:
        self.get_calendar = get_calendar
        self.apply = apply
        self.constraints = dict(constraints or DEFAULT_CONSTRAINTS)
        self.state = DragPhase.IDLE
        self.active_plan_id: str | None = None
        self._device: str | None = None

    @property
    def active_plan(self) -> WorkoutPlan | None:
        if self.state is not DragPhase.DRAGGING:
            return None
        return find_plan(self.get_calendar(), self.active_plan_id)

    def _reset(self) -> None:
        self.state = DragPhase.IDLE
        self.active_plan_id = None
        self._device = None

    def start(self, plan_id: str, device: str = "pointer", activated: bool = True) -> bool:
        """Begin a gesture on ``plan_id``.

        Views whose sensors already applied the activation constraint pass
        ``activated=True`` and the drag starts at once. Callers feeding raw
        pointer events pass ``activated=False`` and report movement through
        ``move`` until the constraint is met.
        """
        if self.state is not DragPhase.IDLE:
            logger.debug(f"Ignoring gesture start on {plan_id}: {self.state.value}")
            return False
        if device not in self.constraints:
            raise ValueError(f"unknown input device: {device}")
        self.active_plan_id = plan_id
        self._device = device
        if activated:
            self.state = DragPhase.DRAGGING
            logger.debug(f"Drag started: {plan_id} ({device})")
        else:
            self.state = DragPhase.PENDING
        return True

    def move(self, distance: float, elapsed_ms: float = 0.0) -> DragPhase:
        if self.state is not DragPhase.PENDING:
            return self.state
        verdict = self.constraints[self._device].check(distance, elapsed_ms)
        if verdict is True:
            self.state = DragPhase.DRAGGING
            logger.debug(f"Drag started: {self.active_plan_id} ({self._device})")
        elif verdict is False:
            logger.debug(f"Gesture on {self.active_plan_id} released to scrolling")
            self._reset()
        return self.state

    def end(self, drop_target: str | None) -> DropOutcome:
        if self.state is DragPhase.IDLE:
            return DropOutcome.IGNORED
        plan_id = self.active_plan_id
        dragging = self.state is DragPhase.DRAGGING
        self._reset()
        if not dragging:
            return DropOutcome.DISCARDED
        date_key = parse_drop_target(drop_target)
        if date_key is None:
            logger.debug(f"Drag ended outside any day: {plan_id} over {drop_target}")
            return DropOutcome.DISCARDED
        before = self.get_calendar()
        after = self.apply(plan_id, date_key)
        if after is before:
            return DropOutcome.UNCHANGED
        logger.info(f"Plan added to day: {plan_id} -> {date_key}")
        return DropOutcome.ADDED

    def cancel(self) -> DropOutcome:
        if self.state is DragPhase.IDLE:
            return DropOutcome.IGNORED
        logger.debug(f"Drag cancelled: {self.active_plan_id}")
        self._reset()
        return DropOutcome.CANCELLED
