import os
import sys

import pytest

sys.path.append(os.path.dirname(os.path.dirname(__file__)))
from calendar_model import CalendarData, WorkoutPlan, add_plan_to_date
from drag_controller import (
    ActivationConstraint,
    DragController,
    DragPhase,
    DropOutcome,
    constraints_from_settings,
)


class CalendarHolder:
    def __init__(self) -> None:
        self.calendar = CalendarData(
            plans=[WorkoutPlan(id="p1", name="Leg Day", color="green", exercises=["sq1"])],
            scheduled_workouts={},
        )
        self.applied = []

    def apply(self, plan_id: str, date_key: str) -> CalendarData:
        self.applied.append((plan_id, date_key))
        self.calendar = add_plan_to_date(self.calendar, plan_id, date_key)
        return self.calendar

    def controller(self, **kwargs) -> DragController:
        return DragController(lambda: self.calendar, self.apply, **kwargs)


def drag(ctrl: DragController, plan_id: str, target, device: str = "pointer"):
    ctrl.start(plan_id, device)
    return ctrl.end(target)


def test_drop_on_day_schedules_plan():
    holder = CalendarHolder()
    ctrl = holder.controller()
    assert ctrl.start("p1", "mouse")
    assert ctrl.state is DragPhase.DRAGGING
    assert ctrl.end("day-2024-06-01") is DropOutcome.ADDED
    assert holder.calendar.scheduled_workouts == {"2024-06-01": ["p1"]}
    assert ctrl.state is DragPhase.IDLE
    assert ctrl.active_plan_id is None


@pytest.mark.parametrize("device", ["mouse", "pointer", "touch"])
def test_start_end_only_gesture(device):
    holder = CalendarHolder()
    ctrl = holder.controller()
    assert drag(ctrl, "p1", "day-2024-06-01", device) is DropOutcome.ADDED
    assert holder.calendar.scheduled_workouts == {"2024-06-01": ["p1"]}


def test_drop_outside_day_is_discarded():
    holder = CalendarHolder()
    ctrl = holder.controller()
    assert drag(ctrl, "p1", "sidebar") is DropOutcome.DISCARDED
    assert drag(ctrl, "p1", None) is DropOutcome.DISCARDED
    assert holder.calendar.scheduled_workouts == {}
    assert holder.applied == []
    assert ctrl.state is DragPhase.IDLE


def test_cancel_then_fresh_drag():
    holder = CalendarHolder()
    ctrl = holder.controller()
    ctrl.start("p1", "mouse")
    assert ctrl.active_plan.name == "Leg Day"
    assert ctrl.cancel() is DropOutcome.CANCELLED
    assert ctrl.state is DragPhase.IDLE
    assert holder.calendar.scheduled_workouts == {}

    assert drag(ctrl, "p1", "day-2024-06-01", "mouse") is DropOutcome.ADDED
    assert holder.calendar.scheduled_workouts == {"2024-06-01": ["p1"]}


def test_sequential_drags_accumulate():
    holder = CalendarHolder()
    ctrl = holder.controller()
    drag(ctrl, "p1", "day-2024-06-01")
    drag(ctrl, "p1", "day-2024-06-03")
    assert holder.calendar.scheduled_workouts == {
        "2024-06-01": ["p1"],
        "2024-06-03": ["p1"],
    }


def test_duplicate_drop_is_unchanged():
    holder = CalendarHolder()
    ctrl = holder.controller()
    drag(ctrl, "p1", "day-2024-06-01")
    assert drag(ctrl, "p1", "day-2024-06-01") is DropOutcome.UNCHANGED
    assert holder.calendar.scheduled_workouts == {"2024-06-01": ["p1"]}
    assert ctrl.state is DragPhase.IDLE


def test_dangling_plan_drop_is_unchanged():
    holder = CalendarHolder()
    ctrl = holder.controller()
    ctrl.start("ghost")
    assert ctrl.active_plan is None
    assert ctrl.end("day-2024-06-01") is DropOutcome.UNCHANGED
    assert holder.calendar.scheduled_workouts == {}
    assert ctrl.state is DragPhase.IDLE


def test_move_on_active_drag_keeps_dragging():
    ctrl = CalendarHolder().controller()
    ctrl.start("p1")
    assert ctrl.move(0) is DragPhase.DRAGGING


def test_raw_pointer_click_does_not_drag():
    holder = CalendarHolder()
    ctrl = holder.controller()
    ctrl.start("p1", "pointer", activated=False)
    assert ctrl.move(2) is DragPhase.PENDING
    assert ctrl.end("day-2024-06-01") is DropOutcome.DISCARDED
    assert holder.applied == []


def test_raw_pointer_activates_after_distance():
    holder = CalendarHolder()
    ctrl = holder.controller()
    ctrl.start("p1", "mouse", activated=False)
    assert ctrl.move(4) is DragPhase.DRAGGING
    assert ctrl.end("day-2024-06-01") is DropOutcome.ADDED


def test_raw_touch_requires_press_delay():
    holder = CalendarHolder()
    ctrl = holder.controller()
    ctrl.start("p1", "touch", activated=False)
    assert ctrl.move(2, 100) is DragPhase.PENDING
    assert ctrl.move(3, 160) is DragPhase.DRAGGING
    assert ctrl.end("day-2024-06-01") is DropOutcome.ADDED


def test_raw_touch_scroll_releases_gesture():
    holder = CalendarHolder()
    ctrl = holder.controller()
    ctrl.start("p1", "touch", activated=False)
    assert ctrl.move(20, 40) is DragPhase.IDLE
    assert ctrl.end("day-2024-06-01") is DropOutcome.IGNORED
    assert holder.applied == []


def test_second_start_is_ignored():
    holder = CalendarHolder()
    ctrl = holder.controller()
    assert ctrl.start("p1")
    assert not ctrl.start("p2")
    assert ctrl.active_plan_id == "p1"
    assert ctrl.end("day-2024-06-01") is DropOutcome.ADDED
    assert holder.applied == [("p1", "2024-06-01")]


def test_idle_end_and_cancel_are_ignored():
    ctrl = CalendarHolder().controller()
    assert ctrl.end("day-2024-06-01") is DropOutcome.IGNORED
    assert ctrl.cancel() is DropOutcome.IGNORED


def test_unknown_device():
    ctrl = CalendarHolder().controller()
    with pytest.raises(ValueError):
        ctrl.start("p1", "stylus")
    assert ctrl.state is DragPhase.IDLE


def test_constraints_from_settings():
    constraints = constraints_from_settings(
        {"drag_mouse_distance": 8.0, "drag_touch_delay_ms": 50.0, "drag_touch_tolerance": 8.0}
    )
    holder = CalendarHolder()
    ctrl = holder.controller(constraints=constraints)
    ctrl.start("p1", "mouse", activated=False)
    assert ctrl.move(5) is DragPhase.PENDING
    assert ctrl.move(8) is DragPhase.DRAGGING
    ctrl.cancel()
    ctrl.start("p1", "touch", activated=False)
    assert ctrl.move(7, 60) is DragPhase.DRAGGING


def test_constraint_validation():
    with pytest.raises(ValueError):
        ActivationConstraint()
