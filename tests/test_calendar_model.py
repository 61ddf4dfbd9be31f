import os
import sys

import pytest

sys.path.append(os.path.dirname(os.path.dirname(__file__)))
from calendar_model import (
    CalendarData,
    WorkoutPlan,
    add_plan,
    add_plan_to_date,
    dangling_references,
    day_target,
    delete_plan,
    find_plan,
    parse_drop_target,
    plans_for_date,
    remove_plan_from_date,
    update_plan,
)


def make_calendar(schedule=None) -> CalendarData:
    return CalendarData(
        plans=[
            WorkoutPlan(id="p1", name="Leg Day", color="green", exercises=["sq1"]),
            WorkoutPlan(id="p2", name="Push", color="blue", exercises=["bp1", "dip"]),
        ],
        scheduled_workouts=schedule or {},
    )


def test_add_appends_once():
    cal = make_calendar({"2024-06-01": ["p2"]})
    result = add_plan_to_date(cal, "p1", "2024-06-01")
    assert result.scheduled_workouts["2024-06-01"] == ["p2", "p1"]
    assert cal.scheduled_workouts["2024-06-01"] == ["p2"]


@pytest.mark.parametrize("schedule", [{}, {"2024-06-01": ["p2"]}, {"2024-06-02": ["p1"]}])
def test_add_grows_list_by_one(schedule):
    cal = make_calendar(schedule)
    before = list(cal.scheduled_workouts.get("2024-06-01", []))
    result = add_plan_to_date(cal, "p1", "2024-06-01")
    after = result.scheduled_workouts["2024-06-01"]
    assert len(after) == len(before) + 1
    assert after.count("p1") == 1


def test_add_is_idempotent():
    cal = add_plan_to_date(make_calendar(), "p1", "2024-06-01")
    again = add_plan_to_date(cal, "p1", "2024-06-01")
    assert again == cal
    assert again is cal
    assert add_plan_to_date(again, "p1", "2024-06-01") == again


def test_add_unknown_plan_is_noop():
    cal = make_calendar()
    assert add_plan_to_date(cal, "ghost", "2024-06-01") is cal


def test_add_rejects_bad_date_key():
    with pytest.raises(ValueError):
        add_plan_to_date(make_calendar(), "p1", "June 1st")


@pytest.mark.parametrize("schedule", [{}, {"2024-06-01": ["p2"]}])
def test_add_then_remove_round_trip(schedule):
    cal = make_calendar(schedule)
    round_trip = remove_plan_from_date(
        add_plan_to_date(cal, "p1", "2024-06-01"), "p1", "2024-06-01"
    )
    assert round_trip.scheduled_workouts.get("2024-06-01") == cal.scheduled_workouts.get("2024-06-01")
    assert round_trip == cal


def test_remove_absent_is_noop():
    cal = make_calendar({"2024-06-01": ["p2"]})
    assert remove_plan_from_date(cal, "p1", "2024-06-01") is cal
    assert remove_plan_from_date(cal, "p1", "2030-01-01") is cal


def test_remove_last_plan_drops_date():
    cal = make_calendar({"2024-06-01": ["p1"]})
    result = remove_plan_from_date(cal, "p1", "2024-06-01")
    assert result.scheduled_workouts == {}
    assert cal.scheduled_workouts == {"2024-06-01": ["p1"]}


def test_distinct_dates_accumulate():
    cal = add_plan_to_date(make_calendar(), "p1", "2024-06-01")
    cal = add_plan_to_date(cal, "p1", "2024-06-08")
    assert cal.scheduled_workouts == {"2024-06-01": ["p1"], "2024-06-08": ["p1"]}


def test_parse_drop_target():
    assert parse_drop_target("day-2024-06-01") == "2024-06-01"
    assert parse_drop_target("sidebar") is None
    assert parse_drop_target("day-") is None
    assert parse_drop_target("day-tomorrow") is None
    assert parse_drop_target(None) is None
    assert day_target("2024-06-01") == "day-2024-06-01"


def test_dangling_references_are_tolerated():
    cal = make_calendar({"2024-06-01": ["p1", "gone"], "2024-06-02": ["gone"]})
    assert [p.id for p in plans_for_date(cal, "2024-06-01")] == ["p1"]
    assert plans_for_date(cal, "2024-06-02") == []
    assert dangling_references(cal) == {"2024-06-01": ["gone"], "2024-06-02": ["gone"]}


def test_plan_management():
    cal, plan = add_plan(make_calendar(), "Pull", "red", ["row"], duration=45)
    assert find_plan(cal, plan.id) == plan
    assert plan.duration == 45

    edited = update_plan(cal, plan.id, name="Pull Heavy")
    assert find_plan(edited, plan.id).name == "Pull Heavy"
    assert find_plan(cal, plan.id).name == "Pull"
    assert update_plan(edited, "ghost", name="x") is edited
    with pytest.raises(ValueError):
        update_plan(edited, plan.id, id="other")

    with pytest.raises(ValueError):
        add_plan(cal, "Dup", "red", plan_id=plan.id)


def test_delete_plan_cascades():
    cal = make_calendar({"2024-06-01": ["p1", "p2"], "2024-06-02": ["p1"]})
    result = delete_plan(cal, "p1")
    assert find_plan(result, "p1") is None
    assert result.scheduled_workouts == {"2024-06-01": ["p2"]}
    assert delete_plan(result, "p1") is result


def test_dict_shape():
    cal = make_calendar({"2024-06-01": ["p1"]})
    data = cal.to_dict()
    assert data["scheduledWorkouts"] == {"2024-06-01": ["p1"]}
    assert data["plans"][0] == {"id": "p1", "name": "Leg Day", "color": "green", "exercises": ["sq1"]}
    assert CalendarData.from_dict(data) == cal


def test_from_dict_normalizes_empty_dates():
    cal = CalendarData.from_dict({"plans": [], "scheduledWorkouts": {"2024-06-01": []}})
    assert cal.scheduled_workouts == {}
    with pytest.raises(ValueError):
        CalendarData.from_dict({"plans": [], "scheduledWorkouts": {"soon": ["p1"]}})


def test_duplicate_plan_ids_are_rejected():
    plan = {"id": "a", "name": "Leg Day", "color": "green", "exercises": []}
    with pytest.raises(ValueError):
        CalendarData.from_dict({"plans": [plan, dict(plan, name="Push")], "scheduledWorkouts": {}})
    with pytest.raises(ValueError):
        CalendarData(plans=[WorkoutPlan(**plan), WorkoutPlan(**plan)])
