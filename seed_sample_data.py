from db import WorkoutPlanRepository

DEFAULT_PLANS = [
    ("1", "Push", "bg-blue-500", ["Bench Press", "Incline Bench Press", "Dips"]),
    ("2", "Pull", "bg-green-500", ["Pull-ups", "Barbell Row", "Biceps Curl"]),
    ("3", "Legs", "bg-red-500", ["Squat", "Deadlift", "Calf Raise"]),
]


def seed(db_path: str = "workout.db") -> bool:
    plans = WorkoutPlanRepository(db_path)
    if plans.fetch_all_plans():
        print("Database already contains workout plans")
        return False
    for plan_id, name, color, exercises in DEFAULT_PLANS:
        plans.create(name, color, exercises, plan_id=plan_id)
    print("Seed data inserted")
    return True


if __name__ == "__main__":
    seed()
