import sqlite3
import sys

def migrate(db_path='workout.db'):
    conn = sqlite3.connect(db_path)
    cur = conn.cursor()
    cur.execute("PRAGMA table_info(workout_plans);")
    cols = [r[1] for r in cur.fetchall()]
    if cols:
        if 'duration' not in cols:
            cur.execute("ALTER TABLE workout_plans ADD COLUMN duration INTEGER;")
        if 'position' not in cols:
            cur.execute("ALTER TABLE workout_plans ADD COLUMN position INTEGER NOT NULL DEFAULT 0;")
        if 'updated_at' not in cols:
            cur.execute("ALTER TABLE workout_plans ADD COLUMN updated_at TEXT;")
    cur.execute("PRAGMA table_info(workout_schedule);")
    cols = [r[1] for r in cur.fetchall()]
    if cols and 'position' not in cols:
        cur.execute("ALTER TABLE workout_schedule ADD COLUMN position INTEGER NOT NULL DEFAULT 0;")
    conn.commit()
    conn.close()

if __name__ == '__main__':
    path = sys.argv[1] if len(sys.argv) > 1 else 'workout.db'
    migrate(path)
