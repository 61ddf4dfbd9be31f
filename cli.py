import argparse
import json
import shutil

from loguru import logger

import calendar_model
from algorithms import MathTools
from calendar_model import CalendarData
from client import CalendarClient
from db import CalendarRepository
from log_setup import setup_logger
from seed_sample_data import seed
from theme import ThemeConfig, resolve_palette


def export_calendar(db_path: str, out_path: str) -> None:
    calendar = CalendarRepository(db_path).load()
    with open(out_path, "w", encoding="utf-8") as f:
        json.dump(calendar.to_dict(), f, indent=2, ensure_ascii=False)
    logger.info(f"Exported {len(calendar.plans)} plans to {out_path}")


def import_calendar(in_path: str, db_path: str) -> CalendarData:
    with open(in_path, "r", encoding="utf-8") as f:
        calendar = CalendarData.from_dict(json.load(f))
    CalendarRepository(db_path).save(calendar)
    logger.info(f"Imported {len(calendar.plans)} plans from {in_path}")
    return calendar


def backup_db(db_path: str, backup_path: str) -> None:
    shutil.copy(db_path, backup_path)


def restore_db(backup_path: str, db_path: str) -> None:
    shutil.copy(backup_path, db_path)


def schedule_plan(db_path: str, plan_id: str, date_key: str, url: str | None = None) -> bool:
    """Schedule ``plan_id`` on ``date_key`` locally or through a running API."""
    if url:
        return CalendarClient(url).schedule(date_key, plan_id) == "added"
    repo = CalendarRepository(db_path)
    before = repo.load()
    after = calendar_model.add_plan_to_date(before, plan_id, date_key)
    if after is before:
        return False
    repo.save(after)
    return True


def unschedule_plan(db_path: str, plan_id: str, date_key: str, url: str | None = None) -> bool:
    if url:
        return CalendarClient(url).unschedule(date_key, plan_id) == "removed"
    repo = CalendarRepository(db_path)
    before = repo.load()
    after = calendar_model.remove_plan_from_date(before, plan_id, date_key)
    if after is before:
        return False
    repo.save(after)
    return True


def check_calendar(db_path: str) -> dict[str, list[str]]:
    return calendar_model.dangling_references(CalendarRepository(db_path).load())


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Workout calendar utilities")
    parser.add_argument("--log-level", default="INFO")
    sub = parser.add_subparsers(dest="cmd", required=True)

    exp = sub.add_parser("export")
    exp.add_argument("--db", default="workout.db")
    exp.add_argument("--out", default="calendar.json")

    imp = sub.add_parser("import")
    imp.add_argument("--in", dest="src", required=True)
    imp.add_argument("--db", default="workout.db")

    bkp = sub.add_parser("backup")
    bkp.add_argument("--db", default="workout.db")
    bkp.add_argument("--out", default="backup.db")

    rst = sub.add_parser("restore")
    rst.add_argument("--in", dest="src", default="backup.db")
    rst.add_argument("--db", default="workout.db")

    demo = sub.add_parser("demo")
    demo.add_argument("--db", default="workout.db")

    for name in ("schedule", "unschedule"):
        cmd = sub.add_parser(name)
        cmd.add_argument("plan_id")
        cmd.add_argument("date")
        cmd.add_argument("--db", default="workout.db")
        cmd.add_argument("--url", default=None)

    chk = sub.add_parser("check")
    chk.add_argument("--db", default="workout.db")

    orm = sub.add_parser("one_rm")
    orm.add_argument("--weight", type=float, required=True)
    orm.add_argument("--reps", type=int, required=True)
    orm.add_argument("--unit", choices=["kg", "lb"], default="kg")
    orm.add_argument("--table", action="store_true")

    conv = sub.add_parser("convert")
    conv.add_argument("--weight", type=float, required=True)
    conv.add_argument("--unit", choices=["kg", "lb"], required=True)

    pal = sub.add_parser("palette")
    pal.add_argument("--theme", default="violet")
    pal.add_argument("--softness", type=float, default=0)

    srv = sub.add_parser("serve")
    srv.add_argument("--db", default="workout.db")
    srv.add_argument("--yaml", default="settings.yaml")
    srv.add_argument("--host", default="127.0.0.1")
    srv.add_argument("--port", type=int, default=8000)

    args = parser.parse_args(argv)
    setup_logger(args.log_level)

    if args.cmd == "export":
        export_calendar(args.db, args.out)
    elif args.cmd == "import":
        try:
            import_calendar(args.src, args.db)
        except ValueError as e:
            logger.error(f"Import failed: {e}")
            parser.exit(1, f"Invalid calendar file: {args.src}\n")
    elif args.cmd == "backup":
        backup_db(args.db, args.out)
    elif args.cmd == "restore":
        restore_db(args.src, args.db)
    elif args.cmd == "demo":
        seed(args.db)
    elif args.cmd == "schedule":
        changed = schedule_plan(args.db, args.plan_id, args.date, args.url)
        print("added" if changed else "unchanged")
    elif args.cmd == "unschedule":
        changed = unschedule_plan(args.db, args.plan_id, args.date, args.url)
        print("removed" if changed else "unchanged")
    elif args.cmd == "check":
        report = check_calendar(args.db)
        if not report:
            print("No dangling plan references")
        for date_key, ids in sorted(report.items()):
            print(f"{date_key}: {', '.join(ids)}")
    elif args.cmd == "one_rm":
        estimate = MathTools.estimated_1rm(args.weight, args.reps)
        print(f"Estimated 1RM: {estimate} {args.unit}")
        if args.table and estimate > 0:
            for reps, weight in MathTools.rep_max_table(estimate):
                print(f"{reps:>2} reps: {weight} {args.unit}")
    elif args.cmd == "convert":
        other = "lb" if args.unit == "kg" else "kg"
        converted = MathTools.convert_weight(args.weight, args.unit, other)
        print(f"{args.weight} {args.unit} = {converted} {other}")
    elif args.cmd == "palette":
        palette = resolve_palette(ThemeConfig(theme=args.theme, softness=args.softness))
        for key, value in palette.items():
            print(f"--{key}: {value};")
    elif args.cmd == "serve":
        import uvicorn
        from rest_api import create_app

        uvicorn.run(create_app(args.db, args.yaml), host=args.host, port=args.port)


if __name__ == "__main__":
    main()
