#!/usr/bin/env python3
"""
Event Planner CLI - recalculate timelines and inspect progress from a terminal.

Commands:
  init-db                      Create the database schema
  recalc <timeline_id>         Recalculate block windows and task due dates
  progress <timeline_id>       Show completion and overdue tasks
  history <timeline_id>        Show the audit trail
"""

import argparse
import json
import sys
from datetime import date
from pathlib import Path

from eventplan import config as app_config
from eventplan import db as db_module
from eventplan import paths
from eventplan.audit import AuditLog
from eventplan.errors import RecalculationError
from eventplan.models import Distribution, RecalculationOptions
from eventplan.observability import configure_logging
from eventplan.progress import calculate_progress
from eventplan.recalibration import Recalibrator, load_engine_config
from eventplan.store import TimelineStore


def print_header(text: str):
    """Print a section header."""
    print(f"\n{'═' * 50}")
    print(f"  {text}")
    print(f"{'═' * 50}")


def print_table(headers: list, rows: list, widths: list = None):
    """Print a simple table."""
    if not widths:
        widths = [max(len(str(row[i])) for row in [headers] + rows) for i in range(len(headers))]

    header_str = " │ ".join(str(h).ljust(w) for h, w in zip(headers, widths, strict=True))
    print(header_str)
    print("─" * len(header_str))

    for row in rows:
        print(" │ ".join(str(c)[:w].ljust(w) for c, w in zip(row, widths, strict=True)))


def _store(args) -> TimelineStore:
    return TimelineStore(args.db)


def cmd_init_db(args) -> int:
    info = db_module.init_db(args.db)
    print(f"Database ready at {info['db_path']} (schema v{info['schema_version']})")
    return 1 if info["missing_tables"] else 0


def cmd_recalc(args) -> int:
    config_path = Path(app_config.ENGINE_CONFIG_PATH or paths.engine_config_path())
    recalibrator = Recalibrator(_store(args), load_engine_config(config_path))
    options = RecalculationOptions(
        respect_locks=not args.ignore_locks,
        distribution=Distribution(args.distribution),
        dry_run=args.dry_run,
    )
    today = date.fromisoformat(args.today) if args.today else date.today()

    try:
        result = recalibrator.recalculate(args.timeline_id, options, today=today)
    except RecalculationError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 2 if e.status_code == 404 else 1

    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
        return 0

    title = "Recalculation preview" if args.dry_run else "Recalculated"
    print_header(f"{title}: {args.timeline_id}")
    print(f"  Lead time: {result.lead_time_months} months (scale {result.scale_factor:.3f})")
    print(f"  Dependencies converged: {'yes' if result.converged else 'NO'}")
    print()
    print_table(
        ["Block", "Start", "End"],
        [[w.block_id, w.start_date.isoformat(), w.end_date.isoformat()] for w in result.blocks],
    )
    print()
    print_table(["Task", "Due"], [[t.task_id, t.due_date.isoformat()] for t in result.tasks])
    for d in result.diagnostics:
        print(f"  ! {d.code}: {d.message}")
    return 0


def cmd_progress(args) -> int:
    store = _store(args)
    try:
        timeline = store.fetch_timeline(args.timeline_id)
        blocks = store.fetch_blocks(args.timeline_id)
        tasks = store.fetch_tasks(args.timeline_id)
    except RecalculationError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 2 if e.status_code == 404 else 1

    today = date.fromisoformat(args.today) if args.today else date.today()
    progress = calculate_progress(blocks, tasks, today)

    print_header(f"{timeline.title or timeline.id} — {timeline.event.date.isoformat()}")
    overall = progress.overall
    print(f"  Overall: {overall.completed}/{overall.total} ({overall.percentage}%)")
    for assignee, p in progress.by_assignee.items():
        print(f"  {assignee}: {p.completed}/{p.total} ({p.percentage}%)")
    print()
    titles = {b.id: b.title or b.key for b in blocks}
    print_table(
        ["Block", "Done", "%"],
        [[titles[bid], f"{p.completed}/{p.total}", p.percentage] for bid, p in progress.by_block.items()],
    )
    if progress.overdue_task_ids:
        print(f"\n  Overdue: {', '.join(progress.overdue_task_ids)}")
    return 0


def cmd_history(args) -> int:
    entries = AuditLog(_store(args)).entries_for_timeline(args.timeline_id, limit=args.limit)
    if not entries:
        print(f"No audit entries for {args.timeline_id}")
        return 0
    print_header(f"Audit trail: {args.timeline_id}")
    print_table(
        ["When", "Actor", "Action", "Changes"],
        [[e.created_at, e.actor, e.action, json.dumps(e.changes, sort_keys=True)] for e in entries],
        widths=[25, 10, 8, 60],
    )
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="eventplan", description="Event timeline planner")
    parser.add_argument("--db", help="SQLite DB path (default: EVENTPLAN_DB or ~/.eventplan)")
    parser.add_argument("--log-level", default=app_config.LOG_LEVEL)
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("init-db", help="Create the database schema")
    p.set_defaults(func=cmd_init_db)

    p = sub.add_parser("recalc", help="Recalculate a timeline")
    p.add_argument("timeline_id")
    p.add_argument(
        "--distribution",
        choices=[d.value for d in Distribution],
        default=Distribution.FRONTLOAD.value,
    )
    p.add_argument("--ignore-locks", action="store_true", help="Re-date locked tasks too")
    p.add_argument("--today", help="Reference date YYYY-MM-DD (default: today)")
    p.add_argument("--dry-run", action="store_true", help="Compute without writing")
    p.add_argument("--json", action="store_true", help="Print the result as JSON")
    p.set_defaults(func=cmd_recalc)

    p = sub.add_parser("progress", help="Show timeline progress")
    p.add_argument("timeline_id")
    p.add_argument("--today", help="Reference date YYYY-MM-DD (default: today)")
    p.set_defaults(func=cmd_progress)

    p = sub.add_parser("history", help="Show the audit trail")
    p.add_argument("timeline_id")
    p.add_argument("--limit", type=int, default=20)
    p.set_defaults(func=cmd_history)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level, json_format=False)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
