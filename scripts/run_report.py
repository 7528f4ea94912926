"""Run the adherence engine over a JSON snapshot and print a report."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import date
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from adherence_engine.adapters import json_adapter
from adherence_engine.agenda import build_daily_agenda_summary
from adherence_engine.analytics import build_task_delta_analysis
from adherence_engine.config import settings
from adherence_engine.dates import date_window, workweek_date_keys
from adherence_engine.history import build_historical_report_summaries
from adherence_engine.performance import compute_weekly_performance
from adherence_engine.status import compute_over_estimate_days

logger = logging.getLogger("run_report")


def _window(args: argparse.Namespace) -> list[str]:
    if args.date_from and args.date_to:
        return date_window(args.date_from, args.date_to)
    if args.date_from or args.date_to:
        raise ValueError("--from and --to must be given together")
    return workweek_date_keys(args.week or date.today().isoformat())


def build_report(snapshot, date_keys: list[str], today: str, warning=None, critical=None) -> dict:
    analysis = build_task_delta_analysis(
        date_keys,
        snapshot.staff,
        snapshot.templates,
        snapshot.completion_items,
        reports=snapshot.reports,
        overrides=snapshot.overrides,
        removals=snapshot.removals,
        current_date_key=today,
        warning_minutes=warning,
        critical_minutes=critical,
    )
    performance = compute_weekly_performance(
        date_keys, snapshot.staff, snapshot.templates, snapshot.completion_items, snapshot.reports
    )
    agenda = build_daily_agenda_summary(
        date_keys[-1],
        snapshot.staff,
        snapshot.templates,
        snapshot.completion_items,
        reports=snapshot.reports,
        custom_tasks=snapshot.custom_tasks,
        removals=snapshot.removals,
    )
    window = set(date_keys)
    history = build_historical_report_summaries(
        [report for report in snapshot.reports if report.report_date in window],
        snapshot.templates,
        snapshot.completion_items,
        custom_tasks=snapshot.custom_tasks,
        removals=snapshot.removals,
    )
    over_estimate = compute_over_estimate_days(
        date_keys, snapshot.templates, snapshot.custom_tasks, snapshot.reports, removals=snapshot.removals
    )
    return json_adapter.to_jsonable(
        {
            "date_keys": date_keys,
            "current_date_key": today,
            "delta_analysis": analysis,
            "performance": performance,
            "daily_agenda": {"date_key": date_keys[-1], "by_user": agenda},
            "historical_reports": history,
            "over_estimate": over_estimate,
        }
    )


def main() -> None:
    parser = argparse.ArgumentParser(description="Run the staff task adherence report")
    parser.add_argument("--data", required=True, help="Path to a JSON snapshot")
    parser.add_argument("--from", dest="date_from", help="First date of the window (YYYY-MM-DD)")
    parser.add_argument("--to", dest="date_to", help="Last date of the window (YYYY-MM-DD)")
    parser.add_argument("--week", help="Any date in the workweek to report on (YYYY-MM-DD)")
    parser.add_argument("--today", help="Date boundary between missing and pending tasks")
    parser.add_argument("--warning", type=int, help="Warning threshold in minutes")
    parser.add_argument("--critical", type=int, help="Critical threshold in minutes")
    args = parser.parse_args()

    logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    snapshot = json_adapter.parse(args.data)
    date_keys = _window(args)
    today = args.today or date.today().isoformat()
    logger.info("Reporting %s..%s for %d staff", date_keys[0], date_keys[-1], len(snapshot.staff))

    report = build_report(snapshot, date_keys, today, warning=args.warning, critical=args.critical)
    print(json.dumps(report, indent=2, ensure_ascii=False))

    outputs_dir = Path("outputs")
    outputs_dir.mkdir(parents=True, exist_ok=True)
    out_path = outputs_dir / "adherence_report.json"
    out_path.write_text(json.dumps(report, indent=2, ensure_ascii=False), encoding="utf-8")
    logger.info("Saved adherence report to %s", out_path)


if __name__ == "__main__":
    main()
