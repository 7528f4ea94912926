"""Demo script for adherence-engine."""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from adherence_engine.adapters.json_adapter import parse
from adherence_engine.analytics import build_task_delta_analysis
from adherence_engine.history import build_historical_report_summaries
from adherence_engine.performance import compute_weekly_performance

DATE_KEYS = ["2026-02-26", "2026-02-27"]


def main() -> None:
    snapshot = parse(str(Path(__file__).with_name("sample_snapshot.json")))
    analysis = build_task_delta_analysis(
        DATE_KEYS,
        snapshot.staff,
        snapshot.templates,
        snapshot.completion_items,
        reports=snapshot.reports,
        overrides=snapshot.overrides,
        removals=snapshot.removals,
        current_date_key="2026-02-28",
    )
    for row in analysis.rows:
        print(row.report_date, row.user_id, row.title, row.delta_minutes, row.auto_level, "->", row.final_level)
    print("Totals:", analysis.totals)

    performance = compute_weekly_performance(
        DATE_KEYS, snapshot.staff, snapshot.templates, snapshot.completion_items, snapshot.reports
    )
    print("Performance:", performance.totals)

    for summary in build_historical_report_summaries(
        snapshot.reports, snapshot.templates, snapshot.completion_items, snapshot.custom_tasks, snapshot.removals
    ):
        print(summary.key, summary.completion_label, summary.status)


if __name__ == "__main__":
    main()
