from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import List, Optional, Sequence

from .io_utils import (
    ensure_directory,
    load_config,
    load_resources,
    load_tasks,
    parse_reference_date,
    write_csv,
)
from .models import AssignmentPlan, ProjectionResult, SchedulerConfig
from .planner import AssignmentPlanner, current_workload, unassigned_tasks, with_committed_hours
from .projector import TimelineProjector
from .reporting import (
    assignments_frame,
    format_date_range,
    schedules_frame,
    summarize_plan,
    timelines_frame,
)
from .roles import with_inferred_roles


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Bandwidth-aware task scheduling (JSON in, CSV out)."
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    def _common(sub: argparse.ArgumentParser) -> None:
        sub.add_argument("--tasks", required=True, help="Path to tasks JSON (array, subtasks nested)")
        sub.add_argument("--config", help="Path to configuration JSON file")
        sub.add_argument(
            "--reference-date",
            help="ISO date inside week 1 of the horizon (default: today)",
        )
        sub.add_argument("--horizon", type=int, help="Override the number of weeks to look ahead")
        sub.add_argument("--outdir", default="out", help="Output directory for generated files")
        sub.add_argument(
            "--dry-run",
            action="store_true",
            help="Print a summary without writing output files",
        )

    project_parser = subparsers.add_parser(
        "project", help="Project timelines for tasks that already have an assignee"
    )
    _common(project_parser)
    project_parser.add_argument(
        "--resources",
        help="Optional resources JSON; fills in resources not embedded in the tasks",
    )

    plan_parser = subparsers.add_parser(
        "plan", help="Preview assignments for unassigned tasks"
    )
    _common(plan_parser)
    plan_parser.add_argument("--resources", required=True, help="Path to resources JSON")
    plan_parser.add_argument(
        "--strict",
        action="store_true",
        help="Exit with status 1 if any task cannot be placed within the horizon",
    )
    return parser.parse_args(argv)


def _configure_logging(level_name: str) -> None:
    level = getattr(logging, level_name.upper(), logging.INFO)
    logging.basicConfig(level=level, format="%(levelname)s %(message)s")


def _resolve_config(args: argparse.Namespace) -> SchedulerConfig:
    cfg = load_config(args.config) if args.config else SchedulerConfig()
    if args.horizon is not None:
        if args.horizon <= 0:
            raise ValueError("--horizon must be a positive integer")
        field_name = "planning_weeks" if args.command == "plan" else "projection_weeks"
        cfg = replace(cfg, **{field_name: args.horizon})
    return cfg


def _print_projection(result: ProjectionResult) -> None:
    print(f"Week 1 starts {result.reference_date.isoformat()} (reference date)")
    for task_id, timeline in result.timelines.items():
        status = "scheduled" if timeline.is_scheduled else ("partial" if timeline.is_partial else "unscheduled")
        print(f"- {task_id}: {format_date_range(timeline.start_date, timeline.end_date)} [{status}]")


def _print_plan(plan: AssignmentPlan, cfg: SchedulerConfig) -> None:
    report = summarize_plan(plan, cfg)
    print(report.title)
    print(report.description)
    if plan.assignments:
        print("\nAssignments:")
        names = {s.resource_id: s.resource_name for s in plan.schedules}
        for assignment in plan.assignments:
            print(
                f"- {assignment.task_id} → {names.get(assignment.resource_id, assignment.resource_id)} "
                f"(week {assignment.scheduled_week}): {assignment.reason}"
            )
    if plan.unassigned:
        print("\nUnassigned tasks:")
        for item in plan.unassigned:
            print(f"- {item.task_id} {item.title}: {item.reason}")
    if report.suggestions:
        print("\nSuggestions:")
        for suggestion in report.suggestions:
            print(f"- {suggestion}")


def _write_unassigned_markdown(plan: AssignmentPlan, outdir: Path) -> Path:
    path = outdir / "unassigned_tasks.md"
    lines: List[str] = ["# Unassigned Tasks", ""]
    if not plan.unassigned:
        lines.append("All tasks were assigned.")
    else:
        for item in plan.unassigned:
            lines.append(f"- **{item.task_id} – {item.title}**")
            lines.append(f"  - Reason: {item.reason}")
            for rejection in item.rejections:
                lines.append(f"  - {rejection.resource_id}: {rejection.reason}")
            lines.append("")
    path.write_text("\n".join(lines).strip() + "\n")
    return path


def _run_project(args: argparse.Namespace, cfg: SchedulerConfig) -> int:
    tasks = load_tasks(args.tasks, cfg)
    resources = load_resources(args.resources, cfg) if args.resources else None
    reference_date = parse_reference_date(args.reference_date)
    result = TimelineProjector(cfg).project(tasks, reference_date, resources)

    if args.dry_run:
        _print_projection(result)
        return 0

    outdir = ensure_directory(args.outdir)
    timeline_path = outdir / "timelines.csv"
    schedule_path = outdir / "resource_schedule.csv"
    write_csv(timelines_frame(result), timeline_path)
    write_csv(schedules_frame(result.schedules.values()), schedule_path)
    print(f"Wrote {timeline_path}")
    print(f"Wrote {schedule_path}")
    return 0


def _run_plan(args: argparse.Namespace, cfg: SchedulerConfig) -> int:
    tasks = load_tasks(args.tasks, cfg)
    resources = load_resources(args.resources, cfg)
    reference_date = parse_reference_date(args.reference_date)

    candidates = unassigned_tasks(tasks)
    if cfg.infer_roles:
        candidates = with_inferred_roles(candidates)
    resources = with_committed_hours(resources, current_workload(tasks))
    plan = AssignmentPlanner(cfg).plan(candidates, resources, reference_date)

    if args.dry_run:
        _print_plan(plan, cfg)
    else:
        outdir = ensure_directory(args.outdir)
        assignments_path = outdir / "assignments.csv"
        schedule_path = outdir / "resource_schedule.csv"
        write_csv(assignments_frame(plan), assignments_path)
        write_csv(schedules_frame(plan.schedules), schedule_path)
        markdown_path = _write_unassigned_markdown(plan, outdir)
        print(f"Wrote {assignments_path}")
        print(f"Wrote {schedule_path}")
        print(f"Wrote {markdown_path}")

    if args.strict and plan.summary.overflow_tasks:
        print(
            f"{plan.summary.overflow_tasks} task(s) could not be placed within "
            f"{cfg.planning_weeks} weeks",
            file=sys.stderr,
        )
        return 1
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _parse_args(argv)
    try:
        cfg = _resolve_config(args)
        _configure_logging(cfg.logging_level)
        if args.command == "project":
            return _run_project(args, cfg)
        return _run_plan(args, cfg)
    except (ValueError, OSError) as exc:
        print(str(exc), file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
