"""
Presentation helpers for projections and assignment plans.

- Review summary (title, description, suggestions) for a plan
- Human-readable dates and date ranges
- Tabular exports (pandas) and JSON-ready dicts for callers that serialize
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Iterable, List, Optional

import pandas as pd

from .ledger import week_start_date
from .models import (
    AssignmentPlan,
    ProjectionResult,
    SchedulerConfig,
    Timeline,
    WeeklySchedule,
)

NOT_SCHEDULED = "Not scheduled"


@dataclass
class PlanReport:
    title: str
    description: str
    suggestions: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, object]:
        return {
            "title": self.title,
            "description": self.description,
            "suggestions": list(self.suggestions),
        }


def near_capacity_schedules(
    schedules: Iterable[WeeklySchedule], ratio: float
) -> List[WeeklySchedule]:
    return [
        schedule
        for schedule in schedules
        if schedule.weeks and schedule.week(1).assigned_hours > schedule.weekly_capacity * ratio
    ]


def summarize_plan(plan: AssignmentPlan, config: Optional[SchedulerConfig] = None) -> PlanReport:
    cfg = config or SchedulerConfig()
    summary = plan.summary
    suggestions: List[str] = []
    if summary.overflow_tasks > 0:
        title = "Bandwidth Exceeded"
        description = (
            f"{summary.immediate_assignments} tasks can start this week, "
            f"{summary.deferred_assignments} tasks scheduled for later weeks, "
            f"{summary.overflow_tasks} tasks could not be placed."
        )
        suggestions.append("Consider increasing team capacity")
        suggestions.append("Extend the planning horizon beyond the current weeks")
        suggestions.append("Split large tasks into smaller chunks")
    else:
        title = "Assignment Complete"
        description = f"All {summary.total_tasks} tasks successfully scheduled within current capacity."

    busy = near_capacity_schedules(plan.schedules, cfg.near_capacity_ratio)
    if busy:
        suggestions.append(f"{len(busy)} team member(s) near capacity limit")
    return PlanReport(title=title, description=description, suggestions=suggestions)


def format_date(value: Optional[date]) -> str:
    if value is None:
        return NOT_SCHEDULED
    return f"{value:%b} {value.day}, {value.year}"


def format_date_range(start: Optional[date], end: Optional[date]) -> str:
    if start is None or end is None:
        return NOT_SCHEDULED
    if start == end:
        return format_date(start)
    return f"{format_date(start)} - {format_date(end)}"


def _iso(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def timeline_to_dict(timeline: Timeline) -> Dict[str, object]:
    return {
        "task_id": timeline.task_id,
        "start_date": _iso(timeline.start_date),
        "end_date": _iso(timeline.end_date),
        "start_week": timeline.start_week,
        "end_week": timeline.end_week,
        "is_scheduled": timeline.is_scheduled,
        "is_partial": timeline.is_partial,
        "scheduled_hours": timeline.scheduled_hours,
        "blocked_by": list(timeline.blocked_by),
        "dependent_tasks": list(timeline.dependent_tasks),
    }


def schedule_to_dict(schedule: WeeklySchedule) -> Dict[str, object]:
    return {
        "resource_id": schedule.resource_id,
        "resource_name": schedule.resource_name,
        "role": schedule.role,
        "weekly_capacity": schedule.weekly_capacity,
        "weeks": [
            {
                "week_number": bucket.week_number,
                "start_date": _iso(bucket.start_date),
                "end_date": _iso(bucket.end_date),
                "assigned_hours": bucket.assigned_hours,
                "available_hours": bucket.available_hours,
                "tasks": [
                    {
                        "task_id": placement.task_id,
                        "title": placement.title,
                        "hours": placement.hours,
                        "priority": placement.priority,
                    }
                    for placement in bucket.placements
                ],
            }
            for bucket in schedule.weeks
        ],
    }


def projection_to_dict(result: ProjectionResult) -> Dict[str, object]:
    return {
        "reference_date": _iso(result.reference_date),
        "timelines": [timeline_to_dict(t) for t in result.timelines.values()],
        "schedules": [schedule_to_dict(s) for s in result.schedules.values()],
    }


def plan_to_dict(plan: AssignmentPlan) -> Dict[str, object]:
    return {
        "reference_date": _iso(plan.reference_date),
        "assignments": [
            {
                "task_id": a.task_id,
                "resource_id": a.resource_id,
                "scheduled_week": a.scheduled_week,
                "reason": a.reason,
                "score": round(a.score, 4),
                "is_overflow": a.is_overflow,
            }
            for a in plan.assignments
        ],
        "schedules": [schedule_to_dict(s) for s in plan.schedules],
        "summary": {
            "total_tasks": plan.summary.total_tasks,
            "immediate_assignments": plan.summary.immediate_assignments,
            "deferred_assignments": plan.summary.deferred_assignments,
            "overflow_tasks": plan.summary.overflow_tasks,
        },
        "unassigned": [
            {
                "task_id": item.task_id,
                "title": item.title,
                "reason": item.reason,
                "rejections": [
                    {"resource_id": r.resource_id, "reason": r.reason} for r in item.rejections
                ],
            }
            for item in plan.unassigned
        ],
    }


def timelines_frame(result: ProjectionResult) -> pd.DataFrame:
    rows = []
    for timeline in result.timelines.values():
        rows.append(
            {
                "task_id": timeline.task_id,
                "start_week": timeline.start_week,
                "end_week": timeline.end_week,
                "start_date": _iso(timeline.start_date),
                "end_date": _iso(timeline.end_date),
                "scheduled_hours": round(timeline.scheduled_hours, 2),
                "is_scheduled": timeline.is_scheduled,
                "is_partial": timeline.is_partial,
                "display": format_date_range(timeline.start_date, timeline.end_date),
            }
        )
    return pd.DataFrame(
        rows,
        columns=[
            "task_id",
            "start_week",
            "end_week",
            "start_date",
            "end_date",
            "scheduled_hours",
            "is_scheduled",
            "is_partial",
            "display",
        ],
    )


def schedules_frame(schedules: Iterable[WeeklySchedule]) -> pd.DataFrame:
    rows = []
    for schedule in schedules:
        for bucket in schedule.weeks:
            task_ids = ";".join(p.task_id for p in bucket.placements)
            rows.append(
                {
                    "resource_id": schedule.resource_id,
                    "resource_name": schedule.resource_name,
                    "role": schedule.role,
                    "week": bucket.week_number,
                    "week_start": _iso(bucket.start_date),
                    "week_end": _iso(bucket.end_date),
                    "capacity_hours": schedule.weekly_capacity,
                    "assigned_hours": round(bucket.assigned_hours, 2),
                    "available_hours": round(bucket.available_hours, 2),
                    "utilization_pct": round(schedule.utilization(bucket.week_number), 4),
                    "task_ids": task_ids,
                }
            )
    return pd.DataFrame(
        rows,
        columns=[
            "resource_id",
            "resource_name",
            "role",
            "week",
            "week_start",
            "week_end",
            "capacity_hours",
            "assigned_hours",
            "available_hours",
            "utilization_pct",
            "task_ids",
        ],
    )


def assignments_frame(plan: AssignmentPlan) -> pd.DataFrame:
    names = {schedule.resource_id: schedule.resource_name for schedule in plan.schedules}
    rows = [
        {
            "task_id": a.task_id,
            "resource_id": a.resource_id,
            "resource_name": names.get(a.resource_id, a.resource_id),
            "week": a.scheduled_week,
            "week_start": _iso(week_start_date(plan.reference_date, a.scheduled_week)),
            "score": round(a.score, 4),
            "reason": a.reason,
        }
        for a in plan.assignments
    ]
    return pd.DataFrame(
        rows,
        columns=["task_id", "resource_id", "resource_name", "week", "week_start", "score", "reason"],
    )
