from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Sequence

from .ledger import DateLike, as_date, initialize_schedule
from .models import (
    Placement,
    ProjectionResult,
    Resource,
    SchedulerConfig,
    Task,
    Timeline,
    WeeklySchedule,
)

logger = logging.getLogger(__name__)


def flatten_tasks(tasks: Iterable[Task]) -> List[Task]:
    flattened: List[Task] = []
    for task in tasks:
        flattened.extend(task.iter_tree())
    return flattened


def _collect_resources(
    flattened: Sequence[Task], resources: Optional[Iterable[Resource]]
) -> Dict[str, Resource]:
    found: Dict[str, Resource] = {}
    for resource in resources or ():
        found.setdefault(resource.id, resource)
    for task in flattened:
        if task.assigned_to and task.assignee is not None:
            found.setdefault(task.assigned_to, task.assignee)
    return found


def _is_projectable(task: Task) -> bool:
    return bool(task.assigned_to) and task.has_effort() and task.status != "completed"


class TimelineProjector:
    """Replays assigned tasks onto fresh weekly ledgers to estimate their dates."""

    def __init__(self, config: Optional[SchedulerConfig] = None) -> None:
        self.config = config or SchedulerConfig()

    def project(
        self,
        tasks: Iterable[Task],
        reference_date: Optional[DateLike] = None,
        resources: Optional[Iterable[Resource]] = None,
    ) -> ProjectionResult:
        ref = as_date(reference_date)
        flattened = flatten_tasks(tasks)
        schedules: Dict[str, WeeklySchedule] = {
            resource_id: initialize_schedule(
                resource, self.config.projection_weeks, ref, clamp_available=True
            )
            for resource_id, resource in _collect_resources(flattened, resources).items()
        }

        seen = set()
        candidates: List[Task] = []
        for task in flattened:
            if task.id in seen:
                continue
            seen.add(task.id)
            if _is_projectable(task):
                candidates.append(task)
        candidates.sort(key=lambda t: -t.priority)

        placed: Dict[str, Timeline] = {}
        for task in candidates:
            schedule = schedules.get(task.assigned_to)  # type: ignore[arg-type]
            if schedule is None:
                logger.debug("Task %s references unknown resource %s", task.id, task.assigned_to)
                continue
            placed[task.id] = self._place(task, schedule)

        timelines: Dict[str, Timeline] = {}
        for task in flattened:
            if task.id not in timelines:
                timelines[task.id] = placed.get(task.id) or Timeline(task_id=task.id)
        logger.debug(
            "Projected %d of %d tasks across %d resources",
            sum(1 for t in timelines.values() if t.is_scheduled),
            len(timelines),
            len(schedules),
        )
        return ProjectionResult(timelines=timelines, schedules=schedules, reference_date=ref)

    @staticmethod
    def _place(task: Task, schedule: WeeklySchedule) -> Timeline:
        remaining = float(task.estimated_hours or 0.0)
        start_bucket = None
        end_bucket = None
        for bucket in schedule.weeks:
            if remaining <= 0:
                break
            if bucket.available_hours <= 0:
                continue
            hours = min(remaining, bucket.available_hours)
            bucket.place(
                Placement(
                    task_id=task.id,
                    title=task.title,
                    hours=hours,
                    priority=task.priority,
                    week_number=bucket.week_number,
                    start_date=bucket.start_date,
                    end_date=bucket.end_date,
                )
            )
            remaining -= hours
            if start_bucket is None:
                start_bucket = bucket
            end_bucket = bucket
        if start_bucket is None or end_bucket is None:
            return Timeline(task_id=task.id)
        return Timeline(
            task_id=task.id,
            start_date=start_bucket.start_date,
            end_date=end_bucket.end_date,
            start_week=start_bucket.week_number,
            end_week=end_bucket.week_number,
            is_scheduled=remaining <= 0,
            scheduled_hours=float(task.estimated_hours or 0.0) - remaining,
        )


def project_timelines(
    tasks: Iterable[Task],
    reference_date: Optional[DateLike] = None,
    resources: Optional[Iterable[Resource]] = None,
    config: Optional[SchedulerConfig] = None,
) -> ProjectionResult:
    return TimelineProjector(config).project(tasks, reference_date, resources)
