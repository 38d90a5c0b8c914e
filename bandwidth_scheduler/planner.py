from __future__ import annotations

import logging
from dataclasses import replace
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .ledger import DateLike, as_date, initialize_schedule
from .models import (
    OPEN_STATUSES,
    Assignment,
    AssignmentPlan,
    Placement,
    PlanSummary,
    Rejection,
    Resource,
    SchedulerConfig,
    Task,
    UnassignedTask,
    WeeklySchedule,
)
from .projector import flatten_tasks
from .roles import is_role_compatible

logger = logging.getLogger(__name__)


class AssignmentPlanner:
    """Greedy first-fit assignment of unassigned tasks to resources.

    Tasks are handled in priority order. For every resource that passes the role
    gate the earliest week with room for the whole task is scored, and the best
    scoring (resource, week) pair wins. Nothing is split across weeks.
    """

    def __init__(self, config: Optional[SchedulerConfig] = None) -> None:
        self.config = config or SchedulerConfig()

    @property
    def horizon(self) -> int:
        return self.config.planning_weeks

    def plan(
        self,
        tasks: Sequence[Task],
        resources: Sequence[Resource],
        reference_date: Optional[DateLike] = None,
    ) -> AssignmentPlan:
        ref = as_date(reference_date)
        logger.info("Planning %d tasks across %d resources", len(tasks), len(resources))
        schedules = [
            initialize_schedule(resource, self.horizon, ref, clamp_available=False)
            for resource in resources
        ]

        assignments: List[Assignment] = []
        unassigned: List[UnassignedTask] = []
        immediate = deferred = overflow = 0

        for task in sorted(tasks, key=lambda t: -t.priority):
            if not task.has_effort():
                overflow += 1
                unassigned.append(
                    UnassignedTask(task_id=task.id, title=task.title, reason="no estimated hours")
                )
                logger.warning("Skipping task %s (%s): no estimated hours", task.id, task.title)
                continue

            best, rejections = self._find_best(task, schedules)
            if best is None:
                overflow += 1
                reason = self._overflow_reason(task, schedules)
                unassigned.append(
                    UnassignedTask(
                        task_id=task.id,
                        title=task.title,
                        reason=reason,
                        rejections=tuple(rejections),
                    )
                )
                logger.warning("Could not assign task %s (%s): %s", task.id, task.title, reason)
                continue

            assignment, schedule = best
            bucket = schedule.week(assignment.scheduled_week)
            bucket.place(
                Placement(
                    task_id=task.id,
                    title=task.title,
                    hours=float(task.estimated_hours or 0.0),
                    priority=task.priority,
                    week_number=bucket.week_number,
                    start_date=bucket.start_date,
                    end_date=bucket.end_date,
                )
            )
            assignments.append(assignment)
            if assignment.scheduled_week == 1:
                immediate += 1
            else:
                deferred += 1
            logger.debug(
                "Assigned %s to %s (week %d)",
                task.title,
                schedule.resource_name,
                assignment.scheduled_week,
            )

        summary = PlanSummary(
            total_tasks=len(tasks),
            immediate_assignments=immediate,
            deferred_assignments=deferred,
            overflow_tasks=overflow,
        )
        logger.info(
            "Assignment completed: %d immediate, %d deferred, %d overflow",
            immediate,
            deferred,
            overflow,
        )
        return AssignmentPlan(
            assignments=assignments,
            schedules=schedules,
            summary=summary,
            unassigned=unassigned,
            reference_date=ref,
        )

    def _find_best(
        self, task: Task, schedules: Sequence[WeeklySchedule]
    ) -> Tuple[Optional[Tuple[Assignment, WeeklySchedule]], List[Rejection]]:
        hours = float(task.estimated_hours or 0.0)
        best: Optional[Tuple[Assignment, WeeklySchedule]] = None
        best_score: Optional[float] = None
        rejections: List[Rejection] = []
        for schedule in schedules:
            if not is_role_compatible(task.required_role, schedule.role, self.config):
                rejections.append(
                    Rejection(
                        resource_id=schedule.resource_id,
                        reason=f"role '{schedule.role}' does not match required role '{task.required_role}'",
                    )
                )
                continue
            week_number = self._first_fitting_week(schedule, hours)
            if week_number is None:
                rejections.append(
                    Rejection(
                        resource_id=schedule.resource_id,
                        reason=f"no week with {hours:g}h free within {self.horizon} weeks",
                    )
                )
                continue
            score = self.score(task, schedule, week_number)
            if best_score is None or score > best_score:
                best_score = score
                best = (
                    Assignment(
                        task_id=task.id,
                        resource_id=schedule.resource_id,
                        scheduled_week=week_number,
                        reason=self.reason(task, week_number),
                        score=score,
                    ),
                    schedule,
                )
        return best, rejections

    def _overflow_reason(self, task: Task, schedules: Sequence[WeeklySchedule]) -> str:
        if not schedules:
            return "no resources available"
        if not any(is_role_compatible(task.required_role, s.role, self.config) for s in schedules):
            return f"no resource matches required role '{task.required_role}'"
        return f"no resource could take {task.estimated_hours:g}h within {self.horizon} weeks"

    @staticmethod
    def _first_fitting_week(schedule: WeeklySchedule, hours: float) -> Optional[int]:
        for bucket in schedule.weeks:
            if bucket.available_hours >= hours:
                return bucket.week_number
        return None

    def score(self, task: Task, schedule: WeeklySchedule, week_number: int) -> float:
        cfg = self.config
        value = float(task.priority)
        value += (self.horizon - week_number) * cfg.week_weight
        # Utilization before this task lands in the bucket.
        value += (1 - schedule.utilization(week_number)) * cfg.utilization_weight
        if task.priority >= cfg.high_priority_threshold and week_number == 1:
            value += cfg.immediate_bonus
        return value

    def reason(self, task: Task, week_number: int) -> str:
        if week_number == 1:
            if task.priority >= self.config.high_priority_threshold:
                return "High priority task scheduled immediately"
            return "Available capacity this week"
        return f"Week {week_number} - scheduled based on capacity and priority"


def plan_assignments(
    tasks: Sequence[Task],
    resources: Sequence[Resource],
    reference_date: Optional[DateLike] = None,
    config: Optional[SchedulerConfig] = None,
) -> AssignmentPlan:
    return AssignmentPlanner(config).plan(tasks, resources, reference_date)


def current_workload(tasks: Iterable[Task]) -> Dict[str, float]:
    """Open hours already assigned to each resource (pending and in-progress work)."""
    workload: Dict[str, float] = {}
    for task in flatten_tasks(tasks):
        if not task.assigned_to or task.status not in OPEN_STATUSES:
            continue
        workload[task.assigned_to] = workload.get(task.assigned_to, 0.0) + float(
            task.estimated_hours or 0.0
        )
    return workload


def with_committed_hours(
    resources: Iterable[Resource], workload: Dict[str, float]
) -> List[Resource]:
    return [
        replace(resource, committed_hours=resource.committed_hours + workload.get(resource.id, 0.0))
        for resource in resources
    ]


def unassigned_tasks(tasks: Iterable[Task]) -> List[Task]:
    """Open tasks anywhere in the tree that nobody owns yet."""
    return [
        task
        for task in flatten_tasks(tasks)
        if not task.assigned_to and task.status in OPEN_STATUSES
    ]
