from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Iterator, List, Optional, Tuple


TaskStatus = str

TASK_STATUSES: Tuple[TaskStatus, ...] = ("pending", "in_progress", "completed", "cancelled")
OPEN_STATUSES: Tuple[TaskStatus, ...] = ("pending", "in_progress")

DEFAULT_ROLE_SYNONYMS: Dict[str, Tuple[str, ...]] = {
    "developer": (
        "developer",
        "full stack developer",
        "backend developer",
        "frontend developer",
        "engineer",
        "programmer",
    ),
    "designer": ("designer", "ui designer", "ux designer", "graphic designer"),
    "manager": ("manager", "project manager", "team lead"),
    "copywriter": ("copywriter", "content writer", "marketing specialist"),
}


@dataclass(frozen=True)
class Resource:
    """Team member with a weekly hour budget."""

    id: str
    name: str
    role: str = ""
    weekly_hours: float = 40.0
    committed_hours: float = 0.0
    skills: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Task:
    """Scheduling view of a task row; subtasks form a tree."""

    id: str
    title: str
    estimated_hours: Optional[float] = None
    priority: int = 0
    status: TaskStatus = "pending"
    assigned_to: Optional[str] = None
    assignee: Optional[Resource] = None
    parent_id: Optional[str] = None
    subtasks: Tuple["Task", ...] = ()
    required_role: Optional[str] = None
    description: str = ""

    def has_effort(self) -> bool:
        return self.estimated_hours is not None and self.estimated_hours > 0

    def iter_tree(self) -> Iterator["Task"]:
        yield self
        for child in self.subtasks:
            yield from child.iter_tree()


@dataclass(frozen=True)
class Placement:
    task_id: str
    title: str
    hours: float
    priority: int
    week_number: int
    start_date: date
    end_date: date


@dataclass
class WeekBucket:
    week_number: int
    start_date: date
    end_date: date
    assigned_hours: float = 0.0
    available_hours: float = 0.0
    placements: List[Placement] = field(default_factory=list)

    def place(self, placement: Placement) -> None:
        self.placements.append(placement)
        self.assigned_hours += placement.hours
        self.available_hours -= placement.hours


@dataclass
class WeeklySchedule:
    resource_id: str
    resource_name: str
    role: str
    weekly_capacity: float
    weeks: List[WeekBucket] = field(default_factory=list)

    def week(self, week_number: int) -> WeekBucket:
        return self.weeks[week_number - 1]

    def utilization(self, week_number: int) -> float:
        if self.weekly_capacity <= 0:
            return 1.0
        return self.week(week_number).assigned_hours / self.weekly_capacity

    def total_assigned_hours(self) -> float:
        return sum(bucket.assigned_hours for bucket in self.weeks)


@dataclass(frozen=True)
class Timeline:
    """Projected dates for one task.

    ``is_scheduled`` is only true when every hour was placed. A task that ran out of
    horizon keeps the dates it did reach, see ``is_partial``.
    """

    task_id: str
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    start_week: Optional[int] = None
    end_week: Optional[int] = None
    is_scheduled: bool = False
    scheduled_hours: float = 0.0
    blocked_by: Tuple[str, ...] = ()
    dependent_tasks: Tuple[str, ...] = ()

    @property
    def is_partial(self) -> bool:
        return self.start_date is not None and not self.is_scheduled


@dataclass(frozen=True)
class Assignment:
    task_id: str
    resource_id: str
    scheduled_week: int
    reason: str
    score: float = 0.0
    # Kept for consumers of the older preview format; produced assignments never overflow.
    is_overflow: bool = False


@dataclass(frozen=True)
class Rejection:
    resource_id: str
    reason: str


@dataclass(frozen=True)
class UnassignedTask:
    task_id: str
    title: str
    reason: str
    rejections: Tuple[Rejection, ...] = ()


@dataclass(frozen=True)
class PlanSummary:
    total_tasks: int
    immediate_assignments: int
    deferred_assignments: int
    overflow_tasks: int


@dataclass
class AssignmentPlan:
    assignments: List[Assignment]
    schedules: List[WeeklySchedule]
    summary: PlanSummary
    unassigned: List[UnassignedTask]
    reference_date: date

    def schedule_for(self, resource_id: str) -> Optional[WeeklySchedule]:
        for schedule in self.schedules:
            if schedule.resource_id == resource_id:
                return schedule
        return None

    def assignment_for(self, task_id: str) -> Optional[Assignment]:
        for assignment in self.assignments:
            if assignment.task_id == task_id:
                return assignment
        return None


@dataclass
class ProjectionResult:
    timelines: Dict[str, Timeline]
    schedules: Dict[str, WeeklySchedule]
    reference_date: date


@dataclass(frozen=True)
class SchedulerConfig:
    projection_weeks: int = 12
    planning_weeks: int = 12
    default_weekly_hours: float = 40.0
    high_priority_threshold: int = 80
    week_weight: float = 10.0
    utilization_weight: float = 20.0
    immediate_bonus: float = 50.0
    near_capacity_ratio: float = 0.9
    role_synonyms: Dict[str, Tuple[str, ...]] = field(
        default_factory=lambda: dict(DEFAULT_ROLE_SYNONYMS)
    )
    universal_resource_roles: Tuple[str, ...] = ("other", "general")
    wildcard_required_roles: Tuple[str, ...] = ("", "any")
    infer_roles: bool = False
    default_task_hours: Optional[float] = None
    default_priority: int = 50
    logging_level: str = "INFO"

    def synonyms_for(self, role: str) -> Tuple[str, ...]:
        return self.role_synonyms.get(role.strip().lower(), (role.strip().lower(),))
