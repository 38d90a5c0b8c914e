from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional, Union

from dateutil.relativedelta import MO, relativedelta

from .models import Resource, WeekBucket, WeeklySchedule

DateLike = Union[date, datetime]


def as_date(value: Optional[DateLike]) -> date:
    if value is None:
        return date.today()
    if isinstance(value, datetime):
        return value.date()
    return value


def week_one_start(reference_date: Optional[DateLike] = None) -> date:
    """Monday of the calendar week containing ``reference_date`` (Sunday rolls back six days)."""
    return as_date(reference_date) + relativedelta(weekday=MO(-1))


def week_start_date(reference_date: Optional[DateLike], week_number: int) -> date:
    return week_one_start(reference_date) + relativedelta(weeks=week_number - 1)


def week_end_date(reference_date: Optional[DateLike], week_number: int) -> date:
    return week_start_date(reference_date, week_number) + relativedelta(days=6)


def initialize_schedule(
    resource: Resource,
    horizon_weeks: int,
    reference_date: Optional[DateLike] = None,
    *,
    clamp_available: bool,
) -> WeeklySchedule:
    """Build ``horizon_weeks`` empty buckets for ``resource``.

    Week 1 starts with the resource's committed hours. With ``clamp_available`` the
    free hours never drop below zero; without it the bucket keeps the true deficit
    so an overcommitted week can never accept more work.
    """
    if horizon_weeks <= 0:
        raise ValueError(f"horizon must be a positive number of weeks, got {horizon_weeks}")
    capacity = float(resource.weekly_hours)
    committed = max(0.0, float(resource.committed_hours or 0.0))
    weeks: List[WeekBucket] = []
    for idx in range(horizon_weeks):
        week_number = idx + 1
        assigned = committed if week_number == 1 else 0.0
        available = capacity - assigned
        if clamp_available:
            available = max(0.0, available)
        weeks.append(
            WeekBucket(
                week_number=week_number,
                start_date=week_start_date(reference_date, week_number),
                end_date=week_end_date(reference_date, week_number),
                assigned_hours=assigned,
                available_hours=available,
            )
        )
    return WeeklySchedule(
        resource_id=resource.id,
        resource_name=resource.name,
        role=resource.role,
        weekly_capacity=capacity,
        weeks=weeks,
    )
