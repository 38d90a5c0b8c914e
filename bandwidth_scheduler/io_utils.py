from __future__ import annotations

import json
from dataclasses import fields
from datetime import date
from pathlib import Path
from typing import Dict, FrozenSet, List, Optional, Tuple

import pandas as pd
from dateutil import parser as dateparser

from .models import TASK_STATUSES, Resource, SchedulerConfig, Task


def _read_json(path: str | Path, source: str) -> object:
    try:
        return json.loads(Path(path).read_text())
    except json.JSONDecodeError as exc:
        raise ValueError(f"{source} is not valid JSON: {exc.msg} (line {exc.lineno})") from exc


def _parse_number(value: object, field_name: str, owner: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{field_name} must be a number for {owner}: {value!r}")
    return float(value)


def _parse_optional_text(value: object) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def parse_resource(entry: object, config: Optional[SchedulerConfig] = None) -> Resource:
    cfg = config or SchedulerConfig()
    if not isinstance(entry, dict):
        raise ValueError("resource entries must be objects")
    resource_id = _parse_optional_text(entry.get("id"))
    if not resource_id:
        raise ValueError("resource id is required")
    name = _parse_optional_text(entry.get("name")) or resource_id
    raw_hours = entry.get("weekly_hours")
    weekly_hours = (
        cfg.default_weekly_hours
        if raw_hours is None
        else _parse_number(raw_hours, "weekly_hours", resource_id)
    )
    committed = _parse_number(entry.get("committed_hours", 0) or 0, "committed_hours", resource_id)
    if committed < 0:
        raise ValueError(f"committed_hours must not be negative for {resource_id}")
    raw_skills = entry.get("skills")
    skills = () if raw_skills is None else raw_skills
    if not isinstance(skills, (list, tuple)):
        raise ValueError(f"skills must be an array for {resource_id}")
    return Resource(
        id=resource_id,
        name=name,
        role=str(entry.get("role") or ""),
        weekly_hours=weekly_hours,
        committed_hours=committed,
        skills=tuple(str(skill).strip() for skill in skills if str(skill).strip()),
    )


def parse_resources(data: object, config: Optional[SchedulerConfig] = None) -> List[Resource]:
    if not isinstance(data, list):
        raise ValueError("resources must be a JSON array")
    resources = [parse_resource(entry, config) for entry in data]
    seen = set()
    for resource in resources:
        if resource.id in seen:
            raise ValueError(f"duplicate resource id '{resource.id}'")
        seen.add(resource.id)
    return resources


def load_resources(path: str | Path, config: Optional[SchedulerConfig] = None) -> List[Resource]:
    return parse_resources(_read_json(path, "resources file"), config)


def _parse_task(
    entry: object,
    parent_id: Optional[str],
    ancestors: FrozenSet[str],
    config: SchedulerConfig,
) -> Task:
    if not isinstance(entry, dict):
        raise ValueError("task entries must be objects")
    task_id = _parse_optional_text(entry.get("id"))
    if not task_id:
        raise ValueError("task id is required")
    if task_id in ancestors:
        raise ValueError(f"task '{task_id}' appears among its own subtasks")
    title = _parse_optional_text(entry.get("title"))
    if not title:
        raise ValueError(f"title is required for task {task_id}")

    raw_hours = entry.get("estimated_hours")
    if raw_hours is None:
        estimated_hours = config.default_task_hours
    else:
        estimated_hours = _parse_number(raw_hours, "estimated_hours", task_id)
        if estimated_hours < 0:
            raise ValueError(f"estimated_hours must not be negative for task {task_id}")

    raw_priority = entry.get("priority")
    if raw_priority is None:
        priority = config.default_priority
    elif isinstance(raw_priority, bool) or not isinstance(raw_priority, (int, float)) or int(raw_priority) != raw_priority:
        raise ValueError(f"priority must be an integer for task {task_id}: {raw_priority!r}")
    else:
        priority = int(raw_priority)

    status = str(entry.get("status") or "pending").strip().lower()
    if status not in TASK_STATUSES:
        raise ValueError(f"unsupported status '{status}' for task {task_id}")

    assignee_raw = entry.get("assignee")
    assignee = parse_resource(assignee_raw, config) if assignee_raw is not None else None
    assigned_to = _parse_optional_text(entry.get("assigned_to"))
    if assignee is not None:
        if assigned_to is None:
            assigned_to = assignee.id
        elif assigned_to != assignee.id:
            raise ValueError(
                f"assigned_to '{assigned_to}' does not match assignee id '{assignee.id}' "
                f"for task {task_id}"
            )

    raw_subtasks = entry.get("subtasks")
    subtasks_raw = [] if raw_subtasks is None else raw_subtasks
    if not isinstance(subtasks_raw, list):
        raise ValueError(f"subtasks must be an array for task {task_id}")
    path = ancestors | {task_id}
    subtasks = tuple(_parse_task(child, task_id, path, config) for child in subtasks_raw)

    return Task(
        id=task_id,
        title=title,
        estimated_hours=estimated_hours,
        priority=priority,
        status=status,
        assigned_to=assigned_to,
        assignee=assignee,
        parent_id=_parse_optional_text(entry.get("parent_id")) or parent_id,
        subtasks=subtasks,
        required_role=_parse_optional_text(entry.get("required_role")),
        description=str(entry.get("description") or ""),
    )


def parse_tasks(data: object, config: Optional[SchedulerConfig] = None) -> List[Task]:
    cfg = config or SchedulerConfig()
    if not isinstance(data, list):
        raise ValueError("tasks must be a JSON array")
    return [_parse_task(entry, None, frozenset(), cfg) for entry in data]


def load_tasks(path: str | Path, config: Optional[SchedulerConfig] = None) -> List[Task]:
    return parse_tasks(_read_json(path, "tasks file"), config)


def parse_reference_date(value: object) -> Optional[date]:
    if value is None or (isinstance(value, str) and value.strip() == ""):
        return None
    if isinstance(value, date):
        return value
    try:
        return dateparser.isoparse(str(value)).date()
    except (ValueError, TypeError) as exc:
        raise ValueError(f"invalid reference date: {value}") from exc


def _parse_role_synonyms(value: object) -> Dict[str, Tuple[str, ...]]:
    if not isinstance(value, dict):
        raise ValueError("role_synonyms must be an object")
    table: Dict[str, Tuple[str, ...]] = {}
    for role, synonyms in value.items():
        if not isinstance(synonyms, (list, tuple)):
            raise ValueError(f"role_synonyms[{role}] must be an array")
        table[str(role).strip().lower()] = tuple(str(item).strip().lower() for item in synonyms)
    return table


def _parse_role_list(value: object, field_name: str) -> Tuple[str, ...]:
    if not isinstance(value, (list, tuple)):
        raise ValueError(f"{field_name} must be an array")
    return tuple(str(item).strip().lower() for item in value)


_INT_FIELDS = ("projection_weeks", "planning_weeks", "high_priority_threshold", "default_priority")
_FLOAT_FIELDS = (
    "default_weekly_hours",
    "week_weight",
    "utilization_weight",
    "immediate_bonus",
    "near_capacity_ratio",
)


def parse_config(data: object) -> SchedulerConfig:
    if not isinstance(data, dict):
        raise ValueError("config must be a JSON object")
    known = {f.name for f in fields(SchedulerConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ValueError(f"unknown config keys: {', '.join(unknown)}")

    values: Dict[str, object] = {}
    for key in _INT_FIELDS:
        if key in data:
            value = data[key]
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"{key} must be an integer")
            values[key] = value
    for key in ("projection_weeks", "planning_weeks"):
        if key in values and values[key] <= 0:  # type: ignore[operator]
            raise ValueError(f"{key} must be a positive integer")
    for key in _FLOAT_FIELDS:
        if key in data:
            value = data[key]
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValueError(f"{key} must be a number")
            values[key] = float(value)
    if "default_weekly_hours" in values and values["default_weekly_hours"] <= 0:  # type: ignore[operator]
        raise ValueError("default_weekly_hours must be positive")
    if "near_capacity_ratio" in values and not (0 < values["near_capacity_ratio"] <= 1):  # type: ignore[operator]
        raise ValueError("near_capacity_ratio must be in (0, 1]")

    if "role_synonyms" in data:
        values["role_synonyms"] = _parse_role_synonyms(data["role_synonyms"])
    for key in ("universal_resource_roles", "wildcard_required_roles"):
        if key in data:
            values[key] = _parse_role_list(data[key], key)

    if "infer_roles" in data:
        if not isinstance(data["infer_roles"], bool):
            raise ValueError("infer_roles must be a boolean")
        values["infer_roles"] = data["infer_roles"]

    if data.get("default_task_hours") is not None:
        hours = data["default_task_hours"]
        if isinstance(hours, bool) or not isinstance(hours, (int, float)) or hours <= 0:
            raise ValueError("default_task_hours must be a positive number or null")
        values["default_task_hours"] = float(hours)

    if "logging_level" in data:
        values["logging_level"] = str(data["logging_level"])

    return SchedulerConfig(**values)  # type: ignore[arg-type]


def load_config(path: str | Path) -> SchedulerConfig:
    return parse_config(_read_json(path, "config file"))


def ensure_directory(path: str | Path) -> Path:
    target = Path(path)
    target.mkdir(parents=True, exist_ok=True)
    return target


def write_csv(df: pd.DataFrame, path: str | Path) -> None:
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(path, index=False)
