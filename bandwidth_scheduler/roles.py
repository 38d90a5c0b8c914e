from __future__ import annotations

from dataclasses import replace
from typing import Iterable, List, Optional, Tuple

from .models import SchedulerConfig, Task

# Checked in order; the first group with a keyword in the text wins.
ROLE_KEYWORDS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("designer", ("design", "ui", "ux", "mockup")),
    ("developer", ("code", "develop", "api", "database")),
    ("manager", ("manage", "plan", "coordinate")),
    ("copywriter", ("content", "copy", "write")),
)


def is_wildcard_role(required_role: Optional[str], config: Optional[SchedulerConfig] = None) -> bool:
    cfg = config or SchedulerConfig()
    if required_role is None:
        return True
    return required_role.strip().lower() in cfg.wildcard_required_roles


def is_role_compatible(
    required_role: Optional[str],
    resource_role: Optional[str],
    config: Optional[SchedulerConfig] = None,
) -> bool:
    """Fuzzy match between a task's required role and a resource's role label.

    Comparison is case-insensitive. Blank or ``any`` requirements match everyone and
    ``other``/``general`` resources accept every task. Otherwise the resource role
    must contain, or be contained in, one of the required role's synonyms.
    """
    cfg = config or SchedulerConfig()
    if is_wildcard_role(required_role, cfg):
        return True
    required = (required_role or "").strip().lower()
    actual = (resource_role or "").strip().lower()
    if actual in cfg.universal_resource_roles:
        return True
    if required == actual:
        return True
    if not actual:
        return False
    for synonym in cfg.synonyms_for(required):
        candidate = synonym.strip().lower()
        if not candidate:
            continue
        if candidate in actual or actual in candidate:
            return True
    return False


def infer_required_role(title: str, description: str = "") -> str:
    content = f"{title} {description or ''}".lower()
    for role, keywords in ROLE_KEYWORDS:
        if any(keyword in content for keyword in keywords):
            return role
    return "any"


def with_inferred_roles(tasks: Iterable[Task]) -> List[Task]:
    """Copies of ``tasks`` where a missing required role is guessed from the text."""
    return [
        task
        if task.required_role
        else replace(task, required_role=infer_required_role(task.title, task.description))
        for task in tasks
    ]
