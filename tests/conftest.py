from datetime import date

import pytest

from bandwidth_scheduler.models import Resource, Task

# A Wednesday; week 1 runs Mon 2024-05-13 to Sun 2024-05-19.
WEDNESDAY = date(2024, 5, 15)


@pytest.fixture
def reference_date():
    return WEDNESDAY


@pytest.fixture
def dev():
    return Resource(id="r-dev", name="Dana", role="Developer", weekly_hours=40)


@pytest.fixture
def designer():
    return Resource(id="r-des", name="Sam", role="UX Designer", weekly_hours=40)


@pytest.fixture
def manager():
    return Resource(id="r-mgr", name="Lee", role="Manager", weekly_hours=40)


def make_task(task_id, hours, priority=50, **kwargs):
    return Task(id=task_id, title=kwargs.pop("title", f"Task {task_id}"), estimated_hours=hours, priority=priority, **kwargs)


def assigned(task_id, hours, resource, priority=50, **kwargs):
    return make_task(
        task_id, hours, priority, assigned_to=resource.id, assignee=resource, **kwargs
    )
