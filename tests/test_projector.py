"""Tests for the timeline projector."""

from datetime import date

from conftest import assigned, make_task

from bandwidth_scheduler.models import Resource, SchedulerConfig, Task
from bandwidth_scheduler.projector import TimelineProjector, flatten_tasks, project_timelines


class TestFlatten:
    def test_depth_first_preorder(self, dev):
        tree = [
            Task(
                id="a",
                title="A",
                subtasks=(
                    Task(id="a1", title="A1", subtasks=(Task(id="a1x", title="A1x"),)),
                    Task(id="a2", title="A2"),
                ),
            ),
            Task(id="b", title="B"),
        ]
        assert [t.id for t in flatten_tasks(tree)] == ["a", "a1", "a1x", "a2", "b"]


class TestProjection:
    def test_higher_priority_fills_first_and_lower_splits(self, dev, reference_date):
        tasks = [
            assigned("low", 20, dev, priority=50),
            assigned("high", 30, dev, priority=90),
        ]
        result = project_timelines(tasks, reference_date)

        high = result.timelines["high"]
        assert high.start_week == 1 and high.end_week == 1
        assert high.is_scheduled

        low = result.timelines["low"]
        assert low.start_week == 1
        assert low.end_week == 2
        assert low.is_scheduled
        assert low.start_date == date(2024, 5, 13)
        assert low.end_date == date(2024, 5, 26)

        schedule = result.schedules[dev.id]
        assert schedule.week(1).assigned_hours == 40
        assert schedule.week(1).available_hours == 0
        assert [p.hours for p in schedule.week(1).placements] == [30, 10]
        assert schedule.week(2).assigned_hours == 10
        assert schedule.week(2).available_hours == 30

    def test_equal_priorities_keep_encounter_order(self, dev, reference_date):
        tasks = [assigned("first", 30, dev, priority=50), assigned("second", 30, dev, priority=50)]
        result = project_timelines(tasks, reference_date)
        assert result.timelines["first"].end_week == 1
        assert result.timelines["second"].start_week == 1
        assert result.timelines["second"].end_week == 2

    def test_horizon_exhausted_leaves_partial_timeline(self, dev, reference_date):
        result = project_timelines([assigned("huge", 500, dev)], reference_date)
        timeline = result.timelines["huge"]
        assert timeline.is_scheduled is False
        assert timeline.is_partial is True
        assert timeline.start_week == 1
        assert timeline.end_week == 12
        assert timeline.scheduled_hours == 480
        assert timeline.start_date is not None and timeline.end_date is not None

    def test_horizon_is_configurable(self, dev, reference_date):
        config = SchedulerConfig(projection_weeks=2)
        result = TimelineProjector(config).project([assigned("t", 100, dev)], reference_date)
        assert len(result.schedules[dev.id].weeks) == 2
        assert result.timelines["t"].scheduled_hours == 80
        assert result.timelines["t"].is_partial

    def test_filtered_tasks_get_empty_timelines(self, dev, reference_date):
        tasks = [
            assigned("done", 10, dev, status="completed"),
            assigned("zero", 0, dev),
            assigned("none", None, dev),
            make_task("nobody", 10),
        ]
        result = project_timelines(tasks, reference_date)
        for task_id in ("done", "zero", "none", "nobody"):
            timeline = result.timelines[task_id]
            assert timeline.start_date is None
            assert timeline.end_date is None
            assert timeline.start_week is None
            assert timeline.is_scheduled is False
            assert timeline.is_partial is False
            assert timeline.blocked_by == ()
            assert timeline.dependent_tasks == ()
        assert result.schedules[dev.id].total_assigned_hours() == 0

    def test_cancelled_tasks_are_still_projected(self, dev, reference_date):
        result = project_timelines([assigned("c", 8, dev, status="cancelled")], reference_date)
        assert result.timelines["c"].is_scheduled

    def test_unknown_resource_is_unscheduled(self, reference_date):
        task = make_task("ghost", 10, assigned_to="missing")
        result = project_timelines([task], reference_date)
        assert result.timelines["ghost"].is_scheduled is False
        assert result.timelines["ghost"].start_date is None
        assert result.schedules == {}

    def test_subtasks_are_projected(self, dev, reference_date):
        child = assigned("child", 8, dev, priority=10, parent_id="parent")
        parent = Task(id="parent", title="Parent", subtasks=(child,))
        result = project_timelines([parent], reference_date)
        assert list(result.timelines) == ["parent", "child"]
        assert result.timelines["child"].is_scheduled
        assert result.timelines["parent"].start_date is None

    def test_first_resource_record_wins(self, reference_date):
        first = Resource(id="r", name="First", weekly_hours=10)
        second = Resource(id="r", name="Second", weekly_hours=40)
        tasks = [assigned("a", 5, first), assigned("b", 5, second)]
        result = project_timelines(tasks, reference_date)
        assert result.schedules["r"].resource_name == "First"
        assert result.schedules["r"].weekly_capacity == 10

    def test_explicit_resources_cover_tasks_without_embedded_assignee(self, reference_date):
        resource = Resource(id="r", name="R", weekly_hours=40, committed_hours=40)
        task = make_task("t", 10, assigned_to="r")
        result = project_timelines([task], reference_date, resources=[resource])
        assert result.timelines["t"].start_week == 2

    def test_zero_capacity_resource_never_places(self, reference_date):
        idle = Resource(id="idle", name="Idle", weekly_hours=0)
        result = project_timelines([assigned("t", 5, idle)], reference_date)
        assert result.timelines["t"].start_date is None
        assert result.timelines["t"].is_scheduled is False

    def test_weeks_never_exceed_capacity(self, dev, designer, reference_date):
        tasks = [assigned(f"d{i}", 7 + i, dev, priority=i) for i in range(10)]
        tasks += [assigned(f"s{i}", 13, designer, priority=100 - i) for i in range(6)]
        result = project_timelines(tasks, reference_date)
        for schedule in result.schedules.values():
            for bucket in schedule.weeks:
                assert bucket.assigned_hours <= schedule.weekly_capacity
                assert bucket.available_hours >= 0

    def test_projection_is_repeatable(self, dev, designer, reference_date):
        tasks = [
            assigned("a", 25, dev, priority=70),
            assigned("b", 30, dev, priority=70),
            assigned("c", 12, designer, priority=20),
        ]
        first = project_timelines(tasks, reference_date)
        second = project_timelines(tasks, reference_date)
        assert first.timelines == second.timelines
        assert first.schedules == second.schedules

    def test_inputs_are_not_mutated(self, dev, reference_date):
        tasks = [assigned("a", 10, dev, priority=1), assigned("b", 10, dev, priority=99)]
        before = list(tasks)
        project_timelines(tasks, reference_date)
        assert tasks == before
