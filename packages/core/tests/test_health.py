"""Project Health 测试

NOW = 2025-03-10 12:00 UTC
"""

from datetime import date

import pytest
from followthrough.core.health import build_project_health, get_health_status, get_risk_level, summarize_project
from followthrough.core.models import HealthStatus, Project, RiskLevel, TaskStatus


def _project(deadline: date | None, buffer_days: int = 7, project_id: str = "P1") -> Project:
    return Project(project_id=project_id, name=project_id, deadline=deadline, buffer_days=buffer_days)


class TestRiskLevel:
    @pytest.mark.parametrize(
        "days,level",
        [(0, RiskLevel.CRITICAL), (7, RiskLevel.CRITICAL), (8, RiskLevel.AT_RISK),
         (14, RiskLevel.AT_RISK), (15, RiskLevel.WATCH), (None, RiskLevel.WATCH)],
    )
    def test_thresholds(self, days, level):
        assert get_risk_level(days) == level

    def test_no_deadline(self):
        assert get_health_status(False, None, [], 0) == HealthStatus.NO_DEADLINE


class TestSummary:
    """单项目汇总"""

    def test_real_deadline_and_days_remaining(self, make_task, now):
        summary = summarize_project(_project(date(2025, 3, 20)), [make_task(project_id="P1")], now)
        assert summary.real_deadline == date(2025, 3, 13)
        # 2.5 天向上取整
        assert summary.days_remaining == 3

    def test_near_deadline_with_overdue_is_critical(self, make_task, now):
        tasks = [make_task(days_ago=10, project_id="P1", blocker_description="permit")]
        summary = summarize_project(_project(date(2025, 3, 20)), tasks, now)
        assert summary.health_status == HealthStatus.CRITICAL
        assert summary.overdue_tasks == 1
        [risk] = summary.at_risk_tasks
        assert risk.risk_level == RiskLevel.CRITICAL
        assert risk.days_overdue == 3
        assert risk.blocker_description == "permit"

    def test_far_deadline_with_overdue_is_amber(self, make_task, now):
        tasks = [make_task(days_ago=10, project_id="P1")]
        summary = summarize_project(_project(date(2025, 9, 1)), tasks, now)
        assert summary.health_status == HealthStatus.AMBER
        assert summary.at_risk_tasks[0].risk_level == RiskLevel.WATCH

    def test_low_completion_two_weeks_out_is_red(self, make_task, now):
        tasks = [make_task(project_id="P1"), make_task(project_id="P1", status=TaskStatus.CLOSED)]
        summary = summarize_project(_project(date(2025, 3, 27)), tasks, now)
        assert summary.days_remaining == 10
        assert summary.completion_percent == 50
        assert summary.health_status == HealthStatus.RED

    def test_far_deadline_on_track_is_green(self, make_task, now):
        summary = summarize_project(_project(date(2025, 9, 1)), [make_task(project_id="P1")], now)
        assert summary.health_status == HealthStatus.GREEN

    def test_zero_buffer_falls_back_to_default(self, now):
        summary = summarize_project(_project(date(2025, 3, 20), buffer_days=0), [], now)
        assert summary.buffer_days == 7
        assert summary.real_deadline == date(2025, 3, 13)
        assert summary.days_remaining == 3

    def test_empty_project(self, now):
        summary = summarize_project(_project(None), [], now)
        assert summary.total_tasks == 0
        assert summary.completion_percent == 0
        assert summary.health_status == HealthStatus.NO_DEADLINE
        assert summary.days_remaining is None

    def test_closed_tasks_not_at_risk(self, make_task, now):
        tasks = [make_task(days_ago=30, project_id="P1", status=TaskStatus.CLOSED)]
        summary = summarize_project(_project(date(2025, 9, 1)), tasks, now)
        assert summary.at_risk_tasks == []
        assert summary.completion_percent == 100


class TestBuildProjectHealth:
    def test_sorted_by_health_then_days(self, make_task, now):
        projects = [
            _project(None, project_id="none"),
            _project(date(2025, 9, 1), project_id="green"),
            _project(date(2025, 3, 20), project_id="critical"),
        ]
        tasks = [make_task(days_ago=10, project_id="critical"), make_task(project_id="green")]
        summaries = build_project_health(projects, tasks, now)
        assert [s.project_id for s in summaries] == ["critical", "green", "none"]

    def test_tasks_without_project_ignored(self, make_task, now):
        summaries = build_project_health([_project(None)], [make_task(days_ago=30)], now)
        assert summaries[0].total_tasks == 0
