"""Project Health -- 项目维度的健康度汇总

复用 Cadence Clock 的逾期判定，按项目聚合逾期任务，
并对照 "截止日期 - 缓冲天数" 得出五级健康状态。
"""

import math
from collections.abc import Iterable
from datetime import datetime, timedelta

import structlog

from .clock import ensure_utc, tag_task
from .config import DEFAULT_BUFFER_DAYS
from .models.enums import HealthStatus, RiskLevel, TaskStatus
from .models.reports import ProjectSummary, RiskTask
from .models.task import Project, Task
from .scoring import round_half_up

log = structlog.get_logger()

_RISK_ORDER = {RiskLevel.CRITICAL: 0, RiskLevel.AT_RISK: 1, RiskLevel.WATCH: 2}
_HEALTH_ORDER = {
    HealthStatus.CRITICAL: 0,
    HealthStatus.RED: 1,
    HealthStatus.AMBER: 2,
    HealthStatus.GREEN: 3,
    HealthStatus.NO_DEADLINE: 4,
}


def get_risk_level(days_to_real_deadline: int | None) -> RiskLevel:
    """逾期任务的风险等级只取决于距真实截止日期的天数"""
    if days_to_real_deadline is not None and days_to_real_deadline <= 7:
        return RiskLevel.CRITICAL
    if days_to_real_deadline is not None and days_to_real_deadline <= 14:
        return RiskLevel.AT_RISK
    return RiskLevel.WATCH


def get_health_status(
    has_deadline: bool,
    days_remaining: int | None,
    at_risk_tasks: list[RiskTask],
    completion_percent: int,
) -> HealthStatus:
    if not has_deadline:
        return HealthStatus.NO_DEADLINE
    critical = sum(1 for t in at_risk_tasks if t.risk_level == RiskLevel.CRITICAL)
    at_risk = sum(1 for t in at_risk_tasks if t.risk_level == RiskLevel.AT_RISK)
    if critical > 0 or (
        days_remaining is not None and days_remaining <= 3 and completion_percent < 100
    ):
        return HealthStatus.CRITICAL
    if at_risk > 0 or (
        days_remaining is not None and days_remaining <= 14 and completion_percent < 80
    ):
        return HealthStatus.RED
    if at_risk_tasks:
        return HealthStatus.AMBER
    return HealthStatus.GREEN


def summarize_project(project: Project, tasks: list[Task], now: datetime) -> ProjectSummary:
    """汇总单个项目"""
    now = ensure_utc(now)
    total = len(tasks)
    completed = sum(1 for t in tasks if t.status == TaskStatus.CLOSED)
    open_count = sum(1 for t in tasks if t.status == TaskStatus.OPEN)
    completion_percent = round_half_up(100 * completed / total) if total else 0

    buffer_days = project.buffer_days or DEFAULT_BUFFER_DAYS
    real_deadline = None
    days_remaining = None
    if project.deadline is not None:
        real_deadline = project.deadline - timedelta(days=buffer_days)
        real_start = datetime.combine(real_deadline, datetime.min.time(), tzinfo=now.tzinfo)
        days_remaining = math.ceil((real_start - now).total_seconds() / 86400)

    at_risk: list[RiskTask] = []
    overdue_count = 0
    for task in tasks:
        if task.status != TaskStatus.OPEN:
            continue
        snapshot = tag_task(task, now)
        if snapshot.days_overdue <= 0:
            continue
        overdue_count += 1
        at_risk.append(
            RiskTask(
                task_id=task.task_id,
                task_number=task.task_number or "—",
                description=task.description,
                days_overdue=snapshot.days_overdue,
                blocker_description=task.blocker_description,
                gate_person=snapshot.current_gate_contact,
                owner_ids=list(task.owner_ids),
                risk_level=get_risk_level(days_remaining),
            )
        )
    at_risk.sort(key=lambda t: (_RISK_ORDER[t.risk_level], -t.days_overdue))

    return ProjectSummary(
        project_id=project.project_id,
        name=project.name,
        customer_name=project.customer_name,
        deadline=project.deadline,
        buffer_days=buffer_days,
        real_deadline=real_deadline,
        days_remaining=days_remaining,
        total_tasks=total,
        completed_tasks=completed,
        open_tasks=open_count,
        overdue_tasks=overdue_count,
        completion_percent=completion_percent,
        at_risk_tasks=at_risk,
        health_status=get_health_status(
            project.deadline is not None, days_remaining, at_risk, completion_percent
        ),
    )


def build_project_health(
    projects: Iterable[Project],
    tasks: Iterable[Task],
    now: datetime,
) -> list[ProjectSummary]:
    """汇总全部项目，按健康状态（critical 在前）再按剩余天数排序"""
    by_project: dict[str, list[Task]] = {}
    for task in tasks:
        if task.project_id:
            by_project.setdefault(task.project_id, []).append(task)

    summaries = [summarize_project(p, by_project.get(p.project_id, []), now) for p in projects]
    summaries.sort(
        key=lambda s: (
            _HEALTH_ORDER[s.health_status],
            s.days_remaining is None,
            s.days_remaining or 0,
        )
    )
    log.info("project_health_built", projects=len(summaries))
    return summaries
