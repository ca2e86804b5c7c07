"""Cadence Clock -- 停滞判定与"重启时钟"流转

时钟状态完全由两个存储字段决定：last_movement_at、fu_cadence_days。
天数一律按整天截断计算，且每次都针对调用时刻的 now 重新计算，不做跨调用缓存。
"""

from collections.abc import Iterable
from datetime import UTC, date, datetime

import structlog

from .config import CADENCE_MAX_DAYS, CADENCE_MIN_DAYS
from .exceptions import CadenceOutOfRangeError
from .gates import current_gate_contact, next_gate_contact
from .models.enums import TaskStatus
from .models.task import Task
from .models.workflow import ClockDecision, ClockStatus, TaskSnapshot

log = structlog.get_logger()


def ensure_utc(value: datetime) -> datetime:
    """统一为 UTC：naive 时间按 UTC 解释，带时区的时间换算到 UTC"""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def days_between(earlier: datetime, now: datetime) -> int:
    """两个时间点之间的整天数（向下截断，未来时间记为 0）"""
    delta = ensure_utc(now) - ensure_utc(earlier)
    return max(0, delta.days)


def days_since_movement(task: Task, now: datetime) -> int:
    return days_between(task.last_movement_at, now)


def clock_status(task: Task, now: datetime) -> ClockStatus:
    """计算任务在 now 时刻的时钟状态

    - is_overdue 仅对 open 状态成立
    - days_overdue = days_since_movement - fu_cadence_days，对未逾期任务可能 <= 0
    """
    days = days_since_movement(task, now)
    return ClockStatus(
        days_since_movement=days,
        is_overdue=task.status == TaskStatus.OPEN and days > task.fu_cadence_days,
        days_overdue=days - task.fu_cadence_days,
    )


def is_overdue(task: Task, now: datetime) -> bool:
    return clock_status(task, now).is_overdue


def tag_task(task: Task, now: datetime) -> TaskSnapshot:
    """标注时钟状态与当前/下一 Gate 负责人"""
    return TaskSnapshot(
        task=task,
        clock=clock_status(task, now),
        current_gate_contact=current_gate_contact(task.gates),
        next_gate_contact=next_gate_contact(task.gates),
    )


def tag_tasks(tasks: Iterable[Task], now: datetime) -> list[TaskSnapshot]:
    return [tag_task(t, now) for t in tasks]


# ---------------------------------------------------------------------------
# 节奏校验
# ---------------------------------------------------------------------------


def validate_cadence(value: int, field: str = "fu_cadence_days") -> int:
    """校验节奏天数在 [CADENCE_MIN_DAYS, CADENCE_MAX_DAYS] 闭区间内

    超出范围直接拒绝，不做截断存储。
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise CadenceOutOfRangeError(value, CADENCE_MIN_DAYS, CADENCE_MAX_DAYS, field=field)
    if value < CADENCE_MIN_DAYS or value > CADENCE_MAX_DAYS:
        raise CadenceOutOfRangeError(value, CADENCE_MIN_DAYS, CADENCE_MAX_DAYS, field=field)
    return value


def cadence_from_date(target: date, today: date) -> int:
    """将日历日期折算为相对今天的天数"""
    return validate_cadence((target - today).days, field="target_date")


def resolve_cadence(task: Task, decision: ClockDecision, today: date) -> int | None:
    """根据用户选择得出新的节奏天数；skip 返回 None"""
    if decision.mode == "skip":
        return None
    if decision.mode == "pick_date":
        if decision.target_date is None:
            raise CadenceOutOfRangeError(0, CADENCE_MIN_DAYS, CADENCE_MAX_DAYS, field="target_date")
        return cadence_from_date(decision.target_date, today)
    # confirm：未提供天数时沿用当前节奏
    if decision.days is None:
        return task.fu_cadence_days
    return validate_cadence(decision.days)


def restart_clock(task: Task, decision: ClockDecision, now: datetime) -> Task:
    """重启时钟

    confirm / pick_date：last_movement_at = now，并可替换 fu_cadence_days。
    skip：返回原任务，不推进时钟。
    校验失败时抛出 CadenceOutOfRangeError，任务不变。
    """
    now = ensure_utc(now)
    new_cadence = resolve_cadence(task, decision, now.date())
    if new_cadence is None:
        log.debug("clock_restart_skipped", task_id=task.task_id)
        return task

    log.info(
        "clock_restarted",
        task_id=task.task_id,
        previous_cadence_days=task.fu_cadence_days,
        fu_cadence_days=new_cadence,
        mode=decision.mode,
    )
    return task.model_copy(update={"last_movement_at": now, "fu_cadence_days": new_cadence})
