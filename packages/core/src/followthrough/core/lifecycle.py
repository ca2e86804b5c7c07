"""任务状态流转

open -> close_requested -> closed，或 open -> closed。
关闭申请可被驳回（回到 open），已关闭任务可重新打开。
已关闭任务不参与逾期计算，但仍计入可靠度统计。
"""

from datetime import datetime

from .clock import ensure_utc
from .exceptions import InvalidStatusTransitionError
from .models.enums import VALID_TRANSITIONS, TaskStatus, validate_transition
from .models.task import Task


def transition_status(task: Task, to_status: TaskStatus, now: datetime) -> Task:
    """状态流转，同时维护 close_requested_at / closed_at

    Raises:
        InvalidStatusTransitionError: 流转不在 VALID_TRANSITIONS 中
    """
    if not validate_transition(task.status, to_status):
        allowed = sorted(s.value for s in VALID_TRANSITIONS.get(task.status, set()))
        raise InvalidStatusTransitionError(task.status.value, to_status.value, allowed)

    now = ensure_utc(now)
    update: dict = {"status": to_status}
    if to_status == TaskStatus.CLOSE_REQUESTED:
        update["close_requested_at"] = now
    elif to_status == TaskStatus.CLOSED:
        update["closed_at"] = now
    else:
        # 重新打开或驳回关闭申请
        update["close_requested_at"] = None
        update["closed_at"] = None
    return task.model_copy(update=update)
