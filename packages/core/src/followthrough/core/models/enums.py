"""枚举定义

包含 TaskStatus 状态机、EventType、ActionKind、RiskLevel、HealthStatus 枚举，
以及 VALID_TRANSITIONS 合法流转映射。
"""

from enum import StrEnum


class TaskStatus(StrEnum):
    """Task 状态机"""

    OPEN = "open"
    CLOSE_REQUESTED = "close_requested"
    CLOSED = "closed"


# 合法状态流转
VALID_TRANSITIONS: dict[TaskStatus, set[TaskStatus]] = {
    TaskStatus.OPEN: {TaskStatus.CLOSE_REQUESTED, TaskStatus.CLOSED},
    # 关闭申请可被批准（closed）或驳回（open）
    TaskStatus.CLOSE_REQUESTED: {TaskStatus.CLOSED, TaskStatus.OPEN},
    # 已关闭任务只能重新打开
    TaskStatus.CLOSED: {TaskStatus.OPEN},
}


class EventType(StrEnum):
    """活动事件类型"""

    TASK_CREATED = "TASK_CREATED"
    NOTE_ADDED = "NOTE_ADDED"
    GATES_UPDATED = "GATES_UPDATED"
    CLOCK_RESTARTED = "CLOCK_RESTARTED"
    STATUS_CHANGED = "STATUS_CHANGED"
    TASK_UPDATED = "TASK_UPDATED"


class ActionKind(StrEnum):
    """每日行动清单中的推荐动作类型（按优先级排列）"""

    CONTACT = "contact"
    RESOLVE_BLOCKER = "resolve_blocker"
    NEXT_STEP = "next_step"
    FOLLOW_UP = "follow_up"


class RiskLevel(StrEnum):
    """项目内逾期任务的风险等级"""

    CRITICAL = "critical"
    AT_RISK = "at-risk"
    WATCH = "watch"


class HealthStatus(StrEnum):
    """项目健康度（五级）"""

    CRITICAL = "critical"
    RED = "red"
    AMBER = "amber"
    GREEN = "green"
    NO_DEADLINE = "no-deadline"


def validate_transition(from_status: TaskStatus, to_status: TaskStatus) -> bool:
    """验证状态流转是否合法

    Args:
        from_status: 当前状态
        to_status: 目标状态

    Returns:
        True 如果流转合法，否则 False
    """
    allowed = VALID_TRANSITIONS.get(from_status, set())
    return to_status in allowed
