"""工作流输入模型 -- Viewer、时钟决策、带时钟状态的任务快照

这些对象由调用方（会话/请求）显式构造并传入，核心逻辑不读取任何全局状态。
"""

from datetime import date
from typing import Literal

from pydantic import BaseModel, Field

from .task import Task


class Viewer(BaseModel):
    """当前调用者的上下文"""

    owner_id: str | None = Field(default=None, description="调用者关联的 owner_id")
    is_admin: bool = Field(default=False, description="管理员可见全部任务")


class ClockDecision(BaseModel):
    """重启时钟（restart the clock）确认步骤的用户选择

    - confirm: 接受一个天数（默认为任务当前节奏）
    - pick_date: 选择一个日历日期，折算为相对今天的天数
    - skip: 跳过，触发动作照常保存但不推进时钟
    """

    mode: Literal["confirm", "pick_date", "skip"] = "skip"
    days: int | None = Field(default=None, description="confirm 模式下的新节奏天数")
    target_date: date | None = Field(default=None, description="pick_date 模式下的目标日期")

    @classmethod
    def confirm(cls, days: int | None = None) -> "ClockDecision":
        return cls(mode="confirm", days=days)

    @classmethod
    def pick_date(cls, target_date: date) -> "ClockDecision":
        return cls(mode="pick_date", target_date=target_date)

    @classmethod
    def skip(cls) -> "ClockDecision":
        return cls(mode="skip")

    @property
    def advances_clock(self) -> bool:
        return self.mode != "skip"


class ClockStatus(BaseModel):
    """某一时刻的任务时钟状态"""

    days_since_movement: int = Field(ge=0)
    is_overdue: bool
    days_overdue: int = Field(description="仅在 is_overdue 时有意义，可为 <= 0")


class TaskSnapshot(BaseModel):
    """经过 Cadence Clock 标注的任务快照

    Action Prioritizer、Reliability Scorer、Project Health 的统一输入。
    """

    task: Task
    clock: ClockStatus
    current_gate_contact: str | None = None
    next_gate_contact: str | None = None

    @property
    def task_id(self) -> str:
        return self.task.task_id

    @property
    def is_overdue(self) -> bool:
        return self.clock.is_overdue

    @property
    def days_since_movement(self) -> int:
        return self.clock.days_since_movement

    @property
    def days_overdue(self) -> int:
        return self.clock.days_overdue
