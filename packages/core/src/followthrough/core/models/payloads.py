"""Event Payload 子类型

所有活动事件的结构化 payload 定义。
"""

from pydantic import BaseModel, Field

from .enums import TaskStatus
from .gate import Gate


class TaskCreatedPayload(BaseModel):
    """TASK_CREATED 事件 payload"""

    description: str
    fu_cadence_days: int
    gate_count: int = 0
    owner_ids: list[str] = Field(default_factory=list)


class NoteAddedPayload(BaseModel):
    """NOTE_ADDED 事件 payload"""

    note_id: str
    text_preview: str = Field(description="备注预览（截断）")
    clock_restarted: bool = Field(description="本次是否推进了时钟")


class GatesUpdatedPayload(BaseModel):
    """GATES_UPDATED 事件 payload"""

    operation: str = Field(description="complete / toggle / insert / remove / move / set / complete_all")
    gates: list[Gate]
    is_blocked: bool
    clock_restarted: bool = False


class ClockRestartedPayload(BaseModel):
    """CLOCK_RESTARTED 事件 payload"""

    previous_cadence_days: int
    fu_cadence_days: int
    previous_movement_at: str


class StatusChangedPayload(BaseModel):
    """STATUS_CHANGED 事件 payload"""

    from_status: TaskStatus
    to_status: TaskStatus
    gates_completed: bool = Field(default=False, description="关闭时是否一并完成所有 Gate")


class TaskUpdatedPayload(BaseModel):
    """TASK_UPDATED 事件 payload -- 记录被修改的字段名"""

    fields: list[str]
