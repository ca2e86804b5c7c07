"""Task Domain Model

每个任务携带跟进节奏（fu_cadence_days）、可选的有序 Gate 列表以及状态备注。
is_blocked 是 Gate 状态的冗余缓存，任何 Gate 变更都必须通过 gates 模块重新计算。
"""

from datetime import date, datetime

from pydantic import BaseModel, Field

from .enums import TaskStatus
from .gate import Gate
from .note import Note


class Task(BaseModel):
    """Task 数据模型"""

    task_id: str = Field(description="唯一标识，ULID 格式")
    task_number: str | None = Field(default=None, description="展示用编号")
    description: str = Field(description="任务描述")
    status: TaskStatus = Field(default=TaskStatus.OPEN, description="当前状态")
    project_id: str | None = Field(default=None, description="所属项目")
    fu_cadence_days: int = Field(ge=1, description="跟进间隔（天）")
    last_movement_at: datetime = Field(description="时钟参考时间")
    created_at: datetime = Field(description="创建时间")
    is_blocked: bool = Field(default=False, description="Gate 阻塞状态缓存")
    blocker_description: str | None = Field(default=None, description="阻塞说明")
    next_step: str | None = Field(default=None, description="下一步")
    gates: list[Gate] = Field(default_factory=list, description="有序 Gate 列表")
    owner_ids: list[str] = Field(default_factory=list, description="负责人 owner_id 列表")
    notes: list[Note] = Field(default_factory=list, description="状态备注")
    close_requested_at: datetime | None = Field(default=None, description="申请关闭时间")
    closed_at: datetime | None = Field(default=None, description="关闭时间")


class Project(BaseModel):
    """Project 数据模型 -- 仅用于项目健康度汇总"""

    project_id: str = Field(description="唯一标识")
    name: str = Field(description="项目名称")
    customer_name: str | None = Field(default=None, description="客户名称")
    deadline: date | None = Field(default=None, description="交付截止日期")
    buffer_days: int = Field(default=7, ge=0, description="截止日期前预留的缓冲天数，0 视为默认 7 天")
