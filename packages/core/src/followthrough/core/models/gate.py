"""Gate Domain Model

Gate 是任务上的一个外部审批/交接步骤。
任务的 gates 按列表顺序存储，顺序由用户控制。
"""

from datetime import datetime

from pydantic import BaseModel, Field


class Gate(BaseModel):
    """Gate 数据模型"""

    name: str = Field(default="", description="Gate 标签，例如 Design / Vendor Quote")
    owner_name: str = Field(default="", description="负责人姓名，可为空")
    task_name: str | None = Field(default=None, description="该 Gate 需要完成的工作描述")
    completed: bool = Field(default=False, description="是否已通过")
    completed_at: datetime | None = Field(default=None, description="通过时间")

    @property
    def has_contact(self) -> bool:
        return bool(self.owner_name)
