"""Note Domain Model

状态备注 append-only：核心层只追加，不编辑也不删除。
"""

from datetime import datetime

from pydantic import BaseModel, Field


class Note(BaseModel):
    """Note 数据模型"""

    note_id: str = Field(description="唯一标识，ULID 格式")
    task_id: str = Field(description="关联的 Task ID")
    author_id: str | None = Field(default=None, description="作者对应的 owner_id")
    content: str = Field(description="备注正文")
    created_at: datetime = Field(description="创建时间")
