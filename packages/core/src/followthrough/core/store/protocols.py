"""Store Protocol 接口定义

定义 TaskStore、NoteStore、OwnerStore、ProjectStore、EventStore 的抽象接口，
使用 Python Protocol 实现结构化子类型（duck typing）。

写方法不自动提交事务，由调用方（transaction 模块）统一提交或回滚。
"""

from typing import Any, Protocol

from ..models.event import Event
from ..models.note import Note
from ..models.owner import Owner
from ..models.task import Project, Task


class TaskStore(Protocol):
    """Task 存储接口"""

    async def create_task(self, task: Task) -> None:
        """创建任务记录（含 owner 关联）"""
        ...

    async def get_task(self, task_id: str) -> Task | None:
        """根据 task_id 查询任务，包含 gates、owner_ids、notes"""
        ...

    async def list_tasks(
        self,
        status: str | list[str] | None = None,
        project_id: str | None = None,
        owner_id: str | None = None,
    ) -> list[Task]:
        """按状态 / 项目 / owner 可见性筛选任务，按 last_movement_at 正序"""
        ...

    async def update_task(self, task_id: str, fields: dict[str, Any]) -> None:
        """更新任务字段：gates、is_blocked、last_movement_at、fu_cadence_days、
        status、blocker_description、next_step 等"""
        ...


class NoteStore(Protocol):
    """Note 存储接口 -- append-only"""

    async def append_note(self, note: Note) -> None:
        """追加备注"""
        ...

    async def list_notes_for_task(self, task_id: str) -> list[Note]:
        """查询指定任务的所有备注，按创建时间正序"""
        ...


class OwnerStore(Protocol):
    """Owner 存储接口"""

    async def save_owner(self, owner: Owner) -> None:
        """创建或更新联系人"""
        ...

    async def get_owner(self, owner_id: str) -> Owner | None:
        ...

    async def list_owners(self) -> list[Owner]:
        """查询全部联系人（含归属标志）"""
        ...


class ProjectStore(Protocol):
    """Project 存储接口"""

    async def save_project(self, project: Project) -> None:
        ...

    async def list_projects(self) -> list[Project]:
        ...


class EventStore(Protocol):
    """活动事件存储接口 -- append-only"""

    async def append_event(self, event: Event) -> None:
        """追加事件（append-only）"""
        ...

    async def get_events_for_task(self, task_id: str) -> list[Event]:
        """查询指定任务的所有事件"""
        ...

    async def get_next_task_seq(self, task_id: str) -> int:
        """获取指定任务的下一个 task_seq（MAX+1）"""
        ...
