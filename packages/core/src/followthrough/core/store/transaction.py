"""任务变更原子事务封装

每个写操作流程（节奏变更、Gate 编辑、备注、状态流转）的全部写入
在同一 SQLite 事务内提交：任务字段、可选备注、活动事件要么全部落盘，要么全部不落盘。
失败时回滚并以 StoreWriteError 上报，不做重试。
"""

from collections.abc import Iterable
from typing import Any

import aiosqlite
import structlog

from ..exceptions import StoreWriteError
from ..models.event import Event
from ..models.note import Note
from ..models.owner import Owner
from ..models.task import Project, Task
from .event_store import SqliteEventStore
from .note_store import SqliteNoteStore
from .owner_store import SqliteOwnerStore, SqliteProjectStore
from .task_store import SqliteTaskStore

log = structlog.get_logger()


async def _rollback(conn: aiosqlite.Connection, operation: str, exc: Exception) -> None:
    await conn.rollback()
    log.error(
        "store_write_failed",
        operation=operation,
        error_type=type(exc).__name__,
        error=str(exc),
    )


async def create_task_with_event(
    conn: aiosqlite.Connection,
    task_store: SqliteTaskStore,
    event_store: SqliteEventStore,
    task: Task,
    event: Event,
) -> None:
    """在同一事务内创建任务并写入 TASK_CREATED 事件

    Raises:
        StoreWriteError: 写入失败，事务已回滚
    """
    try:
        await task_store.create_task(task)
        await event_store.append_event(event)
        await conn.commit()
    except Exception as exc:
        await _rollback(conn, "create_task", exc)
        raise StoreWriteError("create_task", exc) from exc


async def apply_task_change(
    conn: aiosqlite.Connection,
    task_store: SqliteTaskStore,
    note_store: SqliteNoteStore,
    event_store: SqliteEventStore,
    task_id: str,
    fields: dict[str, Any] | None = None,
    note: Note | None = None,
    events: Iterable[Event] = (),
    operation: str = "update_task",
) -> None:
    """在同一事务内原子提交任务字段更新、备注追加和事件写入

    Args:
        conn: 数据库连接（需在同一连接上操作以保证事务性）
        task_store: TaskStore 实例
        note_store: NoteStore 实例
        event_store: EventStore 实例
        task_id: 目标任务
        fields: 需要更新的任务字段，None 或空表示不更新
        note: 需要追加的备注
        events: 需要写入的事件（task_seq 由调用方预先分配）
        operation: 操作名称，用于错误信息与日志

    Raises:
        StoreWriteError: 写入失败，事务已回滚，任务保持原状
    """
    try:
        if fields:
            await task_store.update_task(task_id, fields)
        if note is not None:
            await note_store.append_note(note)
        for event in events:
            await event_store.append_event(event)
        await conn.commit()
    except Exception as exc:
        await _rollback(conn, operation, exc)
        raise StoreWriteError(operation, exc) from exc


async def save_directory(
    conn: aiosqlite.Connection,
    owner_store: SqliteOwnerStore,
    project_store: SqliteProjectStore,
    owners: Iterable[Owner] = (),
    projects: Iterable[Project] = (),
) -> None:
    """在同一事务内保存联系人与项目

    Raises:
        StoreWriteError: 写入失败，事务已回滚
    """
    try:
        for owner in owners:
            await owner_store.save_owner(owner)
        for project in projects:
            await project_store.save_project(project)
        await conn.commit()
    except Exception as exc:
        await _rollback(conn, "save_directory", exc)
        raise StoreWriteError("save_directory", exc) from exc
