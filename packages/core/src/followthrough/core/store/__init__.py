"""Followthrough Core Store -- SQLite 持久化实现

提供工厂函数创建共享数据库连接的 Store 实例组。
"""

import asyncio
from pathlib import Path

import aiosqlite

from .event_store import SqliteEventStore
from .note_store import SqliteNoteStore
from .owner_store import SqliteOwnerStore, SqliteProjectStore
from .sqlite_init import init_db
from .task_store import SqliteTaskStore
from .transaction import apply_task_change, create_task_with_event, save_directory


class StoreGroup:
    """Store 实例组 -- 共享同一个数据库连接

    共享连接上同一时刻只能有一个写事务：写流程必须持有 write_lock，
    直到提交或回滚完成。
    """

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self.conn = conn
        self.write_lock = asyncio.Lock()
        self.task_store = SqliteTaskStore(conn)
        self.note_store = SqliteNoteStore(conn)
        self.owner_store = SqliteOwnerStore(conn)
        self.project_store = SqliteProjectStore(conn)
        self.event_store = SqliteEventStore(conn)


async def create_store_group(db_path: str) -> StoreGroup:
    """创建 Store 实例组

    Args:
        db_path: SQLite 数据库文件路径（":memory:" 用于测试）

    Returns:
        StoreGroup 实例
    """
    if db_path != ":memory:":
        # 确保数据库目录存在
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    conn = await aiosqlite.connect(db_path)
    conn.row_factory = aiosqlite.Row
    await init_db(conn)

    return StoreGroup(conn=conn)


__all__ = [
    "StoreGroup",
    "create_store_group",
    "SqliteTaskStore",
    "SqliteNoteStore",
    "SqliteOwnerStore",
    "SqliteProjectStore",
    "SqliteEventStore",
    "init_db",
    "apply_task_change",
    "create_task_with_event",
    "save_directory",
]
