"""TaskStore SQLite 实现

gates 作为 JSON 数组整体存储（整体替换写入）；owner 关联存于 task_owners，
备注存于 notes。读取时一并组装为完整的 Task 快照。
此处仅提供数据库操作，不提交事务。
"""

import json
from collections.abc import Iterator
from datetime import datetime
from typing import Any

import aiosqlite

from ..models.gate import Gate
from ..models.note import Note
from ..models.task import Task

_TASK_COLUMNS = (
    "task_id, task_number, description, status, project_id, fu_cadence_days, "
    "last_movement_at, created_at, is_blocked, blocker_description, next_step, "
    "gates, close_requested_at, closed_at"
)

# update_task 允许写入的字段
UPDATABLE_FIELDS = frozenset(
    {
        "description",
        "status",
        "project_id",
        "fu_cadence_days",
        "last_movement_at",
        "is_blocked",
        "blocker_description",
        "next_step",
        "gates",
        "close_requested_at",
        "closed_at",
    }
)


# 单条 IN 查询的最大参数个数，低于 SQLite 变量上限
_IN_CHUNK_SIZE = 500


def _chunks(ids: list[str]) -> Iterator[list[str]]:
    for start in range(0, len(ids), _IN_CHUNK_SIZE):
        yield ids[start : start + _IN_CHUNK_SIZE]


def _dt(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


def _encode(field: str, value: Any) -> Any:
    """字段值 -> SQLite 列值"""
    if field == "gates":
        return json.dumps(
            [g.model_dump(mode="json") if isinstance(g, Gate) else g for g in value],
            ensure_ascii=False,
        )
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, bool):
        return int(value)
    if hasattr(value, "value"):
        return value.value
    return value


class SqliteTaskStore:
    """TaskStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def create_task(self, task: Task) -> None:
        """创建任务记录及 owner 关联（不包含备注）"""
        await self._conn.execute(
            f"""
            INSERT INTO tasks ({_TASK_COLUMNS})
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                task.task_id,
                task.task_number,
                task.description,
                task.status.value,
                task.project_id,
                task.fu_cadence_days,
                task.last_movement_at.isoformat(),
                task.created_at.isoformat(),
                int(task.is_blocked),
                task.blocker_description,
                task.next_step,
                _encode("gates", task.gates),
                _encode("close_requested_at", task.close_requested_at),
                _encode("closed_at", task.closed_at),
            ),
        )
        await self.set_owners(task.task_id, task.owner_ids)

    async def set_owners(self, task_id: str, owner_ids: list[str]) -> None:
        """整体替换任务的 owner 关联，保持传入顺序并去重"""
        await self._conn.execute("DELETE FROM task_owners WHERE task_id = ?", (task_id,))
        for position, owner_id in enumerate(dict.fromkeys(owner_ids)):
            await self._conn.execute(
                "INSERT INTO task_owners (task_id, owner_id, position) VALUES (?, ?, ?)",
                (task_id, owner_id, position),
            )

    async def get_task(self, task_id: str) -> Task | None:
        """根据 task_id 查询任务"""
        tasks = await self._select("WHERE task_id = ?", [task_id])
        return tasks[0] if tasks else None

    async def list_tasks(
        self,
        status: str | list[str] | None = None,
        project_id: str | None = None,
        owner_id: str | None = None,
    ) -> list[Task]:
        """按状态 / 项目 / owner 可见性筛选，按 last_movement_at 正序（停滞最久在前）"""
        clauses: list[str] = []
        params: list[Any] = []

        if status:
            statuses = [status] if isinstance(status, str) else list(status)
            clauses.append(f"status IN ({', '.join('?' for _ in statuses)})")
            params.extend(statuses)
        if project_id:
            clauses.append("project_id = ?")
            params.append(project_id)
        if owner_id:
            clauses.append(
                "task_id IN (SELECT task_id FROM task_owners WHERE owner_id = ?)"
            )
            params.append(owner_id)

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        return await self._select(where, params)

    async def update_task(self, task_id: str, fields: dict[str, Any]) -> None:
        """更新任务字段（owner_ids 走 set_owners）"""
        fields = dict(fields)
        owner_ids = fields.pop("owner_ids", None)

        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"fields not updatable: {sorted(unknown)}")

        if fields:
            assignments = ", ".join(f"{name} = ?" for name in fields)
            values = [_encode(name, value) for name, value in fields.items()]
            await self._conn.execute(
                f"UPDATE tasks SET {assignments} WHERE task_id = ?",
                (*values, task_id),
            )
        if owner_ids is not None:
            await self.set_owners(task_id, owner_ids)

    async def _select(self, where: str, params: list[Any]) -> list[Task]:
        cursor = await self._conn.execute(
            f"SELECT {_TASK_COLUMNS} FROM tasks {where} ORDER BY last_movement_at ASC, task_id ASC",
            params,
        )
        rows = await cursor.fetchall()
        if not rows:
            return []

        task_ids = [row[0] for row in rows]
        owners = await self._owners_for(task_ids)
        notes = await self._notes_for(task_ids)
        return [
            self._row_to_task(row, owners.get(row[0], []), notes.get(row[0], []))
            for row in rows
        ]

    async def _owners_for(self, task_ids: list[str]) -> dict[str, list[str]]:
        result: dict[str, list[str]] = {}
        for chunk in _chunks(task_ids):
            placeholders = ", ".join("?" for _ in chunk)
            cursor = await self._conn.execute(
                f"""
                SELECT task_id, owner_id FROM task_owners
                WHERE task_id IN ({placeholders})
                ORDER BY task_id, position
                """,
                chunk,
            )
            for row in await cursor.fetchall():
                result.setdefault(row[0], []).append(row[1])
        return result

    async def _notes_for(self, task_ids: list[str]) -> dict[str, list[Note]]:
        result: dict[str, list[Note]] = {}
        for chunk in _chunks(task_ids):
            placeholders = ", ".join("?" for _ in chunk)
            cursor = await self._conn.execute(
                f"""
                SELECT note_id, task_id, author_id, content, created_at FROM notes
                WHERE task_id IN ({placeholders})
                ORDER BY created_at ASC, note_id ASC
                """,
                chunk,
            )
            for row in await cursor.fetchall():
                result.setdefault(row[1], []).append(
                    Note(
                        note_id=row[0],
                        task_id=row[1],
                        author_id=row[2],
                        content=row[3],
                        created_at=datetime.fromisoformat(row[4]),
                    )
                )
        return result

    @staticmethod
    def _row_to_task(row: aiosqlite.Row, owner_ids: list[str], notes: list[Note]) -> Task:
        """将数据库行转换为 Task 模型"""
        gates_data = json.loads(row[11])  # gates 列
        return Task(
            task_id=row[0],
            task_number=row[1],
            description=row[2],
            status=row[3],
            project_id=row[4],
            fu_cadence_days=row[5],
            last_movement_at=datetime.fromisoformat(row[6]),
            created_at=datetime.fromisoformat(row[7]),
            is_blocked=bool(row[8]),
            blocker_description=row[9],
            next_step=row[10],
            gates=[Gate(**g) for g in gates_data],
            close_requested_at=_dt(row[12]),
            closed_at=_dt(row[13]),
            owner_ids=owner_ids,
            notes=notes,
        )
