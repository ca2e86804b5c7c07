"""NoteStore SQLite 实现

备注表 append-only：只允许插入，不允许更新或删除。
"""

from datetime import datetime

import aiosqlite

from ..models.note import Note


class SqliteNoteStore:
    """NoteStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def append_note(self, note: Note) -> None:
        """追加备注

        注意：此方法不自动提交事务，需由调用方管理事务。
        """
        await self._conn.execute(
            """
            INSERT INTO notes (note_id, task_id, author_id, content, created_at)
            VALUES (?, ?, ?, ?, ?)
            """,
            (
                note.note_id,
                note.task_id,
                note.author_id,
                note.content,
                note.created_at.isoformat(),
            ),
        )

    async def list_notes_for_task(self, task_id: str) -> list[Note]:
        """查询指定任务的所有备注，按创建时间正序"""
        cursor = await self._conn.execute(
            """
            SELECT note_id, task_id, author_id, content, created_at FROM notes
            WHERE task_id = ?
            ORDER BY created_at ASC, note_id ASC
            """,
            (task_id,),
        )
        rows = await cursor.fetchall()
        return [self._row_to_note(row) for row in rows]

    @staticmethod
    def _row_to_note(row: aiosqlite.Row) -> Note:
        return Note(
            note_id=row[0],
            task_id=row[1],
            author_id=row[2],
            content=row[3],
            created_at=datetime.fromisoformat(row[4]),
        )
