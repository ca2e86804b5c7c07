"""OwnerStore / ProjectStore SQLite 实现"""

import json
from datetime import date

import aiosqlite

from ..models.owner import Owner
from ..models.task import Project


class SqliteOwnerStore:
    """OwnerStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def save_owner(self, owner: Owner) -> None:
        """创建或整体覆盖联系人（不自动提交）"""
        await self._conn.execute(
            """
            INSERT INTO owners (owner_id, name, company_tags, is_third_party_vendor,
                                is_private, private_owner_id)
            VALUES (?, ?, ?, ?, ?, ?)
            ON CONFLICT(owner_id) DO UPDATE SET
                name = excluded.name,
                company_tags = excluded.company_tags,
                is_third_party_vendor = excluded.is_third_party_vendor,
                is_private = excluded.is_private,
                private_owner_id = excluded.private_owner_id
            """,
            (
                owner.owner_id,
                owner.name,
                json.dumps(owner.company_tags, ensure_ascii=False),
                int(owner.is_third_party_vendor),
                int(owner.is_private),
                owner.private_owner_id,
            ),
        )

    async def get_owner(self, owner_id: str) -> Owner | None:
        cursor = await self._conn.execute(
            "SELECT * FROM owners WHERE owner_id = ?",
            (owner_id,),
        )
        row = await cursor.fetchone()
        return self._row_to_owner(row) if row else None

    async def list_owners(self) -> list[Owner]:
        cursor = await self._conn.execute("SELECT * FROM owners ORDER BY name, owner_id")
        rows = await cursor.fetchall()
        return [self._row_to_owner(row) for row in rows]

    @staticmethod
    def _row_to_owner(row: aiosqlite.Row) -> Owner:
        return Owner(
            owner_id=row[0],
            name=row[1],
            company_tags=json.loads(row[2]) if row[2] else [],
            is_third_party_vendor=bool(row[3]),
            is_private=bool(row[4]),
            private_owner_id=row[5],
        )


class SqliteProjectStore:
    """ProjectStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def save_project(self, project: Project) -> None:
        await self._conn.execute(
            """
            INSERT INTO projects (project_id, name, customer_name, deadline, buffer_days)
            VALUES (?, ?, ?, ?, ?)
            ON CONFLICT(project_id) DO UPDATE SET
                name = excluded.name,
                customer_name = excluded.customer_name,
                deadline = excluded.deadline,
                buffer_days = excluded.buffer_days
            """,
            (
                project.project_id,
                project.name,
                project.customer_name,
                project.deadline.isoformat() if project.deadline else None,
                project.buffer_days,
            ),
        )

    async def list_projects(self) -> list[Project]:
        cursor = await self._conn.execute("SELECT * FROM projects ORDER BY name, project_id")
        rows = await cursor.fetchall()
        return [
            Project(
                project_id=row[0],
                name=row[1],
                customer_name=row[2],
                deadline=date.fromisoformat(row[3]) if row[3] else None,
                buffer_days=row[4],
            )
            for row in rows
        ]
