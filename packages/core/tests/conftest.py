"""packages/core 测试配置 -- 核心层 fixture

NOW 固定为 2025-03-10 12:00 UTC，所有天数计算都相对于它。
"""

from collections.abc import AsyncGenerator
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest
import pytest_asyncio
from followthrough.core.models import Gate, Note, Owner, Task, TaskStatus

NOW = datetime(2025, 3, 10, 12, 0, tzinfo=UTC)


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def make_task():
    """任务工厂：days_ago 表示 last_movement_at 距 NOW 的天数"""
    counter = iter(range(1, 10_000))

    def _make(
        days_ago: int = 0,
        cadence: int = 7,
        status: TaskStatus = TaskStatus.OPEN,
        owner_ids: list[str] | None = None,
        gates: list[Gate] | None = None,
        notes: list[Note] | None = None,
        task_id: str | None = None,
        **kwargs,
    ) -> Task:
        n = next(counter)
        kwargs.setdefault("task_number", f"#{n}")
        kwargs.setdefault("description", f"Task {n}")
        return Task(
            task_id=task_id or f"T{n:03d}",
            status=status,
            fu_cadence_days=cadence,
            last_movement_at=NOW - timedelta(days=days_ago),
            created_at=NOW - timedelta(days=days_ago + 30),
            owner_ids=owner_ids or [],
            gates=gates or [],
            notes=notes or [],
            **kwargs,
        )

    return _make


@pytest.fixture
def make_owner():
    def _make(owner_id: str, name: str | None = None, **kwargs) -> Owner:
        return Owner(owner_id=owner_id, name=name or owner_id.title(), **kwargs)

    return _make


@pytest_asyncio.fixture
async def core_db_path(tmp_path: Path) -> Path:
    """核心层临时数据库路径"""
    return tmp_path / "core_test.db"


@pytest_asyncio.fixture
async def store_group(core_db_path: Path) -> AsyncGenerator:
    """核心层已初始化的 Store 实例组"""
    from followthrough.core.store import create_store_group

    group = await create_store_group(str(core_db_path))
    yield group
    await group.conn.close()
