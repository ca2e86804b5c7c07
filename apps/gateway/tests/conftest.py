"""apps/gateway 测试配置 -- FastAPI app + httpx AsyncClient + 数据准备 fixture"""

import os
from collections.abc import AsyncGenerator
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest
import pytest_asyncio
from followthrough.core.config import EngineConfig
from followthrough.core.models import Owner, Task
from followthrough.core.store import create_store_group
from followthrough.core.store.transaction import save_directory
from httpx import ASGITransport, AsyncClient
from ulid import ULID


@pytest_asyncio.fixture
async def app(tmp_path: Path):
    """创建测试用 FastAPI app 实例（手动初始化，绕过 lifespan）"""
    os.environ["FOLLOWTHROUGH_DB_PATH"] = str(tmp_path / "sqlite" / "test.db")
    os.environ["LOGFIRE_SEND_TO_LOGFIRE"] = "false"

    from followthrough.gateway.main import create_app

    application = create_app()
    store_group = await create_store_group(os.environ["FOLLOWTHROUGH_DB_PATH"])
    application.state.store_group = store_group
    application.state.engine_config = EngineConfig()

    yield application

    await store_group.conn.close()
    for key in ["FOLLOWTHROUGH_DB_PATH", "LOGFIRE_SEND_TO_LOGFIRE"]:
        os.environ.pop(key, None)


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """提供 httpx AsyncClient 用于测试"""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest_asyncio.fixture
async def owners(app) -> list[Owner]:
    """预置联系人：两名员工 + 一个供应商"""
    people = [
        Owner(owner_id="sam", name="Sam", company_tags=["up"]),
        Owner(owner_id="lee", name="Lee", company_tags=["bp"]),
        Owner(owner_id="acme", name="Acme", is_third_party_vendor=True),
    ]
    group = app.state.store_group
    await save_directory(group.conn, group.owner_store, group.project_store, owners=people)
    return people


@pytest.fixture
def seed_task(app):
    """直接写入一个停滞了 days_ago 天的任务（绕过 API，用于构造逾期场景）"""

    async def _seed(days_ago: int, cadence: int = 7, **kwargs) -> Task:
        group = app.state.store_group
        moved = datetime.now(UTC) - timedelta(days=days_ago, minutes=5)
        task = Task(
            task_id=str(ULID()),
            description=kwargs.pop("description", "Seeded task"),
            fu_cadence_days=cadence,
            last_movement_at=moved,
            created_at=moved,
            **kwargs,
        )
        await group.task_store.create_task(task)
        await group.conn.commit()
        return task

    return _seed
