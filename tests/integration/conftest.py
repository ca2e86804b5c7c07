"""集成测试共享 fixture -- 可控时钟的 WorkflowService"""

from collections.abc import AsyncGenerator
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest_asyncio
from followthrough.core.config import EngineConfig
from followthrough.core.models import Owner
from followthrough.core.store import create_store_group
from followthrough.gateway.services.workflow_service import WorkflowService


class FakeClock:
    """手动推进的时钟"""

    def __init__(self, start: datetime) -> None:
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, days: int = 0, hours: int = 0) -> None:
        self.current += timedelta(days=days, hours=hours)


@pytest_asyncio.fixture
async def clock() -> FakeClock:
    return FakeClock(datetime(2025, 3, 3, 9, 0, tzinfo=UTC))


@pytest_asyncio.fixture
async def service(tmp_path: Path, clock: FakeClock) -> AsyncGenerator[WorkflowService, None]:
    """已预置三名联系人的 WorkflowService"""
    store_group = await create_store_group(str(tmp_path / "integration.db"))
    svc = WorkflowService(store_group, EngineConfig(), now=clock)
    await svc.save_owners(
        [
            Owner(owner_id="sam", name="Sam", company_tags=["up"]),
            Owner(owner_id="lee", name="Lee", company_tags=["bp"]),
            Owner(owner_id="acme", name="Acme", is_third_party_vendor=True),
        ]
    )
    yield svc
    await store_group.conn.close()
