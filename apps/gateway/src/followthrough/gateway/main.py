"""FastAPI 应用主文件

app 创建 + lifespan 管理：DB 初始化/关闭 + 引擎配置加载 + 路由注册。
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from followthrough.core.config import get_db_path, load_engine_config
from followthrough.core.store import create_store_group

from .middleware.logging_config import setup_logfire, setup_logging
from .middleware.request_context import RequestContextMiddleware
from .routes import actions, directory, gates, health, reports, tasks

log = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """应用生命周期管理：启动时初始化 DB，关闭时清理连接"""
    db_path = get_db_path()
    app.state.store_group = await create_store_group(db_path)
    app.state.engine_config = load_engine_config()
    log.info("gateway_started", db_path=db_path)

    yield

    if getattr(app.state, "store_group", None):
        await app.state.store_group.conn.close()


def create_app() -> FastAPI:
    """创建 FastAPI 应用实例"""
    app = FastAPI(
        title="Followthrough Gateway",
        version="0.1.0",
        description="任务跟进节奏、Gate 编排与团队可靠度 API",
        lifespan=lifespan,
    )

    app.add_middleware(RequestContextMiddleware)

    setup_logging()
    setup_logfire(app)

    app.include_router(tasks.router, tags=["tasks"])
    app.include_router(gates.router, tags=["gates"])
    app.include_router(actions.router, tags=["actions"])
    app.include_router(reports.router, tags=["reports"])
    app.include_router(directory.router, tags=["directory"])
    app.include_router(health.router, tags=["health"])

    return app


# 默认 app 实例（uvicorn 入口）
app = create_app()
