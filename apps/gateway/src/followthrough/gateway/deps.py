"""依赖注入模块 -- 通过 FastAPI Depends 注入 Store 实例、引擎配置与调用者上下文

Store 实例通过 app.state 管理，在 lifespan 中初始化/清理。
"""

from fastapi import Header, Request
from followthrough.core.config import EngineConfig
from followthrough.core.models import Viewer
from followthrough.core.store import StoreGroup

from .services.workflow_service import WorkflowService


def get_store_group(request: Request) -> StoreGroup:
    """从 app.state 获取 StoreGroup 实例"""
    return request.app.state.store_group


def get_engine_config(request: Request) -> EngineConfig:
    return getattr(request.app.state, "engine_config", None) or EngineConfig()


def get_workflow_service(request: Request) -> WorkflowService:
    return WorkflowService(get_store_group(request), get_engine_config(request))


def get_viewer(
    x_owner_id: str | None = Header(default=None, description="调用者关联的 owner_id"),
    x_admin: bool = Header(default=False, description="是否以管理员身份查看"),
) -> Viewer:
    """从请求头构造调用者上下文；缺少 X-Owner-Id 的非管理员看不到任何任务"""
    return Viewer(owner_id=x_owner_id or None, is_admin=x_admin)
