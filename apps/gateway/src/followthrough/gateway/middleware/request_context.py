"""RequestContextMiddleware -- 请求上下文绑定与请求日志

每个请求在 structlog contextvars 中绑定：
- request_id：沿用调用方的 X-Request-ID，否则生成 ULID，并回写到响应头
- viewer_owner_id / viewer_is_admin：来自 X-Owner-Id / X-Admin，与 deps.get_viewer 同源
- task_id：/api/tasks/{task_id}/... 下的请求，串联同一写流程中的
  note_added / gates_updated / clock_restarted 等事件

请求结束时记录 request_completed（含状态码与耗时），未处理异常记录 request_failed 后继续上抛。
"""

import time
from typing import Any

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from ulid import ULID

log = structlog.get_logger()

_ULID_LENGTH = 26
_TRUTHY = frozenset({"1", "true", "yes", "on"})


def _task_id_from_path(path: str) -> str | None:
    parts = path.strip("/").split("/")
    # api / tasks / {task_id} / ...
    if len(parts) >= 3 and parts[0] == "api" and parts[1] == "tasks" and len(parts[2]) == _ULID_LENGTH:
        return parts[2]
    return None


def request_context(request: Request) -> dict[str, Any]:
    """从请求中提取需要绑定到日志的上下文字段"""
    headers = request.headers
    context: dict[str, Any] = {
        "request_id": headers.get("x-request-id") or str(ULID()),
        "method": request.method,
        "path": request.url.path,
        "viewer_owner_id": headers.get("x-owner-id") or None,
        "viewer_is_admin": headers.get("x-admin", "").lower() in _TRUTHY,
    }
    task_id = _task_id_from_path(request.url.path)
    if task_id is not None:
        context["task_id"] = task_id
    return context


class RequestContextMiddleware(BaseHTTPMiddleware):
    """请求级上下文中间件"""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        context = request_context(request)
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(**context)

        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            log.exception(
                "request_failed",
                duration_ms=round((time.perf_counter() - started) * 1000, 1),
            )
            raise

        log.info(
            "request_completed",
            status_code=response.status_code,
            duration_ms=round((time.perf_counter() - started) * 1000, 1),
        )
        response.headers["X-Request-ID"] = context["request_id"]
        return response
