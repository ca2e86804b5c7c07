"""异常 -> JSON 错误响应映射

- 校验失败: 422，附带 field / valid_range
- 任务不存在: 404
- 存储失败: 500，message 固定为 "failed to save"
"""

import structlog
from followthrough.core.exceptions import (
    FollowthroughError,
    StoreWriteError,
    TaskNotFoundError,
    WorkflowValidationError,
)
from starlette.responses import JSONResponse

log = structlog.get_logger()


def error_response(exc: FollowthroughError) -> JSONResponse:
    """将 Followthrough 异常转换为统一的错误响应体"""
    if isinstance(exc, WorkflowValidationError):
        return JSONResponse(
            status_code=422,
            content={
                "error": {
                    "code": "VALIDATION_ERROR",
                    "message": str(exc),
                    "field": exc.field,
                    "valid_range": list(exc.valid_range) if exc.valid_range else None,
                }
            },
        )

    if isinstance(exc, TaskNotFoundError):
        return JSONResponse(
            status_code=404,
            content={"error": {"code": "TASK_NOT_FOUND", "message": str(exc)}},
        )

    if isinstance(exc, StoreWriteError):
        return JSONResponse(
            status_code=500,
            content={
                "error": {
                    "code": "STORE_WRITE_FAILED",
                    "message": "failed to save",
                    "operation": exc.operation,
                }
            },
        )

    log.error("unhandled_workflow_error", error_type=type(exc).__name__, error=str(exc))
    return JSONResponse(
        status_code=500,
        content={"error": {"code": "INTERNAL_ERROR", "message": str(exc)}},
    )
