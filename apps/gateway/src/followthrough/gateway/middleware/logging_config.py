"""structlog 配置模块

环境变量:
    FOLLOWTHROUGH_LOG_FORMAT: "console"（默认，dev 可读输出）或 "json"
    FOLLOWTHROUGH_LOG_LEVEL: 日志级别（默认 INFO）
    LOGFIRE_SEND_TO_LOGFIRE: "true" 时启用 Logfire APM（需安装 logfire extra）

非法取值记录 warning 后回退到默认值，与 load_engine_config 的处理方式一致。
"""

import logging
import os
from enum import Enum
from typing import Any

import structlog
from fastapi import FastAPI

LOG_FORMATS = ("console", "json")
DEFAULT_LOG_FORMAT = "console"
DEFAULT_LOG_LEVEL = "INFO"

SERVICE_NAME = "followthrough-gateway"

# 请求日志由 RequestContextMiddleware 记录，uvicorn 的 access 日志重复
_QUIET_LOGGERS = ("uvicorn.access",)


def _add_service(_: Any, __: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    event_dict.setdefault("service", SERVICE_NAME)
    return event_dict


def _enum_values(_: Any, __: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """TaskStatus / EventType 等枚举字段输出其取值"""
    for key, value in event_dict.items():
        if isinstance(value, Enum):
            event_dict[key] = value.value
    return event_dict


def _resolve(
    env_name: str,
    value: str | None,
    allowed: tuple[str, ...],
    default: str,
    upper: bool = False,
) -> str:
    raw = value if value is not None else os.environ.get(env_name, default)
    normalized = raw.strip().upper() if upper else raw.strip().lower()
    if normalized in allowed:
        return normalized
    structlog.get_logger().warning(
        "logging_config_invalid", env=env_name, value=raw, fallback=default
    )
    return default


def setup_logging(log_format: str | None = None, log_level: str | None = None) -> str:
    """初始化 structlog 与标准库 logging

    Args:
        log_format: 覆盖 FOLLOWTHROUGH_LOG_FORMAT
        log_level: 覆盖 FOLLOWTHROUGH_LOG_LEVEL

    Returns:
        实际生效的输出格式
    """
    fmt = _resolve("FOLLOWTHROUGH_LOG_FORMAT", log_format, LOG_FORMATS, DEFAULT_LOG_FORMAT)
    level = _resolve(
        "FOLLOWTHROUGH_LOG_LEVEL",
        log_level,
        ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"),
        DEFAULT_LOG_LEVEL,
        upper=True,
    )

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        _add_service,
        _enum_values,
    ]
    if fmt == "json":
        shared_processors.append(structlog.processors.format_exc_info)
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer(ensure_ascii=False)
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler()
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=renderer,
            foreign_pre_chain=shared_processors,
        )
    )
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return fmt


def setup_logfire(app: FastAPI) -> bool:
    """按 LOGFIRE_SEND_TO_LOGFIRE 启用 Logfire APM，返回是否已启用"""
    if os.environ.get("LOGFIRE_SEND_TO_LOGFIRE", "false").lower() != "true":
        return False
    try:
        import logfire

        logfire.configure(service_name=SERVICE_NAME)
        logfire.instrument_fastapi(app)
    except Exception as e:
        # 初始化失败不影响服务运行
        structlog.get_logger().warning("logfire_init_failed", error=str(e))
        return False
    return True
