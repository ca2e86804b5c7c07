"""配置模块 -- 可通过环境变量覆盖

包含数据库路径、引擎可调参数（EngineConfig）以及不可配置的节奏边界常量。
"""

import os
from pathlib import Path

import structlog
from pydantic import BaseModel, Field

log = structlog.get_logger()

# 跟进节奏合法区间（闭区间），超出范围的输入在边界处被拒绝
CADENCE_MIN_DAYS: int = 1
CADENCE_MAX_DAYS: int = 365

# 备注预览截断长度（事件 payload 使用）
NOTE_PREVIEW_LENGTH: int = 200

# 项目缓冲天数：未设置或为 0 时使用默认值
DEFAULT_BUFFER_DAYS: int = 7


def _get_base_dir() -> Path:
    """获取项目 data 基础目录"""
    return Path(os.environ.get("FOLLOWTHROUGH_DATA_DIR", "data"))


def get_db_path() -> str:
    """获取 SQLite 数据库路径"""
    return os.environ.get(
        "FOLLOWTHROUGH_DB_PATH",
        str(_get_base_dir() / "sqlite" / "followthrough.db"),
    )


class EngineConfig(BaseModel):
    """引擎可调参数

    环境变量:
        FOLLOWTHROUGH_DEFAULT_CADENCE_DAYS: 新任务默认节奏（默认 7）
        FOLLOWTHROUGH_FOCUS_BATCH_SIZE: 专注批次大小（默认 3）
        FOLLOWTHROUGH_STREAK_WINDOW_DAYS: 连续天数统计窗口（默认 30）
        FOLLOWTHROUGH_COMPLETED_WINDOW_DAYS: "本周完成"窗口（默认 7）
    """

    default_cadence_days: int = Field(
        default=7,
        ge=CADENCE_MIN_DAYS,
        le=CADENCE_MAX_DAYS,
        description="新任务默认跟进节奏（天）",
    )
    focus_batch_size: int = Field(default=3, ge=1, description="专注批次大小")
    streak_window_days: int = Field(default=30, ge=1, description="连续天数统计窗口（天）")
    completed_window_days: int = Field(default=7, ge=1, description="近期完成统计窗口（天）")


_ENV_FIELDS: dict[str, str] = {
    "FOLLOWTHROUGH_DEFAULT_CADENCE_DAYS": "default_cadence_days",
    "FOLLOWTHROUGH_FOCUS_BATCH_SIZE": "focus_batch_size",
    "FOLLOWTHROUGH_STREAK_WINDOW_DAYS": "streak_window_days",
    "FOLLOWTHROUGH_COMPLETED_WINDOW_DAYS": "completed_window_days",
}


def load_engine_config() -> EngineConfig:
    """从环境变量加载引擎配置

    非法值记录 warning 并回退到默认值，不阻塞启动。

    Returns:
        EngineConfig 实例
    """
    defaults = EngineConfig()
    kwargs: dict[str, int] = {}

    for env_var, field_name in _ENV_FIELDS.items():
        val = os.environ.get(env_var)
        if not val:
            continue
        fallback = getattr(defaults, field_name)
        try:
            parsed = int(val)
            # 单字段校验，避免一个非法值拖垮整个配置
            EngineConfig(**{field_name: parsed})
        except ValueError:
            log.warning(
                "invalid_engine_config",
                env_var=env_var,
                value=val,
                fallback=fallback,
            )
            continue
        kwargs[field_name] = parsed

    return EngineConfig(**kwargs)
