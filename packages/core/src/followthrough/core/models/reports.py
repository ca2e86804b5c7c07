"""报表输出模型 -- 每日行动清单、积分榜、项目健康度"""

from datetime import date

from pydantic import BaseModel, Field

from .enums import ActionKind, HealthStatus, RiskLevel


class RecommendedAction(BaseModel):
    """推荐动作"""

    kind: ActionKind
    text: str


class ActionItem(BaseModel):
    """每日行动清单中的一项"""

    task_id: str
    task_number: str = "—"
    description: str
    project_id: str | None = None
    days_overdue: int
    days_since_movement: int
    is_blocked: bool
    blocker_description: str | None = None
    gate_person: str | None = None
    next_step: str | None = None
    owner_ids: list[str] = Field(default_factory=list)
    action: RecommendedAction


class ContactScore(BaseModel):
    """单个联系人的可靠度评分"""

    owner_id: str
    name: str
    is_me: bool = False
    total_tasks: int
    tasks_completed: int = Field(description="近 7 天内关闭的任务数")
    tasks_overdue: int
    tasks_on_track: int
    total_open: int
    within_cadence: int
    reliability_score: int = Field(ge=0, le=100)
    avg_days_to_act: int
    streak: int
    level: str
    level_emoji: str
    motivation: str
    rank: int = 0
    rank_badge: str = ""


class RiskTask(BaseModel):
    """项目内的逾期任务"""

    task_id: str
    task_number: str = "—"
    description: str
    days_overdue: int
    blocker_description: str | None = None
    gate_person: str | None = None
    owner_ids: list[str] = Field(default_factory=list)
    risk_level: RiskLevel


class ProjectSummary(BaseModel):
    """项目健康度汇总"""

    project_id: str
    name: str
    customer_name: str | None = None
    deadline: date | None = None
    buffer_days: int
    real_deadline: date | None = None
    days_remaining: int | None = None
    total_tasks: int
    completed_tasks: int
    open_tasks: int
    overdue_tasks: int
    completion_percent: int
    at_risk_tasks: list[RiskTask] = Field(default_factory=list)
    health_status: HealthStatus
