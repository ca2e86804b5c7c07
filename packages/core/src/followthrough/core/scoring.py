"""Reliability Scorer -- 联系人可靠度评分、等级、连续天数与排名

可靠度 = 已关闭或仍在节奏内的任务占比（0-100 整数）。
没有任何任务的联系人不产生评分条目（而不是 0 分）。
"""

import math
from collections.abc import Callable, Iterable
from datetime import datetime, timedelta

import structlog
from pydantic import BaseModel, Field

from .clock import days_since_movement, ensure_utc
from .models.enums import TaskStatus
from .models.owner import Owner
from .models.reports import ContactScore
from .models.task import Task

log = structlog.get_logger()

# (阈值, 等级, emoji)，按阈值从高到低匹配
LEVELS: list[tuple[int, str, str]] = [
    (95, "Tornado", "🌪️"),
    (85, "Lightning", "⚡"),
    (75, "Storm", "🌩️"),
    (60, "Wind", "💨"),
    (40, "Breeze", "🍃"),
]
BASE_LEVEL: tuple[str, str] = ("Calm", "☁️")

MOTIVATIONS: list[tuple[int, str]] = [
    (95, "Absolute machine. Nothing gets past you."),
    (85, "Crushing it! Keep this energy."),
    (75, "Solid work. A few tweaks and you're elite."),
    (60, "Good foundation. Let's tighten up those overdue items."),
    (40, "Room to grow. Focus on your daily actions list."),
]
BASE_MOTIVATION = "Let's get moving! Check your 📋 Actions list."


def round_half_up(value: float) -> int:
    """.5 一律向上取整（内置 round 为银行家舍入）"""
    return math.floor(value + 0.5)


def get_level(score: int) -> tuple[str, str]:
    """按分数返回 (等级, emoji)"""
    for threshold, level, emoji in LEVELS:
        if score >= threshold:
            return level, emoji
    return BASE_LEVEL


def get_motivation(score: int) -> str:
    for threshold, message in MOTIVATIONS:
        if score >= threshold:
            return message
    return BASE_MOTIVATION


def get_rank_badge(rank: int) -> str:
    return {1: "🥇", 2: "🥈", 3: "🥉"}.get(rank, f"#{rank}")


def is_leaderboard_eligible(owner: Owner) -> bool:
    """排行榜准入：排除第三方供应商，除非其同时持有员工标签"""
    if owner.is_third_party_vendor and not owner.is_internal_staff:
        return False
    return True


class OwnerStats(BaseModel):
    """单个联系人的累计统计"""

    owner_id: str
    name: str
    total_tasks: int = 0
    within_cadence: int = 0
    total_open: int = 0
    overdue: int = 0
    on_track: int = 0
    completed_this_week: int = 0
    total_days_to_act: int = 0
    act_count: int = 0
    note_days: set[str] = Field(default_factory=set, description="窗口内有备注的日期（UTC，ISO 格式）")

    @property
    def reliability_score(self) -> int | None:
        if self.total_tasks == 0:
            return None
        return round_half_up(100 * self.within_cadence / self.total_tasks)

    @property
    def avg_days_to_act(self) -> int:
        if self.act_count == 0:
            return 0
        return round_half_up(self.total_days_to_act / self.act_count)


def compute_streak(note_days: set[str], now: datetime, window_days: int = 30) -> int:
    """从今天往回数连续有备注的天数

    今天没有备注不打断连续（今天可能还没过完），其余任何缺失的一天都会终止计数。
    """
    today = ensure_utc(now).date()
    streak = 0
    for i in range(window_days):
        day = (today - timedelta(days=i)).isoformat()
        if day in note_days:
            streak += 1
        elif i > 0:
            break
    return streak


def accumulate(
    tasks: Iterable[Task],
    owners: dict[str, Owner],
    now: datetime,
    eligible: Callable[[Owner], bool] = is_leaderboard_eligible,
    streak_window_days: int = 30,
    completed_window_days: int = 7,
) -> dict[str, OwnerStats]:
    """遍历全部任务（含已关闭），按 owner 累计统计"""
    now = ensure_utc(now)
    completed_cutoff = now - timedelta(days=completed_window_days)
    note_cutoff = now - timedelta(days=streak_window_days)
    stats: dict[str, OwnerStats] = {}

    for task in tasks:
        days = days_since_movement(task, now)
        is_open = task.status == TaskStatus.OPEN
        overdue = is_open and days > task.fu_cadence_days
        completed_recently = (
            task.status == TaskStatus.CLOSED and ensure_utc(task.last_movement_at) > completed_cutoff
        )

        for owner_id in dict.fromkeys(task.owner_ids):
            owner = owners.get(owner_id)
            if owner is None:
                # 缺失关联：视为无数据
                log.debug("score_owner_missing", owner_id=owner_id, task_id=task.task_id)
                continue
            if not eligible(owner):
                continue

            entry = stats.get(owner_id)
            if entry is None:
                entry = stats[owner_id] = OwnerStats(owner_id=owner_id, name=owner.name)

            entry.total_tasks += 1
            if completed_recently:
                entry.completed_this_week += 1
            if is_open:
                entry.total_open += 1
                if overdue:
                    entry.overdue += 1
                else:
                    entry.on_track += 1
                    entry.within_cadence += 1
            else:
                # closed / close_requested 均视为已处理，不论是否迟到
                entry.within_cadence += 1

            entry.total_days_to_act += days
            entry.act_count += 1

            for note in task.notes:
                created = ensure_utc(note.created_at)
                if note.author_id == owner_id and created > note_cutoff:
                    entry.note_days.add(created.date().isoformat())

    return stats


def build_scorecard(
    tasks: Iterable[Task],
    owners: Iterable[Owner],
    now: datetime,
    viewer_owner_id: str | None = None,
    eligible: Callable[[Owner], bool] = is_leaderboard_eligible,
    streak_window_days: int = 30,
    completed_window_days: int = 7,
) -> list[ContactScore]:
    """生成排好名次的积分榜

    排序：reliability_score 倒序，同分时逾期任务少者在前；rank 从 1 开始。
    """
    owner_map = {o.owner_id: o for o in owners}
    stats = accumulate(
        tasks,
        owner_map,
        now,
        eligible=eligible,
        streak_window_days=streak_window_days,
        completed_window_days=completed_window_days,
    )

    scores: list[ContactScore] = []
    for owner_id, entry in stats.items():
        score = entry.reliability_score
        if score is None:
            continue
        level, emoji = get_level(score)
        scores.append(
            ContactScore(
                owner_id=owner_id,
                name=entry.name,
                is_me=owner_id == viewer_owner_id,
                total_tasks=entry.total_tasks,
                tasks_completed=entry.completed_this_week,
                tasks_overdue=entry.overdue,
                tasks_on_track=entry.on_track,
                total_open=entry.total_open,
                within_cadence=entry.within_cadence,
                reliability_score=score,
                avg_days_to_act=entry.avg_days_to_act,
                streak=compute_streak(entry.note_days, now, streak_window_days),
                level=level,
                level_emoji=emoji,
                motivation=get_motivation(score),
            )
        )

    ranked = rank_scores(scores)
    log.info("scorecard_built", contacts=len(ranked))
    return ranked


def rank_scores(scores: list[ContactScore]) -> list[ContactScore]:
    """按 (reliability_score 倒序, tasks_overdue 正序) 排序并写入 rank"""
    ordered = sorted(scores, key=lambda s: (-s.reliability_score, s.tasks_overdue))
    return [
        s.model_copy(update={"rank": i + 1, "rank_badge": get_rank_badge(i + 1)})
        for i, s in enumerate(ordered)
    ]
