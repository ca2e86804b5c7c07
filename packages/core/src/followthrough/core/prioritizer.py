"""Action Prioritizer -- 每日行动清单与专注批次

两个输出共享同一逾期任务集合：
1. 每日行动清单：全量、按逾期天数倒序、每项附带推荐动作
2. 专注批次：最多 3 个任务，优先挑选共享 Gate 负责人的任务，减少上下文切换

两者都是输入快照的纯函数；空输入返回空列表（"all caught up"），从不抛异常。
"""

from collections.abc import Callable, Hashable, Iterable

import structlog
from pydantic import BaseModel, Field

from .models.enums import ActionKind, TaskStatus
from .models.reports import ActionItem, RecommendedAction
from .models.task import Task
from .models.workflow import TaskSnapshot, Viewer

log = structlog.get_logger()

# 缺失 Gate 负责人时的分组哨兵值
NO_CONTACT = "none"

DEFAULT_BATCH_SIZE = 3


# ---------------------------------------------------------------------------
# 可见性
# ---------------------------------------------------------------------------


def is_visible(task: Task, viewer: Viewer) -> bool:
    """管理员可见全部任务；普通用户仅可见自己是 owner 的任务

    未关联 owner 的普通用户看不到任何任务。
    """
    if viewer.is_admin:
        return True
    if viewer.owner_id is None:
        return False
    return viewer.owner_id in task.owner_ids


def overdue_for(snapshots: Iterable[TaskSnapshot], viewer: Viewer) -> list[TaskSnapshot]:
    """可见性过滤 + 逾期过滤（只保留 open 任务）"""
    return [
        s
        for s in snapshots
        if s.task.status == TaskStatus.OPEN and is_visible(s.task, viewer) and s.is_overdue
    ]


# ---------------------------------------------------------------------------
# 每日行动清单
# ---------------------------------------------------------------------------


def recommend_action(snapshot: TaskSnapshot) -> RecommendedAction:
    """推荐动作，按优先级取第一条命中的规则"""
    task = snapshot.task
    person = snapshot.current_gate_contact

    if task.is_blocked and person:
        text = f"Contact {person}"
        if task.blocker_description:
            text += f" — {task.blocker_description}"
        return RecommendedAction(kind=ActionKind.CONTACT, text=text)

    if task.is_blocked and task.blocker_description:
        return RecommendedAction(
            kind=ActionKind.RESOLVE_BLOCKER,
            text=f"Resolve blocker: {task.blocker_description}",
        )

    if task.next_step:
        return RecommendedAction(kind=ActionKind.NEXT_STEP, text=task.next_step)

    return RecommendedAction(
        kind=ActionKind.FOLLOW_UP,
        text=f"Follow up — {snapshot.days_since_movement} days without movement",
    )


def action_item(snapshot: TaskSnapshot) -> ActionItem:
    """任务快照 -> 行动项（附推荐动作）"""
    task = snapshot.task
    return ActionItem(
        task_id=task.task_id,
        task_number=task.task_number or "—",
        description=task.description,
        project_id=task.project_id,
        days_overdue=snapshot.days_overdue,
        days_since_movement=snapshot.days_since_movement,
        is_blocked=task.is_blocked,
        blocker_description=task.blocker_description,
        gate_person=snapshot.current_gate_contact,
        next_step=task.next_step,
        owner_ids=list(task.owner_ids),
        action=recommend_action(snapshot),
    )


def build_daily_list(snapshots: Iterable[TaskSnapshot], viewer: Viewer) -> list[ActionItem]:
    """生成每日行动清单

    Args:
        snapshots: 经 Cadence Clock 标注的任务快照
        viewer: 调用者上下文

    Returns:
        按 days_overdue 倒序的行动项；逾期天数相同时保持输入顺序
    """
    items = [action_item(s) for s in overdue_for(snapshots, viewer)]
    items.sort(key=lambda item: item.days_overdue, reverse=True)
    return items


# ---------------------------------------------------------------------------
# 专注批次
# ---------------------------------------------------------------------------


def _first_cluster(
    population: list[TaskSnapshot],
    key_fn: Callable[[TaskSnapshot], Hashable],
    size: int,
) -> list[TaskSnapshot] | None:
    """按 key 分组，返回首个成员数 >= size 的分组的前 size 个

    分组顺序即该 key 在 population 中首次出现的顺序。
    """
    groups: dict[Hashable, list[TaskSnapshot]] = {}
    for s in population:
        groups.setdefault(key_fn(s), []).append(s)
    for group in groups.values():
        if len(group) >= size:
            return group[:size]
    return None


def _pair_key(s: TaskSnapshot) -> tuple[str, str]:
    return (s.current_gate_contact or NO_CONTACT, s.next_gate_contact or NO_CONTACT)


def _current_key(s: TaskSnapshot) -> str:
    return s.current_gate_contact or NO_CONTACT


def select_focus_batch(
    overdue: Iterable[TaskSnapshot],
    handled_task_ids: Iterable[str] = (),
    size: int = DEFAULT_BATCH_SIZE,
) -> list[TaskSnapshot]:
    """从逾期任务中挑选专注批次

    1. 候选 <= size：全部返回，按 days_since_movement 倒序
    2. 按 (当前 Gate 负责人, 下一 Gate 负责人) 分组，取首个满员分组
    3. 放宽为仅按当前 Gate 负责人分组
    4. 回退为停滞最久的 size 个任务
    """
    handled = set(handled_task_ids)
    population = [s for s in overdue if s.task_id not in handled]
    population.sort(key=lambda s: s.days_since_movement, reverse=True)

    if len(population) <= size:
        tier = "all"
        batch = population
    elif (batch := _first_cluster(population, _pair_key, size)) is not None:
        tier = "gate_pair"
    elif (batch := _first_cluster(population, _current_key, size)) is not None:
        tier = "current_gate"
    else:
        tier = "most_overdue"
        batch = population[:size]

    log.debug(
        "focus_batch_selected",
        tier=tier,
        candidates=len(population),
        task_ids=[s.task_id for s in batch],
    )
    return batch


class FocusSession(BaseModel):
    """专注模式会话状态

    由调用方持有并显式传入；每处理或跳过一个任务，下一次 next_batch
    都会针对当前快照完整重跑选择算法，而不是修补上一批结果。
    """

    viewer: Viewer = Field(default_factory=Viewer)
    handled_task_ids: set[str] = Field(default_factory=set)
    batch_size: int = Field(default=DEFAULT_BATCH_SIZE, ge=1)

    def mark_handled(self, task_id: str) -> None:
        """已添加备注和/或已重启时钟"""
        self.handled_task_ids.add(task_id)

    def skip(self, task_id: str) -> None:
        self.handled_task_ids.add(task_id)

    def next_batch(self, snapshots: Iterable[TaskSnapshot]) -> list[TaskSnapshot]:
        return select_focus_batch(
            overdue_for(snapshots, self.viewer),
            self.handled_task_ids,
            size=self.batch_size,
        )
