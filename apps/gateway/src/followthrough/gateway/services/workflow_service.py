"""WorkflowService -- 任务写流程编排与报表查询

写流程（均为单事务原子提交：任务字段 + 可选备注 + 活动事件）：
1. 创建任务
2. 添加备注 + 时钟决策
3. Gate 编辑（完成时附带时钟决策）
4. 重启时钟
5. 状态流转（申请关闭 / 驳回 / 关闭 / 重新打开）
6. 更新阻塞说明 / 下一步

时钟规则统一：只有 confirm / pick_date 推进时钟；skip 只保存触发动作本身。
所有校验在写入之前完成，校验失败时任务保持原状。
"""

from collections.abc import Callable, Iterable
from datetime import UTC, datetime
from typing import Any

import structlog
from followthrough.core.clock import restart_clock, tag_tasks, validate_cadence
from followthrough.core.config import NOTE_PREVIEW_LENGTH, EngineConfig
from followthrough.core.exceptions import EmptyNoteError, TaskNotFoundError, WorkflowValidationError
from followthrough.core.gates import (
    GateEdit,
    apply_gate_edit,
    complete_all_gates,
    complete_gate,
    compute_is_blocked,
    insert_gate,
    move_gate,
    relabel_gates,
    remove_gate,
    set_gate,
    toggle_gate,
)
from followthrough.core.health import build_project_health
from followthrough.core.lifecycle import transition_status
from followthrough.core.models import (
    ActionItem,
    ClockDecision,
    ClockRestartedPayload,
    ContactScore,
    Event,
    EventType,
    Gate,
    GatesUpdatedPayload,
    Note,
    NoteAddedPayload,
    Owner,
    Project,
    ProjectSummary,
    StatusChangedPayload,
    Task,
    TaskCreatedPayload,
    TaskStatus,
    TaskUpdatedPayload,
    Viewer,
)
from followthrough.core.prioritizer import FocusSession, action_item, build_daily_list
from followthrough.core.scoring import build_scorecard
from followthrough.core.store import StoreGroup
from followthrough.core.store.transaction import apply_task_change, create_task_with_event, save_directory
from ulid import ULID

log = structlog.get_logger()

# update_details 允许修改的字段
DETAIL_FIELDS = ("description", "blocker_description", "next_step")


def _utcnow() -> datetime:
    return datetime.now(UTC)


class WorkflowService:
    """任务工作流服务"""

    def __init__(
        self,
        store_group: StoreGroup,
        config: EngineConfig | None = None,
        now: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._stores = store_group
        self._config = config or EngineConfig()
        self._now = now

    # ------------------------------------------------------------------
    # 内部工具
    # ------------------------------------------------------------------

    async def get_task(self, task_id: str) -> Task:
        """查询任务，不存在时抛出 TaskNotFoundError"""
        task = await self._stores.task_store.get_task(task_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        return task

    async def _events(
        self,
        task_id: str,
        ts: datetime,
        actor_id: str | None,
        entries: list[tuple[EventType, dict[str, Any]]],
    ) -> list[Event]:
        """为一次写流程分配连续的 task_seq"""
        seq = await self._stores.event_store.get_next_task_seq(task_id)
        return [
            Event(
                event_id=str(ULID()),
                task_id=task_id,
                task_seq=seq + i,
                ts=ts,
                type=event_type,
                actor_id=actor_id,
                payload=payload,
            )
            for i, (event_type, payload) in enumerate(entries)
        ]

    @staticmethod
    def _clock_entry(before: Task, after: Task) -> tuple[EventType, dict[str, Any]]:
        return (
            EventType.CLOCK_RESTARTED,
            ClockRestartedPayload(
                previous_cadence_days=before.fu_cadence_days,
                fu_cadence_days=after.fu_cadence_days,
                previous_movement_at=before.last_movement_at.isoformat(),
            ).model_dump(),
        )

    async def _commit(
        self,
        task: Task,
        fields: dict[str, Any],
        entries: list[tuple[EventType, dict[str, Any]]],
        now: datetime,
        actor_id: str | None,
        operation: str,
        note: Note | None = None,
    ) -> Task:
        # 从分配 task_seq 到提交/回滚必须独占共享连接
        async with self._stores.write_lock:
            events = await self._events(task.task_id, now, actor_id, entries)
            await apply_task_change(
                self._stores.conn,
                self._stores.task_store,
                self._stores.note_store,
                self._stores.event_store,
                task.task_id,
                fields=fields,
                note=note,
                events=events,
                operation=operation,
            )
        return await self.get_task(task.task_id)

    # ------------------------------------------------------------------
    # 联系人与项目
    # ------------------------------------------------------------------

    async def save_owners(self, owners: Iterable[Owner]) -> None:
        async with self._stores.write_lock:
            await save_directory(
                self._stores.conn,
                self._stores.owner_store,
                self._stores.project_store,
                owners=list(owners),
            )

    async def save_projects(self, projects: Iterable[Project]) -> None:
        async with self._stores.write_lock:
            await save_directory(
                self._stores.conn,
                self._stores.owner_store,
                self._stores.project_store,
                projects=list(projects),
            )

    async def list_owners(self, viewer: Viewer) -> list[Owner]:
        """联系人列表，私有联系人只对其所属账号可见"""
        owners = await self._stores.owner_store.list_owners()
        return [o for o in owners if o.visible_to(viewer.owner_id)]

    # ------------------------------------------------------------------
    # 写流程
    # ------------------------------------------------------------------

    async def create_task(
        self,
        description: str,
        owner_ids: list[str] | None = None,
        fu_cadence_days: int | None = None,
        gates: list[Gate] | None = None,
        project_id: str | None = None,
        task_number: str | None = None,
        blocker_description: str | None = None,
        next_step: str | None = None,
        actor_id: str | None = None,
    ) -> Task:
        """创建任务：时钟从 now 开始计时，is_blocked 由 gates 计算"""
        cadence = validate_cadence(
            self._config.default_cadence_days if fu_cadence_days is None else fu_cadence_days
        )
        if not description.strip():
            raise WorkflowValidationError("description", "description must not be empty")

        now = self._now()
        gate_list = relabel_gates(list(gates or []))
        task = Task(
            task_id=str(ULID()),
            task_number=task_number,
            description=description.strip(),
            project_id=project_id,
            fu_cadence_days=cadence,
            last_movement_at=now,
            created_at=now,
            is_blocked=compute_is_blocked(gate_list),
            blocker_description=blocker_description,
            next_step=next_step,
            gates=gate_list,
            owner_ids=list(dict.fromkeys(owner_ids or [])),
        )
        event = Event(
            event_id=str(ULID()),
            task_id=task.task_id,
            task_seq=1,
            ts=now,
            type=EventType.TASK_CREATED,
            actor_id=actor_id,
            payload=TaskCreatedPayload(
                description=task.description,
                fu_cadence_days=cadence,
                gate_count=len(gate_list),
                owner_ids=task.owner_ids,
            ).model_dump(),
        )
        async with self._stores.write_lock:
            await create_task_with_event(
                self._stores.conn,
                self._stores.task_store,
                self._stores.event_store,
                task,
                event,
            )
        log.info("task_created", task_id=task.task_id, fu_cadence_days=cadence)
        return await self.get_task(task.task_id)

    async def add_note(
        self,
        task_id: str,
        content: str,
        decision: ClockDecision | None = None,
        author_id: str | None = None,
    ) -> Task:
        """添加状态备注，并按时钟决策决定是否推进时钟"""
        if not content or not content.strip():
            raise EmptyNoteError()
        decision = decision or ClockDecision.skip()

        task = await self.get_task(task_id)
        now = self._now()
        restarted = restart_clock(task, decision, now)

        note = Note(
            note_id=str(ULID()),
            task_id=task_id,
            author_id=author_id,
            content=content.strip(),
            created_at=now,
        )
        entries = [
            (
                EventType.NOTE_ADDED,
                NoteAddedPayload(
                    note_id=note.note_id,
                    text_preview=note.content[:NOTE_PREVIEW_LENGTH],
                    clock_restarted=decision.advances_clock,
                ).model_dump(),
            )
        ]
        fields: dict[str, Any] = {}
        if decision.advances_clock:
            fields = {
                "last_movement_at": restarted.last_movement_at,
                "fu_cadence_days": restarted.fu_cadence_days,
            }
            entries.append(self._clock_entry(task, restarted))

        updated = await self._commit(
            task, fields, entries, now, author_id, "add_note", note=note
        )
        log.info("note_added", task_id=task_id, clock_restarted=decision.advances_clock)
        return updated

    async def _save_gate_edit(
        self,
        task: Task,
        edit: GateEdit,
        decision: ClockDecision,
        actor_id: str | None,
        now: datetime,
        relabel: bool = False,
    ) -> Task:
        gates = relabel_gates(edit.gates) if relabel else edit.gates
        edited = apply_gate_edit(task, edit.model_copy(update={"gates": gates}))
        restarted = restart_clock(edited, decision, now)

        fields: dict[str, Any] = {"gates": edited.gates, "is_blocked": edited.is_blocked}
        entries = [
            (
                EventType.GATES_UPDATED,
                GatesUpdatedPayload(
                    operation=edit.operation,
                    gates=edited.gates,
                    is_blocked=edited.is_blocked,
                    clock_restarted=decision.advances_clock,
                ).model_dump(mode="json"),
            )
        ]
        if decision.advances_clock:
            fields["last_movement_at"] = restarted.last_movement_at
            fields["fu_cadence_days"] = restarted.fu_cadence_days
            entries.append(self._clock_entry(task, restarted))

        updated = await self._commit(
            task, fields, entries, now, actor_id, f"gates_{edit.operation}"
        )
        log.info(
            "gates_updated",
            task_id=task.task_id,
            operation=edit.operation,
            is_blocked=edited.is_blocked,
            clock_restarted=decision.advances_clock,
        )
        return updated

    async def complete_gate(
        self,
        task_id: str,
        index: int,
        decision: ClockDecision | None = None,
        actor_id: str | None = None,
    ) -> Task:
        """完成 Gate，可选推进时钟"""
        task = await self.get_task(task_id)
        now = self._now()
        edit = complete_gate(task.gates, index, now)
        return await self._save_gate_edit(
            task, edit, decision or ClockDecision.skip(), actor_id, now
        )

    async def toggle_gate(
        self,
        task_id: str,
        index: int,
        decision: ClockDecision | None = None,
        actor_id: str | None = None,
    ) -> Task:
        """切换 Gate 完成状态；仅在由未完成变为完成时应用时钟决策"""
        task = await self.get_task(task_id)
        now = self._now()
        edit = toggle_gate(task.gates, index, now)
        completing = edit.gates[index].completed
        if not completing:
            decision = None
        return await self._save_gate_edit(
            task, edit, decision or ClockDecision.skip(), actor_id, now
        )

    async def insert_gate(
        self,
        task_id: str,
        gate: Gate,
        position: int,
        actor_id: str | None = None,
    ) -> Task:
        task = await self.get_task(task_id)
        edit = insert_gate(task.gates, gate, position)
        return await self._save_gate_edit(
            task, edit, ClockDecision.skip(), actor_id, self._now(), relabel=True
        )

    async def remove_gate(self, task_id: str, index: int, actor_id: str | None = None) -> Task:
        task = await self.get_task(task_id)
        edit = remove_gate(task.gates, index)
        return await self._save_gate_edit(
            task, edit, ClockDecision.skip(), actor_id, self._now(), relabel=True
        )

    async def move_gate(
        self,
        task_id: str,
        index: int,
        direction: int,
        actor_id: str | None = None,
    ) -> Task:
        task = await self.get_task(task_id)
        edit = move_gate(task.gates, index, direction)
        return await self._save_gate_edit(
            task, edit, ClockDecision.skip(), actor_id, self._now(), relabel=True
        )

    async def set_gate(
        self,
        task_id: str,
        index: int,
        owner_name: str,
        task_name: str | None = None,
        completed: bool = False,
        actor_id: str | None = None,
    ) -> Task:
        """Gate 编辑器保存（自动补齐中间位置、裁掉末尾空 Gate）"""
        task = await self.get_task(task_id)
        now = self._now()
        edit = set_gate(task.gates, index, owner_name, task_name, completed, now)
        return await self._save_gate_edit(task, edit, ClockDecision.skip(), actor_id, now)

    async def restart_clock(
        self,
        task_id: str,
        decision: ClockDecision,
        actor_id: str | None = None,
    ) -> Task:
        """单独重启时钟；skip 时不写入任何内容"""
        task = await self.get_task(task_id)
        now = self._now()
        restarted = restart_clock(task, decision, now)
        if not decision.advances_clock:
            return task

        return await self._commit(
            task,
            {
                "last_movement_at": restarted.last_movement_at,
                "fu_cadence_days": restarted.fu_cadence_days,
            },
            [self._clock_entry(task, restarted)],
            now,
            actor_id,
            "restart_clock",
        )

    async def change_status(
        self,
        task_id: str,
        to_status: TaskStatus,
        complete_gates: bool = False,
        actor_id: str | None = None,
    ) -> Task:
        """状态流转

        Args:
            complete_gates: 关闭时一并完成全部 Gate 并解除阻塞
        """
        task = await self.get_task(task_id)
        now = self._now()
        changed = transition_status(task, to_status, now)

        fields: dict[str, Any] = {
            "status": changed.status,
            "close_requested_at": changed.close_requested_at,
            "closed_at": changed.closed_at,
        }
        gates_completed = complete_gates and to_status == TaskStatus.CLOSED and bool(task.gates)
        if gates_completed:
            edit = complete_all_gates(task.gates, now)
            fields["gates"] = edit.gates
            fields["is_blocked"] = edit.is_blocked

        updated = await self._commit(
            task,
            fields,
            [
                (
                    EventType.STATUS_CHANGED,
                    StatusChangedPayload(
                        from_status=task.status,
                        to_status=to_status,
                        gates_completed=gates_completed,
                    ).model_dump(mode="json"),
                )
            ],
            now,
            actor_id,
            "change_status",
        )
        log.info(
            "task_status_changed",
            task_id=task_id,
            from_status=task.status.value,
            to_status=to_status.value,
        )
        return updated

    async def request_close(self, task_id: str, actor_id: str | None = None) -> Task:
        return await self.change_status(task_id, TaskStatus.CLOSE_REQUESTED, actor_id=actor_id)

    async def deny_close(self, task_id: str, actor_id: str | None = None) -> Task:
        task = await self.get_task(task_id)
        if task.status != TaskStatus.CLOSE_REQUESTED:
            raise WorkflowValidationError("status", "task has no pending close request")
        return await self.change_status(task_id, TaskStatus.OPEN, actor_id=actor_id)

    async def close(
        self,
        task_id: str,
        complete_gates: bool = False,
        actor_id: str | None = None,
    ) -> Task:
        return await self.change_status(
            task_id, TaskStatus.CLOSED, complete_gates=complete_gates, actor_id=actor_id
        )

    async def reopen(self, task_id: str, actor_id: str | None = None) -> Task:
        task = await self.get_task(task_id)
        if task.status != TaskStatus.CLOSED:
            raise WorkflowValidationError("status", "only closed tasks can be reopened")
        return await self.change_status(task_id, TaskStatus.OPEN, actor_id=actor_id)

    async def update_details(
        self,
        task_id: str,
        changes: dict[str, str | None],
        actor_id: str | None = None,
    ) -> Task:
        """更新描述 / 阻塞说明 / 下一步（不推进时钟）"""
        unknown = set(changes) - set(DETAIL_FIELDS)
        if unknown:
            raise WorkflowValidationError(
                sorted(unknown)[0], f"field not editable: {sorted(unknown)[0]}"
            )
        if "description" in changes and not (changes["description"] or "").strip():
            raise WorkflowValidationError("description", "description must not be empty")

        task = await self.get_task(task_id)
        if not changes:
            return task
        fields = {k: (v.strip() or None) if isinstance(v, str) else v for k, v in changes.items()}
        return await self._commit(
            task,
            fields,
            [(EventType.TASK_UPDATED, TaskUpdatedPayload(fields=sorted(fields)).model_dump())],
            self._now(),
            actor_id,
            "update_details",
        )

    # ------------------------------------------------------------------
    # 读流程
    # ------------------------------------------------------------------

    async def task_detail(self, task_id: str) -> tuple[Task, list[Event]]:
        task = await self.get_task(task_id)
        events = await self._stores.event_store.get_events_for_task(task_id)
        return task, events

    async def _open_snapshots(self, viewer: Viewer):
        # 非管理员只加载自己的任务；无 owner 的非管理员直接返回空
        if not viewer.is_admin and viewer.owner_id is None:
            return []
        tasks = await self._stores.task_store.list_tasks(
            status=TaskStatus.OPEN.value,
            owner_id=None if viewer.is_admin else viewer.owner_id,
        )
        return tag_tasks(tasks, self._now())

    async def daily_actions(self, viewer: Viewer) -> list[ActionItem]:
        """每日行动清单"""
        snapshots = await self._open_snapshots(viewer)
        items = build_daily_list(snapshots, viewer)
        log.info("daily_actions_built", items=len(items), is_admin=viewer.is_admin)
        return items

    async def focus_batch(
        self,
        viewer: Viewer,
        handled_task_ids: Iterable[str] = (),
    ) -> list[ActionItem]:
        """专注批次：每次请求都针对最新快照重跑选择算法"""
        session = FocusSession(
            viewer=viewer,
            handled_task_ids=set(handled_task_ids),
            batch_size=self._config.focus_batch_size,
        )
        snapshots = await self._open_snapshots(viewer)
        return [action_item(s) for s in session.next_batch(snapshots)]

    async def scorecard(self, viewer: Viewer) -> list[ContactScore]:
        """团队积分榜（包含已关闭任务）"""
        tasks = await self._stores.task_store.list_tasks()
        owners = await self._stores.owner_store.list_owners()
        return build_scorecard(
            tasks,
            owners,
            self._now(),
            viewer_owner_id=viewer.owner_id,
            streak_window_days=self._config.streak_window_days,
            completed_window_days=self._config.completed_window_days,
        )

    async def project_health(self) -> list[ProjectSummary]:
        projects = await self._stores.project_store.list_projects()
        tasks = await self._stores.task_store.list_tasks()
        return build_project_health(projects, tasks, self._now())
