"""Gate Sequence Manager -- 当前/下一 Gate 推导与 Gate 列表编辑

所有 Gate 变更必须经由本模块：每个编辑函数返回新的 GateEdit
（新列表 + 重新计算的 is_blocked），输入列表不会被就地修改。

阻塞判定的唯一规则：
    is_blocked = any(not g.completed and g.owner_name != "" for g in gates)

Gate 不要求按顺序完成：后面的 Gate 可以在前面的 Gate 未完成时被标记完成。
"""

import re
from datetime import datetime

import structlog
from pydantic import BaseModel

from .exceptions import EmptyGateListError, GateIndexError, WorkflowValidationError
from .models.gate import Gate
from .models.task import Task

log = structlog.get_logger()

_SEQUENTIAL_LABEL = re.compile(r"^Gate \d+$")


class GateEdit(BaseModel):
    """一次 Gate 编辑的结果"""

    operation: str
    gates: list[Gate]
    is_blocked: bool


class ActiveGates(BaseModel):
    """当前/下一 Gate（下标从 1 开始，用于展示）"""

    current: tuple[int, Gate] | None = None
    next: tuple[int, Gate] | None = None
    total: int = 0


# ---------------------------------------------------------------------------
# 查询
# ---------------------------------------------------------------------------


def current_gate_index(gates: list[Gate]) -> int | None:
    """第一个未完成 Gate 的下标（从 0 开始），全部完成或为空时返回 None"""
    for i, gate in enumerate(gates):
        if not gate.completed:
            return i
    return None


def current_gate(gates: list[Gate]) -> Gate | None:
    """按列表顺序扫描，返回第一个未完成的 Gate"""
    index = current_gate_index(gates)
    return gates[index] if index is not None else None


def next_gate(gates: list[Gate]) -> Gate | None:
    """当前 Gate 之后第一个未完成的 Gate"""
    index = current_gate_index(gates)
    if index is None:
        return None
    for gate in gates[index + 1 :]:
        if not gate.completed:
            return gate
    return None


def active_gates(gates: list[Gate]) -> ActiveGates:
    """一次扫描同时返回当前与下一 Gate（1-indexed）"""
    current: tuple[int, Gate] | None = None
    following: tuple[int, Gate] | None = None
    for i, gate in enumerate(gates):
        if gate.completed:
            continue
        if current is None:
            current = (i + 1, gate)
        else:
            following = (i + 1, gate)
            break
    return ActiveGates(current=current, next=following, total=len(gates))


def format_gate(index: int, total: int, owner_name: str) -> str:
    """Gate 展示格式，例如 "3/5 Alwin" """
    return f"{index}/{total} {owner_name}"


def current_gate_contact(gates: list[Gate]) -> str | None:
    gate = current_gate(gates)
    if gate is None or not gate.owner_name:
        return None
    return gate.owner_name


def next_gate_contact(gates: list[Gate]) -> str | None:
    gate = next_gate(gates)
    if gate is None or not gate.owner_name:
        return None
    return gate.owner_name


def compute_is_blocked(gates: list[Gate]) -> bool:
    """存在未完成且有负责人的 Gate 即为阻塞"""
    return any(not g.completed and g.owner_name != "" for g in gates)


# ---------------------------------------------------------------------------
# 编辑
# ---------------------------------------------------------------------------


def _check_index(gates: list[Gate], index: int) -> None:
    if index < 0 or index >= len(gates):
        raise GateIndexError(index, len(gates))


def _finish(operation: str, gates: list[Gate]) -> GateEdit:
    edit = GateEdit(operation=operation, gates=gates, is_blocked=compute_is_blocked(gates))
    log.debug(
        "gates_edited",
        operation=operation,
        gate_count=len(gates),
        is_blocked=edit.is_blocked,
    )
    return edit


def _copy(gates: list[Gate]) -> list[Gate]:
    return [g.model_copy() for g in gates]


def complete_gate(gates: list[Gate], index: int, now: datetime | None = None) -> GateEdit:
    """将 index 处的 Gate 标记为完成"""
    if not gates:
        raise EmptyGateListError("complete_gate")
    _check_index(gates, index)
    updated = _copy(gates)
    updated[index] = updated[index].model_copy(update={"completed": True, "completed_at": now})
    return _finish("complete", updated)


def toggle_gate(gates: list[Gate], index: int, now: datetime | None = None) -> GateEdit:
    """切换 index 处 Gate 的完成状态；取消完成时清除 completed_at"""
    if not gates:
        raise EmptyGateListError("toggle_gate")
    _check_index(gates, index)
    updated = _copy(gates)
    gate = updated[index]
    if gate.completed:
        updated[index] = gate.model_copy(update={"completed": False, "completed_at": None})
    else:
        updated[index] = gate.model_copy(update={"completed": True, "completed_at": now})
    return _finish("toggle", updated)


def insert_gate(gates: list[Gate], new_gate: Gate, position: int) -> GateEdit:
    """在 position 处插入新 Gate（0 表示插在最前面，len 表示追加）

    不会修改其他 Gate 的 owner_name/task_name；使用 "Gate N" 顺序标签的调用方
    需要再调用 relabel_gates。
    """
    if position < 0 or position > len(gates):
        raise GateIndexError(position, len(gates), allow_end=True)
    updated = _copy(gates)
    updated.insert(position, new_gate.model_copy())
    return _finish("insert", updated)


def remove_gate(gates: list[Gate], index: int) -> GateEdit:
    """删除 index 处的 Gate；空列表是合法的持久化状态"""
    _check_index(gates, index)
    updated = [g.model_copy() for i, g in enumerate(gates) if i != index]
    return _finish("remove", updated)


def move_gate(gates: list[Gate], index: int, direction: int) -> GateEdit:
    """将 index 处的 Gate 上移（-1）或下移（+1）一位"""
    if direction not in (-1, 1):
        raise WorkflowValidationError(
            "direction", f"direction must be -1 or 1, got {direction}", valid_range=(-1, 1)
        )
    _check_index(gates, index)
    target = index + direction
    _check_index(gates, target)
    updated = _copy(gates)
    updated[index], updated[target] = updated[target], updated[index]
    return _finish("move", updated)


def set_gate(
    gates: list[Gate],
    index: int,
    owner_name: str,
    task_name: str | None = None,
    completed: bool = False,
    now: datetime | None = None,
) -> GateEdit:
    """Gate 编辑器保存语义

    - index 超出末尾时，用空的 "Gate N" 补齐中间位置
    - 保存后裁掉末尾所有 owner_name 为空的 Gate
    """
    if index < 0:
        raise GateIndexError(index, len(gates), allow_end=True)
    updated = _copy(gates)
    while len(updated) <= index:
        updated.append(Gate(name=f"Gate {len(updated) + 1}"))

    existing = updated[index]
    if completed and not existing.completed:
        completed_at = now
    elif completed:
        completed_at = existing.completed_at
    else:
        completed_at = None
    updated[index] = existing.model_copy(
        update={
            "name": existing.name or f"Gate {index + 1}",
            "owner_name": owner_name.strip(),
            "task_name": task_name or None,
            "completed": completed,
            "completed_at": completed_at,
        }
    )

    while updated and not updated[-1].owner_name:
        updated.pop()
    return _finish("set", updated)


def relabel_gates(gates: list[Gate]) -> list[Gate]:
    """按当前顺序重新生成 "Gate N" 标签

    仅改写为空或本身就是顺序标签的 name，用户自定义的标签保持不变。
    """
    relabeled = []
    for i, gate in enumerate(gates):
        if not gate.name or _SEQUENTIAL_LABEL.match(gate.name):
            gate = gate.model_copy(update={"name": f"Gate {i + 1}"})
        relabeled.append(gate)
    return relabeled


def complete_all_gates(gates: list[Gate], now: datetime | None = None) -> GateEdit:
    """关闭任务前的 Gate 核对：全部标记完成"""
    updated = [
        g if g.completed else g.model_copy(update={"completed": True, "completed_at": now})
        for g in gates
    ]
    return _finish("complete_all", updated)


def apply_gate_edit(task: Task, edit: GateEdit) -> Task:
    """将 GateEdit 写回任务（同时刷新 is_blocked 缓存）"""
    return task.model_copy(update={"gates": edit.gates, "is_blocked": edit.is_blocked})
