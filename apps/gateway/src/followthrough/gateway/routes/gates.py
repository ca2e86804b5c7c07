"""Gate 编辑路由

POST   /api/tasks/{task_id}/gates: 插入 Gate
PUT    /api/tasks/{task_id}/gates/{index}: Gate 编辑器保存（补齐 + 裁剪）
DELETE /api/tasks/{task_id}/gates/{index}: 删除 Gate
POST   /api/tasks/{task_id}/gates/{index}/complete: 完成 Gate + 时钟决策
POST   /api/tasks/{task_id}/gates/{index}/toggle: 切换完成状态 + 时钟决策
POST   /api/tasks/{task_id}/gates/{index}/move: 上移 / 下移

index 为 0 起始的列表下标。
"""

from fastapi import APIRouter, Depends
from followthrough.core.exceptions import FollowthroughError
from followthrough.core.models import ClockDecision, Gate
from pydantic import BaseModel, Field

from ..deps import get_viewer, get_workflow_service
from ..errors import error_response
from .tasks import task_payload

router = APIRouter()


class InsertGateRequest(BaseModel):
    gate: Gate = Field(default_factory=Gate)
    position: int = Field(description="插入位置，0 为最前，等于 Gate 数量时追加到末尾")


class SetGateRequest(BaseModel):
    owner_name: str = ""
    task_name: str | None = None
    completed: bool = False


class CompleteGateRequest(BaseModel):
    clock: ClockDecision = Field(default_factory=ClockDecision.skip)


class MoveGateRequest(BaseModel):
    direction: int = Field(description="-1 上移，1 下移")


@router.post("/api/tasks/{task_id}/gates")
async def insert_gate(
    task_id: str,
    body: InsertGateRequest,
    viewer=Depends(get_viewer),
    service=Depends(get_workflow_service),
):
    try:
        task = await service.insert_gate(task_id, body.gate, body.position, actor_id=viewer.owner_id)
    except FollowthroughError as e:
        return error_response(e)
    return {"task": task_payload(task)}


@router.put("/api/tasks/{task_id}/gates/{index}")
async def set_gate(
    task_id: str,
    index: int,
    body: SetGateRequest,
    viewer=Depends(get_viewer),
    service=Depends(get_workflow_service),
):
    try:
        task = await service.set_gate(
            task_id,
            index,
            body.owner_name,
            task_name=body.task_name,
            completed=body.completed,
            actor_id=viewer.owner_id,
        )
    except FollowthroughError as e:
        return error_response(e)
    return {"task": task_payload(task)}


@router.delete("/api/tasks/{task_id}/gates/{index}")
async def remove_gate(
    task_id: str,
    index: int,
    viewer=Depends(get_viewer),
    service=Depends(get_workflow_service),
):
    try:
        task = await service.remove_gate(task_id, index, actor_id=viewer.owner_id)
    except FollowthroughError as e:
        return error_response(e)
    return {"task": task_payload(task)}


@router.post("/api/tasks/{task_id}/gates/{index}/complete")
async def complete_gate(
    task_id: str,
    index: int,
    body: CompleteGateRequest | None = None,
    viewer=Depends(get_viewer),
    service=Depends(get_workflow_service),
):
    """完成 Gate；clock.mode 为 confirm / pick_date 时推进时钟"""
    clock = body.clock if body else ClockDecision.skip()
    try:
        task = await service.complete_gate(task_id, index, clock, actor_id=viewer.owner_id)
    except FollowthroughError as e:
        return error_response(e)
    return {"task": task_payload(task)}


@router.post("/api/tasks/{task_id}/gates/{index}/toggle")
async def toggle_gate(
    task_id: str,
    index: int,
    body: CompleteGateRequest | None = None,
    viewer=Depends(get_viewer),
    service=Depends(get_workflow_service),
):
    clock = body.clock if body else ClockDecision.skip()
    try:
        task = await service.toggle_gate(task_id, index, clock, actor_id=viewer.owner_id)
    except FollowthroughError as e:
        return error_response(e)
    return {"task": task_payload(task)}


@router.post("/api/tasks/{task_id}/gates/{index}/move")
async def move_gate(
    task_id: str,
    index: int,
    body: MoveGateRequest,
    viewer=Depends(get_viewer),
    service=Depends(get_workflow_service),
):
    try:
        task = await service.move_gate(task_id, index, body.direction, actor_id=viewer.owner_id)
    except FollowthroughError as e:
        return error_response(e)
    return {"task": task_payload(task)}
