"""任务路由

POST  /api/tasks: 创建任务
GET   /api/tasks: 可见任务列表，支持 status 筛选
GET   /api/tasks/{task_id}: 任务详情，含备注与活动事件
PATCH /api/tasks/{task_id}: 更新描述 / 阻塞说明 / 下一步
POST  /api/tasks/{task_id}/notes: 添加备注 + 时钟决策
POST  /api/tasks/{task_id}/clock: 重启时钟
POST  /api/tasks/{task_id}/status: 状态流转
"""

from typing import Literal

from fastapi import APIRouter, Depends, Query
from followthrough.core.exceptions import FollowthroughError
from followthrough.core.models import ClockDecision, Gate, Task
from pydantic import BaseModel, Field
from starlette.responses import JSONResponse

from ..deps import get_store_group, get_viewer, get_workflow_service
from ..errors import error_response

router = APIRouter()


class CreateTaskRequest(BaseModel):
    """创建任务请求体"""

    description: str = Field(description="任务描述")
    owner_ids: list[str] = Field(default_factory=list, description="负责人 owner_id 列表")
    fu_cadence_days: int | None = Field(default=None, description="跟进节奏（天），缺省使用默认值")
    gates: list[Gate] = Field(default_factory=list)
    project_id: str | None = None
    task_number: str | None = None
    blocker_description: str | None = None
    next_step: str | None = None


class UpdateTaskRequest(BaseModel):
    """更新任务请求体 -- 只更新显式提供的字段"""

    description: str | None = None
    blocker_description: str | None = None
    next_step: str | None = None


class NoteRequest(BaseModel):
    content: str = Field(description="备注正文")
    clock: ClockDecision = Field(default_factory=ClockDecision.skip, description="重启时钟决策")


class StatusRequest(BaseModel):
    """状态流转请求体"""

    action: Literal["request_close", "deny_close", "close", "reopen"]
    complete_gates: bool = Field(default=False, description="关闭时一并完成全部 Gate")


def task_payload(task: Task) -> dict:
    """序列化任务（含备注）"""
    return task.model_dump(mode="json")


@router.post("/api/tasks")
async def create_task(
    body: CreateTaskRequest,
    viewer=Depends(get_viewer),
    service=Depends(get_workflow_service),
):
    try:
        task = await service.create_task(
            description=body.description,
            owner_ids=body.owner_ids,
            fu_cadence_days=body.fu_cadence_days,
            gates=body.gates,
            project_id=body.project_id,
            task_number=body.task_number,
            blocker_description=body.blocker_description,
            next_step=body.next_step,
            actor_id=viewer.owner_id,
        )
    except FollowthroughError as e:
        return error_response(e)
    return JSONResponse(status_code=201, content={"task": task_payload(task)})


@router.get("/api/tasks")
async def list_tasks(
    status: str | None = Query(default=None, description="按状态筛选"),
    viewer=Depends(get_viewer),
    store_group=Depends(get_store_group),
):
    """可见任务列表：管理员看全部，普通用户只看自己负责的任务"""
    if not viewer.is_admin and viewer.owner_id is None:
        return {"tasks": []}
    tasks = await store_group.task_store.list_tasks(
        status=status,
        owner_id=None if viewer.is_admin else viewer.owner_id,
    )
    return {"tasks": [task_payload(t) for t in tasks]}


@router.get("/api/tasks/{task_id}")
async def get_task_detail(task_id: str, service=Depends(get_workflow_service)):
    """任务详情，包含备注和活动事件"""
    try:
        task, events = await service.task_detail(task_id)
    except FollowthroughError as e:
        return error_response(e)

    return {
        "task": task_payload(task),
        "events": [
            {
                "event_id": e.event_id,
                "task_seq": e.task_seq,
                "ts": e.ts.isoformat(),
                "type": e.type.value,
                "actor_id": e.actor_id,
                "payload": e.payload,
            }
            for e in events
        ],
    }


@router.patch("/api/tasks/{task_id}")
async def update_task(
    task_id: str,
    body: UpdateTaskRequest,
    viewer=Depends(get_viewer),
    service=Depends(get_workflow_service),
):
    try:
        task = await service.update_details(
            task_id, body.model_dump(exclude_unset=True), actor_id=viewer.owner_id
        )
    except FollowthroughError as e:
        return error_response(e)
    return {"task": task_payload(task)}


@router.post("/api/tasks/{task_id}/notes")
async def add_note(
    task_id: str,
    body: NoteRequest,
    viewer=Depends(get_viewer),
    service=Depends(get_workflow_service),
):
    """添加备注；clock.mode 为 confirm / pick_date 时推进时钟"""
    try:
        task = await service.add_note(task_id, body.content, body.clock, author_id=viewer.owner_id)
    except FollowthroughError as e:
        return error_response(e)
    return JSONResponse(status_code=201, content={"task": task_payload(task)})


@router.post("/api/tasks/{task_id}/clock")
async def restart_clock(
    task_id: str,
    body: ClockDecision,
    viewer=Depends(get_viewer),
    service=Depends(get_workflow_service),
):
    try:
        task = await service.restart_clock(task_id, body, actor_id=viewer.owner_id)
    except FollowthroughError as e:
        return error_response(e)
    return {"task": task_payload(task)}


@router.post("/api/tasks/{task_id}/status")
async def change_status(
    task_id: str,
    body: StatusRequest,
    viewer=Depends(get_viewer),
    service=Depends(get_workflow_service),
):
    """状态流转：request_close / deny_close / close / reopen"""
    try:
        if body.action == "request_close":
            task = await service.request_close(task_id, actor_id=viewer.owner_id)
        elif body.action == "deny_close":
            task = await service.deny_close(task_id, actor_id=viewer.owner_id)
        elif body.action == "close":
            task = await service.close(
                task_id, complete_gates=body.complete_gates, actor_id=viewer.owner_id
            )
        else:
            task = await service.reopen(task_id, actor_id=viewer.owner_id)
    except FollowthroughError as e:
        return error_response(e)
    return {"task": task_payload(task)}
