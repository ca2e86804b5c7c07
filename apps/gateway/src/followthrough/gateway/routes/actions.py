"""行动清单路由

GET  /api/actions/daily: 每日行动清单（按逾期天数倒序）
POST /api/actions/focus: 专注批次（请求体携带本次会话已处理的任务）
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from ..deps import get_viewer, get_workflow_service

router = APIRouter()


class FocusRequest(BaseModel):
    """专注批次请求体"""

    handled_task_ids: list[str] = Field(
        default_factory=list,
        description="本次专注会话中已处理或已跳过的任务",
    )


@router.get("/api/actions/daily")
async def daily_actions(viewer=Depends(get_viewer), service=Depends(get_workflow_service)):
    """空列表即 "all caught up" """
    items = await service.daily_actions(viewer)
    return {
        "items": [i.model_dump(mode="json") for i in items],
        "all_caught_up": not items,
    }


@router.post("/api/actions/focus")
async def focus_batch(
    body: FocusRequest | None = None,
    viewer=Depends(get_viewer),
    service=Depends(get_workflow_service),
):
    handled = body.handled_task_ids if body else []
    batch = await service.focus_batch(viewer, handled)
    return {
        "batch": [i.model_dump(mode="json") for i in batch],
        "all_caught_up": not batch,
    }
