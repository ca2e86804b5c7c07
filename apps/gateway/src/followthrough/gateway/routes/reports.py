"""报表路由

GET /api/scorecard: 团队可靠度积分榜
GET /api/projects/health: 项目健康度汇总
"""

from fastapi import APIRouter, Depends

from ..deps import get_viewer, get_workflow_service

router = APIRouter()


@router.get("/api/scorecard")
async def scorecard(viewer=Depends(get_viewer), service=Depends(get_workflow_service)):
    scores = await service.scorecard(viewer)
    return {"scores": [s.model_dump(mode="json") for s in scores]}


@router.get("/api/projects/health")
async def project_health(service=Depends(get_workflow_service)):
    summaries = await service.project_health()
    return {"projects": [s.model_dump(mode="json") for s in summaries]}
