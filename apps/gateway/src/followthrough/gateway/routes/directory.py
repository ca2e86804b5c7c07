"""联系人与项目路由

POST /api/owners: 创建联系人（employee / vendor / personal）
GET  /api/owners: 联系人列表（私有联系人仅对所属账号可见）
POST /api/projects: 创建或更新项目
"""

from fastapi import APIRouter, Depends
from followthrough.core.exceptions import FollowthroughError
from followthrough.core.models import ContactDetails, Project
from pydantic import BaseModel
from starlette.responses import JSONResponse
from ulid import ULID

from ..deps import get_viewer, get_workflow_service
from ..errors import error_response

router = APIRouter()


class CreateOwnerRequest(BaseModel):
    owner_id: str | None = None
    contact: ContactDetails


@router.post("/api/owners")
async def create_owner(body: CreateOwnerRequest, service=Depends(get_workflow_service)):
    owner = body.contact.to_owner(body.owner_id or str(ULID()))
    try:
        await service.save_owners([owner])
    except FollowthroughError as e:
        return error_response(e)
    return JSONResponse(status_code=201, content={"owner": owner.model_dump(mode="json")})


@router.get("/api/owners")
async def list_owners(viewer=Depends(get_viewer), service=Depends(get_workflow_service)):
    owners = await service.list_owners(viewer)
    return {"owners": [o.model_dump(mode="json") for o in owners]}


@router.post("/api/projects")
async def save_project(body: Project, service=Depends(get_workflow_service)):
    try:
        await service.save_projects([body])
    except FollowthroughError as e:
        return error_response(e)
    return JSONResponse(status_code=201, content={"project": body.model_dump(mode="json")})
