from __future__ import annotations

from decimal import Decimal

from fastapi import APIRouter, HTTPException, Body
from pydantic import BaseModel, Field

from ..domain.entities import Project
from ..errors import NotFoundError
from ..logs import OperationLogContext
from ..services.project_svc import ProjectAggregationService, merge_project_details

router = APIRouter()


class ProjectCreate(BaseModel):
    project_name: str = Field(min_length=1)
    estimated_hours: Decimal | None = Field(default=None, ge=0)
    actual_hours: Decimal | None = Field(default=None, ge=0)
    difficulty: int | None = Field(default=None, ge=1, le=5)
    notes: str | None = None


class ProjectUpdate(BaseModel):
    project_id: int
    project_name: str | None = Field(default=None, min_length=1)
    estimated_hours: Decimal | None = Field(default=None, ge=0)
    actual_hours: Decimal | None = Field(default=None, ge=0)
    difficulty: int | None = Field(default=None, ge=1, le=5)
    notes: str | None = None


def _service() -> ProjectAggregationService:
    return ProjectAggregationService()


@router.get("/api/project/list")
def api_project_list():
    try:
        return {"items": [p.to_dict() for p in _service().fetch_all_projects()]}
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/api/project/{project_id}")
def api_project_get(project_id: int):
    try:
        p = _service().fetch_project_by_id(project_id)
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))
    if p is None:
        raise HTTPException(status_code=404, detail=f"Project with ID={project_id} does not exist.")
    return p.to_dict(include_children=False)


def _http_error(e: Exception) -> HTTPException:
    if isinstance(e, NotFoundError):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, ValueError):
        return HTTPException(status_code=400, detail=str(e))
    return HTTPException(status_code=500, detail=str(e))


@router.post("/api/project/create", status_code=201)
def api_project_create(body: ProjectCreate):
    try:
        with OperationLogContext("CREATE_PROJECT") as log:
            log.set_payload(body.model_dump(mode="json"))
            saved = _service().add_project(Project(project_id=None, **body.model_dump()), log)
    except Exception as e:
        raise _http_error(e)
    return {"message": "ok", "project_id": saved.project_id}


@router.post("/api/project/update")
def api_project_update(body: ProjectUpdate):
    """Fields left out of the body keep their stored value."""
    svc = _service()
    try:
        with OperationLogContext("UPDATE_PROJECT").for_project(body.project_id) as log:
            log.set_payload(body.model_dump(mode="json"))
            current = svc.fetch_project_by_id(body.project_id)
            if current is None:
                raise NotFoundError(body.project_id)
            updated = merge_project_details(current, **body.model_dump(exclude={"project_id"}))
            svc.update_project_details(updated, log)
    except Exception as e:
        raise _http_error(e)
    return {"message": "ok", "project": updated.to_dict(include_children=False)}


@router.post("/api/project/delete")
def api_project_delete(project_id: int = Body(..., embed=True)):
    try:
        with OperationLogContext("DELETE_PROJECT").for_project(project_id) as log:
            log.set_payload({"project_id": project_id})
            _service().delete_project(project_id, log)
    except Exception as e:
        raise _http_error(e)
    return {"message": "ok"}
