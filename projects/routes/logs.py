from __future__ import annotations

from fastapi import APIRouter, HTTPException, Query

from ..errors import ProjectsError
from ..logs import project_trail, search_operation_logs

router = APIRouter()


@router.get("/api/logs/search")
def api_logs_search(
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=500),
    action: str | None = None,
    query: str | None = None,
    ts_from: str | None = None,
    ts_to: str | None = None,
    entity_type: str | None = None,
    entity_id: str | None = None,
    result: str | None = Query(None, pattern=r"^(OK|ERROR)$"),
):
    total, items = search_operation_logs(
        query, action, ts_from, ts_to, page, size,
        entity_type=entity_type, entity_id=entity_id, result=result,
    )
    return {"total": total, "items": items}


@router.get("/api/project/{project_id}/history")
def api_project_history(project_id: int, limit: int = Query(100, ge=1, le=1000)):
    """Audit rows for one project, oldest first; also works after the project is deleted."""
    try:
        return {"project_id": project_id, "items": project_trail(project_id, limit)}
    except ProjectsError as e:
        raise HTTPException(status_code=500, detail=str(e))
