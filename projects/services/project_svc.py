from __future__ import annotations

import logging
from dataclasses import replace
from decimal import Decimal
from typing import Optional

from ..domain.entities import Project
from ..errors import NotFoundError
from ..logs import OperationLogContext
from ..repository import ProjectRepository

logger = logging.getLogger(__name__)

_UNSET = object()


def _check_hours(label: str, value) -> Optional[Decimal]:
    if value is None:
        return None
    if isinstance(value, bool) or isinstance(value, float):
        raise ValueError(f"{label} must be a decimal, not {type(value).__name__}")
    if isinstance(value, int):
        value = Decimal(value)
    if not isinstance(value, Decimal) or not value.is_finite():
        raise ValueError(f"{label} must be a finite decimal")
    if value < 0:
        raise ValueError(f"{label} must not be negative")
    return value


def validate_project(project: Project) -> Project:
    """
    Check the scalar fields before they reach storage.
    Returns the record with int hours normalised to Decimal.
    """
    name = (project.project_name or "").strip()
    if not name:
        raise ValueError("project_name must not be empty")
    est = _check_hours("estimated_hours", project.estimated_hours)
    act = _check_hours("actual_hours", project.actual_hours)
    d = project.difficulty
    if d is not None and (isinstance(d, bool) or not isinstance(d, int) or not 1 <= d <= 5):
        raise ValueError("difficulty must be an integer between 1 and 5")
    return replace(project, project_name=name, estimated_hours=est, actual_hours=act)


def merge_project_details(
    current: Project,
    *,
    project_name=_UNSET,
    estimated_hours=_UNSET,
    actual_hours=_UNSET,
    difficulty=_UNSET,
    notes=_UNSET,
) -> Project:
    """
    Build the full replacement record for an update.

    Any argument that is omitted or None keeps the value from `current`;
    the repository update always writes every column.
    """
    def pick(new, old):
        return old if new is _UNSET or new is None else new

    return Project(
        project_id=current.project_id,
        project_name=pick(project_name, current.project_name),
        estimated_hours=pick(estimated_hours, current.estimated_hours),
        actual_hours=pick(actual_hours, current.actual_hours),
        difficulty=pick(difficulty, current.difficulty),
        notes=pick(notes, current.notes),
    )


class ProjectAggregationService:
    """
    Façade used by the menu and the HTTP routes.

    Storage and mapping errors pass through untouched; a repository "no row
    matched" on update/delete becomes NotFoundError.
    """

    def __init__(self, repo: ProjectRepository | None = None):
        self.repo = repo or ProjectRepository()

    def add_project(self, project: Project, log: OperationLogContext | None = None) -> Project:
        project = validate_project(project)
        saved = self.repo.insert(project)
        logger.info("added project_id=%s", saved.project_id)
        if log is not None:
            log.for_project(saved.project_id)
            log.set_after(saved.to_dict(include_children=False))
        return saved

    def fetch_all_projects(self) -> list[Project]:
        return self.repo.fetch_all()

    def fetch_project_by_id(self, project_id: int) -> Optional[Project]:
        return self.repo.fetch_by_id(project_id)

    def update_project_details(self, project: Project, log: OperationLogContext | None = None) -> None:
        project = validate_project(project)
        before = None
        if log is not None:
            log.for_project(project.project_id)
            before = self.repo.fetch_by_id(project.project_id)
        if not self.repo.update(project):
            raise NotFoundError(project.project_id)
        logger.info("updated project_id=%s", project.project_id)
        if log is not None:
            log.set_before(before.to_dict(include_children=False) if before else None)
            log.set_after(project.to_dict(include_children=False))

    def delete_project(self, project_id: int, log: OperationLogContext | None = None) -> None:
        before = None
        if log is not None:
            log.for_project(project_id)
            before = self.repo.fetch_by_id(project_id)
        if not self.repo.delete(project_id):
            raise NotFoundError(project_id)
        logger.info("deleted project_id=%s", project_id)
        if log is not None:
            log.set_before(before.to_dict(include_children=False) if before else None)
