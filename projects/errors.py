from __future__ import annotations


class ProjectsError(Exception):
    """Base class for project data-access errors."""


class StorageError(ProjectsError):
    """A connectivity or query failure; fatal to the current operation."""


class MappingError(ProjectsError):
    """A result row could not be converted into the expected record."""

    def __init__(self, message: str, column: str | None = None):
        super().__init__(message)
        self.column = column


class NotFoundError(ProjectsError):
    """An update/delete targeted a project id that does not exist."""

    def __init__(self, project_id: int):
        super().__init__(f"Project with ID={project_id} does not exist.")
        self.project_id = project_id
