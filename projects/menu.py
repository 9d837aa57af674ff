"""Interactive text menu over ProjectAggregationService.

The currently selected project is a plain value passed into and returned from
each action; nothing is kept in module or instance state.
"""
from __future__ import annotations

import logging
import sqlite3
from decimal import Decimal, InvalidOperation
from typing import Callable, Optional

from .domain.entities import Project
from .errors import ProjectsError
from .logs import OperationLogContext
from .services.project_svc import ProjectAggregationService, merge_project_details

logger = logging.getLogger(__name__)

OPERATIONS = [
    "1) Add a project",
    "2) List projects",
    "3) Select a project",
    "4) Update project details",
    "5) Delete a project",
]


class ConsoleUI:
    """Prompts for primitive values; a blank answer always comes back as None."""

    def __init__(self, input_fn: Callable[[str], str] = input, output_fn: Callable[[str], None] = print):
        self._input = input_fn
        self._output = output_fn

    def show(self, text: str = "") -> None:
        self._output(text)

    def get_string(self, prompt: str) -> Optional[str]:
        s = self._input(f"{prompt}: ").strip()
        return s or None

    def get_int(self, prompt: str) -> Optional[int]:
        while True:
            s = self.get_string(prompt)
            if s is None:
                return None
            try:
                return int(s)
            except ValueError:
                self.show("Invalid input. Please enter a valid integer.")

    def get_decimal(self, prompt: str) -> Optional[Decimal]:
        while True:
            s = self.get_string(prompt)
            if s is None:
                return None
            try:
                d = Decimal(s)
            except InvalidOperation:
                d = None
            if d is not None and d.is_finite():
                return d
            self.show("Invalid input. Please enter a valid decimal number.")


def describe(project: Project) -> list[str]:
    lines = [
        f"Project ID: {project.project_id}",
        f"Project Name: {project.project_name}",
        f"Estimated Hours: {project.estimated_hours}",
        f"Actual Hours: {project.actual_hours}",
        f"Difficulty: {project.difficulty}",
        f"Notes: {project.notes}",
    ]
    if project.materials:
        lines.append("Materials:")
        lines += [f"  {m.material_name} x{m.num_required} @ {m.cost}" for m in project.materials]
    if project.steps:
        lines.append("Steps:")
        lines += [f"  {s.step_order}. {s.step_text}" for s in project.steps]
    if project.categories:
        lines.append("Categories: " + ", ".join(c.category_name for c in project.categories))
    return lines


def create_project(svc: ProjectAggregationService, ui: ConsoleUI, selected: Optional[Project]) -> Optional[Project]:
    project = Project(
        project_id=None,
        project_name=ui.get_string("Enter the project name") or "",
        estimated_hours=ui.get_decimal("Enter the estimated hours"),
        actual_hours=ui.get_decimal("Enter the actual hours"),
        difficulty=ui.get_int("Enter the project difficulty (1-5)"),
        notes=ui.get_string("Enter the project notes"),
    )
    with OperationLogContext("CREATE_PROJECT", user="console") as log:
        saved = svc.add_project(project, log)
    ui.show(f"You have successfully created project: {saved.project_id}: {saved.project_name}")
    return selected


def list_projects(svc: ProjectAggregationService, ui: ConsoleUI, selected: Optional[Project]) -> Optional[Project]:
    ui.show("\nProjects:")
    for p in svc.fetch_all_projects():
        ui.show(f"  {p.project_id}: {p.project_name}")
    return selected


def select_project(svc: ProjectAggregationService, ui: ConsoleUI, selected: Optional[Project]) -> Optional[Project]:
    projects = svc.fetch_all_projects()
    ui.show("\nAvailable Projects:")
    for p in projects:
        ui.show(f"  {p.project_id}: {p.project_name}")
    project_id = ui.get_int("Enter the ID of the project you want to select")
    match = next((p for p in projects if p.project_id == project_id), None)
    if match is None:
        ui.show("Invalid project ID. Please try again.")
        return selected
    ui.show("You have selected project:")
    for line in describe(match):
        ui.show(line)
    return match


def update_project_details(svc: ProjectAggregationService, ui: ConsoleUI, selected: Optional[Project]) -> Optional[Project]:
    if selected is None:
        ui.show("\nPlease select a project.")
        return selected

    ui.show("\nCurrent project details:")
    for line in describe(selected):
        ui.show(line)

    keep = "(or leave blank to keep current value)"
    updated = merge_project_details(
        selected,
        project_name=ui.get_string(f"\nEnter the new project name {keep}"),
        estimated_hours=ui.get_decimal(f"Enter the new estimated hours {keep}"),
        actual_hours=ui.get_decimal(f"Enter the new actual hours {keep}"),
        difficulty=ui.get_int(f"Enter the new project difficulty (1-5, {keep[1:]}"),
        notes=ui.get_string(f"Enter the new project notes {keep}"),
    )
    with OperationLogContext("UPDATE_PROJECT", user="console") as log:
        svc.update_project_details(updated, log)

    # reload through the aggregate path so materials, steps and categories stay attached
    refreshed = next((p for p in svc.fetch_all_projects() if p.project_id == updated.project_id), None)
    ui.show("\nProject details updated successfully:")
    if refreshed is not None:
        for line in describe(refreshed):
            ui.show(line)
    return refreshed


def delete_project(svc: ProjectAggregationService, ui: ConsoleUI, selected: Optional[Project]) -> Optional[Project]:
    list_projects(svc, ui, selected)
    project_id = ui.get_int("\nEnter the ID of the project you want to delete")
    if project_id is None:
        return selected
    with OperationLogContext("DELETE_PROJECT", user="console") as log:
        svc.delete_project(project_id, log)
    ui.show(f"\nProject with ID={project_id} has been deleted.")
    if selected is not None and selected.project_id == project_id:
        return None
    return selected


ACTIONS = {
    1: create_project,
    2: list_projects,
    3: select_project,
    4: update_project_details,
    5: delete_project,
}


def run_menu(svc: ProjectAggregationService | None = None, ui: ConsoleUI | None = None) -> None:
    """Loop until the user enters a blank line or -1."""
    svc = svc or ProjectAggregationService()
    ui = ui or ConsoleUI()
    selected: Optional[Project] = None

    while True:
        ui.show("\nSelect an operation (enter the number, blank to exit):")
        for op in OPERATIONS:
            ui.show(op)
        if selected is not None:
            ui.show(f"Selected project: {selected.project_id}: {selected.project_name}")
        raw = ui.get_string("Selection")
        if raw is None or raw == "-1":
            ui.show("\nExiting the application...")
            return
        try:
            selection = int(raw)
        except ValueError:
            ui.show(f"\n{raw} is not a valid selection. Try again.")
            continue
        action = ACTIONS.get(selection)
        if action is None:
            ui.show(f"\n{selection} is not a valid selection. Try again.")
            continue
        try:
            selected = action(svc, ui, selected)
        except (ProjectsError, ValueError, sqlite3.Error) as e:
            logger.warning("menu action %s failed: %s", selection, e)
            ui.show(f"\nError: {e} Try again.")
