"""Repository layer: DB access helpers (SQLite).

Keep SQL here so services and the menu/API never build statements themselves.
"""
from __future__ import annotations

from .project_repo import ProjectRepository

__all__ = ["ProjectRepository"]
