"""Row-derived records for projects and their child collections."""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Any, Optional


def _dec_str(value: Optional[Decimal]) -> Optional[str]:
    return None if value is None else str(value)


@dataclass
class Material:
    material_id: Optional[int]
    project_id: Optional[int]
    material_name: str
    num_required: Optional[int] = None
    cost: Optional[Decimal] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "material_id": self.material_id,
            "project_id": self.project_id,
            "material_name": self.material_name,
            "num_required": self.num_required,
            "cost": _dec_str(self.cost),
        }


@dataclass
class Step:
    step_id: Optional[int]
    project_id: Optional[int]
    step_text: str
    step_order: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "step_id": self.step_id,
            "project_id": self.project_id,
            "step_text": self.step_text,
            "step_order": self.step_order,
        }


@dataclass
class Category:
    category_id: Optional[int]
    category_name: str

    def to_dict(self) -> dict[str, Any]:
        return {"category_id": self.category_id, "category_name": self.category_name}


@dataclass
class Project:
    """
    A project row plus its child collections.

    `project_id` is None until the project has been inserted. Child lists are
    filled once, when the aggregate is loaded; nothing is loaded lazily.
    """
    project_id: Optional[int]
    project_name: str
    estimated_hours: Optional[Decimal] = None
    actual_hours: Optional[Decimal] = None
    difficulty: Optional[int] = None
    notes: Optional[str] = None
    materials: list[Material] = field(default_factory=list)
    steps: list[Step] = field(default_factory=list)
    categories: list[Category] = field(default_factory=list)

    def with_id(self, project_id: int) -> "Project":
        return replace(
            self,
            project_id=project_id,
            materials=list(self.materials),
            steps=list(self.steps),
            categories=list(self.categories),
        )

    def scalars(self) -> dict[str, Any]:
        """Scalar columns only, in the shape stored in the project table."""
        return {
            "project_id": self.project_id,
            "project_name": self.project_name,
            "estimated_hours": self.estimated_hours,
            "actual_hours": self.actual_hours,
            "difficulty": self.difficulty,
            "notes": self.notes,
        }

    def to_dict(self, include_children: bool = True) -> dict[str, Any]:
        out = self.scalars()
        out["estimated_hours"] = _dec_str(self.estimated_hours)
        out["actual_hours"] = _dec_str(self.actual_hours)
        if include_children:
            out["materials"] = [m.to_dict() for m in self.materials]
            out["steps"] = [s.to_dict() for s in self.steps]
            out["categories"] = [c.to_dict() for c in self.categories]
        return out
