"""Row -> record mapping.

Rows are `sqlite3.Row` (or any mapping keyed by column name). Every
conversion failure surfaces as MappingError naming the column.
"""
from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Optional, Type, TypeVar

from ..domain.entities import Category, Material, Project, Step
from ..errors import MappingError

T = TypeVar("T")


def _col(row: Any, name: str) -> Any:
    try:
        return row[name]
    except (IndexError, KeyError):
        raise MappingError(f"column '{name}' missing from result row", column=name) from None


def _int(row: Any, name: str) -> Optional[int]:
    v = _col(row, name)
    if v is None:
        return None
    if isinstance(v, bool) or not isinstance(v, int):
        raise MappingError(f"column '{name}' expected integer, got {type(v).__name__}", column=name)
    return v


def _required_int(row: Any, name: str) -> int:
    v = _int(row, name)
    if v is None:
        raise MappingError(f"column '{name}' is NULL", column=name)
    return v


def _str(row: Any, name: str) -> Optional[str]:
    v = _col(row, name)
    if v is None:
        return None
    if not isinstance(v, str):
        raise MappingError(f"column '{name}' expected text, got {type(v).__name__}", column=name)
    return v


def _required_str(row: Any, name: str) -> str:
    v = _str(row, name)
    if v is None:
        raise MappingError(f"column '{name}' is NULL", column=name)
    return v


def _decimal(row: Any, name: str) -> Optional[Decimal]:
    v = _col(row, name)
    if v is None:
        return None
    if isinstance(v, Decimal):
        return v
    if isinstance(v, bool):
        raise MappingError(f"column '{name}' expected decimal, got bool", column=name)
    if isinstance(v, (int, float, str)):
        # floats only show up for rows written outside this package; str()
        # gives the shortest repr so 12.75 stays 12.75
        try:
            d = Decimal(str(v).strip())
        except InvalidOperation:
            raise MappingError(f"column '{name}' holds non-decimal value {v!r}", column=name) from None
        if not d.is_finite():
            raise MappingError(f"column '{name}' holds non-finite value {v!r}", column=name)
        return d
    raise MappingError(f"column '{name}' expected decimal, got {type(v).__name__}", column=name)


def map_project(row: Any) -> Project:
    return Project(
        project_id=_required_int(row, "project_id"),
        project_name=_required_str(row, "project_name"),
        estimated_hours=_decimal(row, "estimated_hours"),
        actual_hours=_decimal(row, "actual_hours"),
        difficulty=_int(row, "difficulty"),
        notes=_str(row, "notes"),
    )


def map_material(row: Any) -> Material:
    return Material(
        material_id=_required_int(row, "material_id"),
        project_id=_int(row, "project_id"),
        material_name=_required_str(row, "material_name"),
        num_required=_int(row, "num_required"),
        cost=_decimal(row, "cost"),
    )


def map_step(row: Any) -> Step:
    return Step(
        step_id=_required_int(row, "step_id"),
        project_id=_int(row, "project_id"),
        step_text=_required_str(row, "step_text"),
        step_order=_required_int(row, "step_order"),
    )


def map_category(row: Any) -> Category:
    return Category(
        category_id=_required_int(row, "category_id"),
        category_name=_required_str(row, "category_name"),
    )


_MAPPERS: dict[type, Callable[[Any], Any]] = {
    Project: map_project,
    Material: map_material,
    Step: map_step,
    Category: map_category,
}


def extract(row: Any, cls: Type[T]) -> T:
    """Map one row into a record of type `cls`."""
    fn = _MAPPERS.get(cls)
    if fn is None:
        raise MappingError(f"no row mapping registered for {cls.__name__}")
    return fn(row)
