from __future__ import annotations

import json
from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from projects.db import get_conn
from projects.domain.entities import Project
from projects.errors import NotFoundError, StorageError
from projects.logs import OperationLogContext
from projects.services.project_svc import (
    ProjectAggregationService,
    merge_project_details,
    validate_project,
)


def _new(name="Deck build", est="40.5", act="0", difficulty=3, notes="outdoor"):
    return Project(None, name, Decimal(est), Decimal(act), difficulty, notes)


def test_deck_build_scenario(svc):
    saved = svc.add_project(_new())
    assert [p.project_name for p in svc.fetch_all_projects()] == ["Deck build"]

    current = svc.fetch_project_by_id(saved.project_id)
    svc.update_project_details(
        merge_project_details(current, project_name="Deck build v2", actual_hours=Decimal("38.25"))
    )
    got = svc.fetch_project_by_id(saved.project_id)
    assert got.project_name == "Deck build v2"
    assert got.actual_hours == Decimal("38.25")
    assert got.estimated_hours == Decimal("40.5")
    assert got.difficulty == 3
    assert got.notes == "outdoor"

    svc.delete_project(saved.project_id)
    assert svc.fetch_project_by_id(saved.project_id) is None
    with pytest.raises(NotFoundError) as ei:
        svc.delete_project(saved.project_id)
    assert ei.value.project_id == saved.project_id
    assert str(saved.project_id) in str(ei.value)


def test_update_missing_raises_not_found(svc):
    existing = svc.add_project(_new())
    with pytest.raises(NotFoundError):
        svc.update_project_details(Project(existing.project_id + 50, "x", Decimal("1"), Decimal("1"), 1, None))
    assert svc.fetch_project_by_id(existing.project_id).project_name == "Deck build"


def test_storage_errors_pass_through():
    repo = MagicMock()
    repo.update.side_effect = StorageError("disk I/O error")
    repo.delete.side_effect = StorageError("disk I/O error")
    svc = ProjectAggregationService(repo)
    with pytest.raises(StorageError):
        svc.update_project_details(Project(1, "x", None, None, None, None))
    with pytest.raises(StorageError):
        svc.delete_project(1)


def test_false_result_becomes_not_found():
    repo = MagicMock()
    repo.update.return_value = False
    repo.delete.return_value = False
    svc = ProjectAggregationService(repo)
    with pytest.raises(NotFoundError):
        svc.update_project_details(Project(5, "x", None, None, None, None))
    with pytest.raises(NotFoundError):
        svc.delete_project(5)
    repo.update.assert_called_once()
    repo.delete.assert_called_once_with(5)


@pytest.mark.parametrize(
    "project,msg",
    [
        (Project(None, "   ", None, None, None, None), "project_name"),
        (Project(None, "x", Decimal("-1"), None, None, None), "estimated_hours"),
        (Project(None, "x", None, Decimal("-0.01"), None, None), "actual_hours"),
        (Project(None, "x", 1.5, None, None, None), "estimated_hours"),
        (Project(None, "x", None, None, 0, None), "difficulty"),
        (Project(None, "x", None, None, 6, None), "difficulty"),
    ],
)
def test_validation_rejects(project, msg):
    with pytest.raises(ValueError, match=msg):
        validate_project(project)


def test_validation_normalises():
    p = validate_project(Project(None, "  Shed  ", 4, Decimal("2.50"), 5, None))
    assert p.project_name == "Shed"
    assert p.estimated_hours == Decimal("4")
    assert isinstance(p.estimated_hours, Decimal)


def test_invalid_project_never_reaches_repo():
    repo = MagicMock()
    svc = ProjectAggregationService(repo)
    with pytest.raises(ValueError):
        svc.add_project(Project(None, "", None, None, None, None))
    repo.insert.assert_not_called()


def test_merge_keeps_unset_and_none():
    cur = Project(9, "Old", Decimal("1.25"), Decimal("2"), 2, "keep")
    merged = merge_project_details(cur, estimated_hours=None, difficulty=4)
    assert merged.project_id == 9
    assert merged.project_name == "Old"
    assert merged.estimated_hours == Decimal("1.25")
    assert merged.actual_hours == Decimal("2")
    assert merged.difficulty == 4
    assert merged.notes == "keep"
    # current is not modified
    assert cur.difficulty == 2


def test_audit_context_is_filled(svc):
    log = OperationLogContext("CREATE_PROJECT")
    saved = svc.add_project(_new(), log)
    log.write("OK")
    assert log.entity_type == "PROJECT"
    assert log.entity_id == str(saved.project_id)

    log2 = OperationLogContext("UPDATE_PROJECT")
    svc.update_project_details(merge_project_details(saved, notes="covered"), log2)
    log2.write("OK")
    assert log2.before["notes"] == "outdoor"
    assert log2.after["notes"] == "covered"

    with get_conn() as conn:
        rows = conn.execute("SELECT action, after_json FROM operation_log ORDER BY id").fetchall()
    assert [r["action"] for r in rows] == ["CREATE_PROJECT", "UPDATE_PROJECT"]
    assert json.loads(rows[0]["after_json"])["estimated_hours"] == "40.5"
