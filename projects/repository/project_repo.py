from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from decimal import Decimal
from sqlite3 import Connection
from typing import Callable, ContextManager, Iterator, Optional

from ..db import get_conn
from ..domain.entities import Category, Material, Project, Step
from ..errors import StorageError
from .mapper import extract

logger = logging.getLogger(__name__)

ConnectionProvider = Callable[[], ContextManager[Connection]]


def _dec_param(value: Optional[Decimal]) -> Optional[str]:
    return None if value is None else str(value)


# ---------------- SQL helpers (take an open connection) ----------------

def insert_project(conn: Connection, project: Project) -> int:
    cur = conn.execute(
        "INSERT INTO project(project_name, estimated_hours, actual_hours, difficulty, notes) "
        "VALUES(?,?,?,?,?)",
        (
            project.project_name,
            _dec_param(project.estimated_hours),
            _dec_param(project.actual_hours),
            project.difficulty,
            project.notes,
        ),
    )
    return int(cur.lastrowid)


def select_all_projects(conn: Connection):
    return conn.execute("SELECT * FROM project ORDER BY project_name").fetchall()


def select_project(conn: Connection, project_id: int):
    return conn.execute("SELECT * FROM project WHERE project_id = ?", (project_id,)).fetchone()


def list_materials_for(conn: Connection, project_id: int) -> list[Material]:
    rows = conn.execute(
        "SELECT m.* FROM material m "
        "JOIN project p ON p.project_id = m.project_id "
        "WHERE m.project_id = ? ORDER BY m.material_id",
        (project_id,),
    ).fetchall()
    return [extract(r, Material) for r in rows]


def list_steps_for(conn: Connection, project_id: int) -> list[Step]:
    rows = conn.execute(
        "SELECT s.* FROM step s "
        "JOIN project p ON p.project_id = s.project_id "
        "WHERE s.project_id = ? ORDER BY s.step_order, s.step_id",
        (project_id,),
    ).fetchall()
    return [extract(r, Step) for r in rows]


def list_categories_for(conn: Connection, project_id: int) -> list[Category]:
    rows = conn.execute(
        "SELECT c.* FROM category c "
        "JOIN project_category pc USING (category_id) "
        "WHERE pc.project_id = ? ORDER BY c.category_name",
        (project_id,),
    ).fetchall()
    return [extract(r, Category) for r in rows]


def update_project(conn: Connection, project: Project) -> int:
    cur = conn.execute(
        "UPDATE project SET project_name=?, estimated_hours=?, actual_hours=?, difficulty=?, notes=? "
        "WHERE project_id=?",
        (
            project.project_name,
            _dec_param(project.estimated_hours),
            _dec_param(project.actual_hours),
            project.difficulty,
            project.notes,
            project.project_id,
        ),
    )
    return cur.rowcount


def delete_project(conn: Connection, project_id: int) -> int:
    cur = conn.execute("DELETE FROM project WHERE project_id=?", (project_id,))
    return cur.rowcount


@contextmanager
def transaction(conn: Connection) -> Iterator[Connection]:
    """BEGIN ... COMMIT on the given autocommit connection; ROLLBACK on any error."""
    conn.execute("BEGIN")
    try:
        yield conn
        conn.commit()
    except BaseException:
        if conn.in_transaction:
            conn.rollback()
        raise


def _single_row(affected: int, what: str, project_id: Optional[int]) -> bool:
    if affected > 1:
        # project_id is the primary key; more than one hit means the schema is broken
        raise StorageError(f"{what} of project_id={project_id} affected {affected} rows")
    return affected == 1


# ---------------- Repository ----------------

class ProjectRepository:
    """
    Loads project aggregates and applies transactional mutations.

    Every operation acquires one connection from `conn_provider`, uses it for
    all of its statements, and releases it before returning. sqlite3 errors
    are re-raised once as StorageError; MappingError passes through as is.
    """

    def __init__(self, conn_provider: ConnectionProvider | None = None):
        self._conn_provider = conn_provider or get_conn

    def insert(self, project: Project) -> Project:
        try:
            with self._conn_provider() as conn:
                with transaction(conn):
                    new_id = insert_project(conn, project)
        except sqlite3.Error as e:
            raise StorageError(f"insert project failed: {e}") from e
        logger.debug("inserted project_id=%s name=%r", new_id, project.project_name)
        return project.with_id(new_id)

    def fetch_all(self) -> list[Project]:
        """All projects ordered by name, each with materials, steps and categories."""
        try:
            with self._conn_provider() as conn:
                # one read transaction so every child query sees the same project set
                with transaction(conn):
                    projects = [extract(r, Project) for r in select_all_projects(conn)]
                    for p in projects:
                        p.materials.extend(list_materials_for(conn, p.project_id))
                        p.steps.extend(list_steps_for(conn, p.project_id))
                        p.categories.extend(list_categories_for(conn, p.project_id))
        except sqlite3.Error as e:
            raise StorageError(f"fetch all projects failed: {e}") from e
        logger.debug("fetched %d projects", len(projects))
        return projects

    def fetch_by_id(self, project_id: int) -> Optional[Project]:
        """Scalar columns only; child collections are left empty."""
        try:
            with self._conn_provider() as conn:
                row = select_project(conn, project_id)
        except sqlite3.Error as e:
            raise StorageError(f"fetch project_id={project_id} failed: {e}") from e
        return extract(row, Project) if row is not None else None

    def update(self, project: Project) -> bool:
        """Replace every mutable column of the row; False when the id does not exist."""
        try:
            with self._conn_provider() as conn:
                with transaction(conn):
                    ok = _single_row(update_project(conn, project), "update", project.project_id)
        except sqlite3.Error as e:
            raise StorageError(f"update project_id={project.project_id} failed: {e}") from e
        logger.debug("update project_id=%s matched=%s", project.project_id, ok)
        return ok

    def delete(self, project_id: int) -> bool:
        try:
            with self._conn_provider() as conn:
                with transaction(conn):
                    ok = _single_row(delete_project(conn, project_id), "delete", project_id)
        except sqlite3.Error as e:
            raise StorageError(f"delete project_id={project_id} failed: {e}") from e
        logger.debug("delete project_id=%s matched=%s", project_id, ok)
        return ok
