# projects/services/seed_svc.py
from __future__ import annotations

import os
from decimal import Decimal, InvalidOperation

import pandas as pd

from ..db import get_conn
from ..logs import OperationLogContext
from ..repository.project_repo import transaction

SEED_DIR = os.path.join(os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))), "seeds")


def _read_csv(path: str | None) -> pd.DataFrame:
    if not path or not os.path.exists(path):
        return pd.DataFrame()
    # everything as text: hours/cost must never pass through float
    return pd.read_csv(path, dtype=str, keep_default_na=False)


def _opt(v) -> str | None:
    s = str(v).strip()
    return s or None


def _opt_int(v) -> int | None:
    s = _opt(v)
    return None if s is None else int(s)


def _opt_dec(v) -> str | None:
    s = _opt(v)
    if s is None:
        return None
    try:
        return str(Decimal(s))
    except InvalidOperation:
        raise ValueError(f"invalid decimal in seed data: {s!r}") from None


def seed_load(
    categories_csv: str | None = None,
    projects_csv: str | None = None,
    materials_csv: str | None = None,
    steps_csv: str | None = None,
    log: OperationLogContext | None = None,
) -> dict:
    """Load seed CSVs in one transaction. Expected columns:
       categories.csv: category_name
       projects.csv:   project_name, estimated_hours, actual_hours, difficulty, notes, categories (';'-separated)
       materials.csv:  project_name, material_name, num_required, cost
       steps.csv:      project_name, step_order, step_text
       Rows already present (project by name, material by project+name,
       step by project+order) are skipped; unknown categories referenced by
       a project are created.
    """
    cat_df = _read_csv(categories_csv)
    prj_df = _read_csv(projects_csv)
    mat_df = _read_csv(materials_csv)
    stp_df = _read_csv(steps_csv)

    created = {"category": 0, "project": 0, "material": 0, "step": 0}

    with get_conn() as conn:
        with transaction(conn):
            def category_id(name: str) -> int:
                row = conn.execute("SELECT category_id FROM category WHERE category_name=?", (name,)).fetchone()
                if row:
                    return row["category_id"]
                cur = conn.execute("INSERT INTO category(category_name) VALUES(?)", (name,))
                created["category"] += 1
                return int(cur.lastrowid)

            for _, r in cat_df.iterrows():
                name = _opt(r["category_name"])
                if name:
                    category_id(name)

            project_ids: dict[str, int] = {}
            for _, r in prj_df.iterrows():
                name = _opt(r["project_name"])
                if not name:
                    continue
                row = conn.execute("SELECT project_id FROM project WHERE project_name=?", (name,)).fetchone()
                if row:
                    pid = row["project_id"]
                else:
                    cur = conn.execute(
                        "INSERT INTO project(project_name, estimated_hours, actual_hours, difficulty, notes) "
                        "VALUES(?,?,?,?,?)",
                        (name, _opt_dec(r.get("estimated_hours", "")), _opt_dec(r.get("actual_hours", "")),
                         _opt_int(r.get("difficulty", "")), _opt(r.get("notes", ""))),
                    )
                    pid = int(cur.lastrowid)
                    created["project"] += 1
                project_ids[name] = pid
                for cat in str(r.get("categories", "")).split(";"):
                    cat = cat.strip()
                    if cat:
                        conn.execute(
                            "INSERT OR IGNORE INTO project_category(project_id, category_id) VALUES(?,?)",
                            (pid, category_id(cat)),
                        )

            def project_id(name: str) -> int:
                if name not in project_ids:
                    row = conn.execute("SELECT project_id FROM project WHERE project_name=?", (name,)).fetchone()
                    if row is None:
                        raise ValueError(f"seed row references unknown project: {name!r}")
                    project_ids[name] = row["project_id"]
                return project_ids[name]

            for _, r in mat_df.iterrows():
                pid = project_id(str(r["project_name"]).strip())
                name = str(r["material_name"]).strip()
                if conn.execute(
                    "SELECT 1 FROM material WHERE project_id=? AND material_name=?", (pid, name)
                ).fetchone():
                    continue
                conn.execute(
                    "INSERT INTO material(project_id, material_name, num_required, cost) VALUES(?,?,?,?)",
                    (pid, name, _opt_int(r.get("num_required", "")), _opt_dec(r.get("cost", ""))),
                )
                created["material"] += 1

            for _, r in stp_df.iterrows():
                pid = project_id(str(r["project_name"]).strip())
                order = int(str(r["step_order"]).strip())
                if conn.execute(
                    "SELECT 1 FROM step WHERE project_id=? AND step_order=?", (pid, order)
                ).fetchone():
                    continue
                conn.execute(
                    "INSERT INTO step(project_id, step_text, step_order) VALUES(?,?,?)",
                    (pid, str(r["step_text"]).strip(), order),
                )
                created["step"] += 1

    if log is not None:
        log.set_after(created)
    return created


def seed_default(log: OperationLogContext | None = None) -> dict:
    return seed_load(
        os.path.join(SEED_DIR, "categories.csv"),
        os.path.join(SEED_DIR, "projects.csv"),
        os.path.join(SEED_DIR, "materials.csv"),
        os.path.join(SEED_DIR, "steps.csv"),
        log=log,
    )
