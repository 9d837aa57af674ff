import os
import sys
import sqlite3
import pytest
from pathlib import Path

# Ensure project root on sys.path
_THIS_DIR = Path(__file__).resolve().parent
_PROJECT_ROOT = _THIS_DIR.parent.parent
if str(_PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(_PROJECT_ROOT))


@pytest.fixture(scope="session")
def tmp_db_path(tmp_path_factory):
    path = tmp_path_factory.mktemp("db") / "projects_test.db"
    # Point the package at this temp DB
    os.environ["PROJECTS_DB_PATH"] = str(path)
    schema = Path(_PROJECT_ROOT / "schema.sql").read_text(encoding="utf-8")
    conn = sqlite3.connect(str(path))
    try:
        conn.executescript(schema)
        conn.commit()
    finally:
        conn.close()
    from projects.logs import ensure_log_schema
    ensure_log_schema()
    return str(path)


@pytest.fixture()
def client(tmp_db_path):
    from projects.api import app
    from fastapi.testclient import TestClient
    return TestClient(app)


@pytest.fixture()
def repo(tmp_db_path):
    from projects.repository import ProjectRepository
    return ProjectRepository()


@pytest.fixture()
def svc(repo):
    from projects.services.project_svc import ProjectAggregationService
    return ProjectAggregationService(repo)


@pytest.fixture(autouse=True)
def _clean_db(tmp_db_path):
    # Safety: only ever wipe the temp DB
    assert os.environ.get("PROJECTS_DB_PATH") == tmp_db_path, "Refusing to clean non-temp DB"
    tables = [
        "project_category",
        "material",
        "step",
        "category",
        "project",
        "operation_log",
    ]
    conn = sqlite3.connect(tmp_db_path)
    try:
        for t in tables:
            conn.execute(f"DELETE FROM {t}")
        conn.commit()
    finally:
        conn.close()
    yield
