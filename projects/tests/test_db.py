from __future__ import annotations

import os

from projects import db


def test_env_path_wins(monkeypatch, tmp_path):
    target = tmp_path / "sub" / "x.db"
    monkeypatch.setenv("PROJECTS_DB_PATH", str(target))
    assert db.get_db_path() == str(target)
    assert os.path.isdir(tmp_path / "sub")


def test_test_path_used_under_pytest(monkeypatch, tmp_path):
    monkeypatch.delenv("PROJECTS_DB_PATH")
    monkeypatch.setattr(db, "read_config", lambda path=None: {"db_path": "prod.db", "test_db_path": str(tmp_path / "t.db")})
    assert db.get_db_path() == str(tmp_path / "t.db")

    monkeypatch.delenv("PYTEST_CURRENT_TEST")
    monkeypatch.delenv("APP_ENV", raising=False)
    assert db.get_db_path() == os.path.join(db._PROJECT_ROOT, "prod.db")


def test_read_config_filters_keys(tmp_path):
    cfg = tmp_path / "config.yaml"
    cfg.write_text("db_path: ' a.db '\nlog_level: DEBUG\nother: 1\ntest_db_path: 5\n", encoding="utf-8")
    assert db.read_config(str(cfg)) == {"db_path": "a.db", "log_level": "DEBUG"}
    assert db.read_config(str(tmp_path / "missing.yaml")) == {}

    bad = tmp_path / "bad.yaml"
    bad.write_text("db_path: [unclosed\n", encoding="utf-8")
    assert db.read_config(str(bad)) == {}


def test_get_conn_enables_foreign_keys(tmp_db_path):
    with db.get_conn() as conn:
        assert conn.execute("PRAGMA foreign_keys").fetchone()[0] == 1
        assert conn.isolation_level is None
