"""Audit trail for user-visible project actions (operation_log table)."""
from __future__ import annotations

import datetime as dt
import json
import logging
import sqlite3
import time
import uuid
from typing import Any, Dict, List, Optional, Tuple

from .db import get_conn
from .errors import StorageError

logger = logging.getLogger(__name__)

ENTITY_PROJECT = "PROJECT"

DDL = """
CREATE TABLE IF NOT EXISTS operation_log (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  ts TEXT NOT NULL,
  user TEXT NOT NULL,
  action TEXT NOT NULL,
  entity_type TEXT,
  entity_id TEXT,
  request_id TEXT,
  before_json TEXT,
  after_json TEXT,
  payload_json TEXT,
  result TEXT,
  err_msg TEXT,
  latency_ms INTEGER
);
CREATE INDEX IF NOT EXISTS idx_log_ts ON operation_log(ts);
CREATE INDEX IF NOT EXISTS idx_log_action ON operation_log(action);
CREATE INDEX IF NOT EXISTS idx_log_entity ON operation_log(entity_type, entity_id);
"""

# exact-match filters accepted by search_operation_logs
_EQ_FILTERS = ("action", "entity_type", "entity_id", "result")


def ensure_log_schema(db_path: str | None = None):
    with get_conn(db_path) as conn:
        conn.executescript(DDL)


def _dumps(obj) -> Optional[str]:
    if obj is None:
        return None
    return json.dumps(obj, ensure_ascii=False, default=str)


class OperationLogContext:
    """
    One audit row for one action.

    Used either by calling write() directly or as a context manager, which
    writes OK on a clean exit and ERROR (with the message) when the block
    raises; the exception is never suppressed.
    """

    def __init__(self, action: str, user: str = "owner", db_path: str | None = None):
        self.action = action
        self.user = user
        self.db_path = db_path
        self.request_id = str(uuid.uuid4())
        self.start = time.perf_counter()
        self.before = None
        self.after = None
        self.payload = None
        self.entity_type: Optional[str] = None
        self.entity_id: Optional[str] = None
        self.written = False

    def set_entity(self, etype: str, eid) -> None:
        self.entity_type = etype
        self.entity_id = None if eid is None else str(eid)

    def for_project(self, project_id: Optional[int]) -> "OperationLogContext":
        self.set_entity(ENTITY_PROJECT, project_id)
        return self

    def set_before(self, obj): self.before = obj
    def set_after(self, obj): self.after = obj
    def set_payload(self, obj): self.payload = obj

    def record(self, result: str, err: Optional[str]) -> Dict[str, Any]:
        return {
            "ts": dt.datetime.now(dt.timezone.utc).isoformat(),
            "user": self.user,
            "action": self.action,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "request_id": self.request_id,
            "before_json": _dumps(self.before),
            "after_json": _dumps(self.after),
            "payload_json": _dumps(self.payload),
            "result": result,
            "err_msg": err,
            "latency_ms": int((time.perf_counter() - self.start) * 1000),
        }

    def write(self, result: str = "OK", err: Optional[str] = None) -> None:
        rec = self.record(result, err)
        try:
            with get_conn(self.db_path) as conn:
                conn.execute(
                    "INSERT INTO operation_log(" + ",".join(rec) + ") VALUES(" + ",".join(":" + k for k in rec) + ")",
                    rec,
                )
        except sqlite3.Error as e:
            raise StorageError(f"audit write for {self.action} failed: {e}") from e
        self.written = True

    def __enter__(self) -> "OperationLogContext":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if self.written:
            return False
        if exc is None:
            self.write("OK")
            return False
        try:
            self.write("ERROR", str(exc))
        except StorageError as audit_err:
            # the action's own error is the one the caller must see
            logger.warning("%s", audit_err)
        return False


def search_operation_logs(
    q: str | None = None,
    action: str | None = None,
    ts_from: str | None = None,
    ts_to: str | None = None,
    page: int = 1,
    size: int = 20,
    *,
    entity_type: str | None = None,
    entity_id: str | None = None,
    result: str | None = None,
    oldest_first: bool = False,
) -> Tuple[int, List[Dict[str, Any]]]:
    filters = {"action": action, "entity_type": entity_type, "entity_id": entity_id, "result": result}
    where = [f"{col} = :{col}" for col in _EQ_FILTERS if filters.get(col)]
    params: Dict[str, Any] = {col: filters[col] for col in _EQ_FILTERS if filters.get(col)}
    if q:
        where.append("(payload_json LIKE :q OR before_json LIKE :q OR after_json LIKE :q)")
        params["q"] = f"%{q}%"
    if ts_from:
        where.append("ts >= :ts_from")
        params["ts_from"] = ts_from
    if ts_to:
        where.append("ts <= :ts_to")
        params["ts_to"] = ts_to
    wh = " WHERE " + " AND ".join(where) if where else ""
    order = "ASC" if oldest_first else "DESC"
    sql = f"SELECT * FROM operation_log{wh} ORDER BY ts {order}, id {order} LIMIT :limit OFFSET :offset"
    try:
        with get_conn() as conn:
            total = conn.execute(f"SELECT COUNT(1) AS cnt FROM operation_log{wh}", params).fetchone()["cnt"]
            rows = conn.execute(sql, {**params, "limit": size, "offset": (max(page, 1) - 1) * size}).fetchall()
    except sqlite3.Error as e:
        raise StorageError(f"audit search failed: {e}") from e
    return total, [dict(r) for r in rows]


def project_trail(project_id: int, limit: int = 100) -> List[Dict[str, Any]]:
    """Every audit row recorded against one project, oldest first."""
    _, rows = search_operation_logs(
        entity_type=ENTITY_PROJECT, entity_id=str(project_id), size=limit, oldest_first=True
    )
    return rows
