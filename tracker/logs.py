"""Audit trail for parcel operations, stored in the operation_log table."""
from __future__ import annotations

import datetime as dt
import json
import logging
import time
import uuid
from typing import Any, Optional

from .db import get_conn

logger = logging.getLogger(__name__)

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


def ensure_log_schema():
    with get_conn() as conn:
        conn.executescript(DDL)


def _dumps(obj: Any) -> str | None:
    return json.dumps(obj, ensure_ascii=False) if obj is not None else None


class OperationLogContext:
    """
    One audited operation. Services fill in entity/before/after,
    the caller decides the outcome and calls write() or write_error().
    """

    def __init__(self, action: str, user: str = "owner"):
        self.action = action
        self.user = user
        self.request_id = str(uuid.uuid4())
        self.start = time.perf_counter()
        self.before = None
        self.after = None
        self.payload = None
        self.entity_type = None
        self.entity_id = None

    def set_entity(self, etype: str, eid: int | str):
        self.entity_type = etype
        self.entity_id = str(eid)

    def set_before(self, obj): self.before = obj
    def set_after(self, obj): self.after = obj
    def set_payload(self, obj): self.payload = obj

    def write(self, result: str = "OK", err: Optional[str] = None):
        rec = {
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
        with get_conn() as conn:
            conn.execute(
                """INSERT INTO operation_log
                (ts,user,action,entity_type,entity_id,request_id,before_json,after_json,payload_json,result,err_msg,latency_ms)
                VALUES(:ts,:user,:action,:entity_type,:entity_id,:request_id,:before_json,:after_json,:payload_json,:result,:err_msg,:latency_ms)""",
                rec,
            )
        logger.debug(f"{self.action} {self.entity_type}:{self.entity_id} -> {result}")

    def write_error(self, exc: BaseException):
        self.write("ERROR", f"{type(exc).__name__}: {exc}")


def list_entity_logs(entity_type: str, entity_id: int | str) -> list[dict]:
    """Oldest-first history of one entity."""
    with get_conn() as conn:
        rows = conn.execute(
            "SELECT * FROM operation_log WHERE entity_type=? AND entity_id=? ORDER BY id ASC",
            (entity_type, str(entity_id)),
        ).fetchall()
        return [dict(r) for r in rows]
