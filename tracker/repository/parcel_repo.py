from __future__ import annotations

import logging
import sqlite3
from sqlite3 import Connection

from ..domain.parcel import Parcel, PARCEL_STATUS_REGISTERED
from ..errors import InvalidTransition, ParcelNotFound, PersistenceError

logger = logging.getLogger(__name__)

_COLUMNS = "number, client, address, status, created_at"


def ensure_schema(conn: Connection):
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS parcel (
            number INTEGER PRIMARY KEY AUTOINCREMENT,
            client INTEGER NOT NULL,
            address TEXT NOT NULL,
            status TEXT NOT NULL,
            created_at TEXT NOT NULL
        )
        """
    )
    conn.execute("CREATE INDEX IF NOT EXISTS idx_parcel_client ON parcel(client)")


class ParcelStore:
    """
    Parcel persistence over an already-open connection.

    Address changes and deletion are single statements keyed on
    number AND status='registered'. Commit is left to the caller when the
    connection is not in autocommit mode.
    """

    def __init__(self, conn: Connection):
        self.conn = conn

    def _execute(self, operation: str, sql: str, params: tuple) -> sqlite3.Cursor:
        try:
            cur = self.conn.cursor()
            # column access by name whatever the connection's row_factory
            cur.row_factory = sqlite3.Row
            return cur.execute(sql, params)
        except sqlite3.Error as e:
            logger.error(f"parcel {operation} failed: {e}")
            raise PersistenceError(operation, str(e)) from e

    def add(self, parcel: Parcel) -> int:
        cur = self._execute(
            "add",
            "INSERT INTO parcel(client, status, address, created_at) VALUES(?,?,?,?)",
            (parcel.client, parcel.status, parcel.address, parcel.created_at),
        )
        if not cur.lastrowid:
            raise PersistenceError("add", "no row id returned")
        return int(cur.lastrowid)

    def get(self, number: int) -> Parcel:
        row = self._execute(
            "get", f"SELECT {_COLUMNS} FROM parcel WHERE number=?", (number,)
        ).fetchone()
        if row is None:
            raise ParcelNotFound(number)
        return Parcel.from_row(row)

    def get_by_client(self, client: int) -> list[Parcel]:
        rows = self._execute(
            "get_by_client",
            f"SELECT {_COLUMNS} FROM parcel WHERE client=? ORDER BY number",
            (client,),
        ).fetchall()
        return [Parcel.from_row(r) for r in rows]

    def set_status(self, number: int, status: str) -> None:
        # missing number: zero rows, no error
        self._execute("set_status", "UPDATE parcel SET status=? WHERE number=?", (status, number))

    def set_status_checked(self, number: int, status: str) -> None:
        cur = self._execute("set_status", "UPDATE parcel SET status=? WHERE number=?", (status, number))
        if cur.rowcount == 0:
            raise ParcelNotFound(number)

    def set_address(self, number: int, address: str) -> None:
        self._guarded(
            number,
            "set_address",
            "UPDATE parcel SET address=? WHERE number=? AND status=?",
            (address, number, PARCEL_STATUS_REGISTERED),
        )

    def delete(self, number: int) -> None:
        self._guarded(
            number,
            "delete",
            "DELETE FROM parcel WHERE number=? AND status=?",
            (number, PARCEL_STATUS_REGISTERED),
        )

    def _guarded(self, number: int, operation: str, sql: str, params: tuple):
        # The status read only explains a statement that touched nothing; it never gates a write.
        # Seeing 'registered' there means the status flipped back in between: run the statement once more.
        for _ in range(2):
            if self._execute(operation, sql, params).rowcount:
                return
            row = self._execute(operation, "SELECT status FROM parcel WHERE number=?", (number,)).fetchone()
            if row is None:
                raise ParcelNotFound(number)
            if row["status"] != PARCEL_STATUS_REGISTERED:
                raise InvalidTransition(number, row["status"], operation)
            logger.info(f"parcel {number} {operation}: status changed concurrently, retrying")
        raise InvalidTransition(number, row["status"], operation)
