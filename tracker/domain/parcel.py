from __future__ import annotations

import datetime as dt
from sqlite3 import Row

from pydantic import BaseModel

PARCEL_STATUS_REGISTERED = "registered"
PARCEL_STATUS_SENT = "sent"
PARCEL_STATUS_DELIVERED = "delivered"


def now_rfc3339() -> str:
    """Current UTC time as RFC3339 with second precision, e.g. 2024-01-15T08:30:00Z."""
    return dt.datetime.now(dt.timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


class Parcel(BaseModel):
    # 0 until the store assigns one
    number: int = 0
    client: int
    address: str
    status: str
    created_at: str

    @classmethod
    def from_row(cls, row: Row) -> "Parcel":
        return cls(
            number=row["number"],
            client=row["client"],
            address=row["address"],
            status=row["status"],
            created_at=row["created_at"],
        )

    def is_registered(self) -> bool:
        return self.status == PARCEL_STATUS_REGISTERED


def new_parcel(
    client: int,
    address: str,
    status: str = PARCEL_STATUS_REGISTERED,
    created_at: str | None = None,
) -> Parcel:
    """Unsaved parcel stamped with the current time unless created_at is given."""
    return Parcel(client=client, address=address, status=status, created_at=created_at or now_rfc3339())
