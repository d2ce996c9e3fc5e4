# tracker/services/parcel_svc.py
from __future__ import annotations

import logging

from ..db import get_conn
from ..domain.parcel import new_parcel
from ..errors import ParcelNotFound
from ..logs import OperationLogContext, list_entity_logs
from ..repository.parcel_repo import ParcelStore, ensure_schema

logger = logging.getLogger(__name__)


def ensure_parcel_schema():
    with get_conn() as conn:
        ensure_schema(conn)


def register_parcel(client: int, address: str, log: OperationLogContext) -> dict:
    """Store a new parcel in status 'registered' and return it as a dict."""
    parcel = new_parcel(client, address)
    log.set_payload({"client": client, "address": address})
    with get_conn() as conn:
        store = ParcelStore(conn)
        number = store.add(parcel)
        after = store.get(number).model_dump()
    log.set_entity("PARCEL", number)
    log.set_after(after)
    logger.info(f"registered parcel {number} for client {client}")
    return after


def get_parcel(number: int) -> dict:
    with get_conn() as conn:
        return ParcelStore(conn).get(number).model_dump()


def list_client_parcels(client: int) -> list[dict]:
    with get_conn() as conn:
        return [p.model_dump() for p in ParcelStore(conn).get_by_client(client)]


def change_status(number: int, status: str, log: OperationLogContext, *, require_existing: bool = False) -> dict | None:
    """
    Overwrite the status with no transition rules.
    Unknown number: no-op returning None, or ParcelNotFound when require_existing.
    """
    log.set_entity("PARCEL", number)
    log.set_payload({"status": status})
    with get_conn() as conn:
        store = ParcelStore(conn)
        before = _snapshot(store, number)
        if require_existing:
            store.set_status_checked(number, status)
        else:
            store.set_status(number, status)
        after = _snapshot(store, number)
    log.set_before(before)
    log.set_after(after)
    if after is None:
        logger.warning(f"status change for unknown parcel {number} ignored")
    return after


def change_address(number: int, address: str, log: OperationLogContext) -> dict:
    log.set_entity("PARCEL", number)
    log.set_payload({"address": address})
    with get_conn() as conn:
        store = ParcelStore(conn)
        before = _snapshot(store, number)
        store.set_address(number, address)
        after = store.get(number).model_dump()
    log.set_before(before)
    log.set_after(after)
    return after


def delete_parcel(number: int, log: OperationLogContext) -> None:
    log.set_entity("PARCEL", number)
    with get_conn() as conn:
        store = ParcelStore(conn)
        before = _snapshot(store, number)
        store.delete(number)
    log.set_before(before)
    logger.info(f"deleted parcel {number}")


def parcel_history(number: int) -> list[dict]:
    """Audit records written for the parcel, oldest first."""
    return list_entity_logs("PARCEL", number)


def _snapshot(store: ParcelStore, number: int) -> dict | None:
    try:
        return store.get(number).model_dump()
    except ParcelNotFound:
        return None
