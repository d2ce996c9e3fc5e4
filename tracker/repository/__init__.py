"""Repository layer: DB access for parcels (SQLite).

Keep SQL here so services only deal with Parcel objects and errors.
"""
from __future__ import annotations
