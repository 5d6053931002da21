"""
Narrow read/write record interface over the storefront tables.

The catalog and order services only ever see rows as plain dicts; the
table and column names they may touch are fixed here.
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

from storeagent.store.database import Database
from storeagent.store.models import utc_now

COLUMNS: Dict[str, tuple] = {
    "products": (
        "name",
        "description",
        "price",
        "image_url",
        "sku",
        "printful_product_id",
        "is_adult",
    ),
    "orders": (
        "customer_name",
        "customer_email",
        "items",
        "total",
        "status",
        "shipping_address",
    ),
}

JSON_COLUMNS = {"items"}


class RecordStore:
    def __init__(self, database: Database) -> None:
        self.database = database

    def list(self, table: str) -> List[Dict[str, Any]]:
        self._check_table(table)
        with self.database.connect() as conn:
            rows = conn.execute(f"SELECT * FROM {table} ORDER BY id DESC").fetchall()
        return [self._decode(dict(r)) for r in rows]

    def get(self, table: str, record_id: Any) -> Optional[Dict[str, Any]]:
        self._check_table(table)
        with self.database.connect() as conn:
            row = conn.execute(f"SELECT * FROM {table} WHERE id = ?", (record_id,)).fetchone()
        return self._decode(dict(row)) if row else None

    def insert(self, table: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        values = self._encode(table, fields)
        values["created_at"] = utc_now()
        names = ", ".join(values)
        marks = ", ".join("?" for _ in values)
        with self.database.connect() as conn:
            cursor = conn.execute(
                f"INSERT INTO {table} ({names}) VALUES ({marks})",
                tuple(values.values()),
            )
            row = conn.execute(
                f"SELECT * FROM {table} WHERE id = ?", (cursor.lastrowid,)
            ).fetchone()
        return self._decode(dict(row))

    def update(self, table: str, record_id: Any, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Update a row and return it, or None if no row has that id."""
        values = self._encode(table, fields)
        if not values:
            return self.get(table, record_id)
        assignments = ", ".join(f"{name} = ?" for name in values)
        with self.database.connect() as conn:
            cursor = conn.execute(
                f"UPDATE {table} SET {assignments} WHERE id = ?",
                tuple(values.values()) + (record_id,),
            )
            if cursor.rowcount == 0:
                return None
            row = conn.execute(f"SELECT * FROM {table} WHERE id = ?", (record_id,)).fetchone()
        return self._decode(dict(row))

    # -------------------------------------------------------------- helpers

    @staticmethod
    def _check_table(table: str) -> None:
        if table not in COLUMNS:
            raise ValueError(f"Unknown record table: {table!r}")

    def _encode(self, table: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        self._check_table(table)
        allowed = COLUMNS[table]
        unknown = set(fields) - set(allowed)
        if unknown:
            raise ValueError(f"Unknown columns for {table}: {', '.join(sorted(unknown))}")
        values: Dict[str, Any] = {}
        for name in allowed:
            if name not in fields:
                continue
            value = fields[name]
            values[name] = json.dumps(value) if name in JSON_COLUMNS else value
        return values

    @staticmethod
    def _decode(row: Dict[str, Any]) -> Dict[str, Any]:
        for name in JSON_COLUMNS:
            if name in row and isinstance(row[name], str):
                row[name] = json.loads(row[name])
        if "is_adult" in row:
            row["is_adult"] = bool(row["is_adult"])
        return row
