"""
Catalog collaborator: product listing and creation.
"""

from __future__ import annotations

from typing import Any, Dict, List

from storeagent.store.records import RecordStore


class CatalogService:
    def __init__(self, records: RecordStore) -> None:
        self.records = records

    def list_products(self) -> List[Dict[str, Any]]:
        return self.records.list("products")

    def create_product(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        if not fields.get("name"):
            raise ValueError("Product 'name' is required.")
        if fields.get("price") is None:
            raise ValueError("Product 'price' is required.")
        data = dict(fields)
        data["price"] = float(data["price"])
        data.setdefault("description", "")
        return self.records.insert("products", data)
