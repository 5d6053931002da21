"""
Order collaborator: order listing and status updates.
"""

from __future__ import annotations

from typing import Any, Dict, List

from storeagent.store.records import RecordStore

ORDER_STATUSES = ("Pending", "In Progress", "Shipped", "Delivered", "Cancelled")


class OrderService:
    def __init__(self, records: RecordStore) -> None:
        self.records = records

    def list_orders(self) -> List[Dict[str, Any]]:
        return self.records.list("orders")

    def update_status(self, order_id: Any, status: str) -> Dict[str, Any]:
        """
        Set the status of an order and return the updated record.

        Raises:
            ValueError: If the status is not a known order status.
            LookupError: If no order has the given id.
        """
        if status not in ORDER_STATUSES:
            raise ValueError(
                f"Unknown order status {status!r}; expected one of: {', '.join(ORDER_STATUSES)}."
            )
        order = self.records.update("orders", order_id, {"status": status})
        if order is None:
            raise LookupError(f"Order '{order_id}' not found.")
        return order
