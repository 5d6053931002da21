"""
Order capabilities: listing orders and updating their status.
"""

from __future__ import annotations

from typing import Any, Dict

from storeagent.services.orders import ORDER_STATUSES, OrderService
from storeagent.tools.base import Capability, CapabilityName, object_schema


class GetOrdersTool(Capability):
    def __init__(self, orders: OrderService) -> None:
        super().__init__(
            name=CapabilityName.GET_ORDERS,
            description="Fetch all orders from the database",
        )
        self.orders = orders

    def run(self, arguments: Dict[str, Any], session_id: str) -> Any:
        return {"orders": self.orders.list_orders()}


class UpdateOrderStatusTool(Capability):
    def __init__(self, orders: OrderService) -> None:
        super().__init__(
            name=CapabilityName.UPDATE_ORDER_STATUS,
            description="Update the status of an order",
            parameters=object_schema(
                {
                    "order_id": {"type": "string", "description": "Order ID"},
                    "status": {
                        "type": "string",
                        "description": "New status",
                        "enum": list(ORDER_STATUSES),
                    },
                },
                required=["order_id", "status"],
            ),
        )
        self.orders = orders

    def run(self, arguments: Dict[str, Any], session_id: str) -> Any:
        order = self.orders.update_status(arguments["order_id"], str(arguments["status"]))
        return {"success": True, "order": order}
