"""
Workflow automation capability.
"""

from __future__ import annotations

from typing import Any, Dict

from storeagent.services.rube import WorkflowClient
from storeagent.tools.base import Capability, CapabilityName, object_schema


class ExecuteWorkflowTool(Capability):
    def __init__(self, client: WorkflowClient) -> None:
        super().__init__(
            name=CapabilityName.EXECUTE_WORKFLOW,
            description="Execute a Rube.app workflow for automation",
            parameters=object_schema(
                {
                    "workflow_name": {"type": "string", "description": "Name of the workflow"},
                    "data": {"type": "object", "description": "Data to pass to workflow"},
                },
                required=["workflow_name"],
            ),
        )
        self.client = client

    def run(self, arguments: Dict[str, Any], session_id: str) -> Any:
        result = self.client.execute(str(arguments["workflow_name"]), arguments.get("data") or {})
        # The client reports its own failures as {"success": False, ...}.
        if isinstance(result, dict) and result.get("success") is False:
            return result
        return {"success": True, "result": result}
