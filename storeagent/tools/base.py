"""
Base classes for store capabilities.

Capabilities are the actions the model may request through function
calling. Each capability declares a JSON-Schema parameter object,
performs its action against an external collaborator, and returns a
JSON-serializable result. Capabilities are registered once at startup
in a `CapabilityRegistry`, which dispatches calls by name and writes
an audit record before every execution.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Protocol

from storeagent.errors import CapabilityExecutionError, RequestTimeout, UnknownCapability
from storeagent.store.models import ToolInvocation

logger = logging.getLogger(__name__)


class CapabilityName(str, Enum):
    GET_PRODUCTS = "get_products"
    CREATE_PRODUCT = "create_product"
    GENERATE_DESIGN = "generate_design"
    GET_ORDERS = "get_orders"
    UPDATE_ORDER_STATUS = "update_order_status"
    SEARCH_WEB = "search_web"
    EXECUTE_WORKFLOW = "execute_workflow"


@dataclass(frozen=True)
class CapabilitySpec:
    """Provider-neutral tool declaration handed to the model adapters."""

    name: str
    description: str
    parameters: Dict[str, Any]


def object_schema(
    properties: Optional[Dict[str, Dict[str, Any]]] = None,
    required: Optional[List[str]] = None,
) -> Dict[str, Any]:
    return {
        "type": "object",
        "properties": properties or {},
        "required": required or [],
    }


@dataclass
class Capability:
    """
    Represents an action the agent can invoke.

    Subclasses set the name, description and parameter schema, and
    implement `run`. Failures are signalled by raising; the registry
    wraps them in `CapabilityExecutionError`.
    """

    name: CapabilityName
    description: str
    parameters: Dict[str, Any] = field(default_factory=object_schema)

    @property
    def spec(self) -> CapabilitySpec:
        return CapabilitySpec(
            name=self.name.value,
            description=self.description,
            parameters=self.parameters,
        )

    def run(self, arguments: Dict[str, Any], session_id: str) -> Any:
        raise NotImplementedError

    def check_required(self, arguments: Dict[str, Any]) -> None:
        missing = [
            key
            for key in self.parameters.get("required", [])
            if arguments.get(key) in (None, "")
        ]
        if missing:
            raise ValueError(f"Missing required argument(s): {', '.join(missing)}.")


class AuditLog(Protocol):
    def append_tool_invocation(self, record: ToolInvocation) -> ToolInvocation:
        ...


class CapabilityRegistry:
    """
    Registers capabilities by name and dispatches model tool calls.

    The mapping is frozen after startup, so it is read concurrently
    without locking. Every `dispatch` writes its `ToolInvocation` audit
    record synchronously before resolving or executing the capability;
    a store failure during that write propagates unchanged.
    """

    def __init__(self, audit_log: AuditLog, timeout: float = 30.0, max_workers: int = 8) -> None:
        self.audit_log = audit_log
        self.timeout = timeout
        self._capabilities: Dict[CapabilityName, Capability] = {}
        self._frozen = False
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="capability"
        )

    def register_tool(self, capability: Capability) -> None:
        if self._frozen:
            raise RuntimeError("Capabilities cannot be registered after startup.")
        self._capabilities[capability.name] = capability

    def freeze(self) -> None:
        self._frozen = True

    def get_tool(self, name: str) -> Optional[Capability]:
        try:
            key = CapabilityName(name)
        except ValueError:
            return None
        return self._capabilities.get(key)

    def list_tools(self) -> List[Capability]:
        return list(self._capabilities.values())

    def specs(self) -> List[CapabilitySpec]:
        return [c.spec for c in self._capabilities.values()]

    def dispatch(self, name: str, arguments: Dict[str, Any], session_id: str) -> Any:
        """
        Execute the capability called `name` and return its result.

        Raises:
            StoreUnavailable: The audit record could not be written.
            UnknownCapability: No capability is registered under `name`.
            CapabilityExecutionError: The capability raised or timed out.
        """
        arguments = dict(arguments or {})
        self.audit_log.append_tool_invocation(
            ToolInvocation(session_id=session_id, tool_name=name, arguments=arguments)
        )

        capability = self.get_tool(name)
        if capability is None:
            raise UnknownCapability(name)

        logger.info("Executing capability %s for session %s", name, session_id)
        future = self._executor.submit(self._run, capability, arguments, session_id)
        try:
            return future.result(timeout=self.timeout)
        except FutureTimeout as exc:
            future.cancel()
            timeout = RequestTimeout(f"Capability '{name}'", self.timeout)
            raise CapabilityExecutionError(name, timeout) from exc
        except Exception as exc:  # noqa: BLE001
            raise CapabilityExecutionError(name, exc) from exc

    @staticmethod
    def _run(capability: Capability, arguments: Dict[str, Any], session_id: str) -> Any:
        capability.check_required(arguments)
        return capability.run(arguments, session_id)

    def shutdown(self) -> None:
        self._executor.shutdown(wait=False)
