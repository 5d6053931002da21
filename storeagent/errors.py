"""
Error taxonomy for the storefront agent.

Every failure the orchestrator can observe is expressed as a subclass
of `StoreAgentError`. The agent loop decides how each family is handled:
provider errors trigger the single fallback, dispatch errors are folded
back into the conversation as tool results, and store errors abort the
request.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional


class StoreAgentError(Exception):
    """Base class for all orchestrator errors."""


# --------------------------------------------------------------------------------------
# Provider errors
# --------------------------------------------------------------------------------------


class ProviderError(StoreAgentError):
    """Raised when a provider cannot complete a request."""

    def __init__(self, message: str, provider: Optional[str] = None) -> None:
        super().__init__(message)
        self.provider = provider


class ProviderUnavailable(ProviderError):
    """Network, authentication, rate-limit or timeout failure."""


class ProviderProtocolError(ProviderError):
    """The provider answered with a payload that cannot be interpreted."""


# --------------------------------------------------------------------------------------
# Capability errors
# --------------------------------------------------------------------------------------


class DispatchError(StoreAgentError):
    """Base class for capability dispatch failures."""


class UnknownCapability(DispatchError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown capability '{name}'.")
        self.name = name


class CapabilityExecutionError(DispatchError):
    """A registered capability raised while executing."""

    def __init__(self, name: str, cause: BaseException) -> None:
        super().__init__(f"Capability '{name}' failed: {cause}")
        self.name = name
        self.cause = cause


class FulfillmentError(StoreAgentError):
    """The print-on-demand integration rejected a request."""


# --------------------------------------------------------------------------------------
# Store, timeout and loop errors
# --------------------------------------------------------------------------------------


class StoreUnavailable(StoreAgentError):
    """The backing persistence could not be reached."""


class RequestTimeout(StoreAgentError):
    def __init__(self, operation: str, seconds: float) -> None:
        super().__init__(f"{operation} timed out after {seconds:g} seconds.")
        self.operation = operation
        self.seconds = seconds


class LoopBudgetExceeded(StoreAgentError):
    """
    The provider kept requesting tools past the round budget.

    Never shown to the user: the agent loop catches it and finalizes the
    request with `partial_text`.
    """

    def __init__(
        self,
        rounds: int,
        partial_text: str,
        function_calls: List[Dict[str, Any]],
    ) -> None:
        super().__init__(f"Tool-calling budget of {rounds} rounds exhausted.")
        self.rounds = rounds
        self.partial_text = partial_text
        self.function_calls = function_calls
