"""
Base types and registry for model provider adapters.

An adapter wraps one backend's chat and function-calling protocol
behind a uniform interface: `send_turn` starts an exchange and
`continue_with_tool_results` feeds tool results back, both returning
either final text or a list of requested tool calls. Whatever the
backend needs to continue an exchange (an accumulated message array, a
server-side response handle) travels in the returned
`ToolCallsRequested.thread`, never on the adapter instance, so one
adapter serves any number of concurrent requests.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Union

from storeagent.errors import ProviderError, ProviderProtocolError, ProviderUnavailable
from storeagent.store.models import ASSISTANT, Turn
from storeagent.tools.base import CapabilitySpec


@dataclass
class ConversationContext:
    """System prompt plus the replayed turn log of a session."""

    system_prompt: str
    turns: List[Turn] = field(default_factory=list)

    def history_messages(self) -> List[Dict[str, Any]]:
        """Turns as plain `{"role", "content"}` chat messages."""
        return [
            {"role": "assistant" if t.role == ASSISTANT else "user", "content": t.text}
            for t in self.turns
        ]


@dataclass
class ToolCall:
    call_id: str
    name: str
    arguments: Dict[str, Any]


@dataclass
class FinalText:
    """The model answered without requesting tools."""

    text: str
    raw: Any = None


@dataclass
class ToolCallsRequested:
    """
    The model requested one or more tool calls.

    `text` holds any prose the model sent alongside the calls; `thread`
    is the adapter-specific continuation consumed by
    `continue_with_tool_results`.
    """

    calls: List[ToolCall]
    text: str = ""
    thread: Any = None
    raw: Any = None


AdapterResponse = Union[FinalText, ToolCallsRequested]


@dataclass
class ModelInfo:
    """
    ModelInfo stores metadata about the model an adapter talks to.
    """

    name: str
    supports_tools: bool = True
    max_tokens: int = 2048

    @classmethod
    def from_config(cls, cfg: Any, default_name: str, supports_tools: bool = True) -> "ModelInfo":
        if isinstance(cfg, str):
            return cls(name=cfg, supports_tools=supports_tools)
        cfg = cfg or {}
        return cls(
            name=cfg.get("name", default_name),
            supports_tools=bool(cfg.get("supports_tools", supports_tools)),
            max_tokens=int(cfg.get("max_tokens", 2048)),
        )


def encode_result(result: Any) -> str:
    """Serialize a capability result for the provider."""
    return json.dumps(result, default=str)


def decode_arguments(raw: Any, tool_name: str, provider: str) -> Dict[str, Any]:
    """
    Parse the arguments of a tool call into a dict.

    Raises:
        ProviderProtocolError: The payload is not a JSON object.
    """
    if raw is None or raw == "":
        return {}
    if isinstance(raw, dict):
        return raw
    try:
        parsed = json.loads(raw)
    except (TypeError, ValueError) as exc:
        raise ProviderProtocolError(
            f"Unparseable arguments for tool '{tool_name}': {exc}", provider=provider
        ) from exc
    if not isinstance(parsed, dict):
        raise ProviderProtocolError(
            f"Arguments for tool '{tool_name}' must be a JSON object.", provider=provider
        )
    return parsed


class ProviderAdapter:
    """
    Abstract base class for all provider adapters.

    Adapters must implement `send_turn` and `continue_with_tool_results`.
    A classmethod `from_config` constructs adapter instances from
    configuration dictionaries. SDK clients are created lazily, once,
    from the API key named by `api_key_env`.
    """

    default_label = "LLM"

    def __init__(
        self,
        name: str,
        model: ModelInfo,
        api_key_env: str,
        label: Optional[str] = None,
        timeout: float = 60.0,
        max_retries: int = 0,
        client: Any = None,
    ) -> None:
        self.name = name
        self.model = model
        self.api_key_env = api_key_env
        self.label = label or f"{self.default_label} {model.name}"
        self.timeout = timeout
        self.max_retries = max_retries
        self._client = client

    @property
    def supports_tools(self) -> bool:
        return self.model.supports_tools

    def _api_key(self) -> str:
        api_key = os.getenv(self.api_key_env)
        if not api_key:
            raise ProviderUnavailable(
                f"Environment variable '{self.api_key_env}' is not set for provider '{self.name}'.",
                provider=self.name,
            )
        return api_key

    def send_turn(
        self,
        context: ConversationContext,
        message: str,
        tools: Sequence[CapabilitySpec],
    ) -> AdapterResponse:
        raise NotImplementedError

    def continue_with_tool_results(
        self,
        previous: ToolCallsRequested,
        results: Dict[str, Any],
    ) -> AdapterResponse:
        raise NotImplementedError

    @classmethod
    def from_config(cls, name: str, cfg: Dict[str, Any]) -> "ProviderAdapter":
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, model={self.model.name!r})"


class ProviderRegistry:
    """
    ProviderRegistry keeps track of the configured adapters by name.
    """

    def __init__(self) -> None:
        self.providers: Dict[str, ProviderAdapter] = {}

    def register_provider(self, provider: ProviderAdapter) -> None:
        self.providers[provider.name] = provider

    def get(self, name: Optional[str]) -> Optional[ProviderAdapter]:
        if name is None:
            return None
        return self.providers.get(name)

    def resolve(self, name: str) -> ProviderAdapter:
        provider = self.providers.get(name)
        if provider is None:
            raise ProviderError(f"Provider '{name}' not registered.", provider=name)
        return provider

    def names(self) -> List[str]:
        return list(self.providers)
