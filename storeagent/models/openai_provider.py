"""
OpenAI provider implementation.

Wraps the OpenAI Chat Completions API using the official SDK. Chat
Completions is stateless on the server side: every round resends the
full accumulated message array, including the assistant's tool-call
message and one `tool` message per result. That array is the thread
carried between rounds.
"""

from typing import Any, Dict, List, Sequence

from openai import APITimeoutError, OpenAI, OpenAIError

from storeagent.errors import ProviderProtocolError, ProviderUnavailable, RequestTimeout
from storeagent.models.base import (
    AdapterResponse,
    ConversationContext,
    FinalText,
    ModelInfo,
    ProviderAdapter,
    ToolCall,
    ToolCallsRequested,
    decode_arguments,
    encode_result,
)
from storeagent.tools.base import CapabilitySpec


class OpenAIProvider(ProviderAdapter):
    """
    OpenAIProvider wraps the OpenAI Chat Completions API via the official SDK.
    """

    default_label = "OpenAI"
    default_api_key_env = "OPENAI_API_KEY"
    default_base_url = "https://api.openai.com/v1"
    default_model = "gpt-4o"
    default_supports_tools = True

    def __init__(self, name: str, model: ModelInfo, base_url: str, **kwargs: Any) -> None:
        kwargs.setdefault("api_key_env", self.default_api_key_env)
        super().__init__(name=name, model=model, **kwargs)
        self.base_url = base_url

    @classmethod
    def from_config(cls, name: str, cfg: Dict[str, Any]) -> "OpenAIProvider":
        return cls(
            name=name,
            model=ModelInfo.from_config(
                cfg.get("model"), cls.default_model, supports_tools=cls.default_supports_tools
            ),
            base_url=cfg.get("base_url", cls.default_base_url),
            api_key_env=cfg.get("api_key_env", cls.default_api_key_env),
            label=cfg.get("label"),
            timeout=float(cfg.get("timeout", 60.0)),
            max_retries=int(cfg.get("max_retries", 0)),
        )

    def _get_client(self) -> OpenAI:
        if self._client is None:
            self._client = OpenAI(
                api_key=self._api_key(),
                base_url=self.base_url,
                timeout=self.timeout,
                max_retries=self.max_retries,
            )
        return self._client

    @staticmethod
    def _tool_declarations(tools: Sequence[CapabilitySpec]) -> List[Dict[str, Any]]:
        return [
            {
                "type": "function",
                "function": {
                    "name": t.name,
                    "description": t.description,
                    "parameters": t.parameters,
                },
            }
            for t in tools
        ]

    def send_turn(
        self,
        context: ConversationContext,
        message: str,
        tools: Sequence[CapabilitySpec],
    ) -> AdapterResponse:
        messages: List[Dict[str, Any]] = [{"role": "system", "content": context.system_prompt}]
        messages.extend(context.history_messages())
        messages.append({"role": "user", "content": message})
        declared = self._tool_declarations(tools) if self.supports_tools else []
        return self._complete(messages, declared)

    def continue_with_tool_results(
        self,
        previous: ToolCallsRequested,
        results: Dict[str, Any],
    ) -> AdapterResponse:
        messages = list(previous.thread["messages"])
        for call in previous.calls:
            messages.append(
                {
                    "role": "tool",
                    "tool_call_id": call.call_id,
                    "content": encode_result(results.get(call.call_id)),
                }
            )
        return self._complete(messages, previous.thread["tools"])

    def _complete(
        self,
        messages: List[Dict[str, Any]],
        declared: List[Dict[str, Any]],
    ) -> AdapterResponse:
        client = self._get_client()
        kwargs: Dict[str, Any] = {
            "model": self.model.name,
            "messages": messages,
            "max_tokens": self.model.max_tokens,
        }
        if declared:
            kwargs["tools"] = declared
            kwargs["tool_choice"] = "auto"
        try:
            resp = client.chat.completions.create(**kwargs)
        except APITimeoutError as exc:
            timeout = RequestTimeout(f"{self.label} request", self.timeout)
            raise ProviderUnavailable(str(timeout), provider=self.name) from exc
        except OpenAIError as exc:
            raise ProviderUnavailable(f"{self.label} provider error: {exc}", provider=self.name) from exc

        try:
            return self._parse(resp, messages, declared)
        except (AttributeError, IndexError, KeyError, TypeError) as exc:
            raise ProviderProtocolError(
                f"{self.label} returned an unexpected payload: {exc}", provider=self.name
            ) from exc

    def _parse(
        self,
        resp: Any,
        messages: List[Dict[str, Any]],
        declared: List[Dict[str, Any]],
    ) -> AdapterResponse:
        msg = resp.choices[0].message
        tool_calls = msg.tool_calls or []
        if not tool_calls:
            return FinalText(text=msg.content or "", raw=resp)

        calls = [
            ToolCall(
                call_id=tc.id,
                name=tc.function.name,
                arguments=decode_arguments(tc.function.arguments, tc.function.name, self.name),
            )
            for tc in tool_calls
        ]
        assistant = {
            "role": "assistant",
            "content": msg.content,
            "tool_calls": [
                {
                    "id": tc.id,
                    "type": "function",
                    "function": {"name": tc.function.name, "arguments": tc.function.arguments},
                }
                for tc in tool_calls
            ],
        }
        return ToolCallsRequested(
            calls=calls,
            text=msg.content or "",
            thread={"messages": messages + [assistant], "tools": declared},
            raw=resp,
        )
