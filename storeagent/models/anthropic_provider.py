"""
Anthropic provider implementation.

This provider wraps the Claude Messages API via the official `anthropic`
SDK. It translates the stored turn log into Anthropic's alternating
user/assistant message format, declares capabilities as Anthropic tools,
and threads tool calls through `tool_use` / `tool_result` content blocks.
Like Chat Completions, the full message array is resent every round.
"""

from typing import Any, Dict, List, Sequence

import anthropic

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


def merge_alternating(messages: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Collapse consecutive same-role text messages and drop leading
    assistant messages, as the Messages API requires the conversation
    to start with a user turn and alternate roles.
    """
    merged: List[Dict[str, Any]] = []
    for msg in messages:
        if not merged and msg["role"] != "user":
            continue
        if merged and merged[-1]["role"] == msg["role"]:
            merged[-1] = {
                "role": msg["role"],
                "content": f"{merged[-1]['content']}\n\n{msg['content']}",
            }
        else:
            merged.append(dict(msg))
    return merged


class AnthropicProvider(ProviderAdapter):
    """
    AnthropicProvider wraps the Claude messages API via the official anthropic SDK.
    """

    default_label = "Anthropic"

    @classmethod
    def from_config(cls, name: str, cfg: Dict[str, Any]) -> "AnthropicProvider":
        return cls(
            name=name,
            model=ModelInfo.from_config(cfg.get("model"), "claude-sonnet-4-5"),
            api_key_env=cfg.get("api_key_env", "ANTHROPIC_API_KEY"),
            label=cfg.get("label"),
            timeout=float(cfg.get("timeout", 60.0)),
            max_retries=int(cfg.get("max_retries", 0)),
        )

    def _get_client(self) -> anthropic.Anthropic:
        if self._client is None:
            self._client = anthropic.Anthropic(
                api_key=self._api_key(),
                timeout=self.timeout,
                max_retries=self.max_retries,
            )
        return self._client

    @staticmethod
    def _tool_declarations(tools: Sequence[CapabilitySpec]) -> List[Dict[str, Any]]:
        return [
            {"name": t.name, "description": t.description, "input_schema": t.parameters}
            for t in tools
        ]

    def send_turn(
        self,
        context: ConversationContext,
        message: str,
        tools: Sequence[CapabilitySpec],
    ) -> AdapterResponse:
        messages = merge_alternating(
            context.history_messages() + [{"role": "user", "content": message}]
        )
        thread = {
            "system": context.system_prompt,
            "messages": messages,
            "tools": self._tool_declarations(tools) if self.supports_tools else [],
        }
        return self._complete(thread)

    def continue_with_tool_results(
        self,
        previous: ToolCallsRequested,
        results: Dict[str, Any],
    ) -> AdapterResponse:
        blocks: List[Dict[str, Any]] = []
        for call in previous.calls:
            result = results.get(call.call_id)
            block: Dict[str, Any] = {
                "type": "tool_result",
                "tool_use_id": call.call_id,
                "content": encode_result(result),
            }
            if isinstance(result, dict) and result.get("success") is False:
                block["is_error"] = True
            blocks.append(block)
        thread = dict(previous.thread)
        thread["messages"] = previous.thread["messages"] + [{"role": "user", "content": blocks}]
        return self._complete(thread)

    def _complete(self, thread: Dict[str, Any]) -> AdapterResponse:
        client = self._get_client()
        kwargs: Dict[str, Any] = {
            "model": self.model.name,
            "system": thread["system"],
            "messages": thread["messages"],
            "max_tokens": self.model.max_tokens,
        }
        if thread["tools"]:
            kwargs["tools"] = thread["tools"]
        try:
            resp = client.messages.create(**kwargs)
        except anthropic.APITimeoutError as exc:
            timeout = RequestTimeout(f"{self.label} request", self.timeout)
            raise ProviderUnavailable(str(timeout), provider=self.name) from exc
        except anthropic.AnthropicError as exc:
            raise ProviderUnavailable(f"{self.label} provider error: {exc}", provider=self.name) from exc

        try:
            return self._parse(resp, thread)
        except (AttributeError, KeyError, TypeError) as exc:
            raise ProviderProtocolError(
                f"{self.label} returned an unexpected payload: {exc}", provider=self.name
            ) from exc

    def _parse(self, resp: Any, thread: Dict[str, Any]) -> AdapterResponse:
        parts: List[str] = []
        calls: List[ToolCall] = []
        echoed: List[Dict[str, Any]] = []
        for block in resp.content or []:
            kind = getattr(block, "type", "")
            if kind == "text":
                parts.append(block.text)
                echoed.append({"type": "text", "text": block.text})
            elif kind == "tool_use":
                calls.append(
                    ToolCall(
                        call_id=block.id,
                        name=block.name,
                        arguments=decode_arguments(block.input, block.name, self.name),
                    )
                )
                echoed.append(
                    {"type": "tool_use", "id": block.id, "name": block.name, "input": block.input}
                )
        text = "\n".join(parts)

        if not calls:
            if getattr(resp, "stop_reason", None) == "tool_use":
                raise ProviderProtocolError(
                    f"{self.label} stopped for tool use without a tool_use block.",
                    provider=self.name,
                )
            return FinalText(text=text, raw=resp)

        next_thread = dict(thread)
        next_thread["messages"] = thread["messages"] + [{"role": "assistant", "content": echoed}]
        return ToolCallsRequested(calls=calls, text=text, thread=next_thread, raw=resp)
