"""
OpenAI Responses provider implementation.

The Responses API keeps the conversation on the server: after the first
request, each round only sends the new `function_call_output` items and
the `previous_response_id` of the response that requested them. The
response id is therefore the whole thread carried between rounds. The
stored turn log is still replayed in full on `send_turn`, so a fresh
adapter can always rebuild the context.
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


class OpenAIResponsesProvider(ProviderAdapter):
    default_label = "OpenAI"

    def __init__(self, name: str, model: ModelInfo, base_url: str, **kwargs: Any) -> None:
        kwargs.setdefault("api_key_env", "OPENAI_API_KEY")
        super().__init__(name=name, model=model, **kwargs)
        self.base_url = base_url

    @classmethod
    def from_config(cls, name: str, cfg: Dict[str, Any]) -> "OpenAIResponsesProvider":
        return cls(
            name=name,
            model=ModelInfo.from_config(cfg.get("model"), "gpt-4o"),
            base_url=cfg.get("base_url", "https://api.openai.com/v1"),
            api_key_env=cfg.get("api_key_env", "OPENAI_API_KEY"),
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
                "name": t.name,
                "description": t.description,
                "parameters": t.parameters,
            }
            for t in tools
        ]

    def send_turn(
        self,
        context: ConversationContext,
        message: str,
        tools: Sequence[CapabilitySpec],
    ) -> AdapterResponse:
        items = context.history_messages() + [{"role": "user", "content": message}]
        settings = {
            "instructions": context.system_prompt,
            "tools": self._tool_declarations(tools) if self.supports_tools else [],
        }
        return self._create(settings, input=items)

    def continue_with_tool_results(
        self,
        previous: ToolCallsRequested,
        results: Dict[str, Any],
    ) -> AdapterResponse:
        outputs = [
            {
                "type": "function_call_output",
                "call_id": call.call_id,
                "output": encode_result(results.get(call.call_id)),
            }
            for call in previous.calls
        ]
        return self._create(
            previous.thread["settings"],
            input=outputs,
            previous_response_id=previous.thread["response_id"],
        )

    def _create(self, settings: Dict[str, Any], **request: Any) -> AdapterResponse:
        client = self._get_client()
        kwargs: Dict[str, Any] = {
            "model": self.model.name,
            "instructions": settings["instructions"],
            "max_output_tokens": self.model.max_tokens,
        }
        if settings["tools"]:
            kwargs["tools"] = settings["tools"]
        kwargs.update(request)
        try:
            resp = client.responses.create(**kwargs)
        except APITimeoutError as exc:
            timeout = RequestTimeout(f"{self.label} request", self.timeout)
            raise ProviderUnavailable(str(timeout), provider=self.name) from exc
        except OpenAIError as exc:
            raise ProviderUnavailable(f"{self.label} provider error: {exc}", provider=self.name) from exc

        try:
            return self._parse(resp, settings)
        except (AttributeError, KeyError, TypeError) as exc:
            raise ProviderProtocolError(
                f"{self.label} returned an unexpected payload: {exc}", provider=self.name
            ) from exc

    def _parse(self, resp: Any, settings: Dict[str, Any]) -> AdapterResponse:
        response_id = getattr(resp, "id", None)
        if not response_id:
            raise ProviderProtocolError(f"{self.label} response has no id.", provider=self.name)

        calls = [
            ToolCall(
                call_id=item.call_id,
                name=item.name,
                arguments=decode_arguments(item.arguments, item.name, self.name),
            )
            for item in (resp.output or [])
            if getattr(item, "type", "") == "function_call"
        ]
        text = getattr(resp, "output_text", "") or ""
        if not calls:
            return FinalText(text=text, raw=resp)
        return ToolCallsRequested(
            calls=calls,
            text=text,
            thread={"settings": settings, "response_id": response_id},
            raw=resp,
        )
