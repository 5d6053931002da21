"""
Agent loop.

Drives one user message through a provider's function-calling cycle:

    send_turn -> (tool calls -> dispatch -> continue_with_tool_results)* -> final text

The loop persists the user turn first, replays the bounded turn log as
context, and writes the assistant turn exactly once when a provider
produces its answer. If the provider fails, the whole request is
retried once against the alternate provider; a second failure is
reported to the caller and nothing is recorded as the assistant's
reply.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List

from storeagent.core.prompts import PromptManager
from storeagent.core.router import ModelRouter
from storeagent.core.session import SessionManager
from storeagent.errors import (
    DispatchError,
    LoopBudgetExceeded,
    ProviderError,
    ProviderProtocolError,
    ProviderUnavailable,
    StoreAgentError,
)
from storeagent.models.base import (
    AdapterResponse,
    ConversationContext,
    ProviderAdapter,
    ToolCall,
    ToolCallsRequested,
)
from storeagent.store.conversation import ConversationStore
from storeagent.store.models import ASSISTANT, USER, Turn
from storeagent.tools.base import CapabilityRegistry

logger = logging.getLogger(__name__)


@dataclass
class AgentReply:
    """What a caller receives for one handled message."""

    text: str
    session_id: str
    provider: str
    provider_name: str
    function_calls: List[Dict[str, Any]] = field(default_factory=list)
    fallback: bool = False
    rounds: int = 0


@dataclass
class _Outcome:
    text: str
    function_calls: List[Dict[str, Any]]
    rounds: int


class AgentLoop:
    """
    Tool-using agent bound to the conversation store.

    `max_rounds` caps the provider requests of a single attempt. A model
    still asking for tools at the cap is cut off and the request is
    finalized with whatever text it produced, so a misbehaving model
    cannot keep the loop running.
    """

    def __init__(
        self,
        router: ModelRouter,
        prompts: PromptManager,
        capabilities: CapabilityRegistry,
        store: ConversationStore,
        sessions: SessionManager,
        max_rounds: int = 10,
        history_limit: int = 20,
    ) -> None:
        if max_rounds < 1:
            raise ValueError("max_rounds must be at least 1.")
        self.router = router
        self.prompts = prompts
        self.capabilities = capabilities
        self.store = store
        self.sessions = sessions
        self.max_rounds = max_rounds
        self.history_limit = history_limit

    def handle_message(self, session_id: str, message: str) -> AgentReply:
        """
        Answer `message` on `session_id`.

        Raises:
            ProviderUnavailable: No provider is configured, or every
                attempted provider failed.
            StoreUnavailable: The conversation store could not be used.
        """
        with self.sessions.serialize(session_id):
            return self._handle(session_id, message)

    def _handle(self, session_id: str, message: str) -> AgentReply:
        user_turn = self.store.append_turn(Turn(session_id=session_id, role=USER, text=message))

        attempts = self.router.plan()
        if not attempts:
            raise ProviderUnavailable("No AI provider available")

        failures: List[str] = []
        for index, provider in enumerate(attempts):
            fallback = index > 0
            if fallback:
                logger.warning("Falling back to %s", provider.label)
            else:
                logger.info("Using %s", provider.label)

            context = ConversationContext(
                system_prompt=self.prompts.get_agent_system_prompt(),
                turns=[
                    t
                    for t in self.store.load_turns(session_id, self.history_limit)
                    if t.turn_id != user_turn.turn_id
                ],
            )
            try:
                outcome = self._drive(provider, context, message, session_id)
            except LoopBudgetExceeded as exc:
                logger.warning("%s: %s Finalizing with partial text.", provider.label, exc)
                outcome = _Outcome(
                    text=self._summarize(exc.partial_text, exc.function_calls),
                    function_calls=exc.function_calls,
                    rounds=exc.rounds,
                )
            except ProviderError as exc:
                logger.warning("%s failed: %s", provider.label, exc)
                self.router.mark_failed(provider.name)
                failures.append(f"{provider.name}: {exc}")
                continue

            self.router.mark_healthy(provider.name)
            label = f"{provider.label} (fallback)" if fallback else provider.label
            self.store.append_turn(
                Turn(
                    session_id=session_id,
                    role=ASSISTANT,
                    text=outcome.text,
                    metadata={
                        "provider": provider.name,
                        "provider_label": label,
                        "fallback": fallback,
                        "function_calls": outcome.function_calls,
                        "rounds": outcome.rounds,
                    },
                )
            )
            return AgentReply(
                text=outcome.text,
                session_id=session_id,
                provider=label,
                provider_name=provider.name,
                function_calls=outcome.function_calls,
                fallback=fallback,
                rounds=outcome.rounds,
            )

        raise ProviderUnavailable("All AI providers failed: " + "; ".join(failures))

    def _drive(
        self,
        provider: ProviderAdapter,
        context: ConversationContext,
        message: str,
        session_id: str,
    ) -> _Outcome:
        tools = self.capabilities.specs() if provider.supports_tools else []
        function_calls: List[Dict[str, Any]] = []

        response = self._call(provider, provider.send_turn, context, message, tools)
        rounds = 1
        while isinstance(response, ToolCallsRequested):
            if rounds >= self.max_rounds:
                raise LoopBudgetExceeded(rounds, response.text, function_calls)
            results: Dict[str, Any] = {}
            for call in response.calls:
                result = self._dispatch(call, session_id)
                results[call.call_id] = result
                function_calls.append({"function": call.name, "result": result})
            response = self._call(provider, provider.continue_with_tool_results, response, results)
            rounds += 1

        text = response.text
        if not text.strip():
            if not function_calls:
                raise ProviderProtocolError(
                    f"{provider.label} returned an empty response.", provider=provider.name
                )
            text = f"Done. Actions taken: {', '.join(_action_names(function_calls))}."
        return _Outcome(text=text, function_calls=function_calls, rounds=rounds)

    @staticmethod
    def _call(
        provider: ProviderAdapter,
        method: Callable[..., AdapterResponse],
        *args: Any,
    ) -> AdapterResponse:
        """Invoke an adapter method; anything outside the error taxonomy is a protocol error."""
        try:
            return method(*args)
        except StoreAgentError:
            raise
        except Exception as exc:  # noqa: BLE001
            raise ProviderProtocolError(
                f"{provider.label} failed unexpectedly: {exc!r}", provider=provider.name
            ) from exc

    def _dispatch(self, call: ToolCall, session_id: str) -> Any:
        try:
            return self.capabilities.dispatch(call.name, call.arguments, session_id)
        except DispatchError as exc:
            logger.warning("Capability %s failed: %s", call.name, exc)
            return {"success": False, "error": str(exc)}

    @staticmethod
    def _summarize(partial_text: str, function_calls: List[Dict[str, Any]]) -> str:
        if partial_text.strip():
            return partial_text
        names = _action_names(function_calls)
        if not names:
            return "I wasn't able to finish this request."
        return f"I wasn't able to finish this request. Actions taken: {', '.join(names)}."


def _action_names(function_calls: List[Dict[str, Any]]) -> List[str]:
    names: List[str] = []
    for fc in function_calls:
        if fc["function"] not in names:
            names.append(fc["function"])
    return names
