"""Tests for the agent loop: fallback, tool rounds, persistence."""

import threading

import pytest

from storeagent.errors import ProviderProtocolError, ProviderUnavailable, StoreUnavailable
from storeagent.models.base import ToolCall
from storeagent.store.models import ASSISTANT, USER, Turn

from conftest import ScriptedProvider, final, tool_calls


def _create_tee():
    return ToolCall(
        call_id="call_1", name="create_product", arguments={"name": "Test Tee", "price": 19.99}
    )


class TestHappyPath:
    def test_create_product_end_to_end(self, make_agent, store, records):
        primary = ScriptedProvider(
            "openai",
            [tool_calls(_create_tee()), final("Created Test Tee for $19.99.")],
        )
        agent = make_agent(primary)

        reply = agent.handle_message("s1", "create a product called Test Tee for $19.99")

        assert reply.text == "Created Test Tee for $19.99."
        assert reply.provider == "Openai"
        assert reply.fallback is False
        assert reply.rounds == 2
        assert [fc["function"] for fc in reply.function_calls] == ["create_product"]
        assert reply.function_calls[0]["result"]["success"] is True

        turns = store.list_turns("s1")
        assert [t.role for t in turns] == [USER, ASSISTANT]
        assert turns[1].metadata["provider"] == "openai"
        assert turns[1].metadata["fallback"] is False
        assert [a.tool_name for a in store.list_tool_invocations("s1")] == ["create_product"]
        assert [p["name"] for p in records.list("products")] == ["Test Tee"]

    def test_tool_results_keyed_by_call_id(self, make_agent):
        primary = ScriptedProvider(
            "openai",
            [
                tool_calls(
                    ToolCall("a", "get_products", {}),
                    ToolCall("b", "get_orders", {}),
                ),
                final("Here is the store."),
            ],
        )
        make_agent(primary).handle_message("s1", "status?")
        assert list(primary.continued[0]) == ["a", "b"]

    def test_context_excludes_current_message(self, make_agent, store):
        store.append_turn(Turn(session_id="s1", role=USER, text="earlier question"))
        store.append_turn(Turn(session_id="s1", role=ASSISTANT, text="earlier answer"))
        primary = ScriptedProvider("openai", [final("ok")])

        make_agent(primary).handle_message("s1", "new question")

        sent = primary.sent[0]
        assert sent["message"] == "new question"
        assert [t.text for t in sent["context"].turns] == ["earlier question", "earlier answer"]
        assert "KinkyBrizzle" in sent["context"].system_prompt

    def test_history_window_is_bounded(self, make_agent, store):
        for i in range(6):
            store.append_turn(Turn(session_id="s1", role=USER, text=f"old {i}"))
        primary = ScriptedProvider("openai", [final("ok")])

        make_agent(primary, history_limit=4).handle_message("s1", "latest")

        # the window includes the current turn, which is then dropped
        assert [t.text for t in primary.sent[0]["context"].turns] == ["old 3", "old 4", "old 5"]

    def test_provider_without_tools_gets_no_declarations(self, make_agent):
        primary = ScriptedProvider("perplexity", [final("answer")], supports_tools=False)
        make_agent(primary).handle_message("s1", "hello")
        assert primary.sent[0]["tools"] == []

    def test_tools_declared_to_capable_provider(self, make_agent):
        primary = ScriptedProvider("openai", [final("answer")])
        make_agent(primary).handle_message("s1", "hello")
        assert len(primary.sent[0]["tools"]) == 7


class TestToolErrors:
    def test_failing_capability_is_reported_to_model(self, make_agent, store):
        primary = ScriptedProvider(
            "openai",
            [
                tool_calls(ToolCall("c1", "update_order_status", {"order_id": "99", "status": "Shipped"})),
                final("That order does not exist."),
            ],
        )
        reply = make_agent(primary).handle_message("s1", "ship order 99")

        result = primary.continued[0]["c1"]
        assert result["success"] is False
        assert "not found" in result["error"]
        assert reply.text == "That order does not exist."
        assert [a.tool_name for a in store.list_tool_invocations("s1")] == ["update_order_status"]

    def test_unknown_capability_is_reported_to_model(self, make_agent, store):
        primary = ScriptedProvider(
            "openai",
            [tool_calls(ToolCall("c1", "drop_tables", {})), final("I can't do that.")],
        )
        reply = make_agent(primary).handle_message("s1", "drop everything")

        assert primary.continued[0]["c1"]["success"] is False
        assert reply.fallback is False
        assert [a.tool_name for a in store.list_tool_invocations("s1")] == ["drop_tables"]


class TestFallback:
    def test_fallback_after_primary_failure(self, make_agent, store):
        primary = ScriptedProvider("openai", [ProviderUnavailable("rate limited")])
        secondary = ScriptedProvider("anthropic", [final("Hello from the fallback.")])
        agent = make_agent(primary, secondary)

        reply = agent.handle_message("s1", "hi")

        assert reply.text == "Hello from the fallback."
        assert reply.fallback is True
        assert reply.provider == "Anthropic (fallback)"
        assert reply.provider_name == "anthropic"
        turns = store.list_turns("s1")
        assert [t.role for t in turns] == [USER, ASSISTANT]
        assert turns[1].metadata["fallback"] is True

    def test_fallback_restarts_from_the_user_message(self, make_agent, store):
        primary = ScriptedProvider(
            "openai",
            [tool_calls(ToolCall("c1", "get_products", {})), ProviderUnavailable("boom")],
        )
        secondary = ScriptedProvider("anthropic", [final("done")])

        make_agent(primary, secondary).handle_message("s1", "list products")

        assert secondary.sent[0]["message"] == "list products"
        assert secondary.sent[0]["context"].turns == []
        # the partial attempt's tool call stays audited
        assert [a.tool_name for a in store.list_tool_invocations("s1")] == ["get_products"]

    def test_both_failing_raises_and_records_no_reply(self, make_agent, store):
        primary = ScriptedProvider("openai", [ProviderUnavailable("down")])
        secondary = ScriptedProvider("anthropic", [ProviderProtocolError("garbled")])
        agent = make_agent(primary, secondary)

        with pytest.raises(ProviderUnavailable, match="All AI providers failed"):
            agent.handle_message("s1", "hi")

        assert primary.calls == 1
        assert secondary.calls == 1
        assert [t.role for t in store.list_turns("s1")] == [USER]

    def test_no_provider_configured(self, make_agent, store):
        with pytest.raises(ProviderUnavailable):
            make_agent().handle_message("s1", "hi")
        assert [t.role for t in store.list_turns("s1")] == [USER]

    def test_failed_primary_is_demoted_for_later_requests(self, make_agent):
        primary = ScriptedProvider("openai", [ProviderUnavailable("down")])
        secondary = ScriptedProvider("anthropic", [final("ok")])
        agent = make_agent(primary, secondary)

        agent.handle_message("s1", "first")
        agent.handle_message("s1", "second")

        assert primary.calls == 1
        assert secondary.calls == 2

    def test_empty_answer_without_actions_falls_back(self, make_agent):
        primary = ScriptedProvider("openai", [final("   ")])
        secondary = ScriptedProvider("anthropic", [final("real answer")])

        reply = make_agent(primary, secondary).handle_message("s1", "hi")

        assert reply.text == "real answer"
        assert reply.fallback is True

    def test_unexpected_adapter_exception_falls_back(self, make_agent, store):
        primary = ScriptedProvider("openai", [AttributeError("no attribute 'name'")])
        secondary = ScriptedProvider("anthropic", [final("fallback answer")])

        reply = make_agent(primary, secondary).handle_message("s1", "hi")

        assert reply.text == "fallback answer"
        assert reply.fallback is True
        assert secondary.calls == 1
        assert [t.role for t in store.list_turns("s1")] == [USER, ASSISTANT]

    def test_unexpected_exception_mid_loop_is_a_provider_failure(self, make_agent, store):
        primary = ScriptedProvider(
            "openai",
            [tool_calls(ToolCall("c1", "get_orders", {})), TypeError("unexpected payload")],
        )
        secondary = ScriptedProvider("anthropic", [TypeError("also unexpected")])

        with pytest.raises(ProviderUnavailable, match="unexpected payload"):
            make_agent(primary, secondary).handle_message("s1", "orders")
        assert [t.role for t in store.list_turns("s1")] == [USER]


class TestRoundBudget:
    def test_endless_tool_requests_are_cut_off(self, make_agent, store):
        primary = ScriptedProvider(
            "openai", [tool_calls(ToolCall("c", "get_products", {}), text="Checking...")]
        )
        reply = make_agent(primary, max_rounds=3).handle_message("s1", "loop forever")

        assert primary.calls == 3
        assert reply.rounds == 3
        assert reply.text == "Checking..."
        assert len(reply.function_calls) == 2
        assert [t.role for t in store.list_turns("s1")] == [USER, ASSISTANT]

    def test_cut_off_without_text_summarizes_actions(self, make_agent):
        primary = ScriptedProvider("openai", [tool_calls(ToolCall("c", "get_orders", {}))])
        reply = make_agent(primary, max_rounds=2).handle_message("s1", "loop")

        assert reply.text.strip()
        assert "get_orders" in reply.text

    def test_empty_answer_after_actions_lists_them(self, make_agent):
        primary = ScriptedProvider(
            "openai", [tool_calls(ToolCall("c", "get_orders", {})), final("")]
        )
        reply = make_agent(primary).handle_message("s1", "orders")
        assert reply.text == "Done. Actions taken: get_orders."

    def test_max_rounds_must_be_positive(self, make_agent):
        with pytest.raises(ValueError):
            make_agent(ScriptedProvider("openai", [final("x")]), max_rounds=0)


class TestStoreFailures:
    def test_store_unavailable_propagates(self, make_agent, store, monkeypatch):
        def broken(turn):
            raise StoreUnavailable("disk full")

        monkeypatch.setattr(store, "append_turn", broken)
        primary = ScriptedProvider("openai", [final("never")])

        with pytest.raises(StoreUnavailable):
            make_agent(primary).handle_message("s1", "hi")
        assert primary.calls == 0


class TestConcurrency:
    def test_same_session_requests_do_not_interleave(self, make_agent, store):
        started = threading.Event()
        release = threading.Event()

        class SlowProvider(ScriptedProvider):
            def send_turn(self, context, message, tools):
                if message == "first":
                    started.set()
                    release.wait(5)
                return super().send_turn(context, message, tools)

        agent = make_agent(SlowProvider("openai", [final("ok")]))
        first = threading.Thread(target=agent.handle_message, args=("s1", "first"))
        second = threading.Thread(target=agent.handle_message, args=("s1", "second"))

        first.start()
        assert started.wait(5)
        second.start()
        second.join(0.2)
        # the second request waits for the session lock before storing anything
        assert [t.text for t in store.list_turns("s1")] == ["first"]
        release.set()
        first.join(5)
        second.join(5)

        assert [t.text for t in store.list_turns("s1")] == ["first", "ok", "second", "ok"]

    def test_session_locks_are_released(self, make_agent, sessions):
        agent = make_agent(ScriptedProvider("openai", [final("ok")]))
        for i in range(5):
            agent.handle_message(f"s{i}", "hi")
        assert sessions.active_sessions == 0

    def test_session_lock_released_on_failure(self, make_agent, sessions):
        agent = make_agent(ScriptedProvider("openai", [ProviderUnavailable("down")]))
        with pytest.raises(ProviderUnavailable):
            agent.handle_message("s1", "hi")
        assert sessions.active_sessions == 0
