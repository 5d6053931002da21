"""Tests for the conversation store and the record store."""

import pytest

from storeagent.errors import StoreUnavailable
from storeagent.store.conversation import ConversationStore
from storeagent.store.database import Database
from storeagent.store.models import ASSISTANT, USER, ToolInvocation, Turn


def _append(store, session_id, n):
    turns = []
    for i in range(n):
        role = USER if i % 2 == 0 else ASSISTANT
        turns.append(store.append_turn(Turn(session_id=session_id, role=role, text=f"message {i}")))
    return turns


class TestTurns:
    def test_append_assigns_increasing_ids(self, store):
        turns = _append(store, "s1", 3)
        ids = [t.turn_id for t in turns]
        assert ids == sorted(ids)
        assert len(set(ids)) == 3

    def test_history_returns_turns_in_append_order(self, store):
        appended = _append(store, "s1", 7)
        history = store.list_turns("s1")
        assert [t.text for t in history] == [t.text for t in appended]
        assert [t.turn_id for t in history] == sorted(t.turn_id for t in history)
        created = [t.created_at for t in history]
        assert created == sorted(created)

    def test_sessions_are_isolated(self, store):
        _append(store, "s1", 2)
        _append(store, "s2", 3)
        assert len(store.list_turns("s1")) == 2
        assert len(store.list_turns("s2")) == 3

    def test_unknown_session_is_empty(self, store):
        assert store.list_turns("nobody") == []
        assert store.load_turns("nobody") == []

    def test_load_turns_keeps_most_recent_window(self, store):
        _append(store, "s1", 25)
        window = store.load_turns("s1", limit=20)
        assert len(window) == 20
        assert window[0].text == "message 5"
        assert window[-1].text == "message 24"

    def test_metadata_round_trips(self, store):
        store.append_turn(
            Turn(session_id="s1", role=ASSISTANT, text="hi", metadata={"provider": "openai"})
        )
        assert store.list_turns("s1")[0].metadata == {"provider": "openai"}

    def test_turn_rejects_unknown_role(self):
        with pytest.raises(ValueError):
            Turn(session_id="s1", role="system", text="nope")


class TestToolInvocations:
    def test_listed_most_recent_first(self, store):
        for name in ("get_products", "create_product", "get_orders"):
            store.append_tool_invocation(
                ToolInvocation(session_id="s1", tool_name=name, arguments={"n": name})
            )
        actions = store.list_tool_invocations("s1")
        assert [a.tool_name for a in actions] == ["get_orders", "create_product", "get_products"]
        assert actions[0].arguments == {"n": "get_orders"}


class TestUnavailable:
    def test_unreachable_database_raises_store_unavailable(self, tmp_path):
        # A directory cannot be opened as a database file
        store = ConversationStore(Database(tmp_path))
        with pytest.raises(StoreUnavailable):
            store.append_turn(Turn(session_id="s1", role=USER, text="hello"))
        with pytest.raises(StoreUnavailable):
            store.load_turns("s1")

    def test_missing_schema_raises_store_unavailable(self, tmp_path):
        store = ConversationStore(Database(tmp_path / "empty.db"))
        with pytest.raises(StoreUnavailable):
            store.list_tool_invocations("s1")


class TestRecords:
    def test_insert_and_list_products(self, records):
        created = records.insert("products", {"name": "Tee", "price": 19.99})
        assert created["id"] is not None
        assert created["is_adult"] is False
        assert [p["name"] for p in records.list("products")] == ["Tee"]

    def test_order_items_are_json(self, records):
        order = records.insert(
            "orders", {"customer_name": "Ada", "items": [{"productId": "1", "quantity": 2}]}
        )
        assert records.get("orders", order["id"])["items"] == [{"productId": "1", "quantity": 2}]

    def test_update_missing_row_returns_none(self, records):
        assert records.update("orders", 999, {"status": "Shipped"}) is None

    def test_unknown_table_and_column_rejected(self, records):
        with pytest.raises(ValueError):
            records.list("users")
        with pytest.raises(ValueError):
            records.insert("products", {"name": "Tee", "price": 1, "owner": "x"})
