"""Shared fixtures: an isolated SQLite database, scripted providers, fake collaborators."""

from typing import Any, Dict, List, Optional

import pytest

from storeagent.core.agent import AgentLoop
from storeagent.core.prompts import PromptManager
from storeagent.core.router import ModelRouter
from storeagent.core.session import SessionManager
from storeagent.factory import build_capability_registry
from storeagent.models.base import (
    FinalText,
    ModelInfo,
    ProviderAdapter,
    ProviderRegistry,
    ToolCall,
    ToolCallsRequested,
)
from storeagent.services.rube import WorkflowClient
from storeagent.store.conversation import ConversationStore
from storeagent.store.database import Database
from storeagent.store.records import RecordStore


class ScriptedProvider(ProviderAdapter):
    """
    Adapter that replays a script of responses.

    Each script item is a FinalText, a ToolCallsRequested, or an
    exception to raise. The last item repeats once the script runs out.
    """

    def __init__(self, name: str, script: List[Any], supports_tools: bool = True) -> None:
        super().__init__(
            name=name,
            model=ModelInfo(name=f"{name}-model", supports_tools=supports_tools),
            api_key_env="UNUSED",
            label=name.title(),
        )
        self.script = list(script)
        self.sent: List[Dict[str, Any]] = []
        self.continued: List[Dict[str, Any]] = []

    @property
    def calls(self) -> int:
        return len(self.sent) + len(self.continued)

    def _next(self) -> Any:
        item = self.script.pop(0) if len(self.script) > 1 else self.script[0]
        if isinstance(item, Exception):
            raise item
        return item

    def send_turn(self, context, message, tools):
        self.sent.append({"context": context, "message": message, "tools": list(tools)})
        return self._next()

    def continue_with_tool_results(self, previous, results):
        self.continued.append(dict(results))
        return self._next()


def tool_calls(*calls: ToolCall, text: str = "") -> ToolCallsRequested:
    return ToolCallsRequested(calls=list(calls), text=text, thread="scripted")


def final(text: str) -> FinalText:
    return FinalText(text=text)


class FakeImages:
    def __init__(self, url: str = "https://images.example/design.png") -> None:
        self.url = url
        self.prompts: List[str] = []

    def generate_image(self, prompt: str) -> str:
        self.prompts.append(prompt)
        return self.url


class FakeFulfillment:
    def __init__(self, fail: Optional[Exception] = None) -> None:
        self.fail = fail
        self.listings: List[Dict[str, str]] = []

    def create_listing(self, name: str, description: str, image_url: str) -> str:
        if self.fail is not None:
            raise self.fail
        self.listings.append({"name": name, "description": description, "image_url": image_url})
        return "pf-1001"


@pytest.fixture
def database(tmp_path) -> Database:
    db = Database(tmp_path / "store.db")
    db.initialize()
    return db


@pytest.fixture
def store(database) -> ConversationStore:
    return ConversationStore(database)


@pytest.fixture
def records(database) -> RecordStore:
    return RecordStore(database)


@pytest.fixture
def sessions(store) -> SessionManager:
    return SessionManager(store)


@pytest.fixture
def images() -> FakeImages:
    return FakeImages()


@pytest.fixture
def fulfillment() -> FakeFulfillment:
    return FakeFulfillment()


@pytest.fixture
def capabilities(store, records, images, fulfillment):
    return build_capability_registry(
        {},
        audit_log=store,
        records=records,
        timeout=5.0,
        images=images,
        fulfillment=fulfillment,
        workflows=WorkflowClient(api_key=""),
    )


@pytest.fixture
def make_agent(store, sessions, capabilities):
    """Build an AgentLoop over the given scripted providers (primary first)."""

    def _make(*providers: ProviderAdapter, max_rounds: int = 10, history_limit: int = 20) -> AgentLoop:
        registry = ProviderRegistry()
        for provider in providers:
            registry.register_provider(provider)
        names = [p.name for p in providers]
        router = ModelRouter(
            registry,
            primary=names[0] if names else None,
            fallback=names[1] if len(names) > 1 else None,
        )
        return AgentLoop(
            router=router,
            prompts=PromptManager({}),
            capabilities=capabilities,
            store=store,
            sessions=sessions,
            max_rounds=max_rounds,
            history_limit=history_limit,
        )

    return _make
