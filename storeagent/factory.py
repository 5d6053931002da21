"""
Composition root for the storefront agent.

All dependency wiring happens here: provider adapters, external
collaborators and the database are constructed once at process startup
and injected into the capability registry and the agent loop. The CLI
and the HTTP API both call `build_services`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Type

from storeagent.config import AgentSettings
from storeagent.core.agent import AgentLoop
from storeagent.core.prompts import PromptManager
from storeagent.core.router import ModelRouter
from storeagent.core.session import SessionManager
from storeagent.models.anthropic_provider import AnthropicProvider
from storeagent.models.base import ProviderAdapter, ProviderRegistry
from storeagent.models.openai_provider import OpenAIProvider
from storeagent.models.openai_responses_provider import OpenAIResponsesProvider
from storeagent.models.perplexity_provider import PerplexityProvider
from storeagent.services.catalog import CatalogService
from storeagent.services.images import ImageGenerator
from storeagent.services.orders import OrderService
from storeagent.services.printful import PrintfulClient
from storeagent.services.rube import WorkflowClient
from storeagent.store.conversation import ConversationStore
from storeagent.store.database import Database
from storeagent.store.records import RecordStore
from storeagent.tools.base import CapabilityName, CapabilityRegistry
from storeagent.tools.catalog import CreateProductTool, GenerateDesignTool, GetProductsTool
from storeagent.tools.orders import GetOrdersTool, UpdateOrderStatusTool
from storeagent.tools.web import SearchWebTool
from storeagent.tools.workflows import ExecuteWorkflowTool

logger = logging.getLogger(__name__)

PROVIDER_TYPES: Dict[str, Type[ProviderAdapter]] = {
    "openai": OpenAIProvider,
    "openai_responses": OpenAIResponsesProvider,
    "anthropic": AnthropicProvider,
    "perplexity": PerplexityProvider,
}


@dataclass
class Services:
    database: Database
    store: ConversationStore
    sessions: SessionManager
    capabilities: CapabilityRegistry
    router: ModelRouter
    agent: AgentLoop


def build_provider_registry(cfg: Dict[str, Any]) -> ProviderRegistry:
    """
    Build and register all enabled provider adapters.

    Each entry under `providers:` is keyed by the adapter's name. The
    adapter class is chosen by the entry's `type`, defaulting to the
    name itself.
    """
    registry = ProviderRegistry()
    for name, provider_cfg in (cfg.get("providers") or {}).items():
        provider_cfg = provider_cfg or {}
        if not provider_cfg.get("enabled", False):
            continue
        kind = provider_cfg.get("type", name)
        adapter_cls = PROVIDER_TYPES.get(kind)
        if adapter_cls is None:
            raise ValueError(f"Unknown provider type '{kind}' for provider '{name}'.")
        registry.register_provider(adapter_cls.from_config(name, provider_cfg))
        logger.info("Registered provider %s (%s)", name, kind)
    return registry


def build_capability_registry(
    cfg: Dict[str, Any],
    audit_log: ConversationStore,
    records: RecordStore,
    timeout: float = 30.0,
    images: Optional[ImageGenerator] = None,
    fulfillment: Optional[PrintfulClient] = None,
    workflows: Optional[WorkflowClient] = None,
) -> CapabilityRegistry:
    """
    Build the capability registry from config.yaml.

    Every capability is registered unless its entry under `tools:` sets
    `enabled: false`. Collaborators not passed in are built from the
    `services:` section.
    """
    tools_cfg = cfg.get("tools") or {}
    services_cfg = cfg.get("services") or {}

    if images is None:
        images = ImageGenerator.from_config(services_cfg.get("images") or {})
    if fulfillment is None:
        fulfillment = PrintfulClient.from_config(services_cfg.get("printful") or {})
    if workflows is None:
        workflows = WorkflowClient.from_config(services_cfg.get("rube") or {})

    catalog = CatalogService(records)
    orders = OrderService(records)
    candidates = [
        GetProductsTool(catalog),
        CreateProductTool(catalog, images, fulfillment),
        GenerateDesignTool(images),
        GetOrdersTool(orders),
        UpdateOrderStatusTool(orders),
        SearchWebTool.from_config(tools_cfg.get(CapabilityName.SEARCH_WEB.value) or {}),
        ExecuteWorkflowTool(workflows),
    ]

    registry = CapabilityRegistry(audit_log=audit_log, timeout=timeout)
    for capability in candidates:
        tool_cfg = tools_cfg.get(capability.name.value) or {}
        if tool_cfg.get("enabled", True):
            registry.register_tool(capability)
    registry.freeze()
    return registry


def build_services(cfg: Dict[str, Any]) -> Services:
    settings = AgentSettings.from_config(cfg)
    storage_cfg = cfg.get("storage") or {}

    database = Database(storage_cfg.get("db_path", "data/storeagent.db"))
    database.initialize()
    store = ConversationStore(database)
    sessions = SessionManager(store)

    capabilities = build_capability_registry(
        cfg,
        audit_log=store,
        records=RecordStore(database),
        timeout=settings.capability_timeout,
    )
    router = ModelRouter(
        build_provider_registry(cfg),
        primary=settings.primary,
        fallback=settings.fallback,
    )
    agent = AgentLoop(
        router=router,
        prompts=PromptManager(cfg.get("prompts") or {}),
        capabilities=capabilities,
        store=store,
        sessions=sessions,
        max_rounds=settings.max_rounds,
        history_limit=settings.history_limit,
    )
    return Services(
        database=database,
        store=store,
        sessions=sessions,
        capabilities=capabilities,
        router=router,
        agent=agent,
    )
