import pytest

from storeagent.errors import ProviderError
from storeagent.core.router import ModelRouter
from storeagent.models.base import ProviderRegistry

from conftest import ScriptedProvider, final


def _registry(*names):
    registry = ProviderRegistry()
    for name in names:
        registry.register_provider(ScriptedProvider(name, [final("ok")]))
    return registry


def _names(router):
    return [p.name for p in router.plan()]


class TestModelRouter:
    def test_configured_order(self):
        router = ModelRouter(_registry("openai", "anthropic"), primary="anthropic", fallback="openai")
        assert _names(router) == ["anthropic", "openai"]

    def test_defaults_to_registration_order(self):
        router = ModelRouter(_registry("openai", "anthropic", "perplexity"))
        assert _names(router) == ["openai", "anthropic"]

    def test_unconfigured_names_are_replaced(self):
        router = ModelRouter(_registry("openai", "anthropic"), primary="gemini", fallback="openai")
        assert _names(router) == ["anthropic", "openai"]

    def test_single_provider_has_no_fallback(self):
        router = ModelRouter(_registry("openai"), primary="openai", fallback="openai")
        assert _names(router) == ["openai"]

    def test_no_providers(self):
        assert ModelRouter(_registry()).plan() == []

    def test_failed_primary_is_demoted_until_healthy(self):
        router = ModelRouter(_registry("openai", "anthropic"))
        router.mark_failed("openai")
        assert not router.is_healthy("openai")
        assert _names(router) == ["anthropic", "openai"]

        router.mark_healthy("openai")
        assert _names(router) == ["openai", "anthropic"]

    def test_no_demotion_when_both_unhealthy(self):
        router = ModelRouter(_registry("openai", "anthropic"))
        router.mark_failed("openai")
        router.mark_failed("anthropic")
        assert _names(router) == ["openai", "anthropic"]


class TestProviderRegistry:
    def test_resolve_unknown(self):
        with pytest.raises(ProviderError):
            _registry("openai").resolve("anthropic")

    def test_get_none(self):
        assert _registry("openai").get(None) is None
