"""
Model routing logic.

The router decides which provider adapters handle a chat request and
in which order. It remembers, for the lifetime of the process, whether
each provider's last request failed: a primary that failed is demoted
behind the alternate until it succeeds again.
"""

import logging
import threading
from typing import List, Optional, Set

from storeagent.models.base import ProviderAdapter, ProviderRegistry

logger = logging.getLogger(__name__)


class ModelRouter:
    """
    ModelRouter plans the provider attempts for a request.

    At most two adapters are returned by `plan()`, which bounds a
    request to one cross-provider switch.
    """

    def __init__(
        self,
        registry: ProviderRegistry,
        primary: Optional[str] = None,
        fallback: Optional[str] = None,
    ) -> None:
        self.registry = registry
        names = registry.names()

        if primary is not None and registry.get(primary) is None:
            logger.warning("Primary provider '%s' is not configured", primary)
            primary = None
        if fallback is not None and registry.get(fallback) is None:
            logger.warning("Fallback provider '%s' is not configured", fallback)
            fallback = None

        if primary is None:
            primary = next((n for n in names if n != fallback), fallback)
        if fallback is None or fallback == primary:
            fallback = next((n for n in names if n != primary), None)

        self.primary = primary
        self.fallback = fallback
        self._unhealthy: Set[str] = set()
        self._lock = threading.Lock()

        if self.primary is None:
            logger.error("No AI provider configured!")

    def plan(self) -> List[ProviderAdapter]:
        """Adapters to try for one request, in order."""
        with self._lock:
            demote = (
                self.fallback is not None
                and self.primary in self._unhealthy
                and self.fallback not in self._unhealthy
            )
        order = [self.fallback, self.primary] if demote else [self.primary, self.fallback]
        return [self.registry.resolve(name) for name in order if name is not None]

    def mark_failed(self, name: str) -> None:
        with self._lock:
            self._unhealthy.add(name)

    def mark_healthy(self, name: str) -> None:
        with self._lock:
            self._unhealthy.discard(name)

    def is_healthy(self, name: str) -> bool:
        with self._lock:
            return name not in self._unhealthy
