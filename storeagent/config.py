"""
Configuration loader for the storefront agent.

The configuration is stored in a YAML file. This module loads that file
into a Python dictionary and exposes typed defaults for the agent loop.
Sensitive values like API keys are not stored in the YAML file; instead,
they are retrieved from environment variables as needed by the providers
and external services.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, Optional

import yaml

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


def load_app_config(path: str) -> Dict[str, Any]:
    """
    Load the application configuration from a YAML file.

    Args:
        path: Path to the YAML configuration file.

    Returns:
        A dictionary representing the configuration.

    Raises:
        FileNotFoundError: If the config file does not exist.
        ValueError: If the top-level configuration is not a mapping.
    """
    if not os.path.exists(path):
        raise FileNotFoundError(f"Config file not found at: {path}")

    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ValueError("Top-level configuration must be a mapping/dictionary.")

    return data


@dataclass(frozen=True)
class AgentSettings:
    """
    Tunables of the agent loop, read from the `agent:` section.

    `max_rounds` bounds the number of provider requests made for one
    attempt; `history_limit` bounds how many stored turns are replayed.
    """

    primary: Optional[str] = None
    fallback: Optional[str] = None
    max_rounds: int = 10
    history_limit: int = 20
    capability_timeout: float = 30.0

    @classmethod
    def from_config(cls, cfg: Dict[str, Any]) -> "AgentSettings":
        agent_cfg = cfg.get("agent", {}) or {}
        max_rounds = int(agent_cfg.get("max_rounds", 10))
        if max_rounds < 1:
            raise ValueError("agent.max_rounds must be at least 1.")
        return cls(
            primary=agent_cfg.get("primary"),
            fallback=agent_cfg.get("fallback"),
            max_rounds=max_rounds,
            history_limit=int(agent_cfg.get("history_limit", 20)),
            capability_timeout=float(agent_cfg.get("capability_timeout", 30.0)),
        )


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
