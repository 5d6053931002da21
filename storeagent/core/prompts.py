"""
Prompt management.

This module provides a simple PromptManager class that reads prompt
configuration from the loaded YAML configuration and exposes it to the
agent loop. It supplies a default store-operator prompt if none is
specified.
"""

from typing import Dict

DEFAULT_AGENT_SYSTEM = """You are an autonomous AI agent managing {store_name}, an online apparel store. You have full control over the website and can:

1. Create and manage products (including generating designs with AI)
2. Process and update orders
3. Generate custom designs and logos
4. Search the web for information
5. Execute automated workflows via Rube.app
6. Integrate with Printful for product fulfillment

You should proactively help users by:
- Creating products when they describe what they want
- Generating designs based on descriptions
- Managing orders autonomously
- Providing comprehensive shopping assistance

Be conversational, helpful, and take action when appropriate. Always inform users what actions you're taking."""


class PromptManager:
    """
    Store and access the system prompt used by the agent loop.

    Prompts can be configured in the YAML file under the `prompts` key;
    `{store_name}` in the prompt is replaced with `prompts.store_name`.
    """

    def __init__(self, prompts_cfg: Dict) -> None:
        self.prompts_cfg = prompts_cfg or {}

    def get_agent_system_prompt(self) -> str:
        template = self.prompts_cfg.get("agent_system", DEFAULT_AGENT_SYSTEM)
        return template.replace("{store_name}", self.prompts_cfg.get("store_name", "KinkyBrizzle"))
