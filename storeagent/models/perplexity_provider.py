"""
Perplexity provider implementation.

This provider uses Perplexity's OpenAI-compatible API endpoint to
perform chat completions. It reuses the OpenAI adapter with a custom
base URL and environment variable for the API key. Perplexity models do
not support function calling unless a model entry says otherwise, in
which case the agent sends them no tool declarations.
"""

from storeagent.models.openai_provider import OpenAIProvider


class PerplexityProvider(OpenAIProvider):
    """
    PerplexityProvider uses Perplexity's OpenAI-compatible Chat Completions API.
    """

    default_label = "Perplexity"
    default_api_key_env = "PERPLEXITY_API_KEY"
    default_base_url = "https://api.perplexity.ai"
    default_model = "sonar"
    default_supports_tools = False
