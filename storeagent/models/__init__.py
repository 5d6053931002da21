"""
Model provider adapters.

This package collects base types and the registry in `base.py` and
concrete adapters for OpenAI Chat Completions, the OpenAI Responses
API, Anthropic, and Perplexity (OpenAI-compatible). Adding a new
backend involves creating a new module that subclasses
`ProviderAdapter` and registering it in `PROVIDER_TYPES` of the
factory.
"""

__all__ = [
    "base",
    "openai_provider",
    "openai_responses_provider",
    "perplexity_provider",
    "anthropic_provider",
]
