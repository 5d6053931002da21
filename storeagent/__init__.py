"""
Storefront agent package root.

This package provides configuration loading, the conversational agent
loop with provider fallback, model provider adapters, the store
capabilities the model may invoke, the conversation store, and the
HTTP API. `factory.build_services` wires them together.
"""

__version__ = "0.1.0"

__all__ = [
    "api",
    "config",
    "core",
    "errors",
    "factory",
    "models",
    "services",
    "store",
    "tools",
]
