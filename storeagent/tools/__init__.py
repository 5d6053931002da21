"""
Store capabilities.

Capabilities expose catalog, order, design, web-search and workflow
actions to the model. They are registered in the `CapabilityRegistry`
at startup and described to every provider through their parameter
schemas.
"""

__all__ = [
    "base",
    "catalog",
    "orders",
    "web",
    "workflows",
]
