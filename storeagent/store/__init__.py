"""
Persistence layer.

A single SQLite database holds the conversation log, the tool
invocation audit trail, and the product/order records the store
capabilities read and mutate.
"""

__all__ = [
    "database",
    "models",
    "conversation",
    "records",
]
