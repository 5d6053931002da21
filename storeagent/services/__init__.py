"""
External collaborators invoked by the store capabilities.

Catalog and order services sit on the local record store; image
generation, print-on-demand fulfillment and workflow automation call
third-party HTTP APIs.
"""

__all__ = [
    "catalog",
    "orders",
    "images",
    "printful",
    "rube",
]
