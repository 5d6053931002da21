"""
Core logic of the storefront agent.

This subpackage provides the router, which orders provider attempts,
the agent loop that drives a message through the function-calling
cycle, session management, and prompt management.
"""

__all__ = [
    "router",
    "agent",
    "prompts",
    "session",
]
