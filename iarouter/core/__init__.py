"""
Core logic for the agent router.

This subpackage provides the keyword router that picks a persona, the
skill workflow table that turns a persona and phase into a capability
requirement, the persona agents, and prompt management utilities.
"""

__all__ = [
    "router",
    "workflows",
    "agent",
    "prompts",
]
