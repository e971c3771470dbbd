"""
Agent router package root.

This package provides configuration loading utilities, the keyword
router and skill workflows that pick a persona and its model
requirement, model catalog discovery and selection, and the generation
providers that the persona agents call.
"""

__all__ = [
    "config",
    "core",
    "models",
]
