"""
Model discovery, selection and provider implementations.

`base.py` holds shared types and the error taxonomy, `catalog.py` the
cached remote model catalog, `capabilities.py` and `selector.py` the
capability matching that picks a catalog entry. The OpenRouter and
Anthropic providers send the actual generation requests.
"""

__all__ = [
    "base",
    "catalog",
    "capabilities",
    "selector",
    "openrouter_provider",
    "anthropic_provider",
]
