"""
Configuration loader for the agent router.

The configuration is stored in a YAML file. This module provides a
function to load that file into a Python dictionary and the credential
priority rule used to pick a generation provider. API keys are not
stored in the YAML file; the file only names the environment variables
holding them, and the host process reads those variables and passes
the values in.
"""

import os
from dataclasses import dataclass
from typing import Any, Dict, Optional

import yaml

from iarouter.models.base import ConfigurationError

OPENROUTER = "openrouter"
ANTHROPIC = "anthropic"

DEFAULT_KEY_ENVS = {
    OPENROUTER: "OPENROUTER_API_KEY",
    ANTHROPIC: "ANTHROPIC_API_KEY",
}


def load_app_config(path: str) -> Dict[str, Any]:
    """
    Load the application configuration from a YAML file.

    Args:
        path: Path to the YAML configuration file.

    Returns:
        A dictionary representing the configuration.

    Raises:
        FileNotFoundError: If the config file does not exist.
        ValueError: If the top-level configuration is not a mapping.
    """
    if not os.path.exists(path):
        raise FileNotFoundError(f"Config file not found at: {path}")

    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ValueError("Top-level configuration must be a mapping/dictionary.")

    return data


def provider_config(cfg: Dict[str, Any], provider: str) -> Dict[str, Any]:
    return (cfg.get("providers") or {}).get(provider) or {}


def api_key_env(cfg: Dict[str, Any], provider: str) -> str:
    """Name of the environment variable holding the provider's API key."""
    return provider_config(cfg, provider).get("api_key_env", DEFAULT_KEY_ENVS[provider])


@dataclass(frozen=True)
class ProviderSelection:
    """Outcome of credential priority: which provider, with which key."""

    provider: str
    api_key: str

    @property
    def uses_catalog(self) -> bool:
        return self.provider == OPENROUTER


def select_provider(
    openrouter_key: Optional[str], anthropic_key: Optional[str]
) -> ProviderSelection:
    """
    Apply the credential priority rule.

    The OpenRouter key is preferred; the Anthropic key is used only when
    no OpenRouter key is present.

    Raises:
        ConfigurationError: If neither key is set.
    """
    if openrouter_key:
        return ProviderSelection(provider=OPENROUTER, api_key=openrouter_key)
    if anthropic_key:
        return ProviderSelection(provider=ANTHROPIC, api_key=anthropic_key)
    raise ConfigurationError(
        "Neither OPENROUTER_API_KEY nor ANTHROPIC_API_KEY configured. "
        "Please set one in your .env file."
    )
