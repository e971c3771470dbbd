"""
Base types and error taxonomy for model providers.

Defines the normalized response returned by generation providers, the
provider base class, and the exceptions raised across the package. Every
exception carries a stable `code` so the calling layer (the CLI here) can
map it to a structured failure without inspecting messages.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


class IARouterError(Exception):
    """Base class for all errors raised by this package."""

    code = "IAROUTER_ERROR"


class ConfigurationError(IARouterError):
    """Raised when no usable credential or model resolution is available."""

    code = "CONFIGURATION_ERROR"


class DiscoveryError(IARouterError):
    """Raised when the remote model catalog cannot be fetched or parsed."""

    code = "DISCOVERY_ERROR"


class DiscoveryTimeoutError(DiscoveryError):
    """Raised when the catalog request exceeds its timeout."""

    code = "DISCOVERY_TIMEOUT"


class GenerationError(IARouterError):
    """Raised when a provider fails to execute a generation request."""

    code = "GENERATION_ERROR"

    def __init__(self, provider: str, message: str) -> None:
        super().__init__(f"Model API error ({provider}): {message}")
        self.provider = provider


class GenerationTimeoutError(GenerationError):
    """Raised when a generation request exceeds its timeout."""

    code = "GENERATION_TIMEOUT"


@dataclass
class ChatResponse:
    """
    Normalized chat response returned by providers.

    The text attribute contains the plain response text, model the
    identifier the provider reports having used. The raw attribute
    contains provider-specific response data for debugging.
    """

    text: str
    model: str
    usage: Dict[str, Any] = field(default_factory=dict)
    raw: Any = None


class BaseProvider:
    """
    Abstract base class for generation providers.

    Providers must implement the `chat` method. A classmethod
    `from_config` is used to construct provider instances from
    configuration dictionaries plus an injected API key.
    """

    #: Model used when no catalog selection is available; None means the
    #: provider always requires an explicit model.
    default_model: Optional[str] = None

    def __init__(self, name: str) -> None:
        self.name = name

    @property
    def uses_catalog(self) -> bool:
        return self.default_model is None

    def chat(self, model: str, messages: List[Dict[str, Any]]) -> ChatResponse:
        raise NotImplementedError

    @classmethod
    def from_config(cls, api_key: str, cfg: Dict[str, Any]) -> "BaseProvider":
        raise NotImplementedError
