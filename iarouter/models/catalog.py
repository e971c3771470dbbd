"""
Remote model catalog discovery.

Fetches the list of models published by the OpenRouter models endpoint
and keeps it in a time-bounded cache. The cache is an immutable snapshot
that is replaced in one assignment after a successful fetch, so readers
never observe a partially refreshed catalog. A failed fetch raises
DiscoveryError and leaves the previous snapshot in place.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

import requests

from iarouter.models.base import DiscoveryError, DiscoveryTimeoutError

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://openrouter.ai/api/v1"
DEFAULT_TTL_SECONDS = 60 * 60
DEFAULT_TIMEOUT_SECONDS = 15.0


@dataclass(frozen=True)
class ModelPricing:
    """Price per token, for input (prompt) and output (completion)."""

    prompt: float
    completion: float


@dataclass(frozen=True)
class ModelArchitecture:
    input_modalities: Tuple[str, ...] = ()
    output_modalities: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ModelDescriptor:
    """
    One entry of the remote catalog.

    Descriptors are owned by the catalog cache and are frozen; callers
    receive shared references.
    """

    id: str
    name: str
    description: str
    context_length: int
    pricing: ModelPricing
    architecture: ModelArchitecture

    @property
    def provider(self) -> str:
        """Identifier segment before the first '/', e.g. 'anthropic'."""
        return self.id.split("/", 1)[0]

    @property
    def cost(self) -> float:
        return self.pricing.prompt + self.pricing.completion

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "context_length": self.context_length,
            "pricing": {
                "prompt": self.pricing.prompt,
                "completion": self.pricing.completion,
            },
            "architecture": {
                "input_modalities": list(self.architecture.input_modalities),
                "output_modalities": list(self.architecture.output_modalities),
            },
        }

    @classmethod
    def from_api(cls, entry: Any) -> "ModelDescriptor":
        """
        Build a descriptor from one element of the catalog `data` list.

        Raises:
            DiscoveryError: If a required field is missing or ill-typed.
        """
        if not isinstance(entry, dict):
            raise DiscoveryError(f"Catalog entry is not an object: {entry!r}")
        model_id = entry.get("id", "<unknown>")
        try:
            pricing = entry["pricing"]
            architecture = entry["architecture"]
            return cls(
                id=_require_str(entry["id"]),
                name=_require_str(entry["name"]),
                description=_require_str(entry["description"]),
                context_length=int(entry["context_length"]),
                pricing=ModelPricing(
                    prompt=float(pricing["prompt"]),
                    completion=float(pricing["completion"]),
                ),
                architecture=ModelArchitecture(
                    input_modalities=_require_str_list(
                        architecture["input_modalities"]
                    ),
                    output_modalities=_require_str_list(
                        architecture["output_modalities"]
                    ),
                ),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise DiscoveryError(
                f"Malformed catalog entry '{model_id}': {exc!r}"
            ) from exc


def _require_str(value: Any) -> str:
    if not isinstance(value, str):
        raise TypeError(f"expected string, got {type(value).__name__}")
    return value


def _require_str_list(value: Any) -> Tuple[str, ...]:
    if not isinstance(value, list):
        raise TypeError(f"expected list, got {type(value).__name__}")
    return tuple(_require_str(v) for v in value)


@dataclass(frozen=True)
class CatalogCache:
    """
    Immutable catalog snapshot.

    Either empty (never populated, or cleared) or the full result of one
    successful fetch.
    """

    models: Mapping[str, ModelDescriptor] = field(
        default_factory=lambda: MappingProxyType({})
    )
    timestamp: float = 0.0
    ttl: float = DEFAULT_TTL_SECONDS

    def is_valid(self, now: float) -> bool:
        if not self.models:
            return False
        return now - self.timestamp < self.ttl


class ModelDiscovery:
    """
    Fetch and cache the remote model catalog.

    The API key, HTTP session and clock are injected; this class never
    reads the environment. Concurrent callers on an expired cache are
    coalesced into a single fetch: the refresh runs under a lock and
    callers that waited on it re-check the fresh snapshot first.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        ttl: float = DEFAULT_TTL_SECONDS,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        session: Optional[requests.Session] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.ttl = ttl
        self.timeout = timeout
        self.session = session or requests.Session()
        self.clock = clock
        self._cache = CatalogCache(ttl=ttl)
        self._refresh_lock = threading.Lock()

    @classmethod
    def from_config(cls, api_key: str, cfg: Dict[str, Any]) -> "ModelDiscovery":
        return cls(
            api_key=api_key,
            base_url=cfg.get("base_url", DEFAULT_BASE_URL),
            ttl=float(cfg.get("ttl_seconds", DEFAULT_TTL_SECONDS)),
            timeout=float(cfg.get("timeout", DEFAULT_TIMEOUT_SECONDS)),
        )

    def fetch_available_models(self) -> Mapping[str, ModelDescriptor]:
        """
        Return the catalog, fetching it when the cache is not valid.

        Returns:
            A read-only mapping of model id to ModelDescriptor, in the
            order the endpoint listed them.

        Raises:
            DiscoveryTimeoutError: If the request timed out.
            DiscoveryError: On transport failure, non-2xx status, or a
                response that does not match the expected shape.
        """
        cache = self._cache
        if cache.is_valid(self.clock()):
            return cache.models

        with self._refresh_lock:
            cache = self._cache
            if cache.is_valid(self.clock()):
                return cache.models
            models = self._fetch()
            self._cache = CatalogCache(
                models=MappingProxyType(models),
                timestamp=self.clock(),
                ttl=self.ttl,
            )
            logger.info("Model catalog refreshed: %d models", len(models))
            return self._cache.models

    def _fetch(self) -> Dict[str, ModelDescriptor]:
        url = f"{self.base_url}/models"
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        logger.debug("Fetching model catalog from %s", url)
        try:
            resp = self.session.get(url, headers=headers, timeout=self.timeout)
        except requests.Timeout as exc:
            raise DiscoveryTimeoutError(
                f"Failed to fetch models from OpenRouter: timed out after {self.timeout}s"
            ) from exc
        except requests.RequestException as exc:
            raise DiscoveryError(
                f"Failed to fetch models from OpenRouter: {exc}"
            ) from exc

        if resp.status_code != 200:
            raise DiscoveryError(
                f"Failed to fetch models from OpenRouter: OpenRouter API error: {resp.status_code}"
            )

        try:
            payload = resp.json()
        except ValueError as exc:
            raise DiscoveryError(
                f"Failed to fetch models from OpenRouter: invalid JSON: {exc}"
            ) from exc

        entries = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(entries, list):
            raise DiscoveryError(
                "Failed to fetch models from OpenRouter: response has no 'data' list"
            )

        models: Dict[str, ModelDescriptor] = {}
        for entry in entries:
            descriptor = ModelDescriptor.from_api(entry)
            models[descriptor.id] = descriptor
        return models

    def get_model_info(self, model_id: str) -> Optional[ModelDescriptor]:
        return self.fetch_available_models().get(model_id)

    def list_by_provider(self) -> Dict[str, List[ModelDescriptor]]:
        """Group the catalog by provider prefix."""
        grouped: Dict[str, List[ModelDescriptor]] = {}
        for descriptor in self.fetch_available_models().values():
            grouped.setdefault(descriptor.provider, []).append(descriptor)
        return grouped

    def clear_cache(self) -> None:
        """Drop the cached catalog so the next call refetches."""
        self._cache = CatalogCache(ttl=self.ttl)

    def get_cache_age(self) -> float:
        """Seconds since the last successful refresh; 0.0 when empty."""
        cache = self._cache
        if not cache.models:
            return 0.0
        return self.clock() - cache.timestamp

    def get_cache_size(self) -> int:
        return len(self._cache.models)
