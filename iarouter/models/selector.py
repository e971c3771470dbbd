"""
Capability-based model selection.

Given a CapabilityRequirement, filter the discovered catalog and pick
the cheapest match. "Nothing fits" is reported as None or an empty list;
only discovery failures raise.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from iarouter.models.capabilities import CapabilityMatcher, CapabilityRequirement
from iarouter.models.catalog import ModelDescriptor, ModelDiscovery

logger = logging.getLogger(__name__)


class ModelSelector:
    """
    ModelSelector picks catalog entries for capability requirements.

    The discovery object (and therefore the cache) is shared by reference;
    the selector itself holds no state.
    """

    def __init__(
        self,
        discovery: ModelDiscovery,
        matcher: Optional[CapabilityMatcher] = None,
    ) -> None:
        self.discovery = discovery
        self.matcher = matcher or CapabilityMatcher()

    def find_model_comparison(
        self, requirement: CapabilityRequirement
    ) -> List[ModelDescriptor]:
        """
        Return every catalog entry satisfying the requirement.

        Entries keep catalog order; no cost ordering is applied.

        Raises:
            DiscoveryError: If the catalog cannot be obtained.
        """
        models = self.discovery.fetch_available_models()
        return [
            descriptor
            for descriptor in models.values()
            if self.matcher.satisfies(descriptor, requirement)
        ]

    def find_model(
        self, requirement: CapabilityRequirement
    ) -> Optional[ModelDescriptor]:
        """
        Return the cheapest entry satisfying the requirement, or None.

        Cost is prompt price plus completion price per token. On equal
        cost the entry listed first in the catalog wins.

        Raises:
            DiscoveryError: If the catalog cannot be obtained.
        """
        candidates = self.find_model_comparison(requirement)
        if not candidates:
            logger.info("No model satisfies %s", requirement)
            return None
        best = min(candidates, key=lambda d: d.cost)
        logger.debug(
            "Selected %s for %s out of %d candidates",
            best.id,
            requirement.capability,
            len(candidates),
        )
        return best

    select_model = find_model

    def compare_models(
        self,
        primary: CapabilityRequirement,
        secondary: CapabilityRequirement,
    ) -> Tuple[Optional[ModelDescriptor], Optional[ModelDescriptor]]:
        """Resolve two requirements independently and return both picks."""
        return self.find_model(primary), self.find_model(secondary)
