"""
Capability requirements and the capability predicate table.

A capability tag ("text-reasoning", "vision", ...) is an abstract label
for what a model can do. Whether a catalog entry satisfies a tag is
decided by a fixed predicate per tag, evaluated over the entry's id,
display name, description and modalities. The predicates match on vendor
naming conventions and will misclassify models whose names do not follow
them; the table is a plain mapping so it can be replaced wholesale.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, List, Mapping, Optional

from iarouter.models.catalog import ModelDescriptor

CapabilityPredicate = Callable[[ModelDescriptor], bool]


@dataclass(frozen=True)
class CapabilityRequirement:
    """
    Abstract selection request.

    `preference` is matched as a prefix of the model id (e.g. "anthropic").
    `reasoning_enabled` is informational and does not affect selection.
    """

    capability: str
    preference: Optional[str] = None
    min_context_length: Optional[int] = None
    reasoning_enabled: bool = False

    def to_dict(self) -> Dict[str, object]:
        return {
            "capability": self.capability,
            "preference": self.preference,
            "min_context_length": self.min_context_length,
            "reasoning_enabled": self.reasoning_enabled,
        }


def _id(m: ModelDescriptor) -> str:
    return m.id.lower()


def _name(m: ModelDescriptor) -> str:
    return m.name.lower()


def _desc(m: ModelDescriptor) -> str:
    return m.description.lower()


def _id_has(m: ModelDescriptor, *needles: str) -> bool:
    model_id = _id(m)
    return any(n in model_id for n in needles)


def _desc_has(m: ModelDescriptor, *needles: str) -> bool:
    desc = _desc(m)
    return any(n in desc for n in needles)


CAPABILITY_PREDICATES: Mapping[str, CapabilityPredicate] = {
    "text-generation": lambda m: "text" in m.architecture.output_modalities,
    "text-understanding": lambda m: "text" in m.architecture.input_modalities,
    "text-reasoning": lambda m: (
        _id_has(m, "opus", "sonnet", "deepseek") or _desc_has(m, "reasoning")
    ),
    "text-generation-with-search": lambda m: (
        _id_has(m, "claude") and (_desc_has(m, "search") or "websearch" in _name(m))
    ),
    "text-classification": lambda m: _id_has(m, "claude", "mistral"),
    "code-generation": lambda m: (
        _desc_has(m, "code", "programming") or _id_has(m, "grok", "claude")
    ),
    "code-reasoning": lambda m: (
        _desc_has(m, "code reasoning", "debugging") or _id_has(m, "opus", "grok")
    ),
    "real-time-search": lambda m: (
        _id_has(m, "grok", "sonar") or _desc_has(m, "real-time")
    ),
    "social-analysis": lambda m: _id_has(m, "grok") and _desc_has(m, "x/twitter"),
    "vision": lambda m: "image" in m.architecture.input_modalities,
}

CAPABILITY_DESCRIPTIONS: Mapping[str, str] = {
    "text-generation": "Standard text generation",
    "text-understanding": "Text comprehension and analysis",
    "text-reasoning": "Complex reasoning and analysis",
    "text-generation-with-search": "Text generation with web search capability",
    "text-classification": "Text classification and categorization",
    "code-generation": "Code generation and programming",
    "code-reasoning": "Complex code analysis and reasoning",
    "real-time-search": "Real-time search and current events",
    "social-analysis": "Social media analysis and sentiment",
    "vision": "Image understanding",
}


class CapabilityMatcher:
    """Evaluate capability tags against descriptors using a predicate table."""

    def __init__(
        self, predicates: Optional[Mapping[str, CapabilityPredicate]] = None
    ) -> None:
        self.predicates = dict(
            CAPABILITY_PREDICATES if predicates is None else predicates
        )

    def matches(self, descriptor: ModelDescriptor, capability: str) -> bool:
        predicate = self.predicates.get(capability)
        if predicate is None:
            return False
        return bool(predicate(descriptor))

    def satisfies(
        self, descriptor: ModelDescriptor, requirement: CapabilityRequirement
    ) -> bool:
        """Capability, context-length and provider-prefix filters combined."""
        if not self.matches(descriptor, requirement.capability):
            return False
        if (
            requirement.min_context_length
            and descriptor.context_length < requirement.min_context_length
        ):
            return False
        if requirement.preference and not descriptor.id.startswith(
            requirement.preference
        ):
            return False
        return True

    def known_capabilities(self) -> List[str]:
        return list(self.predicates)
