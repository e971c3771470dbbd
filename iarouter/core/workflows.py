"""
Skill workflows and model-requirement resolution.

Each skill is split into phases, and each phase names the capability it
needs rather than a concrete model. `WorkflowResolver` turns a
(skill, phase) pair, or failing that a persona name, into a
CapabilityRequirement and hands it to the ModelSelector.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Iterable, Mapping, Optional, Tuple

from iarouter.models.base import ConfigurationError
from iarouter.models.capabilities import CapabilityRequirement
from iarouter.models.catalog import ModelDescriptor
from iarouter.models.selector import ModelSelector

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DecisionCriteria:
    """Declarative escalation rule. Evaluated by callers, never here."""

    condition: str
    action: str


@dataclass(frozen=True)
class WorkflowPhase:
    name: str
    primary: CapabilityRequirement
    description: str
    compare: Optional[CapabilityRequirement] = None
    decision_criteria: Optional[DecisionCriteria] = None

    def to_dict(self) -> Dict[str, object]:
        return {
            "name": self.name,
            "description": self.description,
            "primary": self.primary.to_dict(),
            "compare": self.compare.to_dict() if self.compare else None,
            "decision_criteria": (
                {
                    "condition": self.decision_criteria.condition,
                    "action": self.decision_criteria.action,
                }
                if self.decision_criteria
                else None
            ),
        }


@dataclass(frozen=True)
class SkillWorkflow:
    name: str
    description: str
    model_preference: str
    phases: Mapping[str, WorkflowPhase] = field(
        default_factory=lambda: MappingProxyType({})
    )

    @property
    def first_phase(self) -> WorkflowPhase:
        return next(iter(self.phases.values()))


def _workflow(
    name: str, description: str, model_preference: str, *phases: WorkflowPhase
) -> SkillWorkflow:
    return SkillWorkflow(
        name=name,
        description=description,
        model_preference=model_preference,
        phases=MappingProxyType({p.name: p for p in phases}),
    )


def _req(capability: str, preference: Optional[str] = None, **kwargs) -> CapabilityRequirement:
    return CapabilityRequirement(capability=capability, preference=preference, **kwargs)


SKILL_WORKFLOWS: Mapping[str, SkillWorkflow] = MappingProxyType(
    {
        "writer": _workflow(
            "writer",
            "Content creation for blog posts with a QA loop",
            "sonnet-grok-dual-with-qa",
            WorkflowPhase(
                name="research",
                primary=_req("text-understanding", "anthropic", min_context_length=100000),
                description="Gather system context from documentation",
            ),
            WorkflowPhase(
                name="writing",
                primary=_req("text-generation", "anthropic"),
                description="Create detailed blog post draft",
            ),
            WorkflowPhase(
                name="qa-review",
                primary=_req("text-reasoning", "x-ai"),
                description="QA review for technical accuracy",
            ),
            WorkflowPhase(
                name="tier-assignment",
                primary=_req("text-classification", "anthropic"),
                description="Classify content tier (public/members/paid)",
            ),
            WorkflowPhase(
                name="compare-quality",
                primary=_req("text-generation", "anthropic", reasoning_enabled=True),
                compare=_req("text-generation", "anthropic", reasoning_enabled=True),
                decision_criteria=DecisionCriteria(
                    condition="sonnet-confidence < 0.85",
                    action="compare-with-opus",
                ),
                description="Compare draft output with a stronger model for quality validation",
            ),
        ),
        "osint-research": _workflow(
            "osint-research",
            "Dual-source OSINT with web search and real-time verification",
            "sonnet-grok-dual",
            WorkflowPhase(
                name="scope-definition",
                primary=_req("text-understanding", "anthropic"),
                description="Define research target and objectives",
            ),
            WorkflowPhase(
                name="claude-search",
                primary=_req(
                    "text-generation-with-search", "anthropic", min_context_length=200000
                ),
                description="Execute comprehensive web search queries",
            ),
            WorkflowPhase(
                name="grok-intel",
                primary=_req("real-time-search", "x-ai"),
                description="Gather social media and real-time intelligence",
            ),
            WorkflowPhase(
                name="cross-validation",
                primary=_req("text-reasoning", "anthropic"),
                compare=_req("text-reasoning", "x-ai"),
                decision_criteria=DecisionCriteria(
                    condition="findings-conflict",
                    action="resolve-with-secondary-source",
                ),
                description="Compare and validate findings from both sources",
            ),
            WorkflowPhase(
                name="synthesis",
                primary=_req("text-reasoning", "anthropic"),
                description="Consolidate findings into comprehensive report",
            ),
        ),
        "security-testing": _workflow(
            "security-testing",
            "Penetration testing with phase-appropriate model selection",
            "sonnet-with-opus-fallback",
            WorkflowPhase(
                name="explore",
                primary=_req("text-understanding", "anthropic"),
                description="Understand scope and attack surface",
            ),
            WorkflowPhase(
                name="plan",
                primary=_req("text-reasoning", "anthropic"),
                description="Create test plan from attack surface",
            ),
            WorkflowPhase(
                name="code-attempt",
                primary=_req("code-generation", "anthropic"),
                compare=_req("code-reasoning", "anthropic"),
                decision_criteria=DecisionCriteria(
                    condition="stuck-on-exploit",
                    action="escalate-to-opus",
                ),
                description="Execute exploitation, escalating to a stronger model if stuck",
            ),
            WorkflowPhase(
                name="code-analysis",
                primary=_req("code-reasoning", "anthropic"),
                compare=_req("social-analysis", "x-ai"),
                description="Analyze exploitation, with social sources for novel techniques",
            ),
            WorkflowPhase(
                name="commit",
                primary=_req("text-reasoning", "anthropic", reasoning_enabled=True),
                description="Final validation and remediation guidance",
            ),
        ),
        "legal-compliance": _workflow(
            "legal-compliance",
            "Legal compliance and regulatory research",
            "opus-only",
            WorkflowPhase(
                name="research",
                primary=_req("text-reasoning", "anthropic", reasoning_enabled=True),
                description="Research applicable regulations",
            ),
            WorkflowPhase(
                name="analysis",
                primary=_req("text-reasoning", "anthropic", reasoning_enabled=True),
                description="Analyze compliance requirements",
            ),
            WorkflowPhase(
                name="recommendations",
                primary=_req("text-reasoning", "anthropic", reasoning_enabled=True),
                description="Provide compliance guidance with disclaimers",
            ),
        ),
    }
)

# Persona handled by each skill's workflow.
PERSONA_SKILLS: Mapping[str, str] = MappingProxyType(
    {
        "security": "security-testing",
        "writer": "writer",
        "advisor": "osint-research",
        "legal": "legal-compliance",
    }
)

# Routing keyword -> (skill, phase) it implies.
KEYWORD_PHASES: Mapping[str, Tuple[str, str]] = MappingProxyType(
    {
        "blog": ("writer", "writing"),
        "post": ("writer", "writing"),
        "article": ("writer", "writing"),
        "write": ("writer", "writing"),
        "documentation": ("writer", "research"),
        "newsletter": ("writer", "writing"),
        "osint": ("osint-research", "scope-definition"),
        "research": ("osint-research", "claude-search"),
        "intelligence": ("osint-research", "grok-intel"),
        "investigate": ("osint-research", "synthesis"),
        "pentest": ("security-testing", "explore"),
        "penetration test": ("security-testing", "explore"),
        "vulnerability": ("security-testing", "plan"),
        "exploit": ("security-testing", "code-attempt"),
        "security test": ("security-testing", "explore"),
        "gdpr": ("legal-compliance", "analysis"),
        "compliance": ("legal-compliance", "analysis"),
        "legal": ("legal-compliance", "research"),
        "contract": ("legal-compliance", "analysis"),
    }
)

# Pre-workflow resolution path: persona name -> requirement.
AGENT_REQUIREMENTS: Mapping[str, CapabilityRequirement] = MappingProxyType(
    {
        "security": _req("text-reasoning", "anthropic"),
        "writer": _req("text-generation", "anthropic"),
        "advisor": _req("real-time-search", "x-ai"),
        "legal": _req("text-reasoning", "anthropic", reasoning_enabled=True),
        "default": _req("text-generation", "anthropic"),
    }
)


def get_workflow(skill: str) -> Optional[SkillWorkflow]:
    return SKILL_WORKFLOWS.get(skill)


def get_phase_config(skill: str, phase: str) -> Optional[WorkflowPhase]:
    """Look up a phase of a skill; None when either is unknown."""
    workflow = get_workflow(skill)
    if workflow is None:
        return None
    return workflow.phases.get(phase)


def resolve_for_agent(agent_name: str) -> CapabilityRequirement:
    """Requirement for a persona when no workflow context is available."""
    return AGENT_REQUIREMENTS.get(agent_name, AGENT_REQUIREMENTS["default"])


def phase_for_keywords(skill: str, keywords: Iterable[str]) -> Optional[str]:
    """
    Pick the phase of `skill` implied by routing keywords.

    The first keyword mapped to a phase of this skill wins; otherwise the
    skill's first phase is returned. None for an unknown skill.
    """
    workflow = get_workflow(skill)
    if workflow is None:
        return None
    for keyword in keywords:
        target = KEYWORD_PHASES.get(keyword)
        if target is not None and target[0] == skill:
            return target[1]
    return workflow.first_phase.name


class WorkflowResolver:
    """
    Resolve (skill, phase) or persona identities to selected models.

    Precedence: a known (skill, phase) pair uses the phase's primary
    requirement; otherwise a persona name uses the persona fallback
    table; otherwise resolution fails with ConfigurationError.
    """

    def __init__(
        self,
        selector: ModelSelector,
        workflows: Optional[Mapping[str, SkillWorkflow]] = None,
    ) -> None:
        self.selector = selector
        self.workflows = SKILL_WORKFLOWS if workflows is None else workflows

    def get_phase_config(self, skill: str, phase: str) -> Optional[WorkflowPhase]:
        workflow = self.workflows.get(skill)
        if workflow is None:
            return None
        return workflow.phases.get(phase)

    def resolve_requirement(
        self,
        skill: Optional[str] = None,
        phase: Optional[str] = None,
        agent: Optional[str] = None,
    ) -> CapabilityRequirement:
        if skill and phase:
            phase_config = self.get_phase_config(skill, phase)
            if phase_config is not None:
                return phase_config.primary
            logger.debug("Unknown workflow phase %s/%s", skill, phase)
        if agent:
            return resolve_for_agent(agent)
        raise ConfigurationError(
            f"No suitable model found: no workflow phase or agent to resolve "
            f"(skill={skill!r}, phase={phase!r})"
        )

    def resolve_comparison(
        self, skill: str, phase: str
    ) -> Tuple[CapabilityRequirement, CapabilityRequirement]:
        phase_config = self.get_phase_config(skill, phase)
        if phase_config is None:
            raise ConfigurationError(f"Unknown workflow phase: {skill}/{phase}")
        if phase_config.compare is None:
            raise ConfigurationError(
                f"Workflow phase {skill}/{phase} defines no comparison model"
            )
        return phase_config.primary, phase_config.compare

    def select_model(
        self,
        skill: Optional[str] = None,
        phase: Optional[str] = None,
        agent: Optional[str] = None,
    ) -> Optional[ModelDescriptor]:
        """
        Resolve a requirement and select the cheapest satisfying model.

        Returns:
            The selected descriptor, or None when no catalog entry fits.

        Raises:
            ConfigurationError: If neither a known phase nor an agent is given.
            DiscoveryError: If the catalog cannot be obtained.
        """
        requirement = self.resolve_requirement(skill=skill, phase=phase, agent=agent)
        return self.selector.select_model(requirement)
