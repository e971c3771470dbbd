"""
High-level agent implementations.

Defines:
- PersonaAgent: wraps a question in a persona system prompt, picks a
  model for it and sends it to the configured provider.
- AgentDispatcher: routes free text to a persona and delegates to the
  matching PersonaAgent, answering with the director help text when no
  persona matches.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from iarouter.core.prompts import PromptManager
from iarouter.core.router import KeywordRouter
from iarouter.core.workflows import PERSONA_SKILLS, WorkflowResolver, phase_for_keywords
from iarouter.models.base import BaseProvider, ChatResponse, ConfigurationError

logger = logging.getLogger(__name__)

DIRECTOR = "director"


@dataclass
class AgentReply:
    persona: str
    model: str
    text: str
    usage: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "persona": self.persona,
            "model": self.model,
            "text": self.text,
            "usage": self.usage,
        }


@dataclass
class ComparisonResult:
    skill: str
    phase: str
    primary: AgentReply
    secondary: AgentReply

    def to_dict(self) -> Dict[str, Any]:
        return {
            "skill": self.skill,
            "phase": self.phase,
            "primary": self.primary.to_dict(),
            "secondary": self.secondary.to_dict(),
        }


@dataclass
class DispatchResult:
    persona: str
    confidence: float
    message: str
    reason: Optional[str] = None
    skill: Optional[str] = None
    phase: Optional[str] = None
    model: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "agent": self.persona,
            "routing_confidence": self.confidence,
            "reason": self.reason,
            "skill": self.skill,
            "phase": self.phase,
            "model": self.model,
            "message": self.message,
        }


class PersonaAgent:
    """
    Single-persona agent.

    With a catalog-backed provider (OpenRouter) the model is selected per
    request through the WorkflowResolver; with a fixed-model provider
    (Anthropic fallback) the provider's default model is always used.
    """

    def __init__(
        self,
        persona: str,
        provider: BaseProvider,
        prompts: PromptManager,
        resolver: Optional[WorkflowResolver] = None,
    ) -> None:
        self.persona = persona
        self.provider = provider
        self.prompts = prompts
        self.resolver = resolver

    def _require_resolver(self) -> WorkflowResolver:
        if self.resolver is None:
            raise ConfigurationError(
                f"Provider '{self.provider.name}' has no model catalog to select from."
            )
        return self.resolver

    def resolve_model(
        self, skill: Optional[str] = None, phase: Optional[str] = None
    ) -> str:
        """
        Return the model id to use for this persona.

        Raises:
            ConfigurationError: If no catalog model satisfies the resolved
                requirement.
            DiscoveryError: If the catalog cannot be obtained.
        """
        if not self.provider.uses_catalog:
            return self.provider.default_model
        resolver = self._require_resolver()
        descriptor = resolver.select_model(skill=skill, phase=phase, agent=self.persona)
        if descriptor is None:
            requirement = resolver.resolve_requirement(
                skill=skill, phase=phase, agent=self.persona
            )
            raise ConfigurationError(
                f"No suitable model found for {self.persona} ({requirement.capability})"
            )
        logger.info(
            "Persona %s (skill=%s, phase=%s) -> %s",
            self.persona,
            skill,
            phase,
            descriptor.id,
        )
        return descriptor.id

    def _messages(self, question: str) -> List[Dict[str, Any]]:
        return [
            {"role": "system", "content": self.prompts.get_system_prompt(self.persona)},
            {"role": "user", "content": question},
        ]

    def _generate(self, model: str, question: str) -> AgentReply:
        response: ChatResponse = self.provider.chat(
            model=model, messages=self._messages(question)
        )
        return AgentReply(
            persona=self.persona,
            model=response.model,
            text=response.text,
            usage=response.usage,
        )

    def ask(
        self,
        question: str,
        skill: Optional[str] = None,
        phase: Optional[str] = None,
    ) -> AgentReply:
        """
        Send a single question to the selected model and return the reply.
        """
        return self._generate(self.resolve_model(skill=skill, phase=phase), question)

    def compare(self, question: str, skill: str, phase: str) -> ComparisonResult:
        """
        Answer the same question with the phase's primary and comparison
        models in parallel.

        Criteria attached to the phase are not evaluated here.

        Raises:
            ConfigurationError: If the phase has no comparison requirement,
                the provider has no catalog, or either requirement has no
                satisfying model.
        """
        resolver = self._require_resolver()
        if not self.provider.uses_catalog:
            raise ConfigurationError(
                f"Provider '{self.provider.name}' cannot compare models."
            )
        primary_req, compare_req = resolver.resolve_comparison(skill, phase)
        primary, secondary = resolver.selector.compare_models(primary_req, compare_req)
        for descriptor, requirement in ((primary, primary_req), (secondary, compare_req)):
            if descriptor is None:
                raise ConfigurationError(
                    f"No suitable model found for {skill}/{phase} ({requirement.capability})"
                )

        with ThreadPoolExecutor(max_workers=2) as pool:
            first = pool.submit(self._generate, primary.id, question)
            second = pool.submit(self._generate, secondary.id, question)
            return ComparisonResult(
                skill=skill,
                phase=phase,
                primary=first.result(),
                secondary=second.result(),
            )


class AgentDispatcher:
    """
    Route free text to a persona and delegate to its agent.
    """

    def __init__(
        self,
        router: KeywordRouter,
        agents: Dict[str, PersonaAgent],
        prompts: PromptManager,
    ) -> None:
        self.router = router
        self.agents = agents
        self.prompts = prompts

    def workflow_context(
        self, persona: str, matched_keywords: Tuple[str, ...]
    ) -> Tuple[Optional[str], Optional[str]]:
        skill = PERSONA_SKILLS.get(persona)
        if skill is None:
            return None, None
        return skill, phase_for_keywords(skill, matched_keywords)

    def dispatch(self, text: str) -> DispatchResult:
        decision = self.router.route(text)
        if decision is None:
            logger.info("No persona matched; answering as %s", DIRECTOR)
            return DispatchResult(
                persona=DIRECTOR,
                confidence=0.0,
                message=self.prompts.get_director_message(),
            )

        agent = self.agents.get(decision.persona)
        if agent is None:
            raise ConfigurationError(f"No agent registered for '{decision.persona}'.")

        skill, phase = self.workflow_context(decision.persona, decision.matched_keywords)
        reply = agent.ask(text, skill=skill, phase=phase)
        return DispatchResult(
            persona=decision.persona,
            confidence=decision.confidence,
            message=reply.text,
            reason=decision.reason,
            skill=skill,
            phase=phase,
            model=reply.model,
        )

