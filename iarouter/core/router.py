"""
Keyword routing logic.

The router decides which persona (security, writer, advisor, legal)
should handle a user message. Each rule adds a flat 10 points per
distinct keyword found in the lower-cased message; the persona with the
strictly highest total wins and ties go to the rule registered first.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

KEYWORD_SCORE = 10
MAX_SCORE = 100
REASON_KEYWORDS = 3


@dataclass(frozen=True)
class RoutingRule:
    """Immutable association of keywords with a persona."""

    persona: str
    keywords: Tuple[str, ...]

    def __post_init__(self) -> None:
        # Lower-case and drop duplicates while keeping declaration order.
        normalized = tuple(dict.fromkeys(k.lower() for k in self.keywords))
        object.__setattr__(self, "keywords", normalized)

    def to_dict(self) -> Dict[str, object]:
        return {"persona": self.persona, "keywords": list(self.keywords)}


@dataclass(frozen=True)
class RoutingDecision:
    persona: str
    confidence: float
    reason: str
    matched_keywords: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, object]:
        return {
            "persona": self.persona,
            "confidence": self.confidence,
            "reason": self.reason,
            "matched_keywords": list(self.matched_keywords),
        }


@dataclass(frozen=True)
class RouteScore:
    """Per-persona scoring row returned by `KeywordRouter.test_route`."""

    persona: str
    score: int
    matched_keywords: Tuple[str, ...]

    def to_dict(self) -> Dict[str, object]:
        return {
            "persona": self.persona,
            "score": self.score,
            "matched_keywords": list(self.matched_keywords),
        }


DEFAULT_RULES: Tuple[RoutingRule, ...] = (
    RoutingRule(
        persona="security",
        keywords=(
            "pentest",
            "penetration test",
            "penetration testing",
            "hackerone",
            "bug bounty",
            "vulnerability",
            "security test",
            "security assessment",
            "red team",
            "exploitation",
            "scanner",
            "nmap",
            "burp",
            "cve",
            "exploit",
        ),
    ),
    RoutingRule(
        persona="writer",
        keywords=(
            "blog",
            "write",
            "post",
            "article",
            "content",
            "ghost",
            "cms",
            "newsletter",
            "documentation",
            "technical writing",
            "tutorial",
            "guide",
            "how-to",
        ),
    ),
    RoutingRule(
        persona="advisor",
        keywords=(
            "research",
            "investigate",
            "osint",
            "intelligence",
            "find",
            "search",
            "analyze data",
            "job analysis",
            "job posting",
            "career",
            "resume",
            "strengths",
            "cliftonstrengths",
        ),
    ),
    RoutingRule(
        persona="legal",
        keywords=(
            "legal",
            "compliance",
            "gdpr",
            "contract",
            "license",
            "law",
            "regulation",
            "privacy",
            "tos",
            "terms",
        ),
    ),
)


class KeywordRouter:
    """
    KeywordRouter maps free text to a persona using a fixed rule table.

    The rule table is read-only after construction, so a single router
    can be shared between threads.
    """

    def __init__(self, rules: Optional[Iterable[RoutingRule]] = None) -> None:
        self._rules: Tuple[RoutingRule, ...] = tuple(
            DEFAULT_RULES if rules is None else rules
        )

    def _score(self, text: str) -> Dict[str, List[str]]:
        """Matched keywords per persona, personas in rule order."""
        lowered = text.lower()
        matches: Dict[str, List[str]] = {}
        for rule in self._rules:
            hits = matches.setdefault(rule.persona, [])
            for keyword in rule.keywords:
                if keyword in lowered:
                    hits.append(keyword)
        return matches

    def route(self, text: str) -> Optional[RoutingDecision]:
        """
        Route a message to the best-scoring persona.

        Args:
            text: Raw user message.

        Returns:
            A RoutingDecision, or None when no keyword matched.
        """
        best_persona: Optional[str] = None
        best_hits: List[str] = []
        best_score = 0
        for persona, hits in self._score(text).items():
            score = len(hits) * KEYWORD_SCORE
            if score > best_score:
                best_persona, best_hits, best_score = persona, hits, score

        if best_persona is None:
            return None

        confidence = min(best_score / MAX_SCORE, 1.0)
        reason = "Matched keywords: " + ", ".join(best_hits[:REASON_KEYWORDS])
        return RoutingDecision(
            persona=best_persona,
            confidence=confidence,
            reason=reason,
            matched_keywords=tuple(best_hits),
        )

    def test_route(self, text: str) -> List[RouteScore]:
        """
        Score every persona for debugging.

        Returns:
            Personas with a nonzero score, highest first. Equal scores
            keep rule order.
        """
        results = [
            RouteScore(
                persona=persona,
                score=len(hits) * KEYWORD_SCORE,
                matched_keywords=tuple(hits),
            )
            for persona, hits in self._score(text).items()
            if hits
        ]
        return sorted(results, key=lambda r: r.score, reverse=True)

    def get_rules(self) -> Tuple[RoutingRule, ...]:
        return self._rules
