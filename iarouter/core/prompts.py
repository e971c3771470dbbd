"""
Prompt management.

This module provides a PromptManager that reads persona system prompts
from the loaded YAML configuration (under `prompts`) and falls back to
built-in defaults for any persona not configured there.
"""

from typing import Dict, List

DEFAULT_PROMPTS: Dict[str, str] = {
    "security": (
        "You are a security testing specialist agent. You help with penetration "
        "testing, vulnerability assessment and security advisory work. Stay within "
        "the authorized scope, explain methodology step by step, and always include "
        "remediation guidance with every finding."
    ),
    "writer": (
        "You are a technical writing agent. You draft blog posts, documentation, "
        "tutorials and newsletters. Write clearly for a technical audience, use "
        "concrete examples, and structure long pieces with headings."
    ),
    "advisor": (
        "You are a research and advisory agent. You help with OSINT research, job "
        "and career analysis, and data-driven recommendations. Cite what your "
        "conclusions rest on and separate facts from inference."
    ),
    "legal": (
        "You are a legal and compliance research agent. You summarize regulations, "
        "privacy requirements and contract terms. You are not a lawyer: state that "
        "your output is informational and recommend professional review."
    ),
}

DIRECTOR_CAPABILITIES: List[str] = [
    "**Security:** Penetration testing, bug bounties, vulnerability assessment",
    "**Writing:** Blog posts, documentation, technical content, newsletters",
    "**Research:** OSINT, job analysis, career guidance, data analysis",
    "**Legal:** Compliance review, contract analysis, privacy guidance",
]


class PromptManager:
    """
    Store and access persona system prompts.

    Prompts can be overridden per persona in the YAML file under the
    `prompts` key, e.g. `prompts: {writer: "..."}`.
    """

    def __init__(self, prompts_cfg: Dict) -> None:
        self.prompts_cfg = prompts_cfg or {}

    def get_system_prompt(self, persona: str) -> str:
        prompt = self.prompts_cfg.get(persona) or DEFAULT_PROMPTS.get(persona)
        if prompt is None:
            raise KeyError(f"No system prompt for persona '{persona}'.")
        return prompt

    def get_director_message(self) -> str:
        """Reply used when a message cannot be routed to any persona."""
        if self.prompts_cfg.get("director"):
            return self.prompts_cfg["director"]
        lines = [
            "I need more context to help you. What would you like help with?",
            "",
            "**I can assist with:**",
        ]
        lines.extend(f"- {line}" for line in DIRECTOR_CAPABILITIES)
        lines.append("")
        lines.append(
            "Please describe what you need, and I'll route you to the right specialist."
        )
        return "\n".join(lines)
