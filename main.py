from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from typing import Any, Dict, Optional

from dotenv import load_dotenv

from iarouter.config import (
    ANTHROPIC,
    OPENROUTER,
    ProviderSelection,
    api_key_env,
    load_app_config,
    provider_config,
    select_provider,
)
from iarouter.core.agent import AgentDispatcher, PersonaAgent
from iarouter.core.prompts import PromptManager
from iarouter.core.router import KeywordRouter
from iarouter.core.workflows import PERSONA_SKILLS, WorkflowResolver, get_phase_config
from iarouter.models.anthropic_provider import AnthropicProvider
from iarouter.models.base import BaseProvider, ConfigurationError, IARouterError
from iarouter.models.capabilities import (
    CAPABILITY_DESCRIPTIONS,
    CapabilityMatcher,
    CapabilityRequirement,
)
from iarouter.models.catalog import ModelDiscovery
from iarouter.models.openrouter_provider import OpenRouterProvider
from iarouter.models.selector import ModelSelector

logger = logging.getLogger("iarouter")


# --------------------------------------------------------------------------------------
# Component builders
# --------------------------------------------------------------------------------------


def read_credentials(cfg: Dict[str, Any]) -> ProviderSelection:
    """
    Read the configured API key variables and apply the provider priority.
    """
    return select_provider(
        os.getenv(api_key_env(cfg, OPENROUTER)),
        os.getenv(api_key_env(cfg, ANTHROPIC)),
    )


def build_provider(cfg: Dict[str, Any], selection: ProviderSelection) -> BaseProvider:
    if selection.provider == OPENROUTER:
        return OpenRouterProvider.from_config(
            selection.api_key, provider_config(cfg, OPENROUTER)
        )
    return AnthropicProvider.from_config(selection.api_key, provider_config(cfg, ANTHROPIC))


def build_resolver(
    cfg: Dict[str, Any], selection: ProviderSelection
) -> Optional[WorkflowResolver]:
    """
    Build discovery, selector and resolver. Only the OpenRouter key gives
    access to the model catalog; the Anthropic fallback has none.
    """
    if not selection.uses_catalog:
        return None
    discovery = ModelDiscovery.from_config(selection.api_key, cfg.get("catalog") or {})
    return WorkflowResolver(ModelSelector(discovery))


def require_resolver(cfg: Dict[str, Any]) -> WorkflowResolver:
    resolver = build_resolver(cfg, read_credentials(cfg))
    if resolver is None:
        raise ConfigurationError(
            "Model catalog requires an OpenRouter API key "
            f"(set {api_key_env(cfg, OPENROUTER)})."
        )
    return resolver


def build_dispatcher(cfg: Dict[str, Any]) -> AgentDispatcher:
    """
    Build the router, persona agents and dispatcher from raw config dict.
    """
    selection = read_credentials(cfg)
    provider = build_provider(cfg, selection)
    resolver = build_resolver(cfg, selection)
    prompts = PromptManager(cfg.get("prompts", {}))
    agents = {
        persona: PersonaAgent(persona, provider, prompts, resolver)
        for persona in PERSONA_SKILLS
    }
    logger.info("Using provider %s", provider.name)
    return AgentDispatcher(KeywordRouter(), agents, prompts)


def configure_logging(cfg: Dict[str, Any], override: Optional[str]) -> None:
    level = override or (cfg.get("logging") or {}).get("level", "WARNING")
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.WARNING),
        format="[%(asctime)s] %(levelname)s %(name)s - %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )


# --------------------------------------------------------------------------------------
# Commands
# --------------------------------------------------------------------------------------


def emit(data: Any) -> None:
    print(json.dumps({"success": True, "data": data}, indent=2, ensure_ascii=False))


def requirement_from_args(args: argparse.Namespace) -> CapabilityRequirement:
    return CapabilityRequirement(
        capability=args.capability,
        preference=args.preference,
        min_context_length=args.min_context,
    )


def run_command(args: argparse.Namespace, cfg: Dict[str, Any]) -> None:
    router = KeywordRouter()

    if args.command == "route":
        decision = router.route(args.text)
        emit(decision.to_dict() if decision else None)
        return

    if args.command == "test-route":
        results = router.test_route(args.text)
        emit(
            {
                "query": args.text,
                "results": [r.to_dict() for r in results],
                "recommended": results[0].to_dict() if results else None,
            }
        )
        return

    if args.command == "rules":
        emit({"rules": [rule.to_dict() for rule in router.get_rules()]})
        return

    if args.command == "capabilities":
        emit(
            {
                tag: CAPABILITY_DESCRIPTIONS.get(tag, "")
                for tag in CapabilityMatcher().known_capabilities()
            }
        )
        return

    if args.command == "phase":
        phase = get_phase_config(args.skill, args.phase)
        emit(phase.to_dict() if phase else None)
        return

    if args.command == "models":
        discovery = require_resolver(cfg).selector.discovery
        grouped = discovery.list_by_provider()
        if args.provider:
            grouped = {args.provider: grouped.get(args.provider, [])}
        emit({name: [m.to_dict() for m in models] for name, models in grouped.items()})
        return

    if args.command == "select":
        resolver = require_resolver(cfg)
        if args.capability:
            descriptor = resolver.selector.select_model(requirement_from_args(args))
        else:
            descriptor = resolver.select_model(
                skill=args.skill, phase=args.phase, agent=args.agent
            )
        emit(descriptor.to_dict() if descriptor else None)
        return

    if args.command == "ask":
        dispatcher = build_dispatcher(cfg)
        emit(dispatcher.dispatch(args.text).to_dict())
        return

    if args.command == "compare":
        dispatcher = build_dispatcher(cfg)
        persona = args.agent
        if persona is None:
            persona = next(
                (p for p, skill in PERSONA_SKILLS.items() if skill == args.skill), None
            )
        agent = dispatcher.agents.get(persona) if persona else None
        if agent is None:
            raise ConfigurationError(f"No agent available for skill '{args.skill}'.")
        emit(agent.compare(args.text, skill=args.skill, phase=args.phase).to_dict())
        return

    # Should never reach here
    raise SystemExit(f"Unknown command: {args.command!r}")


# --------------------------------------------------------------------------------------
# CLI
# --------------------------------------------------------------------------------------


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Keyword router and capability-based model selector for persona agents."
    )
    parser.add_argument(
        "--config",
        required=True,
        help="Path to config.yaml file.",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Override logging.level from the config (e.g. DEBUG, INFO).",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    route_parser = subparsers.add_parser("route", help="Route text to a persona.")
    route_parser.add_argument("text", help="Message to route.")

    test_parser = subparsers.add_parser(
        "test-route", help="Show every persona's score for a message."
    )
    test_parser.add_argument("text", help="Message to score.")

    subparsers.add_parser("rules", help="List the keyword routing rules.")
    subparsers.add_parser("capabilities", help="List the known capability tags.")

    phase_parser = subparsers.add_parser(
        "phase", help="Show the model requirements of a workflow phase."
    )
    phase_parser.add_argument("skill", help="Skill name (e.g., writer, security-testing).")
    phase_parser.add_argument("phase", help="Phase name within the skill.")

    models_parser = subparsers.add_parser(
        "models", help="List catalog models grouped by provider."
    )
    models_parser.add_argument(
        "--provider",
        default=None,
        help="Only list models of this provider prefix (e.g., anthropic).",
    )

    select_parser = subparsers.add_parser(
        "select", help="Select the cheapest model for a requirement."
    )
    select_parser.add_argument(
        "--capability",
        default=None,
        help="Capability tag (e.g., text-reasoning). Takes precedence over workflow args.",
    )
    select_parser.add_argument(
        "--preference",
        default=None,
        help="Provider prefix the model id must start with.",
    )
    select_parser.add_argument(
        "--min-context",
        type=int,
        default=None,
        help="Minimum context length in tokens.",
    )
    select_parser.add_argument("--skill", default=None, help="Workflow skill name.")
    select_parser.add_argument("--phase", default=None, help="Workflow phase name.")
    select_parser.add_argument(
        "--agent",
        default=None,
        help="Persona name used when no skill/phase is given.",
    )

    ask_parser = subparsers.add_parser(
        "ask", help="Route a message and answer it with the chosen persona."
    )
    ask_parser.add_argument("text", help="User message.")

    compare_parser = subparsers.add_parser(
        "compare",
        help="Answer with a phase's primary and comparison models side by side.",
    )
    compare_parser.add_argument("--skill", required=True, help="Workflow skill name.")
    compare_parser.add_argument("--phase", required=True, help="Workflow phase name.")
    compare_parser.add_argument(
        "--agent",
        default=None,
        help="Persona whose prompt is used (defaults to the skill's persona).",
    )
    compare_parser.add_argument("text", help="User message.")

    return parser.parse_args(argv)


# --------------------------------------------------------------------------------------
# main()
# --------------------------------------------------------------------------------------


def main(argv: Optional[list[str]] = None) -> int:
    # Load environment variables from .env (if present)
    load_dotenv()

    args = parse_args(sys.argv[1:] if argv is None else argv)

    # Load config from YAML before building anything
    config = load_app_config(args.config)
    configure_logging(config, args.log_level)

    try:
        run_command(args, config)
    except IARouterError as exc:
        logger.error("%s: %s", exc.code, exc)
        print(
            json.dumps(
                {"success": False, "error": {"code": exc.code, "message": str(exc)}},
                indent=2,
            )
        )
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
