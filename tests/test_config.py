"""
Tests for YAML config loading and the provider credential priority.
"""

from pathlib import Path

import pytest

from iarouter.config import (
    ANTHROPIC,
    OPENROUTER,
    api_key_env,
    load_app_config,
    select_provider,
)
from iarouter.models.base import ConfigurationError


def test_load_app_config(tmp_path: Path):
    cfg = tmp_path / "config.yaml"
    cfg.write_text(
        """
catalog:
  ttl_seconds: 60
providers:
  openrouter:
    api_key_env: MY_OR_KEY
""".strip(),
        encoding="utf-8",
    )
    data = load_app_config(str(cfg))
    assert data["catalog"]["ttl_seconds"] == 60
    assert api_key_env(data, OPENROUTER) == "MY_OR_KEY"
    assert api_key_env(data, ANTHROPIC) == "ANTHROPIC_API_KEY"


def test_load_app_config_errors(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        load_app_config(str(tmp_path / "missing.yaml"))
    bad = tmp_path / "list.yaml"
    bad.write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_app_config(str(bad))


def test_empty_config_is_empty_dict(tmp_path: Path):
    empty = tmp_path / "empty.yaml"
    empty.write_text("", encoding="utf-8")
    assert load_app_config(str(empty)) == {}


def test_openrouter_preferred_over_anthropic():
    selection = select_provider("sk-or", "sk-ant")
    assert selection.provider == OPENROUTER
    assert selection.api_key == "sk-or"
    assert selection.uses_catalog


def test_anthropic_used_only_without_openrouter():
    selection = select_provider(None, "sk-ant")
    assert selection.provider == ANTHROPIC
    assert not selection.uses_catalog
    assert select_provider("", "sk-ant").provider == ANTHROPIC


def test_no_credentials_is_configuration_error():
    with pytest.raises(ConfigurationError) as excinfo:
        select_provider(None, None)
    assert excinfo.value.code == "CONFIGURATION_ERROR"
