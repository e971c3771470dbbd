"""
Tests for the OpenRouter and Anthropic providers with stubbed SDK clients.
"""

from types import SimpleNamespace

import anthropic
import httpx
import openai
import pytest

from iarouter.models.anthropic_provider import DEFAULT_MODEL, AnthropicProvider
from iarouter.models.base import GenerationError, GenerationTimeoutError
from iarouter.models.openrouter_provider import OpenRouterProvider

REQUEST = httpx.Request("POST", "https://api.test/v1/chat")


class Recorder:
    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.kwargs = None

    def create(self, **kwargs):
        self.kwargs = kwargs
        if self.error is not None:
            raise self.error
        return self.result


class Usage:
    def __init__(self, **values):
        self.values = values

    def model_dump(self):
        return dict(self.values)


def _openrouter(recorder):
    provider = OpenRouterProvider.from_config(
        "sk-or", {"max_tokens": 256, "temperature": 0.2, "title": "IA"}
    )
    provider._client = SimpleNamespace(chat=SimpleNamespace(completions=recorder))
    return provider


def _anthropic(recorder):
    provider = AnthropicProvider.from_config("sk-ant", {})
    provider._client = SimpleNamespace(messages=recorder)
    return provider


def test_openrouter_from_config():
    provider = OpenRouterProvider.from_config(
        "sk-or", {"referer": "https://example.org", "title": "IA"}
    )
    assert provider.uses_catalog
    assert provider.headers == {"HTTP-Referer": "https://example.org", "X-Title": "IA"}
    assert provider.base_url == "https://openrouter.ai/api/v1"


def test_openrouter_chat_returns_text_and_usage():
    resp = SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content="hi"))],
        model="x-ai/grok-4",
        usage=Usage(prompt_tokens=5, completion_tokens=1),
    )
    recorder = Recorder(result=resp)
    out = _openrouter(recorder).chat("x-ai/grok-4", [{"role": "user", "content": "hey"}])
    assert out.text == "hi"
    assert out.model == "x-ai/grok-4"
    assert out.usage == {"prompt_tokens": 5, "completion_tokens": 1}
    assert recorder.kwargs["max_tokens"] == 256
    assert recorder.kwargs["temperature"] == 0.2


def test_openrouter_timeout_maps_to_generation_timeout():
    recorder = Recorder(error=openai.APITimeoutError(request=REQUEST))
    with pytest.raises(GenerationTimeoutError) as excinfo:
        _openrouter(recorder).chat("a/b", [])
    assert excinfo.value.code == "GENERATION_TIMEOUT"
    assert excinfo.value.provider == "openrouter"


def test_openrouter_error_keeps_underlying_message():
    recorder = Recorder(error=openai.APIConnectionError(message="boom", request=REQUEST))
    with pytest.raises(GenerationError, match=r"Model API error \(openrouter\): boom"):
        _openrouter(recorder).chat("a/b", [])


def test_anthropic_uses_static_model_and_lifts_system_prompt():
    resp = SimpleNamespace(
        content=[SimpleNamespace(type="text", text="answer")],
        model=DEFAULT_MODEL,
        usage=Usage(input_tokens=3, output_tokens=1),
    )
    recorder = Recorder(result=resp)
    provider = _anthropic(recorder)
    assert not provider.uses_catalog
    out = provider.chat(
        provider.default_model,
        [
            {"role": "system", "content": "Be a lawyer."},
            {"role": "user", "content": "Is this ok?"},
        ],
    )
    assert out.text == "answer"
    assert recorder.kwargs["model"] == DEFAULT_MODEL
    assert recorder.kwargs["system"] == "Be a lawyer."
    assert recorder.kwargs["messages"] == [{"role": "user", "content": "Is this ok?"}]


def test_anthropic_errors_are_tagged():
    recorder = Recorder(error=anthropic.APITimeoutError(request=REQUEST))
    with pytest.raises(GenerationTimeoutError):
        _anthropic(recorder).chat(DEFAULT_MODEL, [])

    recorder = Recorder(error=anthropic.APIConnectionError(message="refused", request=REQUEST))
    with pytest.raises(GenerationError) as excinfo:
        _anthropic(recorder).chat(DEFAULT_MODEL, [])
    assert excinfo.value.provider == "anthropic"
    assert "refused" in str(excinfo.value)
