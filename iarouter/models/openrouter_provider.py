"""
OpenRouter provider implementation.

OpenRouter exposes an OpenAI-compatible Chat Completions API, so this
provider uses the official OpenAI SDK with a custom base URL. The model
is chosen per call from the discovered catalog.
"""

from typing import Any, Dict, List, Optional

import openai
from openai import OpenAI

from iarouter.models.base import (
    BaseProvider,
    ChatResponse,
    GenerationError,
    GenerationTimeoutError,
)

DEFAULT_BASE_URL = "https://openrouter.ai/api/v1"


class OpenRouterProvider(BaseProvider):
    """
    OpenRouterProvider wraps OpenRouter's chat completions endpoint.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        max_tokens: int = 1024,
        temperature: float = 0.7,
        timeout: float = 60.0,
        headers: Optional[Dict[str, str]] = None,
    ) -> None:
        super().__init__(name="openrouter")
        self.api_key = api_key
        self.base_url = base_url
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.timeout = timeout
        self.headers = headers or {}
        self._client = None

    @classmethod
    def from_config(cls, api_key: str, cfg: Dict[str, Any]) -> "OpenRouterProvider":
        headers: Dict[str, str] = {}
        if cfg.get("referer"):
            headers["HTTP-Referer"] = cfg["referer"]
        if cfg.get("title"):
            headers["X-Title"] = cfg["title"]
        return cls(
            api_key=api_key,
            base_url=cfg.get("base_url", DEFAULT_BASE_URL),
            max_tokens=int(cfg.get("max_tokens", 1024)),
            temperature=float(cfg.get("temperature", 0.7)),
            timeout=float(cfg.get("timeout", 60.0)),
            headers=headers,
        )

    def client(self) -> OpenAI:
        if self._client is None:
            self._client = OpenAI(
                api_key=self.api_key,
                base_url=self.base_url,
                timeout=self.timeout,
                max_retries=0,
                default_headers=self.headers,
            )
        return self._client

    def chat(self, model: str, messages: List[Dict[str, Any]]) -> ChatResponse:
        client = self.client()
        try:
            resp = client.chat.completions.create(
                model=model,
                messages=messages,
                max_tokens=self.max_tokens,
                temperature=self.temperature,
            )
        except openai.APITimeoutError as exc:
            raise GenerationTimeoutError(self.name, str(exc)) from exc
        except openai.OpenAIError as exc:
            raise GenerationError(self.name, str(exc)) from exc

        if not resp.choices:
            raise GenerationError(self.name, "response contained no choices")
        text = resp.choices[0].message.content or ""
        usage = resp.usage.model_dump() if resp.usage is not None else {}
        return ChatResponse(text=text, model=resp.model or model, usage=usage, raw=resp)
