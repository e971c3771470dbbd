"""
Anthropic provider implementation.

Used when no OpenRouter credential is configured. It has no catalog to
select from, so every request goes to a single configured Claude model.
OpenAI-style chat messages are translated into the Anthropic format,
with system messages lifted into the `system` parameter.
"""

from typing import Any, Dict, List

import anthropic

from iarouter.models.base import (
    BaseProvider,
    ChatResponse,
    GenerationError,
    GenerationTimeoutError,
)

DEFAULT_MODEL = "claude-opus-4-5-20251101"


class AnthropicProvider(BaseProvider):
    """
    AnthropicProvider wraps the Claude messages API via the official anthropic SDK.
    """

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_MODEL,
        max_tokens: int = 1024,
        timeout: float = 60.0,
    ) -> None:
        super().__init__(name="anthropic")
        self.api_key = api_key
        self.default_model = model
        self.max_tokens = max_tokens
        self.timeout = timeout
        self._client = None

    @classmethod
    def from_config(cls, api_key: str, cfg: Dict[str, Any]) -> "AnthropicProvider":
        return cls(
            api_key=api_key,
            model=cfg.get("model", DEFAULT_MODEL),
            max_tokens=int(cfg.get("max_tokens", 1024)),
            timeout=float(cfg.get("timeout", 60.0)),
        )

    def client(self) -> anthropic.Anthropic:
        if self._client is None:
            self._client = anthropic.Anthropic(
                api_key=self.api_key, timeout=self.timeout, max_retries=0
            )
        return self._client

    def chat(self, model: str, messages: List[Dict[str, Any]]) -> ChatResponse:
        client = self.client()
        # Convert OpenAI chat format to Anthropic format
        system_prompt = ""
        converted: List[Dict[str, Any]] = []
        for msg in messages:
            role = msg.get("role")
            content = msg.get("content", "")
            if role == "system":
                system_prompt += content + "\n"
            elif role == "assistant":
                converted.append({"role": "assistant", "content": content})
            else:
                converted.append({"role": "user", "content": content})
        try:
            resp = client.messages.create(
                model=model,
                system=system_prompt.strip(),
                messages=converted,
                max_tokens=self.max_tokens,
            )
        except anthropic.APITimeoutError as exc:
            raise GenerationTimeoutError(self.name, str(exc)) from exc
        except anthropic.AnthropicError as exc:
            raise GenerationError(self.name, str(exc)) from exc

        parts = []
        for block in resp.content:
            if getattr(block, "type", "") == "text":
                parts.append(block.text)
        usage = resp.usage.model_dump() if resp.usage is not None else {}
        return ChatResponse(text="\n".join(parts), model=resp.model, usage=usage, raw=resp)
