"""Anthropic (Claude) completion provider."""

import time
from typing import Any

from anthropic import AsyncAnthropic

from forkchat.providers.base import GenerationRequest, GenerationResult, LLMProvider


class AnthropicProvider(LLMProvider):
    """Completion provider backed by Anthropic's Messages API."""

    suggested_models = (
        "claude-sonnet-4-5-20250929",
        "claude-opus-4-1-20250805",
        "claude-haiku-4-5-20251001",
    )

    def __init__(self, client: AsyncAnthropic) -> None:
        self._client = client

    @property
    def name(self) -> str:
        return "anthropic"

    async def generate(self, request: GenerationRequest) -> GenerationResult:
        start = time.monotonic()
        response = await self._client.messages.create(**self._build_params(request))
        latency_ms = int((time.monotonic() - start) * 1000)

        return GenerationResult(
            content="".join(
                block.text for block in response.content if block.type == "text"
            ),
            model=response.model,
            finish_reason=response.stop_reason,
            usage={
                "input_tokens": response.usage.input_tokens,
                "output_tokens": response.usage.output_tokens,
            },
            latency_ms=latency_ms,
        )

    @staticmethod
    def _build_params(request: GenerationRequest) -> dict[str, Any]:
        """kwargs for client.messages.create()."""
        params: dict[str, Any] = {
            "model": request.model,
            "max_tokens": request.max_tokens,
            "messages": [
                {"role": m["role"], "content": m["content"]} for m in request.messages
            ],
        }
        if request.system_prompt:
            params["system"] = request.system_prompt
        if request.temperature is not None:
            params["temperature"] = request.temperature
        return params
