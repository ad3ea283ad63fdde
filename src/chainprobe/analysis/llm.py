"""Anthropic-backed LLM collaborator."""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, Optional

from anthropic import AsyncAnthropic

from chainprobe.analysis.prompts import CompletionOptions
from chainprobe.config.settings import Settings
from chainprobe.core.exceptions import LLMConfigError

logger = logging.getLogger("chainprobe.llm")


def _message_text(message: Any) -> str:
    parts = []
    for block in getattr(message, "content", None) or []:
        if getattr(block, "type", None) == "text":
            parts.append(getattr(block, "text", "") or "")
    return "".join(parts).strip()


class AnthropicLLMClient:
    """Implements the LLMClient protocol over the Anthropic messages API.

    Usage:
        llm = AnthropicLLMClient.from_settings(Settings())
        text = await llm.complete("Summarize...", WORKFLOW_SUMMARY_OPTIONS)
    """

    def __init__(
        self,
        model: str,
        api_key: Optional[str] = None,
        client: Optional[Any] = None,
    ):
        if not model:
            raise LLMConfigError("Missing ANTHROPIC_MODEL.")
        if client is None:
            if not api_key:
                raise LLMConfigError("Missing ANTHROPIC_API_KEY.")
            client = AsyncAnthropic(api_key=api_key)
        self.model = model
        self._client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> "AnthropicLLMClient":
        return cls(model=settings.anthropic_model or "", api_key=settings.anthropic_api_key)

    async def complete(self, prompt: str, options: Optional[CompletionOptions] = None) -> str:
        options = options or CompletionOptions()
        payload: Dict[str, Any] = {
            "model": self.model,
            "max_tokens": options.max_tokens,
            "temperature": options.temperature,
            "messages": [{"role": "user", "content": prompt}],
        }
        if options.system:
            payload["system"] = options.system

        start = time.perf_counter()
        message = await self._client.messages.create(**payload)
        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.info("Anthropic completion ms=%.1f prompt_chars=%d", elapsed_ms, len(prompt))

        text = _message_text(message)
        if not text:
            raise RuntimeError("Anthropic returned empty content.")
        return text
