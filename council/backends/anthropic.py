"""Anthropic Claude debate backend using anthropic SDK with native async."""

import asyncio
import logging
import os
import time

import anthropic as anthropic_sdk

from config.config_loader import ReviewerConfig
from council.backends.base import BackendError, DebateBackend
from council.models import DebateContext
from council.prompts import SYSTEM_PROMPT, render_debate_prompt

logger = logging.getLogger(__name__)


class AnthropicBackend(DebateBackend):
    """Claude reviewer via anthropic SDK."""

    def __init__(self, config: ReviewerConfig) -> None:
        self._config = config
        api_key = os.environ.get(config.api_key_env, "").strip()
        if not api_key:
            raise BackendError(config.name, f"Missing API key: {config.api_key_env}")
        self._client = anthropic_sdk.AsyncAnthropic(api_key=api_key)

    def name(self) -> str:
        return self._config.name

    async def execute(self, context: DebateContext, timeout: float | None = None) -> str:
        start = time.monotonic()
        try:
            response = await asyncio.wait_for(
                self._client.messages.create(
                    model=self._config.model,
                    max_tokens=self._config.max_tokens,
                    system=SYSTEM_PROMPT,
                    messages=[{"role": "user", "content": render_debate_prompt(context)}],
                ),
                timeout=timeout,
            )
        except TimeoutError as exc:
            raise BackendError(self._config.name, f"Request timed out after {timeout}s") from exc
        except Exception as exc:
            raise BackendError(self._config.name, f"API call failed: {exc}") from exc

        text_blocks = [b.text for b in response.content or [] if b.type == "text"]
        if not text_blocks:
            raise BackendError(self._config.name, "No text blocks in response")

        logger.info(
            "Anthropic %s round %d at %s: %.2fs",
            self._config.name,
            context.round_number,
            context.location,
            time.monotonic() - start,
        )
        return "\n".join(text_blocks)
