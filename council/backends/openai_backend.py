"""OpenAI-compatible debate backend (OpenAI, xAI, DeepSeek) using openai SDK."""

import asyncio
import logging
import os
import time

from openai import AsyncOpenAI

from config.config_loader import ReviewerConfig
from council.backends.base import BackendError, DebateBackend
from council.models import DebateContext
from council.prompts import SYSTEM_PROMPT, render_debate_prompt

logger = logging.getLogger(__name__)


class OpenAIBackend(DebateBackend):
    """Chat-completions reviewer; base_url selects a compatible provider."""

    def __init__(self, config: ReviewerConfig) -> None:
        self._config = config
        api_key = os.environ.get(config.api_key_env, "").strip()
        if not api_key:
            raise BackendError(config.name, f"Missing API key: {config.api_key_env}")
        if config.base_url:
            self._client = AsyncOpenAI(api_key=api_key, base_url=config.base_url)
        else:
            self._client = AsyncOpenAI(api_key=api_key)

    def name(self) -> str:
        return self._config.name

    async def execute(self, context: DebateContext, timeout: float | None = None) -> str:
        start = time.monotonic()
        try:
            response = await asyncio.wait_for(
                self._client.chat.completions.create(
                    model=self._config.model,
                    messages=[
                        {"role": "system", "content": SYSTEM_PROMPT},
                        {"role": "user", "content": render_debate_prompt(context)},
                    ],
                    max_tokens=self._config.max_tokens,
                ),
                timeout=timeout,
            )
        except TimeoutError as exc:
            raise BackendError(self._config.name, f"Request timed out after {timeout}s") from exc
        except Exception as exc:
            raise BackendError(self._config.name, f"API call failed: {exc}") from exc

        choice = response.choices[0] if response.choices else None
        if not choice or not choice.message.content:
            raise BackendError(self._config.name, "Empty response content")

        logger.info(
            "OpenAI-compatible %s round %d at %s: %.2fs",
            self._config.name,
            context.round_number,
            context.location,
            time.monotonic() - start,
        )
        return choice.message.content
