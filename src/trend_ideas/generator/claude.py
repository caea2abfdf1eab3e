"""Text generation using Anthropic's Claude API."""

import logging
import os

import anthropic
from anthropic.types import TextBlock

from trend_ideas.errors import GenerationError

logger = logging.getLogger(__name__)

DEFAULT_SYSTEM_PROMPT = """\
You are a trend research and content strategy assistant. Follow the output \
format requested in each message exactly. When JSON is requested, return \
ONLY the JSON object, with no markdown fences and no commentary.\
"""


class ClaudeTextGenerator:
    """Generate text with Claude.

    Args:
        model: Anthropic model ID to use.
        api_key: API key (defaults to CLAUDE_API_KEY env var).
        max_tokens: Maximum tokens per response.
        temperature: Sampling temperature.
        system_prompt: System prompt sent with every request.
    """

    def __init__(
        self,
        *,
        model: str = "claude-haiku-4-5-20251001",
        api_key: str | None = None,
        max_tokens: int = 2048,
        temperature: float = 0.2,
        system_prompt: str | None = None,
    ) -> None:
        self._model = model
        resolved_key = api_key or os.environ.get("CLAUDE_API_KEY")
        self._client = anthropic.AsyncAnthropic(api_key=resolved_key)
        self._max_tokens = max_tokens
        self._temperature = temperature
        self._system_prompt = system_prompt or DEFAULT_SYSTEM_PROMPT

    async def generate(self, prompt: str) -> str:
        try:
            response = await self._client.messages.create(
                model=self._model,
                max_tokens=self._max_tokens,
                temperature=self._temperature,
                system=self._system_prompt,
                messages=[{"role": "user", "content": prompt}],
            )
        except anthropic.APIError as e:
            raise GenerationError(f"Claude request failed: {e}") from e

        text = "".join(block.text for block in response.content if isinstance(block, TextBlock))
        if not text.strip():
            raise GenerationError("Claude returned no text content")
        logger.debug(
            "Claude usage: %d input / %d output tokens",
            response.usage.input_tokens,
            response.usage.output_tokens,
        )
        return text
