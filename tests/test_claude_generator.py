"""Tests for ClaudeTextGenerator."""

from unittest.mock import AsyncMock, MagicMock

import anthropic
import httpx
import pytest
from anthropic.types import TextBlock

from trend_ideas.errors import GenerationError
from trend_ideas.generator.claude import DEFAULT_SYSTEM_PROMPT, ClaudeTextGenerator


def _make_response(*texts: str) -> MagicMock:
    response = MagicMock()
    response.content = [TextBlock(type="text", text=t) for t in texts]
    response.usage = MagicMock(input_tokens=100, output_tokens=50)
    return response


@pytest.fixture
def generator() -> ClaudeTextGenerator:
    gen = ClaudeTextGenerator(api_key="test-key")
    object.__setattr__(
        gen._client.messages, "create", AsyncMock(return_value=_make_response('{"a": 1}'))
    )
    return gen


async def test_generate_returns_text(generator: ClaudeTextGenerator) -> None:
    assert await generator.generate("prompt") == '{"a": 1}'


async def test_generate_joins_text_blocks() -> None:
    gen = ClaudeTextGenerator(api_key="test-key")
    object.__setattr__(
        gen._client.messages, "create", AsyncMock(return_value=_make_response('{"a":', " 1}"))
    )
    assert await gen.generate("prompt") == '{"a": 1}'


async def test_generate_calls_api_with_correct_params(generator: ClaudeTextGenerator) -> None:
    await generator.generate("Find trends")

    mock_create: AsyncMock = generator._client.messages.create  # type: ignore[assignment]
    call_kwargs = dict(mock_create.call_args.kwargs)
    assert call_kwargs["model"] == "claude-haiku-4-5-20251001"
    assert call_kwargs["max_tokens"] == 2048
    assert call_kwargs["system"] == DEFAULT_SYSTEM_PROMPT
    assert call_kwargs["messages"] == [{"role": "user", "content": "Find trends"}]


async def test_custom_system_prompt_and_model() -> None:
    gen = ClaudeTextGenerator(api_key="k", model="claude-sonnet-4-5", system_prompt="Be brief.")
    object.__setattr__(gen._client.messages, "create", AsyncMock(return_value=_make_response("x")))
    await gen.generate("p")

    call_kwargs = gen._client.messages.create.call_args.kwargs  # type: ignore[attr-defined]
    assert call_kwargs["model"] == "claude-sonnet-4-5"
    assert call_kwargs["system"] == "Be brief."


async def test_empty_response_raises() -> None:
    gen = ClaudeTextGenerator(api_key="test-key")
    object.__setattr__(gen._client.messages, "create", AsyncMock(return_value=_make_response("  ")))
    with pytest.raises(GenerationError, match="no text"):
        await gen.generate("prompt")


async def test_api_error_becomes_generation_error() -> None:
    gen = ClaudeTextGenerator(api_key="test-key")
    request = httpx.Request("POST", "https://api.anthropic.com/v1/messages")
    error = anthropic.APIConnectionError(request=request)
    object.__setattr__(gen._client.messages, "create", AsyncMock(side_effect=error))

    with pytest.raises(GenerationError, match="Claude request failed"):
        await gen.generate("prompt")


def test_api_key_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CLAUDE_API_KEY", "env-key")
    gen = ClaudeTextGenerator()
    assert gen._client.api_key == "env-key"
