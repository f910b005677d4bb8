"""Tests for the Anthropic answer generator."""

import asyncio

import anthropic
import httpx
import pytest
from unittest.mock import patch, MagicMock, AsyncMock

from call_search.clients.anthropic_client import AnthropicAnswerGenerator
from call_search.errors import AnswerGenerationError


def _block(block_type, text=""):
    block = MagicMock()
    block.type = block_type
    block.text = text
    return block


@pytest.fixture
def mock_anthropic():
    with patch("call_search.clients.anthropic_client.anthropic.AsyncAnthropic") as mock_cls:
        client = MagicMock()
        client.messages.create = AsyncMock()
        client.close = AsyncMock()
        mock_cls.return_value = client
        yield client


def test_joins_text_blocks(mock_anthropic):
    mock_anthropic.messages.create.return_value = MagicMock(
        content=[_block("text", "Three calls "), _block("tool_use"), _block("text", "mention pricing.")]
    )
    generator = AnthropicAnswerGenerator(api_key="k", llm_model="claude-test", max_tokens=500)

    answer = asyncio.run(generator.complete("prompt"))

    assert answer == "Three calls mention pricing."
    kwargs = mock_anthropic.messages.create.await_args.kwargs
    assert kwargs["model"] == "claude-test"
    assert kwargs["max_tokens"] == 500
    assert kwargs["messages"] == [{"role": "user", "content": "prompt"}]


def test_max_tokens_override(mock_anthropic):
    mock_anthropic.messages.create.return_value = MagicMock(content=[])
    generator = AnthropicAnswerGenerator(api_key="k", max_tokens=500)

    asyncio.run(generator.complete("prompt", max_tokens=100))

    assert mock_anthropic.messages.create.await_args.kwargs["max_tokens"] == 100


def test_api_error_is_wrapped(mock_anthropic):
    request = httpx.Request("POST", "https://api.anthropic.com/v1/messages")
    mock_anthropic.messages.create.side_effect = anthropic.APIConnectionError(request=request)
    generator = AnthropicAnswerGenerator(api_key="k")

    with pytest.raises(AnswerGenerationError):
        asyncio.run(generator.complete("prompt"))


def test_close_releases_client(mock_anthropic):
    generator = AnthropicAnswerGenerator(api_key="k")

    asyncio.run(generator.close())

    mock_anthropic.close.assert_awaited_once()
