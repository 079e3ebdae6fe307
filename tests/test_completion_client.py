"""Tests for the CompletionClient — mock the OpenAI SDK underneath."""

from __future__ import annotations

import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import httpx
import pytest
from openai import APIConnectionError, RateLimitError

from aitrainer.shared.completion_client import CompletionClient, DryRunClient, _parse_retry_after

_REQUEST = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")


def _make_text_response(text: str | None, usage=None):
    """Create a mock OpenAI response with text only."""
    message = SimpleNamespace(content=text, tool_calls=None)
    choice = SimpleNamespace(message=message)
    return SimpleNamespace(choices=[choice], usage=usage)


def _rate_limit(message: str = "Rate limit reached", headers: dict[str, str] | None = None) -> RateLimitError:
    response = httpx.Response(429, headers=headers or {}, request=_REQUEST)
    return RateLimitError(message, response=response, body=None)


class TestSimpleCompletion:
    @pytest.mark.asyncio
    async def test_returns_text(self, mock_completion_client: CompletionClient) -> None:
        mock_completion_client._client.chat.completions.create = AsyncMock(
            return_value=_make_text_response("Hello!")
        )

        result = await mock_completion_client.simple_completion(system="sys", user_message="hi")

        assert result == "Hello!"
        kwargs = mock_completion_client._client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "gpt-4o"
        assert kwargs["messages"] == [
            {"role": "system", "content": "sys"},
            {"role": "user", "content": "hi"},
        ]
        assert kwargs["temperature"] == 0.7
        assert kwargs["max_tokens"] == 2000

    @pytest.mark.asyncio
    async def test_no_system_message(self, mock_completion_client: CompletionClient) -> None:
        mock_completion_client._client.chat.completions.create = AsyncMock(
            return_value=_make_text_response("ok")
        )
        await mock_completion_client.simple_completion(user_message="hi")
        kwargs = mock_completion_client._client.chat.completions.create.call_args.kwargs
        assert kwargs["messages"] == [{"role": "user", "content": "hi"}]

    @pytest.mark.asyncio
    async def test_empty_content_becomes_empty_string(self, mock_completion_client: CompletionClient) -> None:
        mock_completion_client._client.chat.completions.create = AsyncMock(
            return_value=_make_text_response(None)
        )
        assert await mock_completion_client.simple_completion(user_message="hi") == ""

    @pytest.mark.asyncio
    async def test_token_callback(self, mock_completion_client: CompletionClient) -> None:
        usage = SimpleNamespace(prompt_tokens=12, completion_tokens=34)
        mock_completion_client._client.chat.completions.create = AsyncMock(
            return_value=_make_text_response("ok", usage=usage)
        )
        seen: list[tuple[int, int]] = []
        await mock_completion_client.simple_completion(
            user_message="hi", on_tokens=lambda i, o: seen.append((i, o))
        )
        assert seen == [(12, 34)]


class TestRetry:
    @pytest.mark.asyncio
    async def test_rate_limit_then_success(self, mock_completion_client: CompletionClient) -> None:
        mock_completion_client._client.chat.completions.create = AsyncMock(
            side_effect=[_rate_limit(), _make_text_response("finally")]
        )
        with patch("aitrainer.shared.completion_client.asyncio.sleep", new=AsyncMock()) as sleep:
            result = await mock_completion_client.simple_completion(user_message="hi")

        assert result == "finally"
        sleep.assert_awaited_once()
        assert sleep.await_args.args[0] >= 1.0

    @pytest.mark.asyncio
    async def test_connection_error_then_success(self, mock_completion_client: CompletionClient) -> None:
        mock_completion_client._client.chat.completions.create = AsyncMock(
            side_effect=[APIConnectionError(request=_REQUEST), _make_text_response("ok")]
        )
        with patch("aitrainer.shared.completion_client.asyncio.sleep", new=AsyncMock()):
            assert await mock_completion_client.simple_completion(user_message="hi") == "ok"

    @pytest.mark.asyncio
    async def test_gives_up_after_max_retries(self, mock_completion_client: CompletionClient) -> None:
        create = AsyncMock(side_effect=_rate_limit())
        mock_completion_client._client.chat.completions.create = create
        with patch("aitrainer.shared.completion_client.asyncio.sleep", new=AsyncMock()):
            with pytest.raises(RateLimitError):
                await mock_completion_client.simple_completion(user_message="hi")
        assert create.await_count == 5

    @pytest.mark.asyncio
    async def test_request_too_large_not_retried(self, mock_completion_client: CompletionClient) -> None:
        create = AsyncMock(side_effect=_rate_limit("Request too large for gpt-4o"))
        mock_completion_client._client.chat.completions.create = create
        with pytest.raises(RateLimitError):
            await mock_completion_client.simple_completion(user_message="hi")
        assert create.await_count == 1


class TestParseRetryAfter:
    def test_header(self) -> None:
        assert _parse_retry_after(_rate_limit(headers={"retry-after": "7"})) == 7.0

    def test_message_seconds(self) -> None:
        assert _parse_retry_after(_rate_limit("Please try again in 1.5s.")) == 1.5

    def test_message_milliseconds(self) -> None:
        assert _parse_retry_after(_rate_limit("Please try again in 250ms.")) == 0.25

    def test_missing(self) -> None:
        assert _parse_retry_after(_rate_limit("slow down")) is None


class TestDryRunClient:
    @pytest.mark.asyncio
    async def test_returns_competitor_array(self) -> None:
        raw = await DryRunClient().simple_completion(user_message="Find 3 real ...")
        items = json.loads(raw)
        assert isinstance(items, list)
        assert all(item["url"].startswith("https://") for item in items)
