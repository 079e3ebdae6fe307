"""Tests for competitor generation and completion parsing."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock

import httpx
import openai
import pytest

from aitrainer.collection.generator import (
    CompetitorGenerator,
    extract_json_array,
    parse_competitor_list,
)
from aitrainer.errors import ConfigurationError, GenerationError

COMPETITORS = [
    {"name": "Trattoria Da Mario", "url": "https://damario.example", "description": "Roman trattoria"},
    {"name": "Pizzeria Bella", "url": "http://bella.example", "description": "Neapolitan pizza"},
]

_COMPLETION_REQUEST = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")


def _client(reply: str) -> AsyncMock:
    client = AsyncMock()
    client.simple_completion = AsyncMock(return_value=reply)
    return client


class TestExtractJsonArray:
    def test_plain_array(self) -> None:
        assert extract_json_array('[{"url": "https://a.example"}]') == [{"url": "https://a.example"}]

    def test_array_with_trailing_text(self) -> None:
        assert extract_json_array('[1, 2]\nHope this helps!') == [1, 2]

    def test_fenced_block(self) -> None:
        text = "Here you go:\n```json\n[1, 2, 3]\n```\n"
        assert extract_json_array(text) == [1, 2, 3]

    def test_object_is_rejected(self) -> None:
        with pytest.raises(ValueError, match="JSON array"):
            extract_json_array('{"competitors": []}')

    def test_not_json(self) -> None:
        with pytest.raises(ValueError):
            extract_json_array("not json")


class TestParseCompetitorList:
    def test_valid(self) -> None:
        competitors = parse_competitor_list(json.dumps(COMPETITORS))
        assert [c.name for c in competitors] == ["Trattoria Da Mario", "Pizzeria Bella"]
        assert competitors[1].url == "http://bella.example"

    def test_missing_name_and_description_default(self) -> None:
        competitors = parse_competitor_list('[{"url": " https://x.example "}]')
        assert competitors[0].url == "https://x.example"
        assert competitors[0].name == ""

    def test_not_json_raises(self) -> None:
        with pytest.raises(GenerationError) as exc_info:
            parse_competitor_list("not json")
        assert exc_info.value.raw == "not json"

    def test_item_without_url_raises(self) -> None:
        with pytest.raises(GenerationError, match="#1"):
            parse_competitor_list('[{"name": "No URL"}]')

    def test_relative_url_raises(self) -> None:
        with pytest.raises(GenerationError, match="#2"):
            parse_competitor_list('[{"url": "https://ok.example"}, {"url": "www.bad.example"}]')

    def test_non_object_item_raises(self) -> None:
        with pytest.raises(GenerationError, match="not an object"):
            parse_competitor_list('["https://a.example"]')


class TestCompetitorGenerator:
    @pytest.mark.asyncio
    async def test_generate(self) -> None:
        client = _client(json.dumps(COMPETITORS))
        generator = CompetitorGenerator(client)

        competitors = await generator.generate("ristorante", 2)

        assert len(competitors) == 2
        kwargs = client.simple_completion.call_args.kwargs
        assert "2 real" in kwargs["user_message"]
        assert '"ristorante"' in kwargs["user_message"]
        assert kwargs["temperature"] == 0.7
        assert kwargs["max_tokens"] == 2000

    @pytest.mark.asyncio
    async def test_result_count_is_not_capped(self) -> None:
        generator = CompetitorGenerator(_client(json.dumps(COMPETITORS)))
        assert len(await generator.generate("ristorante", 1)) == 2

    @pytest.mark.asyncio
    async def test_unparseable_completion(self) -> None:
        generator = CompetitorGenerator(_client("not json"))
        with pytest.raises(GenerationError):
            await generator.generate("ristorante", 3)

    @pytest.mark.asyncio
    async def test_rejects_empty_business_type(self) -> None:
        client = _client("[]")
        with pytest.raises(ValueError):
            await CompetitorGenerator(client).generate("   ", 3)
        client.simple_completion.assert_not_called()

    @pytest.mark.asyncio
    async def test_rejects_non_positive_count(self) -> None:
        with pytest.raises(ValueError, match="at least 1"):
            await CompetitorGenerator(_client("[]")).generate("ristorante", 0)

    @pytest.mark.asyncio
    async def test_sdk_errors_become_generation_errors(self) -> None:
        client = AsyncMock()
        client.simple_completion = AsyncMock(
            side_effect=openai.AuthenticationError(
                "Incorrect API key provided",
                response=httpx.Response(401, request=_COMPLETION_REQUEST),
                body=None,
            )
        )
        with pytest.raises(GenerationError, match="Incorrect API key") as excinfo:
            await CompetitorGenerator(client).generate("ristorante", 3)
        assert isinstance(excinfo.value.__cause__, openai.AuthenticationError)

    @pytest.mark.asyncio
    async def test_exhausted_connection_retries_become_generation_errors(self) -> None:
        client = AsyncMock()
        client.simple_completion = AsyncMock(side_effect=openai.APIConnectionError(request=_COMPLETION_REQUEST))
        with pytest.raises(GenerationError, match="Completion request failed"):
            await CompetitorGenerator(client).generate("ristorante", 3)

    @pytest.mark.asyncio
    async def test_missing_client_is_configuration_error(self) -> None:
        with pytest.raises(ConfigurationError, match="OPENAI_API_KEY"):
            await CompetitorGenerator(None).generate("ristorante", 3)

    def test_prompt_mentions_json_only(self) -> None:
        prompt = CompetitorGenerator(None).build_prompt("fioraio", 7)
        assert "Find 7 real" in prompt
        assert '"fioraio"' in prompt
        assert "ONLY a JSON array" in prompt
