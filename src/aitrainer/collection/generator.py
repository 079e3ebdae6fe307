"""Competitor generator — asks the completion API for candidate competitor sites."""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Protocol

from openai import APIError
from pydantic import ValidationError

from aitrainer.collection.prompts import COMPETITOR_LIST_PROMPT
from aitrainer.errors import ConfigurationError, GenerationError
from aitrainer.schemas.pattern import Competitor

logger = logging.getLogger(__name__)

GENERATION_TEMPERATURE = 0.7
GENERATION_MAX_TOKENS = 2000


class CompletionBackend(Protocol):
    async def simple_completion(
        self,
        *,
        user_message: str,
        system: str | None = None,
        temperature: float = ...,
        max_tokens: int = ...,
    ) -> str: ...


def extract_json_array(text: str) -> list[Any]:
    """Extract a top-level JSON array from text that may contain markdown fences.

    Raises ``ValueError`` (or ``json.JSONDecodeError``) when no array can be
    decoded.
    """
    text = text.strip()

    # 1. Direct parse (clean JSON response)
    if text.startswith("["):
        try:
            obj, _ = json.JSONDecoder().raw_decode(text)
        except json.JSONDecodeError:
            pass
        else:
            if isinstance(obj, list):
                return obj

    # 2. ```json ... ``` or ``` ... ``` fenced block
    match = re.search(r"```(?:json)?\s*\n?(.*?)\n?```", text, re.DOTALL)
    if match:
        obj = json.loads(match.group(1).strip())
        if not isinstance(obj, list):
            raise ValueError(f"Expected a JSON array, got {type(obj).__name__}")
        return obj

    obj = json.loads(text)
    if not isinstance(obj, list):
        raise ValueError(f"Expected a JSON array, got {type(obj).__name__}")
    return obj


def parse_competitor_list(raw: str) -> list[Competitor]:
    """Parse a completion into competitors, or raise ``GenerationError``."""
    try:
        items = extract_json_array(raw)
    except (ValueError, json.JSONDecodeError) as exc:
        raise GenerationError(
            f"Competitor list is not a JSON array: {exc}", raw=raw
        ) from exc

    competitors: list[Competitor] = []
    for i, item in enumerate(items):
        if not isinstance(item, dict):
            raise GenerationError(f"Competitor #{i + 1} is not an object: {item!r}", raw=raw)
        try:
            competitors.append(Competitor.model_validate(item))
        except ValidationError as exc:
            raise GenerationError(f"Competitor #{i + 1} is invalid: {exc}", raw=raw) from exc
    return competitors


class CompetitorGenerator:
    """Prompts the completion API for ``count`` competitors of a business type.

    ``client`` may be ``None`` when no API key is configured; runs that never
    need new candidates still work, and ``generate`` raises
    ``ConfigurationError``.
    """

    def __init__(self, client: CompletionBackend | None) -> None:
        self.client = client

    def build_prompt(self, business_type: str, count: int) -> str:
        return COMPETITOR_LIST_PROMPT.format(business_type=business_type, count=count)

    async def generate(self, business_type: str, count: int) -> list[Competitor]:
        """Return candidate competitors; ``GenerationError`` if unparseable."""
        business_type = business_type.strip()
        if not business_type:
            raise ValueError("business_type must not be empty")
        if count < 1:
            raise ValueError(f"count must be at least 1, got {count}")
        if self.client is None:
            raise ConfigurationError("No completion API key configured: set OPENAI_API_KEY")

        logger.info("Generating %d competitors for %r", count, business_type)
        try:
            raw = await self.client.simple_completion(
                user_message=self.build_prompt(business_type, count),
                temperature=GENERATION_TEMPERATURE,
                max_tokens=GENERATION_MAX_TOKENS,
            )
        except APIError as exc:
            raise GenerationError(f"Completion request failed: {exc}") from exc
        logger.debug("Competitor completion:\n%s", raw[:500])

        competitors = parse_competitor_list(raw)
        logger.info("Generated %d competitors for %r", len(competitors), business_type)
        return competitors
