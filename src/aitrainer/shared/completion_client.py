"""Async OpenAI chat-completion wrapper with rate-limit retry."""

from __future__ import annotations

import asyncio
import json
import logging
import random
import re
from typing import Any, Callable

from openai import AsyncOpenAI, APIConnectionError, APITimeoutError, RateLimitError

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-4o"
DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_TOKENS = 2000

# Retry settings for rate-limit (429) errors
_RATE_LIMIT_MAX_RETRIES = 5
_RATE_LIMIT_BASE_DELAY = 5  # seconds, minimum floor for exponential backoff


def _parse_retry_after(exc: RateLimitError) -> float | None:
    """Extract the suggested retry delay from an OpenAI rate limit error.

    Checks the ``Retry-After`` header first, then falls back to parsing
    the "Please try again in Xs / Xms" substring from the error message.
    Returns seconds as a float, or None if not found.
    """
    try:
        headers = exc.response.headers  # type: ignore[union-attr]
        if retry_after := headers.get("retry-after"):
            return float(retry_after)
    except (AttributeError, TypeError, ValueError):
        pass

    m = re.search(r"try again in (\d+(?:\.\d+)?)\s*(ms|s)\b", str(exc), re.IGNORECASE)
    if m:
        value = float(m.group(1))
        return value / 1000 if m.group(2).lower() == "ms" else value

    return None


TokensCallback = Callable[[int, int], None]
"""Called with (input_tokens, output_tokens) when a completion finishes."""


class CompletionClient:
    """Thin async wrapper around the OpenAI SDK for single-turn prompts."""

    def __init__(self, api_key: str | None = None, *, model: str = DEFAULT_MODEL) -> None:
        self._client = AsyncOpenAI(api_key=api_key)
        self.model = model

    async def _call_with_retry(self, **kwargs: Any) -> Any:
        """Call chat.completions.create with exponential backoff on 429 errors.

        Waits at least as long as OpenAI's suggested retry-after time, uses
        exponential backoff as a floor, and adds ±25% jitter. Fails
        immediately if the request itself exceeds the token limit.
        """
        for attempt in range(_RATE_LIMIT_MAX_RETRIES):
            try:
                return await self._client.chat.completions.create(**kwargs)
            except RateLimitError as exc:
                msg = str(exc).lower()
                if "request too large" in msg or "context_length_exceeded" in msg:
                    logger.error("Request exceeds token limit (not retryable): %s", exc)
                    raise
                if attempt == _RATE_LIMIT_MAX_RETRIES - 1:
                    raise

                backoff = _RATE_LIMIT_BASE_DELAY * (2 ** attempt)
                suggested = _parse_retry_after(exc)
                base_delay = max(suggested or 0.0, backoff)
                jitter = random.uniform(-0.25 * base_delay, 0.25 * base_delay)
                delay = max(1.0, base_delay + jitter)

                logger.warning(
                    "Rate limited (429), retrying in %.1fs (attempt %d/%d, "
                    "suggested=%.1fs, backoff=%ds): %s",
                    delay, attempt + 1, _RATE_LIMIT_MAX_RETRIES,
                    suggested or 0.0, backoff, exc,
                )
                await asyncio.sleep(delay)
            except (APIConnectionError, APITimeoutError) as exc:
                if attempt == _RATE_LIMIT_MAX_RETRIES - 1:
                    raise
                # Transient network / TLS errors, capped at ~40 s
                backoff = _RATE_LIMIT_BASE_DELAY * (2 ** min(attempt, 3))
                jitter = random.uniform(-0.25 * backoff, 0.25 * backoff)
                delay = max(2.0, backoff + jitter)
                logger.warning(
                    "Connection error, retrying in %.1fs (attempt %d/%d): %s",
                    delay, attempt + 1, _RATE_LIMIT_MAX_RETRIES, exc,
                )
                await asyncio.sleep(delay)

    async def simple_completion(
        self,
        *,
        user_message: str,
        system: str | None = None,
        temperature: float = DEFAULT_TEMPERATURE,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        on_tokens: TokensCallback | None = None,
    ) -> str:
        """Single request/response; returns the raw assistant text."""
        messages: list[dict[str, Any]] = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": user_message})

        response = await self._call_with_retry(
            model=self.model,
            messages=messages,
            temperature=temperature,
            max_tokens=max_tokens,
        )
        usage = getattr(response, "usage", None)
        if on_tokens and usage:
            on_tokens(getattr(usage, "prompt_tokens", 0), getattr(usage, "completion_tokens", 0))
        return response.choices[0].message.content or ""


# ======================================================================
# Dry-run mock client (no API calls)
# ======================================================================

_DRY_RUN_COMPETITORS: list[dict[str, str]] = [
    {
        "name": "Example Domain",
        "url": "https://example.com",
        "description": "Reserved example site, always reachable.",
    },
    {
        "name": "Example Org",
        "url": "https://example.org",
        "description": "Second reserved example site.",
    },
]


class DryRunClient:
    """Drop-in replacement for CompletionClient that makes zero API calls.

    Returns a short canned competitor list so the full pipeline can be
    exercised against real (reserved) sites without an OpenAI key.
    """

    model = "dry-run"

    async def simple_completion(
        self,
        *,
        user_message: str,
        system: str | None = None,
        temperature: float = DEFAULT_TEMPERATURE,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        on_tokens: TokensCallback | None = None,
    ) -> str:
        logger.info("[dry-run] Completion requested (%d chars prompt)", len(user_message))
        return json.dumps(_DRY_RUN_COMPETITORS)
