"""Exception taxonomy for the competitor collection pipeline."""

from __future__ import annotations


class AITrainerError(Exception):
    """Base class for every error raised by the pipeline."""


class FetchError(AITrainerError):
    """A competitor site could not be loaded (network, timeout, bad status)."""

    def __init__(self, url: str, reason: str) -> None:
        self.url = url
        self.reason = reason
        super().__init__(f"Failed to fetch {url}: {reason}")


class GenerationError(AITrainerError):
    """The competitor-list completion could not be parsed into candidates."""

    def __init__(self, message: str, *, raw: str = "") -> None:
        self.raw = raw
        super().__init__(message)


class PersistenceError(AITrainerError):
    """A database read or write failed."""


class ConfigurationError(AITrainerError):
    """A required setting (credential, URL) is missing or invalid."""
