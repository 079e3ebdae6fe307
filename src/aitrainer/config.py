"""Config loader — reads an optional collector.yml and the environment into CollectorConfig."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Mapping

import yaml

from aitrainer.schemas.config import CollectorConfig

# Environment variable -> config field
ENV_FIELDS: dict[str, str] = {
    "DATABASE_URL": "database_url",
    "OPENAI_API_KEY": "openai_api_key",
    "OPENAI_MODEL": "openai_model",
    "UNSPLASH_ACCESS_KEY": "unsplash_access_key",
}


def load_config(
    path: str | Path | None = None,
    *,
    environ: Mapping[str, str] | None = None,
) -> CollectorConfig:
    """Load and validate the collector configuration.

    Values from the YAML file win; environment variables fill in whatever the
    file leaves empty. Raises ``FileNotFoundError`` if ``path`` is given but
    missing and ``pydantic.ValidationError`` if the content is invalid.
    """
    raw: dict = {}
    if path is not None:
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        loaded = yaml.safe_load(path.read_text())
        # An empty file loads as None; treat it as an empty mapping.
        if loaded is None:
            loaded = {}
        if not isinstance(loaded, dict):
            raise ValueError(f"Config file must be a YAML mapping, got {type(loaded).__name__}")
        # Keys left blank (``openai_model:``) fall back to defaults.
        raw = {k: v for k, v in loaded.items() if v is not None}

    env = os.environ if environ is None else environ
    for var, field in ENV_FIELDS.items():
        if not raw.get(field) and env.get(var):
            raw[field] = env[var]

    return CollectorConfig(**raw)
