"""Shared test fixtures."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from aitrainer.schemas.pattern import DesignPatternRecord, FetchedSite
from aitrainer.shared.completion_client import CompletionClient

SAMPLE_HTML = """\
<html>
<body>
  <header class="hero-banner"><nav class="menu"><a href="/">Home</a></nav></header>
  <main>
    <section><h1>Trattoria</h1><div class="grid"><img src="pasta.jpg" alt="Pasta"></div></section>
    <section><h2>Menu</h2><div><img src="pizza.jpg"></div></section>
  </main>
  <footer><p style="color: #333">Contact</p></footer>
</body>
</html>
"""

SAMPLE_CSS = """\
body { color: #111827; background: #ffffff; font-family: "Inter", sans-serif; }
h1 { color: rgb(200, 30, 30); font-family: Georgia, serif; }
.grid { display: grid; border-color: #e5e7eb; }
.cta { background: hsl(210, 80%, 50%); }
@media (max-width: 768px) { .grid { display: flex; } }
"""


@pytest.fixture
def tmp_config(tmp_path: Path) -> Path:
    """Write a minimal valid config YAML and return its path."""
    cfg = tmp_path / "collector.yml"
    cfg.write_text(
        """\
database_url: "sqlite:///{db}"
target_competitors: 5
request_delay_seconds: 0
""".format(db=tmp_path / "patterns.db")
    )
    return cfg


@pytest.fixture
def mock_completion_client() -> CompletionClient:
    """Return a CompletionClient with a mocked OpenAI SDK underneath."""
    client = CompletionClient.__new__(CompletionClient)
    client._client = AsyncMock()
    client.model = "gpt-4o"
    return client


@pytest.fixture
def fetched_site() -> FetchedSite:
    return FetchedSite(url="https://trattoria.example", html_content=SAMPLE_HTML, css_content=SAMPLE_CSS)


@pytest.fixture
def sample_record() -> DesignPatternRecord:
    from aitrainer.collection.orchestrator import build_pattern_record

    site = FetchedSite(url="https://trattoria.example", html_content=SAMPLE_HTML, css_content=SAMPLE_CSS)
    return build_pattern_record("ristorante", site, [])
