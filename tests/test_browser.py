"""Tests for the Playwright site fetcher — Playwright itself is mocked."""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from playwright.async_api import Error as PlaywrightError

from aitrainer.errors import FetchError
from aitrainer.shared.browser import BrowserSession, SiteFetcher


def _fake_playwright(browser: MagicMock | None = None, launch_error: Exception | None = None):
    pw = MagicMock()
    pw.stop = AsyncMock()
    if launch_error is not None:
        pw.chromium.launch = AsyncMock(side_effect=launch_error)
    else:
        pw.chromium.launch = AsyncMock(return_value=browser)
    starter = MagicMock()
    starter.start = AsyncMock(return_value=pw)
    return pw, MagicMock(return_value=starter)


def _fake_browser() -> MagicMock:
    browser = MagicMock()
    browser.close = AsyncMock()
    page = MagicMock()
    page.set_viewport_size = AsyncMock()
    browser.new_page = AsyncMock(return_value=page)
    return browser


class _FakeSession:
    """Stands in for BrowserSession; records whether it was released."""

    def __init__(self, page: MagicMock) -> None:
        self.page = page
        self.closed = False

    async def __aenter__(self) -> "_FakeSession":
        return self

    async def __aexit__(self, *args: object) -> None:
        self.closed = True

    async def new_page(self, *, viewport: tuple[int, int]) -> MagicMock:
        self.viewport = viewport
        return self.page


def _page(*, status: int = 200, html: str = "<html></html>", css: str = "body{}", images=None) -> MagicMock:
    page = MagicMock()
    page.goto = AsyncMock(return_value=SimpleNamespace(ok=200 <= status < 300, status=status))
    page.content = AsyncMock(return_value=html)
    page.evaluate = AsyncMock(side_effect=[css, images or []])
    return page


def _fetcher_with(session: _FakeSession, **kwargs) -> SiteFetcher:
    fetcher = SiteFetcher(**kwargs)
    fetcher._session = lambda: session  # type: ignore[method-assign]
    return fetcher


class TestBrowserSession:
    @pytest.mark.asyncio
    async def test_launches_headless_and_releases(self) -> None:
        browser = _fake_browser()
        pw, factory = _fake_playwright(browser)

        with patch("aitrainer.shared.browser.async_playwright", factory):
            async with BrowserSession() as session:
                await session.new_page(viewport=(1920, 1080))

        kwargs = pw.chromium.launch.call_args.kwargs
        assert kwargs["headless"] is True
        assert "--no-sandbox" in kwargs["args"]
        browser.new_page.return_value.set_viewport_size.assert_awaited_once_with({"width": 1920, "height": 1080})
        browser.close.assert_awaited_once()
        pw.stop.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_released_when_body_raises(self) -> None:
        browser = _fake_browser()
        pw, factory = _fake_playwright(browser)

        with patch("aitrainer.shared.browser.async_playwright", factory):
            with pytest.raises(RuntimeError):
                async with BrowserSession():
                    raise RuntimeError("navigation blew up")

        browser.close.assert_awaited_once()
        pw.stop.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_playwright_stopped_when_launch_fails(self) -> None:
        pw, factory = _fake_playwright(launch_error=PlaywrightError("Executable doesn't exist"))

        with patch("aitrainer.shared.browser.async_playwright", factory):
            with pytest.raises(PlaywrightError):
                async with BrowserSession():
                    pass

        pw.stop.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_playwright_stopped_when_close_fails(self) -> None:
        browser = _fake_browser()
        browser.close = AsyncMock(side_effect=PlaywrightError("Target closed"))
        pw, factory = _fake_playwright(browser)

        with patch("aitrainer.shared.browser.async_playwright", factory):
            with pytest.raises(PlaywrightError):
                async with BrowserSession():
                    pass

        pw.stop.assert_awaited_once()


class TestSiteFetcher:
    @pytest.mark.asyncio
    async def test_fetch_captures_page(self) -> None:
        images = [{"src": "https://a.example/hero.jpg", "alt": "Hero", "width": 800, "height": 400, "className": "hero"}]
        page = _page(html="<html><body>Hi</body></html>", css="body{color:red}", images=images)
        session = _FakeSession(page)

        site = await _fetcher_with(session, timeout_ms=30_000, viewport=(1920, 1080)).fetch("https://a.example")

        assert site.url == "https://a.example"
        assert site.html_content == "<html><body>Hi</body></html>"
        assert site.css_content == "body{color:red}"
        assert site.site_images[0].class_name == "hero"
        page.goto.assert_awaited_once_with("https://a.example", wait_until="networkidle", timeout=30_000)
        assert session.viewport == (1920, 1080)
        assert session.closed

    @pytest.mark.asyncio
    async def test_non_2xx_is_fetch_error(self) -> None:
        page = _page(status=404)
        session = _FakeSession(page)

        with pytest.raises(FetchError, match="HTTP 404") as exc_info:
            await _fetcher_with(session).fetch("https://gone.example")

        assert exc_info.value.url == "https://gone.example"
        page.content.assert_not_called()
        assert session.closed

    @pytest.mark.asyncio
    async def test_timeout_is_fetch_error(self) -> None:
        page = _page()
        page.goto = AsyncMock(side_effect=PlaywrightError("Timeout 30000ms exceeded.\nCall log: ..."))
        session = _FakeSession(page)

        with pytest.raises(FetchError) as exc_info:
            await _fetcher_with(session).fetch("https://slow.example")

        assert exc_info.value.reason == "Timeout 30000ms exceeded."
        assert session.closed

    @pytest.mark.asyncio
    async def test_missing_css_becomes_empty_string(self) -> None:
        page = _page(css=None)
        site = await _fetcher_with(_FakeSession(page)).fetch("https://a.example")
        assert site.css_content == ""
        assert site.site_images == []
