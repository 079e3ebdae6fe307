"""Playwright site fetcher — one isolated browser session per competitor visit."""

from __future__ import annotations

import logging
from types import TracebackType

from playwright.async_api import Browser, Error as PlaywrightError, Page, Playwright, async_playwright

from aitrainer.errors import FetchError
from aitrainer.schemas.pattern import FetchedSite, SiteImage

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_MS = 30_000
DEFAULT_VIEWPORT = (1920, 1080)

# Concatenated cssText of every stylesheet the page lets us read. Cross-origin
# sheets throw on cssRules access and are skipped, so CSS from third-party
# hosts is under-counted.
_COLLECT_CSS_JS = """() => {
    return Array.from(document.styleSheets).map(sheet => {
        try {
            return Array.from(sheet.cssRules).map(rule => rule.cssText).join('\\n');
        } catch (e) {
            return '';
        }
    }).join('\\n');
}"""

_COLLECT_IMAGES_JS = """() => {
    return Array.from(document.querySelectorAll('img')).map(img => ({
        src: img.src,
        alt: img.alt || '',
        width: img.width || img.naturalWidth || 0,
        height: img.height || img.naturalHeight || 0,
        className: typeof img.className === 'string' ? img.className : ''
    })).filter(img => img.src && !img.src.includes('data:'));
}"""


class BrowserSession:
    """A headless Chromium process, released on every exit path.

    Usage::

        async with BrowserSession() as session:
            page = await session.new_page(viewport=(1920, 1080))
    """

    def __init__(self) -> None:
        self._pw: Playwright | None = None
        self._browser: Browser | None = None

    async def __aenter__(self) -> "BrowserSession":
        self._pw = await async_playwright().start()
        try:
            self._browser = await self._pw.chromium.launch(
                headless=True,
                args=["--no-sandbox", "--disable-setuid-sandbox"],
            )
        except BaseException:
            await self._pw.stop()
            self._pw = None
            raise
        logger.debug("Browser launched")
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        try:
            if self._browser:
                await self._browser.close()
        finally:
            self._browser = None
            if self._pw:
                await self._pw.stop()
                self._pw = None
        logger.debug("Browser closed")

    async def new_page(self, *, viewport: tuple[int, int] = DEFAULT_VIEWPORT) -> Page:
        assert self._browser is not None, "BrowserSession not entered"
        page = await self._browser.new_page()
        await page.set_viewport_size({"width": viewport[0], "height": viewport[1]})
        return page


class SiteFetcher:
    """Loads a URL and captures rendered HTML, readable CSS and image elements.

    Each ``fetch`` call launches and closes its own browser; nothing is pooled.
    """

    def __init__(
        self,
        *,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        viewport: tuple[int, int] = DEFAULT_VIEWPORT,
    ) -> None:
        self.timeout_ms = timeout_ms
        self.viewport = viewport

    def _session(self) -> BrowserSession:
        return BrowserSession()

    async def fetch(self, url: str) -> FetchedSite:
        """Navigate to ``url``, wait for network idle, and capture the page.

        Raises ``FetchError`` on launch/navigation failure, timeout, or a
        non-2xx navigation response.
        """
        logger.info("Fetching %s", url)
        try:
            async with self._session() as session:
                page = await session.new_page(viewport=self.viewport)
                response = await page.goto(url, wait_until="networkidle", timeout=self.timeout_ms)
                # goto returns None for same-document navigations; nothing to check then.
                if response is not None and not response.ok:
                    raise FetchError(url, f"HTTP {response.status}")

                html = await page.content()
                css = await page.evaluate(_COLLECT_CSS_JS)
                images = await page.evaluate(_COLLECT_IMAGES_JS)
        except FetchError:
            raise
        except PlaywrightError as exc:
            raise FetchError(url, str(exc).splitlines()[0] if str(exc) else type(exc).__name__) from exc

        site_images = [SiteImage.model_validate(img) for img in images or []]
        logger.info(
            "Fetched %s (%d chars HTML, %d chars CSS, %d images)",
            url, len(html), len(css or ""), len(site_images),
        )
        return FetchedSite(
            url=url,
            html_content=html,
            css_content=css or "",
            site_images=site_images,
        )
