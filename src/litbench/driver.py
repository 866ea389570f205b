"""Browser drivers for automatic mode.

Wraps Playwright so the runner only sees ``get(url)`` and ``close()``.
Each driver owns its own Playwright instance, browser process and page.
"""

from __future__ import annotations

from typing import Any

from playwright.async_api import async_playwright

from litbench.logging import get_logger

log = get_logger("driver")

# --browser name -> Playwright browser type attribute.
BROWSER_TYPES = {
    "chrome": "chromium",
    "firefox": "firefox",
}


class Driver:
    """A launched browser with a single page."""

    def __init__(self, name: str, playwright: Any, browser: Any, page: Any) -> None:
        self.name = name
        self._playwright = playwright
        self._browser = browser
        self._page = page

    @property
    def version(self) -> str:
        return self._browser.version

    async def get(self, url: str) -> None:
        """Navigate the page to *url* and wait for it to load."""
        log.debug("%s: navigating to %s", self.name, url)
        await self._page.goto(url)

    async def close(self) -> None:
        """Close the browser and stop Playwright."""
        try:
            await self._browser.close()
        finally:
            await self._playwright.stop()
        log.debug("%s: closed", self.name)


async def launch_driver(name: str, *, headless: bool = True) -> Driver:
    """Launch a browser by its ``--browser`` name.

    Raises:
        ValueError: If *name* is not a supported browser.
    """
    try:
        type_name = BROWSER_TYPES[name]
    except KeyError:
        raise ValueError(f"Unsupported browser '{name}'") from None

    playwright = await async_playwright().start()
    try:
        browser = await getattr(playwright, type_name).launch(headless=headless)
        page = await browser.new_page()
    except BaseException:
        await playwright.stop()
        raise
    log.debug("Launched %s %s", name, browser.version)
    return Driver(name, playwright, browser, page)
