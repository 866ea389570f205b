"""Tests for litbench.driver: Playwright-backed browser drivers."""

from __future__ import annotations

import unittest
from unittest.mock import AsyncMock, MagicMock, patch

from litbench.driver import BROWSER_TYPES, launch_driver


def _fake_playwright(version: str = "120.0") -> tuple[MagicMock, MagicMock, MagicMock]:
    """Build (async_playwright factory, playwright, browser) mocks."""
    page = MagicMock()
    page.goto = AsyncMock()
    browser = MagicMock()
    browser.version = version
    browser.new_page = AsyncMock(return_value=page)
    browser.close = AsyncMock()
    playwright = MagicMock()
    playwright.stop = AsyncMock()
    for type_name in BROWSER_TYPES.values():
        getattr(playwright, type_name).launch = AsyncMock(return_value=browser)
    factory = MagicMock()
    factory.return_value.start = AsyncMock(return_value=playwright)
    return factory, playwright, browser


class TestLaunchDriver(unittest.IsolatedAsyncioTestCase):
    async def test_chrome_uses_chromium(self) -> None:
        factory, playwright, browser = _fake_playwright()
        with patch("litbench.driver.async_playwright", factory):
            driver = await launch_driver("chrome", headless=False)
        playwright.chromium.launch.assert_awaited_once_with(headless=False)
        playwright.firefox.launch.assert_not_awaited()
        self.assertEqual(driver.name, "chrome")
        self.assertEqual(driver.version, "120.0")

    async def test_firefox(self) -> None:
        factory, playwright, _ = _fake_playwright()
        with patch("litbench.driver.async_playwright", factory):
            await launch_driver("firefox")
        playwright.firefox.launch.assert_awaited_once_with(headless=True)

    async def test_get_and_close(self) -> None:
        factory, playwright, browser = _fake_playwright()
        with patch("litbench.driver.async_playwright", factory):
            driver = await launch_driver("chrome")
        await driver.get("http://127.0.0.1:1/benchmarks/x/y/?trials=1")
        page = browser.new_page.return_value
        page.goto.assert_awaited_once_with("http://127.0.0.1:1/benchmarks/x/y/?trials=1")
        await driver.close()
        browser.close.assert_awaited_once()
        playwright.stop.assert_awaited_once()

    async def test_close_stops_playwright_even_if_browser_close_fails(self) -> None:
        factory, playwright, browser = _fake_playwright()
        browser.close.side_effect = RuntimeError("already gone")
        with patch("litbench.driver.async_playwright", factory):
            driver = await launch_driver("chrome")
        with self.assertRaises(RuntimeError):
            await driver.close()
        playwright.stop.assert_awaited_once()

    async def test_unsupported_browser(self) -> None:
        factory, _, _ = _fake_playwright()
        with patch("litbench.driver.async_playwright", factory):
            with self.assertRaisesRegex(ValueError, "safari"):
                await launch_driver("safari")
        factory.assert_not_called()

    async def test_launch_failure_stops_playwright(self) -> None:
        factory, playwright, _ = _fake_playwright()
        playwright.chromium.launch.side_effect = RuntimeError("executable not found")
        with patch("litbench.driver.async_playwright", factory):
            with self.assertRaisesRegex(RuntimeError, "executable"):
                await launch_driver("chrome")
        playwright.stop.assert_awaited_once()


if __name__ == "__main__":
    unittest.main()
