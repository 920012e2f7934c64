"""Playwright-backed browser session.

Usage::

    async with PlaywrightSession(headless=True) as session:
        await session.goto("http://localhost:3000/login", timeout_ms=30000)
        await session.click("button[type=submit]", timeout_ms=5000)
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

from playwright.async_api import async_playwright
from rich.console import Console

console = Console()


class PlaywrightSession:
    """One Chromium browser with a single page, released on exit."""

    def __init__(self, headless: bool = True, width: int = 1280, height: int = 800) -> None:
        self.headless = headless
        self.width = width
        self.height = height
        self._playwright: Any = None
        self._browser: Any = None
        self._page: Any = None

    async def __aenter__(self) -> PlaywrightSession:
        await self.start()
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.stop()

    async def start(self) -> None:
        self._playwright = await async_playwright().start()
        try:
            self._browser = await self._playwright.chromium.launch(headless=self.headless)
            context = await self._browser.new_context(
                viewport={"width": self.width, "height": self.height},
            )
            self._page = await context.new_page()
        except Exception:
            await self.stop()
            raise
        console.print(f"  [dim]Browser started (headless={self.headless})[/dim]")

    async def stop(self) -> None:
        if self._page:
            await self._page.close()
            self._page = None
        if self._browser:
            await self._browser.close()
            self._browser = None
        if self._playwright:
            await self._playwright.stop()
            self._playwright = None

    @property
    def page(self) -> Any:
        if not self._page:
            raise RuntimeError("Browser not started. Use 'async with PlaywrightSession()'.")
        return self._page

    async def goto(self, url: str, timeout_ms: int) -> None:
        await self.page.goto(url, wait_until="networkidle", timeout=timeout_ms)

    async def click(self, selector: str, timeout_ms: int) -> None:
        await self.page.click(selector, timeout=timeout_ms)

    async def fill(self, selector: str, text: str, timeout_ms: int) -> None:
        await self.page.fill(selector, text, timeout=timeout_ms)

    async def select_option(self, selector: str, value: str, timeout_ms: int) -> None:
        await self.page.select_option(selector, value, timeout=timeout_ms)

    async def wait_for_selector(self, selector: str, timeout_ms: int) -> None:
        await self.page.wait_for_selector(selector, timeout=timeout_ms)

    async def text_content(self, selector: str, timeout_ms: int) -> Optional[str]:
        return await self.page.text_content(selector, timeout=timeout_ms)

    async def hover(self, selector: str, timeout_ms: int) -> None:
        await self.page.hover(selector, timeout=timeout_ms)

    async def screenshot(self, path: Path) -> None:
        await self.page.screenshot(path=str(path), full_page=True)

    def current_url(self) -> str:
        return self.page.url
