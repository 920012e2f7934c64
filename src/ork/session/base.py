"""Browser session abstraction used by the checklist runner."""

from __future__ import annotations

from pathlib import Path
from typing import AsyncContextManager, Callable, Optional, Protocol, runtime_checkable


@runtime_checkable
class BrowserSession(Protocol):
    """The operations checklist actions need from a browser page.

    Timeouts are in milliseconds. Implementations raise on failure.
    """

    async def goto(self, url: str, timeout_ms: int) -> None: ...

    async def click(self, selector: str, timeout_ms: int) -> None: ...

    async def fill(self, selector: str, text: str, timeout_ms: int) -> None: ...

    async def select_option(self, selector: str, value: str, timeout_ms: int) -> None: ...

    async def wait_for_selector(self, selector: str, timeout_ms: int) -> None: ...

    async def text_content(self, selector: str, timeout_ms: int) -> Optional[str]: ...

    async def hover(self, selector: str, timeout_ms: int) -> None: ...

    async def screenshot(self, path: Path) -> None: ...

    def current_url(self) -> str: ...


# Opening the context manager acquires the browser; leaving it releases it.
SessionFactory = Callable[[], AsyncContextManager[BrowserSession]]


def get_session_factory(kind: str = "playwright", headless: bool = True) -> SessionFactory:
    """Factory for the configured browser backend."""
    if kind == "playwright":
        from .playwright_session import PlaywrightSession

        return lambda: PlaywrightSession(headless=headless)
    raise ValueError(f"Unknown session kind: {kind}")
