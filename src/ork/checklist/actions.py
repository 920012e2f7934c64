"""Checklist action execution with fixed retry.

Every action type gets the same policy: 3 attempts, 1000 ms apart.
The delay is constant, not exponential.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Awaitable, Callable

from rich.console import Console
from rich.markup import escape

from ..core.attempts import AttemptState, next_attempt_state
from ..models.checklist import (
    Action,
    AssertTextAction,
    AssertUrlAction,
    ClickAction,
    HoverAction,
    NavigateAction,
    ScreenshotAction,
    SelectAction,
    TypeAction,
    WaitForAction,
)
from ..session.base import BrowserSession

console = Console()

MAX_ACTION_ATTEMPTS = 3
ACTION_RETRY_DELAY_SECONDS = 1.0

Sleep = Callable[[float], Awaitable[None]]


class ActionExecutionError(RuntimeError):
    """Selector not found, assertion mismatch or navigation failure."""


def resolve_url(base_url: str, path: str = "") -> str:
    """Join the checklist base URL and an action's path fragment."""
    if not path:
        return base_url
    if path.startswith(("http://", "https://")):
        return path
    if base_url.endswith("/") and path.startswith("/"):
        return base_url + path[1:]
    return base_url + path


def screenshot_path(run_dir: Path, name: str) -> Path:
    return run_dir / f"{name}.png"


def describe_action(action: Action) -> str:
    if isinstance(action, NavigateAction):
        return f"Navigate to {action.url or '/'}"
    if isinstance(action, ClickAction):
        return f"Click {action.selector}"
    if isinstance(action, TypeAction):
        return f"Type into {action.selector}"
    if isinstance(action, SelectAction):
        return f"Select '{action.value}' in {action.selector}"
    if isinstance(action, WaitForAction):
        return f"Wait for {action.selector}"
    if isinstance(action, AssertTextAction):
        return f'Assert text in {action.selector}: "{action.text}"'
    if isinstance(action, AssertUrlAction):
        return f'Assert URL contains "{action.contains}"'
    if isinstance(action, ScreenshotAction):
        return f"Screenshot: {action.name}.png"
    if isinstance(action, HoverAction):
        return f"Hover over {action.selector}"
    return f"Unknown action {action!r}"


async def execute_action(
    action: Action,
    session: BrowserSession,
    base_url: str,
    run_dir: Path,
) -> None:
    """Execute one action once. Raises on any failure."""
    if isinstance(action, NavigateAction):
        await session.goto(resolve_url(base_url, action.url), action.timeout_ms)
    elif isinstance(action, ClickAction):
        await session.click(action.selector, action.timeout_ms)
    elif isinstance(action, TypeAction):
        await session.fill(action.selector, action.text, action.timeout_ms)
    elif isinstance(action, SelectAction):
        await session.select_option(action.selector, action.value, action.timeout_ms)
    elif isinstance(action, WaitForAction):
        await session.wait_for_selector(action.selector, action.timeout_ms)
    elif isinstance(action, AssertTextAction):
        actual = await session.text_content(action.selector, action.timeout_ms)
        if actual is None or action.text not in actual:
            raise ActionExecutionError(
                f'Expected text "{action.text}" not found. Got: "{actual}"'
            )
    elif isinstance(action, AssertUrlAction):
        current = session.current_url()
        if action.contains not in current:
            raise ActionExecutionError(
                f'Expected URL to contain "{action.contains}". Got: "{current}"'
            )
    elif isinstance(action, ScreenshotAction):
        await session.screenshot(screenshot_path(run_dir, action.name))
    elif isinstance(action, HoverAction):
        await session.hover(action.selector, action.timeout_ms)
    else:
        raise ActionExecutionError(f"Unknown action type: {getattr(action, 'type', action)!r}")


async def run_action_with_retry(
    action: Action,
    session: BrowserSession,
    base_url: str,
    run_dir: Path,
    sleep: Sleep = asyncio.sleep,
) -> None:
    """Run an action up to MAX_ACTION_ATTEMPTS times.

    Raises ActionExecutionError carrying the last error's message once
    every attempt has failed.
    """
    console.print(f"    -> {escape(describe_action(action))}")

    state = AttemptState.PENDING
    attempt = 1
    last_error: Exception | None = None

    while True:
        state = next_attempt_state(state, attempt, MAX_ACTION_ATTEMPTS)
        try:
            await execute_action(action, session, base_url, run_dir)
        except Exception as e:
            last_error = e
            state = next_attempt_state(state, attempt, MAX_ACTION_ATTEMPTS, False)
        else:
            state = next_attempt_state(state, attempt, MAX_ACTION_ATTEMPTS, True)

        if state == AttemptState.SUCCEEDED:
            return

        state = next_attempt_state(state, attempt, MAX_ACTION_ATTEMPTS)
        if state == AttemptState.EXHAUSTED:
            raise ActionExecutionError(str(last_error)) from last_error

        console.print(
            f"    [yellow]WARN[/yellow] Retry {attempt}/{MAX_ACTION_ATTEMPTS} after error: {escape(str(last_error))}"
        )
        await sleep(ACTION_RETRY_DELAY_SECONDS)
        attempt += 1
