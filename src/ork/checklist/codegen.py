"""Render a checklist as a standalone pytest module for pytest-playwright.

The generated file uses the ``page`` fixture and Playwright's sync API, so
it can run in CI without ORK installed.
"""

from __future__ import annotations

import inspect
import re
from pathlib import Path

from ..core.config import load_checklist
from ..models.checklist import (
    Action,
    AssertTextAction,
    AssertUrlAction,
    Checklist,
    ClickAction,
    HoverAction,
    NavigateAction,
    ScreenshotAction,
    SelectAction,
    TypeAction,
    WaitForAction,
)
from .actions import resolve_url

INDENT = "    "


def _test_name(name: str) -> str:
    slug = re.sub(r"[^0-9a-zA-Z]+", "_", name).strip("_").lower()
    return f"test_{slug or 'checklist'}"


def render_action(action: Action) -> str:
    """Return one line of Python for an action."""
    if isinstance(action, NavigateAction):
        return f"page.goto(resolve_url(BASE_URL, {action.url!r}), timeout={action.timeout_ms})"
    if isinstance(action, ClickAction):
        return f"page.click({action.selector!r}, timeout={action.timeout_ms})"
    if isinstance(action, TypeAction):
        return f"page.fill({action.selector!r}, {action.text!r}, timeout={action.timeout_ms})"
    if isinstance(action, SelectAction):
        return f"page.select_option({action.selector!r}, {action.value!r}, timeout={action.timeout_ms})"
    if isinstance(action, WaitForAction):
        return f"page.wait_for_selector({action.selector!r}, timeout={action.timeout_ms})"
    if isinstance(action, AssertTextAction):
        return f"expect(page.locator({action.selector!r})).to_contain_text({action.text!r})"
    if isinstance(action, AssertUrlAction):
        return f"assert {action.contains!r} in page.url"
    if isinstance(action, ScreenshotAction):
        return f"page.screenshot(path={('screenshots/' + action.name + '.png')!r}, full_page=True)"
    if isinstance(action, HoverAction):
        return f"page.hover({action.selector!r}, timeout={action.timeout_ms})"
    return f"# unsupported action: {action!r}"


def render_playwright_test(checklist: Checklist) -> str:
    lines: list[str] = []
    lines.append(f'"""Generated from checklist: {checklist.name}')
    if checklist.description:
        lines.append("")
        lines.append(checklist.description.replace('"""', "'''"))
    lines.append('"""')
    lines.append("")
    lines.append("from playwright.sync_api import Page, expect")
    lines.append("")
    lines.append(f"BASE_URL = {checklist.base_url!r}")
    lines.append("")
    lines.append("")
    # Same URL joining as the in-process runner.
    lines.append(inspect.getsource(resolve_url).rstrip())
    lines.append("")
    lines.append("")
    lines.append(f"def {_test_name(checklist.name)}(page: Page) -> None:")

    blocks: list[str] = []
    for checkpoint in checklist.checkpoints:
        header = checkpoint.id
        if checkpoint.description:
            header += f": {checkpoint.description}"
        block = [f"{INDENT}# {header}"]
        for action in checkpoint.actions:
            block.append(INDENT + render_action(action))
        blocks.append("\n".join(block))

    if blocks:
        lines.append("\n\n".join(blocks))
    else:
        lines.append(f"{INDENT}pass")

    return "\n".join(lines) + "\n"


def generate_playwright_test(checklist_path: Path, output_path: Path) -> Path:
    """Load a checklist YAML file and write the generated test module."""
    checklist = load_checklist(checklist_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(render_playwright_test(checklist), encoding="utf-8")
    return output_path
