"""Shared fixtures for ORK tests."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import pytest

from ork.models.result import RunContext

REGISTRY_YAML = """\
agents:
  - id: scaffolder
    name: Scaffolder
    phase: build
    quality_gates: [scaffold_complete]
  - id: implementer-web
    name: Web Implementer
    phase: build
    max_attempts: 2
    quality_gates: [web_builds]
  - id: implementer-backend
    phase: build
    quality_gates: [api_builds]
  - id: implementer-mobile
    phase: build
    quality_gates: [mobile_builds]
  - id: integrator
    phase: build
  - id: verifier
    phase: verify
    quality_gates: [ui_verified]

pipeline:
  max_loop_iterations: 3
  phases:
    - name: build
      required: true
      agents: [scaffolder, implementer-web, implementer-backend, implementer-mobile, integrator]
    - name: verify
      agents: [verifier]
"""

CHECKLIST_YAML = """\
name: web-smoke
description: Smoke test for the web target
base_url: http://localhost:5173
checkpoints:
  - id: home
    description: Home page renders
    actions:
      - type: navigate
        url: /
      - type: assert_text
        selector: h1
        text: Welcome
      - type: screenshot
        name: home
  - id: login
    description: Login form submits
    actions:
      - type: type
        selector: "#email"
        text: user@example.com
      - type: click
        selector: "button[type=submit]"
      - type: assert_url
        contains: /dashboard
"""


class FakeSession:
    """In-memory BrowserSession. Selectors, URLs and screenshot names in ``failing`` always raise."""

    def __init__(
        self,
        failing: Optional[set[str]] = None,
        texts: Optional[dict[str, str]] = None,
        url: str = "about:blank",
    ):
        self.failing = failing or set()
        self.texts = texts or {}
        self.url = url
        self.calls: list[tuple] = []
        self.opened = False
        self.closed = False

    async def __aenter__(self) -> FakeSession:
        self.opened = True
        return self

    async def __aexit__(self, *exc) -> None:
        self.closed = True

    def _touch(self, name: str, selector: str, *args) -> None:
        self.calls.append((name, selector, *args))
        if selector in self.failing:
            raise TimeoutError(f"Timeout waiting for selector {selector}")

    async def goto(self, url: str, timeout_ms: int) -> None:
        self._touch("goto", url, timeout_ms)
        self.url = url

    async def click(self, selector: str, timeout_ms: int) -> None:
        self._touch("click", selector, timeout_ms)
        if selector == "button[type=submit]":
            self.url = self.url.rstrip("/") + "/dashboard"

    async def fill(self, selector: str, text: str, timeout_ms: int) -> None:
        self._touch("fill", selector, text, timeout_ms)

    async def select_option(self, selector: str, value: str, timeout_ms: int) -> None:
        self._touch("select_option", selector, value, timeout_ms)

    async def wait_for_selector(self, selector: str, timeout_ms: int) -> None:
        self._touch("wait_for_selector", selector, timeout_ms)

    async def text_content(self, selector: str, timeout_ms: int) -> Optional[str]:
        self._touch("text_content", selector, timeout_ms)
        return self.texts.get(selector)

    async def hover(self, selector: str, timeout_ms: int) -> None:
        self._touch("hover", selector, timeout_ms)

    async def screenshot(self, path: Path) -> None:
        self.calls.append(("screenshot", str(path)))
        if path.stem in self.failing:
            raise OSError(f"cannot write {path}")
        path.write_bytes(b"\x89PNG\r\n")

    def current_url(self) -> str:
        self.calls.append(("current_url",))
        return self.url


class RecordingSleep:
    """Stand-in for asyncio.sleep that only records the requested delays."""

    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def fake_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def make_session():
    return FakeSession


@pytest.fixture
def fake_session() -> FakeSession:
    return FakeSession(texts={"h1": "Welcome home"})


@pytest.fixture
def session_factory(fake_session: FakeSession):
    return lambda: fake_session


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """A workspace with a web-only BuildSpec, a registry and a checklist."""
    root = tmp_path / "workspace-root"
    (root / "workspace").mkdir(parents=True)
    (root / "agents").mkdir()
    (root / "checklists").mkdir()

    (root / "workspace" / "spec.json").write_text(
        json.dumps({
            "name": "todo-app",
            "targets": ["web"],
            "quality_gates": ["scaffold_complete", "web_builds"],
            "features": [{"name": "auth"}],
        }),
        encoding="utf-8",
    )
    (root / "agents" / "registry.yaml").write_text(REGISTRY_YAML, encoding="utf-8")
    (root / "checklists" / "web-smoke.yaml").write_text(CHECKLIST_YAML, encoding="utf-8")
    return root


@pytest.fixture
def checklist_path(workspace: Path) -> Path:
    return workspace / "checklists" / "web-smoke.yaml"


@pytest.fixture
def run_context(tmp_path: Path) -> RunContext:
    log_dir = tmp_path / "logs"
    ui_root = tmp_path / "ui"
    log_dir.mkdir()
    ui_root.mkdir()
    return RunContext(workspace_root=tmp_path, log_dir=log_dir, ui_artifact_root=ui_root)
