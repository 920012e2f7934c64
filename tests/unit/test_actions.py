"""Tests for checklist/actions.py."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import TypeAdapter

from ork.checklist.actions import (
    ACTION_RETRY_DELAY_SECONDS,
    MAX_ACTION_ATTEMPTS,
    ActionExecutionError,
    describe_action,
    execute_action,
    resolve_url,
    run_action_with_retry,
)
from ork.models.checklist import Action

ACTION = TypeAdapter(Action)
BASE = "http://localhost:5173"


def _action(**data) -> Action:
    return ACTION.validate_python(data)


class TestResolveUrl:
    def test_relative_path(self):
        assert resolve_url(BASE, "/login") == "http://localhost:5173/login"

    def test_empty_path_is_base(self):
        assert resolve_url(BASE, "") == BASE

    def test_no_double_slash(self):
        assert resolve_url(BASE + "/", "/login") == "http://localhost:5173/login"

    def test_absolute_url_passes_through(self):
        assert resolve_url(BASE, "https://example.com/x") == "https://example.com/x"


class TestExecuteAction:
    @pytest.mark.asyncio
    async def test_navigate_uses_base_url(self, fake_session, tmp_path: Path):
        await execute_action(_action(type="navigate", url="/login"), fake_session, BASE, tmp_path)
        assert fake_session.calls == [("goto", "http://localhost:5173/login", 30000)]

    @pytest.mark.asyncio
    async def test_type_fills(self, fake_session, tmp_path: Path):
        await execute_action(_action(type="type", selector="#email", text="a@b.c"), fake_session, BASE, tmp_path)
        assert fake_session.calls == [("fill", "#email", "a@b.c", 5000)]

    @pytest.mark.asyncio
    async def test_select_and_hover(self, fake_session, tmp_path: Path):
        await execute_action(_action(type="select", selector="#plan", value="pro"), fake_session, BASE, tmp_path)
        await execute_action(_action(type="hover", selector="#menu", timeout=200), fake_session, BASE, tmp_path)
        assert fake_session.calls == [("select_option", "#plan", "pro", 5000), ("hover", "#menu", 200)]

    @pytest.mark.asyncio
    async def test_assert_text_mismatch_reports_both(self, fake_session, tmp_path: Path):
        with pytest.raises(ActionExecutionError) as exc_info:
            await execute_action(_action(type="assert_text", selector="h1", text="Goodbye"), fake_session, BASE, tmp_path)
        message = str(exc_info.value)
        assert "Goodbye" in message
        assert "Welcome home" in message

    @pytest.mark.asyncio
    async def test_assert_text_substring_passes(self, fake_session, tmp_path: Path):
        await execute_action(_action(type="assert_text", selector="h1", text="Welcome"), fake_session, BASE, tmp_path)

    @pytest.mark.asyncio
    async def test_assert_url_mismatch_reports_both(self, make_session, tmp_path: Path):
        session = make_session(url="http://localhost:5173/login")
        with pytest.raises(ActionExecutionError) as exc_info:
            await execute_action(_action(type="assert_url", contains="/dashboard"), session, BASE, tmp_path)
        assert "/dashboard" in str(exc_info.value)
        assert "http://localhost:5173/login" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_screenshot_lands_in_run_dir(self, fake_session, tmp_path: Path):
        await execute_action(_action(type="screenshot", name="home"), fake_session, BASE, tmp_path)
        assert (tmp_path / "home.png").exists()


class TestRunActionWithRetry:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "data",
        [
            {"type": "navigate", "url": "/broken"},
            {"type": "click", "selector": "#missing"},
            {"type": "type", "selector": "#missing", "text": "hello"},
            {"type": "select", "selector": "#missing", "value": "pro"},
            {"type": "wait_for", "selector": "#missing"},
            {"type": "hover", "selector": "#missing"},
            {"type": "assert_text", "selector": "h1", "text": "Goodbye"},
            {"type": "assert_url", "contains": "/dashboard"},
            {"type": "screenshot", "name": "broken"},
        ],
        ids=lambda data: data["type"],
    )
    async def test_every_action_type_gets_three_attempts_one_second_apart(
        self, data, make_session, fake_sleep, tmp_path: Path
    ):
        session = make_session(
            failing={"#missing", "broken", BASE + "/broken"},
            texts={"h1": "Welcome home"},
        )
        with pytest.raises(ActionExecutionError):
            await run_action_with_retry(_action(**data), session, BASE, tmp_path, sleep=fake_sleep)
        assert len(session.calls) == MAX_ACTION_ATTEMPTS == 3
        assert fake_sleep.delays == [ACTION_RETRY_DELAY_SECONDS] * 2 == [1.0, 1.0]

    @pytest.mark.asyncio
    async def test_exhausted_error_carries_last_message(self, make_session, fake_sleep, tmp_path: Path):
        session = make_session(failing={"#missing"})
        with pytest.raises(ActionExecutionError, match="#missing"):
            await run_action_with_retry(
                _action(type="click", selector="#missing"), session, BASE, tmp_path, sleep=fake_sleep
            )

    @pytest.mark.asyncio
    async def test_success_needs_no_retry(self, fake_session, fake_sleep, tmp_path: Path):
        await run_action_with_retry(
            _action(type="wait_for", selector="#app"), fake_session, BASE, tmp_path, sleep=fake_sleep
        )
        assert len(fake_session.calls) == 1
        assert fake_sleep.delays == []

    @pytest.mark.asyncio
    async def test_recovers_on_later_attempt(self, fake_session, fake_sleep, tmp_path: Path):
        attempts = []

        async def flaky_click(selector, timeout_ms):
            attempts.append(selector)
            if len(attempts) < 2:
                raise TimeoutError("not yet")

        fake_session.click = flaky_click
        await run_action_with_retry(
            _action(type="click", selector="#go"), fake_session, BASE, tmp_path, sleep=fake_sleep
        )
        assert len(attempts) == 2
        assert fake_sleep.delays == [1.0]


class TestDescribeAction:
    def test_descriptions(self):
        assert describe_action(_action(type="navigate", url="/")) == "Navigate to /"
        assert describe_action(_action(type="click", selector="#go")) == "Click #go"
        assert describe_action(_action(type="screenshot", name="home")) == "Screenshot: home.png"
