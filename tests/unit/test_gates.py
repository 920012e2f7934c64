"""Tests for quality gate evaluation."""

from __future__ import annotations

from ork.core.gates import GateReport, evaluate_quality_gates, satisfied_gates
from ork.models.result import AgentOutcome, AgentResult


def _ok(agent_id: str, *gates: str, attempt: int = 1) -> AgentResult:
    return AgentResult(
        agent_id=agent_id,
        attempt=attempt,
        success=True,
        outcome=AgentOutcome.SUCCEEDED,
        quality_gates_satisfied=gates,
    )


def _failed(agent_id: str, attempt: int = 1) -> AgentResult:
    return AgentResult(agent_id=agent_id, attempt=attempt, success=False, outcome=AgentOutcome.FAILED)


class TestEvaluateQualityGates:
    def test_all_satisfied(self):
        report = evaluate_quality_gates(
            ["scaffold_complete", "web_builds"],
            [_ok("scaffolder", "scaffold_complete"), _ok("implementer-web", "web_builds")],
        )
        assert report == GateReport(passed=["scaffold_complete", "web_builds"], failed=[])
        assert report.satisfied

    def test_missing_gate_fails(self):
        report = evaluate_quality_gates(["scaffold_complete", "ui_verified"], [_ok("scaffolder", "scaffold_complete")])
        assert report.passed == ["scaffold_complete"]
        assert report.failed == ["ui_verified"]
        assert not report.satisfied

    def test_failed_attempt_then_success(self):
        results = [_failed("implementer-web"), _ok("implementer-web", "web_builds", attempt=2)]
        assert evaluate_quality_gates(["web_builds"], results).satisfied

    def test_no_required_gates_is_satisfied(self):
        assert evaluate_quality_gates([], []).satisfied

    def test_keeps_required_order(self):
        report = evaluate_quality_gates(["b", "a", "c"], [_ok("x", "c", "a")])
        assert report.passed == ["a", "c"]
        assert report.failed == ["b"]


class TestSatisfiedGates:
    def test_union_over_history(self):
        results = [_ok("a", "g1"), _failed("b"), _ok("c", "g2", "g1")]
        assert satisfied_gates(results) == {"g1", "g2"}
