"""Quality gate evaluation over the run's agent result history."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from ..models.result import AgentResult


@dataclass(frozen=True)
class GateReport:
    """Required gates partitioned into passed and failed, in BuildSpec order."""

    passed: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)

    @property
    def satisfied(self) -> bool:
        return not self.failed


def satisfied_gates(results: Iterable[AgentResult]) -> set[str]:
    """Gates reported by at least one successful attempt."""
    gates: set[str] = set()
    for result in results:
        if result.success:
            gates.update(result.quality_gates_satisfied)
    return gates


def evaluate_quality_gates(
    required_gates: list[str],
    results: Iterable[AgentResult],
) -> GateReport:
    """A gate passes iff some successful result in the history satisfied it."""
    achieved = satisfied_gates(results)
    passed = [g for g in required_gates if g in achieved]
    failed = [g for g in required_gates if g not in achieved]
    return GateReport(passed=passed, failed=failed)
