"""JUnit XML formatter for checklist runs, for CI test reporters."""

from __future__ import annotations

from pathlib import Path
from xml.dom import minidom
from xml.etree import ElementTree as ET

from ..models.checklist import Checklist, RunResult


def export_checklist_junit(
    checklist: Checklist,
    result: RunResult,
    output_path: Path,
) -> dict:
    """Export a checklist run as JUnit XML.

    Args:
        checklist: The checklist that was run; supplies checkpoint order and names.
        result: Its RunResult; a checkpoint listed in ``failures`` becomes a
            failed testcase, every other checkpoint a passed one.
        output_path: Path to write the XML file.

    Returns:
        Dict with: path, total_tests, failures, passed.
    """
    failures = {f.checkpoint: f for f in result.failures}

    testsuites = ET.Element("testsuites")
    testsuites.set("name", checklist.name)
    testsuites.set("timestamp", result.timestamp)

    testsuite = ET.SubElement(testsuites, "testsuite")
    testsuite.set("name", checklist.name)
    testsuite.set("tests", str(len(checklist.checkpoints)))

    total_failures = 0
    for checkpoint in checklist.checkpoints:
        testcase = ET.SubElement(testsuite, "testcase")
        testcase.set("name", f"{checkpoint.id}: {checkpoint.description}" if checkpoint.description else checkpoint.id)
        testcase.set("classname", checklist.name)

        failed = failures.get(checkpoint.id)
        if failed is not None:
            total_failures += 1
            failure = ET.SubElement(testcase, "failure")
            failure.set("message", failed.error.splitlines()[0] if failed.error else "failed")
            failure.set("type", "checkpoint")
            failure.text = f"Checkpoint: {checkpoint.id}\n\n{failed.error}"

    testsuite.set("failures", str(total_failures))
    testsuite.set("errors", "0")
    testsuite.set("skipped", "0")

    total_tests = len(checklist.checkpoints)
    testsuites.set("tests", str(total_tests))
    testsuites.set("failures", str(total_failures))
    testsuites.set("errors", "0")

    output_path.parent.mkdir(parents=True, exist_ok=True)

    rough = ET.tostring(testsuites, encoding="unicode")
    dom = minidom.parseString(rough)
    output_path.write_bytes(dom.toprettyxml(indent="  ", encoding="UTF-8"))

    return {
        "path": str(output_path),
        "total_tests": total_tests,
        "failures": total_failures,
        "passed": total_tests - total_failures,
    }
