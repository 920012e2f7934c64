"""Workspace configuration for ORK.

Loads and validates, before any phase runs:
1. The BuildSpec (workspace/spec.json)
2. The agent registry (agents/registry.yaml), merged over built-in defaults
3. UI checklists (checklists/*.yaml)
"""

from __future__ import annotations

import copy
import json
import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import ValidationError

from ..models.buildspec import BuildSpec
from ..models.checklist import Checklist
from ..models.registry import AgentRegistry
from ..models.result import RunContext

WORKSPACE_ENV = "WORKSPACE"

SPEC_PATH = Path("workspace") / "spec.json"
REGISTRY_PATH = Path("agents") / "registry.yaml"
CHECKLISTS_DIR = Path("checklists")
UI_ARTIFACTS_DIR = Path("artifacts") / "ui"

DEFAULT_REGISTRY: dict = {
    "agents": [],
    "pipeline": {
        "max_loop_iterations": 3,
        "phases": [],
        "quality_loop": {
            "enabled": True,
            "retry_on_failure": True,
        },
        "logging": {
            "log_directory": "artifacts/logs/agents",
        },
    },
}


class ConfigurationError(ValueError):
    """Missing or invalid BuildSpec, registry or checklist."""


def deep_merge(base: dict, override: dict) -> dict:
    """Deep merge two dicts. Lists are replaced, not merged."""
    result = dict(base)
    for key, value in override.items():
        base_value = result.get(key)
        if isinstance(base_value, dict) and isinstance(value, dict):
            result[key] = deep_merge(base_value, value)
        else:
            result[key] = value
    return result


def get_workspace_root(override: Optional[Path] = None) -> Path:
    """Resolve the workspace root: explicit override, $WORKSPACE, then cwd."""
    if override is not None:
        return Path(override).resolve()
    env_root = os.environ.get(WORKSPACE_ENV, "").strip()
    if env_root:
        return Path(env_root).resolve()
    return Path.cwd().resolve()


def _format_validation_error(source: Path, exc: ValidationError) -> str:
    problems = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err.get("loc", ())) or "<root>"
        problems.append(f"{loc}: {err.get('msg', 'invalid')}")
    return f"{source}: " + "; ".join(problems)


def _read_yaml(path: Path) -> dict:
    if not path.exists():
        raise ConfigurationError(f"{path} not found")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8-sig"))  # utf-8-sig strips BOM
    except yaml.YAMLError as e:
        raise ConfigurationError(f"{path}: invalid YAML: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"{path}: expected a mapping at the top level")
    return data


def load_build_spec(path: Path) -> BuildSpec:
    """Load and validate workspace/spec.json."""
    if not path.exists():
        raise ConfigurationError(f"{path} not found")
    try:
        raw = json.loads(path.read_text(encoding="utf-8-sig"))
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"{path}: invalid JSON: {e}") from e
    try:
        return BuildSpec.model_validate(raw)
    except ValidationError as e:
        raise ConfigurationError(_format_validation_error(path, e)) from e


def load_registry(path: Path) -> AgentRegistry:
    """Load agents/registry.yaml merged over DEFAULT_REGISTRY."""
    raw = deep_merge(copy.deepcopy(DEFAULT_REGISTRY), _read_yaml(path))
    try:
        return AgentRegistry.model_validate(raw)
    except ValidationError as e:
        raise ConfigurationError(_format_validation_error(path, e)) from e


def load_checklist(path: Path) -> Checklist:
    """Load and validate a UI checklist YAML file."""
    raw = _read_yaml(path)
    try:
        return Checklist.model_validate(raw)
    except ValidationError as e:
        raise ConfigurationError(_format_validation_error(path, e)) from e


def validate_gates(spec: BuildSpec, registry: AgentRegistry) -> None:
    """Every gate the BuildSpec requires must be producible by a registered agent."""
    producible = registry.producible_gates()
    orphaned = [g for g in spec.quality_gates if g not in producible]
    if orphaned:
        raise ConfigurationError(
            f"quality gates not produced by any registered agent: {', '.join(orphaned)}"
        )


def load_workspace(
    workspace_root: Path,
    spec_path: Optional[Path] = None,
    registry_path: Optional[Path] = None,
) -> tuple[BuildSpec, AgentRegistry]:
    """Load the BuildSpec and registry for a workspace and cross-validate them."""
    spec = load_build_spec(spec_path or workspace_root / SPEC_PATH)
    registry = load_registry(registry_path or workspace_root / REGISTRY_PATH)
    validate_gates(spec, registry)
    return spec, registry


def create_run_context(workspace_root: Path, registry: AgentRegistry) -> RunContext:
    """Build the initial run context and make sure the artifact roots exist."""
    log_dir = Path(registry.pipeline.logging.log_directory)
    if not log_dir.is_absolute():
        log_dir = workspace_root / log_dir
    ui_root = workspace_root / UI_ARTIFACTS_DIR

    log_dir.mkdir(parents=True, exist_ok=True)
    ui_root.mkdir(parents=True, exist_ok=True)

    return RunContext(
        workspace_root=workspace_root,
        log_dir=log_dir,
        ui_artifact_root=ui_root,
    )


def resolve_checklist_path(checklist: str, workspace_root: Path) -> Path:
    """Accept a path, or a bare name looked up under the workspace's checklists/."""
    candidate = Path(checklist)
    if candidate.exists() or candidate.is_absolute():
        return candidate
    return workspace_root / CHECKLISTS_DIR / checklist
