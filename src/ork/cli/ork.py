"""ORK (ork) - gated build pipeline orchestrator.

Runs the registered agents phase by phase against a workspace's BuildSpec,
and exposes the UI checklist runner as ``ork verify``.
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

import click


@click.group()
def ork_cli() -> None:
    """ORK - run the agent pipeline and UI checklists for a workspace."""


@ork_cli.command()
@click.option("--workspace", "-w", type=click.Path(exists=True, file_okay=False), help="Workspace root (default: $WORKSPACE or cwd)")
@click.option("--spec", type=click.Path(), help="BuildSpec override (default: workspace/spec.json)")
@click.option("--registry", type=click.Path(), help="Registry override (default: agents/registry.yaml)")
def run(workspace: str | None, spec: str | None, registry: str | None) -> None:
    """Run the full pipeline. Exits 0 when every quality gate is satisfied."""
    from ..core.config import get_workspace_root
    from ..core.pipeline import run_build

    root = get_workspace_root(Path(workspace) if workspace else None)
    exit_code = asyncio.run(
        run_build(
            root,
            spec_path=Path(spec) if spec else None,
            registry_path=Path(registry) if registry else None,
        )
    )
    sys.exit(exit_code)


@ork_cli.command()
@click.option("--workspace", "-w", type=click.Path(exists=True, file_okay=False), help="Workspace root (default: $WORKSPACE or cwd)")
@click.option("--spec", type=click.Path(), help="BuildSpec override")
@click.option("--registry", type=click.Path(), help="Registry override")
def plan(workspace: str | None, spec: str | None, registry: str | None) -> None:
    """Show which agents each phase would run, without running them."""
    from ..core.config import ConfigurationError, get_workspace_root, load_workspace
    from ..core.pipeline import print_plan

    root = get_workspace_root(Path(workspace) if workspace else None)
    try:
        build_spec, agent_registry = load_workspace(
            root,
            spec_path=Path(spec) if spec else None,
            registry_path=Path(registry) if registry else None,
        )
    except ConfigurationError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    print_plan(build_spec, agent_registry, root)


@ork_cli.command()
@click.argument("checklist")
@click.argument("base_url", required=False)
@click.option("--workspace", "-w", type=click.Path(exists=True, file_okay=False), help="Workspace root (default: $WORKSPACE or cwd)")
@click.option("--junit", "junit_path", type=click.Path(dir_okay=False), help="Also write a JUnit XML report")
@click.option("--headed", is_flag=True, help="Show the browser window")
def verify(
    checklist: str,
    base_url: str | None,
    workspace: str | None,
    junit_path: str | None,
    headed: bool,
) -> None:
    """Run a UI checklist in a browser.

    CHECKLIST is a YAML path, or a file name under the workspace's checklists/.

    Example: ork verify web-smoke.yaml http://localhost:5173
    """
    from ..checklist.runner import verify_checklist
    from ..core.config import get_workspace_root, resolve_checklist_path
    from ..session.base import get_session_factory

    root = get_workspace_root(Path(workspace) if workspace else None)
    exit_code = asyncio.run(
        verify_checklist(
            resolve_checklist_path(checklist, root),
            root,
            base_url=base_url,
            junit_path=Path(junit_path) if junit_path else None,
            session_factory=get_session_factory(headless=not headed),
        )
    )
    sys.exit(exit_code)


@ork_cli.command("generate-test")
@click.argument("checklist", type=click.Path())
@click.argument("output", type=click.Path(dir_okay=False))
def generate_test(checklist: str, output: str) -> None:
    """Convert a checklist into a pytest-playwright test module.

    Example: ork generate-test checklists/web-smoke.yaml tests/e2e/test_web_smoke.py
    """
    from ..checklist.codegen import generate_playwright_test
    from ..core.config import ConfigurationError

    try:
        path = generate_playwright_test(Path(checklist), Path(output))
    except ConfigurationError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    click.echo(f"Generated {path}")


def main() -> None:
    ork_cli()


if __name__ == "__main__":
    main()
