"""UI runner (ork-ui) - run one checklist against a web app.

Standalone entry point for the checklist runner; results land under
``artifacts/ui/<timestamp>/`` in the workspace.
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

import click


@click.command(name="ork-ui")
@click.argument("checklist", type=click.Path())
@click.argument("base_url", required=False)
@click.option("--junit", "junit_path", type=click.Path(dir_okay=False), help="Also write a JUnit XML report")
@click.option("--headed", is_flag=True, help="Show the browser window")
def ui_runner_cli(
    checklist: str,
    base_url: str | None,
    junit_path: str | None,
    headed: bool,
) -> None:
    """Run CHECKLIST, optionally against BASE_URL instead of its own base_url."""
    from ..checklist.runner import verify_checklist
    from ..core.config import get_workspace_root
    from ..session.base import get_session_factory

    exit_code = asyncio.run(
        verify_checklist(
            Path(checklist),
            get_workspace_root(),
            base_url=base_url,
            junit_path=Path(junit_path) if junit_path else None,
            session_factory=get_session_factory(headless=not headed),
        )
    )
    sys.exit(exit_code)


def main() -> None:
    ui_runner_cli()


if __name__ == "__main__":
    main()
