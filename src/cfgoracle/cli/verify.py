"""cfgoracle verify: run golden fixtures against the recovery engine."""

from __future__ import annotations

from pathlib import Path
from typing import List

import typer


def verify_cmd(
    paths: List[Path] = typer.Argument(..., help="Golden files or directories of them"),
    recursive: bool = typer.Option(False, "--recursive", "-r", help="Recursively scan directories"),
) -> None:
    """Verify every fixture; exits non-zero if any fixture fails or errors."""
    from cfgoracle.cli.app import get_context
    from cfgoracle.driver import collect_fixtures
    from cfgoracle.utils.formatters import print_error, print_outcomes, print_success
    from cfgoracle.utils.progress import progress_context

    ctx = get_context()
    cfg = ctx.ensure_config()

    missing = [p for p in paths if not p.exists()]
    if missing:
        print_error(f"Path not found: {', '.join(str(p) for p in missing)}")
        raise typer.Exit(1)

    cases = collect_fixtures(
        paths,
        expected_suffix=cfg.fixtures.expected_suffix,
        binary_suffix=cfg.fixtures.binary_suffix,
        recursive=recursive or cfg.fixtures.recursive,
    )
    if not cases:
        print_error(f"No *{cfg.fixtures.expected_suffix} fixtures found.")
        raise typer.Exit(1)

    runner = ctx.runner()
    outcomes = []
    with progress_context("Verifying fixtures", total=len(cases)) as (progress, task_id):
        for case in cases:
            outcomes.append(runner.run(case))
            progress.advance(task_id)

    print_outcomes(outcomes)
    passed = sum(1 for o in outcomes if o.ok)
    if passed != len(outcomes):
        print_error(f"{len(outcomes) - passed} of {len(outcomes)} fixture(s) did not pass")
        raise typer.Exit(1)
    print_success(f"All {passed} fixture(s) passed")
