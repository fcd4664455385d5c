"""cfgoracle show: print a golden file in raw and runtime addresses."""

from __future__ import annotations

from pathlib import Path

import typer


def show_cmd(
    expected: Path = typer.Argument(..., help="Golden-result file"),
) -> None:
    """Parse a golden file and list its functions, blocks and ignored addresses."""
    from cfgoracle.arch import get_architecture
    from cfgoracle.cli.app import get_context
    from cfgoracle.errors import FixtureError
    from cfgoracle.utils.formatters import console, print_error, print_table
    from cfgoracle.verification.addresses import AddressNormalizer
    from cfgoracle.verification.golden import load_expected

    cfg = get_context().ensure_config()
    normalizer = AddressNormalizer(
        cfg.load_offset, get_architecture(cfg.architecture).address_width
    )
    try:
        result = load_expected(expected)
    except FixtureError as exc:
        print_error(str(exc))
        raise typer.Exit(1)

    rows = []
    for func in result.functions():
        for start, size in sorted(func.blocks):
            rows.append(
                {
                    "function": hex(func.entry),
                    "block (raw)": hex(start),
                    "block (runtime)": hex(normalizer.to_runtime(start)),
                    "size": size,
                }
            )
    print_table(rows, title=f"{expected} (load offset {hex(cfg.load_offset)})")
    if result.ignore_blocks:
        ignored = ", ".join(
            f"{hex(a)} -> {hex(normalizer.to_runtime(a))}" for a in result.ignore_blocks
        )
        console.print(f"[bold]Ignored:[/bold] {ignored}")
