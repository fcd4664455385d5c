"""cfgoracle discover: show what the engine recovers from one binary."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer


def discover_cmd(
    binary: Path = typer.Argument(..., help="Path to the ELF binary"),
    emit_expected: Optional[Path] = typer.Option(
        None, "--emit-expected", "-o", help="Write a golden-file skeleton (raw addresses)"
    ),
    disasm: bool = typer.Option(False, "--disasm", help="Disassemble every block"),
) -> None:
    """Run loader, mapper and engine from the entry point and list the result."""
    from pydantic import ValidationError

    from cfgoracle.binary.disasm import disassemble
    from cfgoracle.cli.app import get_context
    from cfgoracle.discovery.invoker import discover_from_entry
    from cfgoracle.errors import FixtureError
    from cfgoracle.utils.formatters import console, print_error, print_success, print_table
    from cfgoracle.verification.golden import ExpectedResult, dump_expected

    if not binary.exists():
        print_error(f"File not found: {binary}")
        raise typer.Exit(1)

    runner = get_context().runner()
    to_raw = runner.normalizer.to_raw
    try:
        container, memory = runner.map_binary(binary)
        discovered = discover_from_entry(
            container, memory, runner.normalizer, runner.arch, runner.engine
        )
    except FixtureError as exc:
        print_error(str(exc))
        raise typer.Exit(1)

    rows = []
    for entry in sorted(discovered):
        func = discovered[entry]
        for addr in sorted(func.blocks):
            block = func.blocks[addr]
            rows.append(
                {
                    "function": f"{hex(entry)} (raw {hex(to_raw(entry))})",
                    "block": f"{hex(addr)} (raw {hex(to_raw(addr))})",
                    "size": block.size,
                    "terminator": block.terminator.value,
                }
            )
    print_table(rows, title=f"{binary}: {len(discovered)} function(s)")

    if disasm:
        for entry in sorted(discovered):
            for addr, block in sorted(discovered[entry].blocks.items()):
                console.print(f"\n[bold]{hex(addr)}[/bold] ({block.terminator.value})")
                try:
                    lines = disassemble(memory, addr, block.size)
                except ValueError:
                    lines = [f"{hex(addr)}: (unmapped)"]
                for line in lines:
                    console.print(f"  {line}", markup=False)

    if emit_expected is not None:
        funcs = [
            [to_raw(entry), [[to_raw(b.address), b.size] for _, b in sorted(func.blocks.items())]]
            for entry, func in sorted(discovered.items())
        ]
        try:
            result = ExpectedResult.model_validate({"funcs": funcs, "ignoreBlocks": []})
        except ValidationError as exc:
            print_error(f"Discovered functions do not form a valid golden file: {exc}")
            raise typer.Exit(1)
        emit_expected.write_text(dump_expected(result))
        print_success(f"Golden skeleton written to {emit_expected}")
