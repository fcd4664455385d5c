"""Root Typer application with subcommand registration."""

from __future__ import annotations

from typing import Optional

import typer

from cfgoracle import OracleContext, __version__

app = typer.Typer(
    name="cfgoracle",
    help="cfgoracle: check recovered functions and blocks against golden results",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# Shared state across commands
_ctx = OracleContext()


def get_context() -> OracleContext:
    return _ctx


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"cfgoracle {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    config: Optional[str] = typer.Option(None, "--config", "-C", help="Path to cfgoracle.yaml"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
    json_logs: bool = typer.Option(False, "--json-logs", help="Emit logs as JSON"),
    load_offset: Optional[str] = typer.Option(
        None, "--load-offset", help="Override the image load offset (e.g. 0x400000)"
    ),
    version: Optional[bool] = typer.Option(
        None, "--version", "-V", callback=_version_callback, is_eager=True
    ),
) -> None:
    """cfgoracle: check recovered functions and blocks against golden results."""
    from cfgoracle.config.loader import load_config
    from cfgoracle.errors import ConfigError
    from cfgoracle.utils.formatters import print_error
    from cfgoracle.utils.logging import setup_logging

    try:
        _ctx.config = load_config(config, overrides={"load_offset": load_offset})
    except ConfigError as exc:
        print_error(str(exc))
        raise typer.Exit(2)

    log_cfg = _ctx.config.logging
    setup_logging(
        level="DEBUG" if verbose else log_cfg.level,
        json_output=json_logs or log_cfg.json_output,
    )


# -- Subcommand registration --
from cfgoracle.cli.discover import discover_cmd  # noqa: E402
from cfgoracle.cli.show import show_cmd  # noqa: E402
from cfgoracle.cli.verify import verify_cmd  # noqa: E402

app.command(name="verify")(verify_cmd)
app.command(name="discover")(discover_cmd)
app.command(name="show")(show_cmd)
