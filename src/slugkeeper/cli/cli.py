"""CLI entrypoint: Typer app definition, logging setup and command registration"""

from typing import Annotated, Optional

import typer

from slugkeeper.cli.commands import (
    _settings, assign_cmd, classify_cmd, history_cmd, init_cmd, purge_cmd, resolve_cmd, slugify_cmd,
)
from slugkeeper.logs import configure_logging


app = typer.Typer(name="slugkeeper", no_args_is_help=True, help="Slug allocation and history for database records")


@app.callback()
def main(
    log_level: Annotated[Optional[str], typer.Option("--log-level", help="DEBUG, INFO, WARNING or ERROR")] = None,
    ):
    """Configure logging before any command runs."""
    settings = _settings(overrides={"log_level": log_level.upper() if log_level else None})
    configure_logging(settings.log_level, settings.log_format)


app.command(name="init")(init_cmd)
app.command(name="assign")(assign_cmd)
app.command(name="resolve")(resolve_cmd)
app.command(name="classify")(classify_cmd)
app.command(name="history")(history_cmd)
app.command(name="purge")(purge_cmd)
app.command(name="slugify")(slugify_cmd)
