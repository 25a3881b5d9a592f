"""The `relata` typer application, its global flags and logging setup."""

import logging
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler

app = typer.Typer(
    name="relata",
    help="Resolve relation attributes and validate learner parameters.",
    no_args_is_help=True,
)

console = Console()

# Set once per invocation by main_callback
_json_mode = False


def get_json_mode() -> bool:
    return _json_mode


def is_agent_mode() -> bool:
    """True when `cli.mode` is "agent", which implies --json on every command."""
    from ..config import get_config

    return get_config().cli.mode == "agent"


def setup_logging(verbose: bool = False, debug: bool = False) -> None:
    """Send relata's log records to the console through rich.

    --debug wins over --verbose; with neither, `cli.log_level` applies.
    """
    from ..config import get_config

    if debug:
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    else:
        level = get_config().log_level

    handler = RichHandler(console=console, show_path=False, markup=False)
    logging.basicConfig(level=level, format="%(message)s", datefmt="[%X]", handlers=[handler], force=True)
    logging.getLogger("relata").setLevel(level)


def _print_version(value: bool) -> None:
    if not value:
        return
    from .. import __version__

    print(f"relata {__version__}")
    raise typer.Exit()


@app.callback()
def main_callback(
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Emit one JSON document instead of rich text", is_eager=True),
    ] = False,
    version: Annotated[
        bool,
        typer.Option("--version", help="Print the relata version", callback=_print_version, is_eager=True),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Log manifest loading at INFO level"),
    ] = False,
    debug: Annotated[
        bool,
        typer.Option("--debug", help="Log at DEBUG level"),
    ] = False,
):
    """Relata: attribute references and learner parameters for ML tasks."""
    global _json_mode
    _json_mode = json_output or is_agent_mode()
    setup_logging(verbose=verbose, debug=debug)


from .commands import (  # noqa: E402, F401
    validate,
    resolve,
    describe,
    params,
    config_cmd,
)
