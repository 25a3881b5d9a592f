"""`relata config`: show, set and reset the persisted configuration."""

import typer

from ..app import app, console
from ... import config as config_module
from ...config import (
    get_config,
    parse_bool,
    parse_log_level,
    parse_mode,
    reset_config,
    split_dirs,
)


# key -> converter from command-line text
SETTABLE = {
    "manifests.relation_dirs": split_dirs,
    "manifests.learner_dirs": split_dirs,
    "manifests.include_bundled": parse_bool,
    "cli.mode": parse_mode,
    "cli.log_level": parse_log_level,
    "validation.strict": parse_bool,
}


@app.command("config")
def config_command(
    action: str = typer.Argument(..., help="show, set or reset"),
    key: str | None = typer.Argument(None, help="Dotted key, e.g. cli.mode"),
    value: str | None = typer.Argument(None, help="New value for KEY"),
):
    """Inspect or change the relata config file.

    Directory lists use the platform path separator (':' on Linux and macOS).

    Examples:
        relata config show
        relata config set manifests.relation_dirs ./relations:./more-relations
        relata config set cli.mode agent
        relata config reset
    """
    if action == "show":
        _show_config()
    elif action == "set":
        if not key or value is None:
            console.print("[red]Usage:[/red] relata config set <key> <value>")
            _print_keys()
            raise typer.Exit(1)
        _set_config(key, value)
    elif action == "reset":
        _reset_config()
    else:
        console.print(f"[red]Unknown action:[/red] {action} (expected show, set or reset)")
        raise typer.Exit(1)


def _print_keys() -> None:
    console.print()
    console.print("Settable keys:")
    for k in SETTABLE:
        console.print(f"  {k}")


def _format_value(value) -> str:
    if isinstance(value, list):
        return ", ".join(value) if value else "[dim](none)[/dim]"
    return str(value)


def _show_config():
    config = get_config()

    console.print()
    console.print("[bold]Relata Configuration[/bold]")
    console.print("─" * 40)

    for section, fields in config.to_dict().items():
        console.print()
        title = "CLI" if section == "cli" else section.capitalize()
        console.print(f"[bold cyan]{title}[/bold cyan]")
        width = max(len(name) for name in fields)
        for name, value in fields.items():
            console.print(f"  {name.ljust(width)} = {_format_value(value)}")

    console.print()
    path = config_module.config_file()
    state = "" if path.exists() else "[dim]not created yet[/dim] "
    console.print(f"Config file: {state}{path}")
    console.print()


def _set_config(key: str, value: str):
    convert = SETTABLE.get(key)
    if convert is None:
        console.print(f"[red]Unknown key:[/red] {key}")
        _print_keys()
        raise typer.Exit(1)

    try:
        converted = convert(value)
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    config = get_config()
    section, field_name = key.split(".", 1)
    setattr(getattr(config, section), field_name, converted)
    config.save()
    reset_config()

    console.print(f"[green]✓[/green] Set {key} = {_format_value(converted)}")
    console.print(f"  Saved to {config_module.config_file()}")


def _reset_config():
    path = config_module.config_file()
    if not path.exists():
        console.print(f"Nothing to reset: no config file at {path}")
        return
    path.unlink()
    reset_config()
    console.print("[green]✓[/green] Config reset to defaults")
    console.print(f"  Removed {path}")
