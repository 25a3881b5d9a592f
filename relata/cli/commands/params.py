"""Params command: validate learner parameters and print toolkit arguments."""

import shlex
from pathlib import Path

import typer

from ..app import app, console, get_json_mode
from ..utils import Output, ExitCode, parse_assignments
from ...core.errors import RelataError
from ...core.models import LearnerManifest
from ...learners import render_value
from ...manifests import load_configured


@app.command("params")
def params_command(
    learner: str = typer.Argument(..., help="Learner name (e.g. j48)"),
    assignments: list[str] | None = typer.Option(
        None, "--set", "-s", help="Parameter value as name=value (repeatable)"
    ),
    manifest: Path | None = typer.Option(
        None, "--manifest", "-m", help="Learner manifest to add to the catalog"
    ),
):
    """
    Validate parameters for a learner and print its toolkit arguments.

    Values are read as the parameter's declared type; omitted parameters
    take their defaults.

    EXIT CODES:
        0 = Success
        1 = Usage or manifest error
        3 = Manifest file not found
        6 = Parameter error (unknown learner, bad type, constraint violation)

    EXAMPLES:
        relata params j48
        relata params j48 --set confidence=0.1 --set min_instances=2
        relata --json params kmeans --set k=3
    """
    out = Output(console=console, json_mode=get_json_mode())

    try:
        raw = parse_assignments(assignments)
    except ValueError as e:
        out.error(str(e), exit_code=ExitCode.VALIDATION_ERROR)
        raise typer.Exit(out.finish())

    _, catalog, _ = load_configured()

    if manifest is not None:
        if not manifest.exists():
            out.error(f"File not found: {manifest}", exit_code=ExitCode.FILE_NOT_FOUND)
            raise typer.Exit(out.finish())
        try:
            catalog.add(LearnerManifest.from_file(manifest))
        except RelataError as e:
            out.exception(e)
            raise typer.Exit(out.finish())

    try:
        schema = catalog.schema(learner)
        validated = schema.validate(schema.coerce(raw))
        tokens = schema.translate(validated)
    except RelataError as e:
        out.exception(e)
        raise typer.Exit(out.finish())

    out.success(
        f"Validated {len(validated.values)} parameter(s) for {learner}",
        learner=learner,
        toolkit=schema.manifest.toolkit_style,
        parameters=validated.as_dict(),
        arguments=tokens,
    )
    if validated.values:
        out.table(
            "Parameters",
            ["Name", "Value", "Source"],
            [
                [name, render_value(value), "set" if name in raw else "default"]
                for name, value in validated.values.items()
            ],
            data_key="parameter_sources",
            styles=["cyan", None, "dim"],
        )
    out.text(shlex.join(tokens) if tokens else "[dim](no arguments)[/dim]")

    raise typer.Exit(out.finish())
