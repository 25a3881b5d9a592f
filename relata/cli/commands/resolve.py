"""Resolve command: compute one attribute's value for a single record."""

import csv
import json
from pathlib import Path

import typer

from ..app import app, console, get_json_mode
from ..utils import Output, ExitCode
from ...attributes import AttributeResolver, local_uri
from ...core.errors import RelataError
from ...core.models import RelationManifest
from ...manifests import load_configured


def _parse_record(record: str | None, csv_line: str | None):
    """Decode the record given on the command line.

    Raises:
        ValueError: If neither or both options are given, or --record is not JSON
    """
    if (record is None) == (csv_line is None):
        raise ValueError("Give exactly one of --record or --csv-line")
    if csv_line is not None:
        return next(csv.reader([csv_line]))
    try:
        return json.loads(record)
    except json.JSONDecodeError as e:
        raise ValueError(f"--record is not valid JSON: {e}") from e


def _reference_uri(relation: str, attribute: str) -> str:
    """local:// URI for 'attr' or 'attr/selector/...'."""
    name, _, selectors = attribute.partition("/")
    uri = local_uri(relation, name)
    return f"{uri}/{selectors}" if selectors else uri


@app.command("resolve")
def resolve_command(
    relation: str = typer.Argument(..., help="Relation name (e.g. iris)"),
    attribute: str | None = typer.Argument(
        None,
        help="Attribute name, optionally with selectors (e.g. features/2). "
        "Defaults to the relation's default attribute",
    ),
    record: str | None = typer.Option(
        None, "--record", "-r", help="Record as JSON (array for CSV, object for JSON)"
    ),
    csv_line: str | None = typer.Option(
        None, "--csv-line", help="Record as one comma-separated line"
    ),
    manifests: list[Path] | None = typer.Option(
        None, "--manifest", "-m", help="Extra relation manifest to register (repeatable)"
    ),
):
    """
    Resolve an attribute against one raw record.

    EXIT CODES:
        0 = Success
        1 = Usage or manifest error
        3 = Manifest file not found
        4 = Reference error (unknown relation/attribute, bad selector)
        5 = Data error (missing, mis-typed or out-of-domain field)

    EXAMPLES:
        relata resolve iris features --csv-line "5.1,3.5,1.4,0.2,setosa"
        relata resolve iris features/5 --csv-line "5.1,3.5,1.4,0.2,setosa"
        relata resolve jsonIris species --record '{"species": "setosa", ...}'
    """
    out = Output(console=console, json_mode=get_json_mode())

    try:
        raw = _parse_record(record, csv_line)
    except ValueError as e:
        out.error(str(e), exit_code=ExitCode.VALIDATION_ERROR)
        raise typer.Exit(out.finish())

    registry, _, failures = load_configured()
    for failure in failures:
        out.warning(f"Skipped manifest {failure}", location=str(failure.path))

    for path in manifests or []:
        if not path.exists():
            out.error(f"File not found: {path}", exit_code=ExitCode.FILE_NOT_FOUND)
            raise typer.Exit(out.finish())
        try:
            registry.register_manifest(RelationManifest.from_file(path))
        except RelataError as e:
            out.exception(e)
            raise typer.Exit(out.finish())

    try:
        resolver = AttributeResolver(registry)
        if attribute is None:
            attribute = registry.relation(relation).default_attribute
        uri = _reference_uri(relation, attribute)
        value = resolver.resolve_reference(uri, raw)
    except RelataError as e:
        out.exception(e)
        raise typer.Exit(out.finish())

    out.success(
        f"Resolved {relation}/{attribute}",
        relation=relation,
        attribute=attribute,
        uri=uri,
        value=value,
    )
    if not out.json_mode:
        console.print_json(data=value)

    raise typer.Exit(out.finish())
