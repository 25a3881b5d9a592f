"""Validate command for relation and learner manifests."""

import logging
from pathlib import Path

import typer

from ..app import app, console, get_json_mode
from ..utils import Output, ExitCode, format_validation_for_json
from ...attributes import AttributeRegistry
from ...config import get_config
from ...core.errors import RelataError
from ...core.models import RelationManifest, ValidationResult
from ...utils import iter_manifest_files
from ...validator import validate_manifest_file

logger = logging.getLogger(__name__)


def _collect_files(paths: list[Path]) -> tuple[list[Path], list[Path]]:
    """Expand directories into manifest files; return (files, missing)."""
    files: list[Path] = []
    missing: list[Path] = []
    for path in paths:
        if path.is_dir():
            files.extend(iter_manifest_files(path))
        elif path.exists():
            files.append(path)
        else:
            missing.append(path)
    return files, missing


def _register_valid_relation(path: Path, registry: AttributeRegistry) -> None:
    """Make a valid relation available to cross-relation references in later files."""
    try:
        registry.register_manifest(RelationManifest.from_file(path))
    except RelataError as e:
        logger.debug("Not registering %s for later references: %s", path, e)


def _report(out: Output, path: Path, kind: str, result: ValidationResult, strict: bool) -> bool:
    """Print one file's issues; return whether it passes."""
    passed = result.valid and not (strict and result.warnings)

    for issue in result.errors:
        out.error(
            f"{issue.location}: {issue.message}",
            location=issue.location,
            category=issue.category,
            suggestion=issue.suggestion,
        )
    report_warning = out.error if strict else out.warning
    for issue in result.warnings:
        report_warning(
            f"{issue.location}: {issue.message}",
            location=issue.location,
            category=issue.category,
            suggestion=issue.suggestion,
        )

    if passed:
        suffix = f" ({len(result.warnings)} warning(s))" if result.warnings else ""
        out.text(f"[green]✓[/green] {path} [dim]{kind}[/dim]{suffix}")
    else:
        out.text(f"[red]✗[/red] {path} [dim]{kind}[/dim]")
    return passed


@app.command("validate")
def validate_command(
    paths: list[Path] = typer.Argument(
        ..., help="Manifest files or directories of manifests"
    ),
    strict: bool = typer.Option(
        False, "--strict", help="Treat warnings as errors"
    ),
):
    """
    Validate relation and learner manifests.

    Every problem in a manifest is reported, not just the first. Files are
    checked in order, and relations that pass are visible to cross-relation
    references in later files.

    EXIT CODES:
        0 = Success (all manifests valid)
        1 = Validation error (at least one invalid manifest)
        3 = File not found

    EXAMPLES:
        relata validate manifests/relations/iris.jsonc
        relata validate manifests/relations manifests/learners
        relata validate learners/j48.jsonc --strict
    """
    out = Output(console=console, json_mode=get_json_mode())
    strict = strict or get_config().validation.strict

    files, missing = _collect_files(paths)
    if missing:
        for path in missing:
            out.error(
                f"File not found: {path}",
                exit_code=ExitCode.FILE_NOT_FOUND,
                suggestion=f"Check the file path: {path.absolute()}",
            )
        raise typer.Exit(out.finish())

    registry = AttributeRegistry()
    reports = []
    failed = 0

    for path in files:
        kind, result = validate_manifest_file(path, registry)
        passed = _report(out, path, kind, result, strict)
        if not passed:
            failed += 1
        elif kind == "relation":
            _register_valid_relation(path, registry)
        reports.append({"file": str(path), "kind": kind, **format_validation_for_json(result)})

    out.set_data("files", reports)
    out.blank()
    if failed:
        out.error(
            f"{failed} of {len(files)} manifest(s) failed validation",
            exit_code=ExitCode.VALIDATION_ERROR,
        )
    else:
        out.success(f"{len(files)} manifest(s) valid", valid=True)

    raise typer.Exit(out.finish())
