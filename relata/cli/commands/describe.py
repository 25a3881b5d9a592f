"""Describe command: show relations, their attributes, and learners."""

import json

import typer

from ..app import app, console, get_json_mode
from ..utils import Output, ExitCode
from ...attributes import AttributeRegistry, describe_relation
from ...learners import LearnerCatalog
from ...manifests import load_configured


def _list_all(out: Output, registry: AttributeRegistry, catalog: LearnerCatalog) -> None:
    out.table(
        "Relations",
        ["Name", "Format", "Default", "Attributes"],
        [
            [rel.name, rel.format.value, rel.default_attribute, str(len(rel.attributes))]
            for rel in registry.relations()
        ],
        styles=["cyan", None, None, None],
    )
    out.blank()
    rows = []
    for name in catalog.names():
        manifest = catalog.get(name)
        rows.append(
            [name, manifest.toolkit_style, manifest.implementation, str(len(manifest.parameters))]
        )
    out.table(
        "Learners",
        ["Name", "Toolkit", "Implementation", "Parameters"],
        rows,
        styles=["cyan", None, "dim", None],
    )


def _describe_relation(out: Output, registry: AttributeRegistry, name: str) -> None:
    summary = describe_relation(registry, name)
    out.set_data("relation", summary)
    out.text(f"[bold]{summary['name']}[/bold] ({summary['format']})")
    if summary["description"]:
        out.text(f"  {summary['description']}")
    out.text(f"  default: {summary['defaultAttribute']}")
    out.blank()
    if out.json_mode:
        return
    out.table(
        "Attributes",
        ["Name", "Kind", "Emits", "Depends on"],
        [
            [
                attr["name"],
                attr["kind"],
                json.dumps(attr["emits"]),
                ", ".join(attr["dependsOn"]) or "-",
            ]
            for attr in summary["attributes"]
        ],
        styles=["cyan", None, "dim", None],
    )


def _describe_learner(out: Output, catalog: LearnerCatalog, name: str) -> None:
    manifest = catalog.get(name)
    out.set_data(
        "learner",
        {
            "name": manifest.name,
            "description": manifest.description,
            "implementation": manifest.implementation,
            "toolkit": manifest.toolkit_style,
            "taskSchema": manifest.task_schema(),
        },
    )
    out.text(f"[bold]{manifest.name}[/bold] ({manifest.toolkit_style})")
    if manifest.description:
        out.text(f"  {manifest.description}")
    out.text(f"  implementation: {manifest.implementation}")
    slots = ", ".join(slot.key for slot in manifest.resource_slots()) or "-"
    out.text(f"  resources: {slots}")
    out.blank()
    if out.json_mode:
        return
    out.table(
        "Parameters",
        ["Name", "Type", "Token", "Default", "Constraints"],
        [
            [
                spec.name,
                spec.semantic_type,
                spec.toolkit_name,
                "-" if not spec.has_default else repr(spec.default_value),
                json.dumps(spec.constraints.to_schema()) if not spec.constraints.is_empty() else "-",
            ]
            for spec in manifest.parameters.values()
        ],
        styles=["cyan", None, "dim", None, None],
    )


@app.command("describe")
def describe_command(
    name: str | None = typer.Argument(
        None, help="Relation or learner name; lists everything when omitted"
    ),
):
    """
    Describe a relation's attributes or a learner's parameters.

    EXAMPLES:
        relata describe
        relata describe iris
        relata describe j48
    """
    out = Output(console=console, json_mode=get_json_mode())
    registry, catalog, failures = load_configured()
    for failure in failures:
        out.warning(f"Skipped manifest {failure}", location=str(failure.path))

    if name is None:
        _list_all(out, registry, catalog)
    elif name in registry:
        _describe_relation(out, registry, name)
    elif name in catalog:
        _describe_learner(out, catalog, name)
    else:
        out.error(
            f"No relation or learner named '{name}'",
            category="unknown_name",
            exit_code=ExitCode.REFERENCE_ERROR,
            suggestion="Run 'relata describe' to list what is loaded",
        )

    raise typer.Exit(out.finish())
