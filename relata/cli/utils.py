"""Shared CLI plumbing: exit codes and the human/JSON `Output` collector.

Every command builds one `Output`, reports through it, and ends with
``raise typer.Exit(out.finish())``. In human mode messages go straight to the
rich console; with ``--json`` (or ``cli.mode = agent``) they are gathered into
a single JSON document printed by `finish()`.
"""

from __future__ import annotations

import json
import re
from typing import Any

from pydantic import BaseModel, PrivateAttr, ConfigDict
from rich.console import Console
from rich.table import Table

from ..core.errors import (
    AttributeReferenceError,
    DataError,
    ParameterError,
    RelataError,
)
from ..core.models import ValidationResult


class ExitCode:
    """Process exit codes.

    0 ok, 1 invalid manifest or usage, 3 missing file, 4 unresolvable
    reference, 5 bad record data, 6 unknown learner or bad parameter.
    """

    SUCCESS = 0
    VALIDATION_ERROR = 1
    FILE_NOT_FOUND = 3
    REFERENCE_ERROR = 4
    DATA_ERROR = 5
    PARAMETER_ERROR = 6


_EXIT_CODES: list[tuple[type[RelataError], int]] = [
    (DataError, ExitCode.DATA_ERROR),
    (ParameterError, ExitCode.PARAMETER_ERROR),
    (AttributeReferenceError, ExitCode.REFERENCE_ERROR),
]

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def exit_code_for(error: RelataError) -> int:
    for family, code in _EXIT_CODES:
        if isinstance(error, family):
            return code
    return ExitCode.VALIDATION_ERROR


def error_category(error: RelataError) -> str:
    """DomainViolationError -> domain_violation."""
    name = type(error).__name__.removesuffix("Error")
    return _CAMEL_BOUNDARY.sub("_", name).lower()


def _issue(message: str, **fields: str | None) -> dict[str, Any]:
    issue: dict[str, Any] = {"message": message}
    issue.update({k: v for k, v in fields.items() if v})
    return issue


class Output(BaseModel):
    """Collects a command's results for either rich or JSON rendering."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    console: Console
    json_mode: bool = False

    _data: dict[str, Any] = PrivateAttr()
    _exit_code: int = PrivateAttr(default=ExitCode.SUCCESS)

    def model_post_init(self, __context: Any) -> None:
        self._data = {"status": "success", "warnings": [], "errors": []}

    def _emit(self, markup: str) -> None:
        if not self.json_mode:
            self.console.print(markup)

    def success(self, message: str, **data: Any) -> None:
        """Report success; keyword data becomes top-level JSON keys."""
        if self.json_mode:
            self._data.update(data)
        self._emit(f"[green]✓[/green] {message}")

    def warning(
        self,
        message: str,
        *,
        location: str | None = None,
        category: str | None = None,
        suggestion: str | None = None,
    ) -> None:
        if self.json_mode:
            self._data["warnings"].append(
                _issue(message, location=location, category=category, suggestion=suggestion)
            )
            return
        self._emit(f"[yellow]⚠[/yellow] {message}")
        if suggestion:
            self._emit(f"  [dim]→ {suggestion}[/dim]")

    def error(
        self,
        message: str,
        *,
        location: str | None = None,
        category: str | None = None,
        suggestion: str | None = None,
        exit_code: int = ExitCode.VALIDATION_ERROR,
    ) -> None:
        """Report an error; the last one reported decides the exit code."""
        self._exit_code = exit_code
        self._data["status"] = "error"
        if self.json_mode:
            self._data["errors"].append(
                _issue(message, location=location, category=category, suggestion=suggestion)
            )
            return
        self._emit(f"[red]✗[/red] {message}")
        if suggestion:
            self._emit(f"  [dim]→ {suggestion}[/dim]")

    def exception(self, error: RelataError) -> None:
        self.error(str(error), category=error_category(error), exit_code=exit_code_for(error))

    def text(self, message: str) -> None:
        self._emit(message)

    def blank(self) -> None:
        self._emit("")

    def table(
        self,
        title: str,
        columns: list[str],
        rows: list[list[str]],
        *,
        data_key: str | None = None,
        styles: list[str] | None = None,
    ) -> None:
        """Render rows as a rich table, or as a list of column->cell dicts in JSON.

        The JSON key defaults to the snake-cased title.
        """
        if self.json_mode:
            key = data_key or title.lower().replace(" ", "_")
            self._data[key] = [dict(zip(columns, row)) for row in rows]
            return

        table = Table(title=title, show_header=True, header_style="bold")
        styles = styles or []
        for i, col in enumerate(columns):
            table.add_column(col, style=styles[i] if i < len(styles) else None)
        for row in rows:
            table.add_row(*row)
        self.console.print(table)

    def set_data(self, key: str, value: Any) -> None:
        self._data[key] = value

    def finish(self) -> int:
        """Print the JSON document (JSON mode only) and return the exit code."""
        if self.json_mode:
            self._data["exit_code"] = self._exit_code
            print(json.dumps(self._data, indent=2, default=str))
        return self._exit_code


def format_validation_for_json(result: ValidationResult) -> dict[str, Any]:
    def dump(issues):
        return [i.model_dump(mode="json", exclude={"severity"}) for i in issues]

    return {
        "valid": result.valid,
        "error_count": len(result.errors),
        "warning_count": len(result.warnings),
        "errors": dump(result.errors),
        "warnings": dump(result.warnings),
    }


def parse_assignments(items: list[str] | None) -> dict[str, str]:
    """Parse repeated ``--set key=value`` options.

    Raises:
        ValueError: If an item has no '=' or an empty key
    """
    assignments: dict[str, str] = {}
    for item in items or []:
        key, sep, value = item.partition("=")
        key = key.strip()
        if not sep or not key:
            raise ValueError(f"Expected key=value, got {item!r}")
        assignments[key] = value
    return assignments
