"""Learner parameter validation and toolkit argument translation.

Validation walks the declared parameters in declaration order:

1. absent (or None) -> the declared default, else MissingParameterError if
   the parameter is required, else omitted (the toolkit's own default applies)
2. type check -> ParameterTypeError
3. constraints, in fixed order: min/max, enum, pattern -> ParameterConstraintError

Supplied names that are not declared raise UnknownParameterError.

Translation renders the validated values in declaration order, never in
the caller's order, so equal requests always produce equal argument lists:

- weka: ["-C", "0.1"] for value parameters, ["-U"] for a truthy flag,
  nothing for a false flag
- sklearn: ["C=0.1", "shrinking=True"]
"""

import logging
import math
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from ..core.errors import (
    MissingParameterError,
    ParameterConstraintError,
    ParameterError,
    ParameterTypeError,
    SchemaError,
    UnknownParameterError,
)
from ..core.models import LearnerManifest, LearnerParameterSpec

if TYPE_CHECKING:
    from .catalog import LearnerCatalog

logger = logging.getLogger(__name__)

_INTEGER_RE = re.compile(r"^[+-]?\d+$")
_NUMBER_RE = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$")
_TRUE_WORDS = frozenset({"true", "yes", "on", "1"})
_FALSE_WORDS = frozenset({"false", "no", "off", "0"})


@dataclass(frozen=True)
class ValidatedParams:
    """Parameter values that passed validation, in declaration order."""

    learner: str
    values: Mapping[str, Any]
    schema: "ParameterSchema" = field(compare=False, repr=False)

    def __contains__(self, name: object) -> bool:
        return name in self.values

    def __getitem__(self, name: str) -> Any:
        return self.values[name]

    def as_dict(self) -> dict[str, Any]:
        return dict(self.values)


def _format_bound(bound: int | float) -> str:
    if isinstance(bound, float) and bound.is_integer():
        return str(int(bound))
    return str(bound)


def render_value(value: Any) -> str:
    """Render a validated value as toolkit text."""
    if isinstance(value, bool):
        return "True" if value else "False"
    return str(value)


class ParameterSchema:
    """Compiled parameter declarations of one learner.

    Declared defaults are checked against their own parameter's type and
    constraints when the schema is built, so a manifest with a bad default
    fails at load time rather than on the first request.
    """

    def __init__(self, manifest: LearnerManifest, check_declarations: bool = True):
        self.manifest = manifest
        self.learner = manifest.name
        self.toolkit = manifest.toolkit_style
        self.specs: dict[str, LearnerParameterSpec] = dict(manifest.parameters)

        if check_declarations:
            for spec in self.specs.values():
                self.check_declaration(spec)

    def check_declaration(self, spec: LearnerParameterSpec) -> None:
        """Raise SchemaError if a declaration cannot be satisfied as written."""
        c = spec.constraints
        if c.pattern is not None:
            try:
                re.compile(c.pattern)
            except re.error as e:
                raise SchemaError(f"{self.learner}.{spec.name}: invalid pattern: {e}") from e
        if c.min is not None and c.max is not None and c.min > c.max:
            raise SchemaError(
                f"{self.learner}.{spec.name}: min {_format_bound(c.min)} exceeds "
                f"max {_format_bound(c.max)}"
            )
        if spec.has_default:
            try:
                self.check(spec, spec.default_value)
            except ParameterError as e:
                raise SchemaError(
                    f"{self.learner}.{spec.name}: invalid default "
                    f"{spec.default_value!r}: {e.reason}"
                ) from e

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------

    def validate(self, supplied: Mapping[str, Any] | None = None) -> ValidatedParams:
        """Validate supplied values and fill in defaults.

        Raises:
            UnknownParameterError: If a supplied name is not declared
            MissingParameterError: If a required parameter has no value
            ParameterTypeError: If a value has the wrong type
            ParameterConstraintError: If a value violates a constraint
        """
        supplied = supplied or {}
        for name in supplied:
            if name not in self.specs:
                raise UnknownParameterError(self.learner, name)

        values: dict[str, Any] = {}
        for name, spec in self.specs.items():
            value = supplied.get(name)
            if value is None:
                if spec.has_default:
                    value = spec.default_value
                elif spec.required:
                    raise MissingParameterError(self.learner, name)
                else:
                    continue
            values[name] = self.check(spec, value)

        logger.debug("Validated %s parameters: %s", self.learner, values)
        return ValidatedParams(
            learner=self.learner, values=MappingProxyType(values), schema=self
        )

    def check(self, spec: LearnerParameterSpec, value: Any) -> Any:
        """Type-check and constraint-check one value; returns the normalized value."""
        value = self._check_type(spec, value)
        self._check_constraints(spec, value)
        return value

    def _check_type(self, spec: LearnerParameterSpec, value: Any) -> Any:
        def fail(expected: str) -> ParameterTypeError:
            return ParameterTypeError(
                self.learner,
                spec.name,
                f"expected {expected}, got {type(value).__name__} {value!r}",
            )

        if spec.is_flag:
            if not isinstance(value, bool):
                raise fail("a boolean")
            return value

        if spec.type == "integer":
            if isinstance(value, bool):
                raise fail("an integer")
            if isinstance(value, int):
                return value
            if isinstance(value, float) and math.isfinite(value) and value.is_integer():
                return int(value)
            raise fail("an integer")

        if spec.type == "number":
            if isinstance(value, bool):
                raise fail("a number")
            if isinstance(value, int):
                return value
            if isinstance(value, float) and math.isfinite(value):
                return value
            raise fail("a finite number")

        if not isinstance(value, str):
            raise fail("a string")
        return value

    def _check_constraints(self, spec: LearnerParameterSpec, value: Any) -> None:
        c = spec.constraints
        numeric = isinstance(value, (int, float)) and not isinstance(value, bool)

        if numeric and c.min is not None:
            below = value <= c.min if c.exclusive_minimum else value < c.min
            if below:
                constraint = "exclusiveMinimum" if c.exclusive_minimum else "min"
                raise ParameterConstraintError(
                    self.learner,
                    spec.name,
                    constraint,
                    f"{_format_bound(c.min)} (got {value})",
                )

        if numeric and c.max is not None:
            above = value >= c.max if c.exclusive_maximum else value > c.max
            if above:
                constraint = "exclusiveMaximum" if c.exclusive_maximum else "max"
                raise ParameterConstraintError(
                    self.learner,
                    spec.name,
                    constraint,
                    f"{_format_bound(c.max)} (got {value})",
                )

        if c.enum is not None and value not in c.enum:
            raise ParameterConstraintError(
                self.learner,
                spec.name,
                "enum",
                f"{value!r} is not one of {', '.join(map(str, c.enum))}",
            )

        if c.pattern is not None and isinstance(value, str):
            if re.fullmatch(c.pattern, value) is None:
                raise ParameterConstraintError(
                    self.learner,
                    spec.name,
                    "pattern",
                    f"{value!r} does not match {c.pattern!r}",
                )

    # -------------------------------------------------------------------------
    # Translation
    # -------------------------------------------------------------------------

    def translate(self, validated: ValidatedParams) -> list[str]:
        """Render validated values as toolkit argument tokens."""
        if validated.learner != self.learner:
            raise ValueError(
                f"parameters were validated for '{validated.learner}', not '{self.learner}'"
            )

        tokens: list[str] = []
        for name, spec in self.specs.items():
            if name not in validated:
                continue
            value = validated[name]

            if self.toolkit == "sklearn":
                tokens.append(f"{spec.toolkit_name}={render_value(value)}")
            elif spec.is_flag:
                if value:
                    tokens.append(spec.toolkit_name)
            else:
                tokens.extend([spec.toolkit_name, render_value(value)])
        return tokens

    # -------------------------------------------------------------------------
    # Text input
    # -------------------------------------------------------------------------

    def coerce(self, raw: Mapping[str, str]) -> dict[str, Any]:
        """Convert command-line text values into typed values for validate()."""
        coerced: dict[str, Any] = {}
        for name, text in raw.items():
            spec = self.specs.get(name)
            if spec is None:
                raise UnknownParameterError(self.learner, name)
            coerced[name] = coerce_parameter_value(spec, text, learner=self.learner)
        return coerced


def coerce_parameter_value(
    spec: LearnerParameterSpec, text: str, learner: str = ""
) -> Any:
    """Parse a text value according to the parameter's declared type.

    Example:
        >>> coerce_parameter_value(k_spec, "3")
        3
    """
    stripped = text.strip()

    if spec.is_flag:
        word = stripped.lower()
        if word in _TRUE_WORDS:
            return True
        if word in _FALSE_WORDS:
            return False
    elif spec.type == "integer":
        if _INTEGER_RE.match(stripped):
            return int(stripped)
    elif spec.type == "number":
        if _NUMBER_RE.match(stripped):
            return float(stripped) if any(ch in stripped for ch in ".eE") else int(stripped)
    else:
        return text

    raise ParameterTypeError(
        learner, spec.name, f"cannot read {text!r} as {spec.semantic_type}"
    )


# =============================================================================
# Catalog-level helpers
# =============================================================================


def validate(
    learner_name: str,
    supplied: Mapping[str, Any] | None = None,
    catalog: "LearnerCatalog | None" = None,
) -> ValidatedParams:
    """Validate parameters for a learner looked up in a catalog.

    Uses the bundled learner catalog when none is given.
    """
    if catalog is None:
        from .catalog import LearnerCatalog

        catalog = LearnerCatalog.default()
    return catalog.schema(learner_name).validate(supplied)


def translate(validated: ValidatedParams) -> list[str]:
    """Render validated parameters with the schema that validated them."""
    return validated.schema.translate(validated)
