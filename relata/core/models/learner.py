"""Learner manifest models.

A learner manifest declares an external toolkit algorithm: its implementation
class, how its parameters are rendered for the toolkit, which resource slots
a task must bind, and the typed, constrained parameters it accepts.

Parameter types are written with an optional `$` prefix (`$integer`). A
parameter with no type is a boolean flag: present and truthy means the bare
toolkit token is emitted.
"""

from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from ..errors import ManifestError
from ...utils import read_manifest_data


PARAMETER_TYPES = ("number", "integer", "string", "boolean")

ToolkitStyle = Literal["weka", "sklearn"]

_STYLE_BY_MODEL_CLASS = {
    "WekaLearner": "weka",
    "SKLearnLearner": "sklearn",
}


# =============================================================================
# Parameters
# =============================================================================


class ParameterConstraints(BaseModel):
    """Constraints on a parameter value, checked in min/max, enum, pattern order."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    min: int | float | None = None
    max: int | float | None = None
    exclusive_minimum: bool = Field(default=False, alias="exclusiveMinimum")
    exclusive_maximum: bool = Field(default=False, alias="exclusiveMaximum")
    enum: list[Any] | None = None
    pattern: str | None = None

    def is_empty(self) -> bool:
        return (
            self.min is None
            and self.max is None
            and self.enum is None
            and self.pattern is None
        )

    def to_schema(self) -> dict[str, Any]:
        """Render as PSI schema constraint keywords."""
        return self.model_dump(by_alias=True, exclude_none=True, exclude_defaults=True)


class LearnerParameterSpec(BaseModel):
    """One declared learner parameter."""

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(default="", description="Filled from the parameters mapping key")
    description: str | None = None
    type: str | None = Field(
        default=None, description="number, integer, string; absent for a boolean flag"
    )
    constraints: ParameterConstraints = Field(default_factory=ParameterConstraints)
    default_value: Any = Field(default=None, alias="defaultValue")
    required: bool = False
    toolkit_name: str = Field(alias="toolkitName", description="Toolkit argument token")

    @field_validator("type", mode="before")
    @classmethod
    def _strip_reference_prefix(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = v[1:] if v.startswith("$") else v
            if v not in PARAMETER_TYPES:
                raise ValueError(
                    f"unknown parameter type {v!r} (expected one of {', '.join(PARAMETER_TYPES)})"
                )
        return v

    @property
    def is_flag(self) -> bool:
        return self.type is None or self.type == "boolean"

    @property
    def semantic_type(self) -> str:
        return "boolean" if self.is_flag else self.type

    @property
    def has_default(self) -> bool:
        return self.default_value is not None

    def task_schema_key(self) -> str:
        return ("/" if self.required else "?") + self.name

    def task_schema_value(self) -> Any:
        """PSI schema for this parameter: `$type` or `{"$type": {...}}`."""
        type_ref = f"${self.semantic_type}"
        args = self.constraints.to_schema()
        if self.description is not None:
            args["description"] = self.description
        if self.default_value is not None:
            args["default"] = self.default_value
        if not args:
            return type_ref
        return {type_ref: args}


# =============================================================================
# Resources
# =============================================================================


class ResourceSlot(BaseModel):
    """A named task input: `/name` is required, `?name` is optional."""

    name: str
    required: bool
    definition: Any = Field(default=None, description="PSI schema for the slot value")

    @classmethod
    def from_key(cls, key: str, definition: Any = None) -> "ResourceSlot":
        if len(key) < 2 or key[0] not in "/?":
            raise ValueError(
                f"resource slot {key!r} must start with '/' (required) or '?' (optional)"
            )
        return cls(name=key[1:], required=key[0] == "/", definition=definition)

    @property
    def key(self) -> str:
        return ("/" if self.required else "?") + self.name


# =============================================================================
# Learner manifest
# =============================================================================


class LearnerManifest(BaseModel):
    """Complete learner declaration as loaded from a manifest file."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    description: str | None = None
    implementation: str = Field(description="Toolkit class implementing the learner")
    learner_model_class: str = Field(
        alias="learnerModelClass",
        description="Runtime adapter class, e.g. models.learner.WekaLearner",
    )
    toolkit_options: dict[str, Any] = Field(default_factory=dict, alias="toolkitOptions")
    toolkit: ToolkitStyle | None = Field(
        default=None, description="Explicit toolkit style; inferred from the model class if unset"
    )
    resources: dict[str, Any] = Field(default_factory=dict)
    parameters: dict[str, LearnerParameterSpec] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _name_parameters(cls, data: Any) -> Any:
        if isinstance(data, dict) and isinstance(data.get("parameters"), dict):
            named = {}
            for key, spec in data["parameters"].items():
                if isinstance(spec, dict):
                    spec = {**spec, "name": key}
                named[key] = spec
            data = {**data, "parameters": named}
        return data

    @model_validator(mode="after")
    def _check_consistency(self) -> "LearnerManifest":
        if self.toolkit is None and self._inferred_style() is None:
            raise ValueError(
                f"cannot infer toolkit style from learnerModelClass "
                f"{self.learner_model_class!r}; set 'toolkit' explicitly"
            )
        for key in self.resources:
            ResourceSlot.from_key(key)
        return self

    def _inferred_style(self) -> str | None:
        suffix = self.learner_model_class.rsplit(".", 1)[-1]
        return _STYLE_BY_MODEL_CLASS.get(suffix)

    @property
    def toolkit_style(self) -> ToolkitStyle:
        return self.toolkit or self._inferred_style()

    @property
    def is_updatable(self) -> bool:
        return bool(self.toolkit_options.get("isUpdatable", False))

    # -------------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------------

    @classmethod
    def from_dict(cls, data: dict[str, Any], source: str | None = None) -> "LearnerManifest":
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise ManifestError(f"invalid learner manifest: {e}", path=source) from e

    @classmethod
    def from_file(cls, path: Path | str) -> "LearnerManifest":
        """Load a learner manifest from YAML or relaxed JSON."""
        path = Path(path)
        try:
            data = read_manifest_data(path)
        except (OSError, ValueError) as e:
            raise ManifestError(str(e), path=str(path)) from e
        return cls.from_dict(data, source=str(path))

    from_yaml = from_file

    def to_yaml(self, path: Path | str) -> None:
        """Save manifest to a YAML file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        data = self.model_dump(mode="json", by_alias=True, exclude_none=True)
        for spec in data.get("parameters", {}).values():
            spec.pop("name", None)

        with open(path, "w") as f:
            yaml.dump(
                data, f, default_flow_style=False, sort_keys=False, allow_unicode=True
            )

    # -------------------------------------------------------------------------
    # Schema views
    # -------------------------------------------------------------------------

    def get_parameter(self, name: str) -> LearnerParameterSpec | None:
        return self.parameters.get(name)

    def resource_slots(self) -> list[ResourceSlot]:
        """Declared resource slots in manifest order."""
        return [
            ResourceSlot.from_key(key, definition)
            for key, definition in self.resources.items()
        ]

    def task_schema(self) -> dict[str, Any]:
        """PSI task schema: `/resources` plus one `/name` or `?name` per parameter."""
        schema: dict[str, Any] = {"/resources": dict(self.resources)}
        for spec in self.parameters.values():
            schema[spec.task_schema_key()] = spec.task_schema_value()
        return schema
