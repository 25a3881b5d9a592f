"""Relation manifest models and file I/O.

A RelationManifest names a dataset schema: its raw record format, the
location of its data, and the ordered list of attribute definitions that
turn raw records into feature values. Definitions are registered in file
order, so later attributes may reference earlier ones.
"""

from enum import Enum
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..errors import ManifestError
from ...utils import read_manifest_data, resolve_relative_to


class RecordFormat(str, Enum):
    CSV = "CSV"
    JSON = "JSON"


class AttributeDefinition(BaseModel):
    """One named attribute of a relation.

    `attribute` is a reference URI string, or a list / dict whose leaves are
    URI strings (nested lists and dicts allowed).
    """

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(description="Attribute name, unique within its relation")
    description: str | None = Field(default=None)
    psi_type: str = Field(default="attribute-definition", alias="psiType")
    attribute: str | list[Any] | dict[str, Any] = Field(
        description="Reference URI or nested sequence/mapping of references"
    )

    @field_validator("name")
    @classmethod
    def _name_not_empty(cls, v: str) -> str:
        if not v or "/" in v:
            raise ValueError("attribute names must be non-empty and contain no '/'")
        return v


class RelationManifest(BaseModel):
    """A relation: named attribute definitions over one raw record format."""

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(description="Relation name; becomes part of attribute URIs")
    description: str | None = None
    format: RecordFormat = Field(description="Raw record format: CSV or JSON")
    path: str | None = Field(default=None, description="Location of the raw data")
    default_attribute: str | None = Field(
        default=None,
        alias="defaultAttribute",
        description="Attribute returning a whole instance; first attribute if unset",
    )
    attributes: list[AttributeDefinition] = Field(default_factory=list)

    @field_validator("format", mode="before")
    @classmethod
    def _upper_format(cls, v: Any) -> Any:
        return v.upper() if isinstance(v, str) else v

    @classmethod
    def from_dict(cls, data: dict[str, Any], source: str | None = None) -> "RelationManifest":
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise ManifestError(f"invalid relation manifest: {e}", path=source) from e

    @classmethod
    def from_file(cls, path: Path | str) -> "RelationManifest":
        """Load a relation manifest from YAML or relaxed JSON."""
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

        with open(path, "w") as f:
            yaml.dump(
                data, f, default_flow_style=False, sort_keys=False, allow_unicode=True
            )

    def get_attribute(self, name: str) -> AttributeDefinition | None:
        """Get an attribute definition by name."""
        for attr in self.attributes:
            if attr.name == name:
                return attr
        return None

    def effective_default(self) -> str | None:
        """The declared default attribute, or the first attribute's name."""
        if self.default_attribute:
            return self.default_attribute
        return self.attributes[0].name if self.attributes else None

    def data_path(self, manifest_file: Path | str) -> Path | None:
        """Resolve `path` against the manifest's own location."""
        if self.path is None:
            return None
        return resolve_relative_to(self.path, Path(manifest_file))

    def summary(self) -> str:
        """Get a text summary of the relation."""
        lines = [
            f"Relation: {self.name} ({self.format.value})",
            f"Default attribute: {self.effective_default()}",
            f"Attributes: {len(self.attributes)}",
        ]
        for i, attr in enumerate(self.attributes, 1):
            lines.append(f"  {i}. {attr.name}")
        return "\n".join(lines)
