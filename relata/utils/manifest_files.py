"""Reading manifest files from disk.

Manifests may be YAML (`.yaml`, `.yml`) or relaxed JSON (any other
extension, conventionally `.json`, `.jsonc` or `.js`). Both decode to plain
dicts; model validation happens in relata.core.models.
"""

from pathlib import Path
from typing import Any, Iterator

import yaml

from .relaxed_json import loads_relaxed

YAML_SUFFIXES = frozenset({".yaml", ".yml"})
MANIFEST_SUFFIXES = frozenset({".json", ".jsonc", ".js"}) | YAML_SUFFIXES


def read_manifest_data(path: str | Path) -> dict[str, Any]:
    """Load a manifest file into a dict.

    Raises:
        OSError: If the file cannot be read
        ValueError: If the content cannot be parsed or is not a mapping
            (yaml.YAMLError and RelaxedJSONError are both ValueErrors or
            wrapped as such)
    """
    path = Path(path)
    text = path.read_text(encoding="utf-8")

    if path.suffix.lower() in YAML_SUFFIXES:
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ValueError(f"invalid YAML: {e}") from e
    else:
        data = loads_relaxed(text)

    if not isinstance(data, dict):
        raise ValueError(
            f"manifest must be a mapping at the top level, got {type(data).__name__}"
        )
    return data


def iter_manifest_files(directory: str | Path) -> Iterator[Path]:
    """Yield manifest files in a directory in sorted filename order."""
    directory = Path(directory)
    for candidate in sorted(directory.iterdir()):
        if candidate.is_file() and candidate.suffix.lower() in MANIFEST_SUFFIXES:
            yield candidate


def resolve_relative_to(path: str | Path, base_file: Path) -> Path:
    """Resolve a path found inside base_file against base_file's directory.

    Absolute paths are returned unchanged.

    Example:
        >>> resolve_relative_to("iris.csv", Path("/manifests/iris.jsonc"))
        PosixPath('/manifests/iris.csv')
    """
    path = Path(path)
    if path.is_absolute():
        return path
    return (base_file.parent / path).resolve()
