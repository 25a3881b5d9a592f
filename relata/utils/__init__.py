"""Pure utility functions for relata.

This package has ZERO dependencies on relata models or other relata modules,
so it can be imported from anywhere without circular import risk.

Modules:
- relaxed_json: comment- and semicolon-tolerant JSON reading
- manifest_files: manifest file discovery and decoding (YAML or relaxed JSON)
"""

from .relaxed_json import RelaxedJSONError, loads_relaxed, normalize_relaxed_json
from .manifest_files import (
    MANIFEST_SUFFIXES,
    iter_manifest_files,
    read_manifest_data,
    resolve_relative_to,
)

__all__ = [
    # Relaxed JSON
    "RelaxedJSONError",
    "loads_relaxed",
    "normalize_relaxed_json",
    # Manifest files
    "MANIFEST_SUFFIXES",
    "iter_manifest_files",
    "read_manifest_data",
    "resolve_relative_to",
]
