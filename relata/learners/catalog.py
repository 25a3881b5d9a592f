"""Learner catalog: learner manifests and their compiled parameter schemas."""

import logging
from pathlib import Path

from ..core.errors import SchemaError, UnknownLearnerError
from ..core.models import LearnerManifest
from ..utils import iter_manifest_files
from .parameters import ParameterSchema

logger = logging.getLogger(__name__)


class LearnerCatalog:
    """Learners keyed by name, each with a ParameterSchema built on add()."""

    def __init__(self):
        self._manifests: dict[str, LearnerManifest] = {}
        self._schemas: dict[str, ParameterSchema] = {}

    def add(self, manifest: LearnerManifest) -> ParameterSchema:
        """Add a learner.

        Raises:
            SchemaError: If the name is taken or a declared default is invalid
        """
        if manifest.name in self._manifests:
            raise SchemaError(f"learner '{manifest.name}' is already in the catalog")
        schema = ParameterSchema(manifest)
        self._manifests[manifest.name] = manifest
        self._schemas[manifest.name] = schema
        logger.debug(
            "Added learner %s (%s, %d parameter(s))",
            manifest.name,
            manifest.toolkit_style,
            len(manifest.parameters),
        )
        return schema

    def get(self, name: str) -> LearnerManifest:
        try:
            return self._manifests[name]
        except KeyError:
            raise UnknownLearnerError(name) from None

    def schema(self, name: str) -> ParameterSchema:
        try:
            return self._schemas[name]
        except KeyError:
            raise UnknownLearnerError(name) from None

    def names(self) -> list[str]:
        return list(self._manifests)

    def __contains__(self, name: object) -> bool:
        return name in self._manifests

    def __len__(self) -> int:
        return len(self._manifests)

    def load_directory(self, directory: Path | str) -> list[tuple[Path, SchemaError]]:
        """Add every learner manifest in a directory.

        A manifest that fails to load or compile is logged and skipped; the
        failures are returned as (path, error) pairs.
        """
        failures: list[tuple[Path, SchemaError]] = []
        for path in iter_manifest_files(directory):
            try:
                self.add(LearnerManifest.from_file(path))
            except SchemaError as e:
                logger.warning("Skipping learner manifest %s: %s", path, e)
                failures.append((path, e))
        return failures

    @classmethod
    def default(cls) -> "LearnerCatalog":
        """Catalog of the bundled learners, loaded once per process."""
        global _default_catalog
        if _default_catalog is None:
            from ..manifests import bundled_manifest_dir

            catalog = cls()
            catalog.load_directory(bundled_manifest_dir("learners"))
            _default_catalog = catalog
        return _default_catalog


_default_catalog: LearnerCatalog | None = None
