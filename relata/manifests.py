"""Loading relation and learner manifests from directories.

Each manifest is loaded and registered on its own: a manifest that fails to
parse or compile is logged, recorded as a LoadFailure and skipped, and every
other manifest remains usable. Files are processed in sorted filename order
within each directory, and directories in the order given, so a relation
may reference relations from files processed before it.
"""

import logging
from dataclasses import dataclass
from importlib import resources
from pathlib import Path

from .attributes import AttributeRegistry
from .core.errors import RelataError
from .core.models import RelationManifest
from .learners import LearnerCatalog
from .utils import iter_manifest_files

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoadFailure:
    """A manifest that could not be loaded, and why."""

    path: Path
    error: RelataError

    def __str__(self) -> str:
        return f"{self.path}: {self.error}"


def bundled_manifest_dir(kind: str) -> Path:
    """Directory of bundled manifests of one kind ('relations' or 'learners')."""
    return Path(str(resources.files("relata") / "data" / kind))


def load_relations(
    directories: list[Path | str] | Path | str,
    registry: AttributeRegistry | None = None,
) -> tuple[AttributeRegistry, list[LoadFailure]]:
    """Register every relation manifest found in the given directories.

    Args:
        directories: One directory or a list of directories
        registry: Registry to add to; a new one is created if omitted

    Returns:
        (registry, failures)
    """
    if registry is None:
        registry = AttributeRegistry()
    if isinstance(directories, (str, Path)):
        directories = [directories]

    failures: list[LoadFailure] = []
    for directory in directories:
        directory = Path(directory)
        if not directory.is_dir():
            logger.warning("Relation directory not found: %s", directory)
            continue

        for path in iter_manifest_files(directory):
            try:
                relation = registry.register_manifest(RelationManifest.from_file(path))
            except RelataError as e:
                logger.warning("Skipping relation manifest %s: %s", path, e)
                failures.append(LoadFailure(path=path, error=e))
                continue
            logger.info(
                "Loaded relation %s from %s (%d attribute(s))",
                relation.name,
                path.name,
                len(relation.attributes),
            )

    return registry, failures


def load_learners(
    directories: list[Path | str] | Path | str,
    catalog: LearnerCatalog | None = None,
) -> tuple[LearnerCatalog, list[LoadFailure]]:
    """Add every learner manifest found in the given directories to a catalog."""
    if catalog is None:
        catalog = LearnerCatalog()
    if isinstance(directories, (str, Path)):
        directories = [directories]

    failures: list[LoadFailure] = []
    for directory in directories:
        directory = Path(directory)
        if not directory.is_dir():
            logger.warning("Learner directory not found: %s", directory)
            continue
        for path, error in catalog.load_directory(directory):
            failures.append(LoadFailure(path=path, error=error))

    return catalog, failures


def load_configured(config=None) -> tuple[AttributeRegistry, LearnerCatalog, list[LoadFailure]]:
    """Load relations and learners from the configured manifest directories.

    Bundled manifests come first when `manifests.include_bundled` is set.
    """
    from .config import get_config

    config = config or get_config()
    relation_dirs: list[Path | str] = []
    learner_dirs: list[Path | str] = []
    if config.manifests.include_bundled:
        relation_dirs.append(bundled_manifest_dir("relations"))
        learner_dirs.append(bundled_manifest_dir("learners"))
    relation_dirs.extend(config.manifests.relation_dirs)
    learner_dirs.extend(config.manifests.learner_dirs)

    registry, relation_failures = load_relations(relation_dirs)
    catalog, learner_failures = load_learners(learner_dirs)
    return registry, catalog, [*relation_failures, *learner_failures]
