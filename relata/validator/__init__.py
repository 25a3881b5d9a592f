"""Manifest validation.

Produces a ValidationResult report instead of raising, so every problem in a
manifest can be shown at once. Two levels:

- structural checks (ERROR): the manifest would fail to load
- semantic checks (WARNING): the manifest loads but looks wrong
"""

from pathlib import Path

from ..attributes import AttributeRegistry
from ..core.errors import ManifestError
from ..core.models import (
    LearnerManifest,
    RelationManifest,
    Severity,
    ValidationIssue,
    ValidationResult,
)
from ..utils import read_manifest_data


def validate_relation_manifest(
    manifest: RelationManifest, registry: AttributeRegistry | None = None
) -> ValidationResult:
    """
    Validate a relation manifest.

    Args:
        manifest: The relation to check
        registry: Already-registered relations that cross-relation
            references may name (read only)

    Returns:
        ValidationResult with errors and warnings

    Example:
        >>> result = validate_relation_manifest(RelationManifest.from_file("iris.jsonc"))
        >>> result.valid
        True
    """
    from .structural import run_relation_checks
    from .semantic import run_relation_semantic_checks

    result = ValidationResult()
    result.issues.extend(run_relation_checks(manifest, registry))
    result.issues.extend(run_relation_semantic_checks(manifest))
    return result


def validate_learner_manifest(manifest: LearnerManifest) -> ValidationResult:
    """Validate a learner manifest's parameter declarations."""
    from .structural import run_learner_checks
    from .semantic import run_learner_semantic_checks

    result = ValidationResult()
    result.issues.extend(run_learner_checks(manifest))
    result.issues.extend(run_learner_semantic_checks(manifest))
    return result


def detect_manifest_kind(data: dict) -> str:
    """'learner' if the document declares parameters or a model class, else 'relation'."""
    if "learnerModelClass" in data or "parameters" in data:
        return "learner"
    return "relation"


def validate_manifest_file(
    path: Path | str, registry: AttributeRegistry | None = None
) -> tuple[str, ValidationResult]:
    """Load and validate a manifest file of either kind.

    A file that cannot be read or does not match its model yields a single
    MANIFEST error instead of raising.

    Returns:
        (kind, result) where kind is 'relation' or 'learner'
    """
    path = Path(path)
    try:
        data = read_manifest_data(path)
    except (OSError, ValueError) as e:
        return "unknown", _manifest_failure(path, str(e))

    kind = detect_manifest_kind(data)
    try:
        if kind == "learner":
            return kind, validate_learner_manifest(
                LearnerManifest.from_dict(data, source=str(path))
            )
        return kind, validate_relation_manifest(
            RelationManifest.from_dict(data, source=str(path)), registry
        )
    except ManifestError as e:
        return kind, _manifest_failure(path, str(e))


def _manifest_failure(path: Path, message: str) -> ValidationResult:
    return ValidationResult(
        issues=[
            ValidationIssue(
                severity=Severity.ERROR,
                category="MANIFEST",
                location=str(path),
                message=message,
            )
        ]
    )


__all__ = [
    "Severity",
    "ValidationIssue",
    "ValidationResult",
    "validate_relation_manifest",
    "validate_learner_manifest",
    "validate_manifest_file",
    "detect_manifest_kind",
]
