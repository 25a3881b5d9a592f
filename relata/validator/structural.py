"""Structural validation checks (ERROR severity).

Every check here corresponds to a failure that would stop the manifest from
loading. Unlike loading, the checks keep going after the first problem so a
single pass reports everything wrong with a manifest.

Categories:
- URI: malformed primitive:// or local:// references
- DUPLICATE: repeated attribute or relation names
- REFERENCE: unknown relations/attributes, bad selectors
- FORMAT: primitives or references that do not fit the record format
- DEFAULT: missing or unknown default attribute
- PARAMETER: parameter declarations whose defaults or constraints are unusable
"""

from ..attributes import AttributeRegistry, RelationBuilder
from ..core.errors import (
    AttributeReferenceError,
    DuplicateAttributeError,
    FormatMismatchError,
    InvalidDefaultAttributeError,
    MalformedReferenceError,
    SchemaError,
)
from ..core.models import (
    LearnerManifest,
    RelationManifest,
    Severity,
    ValidationIssue,
)
from ..learners import ParameterSchema


def _error(
    category: str,
    location: str,
    message: str,
    suggestion: str | None = None,
    value: str | None = None,
) -> ValidationIssue:
    return ValidationIssue(
        severity=Severity.ERROR,
        category=category,
        location=location,
        message=message,
        suggestion=suggestion,
        value=value,
    )


def _category(error: Exception) -> str:
    if isinstance(error, MalformedReferenceError):
        return "URI"
    if isinstance(error, DuplicateAttributeError):
        return "DUPLICATE"
    if isinstance(error, FormatMismatchError):
        return "FORMAT"
    if isinstance(error, InvalidDefaultAttributeError):
        return "DEFAULT"
    if isinstance(error, AttributeReferenceError):
        return "REFERENCE"
    return "SCHEMA"


_SUGGESTIONS = {
    "REFERENCE": "Attributes can only reference attributes defined earlier",
    "FORMAT": "Use primitive://csv/ in CSV relations and primitive://property/ in JSON relations",
    "DEFAULT": "Set defaultAttribute to one of the relation's attribute names",
}


# =============================================================================
# Relations
# =============================================================================


def run_relation_checks(
    manifest: RelationManifest, registry: AttributeRegistry | None = None
) -> list[ValidationIssue]:
    """Compile every attribute of a relation, collecting each failure.

    `registry` supplies the relations that cross-relation references may
    name; it is only read, never written.
    """
    if registry is None:
        registry = AttributeRegistry()
    issues: list[ValidationIssue] = []

    try:
        builder = RelationBuilder(registry, manifest.name, manifest.format)
    except SchemaError as e:
        return [_error("SCHEMA", manifest.name, str(e))]

    for definition in manifest.attributes:
        location = f"{manifest.name}/{definition.name}"
        try:
            builder.add(definition.name, definition.attribute, definition.description)
        except (SchemaError, AttributeReferenceError) as e:
            category = _category(e)
            issues.append(
                _error(
                    category,
                    location,
                    str(e),
                    suggestion=_SUGGESTIONS.get(category),
                    value=getattr(e, "uri", None),
                )
            )

    try:
        builder.build(manifest.default_attribute)
    except InvalidDefaultAttributeError as e:
        # Skip when the default only failed because its own definition did.
        failed = {issue.location for issue in issues}
        if f"{manifest.name}/{manifest.default_attribute}" not in failed:
            issues.append(
                _error("DEFAULT", manifest.name, str(e), suggestion=_SUGGESTIONS["DEFAULT"])
            )

    if manifest.name in registry:
        issues.append(
            _error(
                "DUPLICATE",
                manifest.name,
                f"relation '{manifest.name}' is already registered",
            )
        )

    return issues


# =============================================================================
# Learners
# =============================================================================


def run_learner_checks(manifest: LearnerManifest) -> list[ValidationIssue]:
    """Check that every parameter declaration can be satisfied."""
    issues: list[ValidationIssue] = []
    schema = ParameterSchema(manifest, check_declarations=False)

    for spec in manifest.parameters.values():
        try:
            schema.check_declaration(spec)
        except SchemaError as e:
            issues.append(
                _error("PARAMETER", f"{manifest.name}.{spec.name}", str(e))
            )

    return issues
