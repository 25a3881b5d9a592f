"""Semantic validation checks (WARNING severity).

These checks flag manifests that load but are probably not what the author
meant. They never block loading.
"""

from ..attributes import parse_reference
from ..attributes.uri import PrimitiveDescriptor
from ..core.errors import MalformedReferenceError
from ..core.models import LearnerManifest, RelationManifest, Severity, ValidationIssue

ATTRIBUTE_PSI_TYPE = "attribute-definition"


def _warning(
    category: str,
    location: str,
    message: str,
    suggestion: str | None = None,
    value: str | None = None,
) -> ValidationIssue:
    return ValidationIssue(
        severity=Severity.WARNING,
        category=category,
        location=location,
        message=message,
        suggestion=suggestion,
        value=value,
    )


def _iter_uris(expression):
    if isinstance(expression, str):
        yield expression
    elif isinstance(expression, list):
        for item in expression:
            yield from _iter_uris(item)
    elif isinstance(expression, dict):
        for item in expression.values():
            yield from _iter_uris(item)


# =============================================================================
# Relations
# =============================================================================


def run_relation_semantic_checks(manifest: RelationManifest) -> list[ValidationIssue]:
    issues: list[ValidationIssue] = []

    if manifest.default_attribute is None and manifest.attributes:
        issues.append(
            _warning(
                "DEFAULT",
                manifest.name,
                f"no defaultAttribute; '{manifest.attributes[0].name}' is used",
                suggestion="Name the default attribute explicitly",
            )
        )

    for definition in manifest.attributes:
        location = f"{manifest.name}/{definition.name}"

        if definition.psi_type != ATTRIBUTE_PSI_TYPE:
            issues.append(
                _warning(
                    "PSI_TYPE",
                    location,
                    f"psiType is {definition.psi_type!r}, expected '{ATTRIBUTE_PSI_TYPE}'",
                    value=definition.psi_type,
                )
            )

        if not definition.description:
            issues.append(_warning("DESCRIPTION", location, "attribute has no description"))

        for uri in _iter_uris(definition.attribute):
            try:
                reference = parse_reference(uri)
            except MalformedReferenceError:
                # Reported by the structural checks.
                continue
            if not isinstance(reference, PrimitiveDescriptor) or reference.values is None:
                continue
            repeated = sorted({v for v in reference.values if reference.values.count(v) > 1})
            if repeated:
                issues.append(
                    _warning(
                        "NOMINAL_DOMAIN",
                        location,
                        f"nominal domain repeats {', '.join(repeated)}",
                        value=uri,
                    )
                )

    return issues


# =============================================================================
# Learners
# =============================================================================


def run_learner_semantic_checks(manifest: LearnerManifest) -> list[ValidationIssue]:
    issues: list[ValidationIssue] = []
    seen_tokens: dict[str, str] = {}

    for spec in manifest.parameters.values():
        location = f"{manifest.name}.{spec.name}"

        other = seen_tokens.setdefault(spec.toolkit_name, spec.name)
        if other != spec.name:
            issues.append(
                _warning(
                    "DUPLICATE_TOKEN",
                    location,
                    f"toolkit token {spec.toolkit_name!r} is also used by '{other}'",
                    value=spec.toolkit_name,
                )
            )

        if spec.required and spec.has_default:
            issues.append(
                _warning(
                    "REQUIRED_DEFAULT",
                    location,
                    "required parameter has a default, so it can never be missing",
                )
            )

        if spec.is_flag and not spec.constraints.is_empty():
            issues.append(
                _warning("FLAG_CONSTRAINTS", location, "constraints on a flag are ignored")
            )

        if manifest.toolkit_style == "weka" and not spec.toolkit_name.startswith("-"):
            issues.append(
                _warning(
                    "TOOLKIT_TOKEN",
                    location,
                    f"Weka option {spec.toolkit_name!r} does not start with '-'",
                    value=spec.toolkit_name,
                )
            )

        if not spec.description:
            issues.append(_warning("DESCRIPTION", location, "parameter has no description"))

    if not manifest.resource_slots():
        issues.append(
            _warning("RESOURCE", manifest.name, "learner declares no resource slots")
        )

    return issues
