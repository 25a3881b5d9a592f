"""All Pydantic models for relata, organized by domain.

This package centralizes all model definitions:
- relation.py: Relation manifests and attribute definitions
- learner.py: Learner manifests, parameter specs, resource slots
- validation.py: Validation issues and results shared by both
"""

# Relation models
from .relation import (
    RecordFormat,
    AttributeDefinition,
    RelationManifest,
)

# Learner models
from .learner import (
    PARAMETER_TYPES,
    ToolkitStyle,
    ParameterConstraints,
    LearnerParameterSpec,
    ResourceSlot,
    LearnerManifest,
)

# Validation models (shared across relations and learners)
from .validation import (
    Severity,
    ValidationIssue,
    ValidationResult,
)

__all__ = [
    # Relation
    "RecordFormat",
    "AttributeDefinition",
    "RelationManifest",
    # Learner
    "PARAMETER_TYPES",
    "ToolkitStyle",
    "ParameterConstraints",
    "LearnerParameterSpec",
    "ResourceSlot",
    "LearnerManifest",
    # Validation
    "Severity",
    "ValidationIssue",
    "ValidationResult",
]
