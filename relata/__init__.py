"""Relata: attribute resolution and learner parameter schemas.

Relation manifests describe how raw CSV rows and JSON objects become named,
typed, composable feature values. Learner manifests describe the typed
parameters of external ML toolkits and how they render as invocation
arguments.

    from relata import AttributeRegistry, AttributeResolver, RelationManifest

    registry = AttributeRegistry()
    registry.register_manifest(RelationManifest.from_file("iris.jsonc"))
    AttributeResolver(registry).resolve("iris", "species", row)
"""

__version__ = "0.1.0"

from .attributes import (
    AttributeRegistry,
    AttributeResolver,
    LocalReference,
    PrimitiveDescriptor,
    describe_relation,
    format_reference,
    parse_reference,
)
from .core.errors import RelataError
from .core.models import LearnerManifest, RelationManifest
from .learners import LearnerCatalog, ParameterSchema, Task, ToolkitInvocation, translate, validate
from .manifests import load_configured, load_learners, load_relations

__all__ = [
    "__version__",
    "AttributeRegistry",
    "AttributeResolver",
    "LocalReference",
    "PrimitiveDescriptor",
    "describe_relation",
    "format_reference",
    "parse_reference",
    "RelataError",
    "LearnerManifest",
    "RelationManifest",
    "LearnerCatalog",
    "ParameterSchema",
    "Task",
    "ToolkitInvocation",
    "translate",
    "validate",
    "load_configured",
    "load_learners",
    "load_relations",
]
