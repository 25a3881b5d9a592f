"""Attribute engine: reference URIs, the attribute registry and the resolver.

Typical use:

    registry = AttributeRegistry()
    registry.register_manifest(RelationManifest.from_file("iris.jsonc"))
    resolver = AttributeResolver(registry)  # seals the registry
    resolver.resolve("iris", "features", ["5.1", "3.5", "1.4", "0.2", "setosa"])
"""

from .uri import (
    PrimitiveDescriptor,
    LocalReference,
    Reference,
    parse_reference,
    format_reference,
    local_uri,
)
from .nodes import (
    PrimitiveNode,
    SequenceNode,
    MappingNode,
    ReferenceNode,
    Node,
    ScalarShape,
    SequenceShape,
    MappingShape,
    Shape,
)
from .registry import AttributeEntry, AttributeRegistry, Relation, RelationBuilder
from .resolver import AttributeResolver
from .describe import describe_relation, emitted_schema

__all__ = [
    # URIs
    "PrimitiveDescriptor",
    "LocalReference",
    "Reference",
    "parse_reference",
    "format_reference",
    "local_uri",
    # Nodes
    "PrimitiveNode",
    "SequenceNode",
    "MappingNode",
    "ReferenceNode",
    "Node",
    "ScalarShape",
    "SequenceShape",
    "MappingShape",
    "Shape",
    # Registry
    "AttributeEntry",
    "AttributeRegistry",
    "Relation",
    "RelationBuilder",
    # Resolution
    "AttributeResolver",
    "describe_relation",
    "emitted_schema",
]
