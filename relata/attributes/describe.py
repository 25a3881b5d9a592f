"""Describe registered relations and the values their attributes emit.

Emitted schemas use the PSI schema notation learner resource slots are
written in:

    "$number", "$integer", "$string"
    {"$string": {"enum": ["setosa", "versicolor", "virginica"]}}
    {"$array": {"items": [<schema>, ...]}}
    {"/sepal": <schema>, "/petal": <schema>}
"""

from typing import Any

from .nodes import MappingShape, ScalarShape, SequenceShape, Shape
from .registry import AttributeRegistry
from .uri import local_uri


def shape_schema(shape: Shape) -> Any:
    if isinstance(shape, ScalarShape):
        if shape.values is not None:
            return {f"${shape.value_type}": {"enum": list(shape.values)}}
        return f"${shape.value_type}"
    if isinstance(shape, SequenceShape):
        return {"$array": {"items": [shape_schema(item) for item in shape.items]}}
    return {f"/{key}": shape_schema(member) for key, member in shape.members}


def emitted_schema(registry: AttributeRegistry, relation: str, attribute: str) -> Any:
    """Schema of the value `attribute` resolves to."""
    return shape_schema(registry.entry(relation, attribute).shape)


def shape_kind(shape: Shape) -> str:
    if isinstance(shape, ScalarShape):
        return "nominal" if shape.values is not None else shape.value_type
    if isinstance(shape, SequenceShape):
        return f"sequence[{shape.arity}]"
    if isinstance(shape, MappingShape):
        return "mapping"
    return "unknown"


def describe_relation(registry: AttributeRegistry, relation: str) -> dict[str, Any]:
    """Summarize a relation: format, default attribute and every attribute's URI and schema."""
    rel = registry.relation(relation)
    return {
        "name": rel.name,
        "description": rel.description,
        "format": rel.format.value,
        "path": rel.path,
        "uri": local_uri(rel.name, rel.default_attribute),
        "defaultAttribute": rel.default_attribute,
        "attributes": [
            {
                "name": entry.name,
                "description": entry.description,
                "uri": local_uri(rel.name, entry.name),
                "kind": shape_kind(entry.shape),
                "emits": shape_schema(entry.shape),
                "dependsOn": [
                    f"{dep_relation}/{dep_attribute}"
                    for dep_relation, dep_attribute in registry.dependencies(
                        rel.name, entry.name
                    )
                ],
            }
            for entry in rel.attributes.values()
        ],
    }
