"""Compiled attribute nodes and their static shapes.

An attribute definition compiles into exactly one of four node kinds:

- PrimitiveNode: extracts and coerces one raw field
- SequenceNode: ordered, fixed-arity list of child nodes
- MappingNode: ordered set of named child nodes
- ReferenceNode: points at a registered attribute by (relation, attribute)
  key, optionally followed by selectors

References hold keys, never node objects, so the compiled graph has no live
links and cannot form cycles.

Every node also has a static Shape computed at build time. Shapes let the
registry reject out-of-range indices before any record is seen and let
describe.py report the schema an attribute emits.
"""

from dataclasses import dataclass

from ..core.errors import IndexOutOfRangeError, InvalidSelectorError
from .uri import PrimitiveDescriptor, Selector


# =============================================================================
# Nodes
# =============================================================================


@dataclass(frozen=True)
class PrimitiveNode:
    descriptor: PrimitiveDescriptor


@dataclass(frozen=True)
class SequenceNode:
    elements: tuple["Node", ...]

    @property
    def arity(self) -> int:
        return len(self.elements)


@dataclass(frozen=True)
class MappingNode:
    members: tuple[tuple[str, "Node"], ...]

    @property
    def keys(self) -> tuple[str, ...]:
        return tuple(key for key, _ in self.members)


@dataclass(frozen=True)
class ReferenceNode:
    relation: str
    attribute: str
    selectors: tuple[Selector, ...] = ()


Node = PrimitiveNode | SequenceNode | MappingNode | ReferenceNode


# =============================================================================
# Shapes
# =============================================================================


@dataclass(frozen=True)
class ScalarShape:
    value_type: str
    values: tuple[str, ...] | None = None


@dataclass(frozen=True)
class SequenceShape:
    items: tuple["Shape", ...]

    @property
    def arity(self) -> int:
        return len(self.items)


@dataclass(frozen=True)
class MappingShape:
    members: tuple[tuple[str, "Shape"], ...]

    def member(self, key: str) -> "Shape | None":
        for name, shape in self.members:
            if name == key:
                return shape
        return None


Shape = ScalarShape | SequenceShape | MappingShape


def shape_of_primitive(descriptor: PrimitiveDescriptor) -> ScalarShape:
    return ScalarShape(value_type=descriptor.value_type, values=descriptor.values)


def select_shape(
    shape: Shape, selector: Selector, relation: str, attribute: str
) -> Shape:
    """Apply one selector to a shape.

    Raises:
        IndexOutOfRangeError: If an index exceeds a sequence's arity
        InvalidSelectorError: If the selector kind does not fit the shape
    """
    if isinstance(selector, int):
        if not isinstance(shape, SequenceShape):
            raise InvalidSelectorError(
                relation, attribute, selector, "index applied to a non-sequence"
            )
        if selector > shape.arity:
            raise IndexOutOfRangeError(relation, attribute, selector, shape.arity)
        return shape.items[selector - 1]

    if not isinstance(shape, MappingShape):
        raise InvalidSelectorError(
            relation, attribute, selector, "key applied to a non-mapping"
        )
    member = shape.member(selector)
    if member is None:
        raise InvalidSelectorError(relation, attribute, selector, "no such key")
    return member


def iter_references(node: Node):
    """Yield every ReferenceNode reachable from node without following keys."""
    if isinstance(node, ReferenceNode):
        yield node
    elif isinstance(node, SequenceNode):
        for element in node.elements:
            yield from iter_references(element)
    elif isinstance(node, MappingNode):
        for _, member in node.members:
            yield from iter_references(member)
