"""Attribute registry: compiles relation definitions into an immutable graph.

Definitions are compiled in file order. A local:// reference may only name an
attribute that is already registered, either earlier in the same relation or
in a previously registered relation of the same record format. Forward and
self references are rejected with UnknownAttributeError, which keeps the
reference graph acyclic by construction.

Registration is atomic per relation: a RelationBuilder accumulates compiled
entries privately and the registry commits the finished Relation only when
every definition and the default attribute check out. A failed registration
leaves the registry exactly as it was.

Once sealed (an AttributeResolver seals the registry it is given) the
registry is read-only and safe to share between threads.
"""

import logging
import threading
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from pydantic import ValidationError

from ..core.errors import (
    DuplicateAttributeError,
    DuplicateRelationError,
    FormatMismatchError,
    InvalidDefaultAttributeError,
    MalformedReferenceError,
    RegistrySealedError,
    SchemaError,
    UnknownAttributeError,
    UnknownRelationError,
)
from ..core.models import AttributeDefinition, RecordFormat, RelationManifest
from .nodes import (
    MappingNode,
    MappingShape,
    Node,
    PrimitiveNode,
    ReferenceNode,
    SequenceNode,
    SequenceShape,
    Shape,
    iter_references,
    select_shape,
    shape_of_primitive,
)
from .uri import (
    CSV_SOURCE,
    PROPERTY_SOURCE,
    LocalReference,
    PrimitiveDescriptor,
    parse_reference,
)

logger = logging.getLogger(__name__)

LOCAL_HOSTS = frozenset({"localhost", ""})

_SOURCE_FORMATS = {
    CSV_SOURCE: RecordFormat.CSV,
    PROPERTY_SOURCE: RecordFormat.JSON,
}


# =============================================================================
# Compiled relation
# =============================================================================


@dataclass(frozen=True)
class AttributeEntry:
    """A compiled attribute: its node plus the static shape of its value."""

    name: str
    node: Node
    shape: Shape
    description: str | None = None


@dataclass(frozen=True)
class Relation:
    """A registered relation. Immutable once built."""

    name: str
    format: RecordFormat
    default_attribute: str
    attributes: Mapping[str, AttributeEntry]
    description: str | None = None
    path: str | None = None

    @property
    def attribute_names(self) -> tuple[str, ...]:
        return tuple(self.attributes)

    def attribute(self, name: str) -> AttributeEntry:
        try:
            return self.attributes[name]
        except KeyError:
            raise UnknownAttributeError(self.name, name) from None

    def __contains__(self, name: object) -> bool:
        return name in self.attributes


def _coerce_format(relation: str, value: RecordFormat | str) -> RecordFormat:
    if isinstance(value, RecordFormat):
        return value
    try:
        return RecordFormat(str(value).upper())
    except ValueError:
        raise SchemaError(
            f"relation '{relation}' has unknown format {value!r} (expected CSV or JSON)"
        ) from None


# =============================================================================
# Builder
# =============================================================================


class RelationBuilder:
    """Compiles one relation's definitions against a registry snapshot.

    Nothing is written to the registry; call AttributeRegistry.register to
    build and commit in one step.
    """

    def __init__(
        self,
        registry: "AttributeRegistry",
        name: str,
        format: RecordFormat | str,
        *,
        description: str | None = None,
        path: str | None = None,
    ):
        if not name or "/" in name:
            raise SchemaError(f"invalid relation name {name!r}")
        self.registry = registry
        self.name = name
        self.format = _coerce_format(name, format)
        self.description = description
        self.path = path
        self._entries: dict[str, AttributeEntry] = {}

    def add(
        self, name: str, expression: Any, description: str | None = None
    ) -> AttributeEntry:
        """Compile and stage one attribute definition.

        Raises:
            DuplicateAttributeError: If `name` is already staged
            SchemaError: If the expression is malformed or mis-formatted
            AttributeReferenceError: If it references an unknown attribute or
                applies a selector the target's shape cannot satisfy
        """
        if not name or "/" in name:
            raise SchemaError(f"{self.name}: invalid attribute name {name!r}")
        if name in self._entries:
            raise DuplicateAttributeError(self.name, name)

        node, shape = self._compile(expression, name, ())
        entry = AttributeEntry(name=name, node=node, shape=shape, description=description)
        self._entries[name] = entry
        return entry

    def build(self, default_attribute: str | None = None) -> Relation:
        """Freeze the staged attributes into a Relation.

        The first attribute is the default when none is named.
        """
        if default_attribute is None:
            if not self._entries:
                raise InvalidDefaultAttributeError(self.name, None)
            default_attribute = next(iter(self._entries))
        elif default_attribute not in self._entries:
            raise InvalidDefaultAttributeError(self.name, default_attribute)

        return Relation(
            name=self.name,
            format=self.format,
            default_attribute=default_attribute,
            attributes=MappingProxyType(dict(self._entries)),
            description=self.description,
            path=self.path,
        )

    # -------------------------------------------------------------------------
    # Expression compilation
    # -------------------------------------------------------------------------

    def _compile(
        self, expression: Any, owner: str, member_path: tuple[str, ...]
    ) -> tuple[Node, Shape]:
        if isinstance(expression, str):
            return self._compile_uri(expression, owner, member_path)

        if isinstance(expression, list):
            if not expression:
                raise SchemaError(
                    f"{self._label(owner, member_path)}: sequence attributes must not be empty"
                )
            compiled = [
                self._compile(item, owner, (*member_path, str(i)))
                for i, item in enumerate(expression, 1)
            ]
            return (
                SequenceNode(tuple(node for node, _ in compiled)),
                SequenceShape(tuple(shape for _, shape in compiled)),
            )

        if isinstance(expression, dict):
            if not expression:
                raise SchemaError(
                    f"{self._label(owner, member_path)}: mapping attributes must not be empty"
                )
            members: list[tuple[str, Node]] = []
            shapes: list[tuple[str, Shape]] = []
            for key, item in expression.items():
                if not isinstance(key, str) or not key or "/" in key:
                    raise SchemaError(
                        f"{self._label(owner, member_path)}: invalid mapping key {key!r}"
                    )
                node, shape = self._compile(item, owner, (*member_path, key))
                members.append((key, node))
                shapes.append((key, shape))
            return MappingNode(tuple(members)), MappingShape(tuple(shapes))

        raise SchemaError(
            f"{self._label(owner, member_path)}: attribute expressions must be a URI "
            f"string, list or mapping, got {type(expression).__name__}"
        )

    def _compile_uri(
        self, uri: str, owner: str, member_path: tuple[str, ...]
    ) -> tuple[Node, Shape]:
        reference = parse_reference(uri)

        if isinstance(reference, PrimitiveDescriptor):
            expected = _SOURCE_FORMATS[reference.source]
            if expected != self.format:
                raise FormatMismatchError(
                    self.name,
                    self._label(owner, member_path, qualified=False),
                    f"'{reference.source}' primitives are not allowed in a "
                    f"{self.format.value} relation",
                )
            return PrimitiveNode(reference), shape_of_primitive(reference)

        return self._compile_local(uri, reference, owner, member_path)

    def _compile_local(
        self,
        uri: str,
        reference: LocalReference,
        owner: str,
        member_path: tuple[str, ...],
    ) -> tuple[ReferenceNode, Shape]:
        if reference.host not in LOCAL_HOSTS:
            raise MalformedReferenceError(
                uri, f"only local references are supported, got host {reference.host!r}"
            )

        referrer = f"{self.name}/{owner}"
        if reference.relation == self.name:
            target = self._entries.get(reference.attribute)
            if target is None:
                raise UnknownAttributeError(
                    reference.relation, reference.attribute, referrer=referrer
                )
        else:
            other = self.registry.relation(reference.relation)
            if other.format != self.format:
                raise FormatMismatchError(
                    self.name,
                    self._label(owner, member_path, qualified=False),
                    f"cannot reference {other.format.value} relation "
                    f"'{other.name}' from a {self.format.value} relation",
                )
            target = other.attributes.get(reference.attribute)
            if target is None:
                raise UnknownAttributeError(
                    reference.relation, reference.attribute, referrer=referrer
                )

        shape = target.shape
        for selector in reference.selectors:
            shape = select_shape(shape, selector, reference.relation, reference.attribute)

        node = ReferenceNode(
            relation=reference.relation,
            attribute=reference.attribute,
            selectors=reference.selectors,
        )
        return node, shape

    def _label(
        self, owner: str, member_path: tuple[str, ...], qualified: bool = True
    ) -> str:
        label = "/".join((owner, *member_path))
        return f"{self.name}/{label}" if qualified else label


# =============================================================================
# Registry
# =============================================================================


class AttributeRegistry:
    """All registered relations, keyed by name.

    Example:
        >>> registry = AttributeRegistry()
        >>> registry.register("iris", "CSV", manifest.attributes, "features")
        >>> registry.seal()
    """

    def __init__(self):
        self._relations: dict[str, Relation] = {}
        self._sealed = False
        self._lock = threading.Lock()

    def register(
        self,
        relation_name: str,
        format: RecordFormat | str,
        definitions: Iterable[AttributeDefinition | Mapping[str, Any]],
        default_attribute: str | None = None,
        *,
        description: str | None = None,
        path: str | None = None,
    ) -> Relation:
        """Compile and commit a relation.

        Args:
            relation_name: Name the relation is registered under
            format: CSV or JSON
            definitions: Attribute definitions in file order
            default_attribute: Default attribute name; the first
                definition when omitted

        Returns:
            The committed Relation

        Raises:
            RegistrySealedError: If the registry is sealed
            DuplicateRelationError: If the name is already registered
            SchemaError, AttributeReferenceError: If any definition is
                invalid; nothing is committed in that case
        """
        with self._lock:
            if self._sealed:
                raise RegistrySealedError(relation_name)
            if relation_name in self._relations:
                raise DuplicateRelationError(relation_name)

            builder = RelationBuilder(
                self, relation_name, format, description=description, path=path
            )
            for definition in definitions:
                if not isinstance(definition, AttributeDefinition):
                    try:
                        definition = AttributeDefinition.model_validate(definition)
                    except ValidationError as e:
                        raise SchemaError(
                            f"{relation_name}: invalid attribute definition: {e}"
                        ) from e
                builder.add(definition.name, definition.attribute, definition.description)

            relation = builder.build(default_attribute)
            self._relations[relation_name] = relation

        logger.debug(
            "Registered relation %s (%s) with %d attribute(s), default %s",
            relation.name,
            relation.format.value,
            len(relation.attributes),
            relation.default_attribute,
        )
        return relation

    def register_manifest(self, manifest: RelationManifest) -> Relation:
        """Register a relation from its loaded manifest."""
        return self.register(
            manifest.name,
            manifest.format,
            manifest.attributes,
            manifest.default_attribute,
            description=manifest.description,
            path=manifest.path,
        )

    def seal(self) -> None:
        """Make the registry read-only. Sealing is one-way."""
        with self._lock:
            if not self._sealed:
                logger.debug("Sealing registry with %d relation(s)", len(self._relations))
            self._sealed = True

    @property
    def sealed(self) -> bool:
        return self._sealed

    # -------------------------------------------------------------------------
    # Lookup
    # -------------------------------------------------------------------------

    def relation(self, name: str) -> Relation:
        try:
            return self._relations[name]
        except KeyError:
            raise UnknownRelationError(name) from None

    def relations(self) -> list[Relation]:
        """Registered relations in registration order."""
        return list(self._relations.values())

    def entry(self, relation: str, attribute: str) -> AttributeEntry:
        return self.relation(relation).attribute(attribute)

    def node(self, relation: str, attribute: str) -> Node:
        return self.entry(relation, attribute).node

    def dependencies(self, relation: str, attribute: str) -> list[tuple[str, str]]:
        """Every attribute `attribute` transitively references.

        Returned as (relation, attribute) keys in resolution order: each
        key appears after all of its own dependencies, and the queried
        attribute itself is not included. The walk is iterative.
        """
        root = (relation, attribute)
        ordered: list[tuple[str, str]] = []
        seen: set[tuple[str, str]] = set()
        stack = [(root, self._direct_dependencies(root))]

        while stack:
            key, pending = stack[-1]
            for dep in pending:
                if dep not in seen:
                    seen.add(dep)
                    stack.append((dep, self._direct_dependencies(dep)))
                    break
            else:
                stack.pop()
                if key != root:
                    ordered.append(key)
        return ordered

    def _direct_dependencies(self, key: tuple[str, str]) -> Iterator[tuple[str, str]]:
        return ((ref.relation, ref.attribute) for ref in iter_references(self.node(*key)))

    def __contains__(self, name: object) -> bool:
        return name in self._relations

    def __len__(self) -> int:
        return len(self._relations)
