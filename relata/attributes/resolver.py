"""Attribute resolver: evaluates registered attributes against raw records.

Resolution walks the compiled node graph of a sealed registry:

- PrimitiveNode: pull one raw field, coerce it to the declared type, check
  the nominal domain
- SequenceNode: list of element values in definition order
- MappingNode: dict with the definition's keys in definition order
- ReferenceNode: value of the referenced attribute, narrowed by each selector

Each resolve() call owns a private cache keyed by (relation, attribute), so
an attribute referenced several times in one graph is computed once per
record. Cached containers are deep-copied whenever they are reused, so the
caller owns every part of the returned value. Nothing is cached across calls
and the registry is never mutated.
"""

import copy
import math
import re
from collections.abc import Iterable, Iterator, Mapping, Sequence
from typing import Any

from ..core.errors import (
    DomainViolationError,
    IndexOutOfRangeError,
    InvalidSelectorError,
    MalformedReferenceError,
    MissingFieldError,
    RecordFormatError,
    RelataError,
    TypeCoercionError,
)
from ..core.models import RecordFormat
from .nodes import MappingNode, Node, PrimitiveNode, ReferenceNode, SequenceNode
from .registry import AttributeRegistry, Relation
from .uri import CSV_SOURCE, LocalReference, PrimitiveDescriptor, Selector, parse_reference

Value = int | float | str | list | dict

_INTEGER_RE = re.compile(r"^[+-]?\d+$")
_NUMBER_RE = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$")


# =============================================================================
# Field extraction and coercion
# =============================================================================


def _is_csv_record(record: Any) -> bool:
    return isinstance(record, Sequence) and not isinstance(record, (str, bytes))


def check_record(relation: Relation, attribute: str, record: Any) -> None:
    """Raise RecordFormatError if `record` cannot be a record of `relation`."""
    if relation.format == RecordFormat.CSV and not _is_csv_record(record):
        raise RecordFormatError(
            relation.name,
            attribute,
            f"CSV relations take a sequence of fields, got {type(record).__name__}",
        )
    if relation.format == RecordFormat.JSON and not isinstance(record, Mapping):
        raise RecordFormatError(
            relation.name,
            attribute,
            f"JSON relations take a mapping, got {type(record).__name__}",
        )


def extract_field(
    descriptor: PrimitiveDescriptor, record: Any, relation: str, attribute: str
) -> Any:
    """Read the raw field a primitive addresses.

    Raises:
        MissingFieldError: If the column or property is absent, None or empty
    """
    if descriptor.source == CSV_SOURCE:
        if descriptor.column > len(record):
            raise MissingFieldError(
                relation,
                attribute,
                f"column {descriptor.column} is missing (record has {len(record)} fields)",
            )
        raw = record[descriptor.column - 1]
    else:
        raw = record
        for step in descriptor.path:
            if not isinstance(raw, Mapping) or step not in raw:
                raise MissingFieldError(
                    relation, attribute, f"property '{descriptor.address}' is missing"
                )
            raw = raw[step]

    if raw is None or raw == "":
        raise MissingFieldError(relation, attribute, f"{descriptor.address} is empty")
    return raw


def _show_raw(raw: Any) -> str:
    if isinstance(raw, int) and raw.bit_length() > 1024:
        return f"an integer of {raw.bit_length()} bits"
    return repr(raw)


def coerce_value(
    descriptor: PrimitiveDescriptor, raw: Any, relation: str, attribute: str
) -> int | float | str:
    """Coerce a raw field to the descriptor's type and check its domain.

    Raises:
        TypeCoercionError: If the value cannot be represented as the type
        DomainViolationError: If a nominal value is outside its domain
    """
    value_type = descriptor.value_type

    def fail() -> TypeCoercionError:
        return TypeCoercionError(
            relation,
            attribute,
            f"cannot read {_show_raw(raw)} at {descriptor.address} as {value_type}",
        )

    if isinstance(raw, bool):
        raise fail()

    if value_type == "integer":
        if isinstance(raw, int):
            value = raw
        elif isinstance(raw, float) and math.isfinite(raw) and raw.is_integer():
            value = int(raw)
        elif isinstance(raw, str) and _INTEGER_RE.match(raw.strip()):
            try:
                value = int(raw.strip())
            except ValueError:
                # past the interpreter's integer digit limit
                raise fail() from None
        else:
            raise fail()

    elif value_type == "number":
        if isinstance(raw, (int, float)):
            number = raw
        elif isinstance(raw, str) and _NUMBER_RE.match(raw.strip()):
            number = raw.strip()
        else:
            raise fail()
        try:
            value = float(number)
        except (OverflowError, ValueError):
            raise fail() from None
        if not math.isfinite(value):
            raise fail()

    else:
        if isinstance(raw, str):
            value = raw
        elif isinstance(raw, (int, float)):
            try:
                value = str(raw)
            except ValueError:
                raise fail() from None
        else:
            raise fail()

    if descriptor.values is not None and value not in descriptor.values:
        raise DomainViolationError(relation, attribute, value, descriptor.values)
    return value


def select_value(value: Any, selector: Selector, relation: str, attribute: str) -> Any:
    """Apply one selector to a resolved value."""
    if isinstance(selector, int):
        if not isinstance(value, list):
            raise InvalidSelectorError(
                relation, attribute, selector, "index applied to a non-sequence"
            )
        if selector > len(value):
            raise IndexOutOfRangeError(relation, attribute, selector, len(value))
        return value[selector - 1]

    if not isinstance(value, dict):
        raise InvalidSelectorError(
            relation, attribute, selector, "key applied to a non-mapping"
        )
    if selector not in value:
        raise InvalidSelectorError(relation, attribute, selector, "no such key")
    return value[selector]


def _detach(value: Any) -> Any:
    if isinstance(value, (list, dict)):
        return copy.deepcopy(value)
    return value


# =============================================================================
# Per-call resolution state
# =============================================================================


class _Resolution:
    """Evaluates attributes for one record. Discarded after each call.

    Every attribute the target depends on is computed first, in resolution
    order, so evaluating a reference is always a cache lookup and reference
    chains never nest calls. A dependency that fails keeps its error, which
    is raised only when evaluation of the target actually reaches it.
    """

    def __init__(self, registry: AttributeRegistry, record: Any):
        self.registry = registry
        self.record = record
        self.cache: dict[tuple[str, str], Any] = {}
        self.failed: dict[tuple[str, str], RelataError] = {}

    def resolve(self, relation: str, attribute: str, plan: list[tuple[str, str]]) -> Any:
        for key in plan:
            self.compute(key)
        return self.evaluate(self.registry.node(relation, attribute), relation, attribute)

    def compute(self, key: tuple[str, str]) -> None:
        try:
            self.cache[key] = self.evaluate(self.registry.node(*key), *key)
        except RelataError as e:
            self.failed[key] = e

    def attribute(self, relation: str, attribute: str) -> Any:
        key = (relation, attribute)
        if key not in self.cache and key not in self.failed:
            self.compute(key)
        if key in self.failed:
            raise self.failed[key]
        return _detach(self.cache[key])

    def evaluate(self, node: Node, relation: str, label: str) -> Any:
        if isinstance(node, PrimitiveNode):
            raw = extract_field(node.descriptor, self.record, relation, label)
            return coerce_value(node.descriptor, raw, relation, label)

        if isinstance(node, SequenceNode):
            return [
                self.evaluate(element, relation, f"{label}/{i}")
                for i, element in enumerate(node.elements, 1)
            ]

        if isinstance(node, MappingNode):
            return {
                key: self.evaluate(member, relation, f"{label}/{key}")
                for key, member in node.members
            }

        value = self.attribute(node.relation, node.attribute)
        return self.select(value, node)

    def select(self, value: Any, node: ReferenceNode) -> Any:
        for selector in node.selectors:
            value = select_value(value, selector, node.relation, node.attribute)
        return value


# =============================================================================
# Resolver
# =============================================================================


class AttributeResolver:
    """Resolves attributes of a sealed registry against raw records.

    Constructing a resolver seals the registry. A resolver holds no
    per-record state and may be shared between threads.

    Example:
        >>> resolver = AttributeResolver(registry)
        >>> resolver.resolve("iris", "featuresNoClass", ["5.1", "3.5", "1.4", "0.2", "setosa"])
        [5.1, 3.5, 1.4, 0.2]
    """

    def __init__(self, registry: AttributeRegistry):
        registry.seal()
        self.registry = registry
        # (relation, attribute) -> dependencies in resolution order
        self._plans: dict[tuple[str, str], list[tuple[str, str]]] = {}

    def resolve(self, relation: str, attribute: str, record: Any) -> Value:
        """Compute one attribute's value for a raw record.

        Raises:
            UnknownRelationError, UnknownAttributeError: If the attribute
                is not registered
            DataError: If the record cannot supply a field the attribute
                depends on
        """
        rel = self.registry.relation(relation)
        rel.attribute(attribute)
        check_record(rel, attribute, record)
        key = (relation, attribute)
        plan = self._plans.get(key)
        if plan is None:
            plan = self._plans[key] = self.registry.dependencies(relation, attribute)
        return _Resolution(self.registry, record).resolve(relation, attribute, plan)

    def resolve_default(self, relation: str, record: Any) -> Value:
        """Resolve the relation's default attribute."""
        rel = self.registry.relation(relation)
        return self.resolve(relation, rel.default_attribute, record)

    def resolve_reference(self, uri: str, record: Any) -> Value:
        """Resolve a local:// URI, applying any trailing selectors."""
        reference = parse_reference(uri)
        if not isinstance(reference, LocalReference):
            raise MalformedReferenceError(uri, "only local:// references can be resolved")

        value = self.resolve(reference.relation, reference.attribute, record)
        for selector in reference.selectors:
            value = select_value(value, selector, reference.relation, reference.attribute)
        return value

    def resolve_many(
        self, relation: str, attribute: str, records: Iterable[Any]
    ) -> Iterator[Value]:
        """Yield one resolved value per record, in order.

        A DataError for one record propagates from the iterator at that
        record; earlier values have already been yielded.
        """
        for record in records:
            yield self.resolve(relation, attribute, record)
