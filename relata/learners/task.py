"""Learner tasks: bind resolved attributes to resource slots.

A task names a learner, supplies parameter values and binds each resource
slot to a registered attribute. Binding validates the task against the
learner's declaration and resolves every bound attribute for every record,
producing a ToolkitInvocation: everything an external toolkit invoker needs,
with no further lookups.

Task documents follow the PSI task layout, where every key other than
`resources` is a parameter:

    {
        "resources": {
            "source": "local://localhost/data/iris/featuresNoClass",
            "target": "local://localhost/data/iris/species"
        },
        "confidence": 0.1
    }
"""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from ..attributes import AttributeRegistry, AttributeResolver, local_uri
from ..core.errors import ResourceSlotError
from .catalog import LearnerCatalog

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ToolkitInvocation:
    """Arguments and bound resource values for one learner run."""

    learner: str
    implementation: str
    toolkit: str
    arguments: tuple[str, ...]
    resources: Mapping[str, list[Any]]
    options: Mapping[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "learner": self.learner,
            "implementation": self.implementation,
            "toolkit": self.toolkit,
            "arguments": list(self.arguments),
            "resources": {slot: list(values) for slot, values in self.resources.items()},
            "options": dict(self.options),
        }


def _slot_name(key: str) -> str:
    return key[1:] if key[:1] in ("/", "?") else key


def _reference_uri(binding: str | tuple[str, str]) -> str:
    if isinstance(binding, (tuple, list)):
        relation, attribute = binding
        return local_uri(relation, attribute)
    return binding


@dataclass
class Task:
    """A request to run a learner over resolved attributes.

    `resources` maps slot names to a local:// URI (selectors allowed) or a
    (relation, attribute) pair.
    """

    learner: str
    parameters: dict[str, Any] = field(default_factory=dict)
    resources: dict[str, str | tuple[str, str]] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, learner: str, data: Mapping[str, Any]) -> "Task":
        """Build a task from a PSI task document."""
        resources = data.get("resources") or {}
        if not isinstance(resources, Mapping):
            raise ResourceSlotError(learner, "resources", "must be a mapping of slot to URI")
        parameters = {k: v for k, v in data.items() if k != "resources"}
        return cls(
            learner=learner,
            parameters=parameters,
            resources={_slot_name(k): v for k, v in resources.items()},
        )

    def check_slots(self, catalog: LearnerCatalog) -> None:
        """Raise ResourceSlotError unless bound slots match the declared ones."""
        manifest = catalog.get(self.learner)
        slots = {slot.name: slot for slot in manifest.resource_slots()}

        for name in self.resources:
            if name not in slots:
                raise ResourceSlotError(
                    self.learner, name, "is not a resource slot of this learner"
                )
        for slot in slots.values():
            if slot.required and slot.name not in self.resources:
                raise ResourceSlotError(
                    self.learner, slot.name, "required resource slot is not bound"
                )

    def bind(
        self,
        registry: AttributeRegistry,
        records: Iterable[Any],
        catalog: LearnerCatalog | None = None,
    ) -> ToolkitInvocation:
        """Validate the task and resolve its resources for every record.

        Seals `registry`.

        Raises:
            UnknownLearnerError: If the learner is not in the catalog
            ResourceSlotError: If slot bindings do not match the declaration
            ParameterError: If parameters are invalid
            AttributeReferenceError, DataError: If a binding cannot be resolved
        """
        if catalog is None:
            catalog = LearnerCatalog.default()
        manifest = catalog.get(self.learner)
        schema = catalog.schema(self.learner)

        self.check_slots(catalog)
        validated = schema.validate(self.parameters)
        arguments = schema.translate(validated)

        resolver = AttributeResolver(registry)
        records = list(records)
        resolved: dict[str, list[Any]] = {}
        for slot in manifest.resource_slots():
            if slot.name not in self.resources:
                continue
            uri = _reference_uri(self.resources[slot.name])
            resolved[slot.name] = [
                resolver.resolve_reference(uri, record) for record in records
            ]

        logger.info(
            "Bound %s task: %d record(s), slots %s, arguments %s",
            self.learner,
            len(records),
            ", ".join(resolved) or "none",
            " ".join(arguments) or "none",
        )
        return ToolkitInvocation(
            learner=self.learner,
            implementation=manifest.implementation,
            toolkit=manifest.toolkit_style,
            arguments=tuple(arguments),
            resources=resolved,
            options=dict(manifest.toolkit_options),
        )
