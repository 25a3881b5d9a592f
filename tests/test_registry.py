"""Tests for building relations into the attribute registry."""

import threading

import pytest

from relata.attributes import AttributeRegistry, AttributeResolver, describe_relation, emitted_schema
from relata.core.errors import (
    AttributeReferenceError,
    DuplicateAttributeError,
    DuplicateRelationError,
    FormatMismatchError,
    IndexOutOfRangeError,
    InvalidDefaultAttributeError,
    InvalidSelectorError,
    MalformedReferenceError,
    RegistrySealedError,
    SchemaError,
    UnknownAttributeError,
    UnknownRelationError,
)
from relata.core.models import RecordFormat


def _defs(*pairs):
    return [{"name": name, "attribute": attribute} for name, attribute in pairs]


class TestBundledRelations:
    def test_iris_registers_in_order(self, registry):
        iris = registry.relation("iris")
        assert iris.format == RecordFormat.CSV
        assert iris.default_attribute == "features"
        assert iris.attribute_names[:5] == (
            "sepal_length",
            "sepal_width",
            "petal_length",
            "petal_width",
            "species",
        )
        assert "asObjectFromObject" in iris

    def test_json_iris_defaults_to_first_attribute(self, registry):
        json_iris = registry.relation("jsonIris")
        assert json_iris.format == RecordFormat.JSON
        assert json_iris.default_attribute == "features"

    def test_relations_in_registration_order(self, registry):
        assert [rel.name for rel in registry.relations()] == ["iris", "jsonIris"]
        assert len(registry) == 2

    def test_dependencies_in_resolution_order(self, registry):
        deps = registry.dependencies("iris", "asObjectFromObject")
        assert deps[-1] == ("iris", "asObjectFromFeatures")
        assert deps.index(("iris", "features")) < deps.index(("iris", "asObjectFromFeatures"))
        assert ("iris", "species") in deps
        assert ("iris", "asObjectFromObject") not in deps

    def test_dependencies_of_a_long_chain(self):
        registry = AttributeRegistry()
        registry.register(
            "r",
            "CSV",
            _defs(("a0", "primitive://csv/1?type=number"))
            + _defs(*((f"a{i}", f"local://localhost/data/r/a{i - 1}") for i in range(1, 2500))),
        )
        deps = registry.dependencies("r", "a2499")
        assert len(deps) == 2499
        assert deps[0] == ("r", "a0")
        assert deps[-1] == ("r", "a2498")

    def test_shared_dependency_listed_once(self, registry):
        deps = registry.dependencies("iris", "asObjectFromObject")
        assert len(deps) == len(set(deps))

    def test_primitive_has_no_dependencies(self, registry):
        assert registry.dependencies("iris", "sepal_length") == []


class TestBuildErrors:
    def test_duplicate_attribute(self):
        registry = AttributeRegistry()
        with pytest.raises(DuplicateAttributeError) as exc_info:
            registry.register(
                "r",
                "CSV",
                _defs(("a", "primitive://csv/1?type=number"), ("a", "primitive://csv/2?type=number")),
            )
        assert exc_info.value.attribute == "a"
        assert "r" not in registry

    def test_forward_reference_rejected(self):
        registry = AttributeRegistry()
        with pytest.raises(UnknownAttributeError) as exc_info:
            registry.register(
                "r",
                "CSV",
                _defs(
                    ("a", "local://localhost/data/r/b"),
                    ("b", "primitive://csv/1?type=number"),
                ),
            )
        assert exc_info.value.referrer == "r/a"

    def test_self_reference_rejected(self):
        registry = AttributeRegistry()
        with pytest.raises(UnknownAttributeError):
            registry.register("r", "CSV", _defs(("a", ["local://localhost/data/r/a"])))

    def test_failed_registration_commits_nothing(self):
        registry = AttributeRegistry()
        with pytest.raises(SchemaError):
            registry.register(
                "r",
                "CSV",
                _defs(("a", "primitive://csv/1?type=number"), ("b", "not-a-uri")),
            )
        assert len(registry) == 0
        registry.register("r", "CSV", _defs(("a", "primitive://csv/1?type=number")))
        assert "r" in registry

    def test_index_out_of_range_at_build_time(self):
        registry = AttributeRegistry()
        with pytest.raises(IndexOutOfRangeError) as exc_info:
            registry.register(
                "r",
                "CSV",
                _defs(
                    ("pair", ["primitive://csv/1?type=number", "primitive://csv/2?type=number"]),
                    ("third", "local://localhost/data/r/pair/3"),
                ),
            )
        assert exc_info.value.arity == 2

    def test_index_on_scalar_rejected(self):
        registry = AttributeRegistry()
        with pytest.raises(InvalidSelectorError):
            registry.register(
                "r",
                "CSV",
                _defs(
                    ("a", "primitive://csv/1?type=number"),
                    ("b", "local://localhost/data/r/a/1"),
                ),
            )

    def test_unknown_mapping_key_rejected(self):
        registry = AttributeRegistry()
        with pytest.raises(InvalidSelectorError):
            registry.register(
                "r",
                "CSV",
                _defs(
                    ("obj", {"x": "primitive://csv/1?type=number"}),
                    ("y", "local://localhost/data/r/obj/y"),
                ),
            )

    def test_property_primitive_in_csv_relation(self):
        registry = AttributeRegistry()
        with pytest.raises(FormatMismatchError):
            registry.register("r", "CSV", _defs(("a", "primitive://property/a?type=number")))

    def test_csv_primitive_in_json_relation(self):
        registry = AttributeRegistry()
        with pytest.raises(FormatMismatchError):
            registry.register("r", "JSON", _defs(("a", "primitive://csv/1?type=number")))

    def test_cross_format_reference(self, registry):
        with pytest.raises(FormatMismatchError):
            registry.register(
                "other", "JSON", _defs(("s", "local://localhost/data/iris/species"))
            )

    def test_remote_host_rejected(self):
        registry = AttributeRegistry()
        registry.register("r", "CSV", _defs(("a", "primitive://csv/1?type=number")))
        with pytest.raises(MalformedReferenceError):
            registry.register("s", "CSV", _defs(("b", "local://example.org/data/r/a")))

    def test_unknown_relation(self):
        registry = AttributeRegistry()
        with pytest.raises(UnknownRelationError):
            registry.register("r", "CSV", _defs(("a", "local://localhost/data/nope/a")))

    def test_reference_errors_share_a_base(self):
        assert issubclass(UnknownRelationError, AttributeReferenceError)
        assert issubclass(IndexOutOfRangeError, AttributeReferenceError)

    def test_invalid_default(self):
        registry = AttributeRegistry()
        with pytest.raises(InvalidDefaultAttributeError):
            registry.register(
                "r", "CSV", _defs(("a", "primitive://csv/1?type=number")), "missing"
            )

    def test_empty_relation_has_no_default(self):
        registry = AttributeRegistry()
        with pytest.raises(InvalidDefaultAttributeError):
            registry.register("r", "CSV", [])

    def test_empty_composite(self):
        registry = AttributeRegistry()
        with pytest.raises(SchemaError, match="must not be empty"):
            registry.register("r", "CSV", _defs(("a", [])))

    def test_unknown_format(self):
        registry = AttributeRegistry()
        with pytest.raises(SchemaError, match="unknown format"):
            registry.register("r", "XML", _defs(("a", "primitive://csv/1?type=number")))

    def test_invalid_definition_dict(self):
        registry = AttributeRegistry()
        with pytest.raises(SchemaError):
            registry.register("r", "CSV", [{"attribute": "primitive://csv/1?type=number"}])

    def test_duplicate_relation(self, registry):
        with pytest.raises(DuplicateRelationError):
            registry.register("iris", "CSV", _defs(("a", "primitive://csv/1?type=number")))


class TestSealing:
    def test_resolver_seals_registry(self, registry):
        AttributeResolver(registry)
        assert registry.sealed
        with pytest.raises(RegistrySealedError):
            registry.register("late", "CSV", _defs(("a", "primitive://csv/1?type=number")))

    def test_concurrent_registration_of_same_name(self):
        registry = AttributeRegistry()
        errors = []

        def register():
            try:
                registry.register("r", "CSV", _defs(("a", "primitive://csv/1?type=number")))
            except DuplicateRelationError as e:
                errors.append(e)

        threads = [threading.Thread(target=register) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(registry) == 1
        assert len(errors) == 7


class TestDescribe:
    def test_emitted_schemas(self, registry):
        assert emitted_schema(registry, "iris", "sepal_length") == "$number"
        assert emitted_schema(registry, "iris", "species") == {
            "$string": {"enum": ["setosa", "versicolor", "virginica"]}
        }
        features = emitted_schema(registry, "iris", "features")
        assert len(features["$array"]["items"]) == 5
        assert emitted_schema(registry, "iris", "asObjectFromObject")["/sp"] == {
            "$string": {"enum": ["setosa", "versicolor", "virginica"]}
        }

    def test_describe_relation(self, registry):
        summary = describe_relation(registry, "iris")
        assert summary["uri"] == "local://localhost/data/iris/features"
        assert summary["format"] == "CSV"
        by_name = {attr["name"]: attr for attr in summary["attributes"]}
        assert by_name["species"]["kind"] == "nominal"
        assert by_name["features"]["kind"] == "sequence[5]"
        assert by_name["asObjectDirect"]["kind"] == "mapping"
        assert by_name["featuresNoClass"]["dependsOn"] == [
            "iris/sepal_length",
            "iris/sepal_width",
            "iris/petal_length",
            "iris/petal_width",
        ]
