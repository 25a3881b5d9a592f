"""Tests for manifest models, file loading and directory loading."""

import json

import pytest

from relata.config import ManifestsConfig, RelataConfig
from relata.core.errors import ManifestError, UnknownAttributeError
from relata.core.models import LearnerManifest, RecordFormat, RelationManifest
from relata.manifests import load_configured, load_learners, load_relations

BROKEN_RELATION = """{
    "name": "broken",
    "format": "CSV",
    "attributes": [
        {"name": "a", "attribute": "local://localhost/data/broken/b"},
        {"name": "b", "attribute": "primitive://csv/1?type=number"}
    ]
}"""

EXTRA_RELATION = """
name: extra
format: csv
defaultAttribute: petals
attributes:
  - name: petals
    attribute:
      - local://localhost/data/iris/petal_length
      - local://localhost/data/iris/petal_width
"""


class TestRelationManifest:
    def test_relaxed_iris(self, iris_manifest):
        assert iris_manifest.name == "iris"
        assert iris_manifest.format == RecordFormat.CSV
        assert iris_manifest.default_attribute == "features"
        assert iris_manifest.path == "iris.csv"
        assert len(iris_manifest.attributes) == 10
        assert iris_manifest.get_attribute("species").psi_type == "attribute-definition"

    def test_effective_default(self, json_iris_manifest):
        assert json_iris_manifest.default_attribute is None
        assert json_iris_manifest.effective_default() == "features"

    def test_data_path_is_relative_to_manifest(self, relations_dir):
        manifest = RelationManifest.from_file(relations_dir / "iris.jsonc")
        assert manifest.data_path(relations_dir / "iris.jsonc") == (relations_dir / "iris.csv").resolve()

    def test_lowercase_format(self):
        manifest = RelationManifest.from_dict({"name": "r", "format": "json", "attributes": []})
        assert manifest.format == RecordFormat.JSON

    def test_invalid_manifest(self):
        with pytest.raises(ManifestError):
            RelationManifest.from_dict({"name": "r", "format": "XML", "attributes": []})

    def test_unreadable_file(self, tmp_path):
        with pytest.raises(ManifestError):
            RelationManifest.from_file(tmp_path / "missing.jsonc")

    def test_yaml_round_trip(self, iris_manifest, tmp_path):
        path = tmp_path / "iris.yaml"
        iris_manifest.to_yaml(path)
        assert RelationManifest.from_yaml(path) == iris_manifest


class TestLearnerManifest:
    def test_type_prefix_stripped(self, learners_dir):
        manifest = LearnerManifest.from_file(learners_dir / "j48.jsonc")
        assert manifest.parameters["confidence"].type == "number"
        assert manifest.parameters["confidence"].name == "confidence"
        assert manifest.parameters["unpruned"].is_flag

    def test_unknown_type(self):
        with pytest.raises(ManifestError):
            LearnerManifest.from_dict(
                {
                    "name": "x",
                    "implementation": "x.X",
                    "learnerModelClass": "models.learner.WekaLearner",
                    "parameters": {"p": {"type": "$float", "toolkitName": "-P"}},
                }
            )

    def test_toolkit_style_must_be_known(self):
        with pytest.raises(ManifestError, match="toolkit style"):
            LearnerManifest.from_dict(
                {"name": "x", "implementation": "x.X", "learnerModelClass": "models.R"}
            )

    def test_explicit_toolkit(self):
        manifest = LearnerManifest.from_dict(
            {
                "name": "x",
                "implementation": "x.X",
                "learnerModelClass": "models.Custom",
                "toolkit": "sklearn",
            }
        )
        assert manifest.toolkit_style == "sklearn"

    def test_yaml_round_trip(self, learners_dir, tmp_path):
        manifest = LearnerManifest.from_file(learners_dir / "kmeans.jsonc")
        path = tmp_path / "kmeans.yml"
        manifest.to_yaml(path)
        assert LearnerManifest.from_yaml(path) == manifest


class TestLoadRelations:
    def test_bundled(self, relations_dir):
        registry, failures = load_relations(relations_dir)
        assert failures == []
        assert [rel.name for rel in registry.relations()] == ["iris", "jsonIris"]

    def test_failure_is_isolated(self, tmp_path, relations_dir, caplog):
        (tmp_path / "broken.jsonc").write_text(BROKEN_RELATION)
        (tmp_path / "extra.yaml").write_text(EXTRA_RELATION)

        with caplog.at_level("WARNING"):
            registry, failures = load_relations([relations_dir, tmp_path])

        assert "broken" not in registry
        assert "extra" in registry
        assert [f.path.name for f in failures] == ["broken.jsonc"]
        assert isinstance(failures[0].error, UnknownAttributeError)
        assert "broken.jsonc" in caplog.text

    def test_missing_directory_is_logged(self, tmp_path, caplog):
        with caplog.at_level("WARNING"):
            registry, failures = load_relations(tmp_path / "nope")
        assert len(registry) == 0
        assert failures == []
        assert "not found" in caplog.text

    def test_unparseable_file(self, tmp_path):
        (tmp_path / "bad.json").write_text("{ not json")
        _, failures = load_relations(tmp_path)
        assert isinstance(failures[0].error, ManifestError)


class TestLoadConfigured:
    def test_bundled_and_extra(self, tmp_path, learners_dir):
        (tmp_path / "extra.yaml").write_text(EXTRA_RELATION)
        config = RelataConfig(manifests=ManifestsConfig(relation_dirs=[str(tmp_path)]))

        registry, catalog, failures = load_configured(config)

        assert [rel.name for rel in registry.relations()] == ["iris", "jsonIris", "extra"]
        assert "j48" in catalog
        assert failures == []

    def test_without_bundled(self, tmp_path):
        config = RelataConfig(manifests=ManifestsConfig(include_bundled=False))
        registry, catalog, failures = load_configured(config)
        assert len(registry) == 0
        assert len(catalog) == 0

    def test_load_learners_into_existing_catalog(self, catalog, learners_dir):
        _, failures = load_learners(learners_dir, catalog)
        assert len(failures) == 4
        assert all("already in the catalog" in str(f.error) for f in failures)

    def test_directory_string_in_config_file(self, tmp_path, isolated_config):
        rel_dir = tmp_path / "rels"
        rel_dir.mkdir()
        (rel_dir / "extra.yaml").write_text(EXTRA_RELATION)
        isolated_config.write_text(json.dumps({"manifests": {"relation_dirs": str(rel_dir)}}))

        registry, _, failures = load_configured()

        assert "extra" in registry
        assert failures == []
