"""Shared fixtures: bundled iris relations, learner catalog, isolated config."""

import pytest

from relata import config as config_module
from relata.attributes import AttributeRegistry, AttributeResolver
from relata.core.models import RelationManifest
from relata.learners import LearnerCatalog
from relata.manifests import bundled_manifest_dir


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Point the config file at tmp_path and drop RELATA_* env vars."""
    monkeypatch.setattr(config_module, "CONFIG_FILE", tmp_path / "config.json")
    for name in config_module.ENV_OVERRIDES:
        monkeypatch.delenv(name, raising=False)
    config_module.reset_config()
    yield tmp_path / "config.json"
    config_module.reset_config()


@pytest.fixture
def relations_dir():
    return bundled_manifest_dir("relations")


@pytest.fixture
def learners_dir():
    return bundled_manifest_dir("learners")


@pytest.fixture
def iris_manifest(relations_dir):
    return RelationManifest.from_file(relations_dir / "iris.jsonc")


@pytest.fixture
def json_iris_manifest(relations_dir):
    return RelationManifest.from_file(relations_dir / "jsonIris.jsonc")


@pytest.fixture
def registry(iris_manifest, json_iris_manifest):
    """Unsealed registry holding iris and jsonIris."""
    registry = AttributeRegistry()
    registry.register_manifest(iris_manifest)
    registry.register_manifest(json_iris_manifest)
    return registry


@pytest.fixture
def resolver(registry):
    return AttributeResolver(registry)


@pytest.fixture
def catalog(learners_dir):
    catalog = LearnerCatalog()
    failures = catalog.load_directory(learners_dir)
    assert failures == []
    return catalog
