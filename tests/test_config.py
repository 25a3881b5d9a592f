"""Tests for layered configuration."""

import json
import logging
import os

import pytest

from relata import config as config_module
from relata.config import (
    CliConfig,
    RelataConfig,
    configure,
    get_config,
    parse_bool,
    parse_log_level,
    parse_mode,
    reset_config,
    split_dirs,
)


class TestDefaults:
    def test_defaults_without_file(self):
        config = RelataConfig.load()
        assert config.manifests.relation_dirs == []
        assert config.manifests.include_bundled is True
        assert config.cli.mode == "human"
        assert config.validation.strict is False
        assert config.log_level == logging.WARNING


class TestLayers:
    def test_file_values(self, isolated_config):
        isolated_config.write_text(
            json.dumps({"manifests": {"relation_dirs": ["/srv/rel"]}, "cli": {"mode": "agent"}})
        )
        config = RelataConfig.load()
        assert config.manifests.relation_dirs == ["/srv/rel"]
        assert config.cli.mode == "agent"

    def test_env_overrides_file(self, isolated_config, monkeypatch):
        isolated_config.write_text(json.dumps({"validation": {"strict": False}}))
        monkeypatch.setenv("RELATA_STRICT", "yes")
        monkeypatch.setenv("RELATA_RELATION_DIRS", os.pathsep.join(["/a", "/b"]))
        monkeypatch.setenv("RELATA_LOG_LEVEL", "debug")

        config = RelataConfig.load()
        assert config.validation.strict is True
        assert config.manifests.relation_dirs == ["/a", "/b"]
        assert config.log_level == logging.DEBUG

    def test_invalid_env_value_is_ignored(self, monkeypatch, caplog):
        monkeypatch.setenv("RELATA_CLI_MODE", "robot")
        with caplog.at_level("WARNING", logger="relata"):
            config = RelataConfig.load()
        assert config.cli.mode == "human"
        assert "RELATA_CLI_MODE" in caplog.text

    def test_unknown_file_key_is_ignored(self, isolated_config, caplog):
        isolated_config.write_text(json.dumps({"cli": {"colour": "blue"}}))
        with caplog.at_level("WARNING", logger="relata"):
            config = RelataConfig.load()
        assert config.cli == CliConfig()
        assert "cli.colour" in caplog.text

    def test_file_strings_use_field_parsers(self, isolated_config):
        isolated_config.write_text(
            json.dumps(
                {
                    "manifests": {"relation_dirs": "./rel", "include_bundled": "no"},
                    "cli": {"log_level": "info"},
                }
            )
        )
        config = RelataConfig.load()
        assert config.manifests.relation_dirs == ["./rel"]
        assert config.manifests.include_bundled is False
        assert config.cli.log_level == "INFO"

    def test_file_values_of_wrong_type_are_ignored(self, isolated_config, caplog):
        isolated_config.write_text(
            json.dumps(
                {
                    "manifests": {"relation_dirs": 5, "learner_dirs": ["a", 1]},
                    "cli": {"mode": "robot"},
                    "validation": {"strict": 1},
                }
            )
        )
        with caplog.at_level("WARNING", logger="relata"):
            config = RelataConfig.load()
        assert config == RelataConfig()
        for key in ("manifests.relation_dirs", "manifests.learner_dirs", "cli.mode", "validation.strict"):
            assert key in caplog.text

    def test_corrupt_file_is_ignored(self, isolated_config, caplog):
        isolated_config.write_text("{not json")
        with caplog.at_level("WARNING", logger="relata"):
            config = RelataConfig.load()
        assert config == RelataConfig()
        assert "Failed to load config" in caplog.text

    def test_save_and_reload(self, isolated_config):
        config = RelataConfig()
        config.manifests.learner_dirs = ["/srv/learners"]
        config.save()
        assert json.loads(isolated_config.read_text())["manifests"]["learner_dirs"] == [
            "/srv/learners"
        ]
        assert RelataConfig.load().manifests.learner_dirs == ["/srv/learners"]


class TestSingleton:
    def test_get_config_is_cached(self):
        assert get_config() is get_config()

    def test_configure_and_reset(self):
        custom = RelataConfig(cli=CliConfig(mode="agent"))
        configure(custom)
        assert get_config() is custom
        reset_config()
        assert get_config() is not custom

    def test_config_file_follows_patch(self, isolated_config):
        assert config_module.config_file() == isolated_config


class TestHelpers:
    @pytest.mark.parametrize("text,expected", [("true", True), ("ON", True), ("0", False), (" no ", False)])
    def test_parse_bool(self, text, expected):
        assert parse_bool(text) is expected

    def test_parse_bool_rejects(self):
        with pytest.raises(ValueError):
            parse_bool("maybe")

    def test_split_dirs_drops_empty(self):
        assert split_dirs(os.pathsep.join(["a", "", "b"])) == ["a", "b"]

    def test_parse_log_level_normalises_case(self):
        assert parse_log_level("info") == "INFO"
        with pytest.raises(ValueError, match="Invalid log level"):
            parse_log_level("loud")

    def test_parse_mode(self):
        assert parse_mode("agent") == "agent"
        with pytest.raises(ValueError, match="Invalid mode"):
            parse_mode("Agent")
