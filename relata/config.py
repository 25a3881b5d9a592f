"""Configuration management for relata.

Three config sections:
- manifests: where relation and learner manifests are loaded from
- cli: output mode and log level for the command line
- validation: how strictly manifest warnings are treated

Layers, lowest priority first:
1. dataclass defaults
2. ~/.config/relata/config.json, written by `relata config set`
3. RELATA_* environment variables (see ENV_OVERRIDES)
4. a RelataConfig installed in code with configure()

Directory lists in environment variables are separated by os.pathsep.
"""

import json
import logging
import os
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Any, Callable


logger = logging.getLogger(__name__)


# =============================================================================
# Config file location
# =============================================================================

CONFIG_DIR = Path.home() / ".config" / "relata"
CONFIG_FILE = CONFIG_DIR / "config.json"

CLI_MODES = ("human", "agent")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

_TRUE_WORDS = frozenset({"1", "true", "yes", "on"})
_FALSE_WORDS = frozenset({"0", "false", "no", "off"})


def config_file() -> Path:
    """Current config file path."""
    return CONFIG_FILE


def parse_bool(value: str) -> bool:
    """Parse a config boolean ("true"/"false", "1"/"0", "yes"/"no", "on"/"off").

    Raises:
        ValueError: If the text is not a recognised boolean
    """
    word = value.strip().lower()
    if word in _TRUE_WORDS:
        return True
    if word in _FALSE_WORDS:
        return False
    raise ValueError(f"Invalid boolean value: {value!r}")


def split_dirs(value: str) -> list[str]:
    """Split an os.pathsep-separated directory list, dropping empty entries."""
    return [part for part in value.split(os.pathsep) if part.strip()]


def parse_mode(value: str) -> str:
    if value not in CLI_MODES:
        raise ValueError(f"Invalid mode {value!r}; expected one of {', '.join(CLI_MODES)}")
    return value


def parse_log_level(value: str) -> str:
    level = value.upper()
    if level not in LOG_LEVELS:
        raise ValueError(f"Invalid log level {value!r}; expected one of {', '.join(LOG_LEVELS)}")
    return level


# variable -> (section, field, parser)
ENV_OVERRIDES: dict[str, tuple[str, str, Callable[[str], Any]]] = {
    "RELATA_RELATION_DIRS": ("manifests", "relation_dirs", split_dirs),
    "RELATA_LEARNER_DIRS": ("manifests", "learner_dirs", split_dirs),
    "RELATA_INCLUDE_BUNDLED": ("manifests", "include_bundled", parse_bool),
    "RELATA_CLI_MODE": ("cli", "mode", parse_mode),
    "RELATA_LOG_LEVEL": ("cli", "log_level", parse_log_level),
    "RELATA_STRICT": ("validation", "strict", parse_bool),
}


# =============================================================================
# Config dataclasses
# =============================================================================


@dataclass
class ManifestsConfig:
    """Manifest locations.

    Bundled manifests (iris, jsonIris, j48, kmeans, naive_bayes, svc) load
    first when include_bundled is set; configured directories follow in
    order.
    """

    relation_dirs: list[str] = field(default_factory=list)
    learner_dirs: list[str] = field(default_factory=list)
    include_bundled: bool = True


@dataclass
class CliConfig:
    """Command line behaviour.

    - mode: "human" for rich output, "agent" for JSON output and exit codes
    - log_level: root log level when neither --verbose nor --debug is given
    """

    mode: str = "human"
    log_level: str = "WARNING"


@dataclass
class ValidationConfig:
    """Manifest validation settings."""

    strict: bool = False  # treat warnings as errors


# =============================================================================
# Main config class
# =============================================================================


@dataclass
class RelataConfig:
    """Top-level relata configuration.

    Examples:
        # Package use, no files needed
        config = RelataConfig(
            manifests=ManifestsConfig(relation_dirs=["./relations"], include_bundled=False),
        )

        # CLI use, loads from ~/.config/relata/config.json
        config = RelataConfig.load()
    """

    manifests: ManifestsConfig = field(default_factory=ManifestsConfig)
    cli: CliConfig = field(default_factory=CliConfig)
    validation: ValidationConfig = field(default_factory=ValidationConfig)

    @classmethod
    def load(cls) -> "RelataConfig":
        """Build the config from defaults, then the config file, then RELATA_* variables."""
        config = cls()

        if CONFIG_FILE.exists():
            try:
                data = json.loads(CONFIG_FILE.read_text())
            except (json.JSONDecodeError, OSError) as exc:
                logger.warning("Failed to load config from %s: %s", CONFIG_FILE, exc)
            else:
                if isinstance(data, dict):
                    _apply_dict(config, data)
                else:
                    logger.warning("Ignoring config file %s: not a JSON object", CONFIG_FILE)

        for var, (section, name, parse) in ENV_OVERRIDES.items():
            raw = os.environ.get(var)
            if not raw:
                continue
            try:
                setattr(getattr(config, section), name, parse(raw))
            except ValueError:
                logger.warning("Invalid %s=%r, ignoring", var, raw)

        return config

    def save(self) -> None:
        """Write the config as JSON to CONFIG_FILE, creating its directory."""
        CONFIG_FILE.parent.mkdir(parents=True, exist_ok=True)
        CONFIG_FILE.write_text(json.dumps(self.to_dict(), indent=2))

    def to_dict(self) -> dict[str, Any]:
        return {
            "manifests": asdict(self.manifests),
            "cli": asdict(self.cli),
            "validation": asdict(self.validation),
        }

    @property
    def log_level(self) -> int:
        return getattr(logging, self.cli.log_level, logging.WARNING)


# =============================================================================
# Config dict application
# =============================================================================


_FIELD_PARSERS = {(section, name): parse for section, name, parse in ENV_OVERRIDES.values()}


def _file_value(section: str, name: str, current: Any, value: Any) -> Any:
    """Check a config-file value against the field it sets.

    Strings go through the same parser as the matching RELATA_* variable.

    Raises:
        ValueError: If the value does not fit the field
    """
    if isinstance(value, str):
        return _FIELD_PARSERS[(section, name)](value)
    if isinstance(current, bool) and isinstance(value, bool):
        return value
    if isinstance(current, list) and isinstance(value, list) and all(isinstance(v, str) for v in value):
        return list(value)
    raise ValueError(f"expected {type(current).__name__}, got {type(value).__name__}")


def _apply_dict(config: RelataConfig, data: dict) -> None:
    sections = {
        "manifests": config.manifests,
        "cli": config.cli,
        "validation": config.validation,
    }
    for name, target in sections.items():
        values = data.get(name)
        if not isinstance(values, dict):
            continue
        for k, v in values.items():
            if (name, k) not in _FIELD_PARSERS:
                logger.warning("Unknown config key %s.%s, ignoring", name, k)
                continue
            try:
                setattr(target, k, _file_value(name, k, getattr(target, k), v))
            except ValueError as exc:
                logger.warning("Invalid config value %s.%s=%r (%s), ignoring", name, k, v, exc)


# =============================================================================
# Global config singleton
# =============================================================================

_config: RelataConfig | None = None


def get_config() -> RelataConfig:
    """Process-wide config, loaded lazily on first use."""
    global _config
    if _config is None:
        _config = RelataConfig.load()
    return _config


def configure(config: RelataConfig) -> None:
    """Set the global RelataConfig programmatically.

    Use this when relata is used as a package:
        from relata.config import configure, RelataConfig, ManifestsConfig
        configure(RelataConfig(manifests=ManifestsConfig(relation_dirs=["./relations"])))
    """
    global _config
    _config = config


def reset_config() -> None:
    """Drop the cached config so the next get_config() reloads it."""
    global _config
    _config = None
