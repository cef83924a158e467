"""
Configuration module for vcscan.

Supports loading from YAML/JSON files with environment variable overrides.
Default values are loaded from defaults.yaml for maintainability.
"""

import json
import logging
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml

from vcscan.core.errors import ConfigError

logger = logging.getLogger(__name__)

# Path to the default configuration file
_DEFAULTS_CONFIG_PATH = Path(__file__).parent / "defaults.yaml"

# Cache for default values
_defaults_cache: dict[str, Any] | None = None

SCAN_STRATEGIES = ("pool", "tree")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

# (section, key, accepted types, nullable); bool is never accepted as a number
_FIELD_TYPES: tuple[tuple[str, str, tuple[type, ...], bool], ...] = (
    ("scan", "max_workers", (int,), True),
    ("scan", "status_workers", (int,), True),
    ("scan", "handoff_capacity", (int,), False),
    ("scan", "follow_symlinks", (bool,), False),
    ("scan", "strategy", (str,), False),
    ("scan", "status_timeout", (int, float), True),
    ("output", "count", (bool,), False),
    ("logging", "level", (str,), False),
    ("logging", "format", (str,), False),
)


def _load_defaults() -> dict[str, Any]:
    """Load default configuration values from defaults.yaml."""
    global _defaults_cache

    if _defaults_cache is not None:
        return _defaults_cache

    if not _DEFAULTS_CONFIG_PATH.exists():
        logger.warning(f"Defaults config not found: {_DEFAULTS_CONFIG_PATH}")
        _defaults_cache = {}
        return _defaults_cache

    try:
        content = _DEFAULTS_CONFIG_PATH.read_text(encoding="utf-8")
        _defaults_cache = yaml.safe_load(content) or {}
    except yaml.YAMLError as e:
        logger.error(f"Failed to parse defaults config: {e}")
        _defaults_cache = {}

    return _defaults_cache


def _get_default(section: str, key: str, fallback: Any = None) -> Any:
    """Get a default value from the defaults config."""
    defaults = _load_defaults()
    section_defaults = defaults.get(section, {})
    return section_defaults.get(key, fallback)


def default_worker_count() -> int:
    """Available parallelism minus one, never less than one."""
    return max(1, (os.cpu_count() or 1) - 1)


@dataclass
class ScanConfig:
    """Configuration for the traversal and the status stage."""

    max_workers: Optional[int] = field(
        default_factory=lambda: _get_default("scan", "max_workers", None)
    )
    status_workers: Optional[int] = field(
        default_factory=lambda: _get_default("scan", "status_workers", None)
    )
    handoff_capacity: int = field(
        default_factory=lambda: _get_default("scan", "handoff_capacity", 8)
    )
    follow_symlinks: bool = field(
        default_factory=lambda: _get_default("scan", "follow_symlinks", False)
    )
    strategy: str = field(default_factory=lambda: _get_default("scan", "strategy", "pool"))
    status_timeout: Optional[float] = field(
        default_factory=lambda: _get_default("scan", "status_timeout", None)
    )

    def resolved_max_workers(self) -> int:
        return self.max_workers if self.max_workers is not None else default_worker_count()

    def resolved_status_workers(self) -> int:
        if self.status_workers is not None:
            return self.status_workers
        return self.resolved_max_workers()


@dataclass
class OutputConfig:
    """Configuration for result reporting."""

    count: bool = field(default_factory=lambda: _get_default("output", "count", False))


@dataclass
class LoggingConfig:
    """Configuration for logging."""

    level: str = field(default_factory=lambda: _get_default("logging", "level", "WARNING"))
    format: str = field(
        default_factory=lambda: _get_default(
            "logging",
            "format",
            "%(asctime)s - %(name)s - %(levelname)s - %(worker_tag)s%(message)s",
        )
    )


@dataclass
class VcscanConfig:
    """Main configuration class for vcscan."""

    scan: ScanConfig = field(default_factory=ScanConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_file(cls, path: Path | str) -> "VcscanConfig":
        """
        Load configuration from a YAML or JSON file.

        Args:
            path: Path to the configuration file (.yaml, .yml, or .json)

        Returns:
            VcscanConfig instance with loaded values

        Raises:
            ConfigError: If the file is missing, unparsable or has an
                unsupported format
        """
        path = Path(path)
        if not path.exists():
            raise ConfigError(f"Configuration file not found: {path}")

        content = path.read_text(encoding="utf-8")

        try:
            if path.suffix in (".yaml", ".yml"):
                data = yaml.safe_load(content) or {}
            elif path.suffix == ".json":
                data = json.loads(content) if content.strip() else {}
            else:
                raise ConfigError(f"Unsupported config file format: {path.suffix}")
        except (yaml.YAMLError, json.JSONDecodeError) as e:
            raise ConfigError(f"Failed to parse config file {path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError(f"Config file {path} must contain a mapping")

        return cls._from_dict(data)

    @classmethod
    def _from_dict(cls, data: dict) -> "VcscanConfig":
        """Create VcscanConfig from a dictionary."""
        config = cls()

        try:
            if "scan" in data:
                config.scan = ScanConfig(**data["scan"])
            if "output" in data:
                config.output = OutputConfig(**data["output"])
            if "logging" in data:
                config.logging = LoggingConfig(**data["logging"])
        except TypeError as e:
            raise ConfigError(f"Invalid configuration: {e}") from e

        return config.validate()

    def apply_env_overrides(self) -> "VcscanConfig":
        """
        Apply environment variable overrides to the configuration.

        Environment variables follow the pattern: VCSCAN_<SECTION>_<KEY>
        Examples:
            - VCSCAN_SCAN_MAX_WORKERS
            - VCSCAN_SCAN_FOLLOW_SYMLINKS
            - VCSCAN_OUTPUT_COUNT
            - VCSCAN_LOGGING_LEVEL

        Returns:
            Self with environment overrides applied
        """
        env_mappings = {
            # Scan config
            "VCSCAN_SCAN_MAX_WORKERS": ("scan", "max_workers", int),
            "VCSCAN_SCAN_STATUS_WORKERS": ("scan", "status_workers", int),
            "VCSCAN_SCAN_HANDOFF_CAPACITY": ("scan", "handoff_capacity", int),
            "VCSCAN_SCAN_FOLLOW_SYMLINKS": ("scan", "follow_symlinks", _parse_bool),
            "VCSCAN_SCAN_STRATEGY": ("scan", "strategy", str),
            "VCSCAN_SCAN_STATUS_TIMEOUT": ("scan", "status_timeout", float),
            # Output config
            "VCSCAN_OUTPUT_COUNT": ("output", "count", _parse_bool),
            # Logging config
            "VCSCAN_LOGGING_LEVEL": ("logging", "level", str),
        }

        for env_var, (section, key, converter) in env_mappings.items():
            value = os.environ.get(env_var)
            if value is not None:
                section_obj = getattr(self, section)
                try:
                    setattr(section_obj, key, converter(value))
                except ValueError as e:
                    raise ConfigError(f"Invalid value for {env_var}: {value!r}") from e

        return self.validate()

    def validate(self) -> "VcscanConfig":
        """
        Check value types, ranges and enumerations.

        Returns:
            Self, for chaining

        Raises:
            ConfigError: If any value has the wrong type or is out of range
        """
        self._check_types()

        scan = self.scan
        for name in ("max_workers", "status_workers"):
            value = getattr(scan, name)
            if value is not None and value < 1:
                raise ConfigError(f"scan.{name} must be at least 1, got {value}")
        if scan.handoff_capacity < 1:
            raise ConfigError(
                f"scan.handoff_capacity must be at least 1, got {scan.handoff_capacity}"
            )
        if scan.strategy not in SCAN_STRATEGIES:
            raise ConfigError(
                f"scan.strategy must be one of {', '.join(SCAN_STRATEGIES)}, got {scan.strategy!r}"
            )
        if scan.status_timeout is not None and scan.status_timeout <= 0:
            raise ConfigError(f"scan.status_timeout must be positive, got {scan.status_timeout}")

        self.logging.level = self.logging.level.upper()
        if self.logging.level not in LOG_LEVELS:
            raise ConfigError(f"logging.level must be one of {', '.join(LOG_LEVELS)}")

        return self

    def _check_types(self) -> None:
        for section, key, types, nullable in _FIELD_TYPES:
            value = getattr(getattr(self, section), key)
            if value is None and nullable:
                continue
            if (isinstance(value, bool) and bool not in types) or not isinstance(value, types):
                expected = " or ".join(t.__name__ for t in types)
                raise ConfigError(f"{section}.{key} must be {expected}, got {value!r}")

    def to_dict(self) -> dict:
        """Convert configuration to a dictionary."""
        return asdict(self)

    def to_yaml(self) -> str:
        """Serialize configuration to YAML string."""
        return yaml.dump(self.to_dict(), default_flow_style=False, sort_keys=False)

    def to_json(self) -> str:
        """Serialize configuration to JSON string."""
        return json.dumps(self.to_dict(), indent=2)

    def save(self, path: Path | str) -> None:
        """
        Save configuration to a file.

        Args:
            path: Path to save the configuration (.yaml, .yml, or .json)

        Raises:
            ConfigError: If the file format is unsupported
        """
        path = Path(path)

        if path.suffix in (".yaml", ".yml"):
            content = self.to_yaml()
        elif path.suffix == ".json":
            content = self.to_json()
        else:
            raise ConfigError(f"Unsupported config file format: {path.suffix}")

        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")


def _parse_bool(value: str) -> bool:
    """Parse a string to boolean."""
    return value.lower() in ("true", "1", "yes", "on")


def load_config(config_path: Optional[Path | str] = None, apply_env: bool = True) -> VcscanConfig:
    """
    Load configuration with optional environment variable overrides.

    Args:
        config_path: Optional path to config file. If None, uses defaults.
        apply_env: Whether to apply environment variable overrides.

    Returns:
        VcscanConfig instance
    """
    if config_path:
        config = VcscanConfig.from_file(config_path)
    else:
        config = VcscanConfig()

    if apply_env:
        config.apply_env_overrides()

    return config
