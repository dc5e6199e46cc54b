"""
Configuration module for exportguard
"""
import json
import logging
from dataclasses import dataclass, field, fields, replace
from datetime import timedelta
from pathlib import Path
from typing import Any, Dict, FrozenSet, Tuple, Union

from .utils import substitute_env_vars

logger = logging.getLogger(__name__)


class ConfigurationError(Exception):
    """Base exception for configuration errors"""
    pass


class ThresholdConfigError(ConfigurationError):
    """Exception for invalid threshold or monitor settings"""
    pass


@dataclass(frozen=True)
class ThresholdConfig:
    """Risk policy constants. Swapped as a whole on reload, never mutated."""
    max_exports_per_hour: int = 3
    max_exports_per_day: int = 5
    max_exports_per_week: int = 10
    max_records_per_hour: int = 100
    max_records_per_day: int = 250
    rapid_export_threshold: int = 2
    different_formats_threshold: int = 2
    warning_threshold: float = 0.7
    block_threshold: float = 0.8
    lock_threshold: float = 1.0

    def __post_init__(self):
        caps = [f.name for f in fields(self) if f.name.startswith(("max_", "rapid_", "different_"))]
        if non_positive := [name for name in caps if getattr(self, name) <= 0]:
            raise ThresholdConfigError(f"Thresholds must be positive: {', '.join(non_positive)}")

        for name in ("warning_threshold", "block_threshold", "lock_threshold"):
            if not 0.0 <= getattr(self, name) <= 1.0:
                raise ThresholdConfigError(f"{name} must be between 0 and 1")

        if not self.warning_threshold <= self.block_threshold <= self.lock_threshold:
            raise ThresholdConfigError(
                "Score thresholds must satisfy warning_threshold <= block_threshold <= lock_threshold"
            )


@dataclass(frozen=True)
class MonitorSettings:
    """Operational knobs of the export monitor"""
    history_window: timedelta = timedelta(days=7)
    history_limit: int = 100
    lock_duration: timedelta = timedelta(hours=24)
    burst_window: timedelta = timedelta(seconds=60)
    off_hours_start: int = 6
    off_hours_end: int = 22
    off_hours_min_history: int = 2
    admin_notify_concurrency: int = 5
    serialize_per_user: bool = False
    notify_in_background: bool = False
    disabled_evaluators: FrozenSet[str] = frozenset()

    def __post_init__(self):
        if self.history_limit <= 0:
            raise ThresholdConfigError("history_limit must be positive")
        if self.admin_notify_concurrency <= 0:
            raise ThresholdConfigError("admin_notify_concurrency must be positive")
        if not 0 <= self.off_hours_start <= 23 or not 0 <= self.off_hours_end <= 23:
            raise ThresholdConfigError("off_hours_start and off_hours_end must be hours of the day")
        for name in ("history_window", "lock_duration", "burst_window"):
            if getattr(self, name) <= timedelta(0):
                raise ThresholdConfigError(f"{name} must be positive")


@dataclass(frozen=True)
class MonitorConfig:
    """Complete configuration for an ExportMonitor"""
    thresholds: ThresholdConfig = field(default_factory=ThresholdConfig)
    settings: MonitorSettings = field(default_factory=MonitorSettings)


# Settings given in seconds in the JSON file
_DURATION_FIELDS = {"history_window", "lock_duration", "burst_window"}


def _coerce(name: str, value: Any, default: Any) -> Any:
    """Coerce a raw JSON value to the type of the field's default"""
    if isinstance(value, str):
        value = substitute_env_vars(value)

    try:
        if name in _DURATION_FIELDS:
            return timedelta(seconds=float(value))
        if isinstance(default, frozenset):
            if isinstance(value, str):
                value = [item.strip() for item in value.split(",") if item.strip()]
            if not isinstance(value, (list, tuple)):
                raise TypeError("expected a list")
            return frozenset(value)
        if isinstance(default, bool):
            if isinstance(value, str):
                if value.lower() not in ("true", "false", "1", "0", "yes", "no"):
                    raise ValueError(f"not a boolean: {value!r}")
                return value.lower() in ("true", "1", "yes")
            if not isinstance(value, bool):
                raise TypeError("expected a boolean")
            return value
        if isinstance(default, int):
            if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
                raise TypeError("expected an integer")
            return int(value)
        if isinstance(default, float):
            if isinstance(value, bool):
                raise TypeError("expected a number")
            return float(value)
    except (TypeError, ValueError) as e:
        raise ThresholdConfigError(f"Invalid value for '{name}': {e}") from e

    return value


def _build(cls, data: Dict[str, Any], section: str):
    """Build a frozen config dataclass from a JSON section"""
    if not isinstance(data, dict):
        raise ThresholdConfigError(f"'{section}' must be an object")

    defaults = cls()
    known = {f.name for f in fields(cls)}

    if unknown := sorted(set(data) - known):
        raise ThresholdConfigError(f"Unknown {section} settings: {', '.join(unknown)}")

    overrides = {
        name: _coerce(name, value, getattr(defaults, name))
        for name, value in data.items()
    }
    return replace(defaults, **overrides)


def config_from_dict(data: Dict[str, Any]) -> MonitorConfig:
    """Create a MonitorConfig from a parsed configuration document"""
    return MonitorConfig(
        thresholds=_build(ThresholdConfig, data.get("thresholds", {}), "thresholds"),
        settings=_build(MonitorSettings, data.get("monitor", {}), "monitor")
    )


class ConfigurationManager:
    """Loads and hot-reloads the monitor configuration from a JSON file"""

    def __init__(self, config_file: Union[str, Path]):
        self.config_file = Path(config_file)
        self.config: MonitorConfig = MonitorConfig()
        self.raw: Dict[str, Any] = {}

    def load(self) -> MonitorConfig:
        """Load configuration from JSON file"""
        if not self.config_file.exists():
            error_msg = f"Configuration file not found: {self.config_file}"
            logger.error(error_msg)
            raise FileNotFoundError(error_msg)

        try:
            with self.config_file.open('r') as f:
                config_data = json.load(f)
        except json.JSONDecodeError as e:
            logger.error(f"Invalid JSON in configuration file: {e}")
            raise ConfigurationError(f"Invalid JSON: {e}") from e

        if not isinstance(config_data, dict):
            raise ConfigurationError("Configuration root must be an object")

        try:
            config = config_from_dict(config_data)
        except ThresholdConfigError as e:
            logger.error(f"Configuration error: {e}")
            raise

        self.raw = config_data
        self.config = config
        logger.info(f"Loaded export monitor configuration from {self.config_file}")

        return config

    def reload(self) -> Tuple[MonitorConfig, bool]:
        """Re-read the configuration file.

        Returns:
            Tuple of (config, changed). On failure the previous configuration
            is kept and the error propagates.
        """
        previous = self.config
        config = self.load()
        changed = config != previous
        if changed:
            logger.info("Export monitor configuration changed on reload")
        return config, changed
