"""
Configuration management for EchoPing.
"""

import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Optional

import toml

from .errors import ConfigError

DEFAULT_TIMEOUT = 3.0
DEFAULT_INTERVAL = 1.5
DEFAULT_PAYLOAD = "Hi-Pinging"
MAX_PAYLOAD_SIZE = 65500


@dataclass
class ProbeConfig:
    """Probe timing and payload settings."""
    timeout: float = DEFAULT_TIMEOUT
    interval: float = DEFAULT_INTERVAL
    payload: str = DEFAULT_PAYLOAD
    count: Optional[int] = None


@dataclass
class LoggingConfig:
    """Logging configuration settings."""
    level: str = "INFO"
    file: str = ""
    max_size: int = 10
    backup_count: int = 5


@dataclass
class MonitoringConfig:
    """Monitoring configuration settings."""
    webhook_enabled: bool = False
    webhook_url: str = ""


@dataclass
class Config:
    """Main configuration class."""
    probe: ProbeConfig = field(default_factory=ProbeConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    monitoring: MonitoringConfig = field(default_factory=MonitoringConfig)

    @classmethod
    def default(cls) -> 'Config':
        """Configuration used when no file is given."""
        return cls()

    @classmethod
    def from_file(cls, config_path: Path) -> 'Config':
        """Load configuration from TOML file.

        Sections and keys that are absent keep their defaults.
        """
        try:
            config_data = toml.load(config_path)
        except (OSError, toml.TomlDecodeError) as e:
            raise ConfigError(f"Failed to load configuration: {e}")

        try:
            probe = ProbeConfig(**config_data.get('probe', {}))
            logging_config = LoggingConfig(**config_data.get('logging', {}))
            monitoring = MonitoringConfig(**config_data.get('monitoring', {}))
        except TypeError as e:
            raise ConfigError(f"Unknown configuration key: {e}")

        return cls(probe=probe, logging=logging_config, monitoring=monitoring)

    def with_overrides(self, **probe_overrides) -> 'Config':
        """Return a copy whose probe settings are overridden by non-None values."""
        values = {k: v for k, v in probe_overrides.items() if v is not None}
        return replace(self, probe=replace(self.probe, **values))

    def validate(self) -> bool:
        """Validate configuration values."""
        probe = self.probe

        if not isinstance(probe.timeout, (int, float)) or probe.timeout <= 0:
            raise ConfigError("Probe timeout must be a positive number of seconds")

        if not isinstance(probe.interval, (int, float)) or probe.interval < 0:
            raise ConfigError("Probe interval must not be negative")

        if probe.count is not None:
            if not isinstance(probe.count, int) or isinstance(probe.count, bool) or probe.count < 1:
                raise ConfigError("Probe count must be a positive integer")

        if not isinstance(probe.payload, str):
            raise ConfigError("Probe payload must be a string")

        if len(probe.payload.encode('utf-8')) > MAX_PAYLOAD_SIZE:
            raise ConfigError(f"Probe payload must not exceed {MAX_PAYLOAD_SIZE} bytes")

        if not isinstance(logging.getLevelName(str(self.logging.level).upper()), int):
            raise ConfigError(f"Unknown log level: {self.logging.level}")

        if self.monitoring.webhook_enabled and not self.monitoring.webhook_url:
            raise ConfigError("webhook_url is required when webhook_enabled is set")

        return True
