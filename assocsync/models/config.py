"""Configuration for the association store."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .entities import AppSettings

DEFAULT_CONFIG_FILENAME = "assocsync.yaml"


@dataclass
class DefaultsConfig:
    """Settings shown before the remote settings row has been loaded."""

    association_name: str = "A.E.U.C.A.B.DK"
    currency: str = "FCFA"
    logo_url: str = ""

    def to_settings(self) -> AppSettings:
        return AppSettings(
            association_name=self.association_name,
            currency=self.currency,
            logo_url=self.logo_url,
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DefaultsConfig":
        """Create from dictionary."""
        return cls(
            association_name=data.get("association_name", "A.E.U.C.A.B.DK"),
            currency=data.get("currency", "FCFA"),
            logo_url=data.get("logo_url", ""),
        )


@dataclass
class RealtimeConfig:
    """Change stream subscription settings."""

    enabled: bool = True
    schema: str = "public"
    heartbeat_interval: float = 30.0  # seconds
    reconnect_delay: float = 5.0  # seconds

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RealtimeConfig":
        """Create from dictionary."""
        return cls(
            enabled=data.get("enabled", True),
            schema=data.get("schema", "public"),
            heartbeat_interval=float(data.get("heartbeat_interval", 30.0)),
            reconnect_delay=float(data.get("reconnect_delay", 5.0)),
        )


@dataclass
class StoreConfig:
    """Main configuration.

    Secrets (endpoint URL and API key) are not stored here; they are read from
    the environment by ``StoreAuth``.
    """

    defaults: DefaultsConfig = field(default_factory=DefaultsConfig)
    realtime: RealtimeConfig = field(default_factory=RealtimeConfig)
    request_timeout: float = 30.0
    log_level: str = "INFO"
    # Primary key of the singleton settings row
    settings_row_id: int = 1

    @classmethod
    def load(cls, config_path: Path) -> "StoreConfig":
        """Load configuration from YAML file.

        A missing or empty file yields the defaults.
        """
        config_path = Path(config_path)
        if not config_path.exists():
            return cls()

        with open(config_path) as f:
            data = yaml.safe_load(f) or {}

        return cls(
            defaults=DefaultsConfig.from_dict(data.get("defaults") or {}),
            realtime=RealtimeConfig.from_dict(data.get("realtime") or {}),
            request_timeout=float(data.get("request_timeout", 30.0)),
            log_level=data.get("log_level", "INFO"),
            settings_row_id=int(data.get("settings_row_id", 1)),
        )

    def save(self, config_path: Path) -> None:
        """Save configuration to YAML file."""
        data: dict[str, Any] = {
            "defaults": {
                "association_name": self.defaults.association_name,
                "currency": self.defaults.currency,
                "logo_url": self.defaults.logo_url,
            },
            "realtime": {
                "enabled": self.realtime.enabled,
                "schema": self.realtime.schema,
                "heartbeat_interval": self.realtime.heartbeat_interval,
                "reconnect_delay": self.realtime.reconnect_delay,
            },
            "request_timeout": self.request_timeout,
            "log_level": self.log_level,
            "settings_row_id": self.settings_row_id,
        }

        with open(config_path, "w") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False, allow_unicode=True)
