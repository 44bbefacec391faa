"""Pydantic settings loaded from YAML configuration."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, SecretStr

_settings: Settings | None = None

_DEFAULT_CONFIG_PATH = Path("config/settings.yaml")


class SignalKConfig(BaseModel):
    """Signal K server connection shared by the alarm, resource and position clients."""

    base_url: str = "http://localhost:3000/signalk"
    timeout_secs: float = 10.0
    token: SecretStr = SecretStr("")

    @property
    def v1_api_url(self) -> str:
        return f"{self.base_url.rstrip('/')}/v1/api"

    @property
    def v2_api_url(self) -> str:
        return f"{self.base_url.rstrip('/')}/v2/api"

    def auth_headers(self) -> dict[str, str]:
        token = self.token.get_secret_value()
        return {"Authorization": f"Bearer {token}"} if token else {}


class NotificationsConfig(BaseModel):
    """Global notification switches (mirrors the chart plotter settings)."""

    sound: bool = True
    system: bool = False


class AudioConfig(BaseModel):
    """Audio alert configuration."""

    debounce_secs: float = 3.0
    asset_dir: str = "assets/sounds"
    primary_format: str = "ogg"
    fallback_format: str = "mp3"
    player_command: list[str] = ["paplay"]
    tone_command: list[str] = ["play", "-q", "-n", "synth"]
    tone_duration_secs: float = 1.5


class RegionsConfig(BaseModel):
    """Region resource configuration."""

    resource_paths: list[str] = ["regions", "zones_alert"]
    refresh_interval_secs: float = 60.0


class PositionConfig(BaseModel):
    """Vessel position feed configuration."""

    enabled: bool = True
    poll_interval_ms: int = 1000
    path: str = "vessels/self/navigation/position"


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    format: str = "json"


class Settings(BaseModel):
    """Root settings container."""

    signalk: SignalKConfig = SignalKConfig()
    notifications: NotificationsConfig = NotificationsConfig()
    audio: AudioConfig = AudioConfig()
    regions: RegionsConfig = RegionsConfig()
    position: PositionConfig = PositionConfig()
    logging: LoggingConfig = LoggingConfig()


def load_settings(path: str | Path | None = None) -> Settings:
    """Load settings from a YAML file and cache globally.

    Args:
        path: Path to YAML config. Defaults to config/settings.yaml.

    Returns:
        Parsed Settings instance.
    """
    global _settings  # noqa: PLW0603

    config_path = Path(path) if path else _DEFAULT_CONFIG_PATH

    data: dict[str, Any] = {}
    if config_path.exists():
        with open(config_path) as f:
            raw = yaml.safe_load(f)
            if isinstance(raw, dict):
                data = raw

    _settings = Settings(**data)
    return _settings


def get_settings() -> Settings:
    """Return the cached settings, loading defaults if not yet loaded."""
    global _settings  # noqa: PLW0603
    if _settings is None:
        _settings = load_settings()
    return _settings


def reset_settings() -> None:
    """Reset the cached settings (useful for testing)."""
    global _settings  # noqa: PLW0603
    _settings = None
