"""Process configuration loaded from environment variables and .env."""

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

from rtcsig.core.constants import SignalingConstants


class SystemConfig(BaseSettings):
    """Logging configuration (RTCSIG_LOG_LEVEL, RTCSIG_LOG_FORMAT)."""

    model_config = SettingsConfigDict(env_prefix="RTCSIG_", env_file=".env", extra="ignore")

    log_level: str = "INFO"
    log_format: str = "console"  # "console" or "json"


class SignalingConfig(BaseSettings):
    """Signaling defaults (SIGNALING_KEEPALIVE_INTERVAL, SIGNALING_OPTIONS_FILE)."""

    model_config = SettingsConfigDict(env_prefix="SIGNALING_", env_file=".env", extra="ignore")

    keepalive_interval: float = SignalingConstants.KEEPALIVE_INTERVAL_S
    options_file: Optional[str] = None


class Config:
    """Aggregate configuration."""

    def __init__(self) -> None:
        self.system = SystemConfig()
        self.signaling = SignalingConfig()


config = Config()
