"""
Core Configuration Module
=========================

Centralized configuration management using Pydantic Settings.
Values are read from the environment (or a local ``.env`` file) and act as
defaults: every client, transport and decoder accepts explicit arguments
that take precedence over these settings.

Environment Variables:
- INFLUXDB_HOST: InfluxDB host name (default: localhost)
- INFLUXDB_PORT: InfluxDB HTTP port (default: 8086)
- INFLUXDB_USERNAME / INFLUXDB_PASSWORD: optional basic auth
- INFLUXDB_TIMEOUT: request timeout in seconds (0 disables it)
- RESULT_STREAM_THRESHOLD_BYTES: response size above which results are
  decoded incrementally instead of loaded in one go
"""

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Library settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # =================================================================
    # APPLICATION SETTINGS
    # =================================================================
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # =================================================================
    # INFLUXDB SETTINGS
    # =================================================================
    INFLUXDB_HOST: str = "localhost"
    INFLUXDB_PORT: int = 8086
    INFLUXDB_USERNAME: str = ""
    INFLUXDB_PASSWORD: str = ""

    # Connection settings (seconds, 0 = no timeout)
    INFLUXDB_TIMEOUT: float = 0
    INFLUXDB_CONNECT_TIMEOUT: float = 0

    # Default UDP port used by udp+influxdb DSNs without an explicit port
    INFLUXDB_UDP_PORT: int = 4444

    # =================================================================
    # WIRE FORMAT SETTINGS
    # =================================================================
    WRITE_PRECISION: str = "ns"
    RESULT_STREAM_THRESHOLD_BYTES: int = 1_000_000

    @property
    def influxdb_base_url(self) -> str:
        """Plain-HTTP base URL built from host and port."""
        return f"http://{self.INFLUXDB_HOST}:{self.INFLUXDB_PORT}"

    @property
    def influxdb_auth(self) -> Optional[tuple]:
        """Basic auth pair, or None when either part is missing."""
        if self.INFLUXDB_USERNAME and self.INFLUXDB_PASSWORD:
            return (self.INFLUXDB_USERNAME, self.INFLUXDB_PASSWORD)
        return None

    def __repr__(self):
        """Safe representation without exposing credentials."""
        return (
            f"Settings("
            f"env={self.ENVIRONMENT}, "
            f"influxdb={self.INFLUXDB_HOST}:{self.INFLUXDB_PORT}, "
            f"stream_threshold={self.RESULT_STREAM_THRESHOLD_BYTES})"
        )


# Global settings instance
settings = Settings()
