"""Configuration management using Pydantic settings."""

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Solar Fleet Simulator"
    debug: bool = False

    # Server
    host: str = "0.0.0.0"
    port: int = 3001

    # Broadcast loop
    broadcast_enabled: bool = True
    broadcast_interval: float = 3.0  # seconds between live updates

    # SSE streams
    stream_buffer_size: int = 32     # pending messages before a client is dropped
    stream_keepalive: float = 15.0   # seconds of silence before a keepalive comment

    # Seed for telemetry jitter; unset = different noise every run
    random_seed: Optional[int] = None


settings = Settings()
