"""
Camera Viewer Configuration
===========================

This module handles configuration loading for the camera viewer.

Configuration Sources (in order of precedence):
    1. Environment variables (highest priority)
    2. config.yaml file
    3. Default values (lowest priority)

Environment Variable Mapping:
    CAMVIEW_STREAM_URL       -> stream.url
    CAMVIEW_RECONNECT_DELAY  -> stream.reconnect_delay_seconds
    CAMVIEW_OPEN_TIMEOUT     -> stream.open_timeout_seconds
    CAMVIEW_TICK_INTERVAL    -> session.tick_interval_seconds
    CAMVIEW_LOG_CAPACITY     -> session.log_capacity
    CAMVIEW_AUTO_CONNECT     -> session.auto_connect
    CAMVIEW_PORT             -> server.port
    CAMVIEW_LOG_LEVEL        -> logging.level
    PORT                     -> server.port (container platforms)

Example:
    from camera_viewer.config import settings

    print(settings.viewer.name)
    print(settings.stream.url)
    print(settings.session.rate_window_ms)
"""

import os
import logging
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field


logger = logging.getLogger(__name__)


# =============================================================================
# Configuration Models
# =============================================================================

class ViewerConfig(BaseModel):
    """Viewer identification configuration."""

    name: str = Field(default="camera-viewer", description="Viewer name")
    version: str = Field(default="v0.1.0", description="Viewer version")


class StreamConfig(BaseModel):
    """Camera server connection configuration."""

    url: str = Field(
        default="ws://localhost:3001",
        description="WebSocket URL of the camera server",
    )
    reconnect_delay_seconds: float = Field(
        default=5.0,
        ge=0,
        description="Delay before reconnecting after an abnormal close",
    )
    open_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Handshake timeout",
    )
    max_message_bytes: int = Field(
        default=16 * 1024 * 1024,
        ge=1024,
        description="Largest accepted WebSocket message",
    )


class SessionConfig(BaseModel):
    """Session engine configuration."""

    tick_interval_seconds: float = Field(
        default=1.0,
        gt=0,
        description="Period of the frame-rate recomputation",
    )
    rate_window_ms: int = Field(
        default=1000,
        ge=1,
        description="Trailing window for frame-rate counting",
    )
    log_capacity: int = Field(
        default=20,
        ge=1,
        description="Maximum activity log entries retained",
    )
    auto_connect: bool = Field(
        default=False,
        description="Connect on startup instead of waiting for a command",
    )


class ServerConfig(BaseModel):
    """HTTP API configuration."""

    host: str = Field(default="0.0.0.0", description="Bind host")
    port: int = Field(default=8002, ge=1, le=65535, description="Bind port")
    status_push_interval_seconds: float = Field(
        default=1.0,
        gt=0,
        description="Period between snapshots on /ws/status",
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(default="text", description="Log format: json or text")


class Settings(BaseModel):
    """
    Main settings class for the camera viewer.

    Loads configuration from YAML file and environment variables.
    Environment variables take precedence over file values.
    """

    viewer: ViewerConfig = Field(default_factory=ViewerConfig)
    stream: StreamConfig = Field(default_factory=StreamConfig)
    session: SessionConfig = Field(default_factory=SessionConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


# =============================================================================
# Configuration Loading
# =============================================================================

def load_config(config_path: Optional[str] = None) -> Settings:
    """
    Load configuration from YAML file and environment variables.

    Priority (highest to lowest):
        1. Environment variables
        2. YAML config file
        3. Default values

    Args:
        config_path: Path to config.yaml. If None, searches common locations.

    Returns:
        Settings: Loaded configuration
    """
    if config_path is None:
        config_path = os.environ.get("CAMVIEW_CONFIG")

    if config_path is None:
        search_paths = [
            Path("config.yaml"),
            Path("config.yml"),
            Path(__file__).parent.parent.parent / "config.yaml",
        ]
        for path in search_paths:
            if path.exists():
                config_path = str(path)
                break

    config_data = {}
    if config_path and Path(config_path).exists():
        logger.info(f"Loading config from: {config_path}")
        with open(config_path, "r") as f:
            config_data = yaml.safe_load(f) or {}
    else:
        logger.warning("No config file found, using defaults and environment variables")

    _apply_env_overrides(config_data)

    return Settings.model_validate(config_data)


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def _apply_env_overrides(config_data: dict) -> None:
    """Apply environment variable overrides to config data."""

    # Stream settings
    if env_url := os.environ.get("CAMVIEW_STREAM_URL"):
        config_data.setdefault("stream", {})["url"] = env_url
    if env_delay := os.environ.get("CAMVIEW_RECONNECT_DELAY"):
        config_data.setdefault("stream", {})["reconnect_delay_seconds"] = float(env_delay)
    if env_timeout := os.environ.get("CAMVIEW_OPEN_TIMEOUT"):
        config_data.setdefault("stream", {})["open_timeout_seconds"] = float(env_timeout)

    # Session settings
    if env_tick := os.environ.get("CAMVIEW_TICK_INTERVAL"):
        config_data.setdefault("session", {})["tick_interval_seconds"] = float(env_tick)
    if env_capacity := os.environ.get("CAMVIEW_LOG_CAPACITY"):
        config_data.setdefault("session", {})["log_capacity"] = int(env_capacity)
    if env_auto := os.environ.get("CAMVIEW_AUTO_CONNECT"):
        config_data.setdefault("session", {})["auto_connect"] = _parse_bool(env_auto)

    # Server settings (container platforms use PORT)
    if env_port := os.environ.get("PORT"):
        config_data.setdefault("server", {})["port"] = int(env_port)
    elif env_port := os.environ.get("CAMVIEW_PORT"):
        config_data.setdefault("server", {})["port"] = int(env_port)

    # Logging settings
    if env_log := os.environ.get("CAMVIEW_LOG_LEVEL"):
        config_data.setdefault("logging", {})["level"] = env_log


def setup_logging(settings: Settings) -> None:
    """Configure logging based on settings."""
    log_level = getattr(logging, settings.logging.level.upper(), logging.INFO)

    if settings.logging.format == "json":
        log_format = '{"time": "%(asctime)s", "level": "%(levelname)s", "module": "%(name)s", "message": "%(message)s"}'
    else:
        log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(
        level=log_level,
        format=log_format,
        datefmt="%Y-%m-%dT%H:%M:%S",
    )


# =============================================================================
# Global Settings Instance
# =============================================================================

# Global settings instance - loaded on import
settings = load_config()
setup_logging(settings)
