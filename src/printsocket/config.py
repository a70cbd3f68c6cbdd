"""
printsocket Configuration
=========================

This module handles configuration loading for the print server.

Configuration Sources (in order of precedence):
    1. Environment variables (highest priority)
    2. config.yaml file
    3. Default values (lowest priority)

Environment Variable Mapping:
    PRINTSOCKET_HOST              -> server.host
    PRINTSOCKET_PORT              -> server.port
    PRINTSOCKET_MAX_SESSIONS      -> server.max_sessions
    PRINTSOCKET_MAX_MESSAGE_BYTES -> session.max_message_bytes
    PRINTSOCKET_RECEIVE_TIMEOUT   -> session.receive_timeout_seconds
    PRINTSOCKET_PRINTER_BACKEND   -> printer.backend
    PRINTSOCKET_PRINT_TIMEOUT     -> printer.print_timeout_seconds
    PRINTSOCKET_LOG_LEVEL         -> logging.level

Example:
    from printsocket.config import load_config

    settings = load_config()
    print(settings.server.port)
    print(settings.printer.backend)
"""

import os
import logging
from pathlib import Path
from typing import Literal, Optional

import yaml
from pydantic import BaseModel, Field


logger = logging.getLogger(__name__)


# =============================================================================
# Configuration Models
# =============================================================================

class ServerConfig(BaseModel):
    """Listener configuration."""

    host: str = Field(default="localhost", description="Bind host")
    port: int = Field(default=8080, ge=0, le=65535, description="Bind port")
    max_sessions: int = Field(
        default=0,
        ge=0,
        description="Maximum concurrent sessions (0 = unlimited)",
    )
    ping_interval_seconds: float = Field(
        default=20.0,
        ge=0,
        description="Keepalive ping interval (0 = disabled)",
    )
    ping_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Seconds to wait for a keepalive pong",
    )
    close_timeout_seconds: float = Field(
        default=5.0,
        gt=0,
        description="Seconds to wait for the close handshake",
    )


class SessionConfig(BaseModel):
    """Per-connection limits."""

    max_message_bytes: int = Field(
        default=16 * 1024 * 1024,
        ge=1,
        description="Maximum size of one reassembled message",
    )
    receive_timeout_seconds: float = Field(
        default=0.0,
        ge=0,
        description="Idle seconds before a session is closed (0 = no limit)",
    )


class PrinterConfig(BaseModel):
    """Printer sink configuration."""

    backend: Literal["cups", "mock"] = Field(
        default="cups",
        description="Printer backend: 'cups' or 'mock'",
    )
    paper_width_mm: float = Field(default=210.0, gt=0, description="Page width (mm)")
    paper_height_mm: float = Field(default=297.0, gt=0, description="Page height (mm)")
    dpi: int = Field(default=150, ge=36, le=1200, description="Render resolution")
    fit: Literal["stretch", "contain"] = Field(
        default="stretch",
        description="'stretch' fills the page, 'contain' keeps aspect ratio",
    )
    print_timeout_seconds: float = Field(
        default=60.0,
        ge=0,
        description="Seconds allowed for one print job (0 = no limit)",
    )
    lp_command: str = Field(default="lp", description="CUPS lp binary")
    lpstat_command: str = Field(default="lpstat", description="CUPS lpstat binary")
    mock_output_dir: Optional[str] = Field(
        default=None,
        description="Directory where the mock backend writes rendered pages",
    )


class FeedbackConfig(BaseModel):
    """Which failures are reported back to the client."""

    report_rejections: bool = Field(
        default=False,
        description="Send an error response for unsupported or incomplete requests",
    )
    report_print_errors: bool = Field(
        default=False,
        description="Send an error response when the printer fails",
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(default="text", description="Log format: json or text")


class Settings(BaseModel):
    """
    Main settings class for printsocket.

    Loads configuration from YAML file and environment variables.
    Environment variables take precedence over file values.
    """

    server: ServerConfig = Field(default_factory=ServerConfig)
    session: SessionConfig = Field(default_factory=SessionConfig)
    printer: PrinterConfig = Field(default_factory=PrinterConfig)
    feedback: FeedbackConfig = Field(default_factory=FeedbackConfig)
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
    # Find config file
    if config_path is None:
        search_paths = [
            Path("config.yaml"),
            Path("config.yml"),
            Path.home() / ".config" / "printsocket" / "config.yaml",
        ]
        for path in search_paths:
            if path.exists():
                config_path = str(path)
                break

    # Load from YAML if exists
    config_data = {}
    if config_path and Path(config_path).exists():
        logger.info(f"Loading config from: {config_path}")
        with open(config_path, "r") as f:
            config_data = yaml.safe_load(f) or {}
    else:
        logger.info("No config file found, using defaults and environment variables")

    _apply_env_overrides(config_data)

    return Settings.model_validate(config_data)


def _apply_env_overrides(config_data: dict) -> None:
    """Apply environment variable overrides to config data."""

    # Server settings
    if env_host := os.environ.get("PRINTSOCKET_HOST"):
        config_data.setdefault("server", {})["host"] = env_host
    if env_port := os.environ.get("PRINTSOCKET_PORT"):
        config_data.setdefault("server", {})["port"] = int(env_port)
    if env_sessions := os.environ.get("PRINTSOCKET_MAX_SESSIONS"):
        config_data.setdefault("server", {})["max_sessions"] = int(env_sessions)

    # Session settings
    if env_size := os.environ.get("PRINTSOCKET_MAX_MESSAGE_BYTES"):
        config_data.setdefault("session", {})["max_message_bytes"] = int(env_size)
    if env_timeout := os.environ.get("PRINTSOCKET_RECEIVE_TIMEOUT"):
        config_data.setdefault("session", {})["receive_timeout_seconds"] = float(env_timeout)

    # Printer settings
    if env_backend := os.environ.get("PRINTSOCKET_PRINTER_BACKEND"):
        config_data.setdefault("printer", {})["backend"] = env_backend
    if env_print_timeout := os.environ.get("PRINTSOCKET_PRINT_TIMEOUT"):
        config_data.setdefault("printer", {})["print_timeout_seconds"] = float(env_print_timeout)

    # Logging settings
    if env_log := os.environ.get("PRINTSOCKET_LOG_LEVEL"):
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
