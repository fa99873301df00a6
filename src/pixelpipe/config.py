"""
PixelPipe Configuration
=======================

This module handles configuration loading for the reader, viewer and writer.

Configuration Sources (in order of precedence):
    1. Environment variables (highest priority)
    2. YAML config file
    3. Default values (lowest priority)

Config File Search:
    1. Explicit path (``--config``)
    2. $PIXELPIPE_CONFIG
    3. ./pixelpipe.yaml, ./pixelpipe.yml

Environment Variable Mapping:
    PIXELPIPE_LOG_LEVEL     -> logging.level (also enables logging)
    PIXELPIPE_LOG_FORMAT    -> logging.format
    PIXELPIPE_LOG_FILE      -> logging.file
    PIXELPIPE_TARGET_FPS    -> viewer.target_fps
    PIXELPIPE_VIEWER_TITLE  -> viewer.title

Example:
    from pixelpipe.config import load_config, setup_logging

    settings = load_config()
    setup_logging(settings)
    print(settings.viewer.target_fps)
"""

import logging
import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, model_validator

from pixelpipe.errors import ConfigError


logger = logging.getLogger(__name__)


# =============================================================================
# Configuration Models
# =============================================================================

class ViewerConfig(BaseModel):
    """Render loop and window configuration."""

    default_width: int = Field(default=320, ge=1, description="Placeholder framebuffer width")
    default_height: int = Field(default=240, ge=1, description="Placeholder framebuffer height")
    target_fps: int = Field(
        default=60,
        ge=1,
        le=240,
        description="Render cadence cap (ticks per second)",
    )
    idle_sleep_ms: float = Field(
        default=1.0,
        ge=0,
        description="Sleep after each tick to avoid busy-waiting",
    )
    title: str = Field(
        default="PixelPipe",
        description="Window title used when a frame has no id",
    )
    cancel_key: int = Field(
        default=27,
        ge=0,
        le=255,
        description="Key code that closes the viewer (27 = Escape)",
    )


class ReaderConfig(BaseModel):
    """Accepted range for the reader's --size option."""

    min_width: int = Field(default=160, ge=1)
    max_width: int = Field(default=7680, ge=1)
    min_height: int = Field(default=120, ge=1)
    max_height: int = Field(default=4320, ge=1)

    @model_validator(mode="after")
    def check_ranges(self) -> "ReaderConfig":
        """Ensure each range is non-empty."""
        if self.min_width > self.max_width:
            raise ValueError("reader.min_width must not exceed reader.max_width")
        if self.min_height > self.max_height:
            raise ValueError("reader.min_height must not exceed reader.max_height")
        return self


class LoggingConfig(BaseModel):
    """Logging configuration."""

    enabled: bool = Field(default=False, description="Emit log records on stderr")
    level: str = Field(default="INFO", description="Log level")
    format: str = Field(default="text", description="Log format: json or text")
    file: Optional[str] = Field(default=None, description="Log to this file instead of stderr")


class Settings(BaseModel):
    """
    Main settings class for PixelPipe.

    Loaded once by the CLI and passed to the tools; nothing reads it
    as a module-level global.
    """

    viewer: ViewerConfig = Field(default_factory=ViewerConfig)
    reader: ReaderConfig = Field(default_factory=ReaderConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


# =============================================================================
# Configuration Loading
# =============================================================================

def _find_config(config_path: Optional[str]) -> Optional[Path]:
    if config_path is not None:
        path = Path(config_path)
        if not path.exists():
            raise ConfigError(f"config file not found: {config_path}")
        return path

    if env_path := os.environ.get("PIXELPIPE_CONFIG"):
        path = Path(env_path)
        if not path.exists():
            raise ConfigError(f"PIXELPIPE_CONFIG points to a missing file: {env_path}")
        return path

    for path in (Path("pixelpipe.yaml"), Path("pixelpipe.yml")):
        if path.exists():
            return path
    return None


def load_config(config_path: Optional[str] = None) -> Settings:
    """
    Load configuration from YAML file and environment variables.

    Priority (highest to lowest):
        1. Environment variables
        2. YAML config file
        3. Default values

    Args:
        config_path: Path to a YAML file. If None, searches common locations.

    Returns:
        Settings: Loaded configuration

    Raises:
        ConfigError: If the file cannot be read or values are invalid
    """
    path = _find_config(config_path)

    config_data = {}
    if path is not None:
        logger.info(f"Loading config from: {path}")
        try:
            with open(path, "r") as f:
                config_data = yaml.safe_load(f) or {}
        except OSError as e:
            raise ConfigError(f"cannot read {path}: {e}") from e
        except yaml.YAMLError as e:
            raise ConfigError(f"malformed YAML in {path}: {e}") from e
        if not isinstance(config_data, dict):
            raise ConfigError(f"{path} must contain a mapping at top level")

    try:
        _apply_env_overrides(config_data)
        return Settings.model_validate(config_data)
    except (ValidationError, ValueError, TypeError) as e:
        raise ConfigError(str(e)) from e


def _apply_env_overrides(config_data: dict) -> None:
    """Apply environment variable overrides to config data."""

    for section in ("logging", "viewer"):
        if config_data.get(section) is None:
            config_data[section] = {}

    # Logging settings
    if env_level := os.environ.get("PIXELPIPE_LOG_LEVEL"):
        config_data["logging"]["level"] = env_level
        config_data["logging"]["enabled"] = True
    if env_format := os.environ.get("PIXELPIPE_LOG_FORMAT"):
        config_data["logging"]["format"] = env_format
    if env_file := os.environ.get("PIXELPIPE_LOG_FILE"):
        config_data["logging"]["file"] = env_file

    # Viewer settings
    if env_fps := os.environ.get("PIXELPIPE_TARGET_FPS"):
        config_data["viewer"]["target_fps"] = int(env_fps)
    if env_title := os.environ.get("PIXELPIPE_VIEWER_TITLE"):
        config_data["viewer"]["title"] = env_title


def setup_logging(settings: Settings, debug: bool = False) -> None:
    """
    Configure logging based on settings.

    Logging stays quiet unless enabled in config, via environment, or
    by --debug; user-facing messages go through Diagnostics instead.
    """
    if not (settings.logging.enabled or debug):
        logging.getLogger("pixelpipe").addHandler(logging.NullHandler())
        return

    if debug:
        log_level = logging.DEBUG
    else:
        log_level = getattr(logging, settings.logging.level.upper(), logging.INFO)

    if settings.logging.format == "json":
        log_format = '{"time": "%(asctime)s", "level": "%(levelname)s", "module": "%(name)s", "message": "%(message)s"}'
    else:
        log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(
        level=log_level,
        format=log_format,
        datefmt="%Y-%m-%dT%H:%M:%S",
        filename=settings.logging.file,
    )
