"""Configuration management for tgterm.

Loads settings from a YAML configuration file with environment variable
overrides for sensitive values (the bot token). Supports .env files.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field, SecretStr
from pydantic_settings import BaseSettings

from tgterm.domain.models import DEFAULT_OTP_TIMEOUT, MAX_OTP_TIMEOUT, MIN_OTP_TIMEOUT

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("config/tgterm.yaml")


class TelegramConfig(BaseModel):
    bot_token: SecretStr = Field(default=SecretStr(""))
    api_base_url: str = Field(default="https://api.telegram.org")
    poll_timeout: int = Field(default=30, ge=0, description="Long-poll timeout in seconds")
    http_timeout: float = Field(default=60.0, gt=0)


class WindowsConfig(BaseModel):
    backend: Literal["auto", "x11", "macos"] = Field(default="auto")
    show_all_windows: bool = Field(
        default=False, description="List every window, not just known terminals"
    )
    key_delay: float = Field(default=0.005, ge=0)
    newline_delay: float = Field(default=0.05, ge=0)
    raise_delay: float = Field(default=0.1, ge=0)
    repaint_delay: float = Field(default=2.0, ge=0)
    screenshot_max_dimension: int = Field(default=2560, gt=0)


class SecurityConfig(BaseModel):
    weak_security: bool = Field(
        default=False, description="Skip OTP authentication entirely (local testing only)"
    )
    default_otp_timeout: int = Field(
        default=DEFAULT_OTP_TIMEOUT, ge=MIN_OTP_TIMEOUT, le=MAX_OTP_TIMEOUT
    )


class StorageConfig(BaseModel):
    db_path: str = Field(default="./mybot.sqlite")


class LoggingConfig(BaseModel):
    level: str = Field(default="INFO")
    format: str = Field(
        default="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    file: str | None = Field(default=None)


class Settings(BaseSettings):
    """Root configuration for the tgterm bot.

    Loads from YAML file and supports environment variable overrides.
    Reads .env files automatically.
    """

    model_config = {
        "env_prefix": "TGTERM_",
        "env_nested_delimiter": "__",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    telegram: TelegramConfig = Field(default_factory=TelegramConfig)
    windows: WindowsConfig = Field(default_factory=WindowsConfig)
    security: SecurityConfig = Field(default_factory=SecurityConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def load_settings(config_path: Path | str | None = None) -> Settings:
    """Load settings from YAML + .env + environment variables.

    Priority: env vars > .env file > YAML file > defaults
    """
    path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH

    # Load .env file manually for non-prefixed vars
    _load_dotenv()

    yaml_data = {}
    if path.exists():
        with open(path) as f:
            yaml_data = yaml.safe_load(f) or {}
        logger.info("Loaded configuration from %s", path)
    else:
        logger.warning("Config file %s not found, using defaults + env vars", path)

    _apply_env_overrides(yaml_data)

    return Settings(**yaml_data)


def _load_dotenv() -> None:
    """Load .env file into os.environ if it exists."""
    env_path = Path(".env")
    if not env_path.exists():
        return
    with open(env_path) as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            if "=" in line:
                key, _, value = line.partition("=")
                key = key.strip()
                value = value.strip()
                if not os.environ.get(key):
                    os.environ[key] = value


def _apply_env_overrides(yaml_data: dict) -> None:
    """Apply environment variable overrides for non-prefixed vars."""
    token = os.environ.get("TELEGRAM_BOT_TOKEN", "")
    if not token:
        return
    telegram = yaml_data.setdefault("telegram", {})
    if not telegram.get("bot_token"):
        telegram["bot_token"] = token
