"""Configuration management for tgterm.

Loads and validates YAML-based configuration with Pydantic models.
Supports environment variable overrides for sensitive values like the
Telegram bot token.
"""

from tgterm.config.settings import Settings, load_settings

__all__ = ["Settings", "load_settings"]
