"""Configuration module."""

from storepilot.config.settings import DEFAULT_JWT_SECRET, Settings, get_settings

__all__ = ["DEFAULT_JWT_SECRET", "Settings", "get_settings"]
