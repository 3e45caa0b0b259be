"""Configuration module -- exports the Settings class."""

from knowme.config.settings import Settings

__all__ = ["Settings"]
