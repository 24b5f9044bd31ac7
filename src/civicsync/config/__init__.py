"""Configuration package."""

from civicsync.config.settings import Settings

__all__ = ["Settings"]
