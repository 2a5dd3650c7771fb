"""Core: configuration and the composition root."""

from flowdash.core.config import Settings, get_settings

__all__ = ["Settings", "get_settings"]
