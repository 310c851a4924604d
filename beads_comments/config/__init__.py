"""Configuration module for the beads comments client."""

from .settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
