"""Configuration: layered settings and the source registry."""
from .manager import ConfigManager
from .sources import LEGACY_SOURCE_NAME, SourceEntry, SourceRegistry

__all__ = ["ConfigManager", "LEGACY_SOURCE_NAME", "SourceEntry", "SourceRegistry"]
