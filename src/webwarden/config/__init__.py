"""
Configuration module for the WebWarden crawler.

Provides Pydantic-based settings management with YAML file support
and environment variable overrides.
"""

from webwarden.config.settings import (
    Settings,
    CrawlerSettings,
    ExportSettings,
    LoggingSettings,
)
from webwarden.config.loader import (
    load_config,
    save_config,
    get_settings,
    reset_settings,
    get_default_config_path,
    get_config_search_paths,
)

__all__ = [
    "Settings",
    "CrawlerSettings",
    "ExportSettings",
    "LoggingSettings",
    "load_config",
    "save_config",
    "get_settings",
    "reset_settings",
    "get_default_config_path",
    "get_config_search_paths",
]
