"""Configuration management for capserve."""

from .settings import (
    ApplicationSettings,
    ServerSettings,
    Settings,
    get_settings,
    load_settings,
    reset_settings,
)

__all__ = [
    "ApplicationSettings",
    "ServerSettings",
    "Settings",
    "get_settings",
    "load_settings",
    "reset_settings",
]
