"""Configuration APIs."""

from promptplayground.config.settings import (
    PlaygroundSettings,
    RuntimeSettings,
    SettingsError,
    load_settings,
    settings_summary,
)

__all__ = [
    "PlaygroundSettings",
    "RuntimeSettings",
    "SettingsError",
    "load_settings",
    "settings_summary",
]
