"""Engine configuration management."""

from form_engine.config.settings import (
    EngineSettings,
    get_settings,
    load_settings,
    reset_settings,
)

__all__ = [
    "EngineSettings",
    "get_settings",
    "load_settings",
    "reset_settings",
]
