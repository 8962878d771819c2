from lettercast.settings.loader import load_settings, resolve_config_path
from lettercast.settings.models import (
    ApplicationSettings,
    DatabaseSettings,
    EmailClientSettings,
    Settings,
)

__all__ = [
    "load_settings",
    "resolve_config_path",
    "Settings",
    "DatabaseSettings",
    "ApplicationSettings",
    "EmailClientSettings",
]
