"""
Configuration module for the route export engine.
"""

from .settings import (
    Config,
    ConfigurationError,
    LocaleConfig,
    PathsConfig,
    SettingsLoadError,
)

__all__ = [
    'Config',
    'ConfigurationError',
    'LocaleConfig',
    'PathsConfig',
    'SettingsLoadError',
]
