"""
Configuration management for the route export engine.

Usage:
    from routexport.config.settings import Config
    config = Config()
    locale = config.get_locale_settings()

Environment Variables:
    EXPORT_LIST_SEPARATOR: Column delimiter for text exports (default ",")
    EXPORT_SHORT_TIME_FORMAT: strftime pattern for short times (default "%I:%M %p")
    EXPORT_SHORT_DATE_FORMAT: strftime pattern for short dates (default "%m/%d/%Y")
    EXPORT_METRIC_UNITS: Report itinerary lengths in kilometers (default false)
    EXPORT_STRUCTURE_PATH: Override for the bundled export structure document
    EXPORT_PROFILES_PATH: Profile storage document (default profiles.yml)
    EXPORT_OUTPUT_DIR: Default directory for export files (default exports)
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

_TRUE_VALUES = ("true", "1", "yes", "on")
_FALSE_VALUES = ("false", "0", "no", "off")


@dataclass(frozen=True)
class LocaleConfig:
    """Formatting conventions used by the resolver and the sinks."""
    list_separator: str = ","
    short_time_format: str = "%I:%M %p"
    short_date_format: str = "%m/%d/%Y"
    metric_units: bool = False

    def __post_init__(self):
        """Validate locale configuration."""
        if not self.list_separator:
            raise ValueError("List separator cannot be empty")
        if '"' in self.list_separator or "\n" in self.list_separator:
            raise ValueError("List separator cannot contain quotes or line breaks")
        if "%" not in self.short_time_format:
            raise ValueError("Short time format must be a strftime pattern")
        if "%" not in self.short_date_format:
            raise ValueError("Short date format must be a strftime pattern")

    @property
    def cell_list_separator(self) -> str:
        """Separator for lists inside one cell, distinct from the column delimiter."""
        return ";" if self.list_separator == "," else ","


@dataclass
class PathsConfig:
    """File locations for schema, profiles and output."""
    structure_path: Optional[Path] = None
    profiles_path: Path = Path("profiles.yml")
    output_dir: Path = Path("exports")

    def __post_init__(self):
        """Validate path configuration."""
        if self.structure_path is not None and not self.structure_path.is_file():
            raise ValueError(f"Export structure document not found: {self.structure_path}")
        if self.output_dir.exists() and not self.output_dir.is_dir():
            raise ValueError(f"Output location is not a directory: {self.output_dir}")


class ConfigurationError(Exception):
    """Raised when configuration is invalid or incomplete."""

    def __init__(self, message: str, path: Optional[Path] = None):
        self.path = path
        if path is not None:
            message = f"{message} (source: {path})"
        super().__init__(message)


class SettingsLoadError(ConfigurationError):
    """Raised when a stored settings document cannot be read."""
    pass


def _parse_bool(name: str, default: str) -> bool:
    raw = os.getenv(name, default).strip().lower()
    if raw in _TRUE_VALUES:
        return True
    if raw in _FALSE_VALUES:
        return False
    raise ConfigurationError(f"{name} must be a boolean value, got '{raw}'")


class Config:
    """
    Centralized configuration for export runs.

    Environment variables loaded (in order of preference):
    1. Explicit environment file passed to constructor
    2. .env.{ENVIRONMENT} (where ENVIRONMENT=development|production|staging)
    3. .env file in project root
    4. System environment variables

    Example:
        config = Config()
        config = Config(env_file=Path("/secure/export.env"))
    """

    def __init__(self,
                 environment: Optional[str] = None,
                 env_file: Optional[Path] = None):
        """
        Initialize configuration.

        Args:
            environment: Target environment (development|staging|production)
            env_file: Explicit path to environment file
        """
        self.environment = environment or os.getenv("ENVIRONMENT", "development")
        self.project_root = self._find_project_root()

        self._load_environment_variables(env_file)

        self._load_locale_config()
        self._load_paths_config()

    def _find_project_root(self) -> Path:
        """Find project root directory containing pyproject.toml, .git or .env."""
        cwd = Path.cwd()
        for parent in (cwd, *cwd.parents):
            if any((parent / marker).exists() for marker in ['pyproject.toml', '.git', '.env']):
                return parent
        return cwd

    def _load_environment_variables(self, env_file: Optional[Path]) -> None:
        """Load environment variables from appropriate source."""
        loaded_files = []

        if env_file:
            if env_file.exists():
                load_dotenv(env_file)
                loaded_files.append(str(env_file))
                logger.info(f"Loaded configuration from {env_file}")
            else:
                raise ConfigurationError(f"Specified env file not found: {env_file}")

        else:
            env_specific_file = self.project_root / f".env.{self.environment}"
            if env_specific_file.exists():
                load_dotenv(env_specific_file)
                loaded_files.append(str(env_specific_file))
                logger.info(f"Loaded environment-specific config: {env_specific_file}")

            generic_env_file = self.project_root / ".env"
            if generic_env_file.exists():
                load_dotenv(generic_env_file)
                loaded_files.append(str(generic_env_file))
                logger.info(f"Loaded generic config: {generic_env_file}")

        if not loaded_files:
            logger.debug("No .env files found, using system environment variables only")

        self._loaded_env_files = loaded_files
        logger.debug(f"Project root: {self.project_root}")
        logger.debug(f"Environment: {self.environment}")

    def _load_locale_config(self) -> None:
        """Load locale formatting configuration."""
        try:
            self.locale = LocaleConfig(
                list_separator=os.getenv("EXPORT_LIST_SEPARATOR", ","),
                short_time_format=os.getenv("EXPORT_SHORT_TIME_FORMAT", "%I:%M %p"),
                short_date_format=os.getenv("EXPORT_SHORT_DATE_FORMAT", "%m/%d/%Y"),
                metric_units=_parse_bool("EXPORT_METRIC_UNITS", "false"),
            )
        except ValueError as e:
            raise ConfigurationError(f"Invalid locale configuration: {e}") from e

    def _load_paths_config(self) -> None:
        """Load file locations, relative paths resolved against the project root."""
        structure = os.getenv("EXPORT_STRUCTURE_PATH")
        profiles = Path(os.getenv("EXPORT_PROFILES_PATH", "profiles.yml"))
        output = Path(os.getenv("EXPORT_OUTPUT_DIR", "exports"))

        try:
            self.paths = PathsConfig(
                structure_path=self._resolve(Path(structure)) if structure else None,
                profiles_path=self._resolve(profiles),
                output_dir=self._resolve(output),
            )
        except ValueError as e:
            raise ConfigurationError(f"Invalid path configuration: {e}") from e

    def _resolve(self, path: Path) -> Path:
        return path if path.is_absolute() else self.project_root / path

    def get_locale_settings(self) -> LocaleConfig:
        """
        Get formatting settings for resolvers and sinks.

        Returns:
            Frozen locale configuration
        """
        return self.locale

    def get_paths_summary(self) -> dict[str, Any]:
        """
        Get configured file locations for display.

        Returns:
            Dictionary of configured paths as strings
        """
        return {
            'structure_path': str(self.paths.structure_path) if self.paths.structure_path else 'bundled',
            'profiles_path': str(self.paths.profiles_path),
            'output_dir': str(self.paths.output_dir),
            'loaded_env_files': self._loaded_env_files,
        }

    def __repr__(self) -> str:
        return (
            f"Config(environment={self.environment}, "
            f"list_separator={self.locale.list_separator!r}, "
            f"profiles={self.paths.profiles_path})"
        )
