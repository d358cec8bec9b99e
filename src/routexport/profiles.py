"""
Export profiles and their storage document.

A profile names an export type, an output file and the selected fields of
each table the type's pattern declares. Profiles are stored in YAML:

    profiles:
      - name: Daily routes
        type: TextRoutes
        file_path: exports/routes.csv
        default: false
        description: Route summary for dispatch
        tables:
          - name: Routes
            type: Routes
            fields: [Name, VehicleName, TotalMiles]
"""

from __future__ import annotations

import logging
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml

from .config.settings import SettingsLoadError
from .domain.enums import ExportType, TableType
from .schema.catalog import SchemaCatalog
from .schema.definition import TableDefinition
from .types import ExportIOError, InvariantViolation
from .utils import load_yaml_file

logger = logging.getLogger(__name__)


def build_table_definitions(catalog: SchemaCatalog, export_type: ExportType) -> list[TableDefinition]:
    """
    Fresh table definitions for every table of an export type's pattern.

    Shape types build their definitions in short-name mode.
    """
    tables = []
    for table_info in catalog.get_pattern(export_type):
        description = catalog.get_table_description(table_info.type)
        if description is None:
            raise InvariantViolation(
                f"Export pattern {export_type.value} references undefined table {table_info.type.value}"
            )
        tables.append(TableDefinition(
            description,
            table_info.ignorable_fields,
            is_short_names_mode=export_type.is_short_name_mode,
            name=catalog.get_table_name(table_info.type),
        ))
    return tables


@dataclass
class Profile:
    """Named export configuration; the name defaults to the output file stem."""
    type: ExportType
    file_path: Path
    tables: list[TableDefinition] = field(default_factory=list)
    name: Optional[str] = None
    is_default: bool = False
    description: str = ""

    def __post_init__(self):
        self.file_path = Path(self.file_path)
        if self.name is None:
            self.name = self.file_path.stem

    def get_table(self, table_type: TableType) -> Optional[TableDefinition]:
        for table in self.tables:
            if table.type is table_type:
                return table
        return None

    def copy(self, catalog: SchemaCatalog) -> Profile:
        """Independent profile with the same settings and field selection."""
        tables = build_table_definitions(catalog, self.type)
        for table in tables:
            source = self.get_table(table.type)
            if source is None:
                continue
            table.clear_fields()
            for name in source.fields:
                table.add_field(name)
        return Profile(self.type, self.file_path, tables, self.name, self.is_default, self.description)


class ProfileStore:
    """
    Reads and writes the profile storage document.

    Args:
        path: YAML document location
        catalog: Catalog the stored table selections are rebuilt against
    """

    def __init__(self, path: Path, catalog: SchemaCatalog):
        self.path = path
        self.catalog = catalog

    def load(self) -> list[Profile]:
        """
        Load all stored profiles.

        Returns:
            Profiles in document order; empty when the document does not exist

        Raises:
            SettingsLoadError: If the document is not valid YAML or not a
                valid profile list
        """
        if not self.path.exists():
            logger.debug(f"No profile document at {self.path}")
            return []

        try:
            document = load_yaml_file(self.path)
        except ValueError as e:
            raise SettingsLoadError(f"Cannot read export profiles: {e}", self.path) from e

        if document is None:
            return []
        if not isinstance(document, dict) or not isinstance(document.get("profiles", []), list):
            raise SettingsLoadError("Export profile document must hold a 'profiles' list", self.path)

        profiles = []
        for entry in document.get("profiles") or []:
            try:
                profiles.append(self._load_profile(entry))
            except (KeyError, TypeError, ValueError) as e:
                raise SettingsLoadError(f"Invalid export profile: {e}", self.path) from e

        logger.info(f"Loaded {len(profiles)} export profiles from {self.path}")
        return profiles

    def _load_profile(self, entry: dict[str, Any]) -> Profile:
        export_type = ExportType(entry["type"])
        profile = Profile(
            type=export_type,
            file_path=Path(entry["file_path"]),
            tables=build_table_definitions(self.catalog, export_type),
            name=entry.get("name"),
            is_default=bool(entry.get("default", False)),
            description=entry.get("description") or "",
        )

        for table_entry in entry.get("tables") or []:
            table = profile.get_table(TableType(table_entry["type"]))
            if table is None:
                logger.warning(
                    f"Profile '{profile.name}': table {table_entry['type']} is not part of "
                    f"{export_type.value} exports, skipped"
                )
                continue

            table.clear_fields()
            for name in table_entry.get("fields") or []:
                if name in table.supported_fields:
                    table.add_field(name)
                else:
                    logger.debug(f"Profile '{profile.name}': dropped unsupported field {name}")
        return profile

    @staticmethod
    def _dump_profile(profile: Profile) -> dict[str, Any]:
        return {
            "name": profile.name,
            "type": profile.type.value,
            "file_path": str(profile.file_path),
            "default": profile.is_default,
            "description": profile.description,
            "tables": [
                {"name": table.name, "type": table.type.value, "fields": list(table.fields)}
                for table in profile.tables
            ],
        }

    def save(self, profiles: list[Profile]) -> None:
        """
        Write all profiles, replacing the document atomically.

        Raises:
            ExportIOError: If the document cannot be written
        """
        document = {"profiles": [self._dump_profile(profile) for profile in profiles]}

        directory = self.path.parent
        tmp_name = None
        try:
            directory.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile("w", encoding="utf-8", dir=directory,
                                             suffix=".tmp", delete=False) as tmp:
                tmp_name = tmp.name
                yaml.safe_dump(document, tmp, sort_keys=False, allow_unicode=True)
            os.replace(tmp_name, self.path)
        except OSError as e:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise ExportIOError(self.path, f"cannot save export profiles: {e}") from e

        logger.info(f"Saved {len(profiles)} export profiles to {self.path}")
