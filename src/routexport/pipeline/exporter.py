"""
Export orchestration.

The Exporter owns the schema catalog and the profile list, validates
profiles, prepares output locations and routes each profile to the database
or text writer. Cancellation ends an export quietly with
ExportOutcome.CANCELLED; every other error propagates.
"""

from __future__ import annotations

import logging
from collections.abc import Collection, Iterable, Sequence
from pathlib import Path
from typing import Optional

from ..cleanup import prepare_output_path
from ..config.settings import LocaleConfig
from ..domain.entities import Route, Schedule
from ..domain.enums import ExportType, TableType
from ..profiles import Profile, build_table_definitions
from ..resources import ResourceProvider
from ..schema.catalog import SchemaCatalog
from ..schema.definition import TableDefinition
from ..types import CancelTracker, ExportOutcome, UserCancelled
from ..utils import timer
from .database_writer import DatabaseWriter, MapImageRenderer
from .text_writer import TextWriter

logger = logging.getLogger(__name__)

# Tables whose fields never carry report extensions
_FIXED_TABLES = (TableType.SCHEDULES, TableType.SCHEMA)


class Exporter:
    """
    Entry point for profile exports and report sources.

    Args:
        catalog: Expanded export schema
        locale: Formatting conventions for values and text files
        resources: Localized strings; the catalog's when omitted
        renderer: Map image renderer for image fields
        profiles: Initial profiles, validated like add_profile
    """

    def __init__(self,
                 catalog: SchemaCatalog,
                 locale: Optional[LocaleConfig] = None,
                 resources: Optional[ResourceProvider] = None,
                 renderer: Optional[MapImageRenderer] = None,
                 profiles: Iterable[Profile] = ()):
        self.catalog = catalog
        self.locale = locale or LocaleConfig()
        self.resources = resources or catalog.resources
        self.renderer = renderer

        self._profiles: list[Profile] = []
        for profile in profiles:
            self.add_profile(profile)

        self._extended_fields = self._collect_extended_fields()

    # Profiles

    @property
    def profiles(self) -> list[Profile]:
        return list(self._profiles)

    def create_profile(self, export_type: ExportType, file_path: Path,
                       name: Optional[str] = None) -> Profile:
        """New profile with the default field selection of every pattern table."""
        return Profile(export_type, Path(file_path), build_table_definitions(self.catalog, export_type), name)

    @staticmethod
    def validate_profile(profile: Profile) -> None:
        """
        Check that a profile can be exported.

        Raises:
            ValueError: If the name or file path is empty or a table selects no fields
        """
        if not profile.name:
            raise ValueError("Profile name cannot be empty")
        if not str(profile.file_path) or str(profile.file_path) == ".":
            raise ValueError(f"Profile '{profile.name}' has no output file")
        for table in profile.tables:
            if not table.fields:
                raise ValueError(f"Table {table.name} of profile '{profile.name}' has no fields selected")

    def add_profile(self, profile: Profile) -> None:
        """
        Register a profile.

        Raises:
            ValueError: If the profile is invalid or its name is already taken
        """
        self.validate_profile(profile)
        if any(existing.name == profile.name for existing in self._profiles if existing is not profile):
            raise ValueError(f"Profile '{profile.name}' already exists")
        if profile not in self._profiles:
            self._profiles.append(profile)

    def remove_profile(self, profile: Profile) -> None:
        if profile in self._profiles:
            self._profiles.remove(profile)

    def get_profile(self, name: str) -> Optional[Profile]:
        for profile in self._profiles:
            if profile.name == name:
                return profile
        return None

    # Report source fields

    def _collect_extended_fields(self) -> list[str]:
        fields = []
        for table_info in self.catalog.get_pattern(ExportType.ACCESS):
            if table_info.type in _FIXED_TABLES:
                continue
            description = self.catalog.get_table_description(table_info.type)
            for info in description.fields:
                if not info.is_default and not info.is_hidden and info.name not in fields:
                    fields.append(info.name)
        return fields

    @property
    def extended_fields(self) -> list[str]:
        """Fields left out of default selections because they are costly to produce."""
        return list(self._extended_fields)

    @property
    def hard_fields(self) -> list[str]:
        """Fields that make a report source memory-intensive."""
        return self.catalog.hard_fields

    def is_split_required(self, extended_fields: Iterable[str]) -> bool:
        """True when any requested extended field is a hard field."""
        hard = set(self.catalog.hard_fields)
        return any(name in hard for name in extended_fields)

    # Exports

    @timer
    def do_export(self,
                  profile: Profile,
                  schedules: Sequence[Schedule],
                  tracker: Optional[CancelTracker] = None) -> ExportOutcome:
        """
        Export schedules with a profile.

        Args:
            profile: Profile to export with
            schedules: Schedules in output order
            tracker: Optional cancellation tracker

        Returns:
            COMPLETED, or CANCELLED when the tracker stopped the export

        Raises:
            ValueError: If the profile is invalid or its type cannot be exported
            ExportIOError: If output cannot be written
        """
        self.validate_profile(profile)
        if profile.type.is_short_name_mode:
            raise ValueError(f"Export type {profile.type.value} is not supported for export")

        logger.info(f"Exporting {len(schedules)} schedules with profile '{profile.name}' ({profile.type.value})")
        return self._run(profile.type, profile.file_path, profile.tables, schedules, None, tracker)

    @timer
    def do_report_source(self,
                         path: Path,
                         schedules: Sequence[Schedule],
                         extended_fields: Collection[str] = (),
                         routes: Optional[Collection[Route]] = None,
                         tracker: Optional[CancelTracker] = None) -> ExportOutcome:
        """
        Build a database for report generation.

        All default fields are exported, plus the requested extended fields
        the tables support and every hidden field.

        Args:
            path: Database file to create
            schedules: Schedules in output order
            extended_fields: Extended fields the reports need
            routes: Optional subset of routes to export
            tracker: Optional cancellation tracker
        """
        tables = build_table_definitions(self.catalog, ExportType.ACCESS)
        for table in tables:
            if table.type in _FIXED_TABLES:
                continue
            for name in extended_fields:
                if name in table.supported_fields:
                    table.add_field(name)
            for name in table.hidden_fields:
                table.add_field(name)

        logger.info(f"Creating report source {path} with {len(extended_fields)} extended fields")
        return self._run(ExportType.ACCESS, Path(path), tables, schedules, routes, tracker)

    def _run(self,
             export_type: ExportType,
             path: Path,
             tables: Sequence[TableDefinition],
             schedules: Sequence[Schedule],
             routes: Optional[Collection[Route]],
             tracker: Optional[CancelTracker]) -> ExportOutcome:
        # Pre-checks run before the previous output is removed
        if export_type is ExportType.ACCESS:
            writer = DatabaseWriter(self.catalog, self.locale, self.resources, self.renderer)
            writer.check_images(tables)
        else:
            writer = TextWriter(self.catalog, self.locale, self.resources)
            writer.check_table(tables[0])

        prepare_output_path(path)
        try:
            if export_type is ExportType.ACCESS:
                writer.export(path, tables, schedules, routes, tracker)
            else:
                writer.export(path, tables[0], schedules, tracker)
        except UserCancelled:
            logger.info(f"Export to {path} cancelled")
            return ExportOutcome.CANCELLED
        return ExportOutcome.COMPLETED
