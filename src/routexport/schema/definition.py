"""User-selected projection of a table description."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Optional

from ..domain.enums import TableType
from ..domain.models import ResolvedField
from .description import TableDescription


class TableDefinition:
    """
    Selected fields of one table in one export profile.

    Fields marked hidden can be selected but are not offered to users; they
    exist for report sources. Ignorable fields of the export pattern are left
    out entirely.
    """

    def __init__(self,
                 description: TableDescription,
                 ignorable_fields: Iterable[str] = (),
                 is_short_names_mode: bool = False,
                 name: Optional[str] = None):
        ignorable = set(ignorable_fields)

        self.description = description
        self.type: TableType = description.type
        self.name = name or description.type.value
        self.is_short_names_mode = is_short_names_mode

        self._fields: list[str] = []
        self._supported_fields: list[str] = []
        self._hidden_fields: list[str] = []
        self._titles: dict[str, str] = {}
        self._descriptions: dict[str, str] = {}

        for field in description.fields:
            if field.name in ignorable:
                continue
            if field.is_default:
                self._fields.append(field.name)
            if field.is_hidden:
                self._hidden_fields.append(field.name)
            else:
                self._supported_fields.append(field.name)
            self._titles[field.name] = field.short_name if is_short_names_mode else field.long_name
            self._descriptions[field.name] = field.description or ""

    @property
    def fields(self) -> tuple[str, ...]:
        """Selected field names in selection order."""
        return tuple(self._fields)

    @property
    def supported_fields(self) -> tuple[str, ...]:
        return tuple(self._supported_fields)

    @property
    def hidden_fields(self) -> tuple[str, ...]:
        return tuple(self._hidden_fields)

    def add_field(self, name: str) -> None:
        """
        Select a field; selecting it twice is a no-op.

        Raises:
            ValueError: If the table neither supports nor hides the field
        """
        if name not in self._supported_fields and name not in self._hidden_fields:
            raise ValueError(f"Field '{name}' is not available in table {self.name}")
        if name not in self._fields:
            self._fields.append(name)

    def remove_field(self, name: str) -> None:
        if name in self._fields:
            self._fields.remove(name)

    def clear_fields(self) -> None:
        self._fields.clear()

    def selected_field_infos(self) -> list[ResolvedField]:
        """Resolved fields for the current selection, in selection order."""
        return [self.description.get_field_info(name) for name in self._fields]

    def get_field_title_by_name(self, name: str) -> str:
        return self._titles.get(name, "")

    def get_field_name_by_title(self, title: str) -> str:
        """Reverse title lookup, ignoring case; empty when no field matches."""
        wanted = title.lower()
        for name, field_title in self._titles.items():
            if field_title.lower() == wanted:
                return name
        return ""

    def get_description_by_name(self, name: str) -> str:
        return self._descriptions.get(name, "")

    def __repr__(self) -> str:
        return f"TableDefinition(type={self.type.value}, name={self.name!r}, fields={len(self._fields)})"
