"""Name collision checks for custom order properties."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from pathlib import Path
from typing import Optional

from ..domain.enums import ExportType, TableType
from ..domain.models import AddressField, CapacityInfo
from ..resources import ResourceProvider
from .catalog import SchemaCatalog
from .description import validate_relative_name

logger = logging.getLogger(__name__)

# Export types whose stop and order tables receive custom property columns
_CHECKED_EXPORT_TYPES = (ExportType.ACCESS, ExportType.TEXT_ORDERS, ExportType.TEXT_STOPS)
_CHECKED_TABLE_TYPES = (TableType.STOPS, TableType.ORDERS)


class ExportValidator:
    """
    Checks that a custom order property name would not collide with any
    field produced by schema expansion.

    The catalog is built without custom properties so the known names are
    those of the fixed fields plus capacity and address expansions.
    """

    def __init__(self,
                 capacities_info: Sequence[CapacityInfo],
                 address_fields: Sequence[AddressField],
                 resources: Optional[ResourceProvider] = None,
                 structure_path: Optional[Path] = None):
        catalog = SchemaCatalog(
            capacities_info=capacities_info,
            order_custom_properties_info=(),
            address_fields=address_fields,
            resources=resources,
            structure_path=structure_path,
        )

        self._known_names: list[str] = []
        for export_type in _CHECKED_EXPORT_TYPES:
            for table_info in catalog.get_pattern(export_type):
                if table_info.type not in _CHECKED_TABLE_TYPES:
                    continue
                description = catalog.get_table_description(table_info.type)
                if description is None:
                    continue
                for name in description.field_names:
                    if name not in self._known_names:
                        self._known_names.append(name)

        logger.debug(f"Export validator knows {len(self._known_names)} field names")

    @property
    def known_names(self) -> list[str]:
        return list(self._known_names)

    def is_custom_order_field_name_unique(self, name: str,
                                          order_custom_property_names: Iterable[str]) -> bool:
        """
        Check a proposed custom order property name.

        Args:
            name: Proposed property name
            order_custom_property_names: Names of all custom properties,
                including the proposed one if it is already in the list

        Returns:
            False when the name matches an expanded field name or appears
            more than once among the custom properties, ignoring case

        Raises:
            ValueError: If name is empty
        """
        if not name:
            raise ValueError("Custom order property name cannot be empty")

        candidate = validate_relative_name(name).lower()
        if candidate and any(known.lower() == candidate for known in self._known_names):
            return False

        matches = sum(
            1 for property_name in order_custom_property_names
            if validate_relative_name(property_name).lower() == candidate
        )
        return matches <= 1
