"""
Table description: the fully expanded field directory of one table type.

Relation templates (capacities, custom order properties, address components)
expand into one concrete field per runtime entry. The expansion functions are
small and pure; TableDescription only stores their results and answers
lookups.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from pathlib import Path
from typing import Optional

from ..config.settings import ConfigurationError
from ..domain.enums import DataType, OrderCustomPropertyType, RelationType, TableType, Unit
from ..domain.models import (
    AddressField,
    CapacityInfo,
    FieldTemplate,
    OrderCustomPropertyInfo,
    ResolvedField,
)
from ..resources import ResourceProvider
from ..types import InvariantViolation

logger = logging.getLogger(__name__)

SHORT_NAME_LENGTH = 10

# Numeric custom properties are exported as Double(14, 2)
NUMERIC_PROPERTY_PRECISION = 14
NUMERIC_PROPERTY_SCALE = 2


def validate_relative_name(name: Optional[str]) -> str:
    """
    Turn a user-entered name into a field name fragment.

    Args:
        name: Capacity or custom property name

    Returns:
        Name trimmed with all spaces removed; empty when nothing is left
    """
    if not name:
        return ""
    return name.strip().replace(" ", "")


def _truncate(short_name: str) -> str:
    return short_name[:SHORT_NAME_LENGTH]


def _resolved(template: FieldTemplate, **changes) -> ResolvedField:
    values = {
        "name": template.name,
        "long_name": template.long_name,
        "short_name": template.short_name,
        "description": template.description,
        "relation_type": template.relation_type,
        "name_format": template.name_format,
        "data_type": template.data_type,
        "size": template.size,
        "precision": template.precision,
        "scale": template.scale,
        "is_default": template.is_default,
        "is_hidden": template.is_hidden,
        "is_image": template.is_image,
    }
    values.update(changes)
    return ResolvedField(**values)


def _describe_capacity(description: Optional[str], info: CapacityInfo,
                       resources: ResourceProvider) -> Optional[str]:
    """Rephrase a capacity description for the dimension's display units."""
    if not description:
        return description

    name = info.name.lower()
    us, metric = info.display_unit_us, info.display_unit_metric
    title_us = resources.unit_title(us)
    title_metric = resources.unit_title(metric)

    per_unit = (resources.get("ExportFieldDescriptionCapacity"),
                resources.get("ExportFieldDescriptionRelativeCapacity"))
    if description in per_unit:
        fmt = description
        if us == metric == Unit.UNKNOWN:
            # drop the parenthetical unit clause
            end = fmt.index("(") - 1
            return (fmt[:end] + fmt[-1:]).format(name)
        if us == metric:
            start = fmt.index(";") + 2
            fmt = fmt[:start] + fmt[fmt.index("{1}"):]
            end = fmt.index("{1}") + 3
            return (fmt[:end] + fmt[-2:]).format(name, title_us)
        return fmt.format(name, title_us, title_metric)

    if description == resources.get("ExportFieldDescriptionTotal"):
        fmt = description
        if us == metric:
            end = fmt.index("{1}") + 3
            return (fmt[:end] + fmt[-1:]).format(name, title_us)
        return fmt.format(name, title_us, title_metric)

    if description == resources.get("ExportFieldDescriptionUtilization"):
        return description.format(
            name,
            resources.get("ExportFieldNameLongCapacity").format(info.name),
            resources.get("ExportFieldNameLongTotal").format(info.name),
        )

    # Unknown description templates are kept unmodified
    return description


def expand_capacities(template: FieldTemplate, infos: Sequence[CapacityInfo],
                      resources: ResourceProvider) -> list[ResolvedField]:
    """Expand a capacity template into one field per capacity dimension."""
    fields = []
    for info in infos:
        relative = validate_relative_name(info.name)
        fields.append(_resolved(
            template,
            name=template.name.format(relative),
            long_name=template.long_name.format(relative),
            short_name=_truncate(template.short_name.format(relative)),
            description=_describe_capacity(template.description, info, resources),
        ))
    return fields


def expand_order_custom_properties(template: FieldTemplate,
                                   infos: Sequence[OrderCustomPropertyInfo]) -> list[ResolvedField]:
    """Expand a custom property template into one field per property."""
    fields = []
    for info in infos:
        relative = validate_relative_name(info.name)
        changes = dict(
            name=template.name.format(relative),
            long_name=template.long_name.format(relative),
            short_name=_truncate(template.short_name.format(relative)),
            description=info.description,
        )
        if info.type is OrderCustomPropertyType.NUMERIC:
            changes.update(
                data_type=DataType.DOUBLE,
                size=0,
                scale=NUMERIC_PROPERTY_SCALE,
                precision=NUMERIC_PROPERTY_PRECISION,
            )
        fields.append(_resolved(template, **changes))
    return fields


def expand_address(template: FieldTemplate, address_fields: Sequence[AddressField]) -> list[ResolvedField]:
    """Expand an address template into one field per geocoder component."""
    fields = []
    for address_field in address_fields:
        description = template.description or address_field.description
        fields.append(_resolved(
            template,
            name=address_field.title,
            long_name=address_field.title,
            short_name=_truncate(address_field.title),
            name_format=address_field.type.value,
            description=description,
        ))
    return fields


class TableDescription:
    """
    Expanded field directory for one table type.

    Field order follows the declaration order of the templates, with each
    relation template replaced in place by its expansion.
    """

    def __init__(self,
                 table_type: TableType,
                 templates: Iterable[FieldTemplate],
                 capacities_info: Sequence[CapacityInfo],
                 order_custom_properties_info: Sequence[OrderCustomPropertyInfo],
                 address_fields: Sequence[AddressField],
                 resources: ResourceProvider,
                 source: Optional[Path] = None):
        """
        Expand templates into concrete fields.

        Args:
            table_type: Table kind the templates belong to
            templates: Declared field templates in document order
            capacities_info: Capacity dimensions of the project
            order_custom_properties_info: Custom order properties of the project
            address_fields: Address components reported by the geocoder
            resources: Localized strings for description rewriting
            source: Schema document path, attached to configuration errors

        Raises:
            ConfigurationError: If two expanded fields share a name
        """
        self.type = table_type
        self.capacities_info = tuple(capacities_info)
        self.order_custom_properties_info = tuple(order_custom_properties_info)
        self.address_fields = tuple(address_fields)

        self._fields: dict[str, ResolvedField] = {}
        for template in templates:
            for field in self._expand(template, resources):
                if field.name in self._fields:
                    raise ConfigurationError(
                        f"Duplicate field '{field.name}' in table {table_type.value}", source
                    )
                self._fields[field.name] = field

        logger.debug(f"Table {table_type.value}: {len(self._fields)} fields after expansion")

    def _expand(self, template: FieldTemplate, resources: ResourceProvider) -> list[ResolvedField]:
        if template.relation_type is None:
            return [_resolved(template)]
        if template.relation_type is RelationType.CAPACITIES:
            return expand_capacities(template, self.capacities_info, resources)
        if template.relation_type is RelationType.CUSTOM_ORDER_PROPERTIES:
            return expand_order_custom_properties(template, self.order_custom_properties_info)
        return expand_address(template, self.address_fields)

    @staticmethod
    def validate_relative_name(name: Optional[str]) -> str:
        return validate_relative_name(name)

    @property
    def field_names(self) -> list[str]:
        return list(self._fields)

    @property
    def fields(self) -> list[ResolvedField]:
        return list(self._fields.values())

    def get_field_info(self, name: str) -> Optional[ResolvedField]:
        return self._fields.get(name)

    def __contains__(self, name: str) -> bool:
        return name in self._fields

    def __len__(self) -> int:
        return len(self._fields)

    def get_capacity_index(self, field: ResolvedField) -> int:
        """
        Position of the capacity dimension a field was expanded from.

        Raises:
            InvariantViolation: If no dimension produces the field's name
        """
        return self._relation_index(
            field, [validate_relative_name(info.name) for info in self.capacities_info]
        )

    def get_order_custom_property_index(self, field: ResolvedField) -> int:
        """
        Position of the custom order property a field was expanded from.

        Raises:
            InvariantViolation: If no property produces the field's name
        """
        return self._relation_index(
            field, [validate_relative_name(info.name) for info in self.order_custom_properties_info]
        )

    @staticmethod
    def _relation_index(field: ResolvedField, relative_names: list[str]) -> int:
        if field.name_format:
            for index, relative in enumerate(relative_names):
                if field.name_format.format(relative) == field.name:
                    return index
        raise InvariantViolation(f"Field '{field.name}' does not match any runtime entry")
