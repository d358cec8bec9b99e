"""
Schema catalog loaded from the export structure document.

The document declares reserved words, hard fields, the table pattern of every
export type and the field templates of every table. The catalog reads it once,
expands the templates against the project's runtime dimensions and is
read-only afterwards.

Usage:
    catalog = SchemaCatalog(capacities_info=[CapacityInfo(name="Weight")])
    description = catalog.get_table_description(TableType.ROUTES)
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from collections.abc import Sequence
from importlib import resources as package_resources
from pathlib import Path
from typing import Optional

from ..config.settings import ConfigurationError
from ..domain.enums import DataType, ExportType, RelationType, TableIndexType, TableType
from ..domain.models import (
    AddressField,
    CapacityInfo,
    FieldTemplate,
    OrderCustomPropertyInfo,
    TableIndex,
    TableInfo,
)
from ..resources import ResourceProvider
from .description import TableDescription

logger = logging.getLogger(__name__)

BUNDLED_STRUCTURE = "export_structure.xml"

NODE_ROOT = "exportstructure"
NODE_RESERVED_WORDS = "reservedwords"
NODE_HARD_FIELDS = "hardfields"
NODE_EXPORT_PATTERNS = "exportpatterns"
NODE_TABLE_DEFINITIONS = "tabledefinitions"


def _tag(node: ET.Element) -> str:
    return node.tag.lower() if isinstance(node.tag, str) else ""


def _children(node: ET.Element, name: str) -> list[ET.Element]:
    return [child for child in node if _tag(child) == name]


def _child(node: ET.Element, name: str) -> Optional[ET.Element]:
    found = _children(node, name)
    return found[0] if found else None


def _parse_bool(value: Optional[str], default: bool) -> bool:
    if value is None:
        return default
    lowered = value.strip().lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    raise ValueError(f"'{value}' is not a boolean")


def _field_names(node: Optional[ET.Element]) -> list[str]:
    if node is None:
        return []
    return [field.attrib["Name"] for field in _children(node, "field")]


class SchemaCatalog:
    """
    Declarative export schema: patterns, table descriptions and reserved words.

    Raises ConfigurationError (with the document path attached) for malformed
    XML, unknown sections or enum values, missing attributes, invalid index
    definitions and duplicate expanded field names.
    """

    def __init__(self,
                 capacities_info: Sequence[CapacityInfo] = (),
                 order_custom_properties_info: Sequence[OrderCustomPropertyInfo] = (),
                 address_fields: Sequence[AddressField] = (),
                 resources: Optional[ResourceProvider] = None,
                 structure_path: Optional[Path] = None):
        """
        Load and expand the export structure.

        Args:
            capacities_info: Capacity dimensions of the project
            order_custom_properties_info: Custom order properties of the project
            address_fields: Address components reported by the geocoder
            resources: Localized strings; the bundled set when omitted
            structure_path: Schema document; the bundled one when omitted
        """
        self.capacities_info = tuple(capacities_info)
        self.order_custom_properties_info = tuple(order_custom_properties_info)
        self.address_fields = tuple(address_fields)
        self.resources = resources or ResourceProvider()
        self.source = structure_path or Path(BUNDLED_STRUCTURE)

        self._reserved_words: list[str] = []
        self._hard_fields: list[str] = []
        self._patterns: dict[ExportType, list[TableInfo]] = {}
        self._table_names: dict[TableType, str] = {}
        self._descriptions: dict[TableType, TableDescription] = {}

        root = self._read_document(structure_path)
        try:
            self._load(root)
        except (KeyError, ValueError) as e:
            raise ConfigurationError(f"Invalid export structure: {e}", self.source) from e

        logger.debug(
            f"Schema catalog loaded from {self.source}: {len(self._patterns)} patterns, "
            f"{len(self._descriptions)} tables, {len(self._reserved_words)} reserved words"
        )

    def _read_document(self, structure_path: Optional[Path]) -> ET.Element:
        try:
            if structure_path is None:
                text = package_resources.files("routexport.data").joinpath(BUNDLED_STRUCTURE).read_text(
                    encoding="utf-8"
                )
                return ET.fromstring(text)
            return ET.parse(structure_path).getroot()
        except ET.ParseError as e:
            raise ConfigurationError(f"Malformed export structure: {e}", self.source) from e
        except OSError as e:
            raise ConfigurationError(f"Cannot read export structure: {e}", self.source) from e

    def _load(self, root: ET.Element) -> None:
        if _tag(root) != NODE_ROOT:
            raise ConfigurationError(f"Unexpected root node '{root.tag}'", self.source)

        for node in root:
            name = _tag(node)
            if not name:
                continue
            if name == NODE_RESERVED_WORDS:
                self._load_reserved_words(node)
            elif name == NODE_HARD_FIELDS:
                self._hard_fields = _field_names(node)
            elif name == NODE_EXPORT_PATTERNS:
                self._load_patterns(node)
            elif name == NODE_TABLE_DEFINITIONS:
                self._load_table_definitions(node)
            else:
                raise ConfigurationError(f"Unknown export structure section '{node.tag}'", self.source)

    def _load_reserved_words(self, node: ET.Element) -> None:
        text = (node.text or "").replace("\n", "").replace("\r", "").replace(" ", "").replace("\t", "")
        self._reserved_words = [word for word in text.split(",") if word]

    def _load_patterns(self, node: ET.Element) -> None:
        for pattern_node in _children(node, "exportpattern"):
            export_type = ExportType(pattern_node.attrib["Type"])
            tables = []
            tables_node = _child(pattern_node, "tables")
            for table_node in _children(tables_node, "table") if tables_node is not None else []:
                tables.append(self._load_table_info(table_node))
            self._patterns[export_type] = tables

    def _load_table_info(self, node: ET.Element) -> TableInfo:
        table_type = TableType(node.attrib["Type"])
        indexes = []
        indexes_node = _child(node, "indexes")
        for index_node in _children(indexes_node, "index") if indexes_node is not None else []:
            index = TableIndex(
                type=TableIndexType(index_node.attrib["Type"]),
                fields=tuple(_field_names(_child(index_node, "fields"))),
            )
            if not index.is_valid:
                raise ConfigurationError(
                    f"{index.type.value} index on {table_type.value} has {len(index.fields)} field(s)",
                    self.source,
                )
            indexes.append(index)

        return TableInfo(
            type=table_type,
            ignorable_fields=frozenset(_field_names(_child(node, "ignorablefields"))),
            indexes=tuple(indexes),
        )

    def _load_table_definitions(self, node: ET.Element) -> None:
        for definition_node in _children(node, "tabledefinition"):
            table_type = TableType(definition_node.attrib["Type"])
            self._table_names[table_type] = definition_node.attrib.get("Name", table_type.value)
            fields_node = _child(definition_node, "fields")
            templates = [
                self._load_template(field_node)
                for field_node in (_children(fields_node, "field") if fields_node is not None else [])
            ]
            self._descriptions[table_type] = TableDescription(
                table_type,
                templates,
                self.capacities_info,
                self.order_custom_properties_info,
                self.address_fields,
                self.resources,
                self.source,
            )

    def _load_template(self, node: ET.Element) -> FieldTemplate:
        attrib = node.attrib
        name = attrib["Name"]
        relation = attrib.get("RelationType")
        relation_type = RelationType(relation) if relation else None
        description = attrib.get("Description")

        return FieldTemplate(
            name=name,
            long_name=self.resources.get(attrib["LongName"]),
            short_name=self.resources.get(attrib["ShortName"]),
            description=self.resources.get(description) if description else None,
            relation_type=relation_type,
            name_format=name if relation_type else None,
            data_type=DataType(attrib["ADOType"]),
            size=int(attrib.get("Size", 0)),
            precision=int(attrib.get("Precision", 0)),
            scale=int(attrib.get("Scale", 0)),
            is_default=_parse_bool(attrib.get("Default"), True),
            is_hidden=_parse_bool(attrib.get("Hidden"), False),
            is_image=_parse_bool(attrib.get("Image"), False),
        )

    # Public API

    @property
    def reserved_words(self) -> list[str]:
        return list(self._reserved_words)

    @property
    def hard_fields(self) -> list[str]:
        return list(self._hard_fields)

    def get_pattern(self, export_type: ExportType) -> list[TableInfo]:
        """Table pattern of an export type; empty when the type is not declared."""
        return list(self._patterns.get(export_type, []))

    def get_table_description(self, table_type: TableType) -> Optional[TableDescription]:
        return self._descriptions.get(table_type)

    def get_table_name(self, table_type: TableType) -> str:
        return self._table_names.get(table_type, table_type.value)

    def is_name_reserved(self, name: str) -> bool:
        """
        Check a column or table name against the reserved word list.

        A name is reserved when any of its space-separated tokens equals a
        reserved word, ignoring case.
        """
        reserved = {word.upper() for word in self._reserved_words}
        return any(token.upper() in reserved for token in name.split(" ") if token)
