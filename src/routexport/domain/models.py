"""
Export Domain Models

Pydantic models for the declarative schema and the runtime dimension
providers. Everything here is immutable once built; table descriptions and
definitions hold these by reference.
"""

from typing import Optional

from pydantic import BaseModel, Field

from .enums import (
    AddressPart,
    DataType,
    OrderCustomPropertyType,
    RelationType,
    TableIndexType,
    TableType,
    Unit,
)


class CapacityInfo(BaseModel):
    """One capacity dimension of the project (Weight, Volume, ...)."""
    name: str = Field(..., description="Capacity name as entered by the user")
    display_unit_us: Unit = Field(default=Unit.UNKNOWN, description="Display unit for US locales")
    display_unit_metric: Unit = Field(default=Unit.UNKNOWN, description="Display unit for metric locales")

    class Config:
        """Pydantic configuration."""
        frozen = True


class OrderCustomPropertyInfo(BaseModel):
    """One custom order property declared by the project."""
    name: str = Field(..., description="Property name")
    type: OrderCustomPropertyType = Field(default=OrderCustomPropertyType.TEXT, description="Value type")
    description: Optional[str] = Field(None, description="Property description")

    class Config:
        """Pydantic configuration."""
        frozen = True


class AddressField(BaseModel):
    """An address component reported by the geocoder."""
    type: AddressPart = Field(..., description="Component kind")
    title: str = Field(..., description="Localized component title")
    description: Optional[str] = Field(None, description="Component description")

    class Config:
        """Pydantic configuration."""
        frozen = True


class FieldTemplate(BaseModel):
    """A field as declared in the export structure document.

    For relation templates ``name`` is a format string with a ``{0}``
    placeholder and ``name_format`` repeats it so the expanded copies still
    know which template they came from.
    """
    name: str = Field(..., description="Field key or name format")
    long_name: str = Field(..., description="Long display name (format for relation templates)")
    short_name: str = Field(..., description="Short display name (format for relation templates)")
    description: Optional[str] = Field(None, description="Field description")
    relation_type: Optional[RelationType] = Field(None, description="Runtime collection to expand over")
    name_format: Optional[str] = Field(None, description="Originating name format for relation fields")
    data_type: DataType = Field(..., description="Column data type")
    size: int = Field(default=0, description="Column size")
    precision: int = Field(default=0, description="Numeric precision")
    scale: int = Field(default=0, description="Numeric scale")
    is_default: bool = Field(default=True, description="Selected by default in new profiles")
    is_hidden: bool = Field(default=False, description="Only available to report sources")
    is_image: bool = Field(default=False, description="Holds rendered map image bytes")

    class Config:
        """Pydantic configuration."""
        frozen = True


class ResolvedField(FieldTemplate):
    """A field template with its relation placeholders filled in."""


class TableIndex(BaseModel):
    """Declarative index attached to a table pattern."""
    type: TableIndexType
    fields: tuple[str, ...] = Field(default_factory=tuple, description="Indexed field names")

    class Config:
        """Pydantic configuration."""
        frozen = True

    @property
    def is_valid(self) -> bool:
        if self.type is TableIndexType.MULTIPLE:
            return len(self.fields) > 1
        return len(self.fields) == 1


class TableInfo(BaseModel):
    """Table entry of an export pattern."""
    type: TableType
    ignorable_fields: frozenset[str] = Field(default_factory=frozenset, description="Fields never offered")
    indexes: tuple[TableIndex, ...] = Field(default_factory=tuple, description="Index definitions")

    class Config:
        """Pydantic configuration."""
        frozen = True
