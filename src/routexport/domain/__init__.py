"""
Domain Models and Types

This module contains the enumerations, schema models and planning entities
shared by the schema catalog, the value resolver and the sinks.

Models:
- CapacityInfo, OrderCustomPropertyInfo, AddressField: runtime dimensions
- FieldTemplate, ResolvedField: declared and expanded fields
- TableIndex, TableInfo: export pattern entries

Entities:
- Schedule, Route, Stop, Order, Location and their parts
"""

from .entities import (
    Address,
    Break,
    Direction,
    Driver,
    FuelType,
    Location,
    Order,
    Route,
    Schedule,
    Stop,
    TimeWindow,
    Vehicle,
)
from .enums import (
    AddressPart,
    DataType,
    ExportType,
    OrderCustomPropertyType,
    OrderPriority,
    OrderType,
    RelationType,
    StopType,
    TableIndexType,
    TableType,
    Unit,
)
from .models import (
    AddressField,
    CapacityInfo,
    FieldTemplate,
    OrderCustomPropertyInfo,
    ResolvedField,
    TableIndex,
    TableInfo,
)

__all__ = [
    "Address", "Break", "Direction", "Driver", "FuelType", "Location", "Order",
    "Route", "Schedule", "Stop", "TimeWindow", "Vehicle",
    "AddressPart", "DataType", "ExportType", "OrderCustomPropertyType", "OrderPriority",
    "OrderType", "RelationType", "StopType", "TableIndexType", "TableType", "Unit",
    "AddressField", "CapacityInfo", "FieldTemplate", "OrderCustomPropertyInfo",
    "ResolvedField", "TableIndex", "TableInfo",
]
