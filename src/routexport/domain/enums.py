"""
Export Enumerations

Core enums shared by the schema catalog, the value resolver and the sinks.
Values match the attribute vocabulary of the export structure document and
the profile-storage document, so they round-trip unchanged.
"""

from enum import Enum


class ExportType(str, Enum):
    """Export profile kinds."""
    ACCESS = "Access"             # All tables into one database file
    TEXT_ROUTES = "TextRoutes"    # Route rows into a delimited text file
    TEXT_STOPS = "TextStops"      # Stop rows (plus unassigned orders)
    TEXT_ORDERS = "TextOrders"    # Order stops (plus unassigned orders)
    SHAPE_ROUTES = "ShapeRoutes"  # Short-name profiles only, not exportable
    SHAPE_STOPS = "ShapeStops"    # Short-name profiles only, not exportable

    @property
    def is_short_name_mode(self) -> bool:
        return self in (ExportType.SHAPE_ROUTES, ExportType.SHAPE_STOPS)


class TableType(str, Enum):
    """Exported table kinds."""
    SCHEDULES = "Schedules"
    ROUTES = "Routes"
    STOPS = "Stops"
    ORDERS = "Orders"
    SCHEMA = "Schema"


class TableIndexType(str, Enum):
    """Index kinds declared in export patterns."""
    PRIMARY = "Primary"     # Exactly one field, unique
    SIMPLE = "Simple"       # Exactly one field
    MULTIPLE = "Multiple"   # Composite, more than one field


class RelationType(str, Enum):
    """Runtime collections a field template can expand over."""
    CAPACITIES = "Capacities"
    CUSTOM_ORDER_PROPERTIES = "CustomOrderProperties"
    ADDRESS = "Address"


class DataType(str, Enum):
    """Column data types (ADOType attribute values)."""
    SMALL_INT = "SmallInt"
    INTEGER = "Integer"
    SINGLE = "Single"
    DOUBLE = "Double"
    DATE = "Date"
    GUID = "Guid"
    WCHAR = "WChar"
    LONG_VAR_WCHAR = "LongVarWChar"
    LONG_VAR_BINARY = "LongVarBinary"

    @property
    def is_integer(self) -> bool:
        return self in (DataType.SMALL_INT, DataType.INTEGER)

    @property
    def is_floating(self) -> bool:
        return self in (DataType.SINGLE, DataType.DOUBLE)

    @property
    def is_text(self) -> bool:
        return self in (DataType.WCHAR, DataType.LONG_VAR_WCHAR)


class StopType(str, Enum):
    """Kind of object a route stop visits."""
    ORDER = "Order"
    LOCATION = "Location"
    LUNCH = "Lunch"

    @property
    def code(self) -> int:
        return _STOP_TYPE_CODES[self]


_STOP_TYPE_CODES = {StopType.ORDER: 0, StopType.LOCATION: 1, StopType.LUNCH: 2}


class OrderType(str, Enum):
    """Order service kind."""
    PICKUP = "Pickup"
    DELIVERY = "Delivery"

    @property
    def code(self) -> int:
        return 0 if self is OrderType.PICKUP else 1


class OrderPriority(str, Enum):
    """Order priority."""
    HIGH = "High"
    NORMAL = "Normal"

    @property
    def code(self) -> int:
        return 0 if self is OrderPriority.HIGH else 1


class OrderCustomPropertyType(str, Enum):
    """Value type of a custom order property."""
    TEXT = "Text"
    NUMERIC = "Numeric"


class Unit(str, Enum):
    """Display units for capacity dimensions."""
    UNKNOWN = "Unknown"
    POUND = "Pound"
    KILOGRAM = "Kilogram"
    TON = "Ton"
    METRIC_TON = "MetricTon"
    CUBIC_FOOT = "CubicFoot"
    CUBIC_METER = "CubicMeter"
    GALLON_US = "GallonUS"
    LITER = "Liter"


class AddressPart(str, Enum):
    """Address components a geocoding service may report."""
    UNIT = "Unit"
    FULL_ADDRESS = "FullAddress"
    ADDRESS_LINE = "AddressLine"
    LOCALITY1 = "Locality1"
    LOCALITY2 = "Locality2"
    LOCALITY3 = "Locality3"
    COUNTY_PREFECTURE = "CountyPrefecture"
    POSTAL_CODE1 = "PostalCode1"
    POSTAL_CODE2 = "PostalCode2"
    STATE_PROVINCE = "StateProvince"
    COUNTRY = "Country"


class ManeuverType(str, Enum):
    """Direction maneuver kinds relevant to itinerary text."""
    DEPART = "Depart"
    STOP = "Stop"
    TURN = "Turn"
    STRAIGHT = "Straight"
    OTHER = "Other"


class BreakType(str, Enum):
    """Route break kinds."""
    TIME_WINDOW = "TimeWindow"
    DRIVE_TIME = "DriveTime"
    WORK_TIME = "WorkTime"
