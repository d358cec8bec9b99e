"""
Field value resolution for export rows.

Every selected field of a table is resolved per entity into a DataWrapper.
Plain fields dispatch through one lookup table per entity category (schedule,
route, stop or order, the stop's work object, route-only stop data); relation
fields read the entity's capacity, custom property or address vectors at the
index the table description derives from the field name.

Distances are stored in miles and durations in minutes.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Any, Optional, Union

from ..config.settings import LocaleConfig
from ..domain.entities import (
    Break,
    Location,
    Order,
    Route,
    Schedule,
    Stop,
    TimeWindow,
)
from ..domain.enums import BreakType, RelationType, StopType
from ..domain.models import ResolvedField
from ..resources import ResourceProvider
from ..schema.description import TableDescription
from ..types import DataWrapper, InvariantViolation

logger = logging.getLogger(__name__)

KM_PER_MILE = 1.609344

ADDRESS_DELIMITER = ", "
ROUTE_TIME_STRING_FORMAT = "{0} - {1}"

# Extended stop type strings
STOP_TYPE_EX_START_LOCATION = "StartLocation"
STOP_TYPE_EX_FINISH_LOCATION = "FinishLocation"
STOP_TYPE_EX_RENEWAL_LOCATION = "RenewalLocation"
STOP_TYPE_EX_LUNCH = "Lunch"
STOP_TYPE_EX_STOP = "Stop"

WorkObject = Union[Order, Location]


class FieldKey(str, Enum):
    """Plain (non-relation) field names of the export structure."""
    # Identifiers
    ID = "ID"
    SCHEDULE_ID = "ScheduleID"
    ROUTE_ID = "RouteID"
    STOP_ID = "StopID"
    ORDER_ID = "OrderID"
    LOAD_AT_ID = "LoadAtID"

    # Schedule
    PLANNED_DATE = "PlannedDate"

    # Route
    NAME = "Name"
    VEHICLE_NAME = "VehicleName"
    DRIVER_NAME = "DriverName"
    START_LOCATION_NAME = "StartLocationName"
    END_LOCATION_NAME = "EndLocationName"
    RENEWAL_LOCATIONS = "RenewalLocations"
    START_TW_DAY = "StartTWDay"
    START_TW_FROM = "StartTWFrom"
    START_TW_FROM_STRING = "StartTWFromString"
    START_TW_TO = "StartTWTo"
    START_TW_TO_STRING = "StartTWToString"
    FIXED_COST = "FixedCost"
    COST_PER_MILE = "CostPerMile"
    COST_PER_KM = "CostPerKM"
    COST_PER_HOUR = "CostPerHour"
    COST_PER_HOUR_OT = "CostPerHourOT"
    TIME_BEFORE_OT = "TimeBeforeOT"
    FUEL_TYPE = "FuelType"
    FUEL_ECONOMY = "FuelEconomy"
    CO2_EMISSION = "CO2Emission"
    BREAKS = "Breaks"
    MAX_ORDERS = "MaxOrders"
    MAX_TOTAL_DURATION = "MaxTotalDuration"
    MAX_TRAVEL_DURATION = "MaxTravelDuration"
    MAX_TRAVEL_MILES = "MaxTravelMiles"
    MAX_TRAVEL_KM = "MaxTravelKM"
    VEHICLE_SPECIALTIES = "VehicleSpecialties"
    DRIVER_SPECIALTIES = "DriverSpecialties"
    ZONES = "Zones"
    COMMENTS = "Comments"
    START_DATE = "StartDate"
    START_TIME = "StartTime"
    START_TIME_STRING = "StartTimeString"
    END_DATE = "EndDate"
    END_TIME = "EndTime"
    END_TIME_STRING = "EndTimeString"
    ROUTE_TIME_STRING = "RouteTimeString"
    TOTAL_STOPS = "TotalStops"
    TOTAL_ORDERS = "TotalOrders"
    TOTAL_SERVICE_TIME = "TotalServiceTime"
    TOTAL_TRAVEL_TIME = "TotalTravelTime"
    TOTAL_WAIT_TIME = "TotalWaitTime"
    TOTAL_TIME = "TotalTime"
    TOTAL_OT = "TotalOT"
    TOTAL_COST = "TotalCost"
    TOTAL_MILES = "TotalMiles"
    TOTAL_KM = "TotalKM"
    TOTAL_MILES_PER_STOP = "TotalMilesPerStop"
    TOTAL_KM_PER_STOP = "TotalKMPerStop"
    TOTAL_CO2_EMISSION = "TotalCO2Emission"
    TOTAL_VIOLATIONS = "TotalViolations"
    TOTAL_VIOLATION_TIME = "TotalViolationTime"
    TOTAL_RUNS = "TotalRuns"
    TIME_UTILIZATION = "TimeUtilization"
    OVERVIEW_MAP = "OverviewMap"

    # Stop and order
    ROUTE_NAME = "RouteName"
    STOP_TYPE = "StopType"
    STOP_TYPE_STRING = "StopTypeString"
    STOP_TYPE_EX_STRING = "StopTypeExString"
    STOP_NAME_PREFIX = "StopNamePrefix"
    STOP_NAME_POSTFIX = "StopNamePostfix"
    SEQUENCE = "Sequence"
    ORDER_SEQUENCE = "OrderSequence"
    FULL_ADDRESS = "FullAddress"
    FULL_ADDRESS_SHORT = "FullAddressShort"
    CONFIDENCE = "Confidence"
    X = "X"
    Y = "Y"
    ORDER_TYPE = "OrderType"
    ORDER_TYPE_STRING = "OrderTypeString"
    PRIORITY = "Priority"
    PRIORITY_STRING = "PriorityString"
    SERVICE_TIME = "ServiceTime"
    TW_DAY = "TWDay"
    TW_FROM = "TWFrom"
    TW_TO = "TWTo"
    TW2_DAY = "TW2Day"
    TW2_FROM = "TW2From"
    TW2_TO = "TW2To"
    TW_FROM_STRING = "TWFromString"
    TW_TO_STRING = "TWToString"
    TW_FROM2_STRING = "TWFrom2String"
    TW_TO2_STRING = "TWTo2String"
    TW_STRING = "TWString"
    TW2_STRING = "TW2String"
    MAX_VIOLATION_TIME = "MaxViolationTime"
    TRAVEL_TIME = "TravelTime"
    WAIT_TIME = "WaitTime"
    ARRIVE_DATE = "ArriveDate"
    ARRIVE_TIME = "ArriveTime"
    ARRIVE_TIME_STRING = "ArriveTimeString"
    DISTANCE_FROM_PREVIOUS = "DistanceFromPrevious"
    STOP_VICINITY_MAP = "StopVicinityMap"
    DIRECTIONS = "Directions"


# Binary payloads produced by the database sink, never by the resolver
SINK_RENDERED_KEYS = frozenset({FieldKey.OVERVIEW_MAP, FieldKey.STOP_VICINITY_MAP, FieldKey.DIRECTIONS})


# =============================================================================
# Conversion helpers
# =============================================================================

def time_to_minutes(time: timedelta) -> float:
    """Minutes after midnight of the time-of-day part of a duration."""
    seconds = time.seconds
    return 60.0 * (seconds // 3600) + (seconds % 3600) // 60 + (seconds % 60) / 60.0


def datetime_to_minutes(value: Optional[datetime]) -> float:
    if value is None:
        return 0.0
    return time_to_minutes(timedelta(hours=value.hour, minutes=value.minute, seconds=value.second))


def datetime_to_date(value: Optional[datetime]) -> Optional[date]:
    return value.date() if value is not None else None


def calculate_cost_per_mile(fuel_price: float, fuel_economy: float) -> float:
    return 0.0 if fuel_economy == 0 else fuel_price / fuel_economy


def calculate_distance_per_stop(distance: float, stop_count: int) -> float:
    return distance / stop_count if stop_count > 0 else distance


def calculate_time_utilization(route: Route) -> float:
    if route.total_time > 0:
        return (route.total_time - route.wait_time) / route.total_time * 100
    return 0.0


def calculate_total_co2_emission(route: Route) -> float:
    economy = route.vehicle.fuel_economy
    if economy == 0:
        return 0.0
    return route.vehicle.fuel_type.co2_emission * route.total_distance / economy


def _item(values: Sequence[Any], index: int) -> Any:
    return values[index] if 0 <= index < len(values) else None


def _location_position(stop: Stop) -> str:
    """Start, finish or renewal, by the stop's place in its route."""
    if stop.sequence_number == 1:
        return STOP_TYPE_EX_START_LOCATION
    if stop.route is not None and stop.sequence_number == len(stop.route.stops):
        return STOP_TYPE_EX_FINISH_LOCATION
    return STOP_TYPE_EX_RENEWAL_LOCATION


@dataclass
class _StopContext:
    """A stop row: either a route stop or an unassigned order."""
    schedule_id: uuid.UUID
    stop: Optional[Stop]
    work_object: Optional[WorkObject]

    @property
    def order(self) -> Optional[Order]:
        return self.work_object if isinstance(self.work_object, Order) else None


# =============================================================================
# Lookup tables
# =============================================================================

ScheduleExtractor = Callable[["FieldValueResolver", Schedule], Any]
RouteExtractor = Callable[["FieldValueResolver", uuid.UUID, Route], Any]
StopRowExtractor = Callable[["FieldValueResolver", _StopContext], Any]
WorkObjectExtractor = Callable[["FieldValueResolver", WorkObject], Any]
RouteStopExtractor = Callable[["FieldValueResolver", Stop], Any]


_SCHEDULE_FIELDS: dict[FieldKey, ScheduleExtractor] = {
    FieldKey.ID: lambda r, schedule: schedule.id,
    FieldKey.PLANNED_DATE: lambda r, schedule: schedule.planned_date,
}

_ROUTE_FIELDS: dict[FieldKey, RouteExtractor] = {
    FieldKey.ID: lambda r, sid, route: route.id,
    FieldKey.SCHEDULE_ID: lambda r, sid, route: sid,
    FieldKey.NAME: lambda r, sid, route: route.name,
    FieldKey.VEHICLE_NAME: lambda r, sid, route: route.vehicle.name,
    FieldKey.DRIVER_NAME: lambda r, sid, route: route.driver.name,
    FieldKey.START_LOCATION_NAME: lambda r, sid, route: route.start_location.name if route.start_location else "",
    FieldKey.END_LOCATION_NAME: lambda r, sid, route: route.end_location.name if route.end_location else "",
    FieldKey.RENEWAL_LOCATIONS: lambda r, sid, route: r.join_names(route.renewal_locations),
    FieldKey.START_TW_DAY: lambda r, sid, route: route.start_time_window.day,
    FieldKey.START_TW_FROM: lambda r, sid, route: time_to_minutes(route.start_time_window.from_time),
    FieldKey.START_TW_FROM_STRING: lambda r, sid, route: r.time_to_string(route.start_time_window.from_time),
    FieldKey.START_TW_TO: lambda r, sid, route: time_to_minutes(route.start_time_window.to_time),
    FieldKey.START_TW_TO_STRING: lambda r, sid, route: r.time_to_string(route.start_time_window.to_time),
    FieldKey.FIXED_COST: lambda r, sid, route: route.vehicle.fixed_cost + route.driver.fixed_cost,
    FieldKey.COST_PER_MILE: lambda r, sid, route: calculate_cost_per_mile(
        route.vehicle.fuel_type.price, route.vehicle.fuel_economy),
    FieldKey.COST_PER_KM: lambda r, sid, route: calculate_cost_per_mile(
        route.vehicle.fuel_type.price, route.vehicle.fuel_economy) / KM_PER_MILE,
    FieldKey.COST_PER_HOUR: lambda r, sid, route: route.driver.per_hour_salary,
    FieldKey.COST_PER_HOUR_OT: lambda r, sid, route: route.driver.per_hour_ot_salary,
    FieldKey.TIME_BEFORE_OT: lambda r, sid, route: route.driver.time_before_ot,
    FieldKey.FUEL_TYPE: lambda r, sid, route: route.vehicle.fuel_type.name,
    FieldKey.FUEL_ECONOMY: lambda r, sid, route: route.vehicle.fuel_economy,
    FieldKey.CO2_EMISSION: lambda r, sid, route: route.vehicle.fuel_type.co2_emission,
    FieldKey.BREAKS: lambda r, sid, route: r.breaks_to_string(route.breaks),
    FieldKey.MAX_ORDERS: lambda r, sid, route: route.max_orders,
    FieldKey.MAX_TOTAL_DURATION: lambda r, sid, route: route.max_total_duration,
    FieldKey.MAX_TRAVEL_DURATION: lambda r, sid, route: route.max_travel_duration,
    FieldKey.MAX_TRAVEL_MILES: lambda r, sid, route: route.max_travel_distance,
    FieldKey.MAX_TRAVEL_KM: lambda r, sid, route: route.max_travel_distance * KM_PER_MILE,
    FieldKey.VEHICLE_SPECIALTIES: lambda r, sid, route: r.join_names(route.vehicle.specialties),
    FieldKey.DRIVER_SPECIALTIES: lambda r, sid, route: r.join_names(route.driver.specialties),
    FieldKey.ZONES: lambda r, sid, route: r.join_names(route.zones),
    FieldKey.COMMENTS: lambda r, sid, route: route.comment,
    FieldKey.START_DATE: lambda r, sid, route: datetime_to_date(route.start_time),
    FieldKey.START_TIME: lambda r, sid, route: datetime_to_minutes(route.start_time),
    FieldKey.START_TIME_STRING: lambda r, sid, route: r.datetime_to_string(route.start_time),
    FieldKey.END_DATE: lambda r, sid, route: datetime_to_date(route.end_time),
    FieldKey.END_TIME: lambda r, sid, route: datetime_to_minutes(route.end_time),
    FieldKey.END_TIME_STRING: lambda r, sid, route: r.datetime_to_string(route.end_time),
    FieldKey.ROUTE_TIME_STRING: lambda r, sid, route: ROUTE_TIME_STRING_FORMAT.format(
        r.datetime_to_string(route.start_time), r.datetime_to_string(route.end_time)),
    FieldKey.TOTAL_STOPS: lambda r, sid, route: len(route.stops),
    FieldKey.TOTAL_ORDERS: lambda r, sid, route: route.order_count,
    FieldKey.TOTAL_SERVICE_TIME: lambda r, sid, route: route.total_service_time,
    FieldKey.TOTAL_TRAVEL_TIME: lambda r, sid, route: route.travel_time,
    FieldKey.TOTAL_WAIT_TIME: lambda r, sid, route: route.wait_time,
    FieldKey.TOTAL_TIME: lambda r, sid, route: route.total_time,
    FieldKey.TOTAL_OT: lambda r, sid, route: route.overtime,
    FieldKey.TOTAL_COST: lambda r, sid, route: route.cost,
    FieldKey.TOTAL_MILES: lambda r, sid, route: route.total_distance,
    FieldKey.TOTAL_KM: lambda r, sid, route: route.total_distance * KM_PER_MILE,
    FieldKey.TOTAL_MILES_PER_STOP: lambda r, sid, route: calculate_distance_per_stop(
        route.total_distance, len(route.stops)),
    FieldKey.TOTAL_KM_PER_STOP: lambda r, sid, route: calculate_distance_per_stop(
        route.total_distance * KM_PER_MILE, len(route.stops)),
    FieldKey.TOTAL_CO2_EMISSION: lambda r, sid, route: calculate_total_co2_emission(route),
    FieldKey.TOTAL_VIOLATIONS: lambda r, sid, route: route.violated_stop_count,
    FieldKey.TOTAL_VIOLATION_TIME: lambda r, sid, route: route.violation_time,
    FieldKey.TOTAL_RUNS: lambda r, sid, route: route.run_count,
    FieldKey.TIME_UTILIZATION: lambda r, sid, route: calculate_time_utilization(route),
}

# Fields every stop row answers, route stop or unassigned order
_STOP_ROW_FIELDS: dict[FieldKey, StopRowExtractor] = {
    FieldKey.SCHEDULE_ID: lambda r, ctx: ctx.schedule_id,
    FieldKey.NAME: lambda r, ctx: r.stop_name(ctx),
    FieldKey.SERVICE_TIME: lambda r, ctx: ctx.stop.time_at_stop if ctx.stop is not None else ctx.order.service_time,
    FieldKey.STOP_ID: lambda r, ctx: ctx.stop.id if ctx.stop is not None else ctx.work_object.id,
    FieldKey.ORDER_ID: lambda r, ctx: ctx.order.id if ctx.order is not None else None,
}

# Fields read from the visited order or location; null for breaks
_WORK_OBJECT_FIELDS: dict[FieldKey, WorkObjectExtractor] = {
    FieldKey.FULL_ADDRESS: lambda r, obj: obj.address.full_address if obj.address else "",
    FieldKey.FULL_ADDRESS_SHORT: lambda r, obj: r.short_address(obj),
    FieldKey.CONFIDENCE: lambda r, obj: obj.address.match_method if obj.address else "",
    FieldKey.X: lambda r, obj: obj.geolocation.x if obj.geolocation is not None else 0.0,
    FieldKey.Y: lambda r, obj: obj.geolocation.y if obj.geolocation is not None else 0.0,
    FieldKey.PLANNED_DATE: lambda r, obj: obj.planned_date if isinstance(obj, Order) else None,
    FieldKey.ORDER_TYPE: lambda r, obj: obj.type.code if isinstance(obj, Order) else None,
    FieldKey.ORDER_TYPE_STRING: lambda r, obj: obj.type.value if isinstance(obj, Order) else "",
    FieldKey.PRIORITY: lambda r, obj: obj.priority.code if isinstance(obj, Order) else None,
    FieldKey.PRIORITY_STRING: lambda r, obj: obj.priority.value if isinstance(obj, Order) else "",
    FieldKey.TW_DAY: lambda r, obj: r.time_window_day(obj.time_window),
    FieldKey.TW_FROM: lambda r, obj: r.time_window_minutes(obj.time_window, True),
    FieldKey.TW_TO: lambda r, obj: r.time_window_minutes(obj.time_window, False),
    FieldKey.TW2_DAY: lambda r, obj: r.time_window_day(obj.time_window2),
    FieldKey.TW2_FROM: lambda r, obj: r.time_window_minutes(obj.time_window2, True),
    FieldKey.TW2_TO: lambda r, obj: r.time_window_minutes(obj.time_window2, False),
    FieldKey.TW_FROM_STRING: lambda r, obj: r.time_window_bound_string(obj.time_window, True),
    FieldKey.TW_TO_STRING: lambda r, obj: r.time_window_bound_string(obj.time_window, False),
    FieldKey.TW_FROM2_STRING: lambda r, obj: r.time_window_bound_string(obj.time_window2, True),
    FieldKey.TW_TO2_STRING: lambda r, obj: r.time_window_bound_string(obj.time_window2, False),
    FieldKey.TW_STRING: lambda r, obj: r.time_window_to_string(obj.time_window),
    FieldKey.TW2_STRING: lambda r, obj: r.time_window_to_string(obj.time_window2),
    FieldKey.MAX_VIOLATION_TIME: lambda r, obj: obj.max_violation_time if isinstance(obj, Order) else 0.0,
    FieldKey.DRIVER_SPECIALTIES: lambda r, obj: r.join_names(obj.driver_specialties) if isinstance(obj, Order) else None,
    FieldKey.VEHICLE_SPECIALTIES: lambda r, obj: r.join_names(obj.vehicle_specialties) if isinstance(obj, Order) else None,
}

# Fields only route stops have; null for unassigned orders
_ROUTE_STOP_FIELDS: dict[FieldKey, RouteStopExtractor] = {
    FieldKey.ROUTE_ID: lambda r, stop: stop.route.id if stop.route else None,
    FieldKey.ROUTE_NAME: lambda r, stop: stop.route.name if stop.route else None,
    FieldKey.DRIVER_NAME: lambda r, stop: stop.route.driver.name if stop.route else None,
    FieldKey.VEHICLE_NAME: lambda r, stop: stop.route.vehicle.name if stop.route else None,
    FieldKey.STOP_TYPE: lambda r, stop: stop.stop_type.code,
    FieldKey.STOP_TYPE_STRING: lambda r, stop: stop.stop_type.value,
    FieldKey.STOP_TYPE_EX_STRING: lambda r, stop: r.stop_type_ex(stop),
    FieldKey.STOP_NAME_PREFIX: lambda r, stop: r.stop_name_prefix(stop),
    FieldKey.STOP_NAME_POSTFIX: lambda r, stop: r.stop_name_postfix(stop),
    FieldKey.SEQUENCE: lambda r, stop: stop.sequence_number,
    FieldKey.ORDER_SEQUENCE: lambda r, stop: stop.order_sequence_number,
    FieldKey.TRAVEL_TIME: lambda r, stop: stop.travel_time,
    FieldKey.WAIT_TIME: lambda r, stop: stop.wait_time,
    FieldKey.ARRIVE_DATE: lambda r, stop: datetime_to_date(stop.arrive_time),
    FieldKey.ARRIVE_TIME: lambda r, stop: datetime_to_minutes(stop.arrive_time),
    FieldKey.ARRIVE_TIME_STRING: lambda r, stop: r.datetime_to_string(stop.arrive_time),
    FieldKey.DISTANCE_FROM_PREVIOUS: lambda r, stop: stop.distance,
    FieldKey.LOAD_AT_ID: lambda r, stop: r.load_at_id(stop),
}


def supported_keys() -> dict[str, frozenset[FieldKey]]:
    """Keys each entity category resolves, for schema coverage checks."""
    stop_keys = set(_STOP_ROW_FIELDS) | set(_WORK_OBJECT_FIELDS) | set(_ROUTE_STOP_FIELDS)
    return {
        "schedule": frozenset(_SCHEDULE_FIELDS),
        "route": frozenset(_ROUTE_FIELDS),
        "stop": frozenset(stop_keys),
    }


class FieldValueResolver:
    """
    Resolves field values of one table description.

    Args:
        description: Expanded table the fields belong to
        locale: Time, date and unit conventions
        resources: Localized texts for names and prefixes
        list_separator: Separator for lists inside one value; defaults to
            the locale list separator
    """

    def __init__(self,
                 description: TableDescription,
                 locale: Optional[LocaleConfig] = None,
                 resources: Optional[ResourceProvider] = None,
                 list_separator: Optional[str] = None):
        self.description = description
        self.locale = locale or LocaleConfig()
        self.resources = resources or ResourceProvider()
        self.list_separator = list_separator if list_separator is not None else self.locale.list_separator

    # Entry points

    def resolve_schedule(self, field: str, schedule: Schedule) -> DataWrapper:
        info = self._field_info(field)
        return DataWrapper(self._plain(_SCHEDULE_FIELDS, info)(self, schedule), info.data_type)

    def resolve_route(self, field: str, schedule_id: uuid.UUID, route: Route) -> DataWrapper:
        info = self._field_info(field)
        if info.relation_type is not None:
            return DataWrapper(self._route_relation_value(info, route), info.data_type)
        return DataWrapper(self._plain(_ROUTE_FIELDS, info)(self, schedule_id, route), info.data_type)

    def resolve_stop(self, field: str, schedule_id: uuid.UUID, item: Union[Stop, Order]) -> DataWrapper:
        """
        Resolve a field for a route stop or an unassigned order.

        For a route stop the work object is the order or location it visits
        (None for breaks); an unassigned order is its own work object.
        """
        info = self._field_info(field)
        stop = item if isinstance(item, Stop) else None
        work_object = stop.associated_object if stop is not None else item

        if info.relation_type is not None:
            return DataWrapper(self._stop_relation_value(info, work_object), info.data_type)

        key = self._key(info)
        ctx = _StopContext(schedule_id, stop, work_object)
        if key in _STOP_ROW_FIELDS:
            value = _STOP_ROW_FIELDS[key](self, ctx)
        elif key in _WORK_OBJECT_FIELDS:
            value = _WORK_OBJECT_FIELDS[key](self, work_object) if work_object is not None else None
        elif key in _ROUTE_STOP_FIELDS:
            value = _ROUTE_STOP_FIELDS[key](self, stop) if stop is not None else None
        else:
            raise InvariantViolation(f"Field '{info.name}' cannot be resolved for stops")
        return DataWrapper(value, info.data_type)

    # Dispatch helpers

    def _field_info(self, field: str) -> ResolvedField:
        info = self.description.get_field_info(field)
        if info is None:
            raise InvariantViolation(
                f"Field '{field}' is not part of table {self.description.type.value}"
            )
        return info

    @staticmethod
    def _key(info: ResolvedField) -> FieldKey:
        try:
            key = FieldKey(info.name)
        except ValueError as e:
            raise InvariantViolation(f"Unknown field key '{info.name}'") from e
        if key in SINK_RENDERED_KEYS:
            raise InvariantViolation(f"Field '{info.name}' is rendered by the database sink")
        return key

    def _plain(self, table: dict[FieldKey, Callable], info: ResolvedField) -> Callable:
        key = self._key(info)
        if key not in table:
            raise InvariantViolation(
                f"Field '{info.name}' cannot be resolved for {self.description.type.value}"
            )
        return table[key]

    def _route_relation_value(self, info: ResolvedField, route: Route) -> Optional[float]:
        if info.relation_type is not RelationType.CAPACITIES:
            raise InvariantViolation(f"Relation {info.relation_type.value} is not supported for routes")

        index = self.description.get_capacity_index(info)
        loaded = _item(route.capacities, index)
        vehicle_capacity = _item(route.vehicle.capacities, index)

        if "Utilization" in info.name_format:
            available = (vehicle_capacity or 0.0) * route.run_count
            if available == 0 or loaded is None:
                return 0.0
            return loaded / available * 100
        if "Max" in info.name_format:
            return vehicle_capacity
        return loaded

    def _stop_relation_value(self, info: ResolvedField, work_object: Optional[WorkObject]) -> Any:
        if work_object is None:
            return None
        if info.relation_type is RelationType.ADDRESS:
            if work_object.address is None:
                return ""
            return work_object.address[info.name_format]
        if not isinstance(work_object, Order):
            return None
        if info.relation_type is RelationType.CAPACITIES:
            return _item(work_object.capacities, self.description.get_capacity_index(info))
        return _item(work_object.custom_properties, self.description.get_order_custom_property_index(info))

    # Formatting helpers used by the lookup tables

    def join_names(self, items: Iterable[Any]) -> str:
        return self.list_separator.join(str(item) for item in items)

    def time_to_string(self, time: timedelta) -> str:
        return self.datetime_to_string(datetime.min + timedelta(seconds=time.seconds))

    def datetime_to_string(self, value: Optional[datetime]) -> str:
        if value is None:
            return ""
        return value.strftime(self.locale.short_time_format)

    @staticmethod
    def time_window_day(window: Optional[TimeWindow]) -> Optional[int]:
        return window.day if window is not None else None

    @staticmethod
    def time_window_minutes(window: Optional[TimeWindow], is_from: bool) -> Optional[float]:
        if window is None:
            return None
        return time_to_minutes(window.from_time if is_from else window.to_time)

    def time_window_bound_string(self, window: Optional[TimeWindow], is_from: bool) -> str:
        if window is None:
            return ""
        return self.time_to_string(window.from_time if is_from else window.to_time)

    def time_window_to_string(self, window: Optional[TimeWindow]) -> str:
        """Display text of a time window, e.g. ``08:00 AM - 01:00 AM (2)``."""
        if window is None:
            return ""
        if window.is_wide_open:
            return self.resources.get("Wideopen")

        end_day = window.day + 1 if window.from_time > window.to_time else window.day
        start = self.time_to_string(window.from_time) + self._day_suffix(window.day)
        end = self.time_to_string(window.to_time) + self._day_suffix(end_day)
        return self.resources.get("TimeWindowFormat").format(start, end)

    def _day_suffix(self, day: int) -> str:
        if day == 0:
            return ""
        return self.resources.get("TimeWindowDaySuffix").format(day + 1)

    def breaks_to_string(self, breaks: Sequence[Break]) -> str:
        texts = []
        for route_break in breaks:
            duration = f"{route_break.duration:g}"
            if route_break.type is BreakType.TIME_WINDOW:
                texts.append(self.resources.get("BreakFormatTimeWindow").format(
                    self.time_window_to_string(route_break.time_window), duration))
            elif route_break.type is BreakType.DRIVE_TIME:
                texts.append(self.resources.get("BreakFormatDriveTime").format(
                    f"{route_break.time_interval:g}", duration))
            else:
                texts.append(self.resources.get("BreakFormatWorkTime").format(
                    f"{route_break.time_interval:g}", duration))
        return self.list_separator.join(texts)

    @staticmethod
    def short_address(obj: WorkObject) -> str:
        """Address without postal codes and country."""
        address = obj.address
        if address is None:
            return ""
        parts = (
            address.unit,
            address.address_line,
            address.locality1,
            address.locality2,
            address.locality3,
            address.county_prefecture,
            address.state_province,
        )
        return ADDRESS_DELIMITER.join(part for part in parts if part)

    def stop_name(self, ctx: _StopContext) -> str:
        if ctx.stop is None:
            return ctx.order.name
        if ctx.stop.stop_type is StopType.LUNCH:
            return self.resources.get("Break")
        return str(ctx.stop.associated_object)

    @staticmethod
    def stop_type_ex(stop: Stop) -> str:
        if stop.stop_type is StopType.LOCATION:
            return _location_position(stop)
        if stop.stop_type is StopType.LUNCH:
            return STOP_TYPE_EX_LUNCH
        return STOP_TYPE_EX_STOP

    def stop_name_prefix(self, stop: Stop) -> str:
        if stop.stop_type is StopType.LOCATION:
            return self.resources.get(f"StopNamePrefix{_location_position(stop)}")
        if stop.stop_type is StopType.LUNCH:
            return self.resources.get("StopNamePrefixLunch")
        sequence = "" if stop.order_sequence_number is None else str(stop.order_sequence_number)
        return self.resources.get("StopNamePrefixFormat").format(sequence)

    def stop_name_postfix(self, stop: Stop) -> str:
        if stop.stop_type is StopType.LOCATION:
            return self.resources.get(f"StopNamePostfix{_location_position(stop)}")
        if stop.stop_type is StopType.LUNCH:
            return self.resources.get("StopNamePostfixLunch")
        return self.resources.get("StopNamePostfix")

    @staticmethod
    def load_at_id(stop: Stop) -> Optional[uuid.UUID]:
        """Id of the last location visited at or before an order stop."""
        if not isinstance(stop.associated_object, Order) or stop.route is None:
            return None
        load_at = None
        for route_stop in stop.route.stops:
            if route_stop.stop_type is StopType.LOCATION and route_stop.associated_object is not None:
                load_at = route_stop.associated_object.id
            if route_stop is stop:
                break
        return load_at
