"""
Project document loading.

Builds the runtime dimension providers (capacities, custom order properties,
address fields) and the planned schedules from a YAML project document, so
exports can run without the route planner attached.

Document layout:

    capacities:
      - {name: Weight, unit_us: Pound, unit_metric: Kilogram}
    custom_order_properties:
      - {name: Notes, type: Text, description: Driver notes}
    address_fields:               # optional, every component by default
      - {type: Locality1, title: City}
    locations:
      - {name: Depot, x: -117.19, y: 34.05, address: {full_address: ...}}
    schedules:
      - name: Current
        planned_date: 2024-05-01
        routes:
          - name: Truck 1
            vehicle: {name: Van 1, capacities: [20, 20]}
            driver: {name: Ana}
            start_location: Depot
            start_time: 2024-05-01 08:00:00
            capacities: [10, 5]
            stops:
              - {type: Location, location: Depot}
              - {type: Order, order: {name: Order 1, capacities: [4, 2]}}
        unassigned_orders:
          - {name: Order 9}

Times of day are ``HH:MM`` strings or minutes after midnight.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from pathlib import Path
from typing import Any, Optional

from shapely.geometry import Point

from .config.settings import ConfigurationError
from .domain.entities import (
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
from .domain.enums import (
    AddressPart,
    BreakType,
    ManeuverType,
    OrderCustomPropertyType,
    OrderPriority,
    OrderType,
    StopType,
    Unit,
)
from .domain.models import AddressField, CapacityInfo, OrderCustomPropertyInfo
from .resources import ResourceProvider
from .utils import load_yaml_file

logger = logging.getLogger(__name__)

_ROUTE_NUMBERS = (
    "max_orders", "max_total_duration", "max_travel_duration", "max_travel_distance",
    "total_service_time", "travel_time", "wait_time", "total_time", "overtime", "cost",
    "total_distance", "violated_stop_count", "violation_time", "run_count",
)
_STOP_NUMBERS = ("travel_time", "wait_time", "time_at_stop", "distance")
_ORDER_NUMBERS = ("service_time", "max_violation_time")


@dataclass
class Project:
    """Dimension providers and schedules of one project document."""
    capacities_info: list[CapacityInfo] = field(default_factory=list)
    order_custom_properties_info: list[OrderCustomPropertyInfo] = field(default_factory=list)
    address_fields: list[AddressField] = field(default_factory=list)
    schedules: list[Schedule] = field(default_factory=list)
    source: Optional[Path] = None

    def find_schedule(self, name: str) -> Optional[Schedule]:
        for schedule in self.schedules:
            if schedule.name == name:
                return schedule
        return None


def default_address_fields(resources: Optional[ResourceProvider] = None) -> list[AddressField]:
    """Every address component with its localized title."""
    resources = resources or ResourceProvider()
    return [
        AddressField(type=part, title=resources.get(f"AddressPart{part.value}"))
        for part in AddressPart
    ]


def load_project(path: Path, resources: Optional[ResourceProvider] = None) -> Project:
    """
    Load a project document.

    Args:
        path: YAML project document
        resources: Localized strings for default address titles

    Returns:
        Parsed project

    Raises:
        FileNotFoundError: If the document does not exist
        ConfigurationError: If the document is malformed
    """
    try:
        document = load_yaml_file(path)
    except ValueError as e:
        raise ConfigurationError(f"Cannot read project document: {e}", path) from e

    if not isinstance(document, dict):
        raise ConfigurationError("Project document must be a mapping", path)

    try:
        project = _ProjectReader(document, resources).read()
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise ConfigurationError(f"Invalid project document: {e!r}", path) from e

    project.source = path
    route_count = sum(len(schedule.routes) for schedule in project.schedules)
    logger.info(
        f"Loaded project {path}: {len(project.schedules)} schedules, {route_count} routes, "
        f"{len(project.capacities_info)} capacities, "
        f"{len(project.order_custom_properties_info)} custom order properties"
    )
    return project


# =============================================================================
# Value parsing
# =============================================================================

def parse_time_of_day(value: Any) -> timedelta:
    """``HH:MM[:SS]`` text or minutes after midnight."""
    if isinstance(value, (int, float)):
        return timedelta(minutes=value)
    parts = [int(part) for part in str(value).split(":")]
    if not 2 <= len(parts) <= 3:
        raise ValueError(f"Invalid time of day '{value}'")
    hours, minutes = parts[0], parts[1]
    seconds = parts[2] if len(parts) == 3 else 0
    return timedelta(hours=hours, minutes=minutes, seconds=seconds)


def parse_datetime(value: Any) -> Optional[datetime]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


def parse_date(value: Any) -> Optional[date]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value))


def parse_time_window(data: Optional[dict[str, Any]]) -> Optional[TimeWindow]:
    if data is None:
        return None
    if data.get("wide_open"):
        return TimeWindow.wide_open()
    return TimeWindow(
        from_time=parse_time_of_day(data["from"]),
        to_time=parse_time_of_day(data["to"]),
        day=int(data.get("day", 0)),
    )


def parse_address(data: Optional[dict[str, Any]]) -> Optional[Address]:
    if data is None:
        return None
    return Address(**{key: str(value) for key, value in data.items()})


def parse_point(data: dict[str, Any]) -> Optional[Point]:
    if "x" not in data or "y" not in data:
        return None
    return Point(float(data["x"]), float(data["y"]))


def parse_id(value: Any) -> uuid.UUID:
    return uuid.UUID(str(value)) if value is not None else uuid.uuid4()


class _ProjectReader:
    """Walks a project document; locations are shared by name."""

    def __init__(self, document: dict[str, Any], resources: Optional[ResourceProvider]):
        self.document = document
        self.resources = resources or ResourceProvider()
        self.locations: dict[str, Location] = {}

    def read(self) -> Project:
        capacities = [
            CapacityInfo(
                name=entry["name"],
                display_unit_us=Unit(entry.get("unit_us", Unit.UNKNOWN.value)),
                display_unit_metric=Unit(entry.get("unit_metric", Unit.UNKNOWN.value)),
            )
            for entry in self.document.get("capacities") or []
        ]
        properties = [
            OrderCustomPropertyInfo(
                name=entry["name"],
                type=OrderCustomPropertyType(entry.get("type", OrderCustomPropertyType.TEXT.value)),
                description=entry.get("description"),
            )
            for entry in self.document.get("custom_order_properties") or []
        ]

        if "address_fields" in self.document:
            address_fields = []
            for entry in self.document["address_fields"] or []:
                part = AddressPart(entry["type"])
                address_fields.append(AddressField(
                    type=part,
                    title=entry.get("title") or self.resources.get(f"AddressPart{part.value}"),
                    description=entry.get("description"),
                ))
        else:
            address_fields = default_address_fields(self.resources)

        for entry in self.document.get("locations") or []:
            location = self._location(entry)
            self.locations[location.name] = location

        schedules = [self._schedule(entry) for entry in self.document.get("schedules") or []]
        return Project(capacities, properties, address_fields, schedules)

    def _location(self, data: dict[str, Any]) -> Location:
        return Location(
            name=data["name"],
            id=parse_id(data.get("id")),
            address=parse_address(data.get("address")),
            geolocation=parse_point(data),
            time_window=parse_time_window(data.get("time_window")),
            time_window2=parse_time_window(data.get("time_window2")),
        )

    def _location_ref(self, name: Optional[str]) -> Optional[Location]:
        if name is None:
            return None
        if name not in self.locations:
            raise KeyError(f"unknown location '{name}'")
        return self.locations[name]

    def _order(self, data: dict[str, Any], planned_date: Optional[date]) -> Order:
        order = Order(
            name=data["name"],
            id=parse_id(data.get("id")),
            address=parse_address(data.get("address")),
            geolocation=parse_point(data),
            planned_date=parse_date(data.get("planned_date")) or planned_date,
            type=OrderType(data.get("type", OrderType.DELIVERY.value)),
            priority=OrderPriority(data.get("priority", OrderPriority.NORMAL.value)),
            time_window=parse_time_window(data.get("time_window")),
            time_window2=parse_time_window(data.get("time_window2")),
            driver_specialties=list(data.get("driver_specialties") or []),
            vehicle_specialties=list(data.get("vehicle_specialties") or []),
            capacities=[float(value) for value in data.get("capacities") or []],
            custom_properties=list(data.get("custom_properties") or []),
        )
        for name in _ORDER_NUMBERS:
            if name in data:
                setattr(order, name, float(data[name]))
        return order

    def _vehicle(self, data: dict[str, Any]) -> Vehicle:
        fuel = data.get("fuel_type") or {}
        return Vehicle(
            name=data["name"],
            fuel_type=FuelType(
                name=fuel.get("name", "Unleaded"),
                price=float(fuel.get("price", 0.0)),
                co2_emission=float(fuel.get("co2_emission", 0.0)),
            ),
            fuel_economy=float(data.get("fuel_economy", 0.0)),
            fixed_cost=float(data.get("fixed_cost", 0.0)),
            capacities=[float(value) for value in data.get("capacities") or []],
            specialties=list(data.get("specialties") or []),
        )

    @staticmethod
    def _driver(data: dict[str, Any]) -> Driver:
        return Driver(
            name=data["name"],
            fixed_cost=float(data.get("fixed_cost", 0.0)),
            per_hour_salary=float(data.get("per_hour_salary", 0.0)),
            per_hour_ot_salary=float(data.get("per_hour_ot_salary", 0.0)),
            time_before_ot=float(data.get("time_before_ot", 0.0)),
            specialties=list(data.get("specialties") or []),
        )

    @staticmethod
    def _break(data: dict[str, Any]) -> Break:
        return Break(
            type=BreakType(data.get("type", BreakType.TIME_WINDOW.value)),
            duration=float(data.get("duration", 0.0)),
            time_window=parse_time_window(data.get("time_window")),
            time_interval=float(data.get("time_interval", 0.0)),
        )

    def _stops(self, entries: list[dict[str, Any]], planned_date: date) -> list[Stop]:
        stops = []
        order_sequence = 0
        for sequence, data in enumerate(entries, start=1):
            stop_type = StopType(data.get("type", StopType.ORDER.value))
            associated = None
            order_sequence_number = None
            if stop_type is StopType.ORDER:
                associated = self._order(data["order"], planned_date)
                order_sequence += 1
                order_sequence_number = order_sequence
            elif stop_type is StopType.LOCATION:
                associated = self._location_ref(data["location"])

            stop = Stop(
                stop_type=stop_type,
                sequence_number=sequence,
                associated_object=associated,
                id=parse_id(data.get("id")),
                order_sequence_number=order_sequence_number,
                arrive_time=parse_datetime(data.get("arrive_time")),
                directions=[
                    Direction(
                        text=step["text"],
                        length=float(step.get("length", 0.0)),
                        maneuver_type=ManeuverType(step.get("maneuver", ManeuverType.OTHER.value)),
                    )
                    for step in data.get("directions") or []
                ],
            )
            for name in _STOP_NUMBERS:
                if name in data:
                    setattr(stop, name, float(data[name]))
            stops.append(stop)
        return stops

    def _route(self, data: dict[str, Any], planned_date: date) -> Route:
        route = Route(
            name=data["name"],
            vehicle=self._vehicle(data["vehicle"]),
            driver=self._driver(data["driver"]),
            id=parse_id(data.get("id")),
            start_location=self._location_ref(data.get("start_location")),
            end_location=self._location_ref(data.get("end_location")),
            renewal_locations=[self._location_ref(name) for name in data.get("renewal_locations") or []],
            start_time_window=parse_time_window(data.get("start_time_window")) or TimeWindow(),
            breaks=[self._break(entry) for entry in data.get("breaks") or []],
            zones=list(data.get("zones") or []),
            comment=data.get("comment") or "",
            start_time=parse_datetime(data.get("start_time")),
            end_time=parse_datetime(data.get("end_time")),
            stops=self._stops(data.get("stops") or [], planned_date),
            capacities=[float(value) for value in data.get("capacities") or []],
        )
        for name in _ROUTE_NUMBERS:
            if name in data:
                value = data[name]
                setattr(route, name, int(value) if isinstance(getattr(route, name), int) else float(value))
        return route

    def _schedule(self, data: dict[str, Any]) -> Schedule:
        planned_date = parse_date(data["planned_date"])
        return Schedule(
            planned_date=planned_date,
            name=data.get("name", "Current"),
            id=parse_id(data.get("id")),
            routes=[self._route(entry, planned_date) for entry in data.get("routes") or []],
            unassigned_orders=[self._order(entry, planned_date) for entry in data.get("unassigned_orders") or []],
        )
