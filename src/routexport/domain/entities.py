"""
Planning entities consumed by the exporter.

Plain dataclasses mirroring the route planner's schedule graph: a schedule
owns routes, a route owns its stops in sequence, and each stop points at the
order or location it visits. Distances are stored in miles and durations in
minutes.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Optional, Union

from shapely.geometry import Point

from .enums import AddressPart, BreakType, ManeuverType, OrderPriority, OrderType, StopType


@dataclass
class TimeWindow:
    """Daily time window; ``day`` counts days after the planned date."""
    from_time: timedelta = field(default_factory=timedelta)
    to_time: timedelta = field(default_factory=timedelta)
    day: int = 0
    is_wide_open: bool = False

    @classmethod
    def wide_open(cls) -> TimeWindow:
        return cls(timedelta(0), timedelta(hours=24), 0, True)


@dataclass
class Address:
    """Geocoded address split into components."""
    full_address: str = ""
    unit: str = ""
    address_line: str = ""
    locality1: str = ""
    locality2: str = ""
    locality3: str = ""
    county_prefecture: str = ""
    postal_code1: str = ""
    postal_code2: str = ""
    state_province: str = ""
    country: str = ""
    match_method: str = ""

    def __getitem__(self, part: AddressPart) -> str:
        return getattr(self, _ADDRESS_ATTRIBUTES[AddressPart(part)])


_ADDRESS_ATTRIBUTES = {
    AddressPart.UNIT: "unit",
    AddressPart.FULL_ADDRESS: "full_address",
    AddressPart.ADDRESS_LINE: "address_line",
    AddressPart.LOCALITY1: "locality1",
    AddressPart.LOCALITY2: "locality2",
    AddressPart.LOCALITY3: "locality3",
    AddressPart.COUNTY_PREFECTURE: "county_prefecture",
    AddressPart.POSTAL_CODE1: "postal_code1",
    AddressPart.POSTAL_CODE2: "postal_code2",
    AddressPart.STATE_PROVINCE: "state_province",
    AddressPart.COUNTRY: "country",
}


@dataclass
class FuelType:
    name: str
    price: float = 0.0
    co2_emission: float = 0.0


@dataclass
class Vehicle:
    name: str
    fuel_type: FuelType = field(default_factory=lambda: FuelType("Unleaded"))
    fuel_economy: float = 0.0
    fixed_cost: float = 0.0
    capacities: list[float] = field(default_factory=list)
    specialties: list[str] = field(default_factory=list)


@dataclass
class Driver:
    name: str
    fixed_cost: float = 0.0
    per_hour_salary: float = 0.0
    per_hour_ot_salary: float = 0.0
    time_before_ot: float = 0.0
    specialties: list[str] = field(default_factory=list)


@dataclass
class Location:
    """Depot or renewal location."""
    name: str
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    address: Optional[Address] = None
    geolocation: Optional[Point] = None
    time_window: Optional[TimeWindow] = None
    time_window2: Optional[TimeWindow] = None

    def __str__(self) -> str:
        return self.name


@dataclass
class Order:
    """Customer order; capacities and custom properties follow project order."""
    name: str
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    address: Optional[Address] = None
    geolocation: Optional[Point] = None
    planned_date: Optional[date] = None
    type: OrderType = OrderType.DELIVERY
    priority: OrderPriority = OrderPriority.NORMAL
    time_window: Optional[TimeWindow] = None
    time_window2: Optional[TimeWindow] = None
    service_time: float = 0.0
    max_violation_time: float = 0.0
    driver_specialties: list[str] = field(default_factory=list)
    vehicle_specialties: list[str] = field(default_factory=list)
    capacities: list[float] = field(default_factory=list)
    custom_properties: list[Union[str, float, None]] = field(default_factory=list)

    def __str__(self) -> str:
        return self.name


@dataclass
class Break:
    """Route break rule."""
    type: BreakType = BreakType.TIME_WINDOW
    duration: float = 0.0
    time_window: Optional[TimeWindow] = None
    time_interval: float = 0.0


@dataclass
class Direction:
    """One itinerary step leading to a stop; ``length`` is in miles."""
    text: str
    length: float = 0.0
    maneuver_type: ManeuverType = ManeuverType.OTHER


@dataclass
class Stop:
    """A visit on a route; ``sequence_number`` is one-based."""
    stop_type: StopType
    sequence_number: int
    associated_object: Optional[Union[Order, Location]] = None
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    order_sequence_number: Optional[int] = None
    travel_time: float = 0.0
    wait_time: float = 0.0
    time_at_stop: float = 0.0
    arrive_time: Optional[datetime] = None
    distance: float = 0.0
    directions: list[Direction] = field(default_factory=list)
    route: Optional[Route] = field(default=None, repr=False, compare=False)


@dataclass
class Route:
    """Planned route with its stops and solver totals."""
    name: str
    vehicle: Vehicle
    driver: Driver
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    start_location: Optional[Location] = None
    end_location: Optional[Location] = None
    renewal_locations: list[Location] = field(default_factory=list)
    start_time_window: TimeWindow = field(default_factory=TimeWindow)
    breaks: list[Break] = field(default_factory=list)
    max_orders: int = 0
    max_total_duration: float = 0.0
    max_travel_duration: float = 0.0
    max_travel_distance: float = 0.0
    zones: list[str] = field(default_factory=list)
    comment: str = ""
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    stops: list[Stop] = field(default_factory=list)
    capacities: list[float] = field(default_factory=list)
    total_service_time: float = 0.0
    travel_time: float = 0.0
    wait_time: float = 0.0
    total_time: float = 0.0
    overtime: float = 0.0
    cost: float = 0.0
    total_distance: float = 0.0
    violated_stop_count: int = 0
    violation_time: float = 0.0
    run_count: int = 1

    def __post_init__(self):
        for stop in self.stops:
            stop.route = self

    @property
    def order_count(self) -> int:
        return sum(1 for stop in self.stops if stop.stop_type is StopType.ORDER)


@dataclass
class Schedule:
    """Routes planned for one day plus the orders left unassigned."""
    planned_date: date
    name: str = "Current"
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    routes: list[Route] = field(default_factory=list)
    unassigned_orders: list[Order] = field(default_factory=list)
