"""Shared fixtures: a two-capacity catalog and a small planned schedule."""

from datetime import date, datetime, timedelta

import pytest
from shapely.geometry import Point

from routexport.config.settings import LocaleConfig
from routexport.domain.entities import (
    Address,
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
from routexport.domain.enums import AddressPart, ManeuverType, OrderCustomPropertyType, StopType
from routexport.domain.models import AddressField, CapacityInfo, OrderCustomPropertyInfo
from routexport.schema.catalog import SchemaCatalog

_ENV_VARS = (
    "ENVIRONMENT",
    "EXPORT_LIST_SEPARATOR",
    "EXPORT_SHORT_TIME_FORMAT",
    "EXPORT_SHORT_DATE_FORMAT",
    "EXPORT_METRIC_UNITS",
    "EXPORT_STRUCTURE_PATH",
    "EXPORT_PROFILES_PATH",
    "EXPORT_OUTPUT_DIR",
)


@pytest.fixture(autouse=True)
def _clean_export_env(monkeypatch):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def capacities():
    return [CapacityInfo(name="Weight"), CapacityInfo(name="Volume")]


@pytest.fixture
def custom_properties():
    return [
        OrderCustomPropertyInfo(name="Notes"),
        OrderCustomPropertyInfo(name="Rank", type=OrderCustomPropertyType.NUMERIC),
    ]


@pytest.fixture
def address_fields():
    return [
        AddressField(type=AddressPart.LOCALITY1, title="City"),
        AddressField(type=AddressPart.POSTAL_CODE1, title="ZIP"),
    ]


@pytest.fixture
def catalog(capacities, custom_properties, address_fields):
    return SchemaCatalog(capacities, custom_properties, address_fields)


@pytest.fixture
def locale():
    return LocaleConfig(short_time_format="%H:%M")


@pytest.fixture
def depot():
    return Location(
        "Depot",
        address=Address(full_address="1 Main St, Springfield", locality1="Springfield", postal_code1="12345"),
        geolocation=Point(-117.2, 34.1),
    )


@pytest.fixture
def schedule(depot):
    """One loaded route, one route without stops and one unassigned order."""
    first = Order(
        "Order 1",
        address=Address(full_address="5 Oak Ave, Shelbyville", address_line="5 Oak Ave", locality1="Shelbyville"),
        geolocation=Point(-117.1, 34.0),
        planned_date=date(2024, 5, 1),
        time_window=TimeWindow(timedelta(hours=8), timedelta(hours=12)),
        service_time=10.0,
        capacities=[4.0, 2.0],
        custom_properties=["Leave at door", 3.0],
    )
    second = Order("Order 2", capacities=[6.0, 3.0], custom_properties=["", 1.0])

    stops = [
        Stop(StopType.LOCATION, 1, depot, arrive_time=datetime(2024, 5, 1, 8, 0)),
        Stop(
            StopType.ORDER, 2, first,
            order_sequence_number=1,
            distance=10.0,
            arrive_time=datetime(2024, 5, 1, 9, 15),
            directions=[
                Direction("Start at Depot", maneuver_type=ManeuverType.DEPART),
                Direction("Turn left onto Oak Ave", 2.0, ManeuverType.TURN),
                Direction("Arrive at Order 1", maneuver_type=ManeuverType.STOP),
            ],
        ),
        Stop(StopType.LUNCH, 3, None, time_at_stop=30.0),
        Stop(StopType.ORDER, 4, second, order_sequence_number=2),
        Stop(StopType.LOCATION, 5, depot),
    ]
    route = Route(
        "Truck 1",
        Vehicle(
            "Van 1",
            fuel_type=FuelType("Diesel", price=4.0, co2_emission=10.0),
            fuel_economy=20.0,
            capacities=[20.0, 20.0],
            specialties=["Lift", "Cold"],
        ),
        Driver("Ana"),
        start_location=depot,
        end_location=depot,
        start_time=datetime(2024, 5, 1, 8, 0),
        end_time=datetime(2024, 5, 1, 14, 30),
        stops=stops,
        capacities=[10.0, 5.0],
        total_time=390.0,
        wait_time=39.0,
        total_distance=40.0,
    )
    empty = Route("Truck 2", Vehicle("Van 2"), Driver("Bo"))
    unassigned = Order("Order 9", capacities=[1.0, 1.0], custom_properties=["Call first", 2.0])

    return Schedule(date(2024, 5, 1), routes=[route, empty], unassigned_orders=[unassigned])


class FakeRenderer:
    """Map renderer returning fixed bytes and counting calls."""

    def __init__(self):
        self.calls = 0

    def render_route(self, route, width, height, dpi):
        self.calls += 1
        return b"PNG-route"

    def render_stop(self, route, stop, radius, width, height, dpi):
        self.calls += 1
        return b"PNG-stop"


class CountdownTracker:
    """Reports cancellation once it has been polled ``polls`` times."""

    def __init__(self, polls):
        self.remaining = polls

    @property
    def is_cancelled(self):
        self.remaining -= 1
        return self.remaining < 0


@pytest.fixture
def renderer():
    return FakeRenderer()


@pytest.fixture
def cancel_after():
    return CountdownTracker
