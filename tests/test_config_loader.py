"""Tests for project document loading."""

from datetime import date, datetime, timedelta

import pytest

from routexport.config.settings import ConfigurationError
from routexport.config_loader import load_project, parse_time_of_day, parse_time_window
from routexport.domain.enums import AddressPart, OrderCustomPropertyType, StopType, Unit

PROJECT = """
capacities:
  - {name: Weight, unit_us: Pound, unit_metric: Kilogram}
  - {name: Volume}
custom_order_properties:
  - {name: Notes}
  - {name: Rank, type: Numeric}
address_fields:
  - {type: Locality1, title: City}
locations:
  - {name: Depot, x: -117.2, y: 34.1, address: {full_address: "1 Main St", locality1: Springfield}}
schedules:
  - name: Current
    planned_date: 2024-05-01
    routes:
      - name: Truck 1
        vehicle: {name: Van 1, capacities: [20, 20]}
        driver: {name: Ana}
        start_location: Depot
        end_location: Depot
        start_time: 2024-05-01 08:00:00
        capacities: [10, 5]
        total_distance: 25.5
        run_count: 2
        stops:
          - {type: Location, location: Depot}
          - type: Order
            distance: 12.5
            directions:
              - {text: Turn right, length: 1.5, maneuver: Turn}
            order:
              name: Order 1
              capacities: [4, 2]
              custom_properties: [Fragile, 2]
              time_window: {from: "08:00", to: "12:00"}
          - {type: Lunch}
          - {type: Location, location: Depot}
    unassigned_orders:
      - {name: Order 9, capacities: [1, 1], planned_date: 2024-05-02}
"""


@pytest.fixture
def project_path(tmp_path):
    path = tmp_path / "project.yml"
    path.write_text(PROJECT, encoding="utf-8")
    return path


def test_dimensions(project_path):
    project = load_project(project_path)
    assert [info.name for info in project.capacities_info] == ["Weight", "Volume"]
    assert project.capacities_info[0].display_unit_us is Unit.POUND
    assert project.capacities_info[1].display_unit_metric is Unit.UNKNOWN
    assert project.order_custom_properties_info[1].type is OrderCustomPropertyType.NUMERIC
    assert [(f.type, f.title) for f in project.address_fields] == [(AddressPart.LOCALITY1, "City")]
    assert project.source == project_path


def test_route_and_stops(project_path):
    schedule = load_project(project_path).find_schedule("Current")
    route = schedule.routes[0]

    assert schedule.planned_date == date(2024, 5, 1)
    assert route.start_time == datetime(2024, 5, 1, 8, 0)
    assert route.start_location is route.end_location
    assert route.run_count == 2
    assert route.total_distance == 25.5
    assert [stop.sequence_number for stop in route.stops] == [1, 2, 3, 4]
    assert [stop.stop_type for stop in route.stops] == [
        StopType.LOCATION, StopType.ORDER, StopType.LUNCH, StopType.LOCATION,
    ]
    assert all(stop.route is route for stop in route.stops)


def test_order_stop(project_path):
    stop = load_project(project_path).schedules[0].routes[0].stops[1]
    order = stop.associated_object

    assert stop.order_sequence_number == 1
    assert stop.distance == 12.5
    assert stop.directions[0].length == 1.5
    assert order.capacities == [4.0, 2.0]
    assert order.custom_properties == ["Fragile", 2]
    assert order.planned_date == date(2024, 5, 1)
    assert order.time_window.from_time == timedelta(hours=8)


def test_unassigned_order_date(project_path):
    order = load_project(project_path).schedules[0].unassigned_orders[0]
    assert order.planned_date == date(2024, 5, 2)


def test_default_address_fields(tmp_path):
    path = tmp_path / "project.yml"
    path.write_text("capacities: []\n", encoding="utf-8")
    project = load_project(path)
    assert len(project.address_fields) == len(AddressPart)
    assert project.address_fields[0].title == "Unit"


def test_unknown_location(tmp_path):
    path = tmp_path / "project.yml"
    path.write_text(PROJECT.replace("start_location: Depot", "start_location: Warehouse"), encoding="utf-8")
    with pytest.raises(ConfigurationError, match="Warehouse"):
        load_project(path)


def test_not_a_mapping(tmp_path):
    path = tmp_path / "project.yml"
    path.write_text("- just\n- a list\n", encoding="utf-8")
    with pytest.raises(ConfigurationError):
        load_project(path)


def test_invalid_yaml(tmp_path):
    path = tmp_path / "project.yml"
    path.write_text("schedules: [", encoding="utf-8")
    with pytest.raises(ConfigurationError):
        load_project(path)


def test_missing_document(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_project(tmp_path / "missing.yml")


def test_parse_time_of_day():
    assert parse_time_of_day("08:30") == timedelta(hours=8, minutes=30)
    assert parse_time_of_day("23:59:30") == timedelta(hours=23, minutes=59, seconds=30)
    assert parse_time_of_day(90) == timedelta(minutes=90)
    with pytest.raises(ValueError):
        parse_time_of_day("8")


def test_parse_wide_open_window():
    window = parse_time_window({"wide_open": True})
    assert window.is_wide_open
    assert parse_time_window(None) is None
