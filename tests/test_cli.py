"""Tests for the command line interface."""

import logging
import sqlite3

import pytest
from typer.testing import CliRunner

from routexport import __version__
from routexport.cli import app

runner = CliRunner()

PROJECT = """
capacities:
  - {name: Weight}
custom_order_properties:
  - {name: Notes}
address_fields:
  - {type: Locality1, title: City}
locations:
  - {name: Depot, x: -117.2, y: 34.1}
schedules:
  - name: Current
    planned_date: 2024-05-01
    routes:
      - name: Truck 1
        vehicle: {name: Van 1, capacities: [20]}
        driver: {name: Ana}
        start_time: 2024-05-01 08:00:00
        capacities: [10]
        stops:
          - {type: Location, location: Depot}
          - {type: Order, order: {name: Order 1, capacities: [10]}}
          - {type: Location, location: Depot}
    unassigned_orders:
      - {name: Order 9}
"""


@pytest.fixture(autouse=True)
def _restore_logging():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def workspace(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "project.yml").write_text(PROJECT, encoding="utf-8")
    return tmp_path


def test_version():
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_fields_without_project(workspace):
    result = runner.invoke(app, ["fields", "Routes"])
    assert result.exit_code == 0
    assert "Routes fields" in result.output
    assert "TotalMiles" in result.output
    assert "WeightCapacity" not in result.output


def test_fields_with_project(workspace):
    result = runner.invoke(app, ["fields", "Stops", "--project", "project.yml", "--short"])
    assert result.exit_code == 0
    assert "Weight" in result.output
    assert "City" in result.output


def test_fields_bad_project(workspace):
    (workspace / "bad.yml").write_text("schedules: [", encoding="utf-8")
    result = runner.invoke(app, ["fields", "Routes", "--project", "bad.yml"])
    assert result.exit_code == 1
    assert "ERROR" in result.output


def test_check_name(workspace):
    taken = runner.invoke(app, ["check-name", "Weight", "--project", "project.yml"])
    assert taken.exit_code == 1

    free = runner.invoke(app, ["check-name", "Gate Code", "--project", "project.yml"])
    assert free.exit_code == 0
    assert "is available" in free.output


def test_profiles_empty(workspace):
    result = runner.invoke(app, ["profiles", "--profiles-file", "profiles.yml"])
    assert result.exit_code == 0
    assert "No export profiles stored" in result.output


def test_add_profile_and_export(workspace):
    output = workspace / "routes.csv"
    added = runner.invoke(app, [
        "add-profile", "TextRoutes", str(output),
        "-f", "Name", "-f", "WeightCapacity",
        "--default", "--profiles-file", "profiles.yml", "--project", "project.yml",
    ])
    assert added.exit_code == 0, added.output

    listed = runner.invoke(app, ["profiles", "--profiles-file", "profiles.yml", "--project", "project.yml"])
    assert "routes (default)" in listed.output
    assert "Name, WeightCapacity" in listed.output

    exported = runner.invoke(app, [
        "export", "routes", "--project", "project.yml", "--profiles-file", "profiles.yml",
    ])
    assert exported.exit_code == 0, exported.output
    assert output.read_text(encoding="utf-8").splitlines() == ['"Route Name","Weight Capacity"', '"Truck 1",10.0']


def test_add_profile_unknown_field(workspace):
    result = runner.invoke(app, [
        "add-profile", "TextRoutes", "routes.csv", "-f", "Bogus", "--profiles-file", "profiles.yml",
    ])
    assert result.exit_code == 1
    assert "Bogus" in result.output
    assert not (workspace / "profiles.yml").exists()


def test_export_unknown_profile(workspace):
    result = runner.invoke(app, ["export", "nope", "--project", "project.yml", "--profiles-file", "profiles.yml"])
    assert result.exit_code == 1
    assert "not found" in result.output


def test_report(workspace):
    path = workspace / "report.db"
    result = runner.invoke(app, ["report", str(path), "--project", "project.yml", "-e", "MaxWeight"])
    assert result.exit_code == 0, result.output

    conn = sqlite3.connect(path)
    try:
        assert conn.execute("SELECT MaxWeight FROM Routes").fetchall() == [(20.0,)]
        assert conn.execute("SELECT COUNT(*) FROM Stops").fetchone() == (4,)
    finally:
        conn.close()


def test_report_unknown_extended_field(workspace):
    result = runner.invoke(app, ["report", "report.db", "--project", "project.yml", "-e", "WeightCapacity"])
    assert result.exit_code == 1
    assert "Not extended fields" in result.output


def test_report_unknown_route(workspace):
    result = runner.invoke(app, [
        "report", "report.db", "--project", "project.yml", "--schedule", "Current", "-r", "Truck 9",
    ])
    assert result.exit_code == 1
    assert "Truck 9" in result.output
