"""Tests for export orchestration and report sources."""

import sqlite3

import pytest

from routexport.domain.enums import ExportType, TableType
from routexport.pipeline.exporter import Exporter
from routexport.types import CancelFlag, ExportOutcome


@pytest.fixture
def exporter(catalog, locale, renderer):
    return Exporter(catalog, locale, renderer=renderer)


def _columns(path, table):
    conn = sqlite3.connect(path)
    try:
        return [row[1] for row in conn.execute(f"PRAGMA table_info({table})")]
    finally:
        conn.close()


def test_create_profile_defaults(tmp_path, exporter):
    profile = exporter.create_profile(ExportType.ACCESS, tmp_path / "out.db")
    assert profile.name == "out"
    assert not profile.is_default
    assert [table.type for table in profile.tables] == [
        TableType.SCHEDULES, TableType.ROUTES, TableType.STOPS, TableType.SCHEMA,
    ]
    assert all(table.fields for table in profile.tables)


def test_add_and_remove_profiles(tmp_path, exporter):
    profile = exporter.create_profile(ExportType.TEXT_ROUTES, tmp_path / "routes.csv")
    exporter.add_profile(profile)
    assert exporter.get_profile("routes") is profile

    duplicate = exporter.create_profile(ExportType.TEXT_STOPS, tmp_path / "routes.csv")
    with pytest.raises(ValueError, match="already exists"):
        exporter.add_profile(duplicate)

    exporter.remove_profile(profile)
    assert exporter.get_profile("routes") is None


def test_profiles_property_is_a_copy(tmp_path, exporter):
    exporter.profiles.append(exporter.create_profile(ExportType.ACCESS, tmp_path / "x.db"))
    assert exporter.profiles == []


def test_profile_without_fields_rejected(tmp_path, exporter):
    profile = exporter.create_profile(ExportType.TEXT_ROUTES, tmp_path / "routes.csv")
    profile.tables[0].clear_fields()
    with pytest.raises(ValueError, match="no fields"):
        exporter.add_profile(profile)


def test_profile_without_name_rejected(tmp_path, exporter):
    profile = exporter.create_profile(ExportType.TEXT_ROUTES, tmp_path / "routes.csv", name="")
    with pytest.raises(ValueError, match="name"):
        exporter.validate_profile(profile)


def test_export_access(tmp_path, exporter, schedule):
    path = tmp_path / "nested" / "out.db"
    profile = exporter.create_profile(ExportType.ACCESS, path)
    assert exporter.do_export(profile, [schedule]) is ExportOutcome.COMPLETED
    assert "WeightCapacity" in _columns(path, "Routes")


def test_export_replaces_existing_file(tmp_path, exporter, schedule):
    path = tmp_path / "routes.csv"
    path.write_text("stale", encoding="utf-8")
    profile = exporter.create_profile(ExportType.TEXT_ROUTES, path)
    exporter.do_export(profile, [schedule])
    assert path.read_text(encoding="utf-8").startswith('"Route ID"')


def test_export_cancelled(tmp_path, exporter, schedule):
    path = tmp_path / "out.db"
    flag = CancelFlag()
    flag.cancel()
    profile = exporter.create_profile(ExportType.ACCESS, path)
    assert exporter.do_export(profile, [schedule], flag) is ExportOutcome.CANCELLED
    assert not path.exists()


def test_shape_profiles_not_exported(tmp_path, exporter, schedule):
    profile = exporter.create_profile(ExportType.SHAPE_ROUTES, tmp_path / "routes.shp")
    with pytest.raises(ValueError, match="not supported"):
        exporter.do_export(profile, [schedule])


def test_extended_fields(exporter):
    extended = exporter.extended_fields
    assert "MaxWeight" in extended
    assert "OverviewMap" in extended
    assert "Directions" in extended
    assert "WeightCapacity" not in extended
    assert "StopNamePrefix" not in extended


def test_split_required_for_hard_fields(exporter):
    assert exporter.hard_fields == ["OverviewMap", "StopVicinityMap", "Directions"]
    assert exporter.is_split_required(["MaxWeight", "StopVicinityMap"])
    assert not exporter.is_split_required(["MaxWeight"])


def test_report_source_fields(tmp_path, exporter, schedule):
    path = tmp_path / "report.db"
    outcome = exporter.do_report_source(path, [schedule], ["MaxWeight", "OverviewMap"])
    assert outcome is ExportOutcome.COMPLETED

    routes = _columns(path, "Routes")
    assert {"MaxWeight", "OverviewMap", "RouteTimeString"} <= set(routes)
    assert "MaxVolume" not in routes
    assert {"StopNamePrefix", "LoadAtID"} <= set(_columns(path, "Stops"))
    assert _columns(path, "Schedules") == ["ID", "PlannedDate"]


def test_report_source_route_subset(tmp_path, exporter, schedule):
    path = tmp_path / "report.db"
    exporter.do_report_source(path, [schedule], routes=[schedule.routes[1]])
    conn = sqlite3.connect(path)
    try:
        assert conn.execute("SELECT COUNT(*) FROM Routes").fetchone() == (0,)
        assert conn.execute("SELECT COUNT(*) FROM Stops").fetchone() == (1,)
    finally:
        conn.close()


def test_cancel_flag_reset_allows_rerun(tmp_path, exporter, schedule):
    flag = CancelFlag()
    flag.cancel()
    flag.reset()
    assert not flag.is_cancelled
    profile = exporter.create_profile(ExportType.TEXT_STOPS, tmp_path / "stops.csv")
    assert exporter.do_export(profile, [schedule], flag) is ExportOutcome.COMPLETED


def test_image_field_without_renderer_keeps_previous_output(tmp_path, catalog, locale, schedule):
    path = tmp_path / "report.db"
    path.write_bytes(b"previous export")
    exporter = Exporter(catalog, locale)
    profile = exporter.create_profile(ExportType.ACCESS, path)
    profile.get_table(TableType.STOPS).add_field("StopVicinityMap")

    with pytest.raises(ValueError, match="renderer"):
        exporter.do_export(profile, [schedule])
    assert path.read_bytes() == b"previous export"
