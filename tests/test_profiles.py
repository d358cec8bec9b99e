"""Tests for export profiles and their storage document."""

from pathlib import Path

import pytest
import yaml

from routexport.config.settings import SettingsLoadError
from routexport.domain.enums import ExportType, TableType
from routexport.profiles import Profile, ProfileStore, build_table_definitions


def _routes_profile(catalog, tmp_path):
    profile = Profile(ExportType.TEXT_ROUTES, tmp_path / "routes.csv",
                      build_table_definitions(catalog, ExportType.TEXT_ROUTES),
                      name="Daily routes", description="Dispatch summary")
    table = profile.get_table(TableType.ROUTES)
    table.clear_fields()
    table.add_field("Name")
    table.add_field("TotalMiles")
    return profile


def test_name_defaults_to_file_stem(catalog):
    profile = Profile(ExportType.ACCESS, Path("exports/full.db"))
    assert profile.name == "full"


def test_save_and_load(tmp_path, catalog):
    store = ProfileStore(tmp_path / "profiles.yml", catalog)
    store.save([_routes_profile(catalog, tmp_path)])

    (loaded,) = store.load()
    assert loaded.name == "Daily routes"
    assert loaded.type is ExportType.TEXT_ROUTES
    assert loaded.file_path == tmp_path / "routes.csv"
    assert loaded.description == "Dispatch summary"
    assert not loaded.is_default
    assert loaded.get_table(TableType.ROUTES).fields == ("Name", "TotalMiles")


def test_saved_document_layout(tmp_path, catalog):
    path = tmp_path / "profiles.yml"
    ProfileStore(path, catalog).save([_routes_profile(catalog, tmp_path)])

    document = yaml.safe_load(path.read_text(encoding="utf-8"))
    (entry,) = document["profiles"]
    assert entry["type"] == "TextRoutes"
    assert entry["tables"] == [{"name": "Routes", "type": "Routes", "fields": ["Name", "TotalMiles"]}]
    assert list(tmp_path.glob("*.tmp")) == []


def test_missing_document(tmp_path, catalog):
    assert ProfileStore(tmp_path / "missing.yml", catalog).load() == []


def test_empty_document(tmp_path, catalog):
    path = tmp_path / "profiles.yml"
    path.write_text("", encoding="utf-8")
    assert ProfileStore(path, catalog).load() == []


def test_corrupt_document(tmp_path, catalog):
    path = tmp_path / "profiles.yml"
    path.write_text("profiles: [unclosed", encoding="utf-8")
    with pytest.raises(SettingsLoadError):
        ProfileStore(path, catalog).load()


def test_profiles_not_a_list(tmp_path, catalog):
    path = tmp_path / "profiles.yml"
    path.write_text("profiles: {name: x}\n", encoding="utf-8")
    with pytest.raises(SettingsLoadError):
        ProfileStore(path, catalog).load()


def test_unknown_export_type(tmp_path, catalog):
    path = tmp_path / "profiles.yml"
    path.write_text("profiles:\n  - {name: x, type: Excel, file_path: x.xls}\n", encoding="utf-8")
    with pytest.raises(SettingsLoadError):
        ProfileStore(path, catalog).load()


def test_unsupported_fields_dropped(tmp_path, catalog):
    path = tmp_path / "profiles.yml"
    path.write_text(
        "profiles:\n"
        "  - name: x\n"
        "    type: TextRoutes\n"
        "    file_path: x.csv\n"
        "    tables:\n"
        "      - {name: Routes, type: Routes, fields: [Name, Bogus, RouteTimeString, OverviewMap]}\n",
        encoding="utf-8",
    )
    (profile,) = ProfileStore(path, catalog).load()
    assert profile.get_table(TableType.ROUTES).fields == ("Name",)


def test_missing_tables_keep_defaults(tmp_path, catalog):
    path = tmp_path / "profiles.yml"
    path.write_text("profiles:\n  - {name: full, type: Access, file_path: full.db, default: true}\n",
                    encoding="utf-8")
    (profile,) = ProfileStore(path, catalog).load()
    assert profile.is_default
    assert len(profile.tables) == 4
    assert "Name" in profile.get_table(TableType.ROUTES).fields


def test_copy_is_independent(tmp_path, catalog):
    profile = _routes_profile(catalog, tmp_path)
    clone = profile.copy(catalog)
    clone.get_table(TableType.ROUTES).add_field("TotalKM")
    assert clone.name == profile.name
    assert profile.get_table(TableType.ROUTES).fields == ("Name", "TotalMiles")
    assert clone.get_table(TableType.ROUTES).fields == ("Name", "TotalMiles", "TotalKM")
