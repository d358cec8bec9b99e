"""Tests for custom order property name checks."""

import pytest

from routexport.schema.validator import ExportValidator


@pytest.fixture
def validator(capacities, address_fields):
    return ExportValidator(capacities, address_fields)


def test_fixed_field_names_taken(validator):
    assert not validator.is_custom_order_field_name_unique("Name", ["Name"])
    assert not validator.is_custom_order_field_name_unique("sequence", ["sequence"])


def test_spaces_are_ignored(validator):
    assert not validator.is_custom_order_field_name_unique("Full Address", ["Full Address"])


def test_expanded_names_taken(validator):
    assert not validator.is_custom_order_field_name_unique("Weight", ["Weight"])
    assert not validator.is_custom_order_field_name_unique("City", ["City"])


def test_free_name(validator):
    assert validator.is_custom_order_field_name_unique("Notes", ["Notes", "Gate Code"])


def test_duplicate_property_names(validator):
    assert not validator.is_custom_order_field_name_unique("Notes", ["Notes", "notes"])


def test_empty_name(validator):
    with pytest.raises(ValueError):
        validator.is_custom_order_field_name_unique("", [])


def test_known_names_skip_custom_properties(validator):
    assert "Weight" in validator.known_names
    assert "OrderID" in validator.known_names
    assert "Notes" not in validator.known_names


def test_reserved_words_are_not_field_names(validator):
    # The database sink brackets reserved names, so only field names collide
    assert "Select" not in validator.known_names
    assert validator.is_custom_order_field_name_unique("Select", ["Select"])
