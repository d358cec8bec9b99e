"""Tests for relation expansion and table description lookups."""

import pytest

from routexport.config.settings import ConfigurationError
from routexport.domain.enums import (
    AddressPart,
    DataType,
    OrderCustomPropertyType,
    RelationType,
    TableType,
    Unit,
)
from routexport.domain.models import AddressField, CapacityInfo, FieldTemplate, OrderCustomPropertyInfo
from routexport.resources import ResourceProvider
from routexport.schema.description import (
    TableDescription,
    expand_address,
    expand_capacities,
    expand_order_custom_properties,
    validate_relative_name,
)
from routexport.types import InvariantViolation

MAY_BE = "may be pounds or kilograms depending on your location"


def _capacity_template():
    return FieldTemplate(
        name="{0}Capacity",
        long_name="{0} Capacity",
        short_name="{0}Cap",
        relation_type=RelationType.CAPACITIES,
        name_format="{0}Capacity",
        data_type=DataType.DOUBLE,
    )


def test_validate_relative_name():
    assert validate_relative_name("  Cold Storage ") == "ColdStorage"
    assert validate_relative_name("") == ""
    assert validate_relative_name(None) == ""


def test_validate_relative_name_idempotent():
    once = validate_relative_name(" Liquid Volume")
    assert validate_relative_name(once) == once


def test_route_capacity_fields(catalog):
    routes = catalog.get_table_description(TableType.ROUTES)
    for name in ("WeightCapacity", "VolumeCapacity", "MaxWeight", "TotalVolume", "WeightUtilization"):
        assert name in routes
    assert routes.get_field_info("WeightCapacity").long_name == "Weight Capacity"


def test_expansion_keeps_declaration_order(catalog):
    names = catalog.get_table_description(TableType.ROUTES).field_names
    assert names.index("MaxWeight") < names.index("MaxVolume") < names.index("WeightCapacity")


def test_short_names_truncated():
    infos = [CapacityInfo(name="Refrigerated Space")]
    (field,) = expand_capacities(_capacity_template(), infos, ResourceProvider())
    assert field.name == "RefrigeratedSpaceCapacity"
    assert field.short_name == "Refrigerat"


def test_numeric_custom_property_becomes_double():
    template = FieldTemplate(
        name="{0}",
        long_name="{0}",
        short_name="{0}",
        relation_type=RelationType.CUSTOM_ORDER_PROPERTIES,
        name_format="{0}",
        data_type=DataType.WCHAR,
        size=255,
    )
    infos = [
        OrderCustomPropertyInfo(name="Notes", description="Driver notes"),
        OrderCustomPropertyInfo(name="Rank", type=OrderCustomPropertyType.NUMERIC),
    ]
    notes, rank = expand_order_custom_properties(template, infos)
    assert notes.data_type is DataType.WCHAR
    assert notes.description == "Driver notes"
    assert rank.data_type is DataType.DOUBLE
    assert (rank.size, rank.precision, rank.scale) == (0, 14, 2)


def test_address_fields_use_titles():
    template = FieldTemplate(
        name="{0}",
        long_name="{0}",
        short_name="{0}",
        relation_type=RelationType.ADDRESS,
        name_format="{0}",
        data_type=DataType.WCHAR,
        size=100,
    )
    (field,) = expand_address(template, [AddressField(type=AddressPart.STATE_PROVINCE, title="State")])
    assert field.name == "State"
    assert field.name_format == "StateProvince"


def test_capacity_description_without_units(catalog):
    field = catalog.get_table_description(TableType.ROUTES).get_field_info("WeightCapacity")
    assert field.description == "The amount of weight."


@pytest.mark.parametrize("key, us, metric, expected", [
    ("ExportFieldDescriptionCapacity", Unit.UNKNOWN, Unit.UNKNOWN,
     "The maximum weight for the route."),
    ("ExportFieldDescriptionCapacity", Unit.POUND, Unit.POUND,
     "The maximum weight for the route (in predefined units; pounds)."),
    ("ExportFieldDescriptionCapacity", Unit.POUND, Unit.KILOGRAM,
     f"The maximum weight for the route (in predefined units; {MAY_BE})."),
    ("ExportFieldDescriptionRelativeCapacity", Unit.UNKNOWN, Unit.UNKNOWN,
     "The amount of weight."),
    ("ExportFieldDescriptionRelativeCapacity", Unit.POUND, Unit.POUND,
     "The amount of weight (in predefined units; pounds)."),
    ("ExportFieldDescriptionRelativeCapacity", Unit.POUND, Unit.KILOGRAM,
     f"The amount of weight (in predefined units; {MAY_BE})."),
    ("ExportFieldDescriptionTotal", Unit.UNKNOWN, Unit.UNKNOWN,
     "Total weight of all goods in unknown."),
    ("ExportFieldDescriptionTotal", Unit.POUND, Unit.POUND,
     "Total weight of all goods in pounds."),
    ("ExportFieldDescriptionTotal", Unit.POUND, Unit.KILOGRAM,
     "Total weight of all goods in pounds or kilograms for the route."),
    ("ExportFieldDescriptionUtilization", Unit.POUND, Unit.KILOGRAM,
     "Percent (%) of the available weight capacity used on the route, based on Weight Capacity and Total Weight."),
    ("ExportFieldDescriptionUtilization", Unit.UNKNOWN, Unit.UNKNOWN,
     "Percent (%) of the available weight capacity used on the route, based on Weight Capacity and Total Weight."),
])
def test_capacity_descriptions(key, us, metric, expected):
    resources = ResourceProvider()
    template = _capacity_template().model_copy(update={"description": resources.get(key)})
    info = CapacityInfo(name="Weight", display_unit_us=us, display_unit_metric=metric)
    (field,) = expand_capacities(template, [info], resources)
    assert field.description == expected


def test_unknown_description_kept():
    template = _capacity_template().model_copy(update={"description": "Custom text"})
    (field,) = expand_capacities(template, [CapacityInfo(name="Weight")], ResourceProvider())
    assert field.description == "Custom text"


def test_relation_index_round_trip(catalog):
    stops = catalog.get_table_description(TableType.STOPS)
    assert stops.get_capacity_index(stops.get_field_info("Weight")) == 0
    assert stops.get_capacity_index(stops.get_field_info("Volume")) == 1
    assert stops.get_order_custom_property_index(stops.get_field_info("Rank")) == 1


def test_relation_index_unknown_field(catalog):
    stops = catalog.get_table_description(TableType.STOPS)
    with pytest.raises(InvariantViolation):
        stops.get_capacity_index(stops.get_field_info("Name"))


def test_duplicate_expanded_name():
    templates = [
        FieldTemplate(name="Name", long_name="Name", short_name="Name", data_type=DataType.WCHAR),
        _capacity_template().model_copy(update={"name": "{0}", "name_format": "{0}"}),
    ]
    with pytest.raises(ConfigurationError, match="Duplicate field 'Name'"):
        TableDescription(TableType.ROUTES, templates, [CapacityInfo(name="Name")], [], [], ResourceProvider())
