"""
Database export: every table of a profile into one SQLite file.

Tables are declared from the selected fields of each table definition and
filled one row per entity. Map images come from an injected renderer and the
stop itinerary is stored as UTF-16-LE text. Any failure, cancellation
included, removes the partial file before the error propagates.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Collection, Sequence
from pathlib import Path
from typing import Optional, Protocol

from ..cleanup import remove_partial_output
from ..config.settings import LocaleConfig
from ..domain.entities import Direction, Route, Schedule, Stop
from ..domain.enums import ExportType, ManeuverType, OrderCustomPropertyType, StopType, TableType
from ..domain.models import ResolvedField
from ..resources import ResourceProvider
from ..schema.catalog import SchemaCatalog
from ..schema.definition import TableDefinition
from ..schema.description import validate_relative_name
from ..types import (
    CancelTracker,
    DataWrapper,
    InvariantViolation,
    UserCancelled,
    raise_if_cancelled,
)
from .resolver import KM_PER_MILE, FieldKey, FieldValueResolver
from .sinks import SqliteSchemaSink

logger = logging.getLogger(__name__)

# Map image geometry
ROUTE_MAP_IMAGE_SIZE = (640, 360)   # pixels
STOP_MAP_IMAGE_SIZE = (230, 180)    # pixels
STOP_MAP_RADIUS = 1609 // 4         # meters
IMAGE_DPI = 96

# Itinerary text
MIN_DISTANCE_TO_SHOW = 0.1
DIRECTION_TEXT_FORMAT = "{0}, {1}"
LENGTH_TEXT_FORMAT = " {0:.1f} {1}"
LENGTH_MIN_SYMBOLS = " <"

# Schema table rows
SCHEMA_TYPE_CAPACITIES = "Capacities"
SCHEMA_TYPE_CUSTOM_PROPERTIES_TEXT = "CustomOrderPropertiesText"
SCHEMA_TYPE_CUSTOM_PROPERTIES_NUMERIC = "CustomOrderPropertiesNumeric"
SCHEMA_FIELD_TYPE = "Type"
SCHEMA_FIELD_NAMES = "FieldNames"
SCHEMA_NAME_SEPARATOR = ","


class MapImageRenderer(Protocol):
    """Renders map images for route and stop rows; None when unavailable."""

    def render_route(self, route: Route, width: int, height: int, dpi: int) -> Optional[bytes]:
        ...

    def render_stop(self, route: Route, stop: Stop, radius: float,
                    width: int, height: int, dpi: int) -> Optional[bytes]:
        ...


class DatabaseWriter:
    """
    Writes table definitions and schedules into a SQLite database.

    Args:
        catalog: Schema catalog the table definitions were built from
        locale: Formatting conventions; list values use the locale separator
        resources: Localized itinerary words
        renderer: Map image renderer; required when image fields are selected
    """

    def __init__(self,
                 catalog: SchemaCatalog,
                 locale: Optional[LocaleConfig] = None,
                 resources: Optional[ResourceProvider] = None,
                 renderer: Optional[MapImageRenderer] = None):
        self.catalog = catalog
        self.locale = locale or LocaleConfig()
        self.resources = resources or catalog.resources
        self.renderer = renderer

    def export(self,
               path: Path,
               tables: Sequence[TableDefinition],
               schedules: Sequence[Schedule],
               routes: Optional[Collection[Route]] = None,
               tracker: Optional[CancelTracker] = None) -> None:
        """
        Write all tables to a new database file.

        Args:
            path: Output file; must not exist yet
            tables: Table definitions in output order
            schedules: Schedules to export
            routes: Optional subset of routes; other routes and their stops are skipped
            tracker: Cancellation tracker polled between rows and image renders

        Raises:
            ValueError: If image fields are selected without a renderer
            UserCancelled: If the tracker requested cancellation
            ExportIOError: If the database cannot be written
        """
        self.check_images(tables)
        route_filter = {route.id for route in routes} if routes is not None else None

        sink = SqliteSchemaSink(path, self.catalog.is_name_reserved)
        try:
            for table in tables:
                raise_if_cancelled(tracker)
                self._write_table(sink, table, schedules, route_filter, tracker)
            sink.close()
        except BaseException as e:
            sink.abort()
            remove_partial_output(path)
            if not isinstance(e, UserCancelled):
                logger.error(f"Database export to {path} failed: {e}")
            raise

        logger.info(f"Database export completed: {len(tables)} tables written to {path}")

    def check_images(self, tables: Sequence[TableDefinition]) -> None:
        """
        Fail early when image fields are selected but no renderer is set.

        Raises:
            ValueError: If an image field has no renderer to produce it
        """
        if self.renderer is not None:
            return
        for table in tables:
            for field in table.selected_field_infos():
                if field.is_image:
                    raise ValueError(
                        f"Field '{field.name}' of table {table.name} needs a map image renderer"
                    )

    def _write_table(self, sink: SqliteSchemaSink, table: TableDefinition,
                     schedules: Sequence[Schedule], route_filter: Optional[set[uuid.UUID]],
                     tracker: Optional[CancelTracker]) -> None:
        fields = table.selected_field_infos()
        if any(field is None for field in fields):
            raise InvariantViolation(f"Table {table.name} selects fields its description lacks")

        sink.create_table(table.name)
        for field in fields:
            sink.append_column(field, table.get_field_title_by_name(field.name))
        selected = set(table.fields)
        for table_info in self.catalog.get_pattern(ExportType.ACCESS):
            if table_info.type is table.type:
                for index in table_info.indexes:
                    if all(name in selected for name in index.fields):
                        sink.append_index(index)

        resolver = FieldValueResolver(table.description, self.locale, self.resources,
                                      list_separator=self.locale.list_separator)

        if table.type is TableType.SCHEDULES:
            self._write_schedules(sink, fields, resolver, schedules, tracker)
        elif table.type is TableType.ROUTES:
            self._write_routes(sink, fields, resolver, schedules, route_filter, tracker)
        elif table.type in (TableType.STOPS, TableType.ORDERS):
            self._write_stops(sink, fields, resolver, schedules, route_filter, tracker,
                              only_orders=table.type is TableType.ORDERS)
        else:
            self._write_schema(sink, fields, tracker)

    def _write_schedules(self, sink, fields, resolver, schedules, tracker) -> None:
        for schedule in schedules:
            raise_if_cancelled(tracker)
            sink.insert_row([resolver.resolve_schedule(field.name, schedule) for field in fields])

    def _write_routes(self, sink, fields, resolver, schedules, route_filter, tracker) -> None:
        for schedule in schedules:
            raise_if_cancelled(tracker)
            for route in schedule.routes:
                raise_if_cancelled(tracker)
                if route_filter is not None and route.id not in route_filter:
                    continue
                if not route.stops:
                    continue
                row = []
                for field in fields:
                    if field.is_image:
                        raise_if_cancelled(tracker)
                        width, height = ROUTE_MAP_IMAGE_SIZE
                        image = self.renderer.render_route(route, width, height, IMAGE_DPI)
                        row.append(DataWrapper(image, field.data_type))
                    else:
                        row.append(resolver.resolve_route(field.name, schedule.id, route))
                sink.insert_row(row)

    def _write_stops(self, sink, fields, resolver, schedules, route_filter, tracker,
                     only_orders: bool = False) -> None:
        for schedule in schedules:
            raise_if_cancelled(tracker)
            for route in schedule.routes:
                raise_if_cancelled(tracker)
                if route_filter is not None and route.id not in route_filter:
                    continue
                for stop in route.stops:
                    raise_if_cancelled(tracker)
                    if only_orders and stop.stop_type is not StopType.ORDER:
                        continue
                    sink.insert_row([
                        self._stop_cell(field, resolver, schedule.id, route, stop, tracker)
                        for field in fields
                    ])

            raise_if_cancelled(tracker)
            for order in schedule.unassigned_orders:
                raise_if_cancelled(tracker)
                sink.insert_row([
                    DataWrapper(None, field.data_type) if self._is_binary(field)
                    else resolver.resolve_stop(field.name, schedule.id, order)
                    for field in fields
                ])

    @staticmethod
    def _is_binary(field: ResolvedField) -> bool:
        return field.is_image or field.name == FieldKey.DIRECTIONS.value

    def _stop_cell(self, field: ResolvedField, resolver: FieldValueResolver, schedule_id: uuid.UUID,
                   route: Route, stop: Stop, tracker: Optional[CancelTracker]) -> DataWrapper:
        if field.is_image:
            raise_if_cancelled(tracker)
            width, height = STOP_MAP_IMAGE_SIZE
            image = self.renderer.render_stop(route, stop, STOP_MAP_RADIUS, width, height, IMAGE_DPI)
            return DataWrapper(image, field.data_type)
        if field.name == FieldKey.DIRECTIONS.value:
            text = self.directions_text(stop.directions)
            return DataWrapper(text.encode("utf-16-le"), field.data_type)
        return resolver.resolve_stop(field.name, schedule_id, stop)

    def _write_schema(self, sink, fields, tracker) -> None:
        capacities = [validate_relative_name(info.name) for info in self.catalog.capacities_info]
        text_properties = []
        numeric_properties = []
        for info in self.catalog.order_custom_properties_info:
            name = validate_relative_name(info.name)
            if info.type is OrderCustomPropertyType.TEXT:
                text_properties.append(name)
            else:
                numeric_properties.append(name)

        for kind, names in ((SCHEMA_TYPE_CAPACITIES, capacities),
                            (SCHEMA_TYPE_CUSTOM_PROPERTIES_TEXT, text_properties),
                            (SCHEMA_TYPE_CUSTOM_PROPERTIES_NUMERIC, numeric_properties)):
            raise_if_cancelled(tracker)
            if names:
                sink.insert_row([self._schema_cell(field, kind, names) for field in fields])

    @staticmethod
    def _schema_cell(field: ResolvedField, kind: str, names: list[str]) -> DataWrapper:
        if field.name == SCHEMA_FIELD_TYPE:
            return DataWrapper(kind, field.data_type)
        if field.name == SCHEMA_FIELD_NAMES:
            return DataWrapper(SCHEMA_NAME_SEPARATOR.join(names), field.data_type)
        raise InvariantViolation(f"Unknown schema table field '{field.name}'")

    # Itinerary text

    def length_string(self, length_in_miles: float) -> str:
        """Drive distance phrase, e.g. ``Drive 1.2 mi`` or ``Drive < 0.1 km``."""
        if self.locale.metric_units:
            length = length_in_miles * KM_PER_MILE
            unit = self.resources.get("DistanceInKilometresText")
        else:
            length = length_in_miles
            unit = self.resources.get("DistanceInMilesText")

        text = self.resources.get("DirectionsWordDrive")
        if length < MIN_DISTANCE_TO_SHOW:
            text += LENGTH_MIN_SYMBOLS
            length = MIN_DISTANCE_TO_SHOW
        return text + LENGTH_TEXT_FORMAT.format(length, unit)

    def directions_text(self, directions: Sequence[Direction]) -> str:
        lines = []
        for direction in directions:
            if direction.maneuver_type in (ManeuverType.DEPART, ManeuverType.STOP):
                lines.append(direction.text)
            else:
                lines.append(DIRECTION_TEXT_FORMAT.format(direction.text, self.length_string(direction.length)))
        return "".join(f"{line}\n" for line in lines)
