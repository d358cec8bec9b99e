"""Delimited text export of one table."""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from pathlib import Path
from typing import Optional

from ..cleanup import remove_partial_output
from ..config.settings import LocaleConfig
from ..domain.entities import Schedule
from ..domain.enums import StopType, TableType
from ..domain.models import ResolvedField
from ..resources import ResourceProvider
from ..schema.catalog import SchemaCatalog
from ..schema.definition import TableDefinition
from ..types import CancelTracker, DataWrapper, UserCancelled, raise_if_cancelled
from .resolver import SINK_RENDERED_KEYS, FieldValueResolver
from .sinks import DelimitedTextSink

logger = logging.getLogger(__name__)

_BINARY_FIELDS = frozenset(key.value for key in SINK_RENDERED_KEYS)
TEXT_TABLE_TYPES = (TableType.ROUTES, TableType.STOPS, TableType.ORDERS)


class TextWriter:
    """
    Writes one table definition into a delimited text file.

    Columns are separated by the locale list separator; lists inside a cell
    use the other separator so rows stay parseable.
    """

    def __init__(self,
                 catalog: SchemaCatalog,
                 locale: Optional[LocaleConfig] = None,
                 resources: Optional[ResourceProvider] = None):
        self.catalog = catalog
        self.locale = locale or LocaleConfig()
        self.resources = resources or catalog.resources

    def export(self,
               path: Path,
               table: TableDefinition,
               schedules: Sequence[Schedule],
               tracker: Optional[CancelTracker] = None) -> int:
        """
        Write the table's rows for all schedules.

        Routes tables get one row per route with stops; stops tables one row
        per stop; orders tables one row per order stop. Both stop kinds add
        the schedule's unassigned orders after its routes.

        Returns:
            Number of rows written

        Raises:
            ValueError: If the table type has no text form
            UserCancelled: If the tracker requested cancellation
            ExportIOError: If the file cannot be written
        """
        self.check_table(table)

        fields = table.selected_field_infos()
        resolver = FieldValueResolver(table.description, self.locale, self.resources,
                                      list_separator=self.locale.cell_list_separator)

        sink = DelimitedTextSink(path, self.locale.list_separator, self.locale.short_date_format)
        try:
            sink.create_table(table.name)
            for field in fields:
                sink.append_column(field, table.get_field_title_by_name(field.name))

            for row in self._rows(table.type, fields, resolver, schedules, tracker):
                sink.insert_row(row)
            sink.close()
        except BaseException as e:
            sink.abort()
            remove_partial_output(path)
            if not isinstance(e, UserCancelled):
                logger.error(f"Text export to {path} failed: {e}")
            raise

        logger.info(f"Text export completed: {sink.row_count} {table.name} rows written to {path}")
        return sink.row_count

    @staticmethod
    def check_table(table: TableDefinition) -> None:
        """Raise ValueError when the table type has no text form."""
        if table.type not in TEXT_TABLE_TYPES:
            raise ValueError(f"Table {table.type.value} cannot be exported as text")

    def _rows(self, table_type: TableType, fields: list[ResolvedField], resolver: FieldValueResolver,
              schedules: Sequence[Schedule],
              tracker: Optional[CancelTracker]) -> Iterator[list[DataWrapper]]:
        for schedule in schedules:
            raise_if_cancelled(tracker)
            if table_type is TableType.ROUTES:
                for route in schedule.routes:
                    raise_if_cancelled(tracker)
                    if not route.stops:
                        continue
                    yield self._row(fields, tracker,
                                    lambda name: resolver.resolve_route(name, schedule.id, route))
            elif table_type in (TableType.STOPS, TableType.ORDERS):
                only_orders = table_type is TableType.ORDERS
                for route in schedule.routes:
                    raise_if_cancelled(tracker)
                    for stop in route.stops:
                        raise_if_cancelled(tracker)
                        if only_orders and stop.stop_type is not StopType.ORDER:
                            continue
                        yield self._row(fields, tracker,
                                        lambda name: resolver.resolve_stop(name, schedule.id, stop))

                raise_if_cancelled(tracker)
                for order in schedule.unassigned_orders:
                    raise_if_cancelled(tracker)
                    yield self._row(fields, tracker,
                                    lambda name: resolver.resolve_stop(name, schedule.id, order))

    @staticmethod
    def _row(fields: list[ResolvedField], tracker: Optional[CancelTracker], resolve) -> list[DataWrapper]:
        row = []
        for field in fields:
            raise_if_cancelled(tracker)
            if field.name in _BINARY_FIELDS:
                row.append(DataWrapper(None, field.data_type))
            else:
                row.append(resolve(field.name))
        return row
