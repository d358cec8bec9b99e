"""
Output sinks for export tables.

A sink receives a table declaration (columns, then indexes) followed by rows
of DataWrapper cells. The database sink renders a self-contained SQLite file;
the text sink renders one delimited text file.
"""

from __future__ import annotations

import logging
import re
import sqlite3
import uuid
from collections.abc import Callable, Sequence
from datetime import date, datetime
from pathlib import Path
from typing import Any, Optional, Protocol, TextIO

from ..domain.enums import DataType, TableIndexType
from ..domain.models import ResolvedField, TableIndex
from ..types import DataWrapper, ExportIOError

logger = logging.getLogger(__name__)

PRIMARY_KEY_NAME = "PrimaryKey"
INDEX_NAME_SEPARATOR = "_"

_PLAIN_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class SchemaSink(Protocol):
    """Narrow interface the writers render tables through."""

    def create_table(self, name: str) -> None:
        ...

    def append_column(self, field: ResolvedField, title: str) -> None:
        ...

    def append_index(self, index: TableIndex) -> None:
        ...

    def insert_row(self, values: Sequence[DataWrapper]) -> None:
        ...

    def close(self) -> None:
        ...


# =============================================================================
# SQLite database sink
# =============================================================================

def sqlite_column_type(field: ResolvedField) -> str:
    """SQL column type for a field's data type."""
    data_type = field.data_type
    if data_type.is_integer:
        return "INTEGER"
    if data_type.is_floating:
        return "REAL"
    if data_type is DataType.DATE:
        return "DATE"
    if data_type is DataType.WCHAR and field.size > 0:
        return f"VARCHAR({field.size})"
    if data_type is DataType.LONG_VAR_BINARY:
        return "BLOB"
    return "TEXT"


def to_sqlite_value(cell: DataWrapper) -> Any:
    """Convert a cell to a value sqlite3 stores without adapters."""
    value = cell.value_or_default()
    if value is None:
        return None
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, bytearray):
        return bytes(value)
    return value


class SqliteSchemaSink:
    """
    Renders tables into one SQLite database file.

    Columns and indexes are buffered per table and materialized before the
    first row, at the next create_table or at close, so tables without rows
    still exist in the output.

    Args:
        path: Database file to create
        is_name_reserved: Reserved-word check; reserved names are bracketed
    """

    def __init__(self, path: Path, is_name_reserved: Optional[Callable[[str], bool]] = None):
        self.path = path
        self._is_name_reserved = is_name_reserved or (lambda name: False)
        try:
            self._conn = sqlite3.connect(path)
        except sqlite3.Error as e:
            raise ExportIOError(path, f"cannot create database: {e}") from e

        self._table: Optional[str] = None
        self._columns: list[tuple[ResolvedField, str]] = []
        self._indexes: list[TableIndex] = []
        self._materialized = True
        self._insert_sql: Optional[str] = None

    def quote(self, name: str) -> str:
        """Escape a table, column or index name for SQL statements."""
        if "]" in name:
            return '"' + name.replace('"', '""') + '"'
        if self._is_name_reserved(name) or not _PLAIN_IDENTIFIER.match(name):
            return f"[{name}]"
        return name

    def create_table(self, name: str) -> None:
        self._materialize()
        self._table = name
        self._columns = []
        self._indexes = []
        self._materialized = False
        self._insert_sql = None
        logger.debug(f"Creating table {name}")

    def append_column(self, field: ResolvedField, title: str) -> None:
        self._columns.append((field, title))

    def append_index(self, index: TableIndex) -> None:
        self._indexes.append(index)

    def index_name(self, index: TableIndex) -> str:
        """Database-wide index name, prefixed with the table name."""
        if index.type is TableIndexType.PRIMARY:
            suffix = PRIMARY_KEY_NAME
        else:
            suffix = INDEX_NAME_SEPARATOR.join(index.fields)
        return f"{self._table}{INDEX_NAME_SEPARATOR}{suffix}"

    def _materialize(self) -> None:
        if self._materialized or self._table is None:
            return

        definitions = [
            f"{self.quote(field.name)} {sqlite_column_type(field)}" for field, _ in self._columns
        ]
        for index in self._indexes:
            if index.type is TableIndexType.PRIMARY:
                columns = ", ".join(self.quote(name) for name in index.fields)
                definitions.append(f"CONSTRAINT {self.quote(self.index_name(index))} PRIMARY KEY ({columns})")

        statements = [f"CREATE TABLE {self.quote(self._table)} ({', '.join(definitions)})"]
        for index in self._indexes:
            if index.type is not TableIndexType.PRIMARY:
                columns = ", ".join(self.quote(name) for name in index.fields)
                statements.append(
                    f"CREATE INDEX {self.quote(self.index_name(index))} ON {self.quote(self._table)} ({columns})"
                )

        try:
            for statement in statements:
                logger.debug(statement)
                self._conn.execute(statement)
        except sqlite3.Error as e:
            raise ExportIOError(self.path, f"cannot create table {self._table}: {e}") from e

        names = ", ".join(self.quote(field.name) for field, _ in self._columns)
        placeholders = ", ".join("?" for _ in self._columns)
        self._insert_sql = f"INSERT INTO {self.quote(self._table)} ({names}) VALUES ({placeholders})"
        self._materialized = True

    def insert_row(self, values: Sequence[DataWrapper]) -> None:
        self._materialize()
        if self._insert_sql is None:
            raise ExportIOError(self.path, "row inserted before any table was created")
        try:
            self._conn.execute(self._insert_sql, [to_sqlite_value(cell) for cell in values])
        except sqlite3.Error as e:
            raise ExportIOError(self.path, f"cannot write row to {self._table}: {e}") from e

    def close(self) -> None:
        try:
            self._materialize()
            self._conn.commit()
        finally:
            self._conn.close()

    def abort(self) -> None:
        """Close without committing pending work."""
        self._conn.close()


# =============================================================================
# Delimited text sink
# =============================================================================

STRING_FORMAT = '"{0}"'


def format_text_cell(cell: DataWrapper, short_date_format: str) -> str:
    """
    Render one cell for delimited text.

    Strings are quoted with embedded quotes doubled, dates use the short date
    format, and absent values use the type defaults (-1, 0.0, empty quotes or
    nothing for dates and identifiers).
    """
    value = cell.value
    data_type = cell.type

    if value is None or (isinstance(value, str) and value == ""):
        if data_type.is_integer:
            return "-1"
        if data_type.is_floating:
            return "0.0"
        if data_type.is_text:
            return STRING_FORMAT.format("")
        return ""

    if data_type.is_text:
        return STRING_FORMAT.format(str(value).replace('"', '""'))
    if data_type is DataType.DATE:
        return value.strftime(short_date_format)
    if isinstance(value, (bytes, bytearray)):
        return ""
    return str(value)


class DelimitedTextSink:
    """
    Renders one table into a delimited text file.

    The header row holds the quoted column titles and is written before the
    first row, or at close when the table has no rows.
    """

    def __init__(self, path: Path, separator: str = ",", short_date_format: str = "%m/%d/%Y"):
        self.path = path
        self.separator = separator
        self.short_date_format = short_date_format
        try:
            self._file: TextIO = open(path, "w", encoding="utf-8", newline="")
        except OSError as e:
            raise ExportIOError(path, f"cannot create file: {e}") from e

        self._titles: list[str] = []
        self._header_written = False
        self.row_count = 0

    def create_table(self, name: str) -> None:
        if self._titles:
            raise ExportIOError(self.path, "a text file holds a single table")
        logger.debug(f"Writing table {name} to {self.path}")

    def append_column(self, field: ResolvedField, title: str) -> None:
        self._titles.append(title)

    def append_index(self, index: TableIndex) -> None:
        pass

    def _write_line(self, cells: Sequence[str]) -> None:
        try:
            self._file.write(self.separator.join(cells) + "\n")
        except OSError as e:
            raise ExportIOError(self.path, f"cannot write: {e}") from e

    def _write_header(self) -> None:
        if not self._header_written:
            self._write_line([STRING_FORMAT.format(title.replace('"', '""')) for title in self._titles])
            self._header_written = True

    def insert_row(self, values: Sequence[DataWrapper]) -> None:
        self._write_header()
        self._write_line([format_text_cell(cell, self.short_date_format) for cell in values])
        self.row_count += 1

    def close(self) -> None:
        try:
            self._write_header()
        finally:
            self._file.close()

    def abort(self) -> None:
        self._file.close()
