"""
Export schema: catalog, table descriptions, table definitions and name checks.
"""

from .catalog import SchemaCatalog
from .definition import TableDefinition
from .description import SHORT_NAME_LENGTH, TableDescription, validate_relative_name
from .validator import ExportValidator

__all__ = [
    'SHORT_NAME_LENGTH',
    'ExportValidator',
    'SchemaCatalog',
    'TableDefinition',
    'TableDescription',
    'validate_relative_name',
]
