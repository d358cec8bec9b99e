"""
Export pipeline: value resolution, sinks, writers and orchestration.
"""

from .database_writer import DatabaseWriter, MapImageRenderer
from .exporter import Exporter
from .resolver import FieldKey, FieldValueResolver
from .sinks import DelimitedTextSink, SchemaSink, SqliteSchemaSink
from .text_writer import TextWriter

__all__ = [
    'DatabaseWriter',
    'DelimitedTextSink',
    'Exporter',
    'FieldKey',
    'FieldValueResolver',
    'MapImageRenderer',
    'SchemaSink',
    'SqliteSchemaSink',
    'TextWriter',
]
