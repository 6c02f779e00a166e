"""Core functionality for pginspect."""

from pginspect.core.builder import MetadataBuilder
from pginspect.core.introspection import SchemaIntrospector, connect
from pginspect.core.models import CatalogSnapshot, Column, ForeignKey, PrimaryKey, Schema, Table
from pginspect.core.records import ColumnInfo, KeyColumnInfo, SchemaInfo, TableInfo, decode_row
from pginspect.core.snapshot import take_snapshot

__all__ = [
    "CatalogSnapshot",
    "Column",
    "ColumnInfo",
    "ForeignKey",
    "KeyColumnInfo",
    "MetadataBuilder",
    "PrimaryKey",
    "Schema",
    "SchemaInfo",
    "SchemaIntrospector",
    "Table",
    "TableInfo",
    "connect",
    "decode_row",
    "take_snapshot",
]
