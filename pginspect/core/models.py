"""
Metadata graph for downstream consumers.

Defines the structures built from decoded catalog records: tables with their
columns, primary key and foreign keys, addressed as ``/:schema/:table``.
A table owns its columns and keys; a snapshot is rebuilt on every run and
never updated in place.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from datetime import date, datetime, time
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Optional
from uuid import UUID

_TRUE_VALUES = {"t", "true", "y", "yes", "on", "1"}
_FALSE_VALUES = {"f", "false", "n", "no", "off", "0"}
_UTC_OFFSET = re.compile(r"([+-]\d{2})(?::?(\d{2}))?$")


def _parse_bool(text: str) -> bool:
    lowered = text.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ValueError(f"invalid boolean: {text!r}")


def _parse_decimal(text: str) -> Decimal:
    try:
        return Decimal(text)
    except InvalidOperation:
        raise ValueError(f"invalid numeric: {text!r}") from None


def _iso_offset(text: str) -> str:
    """Spell a trailing UTC offset as +HH:MM (accepts Z, +HH and +HHMM)."""
    text = text.strip()
    if text[-1:] in ("Z", "z"):
        return text[:-1] + "+00:00"
    match = _UTC_OFFSET.search(text)
    if match and match.start() > 0 and text[match.start() - 1].isdigit():
        return f"{text[: match.start()]}{match.group(1)}:{match.group(2) or '00'}"
    return text


def _parse_timestamptz(text: str) -> datetime:
    return datetime.fromisoformat(_iso_offset(text))


def _parse_timetz(text: str) -> time:
    return time.fromisoformat(_iso_offset(text))


# data_type as reported by information_schema.columns -> parser
VALUE_PARSERS: dict[str, Callable[[str], Any]] = {
    "smallint": int,
    "integer": int,
    "bigint": int,
    "numeric": _parse_decimal,
    "real": float,
    "double precision": float,
    "boolean": _parse_bool,
    "uuid": UUID,
    "date": date.fromisoformat,
    "timestamp without time zone": datetime.fromisoformat,
    "timestamp with time zone": _parse_timestamptz,
    "time without time zone": time.fromisoformat,
    "time with time zone": _parse_timetz,
    "json": json.loads,
    "jsonb": json.loads,
}


@dataclass
class Column:
    """
    A table column.

    Attributes:
        name: Column name
        position: 1-based position among the table's current columns
        ordinal_position: Position reported by the catalog (may have gaps
            left by dropped columns)
        data_type: information_schema data type (e.g. ``integer``, ``text``)
        is_nullable: Whether the column may hold NULL
        default: Default expression, None when the column has no default
        udt_name: Underlying type name (e.g. ``int4``, ``_text``)
        character_maximum_length: Declared length for character types
        numeric_precision: Precision for numeric types
        numeric_scale: Scale for exact numeric types
        is_identity: Whether the column is an identity column
        is_updatable: Whether the column is updatable
    """

    name: str
    position: int
    data_type: str
    is_nullable: bool
    ordinal_position: int = 0
    default: Optional[str] = None
    udt_name: Optional[str] = None
    character_maximum_length: Optional[int] = None
    numeric_precision: Optional[int] = None
    numeric_scale: Optional[int] = None
    is_identity: bool = False
    is_updatable: bool = True

    def parse_value(self, text: Optional[str]) -> Any:
        """
        Convert a textual value (e.g. a URL path segment) to this column's type.

        Args:
            text: Value as text; None stays None for nullable columns

        Returns:
            Python value for the column's data type (str when unknown)

        Raises:
            ValueError: If the text is not a valid value for the column
        """
        if text is None:
            if not self.is_nullable:
                raise ValueError(f"column '{self.name}' is not nullable")
            return None
        parser = VALUE_PARSERS.get(self.data_type)
        if parser is None:
            return text
        try:
            return parser(text)
        except ValueError as e:
            raise ValueError(
                f"invalid value {text!r} for column '{self.name}' ({self.data_type}): {e}"
            ) from e

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "position": self.position,
            "ordinal_position": self.ordinal_position,
            "data_type": self.data_type,
            "udt_name": self.udt_name,
            "is_nullable": self.is_nullable,
            "default": self.default,
            "character_maximum_length": self.character_maximum_length,
            "numeric_precision": self.numeric_precision,
            "numeric_scale": self.numeric_scale,
            "is_identity": self.is_identity,
            "is_updatable": self.is_updatable,
        }


@dataclass
class PrimaryKey:
    """Primary key constraint; empty when the table has none."""

    name: Optional[str] = None
    columns: list[str] = field(default_factory=list)

    def __bool__(self) -> bool:
        return bool(self.columns)

    def to_dict(self) -> Optional[dict[str, Any]]:
        if not self:
            return None
        return {"name": self.name, "columns": list(self.columns)}


@dataclass
class ForeignKey:
    """
    Foreign key constraint.

    ``columns`` and ``referenced_columns`` are aligned: ``columns[i]``
    references ``referenced_columns[i]``.
    """

    name: str
    columns: list[str]
    referenced_schema: str
    referenced_table: str
    referenced_columns: list[str]
    on_update: Optional[str] = None
    on_delete: Optional[str] = None

    def is_self_reference(self, schema: str, table: str) -> bool:
        """Check if this FK references the table that owns it."""
        return self.referenced_schema == schema and self.referenced_table == table

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "columns": list(self.columns),
            "referenced_schema": self.referenced_schema,
            "referenced_table": self.referenced_table,
            "referenced_columns": list(self.referenced_columns),
            "on_update": self.on_update,
            "on_delete": self.on_delete,
        }


@dataclass
class Table:
    """Complete information about a table, view or foreign table."""

    schema: str
    name: str
    table_type: str = "BASE TABLE"
    is_insertable_into: bool = True
    columns: list[Column] = field(default_factory=list)
    foreign_keys: list[ForeignKey] = field(default_factory=list)
    primary_key: PrimaryKey = field(default_factory=PrimaryKey)

    @property
    def full_name(self) -> str:
        """Get fully qualified table name."""
        return f"{self.schema}.{self.name}"

    @property
    def resource_path(self) -> str:
        """Resource path of the table, ``/schema/table``."""
        return f"/{self.schema}/{self.name}"

    def get_column(self, name: str) -> Optional[Column]:
        for col in self.columns:
            if col.name == name:
                return col
        return None

    def get_pk_columns(self) -> list[Column]:
        """Get the primary key columns, in key order."""
        return [col for name in self.primary_key.columns if (col := self.get_column(name))]

    def to_dict(self) -> dict[str, Any]:
        return {
            "schema": self.schema,
            "name": self.name,
            "path": self.resource_path,
            "table_type": self.table_type,
            "is_insertable_into": self.is_insertable_into,
            "columns": [col.to_dict() for col in self.columns],
            "primary_key": self.primary_key.to_dict(),
            "foreign_keys": [fk.to_dict() for fk in self.foreign_keys],
        }


@dataclass
class Schema:
    """A whitelisted schema."""

    name: str
    owner: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "owner": self.owner}


@dataclass
class CatalogSnapshot:
    """Point-in-time metadata graph of the whitelisted schemas."""

    catalog_name: str
    schemas: list[Schema] = field(default_factory=list)
    tables: list[Table] = field(default_factory=list)
    taken_at: Optional[datetime] = None

    def get_table(self, schema: str, name: str) -> Optional[Table]:
        for table in self.tables:
            if table.schema == schema and table.name == name:
                return table
        return None

    def resolve(self, path: str) -> Optional[Table]:
        """Find a table by its resource path (``/schema/table``)."""
        parts = path.strip("/").split("/")
        if len(parts) != 2 or not all(parts):
            return None
        return self.get_table(parts[0], parts[1])

    def tables_in(self, schema: str) -> list[Table]:
        return [table for table in self.tables if table.schema == schema]

    def to_dict(self) -> dict[str, Any]:
        return {
            "catalog": self.catalog_name,
            "taken_at": self.taken_at.isoformat() if self.taken_at else None,
            "schemas": [schema.to_dict() for schema in self.schemas],
            "tables": [table.to_dict() for table in self.tables],
        }

    def to_json(self, indent: Optional[int] = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)
