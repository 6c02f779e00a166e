"""
Catalog record types.

One record type per information schema view. Each type carries an explicit
mapping table (``FIELDS``) binding every attribute to its source column and
nullable domain, in the view's documented column order. Rows are decoded
through that table only, so attribute names and catalog column names are free
to differ.

See https://www.postgresql.org/docs/current/information-schema.html
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, fields
from typing import Any, ClassVar, NamedTuple, TypeVar

from pginspect.core.nullable import (
    CardinalNumber,
    CharacterData,
    Nullable,
    SQLIdentifier,
    YesOrNo,
)
from pginspect.exceptions import DecodeError


class FieldSpec(NamedTuple):
    """Binding of one record attribute to a catalog column."""

    attr: str
    column: str
    kind: type[Nullable]


R = TypeVar("R", bound="CatalogRecord")


class CatalogRecord:
    """Mixin shared by the record dataclasses."""

    VIEW: ClassVar[str]
    FIELDS: ClassVar[tuple[FieldSpec, ...]]
    KEY: ClassVar[tuple[str, ...]]

    @classmethod
    def columns(cls) -> list[str]:
        """Source column names, in mapping table order."""
        return [spec.column for spec in cls.FIELDS]

    @property
    def key(self) -> tuple[Any, ...]:
        """Identifying key of the row (payloads, None where NULL)."""
        return tuple(getattr(self, attr).value for attr in self.KEY)

    @property
    def key_str(self) -> str:
        return ".".join("NULL" if part is None else str(part) for part in self.key)

    def to_dict(self) -> dict[str, Any]:
        """Column name -> JSON-ready payload."""
        return {spec.column: getattr(self, spec.attr).to_json() for spec in self.FIELDS}


def _row_key(record_type: type[CatalogRecord], row: Mapping[str, Any]) -> str:
    columns = {spec.attr: spec.column for spec in record_type.FIELDS}
    parts = [row.get(columns[attr]) for attr in record_type.KEY]
    return ".".join("NULL" if part is None else str(part) for part in parts)


def decode_row(record_type: type[R], row: Mapping[str, Any]) -> R:
    """
    Decode one catalog row into a record.

    Args:
        record_type: Record class carrying the mapping table
        row: Column name -> raw driver value

    Returns:
        Decoded record

    Raises:
        DecodeError: If a mapped column is missing or its value does not fit
            the column's nullable domain
    """
    values: dict[str, Nullable] = {}
    for spec in record_type.FIELDS:
        if spec.column not in row:
            raise DecodeError(
                "column missing from result row",
                record=record_type.__name__,
                column=spec.column,
                key=_row_key(record_type, row),
            )
        try:
            values[spec.attr] = spec.kind.decode(row[spec.column])
        except DecodeError as e:
            raise DecodeError(
                e.reason,
                record=record_type.__name__,
                column=spec.column,
                key=_row_key(record_type, row),
            ) from e
    return record_type(**values)


def decode_rows(record_type: type[R], rows: list[Mapping[str, Any]]) -> list[R]:
    return [decode_row(record_type, row) for row in rows]


@dataclass(frozen=True)
class SchemaInfo(CatalogRecord):
    """
    Row of information_schema.schemata.

    Attributes:
        catalog_name: Database that contains the schema (always the current one)
        schema_name: Name of the schema
        schema_owner: Name of the owner of the schema
        default_character_set_catalog: Not available in PostgreSQL
        default_character_set_schema: Not available in PostgreSQL
        default_character_set_name: Not available in PostgreSQL
        sql_path: Not available in PostgreSQL
    """

    catalog_name: SQLIdentifier
    schema_name: SQLIdentifier
    schema_owner: SQLIdentifier
    default_character_set_catalog: SQLIdentifier
    default_character_set_schema: SQLIdentifier
    default_character_set_name: SQLIdentifier
    sql_path: CharacterData

    VIEW: ClassVar[str] = "schemata"
    KEY: ClassVar[tuple[str, ...]] = ("schema_name",)
    FIELDS: ClassVar[tuple[FieldSpec, ...]] = (
        FieldSpec("catalog_name", "catalog_name", SQLIdentifier),
        FieldSpec("schema_name", "schema_name", SQLIdentifier),
        FieldSpec("schema_owner", "schema_owner", SQLIdentifier),
        FieldSpec("default_character_set_catalog", "default_character_set_catalog", SQLIdentifier),
        FieldSpec("default_character_set_schema", "default_character_set_schema", SQLIdentifier),
        FieldSpec("default_character_set_name", "default_character_set_name", SQLIdentifier),
        FieldSpec("sql_path", "sql_path", CharacterData),
    )


@dataclass(frozen=True)
class TableInfo(CatalogRecord):
    """
    Row of information_schema.tables.

    ``table_type`` is one of BASE TABLE, VIEW, FOREIGN TABLE or LOCAL TEMPORARY.
    The self-referencing, reference generation and commit action columns are
    not used by PostgreSQL and are carried through untouched.
    """

    table_catalog: SQLIdentifier
    table_schema: SQLIdentifier
    table_name: SQLIdentifier
    table_type: CharacterData
    self_referencing_column_name: SQLIdentifier
    reference_generation: CharacterData
    user_defined_type_catalog: SQLIdentifier
    user_defined_type_schema: SQLIdentifier
    user_defined_type_name: SQLIdentifier
    is_insertable_into: YesOrNo
    is_typed: YesOrNo
    commit_action: CharacterData

    VIEW: ClassVar[str] = "tables"
    KEY: ClassVar[tuple[str, ...]] = ("table_schema", "table_name")
    FIELDS: ClassVar[tuple[FieldSpec, ...]] = (
        FieldSpec("table_catalog", "table_catalog", SQLIdentifier),
        FieldSpec("table_schema", "table_schema", SQLIdentifier),
        FieldSpec("table_name", "table_name", SQLIdentifier),
        FieldSpec("table_type", "table_type", CharacterData),
        FieldSpec("self_referencing_column_name", "self_referencing_column_name", SQLIdentifier),
        FieldSpec("reference_generation", "reference_generation", CharacterData),
        FieldSpec("user_defined_type_catalog", "user_defined_type_catalog", SQLIdentifier),
        FieldSpec("user_defined_type_schema", "user_defined_type_schema", SQLIdentifier),
        FieldSpec("user_defined_type_name", "user_defined_type_name", SQLIdentifier),
        FieldSpec("is_insertable_into", "is_insertable_into", YesOrNo),
        FieldSpec("is_typed", "is_typed", YesOrNo),
        FieldSpec("commit_action", "commit_action", CharacterData),
    )


@dataclass(frozen=True)
class ColumnInfo(CatalogRecord):
    """
    Row of information_schema.columns.

    Type refinement columns only carry a value for matching data types:
    character lengths for character and bit strings, numeric precision and
    scale for numeric types, datetime precision for date, time, timestamp and
    interval types. ``ordinal_position`` counts from 1.
    """

    table_catalog: SQLIdentifier
    table_schema: SQLIdentifier
    table_name: SQLIdentifier
    column_name: SQLIdentifier
    ordinal_position: CardinalNumber
    column_default: CharacterData
    is_nullable: YesOrNo
    data_type: CharacterData
    character_maximum_length: CardinalNumber
    character_octet_length: CardinalNumber
    numeric_precision: CardinalNumber
    numeric_precision_radix: CardinalNumber
    numeric_scale: CardinalNumber
    datetime_precision: CardinalNumber
    interval_type: CharacterData
    interval_precision: CardinalNumber
    character_set_catalog: SQLIdentifier
    character_set_schema: SQLIdentifier
    character_set_name: SQLIdentifier
    collation_catalog: SQLIdentifier
    collation_schema: SQLIdentifier
    collation_name: SQLIdentifier
    domain_catalog: SQLIdentifier
    domain_schema: SQLIdentifier
    domain_name: SQLIdentifier
    udt_catalog: SQLIdentifier
    udt_schema: SQLIdentifier
    udt_name: SQLIdentifier
    scope_catalog: SQLIdentifier
    scope_schema: SQLIdentifier
    scope_name: SQLIdentifier
    maximum_cardinality: CardinalNumber
    dtd_identifier: SQLIdentifier
    is_self_referencing: YesOrNo
    is_identity: YesOrNo
    identity_generation: CharacterData
    identity_start: CharacterData
    identity_increment: CharacterData
    identity_maximum: CharacterData
    identity_minimum: CharacterData
    identity_cycle: YesOrNo
    is_generated: CharacterData
    generation_expression: CharacterData
    is_updatable: YesOrNo

    VIEW: ClassVar[str] = "columns"
    KEY: ClassVar[tuple[str, ...]] = ("table_schema", "table_name", "column_name")
    FIELDS: ClassVar[tuple[FieldSpec, ...]] = (
        FieldSpec("table_catalog", "table_catalog", SQLIdentifier),
        FieldSpec("table_schema", "table_schema", SQLIdentifier),
        FieldSpec("table_name", "table_name", SQLIdentifier),
        FieldSpec("column_name", "column_name", SQLIdentifier),
        FieldSpec("ordinal_position", "ordinal_position", CardinalNumber),
        FieldSpec("column_default", "column_default", CharacterData),
        FieldSpec("is_nullable", "is_nullable", YesOrNo),
        FieldSpec("data_type", "data_type", CharacterData),
        FieldSpec("character_maximum_length", "character_maximum_length", CardinalNumber),
        FieldSpec("character_octet_length", "character_octet_length", CardinalNumber),
        FieldSpec("numeric_precision", "numeric_precision", CardinalNumber),
        FieldSpec("numeric_precision_radix", "numeric_precision_radix", CardinalNumber),
        FieldSpec("numeric_scale", "numeric_scale", CardinalNumber),
        FieldSpec("datetime_precision", "datetime_precision", CardinalNumber),
        FieldSpec("interval_type", "interval_type", CharacterData),
        FieldSpec("interval_precision", "interval_precision", CardinalNumber),
        FieldSpec("character_set_catalog", "character_set_catalog", SQLIdentifier),
        FieldSpec("character_set_schema", "character_set_schema", SQLIdentifier),
        FieldSpec("character_set_name", "character_set_name", SQLIdentifier),
        FieldSpec("collation_catalog", "collation_catalog", SQLIdentifier),
        FieldSpec("collation_schema", "collation_schema", SQLIdentifier),
        FieldSpec("collation_name", "collation_name", SQLIdentifier),
        FieldSpec("domain_catalog", "domain_catalog", SQLIdentifier),
        FieldSpec("domain_schema", "domain_schema", SQLIdentifier),
        FieldSpec("domain_name", "domain_name", SQLIdentifier),
        FieldSpec("udt_catalog", "udt_catalog", SQLIdentifier),
        FieldSpec("udt_schema", "udt_schema", SQLIdentifier),
        FieldSpec("udt_name", "udt_name", SQLIdentifier),
        FieldSpec("scope_catalog", "scope_catalog", SQLIdentifier),
        FieldSpec("scope_schema", "scope_schema", SQLIdentifier),
        FieldSpec("scope_name", "scope_name", SQLIdentifier),
        FieldSpec("maximum_cardinality", "maximum_cardinality", CardinalNumber),
        FieldSpec("dtd_identifier", "dtd_identifier", SQLIdentifier),
        FieldSpec("is_self_referencing", "is_self_referencing", YesOrNo),
        FieldSpec("is_identity", "is_identity", YesOrNo),
        FieldSpec("identity_generation", "identity_generation", CharacterData),
        FieldSpec("identity_start", "identity_start", CharacterData),
        FieldSpec("identity_increment", "identity_increment", CharacterData),
        FieldSpec("identity_maximum", "identity_maximum", CharacterData),
        FieldSpec("identity_minimum", "identity_minimum", CharacterData),
        FieldSpec("identity_cycle", "identity_cycle", YesOrNo),
        FieldSpec("is_generated", "is_generated", CharacterData),
        FieldSpec("generation_expression", "generation_expression", CharacterData),
        FieldSpec("is_updatable", "is_updatable", YesOrNo),
    )


@dataclass(frozen=True)
class KeyColumnInfo(CatalogRecord):
    """
    One column of a PRIMARY KEY or FOREIGN KEY constraint.

    Not a single view: rows come from table_constraints joined with
    key_column_usage and, for foreign keys, referential_constraints and the
    referenced unique constraint's key_column_usage. The referenced_* and
    rule columns are NULL for primary keys.
    """

    constraint_schema: SQLIdentifier
    constraint_name: SQLIdentifier
    constraint_type: CharacterData
    table_schema: SQLIdentifier
    table_name: SQLIdentifier
    column_name: SQLIdentifier
    ordinal_position: CardinalNumber
    position_in_unique_constraint: CardinalNumber
    referenced_table_schema: SQLIdentifier
    referenced_table_name: SQLIdentifier
    referenced_column_name: SQLIdentifier
    update_rule: CharacterData
    delete_rule: CharacterData

    VIEW: ClassVar[str] = "key_column_usage"
    KEY: ClassVar[tuple[str, ...]] = ("table_schema", "table_name", "constraint_name", "column_name")
    FIELDS: ClassVar[tuple[FieldSpec, ...]] = (
        FieldSpec("constraint_schema", "constraint_schema", SQLIdentifier),
        FieldSpec("constraint_name", "constraint_name", SQLIdentifier),
        FieldSpec("constraint_type", "constraint_type", CharacterData),
        FieldSpec("table_schema", "table_schema", SQLIdentifier),
        FieldSpec("table_name", "table_name", SQLIdentifier),
        FieldSpec("column_name", "column_name", SQLIdentifier),
        FieldSpec("ordinal_position", "ordinal_position", CardinalNumber),
        FieldSpec("position_in_unique_constraint", "position_in_unique_constraint", CardinalNumber),
        FieldSpec("referenced_table_schema", "referenced_table_schema", SQLIdentifier),
        FieldSpec("referenced_table_name", "referenced_table_name", SQLIdentifier),
        FieldSpec("referenced_column_name", "referenced_column_name", SQLIdentifier),
        FieldSpec("update_rule", "update_rule", CharacterData),
        FieldSpec("delete_rule", "delete_rule", CharacterData),
    )


def check_mapping(record_type: type[CatalogRecord]) -> None:
    """Verify that the mapping table covers exactly the dataclass fields."""
    declared = [f.name for f in fields(record_type)]
    mapped = [spec.attr for spec in record_type.FIELDS]
    if declared != mapped:
        raise TypeError(
            f"{record_type.__name__} mapping table does not match its fields: "
            f"missing {sorted(set(declared) - set(mapped))}, "
            f"extra {sorted(set(mapped) - set(declared))}"
        )


RECORD_TYPES: tuple[type[CatalogRecord], ...] = (SchemaInfo, TableInfo, ColumnInfo, KeyColumnInfo)

for _record_type in RECORD_TYPES:
    check_mapping(_record_type)
