"""Fold decoded catalog records into the metadata graph."""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import datetime, timezone
from typing import Optional

from pginspect.core.models import CatalogSnapshot, Column, ForeignKey, PrimaryKey, Schema, Table
from pginspect.core.nullable import Nullable
from pginspect.core.records import ColumnInfo, KeyColumnInfo, SchemaInfo, TableInfo
from pginspect.exceptions import ModelBuildError, NullValueError

logger = logging.getLogger(__name__)

PRIMARY_KEY = "PRIMARY KEY"
FOREIGN_KEY = "FOREIGN KEY"

TableKey = tuple[str, str]


def _required(value: Nullable, column: str, owner: str):
    try:
        return value.get()
    except NullValueError as e:
        raise ModelBuildError(f"{owner} has no {column}") from e


def check_ordinal_positions(columns: list[ColumnInfo]) -> dict[TableKey, list[ColumnInfo]]:
    """
    Group columns by owning table, sorted by ordinal position.

    Args:
        columns: Decoded column rows, in any order

    Returns:
        (schema, table) -> columns sorted by ordinal position

    Raises:
        ModelBuildError: If a table has a NULL or duplicate ordinal position
    """
    grouped: dict[TableKey, list[ColumnInfo]] = defaultdict(list)
    for col in columns:
        if col.ordinal_position.is_null:
            raise ModelBuildError(f"Column {col.key_str} has no ordinal position")
        grouped[(col.table_schema.get(), col.table_name.get())].append(col)

    for (schema, table), cols in grouped.items():
        cols.sort(key=lambda c: c.ordinal_position.value)
        positions = [c.ordinal_position.value for c in cols]
        if len(set(positions)) != len(positions):
            duplicates = sorted({p for p in positions if positions.count(p) > 1})
            raise ModelBuildError(
                f"Table {schema}.{table} has duplicate ordinal positions: {duplicates}"
            )
        if positions != list(range(1, len(positions) + 1)):
            logger.warning(
                f"Table {schema}.{table} has gaps in ordinal positions {positions} "
                f"(dropped columns?); renumbering 1..{len(positions)}"
            )

    return dict(grouped)


class MetadataBuilder:
    """
    Build a CatalogSnapshot from decoded catalog records.

    Tables are joined with their columns and key constraints by
    (schema, table name).
    """

    def build(
        self,
        catalog_name: str,
        schemas: list[SchemaInfo],
        tables: list[TableInfo],
        columns: list[ColumnInfo],
        key_columns: Optional[list[KeyColumnInfo]] = None,
        taken_at: Optional[datetime] = None,
    ) -> CatalogSnapshot:
        """
        Assemble the metadata graph.

        Args:
            catalog_name: Name of the connected catalog
            schemas: Rows from information_schema.schemata
            tables: Rows from information_schema.tables
            columns: Rows from information_schema.columns
            key_columns: Primary and foreign key column rows (optional)
            taken_at: Snapshot time (defaults to now, UTC)

        Returns:
            CatalogSnapshot with tables sorted by (schema, name)

        Raises:
            ModelBuildError: If rows reference unknown tables or break
                ordinal position rules
        """
        snapshot = CatalogSnapshot(
            catalog_name=catalog_name,
            schemas=sorted(
                (
                    Schema(name=s.schema_name.get(), owner=s.schema_owner.value)
                    for s in schemas
                ),
                key=lambda s: s.name,
            ),
            taken_at=taken_at or datetime.now(timezone.utc),
        )

        table_map: dict[TableKey, Table] = {}
        for info in tables:
            key = (info.table_schema.get(), info.table_name.get())
            if key in table_map:
                raise ModelBuildError(f"Table {key[0]}.{key[1]} listed twice")
            table_map[key] = Table(
                schema=key[0],
                name=key[1],
                table_type=_required(info.table_type, "table_type", info.key_str),
                is_insertable_into=bool(info.is_insertable_into.as_bool()),
            )

        for key, cols in check_ordinal_positions(columns).items():
            table = table_map.get(key)
            if table is None:
                raise ModelBuildError(
                    f"Columns found for {key[0]}.{key[1]}, which is not a listed table"
                )
            table.columns = [self._build_column(col, i) for i, col in enumerate(cols, start=1)]

        self._attach_keys(table_map, key_columns or [])

        snapshot.tables = [table_map[key] for key in sorted(table_map)]
        return snapshot

    def _build_column(self, info: ColumnInfo, position: int) -> Column:
        return Column(
            name=info.column_name.get(),
            position=position,
            ordinal_position=info.ordinal_position.get(),
            data_type=_required(info.data_type, "data_type", info.key_str),
            is_nullable=info.is_nullable.as_bool() is not False,
            default=info.column_default.value,
            udt_name=info.udt_name.value,
            character_maximum_length=info.character_maximum_length.value,
            numeric_precision=info.numeric_precision.value,
            numeric_scale=info.numeric_scale.value,
            is_identity=info.is_identity.as_bool() is True,
            is_updatable=info.is_updatable.as_bool() is not False,
        )

    def _attach_keys(self, table_map: dict[TableKey, Table], key_columns: list[KeyColumnInfo]) -> None:
        constraints: dict[tuple[str, str, str], list[KeyColumnInfo]] = defaultdict(list)
        for row in key_columns:
            constraints[
                (row.table_schema.get(), row.table_name.get(), row.constraint_name.get())
            ].append(row)

        for (schema, table_name, constraint_name), rows in sorted(constraints.items()):
            table = table_map.get((schema, table_name))
            if table is None:
                logger.debug(
                    f"Skipping constraint {constraint_name} on unlisted table {schema}.{table_name}"
                )
                continue

            rows.sort(key=lambda r: r.ordinal_position.get_or(0))
            columns = [r.column_name.get() for r in rows]
            for name in columns:
                if table.get_column(name) is None:
                    raise ModelBuildError(
                        f"Constraint {constraint_name} on {table.full_name} "
                        f"references unknown column '{name}'"
                    )

            constraint_type = rows[0].constraint_type.get()
            if constraint_type == PRIMARY_KEY:
                if table.primary_key:
                    raise ModelBuildError(f"Table {table.full_name} has two primary keys")
                table.primary_key = PrimaryKey(name=constraint_name, columns=columns)
            elif constraint_type == FOREIGN_KEY:
                first = rows[0]
                if any(r.referenced_column_name.is_null for r in rows):
                    # referenced side is hidden when the role lacks privileges on it
                    logger.warning(
                        f"Skipping foreign key {constraint_name} on {table.full_name}: "
                        f"referenced columns are not visible"
                    )
                    continue
                table.foreign_keys.append(
                    ForeignKey(
                        name=constraint_name,
                        columns=columns,
                        referenced_schema=first.referenced_table_schema.get(),
                        referenced_table=first.referenced_table_name.get(),
                        referenced_columns=[r.referenced_column_name.get() for r in rows],
                        on_update=first.update_rule.value,
                        on_delete=first.delete_rule.value,
                    )
                )
            else:
                logger.debug(f"Ignoring {constraint_type} constraint {constraint_name}")
