"""Catalog introspection through the information schema views (and pg_constraint for keys)."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any, TypeVar

import psycopg
from psycopg import Connection, sql
from psycopg.rows import dict_row

from pginspect.core.nullable import SQLIdentifier
from pginspect.core.records import (
    CatalogRecord,
    ColumnInfo,
    KeyColumnInfo,
    SchemaInfo,
    TableInfo,
    decode_rows,
)
from pginspect.exceptions import CatalogConnectionError, DecodeError, QueryError

logger = logging.getLogger(__name__)

R = TypeVar("R", bound=CatalogRecord)

KEY_COLUMNS_QUERY = """
    SELECT
        cn.nspname AS constraint_schema,
        c.conname AS constraint_name,
        CASE c.contype WHEN 'p' THEN 'PRIMARY KEY' ELSE 'FOREIGN KEY' END AS constraint_type,
        tn.nspname AS table_schema,
        t.relname AS table_name,
        a.attname AS column_name,
        k.ordinality AS ordinal_position,
        array_position(uc.conkey, k.ref_attnum) AS position_in_unique_constraint,
        CASE WHEN ra.attname IS NOT NULL THEN rn.nspname END AS referenced_table_schema,
        CASE WHEN ra.attname IS NOT NULL THEN rt.relname END AS referenced_table_name,
        ra.attname AS referenced_column_name,
        CASE c.confupdtype
            WHEN 'c' THEN 'CASCADE' WHEN 'n' THEN 'SET NULL' WHEN 'd' THEN 'SET DEFAULT'
            WHEN 'r' THEN 'RESTRICT' WHEN 'a' THEN 'NO ACTION'
        END AS update_rule,
        CASE c.confdeltype
            WHEN 'c' THEN 'CASCADE' WHEN 'n' THEN 'SET NULL' WHEN 'd' THEN 'SET DEFAULT'
            WHEN 'r' THEN 'RESTRICT' WHEN 'a' THEN 'NO ACTION'
        END AS delete_rule
    FROM pg_catalog.pg_constraint c
    JOIN pg_catalog.pg_namespace cn ON cn.oid = c.connamespace
    JOIN pg_catalog.pg_class t ON t.oid = c.conrelid
    JOIN pg_catalog.pg_namespace tn ON tn.oid = t.relnamespace
    CROSS JOIN LATERAL unnest(c.conkey, c.confkey)
        WITH ORDINALITY AS k(attnum, ref_attnum, ordinality)
    JOIN pg_catalog.pg_attribute a ON a.attrelid = c.conrelid AND a.attnum = k.attnum
    LEFT JOIN pg_catalog.pg_class rt ON rt.oid = c.confrelid
    LEFT JOIN pg_catalog.pg_namespace rn ON rn.oid = rt.relnamespace
    LEFT JOIN pg_catalog.pg_attribute ra
      ON ra.attrelid = c.confrelid
      AND ra.attnum = k.ref_attnum
      AND (pg_has_role(rt.relowner, 'USAGE')
           OR has_column_privilege(rt.oid, ra.attnum, 'SELECT, INSERT, UPDATE, REFERENCES'))
    LEFT JOIN pg_catalog.pg_constraint uc
      ON uc.conrelid = c.confrelid
      AND uc.conindid = c.conindid
      AND uc.contype IN ('p', 'u')
    WHERE c.contype IN ('p', 'f')
      AND tn.nspname::text = ANY(%s::text[])
      AND (pg_has_role(t.relowner, 'USAGE')
           OR has_table_privilege(t.oid, 'INSERT, UPDATE, DELETE, TRUNCATE, REFERENCES, TRIGGER'))
    ORDER BY tn.nspname, t.relname, c.conname, k.ordinality
"""


def connect(url: str) -> Connection:
    """
    Open a catalog connection.

    The connection is in autocommit mode (every catalog query is a read-only
    snapshot of its own) and returns rows as dicts. Use it as a context
    manager so it is closed on every exit path.

    Args:
        url: PostgreSQL connection URL or conninfo string

    Returns:
        Open psycopg connection

    Raises:
        CatalogConnectionError: If the catalog is unreachable or rejects
            the credentials
    """
    try:
        conn = psycopg.connect(url, autocommit=True, row_factory=dict_row)
    except psycopg.Error as e:
        raise CatalogConnectionError(url, e) from e
    logger.debug("Connected to catalog")
    return conn


class SchemaIntrospector:
    """
    Read whitelisted schemas, tables, columns and keys from the catalog.

    The whitelist is matched exactly (case-sensitive, no wildcards).
    Empty results are returned as empty lists.
    """

    def __init__(self, conn: Connection, whitelist: Iterable[str]):
        self.conn = conn
        self.whitelist: tuple[str, ...] = tuple(whitelist)

    def current_catalog_name(self) -> str:
        """Name of the connected database, from information_schema_catalog_name."""
        rows = self._fetch(
            "catalog name",
            "SELECT catalog_name FROM information_schema.information_schema_catalog_name",
            (),
        )
        if not rows:
            raise QueryError("catalog name", LookupError("information_schema_catalog_name is empty"))
        try:
            name = SQLIdentifier.decode(rows[0]["catalog_name"])
        except DecodeError as e:
            raise DecodeError(
                e.reason, record="information_schema_catalog_name", column="catalog_name"
            ) from e
        if name.is_null:
            raise DecodeError(
                "catalog name is NULL",
                record="information_schema_catalog_name",
                column="catalog_name",
            )
        return name.get()

    def list_schemas(self) -> list[SchemaInfo]:
        """Get whitelisted schemas, ordered by name."""
        return self._list(SchemaInfo, "schema_name", ("schema_name",))

    def list_tables(self) -> list[TableInfo]:
        """Get tables, views and foreign tables of whitelisted schemas."""
        return self._list(TableInfo, "table_schema", ("table_schema", "table_name"))

    def list_columns(self) -> list[ColumnInfo]:
        """Get columns of whitelisted schemas, ordered by table and position."""
        return self._list(
            ColumnInfo, "table_schema", ("table_schema", "table_name", "ordinal_position")
        )

    def list_key_columns(self) -> list[KeyColumnInfo]:
        """
        Get primary and foreign key columns of whitelisted tables.

        Read from pg_constraint, scoped by owning table: constraint names
        are unique per table, not per schema. Referenced columns the role
        may not see come back NULL.
        """
        rows = self._fetch("key columns", KEY_COLUMNS_QUERY, (list(self.whitelist),))
        return decode_rows(KeyColumnInfo, rows)

    def _list(
        self,
        record_type: type[R],
        schema_column: str,
        order_by: tuple[str, ...],
    ) -> list[R]:
        query = sql.SQL(
            "SELECT {fields} FROM information_schema.{view} "
            "WHERE {schema_column}::text = ANY(%s::text[]) "
            "ORDER BY {order_by}"
        ).format(
            fields=sql.SQL(", ").join(sql.Identifier(c) for c in record_type.columns()),
            view=sql.Identifier(record_type.VIEW),
            schema_column=sql.Identifier(schema_column),
            order_by=sql.SQL(", ").join(sql.Identifier(c) for c in order_by),
        )
        rows = self._fetch(record_type.VIEW, query, (list(self.whitelist),))
        return decode_rows(record_type, rows)

    def _fetch(self, stage: str, query: Any, params: tuple) -> list[dict[str, Any]]:
        try:
            with self.conn.cursor(row_factory=dict_row) as cur:
                cur.execute(query, params)
                return cur.fetchall()
        except psycopg.Error as e:
            raise QueryError(stage, e) from e
