"""Pytest configuration and shared fixtures."""

import logging
import os
from typing import Any, Callable

import psycopg
import pytest
from psycopg import Connection
from psycopg.rows import dict_row

from pginspect.core.records import ColumnInfo, KeyColumnInfo, SchemaInfo, TableInfo

TEST_DATABASE_URL = os.getenv(
    "PGINSPECT_TEST_DATABASE_URL", "postgresql://localhost/pginspect_test"
)

Row = dict[str, Any]


@pytest.fixture(autouse=True)
def reset_pginspect_logging():
    """Drop handlers the CLI installs on the package logger."""
    yield
    logger = logging.getLogger("pginspect")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def database_url() -> str:
    return TEST_DATABASE_URL


def _blank_row(record_type) -> Row:
    return {column: None for column in record_type.columns()}


@pytest.fixture
def make_schema_row() -> Callable[..., Row]:
    """Factory for information_schema.schemata rows."""

    def make(schema_name: str = "swipe", owner: str = "postgres", **overrides: Any) -> Row:
        row = _blank_row(SchemaInfo)
        row.update(catalog_name="appdb", schema_name=schema_name, schema_owner=owner)
        row.update(overrides)
        return row

    return make


@pytest.fixture
def make_table_row() -> Callable[..., Row]:
    """Factory for information_schema.tables rows."""

    def make(
        table_name: str = "users",
        schema: str = "swipe",
        table_type: str = "BASE TABLE",
        **overrides: Any,
    ) -> Row:
        row = _blank_row(TableInfo)
        row.update(
            table_catalog="appdb",
            table_schema=schema,
            table_name=table_name,
            table_type=table_type,
            is_insertable_into="YES",
            is_typed="NO",
        )
        row.update(overrides)
        return row

    return make


@pytest.fixture
def make_column_row() -> Callable[..., Row]:
    """Factory for information_schema.columns rows."""

    def make(
        column_name: str,
        position: int,
        data_type: str = "text",
        nullable: str = "YES",
        table: str = "users",
        schema: str = "swipe",
        **overrides: Any,
    ) -> Row:
        row = _blank_row(ColumnInfo)
        row.update(
            table_catalog="appdb",
            table_schema=schema,
            table_name=table,
            column_name=column_name,
            ordinal_position=position,
            is_nullable=nullable,
            data_type=data_type,
            udt_catalog="appdb",
            udt_schema="pg_catalog",
            udt_name={"integer": "int4", "text": "text"}.get(data_type, data_type),
            dtd_identifier=str(position),
            is_self_referencing="NO",
            is_identity="NO",
            identity_cycle="NO",
            is_generated="NEVER",
            is_updatable="YES",
        )
        if data_type == "integer":
            row.update(numeric_precision=32, numeric_precision_radix=2, numeric_scale=0)
        row.update(overrides)
        return row

    return make


@pytest.fixture
def make_key_row() -> Callable[..., Row]:
    """Factory for primary/foreign key column rows."""

    def make(
        constraint_name: str,
        column_name: str,
        constraint_type: str = "PRIMARY KEY",
        table: str = "users",
        schema: str = "swipe",
        position: int = 1,
        references: tuple[str, str, str] | None = None,
        **overrides: Any,
    ) -> Row:
        row = _blank_row(KeyColumnInfo)
        row.update(
            constraint_schema=schema,
            constraint_name=constraint_name,
            constraint_type=constraint_type,
            table_schema=schema,
            table_name=table,
            column_name=column_name,
            ordinal_position=position,
        )
        if references is not None:
            ref_schema, ref_table, ref_column = references
            row.update(
                position_in_unique_constraint=position,
                referenced_table_schema=ref_schema,
                referenced_table_name=ref_table,
                referenced_column_name=ref_column,
                update_rule="NO ACTION",
                delete_rule="CASCADE",
            )
        row.update(overrides)
        return row

    return make


@pytest.fixture
def db_conn() -> Connection:
    """
    Provide a test database connection.

    Uses PGINSPECT_TEST_DATABASE_URL; tests are skipped when the server
    cannot be reached.
    """
    try:
        conn = psycopg.connect(TEST_DATABASE_URL, autocommit=True, row_factory=dict_row)
    except psycopg.OperationalError as e:
        pytest.skip(f"PostgreSQL not available at {TEST_DATABASE_URL}: {e}")

    yield conn

    conn.close()


@pytest.fixture
def test_schemas(db_conn: Connection) -> list[str]:
    """
    Create test schemas.

    - swipe: users(id integer not null, name text)
    - swipe2 and "Swipe": near-miss names that a whitelist of "swipe" must skip
    - swipe_keys: tables with a composite primary key and a foreign key

    Returns the created schema names.
    """
    schemas = ["swipe", "swipe2", "Swipe", "swipe_keys"]

    with db_conn.cursor() as cur:
        for name in schemas:
            cur.execute(f'DROP SCHEMA IF EXISTS "{name}" CASCADE')
            cur.execute(f'CREATE SCHEMA "{name}"')

        cur.execute("CREATE TABLE swipe.users (id integer NOT NULL, name text)")
        cur.execute("CREATE TABLE swipe2.users (id integer NOT NULL)")
        cur.execute('CREATE TABLE "Swipe".users (id integer NOT NULL)')

        cur.execute("""
            CREATE TABLE swipe_keys.tb_account (
                region TEXT NOT NULL,
                number INTEGER NOT NULL,
                label VARCHAR(40) DEFAULT '',
                PRIMARY KEY (region, number)
            )
        """)
        cur.execute("""
            CREATE TABLE swipe_keys.tb_payment (
                pk_payment INTEGER GENERATED ALWAYS AS IDENTITY PRIMARY KEY,
                account_region TEXT NOT NULL,
                account_number INTEGER NOT NULL,
                amount NUMERIC(12, 2),
                CONSTRAINT fk_payment_account FOREIGN KEY (account_region, account_number)
                    REFERENCES swipe_keys.tb_account (region, number) ON DELETE CASCADE
            )
        """)

    yield schemas

    # Cleanup
    with db_conn.cursor() as cur:
        for name in schemas:
            cur.execute(f'DROP SCHEMA IF EXISTS "{name}" CASCADE')
