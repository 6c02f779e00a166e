"""Introspection pipeline: schemas -> tables -> columns -> keys -> graph."""

from __future__ import annotations

import logging
from typing import Optional

from pginspect.core.builder import MetadataBuilder
from pginspect.core.introspection import SchemaIntrospector
from pginspect.core.models import CatalogSnapshot

logger = logging.getLogger(__name__)


def take_snapshot(
    introspector: SchemaIntrospector,
    builder: Optional[MetadataBuilder] = None,
) -> Optional[CatalogSnapshot]:
    """
    Run the introspection stages in order and build the metadata graph.

    Each listing stage that comes back empty logs a warning and ends the
    pipeline; later stages are not queried.

    Args:
        introspector: Client bound to a connection and schema whitelist
        builder: Metadata builder (a default one is used if omitted)

    Returns:
        CatalogSnapshot, or None if a stage returned no rows

    Raises:
        QueryError: If a catalog query fails
        DecodeError: If a catalog row cannot be decoded
        ModelBuildError: If the rows cannot be assembled into a graph
    """
    builder = builder or MetadataBuilder()

    catalog_name = introspector.current_catalog_name()
    logger.info(f"db name: {catalog_name}")

    schemas = introspector.list_schemas()
    if not schemas:
        logger.warning("no schemas available")
        return None
    for s in schemas:
        logger.debug(f"schema {s.schema_name} owned by {s.schema_owner}")

    tables = introspector.list_tables()
    if not tables:
        logger.warning("no tables available")
        return None
    for t in tables:
        logger.debug(f"table {t.table_schema}.{t.table_name} type {t.table_type}")

    columns = introspector.list_columns()
    if not columns:
        logger.warning("no columns available")
        return None
    for c in columns:
        logger.debug(f"column {c.table_schema}.{c.table_name}.{c.column_name}")

    key_columns = introspector.list_key_columns()
    logger.debug(f"{len(key_columns)} key columns")

    snapshot = builder.build(catalog_name, schemas, tables, columns, key_columns)
    logger.info(
        f"snapshot of {len(snapshot.schemas)} schemas, {len(snapshot.tables)} tables, "
        f"{len(columns)} columns"
    )
    return snapshot
