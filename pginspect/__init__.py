"""
pginspect - PostgreSQL information schema snapshots.

This package provides tools for:
- Reading schemas, tables, columns and keys through information_schema
- Decoding catalog rows without losing SQL NULL
- Building a Table/Column/PrimaryKey/ForeignKey graph addressed as /:schema/:table
- Writing the graph as a JSON document
"""

__version__ = "0.1.0"

from pginspect.core.models import CatalogSnapshot, Column, ForeignKey, PrimaryKey, Table

__all__ = ["CatalogSnapshot", "Column", "ForeignKey", "PrimaryKey", "Table", "__version__"]
