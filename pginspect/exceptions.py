"""Custom exceptions with helpful error messages."""

from __future__ import annotations

from typing import Optional


class PgInspectError(Exception):
    """Base exception for pginspect errors."""

    pass


class ConfigError(PgInspectError):
    """Configuration file is missing or invalid."""

    pass


class CatalogConnectionError(PgInspectError):
    """Catalog is unreachable or rejected the credentials."""

    def __init__(self, url: str, cause: BaseException):
        self.url = url
        self.cause = cause
        super().__init__(
            f"Cannot connect to catalog at '{_redact(url)}': {cause}\n\n"
            f"Suggestions:\n"
            f"1. Check that the PostgreSQL server is running and reachable\n"
            f"2. Check user name and password in the connection URL\n"
            f"3. Check the database name: psql '{_redact(url)}' -c 'SELECT 1'"
        )


class QueryError(PgInspectError):
    """A catalog query failed."""

    def __init__(self, stage: str, cause: BaseException):
        self.stage = stage
        self.cause = cause
        super().__init__(
            f"Catalog query '{stage}' failed: {cause}\n\n"
            f"Suggestions:\n"
            f"1. Check that the connected role may read information_schema\n"
            f"2. Check the server log for the failing statement"
        )


class DecodeError(PgInspectError):
    """A catalog row value does not fit its nullable domain type."""

    def __init__(
        self,
        reason: str,
        record: Optional[str] = None,
        column: Optional[str] = None,
        key: Optional[str] = None,
    ):
        self.reason = reason
        self.record = record
        self.column = column
        self.key = key

        where = ""
        if record is not None:
            where = f" in {record}"
            if column is not None:
                where += f".{column}"
            if key:
                where += f" (row {key})"
        super().__init__(f"Cannot decode catalog value{where}: {reason}")


class NullValueError(PgInspectError, ValueError):
    """Payload requested from an absent (SQL NULL) value."""

    def __init__(self, kind: str):
        self.kind = kind
        super().__init__(f"{kind} is NULL; check is_null before reading the value")


class ModelBuildError(PgInspectError):
    """Decoded catalog rows violate a metadata graph invariant."""

    pass


def _redact(url: str) -> str:
    """Hide the password part of a connection URL."""
    if "://" not in url or "@" not in url:
        return url
    scheme, rest = url.split("://", 1)
    credentials, host = rest.rsplit("@", 1)
    if ":" in credentials:
        user = credentials.split(":", 1)[0]
        return f"{scheme}://{user}:***@{host}"
    return url
