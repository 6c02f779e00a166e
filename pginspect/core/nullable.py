"""
Nullable domain types of the SQL information schema.

The information schema exposes its columns through five domains:

- cardinal_number: a nonnegative integer
- character_data: a character string without specific maximum length
- sql_identifier: a character string used for SQL identifiers
- time_stamp: a domain over timestamp with time zone
- yes_or_no: a character string domain containing either YES or NO, used
  for boolean data (the information schema predates the SQL boolean type)

Every domain column may be NULL. Each type here keeps the payload next to an
explicit presence flag so that NULL survives decoding and is never replaced by
a zero value or an empty string.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, ClassVar, Optional

from pginspect.exceptions import DecodeError, NullValueError


@dataclass(frozen=True)
class Nullable:
    """Base class: a payload tagged with whether the source value was present."""

    value: Any = None
    valid: bool = False

    kind: ClassVar[str] = "nullable"

    def __post_init__(self) -> None:
        if self.valid and self.value is None:
            raise DecodeError(f"{self.kind} marked present without a value")
        if not self.valid and self.value is not None:
            raise DecodeError(f"{self.kind} marked absent but carries {self.value!r}")

    @classmethod
    def null(cls):
        """Return the absent value."""
        return cls()

    @classmethod
    def of(cls, raw: Any):
        """Return a present value, validating the payload."""
        if raw is None:
            raise DecodeError(f"{cls.kind} cannot be built from None, use null()")
        return cls(value=cls._coerce(raw), valid=True)

    @classmethod
    def decode(cls, raw: Any):
        """Decode a driver value: None becomes NULL, anything else is validated."""
        if raw is None:
            return cls.null()
        return cls.of(raw)

    @classmethod
    def _coerce(cls, raw: Any) -> Any:
        return raw

    @property
    def is_null(self) -> bool:
        return not self.valid

    def get(self) -> Any:
        """Return the payload, raising NullValueError when absent."""
        if not self.valid:
            raise NullValueError(self.kind)
        return self.value

    def get_or(self, default: Any) -> Any:
        return self.value if self.valid else default

    def to_json(self) -> Any:
        return self.value

    def __str__(self) -> str:
        return "NULL" if not self.valid else str(self.value)


@dataclass(frozen=True)
class CardinalNumber(Nullable):
    """A nonnegative integer."""

    kind: ClassVar[str] = "cardinal_number"

    @classmethod
    def _coerce(cls, raw: Any) -> int:
        if isinstance(raw, bool):
            raise DecodeError(f"expected a nonnegative integer, got {raw!r}")
        if isinstance(raw, int):
            number = raw
        elif isinstance(raw, (Decimal, str)):
            try:
                decimal = Decimal(raw)
            except InvalidOperation:
                raise DecodeError(f"expected a nonnegative integer, got {raw!r}") from None
            if decimal != decimal.to_integral_value():
                raise DecodeError(f"expected a nonnegative integer, got {raw!r}")
            number = int(decimal)
        else:
            raise DecodeError(f"expected a nonnegative integer, got {type(raw).__name__}")

        if number < 0:
            raise DecodeError(f"expected a nonnegative integer, got {number}")
        return number


@dataclass(frozen=True)
class CharacterData(Nullable):
    """A character string (without specific maximum length)."""

    kind: ClassVar[str] = "character_data"

    @classmethod
    def _coerce(cls, raw: Any) -> str:
        if not isinstance(raw, str):
            raise DecodeError(f"expected a string, got {type(raw).__name__}")
        return raw


@dataclass(frozen=True)
class SQLIdentifier(CharacterData):
    """A character string used for SQL identifiers."""

    kind: ClassVar[str] = "sql_identifier"


@dataclass(frozen=True)
class TimeStamp(Nullable):
    """A timestamp with time zone."""

    kind: ClassVar[str] = "time_stamp"

    @classmethod
    def _coerce(cls, raw: Any) -> datetime:
        if not isinstance(raw, datetime):
            raise DecodeError(f"expected a timestamp, got {type(raw).__name__}")
        if raw.tzinfo is None or raw.tzinfo.utcoffset(raw) is None:
            raise DecodeError(f"expected a timezone-aware timestamp, got naive {raw.isoformat()}")
        return raw

    def to_json(self) -> Optional[str]:
        return self.value.isoformat() if self.valid else None


@dataclass(frozen=True)
class YesOrNo(Nullable):
    """YES or NO, the information schema's boolean."""

    kind: ClassVar[str] = "yes_or_no"

    YES: ClassVar[str] = "YES"
    NO: ClassVar[str] = "NO"

    @classmethod
    def _coerce(cls, raw: Any) -> str:
        if raw not in (cls.YES, cls.NO):
            raise DecodeError(f"expected 'YES' or 'NO', got {raw!r}")
        return raw

    def as_bool(self) -> Optional[bool]:
        """True for YES, False for NO, None when NULL."""
        if not self.valid:
            return None
        return self.value == self.YES


NULLABLE_KINDS: tuple[type[Nullable], ...] = (
    CardinalNumber,
    CharacterData,
    SQLIdentifier,
    TimeStamp,
    YesOrNo,
)
