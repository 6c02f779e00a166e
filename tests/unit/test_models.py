"""Tests for metadata graph models."""

from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from uuid import UUID

import pytest

from pginspect.core.models import Column, ForeignKey, PrimaryKey, Table


def column(data_type: str, is_nullable: bool = True) -> Column:
    return Column(name="c", position=1, data_type=data_type, is_nullable=is_nullable)


class TestParseValue:
    """Tests for Column.parse_value()."""

    @pytest.mark.parametrize(
        "data_type,text,expected",
        [
            ("integer", "42", 42),
            ("bigint", "-7", -7),
            ("numeric", "12.50", Decimal("12.50")),
            ("double precision", "0.5", 0.5),
            ("boolean", "true", True),
            ("boolean", "f", False),
            ("uuid", "2a6f3c21-0000-4000-8000-000000000001", UUID("2a6f3c21-0000-4000-8000-000000000001")),
            ("date", "2024-05-01", date(2024, 5, 1)),
            ("timestamp without time zone", "2024-05-01T12:30:00", datetime(2024, 5, 1, 12, 30)),
            ("timestamp with time zone", "2024-05-01T12:30:00Z", datetime(2024, 5, 1, 12, 30, tzinfo=timezone.utc)),
            ("timestamp with time zone", "2024-05-01 12:30:00+00", datetime(2024, 5, 1, 12, 30, tzinfo=timezone.utc)),
            (
                "timestamp with time zone",
                "2024-05-01T12:30:00+0530",
                datetime(2024, 5, 1, 12, 30, tzinfo=timezone(timedelta(hours=5, minutes=30))),
            ),
            ("time with time zone", "12:30:00-08", time(12, 30, tzinfo=timezone(timedelta(hours=-8)))),
            ("jsonb", '{"a": [1, 2]}', {"a": [1, 2]}),
            ("text", "hello", "hello"),
            ("USER-DEFINED", "mood_ok", "mood_ok"),
        ],
    )
    def test_parse(self, data_type, text, expected) -> None:
        assert column(data_type).parse_value(text) == expected

    @pytest.mark.parametrize(
        "data_type,text",
        [("integer", "4x"), ("numeric", "abc"), ("boolean", "perhaps"), ("uuid", "nope"), ("json", "{")],
    )
    def test_invalid(self, data_type, text) -> None:
        with pytest.raises(ValueError, match="column 'c'"):
            column(data_type).parse_value(text)

    def test_none_for_nullable(self) -> None:
        assert column("integer").parse_value(None) is None

    def test_none_for_not_null(self) -> None:
        with pytest.raises(ValueError, match="not nullable"):
            column("integer", is_nullable=False).parse_value(None)


class TestTable:
    """Tests for Table helpers."""

    def test_names(self) -> None:
        table = Table(schema="swipe", name="users")

        assert table.full_name == "swipe.users"
        assert table.resource_path == "/swipe/users"
        assert not table.primary_key

    def test_get_column(self) -> None:
        table = Table(schema="swipe", name="users", columns=[column("integer")])

        assert table.get_column("c").data_type == "integer"
        assert table.get_column("missing") is None

    def test_self_reference(self) -> None:
        fk = ForeignKey(
            name="fk_parent",
            columns=["parent_id"],
            referenced_schema="swipe",
            referenced_table="nodes",
            referenced_columns=["id"],
        )

        assert fk.is_self_reference("swipe", "nodes") is True
        assert fk.is_self_reference("other", "nodes") is False

    def test_primary_key_truthiness(self) -> None:
        assert not PrimaryKey()
        assert PrimaryKey(name="pk", columns=["id"])
        assert PrimaryKey().to_dict() is None
