from __future__ import annotations

from datetime import UTC, date, datetime

import pytest

from xero_ledger.ledger.filters import (
    build_date_where,
    format_date,
    line_matches_account,
    parse_iso_date,
    start_of_day_utc,
)
from xero_ledger.ledger.models import LedgerQuery


class TestBuildDateWhere:
    def test_uses_unpadded_components(self) -> None:
        where = build_date_where(date(2024, 1, 5), date(2024, 12, 31))

        assert where == "Date>=DateTime(2024,1,5)&&Date<=DateTime(2024,12,31)"

    def test_single_day_range(self) -> None:
        where = build_date_where(date(2024, 3, 15), date(2024, 3, 15))

        assert where == "Date>=DateTime(2024,3,15)&&Date<=DateTime(2024,3,15)"


class TestLineMatchesAccount:
    def test_no_filters_matches_everything(self) -> None:
        assert line_matches_account("400", "id-400", None, None)
        assert line_matches_account(None, None, [], [])

    def test_matches_by_code(self) -> None:
        assert line_matches_account("400", None, ["200", "400"], None)

    def test_matches_by_id(self) -> None:
        assert line_matches_account("999", "id-1", ["200"], ["id-1"])

    def test_rejects_when_neither_identifier_matches(self) -> None:
        assert not line_matches_account("999", "id-9", ["200"], ["id-1"])

    def test_missing_identifiers_never_match_a_filter(self) -> None:
        assert not line_matches_account(None, None, ["200"], None)
        assert not line_matches_account(None, None, None, ["id-1"])

    def test_ledger_query_delegates(self) -> None:
        query = LedgerQuery.build("2024-01-01", "2024-01-31", ["090"])

        assert query.matches("090", None)
        assert not query.matches("400", None)


class TestFormatDate:
    def test_xero_json_date(self) -> None:
        assert format_date("/Date(1704067200000+0000)/") == "2024-01-01"

    def test_xero_json_date_without_offset(self) -> None:
        assert format_date("/Date(1710460800000)/") == "2024-03-15"

    def test_iso_datetime_string_is_truncated(self) -> None:
        assert format_date("2024-02-10T00:00:00") == "2024-02-10"

    def test_date_and_datetime_objects(self) -> None:
        assert format_date(date(2024, 2, 10)) == "2024-02-10"
        assert format_date(datetime(2024, 2, 10, 23, 0, tzinfo=UTC)) == "2024-02-10"

    def test_unknown_values_become_empty(self) -> None:
        assert format_date(None) == ""
        assert format_date(42) == ""


class TestParseIsoDate:
    def test_parses_string(self) -> None:
        assert parse_iso_date("2024-02-29") == date(2024, 2, 29)

    def test_rejects_invalid(self) -> None:
        with pytest.raises(ValueError, match="expected YYYY-MM-DD"):
            parse_iso_date("2024-13-01")

    def test_rejects_trailing_garbage(self) -> None:
        with pytest.raises(ValueError, match="expected YYYY-MM-DD"):
            parse_iso_date("2024-01-01junk")

    def test_accepts_iso_timestamp(self) -> None:
        assert parse_iso_date("2024-01-31T15:30:00") == date(2024, 1, 31)
        assert parse_iso_date(" 2024-01-31 ") == date(2024, 1, 31)

    def test_start_of_day_utc(self) -> None:
        assert start_of_day_utc(date(2024, 1, 1)) == datetime(2024, 1, 1, tzinfo=UTC)


class TestLedgerQueryBuild:
    def test_empty_source_type_means_unrestricted(self) -> None:
        query = LedgerQuery.build("2024-01-01", "2024-01-31", source_type="")

        assert query.source_type is None

    def test_filters_become_tuples(self) -> None:
        query = LedgerQuery.build(
            date(2024, 1, 1), "2024-01-31", ["200"], ["id-1"], "ACCREC"
        )

        assert query.account_codes == ("200",)
        assert query.account_ids == ("id-1",)
        assert query.source_type == "ACCREC"
