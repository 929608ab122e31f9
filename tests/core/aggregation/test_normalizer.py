"""Tests for alias-based record normalization and the filter helpers."""

from datetime import datetime, timezone

from cryptoseek.core.aggregation import Query, Record, RecordNormalizer, parse_timestamp
from cryptoseek.core.aggregation import filters
from cryptoseek.core.aggregation.normalizer import TICKER_ALIASES, lookup, normalize_fields, to_float


class TestLookup:
    """First alias present wins; dotted aliases walk nested objects."""

    def test_first_alias_wins(self):
        assert lookup({"valueUsd": 5, "tnxvalue": 7}, ("tnxvalue", "valueUsd")) == 7

    def test_none_values_are_skipped(self):
        assert lookup({"tnxvalue": None, "valueUsd": 5}, ("tnxvalue", "valueUsd")) == 5

    def test_dotted_alias(self):
        assert lookup({"token0": {"symbol": "WETH"}}, ("symbol0", "token0.symbol")) == "WETH"

    def test_default_when_missing(self):
        assert lookup({}, ("a", "b"), default="n/a") == "n/a"

    def test_ticker_fields(self):
        fields = normalize_fields({"last": "1.5", "highest": 2, "vol": 10}, TICKER_ALIASES)

        assert fields["lastPrice"] == "1.5"
        assert fields["high"] == 2
        assert fields["volume"] == 10
        assert fields["bid"] is None


class TestParseTimestamp:
    def test_iso_with_z(self):
        assert parse_timestamp("2024-05-01T12:00:00Z") == datetime(2024, 5, 1, 12, tzinfo=timezone.utc)

    def test_naive_iso_is_utc(self):
        assert parse_timestamp("2024-05-01T12:00:00").tzinfo == timezone.utc

    def test_epoch_seconds_and_millis(self):
        expected = datetime(2023, 11, 14, 22, 13, 20, tzinfo=timezone.utc)
        assert parse_timestamp(1_700_000_000) == expected
        assert parse_timestamp(1_700_000_000_000) == expected
        assert parse_timestamp("1700000000") == expected

    def test_unparseable(self):
        assert parse_timestamp("yesterday") is None
        assert parse_timestamp(None) is None
        assert parse_timestamp(True) is None


class TestRecordNormalizer:
    """Raw trade payloads to Records."""

    def test_masterdex_trade(self):
        item = {
            "symbol0": "WETH",
            "symbol1": "USDC",
            "tnxvalue": "250000.5",
            "time": "2024-05-01T12:00:00Z",
            "transType": "buy",
            "txnDetail": "0xabc",
            "account": "0x123",
        }
        record = RecordNormalizer().normalize(item, source="ethereum")

        assert record.pair == "WETH/USDC"
        assert record.value == 250000.5
        assert record.category == "buy"
        assert record.record_id == "0xabc"
        assert record.source == "ethereum"
        assert record.payload["account"] == "0x123"

    def test_alternate_field_names(self):
        item = {"baseSymbol": "PEPE", "quoteSymbol": "WETH", "valueUsd": 10, "timestamp": 1_700_000_000, "side": "sell"}
        record = RecordNormalizer().normalize(item, source="base")

        assert record.pair == "PEPE/WETH"
        assert record.value == 10.0
        assert record.category == "sell"
        assert record.timestamp is not None

    def test_missing_fields_fall_back(self):
        record = RecordNormalizer().normalize({}, source="blast")

        assert record.symbol_a == ""
        assert record.value == 0.0
        assert record.timestamp is None
        assert record.record_id == ""

    def test_source_from_payload(self):
        normalizer = RecordNormalizer()

        assert normalizer.normalize({"chain": " Polygon "}, source=None, source_from_payload=True).source == "polygon"
        assert normalizer.normalize({}, source=None, source_from_payload=True).group_key == "unknown"

    def test_non_object_items_are_skipped(self):
        records = RecordNormalizer().normalize_many([{"symbol0": "A"}, "junk", None, 3], source="bnb")
        assert len(records) == 1

    def test_to_float(self):
        assert to_float("12.5") == 12.5
        assert to_float("n/a") == 0.0
        assert to_float(None, 3.0) == 3.0


def _record(a, b, ts=None, source="ethereum", tx=""):
    return Record(symbol_a=a, symbol_b=b, value=1.0, timestamp=ts, source=source, record_id=tx)


class TestFilters:
    def test_parse_pair(self):
        assert filters.parse_pair("WETH / usdc") == ("weth", "usdc")
        assert filters.parse_pair("WETH") is None
        assert filters.parse_pair("A/B/C") is None
        assert filters.parse_pair("/USDC") is None

    def test_token_is_substring_on_either_side(self):
        records = [_record("WETH", "USDC"), _record("PEPE", "DAI")]
        assert [r.pair for r in filters.filter_by_token(records, "eth")] == ["WETH/USDC"]
        assert [r.pair for r in filters.filter_by_token(records, "dai")] == ["PEPE/DAI"]

    def test_group_by_source(self):
        records = [_record("A", "B", source="base"), _record("A", "B", source=None), _record("C", "D", source="base")]
        groups = filters.group_by_source(records)

        assert list(groups) == ["base", "unknown"]
        assert len(groups["base"]) == 2

    def test_dedupe_keeps_records_without_id(self):
        records = [
            _record("A", "B"),
            _record("A", "B"),
            _record("A", "B", tx="0x1"),
            _record("A", "B", tx="0x1"),
            _record("A", "B", tx="0x1", source="base"),
        ]
        assert len(filters.dedupe(records)) == 4

    def test_sort_is_stable_for_ties(self):
        ts = datetime(2024, 1, 1, tzinfo=timezone.utc)
        records = [_record("A", "B", ts, tx="1"), _record("A", "B", ts, tx="2"), _record("A", "B", None, tx="3")]

        assert [r.record_id for r in filters.sort_by_timestamp(records)] == ["1", "2", "3"]


class TestQuery:
    def test_effective_limit(self):
        assert Query().effective_limit(20) == 20
        assert Query(limit=5).effective_limit(20) == 5
        assert Query(limit=0).effective_limit(20) is None
        assert Query(limit=-3).effective_limit(20) is None

    def test_filters_dict(self):
        filters_dict = Query(source="base", min_value=100).to_filters_dict(20)

        assert filters_dict == {
            "chain": "base",
            "token": "none",
            "pair": "none",
            "minValue": 100,
            "tradeType": "all",
            "limit": 20,
        }
