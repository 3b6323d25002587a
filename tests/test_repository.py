"""Tests for loading and saving ledger state through the key/value store."""

import json

import pytest

from debt_tracker.models.ledger import LedgerState, Snapshot
from debt_tracker.repository import (
    BALANCE_KEY,
    HISTORY_KEY,
    TIMESTAMP_KEY,
    LedgerRepository,
    format_balance,
    parse_balance,
    parse_history,
    parse_timestamp,
)
from debt_tracker.services.storage import InMemoryKeyValueStore

from tests.conftest import T0, FakeClock


def _repo(values=None, max_history=10):
    store = InMemoryKeyValueStore(values)
    return LedgerRepository(store=store, clock=FakeClock(T0), max_history=max_history), store


class TestEncoding:
    """Tests for the per-key encodings."""

    @pytest.mark.parametrize("value, text", [
        (100000.0, "100000"),
        (0.0, "0"),
        (95082.25, "95082.25"),
        (-12.5, "-12.5"),
        (0.1, "0.1"),
    ])
    def test_format_balance(self, value, text):
        """Test balances are written as decimal strings."""
        assert format_balance(value) == text
        assert parse_balance(text) == value

    @pytest.mark.parametrize("raw", [
        None, "", "abc", "nan", "inf", "-Infinity", "1_000", "1e400", "12abc",
    ])
    def test_parse_balance_rejects(self, raw):
        """Test unusable balances parse to None."""
        assert parse_balance(raw) is None

    def test_parse_balance_accepts_exponent_form(self):
        """Test repr output with an exponent is read back."""
        assert parse_balance("1.2345e-05") == 1.2345e-05
        assert parse_balance(" 95000 ") == 95000.0

    def test_parse_timestamp(self):
        """Test timestamps are integer strings."""
        assert parse_timestamp("1700000000000") == 1700000000000
        assert parse_timestamp("17.5") is None
        assert parse_timestamp(None) is None

    @pytest.mark.parametrize("raw", ["1_700_000_000_000", "", "0x10", "17e3"])
    def test_parse_timestamp_rejects_non_digit_forms(self, raw):
        """Test only plain digit strings are timestamps."""
        assert parse_timestamp(raw) is None

    def test_underscored_values_fall_back_on_load(self):
        """Test underscored balance and timestamp load as defaults."""
        repo, _ = _repo({BALANCE_KEY: "1_000", TIMESTAMP_KEY: "1_700_000_000_000"})
        result = repo.load()
        assert result.state.balance == 100000.0
        assert result.state.last_accrual_timestamp == T0
        assert "balance" in result.defaulted_fields
        assert "last_accrual_timestamp" in result.defaulted_fields

    def test_parse_history_rejects_any_bad_entry(self):
        """Test one malformed entry discards the whole history."""
        raw = json.dumps([{"debt": 1, "date": 2}, {"debt": "x", "date": 3}])
        assert parse_history(raw) is None

    @pytest.mark.parametrize("raw", ["not json", '{"debt": 1}', "[1, 2]", '[{"date": 1}]'])
    def test_parse_history_rejects_wrong_shape(self, raw):
        """Test non-array or wrongly shaped history parses to None."""
        assert parse_history(raw) is None

    def test_parse_history_empty_array(self):
        """Test an empty array is a valid, empty history."""
        assert parse_history("[]") == []


class TestLoad:
    """Tests for loading with per-field fallback."""

    def test_empty_store_uses_defaults(self):
        """Test every field falls back on an empty store."""
        repo, _ = _repo()
        result = repo.load()
        assert result.state.balance == 100000.0
        assert result.state.last_accrual_timestamp == T0
        assert result.state.history == []
        assert result.defaulted_fields == ["balance", "last_accrual_timestamp", "history"]

    def test_corrupt_history_keeps_balance(self):
        """Test fields are validated independently."""
        repo, _ = _repo({
            BALANCE_KEY: "1234.5",
            TIMESTAMP_KEY: "42",
            HISTORY_KEY: "{broken",
        })
        result = repo.load()
        assert result.state.balance == 1234.5
        assert result.state.last_accrual_timestamp == 42
        assert result.state.history == []
        assert result.defaulted_fields == ["history"]

    def test_corrupt_balance_keeps_history(self):
        """Test a bad balance does not discard the history."""
        repo, _ = _repo({
            BALANCE_KEY: "lots",
            HISTORY_KEY: json.dumps([{"debt": 5.0, "date": 6}]),
        })
        result = repo.load()
        assert result.state.balance == 100000.0
        assert result.state.history == [Snapshot(balance=5.0, timestamp=6)]
        assert "balance" in result.defaulted_fields
        assert "history" not in result.defaulted_fields

    def test_oversized_history_is_truncated(self):
        """Test a stored history longer than the bound keeps the newest entries."""
        entries = [{"debt": float(i), "date": i} for i in range(15)]
        repo, _ = _repo({HISTORY_KEY: json.dumps(entries)}, max_history=10)
        history = repo.load().state.history
        assert len(history) == 10
        assert history[0].timestamp == 0
        assert history[-1].timestamp == 9


class TestRoundTrip:
    """Tests for save then load."""

    def test_round_trip_is_identical(self):
        """Test a saved state reloads observably identical."""
        repo, store = _repo()
        state = LedgerState(
            balance=95082.19178082192,
            last_accrual_timestamp=T0 + 123,
            history=[
                Snapshot(balance=100082.19178082192, timestamp=T0 + 1),
                Snapshot(balance=100000.0, timestamp=T0),
            ],
        )
        repo.save(state)

        reloaded = LedgerRepository(store=store, clock=FakeClock(0)).load()

        assert reloaded.state == state
        assert reloaded.defaulted_fields == []

    def test_saved_layout(self):
        """Test the three keys and their encodings."""
        repo, store = _repo()
        repo.save(LedgerState(
            balance=500.0,
            last_accrual_timestamp=7,
            history=[Snapshot(balance=600.5, timestamp=3)],
        ))
        assert store.as_dict() == {
            "debtAmount": "500",
            "lastInterestDate": "7",
            "debtHistory": '[{"debt": 600.5, "date": 3}]',
        }


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
