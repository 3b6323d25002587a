"""Tests for configuration loading."""

from pathlib import Path

import pytest

from debt_tracker.config import (
    DisplaySettings,
    LedgerSettings,
    StorageSettings,
    get_settings,
    validate_all_settings,
)
from debt_tracker.controller import create_store
from debt_tracker.services.storage import InMemoryKeyValueStore, JsonFileKeyValueStore


@pytest.fixture(autouse=True)
def clear_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestLedgerSettings:
    """Tests for loan settings."""

    def test_defaults(self, monkeypatch):
        """Test the default loan terms."""
        for name in ("LEDGER_ANNUAL_RATE", "LEDGER_INITIAL_BALANCE", "LEDGER_MAX_HISTORY"):
            monkeypatch.delenv(name, raising=False)
        settings = LedgerSettings()
        assert settings.annual_rate == 0.15
        assert settings.initial_balance == 100000.0
        assert settings.max_history == 10
        assert settings.daily_rate == pytest.approx(0.15 / 365)

    def test_environment_override(self, monkeypatch):
        """Test values come from LEDGER_ environment variables."""
        monkeypatch.setenv("LEDGER_ANNUAL_RATE", "0.2")
        monkeypatch.setenv("LEDGER_MAX_HISTORY", "5")
        settings = LedgerSettings()
        assert settings.annual_rate == 0.2
        assert settings.max_history == 5

    def test_max_history_must_be_positive(self, monkeypatch):
        """Test an undo depth of zero is rejected."""
        monkeypatch.setenv("LEDGER_MAX_HISTORY", "0")
        with pytest.raises(ValueError):
            LedgerSettings()


class TestStorageSettings:
    """Tests for storage selection."""

    def test_json_path_expands_user(self, monkeypatch):
        """Test ~ is expanded in the state file path."""
        monkeypatch.setenv("STORAGE_JSON_PATH", "~/debts.json")
        assert StorageSettings().json_path == Path("~/debts.json").expanduser()

    def test_unknown_backend_rejected(self, monkeypatch):
        """Test only known backends are accepted."""
        monkeypatch.setenv("STORAGE_BACKEND", "postgres")
        with pytest.raises(ValueError):
            StorageSettings()

    def test_memory_backend(self, monkeypatch):
        """Test the memory backend builds an in-memory store."""
        monkeypatch.setenv("STORAGE_BACKEND", "memory")
        store, audit = create_store()
        assert isinstance(store, InMemoryKeyValueStore)
        assert audit is None

    def test_google_sheets_falls_back_to_file(self, monkeypatch, tmp_path):
        """Test an unconfigured Google Sheets backend falls back to the JSON file."""
        monkeypatch.setenv("STORAGE_BACKEND", "google_sheets")
        monkeypatch.setenv("STORAGE_JSON_PATH", str(tmp_path / "state.json"))
        monkeypatch.delenv("GOOGLE_SHEETS_CREDENTIALS_PATH", raising=False)
        monkeypatch.delenv("GOOGLE_SHEETS_SPREADSHEET_ID", raising=False)
        store, audit = create_store()
        assert isinstance(store, JsonFileKeyValueStore)
        assert store.path == tmp_path / "state.json"


class TestValidateAllSettings:
    """Tests for the startup check."""

    def test_reports_missing_google_sheets(self, monkeypatch):
        """Test unconfigured groups are reported with an error."""
        monkeypatch.delenv("GOOGLE_SHEETS_CREDENTIALS_PATH", raising=False)
        monkeypatch.delenv("GOOGLE_SHEETS_SPREADSHEET_ID", raising=False)
        status = validate_all_settings()
        assert status["ledger"] is True
        assert status["display"] is True
        assert status["google_sheets"] is False
        assert "google_sheets_error" in status

    def test_display_defaults(self):
        """Test the animation defaults."""
        settings = DisplaySettings()
        assert settings.animation_duration_ms == 800


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
