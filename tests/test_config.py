"""
Tests for the settings classes. Values are passed to the constructors
directly; the environment is left alone.
"""

from decimal import Decimal
from pathlib import Path

import pytest

from xpense.config import (
    AppSettings,
    LedgerSettings,
    StorageSettings,
    get_settings,
    validate_all_settings,
)


class TestLedgerSettings:
    """Tests for the ledger thresholds and id format settings."""

    def test_defaults(self):
        """Test the documented default thresholds and id format."""
        settings = LedgerSettings()
        assert settings.low_balance_threshold == Decimal("100.00")
        assert settings.spending_limit_threshold == Decimal("1000.00")
        assert settings.expenditure_id_width == 4
        assert settings.category_id_start == 1000

    @pytest.mark.parametrize("prefix", ["EXP1", "E|X", "   "])
    def test_bad_prefix_rejected(self, prefix):
        """Test prefixes that would break id parsing or the file format are refused."""
        with pytest.raises(ValueError):
            LedgerSettings(expenditure_id_prefix=prefix)

    def test_negative_threshold_rejected(self):
        """Test the low-balance threshold cannot be negative."""
        with pytest.raises(ValueError):
            LedgerSettings(low_balance_threshold=Decimal("-1"))


class TestStorageAndAppSettings:
    """Tests for the storage and application settings."""

    def test_storage_overrides(self, tmp_path):
        """Test storage settings accept an explicit data directory."""
        settings = StorageSettings(data_dir=tmp_path, write_retry_attempts=5)
        assert settings.data_dir == Path(tmp_path)
        assert settings.expenditures_file == "expenditures.txt"

    def test_log_level_pattern(self):
        """Test unknown log levels are refused."""
        with pytest.raises(ValueError):
            AppSettings(log_level="LOUD")


class TestSettingsAccess:
    """Tests for the cached settings accessors."""

    def test_get_settings_is_cached(self):
        """Test get_settings returns the same object until the cache is cleared."""
        assert get_settings() is get_settings()
        first = get_settings()
        get_settings.cache_clear()
        assert get_settings() is not first

    def test_validate_all_settings(self):
        """Test every section reports its validity."""
        results = validate_all_settings()
        assert {"ledger", "storage", "app"} <= set(results)
