from decimal import Decimal

import pytest

from config import get_settings


def test_settings_read_environment(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv("FINANCE_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("FINANCE_DEFAULT_ALERT_THRESHOLD", "0.65")
    monkeypatch.setenv("FINANCE_FORECAST_CONFIDENCE_DAYS", "10")
    monkeypatch.delenv("FINANCE_DATABASE_URL", raising=False)
    get_settings.cache_clear()
    try:
        settings = get_settings()
        assert settings.default_alert_threshold == Decimal("0.65")
        assert settings.forecast_confidence_days == 10
        assert settings.database_url.endswith("finance.db")
        assert (tmp_path / "data").is_dir()
    finally:
        get_settings.cache_clear()


def test_threshold_outside_unit_range_is_rejected(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv("FINANCE_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("FINANCE_DEFAULT_ALERT_THRESHOLD", "1.5")
    get_settings.cache_clear()
    try:
        with pytest.raises(ValueError):
            get_settings()
    finally:
        get_settings.cache_clear()
