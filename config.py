import os
from decimal import Decimal
from functools import lru_cache
from pathlib import Path


class Settings:
    def __init__(
        self,
        database_url: str,
        default_alert_threshold: Decimal,
        forecast_confidence_days: int,
    ) -> None:
        self.database_url = database_url
        self.default_alert_threshold = default_alert_threshold
        self.forecast_confidence_days = forecast_confidence_days


def _ensure_data_dir() -> Path:
    root = Path(os.getenv("FINANCE_DATA_DIR", "./data")).resolve()
    root.mkdir(parents=True, exist_ok=True)
    return root


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    data_dir = _ensure_data_dir()
    default_db = data_dir / "finance.db"
    database_url = os.getenv("FINANCE_DATABASE_URL", f"sqlite:///{default_db}")
    default_alert_threshold = Decimal(
        os.getenv("FINANCE_DEFAULT_ALERT_THRESHOLD", "0.80")
    )
    if not Decimal("0") <= default_alert_threshold <= Decimal("1"):
        raise ValueError("FINANCE_DEFAULT_ALERT_THRESHOLD must be between 0 and 1")
    forecast_confidence_days = int(os.getenv("FINANCE_FORECAST_CONFIDENCE_DAYS", "7"))
    return Settings(
        database_url=database_url,
        default_alert_threshold=default_alert_threshold,
        forecast_confidence_days=forecast_confidence_days,
    )
