"""CurveLend — application configuration.

Loads .env variables into a typed config object.  Every variable has a
default; malformed values are rejected on startup.
"""

import os
from dataclasses import dataclass
from datetime import date

from dotenv import load_dotenv

from curvelend.simulation.models import Scenario


@dataclass(frozen=True)
class Config:
    """Typed configuration loaded from environment variables."""

    log_level: str
    api_port: int
    price_csv_path: str
    fit_start_date: date  # earlier history is shown but not fitted
    rolling_window_days: int
    holding_quantity: float
    monthly_spending: float
    interest_apr_pct: float
    liquidation_ltv_pct: float
    projection_years: int
    scenario: Scenario


def _env(name: str, default: str, parse):
    raw = os.environ.get(name, default)
    try:
        return parse(raw)
    except ValueError as exc:
        raise ValueError(f"Invalid value for {name}: {raw!r} ({exc})") from exc


def load_config(env_path: str | None = None) -> Config:
    """Load configuration from environment variables.

    Raises ``ValueError`` with a message naming the variable when a value
    cannot be parsed.
    """
    load_dotenv(dotenv_path=env_path)

    return Config(
        log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        api_port=_env("API_PORT", "8080", int),
        price_csv_path=os.environ.get("PRICE_CSV_PATH", "data/prices.csv"),
        fit_start_date=_env("FIT_START_DATE", "2013-01-01", date.fromisoformat),
        rolling_window_days=_env("ROLLING_WINDOW_DAYS", "730", int),
        holding_quantity=_env("HOLDING_QUANTITY", "1.0", float),
        monthly_spending=_env("MONTHLY_SPENDING", "5000.0", float),
        interest_apr_pct=_env("INTEREST_APR_PCT", "10.0", float),
        liquidation_ltv_pct=_env("LIQUIDATION_LTV_PCT", "80.0", float),
        projection_years=_env("PROJECTION_YEARS", "10", int),
        scenario=_env("SCENARIO", "fair", Scenario),
    )
