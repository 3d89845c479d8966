"""Model data types — typed representations for fitted price series."""

from dataclasses import dataclass
from datetime import date
from typing import Optional

from curvelend.model.epoch import days_since_genesis


@dataclass(frozen=True)
class PricePoint:
    """A single observed price on a calendar day."""

    date: date
    age: int  # days since genesis
    price: float

    @classmethod
    def on(cls, day: date, price: float) -> "PricePoint":
        """Build a point, deriving the age from *day*."""
        return cls(date=day, age=days_since_genesis(day), price=float(price))


@dataclass(frozen=True)
class PowerLawFit:
    """Parameters of ``price = a * age ** b`` plus fit quality.

    An all-zero instance is the "no fit" sentinel returned when fewer
    than two usable points were supplied.
    """

    a: float
    b: float
    r_squared: float
    sigma: float  # sample std-dev of log residuals

    @classmethod
    def empty(cls) -> "PowerLawFit":
        return cls(a=0.0, b=0.0, r_squared=0.0, sigma=0.0)

    @property
    def is_empty(self) -> bool:
        """``True`` for the insufficient-data sentinel."""
        return self.a == 0.0 and self.b == 0.0 and self.sigma == 0.0


@dataclass(frozen=True)
class AnnotatedPoint:
    """A price point with its model price, deviations and sigma bands."""

    date: date
    age: int
    price: float
    model_price: float
    deviation_pct: float
    sigma_deviation: float
    log_residual: float
    band_1_upper: float
    band_1_lower: float
    band_2_upper: float
    band_2_lower: float


@dataclass(frozen=True)
class ProjectionPoint:
    """A future day on the fitted curve, with its sigma bands."""

    date: date
    age: int
    model_price: float
    band_1_upper: float
    band_1_lower: float
    band_2_upper: float
    band_2_lower: float
    is_projection: bool = True


@dataclass(frozen=True)
class VolatilityPoint:
    """Trailing std-dev of log residuals; ``None`` until two points exist."""

    date: date
    rolling_std: Optional[float]
