"""Series annotation — applies a fit to every point of a price series.

Also projects the fitted curve forward day by day past the last
observation.
"""

import math
from datetime import date, datetime, timedelta
from typing import Iterable

from curvelend.model.epoch import as_date, days_since_genesis
from curvelend.model.models import AnnotatedPoint, PowerLawFit, PricePoint, ProjectionPoint
from curvelend.model.powerlaw import model_price, percent_deviation, sigma_deviation

DAYS_PER_YEAR = 365


def _bands(model: float, sigma: float) -> dict[str, float]:
    return {
        "band_1_upper": model * math.exp(sigma),
        "band_1_lower": model * math.exp(-sigma),
        "band_2_upper": model * math.exp(2 * sigma),
        "band_2_lower": model * math.exp(-2 * sigma),
    }


def annotate_point(point: PricePoint, fit: PowerLawFit) -> AnnotatedPoint:
    """Return *point* with model price, deviations and ±1σ/±2σ bands."""
    model = model_price(point.age, fit)
    if point.price > 0 and model > 0:
        log_residual = math.log(point.price) - math.log(model)
    else:
        log_residual = 0.0

    return AnnotatedPoint(
        date=point.date,
        age=point.age,
        price=point.price,
        model_price=model,
        deviation_pct=percent_deviation(point.price, model),
        sigma_deviation=sigma_deviation(point.price, model, fit.sigma),
        log_residual=log_residual,
        **_bands(model, fit.sigma),
    )


def annotate_series(
    points: Iterable[PricePoint], fit: PowerLawFit,
) -> list[AnnotatedPoint]:
    """Annotate each point independently; output order matches input."""
    return [annotate_point(p, fit) for p in points]


def projection_days(years: float) -> int:
    """Number of daily points in a *years* projection (half-days round up)."""
    if years < 0:
        raise ValueError(f"years must be non-negative, got {years}")
    return int(math.floor(years * DAYS_PER_YEAR + 0.5))


def project_series(
    last_day: date | datetime, fit: PowerLawFit, years: float,
) -> list[ProjectionPoint]:
    """Daily model prices and bands for *years* after *last_day*.

    The first point falls on the day after *last_day*.  Every point is
    flagged as a projection.

    Raises:
        ValueError: If *years* is negative.
    """
    first = as_date(last_day) + timedelta(days=1)
    result: list[ProjectionPoint] = []
    for i in range(projection_days(years)):
        day = first + timedelta(days=i)
        age = days_since_genesis(day)
        model = model_price(age, fit)
        result.append(ProjectionPoint(
            date=day, age=age, model_price=model, **_bands(model, fit.sigma),
        ))
    return result
