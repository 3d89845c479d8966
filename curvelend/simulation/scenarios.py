"""Scenario price paths — model prices offset by a fixed number of sigmas.

Prices are deterministic: ``model_price(age) · e^(k·σ)`` for the
scenario's offset ``k``.  Mixed paths splice observed monthly prices in
front of the projection up to the current month.
"""

import math
from datetime import date, datetime
from typing import Iterable, Optional

from curvelend.model.epoch import (
    add_months,
    as_date,
    days_since_genesis,
    month_start,
    utc_today,
)
from curvelend.model.models import PowerLawFit, PricePoint
from curvelend.model.powerlaw import model_price
from curvelend.simulation.models import PricePathPoint, Scenario


def scenario_multiplier(scenario: Scenario, fit: PowerLawFit) -> float:
    """Return ``e^(k·σ)`` for the scenario's sigma offset ``k``."""
    return math.exp(Scenario(scenario).sigma_offset * fit.sigma)


def scenario_price(
    value: date | datetime, fit: PowerLawFit, scenario: Scenario,
) -> float:
    """Scenario price on *value*'s day."""
    return model_price(days_since_genesis(value), fit) * scenario_multiplier(scenario, fit)


def monthly_path(
    start: date | datetime,
    years: int,
    fit: PowerLawFit,
    scenario: Scenario,
) -> list[PricePathPoint]:
    """Projected price on the first of each month.

    Covers ``years * 12 + 1`` months beginning with *start*'s month.
    Every point is flagged as a projection.
    """
    first = month_start(start)
    return [
        PricePathPoint(
            date=day,
            price=scenario_price(day, fit, scenario),
            is_projection=True,
        )
        for day in (add_months(first, m) for m in range(years * 12 + 1))
    ]


def monthly_closes(history: Iterable[PricePoint]) -> dict[date, float]:
    """Collapse *history* to one price per month; the last point wins."""
    closes: dict[date, float] = {}
    for point in history:
        closes[month_start(point.date)] = point.price
    return closes


def mixed_monthly_path(
    start: date | datetime,
    years: int,
    fit: PowerLawFit,
    scenario: Scenario,
    history: Iterable[PricePoint],
    today: Optional[date] = None,
) -> list[PricePathPoint]:
    """Like ``monthly_path`` but uses observed prices where they exist.

    Months up to and including the current month take the month's last
    observed price when one exists.  Months without data, and all months
    after the current one, use the scenario price.

    Args:
        today: Reference day for "current month".  Defaults to
            today's UTC date.
    """
    current = month_start(as_date(today) if today is not None else utc_today())
    closes = monthly_closes(history)

    path: list[PricePathPoint] = []
    for point in monthly_path(start, years, fit, scenario):
        observed = closes.get(point.date)
        if point.date <= current and observed is not None:
            path.append(PricePathPoint(point.date, observed, is_projection=False))
        else:
            path.append(point)
    return path
