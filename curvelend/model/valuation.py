"""Valuation — sigma-zone classification and holding-level scaling."""

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Iterable

from curvelend.model.models import AnnotatedPoint


class ValuationZone(str, Enum):
    """Where a price sits relative to the fitted band."""

    DEEP_VALUE = "deep_value"
    UNDERVALUED = "undervalued"
    FAIR = "fair"
    OVERVALUED = "overvalued"
    BUBBLE = "bubble"

    @property
    def label(self) -> str:
        return _ZONE_LABELS[self]


_ZONE_LABELS: dict[ValuationZone, str] = {
    ValuationZone.DEEP_VALUE: "Deep Value",
    ValuationZone.UNDERVALUED: "Undervalued",
    ValuationZone.FAIR: "Fair Value",
    ValuationZone.OVERVALUED: "Expensive",
    ValuationZone.BUBBLE: "Bubble",
}


def valuation_zone(sigma_dev: float) -> ValuationZone:
    """Classify a sigma deviation; boundaries belong to the cheaper zone."""
    if sigma_dev <= -2:
        return ValuationZone.DEEP_VALUE
    if sigma_dev <= -1:
        return ValuationZone.UNDERVALUED
    if sigma_dev <= 1:
        return ValuationZone.FAIR
    if sigma_dev <= 2:
        return ValuationZone.OVERVALUED
    return ValuationZone.BUBBLE


# ── Portfolio scaling ────────────────────────────────────────────────────


@dataclass(frozen=True)
class PortfolioPoint:
    """Holding value and model bands on one day, in currency."""

    date: date
    value: float
    fair_value: float
    band_1_upper: float
    band_1_lower: float
    band_2_upper: float
    band_2_lower: float


@dataclass(frozen=True)
class PortfolioSummary:
    """Holding-level figures for the latest annotated point."""

    quantity: float
    current_value: float
    fair_value: float
    band_1_upper: float
    band_1_lower: float
    band_2_upper: float
    band_2_lower: float


def _check_quantity(quantity: float) -> None:
    if quantity < 0:
        raise ValueError(f"quantity must be non-negative, got {quantity}")


def portfolio_point(point: AnnotatedPoint, quantity: float) -> PortfolioPoint:
    """Scale one annotated point by *quantity*."""
    _check_quantity(quantity)
    return PortfolioPoint(
        date=point.date,
        value=quantity * point.price,
        fair_value=quantity * point.model_price,
        band_1_upper=quantity * point.band_1_upper,
        band_1_lower=quantity * point.band_1_lower,
        band_2_upper=quantity * point.band_2_upper,
        band_2_lower=quantity * point.band_2_lower,
    )


def portfolio_series(
    points: Iterable[AnnotatedPoint], quantity: float,
) -> list[PortfolioPoint]:
    """Scale every annotated point by *quantity*.

    Raises:
        ValueError: If *quantity* is negative.
    """
    _check_quantity(quantity)
    return [portfolio_point(p, quantity) for p in points]


def portfolio_summary(point: AnnotatedPoint, quantity: float) -> PortfolioSummary:
    """Summarise a holding of *quantity* units at *point*."""
    scaled = portfolio_point(point, quantity)
    return PortfolioSummary(
        quantity=quantity,
        current_value=scaled.value,
        fair_value=scaled.fair_value,
        band_1_upper=scaled.band_1_upper,
        band_1_lower=scaled.band_1_lower,
        band_2_upper=scaled.band_2_upper,
        band_2_lower=scaled.band_2_lower,
    )
