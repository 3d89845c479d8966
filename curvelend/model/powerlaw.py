"""Power-law fit — OLS regression in log-log space. Pure functions, no I/O.

Model::

    ln(price) = ln(a) + b · ln(age)

Fitted by ordinary least squares over the points with ``price > 0`` and
``age > 0``.  Degenerate inputs return sentinel zeros instead of raising
so callers can always render something.
"""

import logging
import math
from typing import Iterable

from curvelend.model.models import PowerLawFit, PricePoint

logger = logging.getLogger("curvelend")

# math.exp overflows just above 709.78
_MAX_LOG = 700.0


def fit_power_law(points: Iterable[PricePoint]) -> PowerLawFit:
    """Fit ``price = a * age ** b`` to *points*.

    Returns:
        A ``PowerLawFit``.  ``sigma`` is the sample standard deviation
        (n − 1) of the log residuals.  When fewer than two usable points
        remain, or every usable point shares the same age, the all-zero
        sentinel ``PowerLawFit.empty()`` is returned.  So is a fit whose
        coefficient ``a`` would overflow a float, which happens when a
        handful of noisy points span only a few days.
    """
    valid = [p for p in points if p.price > 0 and p.age > 0]
    n = len(valid)
    if n < 2:
        logger.warning("Power-law fit skipped: %d usable point(s)", n)
        return PowerLawFit.empty()

    if len({p.age for p in valid}) < 2:
        logger.warning("Power-law fit skipped: all %d points share one age", n)
        return PowerLawFit.empty()

    log_t = [math.log(p.age) for p in valid]
    log_p = [math.log(p.price) for p in valid]
    mean_t = sum(log_t) / n
    mean_p = sum(log_p) / n

    numerator = 0.0
    denominator = 0.0
    for lt, lp in zip(log_t, log_p):
        numerator += (lt - mean_t) * (lp - mean_p)
        denominator += (lt - mean_t) ** 2

    b = numerator / denominator
    log_a = mean_p - b * mean_t
    if not math.isfinite(log_a) or abs(log_a) > _MAX_LOG:
        logger.warning(
            "Power-law fit skipped: ln(a)=%.4g out of range (b=%.4g, %d points)",
            log_a, b, n,
        )
        return PowerLawFit.empty()

    residuals = [lp - (log_a + b * lt) for lt, lp in zip(log_t, log_p)]
    ss_res = sum(r ** 2 for r in residuals)
    ss_tot = sum((lp - mean_p) ** 2 for lp in log_p)
    r_squared = 1.0 - ss_res / ss_tot if ss_tot > 0 else 0.0

    mean_res = sum(residuals) / n
    variance = sum((r - mean_res) ** 2 for r in residuals) / (n - 1)

    fit = PowerLawFit(
        a=math.exp(log_a),
        b=b,
        r_squared=r_squared,
        sigma=math.sqrt(variance),
    )
    logger.debug(
        "Power-law fit over %d points: a=%.6g b=%.4f r2=%.4f sigma=%.4f",
        n, fit.a, fit.b, fit.r_squared, fit.sigma,
    )
    return fit


def model_price(age: float, fit: PowerLawFit) -> float:
    """Return ``a * age ** b``.

    ``0.0`` when *age* or *a* is not positive, or when the price would
    overflow a float.
    """
    if age <= 0 or fit.a <= 0:
        return 0.0
    log_price = math.log(fit.a) + fit.b * math.log(age)
    if log_price > _MAX_LOG:
        return 0.0
    return math.exp(log_price)


def percent_deviation(actual: float, model: float) -> float:
    """Percentage above (+) or below (−) the model price; 0 when model is 0."""
    if model == 0:
        return 0.0
    return (actual / model - 1.0) * 100.0


def sigma_deviation(actual: float, model: float, sigma: float) -> float:
    """Distance from the model in log space, in units of *sigma*.

    Returns ``0.0`` when *model* ≤ 0, *sigma* is 0, or *actual* ≤ 0.
    """
    if model <= 0 or sigma == 0 or actual <= 0:
        return 0.0
    return (math.log(actual) - math.log(model)) / sigma
