"""Rolling volatility of log residuals around the power-law curve.

Measures how far realised dispersion drifts from the fitted band.  Uses
shifted running sums so each window costs O(1) after an O(n) prefix pass.
"""

from typing import Sequence

import numpy as np

from curvelend.model.models import AnnotatedPoint, VolatilityPoint

ROLLING_WINDOW_DAYS = 730


def rolling_volatility(
    points: Sequence[AnnotatedPoint],
    window_days: int = ROLLING_WINDOW_DAYS,
) -> list[VolatilityPoint]:
    """Trailing sample std-dev (n − 1) of ``log_residual``.

    The window ending at index ``i`` covers ``[max(0, i - W + 1), i]``.
    Windows holding fewer than two points yield ``None``.

    Raises:
        ValueError: If *window_days* is less than 1.
    """
    if window_days < 1:
        raise ValueError(f"window_days must be at least 1, got {window_days}")
    if not points:
        return []

    residuals = np.array([p.log_residual for p in points], dtype=float)
    # Shift by the first residual to limit cancellation in sum-of-squares
    shifted = residuals - residuals[0]
    csum = np.concatenate(([0.0], np.cumsum(shifted)))
    csq = np.concatenate(([0.0], np.cumsum(shifted * shifted)))

    result: list[VolatilityPoint] = []
    for i, point in enumerate(points):
        start = max(0, i - window_days + 1)
        n = i - start + 1
        std = None
        if n >= 2:
            s = csum[i + 1] - csum[start]
            sq = csq[i + 1] - csq[start]
            variance = (sq - s * s / n) / (n - 1)
            std = float(np.sqrt(max(variance, 0.0)))
        result.append(VolatilityPoint(date=point.date, rolling_std=std))
    return result
