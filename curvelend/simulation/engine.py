"""Borrowing simulation — steps a collateralised loan through a price path.

Each month, in order:

1. Value the collateral at the month's price.
2. Borrow the cadence's spending amount (never in month 0).
3. Accrue one month of interest (never in month 0).
4. Compute LTV and net equity.
5. Flag liquidation once LTV reaches the threshold.
6. Record the step; stop after a liquidated step.
"""

import logging
from datetime import date, datetime
from typing import Optional, Sequence

from curvelend.model.models import PowerLawFit, PricePoint
from curvelend.simulation.ledger import LoanLedger
from curvelend.simulation.models import (
    BorrowCadence,
    LumpSum,
    MonthlyStep,
    PricePathPoint,
    Recurring,
    SimulationConfig,
    SimulationResult,
)
from curvelend.simulation.scenarios import mixed_monthly_path, monthly_path
from curvelend.simulation.stats import summarize

logger = logging.getLogger("curvelend")


class BorrowingSimulator:
    """Runs one borrowing strategy against scenario prices.

    Args:
        config: Strategy, rate and horizon settings.
        fit: Power-law fit used to project prices.
    """

    def __init__(self, config: SimulationConfig, fit: PowerLawFit) -> None:
        self._config = config
        self._fit = fit

    # ── Public API ───────────────────────────────────────────────────────

    def price_path(
        self,
        start: date | datetime,
        history: Optional[Sequence[PricePoint]] = None,
        today: Optional[date] = None,
    ) -> list[PricePathPoint]:
        """Monthly prices for the run, spliced with *history* when given."""
        cfg = self._config
        if history:
            return mixed_monthly_path(
                start, cfg.years, self._fit, cfg.scenario, history, today=today,
            )
        return monthly_path(start, cfg.years, self._fit, cfg.scenario)

    def run(
        self,
        start: date | datetime,
        history: Optional[Sequence[PricePoint]] = None,
        today: Optional[date] = None,
    ) -> SimulationResult:
        """Simulate from *start* until the horizon or liquidation.

        Args:
            start: Simulation start; normalised to the first of its month.
            history: Observed prices used for months up to *today*.
            today: Reference day separating history from projection.

        Returns:
            A ``SimulationResult`` with one step per simulated month.
        """
        cfg = self._config
        path = self.price_path(start, history, today)
        ledger = LoanLedger(
            cfg.interest_apr_pct, cfg.interest_mode, cfg.liquidation_ltv_pct,
        )

        if isinstance(cfg.mode, LumpSum):
            opening_collateral = cfg.holding * path[0].price
            ledger.borrow(opening_collateral * cfg.mode.ltv_pct / 100.0)

        steps: list[MonthlyStep] = []
        for i, point in enumerate(path):
            collateral = cfg.holding * point.price

            borrowed = 0.0
            if i > 0:
                borrowed = ledger.borrow(self._draw_amount(i))

            incurred = paid = 0.0
            if i > 0:
                incurred, paid = ledger.accrue_interest()

            ltv = ledger.ltv(collateral)
            liquidated = ledger.check_liquidation(i, ltv)

            steps.append(MonthlyStep(
                month=i,
                year=i // 12,
                date=point.date,
                price=point.price,
                collateral_value=collateral,
                loan_balance=ledger.balance,
                ltv=ltv,
                net_equity=collateral - ledger.balance,
                interest_incurred=incurred,
                interest_paid=paid,
                borrowed=borrowed,
                liquidated=liquidated,
                is_projection=point.is_projection,
            ))

            if liquidated:
                logger.info(
                    "Liquidated at month %d (%s): LTV %.1f%% >= %.1f%%",
                    i, point.date.isoformat(), ltv * 100, cfg.liquidation_ltv_pct,
                )
                break

        return SimulationResult(
            config=cfg, steps=steps, summary=summarize(steps, ledger),
        )

    # ── Helpers ──────────────────────────────────────────────────────────

    def _draw_amount(self, month: int) -> float:
        """Amount borrowed in *month* (> 0); zero in lump-sum mode."""
        cfg = self._config
        if not isinstance(cfg.mode, Recurring):
            return 0.0
        spending = cfg.spending_for_year(month // 12 + 1)
        if cfg.mode.cadence == BorrowCadence.MONTHLY:
            return spending
        if month % 12 == 0:
            return spending * 12
        return 0.0


def run_simulation(
    config: SimulationConfig,
    fit: PowerLawFit,
    start: Optional[date | datetime] = None,
    history: Optional[Sequence[PricePoint]] = None,
    today: Optional[date] = None,
) -> SimulationResult:
    """Run one simulation.

    *start* falls back to ``config.start_date``.

    Raises:
        ValueError: If neither *start* nor ``config.start_date`` is set.
    """
    start = start if start is not None else config.start_date
    if start is None:
        raise ValueError("a start date is required (argument or config.start_date)")
    return BorrowingSimulator(config, fit).run(start, history, today)
