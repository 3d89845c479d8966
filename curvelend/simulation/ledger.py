"""Loan ledger — rolling loan state for one simulation run. Pure math, no I/O.

Tracks the outstanding balance, cumulative borrowing and interest, and the
sticky liquidation flag.
"""

from typing import Optional

from curvelend.simulation.models import InterestMode


class LoanLedger:
    """Mutable loan state owned by a single simulation run.

    Args:
        interest_apr_pct: Annual interest rate in percent (e.g. 10.0).
        interest_mode: Whether interest capitalises or is paid monthly.
        liquidation_ltv_pct: LTV (percent) at or above which the position
                             is liquidated.
    """

    def __init__(
        self,
        interest_apr_pct: float,
        interest_mode: InterestMode,
        liquidation_ltv_pct: float,
    ) -> None:
        self._monthly_rate: float = interest_apr_pct / 100.0 / 12.0
        self._interest_mode = interest_mode
        self._liquidation_ltv: float = liquidation_ltv_pct / 100.0
        self._balance: float = 0.0
        self._total_borrowed: float = 0.0
        self._total_interest_paid: float = 0.0
        self._total_interest_capitalized: float = 0.0
        self._liquidation_month: Optional[int] = None

    # ── Mutation ─────────────────────────────────────────────────────────

    def borrow(self, amount: float) -> float:
        """Add *amount* to the balance and to cumulative borrowing."""
        self._balance += amount
        self._total_borrowed += amount
        return amount

    def accrue_interest(self) -> tuple[float, float]:
        """Apply one month of interest to the current balance.

        Returns:
            ``(incurred, paid)``.  ``paid`` is zero in capitalise mode.
        """
        interest = self._balance * self._monthly_rate
        if self._interest_mode == InterestMode.CAPITALIZE:
            self._balance += interest
            self._total_interest_capitalized += interest
            return interest, 0.0
        self._total_interest_paid += interest
        return interest, interest

    def check_liquidation(self, month: int, ltv: float) -> bool:
        """Flag liquidation at *month* once *ltv* reaches the threshold.

        The flag is sticky: later calls never move the liquidation month.
        """
        if not self.liquidated and ltv >= self._liquidation_ltv:
            self._liquidation_month = month
        return self.liquidated

    # ── Queries ──────────────────────────────────────────────────────────

    def ltv(self, collateral_value: float) -> float:
        """Loan-to-value ratio; ``0.0`` when the collateral is worthless."""
        if collateral_value <= 0:
            return 0.0
        return self._balance / collateral_value

    @property
    def balance(self) -> float:
        return self._balance

    @property
    def total_borrowed(self) -> float:
        return self._total_borrowed

    @property
    def total_interest_paid(self) -> float:
        return self._total_interest_paid

    @property
    def total_interest_capitalized(self) -> float:
        return self._total_interest_capitalized

    @property
    def liquidated(self) -> bool:
        return self._liquidation_month is not None

    @property
    def liquidation_month(self) -> Optional[int]:
        return self._liquidation_month
