"""Simulation data models — configuration, monthly steps and results."""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Optional, Union

# Longest supported horizon, in years
MAX_YEARS = 100


class Scenario(str, Enum):
    """Deterministic price-path assumption relative to the fitted curve."""

    FAIR = "fair"
    PLUS_1_SIGMA = "plus1sigma"
    PLUS_2_SIGMA = "plus2sigma"
    MINUS_1_SIGMA = "minus1sigma"
    MINUS_2_SIGMA = "minus2sigma"

    @property
    def sigma_offset(self) -> int:
        """Number of sigmas above (+) or below (−) the model price."""
        return _SIGMA_OFFSETS[self]

    @property
    def label(self) -> str:
        return _SCENARIO_LABELS[self]


_SIGMA_OFFSETS: dict[Scenario, int] = {
    Scenario.FAIR: 0,
    Scenario.PLUS_1_SIGMA: 1,
    Scenario.PLUS_2_SIGMA: 2,
    Scenario.MINUS_1_SIGMA: -1,
    Scenario.MINUS_2_SIGMA: -2,
}

_SCENARIO_LABELS: dict[Scenario, str] = {
    Scenario.FAIR: "Fair Value",
    Scenario.PLUS_1_SIGMA: "+1σ (Optimistic)",
    Scenario.PLUS_2_SIGMA: "+2σ (Mania)",
    Scenario.MINUS_1_SIGMA: "-1σ (Pessimistic)",
    Scenario.MINUS_2_SIGMA: "-2σ (Deep Bear)",
}


class InterestMode(str, Enum):
    """How monthly interest is settled."""

    CAPITALIZE = "capitalize"  # added to the loan principal
    PAY_MONTHLY = "pay_monthly"  # paid out of pocket, principal untouched


class BorrowCadence(str, Enum):
    """How often spending is drawn against the collateral."""

    MONTHLY = "monthly"
    YEARLY = "yearly"


# ── Borrowing modes ──────────────────────────────────────────────────────


@dataclass(frozen=True)
class LumpSum:
    """Borrow once at month 0 up to *ltv_pct* of the collateral value."""

    ltv_pct: float


@dataclass(frozen=True)
class Recurring:
    """Borrow the spending amount on every cadence event after month 0."""

    cadence: BorrowCadence = BorrowCadence.MONTHLY


BorrowMode = Union[LumpSum, Recurring]


@dataclass(frozen=True)
class SpendingStep:
    """Monthly spending from plan year *start_year* on.

    Plan years are 1-based: year 1 covers months 0–11 and runs on the base
    spending unless a step names year 1 explicitly.
    """

    start_year: int
    monthly_amount: float


@dataclass(frozen=True)
class SimulationConfig:
    """Inputs for one borrowing simulation.

    Percentages are given as percent (``10.0`` for 10 %).  Validation runs
    on construction and raises ``ValueError`` naming the offending field.
    """

    holding: float
    monthly_spending: float
    interest_apr_pct: float
    liquidation_ltv_pct: float
    mode: BorrowMode = field(default_factory=Recurring)
    interest_mode: InterestMode = InterestMode.CAPITALIZE
    years: int = 10
    scenario: Scenario = Scenario.FAIR
    start_date: Optional[date] = None
    spending_steps: tuple[SpendingStep, ...] = ()

    def __post_init__(self) -> None:
        # Accept plain string tags; unknown tags raise ValueError here
        object.__setattr__(self, "interest_mode", InterestMode(self.interest_mode))
        object.__setattr__(self, "scenario", Scenario(self.scenario))
        object.__setattr__(self, "spending_steps", tuple(self.spending_steps))

        if self.holding < 0:
            raise ValueError(f"holding must be non-negative, got {self.holding}")
        if self.monthly_spending < 0:
            raise ValueError(
                f"monthly_spending must be non-negative, got {self.monthly_spending}"
            )
        if self.interest_apr_pct < 0:
            raise ValueError(
                f"interest_apr_pct must be non-negative, got {self.interest_apr_pct}"
            )
        if self.liquidation_ltv_pct <= 0:
            raise ValueError(
                f"liquidation_ltv_pct must be positive, got {self.liquidation_ltv_pct}"
            )
        if isinstance(self.years, bool) or not isinstance(self.years, int) or self.years < 0:
            raise ValueError(f"years must be a non-negative integer, got {self.years!r}")
        if self.years > MAX_YEARS:
            raise ValueError(f"years must be at most {MAX_YEARS}, got {self.years}")

        if isinstance(self.mode, LumpSum):
            if self.mode.ltv_pct < 0:
                raise ValueError(
                    f"starting ltv_pct must be non-negative, got {self.mode.ltv_pct}"
                )
        elif isinstance(self.mode, Recurring):
            object.__setattr__(
                self, "mode", Recurring(BorrowCadence(self.mode.cadence)),
            )
        else:
            raise ValueError(f"mode must be LumpSum or Recurring, got {self.mode!r}")

        for step in self.spending_steps:
            if step.start_year < 1:
                raise ValueError(
                    f"spending step start_year must be at least 1, got {step.start_year}"
                )
            if step.monthly_amount < 0:
                raise ValueError(
                    f"spending step monthly_amount must be non-negative, "
                    f"got {step.monthly_amount}"
                )

    @classmethod
    def from_flat(
        cls,
        *,
        holding: float,
        monthly_spending: float,
        interest_apr_pct: float,
        liquidation_ltv_pct: float,
        starting_ltv_pct: Optional[float] = None,
        borrow_enabled: bool = True,
        borrow_cadence: str = "monthly",
        interest_mode: str = "capitalize",
        years: int = 10,
        scenario: str = "fair",
        start_date: Optional[date] = None,
        spending_steps: tuple[SpendingStep, ...] = (),
    ) -> "SimulationConfig":
        """Build a config from the flat nullable-field shape.

        Exactly one of *starting_ltv_pct* and *borrow_enabled* may be set.
        With neither, nothing is borrowed (a zero lump sum).

        Raises:
            ValueError: If both borrowing modes are requested.
        """
        if borrow_enabled and starting_ltv_pct is not None:
            raise ValueError(
                "starting_ltv_pct and borrow_enabled are mutually exclusive"
            )
        if borrow_enabled:
            mode: BorrowMode = Recurring(BorrowCadence(borrow_cadence))
        else:
            mode = LumpSum(starting_ltv_pct if starting_ltv_pct is not None else 0.0)
        return cls(
            holding=holding,
            monthly_spending=monthly_spending,
            interest_apr_pct=interest_apr_pct,
            liquidation_ltv_pct=liquidation_ltv_pct,
            mode=mode,
            interest_mode=InterestMode(interest_mode),
            years=years,
            scenario=Scenario(scenario),
            start_date=start_date,
            spending_steps=tuple(spending_steps),
        )

    # ── Queries ──────────────────────────────────────────────────────────

    @property
    def borrow_enabled(self) -> bool:
        return isinstance(self.mode, Recurring)

    @property
    def starting_ltv_pct(self) -> Optional[float]:
        return self.mode.ltv_pct if isinstance(self.mode, LumpSum) else None

    @property
    def total_months(self) -> int:
        return self.years * 12

    def spending_for_year(self, year: int) -> float:
        """Monthly spending in plan year *year* (1-based).

        The step with the greatest ``start_year <= year`` wins; among
        equal start years the one listed last wins.
        """
        amount = self.monthly_spending
        best_year = -1
        for step in self.spending_steps:
            if best_year <= step.start_year <= year:
                best_year = step.start_year
                amount = step.monthly_amount
        return amount


# ── Results ──────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class PricePathPoint:
    """One month of a price path."""

    date: date
    price: float
    is_projection: bool


@dataclass(frozen=True)
class MonthlyStep:
    """The position at the end of one simulated month."""

    month: int
    year: int
    date: date
    price: float
    collateral_value: float
    loan_balance: float
    ltv: float  # ratio, not percent
    net_equity: float
    interest_incurred: float
    interest_paid: float
    borrowed: float
    liquidated: bool
    is_projection: bool


@dataclass(frozen=True)
class SimulationSummary:
    """First/last figures and totals for a finished run.

    ``final_*`` fields are ``None`` when the position was liquidated.
    """

    initial_collateral_value: float
    final_collateral_value: Optional[float]
    initial_loan_balance: float
    final_loan_balance: Optional[float]
    initial_ltv: float
    final_ltv: Optional[float]
    initial_net_equity: float
    final_net_equity: Optional[float]
    total_interest_paid: float
    total_interest_capitalized: float
    total_borrowed: float
    liquidated: bool
    liquidation_month: Optional[int]
    months_until_liquidation: Optional[int]


@dataclass(frozen=True)
class SimulationResult:
    """Everything one simulation run produced."""

    config: SimulationConfig
    steps: list[MonthlyStep]
    summary: SimulationSummary
