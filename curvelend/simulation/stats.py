"""Simulation statistics — pure functions over a finished step sequence."""

from curvelend.simulation.ledger import LoanLedger
from curvelend.simulation.models import MonthlyStep, SimulationSummary


def summarize(steps: list[MonthlyStep], ledger: LoanLedger) -> SimulationSummary:
    """Build the run summary from its steps and final ledger state.

    Final figures are ``None`` when the run ended in liquidation.

    Raises:
        ValueError: If *steps* is empty.
    """
    if not steps:
        raise ValueError("cannot summarise an empty step sequence")

    first = steps[0]
    last = steps[-1]
    closed = ledger.liquidated

    return SimulationSummary(
        initial_collateral_value=first.collateral_value,
        final_collateral_value=None if closed else last.collateral_value,
        initial_loan_balance=first.loan_balance,
        final_loan_balance=None if closed else last.loan_balance,
        initial_ltv=first.ltv,
        final_ltv=None if closed else last.ltv,
        initial_net_equity=first.net_equity,
        final_net_equity=None if closed else last.net_equity,
        total_interest_paid=ledger.total_interest_paid,
        total_interest_capitalized=ledger.total_interest_capitalized,
        total_borrowed=ledger.total_borrowed,
        liquidated=closed,
        liquidation_month=ledger.liquidation_month,
        months_until_liquidation=ledger.liquidation_month,
    )


def yearly_snapshots(steps: list[MonthlyStep]) -> list[MonthlyStep]:
    """Month 0, every twelfth month, and an off-cycle final step.

    The final step is appended when the run stopped between year
    boundaries (early liquidation).
    """
    if not steps:
        return []

    snapshots = [steps[0]]
    snapshots.extend(steps[i] for i in range(12, len(steps), 12))

    last = steps[-1]
    if last.month % 12 != 0:
        snapshots.append(last)
    return snapshots
