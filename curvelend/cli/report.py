"""CLI report — prints a simulation summary to the console."""

from curvelend.simulation.models import SimulationResult
from curvelend.simulation.stats import yearly_snapshots


def format_usd(value: float) -> str:
    """Compact currency: ``$1.23M``, ``$12.3k`` or ``$950``."""
    if abs(value) >= 1_000_000:
        return f"${value / 1_000_000:.2f}M"
    if abs(value) >= 1_000:
        return f"${value / 1_000:.1f}k"
    return f"${value:.0f}"


def format_ltv(ltv: float) -> str:
    """Format an LTV ratio (0.45) as ``45.0%``."""
    return f"{ltv * 100:.1f}%"


def format_percent(value: float) -> str:
    return f"{value:.1f}%"


def _or_na(value, fmt) -> str:
    return fmt(value) if value is not None else "N/A"


def print_summary(result: SimulationResult) -> str:
    """Format and print a simulation's summary and yearly table.

    Returns:
        The formatted string (also printed to stdout).
    """
    cfg = result.config
    s = result.summary

    if s.liquidated:
        outcome = f"LIQUIDATED at month {s.liquidation_month}"
    else:
        outcome = f"survived {cfg.years} year(s)"

    lines = [
        "─────────────── CurveLend Simulation ───────────────",
        f"  Scenario:        {cfg.scenario.label}",
        f"  Holding:         {cfg.holding:g}",
        f"  Interest:        {format_percent(cfg.interest_apr_pct)} APR "
        f"({cfg.interest_mode.value})",
        f"  Liquidation LTV: {format_percent(cfg.liquidation_ltv_pct)}",
        f"  Outcome:         {outcome}",
        f"  Start equity:    {format_usd(s.initial_net_equity)}",
        f"  Final equity:    {_or_na(s.final_net_equity, format_usd)}",
        f"  Final LTV:       {_or_na(s.final_ltv, format_ltv)}",
        f"  Total borrowed:  {format_usd(s.total_borrowed)}",
        f"  Interest paid:   {format_usd(s.total_interest_paid)}",
        "───────────────────────────────────────────────────",
        f"  {'Month':>5}  {'Date':<10}  {'Price':>9}  {'Loan':>9}  {'LTV':>6}",
    ]
    for step in yearly_snapshots(result.steps):
        flag = " *" if step.liquidated else ""
        lines.append(
            f"  {step.month:>5}  {step.date.isoformat():<10}  "
            f"{format_usd(step.price):>9}  {format_usd(step.loan_balance):>9}  "
            f"{format_ltv(step.ltv):>6}{flag}"
        )
    lines.append("───────────────────────────────────────────────────")

    output = "\n".join(lines)
    print(output)
    return output
