"""Run the configured borrowing strategy under every price scenario.

Usage (from the project root):
    python -m scripts.compare_scenarios --csv data/prices.csv --years 20
"""

import argparse
import logging
import sys
from pathlib import Path

# Ensure project root is on path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from curvelend.cli.report import format_ltv, format_usd
from curvelend.config import load_config
from curvelend.data.loader import load_price_csv, since
from curvelend.model.epoch import parse_month
from curvelend.model.powerlaw import fit_power_law
from curvelend.simulation.engine import run_simulation
from curvelend.simulation.models import Scenario, SimulationConfig

logger = logging.getLogger(__name__)


def compare(csv_path: str, years: int, start: str | None) -> list[str]:
    config = load_config()
    points = load_price_csv(csv_path or config.price_csv_path)
    fit = fit_power_law(since(points, config.fit_start_date))

    lines = [f"{'Scenario':<20} {'Outcome':<18} {'Final LTV':>9} {'Final equity':>13}"]
    for scenario in Scenario:
        sim_config = SimulationConfig.from_flat(
            holding=config.holding_quantity,
            monthly_spending=config.monthly_spending,
            interest_apr_pct=config.interest_apr_pct,
            liquidation_ltv_pct=config.liquidation_ltv_pct,
            years=years,
            scenario=scenario,
            start_date=parse_month(start),
        )
        s = run_simulation(sim_config, fit, history=points).summary
        outcome = f"liquidated m{s.liquidation_month}" if s.liquidated else "survived"
        final_ltv = format_ltv(s.final_ltv) if s.final_ltv is not None else "N/A"
        equity = format_usd(s.final_net_equity) if s.final_net_equity is not None else "N/A"
        lines.append(f"{scenario.label:<20} {outcome:<18} {final_ltv:>9} {equity:>13}")
    return lines


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Compare price scenarios")
    parser.add_argument("--csv", default=None)
    parser.add_argument("--years", type=int, default=10)
    parser.add_argument("--start", default=None, help="YYYY-MM (default: this month)")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
    )

    for line in compare(args.csv, args.years, args.start):
        print(line)
