"""CurveLend — application entry point.

Boots the FastAPI internal server and provides the CLI entry point for
one-off simulations and serve mode.
"""

import logging

from fastapi import FastAPI

from curvelend.api.routers import router

app = FastAPI(title="CurveLend Internal API", version="0.1.0")
app.include_router(router)

logger = logging.getLogger("curvelend")


@app.get("/health")
async def health():
    """Liveness probe."""
    return {"status": "ok"}


# ── CLI ──────────────────────────────────────────────────────────────────


def _run_cli(argv: list[str] | None = None) -> None:
    """Parse CLI arguments and dispatch to the appropriate mode."""
    import argparse

    from curvelend.config import load_config
    from curvelend.data.loader import load_price_csv

    parser = argparse.ArgumentParser(description="CurveLend power-law borrowing simulator")
    parser.add_argument(
        "--mode",
        choices=["simulate", "serve"],
        default="simulate",
        help="Run one simulation and print it, or start the API (default: simulate)",
    )
    parser.add_argument("--csv", help="Price history CSV (overrides PRICE_CSV_PATH)")
    parser.add_argument("--start", help="Simulation start month (YYYY-MM)")
    parser.add_argument("--years", type=int, help="Projection horizon in years")
    parser.add_argument("--scenario", help="fair, plus1sigma, plus2sigma, minus1sigma, minus2sigma")
    parser.add_argument(
        "--starting-ltv",
        type=float,
        help="Borrow once at this LTV %% instead of borrowing the spending",
    )
    parser.add_argument("--cadence", choices=["monthly", "yearly"], default="monthly")
    parser.add_argument(
        "--interest-mode",
        choices=["capitalize", "pay_monthly"],
        default="capitalize",
    )
    args = parser.parse_args(argv)

    config = load_config()
    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    points = load_price_csv(args.csv or config.price_csv_path)

    if args.mode == "serve":
        _run_server(points, config)
    else:
        _run_simulation(points, config, args)


def _run_server(points, config) -> None:
    """Start the API server over the loaded history."""
    import uvicorn

    from curvelend.api.routers import configure_routers

    configure_routers(points, config)
    logger.info("API available at http://localhost:%d", config.api_port)
    uvicorn.run(app, host="0.0.0.0", port=config.api_port, log_level="info")


def _run_simulation(points, config, args) -> None:
    """Fit the history, run one simulation and print its report."""
    from curvelend.cli.report import print_summary
    from curvelend.data.loader import since
    from curvelend.model.epoch import parse_month
    from curvelend.model.powerlaw import fit_power_law
    from curvelend.simulation.engine import run_simulation
    from curvelend.simulation.models import SimulationConfig

    fit = fit_power_law(since(points, config.fit_start_date))
    if fit.is_empty:
        logger.error("Not enough price history to fit the model.")
        raise SystemExit(1)

    sim_config = SimulationConfig.from_flat(
        holding=config.holding_quantity,
        monthly_spending=config.monthly_spending,
        interest_apr_pct=config.interest_apr_pct,
        liquidation_ltv_pct=config.liquidation_ltv_pct,
        starting_ltv_pct=args.starting_ltv,
        borrow_enabled=args.starting_ltv is None,
        borrow_cadence=args.cadence,
        interest_mode=args.interest_mode,
        years=args.years if args.years is not None else config.projection_years,
        scenario=args.scenario or config.scenario,
        start_date=parse_month(args.start),
    )
    logger.info(
        "Fit: a=%.4g b=%.4f r2=%.4f sigma=%.4f", fit.a, fit.b, fit.r_squared, fit.sigma,
    )
    print_summary(run_simulation(sim_config, fit, history=points))


if __name__ == "__main__":
    _run_cli()
