"""Internal API routers — fit, series, projection, portfolio, halvings, simulate.

No modelling logic. Delegates to the model and simulation packages over
the price history injected at startup.
"""

import logging
import math
from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, Query

from curvelend.config import Config
from curvelend.data.loader import since
from curvelend.model.annotate import annotate_series, project_series
from curvelend.model.epoch import parse_month
from curvelend.model.halvings import HALVING_CYCLES, HALVINGS, cycle_for_date, halving_indices
from curvelend.model.models import PowerLawFit, PricePoint
from curvelend.model.powerlaw import fit_power_law
from curvelend.model.valuation import portfolio_summary, valuation_zone
from curvelend.model.volatility import rolling_volatility
from curvelend.simulation.engine import run_simulation
from curvelend.simulation.models import (
    MAX_YEARS,
    Scenario,
    SimulationConfig,
    SimulationResult,
    SpendingStep,
)
from curvelend.simulation.stats import yearly_snapshots

logger = logging.getLogger("curvelend")
router = APIRouter()

# ── Shared state (set during app startup) ────────────────────────────────

_points: list[PricePoint] = []
_fit: Optional[PowerLawFit] = None
_config: Optional[Config] = None

_NO_HISTORY = {"error": "No price history loaded"}


def configure_routers(points: list[PricePoint], config: Config) -> None:
    """Inject the price history and configuration from application startup.

    The fit is computed once here over points dated on or after
    ``config.fit_start_date``.
    """
    global _points, _fit, _config  # noqa: PLW0603
    _points = list(points)
    _config = config
    _fit = fit_power_law(since(_points, config.fit_start_date)) if _points else None
    logger.info("Routers configured with %d price point(s)", len(_points))


def _fit_dict(fit: PowerLawFit) -> dict:
    return {"a": fit.a, "b": fit.b, "r_squared": fit.r_squared, "sigma": fit.sigma}


# ── Endpoints ────────────────────────────────────────────────────────────


@router.get("/fit")
async def get_fit():
    """Return the power-law fit over the loaded history."""
    if _fit is None:
        return _NO_HISTORY
    return {
        "fit": _fit_dict(_fit),
        "points": len(_points),
        "fit_start_date": _config.fit_start_date.isoformat(),
    }


@router.get("/series")
async def get_series(
    window_days: Optional[int] = Query(default=None, ge=2),
    limit: Optional[int] = Query(default=None, ge=1),
):
    """Return annotated history with rolling volatility.

    ``limit`` keeps only the most recent rows.  Each row carries its
    halving cycle; ``halvings`` marks the row index of every halving
    inside the returned range.
    """
    if _fit is None:
        return _NO_HISTORY
    window = window_days or _config.rolling_window_days
    annotated = annotate_series(_points, _fit)
    volatility = rolling_volatility(annotated, window)
    rows = []
    for p, v in zip(annotated, volatility):
        cycle = cycle_for_date(p.date)
        rows.append({
            **asdict(p),
            "rolling_std": v.rolling_std,
            "cycle": cycle.label if cycle else None,
        })
    if limit is not None:
        rows = rows[-limit:]
    labels = [r["date"].isoformat() for r in rows]
    latest = annotated[-1]
    zone = valuation_zone(latest.sigma_deviation)
    return {
        "fit": _fit_dict(_fit),
        "window_days": window,
        "zone": zone.value,
        "zone_label": zone.label,
        "rows": rows,
        "halvings": [
            {"index": i, "date": h.date_str, "label": h.label}
            for i, h in halving_indices(labels)
        ],
    }


@router.get("/projection")
async def get_projection(
    years: Optional[float] = Query(default=None, ge=0, le=MAX_YEARS),
):
    """Daily model prices and bands after the last observed day."""
    if _fit is None:
        return _NO_HISTORY
    horizon = years if years is not None else _config.projection_years
    rows = project_series(_points[-1].date, _fit, horizon)
    return {
        "fit": _fit_dict(_fit),
        "years": horizon,
        "rows": [asdict(r) for r in rows],
    }


@router.get("/portfolio")
async def get_portfolio(quantity: Optional[float] = Query(default=None, ge=0)):
    """Value a holding at the latest price and model bands."""
    if _fit is None:
        return _NO_HISTORY
    qty = quantity if quantity is not None else _config.holding_quantity
    latest = annotate_series(_points[-1:], _fit)[0]
    return {
        "date": latest.date.isoformat(),
        "sigma_deviation": latest.sigma_deviation,
        "zone": valuation_zone(latest.sigma_deviation).value,
        "summary": asdict(portfolio_summary(latest, qty)),
    }


@router.get("/halvings")
async def get_halvings():
    """List the halving events and the cycles between them."""
    return {
        "halvings": [asdict(h) for h in HALVINGS],
        "cycles": [asdict(c) for c in HALVING_CYCLES],
    }


@router.get("/scenarios")
async def get_scenarios():
    """List the available price scenarios."""
    return {
        "scenarios": [
            {"value": s.value, "label": s.label, "sigma_offset": s.sigma_offset}
            for s in Scenario
        ]
    }


@router.post("/simulate")
async def post_simulate(body: dict):
    """Run one borrowing simulation.

    Accepts the flat config fields (``holding``, ``monthly_spending``,
    ``interest_apr_pct``, ``liquidation_ltv_pct``, ``starting_ltv_pct``,
    ``borrow_enabled``, ``borrow_cadence``, ``interest_mode``, ``years``,
    ``scenario``, ``start_date``, ``spending_steps``).  Omitted fields
    fall back to the loaded configuration.  An explicit ``fit`` object
    (``a``, ``b``, ``sigma``) replaces the fitted history.
    """
    if _config is None:
        return {"status": "error", "errors": ["Server not configured"]}

    errors: list[str] = []
    fit = _fit
    if body.get("fit") is not None:
        try:
            fit = _parse_fit(body["fit"])
        except (KeyError, TypeError, ValueError) as exc:
            errors.append(f"fit: {exc}")
    elif fit is None:
        errors.append("No price history loaded and no fit provided")

    config = None
    use_history = True
    if not errors:
        try:
            config = _build_config(body, _config)
            use_history = _flag(body, "use_history", True)
        except (KeyError, TypeError, ValueError) as exc:
            errors.append(str(exc))
    if errors:
        return {"status": "error", "errors": errors}

    history = _points if use_history else None
    try:
        result = run_simulation(config, fit, history=history)
    except (ValueError, OverflowError) as exc:
        logger.warning("Simulation rejected: %s", exc)
        return {"status": "error", "errors": [f"simulation failed: {exc}"]}
    if not _is_finite(result):
        return {
            "status": "error",
            "errors": ["simulation produced non-finite values; check the fit parameters"],
        }
    return {"status": "ok", **_result_dict(result)}


# ── Helpers ──────────────────────────────────────────────────────────────


def _parse_fit(raw: dict) -> PowerLawFit:
    values = {
        "a": float(raw["a"]),
        "b": float(raw["b"]),
        "r_squared": float(raw.get("r_squared", 0.0)),
        "sigma": float(raw["sigma"]),
    }
    for name, value in values.items():
        if not math.isfinite(value):
            raise ValueError(f"{name} must be a finite number, got {raw.get(name)!r}")
    return PowerLawFit(**values)


def _flag(body: dict, name: str, default: bool) -> bool:
    """Read a JSON boolean; strings such as ``"false"`` are rejected."""
    value = body.get(name)
    if value is None:
        return default
    if not isinstance(value, bool):
        raise ValueError(f"{name} must be true or false, got {value!r}")
    return value


def _is_finite(result: SimulationResult) -> bool:
    return all(
        math.isfinite(value)
        for s in result.steps
        for value in (s.price, s.collateral_value, s.loan_balance, s.ltv, s.net_equity)
    )


def _build_config(body: dict, defaults: Config) -> SimulationConfig:
    steps = tuple(
        SpendingStep(int(s["start_year"]), float(s["monthly_amount"]))
        for s in body.get("spending_steps") or []
    )
    starting_ltv = body.get("starting_ltv_pct")
    return SimulationConfig.from_flat(
        holding=float(body.get("holding", defaults.holding_quantity)),
        monthly_spending=float(body.get("monthly_spending", defaults.monthly_spending)),
        interest_apr_pct=float(body.get("interest_apr_pct", defaults.interest_apr_pct)),
        liquidation_ltv_pct=float(
            body.get("liquidation_ltv_pct", defaults.liquidation_ltv_pct)
        ),
        starting_ltv_pct=float(starting_ltv) if starting_ltv is not None else None,
        borrow_enabled=_flag(body, "borrow_enabled", starting_ltv is None),
        borrow_cadence=body.get("borrow_cadence", "monthly"),
        interest_mode=body.get("interest_mode", "capitalize"),
        years=int(body.get("years", defaults.projection_years)),
        scenario=body.get("scenario", defaults.scenario),
        start_date=parse_month(body.get("start_date")),
        spending_steps=steps,
    )


def _config_dict(cfg: SimulationConfig) -> dict:
    return {
        "holding": cfg.holding,
        "monthly_spending": cfg.monthly_spending,
        "interest_apr_pct": cfg.interest_apr_pct,
        "liquidation_ltv_pct": cfg.liquidation_ltv_pct,
        "starting_ltv_pct": cfg.starting_ltv_pct,
        "borrow_enabled": cfg.borrow_enabled,
        "borrow_cadence": cfg.mode.cadence.value if cfg.borrow_enabled else None,
        "interest_mode": cfg.interest_mode.value,
        "years": cfg.years,
        "scenario": cfg.scenario.value,
        "start_date": cfg.start_date.isoformat() if cfg.start_date else None,
        "spending_steps": [asdict(s) for s in cfg.spending_steps],
    }


def _result_dict(result: SimulationResult) -> dict:
    return {
        "config": _config_dict(result.config),
        "summary": asdict(result.summary),
        "steps": [asdict(s) for s in result.steps],
        "yearly": [s.month for s in yearly_snapshots(result.steps)],
    }
