"""Price history loading — CSV / DataFrame to ``PricePoint`` lists.

Retrieval from remote providers is handled elsewhere; this module only
normalises a table of ``date``/``price`` rows that is already on hand.
"""

from __future__ import annotations

import logging
from datetime import date
from pathlib import Path
from typing import Optional

import pandas as pd

from curvelend.model.models import PricePoint

logger = logging.getLogger("curvelend.data")

REQUIRED_COLUMNS = ("date", "price")


def clean_prices(df: pd.DataFrame) -> pd.DataFrame:
    """Normalise a raw price table.

    1. Parse ``date`` to UTC calendar days.
    2. Drop rows with missing or non-positive prices.
    3. Sort chronologically; duplicate days keep the last row.
    """
    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"Price table missing column(s): {', '.join(missing)}")

    if df.empty:
        return df.loc[:, list(REQUIRED_COLUMNS)]

    df = df.loc[:, list(REQUIRED_COLUMNS)].copy()
    df["date"] = pd.to_datetime(df["date"], utc=True).dt.date
    df["price"] = pd.to_numeric(df["price"], errors="coerce")

    before = len(df)
    df = df[df["price"].notna() & (df["price"] > 0)]
    dropped = before - len(df)
    if dropped:
        logger.warning("Dropped %d row(s) with missing or non-positive price", dropped)

    df = df.sort_values("date", kind="stable")
    df = df.drop_duplicates(subset="date", keep="last").reset_index(drop=True)
    return df


def points_from_frame(df: pd.DataFrame) -> list[PricePoint]:
    """Convert a price table to chronologically ordered points."""
    cleaned = clean_prices(df)
    return [
        PricePoint.on(day, price)
        for day, price in zip(cleaned["date"], cleaned["price"])
    ]


def load_price_csv(path: str | Path) -> list[PricePoint]:
    """Read a ``date,price`` CSV file into price points."""
    path = Path(path)
    df = pd.read_csv(path)
    points = points_from_frame(df)
    logger.info("Loaded %d price point(s) from %s", len(points), path)
    return points


def since(points: list[PricePoint], start: Optional[date]) -> list[PricePoint]:
    """Points dated on or after *start* (all points when *start* is None)."""
    if start is None:
        return list(points)
    return [p for p in points if p.date >= start]
