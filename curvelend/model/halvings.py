"""Halving calendar — supply-schedule events used to segment price history."""

from dataclasses import dataclass
from datetime import date
from typing import Optional

from curvelend.model.epoch import GENESIS_DATE, as_date


@dataclass(frozen=True)
class Halving:
    """A block-reward halving event."""

    date: date
    label: str
    block_height: int

    @property
    def date_str(self) -> str:
        return self.date.isoformat()


@dataclass(frozen=True)
class HalvingCycle:
    """The half-open interval ``[start, end)`` between two halvings."""

    start: date
    end: date
    label: str


HALVINGS: tuple[Halving, ...] = (
    Halving(date(2012, 11, 28), "Halving 1", 210_000),
    Halving(date(2016, 7, 9), "Halving 2", 420_000),
    Halving(date(2020, 5, 11), "Halving 3", 630_000),
    Halving(date(2024, 4, 20), "Halving 4", 840_000),
)

# Cycle 5 ends at the estimated next halving
_NEXT_HALVING_ESTIMATE = date(2028, 4, 20)

HALVING_CYCLES: tuple[HalvingCycle, ...] = tuple(
    HalvingCycle(start=start, end=end, label=f"Cycle {i + 1}")
    for i, (start, end) in enumerate(zip(
        (GENESIS_DATE,) + tuple(h.date for h in HALVINGS),
        tuple(h.date for h in HALVINGS) + (_NEXT_HALVING_ESTIMATE,),
    ))
)


def is_halving_date(label: str) -> bool:
    """``True`` when the ``YYYY-MM-DD`` prefix of *label* is a halving day."""
    return halving_info(label) is not None


def halving_info(label: str) -> Optional[Halving]:
    """Return the halving on *label*'s day, or ``None``."""
    day = label[:10]
    for h in HALVINGS:
        if h.date_str == day:
            return h
    return None


def cycle_for_date(value: date) -> Optional[HalvingCycle]:
    """Return the cycle containing *value*, or ``None`` outside all cycles."""
    d = as_date(value)
    for cycle in HALVING_CYCLES:
        if cycle.start <= d < cycle.end:
            return cycle
    return None


def halving_indices(labels: list[str]) -> list[tuple[int, Halving]]:
    """Locate each halving within sorted ``YYYY-MM-DD`` *labels*.

    Prefers an exact match; otherwise takes the first label on or after
    the halving, so sampled series still get a marker.  Halvings outside
    the label range are skipped.
    """
    if not labels:
        return []

    first, last = labels[0], labels[-1]
    result: list[tuple[int, Halving]] = []
    for h in HALVINGS:
        day = h.date_str
        if day < first or day > last:
            continue
        try:
            index = labels.index(day)
        except ValueError:
            index = next(i for i, lbl in enumerate(labels) if lbl >= day)
        result.append((index, h))
    return result
