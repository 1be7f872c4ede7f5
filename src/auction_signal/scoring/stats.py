"""Summary statistics over auction CPM values."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

from auction_signal.models.auction import CpmStatistics

_HUNDREDTHS = Decimal("0.01")


def round2(value: float) -> float:
    """Round to two decimals, halves away from zero."""

    # repr() keeps the shortest decimal form, so 2.675 rounds to 2.68
    quantized = Decimal(repr(float(value))).quantize(_HUNDREDTHS, rounding=ROUND_HALF_UP)
    return float(quantized)


def compute_cpm_stats(values: Iterable[float]) -> CpmStatistics:
    """Return avg/max/min/median of ``values``; all zero when empty."""

    ordered = sorted(values)
    if not ordered:
        return CpmStatistics(avg=0.0, max=0.0, min=0.0, median=0.0)

    count = len(ordered)
    mid = count // 2
    if count % 2:
        median = ordered[mid]
    else:
        median = (ordered[mid - 1] + ordered[mid]) / 2

    return CpmStatistics(
        avg=round2(sum(ordered) / count),
        max=round2(ordered[-1]),
        min=round2(ordered[0]),
        median=round2(median),
    )
