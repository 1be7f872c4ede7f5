"""Demand quality signal combining fill rate, CPM and bidder diversity."""

from __future__ import annotations

from .stats import round2

FILL_RATE_WEIGHT = 0.4
CPM_WEIGHT = 0.4
DIVERSITY_WEIGHT = 0.2

# $10 CPM scores as excellent demand; 10 unique bidders as ideal diversity.
CPM_CEILING = 10.0
BIDDER_CEILING = 10.0


def _unit(value: float) -> float:
    return max(0.0, min(value, 1.0))


def compute_signal(fill_rate: float, avg_cpm: float, unique_bidder_count: int) -> float:
    """Score an auction in ``[0, 1]``.

    ``fill_rate`` must be the unrounded response/request ratio and ``avg_cpm``
    the rounded average from :func:`compute_cpm_stats`.
    """

    fill_rate_score = _unit(fill_rate) * FILL_RATE_WEIGHT
    cpm_score = _unit(avg_cpm / CPM_CEILING) * CPM_WEIGHT
    diversity_score = _unit(unique_bidder_count / BIDDER_CEILING) * DIVERSITY_WEIGHT
    return round2(fill_rate_score + cpm_score + diversity_score)
