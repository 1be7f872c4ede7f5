"""Pure statistics and scoring helpers."""

from .signal import compute_signal
from .stats import compute_cpm_stats, round2

__all__ = ["compute_cpm_stats", "compute_signal", "round2"]
