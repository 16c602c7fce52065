from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Sequence

import numpy as np

logger = logging.getLogger(__name__)

THRESHOLD_RATIO = 1.2


@dataclass(frozen=True, slots=True)
class EnergyPeak:
    time: float
    energy: float


def _as_float_array(values: Sequence[float] | np.ndarray) -> np.ndarray:
    try:
        return np.asarray(values, dtype=np.float64)
    except (TypeError, ValueError):
        # mixed junk: coerce element-wise, unparsable entries become NaN
        out = np.full(len(values), np.nan)
        for i, v in enumerate(values):
            try:
                out[i] = float(v)
            except (TypeError, ValueError):
                pass
        return out


def energy_threshold(energy: np.ndarray, ratio: float = THRESHOLD_RATIO) -> float:
    """Upper median of the finite energies, scaled by `ratio`. 0 when nothing is finite."""
    valid = energy[np.isfinite(energy)]
    if valid.size == 0:
        return 0.0
    median = np.sort(valid)[valid.size // 2]
    return float(median * ratio)


def find_peaks(
    energy: Sequence[float] | np.ndarray | None,
    time: Sequence[float] | np.ndarray | None,
    *,
    threshold_ratio: float = THRESHOLD_RATIO,
) -> list[EnergyPeak]:
    """
    Local maxima of `energy` above the adaptive threshold, sorted by time.

    Index i (1 <= i <= n-2) is a peak when energy[i] is strictly greater than
    both neighbours and the threshold. Indices touching a non-finite energy,
    or whose time is non-finite, are skipped.
    """
    if energy is None or len(energy) == 0 or time is None:
        return []

    e = _as_float_array(energy)
    t = _as_float_array(time)
    if e.size != t.size:
        logger.debug("energy/time length mismatch (%s vs %s), truncating", e.size, t.size)
        n = min(e.size, t.size)
        e, t = e[:n], t[:n]
    if e.size < 3:
        return []

    threshold = energy_threshold(e, threshold_ratio)

    prev, cur, nxt = e[:-2], e[1:-1], e[2:]
    finite = np.isfinite(prev) & np.isfinite(cur) & np.isfinite(nxt) & np.isfinite(t[1:-1])
    is_peak = finite & (cur > prev) & (cur > nxt) & (cur > threshold)

    idx = np.flatnonzero(is_peak) + 1
    order = np.argsort(t[idx], kind="stable")
    return [EnergyPeak(time=float(t[i]), energy=float(e[i])) for i in idx[order]]
