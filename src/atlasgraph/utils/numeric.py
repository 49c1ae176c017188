from __future__ import annotations

from typing import Dict, Iterable

import numpy as np


def safe_mean(values: Iterable[float]) -> float:
    vals = list(values)
    if not vals:
        return 0.0
    return float(np.mean(vals))


def histogram(values: Iterable[int]) -> Dict[int, int]:
    """
    Count of each non-negative integer value, e.g. entities per depth.

    Values absent from the input are omitted from the result.
    """
    vals = np.asarray(list(values), dtype=int)
    if vals.size == 0:
        return {}
    counts = np.bincount(vals)
    return {int(v): int(c) for v, c in enumerate(counts) if c}
