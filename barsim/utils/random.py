"""Seedable random source. Construct one per task; never share across parallel runs."""

from __future__ import annotations
import sys
from typing import Optional

import numpy as np


class Random:
    """Thin wrapper over numpy's Generator with inclusive integer ranges."""

    def __init__(self, seed: int = 0):
        self.seed = seed
        self._rng = np.random.default_rng(seed)

    def get_real(self, min_value: Optional[float] = None, max_value: Optional[float] = None) -> float:
        """Uniform real in [min_value, max_value)."""
        if min_value is None:
            min_value = sys.float_info.min
        if max_value is None:
            max_value = sys.float_info.max
        return float(self._rng.uniform(min_value, max_value))

    def get_int(self, min_value: int, max_value: int) -> int:
        """Uniform integer in [min_value, max_value], both inclusive."""
        return int(self._rng.integers(min_value, max_value, endpoint=True))
