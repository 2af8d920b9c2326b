"""Rolling distribution of observed train speeds."""

import math
from typing import List


def _sort_key(value: float):
    # NaN compares false against everything; keep such samples at the front.
    return (not math.isnan(value), value)


class SpeedDistribution:
    """
    Collects speed samples, in km/h, over the lifetime of the process.

    Samples are kept in ascending order after every insertion, so max and
    percentile queries are index lookups.
    """

    def __init__(self):
        self._data: List[float] = []

    def __len__(self) -> int:
        return len(self._data)

    def add(self, kmh: float) -> None:
        """Record a speed sample."""
        self._data.append(kmh)
        self._data.sort(key=_sort_key)

    def max(self) -> float:
        """Return the highest speed seen, or NaN if there are no samples."""
        if not self._data:
            return math.nan
        return self._data[-1]

    def percentile(self, p: float) -> float:
        """
        Return the nearest-rank p-th percentile of the samples.

        Args:
            p: Percentile in the range 0 to 100.

        Returns:
            The sample at rank count * p / 100, or NaN if there are no samples.
        """
        if not self._data:
            return math.nan

        idx = int(len(self._data) * p / 100.0 - 0.5)
        idx = min(max(idx, 0), len(self._data) - 1)
        return self._data[idx]

    def median(self) -> float:
        return self.percentile(50.0)

    def average(self) -> float:
        """Return the mean of all samples that are not NaN."""
        finite = [speed for speed in self._data if not math.isnan(speed)]
        if not finite:
            return math.nan
        return sum(finite) / len(finite)
