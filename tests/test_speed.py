"""Tests for SpeedDistribution."""

import math
import unittest
import sys
from pathlib import Path

# Add src to path so we can import icestat
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from icestat.speed import SpeedDistribution


class TestSpeedDistribution(unittest.TestCase):
    """Test the rolling speed statistics."""

    def setUp(self):
        self.speeds = SpeedDistribution()
        for kmh in [44.2, 10.0, 80.0]:
            self.speeds.add(kmh)

    def test_max(self):
        self.assertEqual(self.speeds.max(), 80.0)

    def test_average(self):
        self.assertAlmostEqual(self.speeds.average(), 44.7333333, places=5)

    def test_median(self):
        """Test that the median is the middle of the sorted samples."""
        self.assertEqual(self.speeds.median(), 44.2)
        self.assertEqual(self.speeds.percentile(50), 44.2)

    def test_percentile_is_nearest_rank(self):
        """Test nearest-rank percentiles without interpolation."""
        speeds = SpeedDistribution()
        for kmh in range(10, 110, 10):
            speeds.add(float(kmh))

        self.assertEqual(speeds.percentile(90), 90.0)
        self.assertEqual(speeds.percentile(100), 100.0)
        self.assertEqual(speeds.percentile(0), 10.0)
        self.assertEqual(speeds.percentile(25), 30.0)

    def test_samples_are_sorted_on_insert(self):
        """Test that order does not depend on insertion order."""
        speeds = SpeedDistribution()
        for kmh in [250.0, 0.0, 120.0, 80.0]:
            speeds.add(kmh)
        self.assertEqual(speeds.percentile(0), 0.0)
        self.assertEqual(speeds.max(), 250.0)
        self.assertEqual(len(speeds), 4)

    def test_empty(self):
        """Test that queries on an empty distribution return NaN."""
        speeds = SpeedDistribution()
        self.assertTrue(math.isnan(speeds.max()))
        self.assertTrue(math.isnan(speeds.median()))
        self.assertTrue(math.isnan(speeds.average()))
        self.assertEqual(len(speeds), 0)

    def test_nan_samples_are_skipped_by_average(self):
        """Test that NaN samples neither count for the average nor the maximum."""
        self.speeds.add(math.nan)
        self.assertAlmostEqual(self.speeds.average(), 44.7333333, places=5)
        self.assertEqual(self.speeds.max(), 80.0)
        self.assertEqual(len(self.speeds), 4)

    def test_only_nan_samples(self):
        speeds = SpeedDistribution()
        speeds.add(math.nan)
        self.assertTrue(math.isnan(speeds.average()))

    def test_queries_do_not_mutate(self):
        """Test that reading statistics leaves the samples untouched."""
        self.speeds.max()
        self.speeds.median()
        self.speeds.average()
        self.assertEqual(len(self.speeds), 3)


if __name__ == "__main__":
    unittest.main()
