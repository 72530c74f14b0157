"""
Tests for the sampling grid helpers and the support-grid kernels.
"""
import unittest

import numpy as np
import pytest

from rfmodel.utils import axes_touch_border
from rfmodel.utils import axes_volume
from rfmodel.utils import grid_field_range
from rfmodel.utils import grid_sample_rate
from rfmodel.utils import grid_volume
from rfmodel.utils import make_grid
from rfmodel.utils import sample_range
from rfmodel.utils import touches_border
from rfmodel.utils import truncation_mask


class SampleRangeTest(unittest.TestCase):

    def testCount(self):
        self.assertEqual(sample_range(-20, 20, 0.2).size, 201)
        self.assertEqual(sample_range(-3.75, 3.75, 0.5).size, 16)
        self.assertEqual(sample_range(0, 1, 0.3).size, 4)

    def testEndpoints(self):
        samples = sample_range(-20, 20, 0.2)
        self.assertEqual(samples[0], -20)
        self.assertEqual(samples[-1], 20)

    def testSymmetric(self):
        for start, step in ((-20, 0.2), (-1, 0.5), (-7.5, 0.25)):
            samples = sample_range(start, -start, step)
            np.testing.assert_array_equal(samples, -samples[::-1])

    def testEvenlySpaced(self):
        samples = sample_range(-3.75, 3.75, 0.5)
        np.testing.assert_allclose(np.diff(samples), 0.5, rtol=1e-12)

    def testStopNotOnLattice(self):
        np.testing.assert_allclose(sample_range(0, 1, 0.3),
                                   [0, 0.3, 0.6, 0.9])

    def testEmpty(self):
        self.assertEqual(sample_range(1, 0, 0.1).size, 0)

    def testBadStep(self):
        with self.assertRaises(ValueError):
            sample_range(0, 1, 0)
        with self.assertRaises(ValueError):
            sample_range(0, 1, -0.1)


class GridTest(unittest.TestCase):

    def setUp(self):
        self.X, self.Y = make_grid(1, 0.5)

    def testShape(self):
        self.assertEqual(self.X.shape, (5, 5))
        self.assertEqual(self.Y.shape, (5, 5))

    def testLayout(self):
        # X varies along rows, Y along columns
        np.testing.assert_array_equal(self.X[0], [-1, -0.5, 0, 0.5, 1])
        np.testing.assert_array_equal(self.Y[:, 0], self.X[0])
        np.testing.assert_array_equal(self.X, self.Y.T)

    def testSampleRate(self):
        self.assertEqual(grid_sample_rate(self.X), 0.5)

    def testFieldRange(self):
        self.assertEqual(grid_field_range(self.X), 2.5)

    def testDecreasingRows(self):
        X = self.X[:, ::-1]
        self.assertEqual(grid_sample_rate(X), 0.5)
        self.assertEqual(grid_field_range(X), 2.5)

    def testDefaults(self):
        # 20 deg either side at 0.2 deg
        X, Y = make_grid()
        self.assertEqual(X.shape, (201, 201))
        self.assertEqual(X[0, 0], -20)
        self.assertEqual(X[0, -1], 20)


class TruncationMaskTest(unittest.TestCase):

    def testCircular(self):
        X, Y = make_grid(10, 1)
        mask = truncation_mask(X, Y, 1, 1, 4)
        self.assertEqual(mask.dtype, bool)
        # |r| < 4 deg for a unit Gaussian
        np.testing.assert_array_equal(mask, np.hypot(X, Y) < 4)
        self.assertFalse(touches_border(mask))

    def testThresholdScalesWithSigmaMajor(self):
        # The limit is applied in units of sigma_major standard deviations
        X, Y = make_grid(10, 1)
        mask = truncation_mask(X, Y, 2, 2, 4)
        np.testing.assert_array_equal(mask, np.hypot(X, Y) / 2 < 8)
        self.assertTrue(touches_border(mask))

    def testTouchesBorder(self):
        mask = np.zeros((5, 4), dtype=bool)
        self.assertFalse(touches_border(mask))
        mask[2, 2] = True
        self.assertFalse(touches_border(mask))
        for i, j in ((0, 1), (4, 2), (1, 0), (3, 3)):
            edge = np.zeros_like(mask)
            edge[i, j] = True
            self.assertTrue(touches_border(edge))


@pytest.mark.parametrize(
    "field_range, sigma_major, sigma_minor",
    [(5, 1, 1), (5, 1.5, 0.5), (12, 1, 3), (20, 5, 5)],
)
def test_axes_touch_border(field_range, sigma_major, sigma_minor):
    X, Y = make_grid(field_range, 0.5)
    expected = touches_border(
        truncation_mask(X, Y, sigma_major, sigma_minor, 4)
    )
    axis = X[0]
    assert axes_touch_border(axis, axis, sigma_major, sigma_minor,
                             4) == expected


class VolumeTest(unittest.TestCase):

    def setUp(self):
        self.X, self.Y = make_grid(6, 0.25)
        self.sigma_major = 1.5
        self.sigma_minor = 0.75

    def expected(self):
        values = np.exp(-0.5 * ((self.Y / self.sigma_major) ** 2
                                + (self.X / self.sigma_minor) ** 2))
        values /= self.sigma_major * 2 * np.pi * self.sigma_minor
        return values.sum()

    def testGridVolume(self):
        volume = grid_volume(self.X, self.Y, self.sigma_major,
                             self.sigma_minor)
        self.assertAlmostEqual(volume / self.expected(), 1, places=12)

    def testAxesVolume(self):
        axis = self.X[0]
        self.assertAlmostEqual(
            axes_volume(axis, axis, self.sigma_major, self.sigma_minor),
            grid_volume(self.X, self.Y, self.sigma_major, self.sigma_minor),
            places=12,
        )

    def testContinuumLimit(self):
        # A well-sampled Gaussian sums to one over the sample area
        axis = sample_range(-12, 12, 0.25)
        volume = axes_volume(axis, axis, self.sigma_major, self.sigma_minor)
        self.assertAlmostEqual(volume * 0.25 ** 2, 1, places=6)
