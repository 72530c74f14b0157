"""
This module contains utilities for building sampling grids and for the
support-grid search used when normalizing receptive fields.
"""

import numpy as np

from numba import njit

from rfmodel.config import GridConf

# Relative slack when counting samples in a range, so that e.g.
# (20 - -20) / 0.2 still yields 201 samples despite rounding.
_RANGE_TOL = 1e-10


def sample_range(start, stop, step):
    """Evenly spaced samples from ``start`` up to and including ``stop``.

    The number of samples is ``floor((stop - start) / step) + 1``, allowing
    for a little rounding error in the division. The first half of the
    samples is counted up from ``start`` and the second half down from the
    last sample, so a range that is symmetric around zero yields samples
    that are exactly symmetric as well.

    Parameters
    ----------
    start : float
        First sample.
    stop : float
        Upper bound; included when it lies on the sampling lattice.
    step : float
        Spacing between consecutive samples, must be positive.

    Returns
    -------
    np.ndarray
        1D float64 array with the samples. Empty if ``stop < start``.

    """
    if not step > 0:
        raise ValueError("step must be positive, got %r" % (step,))
    span = (stop - start) / step
    if span < 0:
        return np.empty(0)
    n = int(np.floor(span + _RANGE_TOL * max(1.0, abs(span)))) + 1

    last = start + (n - 1) * step
    if abs(last - stop) <= _RANGE_TOL * max(1.0, abs(stop)):
        last = stop

    k = np.arange(n, dtype=np.float64)
    half = n // 2
    samples = start + k * step
    if half:
        samples[n - half:] = last - k[:half][::-1] * step
    return samples


def make_grid(field_range=None, sample_rate=None, conf=GridConf()):
    """Square sampling grid covering ``[-field_range, field_range]``.

    Parameters
    ----------
    field_range : float, optional
        Half-width of the grid, in degrees of visual angle. Defaults to
        ``conf.field_range``.
    sample_rate : float, optional
        Distance between neighbouring samples, in degrees. Defaults to
        ``conf.sample_rate``.
    conf : GridConf
        Grid settings, e.g. the ``grid`` section of ``read_conf``.

    Returns
    -------
    tuple of np.ndarray
        ``(X, Y)`` as returned by ``np.meshgrid``: X varies along rows,
        Y along columns.

    """
    if field_range is None:
        field_range = conf.field_range
    if sample_rate is None:
        sample_rate = conf.sample_rate
    x = sample_range(-field_range, field_range, sample_rate)
    return np.meshgrid(x, x)


def grid_sample_rate(X):
    """Spacing between the first two samples of the first row of X.

    Rows may run in either direction; the spacing is always returned as a
    magnitude.

    """
    return abs(X[0, 1] - X[0, 0])


def grid_field_range(X):
    """Span of the first row of X, including one sample step."""
    return abs(X[0, -1] - X[0, 0]) + grid_sample_rate(X)


def truncation_mask(X, Y, sigma_major, sigma_minor, limit):
    """Flag the samples inside the truncation ellipse.

    Distances are measured in units of the standard deviations along both
    axes and compared with ``limit * sigma_major``. X and Y only need to
    broadcast against each other.

    Returns
    -------
    np.ndarray
        Boolean array, True inside the ellipse.

    """
    dists = np.sqrt((Y / sigma_major) ** 2 + (X / sigma_minor) ** 2)
    return dists < limit * sigma_major


def touches_border(mask):
    """True if any flagged sample lies in the first/last row or column."""
    return bool(mask[[0, -1], :].any() or mask[:, [0, -1]].any())


def axes_touch_border(x, y, sigma_major, sigma_minor, limit):
    """Border check for the grid ``np.meshgrid(x, y)`` without building it.

    Only the four edges of the grid are evaluated.

    """
    rows = truncation_mask(x, y[[0, -1], np.newaxis], sigma_major,
                           sigma_minor, limit)
    cols = truncation_mask(x[[0, -1], np.newaxis], y, sigma_major,
                           sigma_minor, limit)
    return bool(rows.any() or cols.any())


@njit(nogil=True)
def grid_volume(X, Y, sigma_major, sigma_minor):
    """Sum of the centred, unrotated Gaussian over all samples of (X, Y).

    Each sample carries the infinite-plane normalization
    ``1 / (sigma_major * 2 * pi * sigma_minor)``. X and Y must be
    C-contiguous float64 arrays of equal shape.

    """
    norm = sigma_major * 2 * np.pi * sigma_minor
    xs = X.ravel()
    ys = Y.ravel()
    total = 0.0
    for i in range(xs.size):
        total += np.exp(
            -0.5 * ((ys[i] / sigma_major) ** 2 + (xs[i] / sigma_minor) ** 2)
        ) / norm
    return total


@njit(nogil=True)
def axes_volume(x, y, sigma_major, sigma_minor):
    """Same as grid_volume, for the grid ``np.meshgrid(x, y)``.

    The grid is traversed in row-major order without being allocated.

    """
    norm = sigma_major * 2 * np.pi * sigma_minor
    total = 0.0
    for i in range(y.size):
        ry = (y[i] / sigma_major) ** 2
        for j in range(x.size):
            total += np.exp(-0.5 * (ry + (x[j] / sigma_minor) ** 2)) / norm
    return total
