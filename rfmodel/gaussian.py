"""Normalized two-dimensional anisotropic Gaussian receptive fields.

The receptive field (RF) is sampled on a grid in degrees of visual angle
and scaled so that its discrete sum over the full support of the
Gaussian equals one, whatever the sampling density. Stimulating the
entire RF therefore always gives the same activation, independent of
the RF parameters.

"""

import logging
from concurrent.futures import ThreadPoolExecutor
from functools import partial

import numpy as np

from rfmodel import utils
from rfmodel.config import RFConf

logger = logging.getLogger(__name__)


class InvalidArgument(ValueError):
    """A required argument is missing or empty, or a parameter is
    unphysical."""


def _is_missing(value):
    return value is None or np.size(value) == 0


def _as_grid(name, grid):
    if _is_missing(grid):
        raise InvalidArgument("Must define %s grid" % name)
    return np.atleast_2d(np.asarray(grid, dtype=float))


def _as_param(value, default):
    if _is_missing(value):
        value = default
    return np.asarray(value, dtype=float).ravel()


def broadcast_params(sigma_major, sigma_minor, theta, x0, y0):
    """Bring all RF parameters to a common number of elements.

    Parameters
    ----------
    sigma_major, sigma_minor, theta, x0, y0 : np.ndarray
        1D arrays, each holding either one element or K elements.

    Returns
    -------
    tuple of np.ndarray
        The five parameters, each of length K.

    Raises
    ------
    InvalidArgument
        If a parameter has neither 1 nor K elements.

    """
    params = {
        "sigma_major": sigma_major,
        "sigma_minor": sigma_minor,
        "theta": theta,
        "x0": x0,
        "y0": y0,
    }
    k = max(p.size for p in params.values())
    for name, p in params.items():
        if p.size not in (1, k):
            raise InvalidArgument(
                "%s has %d elements, expected 1 or %d" % (name, p.size, k)
            )
    return tuple(np.broadcast_to(p, (k,)) for p in params.values())


def rotate_grid(X, Y, theta):
    """Rotate sample positions around the origin.

    Positive theta rotates the grid to the right, i.e. the major axis of
    the resulting RF is rotated by -theta from the vertical.

    """
    cos_theta = np.cos(theta)
    sin_theta = np.sin(theta)
    return X * cos_theta - Y * sin_theta, X * sin_theta + Y * cos_theta


def raw_gaussian(X, Y, sigma_major, sigma_minor):
    """Elliptical Gaussian with unit volume over the infinite plane.

    The spread along Y is set by ``sigma_major``, the spread along X by
    ``sigma_minor``.

    """
    rf = np.exp(-0.5 * ((Y / sigma_major) ** 2 + (X / sigma_minor) ** 2))
    return rf / (sigma_major * 2 * np.pi * sigma_minor)


def support_axis(X, sigma_major, sigma_minor, conf=RFConf()):
    """Sample axis of a square grid holding the whole truncation ellipse.

    Starting from the span and sample rate of the first row of X, the
    grid is grown by ``conf.growth_factor`` on either side until no
    sample inside the truncation ellipse lies on its border. The sample
    rate is never changed.

    Parameters
    ----------
    X : np.ndarray
        2D grid of x-positions, evenly spaced along each row, in
        increasing or decreasing order.
    sigma_major : float
        Standard deviation along the major axis.
    sigma_minor : float
        Standard deviation along the minor axis.
    conf : RFConf
        Truncation radius and growth factor.

    Returns
    -------
    np.ndarray
        1D array of samples, to be used for both axes of the grid.

    Raises
    ------
    InvalidArgument
        If X has a single column, or its first two samples coincide.

    """
    if X.shape[1] < 2:
        logger.error("Cannot expand grid with %d column(s)", X.shape[1])
        raise InvalidArgument(
            "Grid needs at least two columns to derive its sample rate"
        )
    sample_rate = utils.grid_sample_rate(X)
    if not (np.isfinite(sample_rate) and sample_rate > 0):
        logger.error("Grid has sample rate %r", sample_rate)
        raise InvalidArgument("Grid samples must be distinct along its rows")
    field_range = utils.grid_field_range(X)

    while True:
        half_width = conf.growth_factor * field_range
        axis = utils.sample_range(-half_width, half_width, sample_rate)
        logger.debug(
            "Support grid expanded to +/-%g deg (%d samples per axis)",
            half_width,
            axis.size,
        )
        if not utils.axes_touch_border(axis, axis, sigma_major, sigma_minor,
                                       conf.sigma_major_limit):
            return axis
        field_range = axis[-1] - axis[0] + sample_rate


def normalization_constant(X, Y, sigma_major, sigma_minor, conf=RFConf()):
    """Sum of the raw Gaussian over its full (truncated) support.

    The truncation ellipse is centred on the origin of the grid and is
    not rotated, whatever the RF's centre and orientation. If it fits
    inside the given grid, the sum is taken over that grid; otherwise
    over a larger grid at the same sample rate, see support_axis.

    Parameters
    ----------
    X, Y : np.ndarray
        2D sample positions, as passed to gaussian_rf.
    sigma_major : float
        Standard deviation along the major axis.
    sigma_minor : float
        Standard deviation along the minor axis.
    conf : RFConf
        Truncation radius and growth factor.

    Returns
    -------
    float
        The normalization constant.

    """
    mask = utils.truncation_mask(X, Y, sigma_major, sigma_minor,
                                 conf.sigma_major_limit)
    if not utils.touches_border(mask):
        volume = utils.grid_volume(
            np.ascontiguousarray(X, dtype=np.float64),
            np.ascontiguousarray(Y, dtype=np.float64),
            float(sigma_major),
            float(sigma_minor),
        )
    else:
        axis = support_axis(X, sigma_major, sigma_minor, conf)
        volume = utils.axes_volume(axis, axis, float(sigma_major),
                                   float(sigma_minor))
    if volume == 0:
        logger.warning(
            "Gaussian with sigma (%g, %g) vanishes on the whole support grid",
            sigma_major,
            sigma_minor,
        )
    logger.debug("Normalization constant %g for sigma (%g, %g)", volume,
                 sigma_major, sigma_minor)
    return volume


def gaussian_rf(X, Y, sigma_major, sigma_minor=None, theta=None, x0=None,
                y0=None, conf=None):
    """Create a two dimensional Gaussian receptive field.

    Parameters
    ----------
    X, Y : array_like
        Sample positions in degrees, e.g. from ``rfmodel.utils.make_grid``.
        Both must have the same shape and X must be evenly spaced along
        its rows, in either direction. A 1D array is treated as a single row.
    sigma_major : float or array_like
        Standard deviation along the major axis.
    sigma_minor : float or array_like, optional
        Standard deviation along the minor axis. Defaults to sigma_major.
    theta : float or array_like, optional
        Angle of the major axis in radians, 0 is vertical. Defaults to 0.
    x0, y0 : float or array_like, optional
        Centre of the RF. Positive x0 moves it right, positive y0 moves it
        up. Default to 0.
    conf : RFConf, optional
        Normalization settings, defaults to ``RFConf()``.

    Returns
    -------
    np.ndarray
        The RF on the grid, with the shape of X. When any parameter holds
        K > 1 values, K RFs are returned as the columns of an array of
        shape ``(X.size, K)``, whose rows follow ``X.ravel()``.

        The values sum to one when the grid contains the truncation
        ellipse, and to less than one otherwise.

        The truncation ellipse is centred on the grid origin, not on
        (x0, y0). On a grid far from the origin a narrow Gaussian can
        underflow to zero everywhere; the normalization constant is then
        zero and the RF holds inf and NaN values. A warning is logged.

    Raises
    ------
    InvalidArgument
        If X, Y or sigma_major is missing or empty, X and Y differ in
        shape, a standard deviation is not a positive finite number, or
        the parameters cannot be broadcast to a common length.

    Examples
    --------
    >>> from rfmodel.utils import make_grid
    >>> X, Y = make_grid(20, 0.2)
    >>> rf = gaussian_rf(X, Y, 5)

    """
    if conf is None:
        conf = RFConf()

    X = _as_grid("X", X)
    Y = _as_grid("Y", Y)
    if X.shape != Y.shape:
        raise InvalidArgument(
            "X and Y grids differ in shape: %s != %s" % (X.shape, Y.shape)
        )
    if _is_missing(sigma_major):
        raise InvalidArgument("Must scale on major axis")

    sigma_major = _as_param(sigma_major, None)
    sigma_minor = _as_param(sigma_minor, sigma_major)
    for name, sigma in (("sigma_major", sigma_major),
                        ("sigma_minor", sigma_minor)):
        if not np.all(np.isfinite(sigma) & (sigma > 0)):
            raise InvalidArgument(
                "%s must be positive and finite, got %s" % (name, sigma)
            )

    sigma_major, sigma_minor, theta, x0, y0 = broadcast_params(
        sigma_major, sigma_minor, _as_param(theta, 0.0), _as_param(x0, 0.0),
        _as_param(y0, 0.0)
    )
    nr_rfs = sigma_major.size

    # Many RFs at once: one column per RF, one row per grid sample.
    if nr_rfs > 1:
        Xs = X.reshape(-1, 1)
        Ys = Y.reshape(-1, 1)
    else:
        Xs, Ys = X, Y

    # Translate grid so that the RF centre is at the origin.
    Xs = Xs - x0
    Ys = Ys - y0

    if np.any(theta):
        Xs, Ys = rotate_grid(Xs, Ys, theta)

    rf = raw_gaussian(Xs, Ys, sigma_major, sigma_minor)

    normalize = partial(_normalization_constant_at, X, Y, sigma_major,
                        sigma_minor, conf)
    if nr_rfs > 1 and conf.nr_threads != 1:
        with ThreadPoolExecutor(max_workers=conf.nr_threads) as executor:
            volumes = list(executor.map(normalize, range(nr_rfs)))
    else:
        volumes = [normalize(i) for i in range(nr_rfs)]

    return rf / np.array(volumes)


def _normalization_constant_at(X, Y, sigma_major, sigma_minor, conf, index):
    return normalization_constant(X, Y, sigma_major[index],
                                  sigma_minor[index], conf)
