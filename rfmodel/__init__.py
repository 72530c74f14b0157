"""
Gaussian receptive field models for retinotopic mapping.

The main entry point is :func:`rfmodel.gaussian.gaussian_rf`, which samples
an area-normalized, anisotropic Gaussian on a grid in degrees of visual
angle.
"""

from rfmodel.config import Conf, GridConf, RFConf, read_conf
from rfmodel.gaussian import InvalidArgument, gaussian_rf
from rfmodel.utils import make_grid
