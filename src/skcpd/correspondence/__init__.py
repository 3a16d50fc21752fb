"""
The :mod:`skcpd.correspondence` module gathers the expectation step of the
coherent point drift algorithm: soft correspondences between the moving
points (the centroids of a Gaussian mixture) and the fixed points (the
samples).
"""

from .gauss_transform import default_sigma2, gauss_transform
from .probabilities import Probabilities

__all__ = ["Probabilities", "default_sigma2", "gauss_transform"]
