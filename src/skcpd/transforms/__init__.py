"""
The :mod:`skcpd.transforms` module gathers the transforms fitted by the
coherent point drift algorithm.
"""

from .base import BaseTransform
from .kernels import affinity
from .nonrigid import DEFAULT_BETA, DEFAULT_LAMBDA, Nonrigid

__all__ = [
    "DEFAULT_BETA",
    "DEFAULT_LAMBDA",
    "BaseTransform",
    "Nonrigid",
    "affinity",
]
