"""Scikit-CPD: coherent point drift registration in python."""

from .correspondence import *
from .globals import float_dtype, int_dtype
from .input_validation import *
from .linear_solvers import *
from .normalization import Normalization
from .tasks import *
from .transforms import *
from .types import *

__version__ = "0.1.0"

__all__ = [
    "Normalization",
    "correspondence",
    "input_validation",
    "linear_solvers",
    "tasks",
    "transforms",
    "types",
]
