"""Dense linear solvers.

The nonrigid transform solves one regularized linear system per iteration.
The way this system is solved is a strategy injected in the transform: a
solver is any object with a ``solve(A, b)`` method. Two solvers are provided,
matching the two numeric policies of the library:

- ``"precision"``: :class:`ColPivHouseholderQR`, rank-revealing and tolerant
  to ill-conditioned systems,
- ``"performance"``: :class:`HouseholderQR`, faster but without pivoting.
"""

from .solvers import (
    ColPivHouseholderQR,
    HouseholderQR,
    LinearSolver,
    linear_solver,
)

__all__ = [
    "ColPivHouseholderQR",
    "HouseholderQR",
    "LinearSolver",
    "linear_solver",
]
