"""Types aliases and utility functions for skcpd."""

from typing import Literal, NamedTuple

import torch
from jaxtyping import Float32, Float64, Int32, Int64

from .globals import float_dtype, int_dtype

# Type aliases
Number = int | float

jaxtyping_dtypes = {
    torch.float32: Float32,
    torch.float64: Float64,
    torch.int64: Int64,
    torch.int32: Int32,
}

JaxFloat = jaxtyping_dtypes[float_dtype]
JaxInt = jaxtyping_dtypes[int_dtype]

# Numerical types
# Only float_dtype tensors are float tensors
Float1dTensor = JaxFloat[torch.Tensor, "_"]
Float2dTensor = JaxFloat[torch.Tensor, "_ _"]
Int1dTensor = JaxInt[torch.Tensor, "_"]

# Point sets. The dimension names are shared between the arguments of a
# type-checked function, so that mismatched inputs are rejected.
Points = JaxFloat[torch.Tensor, "_ dim"]
FixedPoints = JaxFloat[torch.Tensor, "n_fixed dim"]
MovingPoints = JaxFloat[torch.Tensor, "n_moving dim"]

FixedMasses = JaxFloat[torch.Tensor, "n_fixed"]
MovingMasses = JaxFloat[torch.Tensor, "n_moving"]
MovingWeights = JaxFloat[torch.Tensor, "n_moving dim"]

Correspondence = JaxInt[torch.Tensor, "n_moving"]

SolverPolicy = Literal["precision", "performance"]


class IterationOutput(NamedTuple):
    """Result of one maximization step of a transform.

    Parameters
    ----------
    points
        the updated moving points.
    sigma2
        the re-estimated noise variance (non-negative).
    signed_sigma2
        the variance before the absolute value is taken. A negative value is
        the trace of floating point cancellation, its magnitude can be
        compared to ``sigma2`` for diagnostics.
    """

    points: torch.Tensor
    sigma2: float
    signed_sigma2: float


class RegistrationOutput:
    """Class containing the result of a registration run.

    It acts as a container for the result of the registration. It contains
    the registered points, the final noise variance, the number of
    iterations, the runtime and eventually other attributes.

    Parameters
    ----------
    points
        the moving points, registered onto the fixed points
    sigma2
        the final noise variance
    iterations
        the number of EM iterations that were run
    runtime
        the wall-clock duration of the registration, in seconds
    correspondence
        for each moving point, the index of the most likely fixed point
    kwargs
        other attributes (if any)

    """

    def __init__(
        self,
        points: torch.Tensor,
        sigma2: float,
        iterations: int,
        runtime: float,
        correspondence: torch.Tensor | None = None,
        **kwargs,
    ) -> None:
        self.points = points
        self.sigma2 = sigma2
        self.iterations = iterations
        self.runtime = runtime
        self.correspondence = correspondence

        # Eventually add other attributes
        for key, value in kwargs.items():
            setattr(self, key, value)
