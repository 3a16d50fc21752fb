"""Kernels used by the nonrigid transform."""

import torch

from ..input_validation import convert_inputs, typecheck
from ..types import JaxFloat, Number

PointsX = JaxFloat[torch.Tensor, "n_x dim"]
PointsY = JaxFloat[torch.Tensor, "n_y dim"]
AffinityXY = JaxFloat[torch.Tensor, "n_x n_y"]


@convert_inputs
@typecheck
def affinity(x: PointsX, y: PointsY, beta: Number) -> AffinityXY:
    r"""Gaussian affinity matrix between two point sets.

    The (i, j) entry of the matrix is

    $$ G_{ij} = \exp(- \|x_i - y_j\|^2 / 2 \beta^2) $$

    When ``x`` and ``y`` are the same points, the matrix is symmetric,
    positive semi-definite and its diagonal is made of ones.

    Parameters
    ----------
    x
        the first set of points, ``(n_x, dim)``
    y
        the second set of points, ``(n_y, dim)``
    beta
        the bandwidth of the kernel. ``beta = 0`` is an invalid
        configuration (division by zero), it is not corrected here.

    Returns
    -------
    torch.Tensor
        the ``(n_x, n_y)`` affinity matrix
    """
    sqdists = ((x[:, None, :] - y[None, :, :]) ** 2).sum(dim=2)
    return torch.exp(-sqdists / (2 * beta**2))
