"""Direct (dense) Gauss transform."""

from math import inf, log, pi

import torch

from ..input_validation import typecheck
from ..types import FixedPoints, MovingPoints, Number
from .probabilities import Probabilities


@typecheck
def gauss_transform(
    fixed: FixedPoints,
    moving: MovingPoints,
    sigma2: Number,
    outliers: Number,
) -> Probabilities:
    r"""Compute the correspondence statistics between two point sets.

    The moving points are the centroids of a Gaussian mixture with isotropic
    variance ``sigma2``, plus a uniform component accounting for a fraction
    ``outliers`` of the fixed points. The posterior probability that the
    fixed point $x_i$ was generated by the moving point $y_j$ is

    $$ P_{ji} = \frac{\exp(-\|x_i - y_j\|^2 / 2\sigma^2)}
                     {\sum_k \exp(-\|x_i - y_k\|^2 / 2\sigma^2) + c} $$

    with $c = w N (2 \pi \sigma^2)^{D/2} / ((1 - w) M)$, $w$ being the
    outlier weight, $N$ the number of moving points and $M$ the number of
    fixed points.

    The $(N, M)$ kernel matrix is computed densely: memory grows as the
    product of the sizes of the point sets.

    Parameters
    ----------
    fixed
        the fixed points, ``(M, D)``
    moving
        the moving points, ``(N, D)``
    sigma2
        the variance of the mixture, must be positive
    outliers
        the weight of the uniform component, in ``[0, 1)``

    Returns
    -------
    Probabilities
        the statistics ``p1``, ``pt1``, ``px``, the negative log-likelihood
        ``l`` and, for each moving point, the index of its most likely fixed
        point.
    """
    n_fixed, dim = fixed.shape
    n_moving = moving.shape[0]

    sqdists = ((fixed[:, None, :] - moving[None, :, :]) ** 2).sum(dim=2)
    kernel = torch.exp(-sqdists / (2 * sigma2))  # (M, N)

    c = (outliers * n_moving * (2 * pi * sigma2) ** (0.5 * dim)) / (
        (1 - outliers) * n_fixed
    )
    denominator = kernel.sum(dim=1) + c  # (M,)

    posterior = kernel / denominator[:, None]  # (M, N)

    pt1 = 1 - c / denominator
    p1 = posterior.sum(dim=0)
    px = posterior.T @ fixed

    l = -torch.log(denominator).sum().item()  # noqa: E741
    # A collapsed variance sends the log-likelihood to -inf, not an error
    l += dim * n_fixed * (log(sigma2) if sigma2 > 0 else -inf) / 2

    # The argmax of the posterior is taken in log space, where the kernel of
    # a tiny variance does not underflow
    log_kernel = -sqdists / (2 * sigma2)
    log_c = torch.full_like(log_kernel[:, :1], log(c) if c > 0 else -inf)
    log_denominator = torch.logsumexp(
        torch.cat([log_kernel, log_c], dim=1), dim=1
    )
    log_posterior = log_kernel - log_denominator[:, None]

    return Probabilities(
        p1=p1,
        pt1=pt1,
        px=px,
        l=l,
        correspondence=log_posterior.argmax(dim=0),
    )


@typecheck
def default_sigma2(fixed: FixedPoints, moving: MovingPoints) -> float:
    """Initial noise variance, the mean squared distance between the sets.

    It is the average of ``|x_i - y_j|^2`` over all the pairs, divided by
    the dimension.
    """
    n_fixed, dim = fixed.shape
    n_moving = moving.shape[0]

    sigma2 = (
        n_moving * (fixed * fixed).sum()
        + n_fixed * (moving * moving).sum()
        - 2 * fixed.sum(dim=0) @ moving.sum(dim=0)
    ) / (n_fixed * n_moving * dim)

    return sigma2.item()
