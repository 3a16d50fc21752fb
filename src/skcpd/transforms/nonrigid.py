r"""Nonrigid coherent point drift.

The moving points are displaced by a smooth vector field
$v(y) = \sum_j G(y, y_j) w_j$, where $G$ is a Gaussian kernel centered on the
initial moving points and $w$ is a matrix of weights. The smoothness of the
field is enforced by the penalty $\frac{\lambda}{2} \mathrm{tr}(W^T G W)$.

References
----------
A. Myronenko and X. Song, "Point set registration: Coherent point drift",
IEEE Trans. Pattern Anal. Mach. Intell., vol. 32, no. 12, pp. 2262-2275,
2010.
"""

import torch

from ..correspondence import Probabilities
from ..errors import ShapeError
from ..input_validation import convert_inputs, no_more_than_one, typecheck
from ..linear_solvers import LinearSolver, linear_solver
from ..types import (
    FixedPoints,
    IterationOutput,
    MovingPoints,
    Number,
    Points,
    SolverPolicy,
)
from .base import DEFAULT_LINKED, BaseTransform
from .kernels import affinity

DEFAULT_BETA = 3.0
DEFAULT_LAMBDA = 3.0


class Nonrigid(BaseTransform):
    """Nonrigid (free-form) transform.

    Parameters
    ----------
    lambda_
        the regularization weight, trade-off between the fit to the
        correspondences and the smoothness of the deformation. Must be
        non-negative.
    beta
        the bandwidth of the Gaussian kernel. Larger values give smoother
        deformations. Must be positive.
    linked
        whether the fixed and moving sets are normalized with the same scale.
    policy
        the numeric policy of the linear solve, ``"precision"`` (default) or
        ``"performance"``.
    solver
        a custom solver, any object with a ``solve(A, b)`` method. Cannot be
        combined with ``policy``.
    """

    @no_more_than_one(["policy", "solver"])
    @typecheck
    def __init__(
        self,
        *,
        lambda_: Number = DEFAULT_LAMBDA,
        beta: Number = DEFAULT_BETA,
        linked: bool = DEFAULT_LINKED,
        policy: SolverPolicy | None = None,
        solver: LinearSolver | None = None,
    ) -> None:
        super().__init__(linked=linked)
        self.lambda_ = lambda_
        self.beta = beta

        if solver is None:
            solver = linear_solver("precision" if policy is None else policy)
        self.solver = solver

        self._initialized = False

    def set_beta(self, beta: Number) -> "Nonrigid":
        """Set the bandwidth of the kernel (before :meth:`init`)."""
        self.beta = beta
        return self

    def set_lambda(self, lambda_: Number) -> "Nonrigid":
        """Set the regularization weight."""
        self.lambda_ = lambda_
        return self

    def check_parameters(self) -> None:
        """Check the configuration of the transform.

        Raises
        ------
        ValueError
            if ``beta`` is not positive or ``lambda_`` is negative.
        """
        if self.beta <= 0:
            msg = f"beta must be positive, got {self.beta}"
            raise ValueError(msg)
        if self.lambda_ < 0:
            msg = f"lambda_ must be non-negative, got {self.lambda_}"
            raise ValueError(msg)

    @convert_inputs
    @typecheck
    def init(self, fixed: FixedPoints, moving: MovingPoints) -> None:  # noqa: ARG002
        """Initialize the transform for a run.

        The affinity matrix is computed from the initial moving points and is
        kept unchanged until the next call to ``init``: the deformation is
        always expressed relative to the initial arrangement of the points.
        Calling ``init`` in the middle of a run resets the deformation.

        Parameters
        ----------
        fixed
            the fixed points
        moving
            the initial moving points
        """
        self.basis = moving.clone()
        # Bandwidth of g, fixed until the next init
        self.basis_beta = self.beta
        self.g = affinity(self.basis, self.basis, self.basis_beta)
        self.w = torch.zeros_like(moving)
        self.w_total = torch.zeros_like(moving)
        self._initialized = True

    def modify_probabilities(self, probabilities: Probabilities) -> None:
        """Add the smoothness energy $\\lambda/2 \\, tr(W^T G W)$ to ``l``."""
        self._check_initialized()
        energy = (self.w * (self.g @ self.w)).sum()
        probabilities.l += self.lambda_ / 2.0 * energy.item()

    @typecheck
    def compute_one(
        self,
        fixed: FixedPoints,
        moving: MovingPoints,
        probabilities: Probabilities,
        sigma2: Number,
    ) -> IterationOutput:
        """Compute one iteration of the nonrigid transform.

        The weights ``W`` solve the regularized system

        $$ (d(P1) G + \\lambda \\sigma^2 I) W = PX - d(P1) Y $$

        the moving points are displaced by ``G @ W`` and the noise variance
        is re-estimated from the new positions. The variance is made
        non-negative with an absolute value, the signed value is returned
        too.

        Parameters
        ----------
        fixed
            the fixed points, ``(M, D)``
        moving
            the current moving points, ``(N, D)``
        probabilities
            the correspondence statistics of this iteration. ``p1`` must not
            sum to zero, otherwise the variance is not finite.
        sigma2
            the current noise variance

        Returns
        -------
        IterationOutput
            the new moving points and noise variance
        """
        self._check_initialized()
        n_moving, dim = moving.shape
        if self.g.shape[0] != n_moving:
            msg = (
                f"The transform was initialized with {self.g.shape[0]} moving"
                + f" points, got {n_moving}"
            )
            raise ShapeError(msg)

        p1 = probabilities.p1
        pt1 = probabilities.pt1
        px = probabilities.px

        # d(P1) @ G and d(P1) @ Y without forming the diagonal matrix
        A = p1[:, None] * self.g + self.lambda_ * sigma2 * torch.eye(
            n_moving, dtype=moving.dtype, device=moving.device
        )
        b = px - p1[:, None] * moving
        self.w = self.solver.solve(A, b)
        self.w_total = self.w_total + self.w

        points = moving + self.g @ self.w

        # tr(PX^T Y') is the sum of the entrywise product
        signed_sigma2 = (
            ((fixed**2) * pt1[:, None]).sum()
            + ((points**2) * p1[:, None]).sum()
            - 2 * (px * points).sum()
        ) / (p1.sum() * dim)

        return IterationOutput(
            points=points,
            sigma2=abs(signed_sigma2.item()),
            signed_sigma2=signed_sigma2.item(),
        )

    @convert_inputs
    @typecheck
    def displacement(self, points: Points) -> Points:
        """Evaluate the accumulated displacement field at arbitrary points.

        Each call to :meth:`compute_one` displaces the points it receives by
        ``G @ W``. When every call receives the output of the previous one,
        the initial moving points have been displaced by ``G @ W_total``,
        ``W_total`` being the sum of the weights solved since :meth:`init`.
        This method extends that field to other points, expressed in the
        frame used by :meth:`init`.
        """
        self._check_initialized()
        return affinity(points, self.basis, self.basis_beta) @ self.w_total

    def __repr__(self) -> str:
        return (
            f"Nonrigid(lambda_={self.lambda_}, beta={self.beta},"
            + f" linked={self.linked}, solver={self.solver!r})"
        )
