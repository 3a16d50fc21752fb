import torch

from ..input_validation import typecheck
from ..types import Float2dTensor, SolverPolicy


class LinearSolver:
    """Base class for the solvers of dense square systems ``A x = b``."""

    policy: str | None = None

    def solve(self, A: torch.Tensor, b: torch.Tensor) -> torch.Tensor:
        """Return ``x`` such that ``A @ x = b``.

        Parameters
        ----------
        A
            a ``(n, n)`` matrix
        b
            a ``(n, k)`` right-hand side

        Returns
        -------
        torch.Tensor
            the ``(n, k)`` solution
        """
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"


class ColPivHouseholderQR(LinearSolver):
    """QR decomposition with column pivoting.

    The decomposition is rank-revealing: directions of ``A`` whose singular
    value falls below the machine precision are discarded instead of
    amplifying rounding errors. LAPACK's ``gelsy`` driver only runs on the
    CPU, inputs living on another device are moved back and forth.
    """

    policy = "precision"

    @typecheck
    def solve(self, A: Float2dTensor, b: Float2dTensor) -> Float2dTensor:
        solution = torch.linalg.lstsq(A.cpu(), b.cpu(), driver="gelsy")
        return solution.solution.to(A.device)


class HouseholderQR(LinearSolver):
    """QR decomposition without pivoting.

    Faster than :class:`ColPivHouseholderQR`, it assumes that ``A`` is well
    conditioned. On (nearly) singular systems the triangular solve divides by
    (nearly) zero pivots: the result is inaccurate or non-finite, but no error
    is raised.
    """

    policy = "performance"

    @typecheck
    def solve(self, A: Float2dTensor, b: Float2dTensor) -> Float2dTensor:
        Q, R = torch.linalg.qr(A)
        return torch.linalg.solve_triangular(R, Q.mT @ b, upper=True)


solvers = {
    "precision": ColPivHouseholderQR,
    "performance": HouseholderQR,
}


def linear_solver(policy: SolverPolicy) -> LinearSolver:
    """Instantiate the solver associated with a numeric policy.

    Parameters
    ----------
    policy
        ``"precision"`` or ``"performance"``

    Raises
    ------
    ValueError
        if the policy is unknown
    """
    if policy not in solvers:
        msg = f"Unknown solve policy {policy}, must be one of {list(solvers)}"
        raise ValueError(msg)
    return solvers[policy]()
