"""Base class for all transforms."""

import torch

from ..correspondence import Probabilities
from ..errors import NotFittedError
from ..types import IterationOutput

# Fixed and moving point sets share their scale by default
DEFAULT_LINKED = True


class BaseTransform:
    """Base class for all transforms.

    A transform is a stateful object driven by a registration scheduler
    (see :class:`skcpd.Registration`). For each run, the scheduler calls
    :meth:`init` once, then repeats

    1. the expectation step, producing :class:`Probabilities`,
    2. :meth:`modify_probabilities`, to account for the cost of the transform
       in the objective,
    3. :meth:`compute_one`, the maximization step.

    A transform instance belongs to a single run: concurrent runs must use
    their own instances.
    """

    def __init__(self, *, linked: bool = DEFAULT_LINKED) -> None:
        self._linked = linked

    @property
    def linked(self) -> bool:
        """Whether the scaling of the fixed and moving sets are linked.

        The flag is used by the scheduler when normalizing the point sets.
        """
        return self._linked

    def set_linked(self, linked: bool) -> "BaseTransform":
        """Set whether the scaling of the two point sets are linked."""
        self._linked = linked
        return self

    def check_parameters(self) -> None:
        """Raise a ValueError if the configuration is not valid."""

    def init(self, fixed: torch.Tensor, moving: torch.Tensor) -> None:
        """Initialize the transform for a run."""
        raise NotImplementedError

    def modify_probabilities(self, probabilities: Probabilities) -> None:
        """Add the cost of the transform to the objective.

        The default transform has no cost.
        """

    def compute_one(
        self,
        fixed: torch.Tensor,
        moving: torch.Tensor,
        probabilities: Probabilities,
        sigma2: float,
    ) -> IterationOutput:
        """Compute one maximization step."""
        raise NotImplementedError

    def _check_initialized(self) -> None:
        if not getattr(self, "_initialized", False):
            msg = (
                f"{self.__class__.__name__}.init must be called before"
                + " computing the transform"
            )
            raise NotFittedError(msg)
