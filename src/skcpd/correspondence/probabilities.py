"""Correspondence statistics produced by the expectation step."""

import torch

from ..input_validation import convert_inputs, typecheck
from ..types import (
    Correspondence,
    FixedMasses,
    MovingMasses,
    MovingWeights,
    Number,
)


class Probabilities:
    """Aggregated soft correspondences between two point sets.

    Only sums of the posterior matrix ``P`` (of shape ``(n_moving,
    n_fixed)``) are stored, the matrix itself is never materialized outside
    of the expectation step.

    Parameters
    ----------
    p1
        ``P @ 1``: the correspondence mass received by each moving point.
    pt1
        ``P.T @ 1``: the correspondence mass of each fixed point.
    px
        ``P @ fixed``: the correspondence-weighted fixed positions, for each
        moving point.
    l
        the running value of the objective (negative log-likelihood). The
        expectation step seeds it with the data term and transforms may add
        their regularization energy.
    correspondence
        for each moving point, the index of the most likely fixed point.
    """

    @convert_inputs
    @typecheck
    def __init__(
        self,
        *,
        p1: MovingMasses,
        pt1: FixedMasses,
        px: MovingWeights,
        l: Number = 0.0,  # noqa: E741
        correspondence: Correspondence | None = None,
    ) -> None:
        self.p1 = p1
        self.pt1 = pt1
        self.px = px
        self.l = float(l)
        self.correspondence = correspondence

    @property
    def n_points(self) -> float:
        """Total correspondence mass, ``sum(p1)``."""
        return float(self.p1.sum())

    def is_degenerate(self) -> bool:
        """True if the statistics cannot be used by a maximization step."""
        return bool(
            not torch.isfinite(self.p1).all()
            or not torch.isfinite(self.px).all()
            or self.n_points <= 0
        )
