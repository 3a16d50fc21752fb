"""Normalization of the point sets before registration."""

import torch

from .input_validation import typecheck
from .types import FixedPoints, MovingPoints, Points


class Normalization:
    """Center and scale a pair of point sets.

    Each set is centered on its mean and divided by its scale, the root mean
    squared norm of the centered points. When the scales are linked, both
    sets are divided by the larger of the two scales, which preserves their
    relative sizes.

    Parameters
    ----------
    fixed
        the fixed points
    moving
        the moving points
    linked
        whether the two sets share the same scale

    Attributes
    ----------
    fixed, moving
        the normalized point sets
    fixed_mean, moving_mean
        the means of the original sets
    fixed_scale, moving_scale
        the scales applied to the sets
    """

    @typecheck
    def __init__(
        self,
        fixed: FixedPoints,
        moving: MovingPoints,
        *,
        linked: bool = True,
    ) -> None:
        self.fixed_mean = fixed.mean(dim=0)
        self.moving_mean = moving.mean(dim=0)

        fixed = fixed - self.fixed_mean
        moving = moving - self.moving_mean

        self.fixed_scale = _scale(fixed)
        self.moving_scale = _scale(moving)

        if linked:
            scale = max(self.fixed_scale, self.moving_scale)
            self.fixed_scale = scale
            self.moving_scale = scale

        self.fixed = fixed / self.fixed_scale
        self.moving = moving / self.moving_scale

    @typecheck
    def normalize_moving(self, points: Points) -> Points:
        """Express points in the normalized frame of the moving set."""
        return (points - self.moving_mean) / self.moving_scale

    @typecheck
    def denormalize(self, points: Points) -> Points:
        """Map normalized points back to the frame of the fixed set."""
        return points * self.fixed_scale + self.fixed_mean

    def denormalize_sigma2(self, sigma2: float) -> float:
        """Map a normalized variance back to the units of the fixed set."""
        return sigma2 * self.fixed_scale**2


def _scale(points: torch.Tensor) -> float:
    scale = torch.sqrt((points**2).sum() / points.shape[0]).item()
    # A set reduced to a single location is only centered
    return scale if scale > 0 else 1.0
