"""Utils for the tests."""

import torch

import skcpd


def line(n_points: int = 5, dtype=skcpd.float_dtype):
    """Points regularly spaced on the x axis of the plane."""
    x = torch.arange(n_points, dtype=dtype)
    return torch.stack([x, torch.zeros_like(x)], dim=1)


def grid(n_points: int = 5, dtype=skcpd.float_dtype):
    """A regular (n_points x n_points) grid of the unit square."""
    x = torch.linspace(0, 1, n_points, dtype=dtype)
    x, y = torch.meshgrid(x, x, indexing="ij")
    return torch.stack([x.reshape(-1), y.reshape(-1)], dim=1)


def random_points(
    n_points: int, dim: int, seed: int = 0, dtype=skcpd.float_dtype
):
    """Random points in the unit cube."""
    generator = torch.Generator().manual_seed(seed)
    return torch.rand(n_points, dim, generator=generator, dtype=dtype)


def identity_probabilities(fixed, moving):
    """Statistics of a perfect one-to-one correspondence, i.e. P = I."""
    n_moving = moving.shape[0]
    n_fixed = fixed.shape[0]
    return skcpd.Probabilities(
        p1=torch.ones(n_moving, dtype=moving.dtype),
        pt1=torch.ones(n_fixed, dtype=fixed.dtype),
        px=fixed.clone(),
    )
