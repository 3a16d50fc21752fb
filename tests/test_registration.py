"""Test the registration task."""

import logging

import pytest
import torch
from hypothesis import given, settings
from hypothesis import strategies as st

import skcpd
from skcpd.errors import (
    DegenerateProbabilitiesError,
    DeviceError,
    NotFittedError,
    ShapeError,
)

from .utils import grid

translation = torch.tensor([1.0, -0.5], dtype=skcpd.float_dtype)


@pytest.mark.parametrize("method", [skcpd.nonrigid, skcpd.nonrigid_quick])
def test_entry_points_translation(method):
    """A translated copy of the fixed points is registered onto them."""
    fixed = grid(5)
    moving = fixed + translation

    output = method(fixed, moving)

    before = torch.linalg.norm(moving - fixed)
    after = torch.linalg.norm(output.points - fixed)
    assert after < 0.25 * before
    assert output.points.shape == moving.shape
    assert output.sigma2 >= 0
    assert 0 < output.iterations <= 150
    assert output.runtime >= 0
    assert output.correspondence is None


def test_correspondence():
    """Requested correspondences are computed after convergence."""
    fixed = grid(5)
    moving = fixed + translation

    output = skcpd.nonrigid(fixed, moving, correspondence=True)

    assert torch.equal(output.correspondence, torch.arange(25))


def test_registration_attributes():
    """The fitted attributes are consistent."""
    fixed = grid(4)
    moving = 0.9 * fixed + translation

    registration = skcpd.Registration(
        model=skcpd.Nonrigid(), max_iterations=20
    )
    assert registration.fit(source=moving, target=fixed) is registration

    assert registration.n_iter_ <= 20
    assert len(registration.likelihood_history_) == registration.n_iter_
    assert len(registration.sigma2_history_) == registration.n_iter_ + 1
    assert registration.morphed_points_.dtype == skcpd.float_dtype
    assert registration.correspondence_ is None

    output = registration.output()
    assert torch.equal(output.points, registration.morphed_points_)
    assert output.iterations == registration.n_iter_


def test_no_iteration():
    """Without iterations and normalization, the points do not move."""
    fixed = grid(4)
    moving = fixed + translation

    registration = skcpd.Registration(
        model=skcpd.Nonrigid(), max_iterations=0, normalize=False
    )
    out = registration.fit_transform(source=moving, target=fixed)

    assert torch.equal(out, moving)
    assert registration.n_iter_ == 0


@given(
    normalize=st.booleans(),
    policy=st.sampled_from(["precision", "performance"]),
    max_iterations=st.integers(min_value=1, max_value=5),
)
@settings(deadline=None, max_examples=20)
def test_transform_source(normalize, policy, max_iterations):
    """Transforming the source points gives the registered points."""
    fixed = grid(4)
    moving = 0.8 * fixed + translation

    registration = skcpd.Registration(
        model=skcpd.Nonrigid(policy=policy),
        max_iterations=max_iterations,
        normalize=normalize,
    )
    registration.fit(source=moving, target=fixed)

    assert torch.allclose(
        registration.transform(points=moving),
        registration.morphed_points_,
        atol=1e-8,
    )


def test_transform_new_points():
    """New points are displaced by the fitted field."""
    fixed = grid(5)
    moving = fixed + translation

    registration = skcpd.Registration(model=skcpd.Nonrigid())
    registration.fit(source=moving, target=fixed)

    # The center of the moving set is sent close to the center of the fixed
    # set
    center = moving.mean(dim=0, keepdim=True)
    out = registration.transform(points=center)

    assert out.shape == (1, 2)
    assert torch.linalg.norm(out - fixed.mean(dim=0)) < 0.1


def test_inputs_conversion():
    """NumPy arrays and float32 tensors are accepted."""
    fixed = grid(4)
    moving = fixed + translation

    output = skcpd.nonrigid(fixed.numpy(), moving.to(torch.float32))

    assert output.points.dtype == skcpd.float_dtype


def test_logging(caplog):
    """Each iteration is logged, at the INFO level when verbose."""
    fixed = grid(4)
    moving = fixed + translation

    with caplog.at_level(logging.DEBUG, logger="skcpd"):
        skcpd.nonrigid(fixed, moving, max_iterations=3)
    messages = [r.getMessage() for r in caplog.records]
    assert any(m.startswith("Iteration 1/3") for m in messages)
    assert all(r.levelno == logging.DEBUG for r in caplog.records)

    caplog.clear()
    with caplog.at_level(logging.INFO, logger="skcpd"):
        skcpd.nonrigid(fixed, moving, max_iterations=3, verbose=1)
    assert any(
        r.levelno == logging.INFO and r.getMessage().startswith("Iteration")
        for r in caplog.records
    )


def test_errors():
    """Configuration and input errors."""
    fixed = grid(4)
    moving = fixed + translation

    with pytest.raises(ValueError, match="outliers"):
        skcpd.Registration(model=skcpd.Nonrigid(), outliers=1.0)

    with pytest.raises(ValueError, match="max_iterations"):
        skcpd.Registration(model=skcpd.Nonrigid(), max_iterations=-1)

    registration = skcpd.Registration(model=skcpd.Nonrigid(beta=0))
    with pytest.raises(ValueError, match="beta"):
        registration.fit(source=moving, target=fixed)

    registration = skcpd.Registration(model=skcpd.Nonrigid())
    with pytest.raises(NotFittedError):
        registration.transform(points=moving)
    with pytest.raises(NotFittedError):
        registration.output()

    fixed_3d = torch.zeros(5, 3, dtype=skcpd.float_dtype)
    with pytest.raises(ShapeError):
        registration.fit(source=moving, target=fixed_3d)


def test_degenerate_correspondences():
    """Sets too far apart for the variance give no correspondence."""
    fixed = grid(4)
    moving = fixed + 1000

    registration = skcpd.Registration(
        model=skcpd.Nonrigid(), normalize=False, sigma2=1e-4
    )
    with pytest.raises(DegenerateProbabilitiesError):
        registration.fit(source=moving, target=fixed)


@pytest.mark.skipif(
    not torch.cuda.is_available(), reason="Cuda is required for this test"
)
def test_registration_device():
    """Test the behavior of the registration task with respect to the device.

    The points must be on the same device, the computations run on the GPU
    if required and the outputs are moved back to the device of the inputs.
    """
    fixed = grid(4)
    moving = fixed + translation

    registration = skcpd.Registration(model=skcpd.Nonrigid(), gpu=True)
    with pytest.raises(DeviceError):
        registration.fit(source=moving.cuda(), target=fixed)

    registration.fit(source=moving, target=fixed)
    assert registration.morphed_points_.device.type == "cpu"

    out = registration.transform(points=moving.cuda())
    assert out.device.type == "cuda"


class CollapsingNonrigid(skcpd.Nonrigid):
    """Nonrigid transform whose variance collapses to zero at once."""

    def compute_one(self, fixed, moving, probabilities, sigma2):
        super().compute_one(fixed, moving, probabilities, sigma2)
        return skcpd.IterationOutput(
            points=moving, sigma2=0.0, signed_sigma2=0.0
        )


class ZeroObjectiveNonrigid(skcpd.Nonrigid):
    """Nonrigid transform that resets the objective to zero."""

    def modify_probabilities(self, probabilities):
        probabilities.l = 0.0


def test_correspondence_collapsed_variance():
    """Correspondences are computed even when the variance reaches zero."""
    fixed = grid(5)
    moving = fixed + translation

    registration = skcpd.Registration(
        model=CollapsingNonrigid(), correspondence=True
    )
    registration.fit(source=moving, target=fixed)

    assert registration.n_iter_ == 1
    assert registration.sigma2_ == 0.0
    assert torch.equal(registration.correspondence_, torch.arange(25))


def test_zero_objective():
    """A zero objective is never taken as converged."""
    fixed = grid(4)
    moving = fixed + translation

    registration = skcpd.Registration(
        model=ZeroObjectiveNonrigid(), max_iterations=3
    )
    registration.fit(source=moving, target=fixed)

    assert registration.n_iter_ == 3
    assert registration.likelihood_history_ == [0.0, 0.0, 0.0]
