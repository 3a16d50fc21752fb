"""Registration between two point sets."""

import logging
import time
from math import inf, isfinite

import torch

from ..correspondence import default_sigma2, gauss_transform
from ..errors import (
    DegenerateProbabilitiesError,
    DeviceError,
    NotFittedError,
    ShapeError,
)
from ..globals import sigma2_floor
from ..input_validation import convert_inputs, typecheck
from ..normalization import Normalization
from ..transforms import BaseTransform, Nonrigid
from ..types import Float2dTensor, Number, Points, RegistrationOutput

logger = logging.getLogger(__name__)

# Relative magnitude of a negative variance (before the absolute value is
# taken) above which a warning is logged
NEGATIVE_SIGMA2_TOLERANCE = 1e-6


class Registration:
    """Registration class.

    This class runs the coherent point drift algorithm between two point
    sets. It must be initialized with a transform model; the expectation and
    maximization steps are then alternated by calling the fit method with the
    source (moving) and target (fixed) points, until the relative change of
    the objective falls below ``tolerance``, the noise variance collapses or
    ``max_iterations`` is reached. The transform method can then be used to
    apply the fitted deformation to new points.
    """

    @typecheck
    def __init__(
        self,
        *,
        model: BaseTransform,
        max_iterations: int = 150,
        tolerance: Number = 1e-5,
        outliers: Number = 0.1,
        sigma2: Number | None = None,
        normalize: bool = True,
        correspondence: bool = False,
        verbose: int = 0,
        gpu: bool = False,
    ) -> None:
        """Initialize the registration object.

        Parameters
        ----------
        model
            a transform object (from skcpd.transforms)
        max_iterations
            maximum number of EM iterations.
        tolerance
            the registration stops when the relative change of the objective
            between two iterations is below this value.
        outliers
            weight of the uniform component of the mixture, in [0, 1).
        sigma2
            initial noise variance. If None, it is computed from the point
            sets.
        normalize
            center and scale the point sets before the registration.
        correspondence
            compute, after convergence, the most likely fixed point of each
            moving point.
        verbose
            positive to log each iteration at the INFO level (DEBUG
            otherwise).
        gpu
            do intensive numerical computations on a nvidia gpu with a cuda
            backend if available.

        Raises
        ------
        ValueError
            if outliers is not in [0, 1) or if max_iterations is negative.
        """
        if not 0 <= outliers < 1:
            msg = f"outliers must be in [0, 1), got {outliers}"
            raise ValueError(msg)
        if max_iterations < 0:
            msg = f"max_iterations must be non-negative, got {max_iterations}"
            raise ValueError(msg)

        self.model = model
        self.max_iterations = max_iterations
        self.tolerance = tolerance
        self.outliers = outliers
        self.sigma2 = sigma2
        self.normalize = normalize
        self.correspondence = correspondence
        self.verbose = verbose

        if gpu and torch.cuda.is_available():
            self.optim_device = "cuda"
        else:
            self.optim_device = "cpu"

    @convert_inputs
    @typecheck
    def fit(
        self, *, source: Float2dTensor, target: Float2dTensor
    ) -> "Registration":
        """Register the source points onto the target points.

        After calling this method, the registered points can be accessed with
        the morphed_points_ attribute, the final noise variance with the
        sigma2_ attribute and the number of iterations with n_iter_.

        Parameters
        ----------
        source
            the moving points, (N, D)
        target
            the fixed points, (M, D)

        Raises
        ------
        DeviceError
            if the source and target points are not on the same device.
        ShapeError
            if the source and target points do not have the same dimension.
        ValueError
            if the model is not correctly configured.
        DegenerateProbabilitiesError
            if the correspondence statistics carry no mass, or if the noise
            variance is not finite.

        Returns
        -------
        Registration
            self
        """
        start = time.perf_counter()

        if source.device != target.device:
            msg = (
                "Source and target points must be on the same device, found"
                + f" source on device {source.device} and target on device"
                + f" {target.device}"
            )
            raise DeviceError(msg)

        if source.shape[1] != target.shape[1]:
            msg = (
                f"Source points have dimension {source.shape[1]} but target"
                + f" points have dimension {target.shape[1]}"
            )
            raise ShapeError(msg)

        self.model.check_parameters()

        # Save the device on which the output will be
        self.output_device = source.device
        source = source.to(self.optim_device)
        target = target.to(self.optim_device)

        if self.normalize:
            self.normalization_ = Normalization(
                target, source, linked=self.model.linked
            )
            fixed = self.normalization_.fixed
            moving = self.normalization_.moving
        else:
            self.normalization_ = None
            fixed = target
            moving = source

        self.model.init(fixed, moving)

        if self.sigma2 is None:
            sigma2 = default_sigma2(fixed, moving)
        else:
            sigma2 = float(self.sigma2)

        level = logging.INFO if self.verbose > 0 else logging.DEBUG
        likelihood_history = []
        sigma2_history = [sigma2]

        iteration = 0
        ntol = self.tolerance + 10.0
        previous_l = 0.0
        while (
            iteration < self.max_iterations
            and ntol > self.tolerance
            and sigma2 > sigma2_floor
        ):
            probabilities = gauss_transform(
                fixed, moving, sigma2, self.outliers
            )
            if probabilities.is_degenerate():
                msg = (
                    f"Degenerate correspondences at iteration {iteration}:"
                    + f" sum(p1) = {probabilities.n_points}, sigma2 = {sigma2}"
                )
                raise DegenerateProbabilitiesError(msg)

            self.model.modify_probabilities(probabilities)

            if probabilities.l == 0:
                ntol = inf
            else:
                ntol = abs((probabilities.l - previous_l) / probabilities.l)
            previous_l = probabilities.l
            likelihood_history.append(probabilities.l)

            output = self.model.compute_one(
                fixed, moving, probabilities, sigma2
            )
            if not isfinite(output.sigma2):
                msg = f"Non-finite noise variance at iteration {iteration}"
                raise DegenerateProbabilitiesError(msg)

            if (
                output.signed_sigma2 < 0
                and -output.signed_sigma2 > NEGATIVE_SIGMA2_TOLERANCE * sigma2
            ):
                logger.warning(
                    "Negative noise variance %.3e at iteration %s"
                    " (previous variance %.3e)",
                    output.signed_sigma2,
                    iteration,
                    sigma2,
                )

            moving = output.points
            sigma2 = output.sigma2
            sigma2_history.append(sigma2)
            iteration += 1

            logger.log(
                level,
                "Iteration %s/%s: l = %.6e, ntol = %.3e, sigma2 = %.3e",
                iteration,
                self.max_iterations,
                probabilities.l,
                ntol,
                sigma2,
            )

        if self.correspondence:
            # The variance may have collapsed to zero on an exact match
            probabilities = gauss_transform(
                fixed, moving, max(sigma2, sigma2_floor), self.outliers
            )
            self.correspondence_ = probabilities.correspondence.to(
                self.output_device
            )
        else:
            self.correspondence_ = None

        if self.normalization_ is not None:
            moving = self.normalization_.denormalize(moving)
            sigma2 = self.normalization_.denormalize_sigma2(sigma2)

        self.morphed_points_ = moving.to(self.output_device)
        self.sigma2_ = sigma2
        self.n_iter_ = iteration
        self.likelihood_history_ = likelihood_history
        self.sigma2_history_ = sigma2_history
        self.runtime_ = time.perf_counter() - start

        logger.log(
            level,
            "Registration finished after %s iterations in %.3fs",
            iteration,
            self.runtime_,
        )
        return self

    @convert_inputs
    @typecheck
    def transform(self, *, points: Points) -> Points:
        """Apply the fitted deformation to new points.

        The points are expressed in the frame of the source points and are
        displaced by the smooth field fitted on the source points.

        Parameters
        ----------
        points
            the points to transform.

        Returns
        -------
        Points
            the transformed points, in the frame of the target points.
        """
        if not hasattr(self, "morphed_points_"):
            msg = "The registration must be fitted before calling transform"
            raise NotFittedError(msg)
        if not hasattr(self.model, "displacement"):
            msg = f"{self.model.__class__.__name__} cannot transform new points"
            raise NotImplementedError(msg)

        output_device = points.device
        points = points.to(self.optim_device)
        if self.normalization_ is not None:
            points = self.normalization_.normalize_moving(points)

        points = points + self.model.displacement(points)

        if self.normalization_ is not None:
            points = self.normalization_.denormalize(points)
        return points.to(output_device)

    @convert_inputs
    @typecheck
    def fit_transform(
        self, *, source: Float2dTensor, target: Float2dTensor
    ) -> Float2dTensor:
        """Fit the registration and return the registered source points."""
        self.fit(source=source, target=target)
        return self.morphed_points_

    def output(self) -> RegistrationOutput:
        """Gather the result of the last fit."""
        if not hasattr(self, "morphed_points_"):
            msg = "The registration must be fitted before reading its output"
            raise NotFittedError(msg)
        return RegistrationOutput(
            points=self.morphed_points_,
            sigma2=self.sigma2_,
            iterations=self.n_iter_,
            runtime=self.runtime_,
            correspondence=self.correspondence_,
        )


@convert_inputs
@typecheck
def nonrigid(
    fixed: Float2dTensor, moving: Float2dTensor, **kwargs
) -> RegistrationOutput:
    """Run a nonrigid registration, with the precision policy.

    Parameters
    ----------
    fixed
        the fixed points
    moving
        the moving points
    kwargs
        keyword arguments passed to :class:`Registration`

    Returns
    -------
    RegistrationOutput
        the registered moving points and the statistics of the run
    """
    registration = Registration(model=Nonrigid(policy="precision"), **kwargs)
    return registration.fit(source=moving, target=fixed).output()


@convert_inputs
@typecheck
def nonrigid_quick(
    fixed: Float2dTensor, moving: Float2dTensor, **kwargs
) -> RegistrationOutput:
    """Run a nonrigid registration, with the performance policy.

    Faster than :func:`nonrigid` but less robust on ill-conditioned problems.
    """
    registration = Registration(model=Nonrigid(policy="performance"), **kwargs)
    return registration.fit(source=moving, target=fixed).output()
