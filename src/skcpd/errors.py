"""Custom errors for the skcpd package."""

from beartype.roar import BeartypeCallHintParamViolation
from jaxtyping import TypeCheckError

InputTypeError = (TypeCheckError, BeartypeCallHintParamViolation)


class InputStructureError(Exception):
    """Raised when the input structure is not valid."""


class ShapeError(Exception):
    """Raised when an input has an invalid shape."""


class DeviceError(Exception):
    """Raised when devices mismatch."""


class NotFittedError(Exception):
    """Raised when the model is not fitted."""


class DegenerateProbabilitiesError(Exception):
    """Raised when the correspondence statistics carry no mass.

    This happens when every fixed point is explained by the outlier
    component (or when the expectation step underflows), so that
    ``p1.sum() == 0``. The noise variance cannot be re-estimated from such
    statistics and the registration cannot go on.
    """
