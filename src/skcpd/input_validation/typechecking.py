"""Runtime checker for function's arguments."""

from beartype import beartype
from jaxtyping import jaxtyped


def typecheck(func):
    """Check the arguments and the returned value of a function at runtime.

    Beartype checks the plain python types while jaxtyping checks the dtype
    and the shape of the tensors. Named dimensions (e.g. ``"n_moving dim"``)
    are bound once per call, so that two arguments annotated with the same
    dimension name must agree.

    Parameters
    ----------
    func : callable
        the function to decorate

    Returns
    -------
    callable
        the decorated function
    """
    return jaxtyped(typechecker=beartype)(func)
