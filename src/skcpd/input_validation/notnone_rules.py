"""Not-None rules.

Some constructors can be configured through alternative keyword arguments
that must not be combined. For example, a transform can receive the name of
a solve policy or a solver object, but not both:
```python
@no_more_than_one(["policy", "solver"])
def foo(*, policy=None, solver=None):
    pass


foo()  # OK
foo(policy="precision")  # OK
foo(policy="precision", solver=HouseholderQR())  # InputStructureError
```
"""

from functools import wraps

from ..errors import InputStructureError


def no_more_than_one(parameters):
    """Checker for less than one not None parameter.

    Parameters
    ----------
    parameters : list[str]
        the list of parameters to check, they must be passed as keyword
        arguments

    Returns
    -------
    callable
        a decorator

    Raises
    ------
    InputStructureError
        if more than one parameter is not None
    """

    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            not_none = [
                key
                for key, value in kwargs.items()
                if key in parameters and value is not None
            ]
            if len(not_none) > 1:
                msg = (
                    f"No more than one of the parameters {parameters} must be"
                    + f" not None, got {not_none}"
                )
                raise InputStructureError(msg)

            return func(*args, **kwargs)

        # Copy annotations (if not, beartype does not work)
        wrapper.__annotations__ = func.__annotations__
        return wrapper

    return decorator
