"""Converters for arguments."""

import itertools
from functools import wraps
from inspect import isclass, signature
from types import UnionType
from typing import Union, get_args, get_origin, get_type_hints

import jaxtyping
import numpy as np
import torch

torch_dtypes = {
    "float32": torch.float32,
    "float64": torch.float64,
    "int64": torch.int64,
}


def detect_array_dtypes(t):
    """List the dtypes that a (possibly Union) type hint asks for."""
    if get_origin(t) in [Union, UnionType]:
        # If type is a Union, we iterate through the types
        # and return a list of acceptable dtypes, without duplicates
        return sorted(
            set(
                itertools.chain(*[detect_array_dtypes(a) for a in get_args(t)])
            )
        )

    # We only bother converting to specific dtypes.
    # Vague types (e.g. "Float") are not affected.
    elif isclass(t) and issubclass(t, jaxtyping.AbstractArray):
        if len(t.dtypes) == 1 and t.dtypes[0] in torch_dtypes:
            return list(t.dtypes)
        else:
            return []

    else:
        return []


def closest_dtype(dtype, target_dtypes):
    """Select the target dtype that is the closest to ``dtype``.

    Floating point tensors are cast to the floating point target and integer
    (or boolean) tensors to the integer target. If the target does not
    provide a dtype of the same kind, the only target is used.
    """
    targets = [torch_dtypes[t] for t in target_dtypes]
    floats = [t for t in targets if t.is_floating_point]
    ints = [t for t in targets if not t.is_floating_point]

    if dtype.is_floating_point and floats:
        return floats[0]
    elif not dtype.is_floating_point and ints:
        return ints[0]
    elif len(targets) == 1:
        return targets[0]
    else:
        msg = f"Unsupported target dtype: {target_dtypes}"
        raise NotImplementedError(msg)


def convert_inputs(func):
    """Convert array-like arguments to tensors with the expected dtype.

    The expected dtype is read from the jaxtyping hints of ``func``. Lists,
    tuples, NumPy arrays and tensors with another dtype are converted, other
    values are left untouched (beartype will complain later if they are not
    valid).
    """

    @wraps(func)
    def wrapper(*args, **kwargs):
        sig = signature(func)
        bound_args = sig.bind(*args, **kwargs)
        bound_args.apply_defaults()

        # Iterate through the function's parameters and type hints
        for param_name, param_type in get_type_hints(func).items():

            # Do not waste time on default arguments
            if param_name in bound_args.arguments:

                target_dtypes = detect_array_dtypes(param_type)
                if target_dtypes:  # is not []
                    value = bound_args.arguments[param_name]

                    # Lists and tuples go through NumPy so that python floats
                    # keep their double precision
                    if isinstance(value, list | tuple):
                        value = np.asarray(value)

                    if isinstance(value, np.ndarray):
                        value = torch.from_numpy(value)

                    if isinstance(value, torch.Tensor):
                        if torch.is_complex(value):
                            msg = "Complex tensors are not supported"
                            raise ValueError(msg)

                        dtype = closest_dtype(value.dtype, target_dtypes)
                        bound_args.arguments[param_name] = value.to(
                            dtype=dtype
                        )
                    # Note that other types of "value" (e.g. a string) are not converted

        return func(*bound_args.args, **bound_args.kwargs)

    return wrapper
