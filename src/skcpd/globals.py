"""This modules contains global variables for the skcpd package"""

import os
from warnings import warn

import torch

# float dtype is float64 by default, and can be switch to float32 using the
# SKCPD_FLOAT_DTYPE environment variable (before importing skcpd).
admissible_float_dtypes = ["float32", "float64"]
float_dtype = os.environ.get("SKCPD_FLOAT_DTYPE", "float64")

if float_dtype in admissible_float_dtypes:
    float_dtype = getattr(torch, float_dtype)

else:
    warn(
        f"Unknown float dtype {float_dtype}. Possible values are "
        + f"{admissible_float_dtypes}. Using float64 as default.",
        stacklevel=1,
    )
    float_dtype = torch.float64

# int dtype is int64
int_dtype = torch.int64

# Below this value, the variance is considered to have collapsed and the
# EM iterations stop.
sigma2_floor = 10 * torch.finfo(float_dtype).eps
