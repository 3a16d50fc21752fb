"""High-level tasks: registration.

This module contains the tasks that can be performed with the skcpd
package. Each task is implemented as a class with a fit method.
"""

from .registration import Registration, nonrigid, nonrigid_quick

__all__ = ["Registration", "nonrigid", "nonrigid_quick"]
