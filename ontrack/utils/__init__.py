# File: utils/__init__.py
"""Pure Python utilities for OnTrack.

Nothing in this package imports from the engines or builders, so these
functions can be unit tested in isolation.

Submodules:
    - dt_utils: Day normalization, period boundaries, reference dates
    - math_utils: Guarded ratios, rates, and target clamping

Usage:
    from . import dt_utils
    from .math_utils import completion_rate
"""

from . import dt_utils, math_utils

__all__ = ["dt_utils", "math_utils"]
