# File: utils/__init__.py
"""Pure Python utilities for ClearCue.

Functions here import nothing from the rest of the package so they can be
unit tested in isolation.

Submodules:
    - dt_utils: Date/time parsing, formatting, calendar arithmetic

Usage:
    from . import dt_utils
    from .dt_utils import dt_add_months
"""

from . import dt_utils

__all__ = ["dt_utils"]
