# File: helpers/__init__.py
"""Presentation helpers for ClearCue.

Submodules:
    - format_helpers: English descriptions of rules, timings and titles

Usage:
    from .helpers import format_helpers as fh
"""

from . import format_helpers

__all__ = ["format_helpers"]
