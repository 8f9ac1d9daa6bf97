"""
calc-ir Command-Line Interface
==============================

This package provides the ``calcir`` command, a Click-based front end to the
expression compiler's driver loop.
"""

__all__ = ["calcir"]
