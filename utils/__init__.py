"""
==========================
Utility Functions Package.
==========================

Small helpers shared by the SQL builders.

Modules:
    naming: Identifier casing for rendered table and column names
"""

__version__ = "1.0.0"
__all__ = [
    'to_snake_case',
    'join_identifiers',
    'qualify',
]

from .naming import join_identifiers, qualify, to_snake_case
