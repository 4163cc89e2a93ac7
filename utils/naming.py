"""
==========================================
Identifier casing for rendered SQL names.
==========================================

Every model, field, join-table and index-target name goes through
``to_snake_case`` before it is rendered, so ``OrderItem`` becomes
``order_item`` and ``CategoryId`` becomes ``category_id``. Names that are
already snake_case pass through unchanged.

Example:
    >>> to_snake_case('OrderItem')
    'order_item'
    >>> join_identifiers(['UserId', 'CreatedAt'])
    'user_id, created_at'
    >>> qualify('orders', 'main')
    'main.orders'
"""

import re
from typing import Iterable, Optional

# Boundary between a lowercase letter/digit and an uppercase letter, or
# between an acronym and the capitalized word that follows it.
_BOUNDARY = re.compile(r'(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])')


def to_snake_case(name: str) -> str:
    """Map a model or field name to its SQL identifier.

    Args:
        name: CamelCase, mixedCase or snake_case name

    Returns:
        Lowercase snake_case identifier

    Example:
        >>> to_snake_case('HTTPServer')
        'http_server'
        >>> to_snake_case('ID')
        'id'
    """
    return _BOUNDARY.sub('_', name.strip()).lower()


def join_identifiers(names: Iterable[str], separator: str = ', ') -> str:
    """Snake-case each name and join them."""
    return separator.join(to_snake_case(name) for name in names)


def qualify(name: str, schema: Optional[str] = None) -> str:
    """Prefix a rendered name with its schema qualifier, if any."""
    if schema:
        return f"{schema}.{name}"
    return name
