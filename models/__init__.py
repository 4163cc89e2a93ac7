"""
========================================
Model descriptors for schema compilation
========================================

Introspection layer turning user data models (dataclasses, SQLAlchemy
declarative classes, explicit registrations) into the ordered
``(name, declared_type, annotation)`` field lists consumed by the
annotation compiler.

Modules:
    descriptors: FieldDescriptor, ModelDescriptor and describe_model

Example:
    >>> from models import ModelDescriptor, describe_model
    >>>
    >>> user = ModelDescriptor.from_fields('User', [
    ...     ('Id', int, 'PRIMARY KEY AUTOINCREMENT'),
    ...     ('Email', str, 'NOT NULL UNIQUE'),
    ... ])
    >>> describe_model(user) is user
    True
"""

__version__ = "0.1.0"
__all__ = [
    'FieldDescriptor',
    'ModelDescriptor',
    'describe_model',
    'model_name',
    'sql_field',
]

from .descriptors import (
    FieldDescriptor,
    ModelDescriptor,
    describe_model,
    model_name,
    sql_field,
)
