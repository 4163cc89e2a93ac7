"""
Shared fixtures for the SQL builder and annotation compiler tests.

Key fixtures:
- category_model: Category with an autoincrement key and a unique name.
- product_model: Product referencing Category, with CHECK and DEFAULT constraints.
- order_item_model: OrderItem with a composite key declared at table level.
- t_model: the minimal two-column model T.
"""

from typing import Optional

import pytest

from models.descriptors import ModelDescriptor


@pytest.fixture
def category_model():
    return ModelDescriptor.from_fields('Category', [
        ('Id', int, 'PRIMARY KEY AUTOINCREMENT'),
        ('Name', str, 'NOT NULL UNIQUE'),
    ])


@pytest.fixture
def product_model():
    return ModelDescriptor.from_fields('Product', [
        ('Id', int, 'PRIMARY KEY AUTOINCREMENT'),
        ('Name', str, 'NOT NULL CHECK(length(Name) > 0)'),
        ('Price', float, 'NOT NULL DEFAULT 0 CHECK(Price >= 0)'),
        ('CategoryId', Optional[int], 'REFERENCES Category (Id) ON DELETE SET NULL ON UPDATE CASCADE'),
        ('Notes', str, ''),
    ])


@pytest.fixture
def order_item_model():
    return ModelDescriptor.from_fields('OrderItem', [
        ('OrderId', int, 'NOT NULL'),
        ('ProductId', int, 'NOT NULL'),
        ('Quantity', int, 'NOT NULL DEFAULT 1 CHECK(Quantity > 0)'),
        ('Scratch', str, '-'),
    ])


@pytest.fixture
def t_model():
    return ModelDescriptor.from_fields('T', [
        ('Id', int, 'PRIMARY KEY AUTOINCREMENT'),
        ('Name', str, 'NOT NULL'),
    ])


@pytest.fixture
def parse():
    """Compile one annotation for a field, returning the Column."""
    from models.descriptors import FieldDescriptor
    from sql.annotations import parse_field

    def _parse(annotation, declared_type=str, name='Field', candidates=(), strict=None):
        return parse_field(FieldDescriptor(name, declared_type, annotation), candidates, strict)

    return _parse
