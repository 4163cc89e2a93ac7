"""
=====================================================
Comprehensive pytest suite for models/descriptors.py
=====================================================

Sections:
---------
1. Unit tests - FieldDescriptor and ModelDescriptor
2. Unit tests - Dataclass introspection
3. Unit tests - SQLAlchemy introspection
4. Edge case tests - Unsupported models and malformed registrations

Available markers:
------------------
unit, edge_case, integration

How to Execute:
---------------
All tests:          pytest tests/tests_models/test_descriptors.py -v
"""

from dataclasses import dataclass, field
from typing import List, Optional

import pytest

from models.descriptors import (
    FieldDescriptor,
    ModelDescriptor,
    describe_model,
    model_name,
    sql_field,
)

# ====================
# Descriptors
# ====================

@pytest.mark.unit
@pytest.mark.parametrize("annotation, is_column", [
    ('', False),
    ('-', False),
    (' - ', False),
    ('NOT NULL', True),
    ('UNIQUE', True),
])
def test_field_is_column(annotation, is_column):
    assert FieldDescriptor('Name', str, annotation).is_column is is_column


@pytest.mark.unit
def test_from_fields_accepts_tuples_and_descriptors():
    descriptor = ModelDescriptor.from_fields('Tag', [
        ('Id', int, 'PRIMARY KEY'),
        ('Label', str),
        FieldDescriptor('Color', str, 'DEFAULT \'red\''),
        ('Hidden', bool, None),
    ])

    assert descriptor.name == 'Tag'
    assert descriptor.field_names == ['Id', 'Label', 'Color', 'Hidden']
    assert descriptor.fields[1].annotation == ''
    assert descriptor.fields[3].annotation == ''
    assert descriptor.has_field('Color')
    assert not descriptor.has_field('color')


@pytest.mark.edge_case
def test_from_fields_rejects_bad_entries():
    with pytest.raises(ValueError, match="Tag"):
        ModelDescriptor.from_fields('Tag', [('Id',)])


@pytest.mark.unit
def test_describe_model_returns_descriptors_unchanged():
    descriptor = ModelDescriptor.from_fields('Tag', [('Id', int, 'PRIMARY KEY')])

    assert describe_model(descriptor) is descriptor
    assert model_name(descriptor) == 'Tag'
    assert model_name('Anything') == 'Anything'


# ====================
# Dataclasses
# ====================

@dataclass
class Invoice:
    Id: int = sql_field('PRIMARY KEY AUTOINCREMENT')
    Total: float = sql_field('NOT NULL DEFAULT 0')
    Memo: Optional[str] = None
    Lines: List[str] = sql_field('-', default_factory=list)


@pytest.mark.unit
def test_sql_field_stores_annotation_in_metadata():
    declared = sql_field('NOT NULL', metadata={'doc': 'kept'})

    assert declared.metadata['sql'] == 'NOT NULL'
    assert declared.metadata['doc'] == 'kept'
    assert declared.default is None


@pytest.mark.unit
def test_describe_dataclass():
    descriptor = describe_model(Invoice)

    assert descriptor.name == 'Invoice'
    assert descriptor.field_names == ['Id', 'Total', 'Memo', 'Lines']
    assert descriptor.fields[0] == FieldDescriptor('Id', int, 'PRIMARY KEY AUTOINCREMENT')
    assert descriptor.fields[2].declared_type == Optional[str]
    assert descriptor.fields[2].is_column is False
    assert descriptor.fields[3].is_column is False


@pytest.mark.unit
def test_describe_dataclass_instance():
    assert describe_model(Invoice()).name == 'Invoice'


@pytest.mark.unit
def test_custom_annotation_key():
    @dataclass
    class Legacy:
        Id: int = field(default=0, metadata={'column': 'PRIMARY KEY'})

    assert describe_model(Legacy).fields[0].annotation == ''
    assert describe_model(Legacy, annotation_key='column').fields[0].annotation == 'PRIMARY KEY'


# ====================
# SQLAlchemy
# ====================

@pytest.mark.integration
def test_describe_sqlalchemy_model():
    from sqlalchemy import Column, Float, Integer, LargeBinary, String
    from sqlalchemy.orm import declarative_base

    Base = declarative_base()

    class Document(Base):
        __tablename__ = 'documents'

        Id = Column(Integer, primary_key=True, info={'sql': 'PRIMARY KEY AUTOINCREMENT'})
        Title = Column(String(200), info={'sql': 'NOT NULL'})
        Score = Column(Float)
        Payload = Column(LargeBinary, info={'sql': 'NOT NULL'})

    descriptor = describe_model(Document)

    assert descriptor.name == 'Document'
    assert descriptor.field_names == ['Id', 'Title', 'Score', 'Payload']
    assert descriptor.fields[0].declared_type is int
    assert descriptor.fields[1].annotation == 'NOT NULL'
    assert descriptor.fields[2].annotation == ''
    assert descriptor.fields[3].declared_type is bytes
    assert describe_model(Document()).name == 'Document'


# ====================
# Unsupported models
# ====================

@pytest.mark.edge_case
@pytest.mark.parametrize("model", [object(), 42, 'Product', dict])
def test_describe_model_rejects_unsupported(model):
    with pytest.raises(TypeError, match="Cannot describe model"):
        describe_model(model)
