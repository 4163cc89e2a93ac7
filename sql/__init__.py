"""
====================================================
SQLite schema compiler and SQL builder package.
====================================================

Turns per-field annotation strings on data models into validated SQLite
constraints, and renders tables, indexes, pragmas and SELECT statements as
deterministic SQL text.

The package follows a clear organization:
    - exceptions.py: SchemaError hierarchy and per-field error collection
    - types.py: storage types, literal values, binding parameters, column paths
    - expression.py: Expression node and helper operators
    - clauses.py: constraint clause builders (NOT NULL, UNIQUE, CHECK, ...)
    - tokenizer.py: scanner shared by annotations and REFERENCES clauses
    - foreign_key.py: foreign-key reference parser/resolver/renderer
    - annotations.py: annotation compiler producing Columns
    - column.py: Column with constraint-compatibility checks
    - ddl.py: CREATE TABLE / CREATE INDEX builders
    - query_builder.py: SELECT / FROM / JOIN / ORDER BY / WITH builders
    - pragma.py: PRAGMA builders
    - schema.py: Schema aggregator

Architecture:
    - Builders never touch a database; rendering is pure and idempotent
    - Table parses all annotations on construction and reports every
      invalid field at once (TableDefinitionError)
    - A driver consumes Schema.build() or Schema.statements()

Example:
    >>> from models import ModelDescriptor
    >>> from sql import Table
    >>>
    >>> t = ModelDescriptor.from_fields('T', [
    ...     ('Id', int, 'PRIMARY KEY AUTOINCREMENT'),
    ...     ('Name', str, 'NOT NULL'),
    ... ])
    >>> Table(t).build()
    'CREATE TABLE t (\\n\\tid INTEGER PRIMARY KEY AUTOINCREMENT,\\n\\tname TEXT NOT NULL\\n);\\n'
"""

__version__ = "0.1.0"
__all__ = [
    # Errors
    'SchemaError', 'ConstraintConflictError', 'ForeignKeyResolutionError',
    'AnnotationSyntaxError', 'ReferenceSyntaxError', 'PragmaDefinitionError',
    'QueryDefinitionError', 'TableDefinitionError', 'FieldError',
    # Types and expressions
    'StorageType', 'LiteralValue', 'BindingStyle', 'ColumnPath', 'Expression',
    # Clauses
    'ConflictAction', 'SortOrder', 'StorageMode', 'IndexedColumn',
    'TablePrimaryKey', 'TableUnique',
    # Compiler
    'AnnotationParser', 'Column', 'ForeignKeyReference', 'RowAction',
    'DeferrableAction', 'parse_field',
    # Statements
    'Table', 'Index', 'Select', 'From', 'Join', 'JoinType', 'OrderBy',
    'OrderDirection', 'ResultColumn', 'CommonTableExpression', 'Pragma',
    'Schema', 'foreign_keys', 'journal_mode',
]

from .annotations import AnnotationParser, parse_field
from .clauses import ConflictAction, IndexedColumn, SortOrder, StorageMode, TablePrimaryKey, TableUnique
from .column import Column
from .ddl import Index, Table
from .exceptions import (
    AnnotationSyntaxError,
    ConstraintConflictError,
    FieldError,
    ForeignKeyResolutionError,
    PragmaDefinitionError,
    QueryDefinitionError,
    ReferenceSyntaxError,
    SchemaError,
    TableDefinitionError,
)
from .expression import Expression
from .foreign_key import DeferrableAction, ForeignKeyReference, RowAction
from .pragma import Pragma, foreign_keys, journal_mode
from .query_builder import (
    CommonTableExpression,
    From,
    Join,
    JoinType,
    OrderBy,
    OrderDirection,
    ResultColumn,
    Select,
)
from .schema import Schema
from .types import BindingStyle, ColumnPath, LiteralValue, StorageType
