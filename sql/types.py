"""
===============================================
SQLite storage types and literal value helpers.
===============================================

Storage classes:
    StorageType: NULL, TEXT, INTEGER, REAL, BLOB
    infer_storage_type: map a declared Python type to its storage class

Literal values:
    LiteralValue: NULL, TRUE, FALSE, CURRENT_TIME, CURRENT_DATE, CURRENT_TIMESTAMP
    signed_number: render a Python number as a SQL signed-number
    quote_string: render a Python string as a SQL string literal

Binding parameters:
    BindingStyle / binding_parameter: ?, ?NNN, :name, @name, $name

Column paths:
    ColumnPath: [schema.]table.column references, validated against a model

Example:
    >>> from typing import Optional
    >>> infer_storage_type(Optional[int])
    <StorageType.INTEGER: 'INTEGER'>
    >>> binding_parameter(BindingStyle.COLON_NAMED, 'user_id')
    ':user_id'
"""

import datetime
import decimal
import enum
import typing
import uuid
from typing import Any, Optional, Union

from models.descriptors import describe_model
from utils.naming import to_snake_case

from .exceptions import QueryDefinitionError


class StorageType(str, enum.Enum):
    """SQLite storage classes used as column types."""

    NULL = 'NULL'
    TEXT = 'TEXT'
    INTEGER = 'INTEGER'
    REAL = 'REAL'
    BLOB = 'BLOB'

    def __str__(self) -> str:
        return self.value


_INTEGER_TYPES = (bool, int)
_REAL_TYPES = (float, decimal.Decimal)
_TEXT_TYPES = (str, datetime.datetime, datetime.date, datetime.time, datetime.timedelta, uuid.UUID)
_BLOB_TYPES = (bytes, bytearray, memoryview)


def _unwrap_optional(declared_type: Any) -> Any:
    """Strip Optional[...] / Union[X, None] down to X."""
    if typing.get_origin(declared_type) is Union:
        members = [arg for arg in typing.get_args(declared_type) if arg is not type(None)]
        if len(members) == 1:
            return _unwrap_optional(members[0])
    return declared_type


def infer_storage_type(declared_type: Any) -> StorageType:
    """Infer the SQLite storage class for a declared field type.

    Args:
        declared_type: Python type, typing construct, or storage type name

    Returns:
        StorageType; TEXT for types with no better match

    Example:
        >>> infer_storage_type(bytes)
        <StorageType.BLOB: 'BLOB'>
        >>> infer_storage_type('real')
        <StorageType.REAL: 'REAL'>
    """
    if isinstance(declared_type, StorageType):
        return declared_type
    if isinstance(declared_type, str):
        upper = declared_type.strip().upper()
        if upper in StorageType.__members__:
            return StorageType[upper]
        return StorageType.TEXT
    if declared_type is None or declared_type is type(None):
        return StorageType.NULL

    declared_type = _unwrap_optional(declared_type)
    if not isinstance(declared_type, type):
        return StorageType.TEXT

    if issubclass(declared_type, _INTEGER_TYPES):
        return StorageType.INTEGER
    if issubclass(declared_type, _REAL_TYPES):
        return StorageType.REAL
    if issubclass(declared_type, _BLOB_TYPES):
        return StorageType.BLOB
    if issubclass(declared_type, _TEXT_TYPES):
        return StorageType.TEXT
    return StorageType.TEXT


class LiteralValue(str, enum.Enum):
    """Keyword literals accepted wherever SQLite takes a literal value."""

    NULL = 'NULL'
    TRUE = 'TRUE'
    FALSE = 'FALSE'
    CURRENT_TIME = 'CURRENT_TIME'
    CURRENT_DATE = 'CURRENT_DATE'
    CURRENT_TIMESTAMP = 'CURRENT_TIMESTAMP'

    def __str__(self) -> str:
        return self.value


def signed_number(value: Union[int, float, decimal.Decimal, str]) -> str:
    """Render a number as a SQL signed-number literal.

    Strings are trusted to already be numeric text and are passed through.
    """
    if isinstance(value, bool):
        raise QueryDefinitionError(f"Boolean {value!r} is not a signed number")
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, float):
        return repr(value)
    return str(value)


def quote_string(value: str) -> str:
    """Render a Python string as a single-quoted SQL literal."""
    return "'" + value.replace("'", "''") + "'"


class BindingStyle(enum.Enum):
    """Parameter placeholder styles understood by SQLite."""

    AUTO = ''
    INDEXED = '?'
    COLON_NAMED = ':'
    AT_NAMED = '@'
    DOLLAR_NAMED = '$'


def binding_parameter(style: BindingStyle = BindingStyle.AUTO, name: Any = '') -> str:
    """Render a binding parameter placeholder.

    Args:
        style: Placeholder style
        name: Index (INDEXED) or name (named styles); ignored for AUTO

    Returns:
        Placeholder text such as '?', '?3', ':name', '@name', '$name'
    """
    if style is BindingStyle.AUTO:
        return '?'
    if name == '' or name is None:
        raise QueryDefinitionError(f"{style.name} binding parameter requires a name or index")
    return f"{style.value}{name}"


class ColumnPath:
    """A possibly qualified column reference: [schema.][table.]column.

    When ``table`` is a model, the column must be one of its fields.

    Example:
        >>> ColumnPath('Name', table='Product').render()
        'product.name'
    """

    def __init__(self, column: str, table: Any = None, schema: Optional[str] = None):
        if table is not None and not isinstance(table, str):
            descriptor = describe_model(table)
            if not descriptor.has_field(column):
                raise QueryDefinitionError(
                    f"Column '{column}' not found in table '{descriptor.name}'"
                )
            table = descriptor.name
        if schema and table is None:
            raise QueryDefinitionError("A schema-qualified column path needs a table")

        self.schema = schema
        self.table = table
        self.column = column

    def render(self) -> str:
        parts = []
        if self.schema:
            parts.append(self.schema)
        if self.table is not None:
            parts.append(to_snake_case(self.table))
        parts.append(to_snake_case(self.column))
        return '.'.join(parts)

    def __str__(self) -> str:
        return self.render()

    def __repr__(self) -> str:
        return f"ColumnPath({self.render()!r})"
